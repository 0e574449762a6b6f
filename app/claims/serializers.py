"""
Serializers for damage claim endpoints.
"""

from rest_framework import serializers

from claims.models import DamageClaim
from claims.states import ResponseAction


class ClaimResponseSerializer(serializers.Serializer):
    """
    Request body for a renter response.

    Shape checks only; which fields each action allows is enforced by
    claims.responses.parse_response.
    """

    action = serializers.ChoiceField(choices=ResponseAction.choices)
    counter_offer = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False
    )
    notes = serializers.CharField(required=False, allow_blank=True, max_length=2000)


class DamageClaimSerializer(serializers.ModelSerializer):
    class Meta:
        model = DamageClaim
        fields = [
            "id",
            "booking",
            "filed_by",
            "damage_description",
            "estimated_cost",
            "status",
            "filed_at",
            "renter_response",
            "resolution",
        ]
        read_only_fields = fields

"""
Serializers for deposit endpoints.
"""

from django.conf import settings
from rest_framework import serializers


class ReleaseDepositResponseSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    amount_released = serializers.DecimalField(max_digits=10, decimal_places=2)
    payment_id = serializers.UUIDField()
    refund_id = serializers.CharField(allow_null=True)
    auto_resolved = serializers.BooleanField()


class SweepRequestSerializer(serializers.Serializer):
    """
    Body of an on-demand sweep.

    ``limit`` is clamped by the sweeper; only values below 1 are refused here.
    """

    limit = serializers.IntegerField(required=False, min_value=1)
    dry_run = serializers.BooleanField(required=False, default=False)

    def validate_limit(self, value):
        return min(value, settings.DEPOSIT_SWEEP_MAX_LIMIT)


class SweepErrorSerializer(serializers.Serializer):
    booking_id = serializers.CharField()
    error = serializers.CharField()


class SweepResultSerializer(serializers.Serializer):
    scanned = serializers.IntegerField()
    eligible = serializers.IntegerField()
    released = serializers.IntegerField()
    errors = SweepErrorSerializer(many=True)
    dry_run = serializers.BooleanField()


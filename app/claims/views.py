"""
API views for damage claims.

Provides:
- ClaimRespondView: Renter accepts, negotiates, or disputes a claim
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from claims.serializers import ClaimResponseSerializer, DamageClaimSerializer
from claims.services import ClaimService

ERROR_STATUS = {
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "FORBIDDEN": status.HTTP_403_FORBIDDEN,
    "INVALID_CLAIM_RESPONSE": status.HTTP_400_BAD_REQUEST,
    "CONFLICT": status.HTTP_409_CONFLICT,
}


class ClaimRespondView(APIView):
    """
    Record the renter's response to a damage claim.

    POST /api/v1/claims/{claim_id}/respond/

    Request:
        - action (required): accept, negotiate, or dispute
        - counter_offer: required for negotiate, not allowed otherwise
        - notes: required for dispute

    Response:
        200 OK: Updated claim
        400 Bad Request: Payload does not match the action
        403 Forbidden: Caller is not the booking's renter
        404 Not Found: No such claim
        409 Conflict: Claim already answered or closed
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="respond_to_damage_claim",
        summary="Respond to a damage claim",
        request=ClaimResponseSerializer,
        responses={
            200: OpenApiResponse(response=DamageClaimSerializer),
            400: OpenApiResponse(description="Invalid response payload"),
            403: OpenApiResponse(description="Caller is not the renter"),
            404: OpenApiResponse(description="Claim not found"),
            409: OpenApiResponse(description="Claim is no longer pending"),
        },
        tags=["Claims"],
    )
    def post(self, request, claim_id):
        serializer = ClaimResponseSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        result = ClaimService.respond(claim_id, request.user, serializer.validated_data)
        if not result.success:
            return Response(
                result.to_response(),
                status=ERROR_STATUS.get(result.error_code, status.HTTP_400_BAD_REQUEST),
            )

        return Response(DamageClaimSerializer(result.data).data)

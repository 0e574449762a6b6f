"""
API views for deposit release.

Provides:
- ReleaseDepositView: Renter or owner releases a booking's deposit
- SweepView: Staff-triggered reconciliation sweep
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from deposits.serializers import (
    ReleaseDepositResponseSerializer,
    SweepRequestSerializer,
    SweepResultSerializer,
)
from deposits.services import DepositReleaseCoordinator, DepositSweeper

ERROR_STATUS = {
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "FORBIDDEN": status.HTTP_403_FORBIDDEN,
    "NOT_ELIGIBLE": status.HTTP_400_BAD_REQUEST,
    "CONFLICT": status.HTTP_409_CONFLICT,
    "GATEWAY_REJECTED": status.HTTP_502_BAD_GATEWAY,
    "GATEWAY_UNAVAILABLE": status.HTTP_503_SERVICE_UNAVAILABLE,
    "FINALIZE_FAILED": status.HTTP_500_INTERNAL_SERVER_ERROR,
    "RELEASE_FAILED": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class ReleaseDepositView(APIView):
    """
    Release the security deposit for a completed booking.

    POST /api/v1/deposits/bookings/{booking_id}/release/

    Response:
        200 OK: {success, amount_released, payment_id, refund_id, auto_resolved}
        400 Bad Request: not_eligible (reason in details)
        403 Forbidden: Caller is neither renter nor owner
        404 Not Found: No booking or payment
        409 Conflict: Deposit already being released
        502 Bad Gateway: Stripe rejected the refund
        503 Service Unavailable: Stripe unreachable, retry later
        500 Internal Server Error: Refund issued but ledger not finalized
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="release_deposit",
        summary="Release a booking's security deposit",
        request=None,
        responses={
            200: OpenApiResponse(response=ReleaseDepositResponseSerializer),
            400: OpenApiResponse(description="Deposit not eligible for release"),
            403: OpenApiResponse(description="Caller is not a party to the booking"),
            404: OpenApiResponse(description="Booking or payment not found"),
            409: OpenApiResponse(description="Deposit already being released"),
            502: OpenApiResponse(description="Refund rejected by the gateway"),
            503: OpenApiResponse(description="Gateway unavailable"),
        },
        tags=["Deposits - Release"],
    )
    def post(self, request, booking_id):
        result = DepositReleaseCoordinator.release(booking_id, request.user)
        if not result.success:
            body = result.to_response()
            body["error_code"] = result.error_code.lower()
            return Response(
                body,
                status=ERROR_STATUS.get(
                    result.error_code, status.HTTP_400_BAD_REQUEST
                ),
            )

        return Response(ReleaseDepositResponseSerializer(result.data).data)


class SweepView(APIView):
    """
    Run a reconciliation sweep now.

    POST /api/v1/deposits/sweep/

    Request:
        - limit (optional): candidates to evaluate, clamped to the maximum
        - dry_run (optional): evaluate only, no locks or refunds

    Response:
        200 OK: {scanned, eligible, released, errors, dry_run}
    """

    permission_classes = [IsAdminUser]

    @extend_schema(
        operation_id="sweep_deposits",
        summary="Run a deposit reconciliation sweep",
        request=SweepRequestSerializer,
        responses={200: OpenApiResponse(response=SweepResultSerializer)},
        tags=["Deposits - Sweep"],
    )
    def post(self, request):
        serializer = SweepRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = DepositSweeper.sweep(
            limit=serializer.validated_data.get("limit"),
            dry_run=serializer.validated_data["dry_run"],
        )
        return Response(SweepResultSerializer(result.to_dict()).data)

"""
Damage claim service.

Filing and responding are done by the marketplace forms through this
service; the deposit engine only reads claim statuses from it.

Usage:
    from claims.services import ClaimService

    result = ClaimService.respond(claim_id, request.user, {"action": "accept"})
    statuses = ClaimService.statuses_for_bookings(booking_ids)
"""

from __future__ import annotations

from collections import defaultdict
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from django_fsm import ConcurrentTransition, TransitionNotAllowed

from claims.exceptions import ClaimResponseError
from claims.models import DamageClaim
from claims.responses import parse_response
from claims.states import BLOCKING_STATUSES
from core.services import BaseService, ServiceResult

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from authentication.models import User
    from bookings.models import Booking


class ClaimService(BaseService):
    """Filing, renter responses and status lookups for damage claims."""

    @classmethod
    def file_claim(
        cls,
        booking: Booking,
        filed_by: User,
        damage_description: str,
        estimated_cost: Decimal,
    ) -> ServiceResult[DamageClaim]:
        """
        File a new pending claim against a booking.

        Only the booking owner may file. Filing immediately blocks deposit
        release for the booking.
        """
        if filed_by.pk != booking.owner_id:
            return ServiceResult.failure(
                "Only the equipment owner can file a damage claim",
                error_code="FORBIDDEN",
            )
        if estimated_cost <= 0:
            return ServiceResult.failure(
                "estimated_cost must be positive",
                error_code="VALIDATION_ERROR",
                details={"field": "estimated_cost"},
            )
        if not damage_description.strip():
            return ServiceResult.failure(
                "damage_description is required",
                error_code="VALIDATION_ERROR",
                details={"field": "damage_description"},
            )

        claim = DamageClaim.objects.create(
            booking=booking,
            filed_by=filed_by,
            damage_description=damage_description.strip(),
            estimated_cost=estimated_cost,
        )
        cls.get_logger().info(
            "Damage claim filed",
            extra={
                "claim_id": str(claim.id),
                "booking_id": str(booking.id),
                "estimated_cost": str(estimated_cost),
            },
        )
        return ServiceResult.success(claim)

    @classmethod
    def respond(
        cls,
        claim_id: UUID,
        renter: User,
        payload: dict[str, Any],
    ) -> ServiceResult[DamageClaim]:
        """
        Record the renter's response to a pending claim.

        Error codes:
            NOT_FOUND: No such claim
            FORBIDDEN: Caller is not the booking's renter
            INVALID_CLAIM_RESPONSE: Payload does not match its action
            CONFLICT: Claim is no longer pending
        """
        claim = (
            DamageClaim.objects.select_related("booking").filter(pk=claim_id).first()
        )
        if claim is None:
            return ServiceResult.failure(
                f"Damage claim {claim_id} not found",
                error_code="NOT_FOUND",
            )
        if renter.pk != claim.booking.renter_id:
            return ServiceResult.failure(
                "Only the renter can respond to this claim",
                error_code="FORBIDDEN",
            )

        try:
            response = parse_response(payload)
        except ClaimResponseError as e:
            return ServiceResult.from_exception(e)

        try:
            claim.respond(response)
            claim.save()
        except (TransitionNotAllowed, ConcurrentTransition):
            cls.get_logger().info(
                "Claim response rejected, claim no longer pending",
                extra={"claim_id": str(claim_id), "status": claim.status},
            )
            return ServiceResult.failure(
                "Claim has already been answered or closed",
                error_code="CONFLICT",
                details={"claim_id": str(claim_id)},
            )

        cls.get_logger().info(
            "Renter responded to damage claim",
            extra={
                "claim_id": str(claim.id),
                "booking_id": str(claim.booking_id),
                "action": str(response.action),
                "status": claim.status,
            },
        )
        return ServiceResult.success(claim)

    # =========================================================================
    # Status lookups used by the deposit engine
    # =========================================================================

    @classmethod
    def statuses_for_bookings(
        cls, booking_ids: Iterable[UUID]
    ) -> dict[UUID, list[str]]:
        """Claim statuses per booking; bookings without claims are absent."""
        booking_ids = list(booking_ids)
        statuses: dict[UUID, list[str]] = defaultdict(list)
        if not booking_ids:
            return statuses
        rows = DamageClaim.objects.filter(booking_id__in=booking_ids).values_list(
            "booking_id", "status"
        )
        for booking_id, status in rows:
            statuses[booking_id].append(status)
        return statuses

    @classmethod
    def statuses_for_booking(cls, booking_id: UUID) -> list[str]:
        """Fresh read of one booking's claim statuses."""
        return list(
            DamageClaim.objects.filter(booking_id=booking_id).values_list(
                "status", flat=True
            )
        )

    @classmethod
    def has_blocking_claim(cls, booking_id: UUID) -> bool:
        return DamageClaim.objects.filter(
            booking_id=booking_id, status__in=BLOCKING_STATUSES
        ).exists()

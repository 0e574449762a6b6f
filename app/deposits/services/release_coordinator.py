"""
Manual deposit release.

Single-booking release triggered by the renter or the owner, with the
same evaluation, locking and gateway sequence as the sweep.

Usage:
    from deposits.services import DepositReleaseCoordinator

    result = DepositReleaseCoordinator.release(booking_id, request.user)
    if result.success:
        result.data.amount_released  # Decimal("200.00")
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

from django.utils import timezone

from bookings.models import Booking
from claims.services import ClaimService
from core.exceptions import ConflictError, NotFoundError, PermissionDeniedError
from core.services import BaseService, ServiceResult
from deposits.eligibility import EligibilityReason, evaluate
from deposits.exceptions import (
    DepositReleaseError,
    FinalizeFailedError,
    GatewayRejectedError,
    GatewayTransientError,
)
from deposits.models import Payment
from deposits.services.release_flow import DepositReleaseFlow, ReleaseStatus
from deposits.state_machines import DepositStatus
from inspections.services import ReturnEvidenceReader

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from authentication.models import User
    from deposits.adapters import DepositGateway
    from deposits.services.release_flow import ReleaseAttempt


@dataclass(frozen=True)
class ReleaseOutcome:
    """
    Successful manual release.

    Attributes:
        success: Always True; present so the API body mirrors the result
        amount_released: Deposit amount refunded
        payment_id: Ledger row that was released
        refund_id: Stripe Refund id
        auto_resolved: Released because the owner's claim window lapsed
    """

    success: bool
    amount_released: Decimal
    payment_id: UUID
    refund_id: str | None = None
    auto_resolved: bool = False


class DepositReleaseCoordinator(BaseService):
    """
    Release one booking's deposit on request.

    Error codes:
        NOT_FOUND: No booking, or no payment recorded for it
        FORBIDDEN: Caller is neither the renter nor the owner
        NOT_ELIGIBLE: Evaluator refused, or a claim appeared after locking
        CONFLICT: Another actor holds the deposit lock (row is releasing)
        GATEWAY_REJECTED: Stripe refused the refund
        GATEWAY_UNAVAILABLE: Stripe unreachable after retries
        FINALIZE_FAILED: Refund confirmed but ledger not finalized
        RELEASE_FAILED: Unexpected failure before any refund was confirmed
    """

    @classmethod
    def release(
        cls,
        booking_id: UUID,
        caller: User,
        now: datetime | None = None,
        gateway: DepositGateway | None = None,
    ) -> ServiceResult[ReleaseOutcome]:
        logger = cls.get_logger()
        now = now or timezone.now()

        booking = Booking.objects.filter(pk=booking_id).first()
        if booking is None:
            return ServiceResult.from_exception(
                NotFoundError(
                    f"Booking {booking_id} not found",
                    details={"booking_id": str(booking_id)},
                )
            )

        if not booking.is_party(caller):
            logger.warning(
                "Deposit release attempted by non-party",
                extra={"booking_id": str(booking_id), "user_id": str(caller.pk)},
            )
            return ServiceResult.from_exception(
                PermissionDeniedError(
                    "Only the renter or owner can release this deposit",
                    error_code="FORBIDDEN",
                )
            )

        payment = Payment.objects.filter(booking_id=booking_id).first()
        if payment is None:
            return ServiceResult.from_exception(
                NotFoundError(
                    "No payment recorded for this booking",
                    details={"booking_id": str(booking_id)},
                )
            )

        if payment.deposit_status == DepositStatus.RELEASING:
            return ServiceResult.from_exception(
                ConflictError(
                    "Deposit already being released",
                    details={"payment_id": str(payment.id)},
                )
            )

        evidence = ReturnEvidenceReader.for_booking(booking_id)
        statuses = ClaimService.statuses_for_booking(booking_id)
        decision = evaluate(payment, evidence, statuses, now)
        if not decision.eligible:
            return cls._not_eligible(payment, decision.reason)

        attempt = DepositReleaseFlow.run(
            payment,
            decision,
            evidence,
            now,
            gateway=gateway,
            released_by=str(caller.pk),
        )
        if attempt.released:
            return ServiceResult.success(
                ReleaseOutcome(
                    success=True,
                    amount_released=payment.deposit_amount,
                    payment_id=payment.id,
                    refund_id=attempt.gateway_result.refund_id,
                    auto_resolved=decision.auto_resolved,
                )
            )
        return ServiceResult.from_exception(cls._failure(attempt))

    @classmethod
    def _not_eligible(cls, payment: Payment, reason: str) -> ServiceResult:
        return ServiceResult.from_exception(
            DepositReleaseError(
                EligibilityReason(reason).label,
                error_code="NOT_ELIGIBLE",
                details={"reason": str(reason), "payment_id": str(payment.id)},
            )
        )

    @classmethod
    def _failure(cls, attempt: ReleaseAttempt) -> Exception:
        details = {"payment_id": attempt.payment_id}
        result = attempt.gateway_result

        if attempt.status == ReleaseStatus.LOCK_CONFLICT:
            return ConflictError("Deposit already being released", details=details)
        if attempt.status == ReleaseStatus.STALE_CLAIM:
            return DepositReleaseError(
                EligibilityReason.BLOCKING_CLAIM.label,
                error_code="NOT_ELIGIBLE",
                details={**details, "reason": str(EligibilityReason.BLOCKING_CLAIM)},
            )
        if attempt.status == ReleaseStatus.GATEWAY_REJECTED:
            return GatewayRejectedError(
                result.message or "Refund rejected",
                gateway_code=result.error_code,
                details=details,
            )
        if attempt.status == ReleaseStatus.GATEWAY_TRANSIENT:
            return GatewayTransientError(
                result.message or "Payment gateway unavailable",
                gateway_code=result.error_code,
                details=details,
            )
        if attempt.status == ReleaseStatus.FINALIZE_FAILED:
            return FinalizeFailedError(
                "Refund issued but payment record not updated",
                details={**details, "refund_id": result.refund_id},
            )
        return DepositReleaseError(
            attempt.error or "Deposit release failed",
            error_code="RELEASE_FAILED",
            details=details,
        )

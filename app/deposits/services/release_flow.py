"""
Lock, refund and settle one deposit.

The post-eligibility half of a release, shared by the sweeper and the
manual coordinator:

    try_lock → re-check claims → auto-accept (if window lapsed)
    → gateway refund → finalize | rollback

Every failure before the gateway confirms a refund rolls the row back to
``held`` so the next sweep can try again. Once the gateway confirms, the
row is never rolled back: a failed finalize leaves it in ``releasing``
for manual reconciliation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from django.utils import timezone

from claims.services import ClaimService
from core.services import BaseService
from deposits.adapters import GatewayResult, StripeDepositGateway
from deposits.eligibility import has_blocking_claim
from deposits.locks import DepositStateMachine
from inspections.services import ReturnEvidenceReader

if TYPE_CHECKING:
    from datetime import datetime

    from deposits.adapters import DepositGateway
    from deposits.eligibility import EligibilityDecision
    from deposits.models import Payment
    from inspections.services import ReturnEvidence


class ReleaseStatus(str, Enum):
    """How a single release attempt ended."""

    RELEASED = "released"
    LOCK_CONFLICT = "lock_conflict"
    STALE_CLAIM = "stale_claim"
    CLAIM_CHECK_FAILED = "claim_check_failed"
    GATEWAY_TRANSIENT = "transient"
    GATEWAY_REJECTED = "rejected"
    FINALIZE_FAILED = "finalize_failed"
    ERROR = "error"


@dataclass
class ReleaseAttempt:
    """
    Outcome of DepositReleaseFlow.run for one payment.

    Attributes:
        status: ReleaseStatus
        payment_id / booking_id: Identity of the attempt
        amount_cents: Deposit amount the attempt would refund
        gateway_result: Gateway response, when the gateway was called
        error: Error string for batch reports (``transient: ...`` etc.)
        warnings: Non-fatal problems, e.g. a failed auto-accept write
    """

    status: ReleaseStatus
    payment_id: str
    booking_id: str
    amount_cents: int
    gateway_result: GatewayResult | None = None
    error: str | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def released(self) -> bool:
        return self.status == ReleaseStatus.RELEASED


class DepositReleaseFlow(BaseService):
    """
    Shared lock/refund/settle sequence.

    The gateway is injectable for tests:
        DepositReleaseFlow.set_gateway(FakeGateway())
        ...
        DepositReleaseFlow.set_gateway(None)
    """

    _gateway: DepositGateway | None = None

    @classmethod
    def get_gateway(cls) -> DepositGateway:
        """Get the refund gateway."""
        return cls._gateway or StripeDepositGateway

    @classmethod
    def set_gateway(cls, gateway: DepositGateway | None) -> None:
        """Set the refund gateway (for testing)."""
        cls._gateway = gateway

    @classmethod
    def run(
        cls,
        payment: Payment,
        decision: EligibilityDecision,
        evidence: ReturnEvidence | None,
        now: datetime,
        gateway: DepositGateway | None = None,
        released_by: str | None = None,
    ) -> ReleaseAttempt:
        """
        Release ``payment``'s deposit, which ``decision`` found eligible.

        Never raises for expected failures; the returned attempt says what
        happened and whether the row was rolled back.
        """
        logger = cls.get_logger()
        gateway = gateway or cls.get_gateway()
        attempt = ReleaseAttempt(
            status=ReleaseStatus.RELEASED,
            payment_id=str(payment.id),
            booking_id=str(payment.booking_id),
            amount_cents=payment.deposit_amount_cents,
        )
        log_context = {
            "payment_id": attempt.payment_id,
            "booking_id": attempt.booking_id,
            "amount_cents": attempt.amount_cents,
        }

        locked = DepositStateMachine.try_lock(payment.id)
        if locked is None:
            logger.debug("Deposit already locked or released", extra=log_context)
            attempt.status = ReleaseStatus.LOCK_CONFLICT
            return attempt

        # A claim may have been filed between evaluation and the lock.
        try:
            statuses = ClaimService.statuses_for_booking(locked.booking_id)
        except Exception as e:
            logger.error(
                "Claim re-check failed after lock, rolling back",
                extra={**log_context, "error": str(e)},
                exc_info=True,
            )
            DepositStateMachine.rollback(locked.id)
            attempt.status = ReleaseStatus.CLAIM_CHECK_FAILED
            attempt.error = f"claim_check_failed: {e}"
            return attempt

        if has_blocking_claim(statuses):
            logger.info(
                "Claim filed after eligibility check, rolling back",
                extra=log_context,
            )
            DepositStateMachine.rollback(locked.id)
            attempt.status = ReleaseStatus.STALE_CLAIM
            return attempt

        if decision.auto_resolved and evidence is not None:
            try:
                ReturnEvidenceReader.auto_accept(evidence.inspection_id, now)
            except Exception as e:
                logger.error(
                    "Auto-accept of return inspection failed, releasing anyway",
                    extra={
                        **log_context,
                        "inspection_id": str(evidence.inspection_id),
                        "error": str(e),
                    },
                    exc_info=True,
                )
                attempt.warnings.append(f"auto_accept_failed: {e}")

        try:
            result = gateway.refund_deposit(locked, released_by=released_by)
        except Exception as e:
            # Gateways report Stripe failures as results; anything raised here
            # happened before a refund could be confirmed, and the next attempt
            # reuses the same idempotency key.
            logger.error(
                "Deposit refund raised unexpectedly, rolling back",
                extra={**log_context, "error": str(e)},
                exc_info=True,
            )
            DepositStateMachine.rollback(locked.id)
            attempt.status = ReleaseStatus.ERROR
            attempt.error = f"error: {e}"
            return attempt

        attempt.gateway_result = result
        gateway_context = {
            **log_context,
            "idempotency_key": result.idempotency_key,
            "gateway_error_code": result.error_code,
            "gateway_message": result.message,
        }

        if not result.succeeded:
            DepositStateMachine.rollback(locked.id)
            if result.is_rejected:
                logger.error("Deposit refund rejected, rolled back", extra=gateway_context)
                attempt.status = ReleaseStatus.GATEWAY_REJECTED
            else:
                logger.warning(
                    "Deposit refund failed transiently, rolled back",
                    extra=gateway_context,
                )
                attempt.status = ReleaseStatus.GATEWAY_TRANSIENT
            attempt.error = f"{attempt.status.value}: {result.message or result.error_code}"
            return attempt

        try:
            finalized = DepositStateMachine.finalize(locked.id, timezone.now())
        except Exception as e:
            finalized = False
            gateway_context["error"] = str(e)

        if not finalized:
            logger.critical(
                "Refund confirmed but ledger not finalized, left in releasing",
                extra={**gateway_context, "refund_id": result.refund_id},
            )
            attempt.status = ReleaseStatus.FINALIZE_FAILED
            attempt.error = ReleaseStatus.FINALIZE_FAILED.value
            return attempt

        logger.info(
            "Deposit released",
            extra={
                **gateway_context,
                "refund_id": result.refund_id,
                "auto_resolved": decision.auto_resolved,
            },
        )
        return attempt

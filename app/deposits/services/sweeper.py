"""
Reconciliation sweep over held deposits.

Finds held deposits, evaluates them in bulk and releases the eligible
ones. Safe to run from several workers at once: each release is guarded by
the ledger's compare-and-swap lock and the gateway's idempotency key.

Usage:
    from deposits.services import DepositSweeper

    result = DepositSweeper.sweep(limit=100)
    result.to_dict()
    # {"scanned": 12, "eligible": 3, "released": 3, "errors": [], "dry_run": False}
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from django.conf import settings
from django.db import connection
from django.utils import timezone

from claims.services import ClaimService
from core.services import BaseService
from deposits.eligibility import evaluate
from deposits.models import Payment
from deposits.services.release_flow import (
    DepositReleaseFlow,
    ReleaseAttempt,
    ReleaseStatus,
)
from inspections.services import ReturnEvidenceReader

if TYPE_CHECKING:
    from datetime import datetime

    from deposits.adapters import DepositGateway
    from deposits.eligibility import EligibilityDecision
    from inspections.services import ReturnEvidence


@dataclass
class SweepResult:
    """
    Aggregate outcome of one sweep.

    Attributes:
        scanned: Candidates evaluated
        eligible: Candidates the evaluator approved
        released: Deposits refunded and finalized by this run
        errors: One ``{"booking_id", "error"}`` entry per failed item
        dry_run: Whether the run stopped after evaluation
    """

    scanned: int = 0
    eligible: int = 0
    released: int = 0
    errors: list[dict[str, str]] = field(default_factory=list)
    dry_run: bool = False

    def add_error(self, booking_id: Any, error: str) -> None:
        self.errors.append({"booking_id": str(booking_id), "error": error})

    def record(self, attempt: ReleaseAttempt) -> None:
        if attempt.released:
            self.released += 1
        for warning in attempt.warnings:
            self.add_error(attempt.booking_id, warning)
        if attempt.error:
            self.add_error(attempt.booking_id, attempt.error)

    def to_dict(self) -> dict[str, Any]:
        return {
            "scanned": self.scanned,
            "eligible": self.eligible,
            "released": self.released,
            "errors": list(self.errors),
            "dry_run": self.dry_run,
        }


@dataclass(frozen=True)
class _Candidate:
    payment: Payment
    decision: EligibilityDecision
    evidence: ReturnEvidence | None


class DepositSweeper(BaseService):
    """Batch release of eligible held deposits."""

    @classmethod
    def clamp_limit(cls, limit: int | None) -> int:
        """Page size for one run, bounded to ``[1, DEPOSIT_SWEEP_MAX_LIMIT]``."""
        if limit is None:
            limit = settings.DEPOSIT_SWEEP_DEFAULT_LIMIT
        return max(1, min(int(limit), settings.DEPOSIT_SWEEP_MAX_LIMIT))

    @classmethod
    def sweep(
        cls,
        limit: int | None = None,
        dry_run: bool = False,
        now: datetime | None = None,
        gateway: DepositGateway | None = None,
    ) -> SweepResult:
        """
        Run one reconciliation pass.

        Args:
            limit: Maximum candidates to load (clamped)
            dry_run: Evaluate and count only; no locks, writes or refunds
            now: Evaluation time (default: timezone.now())
            gateway: Refund gateway override

        Returns:
            SweepResult. Per-item failures are reported in ``errors`` and
            never stop the run.
        """
        logger = cls.get_logger()
        limit = cls.clamp_limit(limit)
        now = now or timezone.now()
        result = SweepResult(dry_run=dry_run)

        payments = list(
            Payment.objects.release_candidates().select_related("booking")[:limit]
        )
        booking_ids = [payment.booking_id for payment in payments]
        evidence_by_booking = ReturnEvidenceReader.for_bookings(booking_ids)
        statuses_by_booking = ClaimService.statuses_for_bookings(booking_ids)

        candidates: list[_Candidate] = []
        for payment in payments:
            evidence = evidence_by_booking.get(payment.booking_id)
            decision = evaluate(
                payment,
                evidence,
                statuses_by_booking.get(payment.booking_id, []),
                now,
            )
            result.scanned += 1
            if decision.eligible:
                result.eligible += 1
                candidates.append(_Candidate(payment, decision, evidence))

        logger.info(
            "Deposit sweep evaluated candidates",
            extra={
                "limit": limit,
                "scanned": result.scanned,
                "eligible": result.eligible,
                "dry_run": dry_run,
            },
        )

        if dry_run:
            return result

        for attempt in cls._release_all(candidates, now, gateway):
            result.record(attempt)

        logger.info(
            "Deposit sweep complete",
            extra={
                "scanned": result.scanned,
                "eligible": result.eligible,
                "released": result.released,
                "error_count": len(result.errors),
            },
        )
        return result

    @classmethod
    def _release_all(
        cls,
        candidates: list[_Candidate],
        now: datetime,
        gateway: DepositGateway | None,
    ) -> list[ReleaseAttempt]:
        workers = min(settings.DEPOSIT_SWEEP_CONCURRENCY, len(candidates))
        if workers <= 1:
            return [cls._release_one(c, now, gateway) for c in candidates]

        def run_in_thread(candidate: _Candidate) -> ReleaseAttempt:
            try:
                return cls._release_one(candidate, now, gateway)
            finally:
                connection.close()

        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(run_in_thread, candidates))

    @classmethod
    def _release_one(
        cls,
        candidate: _Candidate,
        now: datetime,
        gateway: DepositGateway | None,
    ) -> ReleaseAttempt:
        payment = candidate.payment
        try:
            return DepositReleaseFlow.run(
                payment, candidate.decision, candidate.evidence, now, gateway=gateway
            )
        except Exception as e:
            # Lock or rollback statements themselves failed. The row is either
            # still held or stuck in releasing; no refund was confirmed.
            cls.get_logger().error(
                "Deposit release raised, continuing sweep",
                extra={
                    "payment_id": str(payment.id),
                    "booking_id": str(payment.booking_id),
                    "amount_cents": payment.deposit_amount_cents,
                    "error": str(e),
                },
                exc_info=True,
            )
            return ReleaseAttempt(
                status=ReleaseStatus.ERROR,
                payment_id=str(payment.id),
                booking_id=str(payment.booking_id),
                amount_cents=payment.deposit_amount_cents,
                error=f"error: {e}",
            )

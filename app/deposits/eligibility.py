"""
Deposit release eligibility.

``evaluate`` is a pure function of the ledger row, the booking's return
evidence, its claim statuses and the current time. It performs no I/O and
reads no settings: the claim window arrives on the evidence value.

Checks run in a fixed order and the first failing one names the reason:

    deposit_not_held → no_deposit → missing_charge_reference
    → blocking_claim → no_return_evidence → renter_not_verified
    → owner_verified | claim_window_expired | claim_window_open

Usage:
    from deposits.eligibility import evaluate

    decision = evaluate(payment, evidence, ["resolved"], timezone.now())
    if decision.eligible and decision.auto_resolved:
        ReturnEvidenceReader.auto_accept(evidence.inspection_id, now)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from django.db import models

from claims.states import BLOCKING_STATUSES
from deposits.state_machines import DepositStatus

if TYPE_CHECKING:
    from collections.abc import Iterable

    from deposits.models import Payment
    from inspections.services import ReturnEvidence


class EligibilityReason(models.TextChoices):
    DEPOSIT_NOT_HELD = "deposit_not_held", "Deposit is not held"
    NO_DEPOSIT = "no_deposit", "No deposit was collected"
    MISSING_CHARGE_REFERENCE = (
        "missing_charge_reference",
        "Original charge reference is missing",
    )
    BLOCKING_CLAIM = "blocking_claim", "A damage claim is pending or disputed"
    NO_RETURN_EVIDENCE = "no_return_evidence", "No return inspection submitted"
    RENTER_NOT_VERIFIED = "renter_not_verified", "Renter has not verified the return"
    CLAIM_WINDOW_OPEN = "claim_window_open", "Owner claim window is still open"
    OWNER_VERIFIED = "owner_verified", "Owner verified the return"
    CLAIM_WINDOW_EXPIRED = "claim_window_expired", "Owner claim window expired"


@dataclass(frozen=True)
class EligibilityDecision:
    """
    Outcome of an eligibility check.

    Attributes:
        eligible: Whether the deposit may be released now
        reason: EligibilityReason value explaining the verdict
        auto_resolved: Eligible only because the owner's window lapsed;
            the caller must record the auto-acceptance before refunding
    """

    eligible: bool
    reason: str
    auto_resolved: bool = False

    @classmethod
    def deny(cls, reason: str) -> EligibilityDecision:
        return cls(eligible=False, reason=reason)


def evaluate(
    ledger: Payment,
    evidence: ReturnEvidence | None,
    claim_statuses: Iterable[str],
    now: datetime,
) -> EligibilityDecision:
    """
    Decide whether ``ledger``'s deposit can be released at ``now``.

    The owner's window is strict: at exactly ``submitted_at + window`` the
    deposit is still ineligible, one instant later it is eligible.
    """
    if ledger.deposit_status != DepositStatus.HELD:
        return EligibilityDecision.deny(EligibilityReason.DEPOSIT_NOT_HELD)
    if Decimal(ledger.deposit_amount) <= 0:
        return EligibilityDecision.deny(EligibilityReason.NO_DEPOSIT)
    if not ledger.has_charge_reference:
        return EligibilityDecision.deny(EligibilityReason.MISSING_CHARGE_REFERENCE)

    if has_blocking_claim(claim_statuses):
        return EligibilityDecision.deny(EligibilityReason.BLOCKING_CLAIM)

    if evidence is None:
        return EligibilityDecision.deny(EligibilityReason.NO_RETURN_EVIDENCE)
    if not evidence.verified_by_renter:
        return EligibilityDecision.deny(EligibilityReason.RENTER_NOT_VERIFIED)

    if evidence.verified_by_owner:
        return EligibilityDecision(
            eligible=True, reason=EligibilityReason.OWNER_VERIFIED
        )
    if now > evidence.claim_window_ends_at:
        return EligibilityDecision(
            eligible=True,
            reason=EligibilityReason.CLAIM_WINDOW_EXPIRED,
            auto_resolved=True,
        )
    return EligibilityDecision.deny(EligibilityReason.CLAIM_WINDOW_OPEN)


def has_blocking_claim(claim_statuses: Iterable[str]) -> bool:
    return any(status in BLOCKING_STATUSES for status in claim_statuses)

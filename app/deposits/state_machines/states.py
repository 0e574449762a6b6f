"""
State enums for the deposit ledger.

Deposit States:
    none → (never released; no escrow was collected)
    held → releasing → released
    releasing → held (failed attempt, rolled back)

Every transition is a single conditional UPDATE on ``deposit_status``
(see deposits.locks.DepositStateMachine); there is no other writer.
"""

from django.db import models


class DepositStatus(models.TextChoices):
    """
    Escrow status of the deposit portion of a payment.

    Terminal states: NONE, RELEASED
    """

    NONE = "none", "None"
    HELD = "held", "Held"
    RELEASING = "releasing", "Releasing"
    RELEASED = "released", "Released"


# Allowed (from, to) pairs. Enforcement lives in the conditional updates in
# deposits.locks; the interleaving tests check observed transitions against it.
DEPOSIT_TRANSITIONS = frozenset(
    {
        (DepositStatus.HELD, DepositStatus.RELEASING),
        (DepositStatus.RELEASING, DepositStatus.RELEASED),
        (DepositStatus.RELEASING, DepositStatus.HELD),
    }
)


def is_allowed_transition(source: str, target: str) -> bool:
    return (source, target) in DEPOSIT_TRANSITIONS

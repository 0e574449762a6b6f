"""
Damage claim status and renter response action enums.

Usage:
    from claims.states import BLOCKING_STATUSES, ClaimStatus

    if claim.status in BLOCKING_STATUSES:
        ...
"""

from django.db import models


class ClaimStatus(models.TextChoices):
    """
    Lifecycle of a damage claim.

    State Flow:
        PENDING -> ACCEPTED (renter accepts)
        PENDING -> DISPUTED (renter disputes or negotiates)
        PENDING/ACCEPTED/DISPUTED -> RESOLVED (arbitration)
        PENDING/ACCEPTED/DISPUTED -> CLOSED (arbitration)

    Terminal states: RESOLVED, CLOSED
    """

    PENDING = "pending", "Pending"
    ACCEPTED = "accepted", "Accepted"
    DISPUTED = "disputed", "Disputed"
    RESOLVED = "resolved", "Resolved"
    CLOSED = "closed", "Closed"


class ResponseAction(models.TextChoices):
    """Renter's answer to a pending claim."""

    ACCEPT = "accept", "Accept"
    NEGOTIATE = "negotiate", "Negotiate"
    DISPUTE = "dispute", "Dispute"


# Statuses that keep a booking's deposit in escrow.
BLOCKING_STATUSES = frozenset({ClaimStatus.PENDING, ClaimStatus.DISPUTED})

"""
Deposit domain models.

- Payment: ledger row holding the booking's deposit and its escrow status
"""

from deposits.models.payment import Payment, PaymentQuerySet

__all__ = [
    "Payment",
    "PaymentQuerySet",
]

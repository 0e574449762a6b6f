"""
State enums for the deposit ledger.
"""

from deposits.state_machines.states import (
    DEPOSIT_TRANSITIONS,
    DepositStatus,
    is_allowed_transition,
)

__all__ = [
    "DEPOSIT_TRANSITIONS",
    "DepositStatus",
    "is_allowed_transition",
]

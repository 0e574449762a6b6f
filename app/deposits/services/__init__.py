"""
Deposit release services.

- DepositReleaseFlow: lock, refund and settle one eligible deposit
- DepositSweeper: periodic batch release over held deposits
- DepositReleaseCoordinator: manual release by the renter or owner
"""

from deposits.services.release_coordinator import (
    DepositReleaseCoordinator,
    ReleaseOutcome,
)
from deposits.services.release_flow import (
    DepositReleaseFlow,
    ReleaseAttempt,
    ReleaseStatus,
)
from deposits.services.sweeper import DepositSweeper, SweepResult

__all__ = [
    "DepositReleaseCoordinator",
    "DepositReleaseFlow",
    "DepositSweeper",
    "ReleaseAttempt",
    "ReleaseOutcome",
    "ReleaseStatus",
    "SweepResult",
]

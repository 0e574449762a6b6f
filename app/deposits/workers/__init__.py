"""
Background workers for deposit processing.

- sweep_deposits: periodic reconciliation sweep (celery-beat)
"""

from deposits.workers.deposit_sweeper import sweep_deposits

__all__ = [
    "sweep_deposits",
]

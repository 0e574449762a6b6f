"""
Celery task for the periodic deposit reconciliation sweep.

Tasks:
- sweep_deposits: Releases eligible held deposits (celery-beat, every 15 minutes)

Usage:
    # Typically called via celery-beat schedule
    from deposits.workers import sweep_deposits

    # Or manually trigger a dry run
    sweep_deposits.delay(limit=100, dry_run=True)
"""

from __future__ import annotations

import logging

from celery import shared_task

from deposits.services import DepositSweeper

logger = logging.getLogger(__name__)


@shared_task(bind=True, acks_late=True)
def sweep_deposits(self, limit: int | None = None, dry_run: bool = False) -> dict:
    """
    Run one deposit reconciliation sweep.

    Overlapping runs are safe: each deposit is locked with a conditional
    update before its refund, and the refund carries a per-payment
    idempotency key. The task is not retried; the next scheduled run picks
    up anything left in ``held``.

    Returns:
        Dict with scanned, eligible, released, errors and dry_run
    """
    logger.info(
        "Starting deposit sweep",
        extra={"limit": limit, "dry_run": dry_run, "task_id": self.request.id},
    )

    result = DepositSweeper.sweep(limit=limit, dry_run=dry_run)

    if result.errors:
        logger.warning(
            f"Deposit sweep finished with {len(result.errors)} error(s)",
            extra={"errors": result.errors, "task_id": self.request.id},
        )
    return result.to_dict()

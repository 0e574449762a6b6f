"""
Celery tasks for deposit release.

The sweep task lives in deposits.workers and is re-exported here so Celery
autodiscover finds it.

Usage:
    from deposits.tasks import sweep_deposits

    sweep_deposits.delay(limit=100)
"""

from deposits.workers import sweep_deposits  # noqa: F401

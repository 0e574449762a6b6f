"""
Compare-and-swap state machine for the deposit ledger.

The only synchronization primitive for deposit release is a conditional
UPDATE on ``Payment.deposit_status``. Each transition runs as a single
statement of the form::

    UPDATE payment SET deposit_status = <to> WHERE id = <id> AND deposit_status = <from>

and the affected row count tells the caller whether it won. There is no
distributed lock and no multi-row transaction, so overlapping sweeps and
manual triggers are safe to run side by side.

Usage:
    from deposits.locks import DepositStateMachine

    payment = DepositStateMachine.try_lock(payment_id)
    if payment is None:
        return  # someone else holds it or it already moved on
    ...
    DepositStateMachine.finalize(payment_id, released_at=timezone.now())
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.utils import timezone

from deposits.models import Payment
from deposits.state_machines import DepositStatus

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID


class DepositStateMachine:
    """
    Atomic ``held → releasing → released`` transitions with rollback.

    All methods are classmethods; nothing is cached between calls.
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    def _swap(cls, payment_id: UUID, source: str, target: str, **fields) -> bool:
        now = timezone.now()
        updated = Payment.objects.filter(pk=payment_id, deposit_status=source).update(
            deposit_status=target, updated_at=now, **fields
        )
        return updated == 1

    @classmethod
    def try_lock(cls, payment_id: UUID) -> Payment | None:
        """
        Move ``held → releasing``.

        Returns:
            The payment as it stands after the lock, or None when the row
            was not ``held`` (another actor holds it or it was released).
        """
        if not cls._swap(payment_id, DepositStatus.HELD, DepositStatus.RELEASING):
            cls.get_logger().debug(
                "Deposit lock not acquired",
                extra={"payment_id": str(payment_id)},
            )
            return None
        return Payment.objects.select_related("booking").get(pk=payment_id)

    @classmethod
    def finalize(cls, payment_id: UUID, released_at: datetime) -> bool:
        """
        Move ``releasing → released`` and stamp ``deposit_released_at``.

        Returns False if the row was not ``releasing``.
        """
        finalized = cls._swap(
            payment_id,
            DepositStatus.RELEASING,
            DepositStatus.RELEASED,
            deposit_released_at=released_at,
        )
        if not finalized:
            cls.get_logger().error(
                "Deposit finalize found row not in releasing",
                extra={"payment_id": str(payment_id)},
            )
        return finalized

    @classmethod
    def rollback(cls, payment_id: UUID) -> bool:
        """
        Move ``releasing → held`` after a failed or abandoned attempt.

        Returns False if the row was not ``releasing``.
        """
        rolled_back = cls._swap(
            payment_id, DepositStatus.RELEASING, DepositStatus.HELD
        )
        if not rolled_back:
            cls.get_logger().warning(
                "Deposit rollback found row not in releasing",
                extra={"payment_id": str(payment_id)},
            )
        return rolled_back


__all__ = ["DepositStateMachine"]

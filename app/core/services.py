"""
Service layer primitives.

- ServiceResult: success/failure wrapper for expected outcomes
- BaseService: per-class logger and transaction helper

Services hold business logic; views translate ServiceResult into HTTP
responses and models stay thin. Expected failures (ineligible deposit,
caller not a party to the booking) come back as ``ServiceResult.failure``
with an ``error_code``; exceptions are for bugs and invalid input.

Usage:
    from core.services import BaseService, ServiceResult

    class ClaimService(BaseService):
        @classmethod
        def respond(cls, claim_id, renter, payload) -> ServiceResult[DamageClaim]:
            claim = DamageClaim.objects.filter(pk=claim_id).first()
            if claim is None:
                return ServiceResult.failure("Claim not found", "NOT_FOUND")
            ...
            return ServiceResult.success(claim)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

from core.exceptions import BaseApplicationError

if TYPE_CHECKING:
    from collections.abc import Callable, Generator
    from typing import Any

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful
        error: Error message if failed
        error_code: Machine-readable error code for client handling
        details: Extra context for the failure (ids, upstream codes)
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, data: T) -> ServiceResult[T]:
        """Alias for success()."""
        return cls(success=True, data=data)

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Example:
            return ServiceResult.failure(
                "Deposit already being released",
                error_code="CONFLICT",
                details={"payment_id": str(payment.id)},
            )
        """
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            details=details or {},
        )

    @classmethod
    def from_exception(
        cls, exc: Exception, error_code: str | None = None
    ) -> ServiceResult[T]:
        """
        Create a failed result from a caught exception.

        Application errors keep their own code and details; anything else
        falls back to the exception class name.
        """
        if isinstance(exc, BaseApplicationError):
            return cls.failure(
                exc.message,
                error_code=error_code or exc.error_code,
                details=dict(exc.details),
            )
        return cls.failure(
            str(exc),
            error_code=error_code or exc.__class__.__name__.upper(),
        )

    def to_response(self) -> dict[str, Any]:
        """Convert to an API response body."""
        if self.success:
            return {"success": True, "data": self.data}

        response: dict[str, Any] = {
            "success": False,
            "error": self.error,
        }
        if self.error_code:
            response["error_code"] = self.error_code
        if self.details:
            response["details"] = self.details
        return response

    def map(self, func: Callable[[T], Any]) -> ServiceResult:
        """Apply ``func`` to the data of a successful result."""
        if self.success and self.data is not None:
            return ServiceResult.success(func(self.data))
        return self

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """
    Base class for stateless service classes.

    Services expose classmethods only. Use ``get_logger()`` for a logger
    named after the concrete class and ``atomic()`` to make transaction
    boundaries explicit.
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Logger named ``<module>.<Class>`` for easy filtering."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """Run the enclosed block in a database transaction."""
        with transaction.atomic():
            yield

    @classmethod
    def handle_exception(
        cls,
        exc: Exception,
        context: str = "",
        log_level: int = logging.ERROR,
    ) -> ServiceResult:
        """
        Log ``exc`` and convert it to a failed ServiceResult.

        Example:
            try:
                evidence = ReturnEvidenceReader.for_booking(booking.id)
            except DatabaseError as e:
                return cls.handle_exception(e, "evidence lookup")
        """
        message = f"{context}: {exc}" if context else str(exc)
        cls.get_logger().log(log_level, message, exc_info=True)
        return ServiceResult.from_exception(exc)

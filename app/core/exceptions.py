"""
Base exception classes shared by every app.

Each exception carries a machine-readable ``error_code`` and an optional
``details`` dict so views can render a consistent error body, and an
``http_status`` the view layer uses when it turns the error into a response.

Exception Hierarchy:
    BaseApplicationError (base, 500)
    ├── ValidationError - Input validation failures (400)
    ├── NotFoundError - Resource not found (404)
    ├── PermissionDeniedError - Caller may not perform the operation (403)
    ├── ConflictError - State conflicts, concurrent modifications (409)
    └── ExternalServiceError - Third-party service failures (502)

Usage:
    from core.exceptions import ConflictError

    raise ConflictError(
        "Deposit already being released",
        details={"payment_id": str(payment.id)},
    )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (ids, amounts, upstream codes)
    """

    default_error_code: str = "APPLICATION_ERROR"
    http_status: int = 500

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to a dict suitable for an API response body.

        Example:
            {
                "error": "Booking not found",
                "error_code": "NOT_FOUND",
                "details": {"booking_id": "..."}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """Raised when input to a service fails validation."""

    default_error_code: str = "VALIDATION_ERROR"
    http_status: int = 400


class NotFoundError(BaseApplicationError):
    """Raised when a single-resource lookup finds nothing."""

    default_error_code: str = "NOT_FOUND"
    http_status: int = 404


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when the caller is not allowed to act on a resource.

    Example:
        if caller.pk not in (booking.renter_id, booking.owner_id):
            raise PermissionDeniedError(
                "Only the renter or owner can release this deposit",
                error_code="FORBIDDEN",
            )
    """

    default_error_code: str = "PERMISSION_DENIED"
    http_status: int = 403


class ConflictError(BaseApplicationError):
    """
    Raised when the current state of a resource conflicts with the request.

    Use for lost compare-and-swap races and disallowed state transitions.
    """

    default_error_code: str = "CONFLICT"
    http_status: int = 409


class ExternalServiceError(BaseApplicationError):
    """
    Raised when a third-party service call fails.

    Attributes:
        service_name: Name of the external service (e.g. "stripe")
    """

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"
    http_status: int = 502

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
        service_name: str | None = None,
    ):
        details = details or {}
        if service_name:
            details["service"] = service_name
        super().__init__(message, error_code=error_code, details=details)
        self.service_name = service_name

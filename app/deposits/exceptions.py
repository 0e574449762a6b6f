"""
Deposit-specific exceptions.

Exception Hierarchy:
    DepositError (base for the deposit domain)
    ├── DepositReleaseError - A release attempt could not complete
    │   └── FinalizeFailedError - Refund confirmed but ledger not finalized
    └── GatewayError - Refund call to the payment gateway failed
        ├── GatewayTransientError - Timeout/connection/rate limit (retry later)
        └── GatewayRejectedError - Gateway refused the refund (do not retry)

Gateway errors stay inside the adapter and come out as a GatewayResult;
services surface failures as ServiceResult error codes.

Usage:
    from deposits.exceptions import GatewayTransientError

    raise GatewayTransientError(
        "Could not connect to Stripe",
        gateway_code="api_connection_error",
    )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError, ExternalServiceError

if TYPE_CHECKING:
    from typing import Any


class DepositError(BaseApplicationError):
    """Base exception for all deposit operations."""

    default_error_code: str = "DEPOSIT_ERROR"


class DepositReleaseError(DepositError):
    """
    Raised when a release attempt cannot complete.

    Example:
        raise DepositReleaseError(
            "Deposit is not eligible for release",
            error_code="NOT_ELIGIBLE",
            details={"reason": decision.reason},
        )
    """

    default_error_code: str = "DEPOSIT_RELEASE_ERROR"


class FinalizeFailedError(DepositReleaseError):
    """
    The gateway confirmed the refund but the ledger could not be finalized.

    The row is left in ``releasing`` so no actor can lock it again; it
    needs manual reconciliation against the gateway's refund record.
    """

    default_error_code: str = "FINALIZE_FAILED"
    http_status: int = 500


class GatewayError(ExternalServiceError):
    """
    Base exception for refund gateway failures.

    Attributes:
        gateway_code: Upstream error code (e.g. Stripe's ``code``)
        is_retryable: Whether a later attempt with the same key may succeed
    """

    default_error_code: str = "GATEWAY_ERROR"
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        gateway_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if gateway_code:
            details["gateway_code"] = gateway_code
        super().__init__(
            message, error_code=error_code, details=details, service_name="stripe"
        )
        self.gateway_code = gateway_code


class GatewayTransientError(GatewayError):
    """
    The refund may or may not have happened; retry with the same key.

    Covers connection errors, timeouts, rate limits and 5xx responses.
    """

    default_error_code: str = "GATEWAY_UNAVAILABLE"
    http_status: int = 503
    is_retryable: bool = True


class GatewayRejectedError(GatewayError):
    """The gateway refused the refund. Never retried automatically."""

    default_error_code: str = "GATEWAY_REJECTED"
    is_retryable: bool = False


__all__ = [
    "DepositError",
    "DepositReleaseError",
    "FinalizeFailedError",
    "GatewayError",
    "GatewayRejectedError",
    "GatewayTransientError",
]

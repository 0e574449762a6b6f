"""
Stripe refund gateway for deposit releases.

This module provides the StripeDepositGateway class which issues the single
money-moving call of a deposit release: a partial refund of the original
charge for the deposit amount. All deposit refunds go through this gateway
to ensure consistent timeouts, idempotency, error classification and
observability.

Features:
- Deterministic idempotency key per payment (``deposit_release_<payment_id>``)
- In-process retries with exponential backoff for transient failures,
  always reusing the same key
- Stripe errors classified into transient vs rejected outcomes
- Never touches the ledger; callers finalize or roll back

Configuration (via settings):
- STRIPE_SECRET_KEY: Stripe API secret key
- STRIPE_API_TIMEOUT_SECONDS: API call timeout (default: 10)
- STRIPE_MAX_RETRIES: Attempts for transient failures (default: 3)

Usage:
    from deposits.adapters import StripeDepositGateway

    result = StripeDepositGateway.refund_deposit(payment)
    if result.succeeded:
        DepositStateMachine.finalize(payment.id, timezone.now())
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

import stripe
from django.conf import settings

from deposits.exceptions import (
    GatewayError,
    GatewayRejectedError,
    GatewayTransientError,
)

if TYPE_CHECKING:
    from uuid import UUID

    from deposits.models import Payment


IDEMPOTENCY_KEY_PREFIX = "deposit_release_"
REFUND_REASON = "requested_by_customer"
METADATA_TYPE = "deposit_release"

# Refund object statuses that mean Stripe will not move the money.
REJECTED_REFUND_STATUSES = frozenset({"failed", "canceled"})


# =============================================================================
# Data Types
# =============================================================================


class GatewayOutcome(str, Enum):
    """Result categories of a refund call."""

    SUCCEEDED = "succeeded"
    TRANSIENT = "transient"
    REJECTED = "rejected"


@dataclass
class GatewayResult:
    """
    Result of a deposit refund call.

    Attributes:
        outcome: succeeded, transient or rejected
        idempotency_key: Key the call was made with
        refund_id: Stripe Refund id (re_xxx) when one was created
        refund_status: Stripe Refund status as returned
        error_code: Upstream error code for failures
        message: Human-readable failure message
        attempts: Number of calls made, retries included
    """

    outcome: GatewayOutcome
    idempotency_key: str
    refund_id: str | None = None
    refund_status: str | None = None
    error_code: str | None = None
    message: str | None = None
    attempts: int = 1

    @property
    def succeeded(self) -> bool:
        return self.outcome == GatewayOutcome.SUCCEEDED

    @property
    def is_transient(self) -> bool:
        return self.outcome == GatewayOutcome.TRANSIENT

    @property
    def is_rejected(self) -> bool:
        return self.outcome == GatewayOutcome.REJECTED


@dataclass
class DepositRefundParams:
    """
    Parameters for refunding a deposit.

    Attributes:
        payment_id: Ledger row the refund belongs to
        booking_id: Booking, for metadata and logs
        charge_reference: Stripe PaymentIntent (pi_) or Charge (ch_) id
        amount_cents: Refund amount in smallest currency unit
        deposit_cents: Deposit portion of the original charge
        currency: ISO 4217 currency code
        idempotency_key: Deterministic key for this release
        metadata: Key-value pairs attached to the Stripe Refund
    """

    payment_id: str
    booking_id: str
    charge_reference: str
    amount_cents: int
    deposit_cents: int
    currency: str
    idempotency_key: str
    metadata: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate parameters after initialization."""
        if self.amount_cents <= 0:
            raise ValueError("amount_cents must be positive")
        if self.amount_cents > self.deposit_cents:
            raise ValueError("amount_cents cannot exceed the deposit portion")
        if not self.charge_reference:
            raise ValueError("charge_reference is required")
        if not self.idempotency_key:
            raise ValueError("idempotency_key is required")

    @classmethod
    def for_payment(cls, payment: Payment) -> DepositRefundParams:
        """
        Full-deposit refund parameters for ``payment``.

        Every field is derived from the payment alone. Stripe rejects a
        reused idempotency key whose request body differs, so the caller
        (sweep or manual trigger) must not leak into the request.
        """
        cents = payment.deposit_amount_cents
        metadata = {
            "type": METADATA_TYPE,
            "payment_id": str(payment.id),
            "booking_id": str(payment.booking_id),
        }
        return cls(
            payment_id=str(payment.id),
            booking_id=str(payment.booking_id),
            charge_reference=payment.gateway_charge_reference,
            amount_cents=cents,
            deposit_cents=cents,
            currency=payment.currency,
            idempotency_key=idempotency_key_for(payment.id),
            metadata=metadata,
        )


class DepositGateway(Protocol):
    """Anything that can refund a deposit; StripeDepositGateway or a test double."""

    def refund_deposit(
        self, payment: Payment, released_by: str | None = None
    ) -> GatewayResult: ...


# =============================================================================
# Helpers
# =============================================================================


def idempotency_key_for(payment_id: UUID | str) -> str:
    """
    Idempotency key for releasing ``payment_id``'s deposit.

    The key depends on the payment only, so every attempt to release the
    same deposit (retries, overlapping sweeps, manual triggers) reaches
    Stripe as the same logical request.
    """
    return f"{IDEMPOTENCY_KEY_PREFIX}{payment_id}"


def backoff_delay(attempt: int, base: float = 1.0, max_delay: float = 60.0) -> float:
    """
    Calculate exponential backoff delay with jitter.

    Args:
        attempt: Current attempt number (0-indexed)
        base: Base delay in seconds (default: 1.0)
        max_delay: Maximum delay in seconds (default: 60.0)

    Returns:
        Delay in seconds with jitter (0-25% of calculated delay)
    """
    delay = min(base * (2**attempt), max_delay)
    jitter = delay * random.uniform(0, 0.25)
    return delay + jitter


# =============================================================================
# Stripe Gateway
# =============================================================================


class StripeDepositGateway:
    """
    Refund gateway backed by the Stripe API.

    All methods are classmethods - no instance state is maintained.
    Thread-safe for use from Celery workers and sweep threads.

    Usage:
        result = StripeDepositGateway.refund_deposit(payment)
        key = StripeDepositGateway.idempotency_key_for(payment.id)
    """

    idempotency_key_for = staticmethod(idempotency_key_for)

    # =========================================================================
    # Configuration
    # =========================================================================

    @staticmethod
    def _configure_stripe() -> None:
        """Configure Stripe client with API key and timeout."""
        stripe.api_key = settings.STRIPE_SECRET_KEY
        timeout = getattr(settings, "STRIPE_API_TIMEOUT_SECONDS", 10)
        stripe.default_http_client = stripe.RequestsClient(timeout=timeout)

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger for this gateway."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @staticmethod
    def max_attempts() -> int:
        return max(1, int(getattr(settings, "STRIPE_MAX_RETRIES", 3)))

    # =========================================================================
    # Core Operations
    # =========================================================================

    @classmethod
    def refund_deposit(
        cls, payment: Payment, released_by: str | None = None
    ) -> GatewayResult:
        """
        Refund ``payment``'s full deposit to the renter.

        Transient failures are retried up to ``STRIPE_MAX_RETRIES`` attempts
        with backoff; every attempt carries the same idempotency key, so
        Stripe returns the original refund if an earlier attempt landed.
        Rejections return immediately.

        ``released_by`` (the manual trigger's user id) is logged only; it
        never reaches Stripe.

        Returns:
            GatewayResult. Never raises for Stripe failures.

        Raises:
            ValueError: The payment has no refundable deposit
        """
        params = DepositRefundParams.for_payment(payment)
        logger = cls.get_logger()
        attempts = cls.max_attempts()

        log_context = {
            "operation": "refund_deposit",
            "payment_id": params.payment_id,
            "booking_id": params.booking_id,
            "amount_cents": params.amount_cents,
            "currency": params.currency,
            "idempotency_key": params.idempotency_key,
            "released_by": released_by,
        }

        last_error: GatewayError | None = None
        for attempt in range(attempts):
            try:
                refund = cls._create_refund(params, log_context)
            except GatewayRejectedError as e:
                logger.error(
                    "Deposit refund rejected by Stripe",
                    extra={
                        **log_context,
                        **e.details,
                        "gateway_message": e.message,
                    },
                )
                return GatewayResult(
                    outcome=GatewayOutcome.REJECTED,
                    idempotency_key=params.idempotency_key,
                    error_code=e.gateway_code,
                    message=e.message,
                    attempts=attempt + 1,
                )
            except GatewayTransientError as e:
                last_error = e
                logger.warning(
                    "Deposit refund attempt failed with transient error",
                    extra={
                        **log_context,
                        **e.details,
                        "attempt": attempt + 1,
                        "max_attempts": attempts,
                    },
                )
                if attempt + 1 < attempts:
                    time.sleep(backoff_delay(attempt))
                continue

            refund_status = getattr(refund, "status", None)
            if refund_status in REJECTED_REFUND_STATUSES:
                failure_reason = getattr(refund, "failure_reason", None)
                logger.error(
                    "Deposit refund created in a failed state",
                    extra={
                        **log_context,
                        "refund_id": refund.id,
                        "status": refund_status,
                        "failure_reason": failure_reason,
                    },
                )
                return GatewayResult(
                    outcome=GatewayOutcome.REJECTED,
                    idempotency_key=params.idempotency_key,
                    refund_id=refund.id,
                    refund_status=refund_status,
                    error_code=failure_reason or f"refund_{refund_status}",
                    message=f"Refund {refund.id} is {refund_status}",
                    attempts=attempt + 1,
                )

            return GatewayResult(
                outcome=GatewayOutcome.SUCCEEDED,
                idempotency_key=params.idempotency_key,
                refund_id=refund.id,
                refund_status=refund_status,
                attempts=attempt + 1,
            )

        return GatewayResult(
            outcome=GatewayOutcome.TRANSIENT,
            idempotency_key=params.idempotency_key,
            error_code=last_error.gateway_code if last_error else None,
            message=last_error.message if last_error else "Stripe unavailable",
            attempts=attempts,
        )

    @classmethod
    def _create_refund(
        cls, params: DepositRefundParams, log_context: dict[str, Any]
    ) -> Any:
        """
        One ``stripe.Refund.create`` call.

        Raises:
            GatewayTransientError: Connection, timeout, rate limit, 5xx
            GatewayRejectedError: Stripe refused the request
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        refund_params: dict[str, Any] = {
            "amount": params.amount_cents,
            "reason": REFUND_REASON,
            "metadata": params.metadata,
        }
        if params.charge_reference.startswith("ch_"):
            refund_params["charge"] = params.charge_reference
        else:
            refund_params["payment_intent"] = params.charge_reference

        try:
            refund = stripe.Refund.create(
                idempotency_key=params.idempotency_key,
                **refund_params,
            )
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Stripe operation completed",
            extra={
                **log_context,
                "refund_id": refund.id,
                "status": refund.status,
                "duration_ms": duration_ms,
            },
        )
        return refund

    # =========================================================================
    # Error Handling
    # =========================================================================

    @classmethod
    def _handle_stripe_error(
        cls,
        error: Exception,
        log_context: dict[str, Any],
        duration_ms: float,
    ) -> None:
        """
        Translate Stripe exceptions to gateway errors.

        Raises:
            GatewayRejectedError: Card, invalid request, authentication,
                permission or idempotency errors
            GatewayTransientError: Rate limit, connection/timeout, API
                errors and anything unrecognised
        """
        logger = cls.get_logger()
        log_context = {**log_context, "duration_ms": duration_ms}

        if isinstance(error, stripe.CardError):
            raise GatewayRejectedError(
                str(error.user_message or error),
                gateway_code=error.code or "card_error",
            )

        elif isinstance(error, stripe.InvalidRequestError):
            raise GatewayRejectedError(
                str(error.user_message or error),
                gateway_code=error.code or "invalid_request_error",
            )

        elif isinstance(error, stripe.IdempotencyError):
            # Same key reused with different parameters: a bug, not a retry case
            raise GatewayRejectedError(
                str(error),
                gateway_code="idempotency_error",
            )

        elif isinstance(error, stripe.AuthenticationError):
            logger.critical(
                "Stripe authentication failed - check API key",
                extra=log_context,
            )
            raise GatewayRejectedError(
                "Stripe authentication failed",
                gateway_code="authentication_error",
            )

        elif isinstance(error, stripe.PermissionError):
            raise GatewayRejectedError(
                "Stripe denied permission for this refund",
                gateway_code="permission_error",
            )

        elif isinstance(error, stripe.RateLimitError):
            raise GatewayTransientError(
                "Stripe rate limit exceeded. Please retry.",
                gateway_code="rate_limit",
            )

        elif isinstance(error, stripe.APIConnectionError):
            raise GatewayTransientError(
                "Could not connect to Stripe. Please retry.",
                gateway_code="api_connection_error",
            )

        elif isinstance(error, stripe.APIError):
            raise GatewayTransientError(
                "Stripe service error. Please retry.",
                gateway_code="api_error",
            )

        else:
            logger.error(
                f"Unexpected error from Stripe: {type(error).__name__}",
                extra=log_context,
                exc_info=True,
            )
            raise GatewayTransientError(
                f"Unexpected Stripe error: {error}",
                gateway_code="unknown_error",
            )

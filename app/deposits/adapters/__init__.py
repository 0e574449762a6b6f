"""
Payment gateway adapters for deposit refunds.

All deposit refund calls go through these adapters to ensure consistent
error handling, timeouts, idempotency, and observability.

Usage:
    from deposits.adapters import StripeDepositGateway, idempotency_key_for

    result = StripeDepositGateway.refund_deposit(payment)
"""

from deposits.adapters.stripe_adapter import (
    DepositGateway,
    DepositRefundParams,
    GatewayOutcome,
    GatewayResult,
    StripeDepositGateway,
    backoff_delay,
    idempotency_key_for,
)

__all__ = [
    "DepositGateway",
    "DepositRefundParams",
    "GatewayOutcome",
    "GatewayResult",
    "StripeDepositGateway",
    "backoff_delay",
    "idempotency_key_for",
]

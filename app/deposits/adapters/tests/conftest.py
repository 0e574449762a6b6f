"""
Pytest fixtures for the Stripe deposit gateway tests.

Sections:
    - Mock Stripe Client Fixtures
    - Test Data Fixtures
"""

import uuid
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from deposits.models import Payment
from deposits.state_machines import DepositStatus


# =============================================================================
# Test Data Fixtures
# =============================================================================


@pytest.fixture
def ledger_payment():
    """Unsaved held payment; the gateway never touches the database."""
    return Payment(
        id=uuid.uuid4(),
        booking_id=uuid.uuid4(),
        total_amount=Decimal("650.00"),
        deposit_amount=Decimal("200.00"),
        currency="usd",
        deposit_status=DepositStatus.HELD,
        gateway_charge_reference="pi_test_original",
    )


@pytest.fixture
def make_refund():
    """Build a Stripe Refund-like object."""

    def _create(id="re_test123", status="succeeded", failure_reason=None):
        return SimpleNamespace(id=id, status=status, failure_reason=failure_reason)

    return _create


# =============================================================================
# Mock Stripe Client Fixtures
# =============================================================================


@pytest.fixture
def mock_stripe_refund(make_refund):
    """Mock stripe.Refund API."""
    with patch("stripe.Refund") as mock:
        mock.create.return_value = make_refund()
        yield mock


@pytest.fixture
def mock_stripe_http_client():
    """Mock stripe.RequestsClient."""
    with patch("stripe.RequestsClient") as mock:
        yield mock


@pytest.fixture
def no_sleep():
    """Skip backoff delays between attempts."""
    with patch("deposits.adapters.stripe_adapter.time.sleep") as mock:
        yield mock

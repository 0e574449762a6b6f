"""
Pytest fixtures for deposit tests.

Usage:
    def test_release(owner_verified_payment, fake_gateway):
        DepositSweeper.sweep(gateway=fake_gateway)
"""

from datetime import timedelta

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from deposits.services import DepositReleaseFlow
from deposits.tests.factories import PaymentFactory
from deposits.tests.fakes import FakeGateway
from inspections.tests.factories import ReturnInspectionFactory


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def fake_gateway():
    """Counting gateway, also installed as the default for the test."""
    gateway = FakeGateway()
    DepositReleaseFlow.set_gateway(gateway)
    yield gateway
    DepositReleaseFlow.set_gateway(None)


@pytest.fixture
def now():
    return timezone.now()


@pytest.fixture
def payment(db):
    """Held 200.00 deposit with no return evidence yet."""
    return PaymentFactory()


@pytest.fixture
def owner_verified_payment(db, now):
    """Held deposit whose return both parties signed an hour ago."""
    payment = PaymentFactory()
    ReturnInspectionFactory(
        booking=payment.booking,
        verified_by_owner=True,
        owner_signature="Owner",
        timestamp=now - timedelta(hours=1),
    )
    return payment


@pytest.fixture
def lapsed_window_payment(db, now):
    """Held deposit; renter signed the return 49h ago, owner never did."""
    payment = PaymentFactory()
    ReturnInspectionFactory(
        booking=payment.booking,
        timestamp=now - timedelta(hours=49),
    )
    return payment

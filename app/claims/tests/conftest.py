"""
Pytest fixtures for claim tests.
"""

import pytest
from rest_framework.test import APIClient

from bookings.tests.factories import BookingFactory
from claims.tests.factories import DamageClaimFactory


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def booking(db):
    return BookingFactory()


@pytest.fixture
def pending_claim(db, booking):
    return DamageClaimFactory(booking=booking)


@pytest.fixture
def renter_client(api_client, booking):
    """API client authenticated as the booking's renter."""
    api_client.force_authenticate(user=booking.renter)
    return api_client

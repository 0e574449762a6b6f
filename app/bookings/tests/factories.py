"""
Factory Boy factories for bookings.

Usage:
    from bookings.tests.factories import BookingFactory

    booking = BookingFactory(deposit_refund_timeline_hours=24)
"""

from datetime import timedelta

import factory
from django.utils import timezone

from authentication.tests.factories import UserFactory
from bookings.models import Booking, BookingStatus


class BookingFactory(factory.django.DjangoModelFactory):
    """
    Factory for a completed booking.

    Default leaves ``deposit_refund_timeline_hours`` unset so the platform
    default claim window applies.
    """

    class Meta:
        model = Booking
        skip_postgeneration_save = True

    renter = factory.SubFactory(UserFactory)
    owner = factory.SubFactory(UserFactory)
    equipment_title = factory.Sequence(lambda n: f"Camera kit #{n}")
    start_date = factory.LazyFunction(lambda: timezone.now().date() - timedelta(days=5))
    end_date = factory.LazyFunction(lambda: timezone.now().date() - timedelta(days=2))
    status = BookingStatus.COMPLETED
    deposit_refund_timeline_hours = None

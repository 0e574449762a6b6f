"""
Booking model.

A Booking ties a renter to an owner's equipment listing for a date range.
Only the fields the deposit engine needs are modelled here; listing and
approval details belong to the marketplace front end.

Usage:
    from bookings.models import Booking

    hours = booking.claim_window_hours(default=48)
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class BookingStatus(models.TextChoices):
    """Lifecycle of a booking request."""

    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    ACTIVE = "active", "Active"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


class Booking(UUIDPrimaryKeyMixin, BaseModel):
    """
    A rental of one piece of equipment.

    Fields:
        renter: User renting the equipment
        owner: User who owns the listing
        equipment_title: Listing title at booking time
        start_date / end_date: Rental period
        status: Booking lifecycle status
        deposit_refund_timeline_hours: Owner's claim window after return
            evidence is submitted; NULL means the platform default
    """

    renter = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="bookings_as_renter",
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="bookings_as_owner",
    )
    equipment_title = models.CharField(max_length=200)
    start_date = models.DateField()
    end_date = models.DateField()
    status = models.CharField(
        max_length=20,
        choices=BookingStatus.choices,
        default=BookingStatus.PENDING,
        db_index=True,
    )
    deposit_refund_timeline_hours = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Hours the owner has to file a claim after return; blank uses the default",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Booking"
        verbose_name_plural = "Bookings"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_date__gte=models.F("start_date")),
                name="booking_end_after_start",
            ),
        ]

    def __str__(self) -> str:
        return f"Booking({self.id}, {self.equipment_title}, {self.status})"

    def claim_window_hours(self, default: int) -> int:
        """Configured claim window, or ``default`` when the booking has none."""
        if self.deposit_refund_timeline_hours is None:
            return default
        return self.deposit_refund_timeline_hours

    def is_party(self, user) -> bool:
        """Whether ``user`` is this booking's renter or owner."""
        user_id = getattr(user, "pk", None)
        return user_id is not None and user_id in (self.renter_id, self.owner_id)

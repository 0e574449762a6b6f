"""
Django admin configuration for bookings.
"""

from django.contrib import admin

from bookings.models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "equipment_title",
        "renter",
        "owner",
        "status",
        "deposit_refund_timeline_hours",
        "end_date",
    )
    list_filter = ("status",)
    search_fields = ("id", "equipment_title", "renter__email", "owner__email")
    raw_id_fields = ("renter", "owner")

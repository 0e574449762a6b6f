"""
Django admin configuration for inspections.
"""

from django.contrib import admin

from inspections.models import EquipmentInspection


@admin.register(EquipmentInspection)
class EquipmentInspectionAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "booking",
        "inspection_type",
        "verified_by_renter",
        "verified_by_owner",
        "owner_signature",
        "timestamp",
        "auto_accepted_at",
    )
    list_filter = ("inspection_type", "verified_by_owner", "verified_by_renter")
    search_fields = ("id", "booking__id")
    raw_id_fields = ("booking",)
    # Auto-acceptance is an audit marker; it is never edited by hand.
    readonly_fields = ("auto_accepted_at", "created_at", "updated_at")

"""
Django admin configuration for damage claims.
"""

from django.contrib import admin
from django_fsm import TransitionNotAllowed

from claims.models import DamageClaim


@admin.register(DamageClaim)
class DamageClaimAdmin(admin.ModelAdmin):
    list_display = ("id", "booking", "status", "estimated_cost", "filed_at")
    list_filter = ("status",)
    search_fields = ("id", "booking__id", "damage_description")
    raw_id_fields = ("booking", "filed_by")
    readonly_fields = ("status", "renter_response", "created_at", "updated_at")
    actions = ["close_claims"]

    @admin.action(description="Close selected claims (arbitration)")
    def close_claims(self, request, queryset):
        closed = 0
        for claim in queryset:
            try:
                claim.close("Closed by staff")
                claim.save()
                closed += 1
            except TransitionNotAllowed:
                continue
        self.message_user(request, f"Closed {closed} claim(s).")

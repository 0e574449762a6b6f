"""
Django admin configuration for the deposit ledger.

Deposit status and release time are read-only here: they change only
through the compare-and-swap state machine.
"""

from django.contrib import admin

from deposits.models import Payment
from deposits.state_machines import DepositStatus


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "booking",
        "deposit_amount",
        "currency",
        "deposit_status",
        "deposit_released_at",
        "is_stuck",
        "created_at",
    )
    list_filter = ("deposit_status", "currency")
    search_fields = ("id", "booking__id", "gateway_charge_reference")
    raw_id_fields = ("booking", "renter", "owner")
    readonly_fields = (
        "deposit_status",
        "deposit_released_at",
        "created_at",
        "updated_at",
    )
    ordering = ("-created_at",)

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("booking")

    @admin.display(boolean=True, description="Stuck releasing")
    def is_stuck(self, obj):
        return obj.deposit_status == DepositStatus.RELEASING

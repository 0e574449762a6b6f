"""
Payment ledger row for a booking.

Each booking has at most one Payment. Rent and deposit are collected
elsewhere; this subsystem only reads the amounts and moves the deposit
portion through its escrow states.

Usage:
    from deposits.models import Payment
    from deposits.state_machines import DepositStatus

    held = Payment.objects.filter(deposit_status=DepositStatus.HELD)
    payment.deposit_amount_cents  # 20000 for Decimal("200.00")
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from deposits.state_machines import DepositStatus


class PaymentQuerySet(models.QuerySet):
    def release_candidates(self):
        """
        Rows the sweeper should look at: deposit held, non-zero, and
        chargeable. Oldest first so a backlog drains in order.
        """
        return (
            self.filter(
                deposit_status=DepositStatus.HELD,
                deposit_amount__gt=0,
            )
            .exclude(gateway_charge_reference="")
            .order_by("created_at", "id")
        )


class Payment(UUIDPrimaryKeyMixin, BaseModel):
    """
    Ledger entry for a booking's rent and security deposit.

    Fields:
        booking: Booking this payment settles (one-to-one)
        renter / owner: Parties to the booking, denormalized for lookups
        total_amount: Rent plus deposit charged to the renter
        deposit_amount: Refundable deposit portion; 0 means no escrow
        currency: ISO 4217 currency code (lowercase)
        deposit_status: Escrow status, changed only by DepositStateMachine
        deposit_released_at: Set once, when the release is finalized
        gateway_charge_reference: Stripe PaymentIntent (pi_) or Charge (ch_)
            id of the original charge

    Note:
        ``deposit_released_at`` is non-null exactly when the status is
        ``released``; a check constraint enforces it.
    """

    # ==========================================================================
    # Relationships
    # ==========================================================================

    booking = models.OneToOneField(
        "bookings.Booking",
        on_delete=models.PROTECT,
        related_name="payment",
    )
    renter = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="payments_as_renter",
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="payments_as_owner",
    )

    # ==========================================================================
    # Amounts
    # ==========================================================================

    total_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text="Total charged to the renter, deposit included",
    )
    deposit_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Refundable security deposit portion",
    )
    currency = models.CharField(
        max_length=3,
        default="usd",
        help_text="ISO 4217 currency code (lowercase)",
    )

    # ==========================================================================
    # Deposit escrow
    # ==========================================================================

    deposit_status = models.CharField(
        max_length=20,
        choices=DepositStatus.choices,
        default=DepositStatus.NONE,
        db_index=True,
        help_text="Escrow status of the deposit",
    )
    deposit_released_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the deposit refund was finalized",
    )
    gateway_charge_reference = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Stripe PaymentIntent or Charge id of the original charge",
    )

    objects = PaymentQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Payment"
        verbose_name_plural = "Payments"
        indexes = [
            models.Index(
                fields=["deposit_status", "created_at"],
                name="payment_deposit_status_idx",
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(deposit_amount__gte=0),
                name="payment_deposit_non_negative",
            ),
            models.CheckConstraint(
                condition=(
                    Q(deposit_status=DepositStatus.RELEASED, deposit_released_at__isnull=False)
                    | (
                        ~Q(deposit_status=DepositStatus.RELEASED)
                        & Q(deposit_released_at__isnull=True)
                    )
                ),
                name="payment_released_at_matches_status",
            ),
        ]

    def __str__(self) -> str:
        return f"Payment({self.id}, deposit={self.deposit_amount} {self.deposit_status})"

    @property
    def deposit_amount_cents(self) -> int:
        """Deposit in the smallest currency unit, rounded half-up."""
        cents = (Decimal(self.deposit_amount) * 100).quantize(
            Decimal("1"), rounding=ROUND_HALF_UP
        )
        return int(cents)

    @property
    def has_charge_reference(self) -> bool:
        return bool(self.gateway_charge_reference)

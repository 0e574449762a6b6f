"""
DamageClaim model.

An owner files a claim against the renter's deposit after the equipment is
returned. The renter accepts, negotiates, or disputes it; arbitration then
resolves or closes it. Status is managed by django-fsm.

Usage:
    from claims.models import DamageClaim

    claim = DamageClaim.objects.create(
        booking=booking,
        filed_by=booking.owner,
        damage_description="Cracked lens hood",
        estimated_cost=Decimal("45.00"),
    )

    claim.respond(parse_response({"action": "accept"}))
    claim.save()
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings
from django.db import models
from django.utils import timezone
from django_fsm import ConcurrentTransitionMixin, FSMField, transition

from claims.states import ClaimStatus
from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

if TYPE_CHECKING:
    from claims.responses import RenterResponse


class DamageClaim(ConcurrentTransitionMixin, UUIDPrimaryKeyMixin, BaseModel):
    """
    A damage claim against a booking's deposit.

    State Flow:
        PENDING -> ACCEPTED | DISPUTED  (renter response)
        PENDING | ACCEPTED | DISPUTED -> RESOLVED | CLOSED  (arbitration)

    Fields:
        booking: Booking the claim is filed against
        filed_by: User who filed the claim (the booking owner)
        damage_description: What was damaged
        estimated_cost: Owner's estimate of the repair cost
        status: Current FSM state
        filed_at: When the claim was filed
        renter_response: Serialized renter response (see claims.responses)
        resolution: Arbitration outcome text

    Note:
        ConcurrentTransitionMixin makes ``save()`` fail with
        ConcurrentTransition if the stored status changed since load.
    """

    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.CASCADE,
        related_name="damage_claims",
    )
    filed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="filed_damage_claims",
    )
    damage_description = models.TextField()
    estimated_cost = models.DecimalField(max_digits=10, decimal_places=2)
    status = FSMField(
        default=ClaimStatus.PENDING,
        choices=ClaimStatus.choices,
        db_index=True,
        help_text="Current claim status (managed by FSM)",
    )
    filed_at = models.DateTimeField(default=timezone.now)
    renter_response = models.JSONField(null=True, blank=True)
    resolution = models.TextField(null=True, blank=True)

    class Meta:
        ordering = ["-filed_at"]
        verbose_name = "Damage claim"
        verbose_name_plural = "Damage claims"
        indexes = [
            models.Index(fields=["booking", "status"], name="claim_booking_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(estimated_cost__gt=0),
                name="claim_estimated_cost_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"DamageClaim({self.id}, {self.status}, {self.estimated_cost})"

    def respond(self, response: RenterResponse) -> None:
        """Apply a renter response, routing to the matching transition."""
        if response.resulting_status == ClaimStatus.ACCEPTED:
            self.accept(response)
        else:
            self.dispute(response)

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(field=status, source=ClaimStatus.PENDING, target=ClaimStatus.ACCEPTED)
    def accept(self, response: RenterResponse) -> None:
        self.renter_response = response.to_dict()

    @transition(field=status, source=ClaimStatus.PENDING, target=ClaimStatus.DISPUTED)
    def dispute(self, response: RenterResponse) -> None:
        """Used for both dispute and negotiate responses."""
        self.renter_response = response.to_dict()

    @transition(
        field=status,
        source=[ClaimStatus.PENDING, ClaimStatus.ACCEPTED, ClaimStatus.DISPUTED],
        target=ClaimStatus.RESOLVED,
    )
    def resolve(self, resolution: str) -> None:
        self.resolution = resolution

    @transition(
        field=status,
        source=[ClaimStatus.PENDING, ClaimStatus.ACCEPTED, ClaimStatus.DISPUTED],
        target=ClaimStatus.CLOSED,
    )
    def close(self, resolution: str = "") -> None:
        self.resolution = resolution or None

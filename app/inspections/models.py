"""
Equipment inspection model.

An EquipmentInspection records the condition of rented equipment at pickup
or return, with a verification flag and signature from each party. The
return inspection is the evidence the deposit engine reads before
releasing a deposit.

Usage:
    from inspections.models import EquipmentInspection, InspectionType

    EquipmentInspection.objects.create(
        booking=booking,
        inspection_type=InspectionType.RETURN,
        verified_by_renter=True,
        renter_signature="Jo Renter",
        timestamp=timezone.now(),
    )
"""

from __future__ import annotations

from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

# Marker written to owner_signature when the claim window lapses without the
# owner verifying; keeps auto-acceptance distinguishable from real consent.
AUTO_ACCEPTED_SIGNATURE = "auto_accepted"


class InspectionType(models.TextChoices):
    PICKUP = "pickup", "Pickup"
    RETURN = "return", "Return"


class EquipmentInspection(UUIDPrimaryKeyMixin, BaseModel):
    """
    Condition evidence for one side of a rental.

    Fields:
        booking: Booking the inspection belongs to
        inspection_type: pickup or return
        condition_notes: Free-text condition description
        photos: Photo URLs captured by the inspection UI
        checklist: Checklist verdicts keyed by item
        verified_by_owner / verified_by_renter: Each party's confirmation
        owner_signature / renter_signature: Typed signatures; the owner
            signature is AUTO_ACCEPTED_SIGNATURE after auto-acceptance
        timestamp: When the evidence was submitted (falls back to created_at)
        auto_accepted_at: When the owner verification was filled in
            automatically; NULL for owner-confirmed evidence
    """

    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.CASCADE,
        related_name="inspections",
    )
    inspection_type = models.CharField(
        max_length=10,
        choices=InspectionType.choices,
        db_index=True,
    )
    condition_notes = models.TextField(blank=True, default="")
    photos = models.JSONField(default=list, blank=True)
    checklist = models.JSONField(default=dict, blank=True)
    verified_by_owner = models.BooleanField(default=False)
    verified_by_renter = models.BooleanField(default=False)
    owner_signature = models.CharField(max_length=255, blank=True, default="")
    renter_signature = models.CharField(max_length=255, blank=True, default="")
    timestamp = models.DateTimeField(null=True, blank=True)
    auto_accepted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Equipment inspection"
        verbose_name_plural = "Equipment inspections"
        indexes = [
            models.Index(
                fields=["booking", "inspection_type"],
                name="inspection_booking_type_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"EquipmentInspection({self.id}, {self.inspection_type})"

    @property
    def submitted_at(self):
        return self.timestamp or self.created_at

    @property
    def is_auto_accepted(self) -> bool:
        return self.owner_signature == AUTO_ACCEPTED_SIGNATURE

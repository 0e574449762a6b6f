"""
Return evidence reader.

Read-only adapter over EquipmentInspection rows for the deposit engine, plus
the single guarded write it is allowed to make (auto-acceptance once the
owner's claim window has lapsed).

The claim window is resolved here, once per booking, from the booking's
``deposit_refund_timeline_hours`` or ``settings.DEPOSIT_DEFAULT_CLAIM_WINDOW_HOURS``,
and travels with the evidence value from then on.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from django.conf import settings
from django.db.models import F
from django.db.models.functions import Coalesce

from core.services import BaseService
from inspections.models import (
    AUTO_ACCEPTED_SIGNATURE,
    EquipmentInspection,
    InspectionType,
)

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID


@dataclass(frozen=True)
class ReturnEvidence:
    """
    Snapshot of a booking's authoritative return inspection.

    Attributes:
        booking_id: Booking the evidence belongs to
        inspection_id: Source EquipmentInspection row
        verified_by_owner: Owner confirmed the returned condition
        verified_by_renter: Renter confirmed the returned condition
        submitted_at: When the return evidence was submitted
        claim_window_hours: Owner's grace period after submitted_at
    """

    booking_id: UUID
    inspection_id: UUID
    verified_by_owner: bool
    verified_by_renter: bool
    submitted_at: datetime
    claim_window_hours: int

    @property
    def claim_window_ends_at(self) -> datetime:
        return self.submitted_at + timedelta(hours=self.claim_window_hours)


class ReturnEvidenceReader(BaseService):
    """
    Bulk and single-booking access to return evidence.

    Usage:
        evidence_by_booking = ReturnEvidenceReader.for_bookings(booking_ids)
        evidence = evidence_by_booking.get(payment.booking_id)
    """

    @classmethod
    def default_claim_window_hours(cls) -> int:
        return settings.DEPOSIT_DEFAULT_CLAIM_WINDOW_HOURS

    @classmethod
    def for_bookings(cls, booking_ids: Iterable[UUID]) -> dict[UUID, ReturnEvidence]:
        """
        Fetch the latest return evidence for each of ``booking_ids``.

        Bookings without a return inspection are absent from the result.
        When a booking has several return inspections the one with the most
        recent submission time wins.
        """
        booking_ids = list(booking_ids)
        if not booking_ids:
            return {}

        default_hours = cls.default_claim_window_hours()
        inspections = (
            EquipmentInspection.objects.filter(
                booking_id__in=booking_ids,
                inspection_type=InspectionType.RETURN,
            )
            .select_related("booking")
            .annotate(submitted=Coalesce(F("timestamp"), F("created_at")))
            .order_by("booking_id", "-submitted", "-created_at")
        )

        evidence: dict[UUID, ReturnEvidence] = {}
        for inspection in inspections:
            if inspection.booking_id in evidence:
                continue
            evidence[inspection.booking_id] = ReturnEvidence(
                booking_id=inspection.booking_id,
                inspection_id=inspection.id,
                verified_by_owner=inspection.verified_by_owner,
                verified_by_renter=inspection.verified_by_renter,
                submitted_at=inspection.submitted,
                claim_window_hours=inspection.booking.claim_window_hours(
                    default=default_hours
                ),
            )
        return evidence

    @classmethod
    def for_booking(cls, booking_id: UUID) -> ReturnEvidence | None:
        return cls.for_bookings([booking_id]).get(booking_id)

    @classmethod
    def auto_accept(cls, inspection_id: UUID, now: datetime) -> bool:
        """
        Mark the owner side of a return inspection as auto-accepted.

        Conditional update: only applies while ``verified_by_owner`` is still
        false, so an owner who verifies concurrently keeps their own
        signature. Returns True when this call changed the row.
        """
        updated = EquipmentInspection.objects.filter(
            pk=inspection_id,
            verified_by_owner=False,
        ).update(
            verified_by_owner=True,
            owner_signature=AUTO_ACCEPTED_SIGNATURE,
            auto_accepted_at=now,
            updated_at=now,
        )

        if updated:
            cls.get_logger().info(
                "Return inspection auto-accepted after claim window",
                extra={"inspection_id": str(inspection_id)},
            )
        else:
            cls.get_logger().debug(
                "Return inspection already verified by owner",
                extra={"inspection_id": str(inspection_id)},
            )
        return bool(updated)

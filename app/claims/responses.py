"""
Renter responses to a damage claim.

A response is one of three variants keyed by ``action``:

    AcceptResponse     -> claim becomes ACCEPTED
    NegotiateResponse  -> claim becomes DISPUTED, carries a counter offer
    DisputeResponse    -> claim becomes DISPUTED, notes are mandatory

Only NegotiateResponse has a ``counter_offer``; DisputeResponse cannot be
built without ``notes``. ``parse_response`` turns the JSON stored on the
claim (or posted by the API) back into the right variant and rejects
payloads with fields that do not belong to their action.

Usage:
    from claims.responses import parse_response

    response = parse_response({"action": "negotiate", "counter_offer": "40.00"})
    claim.renter_response = response.to_dict()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, ClassVar, Union

from django.utils import timezone
from django.utils.dateparse import parse_datetime

from claims.exceptions import ClaimResponseError
from claims.states import ClaimStatus, ResponseAction


def _clean_notes(notes: str | None) -> str | None:
    if notes is None:
        return None
    notes = notes.strip()
    return notes or None


@dataclass(frozen=True)
class AcceptResponse:
    """Renter accepts the claim as filed."""

    action: ClassVar[str] = ResponseAction.ACCEPT
    resulting_status: ClassVar[str] = ClaimStatus.ACCEPTED

    responded_at: datetime = field(default_factory=timezone.now)
    notes: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "action": str(self.action),
            "responded_at": self.responded_at.isoformat(),
        }
        if self.notes:
            data["notes"] = self.notes
        return data


@dataclass(frozen=True)
class NegotiateResponse:
    """Renter proposes a lower amount."""

    action: ClassVar[str] = ResponseAction.NEGOTIATE
    resulting_status: ClassVar[str] = ClaimStatus.DISPUTED

    counter_offer: Decimal
    responded_at: datetime = field(default_factory=timezone.now)
    notes: str | None = None

    def __post_init__(self) -> None:
        if self.counter_offer <= 0:
            raise ClaimResponseError(
                "counter_offer must be positive",
                details={"field": "counter_offer"},
            )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "action": str(self.action),
            "counter_offer": str(self.counter_offer),
            "responded_at": self.responded_at.isoformat(),
        }
        if self.notes:
            data["notes"] = self.notes
        return data


@dataclass(frozen=True)
class DisputeResponse:
    """Renter rejects the claim and explains why."""

    action: ClassVar[str] = ResponseAction.DISPUTE
    resulting_status: ClassVar[str] = ClaimStatus.DISPUTED

    notes: str
    responded_at: datetime = field(default_factory=timezone.now)

    def __post_init__(self) -> None:
        if not self.notes or not self.notes.strip():
            raise ClaimResponseError(
                "notes are required when disputing a claim",
                details={"field": "notes"},
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": str(self.action),
            "notes": self.notes,
            "responded_at": self.responded_at.isoformat(),
        }


RenterResponse = Union[AcceptResponse, NegotiateResponse, DisputeResponse]

_ALLOWED_FIELDS = {
    ResponseAction.ACCEPT: {"action", "notes", "responded_at"},
    ResponseAction.NEGOTIATE: {"action", "counter_offer", "notes", "responded_at"},
    ResponseAction.DISPUTE: {"action", "notes", "responded_at"},
}


def _parse_responded_at(value: Any) -> datetime:
    if value is None:
        return timezone.now()
    if isinstance(value, datetime):
        return value
    parsed = parse_datetime(str(value))
    if parsed is None:
        raise ClaimResponseError(
            "responded_at is not a valid datetime",
            details={"field": "responded_at"},
        )
    return parsed


def _parse_counter_offer(value: Any) -> Decimal:
    if value is None or value == "":
        raise ClaimResponseError(
            "counter_offer is required when negotiating",
            details={"field": "counter_offer"},
        )
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ClaimResponseError(
            "counter_offer must be a decimal amount",
            details={"field": "counter_offer"},
        ) from e


def parse_response(data: dict[str, Any]) -> RenterResponse:
    """
    Build the response variant matching ``data["action"]``.

    Raises:
        ClaimResponseError: Unknown action, a field that does not belong to
            the action, or a missing/invalid required field
    """
    action = data.get("action")
    if action not in ResponseAction.values:
        raise ClaimResponseError(
            f"Unknown response action: {action!r}",
            details={"field": "action", "allowed": list(ResponseAction.values)},
        )

    unexpected = set(data) - _ALLOWED_FIELDS[action]
    if unexpected:
        raise ClaimResponseError(
            f"Fields not allowed for {action}: {', '.join(sorted(unexpected))}",
            details={"fields": sorted(unexpected)},
        )

    responded_at = _parse_responded_at(data.get("responded_at"))
    notes = _clean_notes(data.get("notes"))

    if action == ResponseAction.ACCEPT:
        return AcceptResponse(responded_at=responded_at, notes=notes)
    if action == ResponseAction.NEGOTIATE:
        return NegotiateResponse(
            counter_offer=_parse_counter_offer(data.get("counter_offer")),
            responded_at=responded_at,
            notes=notes,
        )
    return DisputeResponse(notes=notes or "", responded_at=responded_at)

"""
Tests for the renter response variants and their parser.
"""

from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

import pytest

from claims.exceptions import ClaimResponseError
from claims.responses import (
    AcceptResponse,
    DisputeResponse,
    NegotiateResponse,
    parse_response,
)
from claims.states import ClaimStatus


class TestParseResponse:
    """parse_response picks the variant from ``action``."""

    def test_accept(self):
        response = parse_response({"action": "accept"})

        assert isinstance(response, AcceptResponse)
        assert response.resulting_status == ClaimStatus.ACCEPTED
        assert response.notes is None

    def test_negotiate_carries_counter_offer(self):
        response = parse_response({"action": "negotiate", "counter_offer": "40.50"})

        assert isinstance(response, NegotiateResponse)
        assert response.counter_offer == Decimal("40.50")
        assert response.resulting_status == ClaimStatus.DISPUTED

    def test_dispute_requires_notes(self):
        with pytest.raises(ClaimResponseError) as exc_info:
            parse_response({"action": "dispute"})

        assert exc_info.value.details["field"] == "notes"

    def test_dispute_rejects_blank_notes(self):
        with pytest.raises(ClaimResponseError):
            parse_response({"action": "dispute", "notes": "   "})

    def test_dispute_with_notes(self):
        response = parse_response(
            {"action": "dispute", "notes": "Scratch was there at pickup"}
        )

        assert isinstance(response, DisputeResponse)
        assert response.resulting_status == ClaimStatus.DISPUTED

    def test_counter_offer_not_allowed_outside_negotiate(self):
        """
        Why it matters: a counter offer on an accept or dispute would be
        silently ignored and misrepresent what the renter agreed to.
        """
        with pytest.raises(ClaimResponseError) as exc_info:
            parse_response({"action": "accept", "counter_offer": "10.00"})

        assert exc_info.value.details["fields"] == ["counter_offer"]

    def test_negotiate_requires_counter_offer(self):
        with pytest.raises(ClaimResponseError):
            parse_response({"action": "negotiate"})

    @pytest.mark.parametrize("amount", ["0", "-5", "abc"])
    def test_negotiate_rejects_bad_counter_offer(self, amount):
        with pytest.raises(ClaimResponseError):
            parse_response({"action": "negotiate", "counter_offer": amount})

    def test_unknown_action(self):
        with pytest.raises(ClaimResponseError) as exc_info:
            parse_response({"action": "ignore"})

        assert exc_info.value.error_code == "INVALID_CLAIM_RESPONSE"

    def test_responded_at_is_parsed(self):
        response = parse_response(
            {"action": "accept", "responded_at": "2026-03-01T10:00:00+00:00"}
        )

        assert response.responded_at == datetime(2026, 3, 1, 10, tzinfo=dt_timezone.utc)


class TestToDict:
    """Serialized form stored in DamageClaim.renter_response."""

    def test_negotiate_round_trips_through_json_shape(self):
        original = NegotiateResponse(
            counter_offer=Decimal("25.00"),
            responded_at=datetime(2026, 3, 1, tzinfo=dt_timezone.utc),
            notes="Happy to pay half",
        )

        data = original.to_dict()

        assert data["action"] == "negotiate"
        assert data["counter_offer"] == "25.00"
        assert parse_response(data) == original

    def test_accept_omits_empty_notes(self):
        data = AcceptResponse().to_dict()

        assert set(data) == {"action", "responded_at"}

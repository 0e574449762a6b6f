"""
Tests for the manual deposit release path.
"""

from datetime import timedelta
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import patch
from uuid import uuid4

import pytest
import stripe
from django.test import override_settings
from django.utils import timezone

from authentication.tests.factories import UserFactory
from bookings.tests.factories import BookingFactory
from claims.tests.factories import DamageClaimFactory
from deposits.adapters import GatewayOutcome
from deposits.locks import DepositStateMachine
from deposits.models import Payment
from deposits.services import DepositReleaseCoordinator, DepositSweeper
from deposits.state_machines import DepositStatus
from inspections.models import EquipmentInspection
from inspections.tests.factories import ReturnInspectionFactory


def status_of(payment):
    return Payment.objects.values_list("deposit_status", flat=True).get(pk=payment.pk)


@pytest.mark.django_db
class TestAuthorization:
    @pytest.mark.parametrize("party", ["renter", "owner"])
    def test_either_party_may_release(self, owner_verified_payment, fake_gateway, party):
        caller = getattr(owner_verified_payment.booking, party)

        result = DepositReleaseCoordinator.release(
            owner_verified_payment.booking_id, caller
        )

        assert result.success
        assert result.data.success is True
        assert result.data.amount_released == Decimal("200.00")
        assert fake_gateway.calls[0]["released_by"] == str(caller.pk)

    def test_stranger_is_forbidden(self, owner_verified_payment, fake_gateway):
        result = DepositReleaseCoordinator.release(
            owner_verified_payment.booking_id, UserFactory()
        )

        assert result.error_code == "FORBIDDEN"
        assert fake_gateway.calls == []
        assert status_of(owner_verified_payment) == DepositStatus.HELD

    def test_unknown_booking(self, fake_gateway):
        result = DepositReleaseCoordinator.release(uuid4(), UserFactory())

        assert result.error_code == "NOT_FOUND"

    def test_booking_without_payment(self, fake_gateway):
        booking = BookingFactory()

        result = DepositReleaseCoordinator.release(booking.id, booking.renter)

        assert result.error_code == "NOT_FOUND"


@pytest.mark.django_db
class TestEligibility:
    def test_pending_claim(self, owner_verified_payment, fake_gateway):
        booking = owner_verified_payment.booking
        DamageClaimFactory(booking=booking)

        result = DepositReleaseCoordinator.release(booking.id, booking.owner)

        assert result.error_code == "NOT_ELIGIBLE"
        assert result.details["reason"] == "blocking_claim"
        assert fake_gateway.calls == []

    def test_open_claim_window(self, payment, fake_gateway):
        ReturnInspectionFactory(booking=payment.booking)

        result = DepositReleaseCoordinator.release(
            payment.booking_id, payment.booking.renter
        )

        assert result.error_code == "NOT_ELIGIBLE"
        assert result.details["reason"] == "claim_window_open"

    def test_already_released(self, owner_verified_payment, fake_gateway):
        booking = owner_verified_payment.booking
        DepositReleaseCoordinator.release(booking.id, booking.renter)

        result = DepositReleaseCoordinator.release(booking.id, booking.renter)

        assert result.error_code == "NOT_ELIGIBLE"
        assert result.details["reason"] == "deposit_not_held"
        assert fake_gateway.money_movements == 1

    def test_lapsed_window_is_auto_accepted(self, lapsed_window_payment, fake_gateway):
        booking = lapsed_window_payment.booking

        result = DepositReleaseCoordinator.release(booking.id, booking.renter)

        assert result.success
        assert result.data.auto_resolved is True
        inspection = EquipmentInspection.objects.get(booking=booking)
        assert inspection.is_auto_accepted


@pytest.mark.django_db
class TestConcurrencyAndGateway:
    def test_lock_held_elsewhere_conflicts(self, owner_verified_payment, fake_gateway):
        booking = owner_verified_payment.booking
        with patch(
            "deposits.services.release_flow.DepositStateMachine.try_lock",
            return_value=None,
        ):
            result = DepositReleaseCoordinator.release(booking.id, booking.owner)

        assert result.error_code == "CONFLICT"
        assert result.error == "Deposit already being released"

    def test_release_in_flight_conflicts(self, owner_verified_payment, fake_gateway):
        Payment.objects.filter(pk=owner_verified_payment.pk).update(
            deposit_status=DepositStatus.RELEASING
        )
        booking = owner_verified_payment.booking

        result = DepositReleaseCoordinator.release(booking.id, booking.renter)

        assert result.error_code == "CONFLICT"
        assert fake_gateway.calls == []
        assert status_of(owner_verified_payment) == DepositStatus.RELEASING

    def test_claim_after_lock_is_not_eligible(self, owner_verified_payment, fake_gateway):
        booking = owner_verified_payment.booking
        with patch(
            "deposits.services.release_flow.ClaimService.statuses_for_booking",
            return_value=["disputed"],
        ):
            result = DepositReleaseCoordinator.release(booking.id, booking.owner)

        assert result.error_code == "NOT_ELIGIBLE"
        assert status_of(owner_verified_payment) == DepositStatus.HELD

    def test_gateway_rejection(self, owner_verified_payment, fake_gateway):
        fake_gateway.queue(GatewayOutcome.REJECTED)
        booking = owner_verified_payment.booking

        result = DepositReleaseCoordinator.release(booking.id, booking.renter)

        assert result.error_code == "GATEWAY_REJECTED"
        assert result.details["gateway_code"] == "charge_already_refunded"
        assert status_of(owner_verified_payment) == DepositStatus.HELD

    def test_gateway_unavailable(self, owner_verified_payment, fake_gateway):
        fake_gateway.queue(GatewayOutcome.TRANSIENT)
        booking = owner_verified_payment.booking

        result = DepositReleaseCoordinator.release(booking.id, booking.renter)

        assert result.error_code == "GATEWAY_UNAVAILABLE"
        assert status_of(owner_verified_payment) == DepositStatus.HELD

    def test_finalize_failure(self, owner_verified_payment, fake_gateway):
        booking = owner_verified_payment.booking
        with patch.object(DepositStateMachine, "finalize", return_value=False):
            result = DepositReleaseCoordinator.release(booking.id, booking.renter)

        assert result.error_code == "FINALIZE_FAILED"
        assert result.details["refund_id"] == "re_fake_1"
        assert status_of(owner_verified_payment) == DepositStatus.RELEASING

    def test_release_time_recorded(self, owner_verified_payment, fake_gateway):
        booking = owner_verified_payment.booking
        before = timezone.now()

        DepositReleaseCoordinator.release(booking.id, booking.renter)

        payment = Payment.objects.get(pk=owner_verified_payment.pk)
        assert payment.deposit_released_at >= before
        assert payment.deposit_released_at <= timezone.now() + timedelta(seconds=1)


@pytest.mark.django_db
class TestWithStripeGateway:
    """Manual release through the real Stripe adapter, SDK patched."""

    @pytest.fixture(autouse=True)
    def stripe_client(self):
        with patch("stripe.RequestsClient"), patch(
            "deposits.adapters.stripe_adapter.time.sleep"
        ):
            yield

    def test_card_decline_is_gateway_rejected(self, owner_verified_payment):
        booking = owner_verified_payment.booking
        with patch("stripe.Refund") as mock_refund:
            mock_refund.create.side_effect = stripe.CardError(
                "Declined", param=None, code="card_declined"
            )
            result = DepositReleaseCoordinator.release(booking.id, booking.renter)

        assert result.error_code == "GATEWAY_REJECTED"
        assert result.details["gateway_code"] == "card_declined"
        assert mock_refund.create.call_count == 1
        assert status_of(owner_verified_payment) == DepositStatus.HELD

    def test_timed_out_manual_release_is_finished_by_sweep(self, owner_verified_payment):
        """
        Given a manual release whose refund landed but whose response was lost
        When the sweep retries with the same idempotency key
        Then Stripe sees an identical request and the ledger is released
        """
        booking = owner_verified_payment.booking
        with patch("stripe.Refund") as mock_refund, override_settings(
            STRIPE_MAX_RETRIES=1
        ):
            mock_refund.create.side_effect = [
                stripe.APIConnectionError("Read timed out"),
                SimpleNamespace(id="re_landed", status="succeeded", failure_reason=None),
            ]
            first = DepositReleaseCoordinator.release(booking.id, booking.owner)
            sweep = DepositSweeper.sweep()

        assert first.error_code == "GATEWAY_UNAVAILABLE"
        assert sweep.released == 1
        manual_call, sweep_call = mock_refund.create.call_args_list
        assert manual_call.kwargs == sweep_call.kwargs
        assert status_of(owner_verified_payment) == DepositStatus.RELEASED

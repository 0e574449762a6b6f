"""
Tests for the deposit reconciliation sweep.

All tests run against the counting FakeGateway; no Stripe calls are made.
"""

from datetime import timedelta
from unittest.mock import patch

import pytest
from django.db import DatabaseError
from django.test import override_settings
from django.utils import timezone

from claims.tests.factories import DamageClaimFactory
from deposits.adapters import GatewayOutcome, idempotency_key_for
from deposits.models import Payment
from deposits.services import DepositSweeper
from deposits.state_machines import DepositStatus
from deposits.tests.factories import PaymentFactory
from inspections.models import AUTO_ACCEPTED_SIGNATURE, EquipmentInspection
from inspections.tests.factories import ReturnInspectionFactory


def reload(payment):
    return Payment.objects.get(pk=payment.pk)


@pytest.mark.django_db
class TestReleaseScenarios:
    def test_owner_verified_deposit_is_released(self, owner_verified_payment, fake_gateway):
        """
        Given a 200.00 held deposit, both parties verified the return, no claims
        When the sweep runs
        Then the gateway is called once with deposit_release_<id> and the
        ledger ends released with a release time
        """
        payment = owner_verified_payment

        result = DepositSweeper.sweep()

        assert result.to_dict() == {
            "scanned": 1,
            "eligible": 1,
            "released": 1,
            "errors": [],
            "dry_run": False,
        }
        assert fake_gateway.keys() == [f"deposit_release_{payment.id}"]
        assert fake_gateway.calls[0]["amount_cents"] == 20000
        payment = reload(payment)
        assert payment.deposit_status == DepositStatus.RELEASED
        assert payment.deposit_released_at is not None

    def test_pending_claim_blocks_release(self, owner_verified_payment, fake_gateway):
        DamageClaimFactory(booking=owner_verified_payment.booking)

        result = DepositSweeper.sweep()

        assert result.scanned == 1
        assert result.eligible == 0
        assert fake_gateway.calls == []
        assert reload(owner_verified_payment).deposit_status == DepositStatus.HELD

    def test_timeout_then_second_sweep_completes(
        self, owner_verified_payment, fake_gateway
    ):
        """
        Given the gateway times out on the first sweep
        When a second sweep runs with a gateway that now succeeds
        Then the deposit is released exactly once, under the same key
        """
        payment = owner_verified_payment
        fake_gateway.queue(GatewayOutcome.TRANSIENT)

        first = DepositSweeper.sweep()

        assert first.released == 0
        assert first.errors == [
            {"booking_id": str(payment.booking_id), "error": "transient: Request timed out"}
        ]
        after_first = reload(payment)
        assert after_first.deposit_status == DepositStatus.HELD
        assert after_first.deposit_amount == payment.deposit_amount

        second = DepositSweeper.sweep()

        assert second.released == 1
        assert fake_gateway.money_movements == 1
        assert set(fake_gateway.keys()) == {idempotency_key_for(payment.id)}
        assert reload(payment).deposit_status == DepositStatus.RELEASED

    def test_rejection_rolls_back_and_is_reported(
        self, owner_verified_payment, fake_gateway
    ):
        fake_gateway.queue(GatewayOutcome.REJECTED)

        result = DepositSweeper.sweep()

        assert result.released == 0
        assert result.errors[0]["error"].startswith("rejected:")
        assert reload(owner_verified_payment).deposit_status == DepositStatus.HELD


@pytest.mark.django_db
class TestIdempotentSweep:
    def test_second_run_releases_nothing(self, fake_gateway):
        payments = PaymentFactory.create_batch(3)
        for payment in payments:
            ReturnInspectionFactory(booking=payment.booking, verified_by_owner=True)

        first = DepositSweeper.sweep()
        second = DepositSweeper.sweep()

        assert first.released == 3
        assert second.to_dict()["released"] == 0
        assert second.scanned == 0
        assert fake_gateway.money_movements == 3
        assert all(count == 1 for count in fake_gateway.calls_by_key.values())

    def test_locked_row_is_skipped_quietly(self, owner_verified_payment, fake_gateway):
        """A row another actor holds in releasing is not a candidate."""
        Payment.objects.filter(pk=owner_verified_payment.pk).update(
            deposit_status=DepositStatus.RELEASING
        )

        result = DepositSweeper.sweep()

        assert result.scanned == 0
        assert result.errors == []
        assert fake_gateway.calls == []

    def test_lock_lost_after_evaluation_is_not_an_error(
        self, owner_verified_payment, fake_gateway
    ):
        with patch("deposits.services.release_flow.DepositStateMachine.try_lock") as try_lock:
            try_lock.return_value = None

            result = DepositSweeper.sweep()

        assert result.eligible == 1
        assert result.released == 0
        assert result.errors == []
        assert fake_gateway.calls == []


@pytest.mark.django_db
class TestDryRunAndLimits:
    def test_dry_run_counts_without_side_effects(
        self, owner_verified_payment, lapsed_window_payment, fake_gateway
    ):
        result = DepositSweeper.sweep(dry_run=True)

        assert result.to_dict() == {
            "scanned": 2,
            "eligible": 2,
            "released": 0,
            "errors": [],
            "dry_run": True,
        }
        assert fake_gateway.calls == []
        assert reload(owner_verified_payment).deposit_status == DepositStatus.HELD
        inspection = EquipmentInspection.objects.get(
            booking=lapsed_window_payment.booking
        )
        assert inspection.verified_by_owner is False

    @pytest.mark.parametrize(
        "requested,expected", [(None, 50), (0, 1), (-5, 1), (10, 10), (1000, 250)]
    )
    @override_settings(DEPOSIT_SWEEP_DEFAULT_LIMIT=50, DEPOSIT_SWEEP_MAX_LIMIT=250)
    def test_limit_clamped(self, requested, expected):
        assert DepositSweeper.clamp_limit(requested) == expected

    def test_limit_takes_oldest_first(self, fake_gateway):
        now = timezone.now()
        payments = PaymentFactory.create_batch(3)
        for age, payment in zip((1, 3, 2), payments):
            Payment.objects.filter(pk=payment.pk).update(
                created_at=now - timedelta(days=age)
            )
            ReturnInspectionFactory(booking=payment.booking, verified_by_owner=True)

        result = DepositSweeper.sweep(limit=1)

        assert result.scanned == 1
        assert fake_gateway.calls[0]["payment_id"] == str(payments[1].id)

    def test_ineligible_rows_are_not_candidates(self, fake_gateway):
        PaymentFactory(deposit_amount=0)
        PaymentFactory(gateway_charge_reference="")
        PaymentFactory(deposit_status=DepositStatus.NONE)

        result = DepositSweeper.sweep()

        assert result.scanned == 0


@pytest.mark.django_db
class TestAutoResolution:
    def test_lapsed_window_auto_accepts_and_releases(
        self, lapsed_window_payment, fake_gateway
    ):
        result = DepositSweeper.sweep()

        assert result.released == 1
        inspection = EquipmentInspection.objects.get(
            booking=lapsed_window_payment.booking
        )
        assert inspection.verified_by_owner is True
        assert inspection.owner_signature == AUTO_ACCEPTED_SIGNATURE
        assert inspection.auto_accepted_at is not None

    def test_open_window_waits(self, payment, fake_gateway):
        ReturnInspectionFactory(
            booking=payment.booking, timestamp=timezone.now() - timedelta(hours=47)
        )

        result = DepositSweeper.sweep()

        assert result.eligible == 0
        assert fake_gateway.calls == []

    def test_per_booking_window_is_used(self, fake_gateway):
        payment = PaymentFactory(booking__deposit_refund_timeline_hours=2)
        ReturnInspectionFactory(
            booking=payment.booking, timestamp=timezone.now() - timedelta(hours=3)
        )

        result = DepositSweeper.sweep()

        assert result.released == 1

    def test_auto_accept_failure_is_reported_but_refund_proceeds(
        self, lapsed_window_payment, fake_gateway
    ):
        with patch(
            "deposits.services.release_flow.ReturnEvidenceReader.auto_accept",
            side_effect=DatabaseError("inspection table locked"),
        ):
            result = DepositSweeper.sweep()

        assert result.released == 1
        assert result.errors == [
            {
                "booking_id": str(lapsed_window_payment.booking_id),
                "error": "auto_accept_failed: inspection table locked",
            }
        ]


@pytest.mark.django_db
class TestPostLockClaimRecheck:
    def test_claim_filed_after_snapshot_rolls_back(
        self, owner_verified_payment, fake_gateway
    ):
        """
        Given the bulk claim snapshot showed no claims
        When a claim is filed before the lock is taken
        Then the lock is rolled back and the gateway is never called
        """
        booking = owner_verified_payment.booking

        def file_claim_then_read(booking_id):
            DamageClaimFactory(booking=booking)
            return ["pending"]

        with patch(
            "deposits.services.release_flow.ClaimService.statuses_for_booking",
            side_effect=file_claim_then_read,
        ):
            result = DepositSweeper.sweep()

        assert result.eligible == 1
        assert result.released == 0
        assert result.errors == []
        assert fake_gateway.calls == []
        assert reload(owner_verified_payment).deposit_status == DepositStatus.HELD

    def test_failed_recheck_rolls_back_with_error(
        self, owner_verified_payment, fake_gateway
    ):
        with patch(
            "deposits.services.release_flow.ClaimService.statuses_for_booking",
            side_effect=DatabaseError("connection reset"),
        ):
            result = DepositSweeper.sweep()

        assert result.errors[0]["error"] == "claim_check_failed: connection reset"
        assert fake_gateway.calls == []
        assert reload(owner_verified_payment).deposit_status == DepositStatus.HELD


@pytest.mark.django_db
class TestFailureIsolation:
    def test_finalize_failure_leaves_row_releasing(
        self, owner_verified_payment, fake_gateway
    ):
        """
        Why it matters: money has moved, so rolling back to held would let a
        later sweep refund the same deposit again.
        """
        with patch(
            "deposits.services.release_flow.DepositStateMachine.finalize",
            return_value=False,
        ):
            result = DepositSweeper.sweep()

        assert result.released == 0
        assert result.errors[0]["error"] == "finalize_failed"
        assert fake_gateway.money_movements == 1
        assert reload(owner_verified_payment).deposit_status == DepositStatus.RELEASING

        follow_up = DepositSweeper.sweep()

        assert follow_up.scanned == 0
        assert fake_gateway.money_movements == 1

    def test_one_failure_does_not_stop_others(self, fake_gateway):
        payments = PaymentFactory.create_batch(3)
        for payment in payments:
            ReturnInspectionFactory(booking=payment.booking, verified_by_owner=True)
        fake_gateway.queue(GatewayOutcome.SUCCEEDED, GatewayOutcome.REJECTED)

        result = DepositSweeper.sweep()

        assert result.released == 2
        assert len(result.errors) == 1
        statuses = sorted(
            Payment.objects.values_list("deposit_status", flat=True)
        )
        assert statuses == ["held", "released", "released"]

    def test_gateway_exception_rolls_back(self, owner_verified_payment, fake_gateway):
        with patch.object(fake_gateway, "refund_deposit", side_effect=ValueError("bad amount")):
            result = DepositSweeper.sweep()

        assert result.errors[0]["error"] == "error: bad amount"
        assert reload(owner_verified_payment).deposit_status == DepositStatus.HELD

    @override_settings(DEPOSIT_SWEEP_CONCURRENCY=4)
    def test_thread_pool_processes_every_candidate(self, fake_gateway):
        payments = PaymentFactory.create_batch(3)
        for payment in payments:
            ReturnInspectionFactory(booking=payment.booking, verified_by_owner=True)

        with patch(
            "deposits.services.sweeper.DepositReleaseFlow.run",
            side_effect=lambda payment, *args, **kwargs: _released(payment),
        ), patch("deposits.services.sweeper.connection"):
            result = DepositSweeper.sweep()

        assert result.released == 3


def _released(payment):
    from deposits.services import ReleaseAttempt, ReleaseStatus

    return ReleaseAttempt(
        status=ReleaseStatus.RELEASED,
        payment_id=str(payment.id),
        booking_id=str(payment.booking_id),
        amount_cents=payment.deposit_amount_cents,
    )

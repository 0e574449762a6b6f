"""
Tests for the sweep_deposits task and management command.
"""

from __future__ import annotations

import json
from datetime import timedelta
from io import StringIO
from unittest.mock import patch

import pytest
from django.core.management import CommandError, call_command
from django.utils import timezone

from deposits.adapters import GatewayOutcome
from deposits.models import Payment
from deposits.services import DepositReleaseFlow, SweepResult
from deposits.state_machines import DepositStatus
from deposits.tests.factories import PaymentFactory
from deposits.tests.fakes import FakeGateway
from deposits.workers.deposit_sweeper import sweep_deposits
from inspections.tests.factories import ReturnInspectionFactory


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def fake_gateway():
    gateway = FakeGateway()
    DepositReleaseFlow.set_gateway(gateway)
    yield gateway
    DepositReleaseFlow.set_gateway(None)


@pytest.fixture
def owner_verified_payment(db):
    payment = PaymentFactory()
    ReturnInspectionFactory(
        booking=payment.booking,
        verified_by_owner=True,
        owner_signature="Owner",
        timestamp=timezone.now() - timedelta(hours=1),
    )
    return payment


@pytest.mark.django_db
class TestSweepDepositsTask:
    def test_releases_eligible_deposits(self, owner_verified_payment, fake_gateway):
        result = sweep_deposits.apply().get()

        assert result == {
            "scanned": 1,
            "eligible": 1,
            "released": 1,
            "errors": [],
            "dry_run": False,
        }
        assert (
            Payment.objects.get(pk=owner_verified_payment.pk).deposit_status
            == DepositStatus.RELEASED
        )

    def test_dry_run(self, owner_verified_payment, fake_gateway):
        result = sweep_deposits.apply(kwargs={"dry_run": True}).get()

        assert result["eligible"] == 1
        assert result["released"] == 0
        assert fake_gateway.calls == []

    def test_passes_limit(self, db):
        with patch(
            "deposits.workers.deposit_sweeper.DepositSweeper.sweep",
            return_value=SweepResult(),
        ) as mock_sweep:
            sweep_deposits.apply(kwargs={"limit": 5}).get()

        mock_sweep.assert_called_once_with(limit=5, dry_run=False)

    def test_reports_errors_without_failing(self, owner_verified_payment, fake_gateway):
        fake_gateway.queue(GatewayOutcome.TRANSIENT)

        task_result = sweep_deposits.apply()

        assert task_result.successful()
        assert task_result.get()["errors"] == [
            {
                "booking_id": str(owner_verified_payment.booking_id),
                "error": "transient: Request timed out",
            }
        ]


@pytest.mark.django_db
class TestSweepDepositsCommand:
    def test_prints_json_summary(self, owner_verified_payment, fake_gateway):
        out = StringIO()

        call_command("sweep_deposits", stdout=out)

        output = out.getvalue()
        summary = json.loads(output[: output.rindex("}") + 1])
        assert summary["released"] == 1
        assert "Released 1 deposit(s)." in output

    def test_dry_run_flag(self, owner_verified_payment, fake_gateway):
        out = StringIO()

        call_command("sweep_deposits", "--dry-run", "--limit", "10", stdout=out)

        assert '"dry_run": true' in out.getvalue()
        assert fake_gateway.calls == []

    def test_warns_on_errors(self, owner_verified_payment, fake_gateway):
        fake_gateway.queue(GatewayOutcome.REJECTED)
        out, err = StringIO(), StringIO()

        call_command("sweep_deposits", stdout=out, stderr=err)

        assert "1 deposit(s) failed to release." in err.getvalue()

    def test_rejects_zero_limit(self, db):
        with pytest.raises(CommandError):
            call_command("sweep_deposits", "--limit", "0")

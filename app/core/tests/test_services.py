"""
Tests for ServiceResult and BaseService.
"""

import logging

import pytest

from core.exceptions import ConflictError, NotFoundError
from core.services import BaseService, ServiceResult


class TestServiceResult:
    def test_success(self):
        result = ServiceResult.success({"amount": 200})

        assert result.success
        assert bool(result) is True
        assert result.to_response() == {"success": True, "data": {"amount": 200}}

    def test_failure_response_includes_code_and_details(self):
        result = ServiceResult.failure(
            "Deposit already being released",
            error_code="CONFLICT",
            details={"payment_id": "abc"},
        )

        assert not result
        assert result.to_response() == {
            "success": False,
            "error": "Deposit already being released",
            "error_code": "CONFLICT",
            "details": {"payment_id": "abc"},
        }

    def test_from_application_error_keeps_code_and_details(self):
        exc = NotFoundError("Booking not found", details={"booking_id": "b1"})

        result = ServiceResult.from_exception(exc)

        assert result.error == "Booking not found"
        assert result.error_code == "NOT_FOUND"
        assert result.details == {"booking_id": "b1"}

    def test_from_application_error_copies_details(self):
        exc = ConflictError("Busy", details={"payment_id": "p1"})

        result = ServiceResult.from_exception(exc)
        result.details["extra"] = True

        assert "extra" not in exc.details

    def test_from_plain_exception_uses_class_name(self):
        result = ServiceResult.from_exception(ValueError("bad amount"))

        assert result.error == "bad amount"
        assert result.error_code == "VALUEERROR"

    def test_map(self):
        assert ServiceResult.success(2).map(lambda x: x * 10).data == 20

        failed = ServiceResult.failure("nope")
        assert failed.map(lambda x: x * 10) is failed


class ExampleService(BaseService):
    pass


class TestBaseService:
    def test_logger_named_after_class(self):
        assert ExampleService.get_logger().name == (
            "core.tests.test_services.ExampleService"
        )

    def test_handle_exception_logs_and_converts(self, caplog):
        with caplog.at_level(logging.ERROR):
            result = ExampleService.handle_exception(
                ConflictError("Busy"), "lock"
            )

        assert result.error_code == "CONFLICT"
        assert "lock: [CONFLICT] Busy" in caplog.text


@pytest.mark.django_db
class TestHealthCheck:
    def test_healthy(self, client):
        response = client.get("/health/")

        assert response.status_code == 200
        assert response.json()["database"] == "connected"

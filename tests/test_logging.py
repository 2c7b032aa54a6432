"""Tests for structured logging of booking context."""
import io
import json
import logging

import pytest

from core.errors import PlanLimitReachedError
from core.logging import (
    BookingJsonFormatter,
    BookingTextFormatter,
    booking_context,
    setup_logging,
)


def make_record(message, **extra):
    return logging.getLogger("services.test").makeRecord(
        "services.test", logging.INFO, __file__, 1, message, None, None, extra=extra
    )


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way pytest configured it."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.unit
class TestFormatters:
    """Test the JSON and text formatters."""

    def test_json_groups_booking_context(self):
        """Test booking extras are nested and not repeated at the top level."""
        formatter = BookingJsonFormatter(fmt='%(timestamp)s %(level)s %(name)s %(message)s')
        record = make_record(
            "Plan limit reached",
            tenant_id="t-1",
            error_code="PLAN_LIMIT_REACHED",
            plan="free",
            limit=50,
            current=50,
        )

        payload = json.loads(formatter.format(record))

        assert payload["message"] == "Plan limit reached"
        assert payload["level"] == "INFO"
        assert payload["booking"] == {
            "tenant_id": "t-1",
            "error_code": "PLAN_LIMIT_REACHED",
            "plan": "free",
            "limit": 50,
            "current": 50,
        }
        assert "tenant_id" not in payload

    def test_json_without_context(self):
        """Test records without booking extras carry no booking key."""
        formatter = BookingJsonFormatter(fmt='%(timestamp)s %(level)s %(name)s %(message)s')

        payload = json.loads(formatter.format(make_record("Starting")))

        assert "booking" not in payload

    def test_text_appends_context(self):
        """Test the development format keeps tenant and error code visible."""
        formatter = BookingTextFormatter(fmt='%(levelname)s %(message)s')
        record = make_record("Duplicate customer phone", tenant_id="t-1", error_code="DUPLICATE_CUSTOMER")

        assert formatter.format(record) == (
            "INFO Duplicate customer phone [tenant_id=t-1 error_code=DUPLICATE_CUSTOMER]"
        )

    def test_text_without_context(self):
        """Test plain records are unchanged."""
        formatter = BookingTextFormatter(fmt='%(levelname)s %(message)s')

        assert formatter.format(make_record("Starting")) == "INFO Starting"


@pytest.mark.unit
class TestSetupLogging:
    """Test root logger configuration."""

    def test_json_output(self, restore_root_logger):
        """Test forced JSON output reaches the given stream."""
        stream = io.StringIO()
        setup_logging(json_output=True, stream=stream)

        logging.getLogger("services.reservation_committer").info(
            "Committed reservation", extra={"reservation_id": "r-1"}
        )

        payload = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert payload["booking"] == {"reservation_id": "r-1"}
        assert payload["logger"] == "services.reservation_committer"


@pytest.mark.integration
class TestAdmissionLogging:
    """Test admission outcomes carry booking context."""

    def test_plan_limit_logged_with_context(self, caplog, admission, tenant, add_customers):
        """Test a refused admission logs tenant, code and quota at INFO."""
        add_customers(tenant.id, 50)

        with caplog.at_level(logging.INFO, logger="services.admission"):
            with pytest.raises(PlanLimitReachedError):
                admission.admit(tenant.id, "Maria", "11988887777")

        record = next(r for r in caplog.records if r.getMessage() == "Plan limit reached")
        assert record.levelno == logging.INFO
        assert booking_context(record) == {
            "tenant_id": tenant.id,
            "error_code": "PLAN_LIMIT_REACHED",
            "plan": "free",
            "limit": 50,
            "current": 50,
        }

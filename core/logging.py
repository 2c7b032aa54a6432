"""
Logging setup for the booking core.

Services attach booking context to records through ``extra=`` (tenant,
resource, reservation, error code and plan quota numbers). JSON output
groups those fields under a ``booking`` key so log pipelines can filter by
tenant or error code without parsing messages; the development text format
appends them as ``key=value`` pairs.
"""
import logging
import sys
from typing import Any, Dict, Optional, TextIO

from pythonjsonlogger import jsonlogger

from core.settings import settings


BOOKING_CONTEXT_FIELDS = (
    "tenant_id",
    "resource_id",
    "reservation_id",
    "customer_id",
    "error_code",
    "plan",
    "limit",
    "current",
)


def booking_context(record: logging.LogRecord) -> Dict[str, Any]:
    """Booking fields present on a record, in a stable order."""
    return {
        name: getattr(record, name)
        for name in BOOKING_CONTEXT_FIELDS
        if hasattr(record, name)
    }


class BookingJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that nests booking context under ``booking``."""

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any]
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record['timestamp'] = self.formatTime(record, self.datefmt)
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['service'] = settings.app_name
        log_record['environment'] = settings.app_env

        # Extras were merged flat by the base class
        for name in BOOKING_CONTEXT_FIELDS:
            log_record.pop(name, None)
        context = booking_context(record)
        if context:
            log_record['booking'] = context


class BookingTextFormatter(logging.Formatter):
    """Plain formatter for development that keeps booking context visible."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = booking_context(record)
        if not context:
            return line
        pairs = " ".join(f"{name}={value}" for name, value in context.items())
        return f"{line} [{pairs}]"


def setup_logging(json_output: Optional[bool] = None, stream: Optional[TextIO] = None) -> None:
    """
    Configure root logging.

    Args:
        json_output: Force JSON (True) or text (False); by default JSON is
            used outside development
        stream: Destination, stdout by default
    """
    if json_output is None:
        json_output = not settings.is_development

    if json_output:
        formatter: logging.Formatter = BookingJsonFormatter(
            fmt='%(timestamp)s %(level)s %(name)s %(message)s',
            datefmt='%Y-%m-%dT%H:%M:%S'
        )
    else:
        formatter = BookingTextFormatter(
            fmt='%(asctime)s %(levelname)s %(name)s: %(message)s',
            datefmt='%H:%M:%S'
        )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(settings.log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.db_echo else logging.WARNING
    )

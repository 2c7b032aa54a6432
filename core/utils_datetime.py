"""
DateTime utilities shared by the availability and reservation services.

Storage keeps naive UTC datetimes; everything in memory is timezone aware.
Tenant wall-clock times are resolved with pytz.
"""
from datetime import date, datetime, time
from typing import Optional, Union

import pytz


UTC = pytz.utc


def get_timezone(name: Optional[str]) -> pytz.BaseTzInfo:
    """
    Resolve a timezone name, falling back to UTC.

    Args:
        name: IANA timezone name (e.g. "America/Sao_Paulo")

    Returns:
        pytz timezone
    """
    if not name:
        return UTC
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        return UTC


def get_current_datetime() -> datetime:
    """Get current datetime in UTC."""
    return datetime.now(UTC)


def ensure_aware(dt: datetime, tz: Optional[pytz.BaseTzInfo] = None) -> datetime:
    """Attach `tz` (UTC by default) to a naive datetime; aware values pass through."""
    if dt.tzinfo is not None:
        return dt
    return (tz or UTC).localize(dt)


def to_storage(dt: datetime) -> datetime:
    """Convert an aware datetime to the naive UTC value stored in the database."""
    return ensure_aware(dt).astimezone(UTC).replace(tzinfo=None)


def from_storage(dt: datetime) -> datetime:
    """Convert a stored value back to an aware UTC datetime."""
    if dt.tzinfo is None:
        return UTC.localize(dt)
    return dt.astimezone(UTC)


def combine_local(day: date, at: time, tz: pytz.BaseTzInfo) -> datetime:
    """Build an aware datetime for a wall-clock time on a given day in `tz`."""
    return tz.localize(datetime.combine(day, at))


def to_local(dt: datetime, tz: pytz.BaseTzInfo) -> datetime:
    """Express an aware datetime in `tz`."""
    return tz.normalize(ensure_aware(dt).astimezone(tz))


def parse_iso_datetime(value: Union[str, datetime], tz: pytz.BaseTzInfo) -> datetime:
    """
    Parse an ISO-8601 value into an aware datetime.

    Naive values are read as wall-clock time in `tz`.

    Raises:
        ValueError: If the value is not ISO-8601
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    return ensure_aware(parsed, tz)


def parse_iso_date(value: Union[str, date]) -> date:
    """
    Parse an ISO-8601 calendar date.

    Raises:
        ValueError: If the value is not YYYY-MM-DD
    """
    if isinstance(value, date):
        return value
    return date.fromisoformat(value.strip())

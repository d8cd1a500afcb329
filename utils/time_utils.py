"""Storage clock helpers.

Timestamps are persisted as naive wall-clock values shifted +5:30 from UTC
rather than as real UTC instants. Every comparison against stored values has
to go through the same shift.
"""

from datetime import date, datetime, timedelta, timezone

from dateutil.parser import isoparse

STORAGE_OFFSET = timedelta(hours=5, minutes=30)

DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
DATE_FORMAT = "%Y-%m-%d"
DISPLAY_FORMAT = "%d %B %Y, %I:%M %p"


def storage_now(now: datetime | None = None) -> datetime:
    """Current time on the storage clock, truncated to whole seconds."""
    current = now or datetime.now(timezone.utc)
    return to_storage(current)


def to_storage(value: datetime | None) -> datetime | None:
    """Shift a client-supplied datetime onto the storage clock.

    Naive values are taken as UTC.
    """
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return (value + STORAGE_OFFSET).replace(microsecond=0)


def parse_timestamp(value) -> datetime | date | None:
    """Turn a stored value (datetime, date or ISO string) into a date object."""
    if value is None or value == "":
        return None
    if isinstance(value, (datetime, date)):
        return value
    try:
        return isoparse(str(value).strip())
    except ValueError:
        return None


def format_datetime(value) -> str | None:
    parsed = parse_timestamp(value)
    if parsed is None:
        return value or None
    return parsed.strftime(DATETIME_FORMAT)


def format_date(value) -> str | None:
    parsed = parse_timestamp(value)
    if parsed is None:
        return value or None
    return parsed.strftime(DATE_FORMAT)


def format_display(value) -> str:
    """Human readable form used in reminder e-mails."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return "" if value is None else str(value)
    return parsed.strftime(DISPLAY_FORMAT)

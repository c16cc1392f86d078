"""
Day keys and the small calendar helpers built around them.

A day key is the canonical ``YYYY-MM-DD`` string for a calendar day. It is the
only dimension diary entries and todo items are scoped by.

Time zone policy: naive datetimes are read as device-local wall-clock time and
aware datetimes are converted to the process-local zone before the calendar
day is taken. Two instants that share a local calendar day share a key.
"""
from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta
from typing import Optional, Union

from .errors import InvalidFormat

DAY_KEY_FORMAT = "%Y-%m-%d"
_DAY_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

DateLike = Union[date, datetime]


def _local_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    return value


# PUBLIC_INTERFACE
def day_key(value: DateLike) -> str:
    """Return the ``YYYY-MM-DD`` key of the local calendar day containing ``value``."""
    d = _local_date(value)
    # strftime pads years below 1000 inconsistently across platforms
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


# PUBLIC_INTERFACE
def parse_day_key(key: str) -> date:
    """
    Parse a day key back into a date.

    Raises:
        InvalidFormat: if ``key`` is not exactly ``YYYY-MM-DD`` or names a day
            that does not exist (e.g. ``2025-02-30``).
    """
    if not isinstance(key, str) or not _DAY_KEY_RE.match(key):
        raise InvalidFormat(f"Invalid day key {key!r}; expected YYYY-MM-DD")
    try:
        return datetime.strptime(key, DAY_KEY_FORMAT).date()
    except ValueError as e:
        raise InvalidFormat(f"Invalid day key {key!r}: {e}") from e


def try_parse_day_key(key: str) -> Optional[date]:
    """Parse a day key for display purposes, returning None when it is malformed."""
    try:
        return parse_day_key(key)
    except InvalidFormat:
        return None


def today() -> date:
    return datetime.now().date()


def add_days(value: DateLike, days: int) -> date:
    return _local_date(value) + timedelta(days=days)


def is_same_day(a: DateLike, b: DateLike) -> bool:
    return _local_date(a) == _local_date(b)


def is_today(value: DateLike) -> bool:
    return is_same_day(value, today())


def start_of_day(value: Optional[DateLike] = None) -> datetime:
    """Midnight (naive, local) at the start of the day containing ``value`` (default today)."""
    d = _local_date(value) if value is not None else today()
    return datetime.combine(d, time.min)


def display_format(value: DateLike) -> str:
    """Human-readable day label such as ``Nov 25 (Mon)``."""
    d = _local_date(value)
    return f"{_MONTHS[d.month - 1]} {d.day} ({_WEEKDAYS[d.weekday()]})"


def time_format(value: datetime) -> str:
    """Wall-clock ``HH:MM`` label for a timestamp."""
    if value.tzinfo is not None:
        value = value.astimezone()
    return f"{value.hour:02d}:{value.minute:02d}"

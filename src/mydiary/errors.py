from __future__ import annotations


class DiaryError(Exception):
    """Base class for errors raised by the diary core."""


class NotFound(DiaryError):
    """A lookup matched nothing. Queries normally return None instead of raising this."""


class MultipleMatches(DiaryError):
    """More than one record matched a lookup that allows at most one."""

    def __init__(self, kind: str, day_key: str, count: int) -> None:
        super().__init__(f"{count} {kind} records found for day {day_key}; expected at most one")
        self.kind = kind
        self.day_key = day_key
        self.count = count


class PersistenceError(DiaryError):
    """The underlying store failed to read or write."""


class InvalidFormat(DiaryError, ValueError):
    """A day key string is not a valid YYYY-MM-DD calendar date."""

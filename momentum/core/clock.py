"""Clock abstraction so every "now" comparison can be driven from tests."""

from datetime import UTC, datetime, timedelta, tzinfo
from typing import Protocol


class Clock(Protocol):
    """Source of the current time."""

    def now(self) -> datetime:
        """Return the current timezone-aware datetime."""
        ...


class SystemClock:
    """Wall clock in a fixed timezone."""

    def __init__(self, tz: tzinfo = UTC) -> None:
        self._tz = tz

    def now(self) -> datetime:
        return datetime.now(self._tz)


class FixedClock:
    """Clock frozen at a given instant until advanced explicitly."""

    def __init__(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            raise ValueError("FixedClock requires a timezone-aware datetime")
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def advance(self, delta: timedelta) -> None:
        """Move the clock forward (or backward for negative deltas)."""
        self._instant += delta

    def set(self, instant: datetime) -> None:
        """Jump to an absolute instant."""
        if instant.tzinfo is None:
            raise ValueError("FixedClock requires a timezone-aware datetime")
        self._instant = instant


def as_aware(value: datetime, tz: tzinfo | None = None) -> datetime:
    """Return ``value`` as an aware datetime, reading naive values as UTC.

    When ``tz`` is given the result is converted to that timezone.
    """
    aware = value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    return aware.astimezone(tz) if tz is not None else aware


def to_utc_iso(value: datetime | None) -> str | None:
    """ISO text in UTC so stored timestamps sort chronologically as text."""
    if value is None:
        return None
    return as_aware(value).astimezone(UTC).isoformat()

"""Next-occurrence calculation for recurring tasks."""

import logging
from datetime import datetime, timedelta

from dateutil.relativedelta import relativedelta

from momentum.core.clock import as_aware
from momentum.domain.task import RecurrenceConfig, RecurrencePattern


logger = logging.getLogger(__name__)

DAYS_PER_WEEK = 7


def _interval(config: RecurrenceConfig | None) -> int:
    """Repeat interval from config; unset, zero or negative means 1."""
    if config is None or not config.interval or config.interval < 1:
        return 1
    return config.interval


def next_occurrence(
    anchor: datetime,
    pattern: RecurrencePattern | str | None,
    config: RecurrenceConfig | None = None,
) -> datetime | None:
    """Calculate the next occurrence after ``anchor``.

    - daily: anchor + interval days
    - weekly: anchor + 7 * interval days
    - monthly: anchor + interval calendar months. A day that does not exist
      in the target month clamps to its last day (Jan 31 -> Feb 29 in 2024).

    Wall-clock time of day is preserved. Any other pattern ends the series.
    ``config.max_occurrences``, ``days_of_week`` and ``day_of_month`` are not
    consulted.

    Args:
        anchor: The occurrence being completed (its scheduled time)
        pattern: Recurrence cadence
        config: Optional recurrence settings

    Returns:
        Next occurrence, or None when the series has ended
    """
    interval = _interval(config)

    if pattern == RecurrencePattern.DAILY:
        next_date = anchor + timedelta(days=interval)
    elif pattern == RecurrencePattern.WEEKLY:
        next_date = anchor + timedelta(days=DAYS_PER_WEEK * interval)
    elif pattern == RecurrencePattern.MONTHLY:
        next_date = anchor + relativedelta(months=interval)
    else:
        logger.debug("No next occurrence for pattern %s", pattern)
        return None

    if config is not None and config.end_date is not None and as_aware(next_date) > as_aware(config.end_date):
        logger.debug("Recurrence ended: %s is past end date %s", next_date, config.end_date)
        return None

    return next_date


class RecurrenceEngine:
    """Injectable wrapper around next_occurrence()."""

    def next_occurrence(
        self,
        anchor: datetime,
        pattern: RecurrencePattern | str | None,
        config: RecurrenceConfig | None = None,
    ) -> datetime | None:
        return next_occurrence(anchor, pattern, config)

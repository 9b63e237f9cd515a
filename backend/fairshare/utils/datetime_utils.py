"""
Timezone-aware datetime utilities.

This module provides utilities for working with timezone-aware datetimes,
ensuring every age and window computation in the engine compares UTC values.
"""

import math
from datetime import datetime, timezone
from typing import Optional

# UTC timezone constant
UTC = timezone.utc

SECONDS_PER_DAY = 24 * 60 * 60


def now_utc() -> datetime:
    """
    Get current UTC datetime (timezone-aware).

    Returns:
        datetime: Current UTC time with tzinfo set to UTC
    """
    return datetime.now(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure datetime is timezone-aware and in UTC.

    Args:
        dt: datetime to convert (can be None, naive, or timezone-aware)

    Returns:
        Optional[datetime]: UTC timezone-aware datetime, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Naive datetime - assume UTC
        return dt.replace(tzinfo=UTC)

    # Already timezone-aware - convert to UTC
    return dt.astimezone(UTC)


def resolve_now(now: Optional[datetime]) -> datetime:
    """Return `now` normalized to UTC, or the current time when omitted."""
    return ensure_utc(now) if now is not None else now_utc()


def age_in_days(moment: datetime, reference: datetime) -> float:
    """
    Fractional days elapsed between `moment` and `reference`.

    Moments after the reference count as age 0.
    """
    delta = ensure_utc(reference) - ensure_utc(moment)
    return max(0.0, delta.total_seconds() / SECONDS_PER_DAY)


def days_until(moment: datetime, reference: datetime) -> int:
    """
    Whole days from `reference` until `moment`, floored.

    Negative when the moment is already past: two hours ago is -1,
    five hours ahead is 0.
    """
    delta = ensure_utc(moment) - ensure_utc(reference)
    return math.floor(delta.total_seconds() / SECONDS_PER_DAY)



def iso_week(moment: datetime) -> tuple[int, int]:
    """Return (iso_year, iso_week_number) for a datetime."""
    year, week, _ = ensure_utc(moment).isocalendar()
    return year, week

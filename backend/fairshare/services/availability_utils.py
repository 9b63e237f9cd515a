"""
Member availability utility functions.

Helpers over MemberAvailability profiles. Profiles are immutable, so every
helper that "changes" a member returns a new instance.
"""

from datetime import datetime, timedelta
from typing import Optional

from fairshare.models.member import ExclusionPeriod, MemberAvailability
from fairshare.utils.datetime_utils import resolve_now


def active_exclusion(member: MemberAvailability, now: datetime) -> Optional[ExclusionPeriod]:
    """Return the exclusion period covering `now`, if any."""
    for period in member.exclusion_periods:
        if period.contains(now):
            return period
    return None


def is_in_exclusion_period(member: MemberAvailability, now: Optional[datetime] = None) -> bool:
    return active_exclusion(member, resolve_now(now)) is not None


def upcoming_exclusions(
    member: MemberAvailability,
    now: Optional[datetime] = None,
    days_ahead: int = 7,
) -> list[ExclusionPeriod]:
    """Exclusion periods starting within the next `days_ahead` days."""
    now = resolve_now(now)
    cutoff = now + timedelta(days=days_ahead)
    return [p for p in member.exclusion_periods if now < p.start <= cutoff]


def add_exclusion_period(member: MemberAvailability, period: ExclusionPeriod) -> MemberAvailability:
    return member.model_copy(
        update={"exclusion_periods": (*member.exclusion_periods, period)}
    )


def cleanup_exclusion_periods(
    member: MemberAvailability, now: Optional[datetime] = None
) -> MemberAvailability:
    """Drop exclusion periods that already ended."""
    now = resolve_now(now)
    return member.model_copy(
        update={"exclusion_periods": tuple(p for p in member.exclusion_periods if p.end >= now)}
    )


def with_load(member: MemberAvailability, current_load: float) -> MemberAvailability:
    return member.model_copy(update={"current_load": current_load})


def capacity_of(member: MemberAvailability, default_capacity: float) -> float:
    return member.max_weekly_load if member.max_weekly_load is not None else default_capacity

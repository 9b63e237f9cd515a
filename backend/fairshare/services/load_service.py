"""
Load aggregation service.

Turns a member's historical load entries into time-decayed totals,
per-category breakdowns, a trend direction and a fatigue level, and builds
the household-wide load summaries on top of that.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from fairshare.core.config import get_engine_config
from fairshare.core.logger import setup_logger
from fairshare.models.engine_config import EngineConfig
from fairshare.models.enums import FatigueZone, LoadTrend, TaskCategory
from fairshare.models.load import (
    FatigueState,
    HistoricalLoadEntry,
    HouseholdLoad,
    HouseholdMember,
    LoadAggregate,
    TrendComparison,
    UserLoadSummary,
)
from fairshare.services import fairness
from fairshare.utils.datetime_utils import age_in_days, resolve_now

logger = setup_logger(__name__)


def _round(value: float) -> float:
    return round(value, 1)


class LoadAggregatorService:
    """
    Service for historical load aggregation.

    Provides:
    - Time decay (1.0 today, clamping at a floor past the lookback window)
    - Time-weighted and per-category load
    - Trend detection on average daily load
    - Saturating fatigue level
    - Member and household load summaries

    Entries are never dropped for being old; they only fade to the floor.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        config = config or get_engine_config()
        self.decay_config = config.decay
        self.trend_config = config.trend
        self.fatigue_config = config.fatigue
        self.alert_config = config.alerts

    # ===========================================
    # Decay
    # ===========================================

    def decay(self, age_days: float) -> float:
        """
        Time decay factor for an entry of the given age.

        1.0 at age 0, floor ** (age / max_age) in between and exactly the
        floor from max_age onwards. Monotonically non-increasing.
        """
        max_age = self.decay_config.max_age_days
        floor = self.decay_config.floor
        if age_days <= 0:
            return 1.0
        if age_days >= max_age:
            return floor
        return max(floor, floor ** (age_days / max_age))

    @staticmethod
    def member_entries(
        entries: Iterable[HistoricalLoadEntry], member_id: str
    ) -> list[HistoricalLoadEntry]:
        return [entry for entry in entries if entry.member_id == member_id]

    def time_weighted_load(
        self,
        entries: Iterable[HistoricalLoadEntry],
        member_id: str,
        now: Optional[datetime] = None,
    ) -> float:
        """Sum of weight x decay(age) over the member's entries (0 when empty)."""
        now = resolve_now(now)
        return sum(
            entry.weight * self.decay(age_in_days(entry.date, now))
            for entry in self.member_entries(entries, member_id)
        )

    def category_load(
        self,
        entries: Iterable[HistoricalLoadEntry],
        member_id: str,
        now: Optional[datetime] = None,
    ) -> dict[TaskCategory, float]:
        """Time-weighted load partitioned by category."""
        now = resolve_now(now)
        loads: dict[TaskCategory, float] = defaultdict(float)
        for entry in self.member_entries(entries, member_id):
            loads[entry.category] += entry.weight * self.decay(age_in_days(entry.date, now))
        return dict(loads)

    # ===========================================
    # Trend
    # ===========================================

    def compare_windows(
        self,
        entries: Iterable[HistoricalLoadEntry],
        member_id: str,
        now: Optional[datetime] = None,
        window_days: Optional[float] = None,
    ) -> TrendComparison:
        """
        Compare average daily load of the recent window with the one before.

        Fewer data points than the configured minimum is "stable" by
        definition. An empty previous window with a non-empty recent one is
        "increasing" with a change ratio of 1.0.
        """
        now = resolve_now(now)
        window = window_days or self.decay_config.max_age_days / 2

        recent_total = 0.0
        previous_total = 0.0
        data_points = 0
        for entry in self.member_entries(entries, member_id):
            age = age_in_days(entry.date, now)
            if age < window:
                recent_total += entry.weight
                data_points += 1
            elif age < 2 * window:
                previous_total += entry.weight
                data_points += 1

        recent_daily = recent_total / window
        previous_daily = previous_total / window

        if data_points < self.trend_config.min_data_points:
            return TrendComparison(
                direction=LoadTrend.STABLE,
                recent_daily=recent_daily,
                previous_daily=previous_daily,
                data_points=data_points,
            )

        if previous_daily == 0:
            direction = LoadTrend.INCREASING if recent_daily > 0 else LoadTrend.STABLE
            change = 1.0 if recent_daily > 0 else 0.0
        else:
            change = (recent_daily - previous_daily) / previous_daily
            threshold = self.trend_config.change_threshold
            if change > threshold:
                direction = LoadTrend.INCREASING
            elif change < -threshold:
                direction = LoadTrend.DECREASING
            else:
                direction = LoadTrend.STABLE

        return TrendComparison(
            direction=direction,
            change_ratio=change,
            recent_daily=recent_daily,
            previous_daily=previous_daily,
            data_points=data_points,
        )

    def trend(
        self,
        entries: Iterable[HistoricalLoadEntry],
        member_id: str,
        now: Optional[datetime] = None,
    ) -> LoadTrend:
        """Trend over the lookback window split into a recent and an older half."""
        return self.compare_windows(entries, member_id, now).direction

    # ===========================================
    # Fatigue
    # ===========================================

    def recent_average_load(
        self,
        entries: Iterable[HistoricalLoadEntry],
        member_id: str,
        now: Optional[datetime] = None,
    ) -> float:
        """Average daily load over the fatigue window."""
        now = resolve_now(now)
        window = self.fatigue_config.recent_window_days
        total = sum(
            entry.weight
            for entry in self.member_entries(entries, member_id)
            if age_in_days(entry.date, now) < window
        )
        return total / window

    def fatigue(
        self,
        entries: Iterable[HistoricalLoadEntry],
        member_id: str,
        now: Optional[datetime] = None,
    ) -> float:
        """
        Fatigue level in [0, 100].

        100 * (1 - 2 ** -(avg_daily / reference)): a member carrying exactly the
        sustainable reference load sits at 50, twice that at 75. One heavy day
        is spread over the window, so it cannot push fatigue to the ceiling.
        """
        ratio = self.recent_average_load(entries, member_id, now) / self.fatigue_config.reference_daily_load
        level = 100.0 * (1.0 - 2.0 ** (-ratio))
        return _round(min(100.0, max(0.0, level)))

    def fatigue_zone(self, level: float) -> FatigueZone:
        cfg = self.fatigue_config
        if level < cfg.rested_below:
            return FatigueZone.RESTED
        if level < cfg.normal_below:
            return FatigueZone.NORMAL
        if level < cfg.tired_below:
            return FatigueZone.TIRED
        if level <= cfg.burnout_above:
            return FatigueZone.EXHAUSTED
        return FatigueZone.BURNOUT

    def daily_totals(
        self, entries: Iterable[HistoricalLoadEntry], member_id: str
    ) -> dict[date, float]:
        totals: dict[date, float] = defaultdict(float)
        for entry in self.member_entries(entries, member_id):
            totals[entry.date.date()] += entry.weight
        return dict(totals)

    def consecutive_high_load_days(
        self,
        entries: Iterable[HistoricalLoadEntry],
        member_id: str,
        now: Optional[datetime] = None,
    ) -> int:
        """Run of days, counting back from today, whose load reached the high-load mark."""
        now = resolve_now(now)
        totals = self.daily_totals(entries, member_id)
        threshold = self.fatigue_config.reference_daily_load * self.fatigue_config.high_load_day_ratio
        streak = 0
        day = now.date()
        for _ in range(self.decay_config.max_age_days):
            if totals.get(day, 0.0) < threshold:
                break
            streak += 1
            day -= timedelta(days=1)
        return streak

    def fatigue_state(
        self,
        entries: Iterable[HistoricalLoadEntry],
        member_id: str,
        now: Optional[datetime] = None,
    ) -> FatigueState:
        now = resolve_now(now)
        entries = list(entries)
        level = self.fatigue(entries, member_id, now)
        return FatigueState(
            member_id=member_id,
            fatigue=level,
            zone=self.fatigue_zone(level),
            consecutive_high_load_days=self.consecutive_high_load_days(entries, member_id, now),
            recent_average_load=_round(self.recent_average_load(entries, member_id, now)),
            trend=self.trend(entries, member_id, now),
        )

    # ===========================================
    # Aggregates and summaries
    # ===========================================

    def aggregate(
        self,
        entries: Iterable[HistoricalLoadEntry],
        member_id: str,
        now: Optional[datetime] = None,
    ) -> LoadAggregate:
        """Full time-decayed view of one member."""
        now = resolve_now(now)
        member_entries = self.member_entries(entries, member_id)
        return LoadAggregate(
            member_id=member_id,
            score=self.time_weighted_load(member_entries, member_id, now),
            by_category=self.category_load(member_entries, member_id, now),
            trend=self.trend(member_entries, member_id, now),
            fatigue=self.fatigue(member_entries, member_id, now),
            entry_count=len(member_entries),
        )

    def summarize_member(
        self,
        member: HouseholdMember,
        entries: Iterable[HistoricalLoadEntry],
        now: Optional[datetime] = None,
        balance_percentage: float = 0.0,
    ) -> UserLoadSummary:
        """
        Build the load summary of one member.

        Current load is the weight of assigned-but-incomplete entries; weekly
        and monthly loads are raw sums over the last 7 and lookback days.
        """
        now = resolve_now(now)
        member_entries = self.member_entries(entries, member.member_id)
        aggregate = self.aggregate(member_entries, member.member_id, now)

        current_load = 0.0
        weekly_load = 0.0
        monthly_load = 0.0
        pending = 0
        completed = 0
        for entry in member_entries:
            age = age_in_days(entry.date, now)
            if entry.was_completed:
                completed += 1
            else:
                pending += 1
                current_load += entry.weight
            if age < 7:
                weekly_load += entry.weight
            if age < self.decay_config.max_age_days:
                monthly_load += entry.weight

        return UserLoadSummary(
            member_id=member.member_id,
            member_name=member.member_name or member.member_id,
            current_load=_round(current_load),
            weekly_load=_round(weekly_load),
            monthly_load=_round(monthly_load),
            time_weighted_load=_round(aggregate.score),
            load_trend=aggregate.trend,
            fatigue_level=aggregate.fatigue,
            balance_percentage=balance_percentage,
            pending_tasks=pending,
            completed_tasks=completed,
            category_breakdown={
                category: _round(load) for category, load in aggregate.by_category.items()
            },
        )

    def summarize_household(
        self,
        members: Iterable[HouseholdMember],
        entries: Iterable[HistoricalLoadEntry],
        now: Optional[datetime] = None,
        household_id: Optional[str] = None,
    ) -> HouseholdLoad:
        """
        Build every member's summary plus the household fairness numbers.

        Shares are computed on time-weighted load and rounded so they sum to
        exactly 100 (or are all 0 when the household carries no load).
        """
        now = resolve_now(now)
        members = list(members)
        entries = list(entries)

        loads = [self.time_weighted_load(entries, member.member_id, now) for member in members]
        shares = fairness.load_shares(loads)
        summaries = [
            self.summarize_member(member, entries, now, balance_percentage=share)
            for member, share in zip(members, shares)
        ]
        score = fairness.balance_score(loads)
        status = self.alert_config.band(score)

        logger.info(
            f"Household {household_id or '-'}: {len(members)} members, "
            f"total load {sum(loads):.1f}, balance {score:.1f} ({status.value})"
        )

        return HouseholdLoad(
            household_id=household_id,
            calculated_at=now,
            total_load=_round(sum(loads)),
            members=summaries,
            gini_coefficient=fairness.gini(loads),
            balance_score=score,
            status=status,
        )

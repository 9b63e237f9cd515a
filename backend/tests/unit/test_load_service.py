"""
Unit tests for LoadAggregatorService.
"""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from fairshare.models.engine_config import EngineConfig
from fairshare.models.enums import BalanceLevel, FatigueZone, LoadTrend, TaskCategory
from fairshare.models.load import HistoricalLoadEntry, HouseholdMember
from fairshare.services.load_service import LoadAggregatorService

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def make_entry(
    days_ago: float = 0,
    weight: float = 1.0,
    member_id: str = "alice",
    category: str = "daily",
    was_completed: bool = True,
    task_id: str = "task",
) -> HistoricalLoadEntry:
    """Create a test history entry."""
    return HistoricalLoadEntry(
        date=NOW - timedelta(days=days_ago),
        member_id=member_id,
        task_id=task_id,
        category=category,
        weight=weight,
        was_completed=was_completed,
    )


@pytest.fixture
def service() -> LoadAggregatorService:
    return LoadAggregatorService(EngineConfig())


class TestDecay:
    """Tests for the time decay factor."""

    def test_fresh_entry_counts_fully(self, service):
        assert service.decay(0) == 1.0

    def test_clamps_at_floor(self, service):
        assert service.decay(30) == pytest.approx(0.1)
        assert service.decay(90) == pytest.approx(0.1)

    def test_midway_value(self, service):
        assert service.decay(15) == pytest.approx(0.1 ** 0.5)

    def test_monotonically_non_increasing(self, service):
        values = [service.decay(day / 2) for day in range(0, 100)]

        assert all(a >= b for a, b in zip(values, values[1:]))
        assert all(0.1 <= v <= 1.0 for v in values)


class TestTimeWeightedLoad:
    """Tests for time-weighted and per-category load."""

    def test_no_history_is_zero(self, service):
        assert service.time_weighted_load([], "alice", NOW) == 0.0

    def test_old_entries_fade_but_are_not_dropped(self, service):
        entries = [make_entry(days_ago=0, weight=4), make_entry(days_ago=40, weight=10)]

        assert service.time_weighted_load(entries, "alice", NOW) == pytest.approx(5.0)

    def test_other_members_are_ignored(self, service):
        entries = [make_entry(weight=4), make_entry(weight=9, member_id="bob")]

        assert service.time_weighted_load(entries, "alice", NOW) == pytest.approx(4.0)

    def test_category_breakdown(self, service):
        entries = [
            make_entry(weight=2, category="health"),
            make_entry(weight=1, category="daily"),
            make_entry(weight=3, category="sante"),
        ]

        loads = service.category_load(entries, "alice", NOW)

        assert loads == {TaskCategory.HEALTH: pytest.approx(5.0), TaskCategory.DAILY: pytest.approx(1.0)}

    def test_negative_weight_rejected_at_the_boundary(self):
        with pytest.raises(ValidationError):
            make_entry(weight=-1)

    def test_nan_weight_rejected_at_the_boundary(self):
        with pytest.raises(ValidationError):
            make_entry(weight=float("nan"))


class TestTrend:
    """Tests for trend detection."""

    def test_increasing(self, service):
        entries = [make_entry(days_ago=20, weight=2), make_entry(days_ago=2, weight=4)]

        comparison = service.compare_windows(entries, "alice", NOW)

        assert comparison.direction == LoadTrend.INCREASING
        assert comparison.change_ratio == pytest.approx(1.0)

    def test_decreasing(self, service):
        entries = [make_entry(days_ago=20, weight=4), make_entry(days_ago=2, weight=2)]

        assert service.trend(entries, "alice", NOW) == LoadTrend.DECREASING

    def test_small_change_is_stable(self, service):
        entries = [make_entry(days_ago=20, weight=10), make_entry(days_ago=2, weight=11)]

        assert service.trend(entries, "alice", NOW) == LoadTrend.STABLE

    def test_too_few_data_points_is_stable(self, service):
        comparison = service.compare_windows([make_entry(days_ago=1, weight=8)], "alice", NOW)

        assert comparison.direction == LoadTrend.STABLE
        assert comparison.data_points == 1

    def test_empty_previous_window_is_increasing(self, service):
        entries = [make_entry(days_ago=1, weight=2), make_entry(days_ago=3, weight=2)]

        comparison = service.compare_windows(entries, "alice", NOW)

        assert comparison.direction == LoadTrend.INCREASING
        assert comparison.change_ratio == 1.0


class TestFatigue:
    """Tests for fatigue level and zones."""

    def test_no_history_means_rested(self, service):
        assert service.fatigue([], "alice", NOW) == 0.0

    def test_reference_load_every_day_is_fifty(self, service):
        entries = [make_entry(days_ago=day, weight=8) for day in range(7)]

        assert service.fatigue(entries, "alice", NOW) == 50.0

    def test_double_reference_load_is_seventy_five(self, service):
        entries = [make_entry(days_ago=day, weight=16) for day in range(7)]

        assert service.fatigue(entries, "alice", NOW) == 75.0

    def test_single_heavy_day_does_not_saturate(self, service):
        level = service.fatigue([make_entry(weight=40)], "alice", NOW)

        assert 30.0 < level < 50.0

    def test_entries_outside_window_are_ignored(self, service):
        assert service.fatigue([make_entry(days_ago=10, weight=50)], "alice", NOW) == 0.0

    @pytest.mark.parametrize(
        "level,zone",
        [
            (0, FatigueZone.RESTED),
            (19.9, FatigueZone.RESTED),
            (20, FatigueZone.NORMAL),
            (45, FatigueZone.TIRED),
            (60, FatigueZone.EXHAUSTED),
            (85, FatigueZone.EXHAUSTED),
            (85.1, FatigueZone.BURNOUT),
        ],
    )
    def test_zones(self, service, level, zone):
        assert service.fatigue_zone(level) == zone

    def test_consecutive_high_load_days(self, service):
        entries = [
            make_entry(days_ago=0, weight=10),
            make_entry(days_ago=1, weight=10),
            make_entry(days_ago=3, weight=10),
        ]

        assert service.consecutive_high_load_days(entries, "alice", NOW) == 2

    def test_fatigue_state(self, service):
        entries = [make_entry(days_ago=day, weight=16) for day in range(7)]

        state = service.fatigue_state(entries, "alice", NOW)

        assert state.fatigue == 75.0
        assert state.zone == FatigueZone.EXHAUSTED
        assert state.recent_average_load == 16.0


class TestSummaries:
    """Tests for member and household summaries."""

    def test_member_summary_counts_pending_as_current_load(self, service):
        entries = [
            make_entry(days_ago=1, weight=3, was_completed=False),
            make_entry(days_ago=2, weight=2),
            make_entry(days_ago=10, weight=5),
        ]

        summary = service.summarize_member(HouseholdMember(member_id="alice", member_name="Alice"), entries, NOW)

        assert summary.current_load == 3.0
        assert summary.weekly_load == 5.0
        assert summary.monthly_load == 10.0
        assert summary.pending_tasks == 1
        assert summary.completed_tasks == 2

    def test_household_shares_sum_to_100(self, service):
        members = [
            HouseholdMember(member_id="alice", member_name="Alice"),
            HouseholdMember(member_id="bob", member_name="Bob"),
            HouseholdMember(member_id="carol", member_name="Carol"),
        ]
        entries = [
            make_entry(weight=1, member_id="alice"),
            make_entry(weight=1, member_id="bob"),
            make_entry(weight=1, member_id="carol"),
        ]

        household = service.summarize_household(members, entries, NOW, household_id="h1")

        assert sum(m.balance_percentage for m in household.members) == pytest.approx(100.0)
        assert household.status == BalanceLevel.BALANCED
        assert household.balance_score == pytest.approx(100.0)

    def test_household_without_load_has_zero_shares(self, service):
        members = [HouseholdMember(member_id="alice"), HouseholdMember(member_id="bob")]

        household = service.summarize_household(members, [], NOW)

        assert [m.balance_percentage for m in household.members] == [0.0, 0.0]
        assert household.total_load == 0.0
        assert household.members[0].member_name == "alice"

    def test_household_imbalance_is_classified(self, service):
        members = [HouseholdMember(member_id="alice"), HouseholdMember(member_id="bob")]
        entries = [make_entry(weight=9, member_id="alice"), make_entry(weight=1, member_id="bob")]

        household = service.summarize_household(members, entries, NOW)

        assert household.gini_coefficient == pytest.approx(0.4)
        assert household.status == BalanceLevel.MILD_IMBALANCE

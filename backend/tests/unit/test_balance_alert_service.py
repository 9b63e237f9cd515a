"""
Unit tests for BalanceAlertService.
"""

from datetime import datetime, timedelta, timezone

import pytest

from fairshare.models.engine_config import AlertConfig, EngineConfig
from fairshare.models.enums import (
    AlertSeverity,
    AlertType,
    BalanceLevel,
    DigestTrend,
    LoadTrend,
    NotificationKind,
    RecommendationType,
    RiskLevel,
)
from fairshare.models.load import HistoricalLoadEntry, HouseholdMember, UserLoadSummary
from fairshare.services import balance_alert_service
from fairshare.services.balance_alert_service import BalanceAlertService

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
WEEK_START = datetime(2026, 3, 2, tzinfo=timezone.utc)
WEEK_END = datetime(2026, 3, 8, 23, 59, 59, tzinfo=timezone.utc)

BLAME_WORDS = ("fault", "guilty", "blame", "lazy", "failure")


def make_summary(
    member_id: str,
    share: float,
    current_load: float = 5.0,
    fatigue: float = 10.0,
    trend: LoadTrend = LoadTrend.STABLE,
    completed: int = 3,
) -> UserLoadSummary:
    """Create a test member summary."""
    return UserLoadSummary(
        member_id=member_id,
        member_name=member_id.capitalize(),
        current_load=current_load,
        fatigue_level=fatigue,
        load_trend=trend,
        balance_percentage=share,
        completed_tasks=completed,
    )


def make_entry(when: datetime, member_id: str, weight: float = 2.0, was_completed: bool = True) -> HistoricalLoadEntry:
    """Create a test history entry."""
    return HistoricalLoadEntry(
        date=when, member_id=member_id, task_id=f"{member_id}-{when.isoformat()}", weight=weight, was_completed=was_completed
    )


def assert_no_blame(texts):
    for text in texts:
        lowered = text.lower()
        for word in BLAME_WORDS:
            assert word not in lowered, f"{word!r} found in {text!r}"


@pytest.fixture
def service() -> BalanceAlertService:
    return BalanceAlertService(EngineConfig())


class TestAnalyze:
    """Tests for household status classification."""

    def test_even_split_is_balanced(self, service):
        status = service.analyze([make_summary("alice", 50), make_summary("bob", 50)], "h1", NOW)

        assert status.status == BalanceLevel.BALANCED
        assert status.balance_score == 100.0
        assert status.alerts == []
        assert status.messages

    def test_skewed_split_escalates(self, service):
        """50/50 then 90/10: the score drops and the band gets worse."""
        before = service.analyze([make_summary("alice", 50), make_summary("bob", 50)], "h1", NOW)
        after = service.analyze([make_summary("alice", 90), make_summary("bob", 10)], "h1", NOW)

        assert after.balance_score < before.balance_score
        assert after.balance_score == pytest.approx(60.0)
        assert after.status == BalanceLevel.MILD_IMBALANCE
        assert after.most_loaded.member_id == "alice"
        assert after.least_loaded.member_id == "bob"
        assert after.imbalance_percentage == 80.0

    def test_skewed_split_alerts_and_recommendations(self, service):
        status = service.analyze([make_summary("alice", 90), make_summary("bob", 10)], "h1", NOW)

        types = [(a.type, a.member_id) for a in status.alerts]
        assert (AlertType.IMBALANCE, "alice") in types
        assert status.alerts[0].severity == AlertSeverity.CRITICAL
        assert status.recommendations[0].type == RecommendationType.REASSIGN
        assert status.recommendations[0].from_member == "alice"
        assert status.recommendations[0].to_member == "bob"

    def test_critical_band(self, service):
        members = [make_summary("a", 100), make_summary("b", 0), make_summary("c", 0), make_summary("d", 0)]

        status = service.analyze(members, "h1", NOW)

        assert status.status == BalanceLevel.CRITICAL
        assert RecommendationType.BALANCE in [r.type for r in status.recommendations]

    def test_fatigue_alert_even_when_balanced(self, service):
        """High fatigue is reported independently of the household status."""
        members = [make_summary("alice", 50, fatigue=72), make_summary("bob", 50)]

        status = service.analyze(members, "h1", NOW)

        assert status.status == BalanceLevel.BALANCED
        fatigue = [a for a in status.alerts if a.type == AlertType.FATIGUE]
        assert len(fatigue) == 1
        assert fatigue[0].severity == AlertSeverity.HIGH
        assert status.recommendations[0].type == RecommendationType.REST

    def test_rising_trend_with_fatigue(self, service):
        members = [make_summary("alice", 50, fatigue=45, trend=LoadTrend.INCREASING), make_summary("bob", 50)]

        status = service.analyze(members, "h1", NOW)

        assert [a.type for a in status.alerts] == [AlertType.TREND]
        assert [r.type for r in status.recommendations] == [RecommendationType.SHARE]
        assert "Alice" in status.narrative

    def test_overload_alert(self, service):
        members = [make_summary("alice", 50, current_load=18), make_summary("bob", 50)]

        status = service.analyze(members, "h1", NOW)

        overload = [a for a in status.alerts if a.type == AlertType.OVERLOAD]
        assert overload[0].severity == AlertSeverity.HIGH
        assert overload[0].metric == 90.0
        assert RecommendationType.DELAY in [r.type for r in status.recommendations]

    def test_inactivity_alert(self, service):
        members = [make_summary("alice", 85), make_summary("bob", 15, completed=0)]

        status = service.analyze(members, "h1", NOW)

        inactivity = [a for a in status.alerts if a.type == AlertType.INACTIVITY]
        assert [a.member_id for a in inactivity] == ["bob"]

    def test_single_member_has_no_share_alerts(self, service):
        status = service.analyze([make_summary("alice", 100, completed=0)], "h1", NOW)

        assert status.status == BalanceLevel.BALANCED
        assert status.alerts == []

    def test_empty_household(self, service):
        status = service.analyze([], "h1", NOW)

        assert status.status == BalanceLevel.BALANCED
        assert status.balance_score == 100.0

    def test_alerts_sorted_by_severity(self, service):
        members = [
            make_summary("alice", 90, fatigue=90, current_load=16),
            make_summary("bob", 10),
        ]

        status = service.analyze(members, "h1", NOW)

        ranks = [a.severity.rank for a in status.alerts]
        assert ranks == sorted(ranks, reverse=True)
        priorities = [r.priority for r in status.recommendations]
        assert priorities == sorted(priorities, reverse=True)

    def test_positive_messages_can_be_suppressed(self):
        service = BalanceAlertService(EngineConfig(alerts=AlertConfig(suppress_positive_messages=True)))

        status = service.analyze([make_summary("alice", 50), make_summary("bob", 50)], "h1", NOW)

        assert status.messages == []

    def test_deterministic(self, service):
        members = [make_summary("alice", 70, fatigue=65, trend=LoadTrend.INCREASING), make_summary("bob", 30)]

        assert service.analyze(members, "h1", NOW) == service.analyze(members, "h1", NOW)


class TestNonBlamingLanguage:
    """Generated text never frames load in terms of blame."""

    def test_templates(self):
        texts = [t for table in balance_alert_service.ALERT_MESSAGES.values() for t in table.values()]
        texts += list(balance_alert_service.HOUSEHOLD_MESSAGES.values())
        texts += list(balance_alert_service.POSITIVE_MESSAGES.values())
        texts += list(balance_alert_service.RECOMMENDATION_MESSAGES.values())

        assert_no_blame(texts)

    def test_worst_case_analysis(self, service):
        members = [
            make_summary("a", 100, fatigue=95, current_load=25, trend=LoadTrend.INCREASING),
            make_summary("b", 0, completed=0),
            make_summary("c", 0, completed=0),
            make_summary("d", 0, completed=0),
        ]

        status = service.analyze(members, "h1", NOW)

        assert_no_blame(
            [a.message for a in status.alerts]
            + [r.description for r in status.recommendations]
            + status.messages
            + [status.narrative]
        )


class TestAnalyzeTrend:
    """Tests for trend analysis."""

    def test_moderate_increase(self, service):
        entries = [
            make_entry(NOW - timedelta(days=1), "alice", 10),
            make_entry(NOW - timedelta(days=3), "alice", 10),
            make_entry(NOW - timedelta(days=16), "alice", 5),
            make_entry(NOW - timedelta(days=20), "alice", 5),
        ]

        trend = service.analyze_trend("alice", "Alice", entries, NOW)

        assert trend.direction == LoadTrend.INCREASING
        assert trend.magnitude == 100.0
        assert trend.weekly_average == 10.0
        assert trend.previous_weekly_average == 5.0
        assert trend.projected_load == 20.0
        assert trend.risk_level == RiskLevel.MODERATE
        assert "+100%" in trend.narrative
        assert trend.period_end - trend.period_start == timedelta(days=14)

    def test_critical_increase(self, service):
        entries = [
            make_entry(NOW - timedelta(days=1), "alice", 20),
            make_entry(NOW - timedelta(days=3), "alice", 20),
            make_entry(NOW - timedelta(days=16), "alice", 10),
            make_entry(NOW - timedelta(days=20), "alice", 10),
        ]

        trend = service.analyze_trend("alice", "Alice", entries, NOW)

        assert trend.risk_level == RiskLevel.CRITICAL

    def test_decrease(self, service):
        entries = [
            make_entry(NOW - timedelta(days=1), "alice", 5),
            make_entry(NOW - timedelta(days=16), "alice", 10),
        ]

        trend = service.analyze_trend("alice", "Alice", entries, NOW)

        assert trend.direction == LoadTrend.DECREASING
        assert trend.magnitude == 50.0
        assert trend.risk_level == RiskLevel.LOW

    def test_sparse_history_is_stable(self, service):
        trend = service.analyze_trend("alice", "Alice", [make_entry(NOW - timedelta(days=1), "alice")], NOW)

        assert trend.direction == LoadTrend.STABLE
        assert trend.magnitude == 0.0
        assert_no_blame([trend.narrative])

    def test_narrative_is_deterministic(self, service):
        entries = [make_entry(NOW - timedelta(days=1), "alice", 4), make_entry(NOW - timedelta(days=2), "alice", 4)]

        first = service.analyze_trend("alice", "Alice", entries, NOW)
        second = service.analyze_trend("alice", "Alice", entries, NOW)

        assert first.narrative == second.narrative


class TestWeeklyDigest:
    """Tests for the weekly digest."""

    members = [HouseholdMember(member_id="alice", member_name="Alice"), HouseholdMember(member_id="bob", member_name="Bob")]

    def test_balanced_week(self, service):
        day = WEEK_START + timedelta(days=1)
        entries = [make_entry(day + timedelta(hours=h), "alice") for h in range(3)]
        entries += [make_entry(day + timedelta(hours=h), "bob", was_completed=h > 0) for h in range(3)]

        digest = service.weekly_digest("h1", self.members, entries, WEEK_START, WEEK_END, NOW)

        assert (digest.year, digest.week_number) == (2026, 10)
        assert digest.summary.total_tasks == 6
        assert digest.summary.completed_tasks == 5
        assert digest.summary.completion_rate == 83.3
        assert digest.summary.balance_score == 100.0
        assert digest.summary.trend == DigestTrend.STABLE
        assert digest.alerts == []
        assert "Thanks to Alice for completing 3 tasks." in digest.positive_notes
        assert [s.load_percentage for s in digest.member_stats] == [50.0, 50.0]

    def test_declining_week(self, service):
        previous = WEEK_START - timedelta(days=3)
        entries = [make_entry(previous, "alice", 5), make_entry(previous, "bob", 5)]
        entries += [make_entry(WEEK_START + timedelta(days=2), "alice", 9), make_entry(WEEK_START + timedelta(days=2), "bob", 1)]

        digest = service.weekly_digest("h1", self.members, entries, WEEK_START, WEEK_END, NOW)

        assert digest.summary.balance_score == pytest.approx(60.0)
        assert digest.summary.trend == DigestTrend.DECLINING
        assert any("Alice" in alert for alert in digest.alerts)
        assert len(digest.suggestions) == 2
        assert_no_blame(digest.alerts + digest.suggestions + digest.positive_notes)

    def test_empty_week(self, service):
        digest = service.weekly_digest("h1", self.members, [], WEEK_START, WEEK_END, NOW)

        assert digest.summary.total_tasks == 0
        assert digest.summary.completion_rate == 0.0
        assert digest.alerts == []


class TestNotifications:
    """Tests for notification payload builders."""

    def test_alert_notification(self, service):
        status = service.analyze([make_summary("alice", 50, fatigue=90), make_summary("bob", 50)], "h1", NOW)

        payload = service.alert_notification(status.alerts[0], "h1")

        assert payload.kind == NotificationKind.ALERT
        assert payload.severity == AlertSeverity.CRITICAL
        assert payload.body == status.alerts[0].message
        assert payload.data["member_id"] == "alice"

    def test_recommendation_notification(self, service):
        status = service.analyze([make_summary("alice", 90), make_summary("bob", 10)], "h1", NOW)

        payload = service.recommendation_notification(status.recommendations[0], "h1")

        assert payload.kind == NotificationKind.RECOMMENDATION
        assert payload.data["recommendation_type"] == "reassign"

    def test_digest_notification(self, service):
        digest = service.weekly_digest("h1", TestWeeklyDigest.members, [], WEEK_START, WEEK_END, NOW)

        payload = service.digest_notification(digest)

        assert payload.kind == NotificationKind.DIGEST
        assert payload.title == "Weekly summary - week 10"
        assert payload.data["household_id"] == "h1"

"""
Balance alert service.

Classifies the household balance, raises per-member alerts, proposes
advisory recommendations and writes trend narratives and weekly digests.

All text is built from fixed templates: it describes facts and suggests
actions, and the same input always yields the same wording.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, Optional

from fairshare.core.config import get_engine_config
from fairshare.core.logger import setup_logger
from fairshare.models.balance import (
    BalanceStatus,
    DigestSummary,
    LoadAlert,
    LoadRecommendation,
    MemberDigestStats,
    MemberShare,
    NotificationPayload,
    TrendAnalysis,
    WeeklyDigest,
)
from fairshare.models.engine_config import EngineConfig
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
from fairshare.services import fairness
from fairshare.services.load_service import LoadAggregatorService
from fairshare.utils.datetime_utils import ensure_utc, iso_week, resolve_now

logger = setup_logger(__name__)


# ===========================================
# Message templates
# ===========================================

ALERT_MESSAGES: dict[AlertType, dict[AlertSeverity, str]] = {
    AlertType.IMBALANCE: {
        AlertSeverity.LOW: "The load is slightly uneven; {name} is carrying a bit more.",
        AlertSeverity.MEDIUM: "{name} is carrying a larger share of the load than the others.",
        AlertSeverity.HIGH: "{name} is carrying a clearly larger share; sharing a few tasks would help.",
        AlertSeverity.CRITICAL: "{name} is carrying most of the household load; time to share it out.",
    },
    AlertType.OVERLOAD: {
        AlertSeverity.LOW: "{name} has a fuller week than usual.",
        AlertSeverity.MEDIUM: "{name} is close to a full week of tasks.",
        AlertSeverity.HIGH: "{name} has a very full week; some tasks could move.",
        AlertSeverity.CRITICAL: "{name} is above a sustainable weekly load.",
    },
    AlertType.FATIGUE: {
        AlertSeverity.LOW: "{name} may be starting to feel tired.",
        AlertSeverity.MEDIUM: "{name} shows signs of fatigue; a lighter day would help.",
        AlertSeverity.HIGH: "{name} is tired; planning some rest is a good idea.",
        AlertSeverity.CRITICAL: "{name} needs rest; their well-being comes first.",
    },
    AlertType.TREND: {
        AlertSeverity.LOW: "{name}'s load is worth keeping an eye on.",
        AlertSeverity.MEDIUM: "{name}'s load is rising; let's keep an eye on it together.",
        AlertSeverity.HIGH: "{name}'s load keeps rising.",
        AlertSeverity.CRITICAL: "{name}'s load is rising quickly; some action would help.",
    },
    AlertType.INACTIVITY: {
        AlertSeverity.LOW: "{name} has had fewer tasks lately.",
        AlertSeverity.MEDIUM: "{name} could take on more tasks if available.",
        AlertSeverity.HIGH: "{name} has not taken part for a while.",
        AlertSeverity.CRITICAL: "{name} seems away at the moment; worth checking in.",
    },
    AlertType.UNDERLOAD: {
        AlertSeverity.LOW: "{name} has a light load.",
        AlertSeverity.MEDIUM: "{name} could take on more tasks if available.",
        AlertSeverity.HIGH: "{name} has very few tasks assigned.",
        AlertSeverity.CRITICAL: "{name} has almost no tasks assigned.",
    },
}

HOUSEHOLD_MESSAGES: dict[BalanceLevel, str] = {
    BalanceLevel.MILD_IMBALANCE: "The household load is starting to drift apart.",
    BalanceLevel.IMBALANCE: "The household load is unevenly shared.",
    BalanceLevel.CRITICAL: "The household load rests mostly on one person.",
}

POSITIVE_MESSAGES = {
    "balanced": "Nicely done: the load is well shared.",
    "improving": "The balance improved compared to last week.",
    "completion": "Great completion rate this week.",
}

RECOMMENDATION_MESSAGES: dict[RecommendationType, str] = {
    RecommendationType.REASSIGN: "Moving a few tasks from {from_name} to {to_name} would even out the load.",
    RecommendationType.REST: "Some recovery time for {from_name} would help.",
    RecommendationType.BALANCE: "Reviewing how recurring tasks are shared could help.",
    RecommendationType.SHARE: "Some of {from_name}'s tasks could be done as a pair.",
    RecommendationType.DELAY: "Postponing a few non-urgent tasks of {from_name} would give some room.",
}

ALERT_TITLES: dict[AlertType, str] = {
    AlertType.IMBALANCE: "Load balance",
    AlertType.OVERLOAD: "Busy week",
    AlertType.FATIGUE: "Time to rest",
    AlertType.TREND: "Load trend",
    AlertType.INACTIVITY: "Participation",
    AlertType.UNDERLOAD: "Available capacity",
}

HOUSEHOLD_ALERT_SEVERITY = {
    BalanceLevel.MILD_IMBALANCE: AlertSeverity.MEDIUM,
    BalanceLevel.IMBALANCE: AlertSeverity.HIGH,
    BalanceLevel.CRITICAL: AlertSeverity.CRITICAL,
}

RECOMMENDATION_PRIORITY = {
    RecommendationType.REASSIGN: 8,
    RecommendationType.BALANCE: 6,
    RecommendationType.DELAY: 6,
    RecommendationType.SHARE: 5,
}

# Weekly digest highlight thresholds
HIGHLIGHT_COMPLETED_TASKS = 5
HIGHLIGHT_SHARE_POINTS = 10.0
TOP_CONTRIBUTOR_MIN_TASKS = 3


def _round(value: float) -> float:
    return round(value, 1)


class BalanceAlertService:
    """
    Service for household balance analysis.

    Provides:
    - Balance status (score, band, most/least loaded member)
    - Per-member alerts (fatigue, trend, share outlier, overload, inactivity)
    - Advisory recommendations sorted by priority
    - Trend analysis with risk level and projection
    - Weekly digest and notification payloads
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        load_service: Optional[LoadAggregatorService] = None,
    ):
        config = config or get_engine_config()
        self.config = config.alerts
        self.load_service = load_service or LoadAggregatorService(config)

    # ===========================================
    # Status
    # ===========================================

    def analyze(
        self,
        members: Iterable[UserLoadSummary],
        household_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> BalanceStatus:
        """
        Classify the household balance from the members' load shares.

        Args:
            members: Load summaries of the household members
            household_id: Household identifier copied into the result
            now: Reference time

        Returns:
            BalanceStatus with alerts sorted by severity and recommendations
            sorted by priority
        """
        now = resolve_now(now)
        members = list(members)

        if not members:
            return BalanceStatus(
                household_id=household_id,
                status=BalanceLevel.BALANCED,
                balance_score=100.0,
                gini_coefficient=0.0,
                messages=["No active members in the household yet."],
                narrative="No active members in the household yet.",
                generated_at=now,
            )

        shares = [m.balance_percentage for m in members]
        gini = fairness.gini(shares)
        score = _round(fairness.balance_score(shares))
        status = self.config.band(score)

        ordered = sorted(members, key=lambda m: (-m.balance_percentage, m.member_id))
        most, least = ordered[0], ordered[-1]
        gap = _round(most.balance_percentage - least.balance_percentage)

        alerts = self._member_alerts(members)
        if status != BalanceLevel.BALANCED:
            alerts.append(
                LoadAlert(
                    type=AlertType.IMBALANCE,
                    severity=HOUSEHOLD_ALERT_SEVERITY[status],
                    member_id=most.member_id,
                    member_name=most.member_name,
                    message=HOUSEHOLD_MESSAGES[status],
                    metric=score,
                )
            )
        alerts.sort(key=lambda a: -a.severity.rank)

        recommendations = self._recommendations(members, alerts, status, score, most, least, gap)
        recommendations.sort(key=lambda r: -r.priority)

        messages = []
        if status == BalanceLevel.BALANCED and not self.config.suppress_positive_messages:
            messages.append(POSITIVE_MESSAGES["balanced"])
        if status != BalanceLevel.BALANCED:
            critical = sum(1 for a in alerts if a.severity == AlertSeverity.CRITICAL)
            if critical:
                messages.append(f"{critical} point(s) need attention soon.")

        logger.info(
            f"Household {household_id or '-'} balance {score:.1f} ({status.value}): "
            f"{len(alerts)} alerts, {len(recommendations)} recommendations"
        )

        return BalanceStatus(
            household_id=household_id,
            status=status,
            balance_score=score,
            gini_coefficient=gini,
            imbalance_percentage=gap,
            most_loaded=MemberShare(
                member_id=most.member_id, member_name=most.member_name, percentage=most.balance_percentage
            ),
            least_loaded=MemberShare(
                member_id=least.member_id, member_name=least.member_name, percentage=least.balance_percentage
            ),
            alerts=alerts,
            recommendations=recommendations,
            messages=messages,
            narrative=self._status_narrative(members, status, score, most),
            generated_at=now,
        )

    def _alert(self, kind: AlertType, severity: AlertSeverity, member: UserLoadSummary, metric: float) -> LoadAlert:
        return LoadAlert(
            type=kind,
            severity=severity,
            member_id=member.member_id,
            member_name=member.member_name,
            message=ALERT_MESSAGES[kind][severity].format(name=member.member_name),
            metric=_round(metric),
        )

    def _member_alerts(self, members: list[UserLoadSummary]) -> list[LoadAlert]:
        cfg = self.config
        ideal = 100.0 / len(members)
        multi_member = len(members) > 1
        alerts: list[LoadAlert] = []

        for member in members:
            load_ratio = member.current_load / cfg.reference_weekly_capacity * 100
            if load_ratio >= cfg.overload_ratio_min:
                severity = cfg.severity(load_ratio, cfg.overload_severity)
                alerts.append(self._alert(AlertType.OVERLOAD, severity, member, load_ratio))

            if member.fatigue_level >= cfg.fatigue_alert_min:
                severity = cfg.severity(member.fatigue_level, cfg.fatigue_severity)
                alerts.append(self._alert(AlertType.FATIGUE, severity, member, member.fatigue_level))

            if member.load_trend == LoadTrend.INCREASING and member.fatigue_level > cfg.trend_fatigue_min:
                alerts.append(self._alert(AlertType.TREND, AlertSeverity.MEDIUM, member, member.fatigue_level))

            if multi_member and member.balance_percentage - ideal >= cfg.outlier_share_points:
                severity = cfg.severity(member.balance_percentage, cfg.outlier_severity)
                alerts.append(self._alert(AlertType.IMBALANCE, severity, member, member.balance_percentage))

            if (
                multi_member
                and member.balance_percentage < cfg.inactivity_share_max
                and member.completed_tasks == 0
            ):
                alerts.append(
                    self._alert(AlertType.INACTIVITY, AlertSeverity.LOW, member, member.balance_percentage)
                )

        return alerts

    def _recommendations(
        self,
        members: list[UserLoadSummary],
        alerts: list[LoadAlert],
        status: BalanceLevel,
        score: float,
        most: UserLoadSummary,
        least: UserLoadSummary,
        gap: float,
    ) -> list[LoadRecommendation]:
        cfg = self.config
        recommendations: list[LoadRecommendation] = []

        if status != BalanceLevel.BALANCED and gap > cfg.reassign_gap_points:
            recommendations.append(
                LoadRecommendation(
                    type=RecommendationType.REASSIGN,
                    priority=RECOMMENDATION_PRIORITY[RecommendationType.REASSIGN],
                    description=RECOMMENDATION_MESSAGES[RecommendationType.REASSIGN].format(
                        from_name=most.member_name, to_name=least.member_name
                    ),
                    from_member=most.member_id,
                    to_member=least.member_id,
                    expected_improvement=_round(gap / 3),
                )
            )

        for member in members:
            if member.fatigue_level >= cfg.fatigue_alert_min:
                recommendations.append(
                    LoadRecommendation(
                        type=RecommendationType.REST,
                        priority=10 if member.fatigue_level >= cfg.fatigue_severity[2] else 7,
                        description=RECOMMENDATION_MESSAGES[RecommendationType.REST].format(
                            from_name=member.member_name
                        ),
                        from_member=member.member_id,
                        expected_improvement=20.0,
                    )
                )
            if member.load_trend == LoadTrend.INCREASING and member.fatigue_level > cfg.trend_fatigue_min:
                recommendations.append(
                    LoadRecommendation(
                        type=RecommendationType.SHARE,
                        priority=RECOMMENDATION_PRIORITY[RecommendationType.SHARE],
                        description=RECOMMENDATION_MESSAGES[RecommendationType.SHARE].format(
                            from_name=member.member_name
                        ),
                        from_member=member.member_id,
                        expected_improvement=10.0,
                    )
                )

        if status in (BalanceLevel.IMBALANCE, BalanceLevel.CRITICAL):
            recommendations.append(
                LoadRecommendation(
                    type=RecommendationType.BALANCE,
                    priority=RECOMMENDATION_PRIORITY[RecommendationType.BALANCE],
                    description=RECOMMENDATION_MESSAGES[RecommendationType.BALANCE],
                    expected_improvement=_round(cfg.balanced_min - score),
                )
            )

        overloaded = {a.member_id for a in alerts if a.type == AlertType.OVERLOAD}
        for member in members:
            if member.member_id in overloaded:
                recommendations.append(
                    LoadRecommendation(
                        type=RecommendationType.DELAY,
                        priority=RECOMMENDATION_PRIORITY[RecommendationType.DELAY],
                        description=RECOMMENDATION_MESSAGES[RecommendationType.DELAY].format(
                            from_name=member.member_name
                        ),
                        from_member=member.member_id,
                        expected_improvement=15.0,
                    )
                )

        return recommendations

    @staticmethod
    def _status_narrative(
        members: list[UserLoadSummary], status: BalanceLevel, score: float, most: UserLoadSummary
    ) -> str:
        if status == BalanceLevel.BALANCED:
            narrative = f"The load is evenly shared (balance score {score:.0f})."
        else:
            narrative = (
                f"{most.member_name} carries {most.balance_percentage:.0f}% of the household load "
                f"(balance score {score:.0f}, {status.value})."
            )
        rising = [m.member_name for m in members if m.load_trend == LoadTrend.INCREASING]
        if rising:
            narrative += f" Rising load: {', '.join(sorted(rising))}."
        return narrative

    # ===========================================
    # Trend
    # ===========================================

    def analyze_trend(
        self,
        member_id: str,
        member_name: str,
        entries: Iterable[HistoricalLoadEntry],
        now: Optional[datetime] = None,
        window_days: Optional[int] = None,
    ) -> TrendAnalysis:
        """
        Compare the last window with the one before and project the next week.

        Risk is high when the load is increasing on top of a heavy weekly
        average, critical when the projection also exceeds the critical mark.
        """
        now = resolve_now(now)
        cfg = self.config
        window = window_days or cfg.trend_window_days
        comparison = self.load_service.compare_windows(entries, member_id, now, window_days=window)

        weekly = comparison.recent_daily * 7
        previous_weekly = comparison.previous_daily * 7
        change = comparison.change_ratio
        magnitude = _round(abs(change) * 100)
        projected = max(0.0, weekly * (1 + change))
        direction = comparison.direction

        if direction == LoadTrend.INCREASING and weekly > cfg.trend_risk_weekly_load:
            risk = RiskLevel.CRITICAL if projected > cfg.trend_critical_projection else RiskLevel.HIGH
        elif direction == LoadTrend.INCREASING:
            risk = RiskLevel.MODERATE
        else:
            risk = RiskLevel.LOW

        if direction == LoadTrend.INCREASING:
            narrative = f"{member_name}'s load is going up (+{magnitude:.0f}%). "
            if risk in (RiskLevel.HIGH, RiskLevel.CRITICAL):
                narrative += "It deserves particular attention."
            else:
                narrative += "Worth keeping an eye on over the next few days."
        elif direction == LoadTrend.DECREASING:
            narrative = f"{member_name}'s load is easing (-{magnitude:.0f}%). Taking care of yourself matters."
        else:
            narrative = f"{member_name}'s load is stable."
            if weekly > cfg.trend_risk_weekly_load:
                narrative += " Keeping a sustainable pace is worth it."

        return TrendAnalysis(
            member_id=member_id,
            member_name=member_name,
            period_start=now - timedelta(days=window),
            period_end=now,
            window_days=window,
            direction=direction,
            magnitude=magnitude,
            weekly_average=_round(weekly),
            previous_weekly_average=_round(previous_weekly),
            projected_load=_round(projected),
            risk_level=risk,
            narrative=narrative,
        )

    # ===========================================
    # Weekly digest
    # ===========================================

    @staticmethod
    def _week_loads(
        members: list[HouseholdMember], entries: list[HistoricalLoadEntry]
    ) -> list[float]:
        return [sum(e.weight for e in entries if e.member_id == m.member_id) for m in members]

    def weekly_digest(
        self,
        household_id: Optional[str],
        members: Iterable[HouseholdMember],
        entries: Iterable[HistoricalLoadEntry],
        week_start: datetime,
        week_end: datetime,
        now: Optional[datetime] = None,
    ) -> WeeklyDigest:
        """
        Summarize one week of household activity.

        The week's balance score is compared with the previous seven days
        to report improving / stable / declining.
        """
        now = resolve_now(now)
        cfg = self.config
        members = list(members)
        entries = list(entries)
        week_start = ensure_utc(week_start)
        week_end = ensure_utc(week_end)
        year, week_number = iso_week(week_start)

        week_entries = [e for e in entries if week_start <= e.date <= week_end]
        total_tasks = len(week_entries)
        completed_tasks = sum(1 for e in week_entries if e.was_completed)
        completion_rate = _round(completed_tasks / total_tasks * 100) if total_tasks else 0.0

        loads = self._week_loads(members, week_entries)
        shares = fairness.load_shares(loads)
        score = _round(fairness.balance_score(loads))

        previous_start = week_start - timedelta(days=7)
        previous_entries = [e for e in entries if previous_start <= e.date < week_start]
        previous_score = fairness.balance_score(self._week_loads(members, previous_entries))
        if score > previous_score + cfg.digest_trend_points:
            trend = DigestTrend.IMPROVING
        elif score < previous_score - cfg.digest_trend_points:
            trend = DigestTrend.DECLINING
        else:
            trend = DigestTrend.STABLE

        ideal = 100.0 / len(members) if members else 0.0
        member_stats = []
        for member, share in zip(members, shares):
            own = [e for e in week_entries if e.member_id == member.member_id]
            completed = sum(1 for e in own if e.was_completed)
            highlights = []
            if completed > HIGHLIGHT_COMPLETED_TASKS:
                highlights.append(f"{completed} tasks completed")
            if share > ideal + HIGHLIGHT_SHARE_POINTS:
                highlights.append("Heavier load this week")
            elif share < ideal - HIGHLIGHT_SHARE_POINTS and own:
                highlights.append("Lighter week")
            member_stats.append(
                MemberDigestStats(
                    member_id=member.member_id,
                    member_name=member.member_name or member.member_id,
                    tasks_assigned=len(own),
                    tasks_completed=completed,
                    load_percentage=share,
                    trend=self.load_service.trend(entries, member.member_id, now),
                    highlights=highlights,
                )
            )

        alerts = []
        if score < cfg.mild_imbalance_min:
            alerts.append("The load was unevenly shared this week.")
        if total_tasks and completion_rate < cfg.digest_low_completion:
            alerts.append(f"Completion rate was {completion_rate:.0f}%; the week may have been overbooked.")
        for stats in member_stats:
            if stats.load_percentage > cfg.digest_heavy_share:
                alerts.append(f"{stats.member_name} carried a large share of the load ({stats.load_percentage:.0f}%).")

        positive_notes = []
        if score >= cfg.balanced_min:
            positive_notes.append(POSITIVE_MESSAGES["balanced"])
        if trend == DigestTrend.IMPROVING:
            positive_notes.append(POSITIVE_MESSAGES["improving"])
        if total_tasks and completion_rate >= cfg.digest_high_completion:
            positive_notes.append(POSITIVE_MESSAGES["completion"])
        contributors = sorted(
            (s for s in member_stats if s.tasks_completed >= TOP_CONTRIBUTOR_MIN_TASKS),
            key=lambda s: (-s.tasks_completed, s.member_id),
        )
        if contributors:
            top = contributors[0]
            positive_notes.append(f"Thanks to {top.member_name} for completing {top.tasks_completed} tasks.")

        suggestions = []
        if trend == DigestTrend.DECLINING:
            suggestions.append("Take a moment together to review how tasks are shared.")
        if cfg.band(score) != BalanceLevel.BALANCED:
            suggestions.append(RECOMMENDATION_MESSAGES[RecommendationType.BALANCE])

        logger.info(
            f"Weekly digest {household_id or '-'} {year}-W{week_number:02d}: "
            f"{total_tasks} tasks, balance {score:.1f} ({trend.value})"
        )

        return WeeklyDigest(
            household_id=household_id,
            week_number=week_number,
            year=year,
            period_start=week_start,
            period_end=week_end,
            summary=DigestSummary(
                total_tasks=total_tasks,
                completed_tasks=completed_tasks,
                completion_rate=completion_rate,
                balance_score=score,
                trend=trend,
            ),
            member_stats=member_stats,
            alerts=alerts,
            positive_notes=positive_notes,
            suggestions=suggestions,
            generated_at=now,
        )

    # ===========================================
    # Notification payloads
    # ===========================================

    @staticmethod
    def alert_notification(alert: LoadAlert, household_id: Optional[str] = None) -> NotificationPayload:
        return NotificationPayload(
            kind=NotificationKind.ALERT,
            title=ALERT_TITLES[alert.type],
            body=alert.message,
            severity=alert.severity,
            data={
                "household_id": household_id,
                "member_id": alert.member_id,
                "alert_type": alert.type.value,
                "metric": alert.metric,
            },
        )

    @staticmethod
    def recommendation_notification(
        recommendation: LoadRecommendation, household_id: Optional[str] = None
    ) -> NotificationPayload:
        return NotificationPayload(
            kind=NotificationKind.RECOMMENDATION,
            title="Suggestion",
            body=recommendation.description,
            data={
                "household_id": household_id,
                "recommendation_type": recommendation.type.value,
                "from_member": recommendation.from_member,
                "to_member": recommendation.to_member,
                "priority": recommendation.priority,
            },
        )

    @staticmethod
    def digest_notification(digest: WeeklyDigest) -> NotificationPayload:
        summary = digest.summary
        body = (
            f"Balance score {summary.balance_score:.0f}, "
            f"{summary.completed_tasks}/{summary.total_tasks} tasks completed "
            f"({summary.completion_rate:.0f}%)."
        )
        if digest.positive_notes:
            body += f" {digest.positive_notes[0]}"
        return NotificationPayload(
            kind=NotificationKind.DIGEST,
            title=f"Weekly summary - week {digest.week_number}",
            body=body,
            data={
                "household_id": digest.household_id,
                "year": digest.year,
                "week_number": digest.week_number,
                "trend": summary.trend.value,
            },
        )

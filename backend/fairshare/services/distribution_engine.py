"""
Load distribution engine.

Single entry point wiring the weight model, load aggregator, assignment
optimizer and balance analyzer to one EngineConfig.
"""

from datetime import datetime
from typing import Iterable, Optional

from fairshare.core.config import get_engine_config
from fairshare.core.logger import logger
from fairshare.models.assignment import (
    BatchAssignmentResult,
    CurrentAssignment,
    ReassignmentSuggestion,
)
from fairshare.models.balance import HouseholdAnalysis, TrendAnalysis, WeeklyDigest
from fairshare.models.engine_config import EngineConfig
from fairshare.models.load import HistoricalLoadEntry, HouseholdLoad, HouseholdMember
from fairshare.models.member import MemberAvailability
from fairshare.models.task_weight import TaskWeightInput, WeightResult
from fairshare.services.assignment_service import AssignmentOutcome, AssignmentService
from fairshare.services.balance_alert_service import BalanceAlertService
from fairshare.services.load_service import LoadAggregatorService
from fairshare.services.rotation_tracker import RotationTracker
from fairshare.services.weight_service import WeightService
from fairshare.utils.datetime_utils import resolve_now


class LoadDistributionEngine:
    """
    Facade over the load engine services.

    Stateless apart from the configuration; rotation state is owned by the
    caller through the RotationTracker it passes in.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or get_engine_config()
        self.weights = WeightService(self.config.weights)
        self.loads = LoadAggregatorService(self.config)
        self.assignments = AssignmentService(
            self.config, weight_service=self.weights, load_service=self.loads
        )
        self.alerts = BalanceAlertService(self.config, load_service=self.loads)
        logger.debug(f"Load distribution engine ready (config {self.config.version})")

    def weigh(self, task: TaskWeightInput, now: Optional[datetime] = None) -> WeightResult:
        return self.weights.weight(task, now)

    def summarize_household(
        self,
        members: Iterable[HouseholdMember],
        entries: Iterable[HistoricalLoadEntry],
        now: Optional[datetime] = None,
        household_id: Optional[str] = None,
    ) -> HouseholdLoad:
        return self.loads.summarize_household(members, entries, now, household_id)

    def find_optimal_assignee(
        self,
        task: TaskWeightInput,
        candidates: Iterable[MemberAvailability],
        history: Iterable[HistoricalLoadEntry] = (),
        tracker: Optional[RotationTracker] = None,
        now: Optional[datetime] = None,
        force_assignee: Optional[str] = None,
        task_weight: Optional[float] = None,
    ) -> AssignmentOutcome:
        return self.assignments.find_optimal_assignee(
            task,
            candidates,
            history,
            tracker,
            now,
            force_assignee=force_assignee,
            task_weight=task_weight,
        )

    def assign_batch(
        self,
        tasks: Iterable[TaskWeightInput],
        candidates: Iterable[MemberAvailability],
        history: Iterable[HistoricalLoadEntry] = (),
        tracker: Optional[RotationTracker] = None,
        now: Optional[datetime] = None,
        forced_assignees: Optional[dict[str, str]] = None,
    ) -> BatchAssignmentResult:
        return self.assignments.assign_batch(
            tasks, candidates, history, tracker, now, forced_assignees=forced_assignees
        )

    def suggest_reassignments(
        self,
        assignments: Iterable[CurrentAssignment],
        members: Iterable[MemberAvailability],
        now: Optional[datetime] = None,
    ) -> list[ReassignmentSuggestion]:
        return self.assignments.suggest_reassignments(assignments, members, now)

    def analyze_trend(
        self,
        member_id: str,
        member_name: str,
        entries: Iterable[HistoricalLoadEntry],
        now: Optional[datetime] = None,
    ) -> TrendAnalysis:
        return self.alerts.analyze_trend(member_id, member_name, entries, now)

    def analyze_household(
        self,
        members: Iterable[HouseholdMember],
        entries: Iterable[HistoricalLoadEntry],
        now: Optional[datetime] = None,
        household_id: Optional[str] = None,
    ) -> HouseholdAnalysis:
        """
        Summaries, balance status and trends from one history slice.

        Args:
            members: Household members
            entries: Historical load entries of the lookback window
            now: Reference time shared by every step
            household_id: Household identifier copied into the results

        Returns:
            HouseholdAnalysis
        """
        now = resolve_now(now)
        members = list(members)
        entries = list(entries)

        distribution = self.loads.summarize_household(members, entries, now, household_id)
        balance = self.alerts.analyze(distribution.members, household_id, now)
        trends = [
            self.alerts.analyze_trend(summary.member_id, summary.member_name, entries, now)
            for summary in distribution.members
        ]
        logger.info(
            f"Analyzed household {household_id or '-'}: {balance.status.value}, "
            f"{len(balance.alerts)} alerts"
        )
        return HouseholdAnalysis(distribution=distribution, balance=balance, trends=trends)

    def weekly_digest(
        self,
        household_id: Optional[str],
        members: Iterable[HouseholdMember],
        entries: Iterable[HistoricalLoadEntry],
        week_start: datetime,
        week_end: datetime,
        now: Optional[datetime] = None,
    ) -> WeeklyDigest:
        return self.alerts.weekly_digest(household_id, members, entries, week_start, week_end, now)

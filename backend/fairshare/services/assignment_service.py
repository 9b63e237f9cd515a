"""
Assignment service choosing the best member for a task.

Planning run: Filter (hard constraints) -> Score (six soft components) ->
Rank -> optional forced override -> Commit (batch mode updates working loads
and the rotation tracker before the next task).
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Union

from fairshare.core.config import get_engine_config
from fairshare.core.logger import setup_logger
from fairshare.models.assignment import (
    AlternativeCandidate,
    AssignmentResult,
    AssignmentScore,
    AssignmentStats,
    BalanceImpact,
    BatchAssignmentResult,
    CurrentAssignment,
    EligibilityCheck,
    ReassignmentSuggestion,
    ScoreComponents,
    UnassignedTask,
)
from fairshare.models.engine_config import EngineConfig
from fairshare.models.enums import TaskCategory
from fairshare.models.load import HistoricalLoadEntry
from fairshare.models.member import MemberAvailability
from fairshare.models.task_weight import TaskWeightInput
from fairshare.services import fairness
from fairshare.services.availability_utils import (
    active_exclusion,
    capacity_of,
    upcoming_exclusions,
    with_load,
)
from fairshare.services.load_service import LoadAggregatorService
from fairshare.services.rotation_tracker import RotationTracker
from fairshare.services.weight_service import WeightService
from fairshare.utils.datetime_utils import age_in_days, resolve_now
from fairshare.utils.validation import ensure_load_value

logger = setup_logger(__name__)

AssignmentOutcome = Union[AssignmentResult, UnassignedTask]


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def _name(member: MemberAvailability) -> str:
    return member.member_name or member.member_id


class AssignmentService:
    """
    Service for fair task assignment.

    Provides:
    - Eligibility filtering (activity, exclusion periods, blocked categories,
      skills, capacity)
    - Six-component weighted scoring with deterministic tie-breaks
    - Forced assignment that annotates instead of failing
    - Greedy sequential batch assignment
    - Advisory reassignment suggestions
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        weight_service: Optional[WeightService] = None,
        load_service: Optional[LoadAggregatorService] = None,
    ):
        config = config or get_engine_config()
        self.config = config.optimizer
        self.scoring_weights = config.optimizer.scoring_weights
        self.weight_service = weight_service or WeightService(config.weights)
        self.load_service = load_service or LoadAggregatorService(config)

    # ===========================================
    # Filter
    # ===========================================

    def capacity(self, member: MemberAvailability) -> float:
        return capacity_of(member, self.config.default_max_weekly_load)

    def check_eligibility(
        self,
        member: MemberAvailability,
        task: TaskWeightInput,
        task_weight: float,
        now: Optional[datetime] = None,
    ) -> EligibilityCheck:
        """
        Apply the hard constraints; the first failing one is the reason.

        A partial skill match stays eligible (it only lowers the skill score);
        no overlap at all with the required skills excludes.
        """
        now = resolve_now(now)
        if not member.is_active:
            return EligibilityCheck(eligible=False, reason="inactive member")

        period = active_exclusion(member, now)
        if period is not None:
            label = period.reason or "unavailable"
            return EligibilityCheck(
                eligible=False,
                reason=f"excluded ({label}) until {period.end.date().isoformat()}",
            )

        if task.category in member.blocked_categories:
            return EligibilityCheck(eligible=False, reason=f"blocked category: {task.category.value}")

        if task.required_skills and not (task.required_skills & member.skills):
            missing = ", ".join(sorted(task.required_skills))
            return EligibilityCheck(eligible=False, reason=f"missing required skills: {missing}")

        capacity = self.capacity(member)
        if member.current_load + task_weight > capacity:
            return EligibilityCheck(
                eligible=False,
                reason=(
                    f"over capacity: current load {member.current_load:.1f} + task "
                    f"{task_weight:.1f} exceeds {capacity:.1f}"
                ),
            )

        return EligibilityCheck(eligible=True)

    # ===========================================
    # Component scores
    # ===========================================

    @staticmethod
    def household_average_load(candidates: Iterable[MemberAvailability]) -> float:
        loads = [m.current_load for m in candidates if m.is_active]
        return sum(loads) / len(loads) if loads else 0.0

    def load_balance_score(self, member: MemberAvailability, average_load: float) -> float:
        """Higher the further the member sits below the household average."""
        if average_load <= 0:
            return 50.0
        return _clamp(50.0 + 50.0 * (average_load - member.current_load) / average_load)

    def category_preference_score(self, member: MemberAvailability, category: TaskCategory) -> float:
        if category in member.preferred_categories:
            return self.config.preferred_category_score
        return self.config.neutral_category_score

    @staticmethod
    def skill_match_score(member: MemberAvailability, required_skills: frozenset[str]) -> float:
        if not required_skills:
            return 100.0
        matched = len(required_skills & member.skills)
        return 100.0 * matched / len(required_skills)

    def availability_score(
        self,
        member: MemberAvailability,
        task_weight: float,
        now: Optional[datetime] = None,
    ) -> float:
        """
        Remaining headroom after taking the task, saturating at 100.

        Loses a fixed penalty when an exclusion period starts soon.
        """
        now = resolve_now(now)
        capacity = self.capacity(member)
        headroom = capacity - member.current_load - task_weight
        score = 100.0 * _clamp(headroom / capacity / self.config.availability_saturation, 0.0, 1.0)
        if upcoming_exclusions(member, now, days_ahead=self.config.upcoming_exclusion_days):
            score -= self.config.upcoming_exclusion_penalty
        return _clamp(score)

    def rotation_score(
        self,
        member: MemberAvailability,
        category: TaskCategory,
        tracker: RotationTracker,
        now: Optional[datetime] = None,
    ) -> float:
        """
        100 for a member who never received the category.

        Otherwise recovers linearly from the floor to 100 over recovery_days
        since the latest assignment (run tracker or durable profile), minus a
        penalty for being the run's last assignee and for each pick this run.
        """
        now = resolve_now(now)
        rotation = self.config.rotation
        moments = [
            moment
            for moment in (tracker.last_assigned(category, member.member_id), member.last_assigned.get(category))
            if moment is not None
        ]
        if not moments:
            return 100.0

        days_since = age_in_days(max(moments), now)
        score = rotation.floor + (100.0 - rotation.floor) * min(1.0, days_since / rotation.recovery_days)
        if tracker.last_assignee(category) == member.member_id:
            score -= rotation.last_assignee_penalty
        score -= rotation.pick_penalty * tracker.picks(category, member.member_id)
        return _clamp(score)

    @staticmethod
    def fatigue_score(fatigue_level: float) -> float:
        return _clamp(100.0 - fatigue_level)

    def member_fatigue(
        self,
        member: MemberAvailability,
        history: Iterable[HistoricalLoadEntry],
        now: datetime,
    ) -> float:
        if member.fatigue_level is not None:
            return member.fatigue_level
        return self.load_service.fatigue(history, member.member_id, now)

    def weighted_total(self, components: ScoreComponents) -> float:
        w = self.scoring_weights
        total = (
            components.load_balance * w.load_balance
            + components.category_preference * w.category_preference
            + components.skill_match * w.skill_match
            + components.availability * w.availability
            + components.rotation * w.rotation
            + components.fatigue * w.fatigue
        )
        return round(total, 2)

    def score_candidate(
        self,
        member: MemberAvailability,
        task: TaskWeightInput,
        task_weight: float,
        average_load: float,
        history: list[HistoricalLoadEntry],
        tracker: RotationTracker,
        now: datetime,
        score_ineligible: bool = False,
    ) -> AssignmentScore:
        """
        Eligibility first, then the six components.

        Ineligible members get no components unless `score_ineligible` is set
        (forced assignments report them for transparency).
        """
        eligibility = self.check_eligibility(member, task, task_weight, now)
        if not eligibility.eligible and not score_ineligible:
            return AssignmentScore(
                member_id=member.member_id,
                member_name=_name(member),
                current_load=member.current_load,
                eligible=False,
                disqualify_reason=eligibility.reason,
            )

        components = ScoreComponents(
            load_balance=self.load_balance_score(member, average_load),
            category_preference=self.category_preference_score(member, task.category),
            skill_match=self.skill_match_score(member, task.required_skills),
            availability=self.availability_score(member, task_weight, now),
            rotation=self.rotation_score(member, task.category, tracker, now),
            fatigue=self.fatigue_score(self.member_fatigue(member, history, now)),
        )
        return AssignmentScore(
            member_id=member.member_id,
            member_name=_name(member),
            current_load=member.current_load,
            eligible=eligibility.eligible,
            total_score=self.weighted_total(components),
            components=components,
            disqualify_reason=eligibility.reason,
        )

    @staticmethod
    def rank(scores: Iterable[AssignmentScore]) -> list[AssignmentScore]:
        """Eligible scores by total desc, then lowest current load, then member id."""
        eligible = [s for s in scores if s.eligible]
        return sorted(eligible, key=lambda s: (-s.total_score, s.current_load, s.member_id))

    # ===========================================
    # Selection
    # ===========================================

    def resolve_task_weight(
        self, task: TaskWeightInput, now: datetime, task_weight: Optional[float] = None
    ) -> float:
        """Caller-resolved weight when given (validated), else the weight model's."""
        if task_weight is not None:
            return ensure_load_value(task_weight, "task_weight")
        return self.weight_service.weight(task, now).adjusted_weight

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
        """
        Choose the best member for one task.

        Args:
            task: Task to assign
            candidates: Household roster with availability profiles
            history: Historical entries (fatigue for members without a fatigue level)
            tracker: Rotation tracker of the current run (None = empty)
            now: Reference time
            force_assignee: Member id that must receive the task
            task_weight: Pre-resolved weight (None = compute with the weight model)

        Returns:
            AssignmentResult, or UnassignedTask when nobody is eligible and no
            forced assignee applies. Never raises for unassignable tasks.
        """
        now = resolve_now(now)
        candidates = list(candidates)
        history = list(history)
        tracker = tracker or RotationTracker()
        weight = self.resolve_task_weight(task, now, task_weight)
        average = self.household_average_load(candidates)
        explanation: list[str] = []

        scores = [
            self.score_candidate(member, task, weight, average, history, tracker, now)
            for member in candidates
        ]
        ranked = self.rank(scores)

        if force_assignee is not None:
            forced = next((m for m in candidates if m.member_id == force_assignee), None)
            if forced is not None:
                return self._forced_result(task, forced, weight, average, history, tracker, now, ranked)
            explanation.append(f"Requested assignee {force_assignee} is not in the roster; scoring normally")
            logger.warning(f"Forced assignee {force_assignee} not found for task {task.task_id}")

        if not ranked:
            candidate_reasons = [f"{s.member_name}: {s.disqualify_reason}" for s in scores]
            reason = (
                "no eligible member: all over capacity, excluded or blocked"
                if candidates
                else "no eligible member: no candidates supplied"
            )
            logger.info(f"Task {task.task_id} unassigned ({reason})")
            return UnassignedTask(task_id=task.task_id, reason=reason, candidate_reasons=candidate_reasons)

        best = ranked[0]
        explanation.append(f"Selected {best.member_name} (score {best.total_score:.1f})")
        explanation.append(
            f"Current load {best.current_load:.1f} against a household average of {average:.1f}"
        )
        for other in sorted(scores, key=lambda s: (-s.current_load, s.member_id)):
            if other.member_id != best.member_id and other.current_load > best.current_load:
                explanation.append(f"{other.member_name} carries a higher current load ({other.current_load:.1f})")
        explanation.extend(self._component_notes(best, task))
        for score in scores:
            if not score.eligible:
                explanation.append(f"{score.member_name} not eligible: {score.disqualify_reason}")

        logger.info(
            f"Task {task.task_id} ({task.category.value}, weight {weight:.2f}) -> "
            f"{best.member_id} (score {best.total_score:.2f}, {len(ranked)}/{len(scores)} eligible)"
        )

        return AssignmentResult(
            task_id=task.task_id,
            category=task.category,
            assigned_to=best.member_id,
            assigned_to_name=best.member_name,
            task_weight=weight,
            score=best,
            alternative_candidates=self._alternatives(ranked, exclude=best.member_id),
            ranked=ranked,
            was_forced=False,
            explanation=explanation,
        )

    def _forced_result(
        self,
        task: TaskWeightInput,
        member: MemberAvailability,
        weight: float,
        average: float,
        history: list[HistoricalLoadEntry],
        tracker: RotationTracker,
        now: datetime,
        ranked: list[AssignmentScore],
    ) -> AssignmentResult:
        score = self.score_candidate(
            member, task, weight, average, history, tracker, now, score_ineligible=True
        )
        explanation = [f"Forced assignment to {score.member_name} (score {score.total_score:.1f})"]
        if not score.eligible:
            explanation.append(f"Note: {score.member_name} would not be eligible: {score.disqualify_reason}")
        if ranked and ranked[0].member_id != member.member_id:
            explanation.append(
                f"Best scored candidate was {ranked[0].member_name} (score {ranked[0].total_score:.1f})"
            )
        logger.info(f"Task {task.task_id} force-assigned to {member.member_id} (eligible={score.eligible})")
        return AssignmentResult(
            task_id=task.task_id,
            category=task.category,
            assigned_to=member.member_id,
            assigned_to_name=score.member_name,
            task_weight=weight,
            score=score,
            alternative_candidates=self._alternatives(ranked, exclude=member.member_id),
            ranked=ranked,
            was_forced=True,
            explanation=explanation,
        )

    def _alternatives(self, ranked: list[AssignmentScore], exclude: str) -> list[AlternativeCandidate]:
        return [
            AlternativeCandidate(member_id=s.member_id, member_name=s.member_name, total_score=s.total_score)
            for s in ranked
            if s.member_id != exclude
        ][: self.config.alternatives_count]

    @staticmethod
    def _component_notes(best: AssignmentScore, task: TaskWeightInput) -> list[str]:
        notes = []
        components = best.components
        if components is None:
            return notes
        if components.category_preference >= 100:
            notes.append(f"Prefers {task.category.value} tasks")
        if components.skill_match < 100:
            notes.append(f"Partial skill match ({components.skill_match:.0f}%)")
        if components.rotation < 50:
            notes.append("Received this category recently; rotation score is low")
        if components.fatigue < 50:
            notes.append("Fatigue level is elevated")
        return notes

    # ===========================================
    # Batch
    # ===========================================

    def assign_batch(
        self,
        tasks: Iterable[TaskWeightInput],
        candidates: Iterable[MemberAvailability],
        history: Iterable[HistoricalLoadEntry] = (),
        tracker: Optional[RotationTracker] = None,
        now: Optional[datetime] = None,
        forced_assignees: Optional[dict[str, str]] = None,
    ) -> BatchAssignmentResult:
        """
        Assign tasks one after another.

        Critical tasks go first, then by priority. Each assignment raises the
        assignee's working load and is recorded in a copy of the tracker, so
        later tasks see earlier ones. Greedy, not globally optimal. Inputs are
        left untouched; the final rotation state is returned as a snapshot.
        """
        now = resolve_now(now)
        history = list(history)
        forced_assignees = forced_assignees or {}
        working = {member.member_id: member for member in candidates}
        run_tracker = tracker.copy() if tracker is not None else RotationTracker()

        before = fairness.balance_score([m.current_load for m in working.values() if m.is_active])

        ordered = sorted(
            enumerate(tasks),
            key=lambda item: (not item[1].is_critical, item[1].priority, item[0]),
        )

        assignments: list[AssignmentResult] = []
        unassigned: list[UnassignedTask] = []
        for _, task in ordered:
            weight = self.weight_service.weight(task, now).adjusted_weight
            outcome = self.find_optimal_assignee(
                task,
                list(working.values()),
                history,
                run_tracker,
                now,
                force_assignee=forced_assignees.get(task.task_id),
                task_weight=weight,
            )
            if isinstance(outcome, UnassignedTask):
                unassigned.append(outcome)
                continue

            assignments.append(outcome)
            member = working[outcome.assigned_to]
            working[outcome.assigned_to] = with_load(member, member.current_load + weight)
            run_tracker.record(task.category, outcome.assigned_to, now)

        after = fairness.balance_score([m.current_load for m in working.values() if m.is_active])

        logger.info(
            f"Batch run: {len(assignments)} assigned, {len(unassigned)} unassigned, "
            f"balance {before:.1f} -> {after:.1f}"
        )

        return BatchAssignmentResult(
            assignments=assignments,
            unassigned=unassigned,
            balance_impact=BalanceImpact(
                before_score=round(before, 1),
                after_score=round(after, 1),
                improvement=round(after - before, 1),
            ),
            rotation=run_tracker.snapshot(),
        )

    # ===========================================
    # Rebalancing
    # ===========================================

    def suggest_reassignments(
        self,
        assignments: Iterable[CurrentAssignment],
        members: Iterable[MemberAvailability],
        now: Optional[datetime] = None,
    ) -> list[ReassignmentSuggestion]:
        """
        Propose moving tasks from overloaded to underloaded members.

        Current load includes assigned-but-incomplete tasks. Lighter tasks
        move first to keep disruption small; a recipient must be eligible for
        the task and stay under the ceiling. Advisory only.
        """
        now = resolve_now(now)
        assignments = list(assignments)
        roster = [m for m in members if m.is_active]
        if len(roster) < 2:
            return []

        loads = {m.member_id: m.current_load for m in roster}
        total = sum(loads.values())
        if total <= 0:
            return []
        average = total / len(roster)

        overloaded = sorted(
            (m for m in roster if loads[m.member_id] > average * self.config.overloaded_ratio),
            key=lambda m: (-loads[m.member_id], m.member_id),
        )
        underloaded = [m for m in roster if loads[m.member_id] < average * self.config.underloaded_ratio]
        ceiling = average * self.config.recipient_ceiling_ratio

        suggestions: list[ReassignmentSuggestion] = []
        for over in overloaded:
            own = sorted(
                (a for a in assignments if a.assigned_to == over.member_id),
                key=lambda a: (a.weight, a.task_id),
            )
            for assignment in own:
                if len(suggestions) >= self.config.max_suggestions:
                    return suggestions
                if loads[over.member_id] <= average * self.config.overloaded_ratio:
                    break
                task = TaskWeightInput(
                    task_id=assignment.task_id,
                    title=assignment.title,
                    category=assignment.category,
                    required_skills=assignment.required_skills,
                )
                recipients = sorted(underloaded, key=lambda m: (loads[m.member_id], m.member_id))
                for recipient in recipients:
                    if loads[recipient.member_id] + assignment.weight >= ceiling:
                        continue
                    simulated = with_load(recipient, loads[recipient.member_id])
                    if not self.check_eligibility(simulated, task, assignment.weight, now).eligible:
                        continue
                    suggestions.append(
                        ReassignmentSuggestion(
                            task_id=assignment.task_id,
                            task_title=assignment.title,
                            from_member_id=over.member_id,
                            from_member_name=_name(over),
                            to_member_id=recipient.member_id,
                            to_member_name=_name(recipient),
                            reason=(
                                f"Evens out the load: {_name(over)} carries {loads[over.member_id]:.1f} "
                                f"against a household average of {average:.1f}"
                            ),
                            balance_impact=round(assignment.weight / total * 100, 1),
                        )
                    )
                    loads[over.member_id] -= assignment.weight
                    loads[recipient.member_id] += assignment.weight
                    break

        return suggestions

    # ===========================================
    # Reporting
    # ===========================================

    @staticmethod
    def assignment_stats(results: Iterable[AssignmentResult]) -> AssignmentStats:
        results = list(results)
        by_member: dict[str, int] = {}
        for result in results:
            by_member[result.assigned_to_name] = by_member.get(result.assigned_to_name, 0) + 1
        average = (
            round(sum(r.score.total_score for r in results) / len(results), 1) if results else 0.0
        )
        return AssignmentStats(
            total=len(results),
            forced=sum(1 for r in results if r.was_forced),
            average_score=average,
            by_member=by_member,
        )

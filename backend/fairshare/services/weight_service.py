"""
Weight service converting a task into a comparable load weight.

The weight is the category base weight times a stack of contextual
multipliers (priority, deadline urgency, recurrence, criticality,
coordination). The only input besides the task is "now", which only matters
for the deadline multiplier.
"""

from datetime import datetime
from typing import Iterable, Optional

from fairshare.core.config import get_engine_config
from fairshare.core.logger import setup_logger
from fairshare.models.engine_config import WeightModelConfig
from fairshare.models.enums import DeadlineUrgency, RecurrencePattern, TaskCategory
from fairshare.models.task_weight import TaskWeightInput, WeightComponents, WeightResult
from fairshare.utils.datetime_utils import days_until, resolve_now

logger = setup_logger(__name__)

PRIORITY_LABELS = {1: "high", 2: "normal", 3: "low"}

URGENCY_LABELS = {
    DeadlineUrgency.OVERDUE: "overdue",
    DeadlineUrgency.DUE_TODAY: "due today",
    DeadlineUrgency.PRESSURE: "pressure",
    DeadlineUrgency.NONE: "none",
}


def _format_pct(multiplier: float) -> str:
    """Format a multiplier as a signed percentage: 1.5 -> '+50%', 0.6 -> '-40%'."""
    delta = round((multiplier - 1.0) * 100)
    return f"+{delta}%" if delta >= 0 else f"{delta}%"


def _format_weight(value: float) -> str:
    return f"{value:g}"


class WeightService:
    """
    Service computing task load weights.

    Each multiplier is its own method so it can be checked in isolation;
    `weight` applies them in a fixed order, which is also the order of the
    explanation lines.
    """

    def __init__(self, config: Optional[WeightModelConfig] = None):
        """
        Initialize weight service.

        Args:
            config: Category table and multipliers (None = engine default)
        """
        self.config = config or get_engine_config().weights

    def base_weight(self, category: TaskCategory) -> float:
        return self.config.category_weights.get(
            category, self.config.category_weights[TaskCategory.OTHER]
        )

    def priority_multiplier(self, priority: int) -> float:
        return self.config.priority_multipliers.get(priority, self.config.priority_multipliers[2])

    def deadline_urgency(self, task: TaskWeightInput, now: datetime) -> DeadlineUrgency:
        """
        Classify deadline urgency.

        Past due -> OVERDUE, due within the current day -> DUE_TODAY, pressure
        flag or due within the pressure window -> PRESSURE, otherwise NONE.
        """
        if task.due_date is not None:
            remaining = days_until(task.due_date, now)
            if remaining < 0:
                return DeadlineUrgency.OVERDUE
            if remaining == 0:
                return DeadlineUrgency.DUE_TODAY
            if remaining <= self.config.pressure_window_days:
                return DeadlineUrgency.PRESSURE
        if task.has_deadline_pressure:
            return DeadlineUrgency.PRESSURE
        return DeadlineUrgency.NONE

    def deadline_multiplier(self, urgency: DeadlineUrgency) -> float:
        return self.config.deadline_multipliers[urgency]

    def recurrence_multiplier(self, recurrence: RecurrencePattern) -> float:
        return self.config.recurrence_multipliers[recurrence]

    def critical_multiplier(self, is_critical: bool) -> float:
        return self.config.critical_multiplier if is_critical else 1.0

    def coordination_multiplier(self, requires_coordination: bool) -> float:
        return self.config.coordination_multiplier if requires_coordination else 1.0

    def weight(self, task: TaskWeightInput, now: Optional[datetime] = None) -> WeightResult:
        """
        Calculate the load weight of a task.

        Args:
            task: Task description
            now: Reference time for the deadline multiplier (None = current time)

        Returns:
            WeightResult with the full-precision adjusted weight and an
            explanation listing every non-neutral multiplier.
        """
        now = resolve_now(now)
        base = self.base_weight(task.category)
        explanation = [f"Base: {_format_weight(base)} ({task.category.value})"]

        priority = self.priority_multiplier(task.priority)
        urgency = self.deadline_urgency(task, now)
        deadline = self.deadline_multiplier(urgency)
        recurrence = task.recurrence
        recurring = self.recurrence_multiplier(recurrence)
        critical = self.critical_multiplier(task.is_critical)
        coordination = self.coordination_multiplier(task.requires_coordination)

        if priority != 1.0:
            label = PRIORITY_LABELS.get(task.priority, str(task.priority))
            explanation.append(f"Priority: {label} ({_format_pct(priority)})")
        if deadline != 1.0:
            explanation.append(f"Deadline: {URGENCY_LABELS[urgency]} ({_format_pct(deadline)})")
        if recurring != 1.0:
            explanation.append(f"Recurring: {recurrence.value} ({_format_pct(recurring)})")
        if critical != 1.0:
            explanation.append(f"Critical ({_format_pct(critical)})")
        if coordination != 1.0:
            explanation.append(f"Coordination ({_format_pct(coordination)})")

        adjusted = base * priority * deadline * recurring * critical * coordination

        logger.debug(f"Weighted task {task.task_id}: {base} -> {adjusted:.3f}")

        return WeightResult(
            task_id=task.task_id,
            category=task.category,
            base_weight=base,
            adjusted_weight=adjusted,
            components=WeightComponents(
                category_weight=base,
                priority_multiplier=priority,
                deadline_urgency=urgency,
                deadline_multiplier=deadline,
                recurrence_multiplier=recurring,
                critical_multiplier=critical,
                coordination_multiplier=coordination,
            ),
            explanation=explanation,
        )

    def weigh_many(
        self, tasks: Iterable[TaskWeightInput], now: Optional[datetime] = None
    ) -> list[WeightResult]:
        """Weigh several tasks against the same reference time."""
        now = resolve_now(now)
        return [self.weight(task, now) for task in tasks]

    def total_weight(self, tasks: Iterable[TaskWeightInput], now: Optional[datetime] = None) -> float:
        """Sum of adjusted weights."""
        return sum(result.adjusted_weight for result in self.weigh_many(tasks, now))

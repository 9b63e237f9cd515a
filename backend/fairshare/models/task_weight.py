"""
Task weighting models.

A TaskWeightInput is the engine's view of one task; WeightResult is what the
weight model makes of it.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fairshare.models.enums import DeadlineUrgency, RecurrencePattern, TaskCategory
from fairshare.utils.datetime_utils import ensure_utc


class TaskWeightInput(BaseModel):
    """Immutable description of one task for weighting purposes."""

    model_config = ConfigDict(frozen=True)

    task_id: str = Field(..., min_length=1)
    title: str = ""
    category: TaskCategory = Field(TaskCategory.OTHER, description="Unknown values fall back to OTHER")
    priority: int = Field(2, ge=1, le=3, description="1=high, 2=normal, 3=low")
    is_recurring: bool = False
    recurrence_pattern: Optional[str] = None
    is_critical: bool = False
    requires_coordination: bool = False
    has_deadline_pressure: bool = False
    due_date: Optional[datetime] = None
    required_skills: frozenset[str] = Field(default_factory=frozenset)
    estimated_minutes: Optional[int] = Field(None, ge=0)

    @field_validator("category", mode="before")
    @classmethod
    def _parse_category(cls, value: object) -> TaskCategory:
        return TaskCategory.parse(value)

    @field_validator("due_date")
    @classmethod
    def _due_date_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)

    @property
    def recurrence(self) -> RecurrencePattern:
        return RecurrencePattern.parse(self.is_recurring, self.recurrence_pattern)


class WeightComponents(BaseModel):
    """Individual multipliers that produced an adjusted weight."""

    category_weight: float
    priority_multiplier: float
    deadline_urgency: DeadlineUrgency
    deadline_multiplier: float
    recurrence_multiplier: float
    critical_multiplier: float
    coordination_multiplier: float


class WeightResult(BaseModel):
    """Output of the weight model for one task."""

    task_id: str
    category: TaskCategory
    base_weight: float
    adjusted_weight: float = Field(..., description="Full precision, used for aggregation")
    components: WeightComponents
    explanation: list[str] = Field(default_factory=list)

    @property
    def display_weight(self) -> float:
        """Adjusted weight rounded to one decimal for display."""
        return round(self.adjusted_weight, 1)

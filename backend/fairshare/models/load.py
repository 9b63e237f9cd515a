"""
Load history and aggregated load models.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fairshare.models.enums import BalanceLevel, FatigueZone, LoadTrend, TaskCategory
from fairshare.utils.datetime_utils import ensure_utc


class HistoricalLoadEntry(BaseModel):
    """One completed-or-pending task event for a member."""

    model_config = ConfigDict(frozen=True)

    date: datetime
    member_id: str = Field(..., min_length=1)
    task_id: str = Field(..., min_length=1)
    category: TaskCategory = TaskCategory.OTHER
    weight: float = Field(..., ge=0, allow_inf_nan=False, description="Already-resolved load weight")
    was_completed: bool = True
    minutes_spent: Optional[float] = Field(None, ge=0, allow_inf_nan=False)

    @field_validator("category", mode="before")
    @classmethod
    def _parse_category(cls, value: object) -> TaskCategory:
        return TaskCategory.parse(value)

    @field_validator("date")
    @classmethod
    def _date_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class TrendComparison(BaseModel):
    """Average daily load of a recent window against the window before it."""

    direction: LoadTrend
    change_ratio: float = Field(0.0, description="Relative change, 0.25 = +25%")
    recent_daily: float = 0.0
    previous_daily: float = 0.0
    data_points: int = 0


class LoadAggregate(BaseModel):
    """Time-decayed load view of one member."""

    member_id: str
    score: float
    by_category: dict[TaskCategory, float] = Field(default_factory=dict)
    trend: LoadTrend = LoadTrend.STABLE
    fatigue: float = Field(0.0, ge=0, le=100)
    entry_count: int = 0


class FatigueState(BaseModel):
    """Fatigue snapshot of one member."""

    member_id: str
    fatigue: float = Field(..., ge=0, le=100)
    zone: FatigueZone
    consecutive_high_load_days: int = 0
    recent_average_load: float = 0.0
    trend: LoadTrend = LoadTrend.STABLE


class UserLoadSummary(BaseModel):
    """Derived per-member load summary, recomputed on every call."""

    member_id: str
    member_name: str
    current_load: float = Field(0.0, ge=0, allow_inf_nan=False, description="Pending (assigned, not completed) load")
    weekly_load: float = Field(0.0, ge=0, allow_inf_nan=False)
    monthly_load: float = Field(0.0, ge=0, allow_inf_nan=False)
    time_weighted_load: float = Field(0.0, ge=0, allow_inf_nan=False)
    load_trend: LoadTrend = LoadTrend.STABLE
    fatigue_level: float = Field(0.0, ge=0, le=100)
    balance_percentage: float = Field(0.0, ge=0, le=100, description="Share of household load")
    pending_tasks: int = Field(0, ge=0)
    completed_tasks: int = Field(0, ge=0)
    category_breakdown: dict[TaskCategory, float] = Field(default_factory=dict)


class HouseholdMember(BaseModel):
    """Identity of a household member for summary building."""

    model_config = ConfigDict(frozen=True)

    member_id: str = Field(..., min_length=1)
    member_name: str = ""


class HouseholdLoad(BaseModel):
    """Household-level load distribution snapshot."""

    household_id: Optional[str] = None
    calculated_at: datetime
    total_load: float
    members: list[UserLoadSummary] = Field(default_factory=list)
    gini_coefficient: float = Field(..., ge=0, le=1)
    balance_score: float = Field(..., ge=0, le=100)
    status: BalanceLevel

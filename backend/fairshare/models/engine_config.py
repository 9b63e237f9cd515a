"""
Engine tuning models.

Every constant table the engine uses (category weights, multipliers,
thresholds, scoring weights) is a field here, grouped under a versioned
`EngineConfig`. Services receive the part they need in their constructor.
"""

import math

from pydantic import BaseModel, ConfigDict, Field, model_validator

from fairshare.models.enums import (
    AlertSeverity,
    BalanceLevel,
    DeadlineUrgency,
    RecurrencePattern,
    TaskCategory,
)


class _Tuning(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class WeightModelConfig(_Tuning):
    """Category base weights and contextual multipliers."""

    category_weights: dict[TaskCategory, float] = Field(
        default_factory=lambda: {
            TaskCategory.EDUCATION: 4.0,
            TaskCategory.HEALTH: 4.0,
            TaskCategory.ADMINISTRATIVE: 3.0,
            TaskCategory.DAILY: 1.0,
            TaskCategory.SOCIAL: 2.0,
            TaskCategory.ACTIVITIES: 3.0,
            TaskCategory.LOGISTICS: 2.0,
            TaskCategory.OTHER: 1.0,
        }
    )
    priority_multipliers: dict[int, float] = Field(
        default_factory=lambda: {1: 1.5, 2: 1.0, 3: 0.7}
    )
    deadline_multipliers: dict[DeadlineUrgency, float] = Field(
        default_factory=lambda: {
            DeadlineUrgency.OVERDUE: 1.8,
            DeadlineUrgency.DUE_TODAY: 1.5,
            DeadlineUrgency.PRESSURE: 1.2,
            DeadlineUrgency.NONE: 1.0,
        }
    )
    recurrence_multipliers: dict[RecurrencePattern, float] = Field(
        default_factory=lambda: {
            RecurrencePattern.DAILY: 0.6,
            RecurrencePattern.WEEKLY: 0.8,
            RecurrencePattern.OTHER: 0.9,
            RecurrencePattern.ONCE: 1.0,
        }
    )
    critical_multiplier: float = Field(2.0, ge=1.0)
    coordination_multiplier: float = Field(1.2, ge=1.0)
    # A due date this close counts as deadline pressure even without the flag
    pressure_window_days: int = Field(3, ge=0)

    @model_validator(mode="after")
    def _check_tables(self) -> "WeightModelConfig":
        missing = set(TaskCategory) - set(self.category_weights)
        if missing:
            raise ValueError(f"category_weights missing {sorted(c.value for c in missing)}")
        if any(w <= 0 for w in self.category_weights.values()):
            raise ValueError("category weights must be positive")
        if set(self.priority_multipliers) != {1, 2, 3}:
            raise ValueError("priority_multipliers must define priorities 1, 2 and 3")
        deadline = self.deadline_multipliers
        order = [
            DeadlineUrgency.OVERDUE,
            DeadlineUrgency.DUE_TODAY,
            DeadlineUrgency.PRESSURE,
            DeadlineUrgency.NONE,
        ]
        if set(deadline) != set(order):
            raise ValueError("deadline_multipliers must define every urgency")
        if any(deadline[a] <= deadline[b] for a, b in zip(order, order[1:])):
            raise ValueError("deadline multipliers must strictly decrease as urgency recedes")
        recurrence = self.recurrence_multipliers
        if set(recurrence) != set(RecurrencePattern):
            raise ValueError("recurrence_multipliers must define every pattern")
        if not (
            recurrence[RecurrencePattern.DAILY]
            <= recurrence[RecurrencePattern.WEEKLY]
            <= recurrence[RecurrencePattern.OTHER]
            <= recurrence[RecurrencePattern.ONCE]
        ):
            raise ValueError("recurrence discounts must be deepest for daily tasks")
        return self


class DecayConfig(_Tuning):
    """Time decay applied to historical entries."""

    max_age_days: int = Field(30, ge=2)
    floor: float = Field(0.1, gt=0, lt=1)


class TrendConfig(_Tuning):
    """Trend detection on average daily load."""

    change_threshold: float = Field(0.15, gt=0)
    min_data_points: int = Field(2, ge=1)


class FatigueConfig(_Tuning):
    """Fatigue level model."""

    recent_window_days: int = Field(7, ge=1)
    reference_daily_load: float = Field(8.0, gt=0)
    # Day totals at or above reference * ratio count as high-load days
    high_load_day_ratio: float = Field(1.2, gt=0)
    rested_below: float = 20.0
    normal_below: float = 40.0
    tired_below: float = 60.0
    burnout_above: float = 85.0

    @model_validator(mode="after")
    def _check_zones(self) -> "FatigueConfig":
        if not (0 < self.rested_below < self.normal_below < self.tired_below < self.burnout_above < 100):
            raise ValueError("fatigue zone thresholds must be ordered within (0, 100)")
        return self


class ScoringWeights(_Tuning):
    """Weights of the six assignment score components."""

    load_balance: float = Field(0.30, gt=0)
    category_preference: float = Field(0.20, gt=0)
    skill_match: float = Field(0.15, gt=0)
    availability: float = Field(0.15, gt=0)
    rotation: float = Field(0.10, gt=0)
    fatigue: float = Field(0.10, gt=0)

    @model_validator(mode="after")
    def _check_total(self) -> "ScoringWeights":
        total = (
            self.load_balance
            + self.category_preference
            + self.skill_match
            + self.availability
            + self.rotation
            + self.fatigue
        )
        if not math.isclose(total, 1.0, abs_tol=1e-9):
            raise ValueError(f"scoring weights must sum to 1.0 (got {total})")
        return self


class RotationConfig(_Tuning):
    """Recency penalty curve for the rotation score."""

    floor: float = Field(20.0, ge=0, le=100)
    recovery_days: float = Field(14.0, gt=0)
    last_assignee_penalty: float = Field(20.0, ge=0)
    pick_penalty: float = Field(10.0, ge=0)


class OptimizerConfig(_Tuning):
    """Assignment optimizer tuning."""

    scoring_weights: ScoringWeights = Field(default_factory=ScoringWeights)
    rotation: RotationConfig = Field(default_factory=RotationConfig)
    default_max_weekly_load: float = Field(20.0, gt=0)
    preferred_category_score: float = Field(100.0, ge=0, le=100)
    neutral_category_score: float = Field(50.0, ge=0, le=100)
    # Headroom share of capacity at which availability saturates at 100
    availability_saturation: float = Field(0.5, gt=0, le=1)
    upcoming_exclusion_days: int = Field(3, ge=0)
    upcoming_exclusion_penalty: float = Field(20.0, ge=0, le=100)
    alternatives_count: int = Field(3, ge=0)
    # Rebalancing advice
    overloaded_ratio: float = Field(1.2, gt=1)
    underloaded_ratio: float = Field(0.8, gt=0, lt=1)
    recipient_ceiling_ratio: float = Field(1.1, gt=0)
    max_suggestions: int = Field(5, ge=0)


class AlertConfig(_Tuning):
    """Balance analyzer thresholds."""

    balanced_min: float = 70.0
    mild_imbalance_min: float = 50.0
    imbalance_min: float = 30.0
    fatigue_alert_min: float = 60.0
    fatigue_severity: tuple[float, float, float] = (60.0, 70.0, 85.0)
    trend_fatigue_min: float = 40.0
    outlier_share_points: float = 20.0
    outlier_severity: tuple[float, float, float] = (60.0, 70.0, 80.0)
    reassign_gap_points: float = 20.0
    overload_ratio_min: float = 80.0
    overload_severity: tuple[float, float, float] = (80.0, 90.0, 100.0)
    reference_weekly_capacity: float = Field(20.0, gt=0)
    inactivity_share_max: float = 20.0
    trend_window_days: int = Field(14, ge=1)
    trend_risk_weekly_load: float = 15.0
    trend_critical_projection: float = 25.0
    digest_trend_points: float = 5.0
    digest_heavy_share: float = 60.0
    digest_low_completion: float = 70.0
    digest_high_completion: float = 90.0
    suppress_positive_messages: bool = False

    @model_validator(mode="after")
    def _check_bands(self) -> "AlertConfig":
        if not (100 >= self.balanced_min > self.mild_imbalance_min > self.imbalance_min >= 0):
            raise ValueError("balance bands must be strictly ordered within [0, 100]")
        for name in ("fatigue_severity", "overload_severity", "outlier_severity"):
            low, mid, high = getattr(self, name)
            if not low <= mid <= high:
                raise ValueError(f"{name} thresholds must be ascending")
        return self

    def band(self, balance_score: float) -> BalanceLevel:
        """Classify a balance score into a BalanceLevel."""
        if balance_score >= self.balanced_min:
            return BalanceLevel.BALANCED
        if balance_score >= self.mild_imbalance_min:
            return BalanceLevel.MILD_IMBALANCE
        if balance_score >= self.imbalance_min:
            return BalanceLevel.IMBALANCE
        return BalanceLevel.CRITICAL

    @staticmethod
    def severity(value: float, thresholds: tuple[float, float, float]) -> AlertSeverity:
        """Map a metric onto a severity using (medium, high, critical) cut-offs."""
        medium, high, critical = thresholds
        if value >= critical:
            return AlertSeverity.CRITICAL
        if value >= high:
            return AlertSeverity.HIGH
        if value >= medium:
            return AlertSeverity.MEDIUM
        return AlertSeverity.LOW


class EngineConfig(_Tuning):
    """Versioned bundle of every engine tuning."""

    version: str = "2024.1"
    weights: WeightModelConfig = Field(default_factory=WeightModelConfig)
    decay: DecayConfig = Field(default_factory=DecayConfig)
    trend: TrendConfig = Field(default_factory=TrendConfig)
    fatigue: FatigueConfig = Field(default_factory=FatigueConfig)
    optimizer: OptimizerConfig = Field(default_factory=OptimizerConfig)
    alerts: AlertConfig = Field(default_factory=AlertConfig)

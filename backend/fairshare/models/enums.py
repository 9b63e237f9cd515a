"""
Enum definitions for the load engine.

These enums are used across models and provide type-safe category/status values.
"""

from enum import Enum
from typing import Optional


class TaskCategory(str, Enum):
    """Fixed household task taxonomy."""

    EDUCATION = "education"
    HEALTH = "health"
    ADMINISTRATIVE = "administrative"
    DAILY = "daily"
    SOCIAL = "social"
    ACTIVITIES = "activities"
    LOGISTICS = "logistics"
    OTHER = "other"

    @classmethod
    def lookup(cls, value: object) -> Optional["TaskCategory"]:
        """Resolve a category name or legacy alias, or None when unknown."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        key = value.strip().lower()
        try:
            return cls(key)
        except ValueError:
            return CATEGORY_ALIASES.get(key)

    @classmethod
    def parse(cls, value: object) -> "TaskCategory":
        """Resolve a category, falling back to OTHER for anything unknown."""
        return cls.lookup(value) or cls.OTHER


# Legacy (French) category names still present in stored task rows
CATEGORY_ALIASES: dict[str, TaskCategory] = {
    "ecole": TaskCategory.EDUCATION,
    "école": TaskCategory.EDUCATION,
    "school": TaskCategory.EDUCATION,
    "sante": TaskCategory.HEALTH,
    "santé": TaskCategory.HEALTH,
    "administratif": TaskCategory.ADMINISTRATIVE,
    "admin": TaskCategory.ADMINISTRATIVE,
    "quotidien": TaskCategory.DAILY,
    "activites": TaskCategory.ACTIVITIES,
    "activités": TaskCategory.ACTIVITIES,
    "logistique": TaskCategory.LOGISTICS,
    "autre": TaskCategory.OTHER,
}


class RecurrencePattern(str, Enum):
    """Recurrence cadence as far as the weight discount is concerned."""

    DAILY = "daily"
    WEEKLY = "weekly"
    OTHER = "other"
    ONCE = "once"

    @classmethod
    def parse(cls, is_recurring: bool, pattern: Optional[str]) -> "RecurrencePattern":
        if not is_recurring:
            return cls.ONCE
        key = (pattern or "").strip().lower()
        if key in ("daily", "jour", "quotidien"):
            return cls.DAILY
        if key in ("weekly", "semaine", "hebdomadaire"):
            return cls.WEEKLY
        return cls.OTHER


class DeadlineUrgency(str, Enum):
    """Deadline urgency, from most to least urgent."""

    OVERDUE = "overdue"
    DUE_TODAY = "due_today"
    PRESSURE = "pressure"
    NONE = "none"


class LoadTrend(str, Enum):
    """Direction of a member's load over time."""

    DECREASING = "decreasing"
    STABLE = "stable"
    INCREASING = "increasing"


class FatigueZone(str, Enum):
    """Named bands of the 0-100 fatigue level."""

    RESTED = "rested"
    NORMAL = "normal"
    TIRED = "tired"
    EXHAUSTED = "exhausted"
    BURNOUT = "burnout"


class BalanceLevel(str, Enum):
    """Household balance classification."""

    BALANCED = "balanced"
    MILD_IMBALANCE = "mild-imbalance"
    IMBALANCE = "imbalance"
    CRITICAL = "critical"


class AlertType(str, Enum):
    """Kind of load alert."""

    IMBALANCE = "imbalance"
    OVERLOAD = "overload"
    UNDERLOAD = "underload"
    FATIGUE = "fatigue"
    TREND = "trend"
    INACTIVITY = "inactivity"


class AlertSeverity(str, Enum):
    """Alert severity level."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    AlertSeverity.LOW: 1,
    AlertSeverity.MEDIUM: 2,
    AlertSeverity.HIGH: 3,
    AlertSeverity.CRITICAL: 4,
}


class RecommendationType(str, Enum):
    """Kind of advisory recommendation."""

    REASSIGN = "reassign"
    DELAY = "delay"
    SHARE = "share"
    REST = "rest"
    BALANCE = "balance"


class RiskLevel(str, Enum):
    """Risk attached to a trend analysis."""

    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    CRITICAL = "critical"


class DigestTrend(str, Enum):
    """Week-over-week balance direction in a digest."""

    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class NotificationKind(str, Enum):
    """Payload kind handed to the notification layer."""

    ALERT = "alert"
    DIGEST = "digest"
    RECOMMENDATION = "recommendation"

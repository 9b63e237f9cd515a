"""Pydantic models (schemas) for the load engine."""

from fairshare.models.enums import (
    AlertSeverity,
    AlertType,
    BalanceLevel,
    DeadlineUrgency,
    DigestTrend,
    FatigueZone,
    LoadTrend,
    RecommendationType,
    RecurrencePattern,
    RiskLevel,
    TaskCategory,
)
from fairshare.models.engine_config import EngineConfig
from fairshare.models.task_weight import TaskWeightInput, WeightResult
from fairshare.models.load import (
    HistoricalLoadEntry,
    HouseholdLoad,
    HouseholdMember,
    LoadAggregate,
    UserLoadSummary,
)
from fairshare.models.member import ExclusionPeriod, MemberAvailability
from fairshare.models.assignment import (
    AssignmentResult,
    AssignmentScore,
    BatchAssignmentResult,
    CurrentAssignment,
    ReassignmentSuggestion,
    UnassignedTask,
)
from fairshare.models.balance import (
    BalanceStatus,
    HouseholdAnalysis,
    LoadAlert,
    TrendAnalysis,
    WeeklyDigest,
)

__all__ = [
    # Enums
    "AlertSeverity",
    "AlertType",
    "BalanceLevel",
    "DeadlineUrgency",
    "DigestTrend",
    "FatigueZone",
    "LoadTrend",
    "RecommendationType",
    "RecurrencePattern",
    "RiskLevel",
    "TaskCategory",
    # Config
    "EngineConfig",
    # Weights
    "TaskWeightInput",
    "WeightResult",
    # Load
    "HistoricalLoadEntry",
    "HouseholdLoad",
    "HouseholdMember",
    "LoadAggregate",
    "UserLoadSummary",
    # Members
    "ExclusionPeriod",
    "MemberAvailability",
    # Assignment
    "AssignmentResult",
    "AssignmentScore",
    "BatchAssignmentResult",
    "CurrentAssignment",
    "ReassignmentSuggestion",
    "UnassignedTask",
    # Balance
    "BalanceStatus",
    "HouseholdAnalysis",
    "LoadAlert",
    "TrendAnalysis",
    "WeeklyDigest",
]

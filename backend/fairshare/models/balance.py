"""
Balance analysis, digest and notification models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

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
from fairshare.models.load import HouseholdLoad


class LoadAlert(BaseModel):
    """One alert raised by the analyzer."""

    type: AlertType
    severity: AlertSeverity
    member_id: Optional[str] = None
    member_name: Optional[str] = None
    message: str
    metric: float


class LoadRecommendation(BaseModel):
    """Advisory recommendation; never applied automatically."""

    type: RecommendationType
    priority: int = Field(..., ge=0, le=10)
    description: str
    from_member: Optional[str] = None
    to_member: Optional[str] = None
    expected_improvement: float = 0.0


class MemberShare(BaseModel):
    """A member and their share of the household load."""

    member_id: str
    member_name: str
    percentage: float


class TrendAnalysis(BaseModel):
    """Trend of one member's load with a short narrative."""

    member_id: str
    member_name: str
    period_start: datetime
    period_end: datetime
    window_days: int
    direction: LoadTrend
    magnitude: float = Field(..., ge=0, description="Absolute percent change")
    weekly_average: float
    previous_weekly_average: float
    projected_load: float
    risk_level: RiskLevel
    narrative: str


class BalanceStatus(BaseModel):
    """Household-level balance snapshot."""

    household_id: Optional[str] = None
    status: BalanceLevel
    balance_score: float = Field(..., ge=0, le=100)
    gini_coefficient: float = Field(..., ge=0, le=1)
    imbalance_percentage: float = 0.0
    most_loaded: Optional[MemberShare] = None
    least_loaded: Optional[MemberShare] = None
    alerts: list[LoadAlert] = Field(default_factory=list)
    recommendations: list[LoadRecommendation] = Field(default_factory=list)
    messages: list[str] = Field(default_factory=list)
    narrative: str = ""
    generated_at: datetime


class DigestSummary(BaseModel):
    """Headline numbers of a weekly digest."""

    total_tasks: int
    completed_tasks: int
    completion_rate: float
    balance_score: float
    trend: DigestTrend


class MemberDigestStats(BaseModel):
    """Per-member line of a weekly digest."""

    member_id: str
    member_name: str
    tasks_assigned: int
    tasks_completed: int
    load_percentage: float
    trend: LoadTrend
    highlights: list[str] = Field(default_factory=list)


class WeeklyDigest(BaseModel):
    """Weekly household digest handed to the notification layer."""

    household_id: Optional[str] = None
    week_number: int
    year: int
    period_start: datetime
    period_end: datetime
    summary: DigestSummary
    member_stats: list[MemberDigestStats] = Field(default_factory=list)
    alerts: list[str] = Field(default_factory=list)
    positive_notes: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    generated_at: datetime


class NotificationPayload(BaseModel):
    """Transport-agnostic payload; delivery and localization happen downstream."""

    kind: NotificationKind
    title: str
    body: str
    severity: Optional[AlertSeverity] = None
    data: dict[str, Any] = Field(default_factory=dict)


class HouseholdAnalysis(BaseModel):
    """Distribution snapshot, balance status and per-member trends in one result."""

    distribution: HouseholdLoad
    balance: BalanceStatus
    trends: list[TrendAnalysis] = Field(default_factory=list)

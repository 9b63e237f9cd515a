"""
Assignment optimizer models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fairshare.models.enums import TaskCategory


class EligibilityCheck(BaseModel):
    """Outcome of the hard-constraint filter for one member."""

    eligible: bool
    reason: Optional[str] = None


class ScoreComponents(BaseModel):
    """Six soft-constraint scores, each in [0, 100]."""

    load_balance: float = Field(..., ge=0, le=100)
    category_preference: float = Field(..., ge=0, le=100)
    skill_match: float = Field(..., ge=0, le=100)
    availability: float = Field(..., ge=0, le=100)
    rotation: float = Field(..., ge=0, le=100)
    fatigue: float = Field(..., ge=0, le=100)


class AssignmentScore(BaseModel):
    """Per-candidate score breakdown."""

    member_id: str
    member_name: str
    current_load: float
    eligible: bool
    total_score: float = 0.0
    components: Optional[ScoreComponents] = None
    disqualify_reason: Optional[str] = None


class AlternativeCandidate(BaseModel):
    """Runner-up candidate reported next to the chosen one."""

    member_id: str
    member_name: str
    total_score: float


class AssignmentResult(BaseModel):
    """Chosen assignee for one task plus the reasoning trail."""

    task_id: str
    category: TaskCategory
    assigned_to: str
    assigned_to_name: str
    task_weight: float
    score: AssignmentScore
    alternative_candidates: list[AlternativeCandidate] = Field(default_factory=list)
    ranked: list[AssignmentScore] = Field(
        default_factory=list, description="Eligible candidates in rank order"
    )
    was_forced: bool = False
    explanation: list[str] = Field(default_factory=list)


class UnassignedTask(BaseModel):
    """Task no member could take, with the reason."""

    task_id: str
    reason: str
    candidate_reasons: list[str] = Field(default_factory=list)


class BalanceImpact(BaseModel):
    """Balance score before and after a batch run."""

    before_score: float
    after_score: float
    improvement: float


class RotationRecord(BaseModel):
    """Serializable rotation state of one category."""

    last_assigned: dict[str, datetime] = Field(default_factory=dict)
    picks: dict[str, int] = Field(default_factory=dict)
    last_assignee: Optional[str] = None


class RotationSnapshot(BaseModel):
    """Serializable rotation tracker state for callers that persist it."""

    model_config = ConfigDict(frozen=True)

    categories: dict[TaskCategory, RotationRecord] = Field(default_factory=dict)


class RotationStatus(BaseModel):
    """How long ago each member last received a category."""

    member_id: str
    last_assigned: datetime
    days_since: float
    picks: int = 0


class BatchAssignmentResult(BaseModel):
    """Result of a sequential batch assignment run."""

    assignments: list[AssignmentResult] = Field(default_factory=list)
    unassigned: list[UnassignedTask] = Field(default_factory=list)
    balance_impact: BalanceImpact
    rotation: RotationSnapshot = Field(default_factory=RotationSnapshot)


class CurrentAssignment(BaseModel):
    """An existing assignment considered for rebalancing."""

    model_config = ConfigDict(frozen=True)

    task_id: str
    title: str = ""
    category: TaskCategory = TaskCategory.OTHER
    assigned_to: str
    weight: float = Field(..., ge=0, allow_inf_nan=False)
    required_skills: frozenset[str] = Field(default_factory=frozenset)

    @field_validator("category", mode="before")
    @classmethod
    def _parse_category(cls, value: object) -> TaskCategory:
        return TaskCategory.parse(value)


class ReassignmentSuggestion(BaseModel):
    """Advisory move of one task between members."""

    task_id: str
    task_title: str
    from_member_id: str
    from_member_name: str
    to_member_id: str
    to_member_name: str
    reason: str
    balance_impact: float = Field(..., description="Share of household load moved, in percent")


class AssignmentStats(BaseModel):
    """Summary over a list of assignment results."""

    total: int
    forced: int
    average_score: float
    by_member: dict[str, int] = Field(default_factory=dict)

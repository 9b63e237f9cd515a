"""
Member availability models used at assignment time.
"""

import logging
from collections.abc import Iterable
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from fairshare.models.enums import TaskCategory
from fairshare.utils.datetime_utils import ensure_utc

logger = logging.getLogger(__name__)


class ExclusionPeriod(BaseModel):
    """Date range during which a member takes no new assignments."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime
    reason: Optional[str] = None

    @field_validator("start", "end")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @model_validator(mode="after")
    def _check_range(self) -> "ExclusionPeriod":
        if self.end < self.start:
            raise ValueError("exclusion period ends before it starts")
        return self

    def contains(self, moment: datetime) -> bool:
        moment = ensure_utc(moment)
        return self.start <= moment <= self.end


def _parse_category_set(value: object) -> frozenset[TaskCategory]:
    if value is None:
        return frozenset()
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        raise ValueError(f"expected a collection of categories, got {type(value).__name__}")
    categories = set()
    for item in value:
        category = TaskCategory.lookup(item)
        if category is None:
            logger.warning(f"Ignoring unknown category in member profile: {item!r}")
            continue
        categories.add(category)
    return frozenset(categories)


class MemberAvailability(BaseModel):
    """Assignment-time profile of one household member."""

    model_config = ConfigDict(frozen=True)

    member_id: str = Field(..., min_length=1)
    member_name: str = ""
    is_active: bool = True
    current_load: float = Field(
        0.0, ge=0, allow_inf_nan=False, description="Includes assigned-but-incomplete tasks"
    )
    max_weekly_load: Optional[float] = Field(
        None, gt=0, allow_inf_nan=False, description="None = engine default capacity"
    )
    preferred_categories: frozenset[TaskCategory] = Field(default_factory=frozenset)
    blocked_categories: frozenset[TaskCategory] = Field(default_factory=frozenset)
    skills: frozenset[str] = Field(default_factory=frozenset)
    exclusion_periods: tuple[ExclusionPeriod, ...] = ()
    last_assigned: dict[TaskCategory, datetime] = Field(
        default_factory=dict, description="Durable per-category last assignment, supplied by the caller"
    )
    fatigue_level: Optional[float] = Field(
        None, ge=0, le=100, allow_inf_nan=False, description="None = derive from history"
    )

    @field_validator("preferred_categories", "blocked_categories", mode="before")
    @classmethod
    def _parse_categories(cls, value: object) -> frozenset[TaskCategory]:
        return _parse_category_set(value)

    @field_validator("last_assigned", mode="before")
    @classmethod
    def _parse_last_assigned(cls, value: object) -> dict:
        if not value:
            return {}
        parsed = {}
        for key, moment in dict(value).items():
            category = TaskCategory.lookup(key)
            if category is not None:
                parsed[category] = moment
        return parsed

    @field_validator("last_assigned")
    @classmethod
    def _last_assigned_utc(cls, value: dict[TaskCategory, datetime]) -> dict[TaskCategory, datetime]:
        return {category: ensure_utc(moment) for category, moment in value.items()}

    @model_validator(mode="after")
    def _check_disjoint(self) -> "MemberAvailability":
        overlap = self.preferred_categories & self.blocked_categories
        if overlap:
            raise ValueError(
                f"categories both preferred and blocked: {sorted(c.value for c in overlap)}"
            )
        return self

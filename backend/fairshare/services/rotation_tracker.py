"""
Rotation tracker for spreading categories across members.

Scoped to one planning run. Not internally thread-safe: use one tracker per
concurrent run. Callers that want rotation memory across runs persist
`snapshot()` and rebuild with `from_snapshot()`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from fairshare.models.assignment import RotationRecord, RotationSnapshot, RotationStatus
from fairshare.models.enums import TaskCategory
from fairshare.utils.datetime_utils import age_in_days, ensure_utc, resolve_now


@dataclass
class _CategoryRotation:
    last_assigned: dict[str, datetime] = field(default_factory=dict)
    picks: dict[str, int] = field(default_factory=dict)
    last_assignee: Optional[str] = None


class RotationTracker:
    """
    Category -> last assignee / per-member timestamps and pick counts.

    Only feeds the rotation *score*; it never affects eligibility, so
    resetting it cannot make an ineligible member eligible.
    """

    def __init__(self) -> None:
        self._categories: dict[TaskCategory, _CategoryRotation] = {}

    def record(self, category: TaskCategory, member_id: str, at: Optional[datetime] = None) -> None:
        """Register that `member_id` received a task of `category`."""
        rotation = self._categories.setdefault(category, _CategoryRotation())
        rotation.last_assigned[member_id] = resolve_now(at)
        rotation.picks[member_id] = rotation.picks.get(member_id, 0) + 1
        rotation.last_assignee = member_id

    def last_assignee(self, category: TaskCategory) -> Optional[str]:
        rotation = self._categories.get(category)
        return rotation.last_assignee if rotation else None

    def last_assigned(self, category: TaskCategory, member_id: str) -> Optional[datetime]:
        rotation = self._categories.get(category)
        return rotation.last_assigned.get(member_id) if rotation else None

    def picks(self, category: TaskCategory, member_id: str) -> int:
        rotation = self._categories.get(category)
        return rotation.picks.get(member_id, 0) if rotation else 0

    def category_status(
        self, category: TaskCategory, now: Optional[datetime] = None
    ) -> list[RotationStatus]:
        """Members who received the category, longest-waiting first."""
        now = resolve_now(now)
        rotation = self._categories.get(category)
        if rotation is None:
            return []
        status = [
            RotationStatus(
                member_id=member_id,
                last_assigned=moment,
                days_since=age_in_days(moment, now),
                picks=rotation.picks.get(member_id, 0),
            )
            for member_id, moment in rotation.last_assigned.items()
        ]
        return sorted(status, key=lambda s: (-s.days_since, s.member_id))

    def reset(self) -> None:
        """Forget everything (start of a new planning cycle)."""
        self._categories.clear()

    def copy(self) -> "RotationTracker":
        return RotationTracker.from_snapshot(self.snapshot())

    def snapshot(self) -> RotationSnapshot:
        return RotationSnapshot(
            categories={
                category: RotationRecord(
                    last_assigned=dict(rotation.last_assigned),
                    picks=dict(rotation.picks),
                    last_assignee=rotation.last_assignee,
                )
                for category, rotation in self._categories.items()
            }
        )

    @classmethod
    def from_snapshot(cls, snapshot: RotationSnapshot) -> "RotationTracker":
        tracker = cls()
        for category, record in snapshot.categories.items():
            tracker._categories[category] = _CategoryRotation(
                last_assigned={m: ensure_utc(t) for m, t in record.last_assigned.items()},
                picks=dict(record.picks),
                last_assignee=record.last_assignee,
            )
        return tracker

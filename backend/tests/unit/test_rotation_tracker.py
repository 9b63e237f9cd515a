"""
Unit tests for RotationTracker.
"""

from datetime import datetime, timedelta, timezone

from fairshare.models.enums import TaskCategory
from fairshare.services.rotation_tracker import RotationTracker

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


class TestRotationTracker:
    """Tests for RotationTracker."""

    def test_empty_tracker(self):
        tracker = RotationTracker()

        assert tracker.last_assignee(TaskCategory.DAILY) is None
        assert tracker.last_assigned(TaskCategory.DAILY, "alice") is None
        assert tracker.picks(TaskCategory.DAILY, "alice") == 0
        assert tracker.category_status(TaskCategory.DAILY, NOW) == []

    def test_record_updates_last_assignee_and_picks(self):
        tracker = RotationTracker()

        tracker.record(TaskCategory.DAILY, "alice", NOW)
        tracker.record(TaskCategory.DAILY, "bob", NOW)
        tracker.record(TaskCategory.DAILY, "alice", NOW)

        assert tracker.last_assignee(TaskCategory.DAILY) == "alice"
        assert tracker.picks(TaskCategory.DAILY, "alice") == 2
        assert tracker.picks(TaskCategory.DAILY, "bob") == 1

    def test_categories_are_independent(self):
        tracker = RotationTracker()

        tracker.record(TaskCategory.HEALTH, "alice", NOW)

        assert tracker.last_assignee(TaskCategory.DAILY) is None

    def test_category_status_longest_waiting_first(self):
        """Members who waited longest come first."""
        tracker = RotationTracker()
        tracker.record(TaskCategory.DAILY, "alice", NOW - timedelta(days=1))
        tracker.record(TaskCategory.DAILY, "bob", NOW - timedelta(days=5))

        status = tracker.category_status(TaskCategory.DAILY, NOW)

        assert [s.member_id for s in status] == ["bob", "alice"]
        assert status[0].days_since == 5.0

    def test_copy_is_independent(self):
        """Recording on a copy leaves the original untouched."""
        tracker = RotationTracker()
        tracker.record(TaskCategory.DAILY, "alice", NOW)

        copy = tracker.copy()
        copy.record(TaskCategory.DAILY, "bob", NOW)

        assert tracker.last_assignee(TaskCategory.DAILY) == "alice"
        assert tracker.picks(TaskCategory.DAILY, "bob") == 0
        assert copy.last_assignee(TaskCategory.DAILY) == "bob"

    def test_snapshot_restores_state(self):
        """A persisted snapshot rebuilds an equivalent tracker."""
        tracker = RotationTracker()
        tracker.record(TaskCategory.EDUCATION, "alice", NOW)

        restored = RotationTracker.from_snapshot(tracker.snapshot())

        assert restored.last_assignee(TaskCategory.EDUCATION) == "alice"
        assert restored.last_assigned(TaskCategory.EDUCATION, "alice") == NOW
        assert restored.picks(TaskCategory.EDUCATION, "alice") == 1

    def test_reset(self):
        tracker = RotationTracker()
        tracker.record(TaskCategory.DAILY, "alice", NOW)

        tracker.reset()

        assert tracker.last_assignee(TaskCategory.DAILY) is None

"""
Unit tests for Timeline.

Tests pushing, lazy reconstruction, checkpointing, navigation and
truncation of the append-only log.
"""

from datetime import datetime, timedelta
from typing import List, Sequence, Tuple

import pytest

from chronoweave.config import config
from chronoweave.history import (
    HookConfigurationError,
    MissingBaselineError,
    Timeline,
    TimelineIndexError,
    TimelineMode,
    TimelineModeError,
)
from chronoweave.patch import CellPatch, apply_grid_patch, compute_grid_patch

STATES: List[Tuple[int, ...]] = [
    (0, 0, 0, 0),
    (1, 0, 0, 0),
    (1, 1, 0, 0),
    (1, 1, 1, 0),
    (1, 1, 1, 1),
]


def build(
    states: Sequence[Tuple[int, ...]] = STATES,
    mode: str = "patch",
    checkpoint_interval: int = 10,
) -> Timeline:
    """Push the first state in full and every later one as a patch."""
    timeline = Timeline(
        mode=mode, checkpoint_interval=checkpoint_interval, apply_patch=apply_grid_patch
    )
    timeline.push_full(states[0])
    for prev, nxt in zip(states, states[1:]):
        if mode == "full":
            timeline.push_full(nxt)
        else:
            timeline.push_patch(compute_grid_patch(prev, nxt))
    return timeline


class TestTimelineConstruction:
    """Tests for Timeline configuration."""

    def test_patch_mode_requires_apply_patch(self) -> None:
        """Test that patch mode without apply_patch fails immediately."""
        with pytest.raises(HookConfigurationError):
            Timeline(mode="patch")

    def test_hybrid_mode_requires_apply_patch(self) -> None:
        """Test that hybrid mode without apply_patch fails immediately."""
        with pytest.raises(HookConfigurationError):
            Timeline(mode=TimelineMode.HYBRID)

    def test_full_mode_without_apply_patch(self) -> None:
        """Test that full mode needs no patch function."""
        timeline = Timeline(mode="full")
        assert timeline.mode == TimelineMode.FULL
        assert timeline.is_empty()

    def test_rejects_non_positive_interval(self) -> None:
        """Test that checkpoint_interval must be positive."""
        with pytest.raises(ValueError):
            Timeline(mode="hybrid", checkpoint_interval=0, apply_patch=apply_grid_patch)

    def test_defaults_from_config(self) -> None:
        """Test that unspecified options come from the global config."""
        timeline = Timeline(apply_patch=apply_grid_patch)
        assert timeline.mode == TimelineMode(config.history.mode)
        assert timeline.checkpoint_interval == config.history.checkpoint_interval

    def test_empty_timeline(self) -> None:
        """Test the state of a fresh timeline."""
        timeline = Timeline(mode="patch", apply_patch=apply_grid_patch)
        assert timeline.length == 0
        assert timeline.index == -1
        assert timeline.latest_snapshot is None
        assert timeline.is_at_present()


class TestPush:
    """Tests for push_full and push_patch."""

    def test_push_full(self) -> None:
        """Test pushing a full snapshot."""
        timeline = Timeline(mode="patch", apply_patch=apply_grid_patch)
        index = timeline.push_full(STATES[0], label="start")

        assert index == 0
        assert timeline.index == 0
        assert timeline.latest_snapshot == STATES[0]
        entry = timeline.get_entry(0)
        assert entry.snapshot == STATES[0]
        assert entry.patch is None
        assert entry.label == "start"
        assert entry.checkpoint is True

    def test_push_full_rejects_none(self) -> None:
        """Test that None is not a valid snapshot."""
        timeline = Timeline(mode="full")
        with pytest.raises(ValueError):
            timeline.push_full(None)

    def test_push_patch_without_baseline(self) -> None:
        """Test that a patch cannot be the first entry."""
        timeline = Timeline(mode="patch", apply_patch=apply_grid_patch)
        with pytest.raises(MissingBaselineError):
            timeline.push_patch([CellPatch(0, 0, 1)])
        assert timeline.length == 0
        assert timeline.index == -1

    def test_push_patch_in_full_mode(self) -> None:
        """Test that full mode rejects patches without changing anything."""
        timeline = Timeline(mode="full")
        timeline.push_full(STATES[0])
        with pytest.raises(TimelineModeError):
            timeline.push_patch([CellPatch(0, 0, 1)])
        assert timeline.length == 1

    def test_patch_mode_stores_no_intermediate_snapshots(self) -> None:
        """Test that only entry 0 holds a snapshot in patch mode."""
        timeline = build()

        assert timeline.get_entry(0).snapshot == STATES[0]
        for entry in timeline.entries[1:]:
            assert entry.snapshot is None
            assert entry.patch is not None

    def test_latest_snapshot_computed_eagerly(self) -> None:
        """Test that the tip snapshot is known without reconstruction."""
        timeline = build()
        assert timeline.latest_snapshot == STATES[-1]
        assert timeline.replay_count == 0

    def test_failing_patch_leaves_timeline_untouched(self) -> None:
        """Test that a codec error during push does not truncate history."""

        def broken(base, patch):
            raise RuntimeError("boom")

        timeline = Timeline(mode="patch", apply_patch=broken)
        timeline.push_full(STATES[0])
        with pytest.raises(RuntimeError):
            timeline.push_patch([CellPatch(0, 0, 1)])
        assert timeline.length == 1


class TestReconstruction:
    """Tests for get_snapshot_at."""

    def test_round_trip_with_cleared_caches(self) -> None:
        """Test every index reconstructs to the originally pushed state."""
        timeline = build()
        for i, expected in enumerate(STATES):
            timeline.clear_cache()
            assert timeline.get_snapshot_at(i) == expected

    def test_cache_idempotence(self) -> None:
        """Test that a repeated read performs no replays."""
        timeline = build()

        first = timeline.get_snapshot_at(4)
        assert timeline.replay_count == 4

        timeline.reset_replay_count()
        second = timeline.get_snapshot_at(4)
        assert second == first
        assert timeline.replay_count == 0

    def test_intermediate_snapshots_memoized(self) -> None:
        """Test that replaying to an index caches every step on the way."""
        timeline = build()
        timeline.get_snapshot_at(3)

        for i in range(1, 4):
            assert timeline.get_entry(i).snapshot == STATES[i]
            assert timeline.get_entry(i).is_memoized
        assert timeline.get_entry(4).snapshot is None

        timeline.reset_replay_count()
        timeline.get_snapshot_at(4)
        assert timeline.replay_count == 1

    def test_clear_cache_keeps_checkpoints(self) -> None:
        """Test that clearing drops memoized snapshots only."""
        timeline = build()
        timeline.get_snapshot_at(4)

        assert timeline.clear_cache() == 4
        assert timeline.get_entry(0).snapshot == STATES[0]
        assert all(e.snapshot is None for e in timeline.entries[1:])

    def test_out_of_range(self) -> None:
        """Test that bad indexes raise TimelineIndexError."""
        timeline = build()
        with pytest.raises(TimelineIndexError):
            timeline.get_snapshot_at(5)
        with pytest.raises(IndexError):
            timeline.get_snapshot_at(-1)

    def test_current_snapshot_on_empty_timeline(self) -> None:
        """Test that an empty timeline has no current snapshot."""
        timeline = Timeline(mode="patch", apply_patch=apply_grid_patch)
        with pytest.raises(TimelineIndexError):
            timeline.get_current_snapshot()


class TestHybridMode:
    """Tests for periodic checkpoints."""

    STATES = [tuple([i] * 3) for i in range(13)]

    def test_checkpoints_stored_on_interval(self) -> None:
        """Test that every fourth entry holds a stored snapshot."""
        timeline = build(self.STATES, mode="hybrid", checkpoint_interval=4)

        checkpoints = [e.index for e in timeline.entries if e.checkpoint]
        assert checkpoints == [0, 4, 8, 12]
        assert timeline.get_entry(8).snapshot == self.STATES[8]

    def test_replay_bounded_by_interval(self) -> None:
        """Test that reconstruction replays at most interval - 1 patches."""
        timeline = build(self.STATES, mode="hybrid", checkpoint_interval=4)

        for i, expected in enumerate(self.STATES):
            timeline.clear_cache()
            timeline.reset_replay_count()
            assert timeline.get_snapshot_at(i) == expected
            assert timeline.replay_count <= 3

    def test_stats(self) -> None:
        """Test the storage breakdown."""
        timeline = build(self.STATES, mode="hybrid", checkpoint_interval=4)
        timeline.get_snapshot_at(2)

        stats = timeline.stats()
        assert stats.entries == 13
        assert stats.checkpoints == 4
        assert stats.memoized == 2
        assert stats.patch_only == 7
        assert "13 entries" in stats.summary()


class TestFullMode:
    """Tests for full-snapshot timelines."""

    def test_every_entry_has_snapshot(self) -> None:
        """Test that full mode never reconstructs."""
        timeline = build(mode="full")
        for i, expected in enumerate(STATES):
            assert timeline.get_entry(i).snapshot == expected
        assert timeline.get_snapshot_at(3) == STATES[3]
        assert timeline.replay_count == 0


class TestNavigation:
    """Tests for cursor movement."""

    def test_step_backward_and_forward(self) -> None:
        """Test single steps and their boundaries."""
        timeline = build()

        assert timeline.step_forward() is False
        assert timeline.step_backward() is True
        assert timeline.index == 3
        assert not timeline.is_at_present()

        timeline.go_to_start()
        assert timeline.step_backward() is False
        assert timeline.index == 0

    def test_step_by_clamps(self) -> None:
        """Test that step_by clamps to the bounds."""
        timeline = build()

        assert timeline.step_by(-10) is True
        assert timeline.index == 0
        assert timeline.step_by(-1) is False
        assert timeline.step_by(2) is True
        assert timeline.index == 2
        assert timeline.step_by(10) is True
        assert timeline.index == 4
        assert timeline.step_by(0) is False

    def test_go_to(self) -> None:
        """Test absolute moves."""
        timeline = build()
        assert timeline.go_to(2) is True
        assert timeline.get_current_snapshot() == STATES[2]
        assert timeline.go_to(2) is False

    def test_go_to_out_of_range(self) -> None:
        """Test that a bad target leaves the cursor alone."""
        timeline = build()
        timeline.go_to(1)
        with pytest.raises(TimelineIndexError):
            timeline.go_to(7)
        assert timeline.index == 1

    def test_go_to_start_and_end(self) -> None:
        """Test jumping to both ends."""
        timeline = build()
        assert timeline.go_to_start() is True
        assert timeline.index == 0
        assert timeline.go_to_end() is True
        assert timeline.index == 4

    def test_navigation_on_empty_timeline(self) -> None:
        """Test that an empty timeline cannot move."""
        timeline = Timeline(mode="patch", apply_patch=apply_grid_patch)
        assert timeline.go_to_start() is False
        assert timeline.go_to_end() is False
        assert timeline.step_forward() is False
        assert timeline.step_by(3) is False


class TestTruncation:
    """Tests for discarding the redo tail."""

    def test_push_after_stepping_back(self) -> None:
        """Test that pushing from the past drops the future."""
        timeline = build(STATES[:4])
        timeline.step_backward()
        timeline.step_backward()

        branch_state = (9, 0, 0, 0)
        index = timeline.push_patch(compute_grid_patch(STATES[1], branch_state))

        assert index == 2
        assert timeline.length == 3
        assert timeline.latest_snapshot == branch_state
        timeline.clear_cache()
        assert timeline.get_snapshot_at(2) == branch_state
        assert timeline.step_forward() is False

    def test_push_full_after_stepping_back(self) -> None:
        """Test that full pushes truncate as well."""
        timeline = build()
        timeline.go_to(0)
        timeline.push_full((5, 5, 5, 5))

        assert timeline.length == 2
        assert timeline.latest_snapshot == (5, 5, 5, 5)

    def test_truncate_future(self) -> None:
        """Test explicit truncation recomputes the tip."""
        timeline = build()
        timeline.go_to(1)

        assert timeline.truncate_future() == 3
        assert timeline.length == 2
        assert timeline.latest_snapshot == STATES[1]
        assert timeline.is_at_present()
        assert timeline.truncate_future() == 0


class TestCopyPrefix:
    """Tests for copying a prefix into an independent timeline."""

    def test_copy_holds_prefix(self) -> None:
        """Test the copied entries and cursor."""
        timeline = build()
        clone = timeline.copy_prefix(2)

        assert clone.length == 3
        assert clone.index == 2
        assert clone.latest_snapshot == STATES[2]
        assert clone.mode == timeline.mode

    def test_copy_shares_no_entries(self) -> None:
        """Test that cache fills on the copy never reach the original."""
        timeline = build()
        clone = timeline.copy_prefix(3)

        for original, copied in zip(timeline.entries, clone.entries):
            assert original is not copied

        timeline.clear_cache()
        clone.clear_cache()
        clone.get_snapshot_at(3)
        assert timeline.get_entry(3).snapshot is None

    def test_copy_evolves_independently(self) -> None:
        """Test that pushing on the copy leaves the original alone."""
        timeline = build()
        clone = timeline.copy_prefix(1)
        clone.push_patch(compute_grid_patch(STATES[1], (1, 0, 0, 7)))

        assert timeline.length == 5
        assert timeline.latest_snapshot == STATES[-1]
        assert clone.latest_snapshot == (1, 0, 0, 7)

    def test_copy_out_of_range(self) -> None:
        """Test that the fork index must exist."""
        with pytest.raises(TimelineIndexError):
            build().copy_prefix(5)


class TestEntrySummary:
    """Tests for TimelineEntry.to_dict."""

    def test_summary_omits_payloads(self) -> None:
        """Test the summary shape for stored and patch-only entries."""
        timeline = build(mode="hybrid", checkpoint_interval=2)

        first = timeline.get_entry(0).to_dict()
        assert set(first) == {
            "index",
            "label",
            "timestamp",
            "has_snapshot",
            "has_patch",
            "checkpoint",
        }
        assert first["index"] == 0
        assert first["has_snapshot"] is True
        assert first["has_patch"] is False
        assert first["checkpoint"] is True

        patch_only = timeline.get_entry(1).to_dict()
        assert patch_only["has_snapshot"] is False
        assert patch_only["has_patch"] is True
        assert patch_only["checkpoint"] is False

        checkpoint = timeline.get_entry(2).to_dict()
        assert checkpoint["has_snapshot"] is True
        assert checkpoint["has_patch"] is True

    def test_timestamp_is_iso_utc(self) -> None:
        """Test that the timestamp is an ISO-8601 string in UTC."""
        timeline = Timeline(mode="full")
        timeline.push_full(STATES[0], label="start")

        summary = timeline.get_entry(0).to_dict()
        stamp = datetime.fromisoformat(summary["timestamp"])

        assert summary["label"] == "start"
        assert stamp.utcoffset() == timedelta(0)
        assert stamp == timeline.get_entry(0).timestamp

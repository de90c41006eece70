"""
Append-only timeline of snapshots and patches.

A timeline is an indexable log of entries with a cursor. Entries carry a
full snapshot, a patch from the previous entry, or both. Snapshots for
patch-only entries are reconstructed lazily by replaying patches forward
from the nearest stored snapshot, and memoized on the way.
"""

import copy
from typing import Any, Callable, List, Optional, Tuple, Union

from chronoweave.config import config
from chronoweave.errors import (
    HookConfigurationError,
    MissingBaselineError,
    TimelineIndexError,
    TimelineModeError,
)
from chronoweave.logging import get_chrono_logger, performance_monitor
from .types import TimelineEntry, TimelineMode, TimelineStats

log = get_chrono_logger("timeline")


class Timeline:
    """
    Indexable, appendable log of history entries with a cursor.

    Storage policy depends on the mode:
    - full: every entry stores a snapshot; patches are rejected
    - patch: only entry 0 (and full pushes) store snapshots
    - hybrid: patch entries also store a snapshot when
      ``index % checkpoint_interval == 0``, bounding replay distance to
      ``checkpoint_interval - 1``

    The cursor lies in ``[-1, length - 1]``; -1 means the timeline is empty.
    Pushing while the cursor is behind the tip discards the redo tail.
    """

    def __init__(
        self,
        mode: Optional[Union[TimelineMode, str]] = None,
        checkpoint_interval: Optional[int] = None,
        apply_patch: Optional[Callable[[Any, Any], Any]] = None,
    ):
        """
        Initialize an empty timeline.

        Args:
            mode: Storage mode (default: config.history.mode)
            checkpoint_interval: Checkpoint spacing for hybrid mode
                (default: config.history.checkpoint_interval)
            apply_patch: (base, patch) -> snapshot; required unless mode is full

        Raises:
            HookConfigurationError: If apply_patch is missing in patch/hybrid mode
            ValueError: If checkpoint_interval is not positive
        """
        settings = config.history
        self._mode = TimelineMode(mode if mode is not None else settings.mode)
        interval = (
            checkpoint_interval
            if checkpoint_interval is not None
            else settings.checkpoint_interval
        )
        if interval < 1:
            raise ValueError(f"checkpoint_interval must be positive, got {interval}")

        if self._mode != TimelineMode.FULL and apply_patch is None:
            raise HookConfigurationError(
                f"Timeline requires apply_patch in '{self._mode.value}' mode"
            )

        self._checkpoint_interval = interval
        self._apply_patch = apply_patch
        self._entries: List[TimelineEntry] = []
        self._cursor = -1
        self._latest_snapshot: Optional[Any] = None

        # Patches applied by reconstruction since the last reset
        self.replay_count = 0

    @property
    def mode(self) -> TimelineMode:
        return self._mode

    @property
    def checkpoint_interval(self) -> int:
        return self._checkpoint_interval

    @property
    def length(self) -> int:
        return len(self._entries)

    @property
    def index(self) -> int:
        """Current cursor index, or -1 if the timeline is empty."""
        return self._cursor

    @property
    def latest_snapshot(self) -> Optional[Any]:
        """Snapshot at the last entry, or None if the timeline is empty."""
        return self._latest_snapshot

    @property
    def entries(self) -> Tuple[TimelineEntry, ...]:
        return tuple(self._entries)

    def is_empty(self) -> bool:
        return not self._entries

    def is_at_present(self) -> bool:
        """Is the cursor on the most recent entry?"""
        return self._cursor == len(self._entries) - 1

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def push_full(self, snapshot: Any, label: Optional[str] = None) -> int:
        """
        Push a full snapshot and move the cursor to it.

        Args:
            snapshot: Snapshot to store (must not be None)
            label: Optional label for the entry

        Returns:
            Index of the new entry
        """
        if snapshot is None:
            raise ValueError("Timeline.push_full() requires a snapshot, got None")

        self.truncate_future()

        index = len(self._entries)
        self._entries.append(
            TimelineEntry(index=index, snapshot=snapshot, label=label, checkpoint=True)
        )
        self._latest_snapshot = snapshot
        self._cursor = index

        log.debug(f"Pushed full snapshot at {index}", index=index, label=label)
        return index

    def push_patch(self, patch: Any, label: Optional[str] = None) -> int:
        """
        Push a patch and move the cursor to it.

        The next snapshot is computed eagerly against the snapshot at the
        cursor so later diffs always have a baseline; it is stored on the
        entry only when the checkpoint policy says so.

        Args:
            patch: Patch from the snapshot at the cursor
            label: Optional label for the entry

        Returns:
            Index of the new entry

        Raises:
            TimelineModeError: If the timeline is in full mode
            MissingBaselineError: If no snapshot has been pushed yet
        """
        if self._mode == TimelineMode.FULL:
            raise TimelineModeError("Timeline.push_patch() called in 'full' mode")
        if not self._entries:
            raise MissingBaselineError(
                "Timeline.push_patch() called with no base snapshot; "
                "call push_full() at least once"
            )

        baseline = (
            self._latest_snapshot
            if self.is_at_present()
            else self.get_snapshot_at(self._cursor)
        )
        # Applied before truncating so a failing codec leaves the log untouched
        next_snapshot = self._apply_patch(baseline, patch)  # type: ignore[misc]

        self.truncate_future()

        index = len(self._entries)
        store = self._should_checkpoint(index)
        self._entries.append(
            TimelineEntry(
                index=index,
                snapshot=next_snapshot if store else None,
                patch=patch,
                label=label,
                checkpoint=store,
            )
        )
        self._latest_snapshot = next_snapshot
        self._cursor = index

        log.debug(
            f"Pushed patch at {index}", index=index, label=label, checkpoint=store
        )
        return index

    def truncate_future(self) -> int:
        """
        Drop every entry after the cursor.

        Returns:
            Number of entries dropped
        """
        if self._cursor >= len(self._entries) - 1:
            return 0

        dropped = len(self._entries) - 1 - self._cursor
        del self._entries[self._cursor + 1 :]
        self._latest_snapshot = self.get_snapshot_at(self._cursor)

        log.debug(
            f"Truncated {dropped} future entries", dropped=dropped, cursor=self._cursor
        )
        return dropped

    def _should_checkpoint(self, index: int) -> bool:
        if self._mode == TimelineMode.HYBRID:
            return index % self._checkpoint_interval == 0
        return False

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def get_entry(self, index: int) -> TimelineEntry:
        """
        Get the entry at an index.

        Raises:
            TimelineIndexError: If index is out of range
        """
        if index < 0 or index >= len(self._entries):
            raise TimelineIndexError(index, len(self._entries))
        return self._entries[index]

    @performance_monitor(threshold_ms=100.0)
    def get_snapshot_at(self, index: int) -> Any:
        """
        Reconstruct the snapshot at an index.

        Returns the entry's snapshot if present; otherwise replays patches
        forward from the nearest earlier stored snapshot, caching each
        intermediate snapshot on its entry so later reads are O(1).

        Raises:
            TimelineIndexError: If index is out of range
        """
        entry = self.get_entry(index)
        if entry.snapshot is not None:
            return entry.snapshot

        # Entry 0 always holds a snapshot, so this stops
        base_index = index
        while self._entries[base_index].snapshot is None:
            base_index -= 1

        current = self._entries[base_index].snapshot
        for i in range(base_index + 1, index + 1):
            step = self._entries[i]
            current = self._apply_patch(current, step.patch)  # type: ignore[misc]
            self.replay_count += 1
            step.snapshot = current

        log.trace(
            f"Reconstructed snapshot at {index}",
            index=index,
            base_index=base_index,
            replayed=index - base_index,
        )
        return current

    def get_current_snapshot(self) -> Any:
        """
        Snapshot at the cursor.

        Raises:
            TimelineIndexError: If the timeline is empty
        """
        return self.get_snapshot_at(self._cursor)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def step_forward(self) -> bool:
        """Move the cursor one step forward. Returns True if it moved."""
        if self._cursor < 0 and self._entries:
            self._cursor = 0
            return True
        if self._cursor >= len(self._entries) - 1:
            return False
        self._cursor += 1
        return True

    def step_backward(self) -> bool:
        """Move the cursor one step back. Returns True if it moved."""
        if self._cursor <= 0:
            return False
        self._cursor -= 1
        return True

    def step_by(self, offset: int) -> bool:
        """
        Move the cursor by ``offset``, clamped to the timeline bounds.

        Returns:
            True if the cursor changed
        """
        if not self._entries:
            return False
        target = min(max(self._cursor + offset, 0), len(self._entries) - 1)
        moved = target != self._cursor
        self._cursor = target
        return moved

    def go_to(self, index: int) -> bool:
        """
        Move the cursor to an absolute index.

        Returns:
            True if the cursor changed

        Raises:
            TimelineIndexError: If index is out of range
        """
        self.get_entry(index)
        moved = index != self._cursor
        self._cursor = index
        return moved

    def go_to_start(self) -> bool:
        """Move the cursor to the first entry. False if the timeline is empty."""
        if not self._entries:
            return False
        self._cursor = 0
        return True

    def go_to_end(self) -> bool:
        """Move the cursor to the latest entry. False if the timeline is empty."""
        if not self._entries:
            return False
        self._cursor = len(self._entries) - 1
        return True

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def clear_cache(self) -> int:
        """
        Drop every memoized snapshot, keeping those stored by policy.

        Returns:
            Number of snapshots dropped
        """
        cleared = 0
        for entry in self._entries:
            if entry.is_memoized:
                entry.snapshot = None
                cleared += 1
        return cleared

    def reset_replay_count(self) -> None:
        self.replay_count = 0

    def copy_prefix(self, index: int) -> "Timeline":
        """
        Deep-copy entries ``[0..index]`` into a new timeline.

        The copy shares no entry objects with this timeline, so filling a
        cache on one never shows up on the other. Its cursor sits on its
        last entry.

        Raises:
            TimelineIndexError: If index is out of range
        """
        self.get_entry(index)

        clone = Timeline(
            mode=self._mode,
            checkpoint_interval=self._checkpoint_interval,
            apply_patch=self._apply_patch,
        )
        clone._entries = copy.deepcopy(self._entries[: index + 1])
        clone._cursor = index
        clone._latest_snapshot = clone.get_snapshot_at(index)
        return clone

    def stats(self) -> TimelineStats:
        """Count stored, memoized and patch-only entries."""
        checkpoints = sum(1 for e in self._entries if e.checkpoint)
        memoized = sum(1 for e in self._entries if e.is_memoized)
        return TimelineStats(
            entries=len(self._entries),
            checkpoints=checkpoints,
            memoized=memoized,
            patch_only=len(self._entries) - checkpoints - memoized,
        )

"""
Linear convenience wrappers around a single timeline.

``StateRecorder`` turns "record this state" into the snapshot, diff and push
sequence. ``StateHistory`` binds a live state object to a recorder and a
linear timeline for callers that do not need branching.
"""

from typing import Any, Callable, Generic, Optional, TypeVar, Union

from chronoweave.config import config
from chronoweave.errors import HookConfigurationError
from chronoweave.logging import get_chrono_logger
from .hooks import HistoryHooks
from .timeline import Timeline
from .types import TimelineMode

log = get_chrono_logger("recorder")

State = TypeVar("State")


class StateRecorder(Generic[State]):
    """
    Records states into a timeline as full snapshots or patches.

    The baseline for each diff is the timeline's snapshot at its cursor, so
    recording after stepping back behaves like a linear commit: the redo
    tail is discarded.
    """

    def __init__(
        self,
        timeline: Timeline,
        snapshot: Callable[[State], Any],
        patch: Optional[Callable[[Any, Any], Any]] = None,
        is_empty_patch: Optional[Callable[[Any], bool]] = None,
    ):
        """
        Initialize a recorder.

        Args:
            timeline: Timeline to record into
            snapshot: state -> snapshot
            patch: (prev, next) -> patch; required unless the timeline is in full mode
            is_empty_patch: patch -> bool; empty patches are not recorded
        """
        if timeline.mode != TimelineMode.FULL and patch is None:
            raise HookConfigurationError(
                f"StateRecorder requires a patch function in '{timeline.mode.value}' mode"
            )

        self.timeline = timeline
        self._snapshot = snapshot
        self._patch = patch
        self._is_empty_patch = is_empty_patch

    def record(self, state: State, label: Optional[str] = None) -> int:
        """
        Record a state.

        Args:
            state: State to record
            label: Optional label for the entry

        Returns:
            Index of the new entry, or the current index if nothing changed
        """
        snap = self._snapshot(state)
        timeline = self.timeline

        if timeline.is_empty() or timeline.mode == TimelineMode.FULL:
            return timeline.push_full(snap, label)

        baseline = (
            timeline.latest_snapshot
            if timeline.is_at_present()
            else timeline.get_snapshot_at(timeline.index)
        )
        patch = self._patch(baseline, snap)  # type: ignore[misc]

        if self._is_empty_patch is not None and self._is_empty_patch(patch):
            log.debug("Skipped empty record", index=timeline.index, label=label)
            return timeline.index

        return timeline.push_patch(patch, label)


class StateHistory(Generic[State]):
    """
    Linear undo/redo over a live state object.

    The initial state is recorded on construction.

    Example:
        >>> history = StateHistory(board, hooks)
        >>> board.cells[0] = 1
        >>> history.record("move")
        1
        >>> history.undo()
        True
    """

    def __init__(
        self,
        state: State,
        hooks: HistoryHooks,
        mode: Optional[Union[TimelineMode, str]] = None,
        checkpoint_interval: Optional[int] = None,
    ):
        """
        Initialize history and record the initial state.

        Args:
            state: Live state; owned by the history from now on
            hooks: Caller capabilities, validated against the mode here
            mode: Storage mode (default: config.history.mode)
            checkpoint_interval: Hybrid checkpoint spacing

        Raises:
            HookConfigurationError: If hooks lack a capability the mode requires
        """
        mode = TimelineMode(mode if mode is not None else config.history.mode)
        self._hooks = hooks.validate(mode)
        self._state = state

        self.timeline = Timeline(
            mode=mode,
            checkpoint_interval=checkpoint_interval,
            apply_patch=hooks.apply_patch_to_snapshot,
        )
        self.recorder: StateRecorder[State] = StateRecorder(
            timeline=self.timeline,
            snapshot=hooks.create_snapshot,
            patch=hooks.create_patch,
            is_empty_patch=hooks.is_empty_patch,
        )

        self.recorder.record(self._state)

    @property
    def state(self) -> State:
        return self._state

    @property
    def length(self) -> int:
        return self.timeline.length

    @property
    def index(self) -> int:
        return self.timeline.index

    def is_at_present(self) -> bool:
        return self.timeline.is_at_present()

    def record(self, label: Optional[str] = None) -> int:
        """Record the live state. Returns the index now under the cursor."""
        return self.recorder.record(self._state, label)

    def resolve_snapshot(self) -> Any:
        """Live snapshot at the present, else the snapshot at the cursor."""
        if self.timeline.is_at_present():
            return self._hooks.create_snapshot(self._state)
        return self.timeline.get_current_snapshot()

    def apply_snapshot(self) -> Any:
        """Write the snapshot at the cursor onto the live state."""
        snapshot = self.timeline.get_current_snapshot()
        self._hooks.apply_snapshot_to_state(snapshot, self._state)
        return snapshot

    def undo(self) -> bool:
        """Step back one entry. Returns False at the first entry."""
        if not self.timeline.step_backward():
            return False
        self.apply_snapshot()
        return True

    def redo(self) -> bool:
        """Step forward one entry. Returns False at the tip."""
        if not self.timeline.step_forward():
            return False
        self.apply_snapshot()
        return True

    def go_to(self, index: int) -> Any:
        """
        Travel to an absolute index.

        Raises:
            TimelineIndexError: If index is out of range
        """
        self.timeline.go_to(index)
        return self.apply_snapshot()

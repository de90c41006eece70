"""
Branch manager binding a live state to one or more timelines.

The time machine owns the caller's live state object. ``commit()`` records
it into the active branch; time-travel calls move the cursor and write the
resulting snapshot back onto the state. Under branching topology, a commit
made while looking at the past forks a new branch instead of discarding the
redo tail.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar, Union

from chronoweave.config import config
from chronoweave.errors import BranchNotFoundError, TimelineIndexError, TopologyError
from chronoweave.logging import get_chrono_logger, track_history_operation
from chronoweave.patch.types import PatchDirection
from .hooks import HistoryHooks
from .timeline import Timeline
from .types import TimelineEntry, TimelineMode, Topology

log = get_chrono_logger("branching")

State = TypeVar("State")


@dataclass
class Branch:
    """
    An independent line of history.

    Attributes:
        branch_id: Unique integer id (the root branch is 0)
        timeline: The branch's own timeline
        parent_id: Branch this one was forked from, if any
        fork_index: Position in the parent timeline where history diverged
        label: Optional label (the commit label that caused the fork)
    """

    branch_id: int
    timeline: Timeline
    parent_id: Optional[int] = None
    fork_index: Optional[int] = None
    label: Optional[str] = None

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "branch_id": self.branch_id,
            "parent_id": self.parent_id,
            "fork_index": self.fork_index,
            "label": self.label,
            "length": self.timeline.length,
            "index": self.timeline.index,
        }


class TimeMachine(Generic[State]):
    """
    Branching undo/redo over a live, mutable state object.

    Example:
        >>> machine = TimeMachine(board, hooks, topology="branching")
        >>> machine.commit("initial")
        >>> board.cells[0] = 1
        >>> machine.commit("move")
        >>> machine.step_backward()
        >>> board.cells[1] = 1
        >>> machine.commit("other move")  # forks branch 1
        >>> machine.branch_count
        2
    """

    def __init__(
        self,
        state: State,
        hooks: HistoryHooks,
        mode: Optional[Union[TimelineMode, str]] = None,
        checkpoint_interval: Optional[int] = None,
        topology: Optional[Union[Topology, str]] = None,
    ):
        """
        Initialize a time machine with an empty root branch.

        Args:
            state: Live state; owned by the time machine from now on
            hooks: Caller capabilities, validated against the mode here
            mode: Storage mode (default: config.history.mode)
            checkpoint_interval: Hybrid checkpoint spacing
                (default: config.history.checkpoint_interval)
            topology: linear or branching (default: config.history.topology)

        Raises:
            HookConfigurationError: If hooks lack a capability the mode requires
        """
        settings = config.history
        self._mode = TimelineMode(mode if mode is not None else settings.mode)
        self._topology = Topology(topology if topology is not None else settings.topology)
        self._checkpoint_interval = (
            checkpoint_interval
            if checkpoint_interval is not None
            else settings.checkpoint_interval
        )
        self._hooks = hooks.validate(self._mode)
        self._state = state

        root = Branch(branch_id=0, timeline=self._new_timeline())
        self._branches: Dict[int, Branch] = {root.branch_id: root}
        self._active_id = root.branch_id
        self._next_branch_id = 1

        log.debug(
            "Initialized time machine",
            mode=self._mode.value,
            topology=self._topology.value,
        )

    def _new_timeline(self) -> Timeline:
        return Timeline(
            mode=self._mode,
            checkpoint_interval=self._checkpoint_interval,
            apply_patch=(
                self._hooks.apply_patch_to_snapshot
                if self._mode != TimelineMode.FULL
                else None
            ),
        )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> State:
        return self._state

    @property
    def mode(self) -> TimelineMode:
        return self._mode

    @property
    def topology(self) -> Topology:
        return self._topology

    @property
    def branch(self) -> Branch:
        """The active branch."""
        return self._branches[self._active_id]

    @property
    def timeline(self) -> Timeline:
        """Timeline of the active branch."""
        return self.branch.timeline

    @property
    def length(self) -> int:
        return self.timeline.length

    @property
    def index(self) -> int:
        return self.timeline.index

    @property
    def branch_count(self) -> int:
        return len(self._branches)

    @property
    def branch_id(self) -> int:
        return self._active_id

    def is_at_present(self) -> bool:
        return self.timeline.is_at_present()

    def list_branches(self) -> List[int]:
        """Branch ids in ascending order."""
        return sorted(self._branches)

    def get_branch(self, branch_id: int) -> Branch:
        """
        Look up a branch by id.

        Raises:
            BranchNotFoundError: If no branch has this id
        """
        try:
            return self._branches[branch_id]
        except KeyError:
            raise BranchNotFoundError(branch_id) from None

    def log(self, max_count: int = 10) -> List[TimelineEntry]:
        """
        Entries of the active branch from the cursor backwards.

        Args:
            max_count: Maximum number of entries to return

        Returns:
            Entries in reverse chronological order
        """
        entries = self.timeline.entries[: self.index + 1]
        return list(reversed(entries))[:max_count]

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    @track_history_operation("commit")
    def commit(self, label: Optional[str] = None) -> Any:
        """
        Record the live state into the active branch.

        The first commit stores a full snapshot, as does every commit in full
        mode. Otherwise a patch against the snapshot at the cursor is pushed,
        unless the hooks report it empty, in which case nothing is recorded.
        Under branching topology a commit made behind the tip first forks a
        new branch holding entries ``[0..cursor]``.

        Args:
            label: Optional label for the new entry

        Returns:
            The snapshot of the live state
        """
        snapshot = self._hooks.create_snapshot(self._state)
        timeline = self.timeline

        if timeline.is_empty():
            timeline.push_full(snapshot, label)
            return snapshot

        if self._mode == TimelineMode.FULL:
            self._write(lambda target: target.push_full(snapshot, label), label)
            return snapshot

        baseline = (
            timeline.latest_snapshot
            if timeline.is_at_present()
            else timeline.get_snapshot_at(timeline.index)
        )
        patch = self._hooks.create_patch(baseline, snapshot)  # type: ignore[misc]

        is_empty_patch = self._hooks.is_empty_patch
        if is_empty_patch is not None and is_empty_patch(patch):
            log.debug("Skipped empty commit", index=timeline.index, label=label)
            return snapshot

        self._write(lambda target: target.push_patch(patch, label), label)
        return snapshot

    def _write(self, push: Callable[[Timeline], int], label: Optional[str]) -> None:
        """Push onto the active timeline, or onto a fork when branching from the past."""
        if self._topology == Topology.BRANCHING and not self.timeline.is_at_present():
            self._fork(push, label)
        else:
            push(self.timeline)

    @track_history_operation("fork")
    def _fork(self, push: Callable[[Timeline], int], label: Optional[str] = None) -> Branch:
        parent = self.branch
        fork_index = parent.timeline.index

        # The branch is registered only once the push has succeeded
        timeline = parent.timeline.copy_prefix(fork_index)
        push(timeline)

        branch = Branch(
            branch_id=self._next_branch_id,
            timeline=timeline,
            parent_id=parent.branch_id,
            fork_index=fork_index,
            label=label,
        )
        self._branches[branch.branch_id] = branch
        self._next_branch_id += 1
        self._active_id = branch.branch_id

        log.info(
            f"Forked branch {branch.branch_id} from {parent.branch_id} at {fork_index}",
            branch_id=branch.branch_id,
            parent_id=parent.branch_id,
            fork_index=fork_index,
        )
        return branch

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------

    def next_branch(self) -> Any:
        """Switch to the branch with the next higher id, wrapping around."""
        return self.cycle_branch(1)

    def previous_branch(self) -> Any:
        """Switch to the branch with the next lower id, wrapping around."""
        return self.cycle_branch(-1)

    def cycle_branch(self, offset: int) -> Any:
        """
        Switch ``offset`` places along the ascending branch ids, with wraparound.

        Returns:
            The snapshot now reflected by the live state

        Raises:
            TopologyError: If topology is linear
        """
        self._require_branching("cycle_branch")

        ids = self.list_branches()
        position = ids.index(self._active_id)
        return self.switch_branch(ids[(position + offset) % len(ids)])

    @track_history_operation("switch")
    def switch_branch(self, branch_id: int) -> Any:
        """
        Make another branch active and load its cursor snapshot.

        The live state is overwritten in full, never patched, since the two
        branches may have diverged arbitrarily since the fork point.
        Switching to the active branch changes nothing.

        Returns:
            The snapshot now reflected by the live state

        Raises:
            TopologyError: If topology is linear
            BranchNotFoundError: If no branch has this id
        """
        self._require_branching("switch_branch")
        target = self.get_branch(branch_id)

        if target.branch_id == self._active_id:
            return self.resolve_snapshot()

        previous_id = self._active_id
        self._active_id = target.branch_id
        snapshot = self._apply_current_snapshot()

        log.info(
            f"Switched from branch {previous_id} to {target.branch_id}",
            previous_id=previous_id,
            branch_id=target.branch_id,
        )
        return snapshot

    def _require_branching(self, operation: str) -> None:
        if self._topology != Topology.BRANCHING:
            log.error(f"{operation} requires branching topology")
            raise TopologyError(
                f"TimeMachine.{operation}() requires 'branching' topology "
                f"(got '{self._topology.value}')"
            )

    # ------------------------------------------------------------------
    # Time travel
    # ------------------------------------------------------------------

    def resolve_snapshot(self) -> Any:
        """Live snapshot at the present, else the snapshot at the cursor."""
        if self.timeline.is_at_present():
            return self._hooks.create_snapshot(self._state)
        return self.timeline.get_current_snapshot()

    def go_to_start(self) -> Any:
        """
        Travel to the first entry.

        Raises:
            TimelineIndexError: If the active timeline is empty
        """
        if not self.timeline.go_to_start():
            raise TimelineIndexError(0, 0)
        return self._apply_current_snapshot()

    def go_to_end(self) -> Any:
        """
        Travel to the latest entry.

        Raises:
            TimelineIndexError: If the active timeline is empty
        """
        if not self.timeline.go_to_end():
            raise TimelineIndexError(0, 0)
        return self._apply_current_snapshot()

    def go_to(self, index: int) -> Any:
        """
        Travel to an absolute index.

        Raises:
            TimelineIndexError: If index is out of range
        """
        self.timeline.go_to(index)
        return self._apply_current_snapshot()

    def step_forward(self) -> bool:
        """Redo one step. Returns False at the tip."""
        return self._step(1)

    def step_backward(self) -> bool:
        """Undo one step. Returns False at the first entry."""
        return self._step(-1)

    def step_by(self, offset: int) -> bool:
        """
        Move ``offset`` steps (negative for backward), clamped to the bounds.

        Returns:
            True if the cursor changed
        """
        if self._hooks.apply_patch_to_state is not None:
            delta = 1 if offset > 0 else -1
            moved = False
            for _ in range(abs(offset)):
                if not self._step(delta):
                    break
                moved = True
            return moved

        if not self.timeline.step_by(offset):
            return False
        self._apply_current_snapshot()
        return True

    def rewind(self, steps: int) -> Any:
        """
        Step backward up to ``steps`` times.

        Returns:
            Snapshot of the live state afterwards

        Raises:
            ValueError: If steps is negative
        """
        if steps < 0:
            raise ValueError(f"steps must not be negative (got {steps})")
        return self.seek(-steps)

    def fast_forward(self, steps: int) -> Any:
        """
        Step forward up to ``steps`` times.

        Returns:
            Snapshot of the live state afterwards

        Raises:
            ValueError: If steps is negative
        """
        if steps < 0:
            raise ValueError(f"steps must not be negative (got {steps})")
        return self.seek(steps)

    def seek(self, steps: int) -> Any:
        """Step by a signed amount and return the resolved snapshot."""
        self.step_by(steps)
        return self.resolve_snapshot()

    def _step(self, delta: int) -> bool:
        timeline = self.timeline
        departed = timeline.index

        moved = timeline.step_forward() if delta > 0 else timeline.step_backward()
        if not moved:
            return False

        apply_patch_to_state = self._hooks.apply_patch_to_state
        if apply_patch_to_state is not None:
            # The patch of the later of the two entries links them
            if delta > 0:
                entry, direction = timeline.get_entry(timeline.index), PatchDirection.FORWARD
            else:
                entry, direction = timeline.get_entry(departed), PatchDirection.BACKWARD
            if entry.patch is not None:
                apply_patch_to_state(entry.patch, direction, self._state)
                log.trace(
                    "Applied patch in place",
                    index=timeline.index,
                    direction=direction.value,
                )
                return True

        self._apply_current_snapshot()
        return True

    def _apply_current_snapshot(self) -> Any:
        snapshot = self.timeline.get_current_snapshot()
        self._hooks.apply_snapshot_to_state(snapshot, self._state)
        return snapshot

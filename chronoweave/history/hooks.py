"""
Capability interface between the history engine and the caller's state.

The caller supplies pure functions for snapshotting, patching and applying;
the engine validates them once against its storage mode at construction
instead of checking per call.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, FrozenSet, List, Optional, Union

from chronoweave.errors import HookConfigurationError
from chronoweave.patch.types import PatchDirection
from .types import TimelineMode


class Capability(str, Enum):
    """Functions a caller may supply to the history engine."""

    CREATE_SNAPSHOT = "create_snapshot"
    APPLY_SNAPSHOT_TO_STATE = "apply_snapshot_to_state"
    CREATE_PATCH = "create_patch"
    APPLY_PATCH_TO_SNAPSHOT = "apply_patch_to_snapshot"
    APPLY_PATCH_TO_STATE = "apply_patch_to_state"
    IS_EMPTY_PATCH = "is_empty_patch"


_ALWAYS_REQUIRED = frozenset(
    {Capability.CREATE_SNAPSHOT, Capability.APPLY_SNAPSHOT_TO_STATE}
)
_PATCH_REQUIRED = frozenset(
    {Capability.CREATE_PATCH, Capability.APPLY_PATCH_TO_SNAPSHOT}
)


def required_capabilities(mode: Union[TimelineMode, str]) -> FrozenSet[Capability]:
    """
    Capabilities a timeline in ``mode`` cannot work without.

    Raises:
        ValueError: If mode is not a known timeline mode
    """
    if TimelineMode(mode) == TimelineMode.FULL:
        return _ALWAYS_REQUIRED
    return _ALWAYS_REQUIRED | _PATCH_REQUIRED


@dataclass(frozen=True)
class HistoryHooks:
    """
    Caller-supplied functions binding a live state to a timeline.

    Attributes:
        create_snapshot: state -> snapshot (required)
        apply_snapshot_to_state: (snapshot, state) -> None, full overwrite (required)
        create_patch: (prev, next) -> patch (required unless mode is full)
        apply_patch_to_snapshot: (base, patch) -> snapshot (required unless mode is full)
        apply_patch_to_state: (patch, direction, state) -> None, in-place stepping
        is_empty_patch: patch -> bool, enables no-op suppression
    """

    create_snapshot: Callable[[Any], Any]
    apply_snapshot_to_state: Callable[[Any, Any], None]
    create_patch: Optional[Callable[[Any, Any], Any]] = None
    apply_patch_to_snapshot: Optional[Callable[[Any, Any], Any]] = None
    apply_patch_to_state: Optional[Callable[[Any, PatchDirection, Any], None]] = None
    is_empty_patch: Optional[Callable[[Any], bool]] = None

    def has(self, capability: Capability) -> bool:
        return getattr(self, capability.value) is not None

    @property
    def capabilities(self) -> FrozenSet[Capability]:
        """All capabilities this hook set provides."""
        return frozenset(c for c in Capability if self.has(c))

    def missing(self, mode: Union[TimelineMode, str]) -> List[Capability]:
        """Required capabilities for ``mode`` that are not supplied."""
        required = required_capabilities(mode)
        return sorted((c for c in required if not self.has(c)), key=lambda c: c.value)

    def validate(self, mode: Union[TimelineMode, str]) -> "HistoryHooks":
        """
        Check the hooks against a timeline mode.

        Returns:
            self, for chaining

        Raises:
            HookConfigurationError: If a capability required by the mode is missing
        """
        missing = self.missing(mode)
        if missing:
            names = ", ".join(c.value for c in missing)
            raise HookConfigurationError(
                f"Hooks missing capabilities required in '{TimelineMode(mode).value}' mode: {names}"
            )
        return self

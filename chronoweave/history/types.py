"""
Core value types for timelines.

Defines storage modes, topologies, and the entries that make up a timeline.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class TimelineMode(str, Enum):
    """How a timeline stores history."""

    FULL = "full"
    PATCH = "patch"
    HYBRID = "hybrid"


class Topology(str, Enum):
    """What committing from the past does to the redo tail."""

    LINEAR = "linear"
    BRANCHING = "branching"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class TimelineEntry:
    """
    One position in a timeline.

    Entry 0 always carries a snapshot; every later entry without a snapshot
    carries a patch. The snapshot cell may be filled in after construction
    (memoization) but the patch never changes.

    Attributes:
        index: Position in the timeline
        snapshot: Full snapshot, stored by policy or filled by reconstruction
        patch: Patch from the previous entry
        label: Optional caller-supplied label
        timestamp: When the entry was created (UTC)
        checkpoint: True when the snapshot was stored at write time
    """

    index: int
    snapshot: Optional[Any] = None
    patch: Optional[Any] = None
    label: Optional[str] = None
    timestamp: datetime = field(default_factory=_utcnow)
    checkpoint: bool = False

    @property
    def has_snapshot(self) -> bool:
        return self.snapshot is not None

    @property
    def is_memoized(self) -> bool:
        """Snapshot present only because reconstruction filled it."""
        return self.snapshot is not None and not self.checkpoint

    def to_dict(self) -> Dict[str, Any]:
        """Summarize the entry without its payloads."""
        return {
            "index": self.index,
            "label": self.label,
            "timestamp": self.timestamp.isoformat(),
            "has_snapshot": self.has_snapshot,
            "has_patch": self.patch is not None,
            "checkpoint": self.checkpoint,
        }


@dataclass
class TimelineStats:
    """Storage breakdown of a timeline."""

    entries: int
    checkpoints: int
    memoized: int
    patch_only: int

    def summary(self) -> str:
        """Generate a one-line summary."""
        return (
            f"{self.entries} entries: {self.checkpoints} checkpoints, "
            f"{self.memoized} memoized, {self.patch_only} patch-only"
        )

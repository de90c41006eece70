"""
Value types for patches.

A patch is a reversible description of the difference between two
consecutive snapshots. Grid patches list one cell patch per differing cell;
scalar patches describe a single field.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Union


class PatchDirection(str, Enum):
    """Direction in which a reversible patch is applied."""

    FORWARD = "forward"
    BACKWARD = "backward"


@dataclass(frozen=True)
class CellPatch:
    """Change to one cell of a flat grid, addressed by position."""

    index: int
    prev: Any
    next: Any

    def value_for(self, direction: PatchDirection) -> Any:
        return self.next if direction == PatchDirection.FORWARD else self.prev


@dataclass(frozen=True)
class CellPatch2D:
    """Change to one cell of a 2D grid."""

    x: int
    y: int
    prev: Any
    next: Any

    def value_for(self, direction: PatchDirection) -> Any:
        return self.next if direction == PatchDirection.FORWARD else self.prev


@dataclass(frozen=True)
class CellPatch3D:
    """Change to one cell of a 3D grid."""

    x: int
    y: int
    z: int
    prev: Any
    next: Any

    def value_for(self, direction: PatchDirection) -> Any:
        return self.next if direction == PatchDirection.FORWARD else self.prev


@dataclass(frozen=True)
class ScalarPatch:
    """
    Change to a single field.

    Either side may be None when the field only exists on one side of the
    transition (e.g. an outcome that appears partway through history).
    """

    prev: Optional[Any]
    next: Optional[Any]


AnyCellPatch = Union[CellPatch, CellPatch2D, CellPatch3D]

# An empty list means "no change"
GridPatch = List[AnyCellPatch]

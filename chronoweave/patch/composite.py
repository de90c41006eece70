"""
Composite patches for structured state.

A structured snapshot is a mapping holding a grid under ``"cells"`` plus a
fixed set of named scalar fields. Its patch combines one grid sub-patch with
one scalar sub-patch per changed field, and is empty iff every sub-patch is
empty.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from chronoweave.errors import PatchShapeError
from .grid import (
    apply_grid_patch,
    apply_grid_patch_2d,
    apply_grid_patch_3d,
    compute_grid_patch,
    compute_grid_patch_2d,
    compute_grid_patch_3d,
)
from .scalar import apply_scalar_patch, compute_scalar_patch
from .types import AnyCellPatch, PatchDirection, ScalarPatch

CELLS_KEY = "cells"

Snapshot = Dict[str, Any]


@dataclass(frozen=True)
class CompositePatch:
    """Grid sub-patch plus scalar sub-patches keyed by field name."""

    cells: Tuple[AnyCellPatch, ...] = ()
    fields: Dict[str, ScalarPatch] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.cells and not self.fields

    def changed_fields(self) -> List[str]:
        """Names of the scalar fields this patch touches."""
        return sorted(self.fields)


class CompositeCodec:
    """
    Codec for snapshots shaped ``{"cells": (...), field: value, ...}``.

    The grid dimensionality follows ``shape``: ``(size,)`` diffs by flat
    index, ``(width, height)`` by (x, y), ``(width, height, depth)`` by
    (x, y, z). Snapshots built with :meth:`snapshot` always carry every
    declared field, with None standing for "absent".

    Example:
        >>> codec = CompositeCodec(shape=(3, 2), fields=["player", "outcome"])
        >>> s0 = codec.snapshot([0] * 6, player=0)
        >>> s1 = codec.snapshot([1, 0, 0, 0, 0, 0], player=1)
        >>> patch = codec.create_patch(s0, s1)
        >>> codec.apply_patch(s0, patch) == s1
        True
    """

    def __init__(self, shape: Sequence[int], fields: Sequence[str] = ()):
        if not 1 <= len(shape) <= 3:
            raise PatchShapeError(f"Grid shape must have 1 to 3 dimensions, got {len(shape)}")
        if any(extent <= 0 for extent in shape):
            raise PatchShapeError(f"Grid extents must be positive, got {tuple(shape)}")
        if CELLS_KEY in fields:
            raise PatchShapeError(f"'{CELLS_KEY}' is reserved for the grid")

        self.shape = tuple(shape)
        self.fields = tuple(fields)
        self.size = 1
        for extent in self.shape:
            self.size *= extent

    def snapshot(self, cells: Sequence[Any], **values: Any) -> Snapshot:
        """Build a normalized snapshot from grid cells and field values."""
        unknown = set(values) - set(self.fields)
        if unknown:
            raise KeyError(f"Unknown fields: {sorted(unknown)}")
        if len(cells) != self.size:
            raise PatchShapeError(
                f"Expected {self.size} cells for shape {self.shape}, got {len(cells)}"
            )

        snap: Snapshot = {CELLS_KEY: tuple(cells)}
        for name in self.fields:
            snap[name] = values.get(name)
        return snap

    def create_patch(self, prev: Snapshot, next: Snapshot) -> CompositePatch:
        """Diff two snapshots into a composite patch."""
        cells = self._diff_cells(prev[CELLS_KEY], next[CELLS_KEY])

        fields: Dict[str, ScalarPatch] = {}
        for name in self.fields:
            scalar = compute_scalar_patch(prev.get(name), next.get(name))
            if scalar is not None:
                fields[name] = scalar

        return CompositePatch(cells=tuple(cells), fields=fields)

    def apply_patch(
        self,
        base: Snapshot,
        patch: CompositePatch,
        direction: PatchDirection = PatchDirection.FORWARD,
    ) -> Snapshot:
        """Apply a composite patch, returning a new snapshot."""
        result: Snapshot = dict(base)
        result[CELLS_KEY] = self._apply_cells(base[CELLS_KEY], patch.cells, direction)

        for name, scalar in patch.fields.items():
            # Fields are always present on codec snapshots, so None is a real value
            result[name] = apply_scalar_patch(
                base.get(name), scalar, direction, keep_base_on_absent=False
            )

        return result

    def apply_patch_to_snapshot(self, base: Snapshot, patch: CompositePatch) -> Snapshot:
        """Forward application, matching the history hook signature."""
        return self.apply_patch(base, patch, PatchDirection.FORWARD)

    @staticmethod
    def is_empty_patch(patch: CompositePatch) -> bool:
        return patch.is_empty

    def hooks(
        self,
        create_snapshot: Callable[[Any], Snapshot],
        apply_snapshot_to_state: Callable[[Snapshot, Any], None],
        apply_patch_to_state: Optional[
            Callable[[CompositePatch, PatchDirection, Any], None]
        ] = None,
    ) -> Any:
        """
        Build history hooks wired to this codec.

        Args:
            create_snapshot: Reads the live state into a snapshot (use
                :meth:`snapshot` to build it)
            apply_snapshot_to_state: Overwrites the live state from a snapshot
            apply_patch_to_state: Optional in-place patch application

        Returns:
            HistoryHooks with patch creation, application and emptiness
            supplied by the codec
        """
        from chronoweave.history.hooks import HistoryHooks

        return HistoryHooks(
            create_snapshot=create_snapshot,
            apply_snapshot_to_state=apply_snapshot_to_state,
            create_patch=self.create_patch,
            apply_patch_to_snapshot=self.apply_patch_to_snapshot,
            apply_patch_to_state=apply_patch_to_state,
            is_empty_patch=self.is_empty_patch,
        )

    def _diff_cells(self, prev: Sequence[Any], next: Sequence[Any]) -> List[AnyCellPatch]:
        if len(self.shape) == 1:
            return list(compute_grid_patch(prev, next))
        if len(self.shape) == 2:
            width, height = self.shape
            return list(compute_grid_patch_2d(prev, next, width, height))
        width, height, depth = self.shape
        return list(compute_grid_patch_3d(prev, next, width, height, depth))

    def _apply_cells(
        self,
        base: Sequence[Any],
        cells: Sequence[Any],
        direction: PatchDirection,
    ) -> Tuple[Any, ...]:
        if len(self.shape) == 1:
            return apply_grid_patch(base, cells, direction)
        if len(self.shape) == 2:
            return apply_grid_patch_2d(base, cells, self.shape[0], direction)
        width, height, _ = self.shape
        return apply_grid_patch_3d(base, cells, width, height, direction)

"""
Patch codecs for grid-shaped and scalar state.

Provides the stock implementations of the diff/apply/emptiness contract the
history engine consumes.
"""

from .types import (
    PatchDirection,
    CellPatch,
    CellPatch2D,
    CellPatch3D,
    ScalarPatch,
    GridPatch,
)

from .grid import (
    compute_grid_patch,
    compute_grid_patch_2d,
    compute_grid_patch_3d,
    apply_grid_patch,
    apply_grid_patch_2d,
    apply_grid_patch_3d,
)

from .scalar import compute_scalar_patch, apply_scalar_patch

from .composite import CompositePatch, CompositeCodec

__all__ = [
    # Types
    "PatchDirection",
    "CellPatch",
    "CellPatch2D",
    "CellPatch3D",
    "ScalarPatch",
    "GridPatch",
    # Grid
    "compute_grid_patch",
    "compute_grid_patch_2d",
    "compute_grid_patch_3d",
    "apply_grid_patch",
    "apply_grid_patch_2d",
    "apply_grid_patch_3d",
    # Scalar
    "compute_scalar_patch",
    "apply_scalar_patch",
    # Composite
    "CompositePatch",
    "CompositeCodec",
]

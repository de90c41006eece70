"""
Grid diffing and patch application.

Grids are stored as flat row-major sequences. Diffing emits one cell patch
per differing cell and nothing for identical cells; application replays the
listed cells into a copy of the base and leaves every other cell untouched.
"""

from typing import Any, List, Sequence, Tuple

from chronoweave.errors import PatchShapeError
from .types import CellPatch, CellPatch2D, CellPatch3D, PatchDirection


def _check_lengths(prev_cells: Sequence[Any], next_cells: Sequence[Any], caller: str) -> None:
    if len(prev_cells) != len(next_cells):
        raise PatchShapeError(
            f"{caller}: prev and next must have same length "
            f"(got {len(prev_cells)} vs {len(next_cells)})"
        )


def _check_size(cells: Sequence[Any], expected: int, dims: str, caller: str) -> None:
    if len(cells) != expected:
        raise PatchShapeError(
            f"{caller}: {dims} = {expected} does not match array length = {len(cells)}"
        )


def compute_grid_patch(
    prev_cells: Sequence[Any], next_cells: Sequence[Any]
) -> List[CellPatch]:
    """
    Diff two flat grids.

    Args:
        prev_cells: Cells before the change
        next_cells: Cells after the change

    Returns:
        One CellPatch per differing position, in ascending index order

    Raises:
        PatchShapeError: If the grids differ in length
    """
    _check_lengths(prev_cells, next_cells, "compute_grid_patch")

    return [
        CellPatch(index=i, prev=prev, next=nxt)
        for i, (prev, nxt) in enumerate(zip(prev_cells, next_cells))
        if prev != nxt
    ]


def compute_grid_patch_2d(
    prev_cells: Sequence[Any],
    next_cells: Sequence[Any],
    width: int,
    height: int,
) -> List[CellPatch2D]:
    """
    Diff two row-major 2D grids.

    Raises:
        PatchShapeError: If lengths differ or do not match width * height
    """
    _check_lengths(prev_cells, next_cells, "compute_grid_patch_2d")
    _check_size(prev_cells, width * height, "width*height", "compute_grid_patch_2d")

    patches: List[CellPatch2D] = []
    for y in range(height):
        for x in range(width):
            i = y * width + x
            prev = prev_cells[i]
            nxt = next_cells[i]
            if prev != nxt:
                patches.append(CellPatch2D(x=x, y=y, prev=prev, next=nxt))

    return patches


def compute_grid_patch_3d(
    prev_cells: Sequence[Any],
    next_cells: Sequence[Any],
    width: int,
    height: int,
    depth: int,
) -> List[CellPatch3D]:
    """
    Diff two row-major 3D grids (x fastest, then y, then z).

    Raises:
        PatchShapeError: If lengths differ or do not match width * height * depth
    """
    _check_lengths(prev_cells, next_cells, "compute_grid_patch_3d")
    _check_size(
        prev_cells, width * height * depth, "width*height*depth", "compute_grid_patch_3d"
    )

    patches: List[CellPatch3D] = []
    layer_size = width * height
    for z in range(depth):
        z_offset = z * layer_size
        for y in range(height):
            y_offset = y * width
            for x in range(width):
                i = z_offset + y_offset + x
                prev = prev_cells[i]
                nxt = next_cells[i]
                if prev != nxt:
                    patches.append(CellPatch3D(x=x, y=y, z=z, prev=prev, next=nxt))

    return patches


def apply_grid_patch(
    base_cells: Sequence[Any],
    cells_patch: Sequence[CellPatch],
    direction: PatchDirection = PatchDirection.FORWARD,
) -> Tuple[Any, ...]:
    """
    Apply a flat grid patch.

    Args:
        base_cells: Cells to start from (not modified)
        cells_patch: Patch produced by compute_grid_patch
        direction: FORWARD writes each cell's next value, BACKWARD its prev value

    Returns:
        The patched cells as a tuple (the base itself when the patch is empty)
    """
    if not cells_patch:
        return tuple(base_cells)

    cells = list(base_cells)
    for cell in cells_patch:
        cells[cell.index] = cell.value_for(direction)
    return tuple(cells)


def apply_grid_patch_2d(
    base_cells: Sequence[Any],
    cells_patch: Sequence[CellPatch2D],
    width: int,
    direction: PatchDirection = PatchDirection.FORWARD,
) -> Tuple[Any, ...]:
    """Apply a 2D grid patch to a row-major base."""
    if not cells_patch:
        return tuple(base_cells)

    cells = list(base_cells)
    for cell in cells_patch:
        cells[cell.y * width + cell.x] = cell.value_for(direction)
    return tuple(cells)


def apply_grid_patch_3d(
    base_cells: Sequence[Any],
    cells_patch: Sequence[CellPatch3D],
    width: int,
    height: int,
    direction: PatchDirection = PatchDirection.FORWARD,
) -> Tuple[Any, ...]:
    """Apply a 3D grid patch to a row-major base."""
    if not cells_patch:
        return tuple(base_cells)

    cells = list(base_cells)
    layer_size = width * height
    for cell in cells_patch:
        cells[cell.z * layer_size + cell.y * width + cell.x] = cell.value_for(direction)
    return tuple(cells)

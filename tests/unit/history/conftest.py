"""
Shared fixtures for history tests.

The live state is a small board whose cells list is patched in place; its
snapshots are ``{"cells": tuple}`` and its patches are flat grid patches.
"""

import dataclasses
from typing import Any, Callable, Dict, List, Sequence

import pytest

from chronoweave.history import HistoryHooks
from chronoweave.patch import (
    PatchDirection,
    apply_grid_patch,
    compute_grid_patch,
)


class Board:
    """Minimal mutable state with a flat grid of cells."""

    def __init__(self, cells: Sequence[int]):
        self.cells: List[int] = list(cells)


def take_snapshot(board: Board) -> Dict[str, Any]:
    return {"cells": tuple(board.cells)}


def load_snapshot(snapshot: Dict[str, Any], board: Board) -> None:
    board.cells[:] = snapshot["cells"]


def diff_snapshots(prev: Dict[str, Any], next: Dict[str, Any]) -> Any:
    return compute_grid_patch(prev["cells"], next["cells"])


def patch_snapshot(base: Dict[str, Any], patch: Any) -> Dict[str, Any]:
    return {"cells": apply_grid_patch(base["cells"], patch)}


def patch_board(patch: Any, direction: PatchDirection, board: Board) -> None:
    for cell in patch:
        board.cells[cell.index] = cell.value_for(direction)


@pytest.fixture
def board() -> Board:
    return Board([0, 0, 0, 0])


@pytest.fixture
def hooks() -> HistoryHooks:
    return HistoryHooks(
        create_snapshot=take_snapshot,
        apply_snapshot_to_state=load_snapshot,
        create_patch=diff_snapshots,
        apply_patch_to_snapshot=patch_snapshot,
        is_empty_patch=lambda patch: len(patch) == 0,
    )


@pytest.fixture
def in_place_hooks(hooks: HistoryHooks) -> HistoryHooks:
    return dataclasses.replace(hooks, apply_patch_to_state=patch_board)


@pytest.fixture
def commit_cells() -> Callable[..., Any]:
    """Set the live board's cells, then commit."""

    def _commit(machine: Any, cells: Sequence[int], label: Any = None) -> Any:
        machine.state.cells[:] = cells
        return machine.commit(label)

    return _commit

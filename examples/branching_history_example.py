"""
Example usage of branching state history.

Demonstrates linear undo/redo, forking a branch by playing a different move
from the past, and cycling between branches on a tic-tac-toe board.
"""

from typing import Any, Dict, List, Optional

from chronoweave.history import StateHistory, TimeMachine
from chronoweave.logging import initialize_logging
from chronoweave.patch import CompositeCodec, CompositePatch, PatchDirection

WIDTH = 3


class Board:
    def __init__(self) -> None:
        self.cells: List[str] = ["."] * (WIDTH * WIDTH)
        self.player = "x"
        self.winner: Optional[str] = None

    def play(self, x: int, y: int) -> None:
        self.cells[y * WIDTH + x] = self.player
        self.player = "o" if self.player == "x" else "x"

    def render(self) -> str:
        rows = [" ".join(self.cells[y * WIDTH : (y + 1) * WIDTH]) for y in range(WIDTH)]
        return "\n".join(f"    {row}" for row in rows)


codec = CompositeCodec(shape=(WIDTH, WIDTH), fields=["player", "winner"])


def create_snapshot(board: Board) -> Dict[str, Any]:
    return codec.snapshot(board.cells, player=board.player, winner=board.winner)


def apply_snapshot(snapshot: Dict[str, Any], board: Board) -> None:
    board.cells[:] = snapshot["cells"]
    board.player = snapshot["player"]
    board.winner = snapshot["winner"]


def apply_patch(patch: CompositePatch, direction: PatchDirection, board: Board) -> None:
    for cell in patch.cells:
        board.cells[cell.y * WIDTH + cell.x] = cell.value_for(direction)
    for name, scalar in patch.fields.items():
        setattr(board, name, scalar.next if direction == PatchDirection.FORWARD else scalar.prev)


def main():
    initialize_logging(level="WARNING")
    hooks = codec.hooks(create_snapshot, apply_snapshot, apply_patch)

    # Linear history
    print("1. Linear undo/redo...")
    board = Board()
    history = StateHistory(board, hooks, mode="patch")
    for x, y in [(1, 1), (0, 0), (2, 0)]:
        board.play(x, y)
        history.record(f"{x},{y}")
    print(f"  Recorded {history.length} states")

    history.undo()
    history.undo()
    print("  After two undos:")
    print(board.render())

    board.play(2, 2)
    history.record("2,2")
    print(f"  Recording from the past discarded the redo tail: {history.length} states")

    # Branching history
    print("\n2. Branching from the past...")
    board = Board()
    machine = TimeMachine(
        board, hooks, mode="hybrid", checkpoint_interval=4, topology="branching"
    )
    machine.commit("start")
    for x, y in [(1, 1), (0, 0), (2, 0), (0, 2)]:
        board.play(x, y)
        machine.commit(f"{x},{y}")

    machine.rewind(2)
    board.play(0, 1)
    machine.commit("0,1")
    print(f"  Branches: {machine.list_branches()}")
    for branch_id in machine.list_branches():
        branch = machine.get_branch(branch_id)
        print(
            f"  Branch {branch_id}: {branch.timeline.length} entries, "
            f"parent={branch.parent_id}, forked at={branch.fork_index}"
        )

    # Cycling
    print("\n3. Cycling between branches...")
    for _ in range(machine.branch_count):
        machine.next_branch()
        machine.go_to_end()
        print(f"  Branch {machine.branch_id} at its tip:")
        print(board.render())

    # Storage
    print("\n4. Storage statistics:")
    for branch_id in machine.list_branches():
        timeline = machine.get_branch(branch_id).timeline
        print(f"  Branch {branch_id}: {timeline.stats().summary()}")

    print("\nLog of the active branch:")
    for entry in machine.log(max_count=3):
        print(f"  [{entry.index}] {entry.label}")


if __name__ == "__main__":
    main()

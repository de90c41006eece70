"""
Exceptions raised by the versioning engine.

Every failure is a usage or precondition violation. They are raised before
any engine state is mutated.
"""


class HistoryError(Exception):
    """Base exception for history errors."""

    pass


class TimelineIndexError(HistoryError, IndexError):
    """Raised when an index lies outside a timeline."""

    def __init__(self, index: int, length: int):
        self.index = index
        self.length = length
        super().__init__(f"Index {index} out of range for timeline of length {length}")


class MissingBaselineError(HistoryError):
    """Raised when a patch is pushed before any full snapshot exists."""

    pass


class TimelineModeError(HistoryError):
    """Raised when an operation is not allowed in the timeline's mode."""

    pass


class BranchNotFoundError(HistoryError, KeyError):
    """Raised when a branch id does not exist."""

    def __init__(self, branch_id: int):
        self.branch_id = branch_id
        super().__init__(branch_id)

    def __str__(self) -> str:
        return f"Branch not found: {self.branch_id}"


class TopologyError(HistoryError):
    """Raised when a branch operation is used under linear topology."""

    pass


class HookConfigurationError(HistoryError):
    """Raised when the supplied hooks lack a capability the mode requires."""

    pass


class PatchShapeError(HistoryError, ValueError):
    """Raised when grid arrays disagree in length or shape."""

    pass

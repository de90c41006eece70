"""
Branching, patch-based state history.

Provides the timeline log, the branch-managing time machine, and linear
recording helpers.
"""

from chronoweave.errors import (
    HistoryError,
    TimelineIndexError,
    MissingBaselineError,
    TimelineModeError,
    BranchNotFoundError,
    TopologyError,
    HookConfigurationError,
    PatchShapeError,
)

from .types import TimelineMode, Topology, TimelineEntry, TimelineStats

from .hooks import Capability, HistoryHooks, required_capabilities

from .timeline import Timeline

from .time_machine import Branch, TimeMachine

from .state_history import StateRecorder, StateHistory

__all__ = [
    # Errors
    "HistoryError",
    "TimelineIndexError",
    "MissingBaselineError",
    "TimelineModeError",
    "BranchNotFoundError",
    "TopologyError",
    "HookConfigurationError",
    "PatchShapeError",
    # Types
    "TimelineMode",
    "Topology",
    "TimelineEntry",
    "TimelineStats",
    # Hooks
    "Capability",
    "HistoryHooks",
    "required_capabilities",
    # Timeline
    "Timeline",
    # Time machine
    "Branch",
    "TimeMachine",
    # Recording
    "StateRecorder",
    "StateHistory",
]

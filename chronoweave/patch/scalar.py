"""Diffing and application for single-field (scalar) patches."""

from typing import Any, Optional

from .types import PatchDirection, ScalarPatch


def compute_scalar_patch(prev: Optional[Any], next: Optional[Any]) -> Optional[ScalarPatch]:
    """Return None when the values are equal, else a ScalarPatch."""
    if prev == next:
        return None
    return ScalarPatch(prev=prev, next=next)


def apply_scalar_patch(
    base: Any,
    patch: Optional[ScalarPatch],
    direction: PatchDirection = PatchDirection.FORWARD,
    keep_base_on_absent: bool = True,
) -> Any:
    """
    Apply a scalar patch to a base value.

    Args:
        base: Value to start from
        patch: Patch from compute_scalar_patch, or None for "no change"
        direction: Which side of the patch to write
        keep_base_on_absent: If the value for the requested direction is
            absent (None), return the base untouched. Pass False when the
            caller tracks field presence itself and None must be written.

    Returns:
        The patched value
    """
    if patch is None:
        return base

    value = patch.next if direction == PatchDirection.FORWARD else patch.prev

    if value is None and keep_base_on_absent:
        return base
    return value

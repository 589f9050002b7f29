"""Sparse integer positions for ordered siblings.

Positions leave gaps (multiples of ``POSITION_STEP`` when freshly created)
so that moving one item writes only that item. Callers load siblings
sorted by ``(position, created_at, id)`` and drop the item being moved
before asking for a key.
"""
from typing import Any, Iterable, Optional, Sequence

POSITION_STEP = 1000


def compute_next_status_order(
    sibling_keys: Sequence[Optional[int]],
    dest_index: int,
    step: int = POSITION_STEP,
) -> int:
    """Compute the key for an item inserted at ``dest_index``.

    Args:
        sibling_keys: Keys of the destination siblings in display order,
            excluding the moved item. ``None`` entries count as absent.
        dest_index: Target index. Clamped to ``[0, len(sibling_keys)]``.
        step: Distance used when inserting past either end.

    Returns:
        Midpoint between the neighbours when there is room, ``prev + 1``
        when they are adjacent, ``prev + step`` / ``next - step`` at the
        ends, and ``0`` for an empty group.
    """
    index = max(0, min(dest_index, len(sibling_keys)))
    prev_key = sibling_keys[index - 1] if index > 0 else None
    next_key = sibling_keys[index] if index < len(sibling_keys) else None

    if prev_key is not None and next_key is not None:
        gap = next_key - prev_key
        if gap > 1:
            return prev_key + gap // 2
        # No room left between the neighbours
        return prev_key + 1
    if prev_key is not None:
        return prev_key + step
    if next_key is not None:
        return next_key - step
    return 0


def initial_positions(count: int, step: int = POSITION_STEP) -> list[int]:
    """Positions for a freshly created group: step, 2*step, ..."""
    return [(index + 1) * step for index in range(count)]


def sibling_keys(items: Iterable[Any], attr: str = "position") -> list[Optional[int]]:
    """Extract ordering keys from already sorted rows."""
    return [getattr(item, attr) for item in items]

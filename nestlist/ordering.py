"""Splice-and-renumber helpers shared by the todo and pinned-list engines."""

from collections.abc import Sequence


def clamp_index(index: int, length: int) -> int:
    """Clamp an insertion index into [0, length]."""
    return min(max(index, 0), length)


def splice_order(order: Sequence[str], item_id: str, index: int) -> list[str]:
    """Return order with item_id removed and re-inserted at index.

    The index is clamped against the list length after removal, so it is
    the item's final position in the returned list.
    """
    result = [i for i in order if i != item_id]
    result.insert(clamp_index(index, len(result)), item_id)
    return result


def positions_from_order(order: Sequence[str]) -> dict[str, int]:
    """Map each id to its array index."""
    return {item_id: position for position, item_id in enumerate(order)}

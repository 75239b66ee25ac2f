"""Stable-identity queue reordering.

Moves keep each entry's slot_id; only position values are rewritten.
"""

from collections.abc import Sequence

from jamsession.session.models import QueueEntry


def renumber(entries: Sequence[QueueEntry]) -> tuple[QueueEntry, ...]:
    """Rewrite position so that entries[i].position == i."""
    return tuple(
        entry if entry.position == i else entry.model_copy(update={"position": i})
        for i, entry in enumerate(entries)
    )


def reorder(
    entries: Sequence[QueueEntry], from_index: int, to_index: int
) -> tuple[QueueEntry, ...]:
    """Move one entry from from_index to to_index (a move, not a swap).

    A move onto itself, or with either index outside the list, returns the
    entries unchanged.
    """
    count = len(entries)
    if from_index == to_index or not (0 <= from_index < count and 0 <= to_index < count):
        return tuple(entries)

    result = list(entries)
    moved = result.pop(from_index)
    result.insert(to_index, moved)
    return renumber(result)

"""Planned vs. actual totals and end-time estimates for display."""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

from jamsession.session.models import QueueEntry


@dataclass(frozen=True)
class EndEstimate:
    current_entry_ends: datetime
    run_ends: datetime
    remaining_seconds: int


def planned_minutes(entries: Sequence[QueueEntry]) -> int:
    return sum(e.target_minutes for e in entries)


def actual_seconds(entries: Sequence[QueueEntry]) -> int:
    return sum(e.actual_seconds or 0 for e in entries)


def has_actual_time(entries: Sequence[QueueEntry]) -> bool:
    return any(e.actual_seconds is not None for e in entries)


def current_remaining_seconds(entries: Sequence[QueueEntry], active_index: int, elapsed: int) -> int:
    """Seconds left on the active entry; zero once it runs over."""
    return max(0, entries[active_index].target_minutes * 60 - elapsed)


def remaining_seconds(entries: Sequence[QueueEntry], active_index: int, elapsed: int) -> int:
    """Remaining time on the active entry plus the full target of every later one."""
    upcoming = sum(e.target_minutes * 60 for e in entries[active_index + 1 :])
    return current_remaining_seconds(entries, active_index, elapsed) + upcoming


def estimate_end_times(
    entries: Sequence[QueueEntry], active_index: int, elapsed: int, now: datetime
) -> EndEstimate:
    """Estimate when the active entry and the whole run will finish.

    Estimates assume every remaining entry runs exactly to its target.
    """
    current = current_remaining_seconds(entries, active_index, elapsed)
    total = remaining_seconds(entries, active_index, elapsed)
    return EndEstimate(
        current_entry_ends=now + timedelta(seconds=current),
        run_ends=now + timedelta(seconds=total),
        remaining_seconds=total,
    )


def item_numbers(entries: Sequence[QueueEntry]) -> list[int | None]:
    """Display numbers for entries, counting items only (breaks get None)."""
    numbers: list[int | None] = []
    count = 0
    for entry in entries:
        if entry.is_break:
            numbers.append(None)
        else:
            count += 1
            numbers.append(count)
    return numbers

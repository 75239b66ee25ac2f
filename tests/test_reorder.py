"""Tests for the reorder engine."""

from jamsession.session.models import QueueEntry
from jamsession.session.reorder import renumber, reorder


def make_entries(*refs: str) -> tuple[QueueEntry, ...]:
    return tuple(
        QueueEntry(item_ref=ref, target_minutes=5, position=i, slot_id=f"slot-{ref}")
        for i, ref in enumerate(refs)
    )


def refs(entries) -> list[str]:
    return [e.item_ref for e in entries]


class TestReorder:
    def test_move_forward(self):
        result = reorder(make_entries("a", "b", "c", "d"), 0, 2)
        assert refs(result) == ["b", "c", "a", "d"]

    def test_move_backward(self):
        result = reorder(make_entries("a", "b", "c", "d"), 3, 1)
        assert refs(result) == ["a", "d", "b", "c"]

    def test_is_a_move_not_a_swap(self):
        result = reorder(make_entries("a", "b", "c"), 0, 2)
        assert refs(result) != ["c", "b", "a"]

    def test_positions_dense(self):
        result = reorder(make_entries("a", "b", "c", "d"), 3, 0)
        assert [e.position for e in result] == [0, 1, 2, 3]

    def test_slot_ids_follow_entries(self):
        result = reorder(make_entries("a", "b", "c"), 2, 0)
        assert {e.item_ref: e.slot_id for e in result} == {
            "a": "slot-a",
            "b": "slot-b",
            "c": "slot-c",
        }

    def test_same_index_is_identity(self):
        entries = make_entries("a", "b")
        assert reorder(entries, 1, 1) == entries

    def test_out_of_range_is_identity(self):
        entries = make_entries("a", "b")
        assert reorder(entries, 0, 5) == entries
        assert reorder(entries, -1, 0) == entries
        assert reorder((), 0, 1) == ()

    def test_untouched_entries_not_copied(self):
        entries = make_entries("a", "b", "c", "d")
        result = reorder(entries, 1, 2)
        assert result[0] is entries[0]
        assert result[3] is entries[3]


class TestRenumber:
    def test_fills_gaps(self):
        entries = [
            QueueEntry(item_ref="a", target_minutes=1, position=3),
            QueueEntry(item_ref="b", target_minutes=1, position=7),
        ]
        assert [e.position for e in renumber(entries)] == [0, 1]

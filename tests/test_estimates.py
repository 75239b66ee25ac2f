"""Tests for totals, end-time estimates, and display helpers."""

import json
from datetime import datetime, timedelta, timezone

from jamsession.library import LibraryItem, StaticLibrary, entry_label, format_duration
from jamsession.session.estimates import (
    actual_seconds,
    estimate_end_times,
    has_actual_time,
    item_numbers,
    planned_minutes,
    remaining_seconds,
)
from jamsession.session.models import BREAK_ITEM_ID, QueueEntry

NOW = datetime(2024, 6, 1, 19, 0, tzinfo=timezone.utc)


def entry(ref: str, minutes: int, position: int = 0, actual: int | None = None) -> QueueEntry:
    return QueueEntry(item_ref=ref, target_minutes=minutes, position=position, actual_seconds=actual)


class TestTotals:
    def test_planned_minutes(self):
        assert planned_minutes([entry("a", 5), entry("b", 10)]) == 15

    def test_actual_seconds_skips_missing(self):
        entries = [entry("a", 5, actual=290), entry("b", 10)]
        assert actual_seconds(entries) == 290
        assert has_actual_time(entries)

    def test_no_actual_time(self):
        assert not has_actual_time([entry("a", 5)])


class TestEstimates:
    def test_remaining_includes_later_entries(self):
        entries = [entry("a", 5), entry("b", 10), entry("c", 2)]
        # 60s into a 5 minute entry: 240 left + 600 + 120
        assert remaining_seconds(entries, 0, 60) == 960

    def test_overtime_counts_as_zero(self):
        entries = [entry("a", 1), entry("b", 2)]
        assert remaining_seconds(entries, 0, 500) == 120

    def test_end_times(self):
        entries = [entry("a", 5), entry("b", 10)]
        estimate = estimate_end_times(entries, 0, 0, NOW)
        assert estimate.current_entry_ends == NOW + timedelta(minutes=5)
        assert estimate.run_ends == NOW + timedelta(minutes=15)

    def test_last_entry(self):
        entries = [entry("a", 5), entry("b", 10)]
        estimate = estimate_end_times(entries, 1, 300, NOW)
        assert estimate.current_entry_ends == estimate.run_ends == NOW + timedelta(minutes=5)


class TestItemNumbers:
    def test_breaks_not_numbered(self):
        entries = [entry("a", 5), entry(BREAK_ITEM_ID, 5), entry("b", 5), entry("c", 5), entry(BREAK_ITEM_ID, 2)]
        assert item_numbers(entries) == [1, None, 2, 3, None]


class TestFormatDuration:
    def test_zero(self):
        assert format_duration(0) == "0:00"

    def test_minutes_and_seconds(self):
        assert format_duration(65) == "1:05"

    def test_long(self):
        assert format_duration(3725) == "62:05"

    def test_negative(self):
        assert format_duration(-30) == "-0:30"


class TestLibrary:
    def test_entry_label_uses_library(self):
        library = StaticLibrary([LibraryItem(id="learnimprov:zip-zap-zop", name="Zip Zap Zop")])
        assert entry_label(entry("learnimprov:zip-zap-zop", 5), library) == "Zip Zap Zop"

    def test_entry_label_falls_back_to_id(self):
        assert entry_label(entry("custom:mystery-ab12", 5), StaticLibrary()) == "custom:mystery-ab12"

    def test_break_label(self):
        assert entry_label(entry(BREAK_ITEM_ID, 5)) == "Break"

    def test_from_json(self, tmp_path):
        path = tmp_path / "library.json"
        path.write_text(json.dumps([{"id": "a:b", "name": "Bee", "tags": ["warmup"]}]))
        library = StaticLibrary.from_json(path)
        assert library.get("a:b").tags == ["warmup"]
        assert library.get("missing") is None

    def test_from_json_missing_or_malformed(self, tmp_path):
        assert len(StaticLibrary.from_json(tmp_path / "nope.json")) == 0
        bad = tmp_path / "bad.json"
        bad.write_text("{not json")
        assert len(StaticLibrary.from_json(bad)) == 0

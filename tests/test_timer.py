"""Tests for the timer sub-reducer."""

import pytest

from jamsession.session.models import TimerState
from jamsession.session.timer import Pause, Reset, Resume, Tick, restart_entry, timer_reducer


def tick(state: TimerState, n: int) -> TimerState:
    for _ in range(n):
        state = timer_reducer(state, Tick())
    return state


class TestTick:
    def test_increments_both_counters(self):
        state = timer_reducer(TimerState(elapsed_seconds=10, cumulative_seconds=100), Tick())
        assert state.elapsed_seconds == 11
        assert state.cumulative_seconds == 101

    @pytest.mark.parametrize("n", [1, 7, 65])
    def test_n_ticks_advance_by_n(self, n):
        state = tick(TimerState(elapsed_seconds=3, cumulative_seconds=40), n)
        assert state.elapsed_seconds == 3 + n
        assert state.cumulative_seconds == 40 + n

    def test_noop_when_paused(self):
        paused = TimerState(elapsed_seconds=10, cumulative_seconds=100, paused=True)
        assert tick(paused, 5) is paused


class TestPauseResume:
    def test_pause(self):
        assert timer_reducer(TimerState(), Pause()).paused is True

    def test_resume(self):
        assert timer_reducer(TimerState(paused=True), Resume()).paused is False

    def test_pause_twice_is_identity(self):
        paused = TimerState(paused=True)
        assert timer_reducer(paused, Pause()) is paused

    def test_pause_keeps_counters(self):
        state = timer_reducer(TimerState(elapsed_seconds=30, cumulative_seconds=90), Pause())
        assert (state.elapsed_seconds, state.cumulative_seconds) == (30, 90)


class TestReset:
    def test_reset_zeroes_everything(self):
        state = timer_reducer(TimerState(elapsed_seconds=300, cumulative_seconds=900, paused=True), Reset())
        assert state == TimerState(elapsed_seconds=0, cumulative_seconds=0, paused=False)

    def test_restart_entry_keeps_cumulative(self):
        state = restart_entry(TimerState(elapsed_seconds=300, cumulative_seconds=900))
        assert state.elapsed_seconds == 0
        assert state.cumulative_seconds == 900

    def test_restart_entry_keeps_paused(self):
        assert restart_entry(TimerState(elapsed_seconds=5, paused=True)).paused is True

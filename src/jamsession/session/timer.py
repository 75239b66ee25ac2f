"""Timer sub-reducer - pure clock logic, no knowledge of queues or storage.

All time values are integer seconds. The tick source lives in
jamsession.runtime.clock; this module only folds ticks into state.
"""

from dataclasses import dataclass

from jamsession.session.models import TimerState


@dataclass(frozen=True)
class Tick:
    pass


@dataclass(frozen=True)
class Pause:
    pass


@dataclass(frozen=True)
class Resume:
    pass


@dataclass(frozen=True)
class Reset:
    pass


TimerAction = Tick | Pause | Resume | Reset
TIMER_ACTIONS = (Tick, Pause, Resume, Reset)


def timer_reducer(state: TimerState, action: TimerAction) -> TimerState:
    match action:
        case Tick():
            # The clock driver should be stopped while paused, but never trust it
            if state.paused:
                return state
            return state.model_copy(
                update={
                    "elapsed_seconds": state.elapsed_seconds + 1,
                    "cumulative_seconds": state.cumulative_seconds + 1,
                }
            )
        case Pause():
            if state.paused:
                return state
            return state.model_copy(update={"paused": True})
        case Resume():
            if not state.paused:
                return state
            return state.model_copy(update={"paused": False})
        case Reset():
            return TimerState()
    return state


def restart_entry(state: TimerState) -> TimerState:
    """Zero the per-entry clock, keeping cumulative run time."""
    if state.elapsed_seconds == 0:
        return state
    return state.model_copy(update={"elapsed_seconds": 0})

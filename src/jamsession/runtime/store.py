"""Session store - holds the current AppState and serializes dispatches."""

import logging
from collections import deque
from collections.abc import Callable

from jamsession.session.actions import Action
from jamsession.session.models import AppState
from jamsession.session.reducer import session_reducer

logger = logging.getLogger(__name__)

Listener = Callable[[AppState, AppState], None]


class SessionStore:
    """State plus dispatch, passed explicitly to whatever presents it.

    Every action is reduced and committed, and every listener notified,
    before the next action is processed. Actions dispatched from inside a
    listener are queued behind the one in flight.
    """

    def __init__(self, state: AppState | None = None):
        self._state = state or AppState()
        self._listeners: list[Listener] = []
        self._queue: deque[Action] = deque()
        self._dispatching = False

    @property
    def state(self) -> AppState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call listener(previous, current) after every state change. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, action: Action) -> AppState:
        self._queue.append(action)
        if self._dispatching:
            return self._state

        self._dispatching = True
        try:
            while self._queue:
                self._apply(self._queue.popleft())
        finally:
            self._dispatching = False
        return self._state

    def _apply(self, action: Action) -> None:
        previous = self._state
        self._state = session_reducer(previous, action)
        if self._state is previous:
            return
        logger.debug("Applied %s", type(action).__name__)
        for listener in list(self._listeners):
            try:
                listener(previous, self._state)
            except Exception:
                logger.exception("Store listener failed after %s", type(action).__name__)

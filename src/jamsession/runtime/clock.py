"""Clock driver - the single tick source for a running session.

Owns one cancellable asyncio task that dispatches Tick about once per
interval. The task runs only while a run is active and not paused, and is
cancelled on pause, on run end, and on close.
"""

import asyncio
import contextlib
import logging

from jamsession.config import TICK_INTERVAL
from jamsession.runtime.store import SessionStore
from jamsession.session.models import AppState
from jamsession.session.timer import Tick

logger = logging.getLogger(__name__)


class ClockDriver:
    def __init__(self, store: SessionStore, interval: float = TICK_INTERVAL):
        self.store = store
        self.interval = interval
        self._task: asyncio.Task | None = None
        self._closed = False
        self._unsubscribe = store.subscribe(self._on_change)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @staticmethod
    def should_tick(state: AppState) -> bool:
        return state.is_running and not state.timer.paused

    def _on_change(self, previous: AppState, current: AppState) -> None:
        self.reconcile()

    def reconcile(self) -> None:
        """Start or stop ticking to match the store's current state."""
        if not self._closed and self.should_tick(self.store.state):
            self._start()
        else:
            self._stop()

    def _start(self) -> None:
        if self.running:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; clock not started")
            return
        self._task = loop.create_task(self._run())
        logger.debug("Clock started")

    def _stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        self._task = None
        logger.debug("Clock stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.store.dispatch(Tick())

    async def close(self) -> None:
        """Stop ticking for good and wait for the task to unwind."""
        self._closed = True
        self._unsubscribe()
        task = self._task
        self._stop()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def __aenter__(self) -> "ClockDriver":
        self.reconcile()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

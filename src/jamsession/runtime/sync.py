"""Hydration and persistence sync between a SessionStore and a Storage backend.

On startup every persisted collection is loaded concurrently and folded into
the store with a single Hydrate action. Only after that does any change get
written back; the empty initial state must never overwrite durable state.
"""

import asyncio
import logging
from typing import Any

from pydantic import TypeAdapter, ValidationError

from jamsession.config import (
    ARCHIVE_KEY,
    CURRENT_SESSION_KEY,
    RUN_PROGRESS_KEY,
    STARRED_KEY,
    TEMPLATES_KEY,
)
from jamsession.runtime.store import SessionStore
from jamsession.session.actions import Hydrate
from jamsession.session.models import AppState, RunProgress, RunRecord, Session
from jamsession.storage.base import Storage

logger = logging.getLogger(__name__)

_templates_adapter = TypeAdapter(tuple[Session, ...])
_archive_adapter = TypeAdapter(tuple[RunRecord, ...])
_session_adapter = TypeAdapter(Session)
_starred_adapter = TypeAdapter(frozenset[str])
_progress_adapter = TypeAdapter(RunProgress)


def _dump_all(records) -> list[dict]:
    return [r.model_dump(mode="json") for r in records]


def _timer_only(previous: AppState, current: AppState) -> bool:
    """True when nothing but the clock moved between two states."""
    return (
        current.templates is previous.templates
        and current.archive is previous.archive
        and current.current is previous.current
        and current.starred_item_ids is previous.starred_item_ids
        and current.active_index == previous.active_index
    )


class PersistenceSync:
    """Keeps a store's persisted collections durable.

    Saves are fire-and-forget: each one runs as its own task, failures are
    logged and not retried. Writes to the same key are chained so they land
    in dispatch order.
    """

    def __init__(self, store: SessionStore, storage: Storage):
        self.store = store
        self.storage = storage
        self._pending: set[asyncio.Task] = set()
        self._last_write: dict[str, asyncio.Task] = {}
        self._unsubscribe = store.subscribe(self._on_change)

    # ---- Hydration ----

    async def hydrate(self) -> AppState:
        """Load every collection and dispatch Hydrate. A bad key falls back to its default."""
        templates, archive, current, starred, progress = await asyncio.gather(
            self._load(TEMPLATES_KEY, _templates_adapter, ()),
            self._load(ARCHIVE_KEY, _archive_adapter, ()),
            self._load(CURRENT_SESSION_KEY, _session_adapter, None),
            self._load(STARRED_KEY, _starred_adapter, frozenset()),
            self._load(RUN_PROGRESS_KEY, _progress_adapter, None),
        )
        logger.debug(
            "Hydrated %d templates, %d archived runs, current=%s",
            len(templates),
            len(archive),
            current.id if current else None,
        )
        return self.store.dispatch(
            Hydrate(
                templates=templates,
                archive=archive,
                current=current,
                starred_item_ids=starred,
                progress=progress,
            )
        )

    async def _load(self, key: str, adapter: TypeAdapter, default: Any) -> Any:
        try:
            raw = await self.storage.load(key)
        except Exception as exc:
            logger.warning("Failed to load %r, using default: %s", key, exc)
            return default
        if raw is None:
            return default
        try:
            return adapter.validate_python(raw)
        except ValidationError as exc:
            logger.warning(
                "Ignoring malformed %r (%d validation errors)", key, exc.error_count()
            )
            return default

    # ---- Saving ----

    def _on_change(self, previous: AppState, current: AppState) -> None:
        if not current.hydrated:
            return
        first = not previous.hydrated

        # Any change beyond the clock rewrites all four collections
        if first or not _timer_only(previous, current):
            self._write(TEMPLATES_KEY, _dump_all(current.templates))
            self._write(ARCHIVE_KEY, _dump_all(current.archive))
            value = current.current.model_dump(mode="json") if current.current else None
            self._write(CURRENT_SESSION_KEY, value)
            self._write(STARRED_KEY, sorted(current.starred_item_ids))
        progress = current.run_progress
        if first or progress != previous.run_progress:
            self._write(RUN_PROGRESS_KEY, progress.model_dump(mode="json") if progress else None)

    def _write(self, key: str, value: Any) -> None:
        """Schedule a save (or a removal when value is None)."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Dispatched from synchronous code; persist before returning
            asyncio.run(self._persist(key, value, None))
            return

        task = loop.create_task(self._persist(key, value, self._last_write.get(key)))
        self._last_write[key] = task
        self._pending.add(task)
        task.add_done_callback(self._forget)

    def _forget(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        for key, last in list(self._last_write.items()):
            if last is task:
                del self._last_write[key]

    async def _persist(self, key: str, value: Any, after: asyncio.Task | None) -> None:
        if after is not None:
            # Failures of the earlier write are already logged by that task
            await asyncio.wait([after])
        try:
            if value is None:
                await self.storage.remove(key)
            else:
                await self.storage.save(key, value)
        except Exception as exc:
            logger.error("Failed to persist %r: %s", key, exc)

    async def flush(self) -> None:
        """Wait until every scheduled save has finished."""
        while self._pending:
            await asyncio.wait(list(self._pending))

    def close(self) -> None:
        self._unsubscribe()

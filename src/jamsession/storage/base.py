"""
Persistence port.

Durable key/value storage for plain JSON-serializable values. The interface
is async even when a backend is synchronous, so a network-backed store can
be swapped in without touching callers. Implementations: in-memory (tests,
embedding), SQLite (local default).
"""

import json
import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class Storage(Protocol):
    """Protocol for key/value persistence backends."""

    async def load(self, key: str) -> Any | None:
        """Return the stored value, or None if absent or unparseable."""
        ...

    async def save(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value under key, replacing any previous one."""
        ...

    async def remove(self, key: str) -> None:
        """Delete key. Removing a missing key is not an error."""
        ...


class MemoryStorage:
    """
    Storage kept in a dict of JSON strings.
    Values are serialized on save so callers see the same round-trip as a durable backend.
    """

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self._data[key] = json.dumps(value)

    async def load(self, key: str) -> Any | None:
        raw = self._data.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Failed to parse stored value for %r", key)
            return None

    async def save(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def put_raw(self, key: str, text: str) -> None:
        self._data[key] = text

"""Item library lookups used for display.

The catalog itself lives outside this package; queue entries only hold item
ids. Anything that can resolve an id to a LibraryItem satisfies ItemLookup.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from jamsession.session.models import QueueEntry

logger = logging.getLogger(__name__)


@dataclass
class LibraryItem:
    """A catalog item, identified by an origin-namespaced id (e.g. custom:warmup-x1y2)."""

    id: str
    name: str
    tags: list[str] = field(default_factory=list)
    description: str = ""


class ItemLookup(Protocol):
    def get(self, item_id: str) -> LibraryItem | None:
        """Resolve an item id, or None if the catalog doesn't know it."""
        ...


class StaticLibrary:
    """In-memory catalog, optionally loaded from a JSON list of items."""

    def __init__(self, items: list[LibraryItem] | None = None):
        self._items = {item.id: item for item in items or []}

    def get(self, item_id: str) -> LibraryItem | None:
        return self._items.get(item_id)

    def __len__(self) -> int:
        return len(self._items)

    @classmethod
    def from_json(cls, path: Path) -> "StaticLibrary":
        """Load items from a JSON file. A missing or malformed file yields an empty library."""
        if not path.exists():
            return cls()
        try:
            raw = json.loads(path.read_text())
            items = [
                LibraryItem(
                    id=item["id"],
                    name=item["name"],
                    tags=list(item.get("tags", [])),
                    description=item.get("description", ""),
                )
                for item in raw
            ]
        except (json.JSONDecodeError, OSError, KeyError, TypeError) as exc:
            logger.warning("Ignoring unreadable library file %s: %s", path, exc)
            return cls()
        return cls(items)


def format_duration(seconds: int) -> str:
    """Format seconds as 'M:SS'."""
    sign = "-" if seconds < 0 else ""
    minutes, secs = divmod(abs(seconds), 60)
    return f"{sign}{minutes}:{secs:02d}"


def entry_label(entry: QueueEntry, library: ItemLookup | None = None) -> str:
    """Human-readable name for a queue entry, falling back to its raw id."""
    if entry.is_break:
        return "Break"
    if library is not None:
        item = library.get(entry.item_ref)
        if item is not None:
            return item.name
    return entry.item_ref

"""Closed action vocabulary for the session reducer.

Each action is a frozen dataclass. Actions that create records carry their
own ids and timestamps (generated by default) so that reducing is
deterministic for a given action value.
"""

from dataclasses import dataclass, field
from datetime import datetime

from jamsession.session.models import RunProgress, RunRecord, Session, new_id, utcnow
from jamsession.session.timer import Pause, Reset, Resume, Tick


@dataclass(frozen=True)
class Hydrate:
    templates: tuple[Session, ...] = ()
    archive: tuple[RunRecord, ...] = ()
    current: Session | None = None
    starred_item_ids: frozenset[str] = frozenset()
    progress: RunProgress | None = None


# ── Queue building ───────────────────────────────────────────────


@dataclass(frozen=True)
class CreateQueue:
    display_name: str | None = None
    session_id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class LoadTemplateAsCurrent:
    template_id: str
    session_id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class AddEntry:
    item_ref: str
    minutes: int
    slot_id: str = field(default_factory=new_id)


@dataclass(frozen=True)
class AddBreak:
    minutes: int
    slot_id: str = field(default_factory=new_id)


@dataclass(frozen=True)
class RemoveEntry:
    position: int


@dataclass(frozen=True)
class SetDuration:
    position: int
    minutes: int


@dataclass(frozen=True)
class SetEntryNotes:
    position: int
    text: str


@dataclass(frozen=True)
class RecordActualSeconds:
    position: int
    seconds: int


@dataclass(frozen=True)
class Reorder:
    from_index: int
    to_index: int


@dataclass(frozen=True)
class ClearCurrent:
    pass


# ── Running ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class StartRun:
    pass


@dataclass(frozen=True)
class Advance:
    pass


@dataclass(frozen=True)
class FinishRun:
    reflection_notes: str = ""
    completed_at: datetime = field(default_factory=utcnow)


# ── Templates, archive, stars ────────────────────────────────────


@dataclass(frozen=True)
class SaveCurrentAsTemplate:
    name: str
    template_id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class SaveRunAsTemplate:
    archive_index: int
    name: str
    template_id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class DeleteTemplate:
    template_id: str


@dataclass(frozen=True)
class RenameTemplate:
    template_id: str
    name: str


@dataclass(frozen=True)
class DeleteArchiveEntry:
    index: int


@dataclass(frozen=True)
class ClearArchive:
    pass


@dataclass(frozen=True)
class ToggleStarred:
    item_id: str


Action = (
    Hydrate
    | CreateQueue
    | LoadTemplateAsCurrent
    | AddEntry
    | AddBreak
    | RemoveEntry
    | SetDuration
    | SetEntryNotes
    | RecordActualSeconds
    | Reorder
    | ClearCurrent
    | StartRun
    | Advance
    | FinishRun
    | SaveCurrentAsTemplate
    | SaveRunAsTemplate
    | DeleteTemplate
    | RenameTemplate
    | DeleteArchiveEntry
    | ClearArchive
    | ToggleStarred
    | Tick
    | Pause
    | Resume
    | Reset
)

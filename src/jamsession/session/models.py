"""Session data models for planning, running, and archiving a jam."""

from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

# Placeholder item reference for a non-item pause in the queue
BREAK_ITEM_ID = "break"


def new_id() -> str:
    return uuid4().hex[:12]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QueueEntry(BaseModel):
    """One library item (or a break) placed into a queue with a target duration."""

    model_config = ConfigDict(frozen=True)

    item_ref: str = Field(description="Library item id (e.g. learnimprov:zip-zap-zop) or the break sentinel")
    target_minutes: int = Field(ge=1)
    position: int = Field(ge=0)
    slot_id: str = Field(default_factory=new_id, description="Stable identity, survives reorders")
    run_notes: str | None = None
    actual_seconds: int | None = Field(default=None, ge=0)

    @property
    def is_break(self) -> bool:
        return self.item_ref == BREAK_ITEM_ID

    def as_plan(self) -> "QueueEntry":
        """Copy without anything recorded during a run."""
        return self.model_copy(update={"run_notes": None, "actual_seconds": None})


class Session(BaseModel):
    """The queue being built or run, or a saved reusable template."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    display_name: str | None = None
    entries: tuple[QueueEntry, ...] = ()
    created_at: datetime = Field(default_factory=utcnow)
    is_saved_template: bool = False


class RunRecord(BaseModel):
    """What actually happened during a completed run."""

    model_config = ConfigDict(frozen=True)

    origin_session_id: str
    completed_at: datetime = Field(default_factory=utcnow)
    entries: tuple[QueueEntry, ...] = ()
    reflection_notes: str = ""


class TimerState(BaseModel):
    """Clock state for the run: per-entry elapsed and whole-run cumulative seconds."""

    model_config = ConfigDict(frozen=True)

    elapsed_seconds: int = Field(default=0, ge=0)
    cumulative_seconds: int = Field(default=0, ge=0)
    paused: bool = False


class RunProgress(BaseModel):
    """Persisted position of an in-progress run."""

    model_config = ConfigDict(frozen=True)

    active_index: int = Field(ge=0)
    timer: TimerState = Field(default_factory=TimerState)


class AppState(BaseModel):
    """Top-level state owned by the session reducer."""

    model_config = ConfigDict(frozen=True)

    current: Session | None = None
    active_index: int | None = None
    templates: tuple[Session, ...] = ()
    archive: tuple[RunRecord, ...] = ()
    starred_item_ids: frozenset[str] = frozenset()
    timer: TimerState = Field(default_factory=TimerState)
    hydrated: bool = False

    @property
    def is_running(self) -> bool:
        return self.current is not None and self.active_index is not None

    @property
    def active_entry(self) -> QueueEntry | None:
        if not self.is_running:
            return None
        return self.current.entries[self.active_index]

    @property
    def run_progress(self) -> RunProgress | None:
        if not self.is_running:
            return None
        return RunProgress(active_index=self.active_index, timer=self.timer)

    def get_template(self, template_id: str) -> Session | None:
        for template in self.templates:
            if template.id == template_id:
                return template
        return None

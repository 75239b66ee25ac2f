"""Session reducer - the build, run, reflect state machine.

session_reducer(state, action) -> state is pure and total: an action that
makes no sense for the current state returns the state unchanged instead of
raising. Timer actions are delegated to the timer sub-reducer.
"""

from datetime import datetime

from jamsession.session.actions import (
    Action,
    AddBreak,
    AddEntry,
    Advance,
    ClearArchive,
    ClearCurrent,
    CreateQueue,
    DeleteArchiveEntry,
    DeleteTemplate,
    FinishRun,
    Hydrate,
    LoadTemplateAsCurrent,
    RecordActualSeconds,
    RemoveEntry,
    RenameTemplate,
    Reorder,
    SaveCurrentAsTemplate,
    SaveRunAsTemplate,
    SetDuration,
    SetEntryNotes,
    StartRun,
    ToggleStarred,
)
from jamsession.session.models import (
    BREAK_ITEM_ID,
    AppState,
    QueueEntry,
    RunRecord,
    Session,
    TimerState,
)
from jamsession.session.reorder import renumber, reorder
from jamsession.session.timer import TIMER_ACTIONS, Reset, Tick, restart_entry, timer_reducer


def _with_entries(state: AppState, entries: tuple[QueueEntry, ...]) -> AppState:
    current = state.current.model_copy(update={"entries": entries})
    return state.model_copy(update={"current": current})


def _valid_position(state: AppState, position: int) -> bool:
    return state.current is not None and 0 <= position < len(state.current.entries)


def _is_locked(state: AppState, position: int) -> bool:
    """Entries up to and including the active one can't be moved or removed mid-run."""
    return state.active_index is not None and position <= state.active_index


def _update_entry(state: AppState, position: int, **changes) -> AppState:
    entries = list(state.current.entries)
    entries[position] = entries[position].model_copy(update=changes)
    return _with_entries(state, tuple(entries))


def _append_entry(state: AppState, item_ref: str, minutes: int, slot_id: str) -> AppState:
    if state.current is None or minutes < 1:
        return state
    entry = QueueEntry(
        item_ref=item_ref,
        target_minutes=minutes,
        position=len(state.current.entries),
        slot_id=slot_id,
    )
    return _with_entries(state, renumber((*state.current.entries, entry)))


def _as_template(
    template_id: str, name: str, entries: tuple[QueueEntry, ...], created_at: datetime
) -> Session:
    return Session(
        id=template_id,
        display_name=name,
        entries=renumber([e.as_plan() for e in entries]),
        created_at=created_at,
        is_saved_template=True,
    )


def _hydrate(state: AppState, action: Hydrate) -> AppState:
    current = action.current
    if current is not None:
        # Stored positions may have drifted; the array order is authoritative
        entries = renumber(current.entries)
        if entries != current.entries:
            current = current.model_copy(update={"entries": entries})

    active_index = None
    timer = TimerState()
    progress = action.progress
    if (
        progress is not None
        and current is not None
        and progress.active_index < len(current.entries)
    ):
        active_index = progress.active_index
        timer = progress.timer
    return state.model_copy(
        update={
            "templates": tuple(action.templates),
            "archive": tuple(action.archive),
            "current": current,
            "starred_item_ids": frozenset(action.starred_item_ids),
            "active_index": active_index,
            "timer": timer,
            "hydrated": True,
        }
    )


def session_reducer(state: AppState, action: Action) -> AppState:
    if isinstance(action, TIMER_ACTIONS):
        # The clock only runs during a run; a stray tick outside one is ignored
        if isinstance(action, Tick) and not state.is_running:
            return state
        timer = timer_reducer(state.timer, action)
        if timer is state.timer:
            return state
        return state.model_copy(update={"timer": timer})

    match action:
        case Hydrate():
            return _hydrate(state, action)

        case CreateQueue(display_name=name, session_id=session_id, created_at=created_at):
            current = Session(id=session_id, display_name=name, created_at=created_at)
            return state.model_copy(
                update={"current": current, "active_index": None, "timer": TimerState()}
            )

        case LoadTemplateAsCurrent(template_id=template_id, session_id=session_id, created_at=created_at):
            template = state.get_template(template_id)
            if template is None:
                return state
            current = template.model_copy(
                update={"id": session_id, "created_at": created_at, "is_saved_template": False}
            )
            return state.model_copy(
                update={"current": current, "active_index": None, "timer": TimerState()}
            )

        case AddEntry(item_ref=item_ref, minutes=minutes, slot_id=slot_id):
            return _append_entry(state, item_ref, minutes, slot_id)

        case AddBreak(minutes=minutes, slot_id=slot_id):
            return _append_entry(state, BREAK_ITEM_ID, minutes, slot_id)

        case RemoveEntry(position=position):
            if not _valid_position(state, position) or _is_locked(state, position):
                return state
            remaining = [e for i, e in enumerate(state.current.entries) if i != position]
            return _with_entries(state, renumber(remaining))

        case SetDuration(position=position, minutes=minutes):
            if not _valid_position(state, position) or minutes < 1:
                return state
            if state.current.entries[position].target_minutes == minutes:
                return state
            return _update_entry(state, position, target_minutes=minutes)

        case SetEntryNotes(position=position, text=text):
            if not _valid_position(state, position):
                return state
            return _update_entry(state, position, run_notes=text)

        case RecordActualSeconds(position=position, seconds=seconds):
            if not _valid_position(state, position) or seconds < 0:
                return state
            return _update_entry(state, position, actual_seconds=seconds)

        case Reorder(from_index=from_index, to_index=to_index):
            if state.current is None:
                return state
            if _is_locked(state, from_index) or _is_locked(state, to_index):
                return state
            entries = reorder(state.current.entries, from_index, to_index)
            if entries == state.current.entries:
                return state
            return _with_entries(state, entries)

        case ClearCurrent():
            return state.model_copy(
                update={"current": None, "active_index": None, "timer": TimerState()}
            )

        case StartRun():
            if state.current is None or not state.current.entries:
                return state
            timer = timer_reducer(state.timer, Reset())
            return state.model_copy(update={"active_index": 0, "timer": timer})

        case Advance():
            if not state.is_running:
                return state
            next_index = state.active_index + 1
            if next_index >= len(state.current.entries):
                # Run finished; awaiting reflection
                next_index = None
            return state.model_copy(
                update={"active_index": next_index, "timer": restart_entry(state.timer)}
            )

        case FinishRun(reflection_notes=notes, completed_at=completed_at):
            if state.current is None:
                return state
            record = RunRecord(
                origin_session_id=state.current.id,
                completed_at=completed_at,
                entries=state.current.entries,
                reflection_notes=notes,
            )
            return state.model_copy(
                update={
                    "archive": (*state.archive, record),
                    "current": None,
                    "active_index": None,
                }
            )

        case SaveCurrentAsTemplate(name=name, template_id=template_id, created_at=created_at):
            name = name.strip()
            if state.current is None or not name:
                return state
            template = _as_template(template_id, name, state.current.entries, created_at)
            return state.model_copy(update={"templates": (*state.templates, template)})

        case SaveRunAsTemplate(archive_index=index, name=name, template_id=template_id, created_at=created_at):
            name = name.strip()
            if not 0 <= index < len(state.archive) or not name:
                return state
            template = _as_template(template_id, name, state.archive[index].entries, created_at)
            return state.model_copy(update={"templates": (*state.templates, template)})

        case DeleteTemplate(template_id=template_id):
            templates = tuple(t for t in state.templates if t.id != template_id)
            if len(templates) == len(state.templates):
                return state
            return state.model_copy(update={"templates": templates})

        case RenameTemplate(template_id=template_id, name=name):
            name = name.strip()
            if not name or state.get_template(template_id) is None:
                return state
            templates = tuple(
                t.model_copy(update={"display_name": name}) if t.id == template_id else t
                for t in state.templates
            )
            return state.model_copy(update={"templates": templates})

        case DeleteArchiveEntry(index=index):
            if not 0 <= index < len(state.archive):
                return state
            archive = tuple(r for i, r in enumerate(state.archive) if i != index)
            return state.model_copy(update={"archive": archive})

        case ClearArchive():
            if not state.archive:
                return state
            return state.model_copy(update={"archive": ()})

        case ToggleStarred(item_id=item_id):
            return state.model_copy(
                update={"starred_item_ids": state.starred_item_ids ^ {item_id}}
            )

    return state

"""
Undo/redo history for note edits.

The stack helpers are pure: they return new lists and never mutate their
inputs. NotesHistory composes them into the undo/redo flow a notes editor
needs.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Generic, Optional, Sequence, TypeVar

from .config import HistoryConfig
from .crypto import decrypt_json
from .models import (
    CreateAction,
    DeleteAction,
    NotesAction,
    NotesEvent,
    NotesEventKind,
    NoteSnapshot,
    UpdateAction,
)
from .types import DEFAULT_HISTORY_MAX, DecryptionError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class PopResult(Generic[T]):
    """Result of popping a stack. `item` is None when the stack was empty."""
    item: Optional[T]
    rest: list[T]


class Direction(Enum):
    """Which way an action is being applied."""
    UNDO = "undo"
    REDO = "redo"


def push_undo(
    stack: Sequence[NotesAction],
    action: NotesAction,
    max_size: int = DEFAULT_HISTORY_MAX,
) -> list[NotesAction]:
    """
    Append an action, dropping the oldest entries past `max_size`.

    Args:
        stack: Current stack (oldest first)
        action: Action to append
        max_size: Maximum stack length

    Returns:
        New stack of at most `max_size` actions
    """
    if max_size < 1:
        raise ValueError(f"max_size must be at least 1, got {max_size}")

    result = list(stack)
    result.append(action)
    if len(result) > max_size:
        result = result[len(result) - max_size:]
    return result


def pop_last(stack: Sequence[T]) -> PopResult[T]:
    """Split off the last element of a stack."""
    if not stack:
        return PopResult(item=None, rest=[])
    return PopResult(item=stack[-1], rest=list(stack[:-1]))


def invert(action: NotesAction) -> NotesAction:
    """Return the action that undoes `action`."""
    if isinstance(action, CreateAction):
        return DeleteAction(note=action.note)
    if isinstance(action, DeleteAction):
        return CreateAction(note=action.note)
    if isinstance(action, UpdateAction):
        return UpdateAction(before=action.after, after=action.before)
    raise TypeError(f"Unknown notes action: {type(action).__name__}")


def apply_action(
    notes: dict[str, NoteSnapshot],
    action: NotesAction,
    direction: Direction = Direction.REDO,
) -> dict[str, NoteSnapshot]:
    """
    Apply an action to a live note set keyed by note id.

    REDO applies the forward effect; UNDO applies the inverse.

    Returns:
        New note mapping; the input is not modified.
    """
    if direction is Direction.UNDO:
        action = invert(action)

    result = dict(notes)
    if isinstance(action, CreateAction):
        result[action.note.id] = action.note
    elif isinstance(action, DeleteAction):
        result.pop(action.note.id, None)
    elif isinstance(action, UpdateAction):
        result[action.after.id] = action.after
    else:
        raise TypeError(f"Unknown notes action: {type(action).__name__}")
    return result


@dataclass
class NotesHistory:
    """
    Bounded undo/redo stacks for one editing session.

    An action lives in exactly one of the two stacks. Recording a new edit
    clears the redo stack.
    """
    config: HistoryConfig = field(default_factory=HistoryConfig)
    undo_stack: list = field(default_factory=list)
    redo_stack: list = field(default_factory=list)

    @property
    def can_undo(self) -> bool:
        return len(self.undo_stack) > 0

    @property
    def can_redo(self) -> bool:
        return len(self.redo_stack) > 0

    def record(self, action: NotesAction) -> None:
        """Record a new direct edit."""
        self.undo_stack = push_undo(self.undo_stack, action, self.config.max_size)
        self.clear_redo()

    def undo(
        self, notes: dict[str, NoteSnapshot]
    ) -> Optional[tuple[NotesAction, dict[str, NoteSnapshot]]]:
        """
        Undo the most recent action.

        Returns:
            (action, new notes), or None when there is nothing to undo.
        """
        popped = pop_last(self.undo_stack)
        if popped.item is None:
            return None

        updated = apply_action(notes, popped.item, Direction.UNDO)
        self.undo_stack = popped.rest
        self.redo_stack = push_undo(self.redo_stack, popped.item, self.config.max_size)
        return popped.item, updated

    def redo(
        self, notes: dict[str, NoteSnapshot]
    ) -> Optional[tuple[NotesAction, dict[str, NoteSnapshot]]]:
        """
        Redo the most recently undone action.

        Returns:
            (action, new notes), or None when there is nothing to redo.
        """
        popped = pop_last(self.redo_stack)
        if popped.item is None:
            return None

        updated = apply_action(notes, popped.item, Direction.REDO)
        self.redo_stack = popped.rest
        self.undo_stack = push_undo(self.undo_stack, popped.item, self.config.max_size)
        return popped.item, updated

    def clear_redo(self) -> None:
        self.redo_stack = []

    def reset(self) -> None:
        """Drop all history (e.g. on logout)."""
        self.undo_stack = []
        self.redo_stack = []


# ============================================================================
# Event log replay
# ============================================================================



def decrypt_notes_events(dek_raw: bytes, events: Sequence[NotesEvent]) -> list[NotesEvent]:
    """
    Decrypt the note snapshots of persisted events with the DEK.

    Returns new events; create and update rows whose payload decrypts get
    `note` filled in. A payload that fails to decrypt or parse leaves `note`
    as None, so replay skips that row instead of failing the whole log.
    """
    decrypted: list[NotesEvent] = []

    for event in events:
        if (
            event.kind in (NotesEventKind.CREATE, NotesEventKind.UPDATE)
            and event.payload is not None
            and event.note is None
        ):
            try:
                note = NoteSnapshot.from_dict(decrypt_json(dek_raw, event.payload))
            except (DecryptionError, KeyError, TypeError):
                logger.warning("Skipping undecryptable notes event %s", event.id)
            else:
                event = replace(event, note=note)
        decrypted.append(event)

    return decrypted


@dataclass
class ReplayResult:
    """Live note set and undo/redo targets rebuilt from the event log."""
    notes: list[NoteSnapshot]
    can_undo: bool
    can_redo: bool
    undo_target_event_id: Optional[str]
    redo_target_event_id: Optional[str]


def apply_notes_events(events: Sequence[NotesEvent]) -> ReplayResult:
    """
    Rebuild notes from the persisted event log.

    Undo/redo events target earlier events, so the log is read twice: first
    to find which actions are currently undone, then to apply the rest in
    order. Events whose payload was not decrypted (`note is None`) are
    skipped unless they are deletes.
    """
    undone: set[str] = set()
    undone_stack: list[str] = []

    for event in events:
        if event.target_event_id is None:
            continue
        if event.kind is NotesEventKind.UNDO:
            undone.add(event.target_event_id)
            undone_stack.append(event.target_event_id)
        elif event.kind is NotesEventKind.REDO:
            undone.discard(event.target_event_id)
            for i in range(len(undone_stack) - 1, -1, -1):
                if undone_stack[i] == event.target_event_id:
                    del undone_stack[i]
                    break

    notes_by_id: dict[str, NoteSnapshot] = {}
    applied_ids: list[str] = []

    for event in events:
        if event.kind in (NotesEventKind.UNDO, NotesEventKind.REDO):
            continue
        if event.id in undone:
            continue

        if event.kind is NotesEventKind.DELETE:
            notes_by_id.pop(event.note_id, None)
            applied_ids.append(event.id)
        elif event.note is not None:
            notes_by_id[event.note_id] = event.note
            applied_ids.append(event.id)

    notes = sorted(notes_by_id.values(), key=lambda n: n.created_at, reverse=True)

    return ReplayResult(
        notes=notes,
        can_undo=len(applied_ids) > 0,
        can_redo=len(undone_stack) > 0,
        undo_target_event_id=applied_ids[-1] if applied_ids else None,
        redo_target_event_id=undone_stack[-1] if undone_stack else None,
    )

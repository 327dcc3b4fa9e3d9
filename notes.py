"""Note model and the note-list state machine.

:class:`NoteList` owns the ordered notes, the selection cursor, the delete
confirmation and the text-input sub-state.  Every structural mutation is
written through to its :class:`~store.Store` before the command returns.
Store failures propagate to the caller; the in-memory change is kept.
"""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple, Union

from logging_setup import get_logger

if TYPE_CHECKING:  # pragma: no cover
    from store import Store

log = get_logger("notes")


def now_rfc3339() -> str:
    """Current UTC time as an RFC 3339 string with microseconds."""
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _parse_timestamp(value: str) -> Optional[datetime]:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class State(Enum):
    """Workflow state of a note.  Values are the stored tags."""

    NONE = "None"
    TODO = "Todo"
    IN_PROGRESS = "InProgress"
    DONE = "Done"
    EXPIRED = "Expired"

    @property
    def label(self) -> str:
        return _LABELS[self]

    def advance(self) -> "State":
        members = list(State)
        return members[(members.index(self) + 1) % len(members)]

    @classmethod
    def from_tag(cls, tag: object) -> "State":
        try:
            return cls(tag)
        except ValueError:
            return cls.NONE


_LABELS: Dict[State, str] = {
    State.NONE: "",
    State.TODO: "Todo",
    State.IN_PROGRESS: "In progress",
    State.DONE: "Done",
    State.EXPIRED: "Expired",
}


@dataclass
class Note:
    """A single todo item."""

    title: str
    category: str = ""
    state: State = State.NONE
    created_at: str = field(default_factory=now_rfc3339)
    updated_at: str = ""

    def __post_init__(self) -> None:
        if not self.updated_at:
            self.updated_at = self.created_at

    def touch(self) -> None:
        """Refresh ``updated_at`` without ever moving it backwards."""
        stamp = now_rfc3339()
        previous = _parse_timestamp(self.updated_at)
        if previous is not None and _parse_timestamp(stamp) < previous:
            return
        self.updated_at = stamp

    def to_dict(self) -> Dict[str, str]:
        return {
            "title": self.title,
            "state": self.state.value,
            "category": self.category,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, item: Dict[str, object]) -> "Note":
        created = str(item.get("created_at") or now_rfc3339())
        return cls(
            title=str(item.get("title", "")),
            category=str(item.get("category", "")),
            state=State.from_tag(item.get("state")),
            created_at=created,
            updated_at=str(item.get("updated_at") or created),
        )


# ----------------------------------------------------------------------
# Input sub-state
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class Inactive:
    pass


@dataclass(frozen=True)
class NewTitle:
    buffer: str = ""


@dataclass(frozen=True)
class NewCategory:
    title: str
    buffer: str = ""


@dataclass(frozen=True)
class EditTitle:
    index: int
    buffer: str = ""


InputState = Union[Inactive, NewTitle, NewCategory, EditTitle]

INPUT_PROMPTS: Dict[type, str] = {
    NewTitle: "New Note",
    NewCategory: "Category",
    EditTitle: "Edit Note",
}


# ----------------------------------------------------------------------
# Delete confirmation
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class PendingOn:
    index: int


DeleteConfirmation = Union[Idle, PendingOn]


@dataclass(frozen=True)
class Snapshot:
    """Read-only view handed to the front end."""

    notes: Tuple[Note, ...]
    selected: Optional[int]
    pending_delete: bool
    input: InputState

    @property
    def input_active(self) -> bool:
        return not isinstance(self.input, Inactive)


class NoteList:
    """Ordered notes plus selection, delete confirmation and input state."""

    def __init__(self, store: "Store", notes: Optional[List[Note]] = None) -> None:
        self.store = store
        self.notes: List[Note] = list(notes) if notes else []
        self.selected: Optional[int] = None
        self.confirmation: DeleteConfirmation = Idle()
        self.input: InputState = Inactive()

    @classmethod
    def load(cls, store: "Store") -> "NoteList":
        return cls(store, store.load())

    # ------------------------------------------------------------------
    # Read model
    # ------------------------------------------------------------------
    @property
    def pending_delete(self) -> bool:
        return isinstance(self.confirmation, PendingOn)

    @property
    def input_active(self) -> bool:
        return not isinstance(self.input, Inactive)

    def selected_index(self) -> Optional[int]:
        """The selection if it still points into ``notes``."""
        i = self.selected
        if i is not None and 0 <= i < len(self.notes):
            return i
        return None

    def snapshot(self) -> Snapshot:
        return Snapshot(
            notes=tuple(dataclasses.replace(n) for n in self.notes),
            selected=self.selected_index(),
            pending_delete=self.pending_delete,
            input=self.input,
        )

    def _save(self) -> None:
        self.store.save(self.notes)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    def next(self) -> None:
        self.confirmation = Idle()
        if not self.notes:
            self.selected = None
            return
        i = self.selected_index()
        self.selected = 0 if i is None or i >= len(self.notes) - 1 else i + 1

    def previous(self) -> None:
        self.confirmation = Idle()
        if not self.notes:
            self.selected = None
            return
        i = self.selected_index()
        if i is None:
            self.selected = 0
        else:
            self.selected = len(self.notes) - 1 if i == 0 else i - 1

    def unselect(self) -> None:
        self.confirmation = Idle()
        self.selected = None

    # ------------------------------------------------------------------
    # Text input
    # ------------------------------------------------------------------
    def begin_new_note(self) -> None:
        self.confirmation = Idle()
        if isinstance(self.input, Inactive):
            self.input = NewTitle()

    def begin_edit_note(self) -> None:
        self.confirmation = Idle()
        if not isinstance(self.input, Inactive):
            return
        i = self.selected_index()
        if i is None:
            return
        self.input = EditTitle(index=i, buffer=self.notes[i].title)

    def append_char(self, ch: str) -> None:
        self.confirmation = Idle()
        if not isinstance(self.input, Inactive):
            self.input = dataclasses.replace(self.input, buffer=self.input.buffer + ch)

    def backspace(self) -> None:
        self.confirmation = Idle()
        if not isinstance(self.input, Inactive) and self.input.buffer:
            self.input = dataclasses.replace(self.input, buffer=self.input.buffer[:-1])

    def cancel_input(self) -> None:
        self.confirmation = Idle()
        self.input = Inactive()

    def submit_new_title(self) -> None:
        self.confirmation = Idle()
        if isinstance(self.input, NewTitle):
            self.input = NewCategory(title=self.input.buffer)

    def submit_category(self) -> None:
        self.confirmation = Idle()
        current = self.input
        if not isinstance(current, NewCategory):
            return
        self.notes.append(Note(title=current.title, category=current.buffer, state=State.TODO))
        self.selected = len(self.notes) - 1
        self.input = Inactive()
        log.debug("Created note at index %d", self.selected)
        self._save()

    def submit_edit(self) -> None:
        self.confirmation = Idle()
        current = self.input
        if not isinstance(current, EditTitle):
            return
        self.input = Inactive()
        if not 0 <= current.index < len(self.notes):
            return
        note = self.notes[current.index]
        note.title = current.buffer
        note.touch()
        log.debug("Edited note at index %d", current.index)
        self._save()

    def submit(self) -> None:
        """Enter: finish whichever input step is active."""
        if isinstance(self.input, NewTitle):
            self.submit_new_title()
        elif isinstance(self.input, NewCategory):
            self.submit_category()
        elif isinstance(self.input, EditTitle):
            self.submit_edit()

    # ------------------------------------------------------------------
    # Structural commands
    # ------------------------------------------------------------------
    def delete(self) -> None:
        """First call arms the confirmation, a second consecutive call deletes."""
        i = self.selected_index()
        if i is None:
            self.confirmation = Idle()
            return
        if self.confirmation != PendingOn(i):
            self.confirmation = PendingOn(i)
            return

        self.confirmation = Idle()
        del self.notes[i]
        if not self.notes:
            self.selected = None
        else:
            self.selected = 0 if i == 0 else i - 1
        log.debug("Deleted note at index %d", i)
        self._save()

    def advance_state(self) -> None:
        self.confirmation = Idle()
        i = self.selected_index()
        if i is None:
            return
        note = self.notes[i]
        note.state = note.state.advance()
        note.touch()
        log.debug("Note %d state -> %s", i, note.state.value)
        self._save()

    def prioritize(self) -> None:
        """Move the selected note to the front of the list."""
        self.confirmation = Idle()
        i = self.selected_index()
        if i is None:
            return
        self.notes.insert(0, self.notes.pop(i))
        self.selected = 0
        log.debug("Moved note %d to front", i)
        self._save()

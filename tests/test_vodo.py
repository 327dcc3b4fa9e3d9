from pathlib import Path
import curses
import sys

# Ensure project root is on the import path
sys.path.append(str(Path(__file__).resolve().parents[1]))

import vodo
from notes import Inactive, NewTitle, Note, NoteList, State
from store import Store, UnableToOpenFile
from vodo import clip_to_cells, display_width, format_row, handle_key


def make_list(tmp_path, titles=()):
    return NoteList(Store(tmp_path / "notes.json"), [Note(t) for t in titles])


def press(note_list, keys):
    for key in keys:
        if not handle_key(note_list, key):
            return False
    return True


def test_quit_keys(tmp_path):
    note_list = make_list(tmp_path)
    assert handle_key(note_list, "q") is False
    assert handle_key(note_list, "\x1b") is False


def test_navigation_keys(tmp_path):
    note_list = make_list(tmp_path, "abc")
    press(note_list, ["j", curses.KEY_DOWN])
    assert note_list.selected == 1
    press(note_list, ["k", curses.KEY_UP])
    assert note_list.selected == 2
    press(note_list, [curses.KEY_LEFT])
    assert note_list.selected is None


def test_typing_a_new_note(tmp_path):
    note_list = make_list(tmp_path)
    assert press(note_list, ["n", "q", "!", "\n", "w", "o", "r", "k", "\n"])
    assert len(note_list.notes) == 1
    note = note_list.notes[0]
    assert (note.title, note.category, note.state) == ("q!", "work", State.TODO)
    assert note_list.input == Inactive()


def test_input_escape_cancels_instead_of_quitting(tmp_path):
    note_list = make_list(tmp_path)
    assert press(note_list, ["n", "a", curses.KEY_BACKSPACE, "b", "\x1b"])
    assert note_list.input == Inactive()
    assert note_list.notes == []


def test_non_printable_input_ignored(tmp_path):
    note_list = make_list(tmp_path)
    press(note_list, ["n", "\t", curses.KEY_DOWN, "x"])
    assert note_list.input == NewTitle(buffer="x")


def test_edit_state_prioritize_delete_keys(tmp_path):
    note_list = make_list(tmp_path, "abc")
    press(note_list, ["j", "j", "j", "p"])
    assert [n.title for n in note_list.notes] == ["c", "a", "b"]
    press(note_list, ["s", "s"])
    assert note_list.notes[0].state is State.IN_PROGRESS
    press(note_list, ["e", "\x7f", "z", "\r"])
    assert note_list.notes[0].title == "z"
    press(note_list, ["d", "d"])
    assert [n.title for n in note_list.notes] == ["a", "b"]


def test_display_width_and_clip():
    assert display_width("abc") == 3
    assert display_width("寿司") == 4
    assert clip_to_cells("寿司abc", 3) == "寿"
    assert clip_to_cells("abc", 10) == "abc"
    assert display_width("a\x07") == 1
    assert clip_to_cells("a寿", 2) == "a"


def test_format_row_fits_width():
    row = format_row(["In progress", "work", "寿司" * 40], 60)
    assert display_width(row) == 60
    assert row.startswith("In progress | work")


def test_main_reports_store_error(tmp_path, monkeypatch, capsys):
    def failing_load(store):
        raise UnableToOpenFile(store.path)

    monkeypatch.setattr(vodo.NoteList, "load", classmethod(lambda cls, store: failing_load(store)))
    code = vodo.main([str(tmp_path / "notes.json"), "--log-file", str(tmp_path / "vodo.log")])
    assert code == 1
    assert "Unable to open file" in capsys.readouterr().err

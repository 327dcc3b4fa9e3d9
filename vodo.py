"""Curses front end for vodo.

Draws the ``State | Category | Note`` table and the command/input box, and
maps keys onto :class:`notes.NoteList` commands.  The loop wakes up every
``TICK_RATE_MS`` to redraw even when no key arrives.
"""
from __future__ import annotations

import argparse
import curses
import locale
import logging
import os
import sys
from typing import Dict, List, Optional, Sequence, Union

from wcwidth import wcwidth

from logging_setup import get_logger, setup_logging
from notes import INPUT_PROMPTS, Note, NoteList, Snapshot, State
from settings import APP_NAME, TICK_RATE_MS, resolve_notes_path
from store import Store, StoreError

log = get_logger("ui")

Key = Union[str, int]

QUIT = "quit"
ESC = "\x1b"

HELP_TEXT = (
    "(q) quit | (j) down | (k) up | (d) delete | (n) new note | "
    "(e) edit note | (s) state | (p) prioritize"
)
HEADERS = ("State", "Category", "Note")
STATE_WIDTH = max(len(h) for h in [HEADERS[0]] + [s.label for s in State])

# Keys while no input box is open.
NORMAL_KEYS: Dict[Key, str] = {
    "q": QUIT,
    ESC: QUIT,
    "j": "next",
    curses.KEY_DOWN: "next",
    "k": "previous",
    curses.KEY_UP: "previous",
    curses.KEY_LEFT: "unselect",
    "d": "delete",
    "n": "begin_new_note",
    "e": "begin_edit_note",
    "s": "advance_state",
    "p": "prioritize",
}

# Keys while an input box is open; anything printable is appended.
INPUT_KEYS: Dict[Key, str] = {
    ESC: "cancel_input",
    "\n": "submit",
    "\r": "submit",
    curses.KEY_ENTER: "submit",
    curses.KEY_BACKSPACE: "backspace",
    "\x7f": "backspace",
    "\b": "backspace",
}


def cell_width(ch: str) -> int:
    # control characters report -1
    return max(wcwidth(ch), 0)


def display_width(text: str) -> int:
    """Terminal cells needed to draw ``text``; CJK and emoji count double."""
    return sum(map(cell_width, text))


def clip_to_cells(text: str, max_cells: int) -> str:
    """Longest prefix of ``text`` that fits in ``max_cells`` cells.

    A wide character that would straddle the limit is dropped whole.
    """
    used = 0
    for end, ch in enumerate(text):
        used += cell_width(ch)
        if used > max_cells:
            return text[:end]
    return text


def pad_to_cells(text: str, cells: int) -> str:
    clipped = clip_to_cells(text, cells)
    return clipped + " " * (cells - display_width(clipped))


def column_widths(total: int) -> List[int]:
    category = max(len(HEADERS[1]), total // 5)
    title = max(0, total - STATE_WIDTH - category - 2 * len(" | "))
    return [STATE_WIDTH, category, title]


def format_row(cells: Sequence[str], total: int) -> str:
    widths = column_widths(total)
    return " | ".join(pad_to_cells(c, w) for c, w in zip(cells, widths))


def note_cells(note: Note) -> List[str]:
    return [note.state.label, note.category, note.title]


def handle_key(note_list: NoteList, key: Key) -> bool:
    """Apply ``key`` to ``note_list``.  Returns ``False`` when the user quits."""
    if note_list.input_active:
        command = INPUT_KEYS.get(key)
        if command is not None:
            getattr(note_list, command)()
        elif isinstance(key, str) and key.isprintable():
            note_list.append_char(key)
        return True

    command = NORMAL_KEYS.get(key)
    if command == QUIT:
        return False
    if command is not None:
        getattr(note_list, command)()
    return True


class VodoApp:
    """Curses session around a :class:`NoteList`."""

    def __init__(self, note_list: NoteList) -> None:
        self.note_list = note_list
        self.scroll = 0
        self.delete_attr = curses.A_REVERSE

    def run(self) -> None:
        locale.setlocale(locale.LC_ALL, "")
        os.environ.setdefault("ESCDELAY", "25")
        curses.wrapper(self._curses_main)

    def _ensure_visible(self, selected: Optional[int], height: int) -> None:
        if selected is None:
            return
        if selected < self.scroll:
            self.scroll = selected
        elif selected >= self.scroll + height:
            self.scroll = selected - height + 1

    def _draw_table(self, win: "curses.window", snap: Snapshot, h: int, w: int) -> None:
        win.addstr(0, 0, format_row(HEADERS, w - 1), curses.A_BOLD)
        rows = h - 3
        self._ensure_visible(snap.selected, rows)
        visible = snap.notes[self.scroll:self.scroll + rows]
        for offset, note in enumerate(visible):
            idx = self.scroll + offset
            attr = 0
            if idx == snap.selected:
                attr = self.delete_attr if snap.pending_delete else curses.A_REVERSE
            win.addstr(1 + offset, 0, format_row(note_cells(note), w - 1), attr)

    def _draw_bottom(self, win: "curses.window", snap: Snapshot, h: int, w: int) -> None:
        if not snap.input_active:
            win.addstr(h - 2, 0, "Commands", curses.A_BOLD)
            win.addstr(h - 1, 0, clip_to_cells(HELP_TEXT, w - 1))
            curses.curs_set(0)
            return
        prompt = INPUT_PROMPTS[type(snap.input)]
        text = snap.input.buffer
        # keep the tail of long input visible
        while display_width(text) > w - 2:
            text = text[1:]
        win.addstr(h - 2, 0, prompt, curses.A_BOLD)
        win.addstr(h - 1, 0, text)
        curses.curs_set(1)
        win.move(h - 1, display_width(text))

    def _draw_too_small(self, win: "curses.window", h: int, w: int) -> None:
        msg = f"Window too small ({w}x{h}). Enlarge to continue."
        win.addstr(h // 2, max(0, (w - display_width(msg)) // 2), clip_to_cells(msg, w - 1))

    def _read_key(self, win: "curses.window") -> Optional[Key]:
        try:
            return win.get_wch()
        except curses.error:
            # timeout with no key pressed
            return None

    def _curses_main(self, stdscr: "curses.window") -> None:
        curses.curs_set(0)
        stdscr.keypad(True)
        stdscr.timeout(TICK_RATE_MS)
        if curses.has_colors():
            curses.use_default_colors()
            curses.init_pair(1, curses.COLOR_RED, -1)
            self.delete_attr = curses.A_REVERSE | curses.color_pair(1)

        while True:
            h, w = stdscr.getmaxyx()
            stdscr.erase()
            if h < 5 or w < 30:
                self._draw_too_small(stdscr, h, w)
            else:
                snap = self.note_list.snapshot()
                self._draw_table(stdscr, snap, h, w)
                self._draw_bottom(stdscr, snap, h, w)
            stdscr.refresh()

            key = self._read_key(stdscr)
            if key is None or key == curses.KEY_RESIZE:
                continue
            if not handle_key(self.note_list, key):
                break


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog=APP_NAME, description="Terminal todo list.")
    parser.add_argument("path", nargs="?", help="notes file (default: ~/.config/vodo/notes.json)")
    parser.add_argument("--log-file", help="write the session log here")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    args = parser.parse_args(argv)

    setup_logging(args.log_file, logging.DEBUG if args.verbose else logging.INFO)
    store = Store(resolve_notes_path(args.path))
    try:
        VodoApp(NoteList.load(store)).run()
    except StoreError as exc:
        log.exception("Stopping session: %s", exc)
        print(f"{APP_NAME}: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""File-backed persistence for the note list.

The file holds a JSON array of note records.  Loading is permissive:
missing, empty or malformed content degrades to an empty list.  Saving is
strict: any failure is raised as a :class:`StoreError`.
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Iterable, List, Union

from logging_setup import get_logger
from notes import Note

log = get_logger("store")


class StoreError(Exception):
    """Base class for storage failures."""

    message = "Storage failure"

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        super().__init__(f"{self.message}: {self.path}")


class UnableToOpenFile(StoreError):
    message = "Unable to open file"


class UnableToCreateFile(StoreError):
    message = "Unable to create file"


class UnableToSaveFile(StoreError):
    message = "Unable to save file"


class Store:
    """Reads and writes the whole note sequence at ``path``."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def load(self) -> List[Note]:
        """Return the stored notes, creating an empty file on first use."""
        path = self.path
        if not path.exists():
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.touch()
            except OSError as exc:
                raise UnableToOpenFile(path) from exc
            log.info("Created empty notes file %s", path)
            return []

        try:
            with open(path, "rb") as f:
                raw = f.read()
        except OSError as exc:
            raise UnableToOpenFile(path) from exc

        if not raw.strip():
            return []
        try:
            data = json.loads(raw.decode("utf-8"))
        except ValueError:
            # UnicodeDecodeError is a ValueError too
            log.warning("Ignoring malformed notes file %s", path)
            return []
        if not isinstance(data, list):
            log.warning("Ignoring notes file %s: expected a JSON array", path)
            return []

        notes = [Note.from_dict(item) for item in data if isinstance(item, dict)]
        log.info("Loaded %d notes from %s", len(notes), path)
        return notes

    def save(self, notes: Iterable[Note]) -> None:
        """Replace the file with ``notes``.

        The data goes to a sibling ``.tmp`` file first and is moved over the
        target with :func:`os.replace`.
        """
        path = self.path
        tmp = path.with_name(path.name + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            f = open(tmp, "w", encoding="utf-8")
        except OSError as exc:
            raise UnableToCreateFile(path) from exc

        records = [n.to_dict() for n in notes]
        try:
            with f:
                json.dump(records, f, ensure_ascii=False, indent=2)
        except (OSError, TypeError, ValueError) as exc:
            self._discard(tmp)
            raise UnableToSaveFile(path) from exc

        try:
            os.replace(tmp, path)
        except OSError as exc:
            self._discard(tmp)
            raise UnableToCreateFile(path) from exc
        log.debug("Saved %d notes to %s", len(records), path)

    def _discard(self, tmp: Path) -> None:
        try:
            tmp.unlink()
        except FileNotFoundError:
            pass
        except OSError:
            log.warning("Could not remove temporary file %s", tmp, exc_info=True)

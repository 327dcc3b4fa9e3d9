"""Application name and per-user default locations."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Optional

APP_NAME = "vodo"
CONFIG_DIR = Path.home() / ".config" / APP_NAME
NOTES_PATH = CONFIG_DIR / "notes.json"
LOG_DIR = CONFIG_DIR / "logs"
LOG_PATH = LOG_DIR / f"{APP_NAME}.log"

NOTES_PATH_ENV = "VODO_NOTES_PATH"
TICK_RATE_MS = 250


def resolve_notes_path(
    cli_path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None
) -> Path:
    """Return the storage path: command line, then ``$VODO_NOTES_PATH``, then default."""
    if cli_path:
        return Path(cli_path).expanduser()
    env = os.environ if environ is None else environ
    value = env.get(NOTES_PATH_ENV)
    if value:
        return Path(value).expanduser()
    return NOTES_PATH

from __future__ import annotations

import logging
import uuid
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from settings import APP_NAME, LOG_PATH

SESSION_ID = uuid.uuid4().hex[:8]


class EnsureSessionFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "session"):
            record.session = SESSION_ID
        return True


def get_logger(name: str) -> logging.Logger:
    """Child of the application logger, e.g. ``vodo.store``."""
    return logging.getLogger(f"{APP_NAME}.{name}")


def setup_logging(log_path: Optional[Path] = None, level: int = logging.INFO) -> logging.Logger:
    """Attach a rotating file handler to the application logger.

    curses owns the terminal, so nothing is written to stdout or stderr.
    Calling this again only adjusts the level.  If the log file cannot be
    created a ``NullHandler`` is installed instead.
    """
    path = Path(log_path) if log_path is not None else LOG_PATH

    logger = logging.getLogger(APP_NAME)
    logger.setLevel(level)
    logger.propagate = False

    if logger.handlers:
        return logger

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(path, maxBytes=2 * 1024 * 1024, backupCount=5, encoding="utf-8")
    except OSError:
        # log location not writable; the session runs unlogged
        logger.addHandler(logging.NullHandler())
        return logger

    fmt = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s | sid=%(session)s"
    )
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(fmt)
    fh.addFilter(EnsureSessionFilter())
    logger.addHandler(fh)

    logger.info("Logging initialized. log_file=%s", path)
    return logger

"""JSON-lines logging into the project's .track/ directory.

One record per line in ``track.log``, rotated at 5MB with 3 backups kept.
Engine modules log through ``logging.getLogger(__name__)`` and reach the
file through the ``track`` parent logger.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

LOG_FILENAME = "track.log"
_ROOT_LOGGER = "track"
_ROTATE_AT = 5 * 1024 * 1024
_KEEP = 3
_lock = threading.Lock()

# ``extra=`` attribute -> JSON key
_EXTRA_FIELDS = {
    "tool": "tool",
    "args_data": "args",
    "duration_ms": "duration_ms",
    "error": "error",
    "track_id": "track_id",
}


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        entry.update({key: getattr(record, attr) for attr, key in _EXTRA_FIELDS.items() if hasattr(record, attr)})
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = str(record.exc_info[1])
        return json.dumps(entry, default=str)


def _file_handlers(logger: logging.Logger) -> list[RotatingFileHandler]:
    return [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]


def setup_logging(track_dir: Path) -> logging.Logger:
    """Route the ``track`` logger to ``<track_dir>/track.log``.

    Safe to call on every command: the same directory keeps its handler, a
    different directory swaps the old handler out.
    """
    logger = logging.getLogger(_ROOT_LOGGER)
    target = os.path.abspath(str(track_dir / LOG_FILENAME))

    with _lock:
        current = _file_handlers(logger)
        if any(h.baseFilename == target for h in current):
            return logger
        for stale in current:
            logger.removeHandler(stale)
            stale.close()

        handler = RotatingFileHandler(target, maxBytes=_ROTATE_AT, backupCount=_KEEP)
        handler.setFormatter(_JsonFormatter())
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger

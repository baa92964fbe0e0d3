"""
Logging configuration for DoseTrack.

Two formatters:
- **ConsoleFormatter**: human-readable, level-prefixed output (default)
- **JSONFormatter**: one JSON object per line (``LOG_JSON=true``)

Usage:
    from dosetrack.logging_config import configure_logging
    configure_logging(level=settings.LOG_LEVEL, json_mode=settings.LOG_JSON)
"""

import json
import logging
import sys
from typing import Union


class JSONFormatter(logging.Formatter):
    """Emit each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if hasattr(record, "medication_id"):
            entry["medication_id"] = record.medication_id
        if record.exc_info and record.exc_info[1]:
            entry["error"] = {
                "type": type(record.exc_info[1]).__name__,
                "message": str(record.exc_info[1]),
            }
        return json.dumps(entry, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter with level-based prefixes."""

    FORMATS = {
        logging.DEBUG: "[DEBUG] %(name)s: %(message)s",
        logging.INFO: "[INFO] %(message)s",
        logging.WARNING: "[WARN] %(message)s",
        logging.ERROR: "[ERROR] %(message)s",
        logging.CRITICAL: "[CRIT] %(message)s",
    }

    def format(self, record: logging.LogRecord) -> str:
        fmt = self.FORMATS.get(record.levelno, "[%(levelname)s] %(message)s")
        formatter = logging.Formatter(fmt)
        return formatter.format(record)


def configure_logging(
    *,
    level: Union[int, str] = logging.INFO,
    json_mode: bool = False,
) -> None:
    """
    Configure the root logger with a single stderr handler.

    Args:
        level: Logging level, as an int or a name such as ``"DEBUG"``.
        json_mode: If True, use the JSON formatter.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(JSONFormatter() if json_mode else ConsoleFormatter())
    root.addHandler(console)

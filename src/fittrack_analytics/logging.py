"""Structured logging for the snapshot CLI and embedding services.

FITTRACK_LOG_FORMAT selects "json" (default, one object per line) or
"text". Engine modules only emit records through ``logging.getLogger``;
handlers are installed by whichever process embeds them.

Context travels as ``extra={"fittrack_<name>": value}`` and is rendered by
both formatters.
"""

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, TextIO

from .errors import ConfigurationError

LOG_FORMATS: tuple[str, ...] = ("json", "text")

_EXTRA_PREFIX = "fittrack_"


def _extras(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key.startswith(_EXTRA_PREFIX)
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per record, fittrack_* extras inlined."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            **_extras(record),
        }
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = "".join(traceback.format_exception(*record.exc_info))
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Plain text with fittrack_* extras appended as key=value pairs."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = _extras(record)
        if not extras:
            return line
        pairs = " ".join(
            f"{key[len(_EXTRA_PREFIX):]}={value}" for key, value in sorted(extras.items())
        )
        return f"{line} [{pairs}]"


def setup_logging(
    log_format: str,
    level: int = logging.INFO,
    stream: TextIO | None = None,
) -> logging.Handler:
    """Install a single root handler writing to ``stream`` (stderr by default)."""
    if log_format not in LOG_FORMATS:
        allowed = ", ".join(LOG_FORMATS)
        raise ConfigurationError(f"Unknown log format {log_format!r}. Expected one of: {allowed}")

    root = logging.getLogger()
    root.setLevel(level)
    for existing in root.handlers[:]:
        root.removeHandler(existing)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if log_format == "json" else TextFormatter())
    root.addHandler(handler)
    return handler

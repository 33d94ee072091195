"""Logging setup for the ``fluentfn`` logger namespace.

Library modules only call ``logging.getLogger("fluentfn.<area>")``;
applications opt into output with configure_logging() once at startup.

Example:
    >>> configure_logging()                      # level/format from FLUENTFN_LOG_*
    >>> configure_logging(level="DEBUG", format="json")
"""

from __future__ import annotations

import logging
import sys
from datetime import UTC, datetime
from typing import TextIO

import orjson

from ...foundation.config import LoggingSettings, get_settings

ROOT_LOGGER = "fluentfn"

_TEXT_FORMAT = "%(levelname)s %(name)s: %(message)s"
_TEXT_FORMAT_TS = "%(asctime)s " + _TEXT_FORMAT


class JsonFormatter(logging.Formatter):
    """One JSON object per line: ts, level, logger, event, plus exc_info when present."""

    def __init__(self, include_timestamps: bool = True) -> None:
        super().__init__()
        self.include_timestamps = include_timestamps

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "level": record.levelname.lower(),
            "logger": record.name,
            "event": record.getMessage(),
        }
        if self.include_timestamps:
            entry["ts"] = datetime.fromtimestamp(record.created, tz=UTC).isoformat()
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return orjson.dumps(entry, default=str, option=orjson.OPT_NON_STR_KEYS).decode()


def configure_logging(
    level: str | None = None,
    format: str | None = None,
    *,
    stream: TextIO | None = None,
    settings: LoggingSettings | None = None,
) -> logging.Logger:
    """Attach a single stream handler to the ``fluentfn`` logger.

    Explicit arguments override FLUENTFN_LOG_* settings. Calling again
    replaces the handler installed by the previous call.

    Returns:
        The configured ``fluentfn`` logger
    """
    cfg = settings or get_settings().logging
    fmt = format or cfg.format

    handler = logging.StreamHandler(stream or sys.stderr)
    if fmt == "json":
        handler.setFormatter(JsonFormatter(include_timestamps=cfg.include_timestamps))
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT_TS if cfg.include_timestamps else _TEXT_FORMAT))
    handler.set_name("fluentfn")

    root = logging.getLogger(ROOT_LOGGER)
    for existing in [h for h in root.handlers if h.get_name() == "fluentfn"]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel((level or cfg.level).upper())
    return root

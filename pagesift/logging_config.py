"""Logging configuration.

Two formats are supported via the ``LOG_FORMAT`` setting:

- ``text`` (default): human-readable lines for local development
- ``json``: one JSON object per line, for log shippers
"""

from __future__ import annotations

import logging
import sys
from typing import IO, Optional

from pythonjsonlogger.json import JsonFormatter

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
_JSON_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def _json_formatter() -> JsonFormatter:
    return JsonFormatter(
        fmt=_JSON_FORMAT,
        rename_fields={
            "levelname": "level",
            "name": "logger",
            "asctime": "timestamp",
        },
    )


class PlaywrightPipeFilter(logging.Filter):
    """Drop Playwright's repeated 'pipe closed by peer' warnings.

    A browser that dies mid-render makes the driver log this once per
    pending write.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        return "pipe closed by peer" not in record.getMessage()


def configure_logging(
    log_format: str = "text",
    log_level: str = "INFO",
    stream: Optional[IO[str]] = None,
) -> None:
    """Configure the root logger with a single stream handler.

    Args:
        log_format: ``"json"`` or ``"text"``.
        log_level: Python log level name.
        stream: Where to write; defaults to stdout.
    """
    root = logging.getLogger()
    root.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.addFilter(PlaywrightPipeFilter())
    if log_format == "json":
        handler.setFormatter(_json_formatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT))

    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    logging.getLogger("playwright").setLevel(logging.ERROR)
    logging.getLogger("httpx").setLevel(logging.WARNING)

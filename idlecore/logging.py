"""Logging setup for the idlecore CLI and MCP server.

Everything goes through structlog into the stdlib root logger and out to
stderr, so stdout stays free for command output and the MCP stdio
transport. Format and level come from the arguments, falling back to the
IDLECORE_LOG_FORMAT ("console" or "json") and IDLECORE_LOG_LEVEL
environment variables.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import MutableMapping
    from typing import Any

FORMAT_ENV = "IDLECORE_LOG_FORMAT"
LEVEL_ENV = "IDLECORE_LOG_LEVEL"

LOG_FORMATS = ("console", "json")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

LOG_FILE_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"


def _serialize_enums(
    _logger: object,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Log enum members (categories, error kinds, statuses) by value."""
    for key, value in event_dict.items():
        if isinstance(value, Enum):
            event_dict[key] = value.value
    return event_dict


def resolve_format(fmt: str | None = None) -> str:
    value = (fmt or os.environ.get(FORMAT_ENV) or "console").lower()
    if value not in LOG_FORMATS:
        raise ValueError(f"Invalid log format {value!r}. Must be one of: {', '.join(LOG_FORMATS)}.")
    return value


def resolve_level(level: int | str | None = None) -> int:
    if isinstance(level, int):
        return level
    value = (level or os.environ.get(LEVEL_ENV) or "INFO").upper()
    if value not in LOG_LEVELS:
        raise ValueError(f"Invalid log level {value!r}. Must be one of: {', '.join(LOG_LEVELS)}.")
    return getattr(logging, value)


def _build_formatter(fmt: str, *, colors: bool = False) -> logging.Formatter:
    if fmt == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=colors)
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )


def setup_logging(
    log_dir: Path | str | None = None,
    level: int | str | None = None,
    fmt: str | None = None,
) -> Path | None:
    """Configure structlog output to stderr, plus a session log file when log_dir is given.

    Returns the log file path, or None when only stderr is used.
    """
    fmt = resolve_format(fmt)
    level = resolve_level(level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            _serialize_enums,
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(_build_formatter(fmt, colors=sys.stderr.isatty()))
    root_logger.addHandler(stream_handler)

    if log_dir is None:
        return None

    dir_path = Path(log_dir)
    dir_path.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(tz=UTC).strftime(LOG_FILE_TIMESTAMP_FORMAT)
    file_path = dir_path / f"idlecore_{timestamp}.log"
    file_handler = logging.FileHandler(file_path)
    file_handler.setFormatter(_build_formatter(fmt))
    root_logger.addHandler(file_handler)
    return file_path

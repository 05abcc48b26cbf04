"""
Logging for the activity engine: structlog events routed through stdlib.

Every event carries the component that emitted it (activities.store,
reminders.scheduler, ...) and, inside a mutation, the activity id. The
console gets a readable rendering by default or JSON on request; the
optional log file always gets JSON lines and rotates by size.

Settings come from the `logging:` block of args/activities.yaml, with
LASTDONE_LOG_LEVEL / LASTDONE_LOG_FORMAT overriding it.

Usage:
    from lastdone.logging_config import activity_context, get_logger, setup_logging

    setup_logging()
    logger = get_logger(__name__)
    with activity_context("act_a1b2c3"):
        logger.info("completion_recorded")
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import structlog

LEVEL_ENV = "LASTDONE_LOG_LEVEL"
FORMAT_ENV = "LASTDONE_LOG_FORMAT"

# Marks handlers installed here so a second setup_logging() only replaces its own
_HANDLER_TAG = "_lastdone_handler"


def _component(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    name = event_dict.get("logger") or ""
    if name.startswith("lastdone."):
        event_dict.setdefault("component", name.removeprefix("lastdone."))
    return event_dict


def _resolve_level(level: str | int | None) -> int:
    if isinstance(level, int):
        return level
    name = (level or os.environ.get(LEVEL_ENV) or "INFO").upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def _wants_json(json_output: bool | None) -> bool:
    if json_output is not None:
        return json_output
    return os.environ.get(FORMAT_ENV, "").lower() == "json"


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        _component,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def _formatter(renderer: structlog.types.Processor) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_pre_chain(),
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )


def _tagged(handler: logging.Handler, renderer: structlog.types.Processor) -> logging.Handler:
    handler.setFormatter(_formatter(renderer))
    setattr(handler, _HANDLER_TAG, True)
    return handler


def setup_logging(
    level: str | int | None = None,
    json_output: bool | None = None,
    log_file: Path | str | None = None,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
) -> None:
    """
    Configure structlog and attach handlers to the root logger.

    Args:
        level: Level name or number (default $LASTDONE_LOG_LEVEL, then INFO)
        json_output: JSON on the console (default $LASTDONE_LOG_FORMAT == "json")
        log_file: Also write JSON lines here, rotating at max_bytes
        max_bytes: Size at which the log file rotates
        backup_count: Rotated files to keep
    """
    structlog.configure(
        processors=[*_pre_chain(), structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    console_renderer = (
        structlog.processors.JSONRenderer() if _wants_json(json_output) else structlog.dev.ConsoleRenderer()
    )
    handlers = [_tagged(logging.StreamHandler(sys.stderr), console_renderer)]

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
        handlers.append(_tagged(file_handler, structlog.processors.JSONRenderer()))

    root = logging.getLogger()
    for handler in [h for h in root.handlers if getattr(h, _HANDLER_TAG, False)]:
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(_resolve_level(level))


def setup_logging_from_config(config=None, level: str | None = None) -> None:
    """setup_logging() driven by the `logging:` config block; level overrides it."""
    if config is None:
        from lastdone.config_models import load_activities_config

        config = load_activities_config()
    settings = config.logging
    log_file = settings.file and config.storage.resolve(settings.file)
    setup_logging(
        level=level or os.environ.get(LEVEL_ENV) or settings.level,
        json_output=True if settings.format == "json" else None,
        log_file=log_file,
        max_bytes=settings.max_bytes,
        backup_count=settings.backup_count,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


@contextmanager
def activity_context(activity_id: str | None) -> Iterator[None]:
    """Tag every event emitted inside the block with the activity id."""
    if not activity_id:
        yield
        return
    with structlog.contextvars.bound_contextvars(activity_id=activity_id):
        yield


__all__ = [
    "activity_context",
    "get_logger",
    "setup_logging",
    "setup_logging_from_config",
]

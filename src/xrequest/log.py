"""Structured logging for backend clients using structlog.

Backend clients log through any sink exposing ``debug``/``info``/``warning``/
``error`` methods that take an event name and keyword fields. A level whose
method is missing, or which the sink reports as disabled, is suppressed.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any, Callable, Optional

import structlog
from structlog.contextvars import merge_contextvars
from structlog.typing import Processor

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

DEFAULT_LOGGER = structlog.get_logger("xrequest")


def log_method(log: Any, level: str) -> Optional[Callable[..., Any]]:
    """Return the sink method for ``level`` or ``None`` if it is disabled."""
    method = getattr(log, level, None)
    if not callable(method):
        return None
    is_enabled = getattr(log, "is_enabled_for", None) or getattr(
        log, "isEnabledFor", None
    )
    if callable(is_enabled) and not is_enabled(_LEVELS[level]):
        return None
    return method


def configure_logging(
    log_level: str = "INFO",
    json_output: bool | None = None,
) -> None:
    """
    Configure structlog and the standard library root logger.

    Args:
        log_level: Logging level name (defaults to "INFO")
        json_output: Render JSON lines instead of console output. Defaults
            to the LOG_FORMAT environment variable ("json" or "console").
    """
    if json_output is None:
        json_output = os.getenv("LOG_FORMAT", "console").lower() == "json"

    processors: list[Processor] = [
        merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
    ]
    if json_output:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(default=repr),
        ]
    else:
        processors += [
            structlog.dev.set_exc_info,
            structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
        ]

    logging.basicConfig(
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
        level=getattr(logging, log_level.upper()),
        force=True,
    )

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

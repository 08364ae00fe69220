"""Logging setup for build drivers that embed notice-builder.

The library only emits events through ``structlog.get_logger``; a build
driver calls :func:`setup_logging` once to decide where they go. Only the
``notice_builder`` logger tree is configured, so the driver's own root
logging is left alone.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TextIO

import structlog

LOGGER_NAME = "notice_builder"
FORMATS = ("console", "json")

# Context the orchestrator binds around its hooks, rendered first in console output.
_CONTEXT_KEYS = ("project", "unit", "phase")


def _context_first(_logger: object, _method: str, event_dict: dict) -> dict:
    ordered = {key: event_dict.pop(key) for key in _CONTEXT_KEYS if key in event_dict}
    ordered.update(event_dict)
    return ordered


def setup_logging(
    level: str | None = None,
    fmt: str | None = None,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Route notice-builder events to *stream* (stderr by default).

    *level* and *fmt* fall back to ``NOTICE_BUILDER_LOG_LEVEL`` (default
    ``INFO``) and ``NOTICE_BUILDER_LOG_FORMAT`` (``console`` or ``json``).
    Calling it again replaces the previous handler.
    """
    level = (level or os.environ.get("NOTICE_BUILDER_LOG_LEVEL", "INFO")).upper()
    fmt = (fmt or os.environ.get("NOTICE_BUILDER_LOG_FORMAT", "console")).lower()
    if fmt not in FORMATS:
        raise ValueError(f"unknown log format {fmt!r}, expected one of {', '.join(FORMATS)}")

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _context_first,
    ]
    renderer: structlog.types.Processor
    if fmt == "json":
        renderer = structlog.processors.JSONRenderer(sort_keys=False)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *pre_chain,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    package_logger = logging.getLogger(LOGGER_NAME)
    for old in list(package_logger.handlers):
        package_logger.removeHandler(old)
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    package_logger.propagate = False

    # httpx logs every request at INFO.
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    return package_logger

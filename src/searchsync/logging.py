"""Structured logging configuration using structlog."""

import logging
import sys

import structlog
from structlog.types import Processor

_QUIET_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def configure_logging(debug: bool = False, json_logs: bool = True) -> None:
    """Configure structlog output for the sync service.

    Args:
        debug: Enable debug-level logging, which includes skipped fields
            and per-call backend events.
        json_logs: Render JSON lines; otherwise use the console renderer.
    """
    level = logging.DEBUG if debug else logging.INFO
    renderer: Processor = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=level,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).handlers = []
        logging.getLogger(name).propagate = True


def bind_sync_context(**values: object) -> None:
    """Attach values (e.g. ``request_id``) to every log line of the current task."""
    structlog.contextvars.bind_contextvars(**values)


def clear_sync_context() -> None:
    structlog.contextvars.clear_contextvars()

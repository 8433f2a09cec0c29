"""Structured logging setup built on structlog."""
import logging
import sys
from typing import Any

import structlog
from structlog.contextvars import (bind_contextvars, clear_contextvars,
                                   merge_contextvars, unbind_contextvars)

from src.core.config import settings
from src.infrastructure.logging_processors import (add_caller_info,
                                                   add_io_context,
                                                   add_service_context,
                                                   format_exception_info,
                                                   set_log_severity)

_configured = False


def setup_logging(force: bool = False) -> None:
    """Configure structlog and the stdlib root logger once per process"""
    global _configured
    if _configured and not force:
        return

    level = getattr(logging, settings.log_level)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level,
        force=True,
    )

    processors = [
        merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_service_context,
        add_io_context,
        add_caller_info,
        set_log_severity,
    ]

    if settings.log_format == "json":
        processors.append(format_exception_info)
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _configured = True


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a bound logger for a module"""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind values to every log entry emitted in the current context"""
    bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    unbind_contextvars(*keys)


def clear_context() -> None:
    clear_contextvars()

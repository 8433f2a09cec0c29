"""Custom structlog processors for filesystem logging"""

import inspect
import os
import socket
import sys
import traceback
from typing import Optional

from structlog.types import EventDict, WrappedLogger

from src.core.config import settings

# Event keys that may carry os.PathLike values
PATH_KEYS = ("path", "parent", "target")

SEVERITIES = {
    "debug": "DEBUG",
    "info": "INFO",
    "warning": "WARNING",
    "error": "ERROR",
    "critical": "CRITICAL",
}


def _hostname() -> Optional[str]:
    try:
        return socket.gethostname()
    except OSError:
        return None


_HOSTNAME = _hostname()


def add_service_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Tag every event with the service, environment and host"""
    event_dict["service"] = settings.app_name
    event_dict["environment"] = settings.environment
    if _HOSTNAME:
        event_dict["hostname"] = _HOSTNAME

    return event_dict


def add_io_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Render path-like values as plain strings"""
    for key in PATH_KEYS:
        value = event_dict.get(key)
        if value is not None and not isinstance(value, str):
            event_dict[key] = os.fspath(value) if isinstance(value, os.PathLike) else str(value)

    return event_dict


def add_caller_info(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Record where the event was logged from, in development only"""
    if not settings.is_development:
        return event_dict

    frame = inspect.currentframe()
    while frame is not None:
        module = frame.f_globals.get("__name__", "")
        if not module.startswith(("structlog", __name__)):
            break
        frame = frame.f_back

    if frame is not None:
        event_dict["caller"] = {
            "filename": os.path.basename(frame.f_code.co_filename),
            "function": frame.f_code.co_name,
            "lineno": frame.f_lineno,
        }

    return event_dict


def format_exception_info(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Replace exc_info with a structured exception record"""
    exc_info = event_dict.pop("exc_info", None)
    if not exc_info:
        return event_dict

    if isinstance(exc_info, BaseException):
        exc_type, exc_value, exc_tb = type(exc_info), exc_info, exc_info.__traceback__
    elif isinstance(exc_info, tuple):
        exc_type, exc_value, exc_tb = exc_info
    else:
        exc_type, exc_value, exc_tb = sys.exc_info()

    if exc_type is not None:
        event_dict["exception"] = {
            "type": exc_type.__name__,
            "message": str(exc_value),
            "errno": getattr(exc_value, "errno", None),
            "traceback": traceback.format_exception(exc_type, exc_value, exc_tb),
        }

    return event_dict


def set_log_severity(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Set an upper-case severity field for log aggregation"""
    if "level" in event_dict:
        event_dict["severity"] = SEVERITIES.get(event_dict["level"], "INFO")

    return event_dict

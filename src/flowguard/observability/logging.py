"""Logging for FlowGuard combinators.

Two concerns live here:

* The :class:`TaskLogger` protocol, the optional collaborator every
  combinator reports task failures and retry progress to.  Any
  :class:`logging.Logger` satisfies it; :class:`NullLogger` stands in when
  the caller passes none.
* Application-side helpers for structured output.

Usage:
    from flowguard.observability.logging import configure_logging, get_logger
    from flowguard.patterns.retry import retry_rejected

    configure_logging(log_level="DEBUG", json_format=True)
    leftovers = await retry_rejected(tasks, logger=get_logger("jobs"))
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any, Protocol, runtime_checkable

# Attributes every LogRecord carries; anything else came in via extra={}.
_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
    }
)


@runtime_checkable
class TaskLogger(Protocol):
    """Two-method logging capability accepted by the combinators."""

    def debug(self, msg: str, *args: Any) -> None: ...

    def error(self, msg: str, *args: Any) -> None: ...


class NullLogger:
    """A :class:`TaskLogger` that discards everything."""

    def debug(self, msg: str, *args: Any) -> None:
        pass

    def error(self, msg: str, *args: Any) -> None:
        pass


def resolve_logger(logger: TaskLogger | None) -> TaskLogger:
    """Return *logger*, or a :class:`NullLogger` when it is ``None``."""
    return logger if logger is not None else NullLogger()


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Outputs log records as JSON with timestamp, level, message, and context.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and key not in log_data:
                log_data[key] = value

        return json.dumps(log_data, default=str)


class ContextFilter(logging.Filter):
    """Add contextual information to log records."""

    def __init__(self) -> None:
        super().__init__()
        self._context: dict[str, Any] = {}

    def set_context(self, **kwargs: Any) -> None:
        self._context.update(kwargs)

    def clear_context(self) -> None:
        self._context.clear()

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self._context.items():
            setattr(record, key, value)
        return True


def configure_logging(
    log_level: str = "INFO",
    json_format: bool = True,
) -> None:
    """Configure application-wide logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON formatter if True, plain text if False
    """
    level = getattr(logging, log_level.upper())
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    if json_format:
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name.

    The returned logger can be passed straight to any combinator as its
    ``logger`` argument.
    """
    return logging.getLogger(name)


class LogContext:
    """Context manager for adding fields to every log record.

    Usage:
        with LogContext(job="nightly-sync"):
            await batch(tasks, logger=get_logger("sync"))
    """

    def __init__(self, **context: Any) -> None:
        self._context = context
        self._filter = ContextFilter()

    def __enter__(self) -> LogContext:
        self._filter.set_context(**self._context)
        for handler in logging.getLogger().handlers:
            handler.addFilter(self._filter)
        return self

    def __exit__(self, *args: Any) -> None:
        for handler in logging.getLogger().handlers:
            handler.removeFilter(self._filter)
        self._filter.clear_context()

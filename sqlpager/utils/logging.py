"""Logging helpers for sqlpager.

Loggers handed out by :func:`get_logger` live under the ``sqlpager``
namespace. A paginated request runs its count query on another thread or
task, so both sides are tagged with the correlation ID of the request that
started them.
"""

import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Optional, Union

from sqlpager._serialization import encode_json

__all__ = (
    "CorrelationIDFilter",
    "StructuredFormatter",
    "configure_logging",
    "correlation_scope",
    "get_correlation_id",
    "get_logger",
    "log_with_context",
)

_ROOT_LOGGER_NAME = "sqlpager"
_QUERY_FIELDS = ("sql", "parameters")

correlation_id_var: "ContextVar[Optional[str]]" = ContextVar("sqlpager_correlation_id", default=None)


def get_correlation_id() -> "Optional[str]":
    return correlation_id_var.get()


@contextmanager
def correlation_scope(correlation_id: "Optional[str]" = None) -> "Iterator[str]":
    """Tag every log record emitted inside the block with one correlation ID.

    An ID that is already active is kept, so nested scopes (an executor call
    made inside an application request) share the outer ID.

    Args:
        correlation_id: ID to use when none is active. A random one is generated if omitted.

    Yields:
        The active correlation ID.
    """
    current = correlation_id_var.get()
    if current is not None:
        yield current
        return
    new_id = correlation_id or uuid.uuid4().hex
    token = correlation_id_var.set(new_id)
    try:
        yield new_id
    finally:
        correlation_id_var.reset(token)


class CorrelationIDFilter(logging.Filter):
    """Copies the active correlation ID onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        correlation_id = get_correlation_id()
        if correlation_id is not None:
            record.correlation_id = correlation_id
        return True


class StructuredFormatter(logging.Formatter):
    """One JSON object per record.

    Fields passed through :func:`log_with_context` are merged into the entry;
    ``sql`` and ``parameters`` are grouped under a ``query`` key.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: "dict[str, Any]" = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        correlation_id = getattr(record, "correlation_id", None)
        if correlation_id is not None:
            entry["correlation_id"] = correlation_id

        fields = dict(getattr(record, "extra_fields", {}))
        query = {name: fields.pop(name) for name in _QUERY_FIELDS if name in fields}
        if query:
            entry["query"] = query
        entry.update(fields)

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return encode_json(entry)


def get_logger(name: "Optional[str]" = None) -> logging.Logger:
    """Return ``sqlpager`` or ``sqlpager.<name>`` with the correlation filter attached."""
    if name is None:
        name = _ROOT_LOGGER_NAME
    elif not name.startswith(_ROOT_LOGGER_NAME):
        name = f"{_ROOT_LOGGER_NAME}.{name}"

    logger = logging.getLogger(name)
    if not any(isinstance(f, CorrelationIDFilter) for f in logger.filters):
        logger.addFilter(CorrelationIDFilter())
    return logger


def configure_logging(
    level: "Union[str, int]" = "INFO",
    *,
    structured: bool = True,
    handler: "Optional[logging.Handler]" = None,
) -> logging.Logger:
    """Attach a single handler to the ``sqlpager`` logger.

    Applications that configure logging themselves do not need this; records
    propagate to the root logger by default.

    Args:
        level: Level name or number.
        structured: Use :class:`StructuredFormatter` instead of a plain text format.
        handler: Handler to use. Defaults to a stream handler on stderr.

    Returns:
        The configured ``sqlpager`` logger.
    """
    logger = get_logger()
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    for existing in list(logger.handlers):
        logger.removeHandler(existing)

    handler = handler or logging.StreamHandler(sys.stderr)
    if structured:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
    handler.addFilter(CorrelationIDFilter())
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def log_with_context(logger: logging.Logger, level: int, message: str, **extra_fields: Any) -> None:
    """Log ``message`` with structured ``extra_fields`` for :class:`StructuredFormatter`."""
    if not logger.isEnabledFor(level):
        return
    logger.log(level, message, extra={"extra_fields": extra_fields})

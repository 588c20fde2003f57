"""Runtime-checkable protocols for the collaborators sqlpager consumes.

sqlpager does not talk to a database itself. Queries are handed to an
execution capability, and execution errors are handed to a diagnostics sink.
"""

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable

from sqlpager.utils.logging import get_logger, log_with_context

if TYPE_CHECKING:
    from sqlpager.typing import RowT

__all__ = (
    "AsyncExecutionCapability",
    "DiagnosticsSink",
    "ExecutionCapability",
    "LoggingSink",
)


@runtime_checkable
class ExecutionCapability(Protocol):
    """Runs raw SQL with positional bindings.

    Implementations must be safe for concurrent use, as the count query and
    the data query of a paginated request run at the same time.
    """

    def fetch_all(self, sql: str, parameters: "Sequence[Any]") -> "list[RowT]":
        """Return every row produced by ``sql``."""
        ...

    def fetch_one(self, sql: str, parameters: "Sequence[Any]") -> "Optional[RowT]":
        """Return the first row produced by ``sql``, or ``None``."""
        ...

    def fetch_value(self, sql: str, parameters: "Sequence[Any]") -> Any:
        """Return the first column of the first row produced by ``sql``."""
        ...


@runtime_checkable
class AsyncExecutionCapability(Protocol):
    """Coroutine counterpart of :class:`ExecutionCapability`."""

    async def fetch_all(self, sql: str, parameters: "Sequence[Any]") -> "list[RowT]": ...

    async def fetch_one(self, sql: str, parameters: "Sequence[Any]") -> "Optional[RowT]": ...

    async def fetch_value(self, sql: str, parameters: "Sequence[Any]") -> Any: ...


@runtime_checkable
class DiagnosticsSink(Protocol):
    """Receives execution errors that are reported rather than, or before being, raised."""

    def report(self, error: BaseException, *, sql: str, parameters: "Sequence[Any]") -> None: ...


class LoggingSink:
    """Diagnostics sink writing errors to the ``sqlpager`` logger."""

    __slots__ = ("logger",)

    def __init__(self, logger: "Optional[logging.Logger]" = None) -> None:
        self.logger = logger or get_logger("execution")

    def report(self, error: BaseException, *, sql: str, parameters: "Sequence[Any]") -> None:
        log_with_context(
            self.logger,
            logging.ERROR,
            f"Query execution failed: {error}",
            error_type=type(error).__name__,
            sql=sql,
            parameters=list(parameters),
        )

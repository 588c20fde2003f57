from typing import Any, Optional

__all__ = (
    "CountQueryError",
    "ImproperConfigurationError",
    "QueryExecutionError",
    "ResultShapeError",
    "SQLPagerError",
    "SerializationError",
)


class SQLPagerError(Exception):
    """Base exception class from which all sqlpager exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``SQLPagerError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class ImproperConfigurationError(SQLPagerError):
    """Improper Configuration error.

    Raised when a query template or executor is given values it cannot use,
    such as a negative limit or page.
    """


class SerializationError(SQLPagerError):
    """Encoding or decoding of an object failed."""


class QueryExecutionError(SQLPagerError):
    """Base class for errors raised while running an assembled query."""

    sql: Optional[str]

    def __init__(self, message: str, sql: Optional[str] = None) -> None:
        """Initialize with optional SQL context."""
        detail_message = message
        if sql:
            detail_message = f"{message}\nSQL: {sql}"
        super().__init__(detail=detail_message)
        self.sql = sql


class CountQueryError(QueryExecutionError):
    """The count query of a paginated request failed while strict counting was enabled."""


class ResultShapeError(SQLPagerError):
    """An execution result cannot be coerced into the requested destination shape.

    This is a programming error: the execution function returned something no
    coercion rule applies to. It is never caught by the executors.
    """

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Execution result does not match the requested result shape."
        super().__init__(message)

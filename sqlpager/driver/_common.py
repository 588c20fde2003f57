"""State and helpers shared by the synchronous and asynchronous executors."""

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Optional

from sqlpager.config import ExecutorConfig
from sqlpager.exceptions import CountQueryError
from sqlpager.protocols import LoggingSink
from sqlpager.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlpager.assembler import CompiledQuery
    from sqlpager.builder import QueryTemplate
    from sqlpager.protocols import DiagnosticsSink, ExecutionCapability
    from sqlpager.typing import RowT, StatementParameters

__all__ = ("CommonExecutorAttributesMixin", "PreparedStatement", "coerce_count")

logger = get_logger("driver")


def coerce_count(value: Any) -> int:
    """Turn the scalar returned by a count query into an ``int``. No row counts as zero."""
    if value is None:
        return 0
    return int(value)


class PreparedStatement:
    """The data query of a template, bound to the capability that runs it.

    Instances are what execution functions receive as their second argument.
    """

    __slots__ = ("capability", "parameters", "sql")

    def __init__(self, capability: "ExecutionCapability", sql: str, parameters: "Sequence[Any]") -> None:
        self.capability = capability
        self.sql = sql
        self.parameters: "StatementParameters" = tuple(parameters)

    def fetch_all(self) -> "list[RowT]":
        return self.capability.fetch_all(self.sql, self.parameters)

    def fetch_one(self) -> "Optional[RowT]":
        return self.capability.fetch_one(self.sql, self.parameters)

    def fetch_value(self) -> Any:
        return self.capability.fetch_value(self.sql, self.parameters)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(sql={self.sql!r}, parameters={self.parameters!r})"


class CommonExecutorAttributesMixin:
    """Configuration, template compilation and error reporting common to all executors."""

    __slots__ = ()

    config: ExecutorConfig
    sink: "DiagnosticsSink"

    def _init_common(self, sink: "Optional[DiagnosticsSink]", config: "Optional[ExecutorConfig]") -> None:
        self.config = config or ExecutorConfig()
        self.sink = sink or LoggingSink()

    def compile(self, template: "QueryTemplate", *, paginate: bool = False) -> "CompiledQuery":
        """Build the queries for ``template``; pagination raises the page to at least 1 first."""
        if paginate:
            template = template.normalized()
        return template.build(self.config.query_config)

    def _use_strict_count(self, strict_count: "Optional[bool]") -> bool:
        if strict_count is None:
            return self.config.strict_count
        return strict_count

    def _report(self, error: BaseException, sql: str, parameters: "Sequence[Any]") -> None:
        self.sink.report(error, sql=sql, parameters=parameters)

    def _resolve_count(
        self, query: "CompiledQuery", count: int, count_error: "Optional[BaseException]", strict: bool
    ) -> int:
        """Apply the count failure policy once the count task has finished.

        A failed count has already been reported. It yields zero unless strict
        counting is enabled.
        """
        if count_error is None:
            return count
        if strict:
            msg = f"Count query failed: {count_error}"
            raise CountQueryError(msg, sql=query.count_statement) from count_error
        logger.debug("Count query failed, reporting zero rows for %s", query.count_statement)
        return 0

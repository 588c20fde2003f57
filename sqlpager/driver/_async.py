"""Asynchronous query executor."""

import asyncio
from typing import TYPE_CHECKING, Any, Optional

from sqlpager.coercion import ResultShape, coerce_result, to_schema
from sqlpager.driver._common import CommonExecutorAttributesMixin, coerce_count
from sqlpager.pagination import Pagination, calculate_pagination
from sqlpager.utils.logging import correlation_scope, get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlpager.builder import QueryTemplate
    from sqlpager.config import ExecutorConfig
    from sqlpager.protocols import AsyncExecutionCapability, DiagnosticsSink
    from sqlpager.typing import AsyncExecFunc, ModelDTOT, RowT, StatementParameters

__all__ = ("AsyncPreparedStatement", "AsyncQueryExecutor")

logger = get_logger("driver.async")


class AsyncPreparedStatement:
    """The data query of a template, bound to the asynchronous capability that runs it."""

    __slots__ = ("capability", "parameters", "sql")

    def __init__(self, capability: "AsyncExecutionCapability", sql: str, parameters: "Sequence[Any]") -> None:
        self.capability = capability
        self.sql = sql
        self.parameters: "StatementParameters" = tuple(parameters)

    async def fetch_all(self) -> "list[RowT]":
        return await self.capability.fetch_all(self.sql, self.parameters)

    async def fetch_one(self) -> "Optional[RowT]":
        return await self.capability.fetch_one(self.sql, self.parameters)

    async def fetch_value(self) -> Any:
        return await self.capability.fetch_value(self.sql, self.parameters)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(sql={self.sql!r}, parameters={self.parameters!r})"


class AsyncQueryExecutor(CommonExecutorAttributesMixin):
    """Runs query templates against an asynchronous execution capability.

    Paginated requests run the count query as a separate task while the data
    query runs in the calling coroutine.
    """

    __slots__ = ("capability", "config", "sink")

    def __init__(
        self,
        capability: "AsyncExecutionCapability",
        sink: "Optional[DiagnosticsSink]" = None,
        config: "Optional[ExecutorConfig]" = None,
    ) -> None:
        self.capability = capability
        self._init_common(sink, config)

    async def _run_count(self, sql: str, parameters: "StatementParameters") -> int:
        try:
            return coerce_count(await self.capability.fetch_value(sql, parameters))
        except Exception as e:
            self._report(e, sql, parameters)
            raise

    def prepare(self, template: "QueryTemplate") -> AsyncPreparedStatement:
        """Build the data query of ``template`` and bind it to this executor's capability."""
        query = self.compile(template)
        return AsyncPreparedStatement(self.capability, query.sql, query.parameters)

    async def paginate(
        self,
        template: "QueryTemplate",
        exec_func: "AsyncExecFunc",
        *,
        metadata: Any = None,
        strict_count: "Optional[bool]" = None,
    ) -> Pagination:
        """Run ``exec_func`` for one page of ``template`` and count all matching rows.

        Behaves like :meth:`SyncQueryExecutor.paginate
        <sqlpager.driver.SyncQueryExecutor.paginate>`, with the count query
        running as an :mod:`asyncio` task.

        Raises:
            CountQueryError: The count query failed and strict counting is enabled.
        """
        with correlation_scope():
            query = self.compile(template, paginate=True)
            logger.debug("Paginating page %d with limit %d", query.page, query.limit)
            count_task = asyncio.create_task(self._run_count(query.count_statement, query.parameters))

            records: Any = None
            try:
                records = await exec_func(
                    self.capability, AsyncPreparedStatement(self.capability, query.sql, query.parameters)
                )
            except Exception as e:
                self._report(e, query.sql, query.parameters)
            except BaseException:
                count_task.cancel()
                await asyncio.gather(count_task, return_exceptions=True)
                raise

            count = 0
            count_error: Optional[BaseException] = None
            try:
                count = await count_task
            except Exception as e:
                count_error = e
            total = self._resolve_count(query, count, count_error, self._use_strict_count(strict_count))

            return calculate_pagination(total, query.limit, query.page, records=records, metadata=metadata)

    async def count(self, template: "QueryTemplate") -> int:
        """Return the number of rows matched by ``template``, ignoring limit and page."""
        query = self.compile(template)
        return await self._run_count(query.count_statement, query.parameters)

    async def execute(
        self,
        template: "QueryTemplate",
        exec_func: "AsyncExecFunc",
        *,
        shape: ResultShape = ResultShape.MANY,
        schema_type: "Optional[type[ModelDTOT]]" = None,
    ) -> Any:
        """Run ``exec_func`` against the data query and coerce its result into ``shape``.

        Raises:
            ResultShapeError: The result cannot be coerced into ``shape``.
        """
        prepared = self.prepare(template)
        try:
            result = await exec_func(self.capability, prepared)
        except Exception as e:
            self._report(e, prepared.sql, prepared.parameters)
            raise
        return coerce_result(result, shape, schema_type)

    async def scan(
        self, template: "QueryTemplate", *, schema_type: "Optional[type[ModelDTOT]]" = None
    ) -> "list[Any]":
        prepared = self.prepare(template)
        try:
            rows = await prepared.fetch_all()
        except Exception as e:
            self._report(e, prepared.sql, prepared.parameters)
            raise
        return [to_schema(row, schema_type) for row in rows]

    async def scan_row(self, template: "QueryTemplate", *, schema_type: "Optional[type[ModelDTOT]]" = None) -> Any:
        prepared = self.prepare(template)
        try:
            row = await prepared.fetch_one()
        except Exception as e:
            self._report(e, prepared.sql, prepared.parameters)
            raise
        return to_schema(row, schema_type)

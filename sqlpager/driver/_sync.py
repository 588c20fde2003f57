"""Synchronous query executor."""

import contextvars
from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING, Any, Optional

from sqlpager.coercion import ResultShape, coerce_result, to_schema
from sqlpager.driver._common import CommonExecutorAttributesMixin, PreparedStatement, coerce_count
from sqlpager.pagination import Pagination, calculate_pagination
from sqlpager.utils.logging import correlation_scope, get_logger

if TYPE_CHECKING:
    from types import TracebackType

    from sqlpager.builder import QueryTemplate
    from sqlpager.config import ExecutorConfig
    from sqlpager.protocols import DiagnosticsSink, ExecutionCapability
    from sqlpager.typing import ExecFunc, ModelDTOT, StatementParameters

__all__ = ("SyncQueryExecutor",)

logger = get_logger("driver.sync")


class SyncQueryExecutor(CommonExecutorAttributesMixin):
    """Runs query templates against a synchronous execution capability.

    Paginated requests run the count query on a worker thread while the data
    query runs on the calling thread. The worker threads are started on first
    use and are only released by :meth:`close`, so an executor must either be
    used as a context manager or be closed explicitly.

    Example:
        >>> with SyncQueryExecutor(DBAPIDriver(connection)) as executor:
        ...     page = executor.paginate(template, lambda db, stmt: stmt.fetch_all())
    """

    __slots__ = ("_pool", "capability", "config", "sink")

    def __init__(
        self,
        capability: "ExecutionCapability",
        sink: "Optional[DiagnosticsSink]" = None,
        config: "Optional[ExecutorConfig]" = None,
    ) -> None:
        self.capability = capability
        self._init_common(sink, config)
        self._pool: Optional[ThreadPoolExecutor] = None

    def _get_pool(self) -> ThreadPoolExecutor:
        if self._pool is None:
            self._pool = ThreadPoolExecutor(
                max_workers=self.config.max_workers, thread_name_prefix="sqlpager-count"
            )
        return self._pool

    def close(self) -> None:
        """Shut down the count worker threads, waiting for running counts to finish."""
        if self._pool is not None:
            self._pool.shutdown(wait=True)
            self._pool = None

    def __enter__(self) -> "SyncQueryExecutor":
        return self

    def __exit__(
        self,
        exc_type: "Optional[type[BaseException]]",
        exc_val: "Optional[BaseException]",
        exc_tb: "Optional[TracebackType]",
    ) -> None:
        self.close()

    def _run_count(self, sql: str, parameters: "StatementParameters") -> int:
        try:
            return coerce_count(self.capability.fetch_value(sql, parameters))
        except Exception as e:
            self._report(e, sql, parameters)
            raise

    def _submit_count(self, sql: str, parameters: "StatementParameters") -> "Future[int]":
        context = contextvars.copy_context()
        return self._get_pool().submit(context.run, self._run_count, sql, parameters)

    def prepare(self, template: "QueryTemplate") -> PreparedStatement:
        """Build the data query of ``template`` and bind it to this executor's capability."""
        query = self.compile(template)
        return PreparedStatement(self.capability, query.sql, query.parameters)

    def paginate(
        self,
        template: "QueryTemplate",
        exec_func: "ExecFunc",
        *,
        metadata: Any = None,
        strict_count: "Optional[bool]" = None,
    ) -> Pagination:
        """Run ``exec_func`` for one page of ``template`` and count all matching rows.

        The count query runs concurrently and is always waited for before the
        result is built. Errors raised by ``exec_func`` are reported to the
        diagnostics sink and leave ``records`` as ``None``. A failed count is
        reported and treated as zero, unless strict counting is enabled.

        Args:
            template: The query template.
            exec_func: Called with the capability and the prepared data statement.
            metadata: Caller supplied metadata attached to the result.
            strict_count: Overrides :attr:`ExecutorConfig.strict_count` for this call.

        Raises:
            CountQueryError: The count query failed and strict counting is enabled.

        Returns:
            The pagination result.
        """
        with correlation_scope():
            query = self.compile(template, paginate=True)
            logger.debug("Paginating page %d with limit %d", query.page, query.limit)
            count_future = self._submit_count(query.count_statement, query.parameters)

            records: Any = None
            try:
                prepared = PreparedStatement(self.capability, query.sql, query.parameters)
                records = exec_func(self.capability, prepared)
            except Exception as e:
                self._report(e, query.sql, query.parameters)
            except BaseException:
                count_future.cancel()
                raise

            count = 0
            count_error: Optional[BaseException] = None
            try:
                count = count_future.result()
            except Exception as e:
                count_error = e
            total = self._resolve_count(query, count, count_error, self._use_strict_count(strict_count))

            return calculate_pagination(total, query.limit, query.page, records=records, metadata=metadata)

    def count(self, template: "QueryTemplate") -> int:
        """Return the number of rows matched by ``template``, ignoring limit and page."""
        query = self.compile(template)
        return self._run_count(query.count_statement, query.parameters)

    def execute(
        self,
        template: "QueryTemplate",
        exec_func: "ExecFunc",
        *,
        shape: ResultShape = ResultShape.MANY,
        schema_type: "Optional[type[ModelDTOT]]" = None,
    ) -> Any:
        """Run ``exec_func`` against the data query and coerce its result into ``shape``.

        Errors raised by ``exec_func`` are reported and re-raised.

        Raises:
            ResultShapeError: The result cannot be coerced into ``shape``.
        """
        prepared = self.prepare(template)
        try:
            result = exec_func(self.capability, prepared)
        except Exception as e:
            self._report(e, prepared.sql, prepared.parameters)
            raise
        return coerce_result(result, shape, schema_type)

    def scan(self, template: "QueryTemplate", *, schema_type: "Optional[type[ModelDTOT]]" = None) -> "list[Any]":
        """Return every row of the data query."""
        prepared = self.prepare(template)
        try:
            rows = prepared.fetch_all()
        except Exception as e:
            self._report(e, prepared.sql, prepared.parameters)
            raise
        return [to_schema(row, schema_type) for row in rows]

    def scan_row(self, template: "QueryTemplate", *, schema_type: "Optional[type[ModelDTOT]]" = None) -> Any:
        """Return the first row of the data query, or ``None`` when there is none."""
        prepared = self.prepare(template)
        try:
            row = prepared.fetch_one()
        except Exception as e:
            self._report(e, prepared.sql, prepared.parameters)
            raise
        return to_schema(row, schema_type)

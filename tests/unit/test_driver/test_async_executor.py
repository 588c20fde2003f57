"""Unit tests for the asynchronous query executor."""

import asyncio
from collections.abc import Sequence
from typing import Any, Optional
from unittest.mock import MagicMock

import pytest

from sqlpager.builder import QueryTemplate
from sqlpager.coercion import ResultShape
from sqlpager.driver import AsyncPreparedStatement, AsyncQueryExecutor
from sqlpager.exceptions import CountQueryError, ResultShapeError

pytestmark = pytest.mark.anyio


class FakeAsyncCapability:
    """In-memory asynchronous execution capability."""

    def __init__(
        self,
        rows: "Optional[list[Any]]" = None,
        count: Any = 0,
        count_error: "Optional[Exception]" = None,
        data_error: "Optional[Exception]" = None,
    ) -> None:
        self.rows = rows or []
        self.count = count
        self.count_error = count_error
        self.data_error = data_error
        self.calls: "list[tuple[str, str, tuple[Any, ...]]]" = []

    async def fetch_all(self, sql: str, parameters: "Sequence[Any]") -> "list[Any]":
        self.calls.append(("all", sql, tuple(parameters)))
        if self.data_error is not None:
            raise self.data_error
        return list(self.rows)

    async def fetch_one(self, sql: str, parameters: "Sequence[Any]") -> Any:
        self.calls.append(("one", sql, tuple(parameters)))
        if self.data_error is not None:
            raise self.data_error
        return self.rows[0] if self.rows else None

    async def fetch_value(self, sql: str, parameters: "Sequence[Any]") -> Any:
        self.calls.append(("value", sql, tuple(parameters)))
        if self.count_error is not None:
            raise self.count_error
        return self.count


async def fetch_all(db: Any, statement: AsyncPreparedStatement) -> "list[Any]":
    return await statement.fetch_all()


@pytest.fixture
def template() -> QueryTemplate:
    return QueryTemplate("SELECT * FROM users WHERE team IN (@teams)").where_named("teams", ["red"]).limit(10).page(3)


async def test_paginate(template: QueryTemplate) -> None:
    rows = [{"id": 21}, {"id": 22}]
    capability = FakeAsyncCapability(rows=rows, count=22)

    result = await AsyncQueryExecutor(capability).paginate(template, fetch_all)

    assert result.records == rows
    assert result.total_record == 22
    assert result.total_page == 3
    assert result.has_next is False
    assert result.next_page == 3
    assert result.prev_page == 2
    assert ("value", "SELECT COUNT(1) FROM (SELECT * FROM users WHERE team IN ('red')) AS t", ()) in capability.calls


async def test_count_task_runs_concurrently(template: QueryTemplate) -> None:
    """Test the data coroutine can wait for the count task to start."""
    count_started = asyncio.Event()

    class SignallingCapability(FakeAsyncCapability):
        async def fetch_value(self, sql: str, parameters: "Sequence[Any]") -> Any:
            count_started.set()
            return 5

    async def wait_for_count(db: Any, statement: AsyncPreparedStatement) -> str:
        await asyncio.wait_for(count_started.wait(), timeout=5)
        return "done"

    result = await AsyncQueryExecutor(SignallingCapability()).paginate(template, wait_for_count)

    assert result.records == "done"
    assert result.total_record == 5


async def test_data_error_is_reported(template: QueryTemplate) -> None:
    sink = MagicMock()
    error = RuntimeError("boom")

    result = await AsyncQueryExecutor(FakeAsyncCapability(count=4, data_error=error), sink=sink).paginate(
        template, fetch_all
    )

    assert result.records is None
    assert result.total_record == 4
    sink.report.assert_called_once()
    assert sink.report.call_args.args[0] is error


async def test_count_error_yields_zero(template: QueryTemplate) -> None:
    sink = MagicMock()

    result = await AsyncQueryExecutor(
        FakeAsyncCapability(rows=[{"id": 1}], count_error=RuntimeError("count")), sink=sink
    ).paginate(template, fetch_all)

    assert result.total_record == 0
    assert result.records == [{"id": 1}]
    sink.report.assert_called_once()


async def test_strict_count_raises(template: QueryTemplate) -> None:
    executor = AsyncQueryExecutor(FakeAsyncCapability(count_error=RuntimeError("count")), sink=MagicMock())

    with pytest.raises(CountQueryError):
        await executor.paginate(template, fetch_all, strict_count=True)


async def test_execute_coerces_shape(template: QueryTemplate) -> None:
    executor = AsyncQueryExecutor(FakeAsyncCapability(rows=[{"id": 1}, {"id": 2}]))

    assert await executor.execute(template, fetch_all) == [{"id": 1}, {"id": 2}]
    assert await executor.execute(template, fetch_all, shape=ResultShape.ONE) == {"id": 1}


async def test_execute_empty_into_single_is_fatal(template: QueryTemplate) -> None:
    with pytest.raises(ResultShapeError):
        await AsyncQueryExecutor(FakeAsyncCapability()).execute(template, fetch_all, shape=ResultShape.ONE)


async def test_execute_propagates_errors(template: QueryTemplate) -> None:
    sink = MagicMock()
    executor = AsyncQueryExecutor(FakeAsyncCapability(data_error=RuntimeError("boom")), sink=sink)

    with pytest.raises(RuntimeError, match="boom"):
        await executor.execute(template, fetch_all)
    sink.report.assert_called_once()


async def test_scan_and_scan_row(template: QueryTemplate) -> None:
    executor = AsyncQueryExecutor(FakeAsyncCapability(rows=[{"id": 1}, {"id": 2}]))

    assert await executor.scan(template) == [{"id": 1}, {"id": 2}]
    assert await executor.scan_row(template) == {"id": 1}


async def test_scan_errors_are_raised(template: QueryTemplate) -> None:
    sink = MagicMock()
    executor = AsyncQueryExecutor(FakeAsyncCapability(data_error=RuntimeError("boom")), sink=sink)

    with pytest.raises(RuntimeError):
        await executor.scan(template)
    with pytest.raises(RuntimeError):
        await executor.scan_row(template)
    assert sink.report.call_count == 2


async def test_count(template: QueryTemplate) -> None:
    assert await AsyncQueryExecutor(FakeAsyncCapability(count=9)).count(template) == 9


async def test_cancelled_data_query_cancels_count_task(template: QueryTemplate) -> None:
    """Test the count task does not outlive a cancelled data query."""
    count_tasks: "list[asyncio.Task[Any]]" = []
    never_set = asyncio.Event()

    class PendingCountCapability(FakeAsyncCapability):
        async def fetch_value(self, sql: str, parameters: "Sequence[Any]") -> Any:
            count_tasks.append(asyncio.current_task())
            await never_set.wait()
            return 0

    async def cancelled(db: Any, statement: AsyncPreparedStatement) -> "list[Any]":
        await asyncio.sleep(0)
        raise asyncio.CancelledError

    sink = MagicMock()
    with pytest.raises(asyncio.CancelledError):
        await AsyncQueryExecutor(PendingCountCapability(), sink=sink).paginate(template, cancelled)

    assert len(count_tasks) == 1
    assert count_tasks[0].cancelled()
    sink.report.assert_not_called()

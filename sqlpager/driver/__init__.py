"""Executors that run query templates through an execution capability."""

from sqlpager.driver._async import AsyncPreparedStatement, AsyncQueryExecutor
from sqlpager.driver._common import CommonExecutorAttributesMixin, PreparedStatement
from sqlpager.driver._sync import SyncQueryExecutor

__all__ = (
    "AsyncPreparedStatement",
    "AsyncQueryExecutor",
    "CommonExecutorAttributesMixin",
    "PreparedStatement",
    "SyncQueryExecutor",
)

"""sqlpager: raw SQL query templates with concurrent count and pagination."""

from sqlpager import adapters, driver, exceptions, typing, utils
from sqlpager.__metadata__ import __version__
from sqlpager.adapters import AsyncDBAPIDriver, DBAPIDriver
from sqlpager.assembler import CompiledQuery, build_queries, calculate_offset
from sqlpager.builder import QueryTemplate, TemplateFragment
from sqlpager.coercion import Many, One, QueryResult, ResultShape, as_query_result, coerce_result
from sqlpager.config import ExecutorConfig, QueryConfig, load_config_from_env
from sqlpager.driver import AsyncPreparedStatement, AsyncQueryExecutor, PreparedStatement, SyncQueryExecutor
from sqlpager.exceptions import (
    CountQueryError,
    ImproperConfigurationError,
    QueryExecutionError,
    ResultShapeError,
    SQLPagerError,
)
from sqlpager.pagination import Pagination, calculate_pagination
from sqlpager.protocols import AsyncExecutionCapability, DiagnosticsSink, ExecutionCapability, LoggingSink
from sqlpager.substitution import render_named_value, substitute_named

__all__ = (
    "AsyncDBAPIDriver",
    "AsyncExecutionCapability",
    "AsyncPreparedStatement",
    "AsyncQueryExecutor",
    "CompiledQuery",
    "CountQueryError",
    "DBAPIDriver",
    "DiagnosticsSink",
    "ExecutionCapability",
    "ExecutorConfig",
    "ImproperConfigurationError",
    "LoggingSink",
    "Many",
    "One",
    "Pagination",
    "PreparedStatement",
    "QueryConfig",
    "QueryExecutionError",
    "QueryResult",
    "QueryTemplate",
    "ResultShape",
    "ResultShapeError",
    "SQLPagerError",
    "SyncQueryExecutor",
    "TemplateFragment",
    "__version__",
    "adapters",
    "as_query_result",
    "build_queries",
    "calculate_offset",
    "calculate_pagination",
    "coerce_result",
    "driver",
    "exceptions",
    "load_config_from_env",
    "render_named_value",
    "substitute_named",
    "typing",
    "utils",
)

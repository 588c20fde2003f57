"""Execution capability over a DB-API 2.0 connection.

Works with any driver that follows :pep:`249` and uses a positional
parameter style, such as :mod:`sqlite3` (``?``) or psycopg (``%s``).
"""

import asyncio
import contextlib
import datetime
import threading
from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Optional

from sqlpager._serialization import encode_json
from sqlpager.exceptions import QueryExecutionError
from sqlpager.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlpager.typing import DictRow, RowT

__all__ = ("DEFAULT_TYPE_COERCION_MAP", "AsyncDBAPIDriver", "DBAPICursor", "DBAPIDriver")

logger = get_logger("adapters.dbapi")

DEFAULT_TYPE_COERCION_MAP: "Mapping[type, Callable[[Any], Any]]" = {
    bool: int,
    datetime.datetime: lambda v: v.isoformat(),
    Decimal: str,
    dict: encode_json,
    list: encode_json,
    tuple: lambda v: encode_json(list(v)),
}
"""Parameter conversions suited to drivers with few native types, such as sqlite3."""


class DBAPICursor:
    """Context manager for DB-API cursor management."""

    def __init__(self, connection: Any) -> None:
        self.connection = connection
        self.cursor: Any = None

    def __enter__(self) -> Any:
        self.cursor = self.connection.cursor()
        return self.cursor

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self.cursor is not None:
            with contextlib.suppress(Exception):
                self.cursor.close()


class DBAPIDriver:
    """Synchronous execution capability for a DB-API 2.0 connection.

    Cursor use is serialized with a lock, so one connection can serve the
    count query and the data query of a paginated request at the same time.
    The connection must allow use from several threads (for sqlite3, open it
    with ``check_same_thread=False``).

    Args:
        connection: An open DB-API connection.
        dict_rows: Return rows as dictionaries keyed by column name.
        type_coercion_map: Conversions applied to parameters by exact type.
    """

    __slots__ = ("_lock", "connection", "dict_rows", "type_coercion_map")

    def __init__(
        self,
        connection: Any,
        *,
        dict_rows: bool = True,
        type_coercion_map: "Optional[Mapping[type, Callable[[Any], Any]]]" = None,
    ) -> None:
        self.connection = connection
        self.dict_rows = dict_rows
        self.type_coercion_map = DEFAULT_TYPE_COERCION_MAP if type_coercion_map is None else type_coercion_map
        self._lock = threading.Lock()

    def _prepare_parameters(self, parameters: "Sequence[Any]") -> "list[Any]":
        prepared = []
        for value in parameters:
            converter = self.type_coercion_map.get(type(value))
            prepared.append(converter(value) if converter is not None else value)
        return prepared

    def _convert_row(self, cursor: Any, row: Any) -> "Optional[RowT]":
        if not self.dict_rows or row is None or cursor.description is None:
            return row
        converted: "DictRow" = {column[0]: value for column, value in zip(cursor.description, row)}
        return converted

    @contextlib.contextmanager
    def _execute(self, sql: str, parameters: "Sequence[Any]") -> "Iterator[Any]":
        with self._lock, DBAPICursor(self.connection) as cursor:
            try:
                cursor.execute(sql, self._prepare_parameters(parameters))
                yield cursor
            except QueryExecutionError:
                raise
            except Exception as e:
                msg = f"Database error: {e}"
                raise QueryExecutionError(msg, sql=sql) from e

    def fetch_all(self, sql: str, parameters: "Sequence[Any]") -> "list[RowT]":
        with self._execute(sql, parameters) as cursor:
            return [self._convert_row(cursor, row) for row in cursor.fetchall()]

    def fetch_one(self, sql: str, parameters: "Sequence[Any]") -> "Optional[RowT]":
        with self._execute(sql, parameters) as cursor:
            return self._convert_row(cursor, cursor.fetchone())

    def fetch_value(self, sql: str, parameters: "Sequence[Any]") -> Any:
        with self._execute(sql, parameters) as cursor:
            row = cursor.fetchone()
        if row is None:
            return None
        return row[0]


class AsyncDBAPIDriver:
    """Asynchronous execution capability running a :class:`DBAPIDriver` in worker threads."""

    __slots__ = ("driver",)

    def __init__(self, driver: DBAPIDriver) -> None:
        self.driver = driver

    async def fetch_all(self, sql: str, parameters: "Sequence[Any]") -> "list[RowT]":
        return await asyncio.to_thread(self.driver.fetch_all, sql, parameters)

    async def fetch_one(self, sql: str, parameters: "Sequence[Any]") -> "Optional[RowT]":
        return await asyncio.to_thread(self.driver.fetch_one, sql, parameters)

    async def fetch_value(self, sql: str, parameters: "Sequence[Any]") -> Any:
        return await asyncio.to_thread(self.driver.fetch_value, sql, parameters)

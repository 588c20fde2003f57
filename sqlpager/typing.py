from collections.abc import Awaitable, Mapping
from importlib.util import find_spec
from typing import TYPE_CHECKING, Any, Callable, Union

from typing_extensions import TypeAlias, TypeVar

if TYPE_CHECKING:
    from sqlpager.driver._async import AsyncPreparedStatement
    from sqlpager.driver._common import PreparedStatement
    from sqlpager.protocols import AsyncExecutionCapability, ExecutionCapability

__all__ = (
    "PYDANTIC_INSTALLED",
    "AsyncExecFunc",
    "DictRow",
    "ExecFunc",
    "ModelDTOT",
    "NamedValue",
    "RowT",
    "StatementParameters",
    "T",
)

PYDANTIC_INSTALLED = find_spec("pydantic") is not None
"""Whether pydantic models can be used as schema types."""

T = TypeVar("T")
ModelDTOT = TypeVar("ModelDTOT")
"""Type variable for schema types rows are converted into.

Dataclasses, :class:`msgspec.Struct` subclasses and pydantic models are supported.
"""

DictRow: TypeAlias = "dict[str, Any]"
RowT: TypeAlias = "Union[DictRow, tuple[Any, ...], Mapping[str, Any]]"
"""A row as returned by an execution capability."""

StatementParameters: TypeAlias = "tuple[Any, ...]"
"""Positional values bound to the placeholders that remain in the final query text."""

NamedValue: TypeAlias = "Union[str, list[str], tuple[str, ...], Any]"
"""A value substituted for an ``@name`` placeholder."""

ExecFunc: TypeAlias = "Callable[[ExecutionCapability, PreparedStatement], Any]"
"""Caller supplied operation run against the prepared data query.

It receives the execution capability and the prepared data statement and
returns an opaque result; failures are raised.
"""

AsyncExecFunc: TypeAlias = "Callable[[AsyncExecutionCapability, AsyncPreparedStatement], Awaitable[Any]]"
"""Coroutine counterpart of :data:`ExecFunc`."""

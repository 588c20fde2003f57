"""Reconciles the result of an execution function with the shape the caller asked for.

Execution functions are generic: depending on the query they may return a
single row or a collection of rows. :func:`coerce_result` applies the only
supported coercions and raises :class:`~sqlpager.exceptions.ResultShapeError`
for everything else.
"""

import dataclasses
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any, Generic, Optional, Union

import msgspec

from sqlpager.exceptions import ResultShapeError
from sqlpager.typing import PYDANTIC_INSTALLED, T

__all__ = (
    "Many",
    "One",
    "QueryResult",
    "ResultShape",
    "as_query_result",
    "coerce_result",
    "to_schema",
)


class ResultShape(Enum):
    """Shape of the destination an execution result is coerced into."""

    ONE = "one"
    MANY = "many"


class One(Generic[T]):
    """An execution result holding a single element."""

    __slots__ = ("value",)

    shape = ResultShape.ONE

    def __init__(self, value: T) -> None:
        self.value = value

    def __eq__(self, other: object) -> bool:
        return isinstance(other, One) and other.value == self.value

    def __repr__(self) -> str:
        return f"One({self.value!r})"


class Many(Generic[T]):
    """An execution result holding a sequence of elements."""

    __slots__ = ("values",)

    shape = ResultShape.MANY

    def __init__(self, values: "Sequence[T]") -> None:
        self.values = list(values)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Many) and other.values == self.values

    def __repr__(self) -> str:
        return f"Many({self.values!r})"


QueryResult = Union[One[Any], Many[Any]]


def as_query_result(value: Any) -> "QueryResult":
    """Wrap an opaque execution value in the matching result variant.

    Lists and tuples are collections; any other value, ``None`` included, is a
    single element.
    """
    if isinstance(value, (One, Many)):
        return value
    if isinstance(value, (list, tuple)):
        return Many(value)
    return One(value)


def _row_mapping(data: Any) -> "Optional[Mapping[str, Any]]":
    if isinstance(data, Mapping):
        return data
    keys = getattr(data, "keys", None)
    if callable(keys):
        return {key: data[key] for key in keys()}
    return None


def to_schema(data: Any, schema_type: "Optional[type[T]]" = None) -> Any:
    """Convert one row into ``schema_type``.

    Rows that already are instances of ``schema_type`` are returned as they
    are. Mapping-like rows are converted into dataclasses, msgspec structs or
    pydantic models.

    Raises:
        ResultShapeError: The row cannot be converted.
    """
    if data is None or schema_type is None or isinstance(data, schema_type):
        return data
    mapping = _row_mapping(data)
    if mapping is None:
        msg = f"{type(data).__name__} is not {schema_type.__name__}"
        raise ResultShapeError(msg)
    if dataclasses.is_dataclass(schema_type):
        try:
            return schema_type(**mapping)
        except TypeError as e:
            msg = f"Row cannot be converted to {schema_type.__name__}: {e}"
            raise ResultShapeError(msg) from e
    if isinstance(schema_type, type) and issubclass(schema_type, msgspec.Struct):
        try:
            return msgspec.convert(mapping, type=schema_type, from_attributes=True)
        except msgspec.ValidationError as e:
            msg = f"Row cannot be converted to {schema_type.__name__}: {e}"
            raise ResultShapeError(msg) from e
    if PYDANTIC_INSTALLED:
        from pydantic import BaseModel, ValidationError

        if isinstance(schema_type, type) and issubclass(schema_type, BaseModel):
            try:
                return schema_type.model_validate(dict(mapping), from_attributes=True)
            except ValidationError as e:
                msg = f"Row cannot be converted to {schema_type.__name__}: {e}"
                raise ResultShapeError(msg) from e
    msg = "`schema_type` should be a valid Dataclass, Pydantic model or Msgspec struct"
    raise ResultShapeError(msg)


def coerce_result(result: Any, shape: ResultShape, schema_type: "Optional[type[T]]" = None) -> Any:
    """Coerce an execution result into the requested destination shape.

    * matching shapes are returned unchanged (collections as a list),
    * a non-empty collection requested as a single element yields its first element,
    * anything else is a :class:`~sqlpager.exceptions.ResultShapeError`.

    Args:
        result: Opaque execution result or a :class:`One` / :class:`Many` variant.
        shape: Requested destination shape.
        schema_type: Optional element type the result is converted into.

    Raises:
        ResultShapeError: No coercion rule applies.

    Returns:
        The coerced value.
    """
    variant = as_query_result(result)

    if isinstance(variant, Many):
        if shape is ResultShape.MANY:
            return [to_schema(item, schema_type) for item in variant.values]
        if variant.values:
            return to_schema(variant.values[0], schema_type)
        msg = "Cannot coerce an empty collection into a single element"
        raise ResultShapeError(msg)

    if shape is ResultShape.ONE:
        return to_schema(variant.value, schema_type)
    msg = f"Cannot coerce a single {type(variant.value).__name__} into a collection"
    raise ResultShapeError(msg)

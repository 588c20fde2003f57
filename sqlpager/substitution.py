"""Named placeholder substitution.

``@name`` placeholders are resolved by literal text replacement before any
positional binding happens. This is not parameter binding: values end up in
the SQL text, so untrusted input must never be passed as a named value.
"""

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Optional

from sqlglot import exp

from sqlpager.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlglot.dialects.dialect import DialectType

    from sqlpager.typing import NamedValue

__all__ = ("quote_literal", "render_named_value", "substitute_named")

logger = get_logger("substitution")


def quote_literal(value: str, dialect: "DialectType" = None) -> str:
    """Render ``value`` as a single-quoted SQL string literal."""
    return exp.Literal.string(value).sql(dialect=dialect)


def _is_string_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value)


def render_named_value(value: "NamedValue", dialect: "DialectType" = None) -> str:
    """Render a named value as SQL text.

    Strings become quoted literals, sequences of strings become a
    comma-joined list of quoted literals suitable for ``IN (...)``, and
    everything else uses its default ``str()`` rendering, unquoted.

    Args:
        value: The value to render.
        dialect: sqlglot dialect used for quoting.

    Returns:
        The SQL fragment.
    """
    if isinstance(value, str):
        return quote_literal(value, dialect)
    if _is_string_sequence(value):
        return ",".join(quote_literal(item, dialect) for item in value)
    return str(value)


def substitute_named(
    sql: str,
    named_values: "Mapping[str, NamedValue]",
    *,
    prefix: str = "@",
    dialect: "Optional[DialectType]" = None,
) -> str:
    """Replace every ``<prefix><name>`` occurrence in ``sql`` with its rendered value.

    Names are processed in mapping order. Names that overlap or are prefixes
    of one another are not detected.

    Args:
        sql: Template text.
        named_values: Placeholder name to value mapping.
        prefix: Placeholder marker.
        dialect: sqlglot dialect used for quoting.

    Returns:
        The substituted text.
    """
    for name, value in named_values.items():
        placeholder = f"{prefix}{name}"
        if placeholder not in sql:
            logger.debug("Named value %r has no placeholder in template", name)
            continue
        sql = sql.replace(placeholder, render_named_value(value, dialect))
    return sql

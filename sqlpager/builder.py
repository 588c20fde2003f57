"""Immutable raw SQL query template.

A :class:`QueryTemplate` starts from a base SQL string and is refined through
a chain of calls, each of which returns a new template::

    template = (
        QueryTemplate("SELECT * FROM users")
        .where("status = ?", "active")
        .where("team IN (@teams)")
        .where_named("teams", ["red", "blue"])
        .order_by("created_at DESC", "id")
        .limit(20)
        .page(2)
    )
    query = template.build()
"""

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Optional

from sqlpager.exceptions import ImproperConfigurationError

if TYPE_CHECKING:
    from sqlpager.assembler import CompiledQuery
    from sqlpager.config import QueryConfig
    from sqlpager.typing import NamedValue, StatementParameters

__all__ = ("QueryTemplate", "TemplateFragment")


TemplateFragment = Callable[["QueryTemplate"], "QueryTemplate"]
"""A reusable transformation applied with :meth:`QueryTemplate.apply`."""


def _check_non_negative(name: str, value: int) -> int:
    if value < 0:
        msg = f"{name} must be a non-negative integer, got {value}"
        raise ImproperConfigurationError(msg)
    return value


@dataclass(frozen=True)
class QueryTemplate:
    """Raw SQL text plus everything needed to turn it into a data and a count query.

    The base ``sql`` is not parsed. When it already carries its own ``WHERE``
    clause, construct the template with ``has_predicate=True`` so the first
    :meth:`where` call joins with ``AND`` instead of opening a second clause.
    """

    sql: str
    positional_values: "StatementParameters" = ()
    named_values: "Mapping[str, NamedValue]" = field(default_factory=lambda: MappingProxyType({}))
    has_predicate: bool = False
    ordering: Optional[str] = None
    grouping: Optional[str] = None
    limit_value: int = 0
    page_value: int = 0
    wrap_json: bool = False

    def _extend_predicate(self, joiner: str, predicate: Any, args: "tuple[Any, ...]") -> "QueryTemplate":
        keyword = joiner if self.has_predicate else "WHERE"
        return replace(
            self,
            sql=f"{self.sql} {keyword} {predicate}",
            positional_values=(*self.positional_values, *args),
            has_predicate=True,
        )

    def where(self, predicate: Any, *args: Any) -> "QueryTemplate":
        """Add a filter predicate.

        The first predicate introduces a ``WHERE`` clause, later ones are
        joined with ``AND``. ``args`` are appended to the positional values.

        Args:
            predicate: SQL condition text.
            *args: Positional values for placeholders in ``predicate``.

        Returns:
            A new template.
        """
        return self._extend_predicate("AND", predicate, args)

    def or_where(self, predicate: Any, *args: Any) -> "QueryTemplate":
        """Add a filter predicate joined with ``OR`` to the existing filter clause."""
        return self._extend_predicate("OR", predicate, args)

    def where_named(self, name: str, value: "NamedValue") -> "QueryTemplate":
        """Set the value substituted for the ``@name`` placeholder, replacing any earlier value."""
        named = dict(self.named_values)
        named[name] = value
        return replace(self, named_values=MappingProxyType(named))

    def order_by(self, *columns: str) -> "QueryTemplate":
        """Set the ``ORDER BY`` clause. Calling with no columns keeps the current ordering."""
        if not columns:
            return self
        return replace(self, ordering=",".join(columns))

    def group_by(self, column: str) -> "QueryTemplate":
        return replace(self, grouping=column)

    def limit(self, limit: int) -> "QueryTemplate":
        """Set the page size. ``0`` disables ``LIMIT``/``OFFSET``."""
        return replace(self, limit_value=_check_non_negative("limit", limit))

    def page(self, page: int) -> "QueryTemplate":
        """Set the 1-based page number. ``0`` leaves ``OFFSET`` out of the data query."""
        return replace(self, page_value=_check_non_negative("page", page))

    def with_wrap_json(self, wrap_json: bool = True) -> "QueryTemplate":
        """Wrap the data query so every row is returned as a single JSON value."""
        return replace(self, wrap_json=wrap_json)

    def apply(self, *fragments: "TemplateFragment") -> "QueryTemplate":
        """Apply reusable template fragments in order.

        Example:
            >>> def only_active(template: QueryTemplate) -> QueryTemplate:
            ...     return template.where("deleted_at IS NULL")
            >>> QueryTemplate("SELECT * FROM users").apply(only_active).sql
            'SELECT * FROM users WHERE deleted_at IS NULL'
        """
        template = self
        for fragment in fragments:
            template = fragment(template)
        return template

    def normalized(self) -> "QueryTemplate":
        """Return the template with ``page`` raised to at least 1, as pagination requires."""
        if self.page_value >= 1:
            return self
        return replace(self, page_value=1)

    def build(self, config: "Optional[QueryConfig]" = None) -> "CompiledQuery":
        """Assemble the data and count queries. See :func:`sqlpager.assembler.build_queries`."""
        from sqlpager.assembler import build_queries

        return build_queries(self, config)

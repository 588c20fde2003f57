"""Turns a :class:`~sqlpager.builder.QueryTemplate` into executable SQL text."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from sqlpager.config import QueryConfig
from sqlpager.substitution import substitute_named
from sqlpager.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlpager.builder import QueryTemplate
    from sqlpager.typing import StatementParameters

__all__ = ("CompiledQuery", "build_queries", "calculate_offset")

logger = get_logger("assembler")

_DEFAULT_QUERY_CONFIG = QueryConfig()


def calculate_offset(page: int, limit: int) -> int:
    """Row offset of ``page`` for pages of ``limit`` rows. Page 1 (and below) is offset 0."""
    if page <= 1:
        return 0
    return (page - 1) * limit


@dataclass(frozen=True)
class CompiledQuery:
    """The SQL produced from one template.

    ``sql`` is the data query and ``count_sql`` the query whose rows are
    counted. Both share ``parameters``.
    """

    sql: str
    count_sql: str
    parameters: "StatementParameters"
    limit: int
    page: int
    offset: int
    count_template: str = _DEFAULT_QUERY_CONFIG.count_template

    @property
    def count_statement(self) -> str:
        """The count query wrapped so it yields a single integer."""
        return self.count_template.format(sql=self.count_sql)


def build_queries(template: "QueryTemplate", config: "Optional[QueryConfig]" = None) -> CompiledQuery:
    """Assemble the data query and the count query for ``template``.

    Named placeholders are substituted first. The grouping clause is part of
    both queries; ordering, ``LIMIT`` (only when the limit is positive) and
    ``OFFSET`` (only when both a limit and a page are set) are appended to the
    data query only.

    Args:
        template: The template to assemble.
        config: Rendering configuration.

    Returns:
        The compiled queries.
    """
    config = config or _DEFAULT_QUERY_CONFIG
    sql = substitute_named(
        template.sql, template.named_values, prefix=config.placeholder_prefix, dialect=config.dialect
    )

    if template.grouping:
        sql = f"{sql} GROUP BY {template.grouping}"
    count_sql = sql

    if template.ordering:
        sql = f"{sql} ORDER BY {template.ordering}"

    offset = calculate_offset(template.page_value, template.limit_value)
    if template.limit_value > 0:
        sql = f"{sql} LIMIT {template.limit_value}"
        if template.page_value > 0:
            sql = f"{sql} OFFSET {offset}"

    if template.wrap_json:
        sql = config.json_wrap_template.format(sql=sql)

    logger.debug("Assembled query: %s", sql)
    return CompiledQuery(
        sql=sql,
        count_sql=count_sql,
        parameters=tuple(template.positional_values),
        limit=template.limit_value,
        page=template.page_value,
        offset=offset,
        count_template=config.count_template,
    )

"""Configuration for query assembly and execution.

Configuration objects are frozen dataclasses. Use :func:`dataclasses.replace`
(re-exported here as :func:`replace`) to derive a modified copy.
"""

import os
from dataclasses import dataclass, field, replace
from typing import Optional

from sqlpager.exceptions import ImproperConfigurationError
from sqlpager.utils.logging import get_logger

__all__ = (
    "DEFAULT_COUNT_TEMPLATE",
    "DEFAULT_JSON_WRAP_TEMPLATE",
    "ExecutorConfig",
    "QueryConfig",
    "load_config_from_env",
    "replace",
)

logger = get_logger("config")

DEFAULT_COUNT_TEMPLATE = "SELECT COUNT(1) FROM ({sql}) AS t"
DEFAULT_JSON_WRAP_TEMPLATE = "WITH alias AS ({sql}) SELECT to_jsonb(row_to_json(alias)) AS alias FROM alias"

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"0", "false", "no", "off", ""})


@dataclass(frozen=True)
class QueryConfig:
    """Controls how a query template is rendered into SQL text.

    Both templates are formatted with a single ``{sql}`` field.
    """

    placeholder_prefix: str = "@"
    count_template: str = DEFAULT_COUNT_TEMPLATE
    json_wrap_template: str = DEFAULT_JSON_WRAP_TEMPLATE
    dialect: Optional[str] = None
    """sqlglot dialect used to quote string literals; ``None`` uses sqlglot's default."""

    def __post_init__(self) -> None:
        if not self.placeholder_prefix:
            msg = "placeholder_prefix must not be empty"
            raise ImproperConfigurationError(msg)
        for name in ("count_template", "json_wrap_template"):
            if "{sql}" not in getattr(self, name):
                msg = f"{name} must contain a '{{sql}}' field"
                raise ImproperConfigurationError(msg)


@dataclass(frozen=True)
class ExecutorConfig:
    """Controls how executors run the count and data queries."""

    strict_count: bool = False
    """Raise :class:`~sqlpager.exceptions.CountQueryError` instead of reporting a zero count."""
    max_workers: int = 4
    """Thread pool size used by the synchronous executor for count tasks."""
    query_config: QueryConfig = field(default_factory=QueryConfig)

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            msg = f"max_workers must be at least 1, got {self.max_workers}"
            raise ImproperConfigurationError(msg)


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    msg = f"Environment variable {name} must be a boolean, got {raw!r}"
    raise ImproperConfigurationError(msg)


def load_config_from_env(prefix: str = "SQLPAGER_", base: Optional[ExecutorConfig] = None) -> ExecutorConfig:
    """Build an :class:`ExecutorConfig` from environment variables.

    Recognized variables (with the default prefix): ``SQLPAGER_STRICT_COUNT``,
    ``SQLPAGER_MAX_WORKERS`` and ``SQLPAGER_DIALECT``. Unset variables keep the
    value from ``base``.

    Args:
        prefix: Environment variable prefix.
        base: Configuration to start from. Defaults to :class:`ExecutorConfig`.

    Raises:
        ImproperConfigurationError: A variable holds a value of the wrong type.

    Returns:
        The resulting configuration.
    """
    config = base or ExecutorConfig()

    strict_count = os.environ.get(f"{prefix}STRICT_COUNT")
    if strict_count is not None:
        config = replace(config, strict_count=_parse_bool(f"{prefix}STRICT_COUNT", strict_count))

    max_workers = os.environ.get(f"{prefix}MAX_WORKERS")
    if max_workers is not None:
        try:
            workers = int(max_workers)
        except ValueError as e:
            msg = f"Environment variable {prefix}MAX_WORKERS must be an integer, got {max_workers!r}"
            raise ImproperConfigurationError(msg) from e
        config = replace(config, max_workers=workers)

    dialect = os.environ.get(f"{prefix}DIALECT")
    if dialect:
        config = replace(config, query_config=replace(config.query_config, dialect=dialect))

    logger.debug("Loaded executor configuration from environment: %r", config)
    return config

"""Unit tests for configuration objects and environment loading."""

import pytest

from sqlpager.config import (
    DEFAULT_COUNT_TEMPLATE,
    ExecutorConfig,
    QueryConfig,
    load_config_from_env,
    replace,
)
from sqlpager.exceptions import ImproperConfigurationError


def test_defaults() -> None:
    config = ExecutorConfig()

    assert config.strict_count is False
    assert config.max_workers == 4
    assert config.query_config.placeholder_prefix == "@"
    assert config.query_config.count_template == DEFAULT_COUNT_TEMPLATE
    assert config.query_config.dialect is None


def test_configs_are_frozen() -> None:
    with pytest.raises(AttributeError):
        ExecutorConfig().strict_count = True  # type: ignore[misc]


def test_replace_derives_copy() -> None:
    config = ExecutorConfig()
    strict = replace(config, strict_count=True)

    assert strict.strict_count is True
    assert config.strict_count is False


@pytest.mark.parametrize("field_name", ["count_template", "json_wrap_template"])
def test_templates_require_sql_field(field_name: str) -> None:
    with pytest.raises(ImproperConfigurationError):
        QueryConfig(**{field_name: "SELECT 1"})


def test_empty_placeholder_prefix_is_rejected() -> None:
    with pytest.raises(ImproperConfigurationError):
        QueryConfig(placeholder_prefix="")


def test_max_workers_must_be_positive() -> None:
    with pytest.raises(ImproperConfigurationError):
        ExecutorConfig(max_workers=0)


def test_load_config_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SQLPAGER_STRICT_COUNT", "true")
    monkeypatch.setenv("SQLPAGER_MAX_WORKERS", "2")
    monkeypatch.setenv("SQLPAGER_DIALECT", "postgres")

    config = load_config_from_env()

    assert config.strict_count is True
    assert config.max_workers == 2
    assert config.query_config.dialect == "postgres"


def test_load_config_from_env_keeps_base_values(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("SQLPAGER_STRICT_COUNT", "SQLPAGER_MAX_WORKERS", "SQLPAGER_DIALECT"):
        monkeypatch.delenv(name, raising=False)
    base = ExecutorConfig(max_workers=8)

    assert load_config_from_env(base=base) == base


@pytest.mark.parametrize(
    ("name", "value"),
    [("SQLPAGER_STRICT_COUNT", "maybe"), ("SQLPAGER_MAX_WORKERS", "many")],
)
def test_load_config_from_env_rejects_bad_values(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ImproperConfigurationError):
        load_config_from_env()

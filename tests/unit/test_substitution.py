"""Unit tests for named placeholder substitution."""

from decimal import Decimal

import pytest

from sqlpager.substitution import quote_literal, render_named_value, substitute_named


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("red", "'red'"),
        (["a", "b"], "'a','b'"),
        (("x",), "'x'"),
        (42, "42"),
        (Decimal("1.50"), "1.50"),
        (True, "True"),
        (None, "None"),
        ([1, 2], "[1, 2]"),
    ],
    ids=["string", "string-list", "string-tuple", "int", "decimal", "bool", "none", "int-list"],
)
def test_render_named_value(value: object, expected: str) -> None:
    assert render_named_value(value) == expected


def test_embedded_quotes_are_escaped() -> None:
    assert quote_literal("O'Brien") == "'O''Brien'"


def test_string_is_quoted_exactly_once() -> None:
    sql = substitute_named("SELECT * FROM users WHERE name = @name", {"name": "bob"})
    assert sql == "SELECT * FROM users WHERE name = 'bob'"
    assert "''bob''" not in sql


def test_string_sequence_renders_in_list() -> None:
    sql = substitute_named("SELECT * FROM users WHERE id IN (@ids)", {"ids": ["a", "b"]})
    assert sql == "SELECT * FROM users WHERE id IN ('a','b')"


def test_every_occurrence_is_replaced() -> None:
    sql = substitute_named("SELECT @n AS a, @n AS b", {"n": 7})
    assert sql == "SELECT 7 AS a, 7 AS b"


def test_unrelated_placeholders_are_untouched() -> None:
    """Test that substituting one name leaves other placeholders and positional markers alone."""
    sql = substitute_named(
        "SELECT * FROM t WHERE a = @alpha AND b = @beta AND c = ?",
        {"alpha": "x"},
    )
    assert sql == "SELECT * FROM t WHERE a = 'x' AND b = @beta AND c = ?"


def test_custom_prefix() -> None:
    sql = substitute_named("SELECT * FROM t WHERE a = :alpha", {"alpha": 1}, prefix=":")
    assert sql == "SELECT * FROM t WHERE a = 1"


def test_unused_named_value_is_ignored() -> None:
    assert substitute_named("SELECT 1", {"missing": "x"}) == "SELECT 1"

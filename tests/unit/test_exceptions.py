from sqlpager.exceptions import (
    CountQueryError,
    ImproperConfigurationError,
    QueryExecutionError,
    ResultShapeError,
    SerializationError,
    SQLPagerError,
)


def test_exception_hierarchy():
    """Test exception classes inherit correctly."""
    assert issubclass(CountQueryError, QueryExecutionError)
    assert issubclass(QueryExecutionError, SQLPagerError)
    assert issubclass(ResultShapeError, SQLPagerError)
    assert issubclass(ImproperConfigurationError, SQLPagerError)
    assert issubclass(SerializationError, SQLPagerError)


def test_exception_detail():
    exc = ImproperConfigurationError("limit must be a non-negative integer")
    assert exc.detail == "limit must be a non-negative integer"
    assert str(exc) == "limit must be a non-negative integer"
    assert repr(exc) == "ImproperConfigurationError - limit must be a non-negative integer"


def test_query_execution_error_includes_sql():
    exc = QueryExecutionError("Database error: no such table", sql="SELECT * FROM missing")
    assert exc.sql == "SELECT * FROM missing"
    assert "SQL: SELECT * FROM missing" in str(exc)


def test_result_shape_error_default_message():
    assert str(ResultShapeError()) == "Execution result does not match the requested result shape."


def test_exception_chaining():
    """Test exceptions support chaining with 'from'."""
    original = ValueError("boom")
    try:
        raise CountQueryError("Count query failed: boom") from original
    except CountQueryError as e:
        assert e.__cause__ is original

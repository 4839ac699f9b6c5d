"""Unit tests for filter expression safety."""

from __future__ import annotations

import pytest

from core.errors import UnsafeIdentifierError
from store.table_filters import (
    ensure_safe_identifier,
    escape_filter_value,
    parse_partition_filter,
    partition_filter,
)


def test_ensure_safe_identifier_accepts_allow_listed_values() -> None:
    """Letters, digits, hyphen, and underscore should pass."""
    assert ensure_safe_identifier("user_01-A", "userId") == "user_01-A"


@pytest.mark.parametrize(
    ("value", "message"),
    [
        ("", "must be a non-empty string"),
        (None, "must be a non-empty string"),
        ("x' or PartitionKey ne '", "contains unsafe characters"),
        ("user id", "contains unsafe characters"),
    ],
)
def test_ensure_safe_identifier_rejects_unsafe_values(value: object, message: str) -> None:
    """Empty, non-string, or injected values should be rejected."""
    with pytest.raises(UnsafeIdentifierError, match=f"Invalid userId: {message}"):
        ensure_safe_identifier(value, "userId")


def test_escape_filter_value_doubles_quotes() -> None:
    """Single quotes inside literals should be doubled."""
    assert escape_filter_value("o'brien") == "o''brien"


def test_partition_filter_round_trips_through_parser() -> None:
    """Parsing a built filter should recover the partition key."""
    expression = partition_filter("session-1")

    assert expression == "PartitionKey eq 'session-1'"
    assert parse_partition_filter(expression) == "session-1"
    assert parse_partition_filter("RowKey eq 'x'") is None

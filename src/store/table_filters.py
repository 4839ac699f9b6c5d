"""Filter expression builders for table queries.

Values are allow-listed before they reach a filter expression and
quotes inside literals are doubled to keep expressions well formed.
"""

from __future__ import annotations

import re

from core.errors import UnsafeIdentifierError

_SAFE_IDENTIFIER = re.compile(r"^[A-Za-z0-9_-]+$")
_PARTITION_FILTER = re.compile(r"^PartitionKey eq '((?:[^']|'')*)'$")


def ensure_safe_identifier(value: object, field_name: str = "value") -> str:
    """Check that a value may be used inside a filter expression.

    Args:
        value: Candidate identifier.
        field_name: Field label used in error messages.

    Returns:
        The validated identifier.

    Raises:
        UnsafeIdentifierError: If the value is empty, not a string,
            or contains characters outside letters, digits, hyphen,
            and underscore.
    """
    if not isinstance(value, str) or not value:
        raise UnsafeIdentifierError(f"Invalid {field_name}: must be a non-empty string")
    if not _SAFE_IDENTIFIER.match(value):
        raise UnsafeIdentifierError(f"Invalid {field_name}: contains unsafe characters")
    return value


def escape_filter_value(value: object) -> str:
    """Escape a literal for use inside single quotes."""
    return str(value).replace("'", "''")


def partition_filter(partition_key: str) -> str:
    """Build an exact-partition filter expression.

    Args:
        partition_key: Allow-listed partition key.

    Returns:
        Filter expression selecting the whole partition.
    """
    return f"PartitionKey eq '{escape_filter_value(partition_key)}'"


def parse_partition_filter(query_filter: str) -> str | None:
    """Recover the partition key from an exact-partition filter.

    Args:
        query_filter: Expression produced by ``partition_filter``.

    Returns:
        Unescaped partition key, or None for other expressions.
    """
    match = _PARTITION_FILTER.match(query_filter.strip())
    if match is None:
        return None
    return match.group(1).replace("''", "'")

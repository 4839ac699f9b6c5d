"""Table key sanitization.

Partition and row keys may not contain slash, backslash, hash, or
question mark characters, so each is replaced with an underscore.
"""

from __future__ import annotations

import re

_UNSAFE_KEY_CHARACTERS = re.compile(r"[\\/#?]")


def to_table_key(value: object) -> str:
    """Convert any identifier into a storage-safe table key.

    Args:
        value: Identifier value; non-strings are stringified.

    Returns:
        Key string with unsafe characters replaced.
    """
    return _UNSAFE_KEY_CHARACTERS.sub("_", str(value))

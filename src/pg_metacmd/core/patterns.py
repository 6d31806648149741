"""Translation of psql glob patterns into SQL LIKE conditions.

psql patterns use ``*`` for any sequence and ``?`` for any single character.
The translated fragments are inlined into query text, so every literal is
escaped for LIKE and has its single quotes doubled.
"""

import re
from typing import Optional

from pg_metacmd.errors import InvalidPattern

_PATTERN = re.compile(r"[A-Za-z0-9_$.*?\-]*")

# Applied in order; the backslash must go first
_LIKE_ESCAPES = (
    ("\\", "\\\\"),
    ("%", "\\%"),
    ("_", "\\_"),
    ("'", "''"),
)


def validate_pattern(pattern: str) -> str:
    """
    Reject patterns containing anything besides name characters and wildcards.

    Args:
        pattern: User supplied pattern, may be empty

    Returns:
        The pattern, unchanged

    Raises:
        InvalidPattern: If the pattern contains disallowed characters
    """
    if _PATTERN.fullmatch(pattern) is None:
        raise InvalidPattern(pattern)
    return pattern


def pattern_to_like(pattern: str) -> str:
    """Convert one pattern part to an escaped LIKE literal body."""
    result = pattern
    for literal, escaped in _LIKE_ESCAPES:
        result = result.replace(literal, escaped)
    return result.replace("*", "%").replace("?", "_")


def split_schema_table(pattern: str) -> tuple[str, str]:
    """Split on the first dot only: ``my.schema.table`` -> ``("my", "schema.table")``."""
    schema, dot, name = pattern.partition(".")
    if not dot:
        return "", schema
    return schema, name


def build_condition(
    pattern: str, schema_column: Optional[str], name_column: str
) -> str:
    """
    Build the ``AND ... LIKE ...`` fragment for a pattern.

    Args:
        pattern: psql pattern, optionally ``schema.name``
        schema_column: Column holding the schema name, or None when the
            catalog has no namespace (the whole pattern then matches the name)
        name_column: Column holding the object name

    Returns:
        Fragment starting with `` AND``, or an empty string for an empty pattern
    """
    if not pattern:
        return ""

    if schema_column is None:
        schema, name = "", pattern
    else:
        schema, name = split_schema_table(pattern)

    conditions = []
    if schema:
        conditions.append(_like(schema_column, schema))
    if name:
        conditions.append(_like(name_column, name))

    if not conditions:
        return ""
    return " AND " + " AND ".join(conditions)


def _like(column: Optional[str], part: str) -> str:
    return f"{column} LIKE '{pattern_to_like(part)}' ESCAPE '\\'"

"""Identifier validation for names spliced into catalog queries."""

import re

from pg_metacmd.errors import InvalidIdentifier

# Bare or schema-qualified name: letter/underscore, then alphanumerics, _ or $
_IDENTIFIER = re.compile(
    r"[A-Za-z_][A-Za-z0-9_$]*(\.[A-Za-z_][A-Za-z0-9_$]*)?"
)


def sanitize_identifier(value: str) -> str:
    """
    Validate a table or schema-qualified table name.

    Every identifier that ends up in SQL text rather than in a bound
    parameter must pass through here first.

    Args:
        value: Name such as ``users`` or ``public.users``

    Returns:
        The value, unchanged

    Raises:
        InvalidIdentifier: If the value does not match the identifier grammar
    """
    if not isinstance(value, str) or _IDENTIFIER.fullmatch(value) is None:
        raise InvalidIdentifier(str(value))
    return value


"""Display formatting for driver-native row values.

orjson handles most database types for us:
- datetime, date, time -> ISO format
- UUID -> string

The rest is converted here the way psql would print it: bytea as ``\\x``
hex, arrays in ``{a,b}`` form, JSON documents compacted, numerics as
exact strings.
"""

import datetime
import decimal
import ipaddress
import uuid
from typing import Any

import orjson


def _default_handler(obj: Any) -> Any:
    """
    Custom default handler for types orjson doesn't handle natively.

    Args:
        obj: Object to serialize

    Returns:
        JSON-serializable representation

    Raises:
        TypeError: If object cannot be serialized
    """
    if isinstance(obj, decimal.Decimal):
        return str(obj)

    if isinstance(obj, datetime.timedelta):
        return str(obj)

    if isinstance(obj, (bytes, bytearray, memoryview)):
        return format_bytes(bytes(obj))

    if isinstance(obj, (set, frozenset)):
        return list(obj)

    if isinstance(
        obj,
        (
            ipaddress.IPv4Address,
            ipaddress.IPv6Address,
            ipaddress.IPv4Network,
            ipaddress.IPv6Network,
            ipaddress.IPv4Interface,
            ipaddress.IPv6Interface,
        ),
    ):
        return str(obj)

    # PostgreSQL range types (have lower, upper, bounds attributes)
    if (
        hasattr(obj, "lower")
        and hasattr(obj, "upper")
        and hasattr(obj, "bounds")
        and not isinstance(obj, str)
        and not callable(obj.lower)
    ):
        return {
            "lower": obj.lower,
            "upper": obj.upper,
            "bounds": obj.bounds,
        }

    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")


def format_bytes(data: bytes) -> str:
    """Render bytea in PostgreSQL hex output format."""
    return "\\x" + data.hex()


def format_array(values: Any) -> str:
    """Render a sequence in PostgreSQL array literal form, e.g. ``{a,b}``."""
    elements = []
    for value in values:
        if isinstance(value, (list, tuple)):
            elements.append(format_array(value))
        elif value is None:
            elements.append("NULL")
        else:
            elements.append(str(format_value(value)))
    return "{" + ",".join(elements) + "}"


def format_value(value: Any) -> Any:
    """
    Convert a driver value into a display value.

    Scalars that print well (str, bool, int, float) pass through unchanged.

    Args:
        value: Value returned by the database driver

    Returns:
        Display value
    """
    if value is None or isinstance(value, (str, bool, int, float)):
        return value

    if isinstance(value, uuid.UUID):
        return str(value)

    if isinstance(value, decimal.Decimal):
        return str(value)

    if isinstance(value, (bytes, bytearray, memoryview)):
        return format_bytes(bytes(value))

    if isinstance(value, (list, tuple)):
        return format_array(value)

    if isinstance(value, dict):
        # JSON/JSONB documents decoded by the driver
        try:
            return orjson.dumps(value, default=_default_handler).decode("utf-8")
        except TypeError:
            return str(value)

    try:
        return orjson.loads(orjson.dumps(value, default=_default_handler))
    except TypeError:
        return str(value)


def format_row(row: dict[str, Any]) -> dict[str, Any]:
    """
    Convert all values in a row dict to display values.

    Args:
        row: Dictionary representing a database row

    Returns:
        Dictionary with display values
    """
    return {key: format_value(value) for key, value in row.items()}


def format_rows(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """
    Convert all rows to display values.

    Args:
        rows: List of row dictionaries

    Returns:
        List of dictionaries with display values
    """
    return [format_row(row) for row in rows]


def yes_no(value: Any) -> Any:
    """Render booleans the way psql role listings do."""
    if isinstance(value, bool):
        return "yes" if value else "no"
    return value

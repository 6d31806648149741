"""Utility modules for meta-command results."""

from pg_metacmd.utils.formatting import (
    format_array,
    format_bytes,
    format_row,
    format_rows,
    format_value,
    yes_no,
)

__all__ = [
    "format_array",
    "format_bytes",
    "format_value",
    "format_row",
    "format_rows",
    "yes_no",
]

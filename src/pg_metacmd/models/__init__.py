"""Pydantic models for commands, results and configuration."""

from .command import CLIENT_SIDE_COMMANDS, Command, CommandType
from .config import DatabaseConfig
from .result import (
    DataRow,
    DescribeRow,
    IndentedRow,
    Result,
    SectionLabel,
    flatten_describe_rows,
)

__all__ = [
    "CLIENT_SIDE_COMMANDS",
    "Command",
    "CommandType",
    "DatabaseConfig",
    "DataRow",
    "DescribeRow",
    "IndentedRow",
    "Result",
    "SectionLabel",
    "flatten_describe_rows",
]

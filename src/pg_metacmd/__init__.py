"""Interpreter for psql backslash meta-commands."""

from pg_metacmd.core import DatabaseConnection, MetaCommandExecutor, parse, run
from pg_metacmd.errors import MetaCommandError
from pg_metacmd.models import Command, CommandType, DatabaseConfig, Result

__version__ = "0.1.0"

__all__ = [
    "Command",
    "CommandType",
    "DatabaseConfig",
    "DatabaseConnection",
    "MetaCommandError",
    "MetaCommandExecutor",
    "Result",
    "parse",
    "run",
]

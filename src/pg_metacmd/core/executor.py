"""Execution of parsed meta-commands against the catalog."""

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection

from pg_metacmd.core.catalog import (
    DESCRIBE_SECTIONS,
    TABLE_COLUMNS,
    TABLE_COLUMNS_SQL,
    CatalogQuery,
    DescribeSection,
    get_catalog_query,
)
from pg_metacmd.core.connection import DatabaseConnection
from pg_metacmd.core.parser import COMMAND_DESCRIPTIONS, parse
from pg_metacmd.core.patterns import build_condition, split_schema_table, validate_pattern
from pg_metacmd.core.sanitizer import sanitize_identifier
from pg_metacmd.errors import (
    CommandExecutionError,
    CommandNotImplemented,
    MetaCommandError,
)
from pg_metacmd.models.command import Command, CommandType
from pg_metacmd.models.result import (
    DataRow,
    DescribeRow,
    IndentedRow,
    Result,
    SectionLabel,
    flatten_describe_rows,
)
from pg_metacmd.utils import format_rows, yes_no

logger = logging.getLogger(__name__)


class MetaCommandExecutor:
    """Runs meta-commands and shapes their output into a Result.

    Holds no state besides the connection pool it checks connections out
    of, so one instance can serve concurrent calls.
    """

    def __init__(self, connection: DatabaseConnection):
        """
        Initialize the executor.

        Args:
            connection: Database connection manager
        """
        self.connection = connection

    async def execute(self, command: Command) -> Result:
        """
        Execute a parsed meta-command.

        Args:
            command: Command returned by ``parse``

        Returns:
            Result with columns, rows, caption and execution time

        Raises:
            CommandValidationError: If an identifier or pattern is rejected
            CommandExecutionError: If a catalog query fails
            CommandNotImplemented: If the command has no catalog query
        """
        start_time = time.time()
        logger.debug(f"Executing {command.type} command: {command.raw}")

        if command.type == CommandType.HELP:
            result = self.help()
        elif command.type == CommandType.DESCRIBE_TABLE:
            result = await self.describe_table(command.arguments[0])
        else:
            # a search pattern always runs against the plain variant
            extended = command.is_extended and not command.pattern
            query = get_catalog_query(command.type, extended)
            if query is None:
                raise CommandNotImplemented(command.raw)
            result = await self.list_objects(query, command.pattern)

        result.execution_time_ms = (time.time() - start_time) * 1000
        return result

    async def list_objects(self, query: CatalogQuery, pattern: str = "") -> Result:
        """
        Run a listing query, narrowed by a psql pattern when one is given.

        Args:
            query: Catalog query chosen for the command
            pattern: Optional ``schema.name`` glob pattern

        Returns:
            Listing result captioned with the query's caption
        """
        condition = ""
        qualified = False
        if pattern and query.searchable:
            validate_pattern(pattern)
            condition = build_condition(
                pattern, query.schema_column, query.name_column or ""
            )
            if query.schema_column is not None:
                qualified = bool(split_schema_table(pattern)[0])
        elif pattern:
            logger.debug(f"Ignoring pattern {pattern!r} for {query.operation}")

        sql = query.render(condition, qualified=qualified)

        async with self._connect(query.operation) as conn:
            columns, rows = await self._fetch(conn, sql, None, query.operation)

        for column in query.yes_no_columns:
            for row in rows:
                if column in row:
                    row[column] = yes_no(row[column])

        return Result(columns=columns, rows=rows, message=query.caption)

    async def describe_table(self, table_name: str) -> Result:
        """
        Describe one relation: its columns followed by index and
        constraint sections.

        Sections are best effort. A failing section is logged and left
        out, while a failing column query fails the whole call.

        Args:
            table_name: Bare or schema-qualified relation name

        Returns:
            Result with column rows, then a label row and indented entries
            for every non-empty section

        Raises:
            InvalidIdentifier: If the name is not a plain identifier
            CommandExecutionError: If the column query fails
        """
        safe_name = sanitize_identifier(table_name)
        params = {"table_name": safe_name}

        async with self._connect("describe table") as conn:
            columns, column_rows = await self._fetch(
                conn, TABLE_COLUMNS_SQL, params, "describe table"
            )
            if not columns:
                columns = list(TABLE_COLUMNS)

            rows: list[DescribeRow] = [DataRow(values=row) for row in column_rows]
            for section in DESCRIBE_SECTIONS:
                rows.extend(await self._describe_section(conn, section, params))

        return Result(
            columns=columns,
            rows=flatten_describe_rows(columns, rows),
            message=f'Table "{table_name}"',
        )

    async def _describe_section(
        self,
        conn: AsyncConnection,
        section: DescribeSection,
        params: dict[str, Any],
    ) -> list[DescribeRow]:
        try:
            # savepoint keeps a failed section from aborting the transaction
            async with conn.begin_nested():
                _, entries = await self._fetch(
                    conn, section.sql, params, section.operation
                )
        except Exception as e:
            logger.warning(f"Skipping {section.label!r} section: {e}")
            return []

        if not entries:
            return []

        rows: list[DescribeRow] = [SectionLabel(label=section.label)]
        for entry in entries:
            rows.append(
                IndentedRow(
                    name=section.name_prefix + str(entry.get("name") or ""),
                    definition=str(entry.get("definition") or ""),
                )
            )
        return rows

    def help(self) -> Result:
        """List the supported meta-commands."""
        return Result(
            columns=["Command", "Description"],
            rows=[
                {"Command": command, "Description": description}
                for command, description in COMMAND_DESCRIPTIONS
            ],
            message="Available commands",
        )

    @asynccontextmanager
    async def _connect(self, operation: str) -> AsyncGenerator[AsyncConnection, None]:
        """Check out a connection, wrapping checkout failures with the operation."""
        try:
            async with self.connection.get_connection() as conn:
                yield conn
        except MetaCommandError:
            raise
        except Exception as e:
            raise CommandExecutionError(operation, e) from e

    async def _fetch(
        self,
        conn: AsyncConnection,
        sql: str,
        params: Optional[dict[str, Any]],
        operation: str,
    ) -> tuple[list[str], list[dict[str, Any]]]:
        """Run one query and return its column names and formatted rows."""
        logger.debug(f"Running {operation} query:\n{sql}")
        try:
            result = await conn.execute(text(sql), params or {})
            columns = list(result.keys())
            rows = [dict(zip(columns, row)) for row in result.fetchall()]
        except Exception as e:
            raise CommandExecutionError(operation, e) from e

        return columns, format_rows(rows)


async def run(connection: DatabaseConnection, raw: str) -> Result:
    """Parse and execute a single meta-command string."""
    return await MetaCommandExecutor(connection).execute(parse(raw))

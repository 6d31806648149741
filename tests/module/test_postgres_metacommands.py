"""Module Tests for MetaCommandExecutor against PostgreSQL

Runs meta-commands against a real server. Validates:
- Listing tables with extended columns and schema-qualified patterns
- Describing a table with index and foreign-key sections
- Role, schema and connection info listings
- Read-only enforcement is unaffected by catalog queries
"""

from typing import AsyncGenerator

import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine

from pg_metacmd.core import DatabaseConnection, MetaCommandExecutor, parse
from pg_metacmd.errors import CommandExecutionError
from pg_metacmd.models.config import DatabaseConfig

pytestmark = [pytest.mark.postgresql, pytest.mark.integration]

SCHEMA = "metacmd_test"

SETUP_STATEMENTS = [
    f"DROP SCHEMA IF EXISTS {SCHEMA} CASCADE",
    f"CREATE SCHEMA {SCHEMA}",
    f"""CREATE TABLE {SCHEMA}.customers (
        id serial PRIMARY KEY,
        email text NOT NULL UNIQUE
    )""",
    f"""CREATE TABLE {SCHEMA}.orders (
        id serial PRIMARY KEY,
        customer_id integer NOT NULL REFERENCES {SCHEMA}.customers(id),
        total numeric(10, 2) DEFAULT 0,
        CONSTRAINT orders_total_check CHECK (total >= 0)
    )""",
    f"CREATE INDEX orders_customer_idx ON {SCHEMA}.orders (customer_id)",
    f"CREATE VIEW {SCHEMA}.order_totals AS SELECT customer_id, sum(total) FROM {SCHEMA}.orders GROUP BY 1",
]


@pytest.fixture
async def metacmd_schema(pg_config: DatabaseConfig) -> AsyncGenerator[str, None]:
    """Create the test schema with a writable engine, drop it afterwards"""
    engine = create_async_engine(pg_config.url, isolation_level="AUTOCOMMIT")
    try:
        async with engine.connect() as conn:
            for statement in SETUP_STATEMENTS:
                await conn.execute(text(statement))
        yield SCHEMA
    finally:
        async with engine.connect() as conn:
            await conn.execute(text(f"DROP SCHEMA IF EXISTS {SCHEMA} CASCADE"))
        await engine.dispose()


class TestListings:
    """List families against the live catalog."""

    @pytest.mark.asyncio
    async def test_tables_in_schema(
        self, pg_executor: MetaCommandExecutor, metacmd_schema: str
    ):
        """A schema-qualified pattern lists only that schema, plain columns."""
        result = await pg_executor.execute(parse(f"\\dt+ {metacmd_schema}.*"))

        assert result.message == "List of relations"
        assert result.columns == ["Schema", "Name", "Type", "Owner"]
        assert sorted(result.get_column_values("Name")) == ["customers", "orders"]
        assert set(result.get_column_values("Schema")) == {metacmd_schema}
        assert set(result.get_column_values("Type")) == {"table"}
        assert result.execution_time_ms is not None

    @pytest.mark.asyncio
    async def test_name_pattern(
        self, pg_executor: MetaCommandExecutor, metacmd_schema: str
    ):
        result = await pg_executor.execute(parse(f"\\dt {metacmd_schema}.ord?rs"))
        assert result.get_column_values("Name") == ["orders"]

    @pytest.mark.asyncio
    async def test_views_exclude_tables(
        self, pg_executor: MetaCommandExecutor, metacmd_schema: str
    ):
        result = await pg_executor.execute(parse(f"\\dv {metacmd_schema}.*"))
        assert result.get_column_values("Name") == ["order_totals"]
        assert result.get_column_values("Type") == ["view"]

    @pytest.mark.asyncio
    async def test_indexes(self, pg_executor: MetaCommandExecutor, metacmd_schema: str):
        result = await pg_executor.execute(parse(f"\\di {metacmd_schema}.orders*"))
        names = result.get_column_values("Name")
        assert "orders_pkey" in names
        assert "orders_customer_idx" in names
        assert set(result.get_column_values("Table")) == {"orders"}

    @pytest.mark.asyncio
    async def test_schemas(self, pg_executor: MetaCommandExecutor, metacmd_schema: str):
        result = await pg_executor.execute(parse("\\dn metacmd*"))
        assert result.get_column_values("Name") == [metacmd_schema]

    @pytest.mark.asyncio
    async def test_extended_tables(
        self, pg_executor: MetaCommandExecutor, metacmd_schema: str
    ):
        result = await pg_executor.execute(parse("\\dt+"))
        assert {"Schema", "Name", "Type", "Owner", "Persistence", "Size", "Description"} <= set(
            result.columns
        )

    @pytest.mark.asyncio
    async def test_roles_use_yes_no(self, pg_executor: MetaCommandExecutor):
        result = await pg_executor.execute(parse("\\du+"))
        assert result.row_count >= 1
        assert set(result.get_column_values("Superuser")) <= {"yes", "no"}

    @pytest.mark.asyncio
    async def test_connection_info(
        self, pg_executor: MetaCommandExecutor, pg_config: DatabaseConfig
    ):
        result = await pg_executor.execute(parse("\\conninfo"))
        assert result.rows[0]["Database"] == pg_config.database
        assert "PostgreSQL" in result.rows[0]["Server version"]

    @pytest.mark.asyncio
    async def test_databases(self, pg_executor: MetaCommandExecutor, pg_config: DatabaseConfig):
        result = await pg_executor.execute(parse("\\l+"))
        assert pg_config.database in result.get_column_values("Name")
        assert "Size" in result.columns


class TestDescribeTable:
    """\\d NAME against the live catalog."""

    @pytest.mark.asyncio
    async def test_describe_orders(
        self, pg_executor: MetaCommandExecutor, metacmd_schema: str
    ):
        result = await pg_executor.execute(parse(f"\\d {metacmd_schema}.orders"))

        assert result.columns == ["Column", "Type", "Modifiers", "Default"]
        assert result.message == f'Table "{metacmd_schema}.orders"'
        assert [row["Column"] for row in result.rows[:3]] == ["id", "customer_id", "total"]
        assert result.rows[0]["Modifiers"] == "not null"
        assert result.rows[2]["Type"] == "numeric(10,2)"

        labels = [row["Type"] for row in result.rows if row["Column"] == ""]
        assert labels == ["Indexes:", "Constraints:", "Foreign-key constraints:"]

        entries = [row["Column"].strip() for row in result.rows if row["Column"].startswith("    ")]
        assert "orders_pkey" in entries
        assert "orders_customer_idx" in entries
        assert "orders_total_check" in entries
        assert "orders_customer_id_fkey" in entries

    @pytest.mark.asyncio
    async def test_describe_referenced_table(
        self, pg_executor: MetaCommandExecutor, metacmd_schema: str
    ):
        result = await pg_executor.execute(parse(f"\\d {metacmd_schema}.customers"))

        labels = [row["Type"] for row in result.rows if row["Column"] == ""]
        assert labels[-1] == "Referenced by:"
        assert result.rows[-1]["Column"] == f"    TABLE {metacmd_schema}.orders"

    @pytest.mark.asyncio
    async def test_describe_missing_table(self, pg_executor: MetaCommandExecutor):
        with pytest.raises(CommandExecutionError) as exc_info:
            await pg_executor.execute(parse("\\d metacmd_no_such_table"))
        assert exc_info.value.operation == "describe table"


class TestReadOnly:
    """Checked-out connections stay read-only."""

    @pytest.mark.asyncio
    async def test_session_is_read_only(self, pg_connection: DatabaseConnection):
        async with pg_connection.get_connection() as conn:
            result = await conn.execute(text("SHOW transaction_read_only"))
            assert result.scalar() == "on"

"""Pytest configuration and shared fixtures for meta-command tests"""

import os
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Callable, Optional, Union

import pytest
from dotenv import load_dotenv

from pg_metacmd.core import DatabaseConnection, MetaCommandExecutor
from pg_metacmd.models.config import DatabaseConfig

# Load environment variables
load_dotenv()

# Fix for Windows: asyncpg requires SelectorEventLoop on Windows
if sys.platform == "win32":
    import asyncio

    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())  # type: ignore[attr-defined]


# ==================== Fake Database ====================


class FakeResult:
    """Mimics the parts of a SQLAlchemy CursorResult the executor reads."""

    def __init__(self, columns: list[str], rows: list[tuple[Any, ...]]):
        self._columns = columns
        self._rows = rows

    def keys(self) -> list[str]:
        return list(self._columns)

    def fetchall(self) -> list[tuple[Any, ...]]:
        return list(self._rows)


Response = Union[FakeResult, BaseException]
Handler = Callable[[str, dict[str, Any]], Response]


class FakeSavepoint:
    """Async context manager standing in for a nested transaction."""

    def __init__(self, connection: "FakeConnection"):
        self.connection = connection

    async def __aenter__(self) -> "FakeSavepoint":
        self.connection.savepoints += 1
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is not None:
            self.connection.rollbacks += 1


class FakeConnection:
    """Records executed statements and answers them through a handler."""

    def __init__(self, handler: Handler):
        self.handler = handler
        self.executed: list[tuple[str, dict[str, Any]]] = []
        self.savepoints = 0
        self.rollbacks = 0

    async def execute(self, statement, parameters=None) -> FakeResult:
        sql = str(statement)
        params = dict(parameters or {})
        self.executed.append((sql, params))
        response = self.handler(sql, params)
        if isinstance(response, BaseException):
            raise response
        return response

    def begin_nested(self) -> FakeSavepoint:
        return FakeSavepoint(self)


class FakeDatabase:
    """Stands in for DatabaseConnection, handing out one FakeConnection."""

    def __init__(self, handler: Handler):
        self.connection = FakeConnection(handler)
        self.checkouts = 0
        self.reachable = True

    @asynccontextmanager
    async def get_connection(self) -> AsyncGenerator[FakeConnection, None]:
        self.checkouts += 1
        yield self.connection

    async def test_connection(self) -> bool:
        return self.reachable

    @property
    def executed(self) -> list[tuple[str, dict[str, Any]]]:
        return self.connection.executed

    @property
    def statements(self) -> list[str]:
        return [sql for sql, _ in self.connection.executed]


def routed(routes: list[tuple[str, Response]], default: Optional[Response] = None) -> Handler:
    """Build a handler answering with the first route whose marker is in the SQL."""

    def handler(sql: str, params: dict[str, Any]) -> Response:
        for marker, response in routes:
            if marker in sql:
                return response
        if default is None:
            raise AssertionError(f"Unexpected query:\n{sql}")
        return default

    return handler


@pytest.fixture
def make_result() -> type[FakeResult]:
    """Constructor for canned query results: make_result(columns, rows)"""
    return FakeResult


@pytest.fixture
def fake_db_factory() -> Callable[..., FakeDatabase]:
    """Factory for fake databases answering through route markers"""

    def factory(
        routes: list[tuple[str, Response]], default: Optional[Response] = None
    ) -> FakeDatabase:
        return FakeDatabase(routed(routes, default))

    return factory


@pytest.fixture
def empty_db() -> FakeDatabase:
    """Fake database answering every query with one empty column"""
    return FakeDatabase(lambda sql, params: FakeResult(["?column?"], []))


# ==================== PostgreSQL Fixtures ====================


@pytest.fixture(scope="session")
def pg_database_url() -> Optional[str]:
    """PostgreSQL test database URL from environment"""
    return os.getenv("PG_TEST_DATABASE_URL")


@pytest.fixture
async def pg_config(pg_database_url: Optional[str]) -> DatabaseConfig:
    """PostgreSQL database configuration"""
    if not pg_database_url:
        pytest.skip("PG_TEST_DATABASE_URL not set in environment")
    return DatabaseConfig(url=pg_database_url)


@pytest.fixture
async def pg_connection(
    pg_config: DatabaseConfig,
) -> AsyncGenerator[DatabaseConnection, None]:
    """PostgreSQL database connection with proper cleanup"""
    connection = DatabaseConnection(pg_config)
    await connection.initialize()
    try:
        yield connection
    finally:
        await connection.dispose()


@pytest.fixture
async def pg_executor(pg_connection: DatabaseConnection) -> MetaCommandExecutor:
    """Meta-command executor bound to the PostgreSQL test database"""
    return MetaCommandExecutor(pg_connection)

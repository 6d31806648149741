"""Parsed meta-command model."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class CommandType(str, Enum):
    """Kind of meta-command. Values are display names."""

    DESCRIBE = "describe"
    DESCRIBE_TABLE = "describe-table"
    LIST_TABLES = "list-tables"
    LIST_VIEWS = "list-views"
    LIST_INDEXES = "list-indexes"
    LIST_FUNCTIONS = "list-functions"
    LIST_SCHEMAS = "list-schemas"
    LIST_DATABASES = "list-databases"
    LIST_SEQUENCES = "list-sequences"
    LIST_FOREIGN_TABLES = "list-foreign-tables"
    LIST_USERS = "list-users"
    LIST_MATERIALIZED_VIEWS = "list-materialized-views"
    LIST_EXTENSIONS = "list-extensions"
    LIST_PRIVILEGES = "list-privileges"
    CONN_INFO = "connection-info"
    TOGGLE_EXPANDED = "toggle-expanded"
    TOGGLE_TIMING = "toggle-timing"
    CONNECT = "connect"
    HELP = "help"
    QUIT = "quit"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


# Commands whose effect lives in the client session, not in the catalog
CLIENT_SIDE_COMMANDS = frozenset(
    {
        CommandType.CONNECT,
        CommandType.TOGGLE_EXPANDED,
        CommandType.TOGGLE_TIMING,
        CommandType.QUIT,
    }
)


class Command(BaseModel):
    """A parsed meta-command."""

    model_config = ConfigDict(frozen=True)

    type: CommandType = Field(..., description="Resolved command type")
    arguments: tuple[str, ...] = Field(
        default=(), description="Tokens following the keyword, unmodified"
    )
    raw: str = Field(..., description="Original input text")

    @property
    def is_extended(self) -> bool:
        """Whether the command carries the ``+`` modifier.

        Derived from ``raw`` on every call, so ``\\dm+;`` is extended.
        """
        text = self.raw.strip().rstrip(";").strip()
        return text.endswith("+")

    @property
    def pattern(self) -> str:
        """First argument, or an empty string."""
        return self.arguments[0] if self.arguments else ""

    @property
    def is_client_side(self) -> bool:
        """Whether the caller, not the executor, must handle this command."""
        return self.type in CLIENT_SIDE_COMMANDS

"""Parser for backslash meta-commands."""

from types import MappingProxyType

from pg_metacmd.errors import EmptyCommand, MissingArgument, NotAPsqlCommand, UnknownCommand
from pg_metacmd.models.command import Command, CommandType

COMMAND_MARKER = "\\"
DESCRIBE_KEYWORD = "\\d"

KEYWORDS = MappingProxyType(
    {
        "\\d": CommandType.DESCRIBE,
        "\\dt": CommandType.LIST_TABLES,
        "\\dt+": CommandType.LIST_TABLES,
        "\\dv": CommandType.LIST_VIEWS,
        "\\dv+": CommandType.LIST_VIEWS,
        "\\dm": CommandType.LIST_MATERIALIZED_VIEWS,
        "\\dm+": CommandType.LIST_MATERIALIZED_VIEWS,
        "\\di": CommandType.LIST_INDEXES,
        "\\di+": CommandType.LIST_INDEXES,
        "\\df": CommandType.LIST_FUNCTIONS,
        "\\df+": CommandType.LIST_FUNCTIONS,
        "\\dn": CommandType.LIST_SCHEMAS,
        "\\dn+": CommandType.LIST_SCHEMAS,
        "\\ds": CommandType.LIST_SEQUENCES,
        "\\ds+": CommandType.LIST_SEQUENCES,
        "\\dE": CommandType.LIST_FOREIGN_TABLES,
        "\\dE+": CommandType.LIST_FOREIGN_TABLES,
        "\\du": CommandType.LIST_USERS,
        "\\du+": CommandType.LIST_USERS,
        "\\dx": CommandType.LIST_EXTENSIONS,
        "\\dx+": CommandType.LIST_EXTENSIONS,
        "\\dp": CommandType.LIST_PRIVILEGES,
        "\\z": CommandType.LIST_PRIVILEGES,
        "\\l": CommandType.LIST_DATABASES,
        "\\l+": CommandType.LIST_DATABASES,
        "\\list": CommandType.LIST_DATABASES,
        "\\list+": CommandType.LIST_DATABASES,
        "\\c": CommandType.CONNECT,
        "\\connect": CommandType.CONNECT,
        "\\conninfo": CommandType.CONN_INFO,
        "\\x": CommandType.TOGGLE_EXPANDED,
        "\\timing": CommandType.TOGGLE_TIMING,
        "\\h": CommandType.HELP,
        "\\help": CommandType.HELP,
        "\\?": CommandType.HELP,
        "\\q": CommandType.QUIT,
    }
)

# Commands that fail to parse without an argument, with what they need
REQUIRED_ARGUMENTS = MappingProxyType({CommandType.CONNECT: "a database name"})

COMMAND_DESCRIPTIONS: tuple[tuple[str, str], ...] = (
    ("\\d", "List tables, views, and sequences"),
    ("\\d NAME", "Describe table, view, or sequence"),
    ("\\dt", "List tables"),
    ("\\dt+", "List tables with additional information"),
    ("\\dv", "List views"),
    ("\\dv+", "List views with additional information"),
    ("\\dm", "List materialized views"),
    ("\\dm+", "List materialized views with additional information"),
    ("\\di", "List indexes"),
    ("\\di+", "List indexes with additional information"),
    ("\\df", "List functions"),
    ("\\df+", "List functions with additional information"),
    ("\\dn", "List schemas"),
    ("\\dn+", "List schemas with additional information"),
    ("\\ds", "List sequences"),
    ("\\ds+", "List sequences with additional information"),
    ("\\dE", "List foreign tables"),
    ("\\dE+", "List foreign tables with additional information"),
    ("\\du", "List users and roles"),
    ("\\du+", "List users and roles with additional information"),
    ("\\dx", "List extensions"),
    ("\\dx+", "List extensions with additional information"),
    ("\\dp", "List table, view, and sequence access privileges"),
    ("\\z", "List access privileges (alternative syntax)"),
    ("\\l", "List databases"),
    ("\\l+", "List databases with additional information"),
    ("\\list", "List databases (alternative syntax)"),
    ("\\c NAME", "Connect to database"),
    ("\\connect NAME", "Connect to a database (alternative syntax)"),
    ("\\conninfo", "Display information about the current connection"),
    ("\\x", "Toggle expanded output"),
    ("\\timing", "Toggle timing of commands"),
    ("\\h", "Show help"),
    ("\\help", "Show help (alternative syntax)"),
    ("\\?", "Show psql help"),
    ("\\q", "Quit"),
)


def parse(raw: str) -> Command:
    """
    Parse a meta-command string.

    A trailing ``;`` is ignored and the remaining text is split on whitespace.
    Arguments are kept exactly as typed.

    Args:
        raw: Input such as ``\\dt+`` or ``\\d public.users``

    Returns:
        Parsed command

    Raises:
        NotAPsqlCommand: If the input does not start with a backslash
        EmptyCommand: If the marker is not followed by a keyword
        UnknownCommand: If the keyword is not recognised
        MissingArgument: If a command that needs an argument has none
    """
    text = raw.strip()

    if not text.startswith(COMMAND_MARKER):
        raise NotAPsqlCommand(text)

    if text.endswith(";"):
        text = text[:-1]
    parts = text.split()

    # a lone marker carries no keyword
    if not parts or parts[0] == COMMAND_MARKER:
        raise EmptyCommand()

    keyword, arguments = parts[0], tuple(parts[1:])

    # \d alone lists relations; with a name it describes that relation
    if keyword == DESCRIBE_KEYWORD:
        command_type = (
            CommandType.DESCRIBE_TABLE if arguments else CommandType.DESCRIBE
        )
        return Command(type=command_type, arguments=arguments, raw=raw.strip())

    command_type = KEYWORDS.get(keyword)
    if command_type is None:
        raise UnknownCommand(keyword)

    required = REQUIRED_ARGUMENTS.get(command_type)
    if required is not None and not arguments:
        raise MissingArgument(keyword, required)

    return Command(type=command_type, arguments=arguments, raw=raw.strip())

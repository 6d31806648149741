"""Exception hierarchy for meta-command parsing and execution."""

from typing import Optional


class MetaCommandError(Exception):
    """Base class for all meta-command errors."""


class CommandSyntaxError(MetaCommandError, ValueError):
    """Input could not be parsed into a command."""


class NotAPsqlCommand(CommandSyntaxError):
    """Input does not start with the backslash marker."""

    def __init__(self, text: str):
        self.text = text
        super().__init__(f"not a psql command: {text}")


class EmptyCommand(CommandSyntaxError):
    """Input contained only the marker and whitespace."""

    def __init__(self) -> None:
        super().__init__("empty command")


class UnknownCommand(CommandSyntaxError):
    """First token is not a recognised keyword."""

    def __init__(self, token: str):
        self.token = token
        super().__init__(f"unknown command: {token}")


class CommandValidationError(MetaCommandError, ValueError):
    """A command argument was rejected before any SQL was built."""


class InvalidIdentifier(CommandValidationError):
    """Identifier does not match the allowed grammar."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"invalid identifier: {value}")


class InvalidPattern(CommandValidationError):
    """Search pattern contains characters outside the allowed set."""

    def __init__(self, pattern: str):
        self.pattern = pattern
        super().__init__(f"invalid pattern: {pattern}")


class MissingArgument(CommandValidationError):
    """Command requires an argument that was not supplied."""

    def __init__(self, keyword: str, what: str = "an argument"):
        self.keyword = keyword
        super().__init__(f"{keyword} requires {what}")


class CommandNotImplemented(MetaCommandError):
    """Command is recognised but has no catalog query behind it."""

    def __init__(self, raw: str):
        self.raw = raw
        super().__init__(f"command not implemented: {raw}")


class CommandExecutionError(MetaCommandError):
    """A catalog query failed.

    Attributes:
        operation: Name of the operation that failed (e.g. "list tables")
        cause: Underlying driver error, also available as ``__cause__``
    """

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.cause = cause
        message = f"failed to {operation}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)

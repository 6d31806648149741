"""Command-line entry point: run meta-commands against DATABASE_URL."""

import asyncio
import logging
import os
from typing import Optional

import typer

from pg_metacmd.core import DatabaseConnection, MetaCommandExecutor, parse
from pg_metacmd.errors import MetaCommandError
from pg_metacmd.models.config import DatabaseConfig
from pg_metacmd.models.result import Result

app = typer.Typer(
    help="pg-metacmd - run psql meta-commands such as \\dt+ or \\d users",
    no_args_is_help=True,
    add_completion=False,
)


async def run_commands(
    config: DatabaseConfig, commands: list[str], max_rows: Optional[int] = None
) -> int:
    """
    Run each command in order and print its result.

    Returns:
        Process exit code: 0 if every command succeeded, 1 if any failed,
        2 if the database could not be reached
    """
    exit_code = 0
    async with DatabaseConnection(config) as connection:
        if not await connection.test_connection():
            typer.echo(f"ERROR: could not connect to database {config.database}", err=True)
            return 2

        executor = MetaCommandExecutor(connection)
        for raw in commands:
            try:
                command = parse(raw)
                if command.is_client_side:
                    typer.echo(f"{raw}: only available in an interactive session")
                    continue
                result = await executor.execute(command)
            except MetaCommandError as e:
                typer.echo(f"ERROR: {e}", err=True)
                exit_code = 1
                continue
            typer.echo(render(result, max_rows))
    return exit_code


def render(result: Result, max_rows: Optional[int] = None) -> str:
    """Render a result as text with its timing."""
    output = result.to_table_string(max_rows=max_rows)
    if result.execution_time_ms is not None:
        output += f"\nTime: {result.execution_time_ms:.3f} ms"
    return output


@app.command()
def main(
    commands: list[str] = typer.Argument(..., help="Meta-commands, e.g. '\\dt+'"),
    database_url: Optional[str] = typer.Option(
        None,
        "--database-url",
        "-d",
        help="Database URL (defaults to the DATABASE_URL environment variable)",
    ),
    max_rows: Optional[int] = typer.Option(
        None, "--max-rows", min=1, help="Truncate each result to this many rows"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log rendered SQL"),
) -> None:
    """Run meta-commands and print their results."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)

    try:
        if database_url:
            config = DatabaseConfig(url=database_url)
        else:
            config = DatabaseConfig.from_env()
    except ValueError as e:
        typer.echo(f"ERROR: {e}", err=True)
        raise typer.Exit(code=2)

    exit_code = asyncio.run(run_commands(config, commands, max_rows))
    raise typer.Exit(code=exit_code)


def cli_entry() -> None:
    """
    Synchronous entry point for console script.

    This function is called by the 'pg-metacmd' console script.
    """
    # Windows-specific event loop policy
    if os.name == "nt":
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())  # type: ignore[attr-defined]

    app()


if __name__ == "__main__":
    cli_entry()

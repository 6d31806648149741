"""Entry point for running as module: python -m pg_metacmd"""

from pg_metacmd.cli import cli_entry

if __name__ == "__main__":
    cli_entry()

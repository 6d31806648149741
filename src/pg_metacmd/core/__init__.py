"""Meta-command parsing, validation and execution layer."""

from .catalog import CATALOG_QUERIES, CatalogQuery, get_catalog_query
from .connection import DatabaseConnection
from .executor import MetaCommandExecutor, run
from .parser import COMMAND_DESCRIPTIONS, KEYWORDS, parse
from .patterns import build_condition, pattern_to_like, split_schema_table, validate_pattern
from .sanitizer import sanitize_identifier

__all__ = [
    "CATALOG_QUERIES",
    "COMMAND_DESCRIPTIONS",
    "KEYWORDS",
    "CatalogQuery",
    "DatabaseConnection",
    "MetaCommandExecutor",
    "build_condition",
    "get_catalog_query",
    "parse",
    "pattern_to_like",
    "run",
    "sanitize_identifier",
    "split_schema_table",
    "validate_pattern",
]

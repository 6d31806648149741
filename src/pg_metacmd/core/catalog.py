"""Catalog queries behind the \\d family of meta-commands.

Each command has a plain and an extended (``+``) variant. Relation listings
share their namespace filters and differ only in projected columns and
caption. Pattern conditions are inserted before ``ORDER BY`` at render time.
"""

from types import MappingProxyType
from typing import Optional

from pydantic import BaseModel, ConfigDict

from pg_metacmd.models.command import CommandType

# Namespaces never shown in user-facing listings
USER_NAMESPACE_FILTERS = (
    "n.nspname <> 'pg_catalog'",
    "n.nspname <> 'information_schema'",
    "n.nspname !~ '^pg_toast'",
)

RELATION_VISIBLE = "pg_catalog.pg_table_is_visible(c.oid)"
FUNCTION_VISIBLE = "pg_catalog.pg_function_is_visible(p.oid)"

RELATION_SOURCE = """FROM pg_catalog.pg_class c
LEFT JOIN pg_catalog.pg_namespace n ON n.oid = c.relnamespace"""

RELATION_KIND_LABELS = MappingProxyType(
    {
        "r": "table",
        "p": "partitioned table",
        "v": "view",
        "m": "materialized view",
        "i": "index",
        "I": "partitioned index",
        "S": "sequence",
        "s": "special",
        "t": "TOAST table",
        "f": "foreign table",
    }
)

PERSISTENCE_COLUMN = """CASE c.relpersistence
    WHEN 'p' THEN 'permanent'
    WHEN 't' THEN 'temporary'
    WHEN 'u' THEN 'unlogged'
  END AS "Persistence\""""

RELATION_DESCRIPTION = """pg_catalog.obj_description(c.oid, 'pg_class') AS "Description\""""


class CatalogQuery(BaseModel):
    """A catalog query and how to present and search it."""

    model_config = ConfigDict(frozen=True)

    operation: str
    caption: str
    select: str
    source: str = ""
    filters: tuple[str, ...] = ()
    visibility: Optional[str] = None
    order_by: str = ""
    schema_column: Optional[str] = None
    name_column: Optional[str] = None
    yes_no_columns: tuple[str, ...] = ()

    @property
    def searchable(self) -> bool:
        """Whether a name pattern can narrow this query."""
        return self.name_column is not None

    def render(self, condition: str = "", qualified: bool = False) -> str:
        """
        Render the SQL text.

        Args:
            condition: Pattern fragment starting with `` AND`` (may be empty)
            qualified: The pattern names a schema, so objects outside the
                search path are listed too

        Returns:
            SQL text
        """
        parts = [self.select]
        if self.source:
            parts.append(self.source)
            filters = list(self.filters)
            if self.visibility and not qualified:
                filters.append(self.visibility)
            where = "\n  AND ".join(filters) if filters else "true"
            parts.append(f"WHERE {where}{condition}")
        if self.order_by:
            parts.append(self.order_by)
        return "\n".join(parts)


def _kind_case(kinds: str) -> str:
    branches = "\n".join(
        f"    WHEN '{kind}' THEN '{RELATION_KIND_LABELS[kind]}'" for kind in kinds
    )
    return f"CASE c.relkind\n{branches}\n  END"


def _kind_filter(kinds: str) -> str:
    if len(kinds) == 1:
        return f"c.relkind = '{kinds}'"
    return "c.relkind IN ({})".format(",".join(f"'{kind}'" for kind in kinds))


def _relation_query(
    operation: str,
    kinds: str,
    extended: bool,
    *,
    caption: str = "List of relations",
    extra_columns: tuple[str, ...] = (),
    extended_columns: Optional[tuple[str, ...]] = None,
    extra_joins: str = "",
) -> CatalogQuery:
    """Build a pg_class listing restricted to the given relkinds."""
    columns = [
        'n.nspname AS "Schema"',
        'c.relname AS "Name"',
        f'{_kind_case(kinds)} AS "Type"',
        *extra_columns,
        'pg_catalog.pg_get_userbyid(c.relowner) AS "Owner"',
    ]
    if extended:
        if extended_columns is None:
            extended_columns = (
                PERSISTENCE_COLUMN,
                'pg_catalog.pg_size_pretty(pg_catalog.pg_table_size(c.oid)) AS "Size"',
                RELATION_DESCRIPTION,
            )
        columns.extend(extended_columns)

    source = RELATION_SOURCE
    if extra_joins:
        source = f"{source}\n{extra_joins}"

    return CatalogQuery(
        operation=operation,
        caption=caption,
        select="SELECT\n  " + ",\n  ".join(columns),
        source=source,
        filters=(_kind_filter(kinds), *USER_NAMESPACE_FILTERS),
        visibility=RELATION_VISIBLE,
        order_by="ORDER BY 1, 2",
        schema_column="n.nspname",
        name_column="c.relname",
    )


INDEX_JOINS = """LEFT JOIN pg_catalog.pg_index i ON i.indexrelid = c.oid
LEFT JOIN pg_catalog.pg_class t ON i.indrelid = t.oid
LEFT JOIN pg_catalog.pg_am am ON c.relam = am.oid"""

FOREIGN_TABLE_JOINS = """LEFT JOIN pg_catalog.pg_foreign_table ft ON ft.ftrelid = c.oid
LEFT JOIN pg_catalog.pg_foreign_server s ON s.oid = ft.ftserver"""


def _index_query(extended: bool) -> CatalogQuery:
    return _relation_query(
        "list indexes",
        "iI",
        extended,
        extra_columns=('t.relname AS "Table"', 'am.amname AS "Access method"'),
        extended_columns=(
            PERSISTENCE_COLUMN,
            'pg_catalog.pg_size_pretty(pg_catalog.pg_relation_size(c.oid)) AS "Size"',
            RELATION_DESCRIPTION,
        ),
        extra_joins=INDEX_JOINS,
    )


def _foreign_table_query(extended: bool) -> CatalogQuery:
    return _relation_query(
        "list foreign tables",
        "f",
        extended,
        extended_columns=(
            's.srvname AS "FDW server"',
            'pg_catalog.pg_size_pretty(pg_catalog.pg_table_size(c.oid)) AS "Size"',
            RELATION_DESCRIPTION,
        ),
        extra_joins=FOREIGN_TABLE_JOINS if extended else "",
    )


FUNCTION_COLUMNS = """SELECT
  n.nspname AS "Schema",
  p.proname AS "Name",
  pg_catalog.pg_get_function_result(p.oid) AS "Result data type",
  pg_catalog.pg_get_function_arguments(p.oid) AS "Argument data types",
  CASE p.prokind
    WHEN 'a' THEN 'agg'
    WHEN 'w' THEN 'window'
    WHEN 'p' THEN 'proc'
    ELSE 'func'
  END AS "Type\""""

FUNCTION_EXTENDED_COLUMNS = """,
  CASE p.provolatile
    WHEN 'i' THEN 'immutable'
    WHEN 's' THEN 'stable'
    WHEN 'v' THEN 'volatile'
  END AS "Volatility",
  CASE p.proparallel
    WHEN 'r' THEN 'restricted'
    WHEN 's' THEN 'safe'
    WHEN 'u' THEN 'unsafe'
  END AS "Parallel",
  pg_catalog.pg_get_userbyid(p.proowner) AS "Owner",
  CASE WHEN p.prosecdef THEN 'definer' ELSE 'invoker' END AS "Security",
  pg_catalog.array_to_string(p.proacl, E'\\n') AS "Access privileges",
  l.lanname AS "Language",
  p.prosrc AS "Source code",
  pg_catalog.obj_description(p.oid, 'pg_proc') AS "Description\""""


def _function_query(extended: bool) -> CatalogQuery:
    select = FUNCTION_COLUMNS
    source = """FROM pg_catalog.pg_proc p
LEFT JOIN pg_catalog.pg_namespace n ON n.oid = p.pronamespace"""
    if extended:
        select += FUNCTION_EXTENDED_COLUMNS
        source += "\nLEFT JOIN pg_catalog.pg_language l ON l.oid = p.prolang"
    return CatalogQuery(
        operation="list functions",
        caption="List of functions",
        select=select,
        source=source,
        filters=USER_NAMESPACE_FILTERS,
        visibility=FUNCTION_VISIBLE,
        order_by="ORDER BY 1, 2, 4",
        schema_column="n.nspname",
        name_column="p.proname",
    )


def _schema_query(extended: bool) -> CatalogQuery:
    select = """SELECT
  n.nspname AS "Name",
  pg_catalog.pg_get_userbyid(n.nspowner) AS "Owner\""""
    if extended:
        select += """,
  pg_catalog.array_to_string(n.nspacl, E'\\n') AS "Access privileges",
  pg_catalog.obj_description(n.oid, 'pg_namespace') AS "Description\""""
    return CatalogQuery(
        operation="list schemas",
        caption="List of schemas",
        select=select,
        source="FROM pg_catalog.pg_namespace n",
        filters=("n.nspname !~ '^pg_'", "n.nspname <> 'information_schema'"),
        order_by="ORDER BY 1",
        name_column="n.nspname",
    )


def _database_query(extended: bool) -> CatalogQuery:
    select = """SELECT
  d.datname AS "Name",
  pg_catalog.pg_get_userbyid(d.datdba) AS "Owner",
  pg_catalog.pg_encoding_to_char(d.encoding) AS "Encoding",
  d.datcollate AS "Collate",
  d.datctype AS "Ctype",
  pg_catalog.array_to_string(d.datacl, E'\\n') AS "Access privileges\""""
    source = "FROM pg_catalog.pg_database d"
    if extended:
        select += """,
  CASE
    WHEN pg_catalog.has_database_privilege(d.datname, 'CONNECT')
    THEN pg_catalog.pg_size_pretty(pg_catalog.pg_database_size(d.oid))
    ELSE 'No Access'
  END AS "Size",
  t.spcname AS "Tablespace",
  pg_catalog.shobj_description(d.oid, 'pg_database') AS "Description\""""
        source += "\nJOIN pg_catalog.pg_tablespace t ON d.dattablespace = t.oid"
    return CatalogQuery(
        operation="list databases",
        caption="List of databases",
        select=select,
        source=source,
        order_by="ORDER BY 1",
        name_column="d.datname",
    )


ROLE_FLAG_COLUMNS = (
    "Superuser",
    "Inherit",
    "Create role",
    "Create DB",
    "Can login",
    "Replication",
)


def _role_query(extended: bool) -> CatalogQuery:
    if extended:
        select = """SELECT
  r.rolname AS "Role name",
  pg_catalog.array_to_string(ARRAY(
    SELECT b.rolname || '=' || m.admin_option
    FROM pg_catalog.pg_auth_members m
    JOIN pg_catalog.pg_roles b ON m.roleid = b.oid
    WHERE m.member = r.oid
    ORDER BY 1
  ), E'\\n') AS "Member of",
  r.rolsuper AS "Superuser",
  r.rolinherit AS "Inherit",
  r.rolcreaterole AS "Create role",
  r.rolcreatedb AS "Create DB",
  r.rolcanlogin AS "Can login",
  r.rolreplication AS "Replication",
  CASE r.rolconnlimit
    WHEN -1 THEN 'unlimited'
    ELSE r.rolconnlimit::text
  END AS "Connections",
  r.rolvaliduntil AS "Valid until",
  pg_catalog.array_to_string(r.rolconfig, E'\\n') AS "Config",
  pg_catalog.shobj_description(r.oid, 'pg_authid') AS "Description\""""
    else:
        select = """SELECT
  r.rolname AS "Role name",
  ARRAY(
    SELECT b.rolname
    FROM pg_catalog.pg_auth_members m
    JOIN pg_catalog.pg_roles b ON m.roleid = b.oid
    WHERE m.member = r.oid
  ) AS "Member of\""""
    return CatalogQuery(
        operation="list users",
        caption="List of roles",
        select=select,
        source="FROM pg_catalog.pg_roles r",
        filters=("r.rolname !~ '^pg_'",),
        order_by="ORDER BY 1",
        name_column="r.rolname",
        yes_no_columns=ROLE_FLAG_COLUMNS if extended else (),
    )


def _extension_query(extended: bool) -> CatalogQuery:
    if extended:
        select = """SELECT
  e.extname AS "Name",
  e.extversion AS "Version",
  n.nspname AS "Schema",
  pg_catalog.pg_get_userbyid(e.extowner) AS "Owner",
  e.extrelocatable AS "Relocatable",
  (SELECT count(*)
   FROM pg_catalog.pg_depend dep
   WHERE dep.refclassid = 'pg_catalog.pg_extension'::pg_catalog.regclass
     AND dep.refobjid = e.oid
     AND dep.deptype = 'e') AS "Objects",
  pg_catalog.obj_description(e.oid, 'pg_extension') AS "Description\""""
    else:
        select = """SELECT
  e.extname AS "Name",
  e.extversion AS "Version",
  n.nspname AS "Schema",
  pg_catalog.obj_description(e.oid, 'pg_extension') AS "Description\""""
    return CatalogQuery(
        operation="list extensions",
        caption="List of installed extensions",
        select=select,
        source="""FROM pg_catalog.pg_extension e
LEFT JOIN pg_catalog.pg_namespace n ON n.oid = e.extnamespace""",
        order_by="ORDER BY 1",
        name_column="e.extname",
        yes_no_columns=("Relocatable",) if extended else (),
    )


PRIVILEGE_KINDS = "rvmSfp"


def _privilege_query() -> CatalogQuery:
    select = f"""SELECT
  n.nspname AS "Schema",
  c.relname AS "Name",
  {_kind_case(PRIVILEGE_KINDS)} AS "Type",
  pg_catalog.array_to_string(c.relacl, E'\\n') AS "Access privileges",
  pg_catalog.array_to_string(ARRAY(
    SELECT a.attname || ':' || pg_catalog.array_to_string(a.attacl, ' ')
    FROM pg_catalog.pg_attribute a
    WHERE a.attrelid = c.oid
      AND NOT a.attisdropped
      AND a.attacl IS NOT NULL
  ), E'\\n') AS "Column privileges\""""
    return CatalogQuery(
        operation="list privileges",
        caption="Access privileges",
        select=select,
        source=RELATION_SOURCE,
        filters=(_kind_filter(PRIVILEGE_KINDS), *USER_NAMESPACE_FILTERS),
        visibility=RELATION_VISIBLE,
        order_by="ORDER BY 1, 2",
        schema_column="n.nspname",
        name_column="c.relname",
    )


CONNECTION_INFO = CatalogQuery(
    operation="get connection info",
    caption="Connection info",
    select="""SELECT
  pg_catalog.current_database() AS "Database",
  current_user AS "User",
  COALESCE(pg_catalog.inet_server_addr()::text, 'local socket') AS "Host",
  pg_catalog.inet_server_port() AS "Port",
  pg_catalog.version() AS "Server version\"""",
)


def _build_queries() -> dict[tuple[CommandType, bool], CatalogQuery]:
    queries: dict[tuple[CommandType, bool], CatalogQuery] = {}
    for extended in (False, True):
        queries[(CommandType.DESCRIBE, extended)] = _relation_query(
            "list relations", "rpvmSf", extended
        )
        queries[(CommandType.LIST_TABLES, extended)] = _relation_query(
            "list tables", "rp", extended
        )
        queries[(CommandType.LIST_VIEWS, extended)] = _relation_query(
            "list views", "v", extended
        )
        queries[(CommandType.LIST_MATERIALIZED_VIEWS, extended)] = _relation_query(
            "list materialized views", "m", extended
        )
        queries[(CommandType.LIST_SEQUENCES, extended)] = _relation_query(
            "list sequences", "S", extended
        )
        queries[(CommandType.LIST_INDEXES, extended)] = _index_query(extended)
        queries[(CommandType.LIST_FOREIGN_TABLES, extended)] = _foreign_table_query(
            extended
        )
        queries[(CommandType.LIST_FUNCTIONS, extended)] = _function_query(extended)
        queries[(CommandType.LIST_SCHEMAS, extended)] = _schema_query(extended)
        queries[(CommandType.LIST_DATABASES, extended)] = _database_query(extended)
        queries[(CommandType.LIST_USERS, extended)] = _role_query(extended)
        queries[(CommandType.LIST_EXTENSIONS, extended)] = _extension_query(extended)
    queries[(CommandType.LIST_PRIVILEGES, False)] = _privilege_query()
    queries[(CommandType.CONN_INFO, False)] = CONNECTION_INFO
    return queries


CATALOG_QUERIES = MappingProxyType(_build_queries())


def get_catalog_query(
    command_type: CommandType, extended: bool = False
) -> Optional[CatalogQuery]:
    """
    Look up the query for a command.

    Commands without an extended form fall back to their plain query.

    Returns:
        The query, or None if the command has no catalog query
    """
    query = CATALOG_QUERIES.get((command_type, extended))
    if query is None and extended:
        query = CATALOG_QUERIES.get((command_type, False))
    return query


# \d NAME: columns of one relation, then best-effort sections
TABLE_COLUMNS_SQL = """SELECT
  a.attname AS "Column",
  pg_catalog.format_type(a.atttypid, a.atttypmod) AS "Type",
  CASE WHEN a.attnotnull THEN 'not null' ELSE '' END AS "Modifiers",
  COALESCE(
    (SELECT pg_catalog.pg_get_expr(d.adbin, d.adrelid)
     FROM pg_catalog.pg_attrdef d
     WHERE d.adrelid = a.attrelid AND d.adnum = a.attnum),
    ''
  ) AS "Default"
FROM pg_catalog.pg_attribute a
WHERE a.attrelid = CAST(:table_name AS regclass)
  AND a.attnum > 0
  AND NOT a.attisdropped
ORDER BY a.attnum"""

TABLE_COLUMNS = ("Column", "Type", "Modifiers", "Default")


class DescribeSection(BaseModel):
    """A best-effort section of \\d NAME output.

    The query must return ``name`` and ``definition`` columns.
    """

    model_config = ConfigDict(frozen=True)

    label: str
    operation: str
    sql: str
    name_prefix: str = ""


DESCRIBE_SECTIONS: tuple[DescribeSection, ...] = (
    DescribeSection(
        label="Indexes:",
        operation="list table indexes",
        sql="""SELECT
  ic.relname AS name,
  pg_catalog.pg_get_indexdef(i.indexrelid, 0, true) AS definition
FROM pg_catalog.pg_index i
JOIN pg_catalog.pg_class ic ON ic.oid = i.indexrelid
WHERE i.indrelid = CAST(:table_name AS regclass)
ORDER BY i.indisprimary DESC, ic.relname""",
    ),
    DescribeSection(
        label="Constraints:",
        operation="list table constraints",
        sql="""SELECT
  con.conname AS name,
  pg_catalog.pg_get_constraintdef(con.oid, true) AS definition
FROM pg_catalog.pg_constraint con
WHERE con.conrelid = CAST(:table_name AS regclass)
  AND con.contype IN ('c', 'u')
ORDER BY con.conname""",
    ),
    DescribeSection(
        label="Foreign-key constraints:",
        operation="list table foreign keys",
        sql="""SELECT
  con.conname AS name,
  pg_catalog.pg_get_constraintdef(con.oid, true) AS definition
FROM pg_catalog.pg_constraint con
WHERE con.conrelid = CAST(:table_name AS regclass)
  AND con.contype = 'f'
ORDER BY con.conname""",
    ),
    DescribeSection(
        label="Referenced by:",
        operation="list referencing tables",
        name_prefix="TABLE ",
        sql="""SELECT
  con.conrelid::pg_catalog.regclass::text AS name,
  con.conname || ' ' || pg_catalog.pg_get_constraintdef(con.oid, true) AS definition
FROM pg_catalog.pg_constraint con
WHERE con.confrelid = CAST(:table_name AS regclass)
  AND con.contype = 'f'
ORDER BY 1, con.conname""",
    ),
)

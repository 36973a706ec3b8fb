"""
============================
Catalog query builders.
============================

Metadata queries run against an open connection. Values are substituted
into the templates as SQL string literals (single quotes doubled), never
as identifiers.

Metadata Query Functions:
- table_exists_sql: Check if a table exists in a schema
"""

from pglit.sql.ddl import DEFAULT_SCHEMA, load_template, render_template


def quote_literal(value: str) -> str:
    """Escape a value for use inside a single-quoted SQL literal."""
    return value.replace("'", "''")


def table_exists_sql(schema_name: str, table_name: str) -> str:
    """
    Generate SQL to check if a table exists.

    Args:
        schema_name: Schema to look in (empty means the default schema)
        table_name: Name of the table

    Returns:
        SQL query returning a single boolean
    """
    return render_template(
        load_template('table_exists.sql'),
        schema_name=quote_literal(schema_name or DEFAULT_SCHEMA),
        table_name=quote_literal(table_name),
    ).strip()

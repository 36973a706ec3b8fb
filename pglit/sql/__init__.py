"""
=============================================
SQL rendering package for database lifecycle.
=============================================

This package renders the statements pglit sends to the server. Database
and schema names cannot be bound as parameters, so statements are built
from the text templates in ``templates/`` by token substitution.

The package follows a clear organization:
    - ddl.py: CREATE/DROP DATABASE, CREATE SCHEMA and search path statements
    - query_builder.py: catalog lookups (table presence)

All functions are pure string construction (no side effects besides
reading the packaged templates once).

Example:
    >>> from pglit.sql import Action, database_statement
    >>> database_statement(Action.DROP, 'warehouse')
    'DROP DATABASE warehouse;'
"""

__all__ = [
    'Action', 'database_statement', 'format_identifier',
    'create_schema_statement', 'search_path_statement', 'create_schemas_batch',
    'table_exists_sql',
]

from .ddl import (
    Action,
    create_schema_statement,
    create_schemas_batch,
    database_statement,
    format_identifier,
    search_path_statement,
)
from .query_builder import table_exists_sql

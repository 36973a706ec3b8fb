"""
==================================================
Database and schema setup operations.
==================================================

This package makes sure the databases and schemas an application needs
exist before it starts serving.

Modules:
    lifecycle: create / drop / force-drop, create_pool, connect_or_create
    schemas: table_exists, create_schemas

Example:
    >>> from pglit.setup import connect_or_create, create_schemas
    >>>
    >>> connection, engine = await connect_or_create(params, 'warehouse')
    >>> await create_schemas(connection, ['bronze', 'silver', 'gold'])
"""

__all__ = [
    'handle_database',
    'create_database',
    'drop_database',
    'force_drop_database',
    'create_pool',
    'connect_or_create',
    'table_exists',
    'create_schemas',
]

from .lifecycle import (
    connect_or_create,
    create_database,
    create_pool,
    drop_database,
    force_drop_database,
    handle_database,
)
from .schemas import create_schemas, table_exists

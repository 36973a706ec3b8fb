"""
=====================================================
pglit: PostgreSQL database lifecycle for app startup.
=====================================================

Create, drop and force-drop databases, and get a pool or a connection to a
database that is guaranteed to exist.

Example:
    >>> from pglit import ConnectionParams, PoolConfig, create_pool, connect_or_create
    >>>
    >>> engine = await create_pool(PoolConfig.from_env())
    >>> connection, driver = await connect_or_create(ConnectionParams(), 'warehouse')
"""

__version__ = "0.1.0"
__all__ = [
    # Configuration
    'ConnectionParams', 'PoolConfig', 'config', 'setup_logging',
    # Errors
    'PglitError', 'ConfigError', 'NormalizedError', 'CreatePoolError', 'Outcome',
    'DUPLICATE_DATABASE', 'INVALID_CATALOG_NAME', 'SYNTAX_ERROR',
    # Operations
    'Action', 'create_database', 'drop_database', 'force_drop_database',
    'create_pool', 'connect_or_create', 'table_exists', 'create_schemas',
    'DriverSupervisor', 'default_supervisor',
]

from pglit.core.config import ConnectionParams, PoolConfig, config
from pglit.core.errors import (
    DUPLICATE_DATABASE,
    INVALID_CATALOG_NAME,
    SYNTAX_ERROR,
    ConfigError,
    CreatePoolError,
    NormalizedError,
    Outcome,
    PglitError,
)
from pglit.core.logger import setup_logging
from pglit.setup import (
    connect_or_create,
    create_database,
    create_pool,
    create_schemas,
    drop_database,
    force_drop_database,
    table_exists,
)
from pglit.sql.ddl import Action
from pglit.utils.database_utils import DriverSupervisor, default_supervisor

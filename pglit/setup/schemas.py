"""
==================================================
Schema presence and creation helpers.
==================================================

Same-pattern helpers that work on an already open connection to the
target database rather than on the admin database.

Key Features:
    - table_exists: catalog lookup in information_schema
    - create_schemas: one batched round trip creating several schemas,
      optionally making them the session's default search path
    - Outcome delivery through the same handler contract as the
      database lifecycle operations

Example:
    >>> from pglit.setup.schemas import create_schemas, table_exists
    >>>
    >>> outcome = await create_schemas(connection, ['bronze', 'silver'], set_as_default=True)
    >>> await table_exists(connection, 'bronze', 'customers')
    False
"""

import logging
from typing import Any, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncConnection

from pglit.core.config import config
from pglit.core.errors import DRIVER_ERRORS, Outcome, normalize_error
from pglit.setup.lifecycle import Handler, deliver
from pglit.sql.ddl import DEFAULT_SCHEMA, create_schemas_batch
from pglit.sql.query_builder import table_exists_sql

logger = logging.getLogger(__name__)


async def table_exists(connection: AsyncConnection, schema: str, table: str) -> bool:
    """
    Check if a table exists.

    Args:
        connection: Open connection to the database to inspect
        schema: Schema name ('' means the default 'public' schema)
        table: Table name (must not be empty)

    Returns:
        True if the table exists, False otherwise

    Raises:
        ValueError: If table is empty (before any query is sent)
        NormalizedError: If the lookup fails
    """
    if not table:
        raise ValueError("The table name should not be empty")

    schema = schema or DEFAULT_SCHEMA
    try:
        result = await connection.exec_driver_sql(table_exists_sql(schema, table))
        return bool(result.scalar())
    except DRIVER_ERRORS as e:
        logger.error(f"Error checking table existence for {schema}.{table}: {e}")
        raise normalize_error(e) from e


async def create_schemas(
    connection: AsyncConnection,
    schema_names: Sequence[str],
    set_as_default: bool = False,
    handler: Optional[Handler] = None,
    *,
    quote_identifiers: Optional[bool] = None
) -> Any:
    """
    Create several schemas in a single round trip.

    The batch is sent with the simple query protocol on the raw driver
    connection. On a connection with no transaction open the server runs
    it as one implicit transaction, so either every schema is created or
    none is. If the connection already has a transaction open (anything
    executed through SQLAlchemy since the last commit, table_exists
    included), the batch joins it and stays uncommitted until the caller
    commits.

    Args:
        connection: Open connection to the target database
        schema_names: Schemas to create; empty entries are skipped
        set_as_default: Also SET search_path to the created schemas, then public
        handler: Called once with the Outcome; its result is returned
        quote_identifiers: Quote the schema names (defaults to
            config.quote_identifiers)

    Returns:
        The handler's result, or the Outcome when no handler is given

    Raises:
        ValueError: If schema_names is empty (before any query is sent)
    """
    if not schema_names:
        raise ValueError("The `schema_names` argument should not be empty")

    quote = config.quote_identifiers if quote_identifiers is None else quote_identifiers
    batch = create_schemas_batch(schema_names, set_as_default=set_as_default, quote=quote)

    try:
        raw_connection = await connection.get_raw_connection()
        driver_connection = raw_connection.driver_connection

        logger.info(f"Creating schemas: {', '.join(name for name in schema_names if name)}")
        await driver_connection.execute(batch)
        outcome = Outcome.success(0)
    except DRIVER_ERRORS as e:
        error = normalize_error(e)
        logger.warning(f"Schema creation failed [{error.code}]: {error.message or e}")
        outcome = Outcome.failure(error)

    return await deliver(outcome, handler)

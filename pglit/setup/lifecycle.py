"""
==================================================
Database lifecycle operations.
==================================================

Creates, drops and force-drops PostgreSQL databases from application
startup code, and builds pools or connections on top of "make sure the
database exists".

Every operation goes through :func:`handle_database`, which:

1. points the caller's ConnectionParams at the admin database
   (typically 'postgres', since the target may not exist yet),
2. renders the DDL from the SQL templates in ``pglit.sql``,
3. executes it on an AUTOCOMMIT connection,
4. normalizes any failure into a NormalizedError and delivers exactly
   one Outcome to the caller's handler (or returns it).

The admin connection is released on a background task supervised by a
DriverSupervisor; the DDL result never waits for the teardown.

Prerequisites:
    - PostgreSQL 13+ for force-drop (DROP DATABASE ... WITH (FORCE))
    - CREATEDB privilege (or superuser) for the connecting user

Example:
    >>> from pglit.core.config import ConnectionParams
    >>> from pglit.setup.lifecycle import create_database, drop_database
    >>>
    >>> params = ConnectionParams(user='testuser', password='secret', dbname='testdb')
    >>> outcome = await create_database(params, 'testdb')
    >>> if not outcome.ok:
    ...     print(outcome.error.code, outcome.error.message)
    >>>
    >>> # Or with a handler, sync or async
    >>> await drop_database(params, 'testdb', handler=lambda o: print(o))
"""

import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, Union

from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from pglit.core.config import ConnectionParams, PoolConfig, config
from pglit.core.errors import (
    DRIVER_ERRORS,
    DUPLICATE_DATABASE,
    ConfigError,
    CreatePoolError,
    Outcome,
    normalize_error,
)
from pglit.sql.ddl import Action, database_statement
from pglit.utils.database_utils import (
    DriverSupervisor,
    Transport,
    create_admin_engine,
    create_pool_engine,
    create_target_engine,
    default_supervisor,
    release_connection,
    transport_connect_args,
)

logger = logging.getLogger(__name__)

Handler = Callable[[Outcome], Union[Any, Awaitable[Any]]]


async def deliver(outcome: Outcome, handler: Optional[Handler]) -> Any:
    """Hand an outcome to the caller's handler exactly once.

    Returns the outcome itself when there is no handler. An awaitable
    returned by the handler is awaited, so async continuations (building a
    pool, opening a second connection) resolve before the caller resumes.
    """
    if handler is None:
        return outcome
    result = handler(outcome)
    if inspect.isawaitable(result):
        result = await result
    return result


async def handle_database(
    params: ConnectionParams,
    db_name: str,
    action: Action,
    transport: Transport = None,
    handler: Optional[Handler] = None,
    *,
    quote_identifiers: Optional[bool] = None,
    supervisor: Optional[DriverSupervisor] = None
) -> Any:
    """
    Run one CREATE/DROP/FORCE_DROP DATABASE statement.

    Args:
        params: Caller's connection parameters. ``dbname`` is pointed at the
            admin database while connecting and set to db_name afterwards.
        db_name: Target database name (must not be empty)
        action: Lifecycle action to perform
        transport: Transport (TLS) strategy for the admin connection
        handler: Called once with the Outcome; its result is returned
        quote_identifiers: Quote the database name (defaults to
            config.quote_identifiers)
        supervisor: DriverSupervisor for the connection release task

    Returns:
        The handler's result, or the Outcome when no handler is given

    Raises:
        ValueError: If db_name is empty (also once quotes are stripped) or
            the transport names an unknown sslmode; raised before any
            connection attempt and before params are touched
    """
    if not db_name:
        raise ValueError("The database name in the `db_name` argument should not be empty")

    quote = config.quote_identifiers if quote_identifiers is None else quote_identifiers
    supervisor = supervisor or default_supervisor

    statement = database_statement(action, db_name, quote=quote)
    transport_connect_args(transport)

    params.dbname = config.admin_db
    engine = create_admin_engine(params, transport)
    try:
        connection = await engine.connect()
    except DRIVER_ERRORS as e:
        params.dbname = db_name
        error = normalize_error(e)
        logger.error(
            f"Could not connect to admin database {config.admin_db} "
            f"at {params.host}:{params.port}: {e}"
        )
        await engine.dispose()
        return await deliver(Outcome.failure(error), handler)

    params.dbname = db_name

    try:
        logger.info(f"Executing: {statement}")
        result = await connection.exec_driver_sql(statement)
        outcome = Outcome.success(max(result.rowcount or 0, 0))
    except DRIVER_ERRORS as e:
        error = normalize_error(e)
        logger.warning(f"{action.name} DATABASE {db_name} failed [{error.code}]: {error.message or e}")
        outcome = Outcome.failure(error)
    finally:
        supervisor.spawn(release_connection(connection, engine), name=f"admin:{db_name}")

    return await deliver(outcome, handler)


async def create_database(
    params: ConnectionParams,
    db_name: str,
    transport: Transport = None,
    handler: Optional[Handler] = None,
    **options: Any
) -> Any:
    """
    Create a database.

    Args:
        params: Connection parameters (dbname ends up as db_name)
        db_name: Name of the database to create
        transport: Transport (TLS) strategy
        handler: Optional callback receiving the Outcome
        **options: quote_identifiers / supervisor, see handle_database

    Returns:
        The handler's result, or the Outcome

    Example:
        >>> outcome = await create_database(params, 'pglit_db_test')
        >>> outcome.code  # '42P04' when it already exists
    """
    return await handle_database(params, db_name, Action.CREATE, transport, handler, **options)


async def drop_database(
    params: ConnectionParams,
    db_name: str,
    transport: Transport = None,
    handler: Optional[Handler] = None,
    **options: Any
) -> Any:
    """
    Drop a database.

    Fails with code '3D000' if the database does not exist and '55006'
    if other sessions are connected to it.
    """
    return await handle_database(params, db_name, Action.DROP, transport, handler, **options)


async def force_drop_database(
    params: ConnectionParams,
    db_name: str,
    transport: Transport = None,
    handler: Optional[Handler] = None,
    **options: Any
) -> Any:
    """
    Drop a database with the FORCE option (PostgreSQL 13+).

    The server first tries to terminate every other session connected to
    the database. This fails when the user lacks the privileges of
    pg_terminate_backend, or when prepared transactions, active logical
    replication slots or subscriptions exist in the target database.
    """
    return await handle_database(params, db_name, Action.FORCE_DROP, transport, handler, **options)


async def create_pool(
    pool_config: PoolConfig,
    engine_options: Optional[Dict[str, Any]] = None,
    transport: Transport = None,
    **options: Any
) -> AsyncEngine:
    """
    Make sure the configured database exists, then return a pooled engine.

    A "duplicate database" (42P04) answer counts as success: the database
    already being there is the desired end state.

    Args:
        pool_config: Pool configuration; dbname is the database to create
        engine_options: Extra keyword arguments for create_async_engine
        transport: Transport (TLS) strategy for both admin and pool connections
        **options: quote_identifiers / supervisor, see handle_database

    Returns:
        AsyncEngine whose pool hands out connections to pool_config.dbname

    Raises:
        CreatePoolError: kind 'config' for configuration problems, kind
            'backend' (chained to the NormalizedError) for server errors

    Example:
        >>> engine = await create_pool(PoolConfig.from_env())
        >>> async with engine.connect() as conn:
        ...     await conn.execute(text("SELECT 1"))
    """
    try:
        params = pool_config.get_connection_params()
    except ConfigError as e:
        raise CreatePoolError.from_config(e)

    def build_pool(outcome: Outcome) -> AsyncEngine:
        if outcome.ok or outcome.code == DUPLICATE_DATABASE:
            if not outcome.ok:
                logger.info(f"Database {pool_config.dbname} already exists, building pool")
            return create_pool_engine(pool_config, transport, **(engine_options or {}))
        raise CreatePoolError.from_backend(outcome.error)

    return await create_database(params, pool_config.dbname, transport, build_pool, **options)


async def connect_or_create(
    params: ConnectionParams,
    db_name: str,
    transport: Transport = None,
    **options: Any
) -> Tuple[AsyncConnection, AsyncEngine]:
    """
    Create db_name if needed and return a live connection to it.

    The caller's params are not modified; the operation works on a copy.

    Args:
        params: Connection parameters for the server
        db_name: Database to connect to (created when missing)
        transport: Transport (TLS) strategy
        **options: quote_identifiers / supervisor, see handle_database

    Returns:
        Tuple of (open AsyncConnection, the engine driving it). Close the
        connection and dispose of the engine when done.

    Raises:
        NormalizedError: If creation fails with anything but 42P04, or if
            the final connection attempt fails

    Example:
        >>> connection, engine = await connect_or_create(params, 'pglit_db_test')
        >>> try:
        ...     await connection.execute(text("SELECT 1"))
        ... finally:
        ...     await connection.close()
        ...     await engine.dispose()
    """
    target = params.copy()

    async def connect_target(outcome: Outcome) -> Tuple[AsyncConnection, AsyncEngine]:
        if not outcome.ok and outcome.code != DUPLICATE_DATABASE:
            raise outcome.error

        engine = create_target_engine(target, transport)
        try:
            connection = await engine.connect()
        except DRIVER_ERRORS as e:
            await engine.dispose()
            raise normalize_error(e) from e
        logger.info(f"Connected to database {target.dbname}")
        return connection, engine

    return await create_database(target, db_name, transport, connect_target, **options)

"""
==================================================
Database connectivity utilities for PostgreSQL.
==================================================

Engine construction and connection release helpers shared by the
lifecycle and schema modules.

Key Features:
    - Admin engines (AUTOCOMMIT, no pooling) for CREATE/DROP DATABASE
    - Target engines for a single direct connection
    - Pooled engines built from PoolConfig
    - Transport (TLS) strategy mapped onto asyncpg's ``ssl`` argument
    - DriverSupervisor: tracked background tasks that release connections
      without making the caller wait

Example:
    >>> from pglit.utils.database_utils import create_admin_engine, default_supervisor
    >>>
    >>> engine = create_admin_engine(params, transport='require')
    >>> connection = await engine.connect()
    >>> ...
    >>> default_supervisor.spawn(release_connection(connection, engine))
"""

import asyncio
import logging
import ssl
from typing import Any, Awaitable, Dict, Optional, Set, Union

from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from pglit.core.config import ConnectionParams, PoolConfig

logger = logging.getLogger(__name__)

# None/False: plain TCP; True or an sslmode string; or a ready SSLContext
Transport = Union[None, bool, str, ssl.SSLContext]

SSL_MODES = ('disable', 'allow', 'prefer', 'require', 'verify-ca', 'verify-full')


def transport_connect_args(transport: Transport = None) -> Dict[str, Any]:
    """
    Map a transport strategy onto asyncpg connect arguments.

    Args:
        transport: None/False for no TLS, True, an sslmode name, or an SSLContext

    Returns:
        Dictionary suitable for ``create_async_engine(connect_args=...)``

    Raises:
        ValueError: If an unknown sslmode name is given
    """
    if transport is None or transport is False:
        return {}
    if isinstance(transport, str) and transport not in SSL_MODES:
        raise ValueError(f"Unknown sslmode {transport!r}, expected one of {', '.join(SSL_MODES)}")
    return {'ssl': transport}


def create_admin_engine(params: ConnectionParams, transport: Transport = None) -> AsyncEngine:
    """
    Create an engine for server-level DDL.

    CREATE/DROP DATABASE cannot run inside a transaction block, so the
    engine uses AUTOCOMMIT. NullPool makes closing the connection close
    the socket.

    Args:
        params: Connection parameters (dbname already points at the admin database)
        transport: Transport strategy

    Returns:
        AsyncEngine without pooling
    """
    return create_async_engine(
        params.get_url(),
        isolation_level='AUTOCOMMIT',
        poolclass=NullPool,
        connect_args=transport_connect_args(transport),
        echo=False
    )


def create_target_engine(params: ConnectionParams, transport: Transport = None) -> AsyncEngine:
    """Create an unpooled engine for one direct connection to params.dbname."""
    return create_async_engine(
        params.get_url(),
        poolclass=NullPool,
        connect_args=transport_connect_args(transport),
        echo=False
    )


def create_pool_engine(
    config: PoolConfig,
    transport: Transport = None,
    **engine_options: Any
) -> AsyncEngine:
    """
    Create a pooled engine for the configured database.

    Args:
        config: Pool configuration (dbname must be set)
        transport: Transport strategy
        **engine_options: Extra keyword arguments for create_async_engine

    Returns:
        Configured AsyncEngine with a connection pool

    Example:
        >>> engine = create_pool_engine(PoolConfig(dbname='warehouse'), pool_size=2)
        >>> async with engine.connect() as conn:
        ...     await conn.execute(text("SELECT 1"))
    """
    options: Dict[str, Any] = {
        'pool_size': config.pool_size,
        'max_overflow': config.max_overflow,
        'pool_timeout': config.pool_timeout,
        'pool_recycle': config.pool_recycle,
        'pool_pre_ping': True,  # Verify connections before using
        'connect_args': transport_connect_args(transport),
        'echo': False,
    }
    options.update(engine_options)
    return create_async_engine(config.get_connection_params().get_url(), **options)


async def release_connection(connection: AsyncConnection, engine: AsyncEngine) -> None:
    """Close a connection, then dispose of the engine that owns it."""
    try:
        await connection.close()
    finally:
        await engine.dispose()


class DriverSupervisor:
    """Tracks background connection-release tasks.

    Tasks are fire-and-forget for the caller: failures are logged here and
    never propagated. The supervisor keeps a reference to every pending
    task so none is garbage collected mid-flight, and ``shutdown()`` gives
    applications an explicit point to wait for (or cancel) what is left.

    Example:
        >>> supervisor = DriverSupervisor()
        >>> supervisor.spawn(release_connection(conn, engine), name='admin:warehouse')
        >>> await supervisor.shutdown(timeout=5)
    """

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        """Number of tasks that have not finished yet."""
        return len(self._tasks)

    def spawn(self, coro: Awaitable[Any], name: Optional[str] = None) -> asyncio.Task:
        """Run a coroutine in the background under supervision.

        Args:
            coro: Coroutine to run (typically release_connection(...))
            name: Label used in log messages

        Returns:
            The scheduled task
        """
        task = asyncio.ensure_future(coro)
        label = name or repr(coro)
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._on_done(t, label))
        return task

    def _on_done(self, task: asyncio.Task, label: str) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.debug(f"Background task {label} cancelled")
            return
        error = task.exception()
        if error is not None:
            logger.error(f"connection error ({label}): {error}")

    async def shutdown(self, timeout: Optional[float] = None) -> None:
        """Wait for pending tasks, cancelling whatever is left after timeout.

        Args:
            timeout: Seconds to wait; None waits for all tasks
        """
        if not self._tasks:
            return

        tasks = list(self._tasks)
        _, not_done = await asyncio.wait(tasks, timeout=timeout)
        for task in not_done:
            task.cancel()
        if not_done:
            logger.warning(f"Cancelled {len(not_done)} background task(s) at shutdown")
            await asyncio.gather(*not_done, return_exceptions=True)


# Supervisor used when callers do not pass their own
default_supervisor = DriverSupervisor()

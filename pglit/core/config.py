"""
================================================
Configuration management for pglit.
================================================

Loads configuration from environment variables (and a ``.env`` file in
the working directory) and provides a centralized Config singleton for
library-wide defaults.

Two shapes of connection settings are used:
    - ConnectionParams: where to connect for a single lifecycle call
      (the orchestrator temporarily points ``dbname`` at the admin database)
    - PoolConfig: ConnectionParams plus pool sizing, used by create_pool

PoolConfig can also be read from double-underscore separated variables,
optionally prefixed (``PG__HOST`` or ``MYAPP__PG__HOST``).

Example:
    >>> from pglit.core.config import config, PoolConfig
    >>>
    >>> params = config.get_connection_params()
    >>> print(f"Host: {config.db_host}, Port: {config.db_port}")
    >>>
    >>> pool_cfg = PoolConfig.from_env(prefix='MYAPP')
"""

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from dotenv import find_dotenv, load_dotenv
from sqlalchemy.engine import URL

from pglit.core.errors import ConfigError

# Load environment variables from the application's .env file
load_dotenv(find_dotenv(usecwd=True))

ADMIN_DB = 'postgres'
DRIVER_NAME = 'postgresql+asyncpg'

_TRUE_VALUES = ('1', 'true', 'yes', 'on')


def _parse_int(name: str, value: Optional[str], default: Optional[int] = None) -> Optional[int]:
    if value is None or value == '':
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {value!r}")


def _parse_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None or value == '':
        return default
    return value.strip().lower() in _TRUE_VALUES


@dataclass
class ConnectionParams:
    """Connection settings for one server/database.

    Attributes:
        host: PostgreSQL server hostname or IP address
        port: PostgreSQL server port number
        user: Database username
        password: Database password
        dbname: Database to connect to
    """

    host: str = 'localhost'
    port: int = 5432
    user: str = 'postgres'
    password: str = ''
    dbname: str = ADMIN_DB

    def get_url(self, database: Optional[str] = None) -> URL:
        """Build the SQLAlchemy URL for these parameters.

        Args:
            database: Override for the database name

        Returns:
            ``postgresql+asyncpg`` URL
        """
        return URL.create(
            drivername=DRIVER_NAME,
            username=self.user,
            password=self.password or None,
            host=self.host,
            port=self.port,
            database=database or self.dbname,
        )

    def copy(self) -> 'ConnectionParams':
        """Return an independent copy of these parameters."""
        return replace(self)


@dataclass
class PoolConfig:
    """Connection pool configuration.

    Attributes:
        host: PostgreSQL server hostname
        port: PostgreSQL server port
        user: Database username
        password: Database password
        dbname: Target database the pool connects to (created if missing)
        pool_size: Number of connections kept open
        max_overflow: Connections allowed beyond pool_size
        pool_timeout: Seconds to wait for a free connection
        pool_recycle: Seconds after which a connection is replaced (-1 off)
    """

    host: str = 'localhost'
    port: int = 5432
    user: str = 'postgres'
    password: str = ''
    dbname: Optional[str] = None
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: float = 30
    pool_recycle: int = -1

    def get_connection_params(self) -> ConnectionParams:
        """Derive ConnectionParams for the target database.

        Raises:
            ConfigError: If no database name is configured
        """
        if not self.dbname:
            raise ConfigError("dbname is required to build a pool")
        if self.pool_size < 1:
            raise ConfigError(f"pool_size must be at least 1, got {self.pool_size}")
        return ConnectionParams(
            host=self.host,
            port=self.port,
            user=self.user,
            password=self.password,
            dbname=self.dbname,
        )

    @classmethod
    def from_env(
        cls,
        prefix: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None
    ) -> 'PoolConfig':
        """Read pool configuration from ``[PREFIX__]PG__<FIELD>`` variables.

        Args:
            prefix: Optional variable prefix (e.g. 'MYAPP' reads MYAPP__PG__HOST)
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            PoolConfig with unset fields left at their defaults

        Raises:
            ConfigError: If a numeric variable does not parse

        Example:
            >>> cfg = PoolConfig.from_env(environ={'PG__DBNAME': 'testdb'})
            >>> cfg.dbname
            'testdb'
        """
        environ = os.environ if environ is None else environ
        base = f"{prefix.upper()}__PG__" if prefix else "PG__"

        def get(field: str) -> Optional[str]:
            return environ.get(f"{base}{field.upper()}")

        defaults = cls()
        pool_timeout = get('pool_timeout')
        try:
            timeout = float(pool_timeout) if pool_timeout else defaults.pool_timeout
        except ValueError:
            raise ConfigError(f"{base}POOL_TIMEOUT must be a number, got {pool_timeout!r}")

        return cls(
            host=get('host') or defaults.host,
            port=_parse_int(f"{base}PORT", get('port'), defaults.port),
            user=get('user') or defaults.user,
            password=get('password') or defaults.password,
            dbname=get('dbname') or None,
            pool_size=_parse_int(f"{base}POOL_SIZE", get('pool_size'), defaults.pool_size),
            max_overflow=_parse_int(f"{base}MAX_OVERFLOW", get('max_overflow'), defaults.max_overflow),
            pool_timeout=timeout,
            pool_recycle=_parse_int(f"{base}POOL_RECYCLE", get('pool_recycle'), defaults.pool_recycle),
        )


class Config:
    """Centralized configuration manager.

    Attributes:
        db: Default ConnectionParams from POSTGRES_* variables
        admin_db: Administrative database name
        quote_identifiers: Default for quoting database/schema names
        log_level: Log level used by setup_logging() when none is given

    Example:
        >>> config = Config()
        >>> params = config.get_connection_params()
        >>> print(f"Connecting to {config.db_host}:{config.db_port}")
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        """Initialize configuration from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)
        """
        environ = os.environ if environ is None else environ

        self.db = ConnectionParams(
            host=environ.get('POSTGRES_HOST', 'localhost'),
            port=_parse_int('POSTGRES_PORT', environ.get('POSTGRES_PORT'), 5432),
            user=environ.get('POSTGRES_USER', 'postgres'),
            password=environ.get('POSTGRES_PASSWORD', ''),
            dbname=environ.get('POSTGRES_DB', ADMIN_DB),
        )
        self.admin_db = environ.get('PGLIT_ADMIN_DB', ADMIN_DB)
        self.quote_identifiers = _parse_bool(environ.get('PGLIT_QUOTE_IDENTIFIERS'))
        self.log_level = environ.get('PGLIT_LOG_LEVEL', 'INFO')

    @property
    def db_host(self) -> str:
        """Get database server hostname."""
        return self.db.host

    @property
    def db_port(self) -> int:
        """Get database server port number."""
        return self.db.port

    @property
    def db_user(self) -> str:
        """Get database username."""
        return self.db.user

    @property
    def db_name(self) -> str:
        """Get default database name."""
        return self.db.dbname

    def get_connection_params(self) -> ConnectionParams:
        """Get a fresh copy of the default connection parameters."""
        return self.db.copy()


# Global configuration instance
config = Config()

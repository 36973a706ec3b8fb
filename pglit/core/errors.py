"""
======================================================
Error normalization for database lifecycle operations.
======================================================

Every failure raised by the driver stack (SQLAlchemy, asyncpg, the socket
layer) is turned into a :class:`NormalizedError` exposing a human-readable
``message`` and the server's SQLSTATE ``code``. Connection-level failures
carry no server detail, so both fields are empty; the original exception
is always kept as ``underlying`` (and as ``__cause__``).

Outcomes of an operation are delivered as an :class:`Outcome`, which holds
either the affected-row count or the NormalizedError.

Example:
    >>> from pglit.core.errors import Outcome, DUPLICATE_DATABASE
    >>>
    >>> outcome = await create_database(params, 'warehouse')
    >>> if not outcome.ok and outcome.code == DUPLICATE_DATABASE:
    ...     print("already there")
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

from asyncpg.exceptions import InterfaceError, PostgresError
from sqlalchemy.exc import SQLAlchemyError

# SQLSTATE codes relied upon by the composed helpers
DUPLICATE_DATABASE = '42P04'
INVALID_CATALOG_NAME = '3D000'
SYNTAX_ERROR = '42601'
OBJECT_IN_USE = '55006'
INSUFFICIENT_PRIVILEGE = '42501'

# Exceptions the driver stack raises for connect/execute failures
DRIVER_ERRORS = (
    SQLAlchemyError,
    PostgresError,
    InterfaceError,
    OSError,
    asyncio.TimeoutError,
)


class PglitError(Exception):
    """Base exception for pglit."""
    pass


class ConfigError(PglitError):
    """Exception raised for invalid or incomplete configuration."""
    pass


class NormalizedError(PglitError):
    """Uniform view of a driver or server error.

    Attributes:
        message: Server message with double quotes stripped, or '' when
            the server reported nothing (connection-level failure)
        code: Five-character SQLSTATE code, or '' for connection-level
            failures
        underlying: The original exception, untouched
    """

    def __init__(self, message: str, code: str, underlying: BaseException):
        super().__init__(message or str(underlying))
        self._message = message
        self._code = code
        self._underlying = underlying
        self.__cause__ = underlying

    @property
    def message(self) -> str:
        return self._message

    @property
    def code(self) -> str:
        return self._code

    @property
    def underlying(self) -> BaseException:
        return self._underlying

    @property
    def is_connection_error(self) -> bool:
        """True when the server never reported a structured error."""
        return not self._code

    def __repr__(self) -> str:
        return (
            f"NormalizedError(message={self._message!r}, code={self._code!r}, "
            f"underlying={self._underlying!r})"
        )


class CreatePoolError(PglitError):
    """Exception raised when a connection pool cannot be built.

    Attributes:
        kind: 'config' for configuration problems, 'backend' for server
            errors raised while ensuring the database exists
    """

    CONFIG = 'config'
    BACKEND = 'backend'

    def __init__(self, kind: str, message: str):
        super().__init__(message)
        self.kind = kind

    @classmethod
    def from_config(cls, error: ConfigError) -> 'CreatePoolError':
        pool_error = cls(cls.CONFIG, f"Invalid pool configuration: {error}")
        pool_error.__cause__ = error
        return pool_error

    @classmethod
    def from_backend(cls, error: NormalizedError) -> 'CreatePoolError':
        pool_error = cls(cls.BACKEND, f"Failed to create database for pool: {error}")
        pool_error.__cause__ = error
        return pool_error


def find_database_error(error: BaseException) -> Optional[PostgresError]:
    """Locate the asyncpg server error behind a (possibly wrapped) exception.

    SQLAlchemy keeps the DBAPI exception on ``orig`` and the asyncpg
    adapter chains the driver exception as ``__cause__``; both links are
    followed.
    """
    seen = set()
    current: Optional[BaseException] = error
    while current is not None and id(current) not in seen:
        if isinstance(current, PostgresError):
            return current
        seen.add(id(current))
        current = getattr(current, 'orig', None) or current.__cause__
    return None


def normalize_error(error: BaseException) -> NormalizedError:
    """Convert a raw driver/server exception into a NormalizedError.

    Args:
        error: Exception raised by connect or execute

    Returns:
        NormalizedError with message and SQLSTATE code when the server
        reported a structured error, empty strings otherwise
    """
    if isinstance(error, NormalizedError):
        return error

    db_error = find_database_error(error)
    if db_error is None:
        return NormalizedError('', '', error)

    message = getattr(db_error, 'message', None) or str(db_error)
    code = getattr(db_error, 'sqlstate', None) or ''
    return NormalizedError(message.replace('"', ''), code, error)


@dataclass(frozen=True)
class Outcome:
    """Result of a lifecycle operation.

    Exactly one of ``rows`` and ``error`` is set. ``rows`` is informational:
    DDL statements usually report 0 regardless of effect.
    """

    rows: Optional[int] = None
    error: Optional[NormalizedError] = None

    def __post_init__(self):
        if (self.rows is None) == (self.error is None):
            raise ValueError("Outcome needs exactly one of rows or error")

    @classmethod
    def success(cls, rows: int = 0) -> 'Outcome':
        return cls(rows=rows)

    @classmethod
    def failure(cls, error: NormalizedError) -> 'Outcome':
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def code(self) -> str:
        """SQLSTATE code of the failure ('' on success)."""
        return self.error.code if self.error is not None else ''

    def unwrap(self) -> int:
        """Return the row count or raise the NormalizedError."""
        if self.error is not None:
            raise self.error
        return self.rows

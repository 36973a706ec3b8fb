"""
==================================
Core infrastructure package.
==================================

Configuration, logging and the error model shared by every pglit module.

Modules:
    config: Connection/pool settings loaded from environment variables
    logger: Logging configuration and utilities
    errors: NormalizedError, Outcome and the pglit exception hierarchy

Example:
    >>> from pglit.core import config, get_logger
    >>>
    >>> logger = get_logger(__name__)
    >>> logger.info(f"Connecting to {config.db_host}")
"""

__all__ = [
    'config', 'Config', 'ConnectionParams', 'PoolConfig', 'ADMIN_DB',
    'get_logger', 'setup_logging',
    'PglitError', 'ConfigError', 'NormalizedError', 'CreatePoolError',
    'Outcome', 'normalize_error',
]

from pglit.core.config import ADMIN_DB, Config, ConnectionParams, PoolConfig, config
from pglit.core.errors import (
    ConfigError,
    CreatePoolError,
    NormalizedError,
    Outcome,
    PglitError,
    normalize_error,
)
from pglit.core.logger import get_logger, setup_logging

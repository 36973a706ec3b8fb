"""
==========================
Utility Functions Package.
==========================

Engine construction and background connection release shared by the
lifecycle and schema modules.

Modules:
    database_utils: PostgreSQL engines, transport mapping, DriverSupervisor
"""

__all__ = [
    'DriverSupervisor',
    'default_supervisor',
    'create_admin_engine',
    'create_target_engine',
    'create_pool_engine',
    'release_connection',
    'transport_connect_args',
]

from .database_utils import (
    DriverSupervisor,
    create_admin_engine,
    create_pool_engine,
    create_target_engine,
    default_supervisor,
    release_connection,
    transport_connect_args,
)

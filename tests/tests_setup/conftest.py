"""
Shared fakes and fixtures for the setup tests.

Key fixtures:
- admin_engines / target_engines / pool_engines: replace the engine
  factories used by pglit.setup.lifecycle with recorders that hand
  out queued fake engines.
- supervisor: a fresh DriverSupervisor so tests can wait for background
  connection releases.
- params: ConnectionParams pointing at a dummy target database.
"""

from types import SimpleNamespace

import pytest

from pglit.core.config import ConnectionParams
from pglit.utils.database_utils import DriverSupervisor


class FakeResult:
    """Mimics the CursorResult returned by exec_driver_sql()."""

    def __init__(self, rowcount=0, scalar_val=None):
        self.rowcount = rowcount
        self._scalar = scalar_val

    def scalar(self):
        return self._scalar


class FakeDriverConnection:
    """Mimics the raw asyncpg connection (simple query protocol execute)."""

    def __init__(self, execute_side_effect=None):
        self.batches = []
        self._execute_side_effect = execute_side_effect

    async def execute(self, query):
        self.batches.append(query)
        if self._execute_side_effect:
            raise self._execute_side_effect
        return "CREATE SCHEMA"


class FakeAsyncConnection:
    """
    Mimics sqlalchemy.ext.asyncio.AsyncConnection.

    - exec_driver_sql() records statements and returns the FakeResult (or raises)
    - get_raw_connection().driver_connection is a FakeDriverConnection
    - close() is tracked
    """

    def __init__(self, result=None, execute_side_effect=None, close_side_effect=None, driver=None):
        self.result = result or FakeResult()
        self.statements = []
        self.closed = False
        self.driver = driver or FakeDriverConnection()
        self._execute_side_effect = execute_side_effect
        self._close_side_effect = close_side_effect

    async def exec_driver_sql(self, statement):
        self.statements.append(statement)
        if self._execute_side_effect:
            raise self._execute_side_effect
        return self.result

    async def get_raw_connection(self):
        return SimpleNamespace(driver_connection=self.driver)

    async def close(self):
        self.closed = True
        if self._close_side_effect:
            raise self._close_side_effect


class FakeAsyncEngine:
    """Mimics AsyncEngine.connect()/dispose()."""

    def __init__(self, connection=None, connect_side_effect=None):
        self.connection = connection or FakeAsyncConnection()
        self.connect_calls = 0
        self.disposed = False
        self._connect_side_effect = connect_side_effect

    async def connect(self):
        self.connect_calls += 1
        if self._connect_side_effect:
            raise self._connect_side_effect
        return self.connection

    async def dispose(self):
        self.disposed = True


class EngineFactory:
    """
    Stand-in for an engine factory. Each call records the database the
    parameters pointed at when the engine was built and returns the next
    queued engine.
    """

    def __init__(self):
        self.queued = []
        self.calls = []

    def queue(self, *engines):
        self.queued.extend(engines)
        return self

    def __call__(self, params, transport=None, **options):
        self.calls.append(SimpleNamespace(
            dbname=params.dbname,
            params=params,
            transport=transport,
            options=options,
        ))
        if not self.queued:
            raise AssertionError("no fake engine queued")
        return self.queued.pop(0)


@pytest.fixture
def fakes():
    """Expose the fake classes to test modules."""
    return SimpleNamespace(
        Result=FakeResult,
        Driver=FakeDriverConnection,
        Connection=FakeAsyncConnection,
        Engine=FakeAsyncEngine,
    )


@pytest.fixture
def admin_engines(monkeypatch):
    factory = EngineFactory()
    monkeypatch.setattr("pglit.setup.lifecycle.create_admin_engine", factory)
    return factory


@pytest.fixture
def target_engines(monkeypatch):
    factory = EngineFactory()
    monkeypatch.setattr("pglit.setup.lifecycle.create_target_engine", factory)
    return factory


@pytest.fixture
def pool_engines(monkeypatch):
    factory = EngineFactory()
    monkeypatch.setattr("pglit.setup.lifecycle.create_pool_engine", factory)
    return factory


@pytest.fixture
def supervisor():
    return DriverSupervisor()


@pytest.fixture
def params():
    return ConnectionParams(
        host="localhost",
        port=5432,
        user="postgres",
        password="secret",
        dbname="dummydb",
    )


@pytest.fixture(autouse=True)
def default_config(monkeypatch):
    """Pin library defaults so a developer's .env cannot change the tests."""
    from pglit.core.config import config

    monkeypatch.setattr(config, "quote_identifiers", False)
    monkeypatch.setattr(config, "admin_db", "postgres")
    return config

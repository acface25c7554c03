"""Shared pytest fixtures.

Key goals:
- Prevent global singletons (settings, database manager) from leaking
  state across tests.
- Provide an in-memory SQLite session table and a controllable clock for
  save handler tests.
"""

from __future__ import annotations

import pytest

import dbtable_session.config as config_module
from dbtable_session.config import Settings
from dbtable_session.infra.db.engine import DatabaseManager, reset_database_manager
from dbtable_session.infra.db.table import TableGateway, build_session_table
from dbtable_session.session.dbtable import DbTableSaveHandler
from dbtable_session.session.schema import SchemaConfig
from tests.fakes import FakeClock


@pytest.fixture(autouse=True)
def _reset_global_singletons() -> None:
    """Ensure global singletons do not leak between tests."""
    config_module._settings = None
    reset_database_manager()
    yield
    config_module._settings = None
    reset_database_manager()


@pytest.fixture
def sqlite_settings() -> Settings:
    return Settings(database_url="sqlite+aiosqlite:///:memory:")


@pytest.fixture
async def database(sqlite_settings: Settings) -> DatabaseManager:
    """In-memory SQLite database, disposed after the test."""
    manager = DatabaseManager(sqlite_settings)
    await manager.init()
    yield manager
    await manager.close()


@pytest.fixture
def schema() -> SchemaConfig:
    return SchemaConfig()


@pytest.fixture
async def gateway(database: DatabaseManager, schema: SchemaConfig) -> TableGateway:
    """Gateway over a freshly created session table."""
    gateway = TableGateway(database.engine, build_session_table(schema))
    await gateway.create_table()
    return gateway


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def handler(gateway: TableGateway, schema: SchemaConfig, clock: FakeClock) -> DbTableSaveHandler:
    """Save handler over the SQLite table with a 1440 second lifetime."""
    return DbTableSaveHandler(gateway, schema=schema, max_lifetime=1440, clock=clock)

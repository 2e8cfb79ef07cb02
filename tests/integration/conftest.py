"""Pytest configuration and fixtures for integration tests against SQLite."""

from collections.abc import AsyncIterator
from pathlib import Path

import pytest

from momentum.app import MomentumCore, open_core
from momentum.core.clock import FixedClock
from momentum.core.config import Settings
from momentum.core.db_client import SQLiteRecordStore
from tests.unit.helpers import NOW


@pytest.fixture
async def sqlite_store(tmp_path: Path) -> AsyncIterator[SQLiteRecordStore]:
    """Fresh SQLite database with the schema applied."""
    store = SQLiteRecordStore(tmp_path / "momentum.db")
    await store.init_db()
    yield store
    await store.close()


@pytest.fixture
async def core(tmp_path: Path) -> AsyncIterator[MomentumCore]:
    """Full service graph on a temporary SQLite file with a frozen clock."""
    settings = Settings(_env_file=None, sqlite_db_path=str(tmp_path / "core.db"))
    async with open_core(settings, clock=FixedClock(NOW)) as momentum_core:
        yield momentum_core

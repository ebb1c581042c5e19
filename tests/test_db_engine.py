"""Tests for DatabaseManager with SQLite async."""

from __future__ import annotations

import pytest
from sqlalchemy import inspect, select

from greenspace.db.base import Base
from greenspace.db.engine import DatabaseManager

# Import models to populate metadata
import greenspace.db.models  # noqa: F401


@pytest.fixture
async def db_manager():
    """Create a DatabaseManager with an in-memory SQLite database."""
    manager = DatabaseManager("sqlite+aiosqlite:///:memory:")
    async with manager.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield manager
    await manager.close()


async def test_engine_creation(db_manager):
    assert db_manager.engine is not None


async def test_session_creation(db_manager):
    async with db_manager.session() as session:
        assert session is not None


async def test_create_and_query_row(db_manager):
    """Round-trip: insert a zone row and read it back."""
    from greenspace.db.models import ZoneRow

    async with db_manager.session() as session:
        session.add(ZoneRow(id="z-1", name="Maple row", type="TREE", green_space_id="g-1"))
        await session.commit()

    async with db_manager.session() as session:
        result = await session.execute(select(ZoneRow).where(ZoneRow.id == "z-1"))
        found = result.scalar_one_or_none()
        assert found is not None
        assert found.name == "Maple row"
        assert found.created_at is not None


async def test_create_all_is_idempotent():
    manager = DatabaseManager("sqlite+aiosqlite:///:memory:")
    await manager.create_all()
    await manager.create_all()
    async with manager.engine.connect() as conn:
        tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
    assert "green_spaces" in tables
    await manager.close()


async def test_close(db_manager):
    """close() disposes the engine without raising."""
    await db_manager.close()


async def test_ping(db_manager):
    assert await db_manager.ping() is True


def test_from_config():
    from greenspace.core.config import DatabaseConfig

    manager = DatabaseManager.from_config(DatabaseConfig(database_url="sqlite+aiosqlite:///:memory:"))
    assert manager.engine.url.drivername == "sqlite+aiosqlite"
    with pytest.raises(ValueError):
        DatabaseManager.from_config(DatabaseConfig())

"""
Tests für die Engine-Konfiguration.
"""
import uuid

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from shiftkeeper.core.config import settings
from shiftkeeper.core.database import engine_options
from shiftkeeper.models.shift import Shift
from tests.conftest import utc


def test_sqlite_options_have_no_pool_sizing():
    options = engine_options("sqlite+aiosqlite:///:memory:")
    assert options == {"connect_args": {"check_same_thread": False}}


def test_postgres_options_use_pool_settings():
    options = engine_options("postgresql+asyncpg://user:pw@db/shiftkeeper")
    assert options["pool_pre_ping"] is True
    assert options["pool_size"] == settings.DB_POOL_SIZE
    assert options["max_overflow"] == settings.DB_MAX_OVERFLOW
    assert "connect_args" not in options


@pytest.mark.asyncio
async def test_sqlite_foreign_keys_enforced(engine):
    async with engine.connect() as conn:
        assert (await conn.execute(text("PRAGMA foreign_keys"))).scalar_one() == 1


@pytest.mark.asyncio
async def test_shift_for_unknown_employee_rejected(db):
    db.add(Shift(
        id=uuid.uuid4(), employee_id=uuid.uuid4(), template_id=None,
        planned_start_at=utc(2025, 9, 1, 9, 0), planned_end_at=utc(2025, 9, 1, 17, 0),
        actual_start_at=None, actual_end_at=None, status="scheduled",
    ))
    with pytest.raises(IntegrityError):
        await db.commit()
    await db.rollback()

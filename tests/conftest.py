"""
Shared pytest fixtures for the Shiftkeeper tests.

Uses SQLite in-memory with StaticPool so all sessions share one connection,
meaning data written in one session is visible to others (important for HTTP client tests).
"""
import json
import os
import time
import uuid
from datetime import date, datetime, time as dtime, timezone

TEST_BOT_TOKEN = "123456:test-bot-token"
os.environ.setdefault("TELEGRAM_BOT_TOKEN", TEST_BOT_TOKEN)

import pytest_asyncio  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, AsyncSession  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import shiftkeeper.models  # noqa: E402,F401 – registers all SQLAlchemy models with Base.metadata
from shiftkeeper.core.database import Base, build_engine, get_db  # noqa: E402
from shiftkeeper.core.security import hash_password, create_access_token, sign_init_data  # noqa: E402
from shiftkeeper.main import app  # noqa: E402
from shiftkeeper.models.company import Company  # noqa: E402
from shiftkeeper.models.employee import Employee  # noqa: E402
from shiftkeeper.models.schedule import EmployeeSchedule, ScheduleTemplate  # noqa: E402
from shiftkeeper.models.user import User  # noqa: E402
from shiftkeeper.models.violation import ViolationRule  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TELEGRAM_ID = 111111


# ── Shared engine (function-scoped: fresh DB per test) ───────────────────────

@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory SQLite engine per test, same options as the app engine plus StaticPool."""
    eng = build_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield eng

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine) -> AsyncSession:
    """Async DB session for direct data setup and inspection inside tests."""
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


# ── HTTP client fixture ───────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def client(engine) -> AsyncClient:
    """
    FastAPI test client with get_db overridden to use the test engine.
    Each request gets its own session but shares the connection via StaticPool.
    """
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()


# ── Company + User fixtures ───────────────────────────────────────────────────

async def _add(db, obj):
    db.add(obj)
    await db.commit()
    await db.refresh(obj)
    return obj


@pytest_asyncio.fixture
async def company(db) -> Company:
    # UTC keeps "today" and period boundaries independent of the machine's zone
    return await _add(db, Company(id=uuid.uuid4(), name="Test B.V.", timezone="UTC", is_active=True))


@pytest_asyncio.fixture
async def other_company(db) -> Company:
    return await _add(db, Company(id=uuid.uuid4(), name="Other B.V.", timezone="UTC", is_active=True))


@pytest_asyncio.fixture
async def admin_user(db, company) -> User:
    return await _add(db, User(
        id=uuid.uuid4(),
        company_id=company.id,
        email="admin@test.nl",
        hashed_password=hash_password("testpass123"),
        role="admin",
        is_active=True,
    ))


@pytest_asyncio.fixture
async def manager_user(db, company) -> User:
    return await _add(db, User(
        id=uuid.uuid4(),
        company_id=company.id,
        email="manager@test.nl",
        hashed_password=hash_password("testpass123"),
        role="manager",
        is_active=True,
    ))


@pytest_asyncio.fixture
async def other_admin_user(db, other_company) -> User:
    return await _add(db, User(
        id=uuid.uuid4(),
        company_id=other_company.id,
        email="admin@other.nl",
        hashed_password=hash_password("testpass123"),
        role="admin",
        is_active=True,
    ))


@pytest_asyncio.fixture
def admin_token(admin_user) -> str:
    return create_access_token(admin_user.id, admin_user.company_id, "admin")


@pytest_asyncio.fixture
def manager_token(manager_user) -> str:
    return create_access_token(manager_user.id, manager_user.company_id, "manager")


@pytest_asyncio.fixture
def other_admin_token(other_admin_user) -> str:
    return create_access_token(other_admin_user.id, other_admin_user.company_id, "admin")


# ── Employees, schedules, rules ──────────────────────────────────────────────

@pytest_asyncio.fixture
async def employee(db, company) -> Employee:
    return await _add(db, Employee(
        id=uuid.uuid4(),
        company_id=company.id,
        full_name="Anna de Vries",
        position="Barista",
        telegram_user_id=TELEGRAM_ID,
        is_active=True,
    ))


@pytest_asyncio.fixture
async def template(db, company) -> ScheduleTemplate:
    return await _add(db, ScheduleTemplate(
        id=uuid.uuid4(),
        company_id=company.id,
        name="Weekdays 9-17",
        shift_start=dtime(9, 0),
        shift_end=dtime(17, 0),
        workdays=[1, 2, 3, 4, 5],  # Mo–Fr
    ))


@pytest_asyncio.fixture
async def assignment(db, employee, template) -> EmployeeSchedule:
    return await _add(db, EmployeeSchedule(
        id=uuid.uuid4(),
        employee_id=employee.id,
        template_id=template.id,
        valid_from=date(2025, 1, 1),
        valid_to=None,
    ))


@pytest_asyncio.fixture
async def late_rule(db, company) -> ViolationRule:
    return await _add(db, ViolationRule(
        id=uuid.uuid4(),
        company_id=company.id,
        code="late",
        name="Late arrival",
        penalty_percent=15,
        auto_detectable=True,
        is_active=True,
    ))


@pytest_asyncio.fixture
async def manual_rule(db, company) -> ViolationRule:
    return await _add(db, ViolationRule(
        id=uuid.uuid4(),
        company_id=company.id,
        code="uniform",
        name="Uniform missing",
        penalty_percent=10,
        auto_detectable=False,
        is_active=True,
    ))


# ── Helper ────────────────────────────────────────────────────────────────────

def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def telegram_headers(telegram_id: int = TELEGRAM_ID, bot_token: str = TEST_BOT_TOKEN,
                     auth_date: int | None = None) -> dict:
    init_data = sign_init_data(
        {
            "auth_date": str(auth_date if auth_date is not None else int(time.time())),
            "query_id": "AAH-test",
            "user": json.dumps({"id": telegram_id, "first_name": "Anna"}, separators=(",", ":")),
        },
        bot_token,
    )
    return {"X-Telegram-Init-Data": init_data}


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)

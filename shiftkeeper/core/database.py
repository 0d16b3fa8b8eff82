from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase

from shiftkeeper.core.config import settings


def is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def engine_options(url: str) -> dict:
    """
    Engine-Optionen je Backend.
    SQLite: check_same_thread=False, kein Pool-Sizing.
    Postgres: pool_pre_ping gegen abgerissene Verbindungen, Poolgröße aus den Settings.
    """
    if is_sqlite(url):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
    }


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # ondelete=CASCADE / SET NULL greift in SQLite nur mit diesem Pragma
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str, **overrides) -> AsyncEngine:
    """Erzeugt die Async-Engine; ``overrides`` z. B. poolclass=StaticPool in Tests."""
    options = {"echo": settings.DEBUG and settings.LOG_LEVEL == "DEBUG", **engine_options(url), **overrides}
    eng = create_async_engine(url, **options)
    if is_sqlite(url):
        event.listen(eng.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return eng


engine = build_engine(settings.DATABASE_URL)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def get_db():
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def create_tables():
    """Creates all tables (local development without Alembic)."""
    import shiftkeeper.models  # noqa – registers all models
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

"""
Async engine and per-request sessions.

The URL comes from DATABASE_URL; any SQLAlchemy async driver works
(aiosqlite by default, asyncpg for Postgres).
"""
from collections.abc import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

from app.core import config


def make_engine(url: str) -> AsyncEngine:
    """
    SQLite files get NullPool so each request opens its own connection;
    in-memory SQLite must share a single connection to keep its tables.
    """
    if url.startswith("sqlite") and ":memory:" in url:
        return create_async_engine(url, poolclass=StaticPool, connect_args={"check_same_thread": False})
    if url.startswith("sqlite"):
        return create_async_engine(url, poolclass=NullPool)
    return create_async_engine(url, pool_pre_ping=True)


def make_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Objects stay readable after commit; routes return them directly
    return async_sessionmaker(bind, expire_on_commit=False, autoflush=False)


engine = make_engine(config.SQLALCHEMY_DATABASE_URL)
AsyncSessionLocal = make_session_factory(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """One session per request, committed when the handler returns cleanly."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def import_models() -> None:
    """Register every table on Base.metadata."""
    from app.features.users.models import User  # noqa: F401
    from app.features.organizations.models import Organization, Membership  # noqa: F401
    from app.features.join_codes.models import JoinCode  # noqa: F401
    from app.features.employees.models import Employee, Position, Location  # noqa: F401
    from app.features.shifts.models import Shift, SchedulePeriod  # noqa: F401
    from app.features.availability.models import Availability  # noqa: F401
    from app.features.time_off.models import TimeOffRequest  # noqa: F401


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Create missing tables; existing ones are left untouched."""
    from app.core.database.base import Base

    import_models()
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

"""Shared test fixtures."""

from __future__ import annotations

import pytest
from fastapi import Depends, HTTPException, Request
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from ulid import ULID

from app.core.database.engine import get_db, import_models, init_db, make_engine, make_session_factory
from app.features.employees.models import Employee
from app.features.organizations.models import Membership, Organization
from app.features.organizations.permissions import Role
from app.features.users.dependencies import get_current_user
from app.features.users.models import User

TEST_USER_HEADER = "X-Test-User"

import_models()


def as_user(user: User) -> dict[str, str]:
    """Request headers that authenticate as `user` under the test override."""
    return {TEST_USER_HEADER: user.id}


class Factory:
    """Creates committed rows through short-lived sessions."""

    def __init__(self, session_factory) -> None:
        self.session_factory = session_factory

    async def user(self, name: str = "Test User", active_organization_id: str | None = None) -> User:
        suffix = str(ULID()).lower()
        user = User(
            appwrite_id=f"aw-{suffix}",
            email=f"user-{suffix}@example.com",
            full_name=name,
            active_organization_id=active_organization_id,
        )
        async with self.session_factory() as session:
            session.add(user)
            await session.commit()
            await session.refresh(user)
        return user

    async def organization(self, name: str = "Acme Coffee") -> Organization:
        organization = Organization(name=name)
        async with self.session_factory() as session:
            session.add(organization)
            await session.commit()
            await session.refresh(organization)
        return organization

    async def membership(self, user: User, organization: Organization, role: Role | str) -> Membership:
        membership = Membership(organization_id=organization.id, user_id=user.id, role=role)
        async with self.session_factory() as session:
            session.add(membership)
            await session.commit()
            await session.refresh(membership)
        return membership

    async def member(
        self,
        organization: Organization,
        role: Role = Role.EMPLOYEE,
        name: str = "Member",
        active: bool = True,
    ) -> User:
        """A user who belongs to `organization` (and has it active)."""
        user = await self.user(name, active_organization_id=organization.id if active else None)
        await self.membership(user, organization, role)
        return user

    async def employee(
        self,
        organization: Organization,
        full_name: str = "Sam Rivera",
        profile: User | None = None,
        **fields,
    ) -> Employee:
        employee = Employee(
            organization_id=organization.id,
            full_name=full_name,
            profile_id=profile.id if profile else None,
            **fields,
        )
        async with self.session_factory() as session:
            session.add(employee)
            await session.commit()
            await session.refresh(employee)
        return employee

    async def save(self, *rows):
        async with self.session_factory() as session:
            session.add_all(rows)
            await session.commit()
            for row in rows:
                await session.refresh(row)
        return rows[0] if len(rows) == 1 else rows


@pytest.fixture()
async def engine(tmp_path):
    """A fresh SQLite file per test with every table created."""
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture()
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture()
def factory(session_factory) -> Factory:
    return Factory(session_factory)


@pytest.fixture()
def app(session_factory):
    """The application wired to the test database and header-based auth."""
    from app.core.rate_limit import limiter
    from app.main import app as application

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def override_current_user(request: Request, db: AsyncSession = Depends(get_db)) -> User:
        user_id = request.headers.get(TEST_USER_HEADER)
        user = await db.get(User, user_id) if user_id else None
        if user is None:
            raise HTTPException(status_code=401, detail="Not authenticated")
        return user

    limiter.reset()
    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_current_user] = override_current_user
    yield application
    application.dependency_overrides.clear()


@pytest.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

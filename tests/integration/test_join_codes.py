import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from app.features.join_codes.models import JoinCode
from app.features.join_codes.service import (
    ExhaustedJoinCodeError,
    InactiveJoinCodeError,
    JoinResult,
    claim_use,
    join_with_code,
)
from app.features.organizations.models import Membership
from app.features.organizations.permissions import Role
from app.features.organizations.service import OrganizationService
from app.features.users.models import User
from tests.conftest import as_user


async def create_code(client, admin, **body):
    resp = await client.post("/join-codes/", json=body, headers=as_user(admin))
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.integration
class TestGenerateJoinCode:
    async def test_defaults(self, client, factory) -> None:
        org = await factory.organization()
        admin = await factory.member(org, Role.ADMIN)

        code = await create_code(client, admin)

        assert len(code["code"]) == 12
        assert code["display_code"] == "-".join(code["code"][i:i + 4] for i in (0, 4, 8))
        assert code["role"] == "employee"
        assert code["max_uses"] == 5
        assert code["used_count"] == 0
        assert code["expires_at"] is not None

    async def test_never_expiring_manager_code(self, client, factory) -> None:
        org = await factory.organization()
        admin = await factory.member(org, Role.ADMIN)

        code = await create_code(client, admin, role="manager", max_uses=1, expires_minutes=None)

        assert code["role"] == "manager"
        assert code["expires_at"] is None

    @pytest.mark.parametrize("role", [Role.MANAGER, Role.EMPLOYEE])
    async def test_only_admins_generate(self, client, factory, role) -> None:
        org = await factory.organization()
        user = await factory.member(org, role)
        resp = await client.post("/join-codes/", json={}, headers=as_user(user))
        assert resp.status_code == 403

    async def test_invalid_max_uses(self, client, factory) -> None:
        org = await factory.organization()
        admin = await factory.member(org, Role.ADMIN)
        resp = await client.post("/join-codes/", json={"max_uses": 0}, headers=as_user(admin))
        assert resp.status_code == 400
        assert "max_uses" in resp.json()


@pytest.mark.integration
class TestRedeemJoinCode:
    async def test_join_creates_membership_and_activates(self, client, factory) -> None:
        org = await factory.organization("Acme")
        admin = await factory.member(org, Role.ADMIN)
        code = await create_code(client, admin, role="manager")
        newcomer = await factory.user()

        resp = await client.post(
            "/join-codes/redeem",
            json={"code": code["display_code"].lower()},
            headers=as_user(newcomer),
        )

        assert resp.status_code == 200
        assert resp.json() == {
            "organization_id": org.id,
            "organization_name": "Acme",
            "role": "manager",
            "created": True,
            "activated": True,
        }
        active = await client.get("/organizations/active", headers=as_user(newcomer))
        assert active.json()["organization_id"] == org.id
        assert active.json()["capabilities"]["can_manage_schedule"] is True

    async def test_existing_member_keeps_role_and_use(self, client, factory, session_factory) -> None:
        org = await factory.organization()
        admin = await factory.member(org, Role.ADMIN)
        code = await create_code(client, admin, role="employee")

        resp = await client.post("/join-codes/redeem", json={"code": code["code"]}, headers=as_user(admin))

        assert resp.status_code == 200
        assert resp.json()["role"] == "admin"
        assert resp.json()["created"] is False
        async with session_factory() as session:
            stored = await session.get(JoinCode, code["id"])
        assert stored.used_count == 0

    async def test_exhausted_code(self, client, factory, session_factory) -> None:
        org = await factory.organization()
        admin = await factory.member(org, Role.ADMIN)
        code = await create_code(client, admin, max_uses=1)
        first, second = await factory.user("First"), await factory.user("Second")

        ok = await client.post("/join-codes/redeem", json={"code": code["code"]}, headers=as_user(first))
        exhausted = await client.post("/join-codes/redeem", json={"code": code["code"]}, headers=as_user(second))

        assert ok.status_code == 200
        assert exhausted.status_code == 409
        async with session_factory() as session:
            members = (await session.execute(
                select(Membership.user_id).where(Membership.organization_id == org.id)
            )).scalars().all()
        assert second.id not in members

    async def test_unknown_code(self, client, factory) -> None:
        user = await factory.user()
        resp = await client.post("/join-codes/redeem", json={"code": "ZZZZ-ZZZZ-ZZZZ"}, headers=as_user(user))
        assert resp.status_code == 404

    async def test_expired_code(self, client, factory) -> None:
        org = await factory.organization()
        expired = await factory.save(JoinCode(
            organization_id=org.id,
            code="EXPRDCODE234",
            role=Role.EMPLOYEE,
            max_uses=5,
            used_count=0,
            expires_at=datetime.now(timezone.utc) - timedelta(minutes=5),
        ))
        user = await factory.user()

        resp = await client.post("/join-codes/redeem", json={"code": expired.code}, headers=as_user(user))

        assert resp.status_code == 410
        assert resp.json()["detail"] == "Join code has expired"

    async def test_deactivated_code(self, client, factory) -> None:
        org = await factory.organization()
        admin = await factory.member(org, Role.ADMIN)
        code = await create_code(client, admin)
        user = await factory.user()

        toggled = await client.patch(f"/join-codes/{code['id']}", json={"is_active": False}, headers=as_user(admin))
        resp = await client.post("/join-codes/redeem", json={"code": code["code"]}, headers=as_user(user))

        assert toggled.json()["is_active"] is False
        assert resp.status_code == 410


@pytest.mark.integration
class TestManageJoinCodes:
    async def test_list_and_delete(self, client, factory) -> None:
        org = await factory.organization()
        admin = await factory.member(org, Role.ADMIN)
        code = await create_code(client, admin)

        listed = await client.get("/join-codes/", headers=as_user(admin))
        deleted = await client.delete(f"/join-codes/{code['id']}", headers=as_user(admin))
        after = await client.get("/join-codes/", headers=as_user(admin))

        assert [c["id"] for c in listed.json()] == [code["id"]]
        assert deleted.status_code == 204
        assert after.json() == []

    async def test_codes_of_other_organizations_are_hidden(self, client, factory) -> None:
        ours = await factory.organization("Ours")
        theirs = await factory.organization("Theirs")
        our_admin = await factory.member(ours, Role.ADMIN)
        their_admin = await factory.member(theirs, Role.ADMIN)
        code = await create_code(client, their_admin)

        resp = await client.delete(f"/join-codes/{code['id']}", headers=as_user(our_admin))

        assert resp.status_code == 404


@pytest.mark.integration
class TestConcurrentRedemption:
    async def redeem(self, session_factory, user: User, code: str):
        async with session_factory() as session:
            service = OrganizationService(session, await session.get(User, user.id))
            return await join_with_code(service, code)

    async def test_last_use_goes_to_exactly_one_caller(self, factory, session_factory) -> None:
        org = await factory.organization()
        code = await factory.save(JoinCode(
            organization_id=org.id,
            code="LASTUSE23456",
            role=Role.EMPLOYEE,
            max_uses=1,
            used_count=0,
        ))
        first, second = await factory.user("First"), await factory.user("Second")

        results = await asyncio.gather(
            self.redeem(session_factory, first, code.code),
            self.redeem(session_factory, second, code.code),
            return_exceptions=True,
        )

        joined = [r for r in results if isinstance(r, JoinResult)]
        refused = [r for r in results if isinstance(r, ExhaustedJoinCodeError)]
        assert len(joined) == 1
        assert len(refused) == 1
        async with session_factory() as session:
            stored = await session.get(JoinCode, code.id)
            members = (await session.execute(
                select(Membership.user_id).where(Membership.organization_id == org.id)
            )).scalars().all()
        assert stored.used_count == 1
        assert len(members) == 1

    async def test_deactivated_after_it_was_read(self, factory, session_factory) -> None:
        org = await factory.organization()
        code = await factory.save(JoinCode(
            organization_id=org.id,
            code="RACEOFF23456",
            role=Role.EMPLOYEE,
            max_uses=5,
            used_count=0,
        ))
        async with session_factory() as session:
            stale = await session.get(JoinCode, code.id)
            async with session_factory() as other:
                row = await other.get(JoinCode, code.id)
                row.is_active = False
                await other.commit()

            with pytest.raises(InactiveJoinCodeError):
                await claim_use(session, stale)

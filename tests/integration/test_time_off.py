from datetime import date, timedelta

import pytest

from app.features.organizations.permissions import Role
from app.features.time_off.models import TimeOffRequest, TimeOffStatus
from tests.conftest import as_user

TODAY = date.today()


def request_body(**overrides) -> dict:
    body = {
        "starts_at": TODAY.isoformat(),
        "ends_at": (TODAY + timedelta(days=2)).isoformat(),
        "type": "vacation",
        "reason": "Family trip",
    }
    body.update(overrides)
    return body


@pytest.mark.integration
class TestSubmitTimeOff:
    async def test_employee_submits_for_self(self, client, factory) -> None:
        org = await factory.organization()
        user = await factory.member(org, Role.EMPLOYEE)
        me = await factory.employee(org, "Me", profile=user)

        resp = await client.post("/time-off/", json=request_body(), headers=as_user(user))

        assert resp.status_code == 201
        assert resp.json()["employee_id"] == me.id
        assert resp.json()["status"] == "pending"
        assert resp.json()["created_by_id"] == user.id

    async def test_employee_cannot_submit_for_others(self, client, factory) -> None:
        org = await factory.organization()
        user = await factory.member(org, Role.EMPLOYEE)
        await factory.employee(org, "Me", profile=user)
        colleague = await factory.employee(org, "Colleague")

        resp = await client.post("/time-off/", json=request_body(employee_id=colleague.id), headers=as_user(user))

        assert resp.status_code == 403

    async def test_manager_submits_for_anyone(self, client, factory) -> None:
        org = await factory.organization()
        manager = await factory.member(org, Role.MANAGER)
        colleague = await factory.employee(org, "Colleague")

        resp = await client.post(
            "/time-off/", json=request_body(employee_id=colleague.id, type="sick"), headers=as_user(manager)
        )

        assert resp.status_code == 201
        assert resp.json()["type"] == "sick"

    async def test_member_without_employee_record(self, client, factory) -> None:
        org = await factory.organization()
        user = await factory.member(org, Role.EMPLOYEE)
        resp = await client.post("/time-off/", json=request_body(), headers=as_user(user))
        assert resp.status_code == 400

    async def test_end_before_start(self, client, factory) -> None:
        org = await factory.organization()
        user = await factory.member(org, Role.EMPLOYEE)
        await factory.employee(org, "Me", profile=user)
        resp = await client.post(
            "/time-off/",
            json=request_body(starts_at=TODAY.isoformat(), ends_at=(TODAY - timedelta(days=1)).isoformat()),
            headers=as_user(user),
        )
        assert resp.status_code == 400

    async def test_user_without_organization(self, client, factory) -> None:
        user = await factory.user()
        resp = await client.post("/time-off/", json=request_body(), headers=as_user(user))
        assert resp.status_code == 409


@pytest.mark.integration
class TestReviewTimeOff:
    async def seed(self, factory):
        org = await factory.organization()
        manager = await factory.member(org, Role.MANAGER)
        user = await factory.member(org, Role.EMPLOYEE)
        me = await factory.employee(org, "Me", profile=user)
        colleague = await factory.employee(org, "Colleague")
        mine, theirs = await factory.save(
            TimeOffRequest(organization_id=org.id, employee_id=me.id, starts_at=TODAY, ends_at=TODAY),
            TimeOffRequest(organization_id=org.id, employee_id=colleague.id, starts_at=TODAY, ends_at=TODAY,
                           status=TimeOffStatus.APPROVED),
        )
        return manager, user, mine, theirs

    async def test_manager_approves_pending_request(self, client, factory) -> None:
        manager, _, mine, _ = await self.seed(factory)

        resp = await client.patch(f"/time-off/{mine.id}", json={"status": "approved"}, headers=as_user(manager))

        assert resp.status_code == 200
        assert resp.json()["status"] == "approved"
        assert resp.json()["reviewed_by_id"] == manager.id
        assert resp.json()["reviewed_at"] is not None

    async def test_only_pending_requests_change(self, client, factory) -> None:
        manager, _, _, theirs = await self.seed(factory)
        resp = await client.patch(f"/time-off/{theirs.id}", json={"status": "denied"}, headers=as_user(manager))
        assert resp.status_code == 409

    async def test_cannot_review_back_to_pending(self, client, factory) -> None:
        manager, _, mine, _ = await self.seed(factory)
        resp = await client.patch(f"/time-off/{mine.id}", json={"status": "pending"}, headers=as_user(manager))
        assert resp.status_code == 400

    async def test_employee_cannot_approve(self, client, factory) -> None:
        _, user, mine, _ = await self.seed(factory)
        resp = await client.patch(f"/time-off/{mine.id}", json={"status": "approved"}, headers=as_user(user))
        assert resp.status_code == 403

    async def test_visibility_and_summary(self, client, factory) -> None:
        manager, user, mine, _ = await self.seed(factory)

        everything = await client.get("/time-off/", headers=as_user(manager))
        own = await client.get("/time-off/", headers=as_user(user))
        pending = await client.get("/time-off/", params={"request_status": "pending"}, headers=as_user(manager))
        manager_summary = await client.get("/time-off/summary", headers=as_user(manager))
        user_summary = await client.get("/time-off/summary", headers=as_user(user))

        assert len(everything.json()) == 2
        assert [r["id"] for r in own.json()] == [mine.id]
        assert [r["id"] for r in pending.json()] == [mine.id]
        assert manager_summary.json() == {"total": 2, "pending": 1, "approved": 1, "denied": 0, "this_month": 2}
        assert user_summary.json()["total"] == 1
        assert user_summary.json()["pending"] == 1

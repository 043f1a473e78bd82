import pytest

from app.features.organizations.permissions import Role
from tests.conftest import as_user

MONDAY_MORNING = {"weekday": 1, "start_time": "09:00:00", "end_time": "13:00:00"}


@pytest.mark.integration
class TestAvailability:
    async def test_employee_edits_own_availability(self, client, factory) -> None:
        org = await factory.organization()
        user = await factory.member(org, Role.EMPLOYEE)
        me = await factory.employee(org, "Me", profile=user)

        created = await client.post(
            "/availability/", json={"employee_id": me.id, **MONDAY_MORNING}, headers=as_user(user)
        )
        listed = await client.get("/availability/", headers=as_user(user))
        removed = await client.delete(f"/availability/{created.json()['id']}", headers=as_user(user))

        assert created.status_code == 201
        assert [(a["weekday"], a["start_time"]) for a in listed.json()] == [(1, "09:00:00")]
        assert removed.status_code == 204

    async def test_employee_cannot_edit_someone_else(self, client, factory) -> None:
        org = await factory.organization()
        user = await factory.member(org, Role.EMPLOYEE)
        await factory.employee(org, "Me", profile=user)
        colleague = await factory.employee(org, "Colleague")

        resp = await client.post(
            "/availability/", json={"employee_id": colleague.id, **MONDAY_MORNING}, headers=as_user(user)
        )

        assert resp.status_code == 403

    async def test_member_without_employee_record_cannot_edit(self, client, factory) -> None:
        org = await factory.organization()
        user = await factory.member(org, Role.EMPLOYEE)
        someone = await factory.employee(org, "Someone")

        resp = await client.post(
            "/availability/", json={"employee_id": someone.id, **MONDAY_MORNING}, headers=as_user(user)
        )

        assert resp.status_code == 403

    async def test_manager_edits_anyone(self, client, factory) -> None:
        org = await factory.organization()
        manager = await factory.member(org, Role.MANAGER)
        colleague = await factory.employee(org, "Colleague")

        created = await client.post(
            "/availability/", json={"employee_id": colleague.id, **MONDAY_MORNING}, headers=as_user(manager)
        )
        listed = await client.get("/availability/", params={"employee_id": colleague.id}, headers=as_user(manager))

        assert created.status_code == 201
        assert len(listed.json()) == 1

    async def test_employee_cannot_remove_someone_elses_slot(self, client, factory) -> None:
        org = await factory.organization()
        manager = await factory.member(org, Role.MANAGER)
        user = await factory.member(org, Role.EMPLOYEE)
        await factory.employee(org, "Me", profile=user)
        colleague = await factory.employee(org, "Colleague")
        slot = await client.post(
            "/availability/", json={"employee_id": colleague.id, **MONDAY_MORNING}, headers=as_user(manager)
        )

        resp = await client.delete(f"/availability/{slot.json()['id']}", headers=as_user(user))

        assert resp.status_code == 403

    async def test_invalid_ranges(self, client, factory) -> None:
        org = await factory.organization()
        manager = await factory.member(org, Role.MANAGER)
        colleague = await factory.employee(org)

        backwards = await client.post(
            "/availability/",
            json={"employee_id": colleague.id, "weekday": 2, "start_time": "17:00:00", "end_time": "09:00:00"},
            headers=as_user(manager),
        )
        bad_day = await client.post(
            "/availability/", json={"employee_id": colleague.id, **MONDAY_MORNING, "weekday": 7}, headers=as_user(manager)
        )

        assert backwards.status_code == 400
        assert bad_day.status_code == 400

    async def test_listing_without_record_needs_employee_id(self, client, factory) -> None:
        org = await factory.organization()
        manager = await factory.member(org, Role.MANAGER)
        resp = await client.get("/availability/", headers=as_user(manager))
        assert resp.status_code == 400

import pytest
from sqlalchemy import select

from app.features.organizations.models import Membership
from app.features.organizations.permissions import Role
from app.features.organizations.resolver import ActiveOrgResolver
from app.features.organizations.service import NotAMemberError, OrganizationService
from app.features.users.models import User


async def service_for(session, user: User) -> OrganizationService:
    return OrganizationService(session, await session.get(User, user.id))


@pytest.mark.integration
class TestGetOrInitActiveOrg:
    async def test_no_memberships_returns_none(self, factory, session_factory) -> None:
        user = await factory.user()
        async with session_factory() as session:
            service = await service_for(session, user)
            assert await service.get_or_init_active_org() is None

    async def test_picks_smallest_organization_id_and_persists(self, factory, session_factory) -> None:
        user = await factory.user()
        orgs = [await factory.organization(name) for name in ("One", "Two", "Three")]
        for org in orgs:
            await factory.membership(user, org, Role.EMPLOYEE)
        expected = min(org.id for org in orgs)

        async with session_factory() as session:
            record = await (await service_for(session, user)).get_or_init_active_org()
        async with session_factory() as session:
            stored = await session.get(User, user.id)

        assert record.organization_id == expected
        assert stored.active_organization_id == expected

    async def test_is_idempotent(self, factory, session_factory) -> None:
        user = await factory.user()
        for name in ("One", "Two"):
            await factory.membership(user, await factory.organization(name), Role.MANAGER)

        async with session_factory() as session:
            service = await service_for(session, user)
            first = await service.get_or_init_active_org()
            second = await service.get_or_init_active_org()

        assert first == second

    async def test_keeps_existing_selection(self, factory, session_factory) -> None:
        user = await factory.user()
        one = await factory.organization("One")
        two = await factory.organization("Two")
        await factory.membership(user, one, Role.EMPLOYEE)
        await factory.membership(user, two, Role.ADMIN)
        chosen = max(one.id, two.id)

        async with session_factory() as session:
            service = await service_for(session, user)
            await service.set_active_org(chosen)
            record = await service.get_or_init_active_org()

        assert record.organization_id == chosen

    async def test_stale_selection_is_replaced(self, factory, session_factory) -> None:
        one = await factory.organization("One")
        two = await factory.organization("Two")
        user = await factory.user(active_organization_id=two.id)
        await factory.membership(user, one, Role.EMPLOYEE)

        async with session_factory() as session:
            record = await (await service_for(session, user)).get_or_init_active_org()

        assert record.organization_id == one.id
        assert record.role is Role.EMPLOYEE

    async def test_stale_selection_without_memberships_is_cleared(self, factory, session_factory) -> None:
        org = await factory.organization()
        user = await factory.user(active_organization_id=org.id)

        async with session_factory() as session:
            assert await (await service_for(session, user)).get_or_init_active_org() is None
        async with session_factory() as session:
            assert (await session.get(User, user.id)).active_organization_id is None


@pytest.mark.integration
class TestMemberships:
    async def test_set_active_org_requires_membership(self, factory, session_factory) -> None:
        user = await factory.user()
        org = await factory.organization()
        async with session_factory() as session:
            with pytest.raises(NotAMemberError):
                await (await service_for(session, user)).set_active_org(org.id)

    async def test_list_memberships_is_ordered_with_roles(self, factory, session_factory) -> None:
        user = await factory.user()
        orgs = [await factory.organization(n) for n in ("A", "B")]
        await factory.membership(user, orgs[0], Role.ADMIN)
        await factory.membership(user, orgs[1], Role.EMPLOYEE)

        async with session_factory() as session:
            records = await (await service_for(session, user)).list_memberships()

        assert [r.organization_id for r in records] == sorted(o.id for o in orgs)
        roles = {r.organization_id: r.role for r in records}
        assert roles == {orgs[0].id: Role.ADMIN, orgs[1].id: Role.EMPLOYEE}

    async def test_create_organization_makes_creator_admin_and_active(self, factory, session_factory) -> None:
        user = await factory.user()
        async with session_factory() as session:
            org = await (await service_for(session, user)).create_organization("  Corner Bakery  ")

        async with session_factory() as session:
            membership = (await session.execute(
                select(Membership).where(Membership.organization_id == org.id)
            )).scalar_one()
            stored = await session.get(User, user.id)

        assert org.name == "Corner Bakery"
        assert membership.user_id == user.id
        assert membership.role is Role.ADMIN
        assert stored.active_organization_id == org.id

    async def test_create_organization_without_activation(self, factory, session_factory) -> None:
        user = await factory.user()
        async with session_factory() as session:
            await (await service_for(session, user)).create_organization("Quiet Org", make_active=False)
        async with session_factory() as session:
            assert (await session.get(User, user.id)).active_organization_id is None

    @pytest.mark.parametrize("name", ["", " ", "A", " B "])
    async def test_create_organization_rejects_short_names(self, factory, session_factory, name) -> None:
        user = await factory.user()
        async with session_factory() as session:
            with pytest.raises(ValueError):
                await (await service_for(session, user)).create_organization(name)


@pytest.mark.integration
class TestResolverOverService:
    async def test_first_resolution_persists_and_repeats(self, factory, session_factory) -> None:
        org = await factory.organization("A")
        user = await factory.member(org, Role.EMPLOYEE, active=False)

        async with session_factory() as session:
            resolver = ActiveOrgResolver(await service_for(session, user))
            first = await resolver.reload()
            second = await resolver.reload()

        assert (first.organization_id, first.organization_name, first.role) == (org.id, "A", Role.EMPLOYEE)
        assert second == first
        async with session_factory() as session:
            assert (await session.get(User, user.id)).active_organization_id == org.id

    async def test_switch_then_reload_uses_new_role(self, factory, session_factory) -> None:
        a = await factory.organization("A")
        b = await factory.organization("B")
        user = await factory.member(a, Role.ADMIN)
        await factory.membership(user, b, Role.EMPLOYEE)

        async with session_factory() as session:
            resolver = ActiveOrgResolver(await service_for(session, user))
            await resolver.reload()
            assert await resolver.switch(b.id)
            context = await resolver.reload()

        assert context.organization_id == b.id
        assert context.role is Role.EMPLOYEE
        assert not context.capabilities.can_manage_schedule

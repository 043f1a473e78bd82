"""
Organization membership service.

Implements the procedures the active-organization resolver calls
(resolve-or-init, set active, list memberships) plus organization
creation, for one authenticated user over one database session.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.organizations.models import Membership, Organization
from app.features.organizations.permissions import Role
from app.features.organizations.resolver import MembershipRecord
from app.features.users.models import User
from app.utils import get_logger


log = get_logger(__name__)

MIN_ORGANIZATION_NAME_LENGTH = 2


class NotAMemberError(Exception):
    """The user has no membership in the requested organization."""

    def __init__(self, organization_id: str):
        super().__init__(f"Not a member of organization {organization_id}")
        self.organization_id = organization_id


class OrganizationService:

    def __init__(self, db: AsyncSession, user: User):
        self.db = db
        self.user = user

    async def list_memberships(self) -> list[MembershipRecord]:
        """Memberships of the current user, ordered by organization id."""
        result = await self.db.execute(
            select(Membership.organization_id, Organization.name, Membership.role)
            .join(Organization, Organization.id == Membership.organization_id)
            .where(Membership.user_id == self.user.id)
            .order_by(Membership.organization_id)
        )
        return [
            MembershipRecord(organization_id=org_id, organization_name=name, role=Role.parse(role))
            for org_id, name, role in result.all()
        ]

    async def get_membership(self, organization_id: str) -> Membership | None:
        result = await self.db.execute(
            select(Membership).where(
                Membership.organization_id == organization_id,
                Membership.user_id == self.user.id,
            )
        )
        return result.scalar_one_or_none()

    async def get_or_init_active_org(self) -> MembershipRecord | None:
        """
        Return the persisted active organization, choosing and persisting
        one first if there is none.

        The choice is the membership with the smallest organization id. A
        persisted selection that is no longer one of the user's memberships
        is replaced the same way.
        """
        memberships = await self.list_memberships()
        active_id = self.user.active_organization_id

        for record in memberships:
            if record.organization_id == active_id:
                return record

        if not memberships:
            if active_id is not None:
                log.info("Clearing stale active organization %s for user %s", active_id, self.user.id)
                self.user.active_organization_id = None
                await self.db.commit()
            return None

        chosen = memberships[0]
        self.user.active_organization_id = chosen.organization_id
        await self.db.commit()
        log.info("Initialized active organization %s for user %s", chosen.organization_id, self.user.id)
        return chosen

    async def set_active_org(self, organization_id: str) -> None:
        if await self.get_membership(organization_id) is None:
            raise NotAMemberError(organization_id)
        self.user.active_organization_id = organization_id
        await self.db.commit()
        log.info("User %s switched to organization %s", self.user.id, organization_id)

    async def create_organization(self, name: str, make_active: bool = True) -> Organization:
        """
        Create an organization with the current user as its admin.

        Activation is best effort: if it fails the organization still exists
        and the caller's previous selection stays in place.
        """
        name = name.strip()
        if len(name) < MIN_ORGANIZATION_NAME_LENGTH:
            raise ValueError("Organization name is required.")

        organization = Organization(name=name)
        self.db.add(organization)
        await self.db.flush()
        self.db.add(Membership(organization_id=organization.id, user_id=self.user.id, role=Role.ADMIN))
        await self.db.commit()
        await self.db.refresh(organization)
        log.info("User %s created organization %s", self.user.id, organization.id)

        if make_active:
            try:
                await self.set_active_org(organization.id)
            except NotAMemberError as e:
                log.warning("Could not activate new organization: %s", e)

        return organization

    async def add_member(self, organization_id: str, role: Role) -> tuple[Membership, bool]:
        """
        Add the current user to an organization.

        Returns the membership and whether it was created; an existing
        membership keeps its role.
        """
        existing = await self.get_membership(organization_id)
        if existing is not None:
            return existing, False
        membership = Membership(organization_id=organization_id, user_id=self.user.id, role=role)
        self.db.add(membership)
        await self.db.flush()
        return membership, True

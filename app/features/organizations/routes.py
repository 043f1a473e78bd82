"""
Organization feature routes.
"""
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.features.users.models import User
from app.features.users.dependencies import get_current_user
from app.features.organizations.models import Organization, Membership
from app.features.organizations.resolver import ActiveOrgContext, ActiveOrgResolver
from app.features.organizations.service import OrganizationService
from app.features.organizations.schemas import (
    ActiveOrganizationResponse,
    CapabilitiesResponse,
    MemberResponse,
    MemberRoleUpdate,
    MembershipResponse,
    OrganizationCreate,
    OrganizationResponse,
    OrganizationUpdate,
    SwitchOrganizationRequest,
)
from app.features.organizations.dependencies import (
    get_active_org_resolver,
    get_organization_service,
    load_active_org,
    require_employee_manager,
    require_org_admin,
)
from app.utils import get_logger


log = get_logger(__name__)
router = APIRouter(tags=["organizations"])


def active_org_response(context: ActiveOrgContext) -> ActiveOrganizationResponse:
    return ActiveOrganizationResponse(
        organization_id=context.organization_id,
        organization_name=context.organization_name,
        role=context.role,
        loading=context.loading,
        capabilities=CapabilitiesResponse(**context.capabilities.as_dict()),
    )


@router.get("/active", response_model=ActiveOrganizationResponse)
async def get_active_organization(
    context: Annotated[ActiveOrgContext, Depends(load_active_org)]
):
    """
    Resolve the caller's active organization, initializing it on first use.

    A user without any organization gets an all-null response rather than
    an error.
    """
    return active_org_response(context)


@router.post("/active", response_model=ActiveOrganizationResponse)
async def switch_active_organization(
    switch_data: SwitchOrganizationRequest,
    resolver: Annotated[ActiveOrgResolver, Depends(get_active_org_resolver)]
):
    """Switch to a different organization and return the re-resolved context."""
    if not await resolver.switch(switch_data.organization_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not a member of this organization"
        )
    return active_org_response(resolver.snapshot)


@router.patch("/active", response_model=OrganizationResponse)
async def rename_active_organization(
    update_data: OrganizationUpdate,
    context: Annotated[ActiveOrgContext, Depends(require_org_admin)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Rename the active organization (organization admin only)."""
    organization = await db.get(Organization, context.organization_id)
    if organization is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Organization not found")

    organization.name = update_data.name.strip()
    await db.commit()
    await db.refresh(organization)

    response = OrganizationResponse.model_validate(organization)
    response.role = context.role
    return response


@router.get("/my", response_model=list[MembershipResponse])
async def get_my_organizations(
    user: Annotated[User, Depends(get_current_user)],
    service: Annotated[OrganizationService, Depends(get_organization_service)]
):
    """List every organization the caller belongs to."""
    memberships = await service.list_memberships()
    return [
        MembershipResponse(
            organization_id=m.organization_id,
            organization_name=m.organization_name,
            role=m.role,
            is_active=m.organization_id == user.active_organization_id,
        )
        for m in memberships
    ]


@router.post("/", response_model=OrganizationResponse, status_code=status.HTTP_201_CREATED)
async def create_organization(
    org_data: OrganizationCreate,
    service: Annotated[OrganizationService, Depends(get_organization_service)]
):
    """Create an organization; the caller becomes its admin."""
    try:
        organization = await service.create_organization(org_data.name, make_active=org_data.make_active)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    response = OrganizationResponse.model_validate(organization)
    membership = await service.get_membership(organization.id)
    response.role = membership.role if membership else None
    return response


@router.get("/active/members", response_model=list[MemberResponse])
async def list_members(
    context: Annotated[ActiveOrgContext, Depends(require_employee_manager)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """List members of the active organization (managers and admins)."""
    result = await db.execute(
        select(Membership, User)
        .join(User, User.id == Membership.user_id)
        .where(Membership.organization_id == context.organization_id)
        .order_by(User.full_name)
    )
    return [
        MemberResponse(
            user_id=user.id,
            full_name=user.full_name,
            email=user.email,
            role=membership.role,
            joined_at=membership.created_at,
        )
        for membership, user in result.all()
    ]


@router.patch("/active/members/{user_id}", response_model=MemberResponse)
async def update_member_role(
    user_id: str,
    update_data: MemberRoleUpdate,
    context: Annotated[ActiveOrgContext, Depends(require_org_admin)],
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Change a member's role (organization admin only)."""
    if user_id == user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot modify your own role"
        )

    result = await db.execute(
        select(Membership, User)
        .join(User, User.id == Membership.user_id)
        .where(
            Membership.organization_id == context.organization_id,
            Membership.user_id == user_id,
        )
    )
    row = result.one_or_none()
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")
    membership, member = row

    membership.role = update_data.role
    await db.commit()
    await db.refresh(membership)
    log.info("Member %s of %s is now %s", user_id, context.organization_id, membership.role.value)

    return MemberResponse(
        user_id=member.id,
        full_name=member.full_name,
        email=member.email,
        role=membership.role,
        joined_at=membership.created_at,
    )

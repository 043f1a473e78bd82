"""
Organization-related dependency injection functions.
"""
from collections.abc import AsyncGenerator, Callable
from typing import Annotated
from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.features.users.models import User
from app.features.users.dependencies import get_current_user
from app.features.organizations.permissions import Role
from app.features.organizations.resolver import ActiveOrgContext, ActiveOrgResolver
from app.features.organizations.service import OrganizationService


async def get_organization_service(
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
) -> OrganizationService:
    return OrganizationService(db, user)


async def get_active_org_resolver(
    service: Annotated[OrganizationService, Depends(get_organization_service)]
) -> AsyncGenerator[ActiveOrgResolver, None]:
    """
    One resolver per request, resolved once before the handler runs and
    closed when the request finishes.
    """
    resolver = ActiveOrgResolver(service)
    await resolver.reload()
    try:
        yield resolver
    finally:
        resolver.close()


async def load_active_org(
    resolver: Annotated[ActiveOrgResolver, Depends(get_active_org_resolver)]
) -> ActiveOrgContext:
    """The resolved context; may be the empty (no organization) context."""
    return resolver.snapshot


async def require_active_org(
    context: Annotated[ActiveOrgContext, Depends(load_active_org)]
) -> ActiveOrgContext:
    """
    Raises:
        HTTPException: 409 if the user has no active organization
    """
    if not context.has_organization:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="No active organization. Create or join an organization first."
        )
    return context


def require_capability(name: str) -> Callable:
    """
    Build a dependency that requires one capability flag in the active
    organization.

    Usage:
        @router.post("/")
        async def create_shift(
            context: Annotated[ActiveOrgContext, Depends(require_capability("can_manage_schedule"))]
        ):
            ...
    """
    async def dependency(
        context: Annotated[ActiveOrgContext, Depends(require_active_org)]
    ) -> ActiveOrgContext:
        if not getattr(context.capabilities, name):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to perform this action"
            )
        return context

    return dependency


require_schedule_manager = require_capability("can_manage_schedule")
require_employee_manager = require_capability("can_manage_employees")
require_time_off_approver = require_capability("can_approve_time_off")
require_time_off_submitter = require_capability("can_submit_time_off")


async def require_org_admin(
    context: Annotated[ActiveOrgContext, Depends(require_active_org)]
) -> ActiveOrgContext:
    if context.role is not Role.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Organization admin privileges required"
        )
    return context

"""
Join code routes.
"""
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.features.users.models import User
from app.features.users.dependencies import get_current_user
from app.features.organizations.dependencies import get_organization_service, require_org_admin
from app.features.organizations.resolver import ActiveOrgContext
from app.features.organizations.service import OrganizationService
from app.features.join_codes.models import JoinCode
from app.features.join_codes.schemas import (
    JoinCodeCreate,
    JoinCodeRedeem,
    JoinCodeResponse,
    JoinCodeUpdate,
    JoinResponse,
)
from app.features.join_codes.service import (
    ExhaustedJoinCodeError,
    ExpiredJoinCodeError,
    InactiveJoinCodeError,
    JoinCodeError,
    UnknownJoinCodeError,
    generate_join_code,
    join_with_code,
)


router = APIRouter(tags=["join-codes"])

JOIN_ERROR_STATUS = {
    UnknownJoinCodeError: status.HTTP_404_NOT_FOUND,
    InactiveJoinCodeError: status.HTTP_410_GONE,
    ExpiredJoinCodeError: status.HTTP_410_GONE,
    ExhaustedJoinCodeError: status.HTTP_409_CONFLICT,
}


async def get_org_join_code(
    code_id: str,
    context: Annotated[ActiveOrgContext, Depends(require_org_admin)],
    db: Annotated[AsyncSession, Depends(get_db)]
) -> JoinCode:
    join_code = await db.get(JoinCode, code_id)
    if join_code is None or join_code.organization_id != context.organization_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Join code not found")
    return join_code


@router.get("/", response_model=list[JoinCodeResponse])
async def list_join_codes(
    context: Annotated[ActiveOrgContext, Depends(require_org_admin)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """List the active organization's join codes, newest first (admin only)."""
    result = await db.execute(
        select(JoinCode)
        .where(JoinCode.organization_id == context.organization_id)
        .order_by(JoinCode.created_at.desc(), JoinCode.id.desc())
    )
    return result.scalars().all()


@router.post("/", response_model=JoinCodeResponse, status_code=status.HTTP_201_CREATED)
async def create_join_code(
    code_data: JoinCodeCreate,
    context: Annotated[ActiveOrgContext, Depends(require_org_admin)],
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Generate a join code for the active organization (admin only)."""
    return await generate_join_code(
        db,
        organization_id=context.organization_id,
        created_by_id=user.id,
        role=code_data.role,
        max_uses=code_data.max_uses,
        expires_minutes=code_data.expires_minutes,
    )


@router.post("/redeem", response_model=JoinResponse)
async def redeem_join_code(
    redeem_data: JoinCodeRedeem,
    service: Annotated[OrganizationService, Depends(get_organization_service)]
):
    """Join an organization with a code; the organization becomes active."""
    try:
        result = await join_with_code(service, redeem_data.code)
    except JoinCodeError as e:
        raise HTTPException(
            status_code=JOIN_ERROR_STATUS.get(type(e), status.HTTP_400_BAD_REQUEST),
            detail=e.detail
        )
    return JoinResponse(
        organization_id=result.organization_id,
        organization_name=result.organization_name,
        role=result.role,
        created=result.created,
        activated=result.activated,
    )


@router.patch("/{code_id}", response_model=JoinCodeResponse)
async def update_join_code(
    update_data: JoinCodeUpdate,
    join_code: Annotated[JoinCode, Depends(get_org_join_code)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Deactivate or reactivate a join code (admin only)."""
    join_code.is_active = update_data.is_active
    await db.commit()
    await db.refresh(join_code)
    return join_code


@router.delete("/{code_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_join_code(
    join_code: Annotated[JoinCode, Depends(get_org_join_code)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Delete a join code (admin only)."""
    await db.delete(join_code)
    await db.commit()

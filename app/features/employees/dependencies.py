"""
Employee-related dependency injection functions.
"""
from typing import Annotated
from fastapi import Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.features.users.models import User
from app.features.users.dependencies import get_current_user
from app.features.organizations.dependencies import require_active_org
from app.features.organizations.resolver import ActiveOrgContext
from app.features.employees.models import Employee, Location, Position


async def get_my_employee_id(
    context: Annotated[ActiveOrgContext, Depends(require_active_org)],
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
) -> str | None:
    """The caller's own employee id in the active organization, if any."""
    result = await db.execute(
        select(Employee.id)
        .where(
            Employee.organization_id == context.organization_id,
            Employee.profile_id == user.id,
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_org_employee(
    db: AsyncSession,
    organization_id: str,
    employee_id: str
) -> Employee:
    """
    Raises:
        HTTPException: 404 if the employee is not in the organization
    """
    employee = await db.get(Employee, employee_id)
    if employee is None or employee.organization_id != organization_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")
    return employee


async def ensure_org_references(
    db: AsyncSession,
    organization_id: str,
    position_id: str | None = None,
    location_id: str | None = None,
) -> None:
    """
    Raises:
        HTTPException: 400 if a referenced position or location belongs elsewhere
    """
    if position_id is not None:
        position = await db.get(Position, position_id)
        if position is None or position.organization_id != organization_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown position")
    if location_id is not None:
        location = await db.get(Location, location_id)
        if location is None or location.organization_id != organization_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown location")

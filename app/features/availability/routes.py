"""
Availability routes.

Any member can read availability. Writing is gated by the
"edit availability for" capability: managers and admins may edit anyone,
other members only their own employee record.
"""
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.features.organizations.dependencies import require_active_org
from app.features.organizations.resolver import ActiveOrgContext
from app.features.employees.dependencies import get_my_employee_id, get_org_employee
from app.features.availability.models import Availability
from app.features.availability.schemas import AvailabilityCreate, AvailabilityResponse


router = APIRouter(tags=["availability"])


def ensure_can_edit(context: ActiveOrgContext, target_employee_id: str, my_employee_id: str | None) -> None:
    if not context.capabilities.can_edit_availability_for(target_employee_id, my_employee_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only edit your own availability"
        )


@router.get("/", response_model=list[AvailabilityResponse])
async def list_availability(
    context: Annotated[ActiveOrgContext, Depends(require_active_org)],
    my_employee_id: Annotated[str | None, Depends(get_my_employee_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    employee_id: str | None = None
):
    """Availability of one employee; defaults to the caller's own record."""
    target = employee_id or my_employee_id
    if target is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="employee_id is required when you have no employee record"
        )
    await get_org_employee(db, context.organization_id, target)

    result = await db.execute(
        select(Availability)
        .where(
            Availability.organization_id == context.organization_id,
            Availability.employee_id == target,
        )
        .order_by(Availability.weekday, Availability.start_time)
    )
    return result.scalars().all()


@router.post("/", response_model=AvailabilityResponse, status_code=status.HTTP_201_CREATED)
async def add_availability(
    availability_data: AvailabilityCreate,
    context: Annotated[ActiveOrgContext, Depends(require_active_org)],
    my_employee_id: Annotated[str | None, Depends(get_my_employee_id)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    ensure_can_edit(context, availability_data.employee_id, my_employee_id)
    await get_org_employee(db, context.organization_id, availability_data.employee_id)

    availability = Availability(organization_id=context.organization_id, **availability_data.model_dump())
    db.add(availability)
    await db.commit()
    await db.refresh(availability)
    return availability


@router.delete("/{availability_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_availability(
    availability_id: str,
    context: Annotated[ActiveOrgContext, Depends(require_active_org)],
    my_employee_id: Annotated[str | None, Depends(get_my_employee_id)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    availability = await db.get(Availability, availability_id)
    if availability is None or availability.organization_id != context.organization_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Availability not found")
    ensure_can_edit(context, availability.employee_id, my_employee_id)

    await db.delete(availability)
    await db.commit()

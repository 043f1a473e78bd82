"""
Employee, position and location routes.
"""
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from app.core.database.engine import get_db
from app.features.organizations.dependencies import require_active_org, require_employee_manager
from app.features.organizations.models import Membership
from app.features.organizations.resolver import ActiveOrgContext
from app.features.employees.models import Employee, Location, Position
from app.features.employees.dependencies import (
    ensure_org_references,
    get_my_employee_id,
    get_org_employee,
)
from app.features.employees.schemas import (
    EmployeeCreate,
    EmployeeResponse,
    EmployeeUpdate,
    LocationCreate,
    LocationResponse,
    PositionCreate,
    PositionResponse,
    PositionUpdate,
)
from app.utils import get_logger


log = get_logger(__name__)
router = APIRouter(tags=["employees"])


# Employees
@router.get("/", response_model=list[EmployeeResponse])
async def list_employees(
    context: Annotated[ActiveOrgContext, Depends(require_active_org)],
    db: Annotated[AsyncSession, Depends(get_db)],
    include_inactive: bool = False
):
    """List employees of the active organization by name."""
    query = select(Employee).where(Employee.organization_id == context.organization_id)
    if not include_inactive:
        query = query.where(Employee.is_active == True)
    result = await db.execute(query.order_by(Employee.full_name))
    return result.scalars().all()


@router.get("/me", response_model=EmployeeResponse)
async def get_my_employee(
    context: Annotated[ActiveOrgContext, Depends(require_active_org)],
    my_employee_id: Annotated[str | None, Depends(get_my_employee_id)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """The caller's own employee record in the active organization."""
    if my_employee_id is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="You have no employee record in this organization"
        )
    return await get_org_employee(db, context.organization_id, my_employee_id)


@router.post("/", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED)
async def create_employee(
    employee_data: EmployeeCreate,
    context: Annotated[ActiveOrgContext, Depends(require_employee_manager)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Add an employee to the active organization (managers and admins)."""
    await ensure_org_references(db, context.organization_id, position_id=employee_data.position_id)

    if employee_data.profile_id is not None:
        result = await db.execute(
            select(Membership.id).where(
                Membership.organization_id == context.organization_id,
                Membership.user_id == employee_data.profile_id,
            )
        )
        if result.scalar_one_or_none() is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Linked user is not a member of this organization"
            )

    employee = Employee(organization_id=context.organization_id, **employee_data.model_dump())
    db.add(employee)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="This user already has an employee record"
        )
    await db.refresh(employee)
    log.info("Created employee %s in %s", employee.id, context.organization_id)
    return employee


# Positions
@router.get("/positions", response_model=list[PositionResponse])
async def list_positions(
    context: Annotated[ActiveOrgContext, Depends(require_active_org)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    result = await db.execute(
        select(Position)
        .where(Position.organization_id == context.organization_id)
        .order_by(Position.name)
    )
    return result.scalars().all()


@router.post("/positions", response_model=PositionResponse, status_code=status.HTTP_201_CREATED)
async def create_position(
    position_data: PositionCreate,
    context: Annotated[ActiveOrgContext, Depends(require_employee_manager)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    position = Position(organization_id=context.organization_id, **position_data.model_dump())
    db.add(position)
    await db.commit()
    await db.refresh(position)
    return position


@router.patch("/positions/{position_id}", response_model=PositionResponse)
async def update_position(
    position_id: str,
    update_data: PositionUpdate,
    context: Annotated[ActiveOrgContext, Depends(require_employee_manager)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    position = await db.get(Position, position_id)
    if position is None or position.organization_id != context.organization_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Position not found")

    for field, value in update_data.model_dump(exclude_unset=True).items():
        setattr(position, field, value)
    await db.commit()
    await db.refresh(position)
    return position


@router.delete("/positions/{position_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_position(
    position_id: str,
    context: Annotated[ActiveOrgContext, Depends(require_employee_manager)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    position = await db.get(Position, position_id)
    if position is None or position.organization_id != context.organization_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Position not found")
    await db.delete(position)
    await db.commit()


# Locations
@router.get("/locations", response_model=list[LocationResponse])
async def list_locations(
    context: Annotated[ActiveOrgContext, Depends(require_active_org)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    result = await db.execute(
        select(Location)
        .where(Location.organization_id == context.organization_id)
        .order_by(Location.name)
    )
    return result.scalars().all()


@router.post("/locations", response_model=LocationResponse, status_code=status.HTTP_201_CREATED)
async def create_location(
    location_data: LocationCreate,
    context: Annotated[ActiveOrgContext, Depends(require_employee_manager)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    location = Location(organization_id=context.organization_id, name=location_data.name.strip())
    db.add(location)
    await db.commit()
    await db.refresh(location)
    return location


@router.delete("/locations/{location_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_location(
    location_id: str,
    context: Annotated[ActiveOrgContext, Depends(require_employee_manager)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    location = await db.get(Location, location_id)
    if location is None or location.organization_id != context.organization_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Location not found")
    await db.delete(location)
    await db.commit()


# Single employee; registered last so "/me", "/positions" and "/locations" win
@router.get("/{employee_id}", response_model=EmployeeResponse)
async def get_employee(
    employee_id: str,
    context: Annotated[ActiveOrgContext, Depends(require_active_org)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    return await get_org_employee(db, context.organization_id, employee_id)


@router.patch("/{employee_id}", response_model=EmployeeResponse)
async def update_employee(
    employee_id: str,
    update_data: EmployeeUpdate,
    context: Annotated[ActiveOrgContext, Depends(require_employee_manager)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Update an employee (managers and admins)."""
    employee = await get_org_employee(db, context.organization_id, employee_id)
    update_dict = update_data.model_dump(exclude_unset=True)
    await ensure_org_references(db, context.organization_id, position_id=update_dict.get("position_id"))

    for field, value in update_dict.items():
        setattr(employee, field, value)
    await db.commit()
    await db.refresh(employee)
    return employee


@router.delete("/{employee_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_employee(
    employee_id: str,
    context: Annotated[ActiveOrgContext, Depends(require_employee_manager)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Remove an employee (managers and admins)."""
    employee = await get_org_employee(db, context.organization_id, employee_id)
    await db.delete(employee)
    await db.commit()
    log.info("Deleted employee %s from %s", employee_id, context.organization_id)

"""
Shift routes: schedule CRUD, publishing and template suggestions.
"""
from typing import Annotated
from datetime import datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.features.users.models import User
from app.features.users.dependencies import get_current_user
from app.features.organizations.dependencies import require_active_org, require_schedule_manager
from app.features.organizations.resolver import ActiveOrgContext
from app.features.employees.dependencies import ensure_org_references, get_org_employee
from app.features.shifts.models import SchedulePeriod, Shift, ShiftStatus
from app.features.shifts.schemas import (
    PublishRequest,
    PublishResponse,
    SchedulePeriodResponse,
    ShiftCreate,
    ShiftResponse,
    ShiftTemplateResponse,
    ShiftUpdate,
    to_utc,
)
from app.features.shifts.templates import (
    TEMPLATE_LOOKBACK_DAYS,
    ShiftSample,
    analyze_shift_patterns,
)
from app.utils import get_logger


log = get_logger(__name__)
router = APIRouter(tags=["shifts"])

RECENT_PERIODS_LIMIT = 20
REQUIRED_SHIFT_FIELDS = {"starts_at", "ends_at", "break_minutes", "status"}


async def get_org_shift(db: AsyncSession, organization_id: str, shift_id: str) -> Shift:
    shift = await db.get(Shift, shift_id)
    if shift is None or shift.organization_id != organization_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shift not found")
    return shift


async def validate_shift_references(
    db: AsyncSession,
    organization_id: str,
    employee_id: str | None,
    position_id: str | None,
    location_id: str | None,
) -> None:
    if employee_id is not None:
        await get_org_employee(db, organization_id, employee_id)
    await ensure_org_references(db, organization_id, position_id=position_id, location_id=location_id)


@router.get("/", response_model=list[ShiftResponse])
async def list_shifts(
    context: Annotated[ActiveOrgContext, Depends(require_active_org)],
    db: Annotated[AsyncSession, Depends(get_db)],
    start: datetime | None = None,
    end: datetime | None = None,
    employee_id: str | None = None,
    shift_status: ShiftStatus | None = None
):
    """List shifts starting in [start, end) for the active organization."""
    query = select(Shift).where(Shift.organization_id == context.organization_id)
    if start is not None:
        query = query.where(Shift.starts_at >= to_utc(start))
    if end is not None:
        query = query.where(Shift.starts_at < to_utc(end))
    if employee_id is not None:
        query = query.where(Shift.employee_id == employee_id)
    if shift_status is not None:
        query = query.where(Shift.status == shift_status)

    result = await db.execute(query.order_by(Shift.starts_at, Shift.id))
    return result.scalars().all()


@router.post("/", response_model=ShiftResponse, status_code=status.HTTP_201_CREATED)
async def create_shift(
    shift_data: ShiftCreate,
    context: Annotated[ActiveOrgContext, Depends(require_schedule_manager)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Create a shift (managers and admins)."""
    await validate_shift_references(
        db,
        context.organization_id,
        shift_data.employee_id,
        shift_data.position_id,
        shift_data.location_id,
    )
    shift = Shift(organization_id=context.organization_id, **shift_data.model_dump())
    db.add(shift)
    await db.commit()
    await db.refresh(shift)
    return shift


@router.get("/periods", response_model=list[SchedulePeriodResponse])
async def list_schedule_periods(
    context: Annotated[ActiveOrgContext, Depends(require_active_org)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """The most recently published schedule periods."""
    result = await db.execute(
        select(SchedulePeriod)
        .where(SchedulePeriod.organization_id == context.organization_id)
        .order_by(SchedulePeriod.published_at.desc(), SchedulePeriod.id.desc())
        .limit(RECENT_PERIODS_LIMIT)
    )
    return result.scalars().all()


@router.post("/publish", response_model=PublishResponse, status_code=status.HTTP_201_CREATED)
async def publish_schedule(
    publish_data: PublishRequest,
    context: Annotated[ActiveOrgContext, Depends(require_schedule_manager)],
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """
    Publish every non-cancelled shift starting in [start_date, end_date) and
    record the schedule period (managers and admins).
    """
    period = SchedulePeriod(
        organization_id=context.organization_id,
        name=publish_data.name.strip(),
        start_date=publish_data.start_date,
        end_date=publish_data.end_date,
        status="published",
        published_at=datetime.now(timezone.utc),
        created_by_id=user.id,
    )
    db.add(period)
    await db.flush()

    range_start = datetime.combine(publish_data.start_date, time.min, tzinfo=timezone.utc)
    range_end = datetime.combine(publish_data.end_date, time.min, tzinfo=timezone.utc)
    result = await db.execute(
        update(Shift)
        .where(
            Shift.organization_id == context.organization_id,
            Shift.starts_at >= range_start,
            Shift.starts_at < range_end,
            Shift.status != ShiftStatus.CANCELLED,
        )
        .values(status=ShiftStatus.PUBLISHED, schedule_period_id=period.id)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    await db.refresh(period)

    log.info("Published %s shifts in period %s for %s", result.rowcount, period.id, context.organization_id)
    return PublishResponse(
        period=SchedulePeriodResponse.model_validate(period),
        shifts_published=result.rowcount,
    )


@router.get("/templates", response_model=list[ShiftTemplateResponse])
async def list_shift_templates(
    context: Annotated[ActiveOrgContext, Depends(require_active_org)],
    db: Annotated[AsyncSession, Depends(get_db)],
    tz: str = "UTC"
):
    """
    The most frequent shift patterns of the last 90 days.

    Times are grouped and named in `tz`, an IANA zone such as
    "America/Chicago"; shifts are stored in UTC.
    """
    try:
        zone = ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown time zone: {tz}")

    since = datetime.now(timezone.utc) - timedelta(days=TEMPLATE_LOOKBACK_DAYS)
    result = await db.execute(
        select(Shift)
        .where(
            Shift.organization_id == context.organization_id,
            Shift.starts_at >= since,
            Shift.status != ShiftStatus.CANCELLED,
        )
        .order_by(Shift.starts_at)
    )
    samples = [
        ShiftSample(
            starts_at=shift.starts_at,
            ends_at=shift.ends_at,
            break_minutes=shift.break_minutes,
            position_id=shift.position_id,
            position_name=shift.position.name if shift.position else None,
            location_id=shift.location_id,
            location_name=shift.location.name if shift.location else None,
        )
        for shift in result.scalars().all()
    ]
    return analyze_shift_patterns(samples, tz=zone)


@router.patch("/{shift_id}", response_model=ShiftResponse)
async def update_shift(
    shift_id: str,
    update_data: ShiftUpdate,
    context: Annotated[ActiveOrgContext, Depends(require_schedule_manager)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Update a shift (managers and admins)."""
    shift = await get_org_shift(db, context.organization_id, shift_id)
    update_dict = update_data.model_dump(exclude_unset=True)

    starts_at = to_utc(update_dict.get("starts_at") or shift.starts_at)
    ends_at = to_utc(update_dict.get("ends_at") or shift.ends_at)
    if starts_at >= ends_at:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Shift start time must be before end time"
        )

    await validate_shift_references(
        db,
        context.organization_id,
        update_dict.get("employee_id"),
        update_dict.get("position_id"),
        update_dict.get("location_id"),
    )

    for field, value in update_dict.items():
        if value is None and field in REQUIRED_SHIFT_FIELDS:
            continue
        setattr(shift, field, value)
    await db.commit()
    await db.refresh(shift)
    return shift


@router.delete("/{shift_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_shift(
    shift_id: str,
    context: Annotated[ActiveOrgContext, Depends(require_schedule_manager)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Delete a shift (managers and admins)."""
    shift = await get_org_shift(db, context.organization_id, shift_id)
    await db.delete(shift)
    await db.commit()

"""
Time-off routes.
"""
from typing import Annotated
from datetime import date, datetime, timezone
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.features.users.models import User
from app.features.users.dependencies import get_current_user
from app.features.organizations.dependencies import (
    require_active_org,
    require_time_off_approver,
    require_time_off_submitter,
)
from app.features.organizations.resolver import ActiveOrgContext
from app.features.employees.dependencies import get_my_employee_id, get_org_employee
from app.features.time_off.models import TimeOffRequest, TimeOffStatus
from app.features.time_off.schemas import (
    TimeOffCreate,
    TimeOffResponse,
    TimeOffReview,
    TimeOffSummary,
)
from app.utils import get_logger


log = get_logger(__name__)
router = APIRouter(tags=["time-off"])


def visible_requests(context: ActiveOrgContext, my_employee_id: str | None) -> Select | None:
    """
    Base query for the requests the caller may see: everything for
    approvers, only their own otherwise. None when there is nothing to see.
    """
    query = select(TimeOffRequest).where(TimeOffRequest.organization_id == context.organization_id)
    if context.capabilities.can_approve_time_off:
        return query
    if my_employee_id is None:
        return None
    return query.where(TimeOffRequest.employee_id == my_employee_id)


@router.get("/", response_model=list[TimeOffResponse])
async def list_time_off(
    context: Annotated[ActiveOrgContext, Depends(require_active_org)],
    my_employee_id: Annotated[str | None, Depends(get_my_employee_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    request_status: TimeOffStatus | None = None,
    employee_id: str | None = None
):
    """List time-off requests, newest first."""
    query = visible_requests(context, my_employee_id)
    if query is None:
        return []
    if request_status is not None:
        query = query.where(TimeOffRequest.status == request_status)
    if employee_id is not None:
        query = query.where(TimeOffRequest.employee_id == employee_id)

    result = await db.execute(query.order_by(TimeOffRequest.created_at.desc(), TimeOffRequest.id.desc()))
    return result.scalars().all()


@router.get("/summary", response_model=TimeOffSummary)
async def time_off_summary(
    context: Annotated[ActiveOrgContext, Depends(require_active_org)],
    my_employee_id: Annotated[str | None, Depends(get_my_employee_id)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Counts by status, plus requests starting this month."""
    query = visible_requests(context, my_employee_id)
    if query is None:
        return TimeOffSummary()

    visible = query.subquery()
    result = await db.execute(
        select(visible.c.status, func.count()).group_by(visible.c.status)
    )
    counts = {TimeOffStatus(s): n for s, n in result.all()}

    today = date.today()
    month_start = today.replace(day=1)
    next_month = (month_start.replace(year=month_start.year + 1, month=1)
                  if month_start.month == 12 else month_start.replace(month=month_start.month + 1))
    this_month = await db.scalar(
        select(func.count()).select_from(visible).where(
            visible.c.starts_at >= month_start,
            visible.c.starts_at < next_month,
        )
    )

    return TimeOffSummary(
        total=sum(counts.values()),
        pending=counts.get(TimeOffStatus.PENDING, 0),
        approved=counts.get(TimeOffStatus.APPROVED, 0),
        denied=counts.get(TimeOffStatus.DENIED, 0),
        this_month=this_month or 0,
    )


@router.post("/", response_model=TimeOffResponse, status_code=status.HTTP_201_CREATED)
async def submit_time_off(
    request_data: TimeOffCreate,
    context: Annotated[ActiveOrgContext, Depends(require_time_off_submitter)],
    my_employee_id: Annotated[str | None, Depends(get_my_employee_id)],
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """
    Submit a pending time-off request. Managers may submit on behalf of any
    employee; other members only for themselves.
    """
    employee_id = request_data.employee_id or my_employee_id
    if employee_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You have no employee record in this organization"
        )
    if employee_id != my_employee_id and not context.capabilities.can_manage_employees:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only request time off for yourself"
        )
    await get_org_employee(db, context.organization_id, employee_id)

    time_off = TimeOffRequest(
        organization_id=context.organization_id,
        employee_id=employee_id,
        starts_at=request_data.starts_at,
        ends_at=request_data.ends_at,
        type=request_data.type,
        reason=(request_data.reason or "").strip() or None,
        status=TimeOffStatus.PENDING,
        created_by_id=user.id,
    )
    db.add(time_off)
    await db.commit()
    await db.refresh(time_off)
    return time_off


@router.patch("/{request_id}", response_model=TimeOffResponse)
async def review_time_off(
    request_id: str,
    review: TimeOffReview,
    context: Annotated[ActiveOrgContext, Depends(require_time_off_approver)],
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Approve or deny a pending request (managers and admins)."""
    if review.status is TimeOffStatus.PENDING:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Status must be approved or denied"
        )

    time_off = await db.get(TimeOffRequest, request_id)
    if time_off is None or time_off.organization_id != context.organization_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Time-off request not found")
    if time_off.status is not TimeOffStatus.PENDING:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Request has already been {time_off.status.value}"
        )

    time_off.status = review.status
    time_off.reviewed_by_id = user.id
    time_off.reviewed_at = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(time_off)
    log.info("Time-off request %s %s by %s", request_id, review.status.value, user.id)
    return time_off

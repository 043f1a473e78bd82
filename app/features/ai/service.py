"""
Builds what the language model is shown: the schedule snapshot, the
dashboard and report metrics and the chat context.
"""
from datetime import date, datetime, time, timedelta, timezone
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.employees.models import Employee, Position
from app.features.availability.models import Availability
from app.features.time_off.models import TimeOffRequest, TimeOffStatus
from app.features.shifts.models import Shift, ShiftStatus
from app.features.ai.prompts import EmployeeSnapshot, ScheduleSnapshot, ShiftSnapshot
from app.features.ai.insights import (
    DashboardMetrics,
    ReportMetrics,
    ShiftFact,
    dashboard_metrics,
    employee_workloads,
    report_metrics,
)
from app.features.ai.chat import (
    RECENT_DAYS,
    UPCOMING_DAYS,
    ChatContext,
    PendingTimeOff,
    UpcomingShift,
)


async def load_schedule_snapshot(db: AsyncSession, organization_id: str, start: date, end: date) -> ScheduleSnapshot:
    """
    Active employees with their position, weekly availability and the
    non-denied time off overlapping [start, end], plus every shift starting
    within those days.
    """
    result = await db.execute(
        select(Employee, Position.name)
        .outerjoin(Position, Position.id == Employee.position_id)
        .where(Employee.organization_id == organization_id, Employee.is_active == True)
        .order_by(Employee.full_name)
    )
    employees = {
        employee.id: EmployeeSnapshot(id=employee.id, name=employee.full_name, position=position_name)
        for employee, position_name in result.all()
    }

    availability = await db.execute(
        select(Availability)
        .where(Availability.organization_id == organization_id)
        .order_by(Availability.weekday, Availability.start_time)
    )
    for slot in availability.scalars().all():
        if slot.employee_id in employees:
            employees[slot.employee_id].availability.append(
                (slot.weekday, slot.start_time.strftime("%H:%M"), slot.end_time.strftime("%H:%M"))
            )

    time_off = await db.execute(
        select(TimeOffRequest)
        .where(
            TimeOffRequest.organization_id == organization_id,
            TimeOffRequest.status != TimeOffStatus.DENIED,
            TimeOffRequest.starts_at <= end,
            TimeOffRequest.ends_at >= start,
        )
        .order_by(TimeOffRequest.starts_at)
    )
    for request in time_off.scalars().all():
        if request.employee_id in employees:
            employees[request.employee_id].time_off.append(
                (request.starts_at.isoformat(), request.ends_at.isoformat(), request.type.value)
            )

    range_start = datetime.combine(start, time.min, tzinfo=timezone.utc)
    range_end = datetime.combine(end + timedelta(days=1), time.min, tzinfo=timezone.utc)
    shifts = await db.execute(
        select(Shift)
        .where(
            Shift.organization_id == organization_id,
            Shift.starts_at >= range_start,
            Shift.starts_at < range_end,
        )
        .order_by(Shift.starts_at, Shift.id)
    )
    shift_snapshots = [
        ShiftSnapshot(
            id=shift.id,
            employee_id=shift.employee_id,
            starts_at=shift.starts_at.isoformat(),
            ends_at=shift.ends_at.isoformat(),
            status=shift.status.value,
            position=shift.position.name if shift.position else None,
            location=shift.location.name if shift.location else None,
        )
        for shift in shifts.scalars().all()
    ]

    return ScheduleSnapshot(start=start, end=end, employees=list(employees.values()), shifts=shift_snapshots)


def utc_midnight(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def shift_hours(starts_at: datetime, ends_at: datetime, break_minutes: int) -> float:
    return max(0.0, (ends_at - starts_at).total_seconds() / 3600 - (break_minutes or 0) / 60)


async def load_shift_facts(db: AsyncSession, organization_id: str, start: datetime, end: datetime) -> list[ShiftFact]:
    """Every shift starting in [start, end), cancelled ones included."""
    result = await db.execute(
        select(Shift.employee_id, Shift.starts_at, Shift.ends_at, Shift.break_minutes, Shift.status)
        .where(
            Shift.organization_id == organization_id,
            Shift.starts_at >= start,
            Shift.starts_at < end,
        )
    )
    return [
        ShiftFact(
            employee_id=employee_id,
            hours=shift_hours(starts_at, ends_at, break_minutes),
            status=ShiftStatus(status).value,
        )
        for employee_id, starts_at, ends_at, break_minutes, status in result.all()
    ]


async def count_shifts(db: AsyncSession, organization_id: str, start: datetime, end: datetime) -> int:
    """Non-cancelled shifts starting in [start, end)."""
    count = await db.scalar(
        select(func.count()).select_from(Shift).where(
            Shift.organization_id == organization_id,
            Shift.status != ShiftStatus.CANCELLED,
            Shift.starts_at >= start,
            Shift.starts_at < end,
        )
    )
    return count or 0


async def count_pending_time_off(db: AsyncSession, organization_id: str) -> int:
    count = await db.scalar(
        select(func.count()).select_from(TimeOffRequest).where(
            TimeOffRequest.organization_id == organization_id,
            TimeOffRequest.status == TimeOffStatus.PENDING,
        )
    )
    return count or 0


async def load_employee_names(db: AsyncSession, organization_id: str) -> dict[str, tuple[str, str | None]]:
    """Employee id to (name, position) for every employee of the organization."""
    result = await db.execute(
        select(Employee.id, Employee.full_name, Position.name)
        .outerjoin(Position, Position.id == Employee.position_id)
        .where(Employee.organization_id == organization_id)
    )
    return {employee_id: (name, position) for employee_id, name, position in result.all()}


async def load_dashboard_metrics(db: AsyncSession, organization_id: str, now: datetime) -> DashboardMetrics:
    """KPIs of the week containing `now` (weeks start on Monday, UTC)."""
    today = now.astimezone(timezone.utc).date()
    week_start = today - timedelta(days=today.weekday())

    this_week = await load_shift_facts(
        db, organization_id, utc_midnight(week_start), utc_midnight(week_start + timedelta(days=7))
    )
    last_week = await load_shift_facts(
        db, organization_id, utc_midnight(week_start - timedelta(days=7)), utc_midnight(week_start)
    )
    total_employees = await db.scalar(
        select(func.count()).select_from(Employee).where(
            Employee.organization_id == organization_id,
            Employee.is_active == True,
        )
    )

    return dashboard_metrics(
        week_start,
        this_week,
        last_week,
        total_employees=total_employees or 0,
        today_shifts_count=await count_shifts(
            db, organization_id, utc_midnight(today), utc_midnight(today + timedelta(days=1))
        ),
        upcoming_shifts_count=await count_shifts(db, organization_id, now, now + timedelta(days=7)),
        pending_time_off_count=await count_pending_time_off(db, organization_id),
    )


async def load_report_metrics(db: AsyncSession, organization_id: str, start: date, end: date) -> ReportMetrics:
    """KPIs of the shifts starting within the days [start, end]."""
    shifts = await load_shift_facts(
        db, organization_id, utc_midnight(start), utc_midnight(end + timedelta(days=1))
    )

    approved = await db.execute(
        select(TimeOffRequest.starts_at, TimeOffRequest.ends_at).where(
            TimeOffRequest.organization_id == organization_id,
            TimeOffRequest.status == TimeOffStatus.APPROVED,
            TimeOffRequest.starts_at <= end,
            TimeOffRequest.ends_at >= start,
        )
    )
    # Inclusive days of each request that fall inside the range
    approved_days = sum(
        (min(ends_at, end) - max(starts_at, start)).days + 1
        for starts_at, ends_at in approved.all()
    )

    return report_metrics(
        start,
        end,
        shifts,
        await load_employee_names(db, organization_id),
        approved_time_off_days=approved_days,
        pending_time_off_requests=await count_pending_time_off(db, organization_id),
    )


async def load_chat_context(db: AsyncSession, organization_id: str, now: datetime) -> ChatContext:
    """The organization summary the chat assistant answers from."""
    names = await load_employee_names(db, organization_id)
    active = await db.execute(
        select(Employee.full_name, Position.name)
        .outerjoin(Position, Position.id == Employee.position_id)
        .where(Employee.organization_id == organization_id, Employee.is_active == True)
        .order_by(Employee.full_name)
    )

    recent = await load_shift_facts(db, organization_id, now - timedelta(days=RECENT_DAYS), now)
    workloads = employee_workloads([s for s in recent if s.status != ShiftStatus.CANCELLED.value], names)
    workloads.sort(key=lambda w: (w.hours, w.name))  # fewest hours first

    upcoming = await db.execute(
        select(Shift)
        .where(
            Shift.organization_id == organization_id,
            Shift.status != ShiftStatus.CANCELLED,
            Shift.starts_at >= now,
            Shift.starts_at < now + timedelta(days=UPCOMING_DAYS),
        )
        .order_by(Shift.starts_at, Shift.id)
    )
    pending = await db.execute(
        select(TimeOffRequest)
        .where(
            TimeOffRequest.organization_id == organization_id,
            TimeOffRequest.status == TimeOffStatus.PENDING,
            TimeOffRequest.ends_at >= now.date(),
        )
        .order_by(TimeOffRequest.starts_at)
    )

    return ChatContext(
        employees=[(name, position) for name, position in active.all()],
        recent_shifts=len(recent),
        completed_shifts=sum(1 for s in recent if s.status == ShiftStatus.COMPLETED.value),
        cancelled_shifts=sum(1 for s in recent if s.status == ShiftStatus.CANCELLED.value),
        workloads=workloads,
        upcoming=[
            UpcomingShift(
                starts_at=shift.starts_at,
                employee=names[shift.employee_id][0] if shift.employee_id in names else None,
                position=shift.position.name if shift.position else None,
            )
            for shift in upcoming.scalars().all()
        ],
        pending_time_off=[
            PendingTimeOff(
                employee=names.get(request.employee_id, ("Unknown", None))[0],
                starts_at=request.starts_at,
                ends_at=request.ends_at,
                type=request.type.value,
            )
            for request in pending.scalars().all()
        ],
    )

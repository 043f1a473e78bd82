"""
Prompt construction for the AI schedule assistant.

The assistant receives a snapshot of the schedule and answers in free
text; nothing it says is applied automatically.
"""
import json
from dataclasses import dataclass, field
from datetime import date
from enum import Enum


MAX_LISTED_SHIFTS = 20


class ScheduleAction(str, Enum):
    SUGGEST = "suggest"
    OPTIMIZE = "optimize"
    ANALYZE_COVERAGE = "analyze-coverage"


@dataclass
class EmployeeSnapshot:
    id: str
    name: str
    position: str | None = None
    availability: list[tuple[int, str, str]] = field(default_factory=list)  # (weekday, start, end)
    time_off: list[tuple[str, str, str]] = field(default_factory=list)  # (start, end, type)


@dataclass
class ShiftSnapshot:
    id: str
    employee_id: str | None
    starts_at: str
    ends_at: str
    status: str
    position: str | None = None
    location: str | None = None


@dataclass
class ScheduleSnapshot:
    start: date
    end: date
    employees: list[EmployeeSnapshot] = field(default_factory=list)
    shifts: list[ShiftSnapshot] = field(default_factory=list)

    @property
    def open_shifts(self) -> list[ShiftSnapshot]:
        return [s for s in self.shifts if s.employee_id is None]


SUGGEST_SYSTEM = """You are an AI assistant specialized in employee scheduling and workforce optimization.
You help managers create efficient, fair, and compliant work schedules.

Analyze the provided schedule data and user request to provide actionable suggestions.

Key considerations:
- Employee availability and time-off requests
- Fair distribution of shifts
- Avoiding scheduling conflicts
- Meeting coverage requirements
- Respecting break times and labor regulations
- Position and location assignments

Provide clear, specific recommendations that can be implemented."""

OPTIMIZE_SYSTEM = """You are an AI scheduling optimizer. Analyze the schedule and provide specific optimization recommendations.

Focus on:
1. Filling open shifts with qualified available employees
2. Identifying overscheduled or underscheduled employees
3. Suggesting shift swaps to improve work-life balance
4. Detecting potential conflicts or issues
5. Recommending coverage improvements

Provide actionable suggestions in a clear, numbered format."""

COVERAGE_SYSTEM = """You are an AI workforce coverage analyst. Identify days and time ranges with too few
scheduled employees, open shifts at risk of going unfilled, and employees on time off during busy periods.
Answer with a short prioritized list of gaps and how to close each one."""


def describe_schedule(snapshot: ScheduleSnapshot) -> str:
    """Readable summary of the snapshot used as the user message context."""
    lines = [
        "Current Schedule Data:",
        f"- Date Range: {snapshot.start.isoformat()} to {snapshot.end.isoformat()}",
        f"- Total Employees: {len(snapshot.employees)}",
        f"- Total Shifts: {len(snapshot.shifts)}",
        f"- Open Shifts: {len(snapshot.open_shifts)}",
        "",
        "Employees:",
    ]
    for employee in snapshot.employees:
        availability = ", ".join(f"Day {d}: {s}-{e}" for d, s, e in employee.availability) or "Not set"
        time_off = ", ".join(f"{s} to {e} ({t})" for s, e, t in employee.time_off) or "None"
        lines.append(f"  - {employee.name} ({employee.position or 'No position'})")
        lines.append(f"    Availability: {availability}")
        lines.append(f"    Time Off: {time_off}")

    lines += ["", "Current Shifts:"]
    for shift in snapshot.shifts[:MAX_LISTED_SHIFTS]:
        lines.append(f"  - {shift.starts_at} to {shift.ends_at}")
        lines.append(f"    Employee: {shift.employee_id or 'OPEN'}")
        lines.append(f"    Position: {shift.position or 'N/A'}")
        lines.append(f"    Location: {shift.location or 'N/A'}")
        lines.append(f"    Status: {shift.status}")
    if len(snapshot.shifts) > MAX_LISTED_SHIFTS:
        lines.append(f"... and {len(snapshot.shifts) - MAX_LISTED_SHIFTS} more shifts")
    return "\n".join(lines)


def optimization_payload(snapshot: ScheduleSnapshot) -> str:
    return json.dumps({
        "employees": [
            {
                "id": e.id,
                "name": e.name,
                "position": e.position,
                "availabilityCount": len(e.availability),
                "timeOffCount": len(e.time_off),
            }
            for e in snapshot.employees
        ],
        "totalShifts": len(snapshot.shifts),
        "openShifts": len(snapshot.open_shifts),
        "assignedShifts": len(snapshot.shifts) - len(snapshot.open_shifts),
        "shiftsPerEmployee": [
            {"name": e.name, "count": sum(1 for s in snapshot.shifts if s.employee_id == e.id)}
            for e in snapshot.employees
        ],
    }, indent=2)


def build_prompt(action: ScheduleAction, snapshot: ScheduleSnapshot, user_prompt: str | None = None) -> tuple[str, str]:
    """Return (system, user) messages for an action."""
    if action is ScheduleAction.SUGGEST:
        if not user_prompt:
            raise ValueError("Prompt is required for suggestions")
        return SUGGEST_SYSTEM, f"{describe_schedule(snapshot)}\n\nUser Request: {user_prompt}"
    if action is ScheduleAction.OPTIMIZE:
        return OPTIMIZE_SYSTEM, optimization_payload(snapshot)
    return COVERAGE_SYSTEM, describe_schedule(snapshot)

"""
Context for the workforce chat assistant.

The assistant answers questions about the active organization from a
summary of its employees, the last 30 days of shifts, the next 14 days of
shifts and pending time off.
"""
from dataclasses import dataclass, field
from datetime import date, datetime

from app.features.ai.insights import EmployeeWorkload


RECENT_DAYS = 30
UPCOMING_DAYS = 14
MAX_CHAT_HISTORY = 10
CHAT_MAX_TOKENS = 1000

MAX_LISTED_EMPLOYEES = 20
MAX_LISTED_WORKLOADS = 10
MAX_LISTED_UPCOMING = 15
MAX_LISTED_TIME_OFF = 10


@dataclass
class UpcomingShift:
    starts_at: datetime
    employee: str | None
    position: str | None = None


@dataclass
class PendingTimeOff:
    employee: str
    starts_at: date
    ends_at: date
    type: str


@dataclass
class ChatContext:
    employees: list[tuple[str, str | None]] = field(default_factory=list)  # (name, position)
    recent_shifts: int = 0
    completed_shifts: int = 0
    cancelled_shifts: int = 0
    workloads: list[EmployeeWorkload] = field(default_factory=list)  # fewest hours first
    upcoming: list[UpcomingShift] = field(default_factory=list)
    pending_time_off: list[PendingTimeOff] = field(default_factory=list)

    @property
    def open_upcoming(self) -> int:
        return sum(1 for shift in self.upcoming if shift.employee is None)


CHAT_SYSTEM = """You are an AI assistant for FirstShift, a workforce scheduling application.
You help managers with scheduling, employee management, performance analysis and questions about their workforce.

You have access to real data from the user's organization. Use it to give accurate, helpful answers.

Rules:
- Only reference data from the provided context
- Never make up employee names or statistics
- If the data is not enough to answer, say so
- Be concise and actionable, with bullet points where they help
- Refer to employees by the names in the data"""


def build_chat_system(context: ChatContext) -> str:
    """System message: the assistant's rules plus the organization summary."""
    lines = [
        CHAT_SYSTEM,
        "",
        "Current Organization Data:",
        f"- Total Employees: {len(context.employees)}",
        f"- Recent Shifts (last {RECENT_DAYS} days): {context.recent_shifts}",
        f"- Upcoming Shifts (next {UPCOMING_DAYS} days): {len(context.upcoming)}",
        f"- Open Upcoming Shifts: {context.open_upcoming}",
        f"- Pending Time-Off Requests: {len(context.pending_time_off)}",
        f"- Completed Shifts: {context.completed_shifts}",
        f"- Cancelled Shifts: {context.cancelled_shifts}",
        "",
        "Employees:",
    ]
    for name, position in context.employees[:MAX_LISTED_EMPLOYEES]:
        lines.append(f"- {name} ({position or 'No position'})")
    if len(context.employees) > MAX_LISTED_EMPLOYEES:
        lines.append(f"... and {len(context.employees) - MAX_LISTED_EMPLOYEES} more employees")

    lines += ["", f"Employee Hours (last {RECENT_DAYS} days):"]
    for rank, workload in enumerate(context.workloads[:MAX_LISTED_WORKLOADS], start=1):
        lines.append(
            f"{rank}. {workload.name} ({workload.position or 'N/A'}): "
            f"{workload.hours:.1f} hours across {workload.shifts} shifts"
        )

    lines += ["", "Upcoming Schedule:"]
    for shift in context.upcoming[:MAX_LISTED_UPCOMING]:
        lines.append(
            f"- {shift.starts_at.strftime('%Y-%m-%d %H:%M')} - {shift.employee or 'OPEN'} "
            f"({shift.position or 'N/A'})"
        )

    lines += ["", "Pending Time-Off:"]
    for request in context.pending_time_off[:MAX_LISTED_TIME_OFF]:
        lines.append(
            f"- {request.employee}: {request.starts_at.isoformat()} to {request.ends_at.isoformat()} ({request.type})"
        )
    if not context.pending_time_off:
        lines.append("None")
    return "\n".join(lines)

"""
Workforce metrics and the prompts that ask the model about them.

Dashboard metrics describe the current week (Monday to Sunday, UTC) and
compare it with the previous one; report metrics cover any date range.
Hours are shift length minus the unpaid break.
"""
import math
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from enum import Enum


DASHBOARD_MAX_TOKENS = 300
ALERTS_MAX_TOKENS = 250
REPORT_MAX_TOKENS = 1000
MAX_REPORTED_EMPLOYEES = 5


class DashboardAction(str, Enum):
    INSIGHTS = "insights"
    RECOMMENDATIONS = "recommendations"
    ALERTS = "alerts"


class ReportAction(str, Enum):
    ANALYZE = "analyze"
    RECOMMENDATIONS = "recommendations"
    INSIGHTS = "insights"
    FORECAST = "forecast"


@dataclass(frozen=True)
class ShiftFact:
    employee_id: str | None
    hours: float
    status: str


@dataclass
class DashboardMetrics:
    week_start: date
    total_shifts: int = 0
    assigned_shifts: int = 0
    open_shifts: int = 0
    total_hours: float = 0.0
    coverage_rate: int = 0
    active_employees: int = 0
    total_employees: int = 0
    utilization_rate: int = 0
    avg_hours_per_shift: float = 0.0
    avg_shifts_per_employee: float = 0.0
    hours_trend: float = 0.0
    shifts_trend: float = 0.0
    today_shifts_count: int = 0
    upcoming_shifts_count: int = 0
    pending_time_off_count: int = 0


@dataclass
class EmployeeWorkload:
    name: str
    position: str | None
    hours: float
    shifts: int


@dataclass
class ReportMetrics:
    start: date
    end: date
    total_hours: float = 0.0
    total_shifts: int = 0
    completed_shifts: int = 0
    cancelled_shifts: int = 0
    completion_rate: int = 0
    cancellation_rate: int = 0
    avg_hours_per_shift: float = 0.0
    avg_hours_per_employee: float = 0.0
    efficiency: int = 0
    approved_time_off_days: int = 0
    pending_time_off_requests: int = 0
    employees: list[EmployeeWorkload] = field(default_factory=list)

    @property
    def weeks(self) -> int:
        return max(1, math.ceil(((self.end - self.start).days + 1) / 7))


def percent(part: float, whole: float) -> int:
    return round(part / whole * 100) if whole else 0


def percent_change(current: float, previous: float) -> float:
    """Change against the previous value in percent; 0 without a baseline."""
    return round((current - previous) / previous * 100, 1) if previous else 0.0


def dashboard_metrics(
    week_start: date,
    this_week: list[ShiftFact],
    last_week: list[ShiftFact],
    total_employees: int,
    today_shifts_count: int = 0,
    upcoming_shifts_count: int = 0,
    pending_time_off_count: int = 0,
) -> DashboardMetrics:
    """Week KPIs; cancelled shifts are left out of every count."""
    shifts = [s for s in this_week if s.status != "cancelled"]
    previous = [s for s in last_week if s.status != "cancelled"]

    assigned = [s for s in shifts if s.employee_id]
    active_employees = len({s.employee_id for s in assigned})
    total_hours = sum(s.hours for s in shifts)
    previous_hours = sum(s.hours for s in previous)

    return DashboardMetrics(
        week_start=week_start,
        total_shifts=len(shifts),
        assigned_shifts=len(assigned),
        open_shifts=len(shifts) - len(assigned),
        total_hours=round(total_hours, 1),
        coverage_rate=percent(len(assigned), len(shifts)),
        active_employees=active_employees,
        total_employees=total_employees,
        utilization_rate=percent(active_employees, total_employees),
        avg_hours_per_shift=round(total_hours / len(shifts), 1) if shifts else 0.0,
        avg_shifts_per_employee=round(len(assigned) / active_employees, 1) if active_employees else 0.0,
        hours_trend=percent_change(total_hours, previous_hours),
        shifts_trend=percent_change(len(shifts), len(previous)),
        today_shifts_count=today_shifts_count,
        upcoming_shifts_count=upcoming_shifts_count,
        pending_time_off_count=pending_time_off_count,
    )


def employee_workloads(
    shifts: list[ShiftFact],
    employees: dict[str, tuple[str, str | None]],
) -> list[EmployeeWorkload]:
    """
    Hours and shift count per assigned employee, most hours first.

    `employees` maps employee id to (name, position).
    """
    hours_by_employee: dict[str, float] = defaultdict(float)
    shifts_by_employee: dict[str, int] = defaultdict(int)
    for shift in shifts:
        if shift.employee_id:
            hours_by_employee[shift.employee_id] += shift.hours
            shifts_by_employee[shift.employee_id] += 1

    workloads = []
    for employee_id, hours in hours_by_employee.items():
        name, position = employees.get(employee_id, ("Unknown", None))
        workloads.append(EmployeeWorkload(
            name=name,
            position=position,
            hours=round(hours, 1),
            shifts=shifts_by_employee[employee_id],
        ))
    workloads.sort(key=lambda w: (-w.hours, w.name))
    return workloads


def report_metrics(
    start: date,
    end: date,
    shifts: list[ShiftFact],
    employees: dict[str, tuple[str, str | None]],
    approved_time_off_days: int = 0,
    pending_time_off_requests: int = 0,
) -> ReportMetrics:
    """
    KPIs of every shift in a range.

    Efficiency is the share of scheduled (not cancelled) hours that were
    completed.
    """
    completed = [s for s in shifts if s.status == "completed"]
    cancelled = [s for s in shifts if s.status == "cancelled"]
    scheduled = [s for s in shifts if s.status != "cancelled"]
    total_hours = sum(s.hours for s in scheduled)
    assigned_hours = sum(s.hours for s in scheduled if s.employee_id)
    workloads = employee_workloads(scheduled, employees)

    return ReportMetrics(
        start=start,
        end=end,
        total_hours=round(total_hours, 1),
        total_shifts=len(shifts),
        completed_shifts=len(completed),
        cancelled_shifts=len(cancelled),
        completion_rate=percent(len(completed), len(shifts)),
        cancellation_rate=percent(len(cancelled), len(shifts)),
        avg_hours_per_shift=round(total_hours / len(scheduled), 1) if scheduled else 0.0,
        avg_hours_per_employee=round(assigned_hours / len(workloads), 1) if workloads else 0.0,
        efficiency=percent(sum(s.hours for s in completed), total_hours),
        approved_time_off_days=approved_time_off_days,
        pending_time_off_requests=pending_time_off_requests,
        employees=workloads,
    )


def signed(value: float) -> str:
    return f"+{value:g}%" if value > 0 else f"{value:g}%"


DASHBOARD_INSIGHTS_SYSTEM = """You are an AI workforce analytics assistant. Provide brief, actionable insights for a scheduling dashboard.

Your response should be:
- Concise (2-3 bullet points max)
- Focused on the most important findings
- Actionable and specific
- Professional but friendly in tone"""

DASHBOARD_RECOMMENDATIONS_SYSTEM = """You are an AI workforce optimization assistant. Provide brief, prioritized recommendations for a scheduling dashboard.

Your response should be:
- Concise (2-3 recommendations max)
- Prioritized by impact
- Actionable with clear next steps"""

DASHBOARD_ALERTS_SYSTEM = """You are an AI workforce monitoring assistant. Identify urgent issues or important alerts for a scheduling dashboard.

Your response should be:
- Brief (2-3 alerts max)
- Focused on urgent or time-sensitive issues
- Labelled with a severity level (Critical, Warning, Good)"""

ALERT_THRESHOLDS = """Thresholds for concern:
- Coverage below 85% = Warning
- Coverage below 70% = Critical
- Open shifts > 5 = Warning
- Utilization below 50% = Warning
- Pending time off > 10 = Warning"""


def describe_week(metrics: DashboardMetrics) -> str:
    return "\n".join([
        f"Week of {metrics.week_start.isoformat()}:",
        f"- Total Shifts: {metrics.total_shifts}",
        f"- Assigned: {metrics.assigned_shifts} ({metrics.coverage_rate}% coverage)",
        f"- Open Shifts: {metrics.open_shifts}",
        f"- Total Hours: {metrics.total_hours:g}",
        "",
        "Team:",
        f"- Active Employees: {metrics.active_employees} of {metrics.total_employees} "
        f"({metrics.utilization_rate}% utilization)",
        f"- Avg Shifts/Employee: {metrics.avg_shifts_per_employee:g}",
        f"- Avg Hours/Shift: {metrics.avg_hours_per_shift:g}",
        "",
        "Trends (vs last week):",
        f"- Hours: {signed(metrics.hours_trend)}",
        f"- Shifts: {signed(metrics.shifts_trend)}",
        "",
        "Upcoming:",
        f"- Today's Shifts: {metrics.today_shifts_count}",
        f"- Shifts in the next 7 days: {metrics.upcoming_shifts_count}",
        f"- Pending Time Off: {metrics.pending_time_off_count}",
    ])


def build_dashboard_prompt(action: DashboardAction, metrics: DashboardMetrics) -> tuple[str, str, int]:
    """Return (system, user, max_tokens) for a dashboard action."""
    week = describe_week(metrics)
    if action is DashboardAction.INSIGHTS:
        prompt = f"{week}\n\nProvide 2-3 key insights that would be most valuable to a manager."
        return DASHBOARD_INSIGHTS_SYSTEM, prompt, DASHBOARD_MAX_TOKENS
    if action is DashboardAction.RECOMMENDATIONS:
        prompt = f"{week}\n\nProvide 2-3 top priority recommendations to improve operations."
        return DASHBOARD_RECOMMENDATIONS_SYSTEM, prompt, DASHBOARD_MAX_TOKENS
    prompt = (
        f"{week}\n\n{ALERT_THRESHOLDS}\n\n"
        "Identify the 1-3 most important alerts, if any. If everything looks good, say so."
    )
    return DASHBOARD_ALERTS_SYSTEM, prompt, ALERTS_MAX_TOKENS


REPORT_SYSTEMS = {
    ReportAction.ANALYZE: """You are an expert workforce analytics consultant. Analyze workforce performance data and provide comprehensive insights.

Focus on:
1. Overall workforce efficiency and productivity
2. Key performance indicators
3. Staffing patterns and utilization
4. Shift completion and cancellation trends
5. Employee workload distribution

Provide clear, actionable insights in a professional tone.""",
    ReportAction.RECOMMENDATIONS: """You are a workforce optimization specialist. Generate actionable recommendations to improve workforce performance, efficiency and employee satisfaction.

Cover scheduling optimization, workload balancing, efficiency improvements, cost reduction and employee engagement.
Be specific and practical.""",
    ReportAction.INSIGHTS: """You are a data insights specialist. Extract meaningful patterns, trends and hidden insights from workforce data.

Focus on anomalies, efficiency opportunities, risk factors, staffing trends and potential bottlenecks.
Provide insights that are surprising, actionable and valuable.""",
    ReportAction.FORECAST: """You are a workforce planning and forecasting expert. Analyze historical data to predict future trends and staffing needs.

Focus on future staffing requirements, expected workload, potential challenges, resource allocation and risk mitigation.
Provide practical forecasts with confidence levels.""",
}

REPORT_REQUESTS = {
    ReportAction.ANALYZE: "Provide a comprehensive performance analysis with specific observations.",
    ReportAction.RECOMMENDATIONS: "Identify the top 3-5 most impactful recommendations with clear action steps.",
    ReportAction.INSIGHTS: "Identify 3-5 key insights that reveal important patterns or opportunities.",
    ReportAction.FORECAST: (
        "Predict:\n"
        "1. Staffing needs for the next 30-90 days\n"
        "2. Expected workload trends\n"
        "3. Potential bottlenecks or challenges\n"
        "4. Recommendations for capacity planning"
    ),
}


def describe_report(metrics: ReportMetrics) -> str:
    lines = [
        f"Period: {metrics.start.isoformat()} to {metrics.end.isoformat()}",
        "",
        "Key Metrics:",
        f"- Total Hours Worked: {metrics.total_hours:g}",
        f"- Total Shifts: {metrics.total_shifts} ({metrics.completed_shifts} completed, "
        f"{metrics.cancelled_shifts} cancelled)",
        f"- Completion Rate: {metrics.completion_rate}%",
        f"- Cancellation Rate: {metrics.cancellation_rate}%",
        f"- Efficiency: {metrics.efficiency}%",
        f"- Average Hours per Shift: {metrics.avg_hours_per_shift:g}",
        f"- Average Hours per Employee: {metrics.avg_hours_per_employee:g}",
        f"- Average Hours per Week: {metrics.total_hours / metrics.weeks:.1f}",
        f"- Average Shifts per Week: {metrics.total_shifts / metrics.weeks:.1f}",
        f"- Approved Time Off: {metrics.approved_time_off_days} days",
        f"- Pending Time Off Requests: {metrics.pending_time_off_requests}",
        f"- Employees with Shifts: {len(metrics.employees)}",
        "",
        "Top Employees by Hours:",
    ]
    for rank, employee in enumerate(metrics.employees[:MAX_REPORTED_EMPLOYEES], start=1):
        lines.append(
            f"{rank}. {employee.name} ({employee.position or 'No position'}): "
            f"{employee.hours:g} hours, {employee.shifts} shifts"
        )
    if not metrics.employees:
        lines.append("None")
    elif len(metrics.employees) > MAX_REPORTED_EMPLOYEES:
        lowest = metrics.employees[-1]
        lines.append(f"Lowest: {lowest.name}: {lowest.hours:g} hours")
    return "\n".join(lines)


def build_report_prompt(action: ReportAction, metrics: ReportMetrics) -> tuple[str, str, int]:
    """Return (system, user, max_tokens) for a report action."""
    prompt = f"{describe_report(metrics)}\n\n{REPORT_REQUESTS[action]}"
    return REPORT_SYSTEMS[action], prompt, REPORT_MAX_TOKENS

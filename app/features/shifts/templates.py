"""
Shift template suggestions.

Groups recent shifts by their time pattern and offers the most frequent
patterns as one-click templates.
"""
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Iterable


TEMPLATE_LOOKBACK_DAYS = 90
MAX_TEMPLATES = 12
BREAK_LABEL_MINUTES = 30


@dataclass(frozen=True)
class ShiftSample:
    starts_at: datetime
    ends_at: datetime
    break_minutes: int = 0
    position_id: str | None = None
    position_name: str | None = None
    location_id: str | None = None
    location_name: str | None = None


@dataclass(frozen=True)
class ShiftTemplate:
    id: str
    name: str
    start_time: str
    end_time: str
    break_minutes: int
    duration_hours: float
    frequency: int
    position_id: str | None = None
    position_name: str | None = None
    location_id: str | None = None
    location_name: str | None = None


def format_clock(hhmm: str) -> str:
    """"09:00" -> "9AM", "13:30" -> "1:30PM"."""
    hours, minutes = (int(part) for part in hhmm.split(":"))
    suffix = "PM" if hours >= 12 else "AM"
    display = hours % 12 or 12
    return f"{display}:{minutes:02d}{suffix}" if minutes else f"{display}{suffix}"


def template_name(
    start_time: str,
    end_time: str,
    duration_hours: float,
    break_minutes: int = 0,
    position_name: str | None = None,
    location_name: str | None = None,
) -> str:
    name = f"{format_clock(start_time)}-{format_clock(end_time)} ({duration_hours:g}h)"
    if position_name:
        name += f" - {position_name}"
    if location_name:
        name += f" @ {location_name}"
    if break_minutes >= BREAK_LABEL_MINUTES:
        name += f" [{break_minutes}m break]"
    return name


def wall_clock(value: datetime, tz: tzinfo) -> str:
    """"HH:MM" of an instant in `tz`; naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz).strftime("%H:%M")


def analyze_shift_patterns(
    shifts: Iterable[ShiftSample],
    limit: int = MAX_TEMPLATES,
    tz: tzinfo = timezone.utc,
) -> list[ShiftTemplate]:
    """
    Most frequent (start, end, break, position, location) patterns, most
    frequent first. Ties keep first-seen order.

    Start and end times are wall-clock times in `tz`, so a 9-to-5 shift
    stays "9AM-5PM" for an organization outside UTC.
    """
    counts: Counter[str] = Counter()
    first_seen: dict[str, ShiftSample] = {}

    for shift in shifts:
        key = "-".join((
            wall_clock(shift.starts_at, tz),
            wall_clock(shift.ends_at, tz),
            str(shift.break_minutes or 0),
            shift.position_id or "none",
            shift.location_id or "none",
        ))
        counts[key] += 1
        first_seen.setdefault(key, shift)

    templates = []
    for key, frequency in counts.most_common(limit):
        sample = first_seen[key]
        start_time = wall_clock(sample.starts_at, tz)
        end_time = wall_clock(sample.ends_at, tz)
        duration_hours = round((sample.ends_at - sample.starts_at).total_seconds() / 3600, 1)
        break_minutes = sample.break_minutes or 0
        templates.append(ShiftTemplate(
            id=key,
            name=template_name(
                start_time,
                end_time,
                duration_hours,
                break_minutes,
                sample.position_name,
                sample.location_name,
            ),
            start_time=start_time,
            end_time=end_time,
            break_minutes=break_minutes,
            duration_hours=duration_hours,
            frequency=frequency,
            position_id=sample.position_id,
            position_name=sample.position_name,
            location_id=sample.location_id,
            location_name=sample.location_name,
        ))
    return templates

"""
Pydantic schemas for shifts, schedule periods and shift templates.
"""
from datetime import date, datetime, timezone
from pydantic import BaseModel, Field, field_validator, model_validator

from app.features.shifts.models import ShiftStatus


MAX_BREAK_MINUTES = 8 * 60


def to_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ShiftBase(BaseModel):
    employee_id: str | None = Field(None, description="Null for an open shift")
    position_id: str | None = None
    location_id: str | None = None
    starts_at: datetime
    ends_at: datetime
    break_minutes: int = Field(0, ge=0, le=MAX_BREAK_MINUTES)

    @field_validator("starts_at", "ends_at")
    @classmethod
    def normalize_timezone(cls, value: datetime) -> datetime:
        return to_utc(value)

    @model_validator(mode="after")
    def validate_range(self) -> "ShiftBase":
        if self.starts_at >= self.ends_at:
            raise ValueError("Shift start time must be before end time")
        return self


class ShiftCreate(ShiftBase):
    status: ShiftStatus = ShiftStatus.SCHEDULED


class ShiftUpdate(BaseModel):
    employee_id: str | None = None
    position_id: str | None = None
    location_id: str | None = None
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    break_minutes: int | None = Field(None, ge=0, le=MAX_BREAK_MINUTES)
    status: ShiftStatus | None = None

    @field_validator("starts_at", "ends_at")
    @classmethod
    def normalize_timezone(cls, value: datetime | None) -> datetime | None:
        return to_utc(value) if value is not None else None


class ShiftResponse(BaseModel):
    id: str
    organization_id: str
    employee_id: str | None = None
    position_id: str | None = None
    location_id: str | None = None
    schedule_period_id: str | None = None
    starts_at: datetime
    ends_at: datetime
    break_minutes: int
    status: ShiftStatus
    
    model_config = {"from_attributes": True}


class PublishRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def validate_range(self) -> "PublishRequest":
        if self.start_date >= self.end_date:
            raise ValueError("Period start date must be before end date")
        return self


class SchedulePeriodResponse(BaseModel):
    id: str
    organization_id: str
    name: str
    start_date: date
    end_date: date
    status: str
    published_at: datetime | None = None
    created_by_id: str | None = None
    created_at: datetime
    
    model_config = {"from_attributes": True}


class PublishResponse(BaseModel):
    period: SchedulePeriodResponse
    shifts_published: int


class ShiftTemplateResponse(BaseModel):
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
    
    model_config = {"from_attributes": True}

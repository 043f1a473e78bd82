"""
Pydantic schemas for time-off requests.
"""
from datetime import date, datetime
from pydantic import BaseModel, Field, model_validator

from app.features.time_off.models import TimeOffStatus, TimeOffType


class TimeOffCreate(BaseModel):
    employee_id: str | None = Field(None, description="Defaults to the caller's own employee record")
    starts_at: date
    ends_at: date
    type: TimeOffType = TimeOffType.VACATION
    reason: str | None = Field(None, max_length=1000)

    @model_validator(mode="after")
    def validate_range(self) -> "TimeOffCreate":
        if self.starts_at > self.ends_at:
            raise ValueError("Start date must not be after end date")
        return self


class TimeOffReview(BaseModel):
    status: TimeOffStatus = Field(..., description="approved or denied")


class TimeOffResponse(BaseModel):
    id: str
    organization_id: str
    employee_id: str
    starts_at: date
    ends_at: date
    type: TimeOffType
    reason: str | None = None
    status: TimeOffStatus
    created_by_id: str | None = None
    reviewed_by_id: str | None = None
    reviewed_at: datetime | None = None
    created_at: datetime
    
    model_config = {"from_attributes": True}


class TimeOffSummary(BaseModel):
    total: int = 0
    pending: int = 0
    approved: int = 0
    denied: int = 0
    this_month: int = 0

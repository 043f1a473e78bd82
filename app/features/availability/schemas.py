"""
Pydantic schemas for availability.
"""
from datetime import time
from pydantic import BaseModel, Field, model_validator


class AvailabilityCreate(BaseModel):
    employee_id: str
    weekday: int = Field(..., ge=0, le=6, description="0 = Sunday ... 6 = Saturday")
    start_time: time
    end_time: time

    @model_validator(mode="after")
    def validate_range(self) -> "AvailabilityCreate":
        if self.start_time >= self.end_time:
            raise ValueError("Start time must be before end time")
        return self


class AvailabilityResponse(BaseModel):
    id: str
    organization_id: str
    employee_id: str
    weekday: int
    start_time: time
    end_time: time
    
    model_config = {"from_attributes": True}

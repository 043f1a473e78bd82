"""
Pydantic schemas for employees, positions and locations.
"""
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field


class PositionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: str | None = Field(None, max_length=20, pattern="^#[0-9a-fA-F]{6}$")


class PositionUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    color: str | None = Field(None, max_length=20, pattern="^#[0-9a-fA-F]{6}$")


class PositionResponse(BaseModel):
    id: str
    organization_id: str
    name: str
    color: str | None = None
    
    model_config = {"from_attributes": True}


class LocationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class LocationResponse(BaseModel):
    id: str
    organization_id: str
    name: str
    
    model_config = {"from_attributes": True}


class EmployeeCreate(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr | None = None
    avatar_url: str | None = Field(None, max_length=500)
    position_id: str | None = None
    profile_id: str | None = Field(None, description="Link to a member's user profile")


class EmployeeUpdate(BaseModel):
    full_name: str | None = Field(None, min_length=1, max_length=255)
    email: EmailStr | None = None
    avatar_url: str | None = Field(None, max_length=500)
    position_id: str | None = None
    is_active: bool | None = None


class EmployeeResponse(BaseModel):
    id: str
    organization_id: str
    profile_id: str | None = None
    full_name: str
    email: str | None = None
    avatar_url: str | None = None
    position_id: str | None = None
    is_active: bool
    created_at: datetime
    
    model_config = {"from_attributes": True}

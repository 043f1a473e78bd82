"""
Pydantic schemas for join codes.
"""
from datetime import datetime
from pydantic import BaseModel, Field, computed_field

from app.features.join_codes.service import format_code
from app.features.organizations.permissions import Role


class JoinCodeCreate(BaseModel):
    role: Role = Role.EMPLOYEE
    max_uses: int = Field(5, ge=1, le=1000)
    expires_minutes: int | None = Field(60 * 24, ge=1, description="Minutes until the code expires; null for never")


class JoinCodeUpdate(BaseModel):
    is_active: bool


class JoinCodeResponse(BaseModel):
    id: str
    organization_id: str
    code: str
    role: Role
    max_uses: int
    used_count: int
    expires_at: datetime | None = None
    is_active: bool
    created_by_id: str | None = None
    created_at: datetime
    
    model_config = {"from_attributes": True}

    @computed_field
    @property
    def display_code(self) -> str:
        return format_code(self.code)


class JoinCodeRedeem(BaseModel):
    code: str = Field(..., min_length=1, max_length=64)


class JoinResponse(BaseModel):
    organization_id: str
    organization_name: str
    role: Role
    created: bool
    activated: bool

"""
Pydantic schemas for organization-related requests and responses.
"""
from datetime import datetime
from pydantic import BaseModel, Field

from app.features.organizations.permissions import Role


class CapabilitiesResponse(BaseModel):
    can_manage_schedule: bool
    can_approve_time_off: bool
    can_manage_employees: bool
    can_submit_time_off: bool


class ActiveOrganizationResponse(BaseModel):
    """Resolved active organization with the caller's capabilities in it."""
    organization_id: str | None = None
    organization_name: str | None = None
    role: Role | None = None
    loading: bool = False
    capabilities: CapabilitiesResponse


class MembershipResponse(BaseModel):
    organization_id: str
    organization_name: str | None = None
    role: Role | None = None
    is_active: bool = Field(False, description="True for the current active organization")


class OrganizationCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    make_active: bool = Field(True, description="Switch to the new organization after creating it")


class OrganizationUpdate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)


class OrganizationResponse(BaseModel):
    id: str
    name: str
    created_at: datetime
    updated_at: datetime
    role: Role | None = None
    
    model_config = {"from_attributes": True}


class SwitchOrganizationRequest(BaseModel):
    organization_id: str = Field(..., description="ID of the organization to switch to")


class MemberResponse(BaseModel):
    user_id: str
    full_name: str
    email: str
    role: Role
    joined_at: datetime


class MemberRoleUpdate(BaseModel):
    role: Role

from datetime import datetime
from pydantic import BaseModel, EmailStr, Field


class ProfileUpdate(BaseModel):
    full_name: str | None = Field(None, min_length=1, max_length=255)
    avatar_url: str | None = Field(None, max_length=500)


class ProfileResponse(BaseModel):
    id: str
    email: EmailStr
    full_name: str
    avatar_url: str | None = None
    is_active: bool
    active_organization_id: str | None = None
    last_login_at: datetime | None = None
    created_at: datetime
    
    model_config = {"from_attributes": True}

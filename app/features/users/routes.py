"""
Profile routes for the signed-in user.
"""
from typing import Annotated
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.features.users.models import User
from app.features.users.schemas import ProfileResponse, ProfileUpdate
from app.features.users.dependencies import get_current_user


router = APIRouter(tags=["users"])


@router.get("/me", response_model=ProfileResponse)
async def read_profile(user: Annotated[User, Depends(get_current_user)]):
    return user


@router.patch("/me", response_model=ProfileResponse)
async def update_profile(
    changes: ProfileUpdate,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Change display name or avatar; omitted and null fields are kept."""
    for field, value in changes.model_dump(exclude_none=True).items():
        setattr(user, field, value)
    await db.commit()
    await db.refresh(user)
    return user

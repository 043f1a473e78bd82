from typing import Annotated
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.features.users.models import User
from app.features.users.auth import read_account_id, verify_appwrite_session
from app.features.users.service import sign_in_profile


bearer = HTTPBearer()


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer)],
    db: Annotated[AsyncSession, Depends(get_db)]
) -> User:
    """
    The signed-in user's profile; deactivated profiles get 403.

    Appwrite confirms the session on every request.
    """
    read_account_id(credentials.credentials)
    identity = await verify_appwrite_session(credentials.credentials)
    user = await sign_in_profile(db, identity)
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is deactivated",
        )
    return user


def get_authorization_header(request) -> str:
    """slowapi key: the raw Authorization header, or "anonymous"."""
    return request.headers.get("Authorization", "") or "anonymous"

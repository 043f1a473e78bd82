"""
Local user profiles.
"""
from datetime import datetime, timezone
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.users.auth import AppwriteIdentity
from app.features.users.models import User
from app.utils import get_logger


log = get_logger(__name__)


async def sign_in_profile(db: AsyncSession, identity: AppwriteIdentity) -> User:
    """
    Profile for a verified Appwrite account, created on first sign-in.
    """
    result = await db.execute(select(User).where(User.appwrite_id == identity.account_id))
    user = result.scalar_one_or_none()

    if user is None:
        user = User(
            appwrite_id=identity.account_id,
            email=identity.email,
            full_name=(identity.name or "").strip() or identity.email.split("@")[0] or "Unnamed",
        )
        db.add(user)
        log.info("Created profile for Appwrite account %s", identity.account_id)

    user.last_login_at = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(user)
    return user

"""
Join code generation and redemption.
"""
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.join_codes.models import JoinCode
from app.features.organizations.permissions import Role
from app.features.organizations.service import NotAMemberError, OrganizationService
from app.utils import get_logger


log = get_logger(__name__)

# No 0/O or 1/I, which are easy to misread when a code is read aloud
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CODE_LENGTH = 12
CODE_GROUP = 4


class JoinCodeError(Exception):
    """A join code could not be redeemed."""
    detail = "Invalid join code"


class UnknownJoinCodeError(JoinCodeError):
    detail = "Join code not found"


class InactiveJoinCodeError(JoinCodeError):
    detail = "Join code has been deactivated"


class ExpiredJoinCodeError(JoinCodeError):
    detail = "Join code has expired"


class ExhaustedJoinCodeError(JoinCodeError):
    detail = "Join code has no uses left"


@dataclass(frozen=True)
class JoinResult:
    organization_id: str
    organization_name: str
    role: Role
    created: bool
    activated: bool


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_code(code: str) -> str:
    return code.replace("-", "").replace(" ", "").strip().upper()


def format_code(code: str) -> str:
    """"A1B2C3D4E5F6" -> "A1B2-C3D4-E5F6"."""
    return "-".join(code[i:i + CODE_GROUP] for i in range(0, len(code), CODE_GROUP))


def new_code() -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


def as_aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def check_redeemable(join_code: JoinCode | None, now: datetime) -> JoinCode:
    if join_code is None:
        raise UnknownJoinCodeError()
    if not join_code.is_active:
        raise InactiveJoinCodeError()
    if join_code.expires_at is not None and as_aware(join_code.expires_at) <= now:
        raise ExpiredJoinCodeError()
    if join_code.used_count >= join_code.max_uses:
        raise ExhaustedJoinCodeError()
    return join_code


async def generate_join_code(
    db: AsyncSession,
    organization_id: str,
    created_by_id: str,
    role: Role,
    max_uses: int,
    expires_minutes: int | None,
) -> JoinCode:
    while True:
        code = new_code()
        result = await db.execute(select(JoinCode.id).where(JoinCode.code == code))
        if result.scalar_one_or_none() is None:
            break

    join_code = JoinCode(
        organization_id=organization_id,
        code=code,
        role=role,
        max_uses=max_uses,
        used_count=0,
        expires_at=utcnow() + timedelta(minutes=expires_minutes) if expires_minutes else None,
        created_by_id=created_by_id,
    )
    db.add(join_code)
    await db.commit()
    await db.refresh(join_code)
    log.info("Generated %s join code %s for organization %s", role.value, join_code.id, organization_id)
    return join_code


async def claim_use(db: AsyncSession, join_code: JoinCode) -> None:
    """
    Take one use of an active code.

    When the code changed since it was read, raises the error that matches
    its current state.
    """
    code_id = join_code.id
    result = await db.execute(
        update(JoinCode)
        .where(
            JoinCode.id == code_id,
            JoinCode.is_active == True,
            JoinCode.used_count < JoinCode.max_uses,
        )
        .values(used_count=JoinCode.used_count + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        await db.rollback()
        current = await db.execute(
            select(JoinCode).where(JoinCode.id == code_id).execution_options(populate_existing=True)
        )
        check_redeemable(current.scalar_one_or_none(), utcnow())
        raise ExhaustedJoinCodeError()


async def join_with_code(service: OrganizationService, code: str) -> JoinResult:
    """
    Redeem a join code for the service's user.

    A user who already belongs to the organization keeps their role and does
    not consume a use. Activating the joined organization is best effort.

    The use is claimed with a single conditional UPDATE before the membership
    is created, so concurrent redemptions never exceed `max_uses`.
    """
    db = service.db
    result = await db.execute(select(JoinCode).where(JoinCode.code == normalize_code(code)))
    join_code = check_redeemable(result.scalar_one_or_none(), utcnow())

    if await service.get_membership(join_code.organization_id) is None:
        await claim_use(db, join_code)

    membership, created = await service.add_member(join_code.organization_id, join_code.role)
    await db.commit()

    activated = True
    try:
        await service.set_active_org(join_code.organization_id)
    except NotAMemberError as e:
        log.warning("Joined but could not activate organization: %s", e)
        activated = False

    log.info(
        "User %s %s organization %s as %s",
        service.user.id,
        "joined" if created else "re-used membership in",
        join_code.organization_id,
        membership.role.value,
    )
    return JoinResult(
        organization_id=join_code.organization_id,
        organization_name=join_code.organization.name,
        role=membership.role,
        created=created,
        activated=activated,
    )

"""
Organization and membership models.

A membership binds one user to one organization with one role; the same
user may hold different roles in different organizations.
"""
from sqlalchemy import String, ForeignKey, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database.base import Base, TimestampMixin, generate_ulid
from app.features.organizations.permissions import Role


def role_column_type() -> SQLEnum:
    """Role stored by value ("admin"), not by member name."""
    return SQLEnum(
        Role,
        name="role",
        native_enum=False,
        length=20,
        values_callable=lambda roles: [r.value for r in roles],
    )


class Organization(Base, TimestampMixin):
    """A tenant: every employee, shift and request belongs to exactly one."""
    __tablename__ = "organizations"
    
    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    
    memberships: Mapped[list["Membership"]] = relationship(
        "Membership",
        back_populates="organization",
        cascade="all, delete-orphan",
        lazy="selectin"
    )
    
    def __repr__(self) -> str:
        return f"<Organization(id={self.id}, name={self.name!r})>"


class Membership(Base, TimestampMixin):
    __tablename__ = "memberships"
    __table_args__ = (
        UniqueConstraint("organization_id", "user_id", name="uq_membership_org_user"),
    )
    
    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    organization_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    role: Mapped[Role] = mapped_column(role_column_type(), nullable=False, default=Role.EMPLOYEE)
    
    organization: Mapped["Organization"] = relationship(
        "Organization",
        back_populates="memberships",
        lazy="selectin"
    )
    user: Mapped["User"] = relationship(  # type: ignore
        "User",
        back_populates="memberships",
        lazy="selectin"
    )
    
    def __repr__(self) -> str:
        return f"<Membership(org_id={self.organization_id}, user_id={self.user_id}, role={self.role})>"

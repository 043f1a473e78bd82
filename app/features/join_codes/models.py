"""
Join code model.

A join code lets a user enroll themselves into an organization at a fixed
role, a limited number of times, until it expires.
"""
from datetime import datetime
from sqlalchemy import String, ForeignKey, Integer, Boolean, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database.base import Base, TimestampMixin, generate_ulid
from app.features.organizations.models import role_column_type
from app.features.organizations.permissions import Role


class JoinCode(Base, TimestampMixin):
    __tablename__ = "join_codes"
    
    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    organization_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    
    # Stored without separators, e.g. "A1B2C3D4E5F6"
    code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)
    role: Mapped[Role] = mapped_column(role_column_type(), nullable=False, default=Role.EMPLOYEE)
    
    max_uses: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    used_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    
    created_by_id: Mapped[str | None] = mapped_column(
        String(26),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )
    
    organization: Mapped["Organization"] = relationship("Organization", lazy="selectin")  # type: ignore
    
    def __repr__(self) -> str:
        return f"<JoinCode(id={self.id}, org_id={self.organization_id}, role={self.role}, used={self.used_count}/{self.max_uses})>"

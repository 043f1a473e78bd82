"""
Shift and schedule period models.
"""
import enum
from datetime import date, datetime
from sqlalchemy import String, ForeignKey, Integer, Date, DateTime, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database.base import Base, TimestampMixin, generate_ulid


class ShiftStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    PUBLISHED = "published"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SchedulePeriod(Base, TimestampMixin):
    """A published block of schedule, e.g. "Week of March 3"."""
    __tablename__ = "schedule_periods"
    
    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    organization_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="published")
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_by_id: Mapped[str | None] = mapped_column(
        String(26),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )
    
    def __repr__(self) -> str:
        return f"<SchedulePeriod(id={self.id}, name={self.name!r}, {self.start_date}..{self.end_date})>"


class Shift(Base, TimestampMixin):
    __tablename__ = "shifts"
    
    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    organization_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    
    # Null employee means an open shift
    employee_id: Mapped[str | None] = mapped_column(
        String(26),
        ForeignKey("employees.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    position_id: Mapped[str | None] = mapped_column(
        String(26),
        ForeignKey("positions.id", ondelete="SET NULL"),
        nullable=True
    )
    location_id: Mapped[str | None] = mapped_column(
        String(26),
        ForeignKey("locations.id", ondelete="SET NULL"),
        nullable=True
    )
    schedule_period_id: Mapped[str | None] = mapped_column(
        String(26),
        ForeignKey("schedule_periods.id", ondelete="SET NULL"),
        nullable=True
    )
    
    starts_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    ends_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    break_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[ShiftStatus] = mapped_column(
        SQLEnum(ShiftStatus, native_enum=False, length=20, values_callable=lambda s: [m.value for m in s]),
        nullable=False,
        default=ShiftStatus.SCHEDULED,
        index=True
    )
    
    position: Mapped["Position"] = relationship("Position", lazy="selectin")  # type: ignore
    location: Mapped["Location"] = relationship("Location", lazy="selectin")  # type: ignore
    
    def __repr__(self) -> str:
        return f"<Shift(id={self.id}, employee_id={self.employee_id}, {self.starts_at}..{self.ends_at}, {self.status})>"

"""
Time-off request model.
"""
import enum
from datetime import date, datetime
from sqlalchemy import String, ForeignKey, Date, DateTime, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database.base import Base, TimestampMixin, generate_ulid


class TimeOffType(str, enum.Enum):
    VACATION = "vacation"
    SICK = "sick"
    UNPAID = "unpaid"
    OTHER = "other"


class TimeOffStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


def _by_value(enum_cls) -> SQLEnum:
    return SQLEnum(enum_cls, native_enum=False, length=20, values_callable=lambda e: [m.value for m in e])


class TimeOffRequest(Base, TimestampMixin):
    __tablename__ = "time_off"
    
    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    organization_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    employee_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    
    # Inclusive date range
    starts_at: Mapped[date] = mapped_column(Date, nullable=False)
    ends_at: Mapped[date] = mapped_column(Date, nullable=False)
    type: Mapped[TimeOffType] = mapped_column(_by_value(TimeOffType), nullable=False, default=TimeOffType.VACATION)
    reason: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    status: Mapped[TimeOffStatus] = mapped_column(
        _by_value(TimeOffStatus),
        nullable=False,
        default=TimeOffStatus.PENDING,
        index=True
    )
    
    created_by_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reviewed_by_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    
    def __repr__(self) -> str:
        return f"<TimeOffRequest(id={self.id}, employee_id={self.employee_id}, {self.starts_at}..{self.ends_at}, {self.status})>"

"""
Weekly availability model.
"""
from datetime import time
from sqlalchemy import String, ForeignKey, Integer, Time
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database.base import Base, TimestampMixin, generate_ulid


class Availability(Base, TimestampMixin):
    """A recurring weekly window in which an employee can work."""
    __tablename__ = "availability"
    
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
    weekday: Mapped[int] = mapped_column(Integer, nullable=False)  # 0 = Sunday
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    
    def __repr__(self) -> str:
        return f"<Availability(employee_id={self.employee_id}, weekday={self.weekday}, {self.start_time}-{self.end_time})>"

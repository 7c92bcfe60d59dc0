"""Driver ORM model — shift hours, rolling work history and both fatigue attributes."""

import uuid
from datetime import datetime
from sqlalchemy import String, Numeric, Boolean, DateTime, JSON, Enum as SqlEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from db.database import Base


DRIVER_STATUSES = ("available", "on-route", "off-duty")
FATIGUE_LEVELS = ("normal", "moderate", "high")


def _empty_week() -> list[float]:
    return [0.0] * 7


class Driver(Base):
    __tablename__ = "drivers"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(20))
    email: Mapped[str | None] = mapped_column(String(255))
    license_number: Mapped[str | None] = mapped_column(String(40), unique=True)

    current_shift_hours: Mapped[float] = mapped_column(Numeric(6, 2, asdecimal=False), default=0.0)
    # Index 0 = the day being worked, index 6 = oldest
    past_week_work_hours: Mapped[list] = mapped_column(JSON, default=_empty_week)

    # Simulation fatigue: cached, refreshed only on day rollover
    is_fatigued: Mapped[bool] = mapped_column(Boolean, default=False)
    # Manual-assignment fatigue tier, set by an operator
    fatigue_level: Mapped[str] = mapped_column(
        SqlEnum(*FATIGUE_LEVELS, name="fatigue_level"),
        default="normal",
    )
    fatigue_updated_at: Mapped[datetime | None] = mapped_column(DateTime)

    status: Mapped[str] = mapped_column(
        SqlEnum(*DRIVER_STATUSES, name="driver_status"),
        default="available",
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    orders = relationship("Order", back_populates="driver", lazy="selectin")

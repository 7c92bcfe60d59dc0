"""Route ORM model — fixed distance / base time, no geometry."""

import uuid
from datetime import datetime
from sqlalchemy import String, Integer, Numeric, Boolean, DateTime, Text, Enum as SqlEnum
from sqlalchemy.orm import Mapped, mapped_column
from db.database import Base


TRAFFIC_LEVELS = ("Low", "Medium", "High")


class Route(Base):
    __tablename__ = "routes"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    route_code: Mapped[str] = mapped_column(String(40), unique=True, nullable=False)
    distance_km: Mapped[float] = mapped_column(Numeric(8, 2, asdecimal=False), nullable=False)
    traffic_level: Mapped[str] = mapped_column(
        SqlEnum(*TRAFFIC_LEVELS, name="traffic_level"),
        default="Medium",
    )
    base_time_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    start_location: Mapped[str | None] = mapped_column(String(255))
    end_location: Mapped[str | None] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

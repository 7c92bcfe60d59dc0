"""Order ORM model — one route, at most one driver, delivery financials."""

import uuid
from datetime import datetime
from sqlalchemy import String, Numeric, Boolean, DateTime, ForeignKey, Text, Enum as SqlEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from db.database import Base


ORDER_STATUSES = ("pending", "assigned", "in-transit", "delivered", "delayed", "cancelled")


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    order_code: Mapped[str] = mapped_column(String(40), unique=True, nullable=False)
    value_rs: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False)
    route_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("routes.id"), nullable=False)
    driver_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("drivers.id", ondelete="SET NULL"))

    delivery_timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    actual_delivery_time: Mapped[datetime | None] = mapped_column(DateTime)

    status: Mapped[str] = mapped_column(
        SqlEnum(*ORDER_STATUSES, name="order_status"),
        default="pending",
    )

    # Financials, filled on delivery
    is_delivered_on_time: Mapped[bool | None] = mapped_column(Boolean)
    late_penalty: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), default=0.0)
    high_value_bonus: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), default=0.0)
    fuel_cost: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), default=0.0)
    profit: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), default=0.0)

    # Customer details
    customer_name: Mapped[str | None] = mapped_column(String(255))
    customer_contact: Mapped[str | None] = mapped_column(String(40))
    delivery_address: Mapped[str | None] = mapped_column(Text)
    notes: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    route = relationship("Route", lazy="selectin")
    driver = relationship("Driver", back_populates="orders", lazy="selectin")

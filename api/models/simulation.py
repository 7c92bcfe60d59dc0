"""Simulation ORM model — one allocation run, written once."""

import uuid
from datetime import datetime, date
from sqlalchemy import String, Integer, Numeric, Date, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from db.database import Base


class Simulation(Base):
    __tablename__ = "simulations"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)

    # Parameters
    available_drivers: Mapped[int] = mapped_column(Integer, nullable=False)
    route_start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    max_hours_per_driver: Mapped[int] = mapped_column(Integer, nullable=False)
    service_date: Mapped[date] = mapped_column(Date, nullable=False)

    # KPIs
    total_profit: Mapped[float] = mapped_column(Numeric(14, 2, asdecimal=False), default=0.0)
    efficiency_score: Mapped[float] = mapped_column(Numeric(5, 2, asdecimal=False), default=0.0)
    on_time_deliveries: Mapped[int] = mapped_column(Integer, default=0)
    late_deliveries: Mapped[int] = mapped_column(Integer, default=0)
    total_deliveries: Mapped[int] = mapped_column(Integer, default=0)
    fuel_costs: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), default=0.0)
    high_value_bonuses: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), default=0.0)
    late_penalties: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), default=0.0)

    # Fuel cost by traffic tier
    fuel_cost_low: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), default=0.0)
    fuel_cost_medium: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), default=0.0)
    fuel_cost_high: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), default=0.0)

    # [{"driver_id", "order_ids", "total_hours", "total_distance"}, ...]
    driver_assignments: Mapped[list] = mapped_column(JSON, default=list)
    unassigned_order_ids: Mapped[list] = mapped_column(JSON, default=list)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

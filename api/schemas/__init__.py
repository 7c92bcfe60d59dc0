"""Pydantic schemas for API request/response models."""

from __future__ import annotations
import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any
from pydantic import BaseModel, Field, field_validator

from services.finance import TrafficLevel


ROUTE_START_PATTERN = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"


def to_naive_utc(value: datetime | None) -> datetime | None:
    """Store every timestamp as naive UTC."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# ── Enums ──────────────────────────────────────────────────

class DriverStatus(str, Enum):
    AVAILABLE = "available"
    ON_ROUTE = "on-route"
    OFF_DUTY = "off-duty"


class FatigueLevel(str, Enum):
    NORMAL = "normal"
    MODERATE = "moderate"
    HIGH = "high"


class OrderStatus(str, Enum):
    PENDING = "pending"
    ASSIGNED = "assigned"
    IN_TRANSIT = "in-transit"
    DELIVERED = "delivered"
    DELAYED = "delayed"
    CANCELLED = "cancelled"


# ── Simulation Schemas ─────────────────────────────────────

class SimulationParameters(BaseModel):
    """Validated run parameters; built by the simulation service."""
    available_drivers: int = Field(..., gt=0)
    route_start_time: str = Field(..., pattern=ROUTE_START_PATTERN)
    max_hours_per_driver: int = Field(..., ge=1, le=12)
    service_date: date | None = None


class SimulationRunRequest(BaseModel):
    # Raw values; the simulation service reports missing and invalid fields by name
    available_drivers: Any = None
    route_start_time: Any = None
    max_hours_per_driver: Any = None
    service_date: Any = None


class SimulationKpisResponse(BaseModel):
    total_profit: float
    efficiency_score: float
    on_time_deliveries: int
    late_deliveries: int
    total_deliveries: int
    fuel_costs: float
    high_value_bonuses: float
    late_penalties: float


class FuelCostBreakdown(BaseModel):
    low_traffic: float
    medium_traffic: float
    high_traffic: float


class DriverAssignmentResponse(BaseModel):
    driver_id: uuid.UUID
    order_ids: list[uuid.UUID]
    order_count: int
    total_hours: float
    total_distance: float


class SimulationResponse(BaseModel):
    id: uuid.UUID
    parameters: SimulationParameters
    kpis: SimulationKpisResponse
    driver_assignments: list[DriverAssignmentResponse]
    fuel_cost_breakdown: FuelCostBreakdown
    unassigned_order_ids: list[uuid.UUID]
    created_at: datetime

    @classmethod
    def from_record(cls, sim) -> "SimulationResponse":
        return cls(
            id=sim.id,
            parameters=SimulationParameters(
                available_drivers=sim.available_drivers,
                route_start_time=sim.route_start_time,
                max_hours_per_driver=sim.max_hours_per_driver,
                service_date=sim.service_date,
            ),
            kpis=SimulationKpisResponse(
                total_profit=sim.total_profit,
                efficiency_score=sim.efficiency_score,
                on_time_deliveries=sim.on_time_deliveries,
                late_deliveries=sim.late_deliveries,
                total_deliveries=sim.total_deliveries,
                fuel_costs=sim.fuel_costs,
                high_value_bonuses=sim.high_value_bonuses,
                late_penalties=sim.late_penalties,
            ),
            driver_assignments=[
                DriverAssignmentResponse(
                    driver_id=a["driver_id"],
                    order_ids=a["order_ids"],
                    order_count=len(a["order_ids"]),
                    total_hours=a["total_hours"],
                    total_distance=a["total_distance"],
                )
                for a in sim.driver_assignments
            ],
            fuel_cost_breakdown=FuelCostBreakdown(
                low_traffic=sim.fuel_cost_low,
                medium_traffic=sim.fuel_cost_medium,
                high_traffic=sim.fuel_cost_high,
            ),
            unassigned_order_ids=sim.unassigned_order_ids or [],
            created_at=sim.created_at,
        )


class SimulationApplyResponse(BaseModel):
    simulation_id: uuid.UUID
    drivers_updated: int
    orders_assigned: int


# ── Driver Schemas ─────────────────────────────────────────

class DriverCreate(BaseModel):
    name: str = Field(..., min_length=1)
    phone: str | None = None
    email: str | None = None
    license_number: str | None = None
    current_shift_hours: float = Field(0.0, ge=0)
    past_week_work_hours: list[float] = Field(default_factory=lambda: [0.0] * 7, min_length=7, max_length=7)
    is_fatigued: bool | None = None
    status: DriverStatus = DriverStatus.AVAILABLE

    @field_validator("past_week_work_hours")
    @classmethod
    def check_non_negative(cls, value: list[float]) -> list[float]:
        if any(h < 0 for h in value):
            raise ValueError("Work hours cannot be negative")
        return value


class DriverResponse(BaseModel):
    id: uuid.UUID
    name: str
    phone: str | None
    email: str | None
    license_number: str | None
    current_shift_hours: float
    past_week_work_hours: list[float]
    is_fatigued: bool
    fatigue_level: str
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class DriverFatigueUpdate(BaseModel):
    level: FatigueLevel


# ── Route Schemas ──────────────────────────────────────────

class RouteCreate(BaseModel):
    route_code: str = Field(..., min_length=1)
    distance_km: float = Field(..., ge=0)
    traffic_level: TrafficLevel = TrafficLevel.MEDIUM
    base_time_minutes: int = Field(..., ge=0)
    start_location: str | None = None
    end_location: str | None = None
    description: str | None = None
    is_active: bool = True


class RouteResponse(BaseModel):
    id: uuid.UUID
    route_code: str
    distance_km: float
    traffic_level: str
    base_time_minutes: int
    start_location: str | None
    end_location: str | None
    description: str | None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class RouteTrafficUpdate(BaseModel):
    traffic_level: TrafficLevel


class FuelCostResponse(BaseModel):
    route_id: uuid.UUID
    distance_km: float
    traffic_level: str
    fuel_cost: float


# ── Order Schemas ──────────────────────────────────────────

class OrderCreate(BaseModel):
    order_code: str = Field(..., min_length=1)
    value_rs: float = Field(..., ge=0)
    route_id: uuid.UUID
    delivery_timestamp: datetime
    customer_name: str | None = None
    customer_contact: str | None = None
    delivery_address: str | None = None
    notes: str | None = None

    @field_validator("delivery_timestamp")
    @classmethod
    def normalize_delivery_timestamp(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


class OrderResponse(BaseModel):
    id: uuid.UUID
    order_code: str
    value_rs: float
    route_id: uuid.UUID
    driver_id: uuid.UUID | None
    delivery_timestamp: datetime
    actual_delivery_time: datetime | None
    status: str
    is_delivered_on_time: bool | None
    late_penalty: float
    high_value_bonus: float
    fuel_cost: float
    profit: float
    customer_name: str | None
    customer_contact: str | None
    delivery_address: str | None
    notes: str | None
    created_at: datetime

    class Config:
        from_attributes = True


class AssignDriverRequest(BaseModel):
    driver_id: uuid.UUID


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    delivered_at: datetime | None = None

    @field_validator("delivered_at")
    @classmethod
    def normalize_delivered_at(cls, value: datetime | None) -> datetime | None:
        return to_naive_utc(value)


class OrderStats(BaseModel):
    status_counts: dict[str, int]
    on_time: int
    late: int
    total_value: float
    total_profit: float
    average_profit: float

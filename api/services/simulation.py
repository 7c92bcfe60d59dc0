"""
Simulation Service — validate → snapshot → allocate → persist once, and apply.

A run never writes anything until the allocation has fully succeeded; the
Simulation record is then saved in a single commit and never updated.
Apply commits every driver/order change of one simulation in a single
transaction, so it either lands completely or not at all.
"""

from __future__ import annotations
import logging
import uuid
from datetime import datetime, date, time

import pydantic
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from errors import (
    FleetError, InternalError, ResourceExhaustedError, StateConflictError, ValidationError,
)
from models.simulation import Simulation
from schemas import SimulationParameters
from services import status_machine
from services.allocation import AllocationResult, allocate_orders
from services.finance import TrafficLevel
from services.run_lock import simulation_lock
from services.store import EntityStore

logger = logging.getLogger(__name__)


def validate_parameters(
    available_drivers,
    route_start_time,
    max_hours_per_driver,
    service_date: date | None = None,
) -> SimulationParameters:
    """Reject missing or out-of-range run parameters before any read."""
    missing = [
        name for name, value in (
            ("available_drivers", available_drivers),
            ("route_start_time", route_start_time),
            ("max_hours_per_driver", max_hours_per_driver),
        )
        if value is None or value == ""
    ]
    if missing:
        raise ValidationError("Missing required parameters", details={"missing": missing})

    try:
        return SimulationParameters(
            available_drivers=available_drivers,
            route_start_time=route_start_time,
            max_hours_per_driver=max_hours_per_driver,
            service_date=service_date,
        )
    except pydantic.ValidationError as exc:
        invalid = [".".join(str(p) for p in err["loc"]) for err in exc.errors()]
        raise ValidationError(
            "Invalid simulation parameters",
            details={"invalid": invalid},
        ) from exc


def route_start_datetime(params: SimulationParameters, today: date | None = None) -> datetime:
    """Anchor the HH:MM start clock on the run's service date."""
    hours, minutes = (int(part) for part in params.route_start_time.split(":"))
    service_day = params.service_date or today or datetime.utcnow().date()
    return datetime.combine(service_day, time(hours, minutes))


def build_simulation_record(
    params: SimulationParameters,
    route_start: datetime,
    result: AllocationResult,
    inactive_route_order_ids: list[uuid.UUID] | None = None,
) -> Simulation:
    """Pending orders on inactive routes are recorded as unassigned."""
    kpis = result.kpis
    unassigned = list(result.unassigned_order_ids) + list(inactive_route_order_ids or [])
    breakdown = result.fuel_cost_breakdown
    return Simulation(
        available_drivers=params.available_drivers,
        route_start_time=params.route_start_time,
        max_hours_per_driver=params.max_hours_per_driver,
        service_date=route_start.date(),
        total_profit=kpis.total_profit,
        efficiency_score=kpis.efficiency_score,
        on_time_deliveries=kpis.on_time_deliveries,
        late_deliveries=kpis.late_deliveries,
        total_deliveries=kpis.total_deliveries,
        fuel_costs=kpis.fuel_costs,
        high_value_bonuses=kpis.high_value_bonuses,
        late_penalties=kpis.late_penalties,
        fuel_cost_low=breakdown[TrafficLevel.LOW.value],
        fuel_cost_medium=breakdown[TrafficLevel.MEDIUM.value],
        fuel_cost_high=breakdown[TrafficLevel.HIGH.value],
        driver_assignments=[
            {
                "driver_id": str(a.driver_id),
                "order_ids": [str(oid) for oid in a.order_ids],
                "total_hours": a.total_hours,
                "total_distance": a.total_distance,
            }
            for a in result.driver_assignments
        ],
        unassigned_order_ids=[str(oid) for oid in unassigned],
    )


async def run_simulation(
    db: AsyncSession,
    available_drivers,
    route_start_time,
    max_hours_per_driver,
    service_date: date | None = None,
) -> Simulation:
    """
    Allocate pending orders to available drivers and persist the outcome.

    Raises:
        ValidationError: missing / malformed / out-of-range parameters
        ResourceExhaustedError: no available drivers or no pending orders
        InternalError: the allocation itself failed
    """
    params = validate_parameters(available_drivers, route_start_time, max_hours_per_driver, service_date)
    route_start = route_start_datetime(params)
    store = EntityStore(db)

    async with simulation_lock("run"):
        drivers = await store.available_driver_snapshots(limit=params.available_drivers)
        if not drivers:
            raise ResourceExhaustedError("No available drivers found")

        orders, inactive_route_order_ids = await store.pending_order_snapshots()
        if not orders:
            raise ResourceExhaustedError("No pending orders on active routes found")

        logger.info(
            "Simulation: %d drivers, %d pending orders, start %s, max %dh",
            len(drivers), len(orders), route_start.isoformat(), params.max_hours_per_driver,
        )

        try:
            result = allocate_orders(drivers, orders, route_start, params.max_hours_per_driver)
        except FleetError:
            raise
        except (ArithmeticError, KeyError, TypeError, ValueError) as exc:
            logger.exception("Simulation: allocation failed")
            raise InternalError("Error running simulation") from exc

        simulation = await store.save_simulation(build_simulation_record(
            params, route_start, result, inactive_route_order_ids,
        ))

    logger.info(
        "Simulation %s saved: profit=%.2f efficiency=%.1f%% delivered=%d unassigned=%d",
        simulation.id, result.kpis.total_profit, result.kpis.efficiency_score,
        result.kpis.total_deliveries, len(simulation.unassigned_order_ids),
    )
    return simulation


async def list_simulations(db: AsyncSession, skip: int = 0, limit: int = 50) -> list[Simulation]:
    result = await db.execute(
        select(Simulation).order_by(Simulation.created_at.desc()).offset(skip).limit(limit)
    )
    return list(result.scalars().all())


async def get_simulation(db: AsyncSession, simulation_id: uuid.UUID) -> Simulation:
    return await EntityStore(db).get_simulation(simulation_id)


async def apply_simulation(db: AsyncSession, simulation_id: uuid.UUID) -> dict:
    """
    Commit a simulation's assignments to live drivers and orders.

    Every assigned driver must still be available and every order still
    pending; otherwise nothing is written.
    """
    store = EntityStore(db)

    async with simulation_lock("apply"):
        simulation = await store.get_simulation(simulation_id)

        drivers_updated = 0
        orders_assigned = 0
        try:
            for assignment in simulation.driver_assignments:
                order_ids = [uuid.UUID(oid) for oid in assignment["order_ids"]]
                if not order_ids:
                    continue

                driver = await store.get_driver(uuid.UUID(assignment["driver_id"]))
                found = await store.get_orders(order_ids)
                missing = [str(oid) for oid in order_ids if oid not in found]
                if missing:
                    raise StateConflictError(
                        "Simulation references orders that no longer exist",
                        details={"missing_orders": missing},
                    )

                status_machine.apply_assignment(
                    driver,
                    [found[oid] for oid in order_ids],
                    assignment["total_hours"],
                )
                drivers_updated += 1
                orders_assigned += len(order_ids)

            await db.commit()
        except Exception:
            await db.rollback()
            raise

    logger.info(
        "Simulation %s applied: %d drivers, %d orders",
        simulation_id, drivers_updated, orders_assigned,
    )
    return {
        "simulation_id": simulation_id,
        "drivers_updated": drivers_updated,
        "orders_assigned": orders_assigned,
    }

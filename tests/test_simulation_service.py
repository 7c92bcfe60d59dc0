"""
Simulation service tests against an in-memory SQLite database.

The run lock is disabled through SIMULATION_LOCK_ENABLED=false in conftest.
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "api"))

import uuid
from datetime import date

import pytest
from sqlalchemy import select, func

from errors import NotFoundError, ResourceExhaustedError, StateConflictError, ValidationError
from models import Simulation
from services import simulation as simulation_service

SERVICE_DAY = date(2025, 1, 6)


async def _run(db, drivers=5, start="09:00", max_hours=8):
    return await simulation_service.run_simulation(
        db,
        available_drivers=drivers,
        route_start_time=start,
        max_hours_per_driver=max_hours,
        service_date=SERVICE_DAY,
    )


async def _simulation_count(db) -> int:
    return (await db.execute(select(func.count(Simulation.id)))).scalar()


# ── Parameter validation ───────────────────────────────────

def test_missing_parameters_are_listed():
    with pytest.raises(ValidationError) as exc:
        simulation_service.validate_parameters(None, "", 8)
    assert exc.value.details == {"missing": ["available_drivers", "route_start_time"]}


@pytest.mark.parametrize("drivers,start,hours", [
    (0, "09:00", 8),
    (3, "24:00", 8),
    (3, "9am", 8),
    (3, "09:00", 0),
    (3, "09:00", 13),
])
def test_out_of_range_parameters(drivers, start, hours):
    with pytest.raises(ValidationError):
        simulation_service.validate_parameters(drivers, start, hours)


def test_wrong_typed_parameters_are_named():
    with pytest.raises(ValidationError) as exc:
        simulation_service.validate_parameters(3, "09:00", "abc")
    assert exc.value.details == {"invalid": ["max_hours_per_driver"]}


def test_route_start_uses_service_date():
    params = simulation_service.validate_parameters(2, "7:30", 8, SERVICE_DAY)
    start = simulation_service.route_start_datetime(params)
    assert start.isoformat() == "2025-01-06T07:30:00"


@pytest.mark.asyncio
async def test_invalid_parameters_write_nothing(db, make):
    route = await make.route()
    await make.driver()
    await make.order(route)

    with pytest.raises(ValidationError):
        await _run(db, max_hours=20)
    assert await _simulation_count(db) == 0


# ── Runs ───────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_run_persists_kpis_and_assignments(db, make):
    route = await make.route()
    driver = await make.driver()
    order = await make.order(route)

    sim = await _run(db)

    assert sim.total_deliveries == 1
    assert sim.on_time_deliveries == 1
    assert sim.total_profit == 1600.0
    assert sim.efficiency_score == 100.0
    assert sim.fuel_cost_medium == 50.0
    assert sim.service_date == SERVICE_DAY
    assert sim.driver_assignments == [{
        "driver_id": str(driver.id),
        "order_ids": [str(order.id)],
        "total_hours": 1.0,
        "total_distance": 10.0,
    }]
    assert sim.unassigned_order_ids == []
    assert await _simulation_count(db) == 1


@pytest.mark.asyncio
async def test_run_does_not_touch_live_records(db, make):
    route = await make.route()
    driver = await make.driver()
    order = await make.order(route)

    await _run(db)
    await db.refresh(driver)
    await db.refresh(order)

    assert driver.status == "available"
    assert driver.current_shift_hours == 0.0
    assert order.status == "pending"
    assert order.driver_id is None


@pytest.mark.asyncio
async def test_no_available_drivers(db, make):
    route = await make.route()
    await make.driver(status="off-duty")
    await make.order(route)

    with pytest.raises(ResourceExhaustedError):
        await _run(db)
    assert await _simulation_count(db) == 0


@pytest.mark.asyncio
async def test_no_pending_orders(db, make):
    route = await make.route()
    await make.driver()
    await make.order(route, status="cancelled")

    with pytest.raises(ResourceExhaustedError):
        await _run(db)
    assert await _simulation_count(db) == 0


@pytest.mark.asyncio
async def test_orders_on_inactive_routes_are_reported_unassigned(db, make):
    active = await make.route()
    closed = await make.route(is_active=False)
    await make.driver()
    kept = await make.order(active)
    parked = await make.order(closed)

    sim = await _run(db)

    assert sim.total_deliveries == 1
    assert sim.driver_assignments[0]["order_ids"] == [str(kept.id)]
    assert sim.unassigned_order_ids == [str(parked.id)]


@pytest.mark.asyncio
async def test_driver_limit_prefers_least_worked(db, make):
    route = await make.route()
    await make.driver(name="Busy", current_shift_hours=4.0)
    rested = await make.driver(name="Rested", current_shift_hours=0.5)
    await make.order(route)

    sim = await _run(db, drivers=1)

    assert [a["driver_id"] for a in sim.driver_assignments] == [str(rested.id)]


@pytest.mark.asyncio
async def test_unassigned_orders_are_recorded(db, make):
    route = await make.route(base_time_minutes=120)
    await make.driver()
    order = await make.order(route)

    sim = await _run(db, max_hours=1)

    assert sim.total_deliveries == 0
    assert sim.efficiency_score == 0.0
    assert sim.unassigned_order_ids == [str(order.id)]


@pytest.mark.asyncio
async def test_list_newest_first(db, make):
    route = await make.route()
    await make.driver()
    await make.order(route)

    first = await _run(db)
    second = await _run(db, start="10:00")

    sims = await simulation_service.list_simulations(db)
    assert {s.id for s in sims} == {first.id, second.id}
    assert sims[0].created_at >= sims[1].created_at


@pytest.mark.asyncio
async def test_get_unknown_simulation(db):
    with pytest.raises(NotFoundError):
        await simulation_service.get_simulation(db, uuid.uuid4())


# ── Apply ──────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_apply_assigns_orders(db, make):
    route = await make.route(base_time_minutes=90)
    driver = await make.driver(current_shift_hours=0.5)
    idle = await make.driver(current_shift_hours=2.0)
    order = await make.order(route)

    sim = await _run(db)
    summary = await simulation_service.apply_simulation(db, sim.id)

    assert summary == {"simulation_id": sim.id, "drivers_updated": 1, "orders_assigned": 1}
    await db.refresh(driver)
    await db.refresh(idle)
    await db.refresh(order)
    assert order.status == "assigned"
    assert order.driver_id == driver.id
    assert driver.status == "on-route"
    assert driver.current_shift_hours == 2.0
    assert idle.status == "available"


@pytest.mark.asyncio
async def test_apply_twice_conflicts(db, make):
    route = await make.route()
    await make.driver()
    await make.order(route)

    sim = await _run(db)
    await simulation_service.apply_simulation(db, sim.id)

    with pytest.raises(StateConflictError):
        await simulation_service.apply_simulation(db, sim.id)


@pytest.mark.asyncio
async def test_apply_is_all_or_nothing(db, make):
    route = await make.route()
    first = await make.driver(name="A")
    second = await make.driver(name="B")
    order_a = await make.order(route)
    order_b = await make.order(route)

    sim = await _run(db)
    assert all(a["order_ids"] for a in sim.driver_assignments)

    # The second driver's order is cancelled before the apply
    order_b.status = "cancelled"
    await db.commit()

    with pytest.raises(StateConflictError):
        await simulation_service.apply_simulation(db, sim.id)

    for record in (first, second, order_a, order_b):
        await db.refresh(record)
    assert first.status == "available"
    assert second.status == "available"
    assert order_a.status == "pending"
    assert order_a.driver_id is None
    assert order_b.status == "cancelled"


@pytest.mark.asyncio
async def test_apply_unknown_simulation(db):
    with pytest.raises(NotFoundError):
        await simulation_service.apply_simulation(db, uuid.uuid4())

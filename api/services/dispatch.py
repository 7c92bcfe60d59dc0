"""
Dispatch Service — manual (non-simulation) order and driver operations.

Each operation loads its records, runs the state machine and commits once.
"""

from __future__ import annotations
import logging
import uuid
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from errors import ValidationError
from models.driver import Driver
from models.order import Order
from services import status_machine
from services.fatigue import estimate_delivery_minutes
from services.store import EntityStore

logger = logging.getLogger(__name__)


async def assign_driver(db: AsyncSession, order_id: uuid.UUID, driver_id: uuid.UUID) -> Order:
    """Operator assigns a pending order to an available, not highly fatigued driver."""
    store = EntityStore(db)
    order = await store.get_order(order_id)
    driver = await store.get_driver(driver_id)
    route = await store.get_route(order.route_id)

    duration = estimate_delivery_minutes(route.base_time_minutes, driver.is_fatigued)
    status_machine.assign_manually(order, driver, duration)

    await db.commit()
    await db.refresh(order)
    logger.info("Order %s assigned to driver %s (%d min)", order.order_code, driver.id, duration)
    return order


async def update_order_status(
    db: AsyncSession,
    order_id: uuid.UUID,
    status: str,
    delivered_at: datetime | None = None,
) -> Order:
    """Move an order along its lifecycle; delivery also settles financials and the driver."""
    store = EntityStore(db)
    order = await store.get_order(order_id)

    if status == "delivered":
        route = await store.get_route(order.route_id)
        driver = None
        others = 0
        if order.driver_id is not None:
            driver = await store.get_driver(order.driver_id)
            others = await store.count_open_orders(driver.id, exclude_order_id=order.id)
        status_machine.complete_delivery(
            order,
            route,
            driver,
            delivered_at or datetime.utcnow(),
            driver_has_other_open_orders=others > 0,
        )
    else:
        if delivered_at is not None:
            raise ValidationError("delivered_at is only accepted when marking an order delivered")
        status_machine.advance_order(order, status)

    await db.commit()
    await db.refresh(order)
    return order


async def end_shift(db: AsyncSession, driver_id: uuid.UUID) -> Driver:
    driver = await EntityStore(db).get_driver(driver_id)
    status_machine.end_driver_shift(driver)
    await db.commit()
    await db.refresh(driver)
    return driver


async def start_day(db: AsyncSession, driver_id: uuid.UUID) -> Driver:
    driver = await EntityStore(db).get_driver(driver_id)
    status_machine.start_driver_day(driver, datetime.utcnow())
    await db.commit()
    await db.refresh(driver)
    logger.info("Driver %s started a new day (fatigued=%s)", driver.id, driver.is_fatigued)
    return driver


async def set_fatigue_level(db: AsyncSession, driver_id: uuid.UUID, level: str) -> Driver:
    """Set the operator-managed fatigue tier; the simulation flag is untouched."""
    driver = await EntityStore(db).get_driver(driver_id)
    driver.fatigue_level = level
    driver.fatigue_updated_at = datetime.utcnow()
    await db.commit()
    await db.refresh(driver)
    return driver

"""
Status State Machine — legal Order and Driver transitions and their side effects.

Order:
  pending → assigned → in-transit → delivered (terminal)
  pending → delayed → pending | cancelled
  pending → cancelled (terminal)

Driver:
  available → on-route (first assignment) → available (last open order delivered)
  available | on-route → off-duty (shift end) → available (day start)

Functions here mutate the ORM objects they are given and never query or
commit; callers own the session.
"""

from __future__ import annotations
import logging
from datetime import datetime

from errors import StateConflictError, ValidationError
from models.driver import Driver
from models.order import Order
from models.route import Route
from services import fatigue
from services.finance import evaluate_delivery

logger = logging.getLogger(__name__)


ORDER_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"assigned", "delayed", "cancelled"}),
    "assigned": frozenset({"in-transit"}),
    "in-transit": frozenset({"delivered"}),
    "delayed": frozenset({"pending", "cancelled"}),
    "delivered": frozenset(),
    "cancelled": frozenset(),
}

TERMINAL_ORDER_STATUSES = frozenset({"delivered", "cancelled"})
# Orders in these states keep their driver on the road
OPEN_ORDER_STATUSES = ("assigned", "in-transit")

DRIVER_TRANSITIONS: dict[str, frozenset[str]] = {
    "available": frozenset({"on-route", "off-duty"}),
    "on-route": frozenset({"available", "off-duty"}),
    "off-duty": frozenset({"available"}),
}


# ── Transition checks ──────────────────────────────────────

def check_order_transition(current: str, target: str) -> None:
    if target not in ORDER_TRANSITIONS:
        raise ValidationError(f"Unknown order status: {target}")
    if current in TERMINAL_ORDER_STATUSES:
        raise StateConflictError(f"Cannot change status of {current} orders")
    if target not in ORDER_TRANSITIONS[current]:
        raise StateConflictError(f"Order cannot move from {current} to {target}")


def check_driver_transition(current: str, target: str) -> None:
    if target not in DRIVER_TRANSITIONS:
        raise ValidationError(f"Unknown driver status: {target}")
    if target not in DRIVER_TRANSITIONS[current]:
        raise StateConflictError(f"Driver cannot move from {current} to {target}")


def _move_order(order: Order, target: str) -> None:
    check_order_transition(order.status, target)
    logger.info("Order %s: %s → %s", order.order_code, order.status, target)
    order.status = target


def _move_driver(driver: Driver, target: str) -> None:
    check_driver_transition(driver.status, target)
    logger.info("Driver %s: %s → %s", driver.id, driver.status, target)
    driver.status = target


def _ensure_available(driver: Driver) -> None:
    if driver.status != "available":
        raise StateConflictError(f"Driver is not available (current status: {driver.status})")


# ── Assignment ─────────────────────────────────────────────

def assign_manually(order: Order, driver: Driver, duration_minutes: int) -> None:
    """
    Operator assigns one pending order to an available driver.

    The tiered fatigue level is checked here only; simulation assignments
    ignore it.
    """
    check_order_transition(order.status, "assigned")
    _ensure_available(driver)
    if driver.fatigue_level == "high":
        raise StateConflictError("Driver fatigue level is too high for new assignments")

    _move_order(order, "assigned")
    order.driver_id = driver.id
    _move_driver(driver, "on-route")
    driver.current_shift_hours = (driver.current_shift_hours or 0.0) + duration_minutes / 60


def apply_assignment(driver: Driver, orders: list[Order], total_hours: float) -> None:
    """Commit one driver's simulated assignment list to live records."""
    _ensure_available(driver)
    for order in orders:
        check_order_transition(order.status, "assigned")

    _move_driver(driver, "on-route")
    driver.current_shift_hours = (driver.current_shift_hours or 0.0) + total_hours
    for order in orders:
        _move_order(order, "assigned")
        order.driver_id = driver.id


# ── Order progress ─────────────────────────────────────────

def advance_order(order: Order, target: str) -> None:
    """Transitions without side effects: in-transit, delayed, cancelled, pending."""
    if target == "assigned":
        raise ValidationError("Use driver assignment to move an order to assigned")
    if target == "delivered":
        raise ValidationError("Use delivery completion to move an order to delivered")
    _move_order(order, target)


def complete_delivery(
    order: Order,
    route: Route,
    driver: Driver | None,
    delivered_at: datetime,
    driver_has_other_open_orders: bool,
) -> None:
    """
    Mark an in-transit order delivered.

    Stamps the delivery time, fills the financial fields, books the
    delivery into the driver's work history and frees the driver when this
    was its last open order.
    """
    _move_order(order, "delivered")
    order.actual_delivery_time = delivered_at

    money = evaluate_delivery(
        value_rs=order.value_rs,
        distance_km=route.distance_km,
        traffic_level=route.traffic_level,
        base_time_minutes=route.base_time_minutes,
        requested_at=order.delivery_timestamp,
        actual_at=delivered_at,
    )
    order.is_delivered_on_time = money.is_on_time
    order.fuel_cost = money.fuel_cost
    order.late_penalty = money.late_penalty
    order.high_value_bonus = money.high_value_bonus
    order.profit = money.profit

    if driver is None:
        return

    hours = fatigue.estimate_delivery_minutes(route.base_time_minutes, driver.is_fatigued) / 60
    driver.past_week_work_hours, driver.current_shift_hours = fatigue.record_delivery(
        driver.past_week_work_hours, driver.current_shift_hours or 0.0, hours,
    )

    if not driver_has_other_open_orders and driver.status == "on-route":
        _move_driver(driver, "available")


# ── Driver shifts ──────────────────────────────────────────

def end_driver_shift(driver: Driver) -> None:
    _move_driver(driver, "off-duty")
    driver.past_week_work_hours, driver.current_shift_hours = fatigue.end_shift(
        driver.past_week_work_hours, driver.current_shift_hours or 0.0,
    )


def start_driver_day(driver: Driver, now: datetime) -> None:
    """
    Roll the work history, reset shift and tiered fatigue, back to available.

    Only an off-duty driver can start a day; the shift must be ended first
    so its hours are already in the history.
    """
    if driver.status != "off-duty":
        raise StateConflictError(f"Driver must be off-duty to start a new day (current status: {driver.status})")
    _move_driver(driver, "available")
    driver.past_week_work_hours, driver.is_fatigued = fatigue.roll_over_day(driver.past_week_work_hours)
    driver.current_shift_hours = 0.0
    driver.fatigue_level = "normal"
    driver.fatigue_updated_at = now

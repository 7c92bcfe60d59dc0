"""
Allocation Engine — greedy single-pass matching of pending orders to drivers.

For each order (earliest requested delivery first):
  - Every driver is a candidate; fatigued drivers take 30% longer
  - A driver is feasible if committed + duration fits in max_hours_per_driver
  - The feasible driver with the least committed time wins (ties → input order)
  - No feasible driver → the order stays unassigned; no retry, no backtracking

Works on plain snapshots so a run never touches the database mid-pass.
Complexity: O(orders × drivers).
"""

from __future__ import annotations
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from services.fatigue import estimate_delivery_minutes
from services.finance import DeliveryFinancials, TrafficLevel, evaluate_delivery

logger = logging.getLogger(__name__)


# ── Snapshots ──────────────────────────────────────────────

@dataclass(frozen=True)
class DriverSnapshot:
    id: uuid.UUID
    name: str
    current_shift_hours: float
    is_fatigued: bool


@dataclass(frozen=True)
class RouteSnapshot:
    id: uuid.UUID
    distance_km: float
    traffic_level: str
    base_time_minutes: int


@dataclass(frozen=True)
class OrderSnapshot:
    id: uuid.UUID
    value_rs: float
    requested_at: datetime
    route: RouteSnapshot


# ── Results ────────────────────────────────────────────────

@dataclass
class DriverAssignment:
    driver_id: uuid.UUID
    order_ids: list[uuid.UUID] = field(default_factory=list)
    committed_minutes: int = 0
    total_distance: float = 0.0

    @property
    def total_hours(self) -> float:
        return self.committed_minutes / 60


@dataclass
class OrderOutcome:
    order_id: uuid.UUID
    driver_id: uuid.UUID
    duration_minutes: int
    actual_delivery_time: datetime
    financials: DeliveryFinancials


@dataclass
class SimulationKpis:
    total_profit: float = 0.0
    efficiency_score: float = 0.0
    on_time_deliveries: int = 0
    late_deliveries: int = 0
    total_deliveries: int = 0
    fuel_costs: float = 0.0
    high_value_bonuses: float = 0.0
    late_penalties: float = 0.0


@dataclass
class AllocationResult:
    kpis: SimulationKpis
    driver_assignments: list[DriverAssignment]
    fuel_cost_breakdown: dict[str, float]
    outcomes: list[OrderOutcome]
    unassigned_order_ids: list[uuid.UUID]


def efficiency_score(on_time: int, total: int) -> float:
    """Percentage of on-time deliveries; 0 when nothing was delivered."""
    if total == 0:
        return 0.0
    return 100 * on_time / total


def _pick_driver(
    drivers: list[DriverSnapshot],
    assignments: list[DriverAssignment],
    order: OrderSnapshot,
    max_minutes: int,
) -> tuple[int, int] | None:
    """Return (driver_index, duration_minutes) of the best feasible driver."""
    best: tuple[int, int] | None = None
    best_committed = None

    for i, driver in enumerate(drivers):
        committed = assignments[i].committed_minutes
        duration = estimate_delivery_minutes(order.route.base_time_minutes, driver.is_fatigued)
        if committed + duration > max_minutes:
            continue
        # Strict comparison keeps the earliest driver on ties
        if best_committed is None or committed < best_committed:
            best = (i, duration)
            best_committed = committed

    return best


def allocate_orders(
    drivers: list[DriverSnapshot],
    orders: list[OrderSnapshot],
    route_start: datetime,
    max_hours_per_driver: int,
) -> AllocationResult:
    """
    Run one allocation pass.

    Args:
        drivers: Available drivers, sorted by ascending current_shift_hours
        orders: Pending orders with routes, sorted by ascending requested time
        route_start: Clock time the fleet leaves, on the service date
        max_hours_per_driver: Per-driver hour budget for this run (1-12)

    Returns:
        AllocationResult with per-driver assignments and fleet KPIs
    """
    max_minutes = max_hours_per_driver * 60
    assignments = [DriverAssignment(driver_id=d.id) for d in drivers]
    breakdown = {level.value: 0.0 for level in TrafficLevel}
    kpis = SimulationKpis()
    outcomes: list[OrderOutcome] = []
    unassigned: list[uuid.UUID] = []

    for order in orders:
        picked = _pick_driver(drivers, assignments, order, max_minutes)
        if picked is None:
            unassigned.append(order.id)
            continue

        index, duration = picked
        assignment = assignments[index]
        route = order.route

        assignment.order_ids.append(order.id)
        assignment.committed_minutes += duration
        assignment.total_distance += route.distance_km

        actual_at = route_start + timedelta(minutes=assignment.committed_minutes)
        money = evaluate_delivery(
            value_rs=order.value_rs,
            distance_km=route.distance_km,
            traffic_level=route.traffic_level,
            base_time_minutes=route.base_time_minutes,
            requested_at=order.requested_at,
            actual_at=actual_at,
        )
        outcomes.append(OrderOutcome(
            order_id=order.id,
            driver_id=assignment.driver_id,
            duration_minutes=duration,
            actual_delivery_time=actual_at,
            financials=money,
        ))

        breakdown[TrafficLevel(route.traffic_level).value] += money.fuel_cost
        kpis.total_profit += money.profit
        kpis.fuel_costs += money.fuel_cost
        kpis.high_value_bonuses += money.high_value_bonus
        kpis.late_penalties += money.late_penalty
        kpis.total_deliveries += 1
        if money.is_late:
            kpis.late_deliveries += 1
        else:
            kpis.on_time_deliveries += 1

    kpis.efficiency_score = efficiency_score(kpis.on_time_deliveries, kpis.total_deliveries)

    logger.info(
        "Allocation: %d/%d orders placed on %d drivers (efficiency %.1f%%)",
        kpis.total_deliveries, len(orders), len(drivers), kpis.efficiency_score,
    )

    return AllocationResult(
        kpis=kpis,
        driver_assignments=assignments,
        fuel_cost_breakdown=breakdown,
        outcomes=outcomes,
        unassigned_order_ids=unassigned,
    )

"""
Financial Rule Engine — per-delivery fuel cost, lateness, penalty, bonus and profit.

Company rules:
  1. Fuel: ₹5 per km, plus ₹2 per km surcharge on High-traffic routes
  2. Late: delivered after requested time + route base time + 10 min grace
  3. Late penalty: flat ₹50
  4. High-value bonus: 10% of order value when value > ₹1000 and not late
  5. Profit: value + bonus − penalty − fuel

All functions are pure; nothing here touches the database.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum


# ── Constants ──────────────────────────────────────────────

FUEL_RATE_PER_KM = 5.0              # ₹5 per km (base)
HIGH_TRAFFIC_SURCHARGE_PER_KM = 2.0  # ₹2 per km extra in High traffic

LATE_GRACE_MIN = 10
LATE_PENALTY = 50.0

HIGH_VALUE_THRESHOLD = 1000.0       # strictly greater than
HIGH_VALUE_BONUS_PCT = 0.10


class TrafficLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


# ── Data classes ───────────────────────────────────────────

@dataclass
class DeliveryFinancials:
    fuel_cost: float
    is_late: bool
    late_penalty: float
    high_value_bonus: float
    profit: float

    @property
    def is_on_time(self) -> bool:
        return not self.is_late


# ── Core Functions ─────────────────────────────────────────

def calculate_fuel_cost(distance_km: float, traffic_level: str) -> float:
    """Fuel cost for one run of a route."""
    fuel_cost = distance_km * FUEL_RATE_PER_KM
    if TrafficLevel(traffic_level) is TrafficLevel.HIGH:
        fuel_cost += distance_km * HIGH_TRAFFIC_SURCHARGE_PER_KM
    return fuel_cost


def delivery_deadline(requested_at: datetime, base_time_minutes: int) -> datetime:
    """Latest on-time delivery moment for an order."""
    return requested_at + timedelta(minutes=base_time_minutes + LATE_GRACE_MIN)


def is_late_delivery(
    actual_at: datetime,
    requested_at: datetime,
    base_time_minutes: int,
) -> bool:
    return actual_at > delivery_deadline(requested_at, base_time_minutes)


def calculate_late_penalty(is_late: bool) -> float:
    return LATE_PENALTY if is_late else 0.0


def calculate_high_value_bonus(value_rs: float, is_late: bool) -> float:
    if value_rs > HIGH_VALUE_THRESHOLD and not is_late:
        return value_rs * HIGH_VALUE_BONUS_PCT
    return 0.0


def calculate_profit(
    value_rs: float,
    high_value_bonus: float,
    late_penalty: float,
    fuel_cost: float,
) -> float:
    return value_rs + high_value_bonus - late_penalty - fuel_cost


def evaluate_delivery(
    value_rs: float,
    distance_km: float,
    traffic_level: str,
    base_time_minutes: int,
    requested_at: datetime,
    actual_at: datetime,
) -> DeliveryFinancials:
    """
    Apply every financial rule to one order / route / delivery time.

    Args:
        value_rs: Order value in rupees
        distance_km: Route distance
        traffic_level: Low, Medium or High
        base_time_minutes: Route base time (unadjusted for fatigue)
        requested_at: Requested delivery timestamp on the order
        actual_at: Actual (or simulated) delivery timestamp

    Returns:
        DeliveryFinancials; profit is derived from the returned components
    """
    fuel_cost = calculate_fuel_cost(distance_km, traffic_level)
    late = is_late_delivery(actual_at, requested_at, base_time_minutes)
    penalty = calculate_late_penalty(late)
    bonus = calculate_high_value_bonus(value_rs, late)

    return DeliveryFinancials(
        fuel_cost=fuel_cost,
        is_late=late,
        late_penalty=penalty,
        high_value_bonus=bonus,
        profit=calculate_profit(value_rs, bonus, penalty, fuel_cost),
    )

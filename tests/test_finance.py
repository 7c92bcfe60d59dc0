"""Tests for the financial rule engine."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "api"))

from datetime import datetime, timedelta

import pytest

from services.finance import (
    calculate_fuel_cost, calculate_high_value_bonus, calculate_late_penalty,
    calculate_profit, delivery_deadline, evaluate_delivery, is_late_delivery,
    LATE_PENALTY,
)

REQUESTED = datetime(2025, 1, 6, 9, 0)


def test_fuel_cost_low_and_medium():
    """₹5 per km without surcharge."""
    assert calculate_fuel_cost(10.0, "Low") == 50.0
    assert calculate_fuel_cost(10.0, "Medium") == 50.0


def test_fuel_cost_high_surcharge():
    """High traffic adds ₹2 per km."""
    assert calculate_fuel_cost(10.0, "High") == 70.0


def test_fuel_cost_tier_ordering():
    for km in (0.5, 1.0, 12.5, 40.0):
        assert calculate_fuel_cost(km, "High") > calculate_fuel_cost(km, "Medium")
        assert calculate_fuel_cost(km, "Medium") == calculate_fuel_cost(km, "Low")


def test_fuel_cost_non_decreasing_in_distance():
    for level in ("Low", "Medium", "High"):
        costs = [calculate_fuel_cost(km, level) for km in (0, 1, 2.5, 5, 10, 25)]
        assert costs == sorted(costs)


def test_fuel_cost_unknown_traffic_level():
    with pytest.raises(ValueError):
        calculate_fuel_cost(10.0, "Gridlock")


def test_deadline_includes_base_time_and_grace():
    assert delivery_deadline(REQUESTED, 60) == REQUESTED + timedelta(minutes=70)


def test_delivery_exactly_at_deadline_is_on_time():
    assert not is_late_delivery(REQUESTED + timedelta(minutes=70), REQUESTED, 60)
    assert is_late_delivery(REQUESTED + timedelta(minutes=71), REQUESTED, 60)


def test_late_penalty():
    assert calculate_late_penalty(True) == LATE_PENALTY == 50.0
    assert calculate_late_penalty(False) == 0.0


def test_high_value_bonus_threshold_is_exclusive():
    """Exactly ₹1000 earns nothing; above it earns 10%."""
    assert calculate_high_value_bonus(1000.0, is_late=False) == 0.0
    assert calculate_high_value_bonus(1000.01, is_late=False) == pytest.approx(100.001)
    assert calculate_high_value_bonus(2500.0, is_late=False) == pytest.approx(250.0)


def test_high_value_bonus_lost_when_late():
    assert calculate_high_value_bonus(2500.0, is_late=True) == 0.0


def test_profit_formula():
    assert calculate_profit(1500.0, 150.0, 0.0, 50.0) == 1600.0
    assert calculate_profit(800.0, 0.0, 50.0, 70.0) == 680.0


def test_on_time_high_value_delivery():
    """Medium route, 10 km, ₹1500, delivered within the window."""
    money = evaluate_delivery(
        value_rs=1500.0, distance_km=10.0, traffic_level="Medium",
        base_time_minutes=60, requested_at=REQUESTED,
        actual_at=REQUESTED + timedelta(minutes=60),
    )
    assert money.fuel_cost == 50.0
    assert money.late_penalty == 0.0
    assert money.high_value_bonus == 150.0
    assert money.profit == 1600.0
    assert money.is_on_time


def test_fatigued_delivery_is_late():
    """78 minutes against a 70 minute window."""
    money = evaluate_delivery(
        value_rs=1500.0, distance_km=10.0, traffic_level="Medium",
        base_time_minutes=60, requested_at=REQUESTED,
        actual_at=REQUESTED + timedelta(minutes=78),
    )
    assert money.is_late
    assert money.late_penalty == 50.0
    assert money.high_value_bonus == 0.0
    assert money.profit == 1400.0


def test_profit_identity_holds_exactly():
    for value in (0.0, 999.99, 1000.0, 1234.56, 87654.32):
        for minutes in (30, 70, 71, 200):
            money = evaluate_delivery(
                value_rs=value, distance_km=13.7, traffic_level="High",
                base_time_minutes=60, requested_at=REQUESTED,
                actual_at=REQUESTED + timedelta(minutes=minutes),
            )
            assert money.profit == value + money.high_value_bonus - money.late_penalty - money.fuel_cost


def test_high_value_bonus_is_not_rounded():
    """Exactly 10% of the value; rounding is left to storage."""
    money = evaluate_delivery(
        value_rs=1000.05, distance_km=10.0, traffic_level="Medium",
        base_time_minutes=60, requested_at=REQUESTED,
        actual_at=REQUESTED + timedelta(minutes=30),
    )
    assert money.high_value_bonus == pytest.approx(100.005)
    assert money.high_value_bonus != 100.0
    assert money.profit == pytest.approx(1000.05 + 100.005 - 50.0)

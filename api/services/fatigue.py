"""
Fatigue Model — 7-day rolling work history and the binary fatigue flag.

History layout: index 0 is the day currently being worked, index 6 the
oldest day kept. Ordering matters: the end-of-shift write lands in slot 0
before the next rollover reads it. A rollover done before the day's hours
are recorded closes an empty day and always leaves the driver rested.
"""

from __future__ import annotations
import math


HISTORY_DAYS = 7
FATIGUE_THRESHOLD_HOURS = 8.0   # strictly more than this → fatigued
FATIGUE_SLOWDOWN = 1.3          # fatigued drivers take 30% longer


def validate_history(history: list[float]) -> list[float]:
    if len(history) != HISTORY_DAYS:
        raise ValueError(f"Work history must contain exactly {HISTORY_DAYS} days, got {len(history)}")
    if any(h < 0 for h in history):
        raise ValueError("Work hours cannot be negative")
    return [float(h) for h in history]


def is_fatigued_after(day_hours: float) -> bool:
    """Fatigue flag earned by a closed work day."""
    return day_hours > FATIGUE_THRESHOLD_HOURS


def estimate_delivery_minutes(base_time_minutes: int, is_fatigued: bool) -> int:
    """Route duration for a driver, rounded half-up to whole minutes."""
    minutes = base_time_minutes * FATIGUE_SLOWDOWN if is_fatigued else base_time_minutes
    return int(math.floor(minutes + 0.5))


def end_shift(history: list[float], current_shift_hours: float) -> tuple[list[float], float]:
    """
    Record the shift into today's slot.

    Returns:
        (new_history, new_current_shift_hours); shift hours reset to 0
    """
    updated = validate_history(history)
    updated[0] += current_shift_hours
    return updated, 0.0


def record_delivery(
    history: list[float],
    current_shift_hours: float,
    delivery_hours: float,
) -> tuple[list[float], float]:
    """
    Move a finished delivery's hours from the open shift into today's slot.

    Hours never committed to the shift (or already folded by an earlier
    end-of-shift) still count as worked today.
    """
    updated = validate_history(history)
    updated[0] += delivery_hours
    return updated, max(current_shift_hours - delivery_hours, 0.0)


def roll_over_day(history: list[float]) -> tuple[list[float], bool]:
    """
    Close today and open a fresh day.

    The closing day (slot 0) decides the fatigue flag for the day that
    follows; then the oldest slot is dropped and a 0 is pushed to the front.

    Returns:
        (new_history, is_fatigued)
    """
    current = validate_history(history)
    fatigued = is_fatigued_after(current[0])
    return [0.0] + current[:-1], fatigued

"""Low-balance threshold bands: pure functions, no I/O.

Per account the alert state is either "unalerted" (None) or "alerted at T".
Descending into a lower band emits and moves the state down; rising above
every threshold resets silently; everything else is a no-op.
"""

from bisect import bisect_left
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum


class AlertDecision(str, Enum):
    EMIT = "EMIT"
    RESET = "RESET"
    NONE = "NONE"


@dataclass(frozen=True)
class ThresholdTransition:
    decision: AlertDecision
    target: int | None
    next_state: int | None


def validate_thresholds(thresholds: Sequence[int]) -> tuple[int, ...]:
    values = tuple(thresholds)
    if not values:
        raise ValueError("At least one alert threshold is required")
    if any(t <= 0 for t in values):
        raise ValueError(f"Alert thresholds must be positive: {values}")
    if list(values) != sorted(set(values)):
        raise ValueError(f"Alert thresholds must be strictly ascending: {values}")
    return values


def target_threshold(balance: int, thresholds: Sequence[int]) -> int | None:
    """Smallest threshold >= balance, or None when balance is above all of them."""
    idx = bisect_left(thresholds, balance)
    return thresholds[idx] if idx < len(thresholds) else None


def decide(
    balance: int, last_alerted: int | None, thresholds: Sequence[int]
) -> ThresholdTransition:
    target = target_threshold(balance, thresholds)
    if target is None:
        if last_alerted is None:
            return ThresholdTransition(AlertDecision.NONE, None, None)
        return ThresholdTransition(AlertDecision.RESET, None, None)
    if last_alerted is None or target < last_alerted:
        return ThresholdTransition(AlertDecision.EMIT, target, target)
    # Same band, or partial recovery into a higher band: stay quiet
    return ThresholdTransition(AlertDecision.NONE, target, last_alerted)

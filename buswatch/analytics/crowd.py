"""Crowd-flow trend classification and the matching human explanation."""

from __future__ import annotations

from collections.abc import Sequence

from buswatch.domain.bus import HistoryRecord
from buswatch.domain.enums import CrowdFlow, Movement

SURGE_DELTA = 5
TREND_DELTA = 2

INSUFFICIENT_DATA = "Insufficient data, passenger flow assumed stable"
CROWD_RISING = "Crowd rising, bus likely approaching a busy stop."
CROWD_DROPPING = "Crowd dropping, passengers recently got off at a stop."
LOADING = "Stopped, possible passenger loading/unloading."
PICKING_UP = "Slow movement, may be picking up more passengers."
STABLE_FLOW = "Stable passenger flow"


def classify_crowd_flow(counts: Sequence[int]) -> CrowdFlow:
    """Classify the trend of *counts* (oldest to newest).

    Only the three most recent values matter; fewer than three is stable.
    """
    if len(counts) < 3:
        return CrowdFlow.STABLE

    a, b, c = counts[-3], counts[-2], counts[-1]
    delta1 = b - a
    delta2 = c - b

    if delta1 > SURGE_DELTA and delta2 > SURGE_DELTA:
        return CrowdFlow.SPIKE
    if delta1 < -SURGE_DELTA and delta2 < -SURGE_DELTA:
        return CrowdFlow.DROP
    if delta2 > TREND_DELTA:
        return CrowdFlow.INCREASING
    if delta2 < -TREND_DELTA:
        return CrowdFlow.DECREASING
    return CrowdFlow.STABLE


def explain_crowd_change(history: Sequence[HistoryRecord], movement: Movement) -> str:
    """Free-text rationale from the two most recent history records."""
    if len(history) < 2:
        return INSUFFICIENT_DATA

    diff = history[-1].passengers - history[-2].passengers
    if diff > SURGE_DELTA:
        return CROWD_RISING
    if diff < -SURGE_DELTA:
        return CROWD_DROPPING
    if movement == Movement.IDLE:
        return LOADING
    if movement == Movement.SLOWDOWN:
        return PICKING_UP
    return STABLE_FLOW

"""Passenger predictor — near-term demand from time of day and location."""

from __future__ import annotations

from buswatch.analytics.params import AnalyticsParams
from buswatch.foundation.numeric import clamp, round_half_up


def predict_passengers(
    passengers: int,
    lat: float,
    lng: float,
    hour: int,
    params: AnalyticsParams | None = None,
) -> int:
    """Expected passenger count given the local *hour* (0-23).

    Result is ``round(count * rush * terminal)`` bounded to [0, capacity].
    """
    p = params or AnalyticsParams()
    rush = p.rush_factor(hour)
    terminal = p.terminal_factor if p.terminal_box.contains(lat, lng) else 1.0
    predicted = round_half_up(passengers * rush * terminal)
    return int(clamp(predicted, 0, p.capacity))

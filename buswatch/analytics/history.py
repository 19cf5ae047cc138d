"""History recorder and passenger forecaster.

Two retained sequences per bus:
    - ``recent_counts``: the last few distinct passenger counts, feeding the
      crowd-flow classifier.
    - ``history``: timestamped change events (a new record only when the
      count differs from the last recorded one), feeding the forecaster.

Forecast formula:
    rate      = Δcount / Δseconds of the two most recent records
    projected = last_count + rate * minutes * 60
    weight    = min(0.6, 0.1 * record_count)
    result    = clamp(round(baseline * (1 - weight) + projected * weight), 0, capacity)
    confidence = min(0.95, 0.4 + 0.12 * record_count)

With fewer than two records the predictor baseline is returned with a
confidence of 0.5.
"""

from __future__ import annotations

from datetime import datetime

from buswatch.domain.bus import AnalyticState, HistoryRecord
from buswatch.domain.snapshot import Forecast
from buswatch.foundation.numeric import clamp, round_half_up

FALLBACK_CONFIDENCE = 0.5
MAX_BLEND_WEIGHT = 0.6
MAX_CONFIDENCE = 0.95


def record_passengers(state: AnalyticState, passengers: int, now: datetime) -> bool:
    """Feed a new passenger count into both rolling sequences.

    Returns True if a timestamped history record was appended.
    """
    if not state.recent_counts or state.recent_counts[-1] != passengers:
        state.recent_counts.append(passengers)

    if state.last_history_value is not None and state.last_history_value == passengers:
        return False

    state.history.append(HistoryRecord(timestamp=now, passengers=passengers))
    state.last_history_value = passengers
    return True


def forecast_confidence(record_count: int) -> float:
    if record_count < 2:
        return FALLBACK_CONFIDENCE
    return min(MAX_CONFIDENCE, 0.4 + 0.12 * record_count)


def forecast_passengers(
    history: list[HistoryRecord],
    minutes: float,
    baseline: int,
    capacity: int = 40,
) -> Forecast:
    """Blend a linear projection of *history* with the predictor *baseline*."""
    count = len(history)
    if count < 2:
        return Forecast(predicted=int(clamp(baseline, 0, capacity)), confidence=FALLBACK_CONFIDENCE)

    prev, last = history[-2], history[-1]
    dt = (last.timestamp - prev.timestamp).total_seconds()
    dp = last.passengers - prev.passengers
    rate = 0.0 if dt == 0 else dp / dt

    projected = last.passengers + rate * minutes * 60.0
    weight = min(MAX_BLEND_WEIGHT, 0.1 * count)
    blended = round_half_up(baseline * (1 - weight) + projected * weight)

    return Forecast(
        predicted=int(clamp(blended, 0, capacity)),
        confidence=forecast_confidence(count),
    )

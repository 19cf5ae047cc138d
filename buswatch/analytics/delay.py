"""ETA bucketing and delay-reason explanation."""

from __future__ import annotations

from collections.abc import Sequence

from buswatch.domain.bus import HistoryRecord
from buswatch.domain.enums import AnomalyCode, DelayState, Movement
from buswatch.domain.snapshot import Anomaly

LATE_AFTER_SECONDS = 1200
AHEAD_BEFORE_SECONDS = 240
RUSH_ETA_SECONDS = 900
HIGH_LOAD_AT = 32
LOADING_RISE = 8

UNKNOWN_REASON = "unknown"
HIGH_LOAD = "High passenger load slowing boarding"
RUSH_HOUR = "Rush-hour traffic"
STOPOVER = "Possible stopover"
SLOW_TRAFFIC = "Slow traffic ahead"
GPS_UNSTABLE = "GPS signal unstable, ETA may be inaccurate"
LOADING_DELAY = "Delayed by passenger loading"
NORMAL = "Normal conditions"


def delay_state(eta_seconds: float | None) -> DelayState:
    if eta_seconds is None:
        return DelayState.UNKNOWN
    if eta_seconds > LATE_AFTER_SECONDS:
        return DelayState.LATE
    if eta_seconds < AHEAD_BEFORE_SECONDS:
        return DelayState.AHEAD
    return DelayState.ON_TIME


def explain_delay(
    *,
    eta_seconds: float | None,
    target_station: str | None,
    passengers: int,
    rush_hour: bool,
    movement: Movement,
    anomalies: Sequence[Anomaly],
    history: Sequence[HistoryRecord],
) -> str:
    """Most likely reason for the current ETA, first match wins."""
    if eta_seconds is None or not target_station:
        return UNKNOWN_REASON

    if passengers >= HIGH_LOAD_AT:
        return HIGH_LOAD
    if rush_hour and eta_seconds > RUSH_ETA_SECONDS:
        return RUSH_HOUR
    if movement == Movement.IDLE:
        return STOPOVER
    if movement == Movement.SLOWDOWN:
        return SLOW_TRAFFIC
    if any(a.code == AnomalyCode.GPS_JUMP for a in anomalies):
        return GPS_UNSTABLE
    if len(history) >= 2 and history[-1].passengers - history[-2].passengers >= LOADING_RISE:
        return LOADING_DELAY
    return NORMAL

"""Anomaly detector.

Four independent checks that may fire together:

    passengers >= 38              → overcrowding / high
    |Δpassengers| >= 15           → spike / medium
    |Δlat| + |Δlng| > 0.003       → gps_jump / medium
    passengers <= 2               → very_low / low

Deltas are taken against the values seen on the previous call, which are
then replaced by the current ones.
"""

from __future__ import annotations

from buswatch.domain.bus import AnalyticState
from buswatch.domain.enums import AnomalyCode, AnomalyLevel
from buswatch.domain.geo import manhattan_degrees
from buswatch.domain.snapshot import Anomaly

OVERCROWDING_AT = 38
SPIKE_DELTA = 15
GPS_JUMP_DEGREES = 0.003
VERY_LOW_AT = 2


def detect_anomalies(
    state: AnalyticState,
    passengers: int,
    lat: float,
    lng: float,
) -> list[Anomaly]:
    anomalies: list[Anomaly] = []

    if passengers >= OVERCROWDING_AT:
        anomalies.append(Anomaly(
            code=AnomalyCode.OVERCROWDING,
            message="Bus is overcrowded",
            level=AnomalyLevel.HIGH,
        ))

    last_passengers = passengers if state.anomaly_passengers is None else state.anomaly_passengers
    if abs(passengers - last_passengers) >= SPIKE_DELTA:
        anomalies.append(Anomaly(
            code=AnomalyCode.SPIKE,
            message="Passenger spike detected",
            level=AnomalyLevel.MEDIUM,
        ))
    state.anomaly_passengers = passengers

    if state.anomaly_lat is not None and state.anomaly_lng is not None:
        jump = manhattan_degrees(state.anomaly_lat, state.anomaly_lng, lat, lng)
        if jump > GPS_JUMP_DEGREES:
            anomalies.append(Anomaly(
                code=AnomalyCode.GPS_JUMP,
                message="Abnormal GPS movement",
                level=AnomalyLevel.MEDIUM,
            ))
    state.anomaly_lat, state.anomaly_lng = lat, lng

    if passengers <= VERY_LOW_AT:
        anomalies.append(Anomaly(
            code=AnomalyCode.VERY_LOW,
            message="Bus is unusually empty",
            level=AnomalyLevel.LOW,
        ))

    return anomalies

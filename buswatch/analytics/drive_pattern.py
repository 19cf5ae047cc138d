"""Drive-pattern classifier.

Keeps its own retained position (independent of the movement classifier)
and a FIFO of instantaneous speeds.  The spread measure is the mean
absolute deviation of that FIFO, referred to as "variance" in the
thresholds below.
"""

from __future__ import annotations

from datetime import datetime

from buswatch.domain.bus import AnalyticState
from buswatch.domain.enums import DrivePattern
from buswatch.domain.geo import DEFAULT_METERS_PER_DEGREE, planar_meters

MIN_SAMPLES = 4


def record_speed_sample(
    state: AnalyticState,
    lat: float,
    lng: float,
    now: datetime,
    meters_per_degree: float = DEFAULT_METERS_PER_DEGREE,
) -> float | None:
    """Push the speed since the last fix onto the FIFO and return it.

    The first call only seeds the retained position and returns None.
    """
    if state.speed_lat is None or state.speed_lng is None or state.speed_seen_at is None:
        state.speed_lat, state.speed_lng, state.speed_seen_at = lat, lng, now
        return None

    meters = planar_meters(state.speed_lat, state.speed_lng, lat, lng, meters_per_degree)
    elapsed = (now - state.speed_seen_at).total_seconds()
    speed = meters / (elapsed if elapsed != 0 else 1.0)

    state.speed_samples.append(speed)
    state.speed_lat, state.speed_lng, state.speed_seen_at = lat, lng, now
    return speed


def classify_speeds(samples: list[float]) -> DrivePattern:
    """Classify a window of speed samples (m/s)."""
    if len(samples) < MIN_SAMPLES:
        return DrivePattern.UNKNOWN

    mean = sum(samples) / len(samples)
    variance = sum(abs(s - mean) for s in samples) / len(samples)

    if variance < 0.4 and mean > 4:
        return DrivePattern.SMOOTH
    if variance > 2.2:
        return DrivePattern.AGGRESSIVE
    if mean < 0.5 and variance < 0.3:
        return DrivePattern.IDLE_TOO_LONG
    if 0.5 < mean < 2 and variance > 0.8:
        return DrivePattern.STOP_AND_GO
    if mean < 0.8 and variance > 1.0:
        return DrivePattern.DRIFTING
    return DrivePattern.SMOOTH


def classify_drive_pattern(
    state: AnalyticState,
    lat: float,
    lng: float,
    now: datetime,
    meters_per_degree: float = DEFAULT_METERS_PER_DEGREE,
) -> DrivePattern:
    record_speed_sample(state, lat, lng, now, meters_per_degree)
    return classify_speeds(list(state.speed_samples))

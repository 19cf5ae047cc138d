"""Movement classifier — stable / idle / slowdown / teleport.

Uses the planar degree-sum distance between the current position and the
last observed one.  "Idle" is purely a function of elapsed time since the
previous observation; there is no ticking timer.
"""

from __future__ import annotations

from datetime import datetime

from buswatch.domain.bus import AnalyticState
from buswatch.domain.enums import Movement
from buswatch.domain.geo import DEFAULT_METERS_PER_DEGREE, planar_meters

TELEPORT_METERS = 200.0
IDLE_AFTER_SECONDS = 20.0
STOPPED_SPEED_MPS = 1.0
SLOW_SPEED_MPS = 4.0


def classify_movement(
    state: AnalyticState,
    lat: float,
    lng: float,
    now: datetime,
    meters_per_degree: float = DEFAULT_METERS_PER_DEGREE,
) -> Movement:
    """Classify motion since the last call and remember the current fix."""
    if state.last_lat is None or state.last_lng is None or state.last_seen_at is None:
        state.last_lat, state.last_lng, state.last_seen_at = lat, lng, now
        return Movement.STABLE

    meters = planar_meters(state.last_lat, state.last_lng, lat, lng, meters_per_degree)
    elapsed = (now - state.last_seen_at).total_seconds()
    speed = meters / (elapsed if elapsed != 0 else 1.0)

    if meters > TELEPORT_METERS:
        movement = Movement.TELEPORT
    elif speed < STOPPED_SPEED_MPS:
        movement = Movement.IDLE if elapsed > IDLE_AFTER_SECONDS else Movement.STABLE
    elif speed < SLOW_SPEED_MPS:
        movement = Movement.SLOWDOWN
    else:
        movement = Movement.STABLE

    state.last_lat, state.last_lng, state.last_seen_at = lat, lng, now
    return movement

"""Bus — the central fleet entity and its private analytic state.

A Bus carries public telemetry (position, passengers, route intent) and an
``AnalyticState`` that only the analytic functions touch.  The state is
kept off the public view so API responses never leak it.

Thread-safety note:
    Bus objects are mutated *only* while the caller holds that bus's lock
    in the FleetStore.  They are not themselves locked.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from buswatch.foundation.clock import utc_now

CROWD_WINDOW = 5
SPEED_WINDOW = 10
HISTORY_WINDOW = 30


class RoutePoint(BaseModel):
    lat: float
    lng: float

    model_config = {"frozen": True}


@dataclass(frozen=True)
class HistoryRecord:
    """One passenger-count change event."""

    timestamp: datetime
    passengers: int


@dataclass
class AnalyticState:
    """Rolling state retained between analytic invocations.

    Each estimator owns its own retained position so their outcomes do not
    depend on call order within a snapshot build.
    """

    # Movement classifier
    last_lat: float | None = None
    last_lng: float | None = None
    last_seen_at: datetime | None = None

    # Drive-pattern classifier
    speed_lat: float | None = None
    speed_lng: float | None = None
    speed_seen_at: datetime | None = None
    speed_samples: deque[float] = field(default_factory=lambda: deque(maxlen=SPEED_WINDOW))

    # History recorder
    recent_counts: deque[int] = field(default_factory=lambda: deque(maxlen=CROWD_WINDOW))
    history: deque[HistoryRecord] = field(default_factory=lambda: deque(maxlen=HISTORY_WINDOW))
    last_history_value: int | None = None

    # Anomaly detector
    anomaly_passengers: int | None = None
    anomaly_lat: float | None = None
    anomaly_lng: float | None = None


class Bus:
    """A tracked vehicle.  Created once and never deleted by the core."""

    __slots__ = (
        "bus_id",
        "lat",
        "lng",
        "passengers",
        "target_station",
        "route",
        "eta_seconds",
        "eta_text",
        "created_at",
        "updated_at",
        "analytics",
    )

    def __init__(
        self,
        bus_id: str,
        lat: float,
        lng: float,
        passengers: int = 0,
        target_station: str | None = None,
    ) -> None:
        now = utc_now()
        self.bus_id = bus_id
        self.lat = lat
        self.lng = lng
        self.passengers = passengers
        self.target_station = target_station
        self.route: list[RoutePoint] | None = None
        self.eta_seconds: float | None = None
        self.eta_text: str | None = None
        self.created_at: datetime = now
        self.updated_at: datetime = now
        self.analytics = AnalyticState()

    # ── Mutation ─────────────────────────────────────────────────────────

    def clear_route(self) -> None:
        self.route = None
        self.eta_seconds = None
        self.eta_text = None

    # ── Views ────────────────────────────────────────────────────────────

    def public_view(self) -> dict[str, Any]:
        """Raw record as exposed to API callers (no analytic state)."""
        return {
            "bus_id": self.bus_id,
            "lat": self.lat,
            "lng": self.lng,
            "passengers": self.passengers,
            "target_station": self.target_station,
            "route": [p.model_dump() for p in self.route] if self.route else None,
            "eta_seconds": self.eta_seconds,
            "eta_text": self.eta_text,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    def __repr__(self) -> str:
        return (
            f"Bus(id={self.bus_id}, lat={self.lat}, lng={self.lng}, "
            f"passengers={self.passengers}, target={self.target_station!r})"
        )

"""Enriched snapshot models — the externally visible fleet projection.

An EnrichedBus is the raw record plus every derived field for one bus at
one instant.  A FleetSnapshot bundles all of them.  Both are immutable
views rebuilt on demand; nothing here is persisted.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from buswatch.domain.bus import RoutePoint
from buswatch.domain.enums import (
    AnomalyCode,
    AnomalyLevel,
    CrowdFlow,
    DelayState,
    DrivePattern,
    Movement,
    RiskLevel,
    SafetyRating,
)


class Anomaly(BaseModel):
    code: AnomalyCode
    message: str
    level: AnomalyLevel

    model_config = {"frozen": True}


class Forecast(BaseModel):
    """Projected passenger count a few minutes ahead."""

    predicted: int = Field(..., ge=0)
    confidence: float = Field(..., ge=0.0, le=1.0)

    model_config = {"frozen": True}


class SafetyAssessment(BaseModel):
    score: int = Field(..., ge=0, le=100)
    rating: SafetyRating
    notes: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}


class Headway(BaseModel):
    """Gap to the bus immediately ahead toward the same destination."""

    meters: float | None = None
    ahead_id: str | None = None
    seconds: float | None = None
    text: str = "—"

    model_config = {"frozen": True}


class EnrichedBus(BaseModel):
    """One bus with all derived analytics attached."""

    # Raw record
    bus_id: str
    lat: float
    lng: float
    passengers: int
    target_station: str | None = None
    route: list[RoutePoint] | None = None
    eta_seconds: float | None = None
    eta_text: str | None = None
    updated_at: datetime | None = None

    # Station detection
    is_at_station: bool = False
    current_station: str | None = None

    # Per-bus analytics
    predicted: int = 0
    anomalies: list[Anomaly] = Field(default_factory=list)
    alert_level: str = "normal"
    alert_message: str = ""
    movement: Movement = Movement.UNKNOWN
    crowd_flow: CrowdFlow = CrowdFlow.STABLE
    crowd_explanation: str = ""
    drive_pattern: DrivePattern = DrivePattern.UNKNOWN
    predicted_5min: int = 0
    predicted_10min: int = 0
    risk_5min: RiskLevel = RiskLevel.NORMAL
    risk_10min: RiskLevel = RiskLevel.NORMAL
    forecast_confidence: float = Field(0.5, ge=0.0, le=1.0)
    delay_state: DelayState = DelayState.UNKNOWN
    delay_reason: str = "unknown"
    safety_score: int | None = None
    safety_rating: SafetyRating | None = None
    safety_notes: list[str] = Field(default_factory=list)

    # Cross-bus pass
    headway_meters: float | None = None
    headway_ahead_id: str | None = None
    headway_seconds: float | None = None
    headway_text: str = "—"

    model_config = {"frozen": True}

    def with_headway(self, headway: Headway) -> "EnrichedBus":
        return self.model_copy(update={
            "headway_meters": headway.meters,
            "headway_ahead_id": headway.ahead_id,
            "headway_seconds": headway.seconds,
            "headway_text": headway.text,
        })


class FleetSnapshot(BaseModel):
    """Point-in-time view of the whole fleet."""

    generated_at: datetime
    buses: list[EnrichedBus] = Field(default_factory=list)
    station_occupancy: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Station name -> ids of buses currently within its radius",
    )

    model_config = {"frozen": True}

    def get(self, bus_id: str) -> EnrichedBus | None:
        for bus in self.buses:
            if bus.bus_id == bus_id:
                return bus
        return None

"""Pydantic request bodies accepted at the HTTP boundary."""

from __future__ import annotations

from pydantic import BaseModel, Field

from buswatch.domain.bus import RoutePoint


class BusUpdate(BaseModel):
    """A single telemetry sample pushed by a bus."""

    lat: float = Field(..., ge=-90.0, le=90.0, allow_inf_nan=False)
    lng: float = Field(..., ge=-180.0, le=180.0, allow_inf_nan=False)
    passengers: int = Field(..., description="Clamped to vehicle capacity on ingestion")
    target_station: str | None = Field(default=None, max_length=256)
    target_lat: float | None = Field(default=None, ge=-90.0, le=90.0, allow_inf_nan=False)
    target_lng: float | None = Field(default=None, ge=-180.0, le=180.0, allow_inf_nan=False)
    route: list[RoutePoint] | None = Field(
        default=None,
        description="Explicit polyline; skips the routing lookup when given",
    )


class BusRegistration(BaseModel):
    bus_id: str = Field(..., min_length=1, max_length=64)
    lat: float = Field(..., ge=-90.0, le=90.0, allow_inf_nan=False)
    lng: float = Field(..., ge=-180.0, le=180.0, allow_inf_nan=False)
    passengers: int = 0
    target_station: str | None = Field(default=None, max_length=256)


class IncidentReport(BaseModel):
    bus_id: str = Field(..., min_length=1, max_length=64)
    category: str = Field(..., min_length=1, max_length=64)
    details: str = Field(default="", max_length=2000)
    lat: float | None = Field(default=None, ge=-90.0, le=90.0, allow_inf_nan=False)
    lng: float | None = Field(default=None, ge=-180.0, le=180.0, allow_inf_nan=False)

"""Incident — an immutable log record forwarded to subscribers opaquely."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from buswatch.foundation.clock import utc_now
from buswatch.foundation.identifiers import new_id


class Incident(BaseModel):
    """Something a driver or dispatcher reported about a bus.

    The enrichment pipeline never inspects incidents; they are relayed to
    subscribers on a side channel.
    """

    incident_id: str = Field(default_factory=lambda: str(new_id()))
    bus_id: str = Field(..., min_length=1, max_length=64)
    category: str = Field(..., min_length=1, max_length=64)
    details: str = Field(default="", max_length=2000)
    lat: float | None = Field(default=None, ge=-90.0, le=90.0)
    lng: float | None = Field(default=None, ge=-180.0, le=180.0)
    timestamp: datetime = Field(default_factory=utc_now)

    model_config = {"frozen": True}

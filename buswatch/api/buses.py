"""REST endpoints for the fleet: snapshot pull, update ingress, registration.

Paths:
    GET  /api/buses                 fresh enriched snapshot
    POST /api/buses                 register a bus
    POST /api/buses/{bus_id}/update apply one telemetry sample
    GET  /api/stations              static station table
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException

from buswatch.domain.bus import Bus
from buswatch.domain.station import StationTable
from buswatch.models.requests import BusRegistration, BusUpdate
from buswatch.services.fleet_service import Destination, FleetService
from buswatch.store.fleet_store import BusAlreadyExistsError, BusNotFoundError

logger = logging.getLogger(__name__)


def create_bus_router(service: FleetService, stations: StationTable) -> APIRouter:
    """Factory that wires the fleet endpoints to a FleetService."""

    router = APIRouter(prefix="/api", tags=["fleet"])

    @router.get("/buses")
    async def list_buses() -> dict[str, Any]:
        snapshot = await service.snapshot()
        return snapshot.model_dump(mode="json")

    @router.post("/buses", status_code=201)
    async def register_bus(body: BusRegistration) -> dict[str, Any]:
        bus = Bus(
            bus_id=body.bus_id,
            lat=body.lat,
            lng=body.lng,
            passengers=body.passengers,
            target_station=body.target_station,
        )
        try:
            record = await service.register(bus)
        except BusAlreadyExistsError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return {"ok": True, "bus": record}

    @router.post("/buses/{bus_id}/update")
    async def update_bus(bus_id: str, body: BusUpdate) -> dict[str, Any]:
        destination = None
        if body.target_lat is not None and body.target_lng is not None:
            destination = Destination(lat=body.target_lat, lng=body.target_lng)

        try:
            record = await service.apply_update(
                bus_id,
                body.lat,
                body.lng,
                body.passengers,
                target_station=body.target_station,
                route=body.route,
                destination=destination,
            )
        except BusNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return {"ok": True, "bus": record}

    @router.get("/stations")
    async def list_stations() -> dict[str, Any]:
        items = [s.model_dump() for s in stations]
        return {"stations": items, "count": len(items)}

    return router

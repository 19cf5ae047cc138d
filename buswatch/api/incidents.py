"""REST endpoint for incident reports.

Path: POST /api/incidents

Incidents are relayed to subscribers on the side channel; the enrichment
pipeline never sees them.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException

from buswatch.domain.incident import Incident
from buswatch.models.requests import IncidentReport
from buswatch.services.fleet_service import FleetService


def create_incident_router(service: FleetService) -> APIRouter:

    router = APIRouter(prefix="/api", tags=["incidents"])

    @router.post("/incidents", status_code=201)
    async def report_incident(body: IncidentReport) -> dict[str, Any]:
        if await service.store.get(body.bus_id) is None:
            raise HTTPException(status_code=404, detail=f"Bus {body.bus_id!r} not found")
        incident = Incident(**body.model_dump())
        await service.report_incident(incident)
        return {"ok": True, "incident": incident.model_dump(mode="json")}

    return router

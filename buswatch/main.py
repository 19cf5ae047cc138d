"""buswatch — real-time bus fleet enrichment service.

This is the application entry point.  It wires the FleetStore,
EnrichmentEngine, routing client, subscriber manager and HTTP/WebSocket
endpoints together.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from buswatch.analytics.params import AnalyticsParams, BoundingBox, RushWindow
from buswatch.api.buses import create_bus_router
from buswatch.api.incidents import create_incident_router
from buswatch.api.ws_fleet import create_fleet_router
from buswatch.config import Settings, settings
from buswatch.core.enrichment import EnrichmentEngine
from buswatch.core.headway import HeadwayCalculator
from buswatch.domain.bus import Bus
from buswatch.domain.station import Station, StationTable
from buswatch.services.connection_manager import ConnectionManager
from buswatch.services.fleet_service import FleetService
from buswatch.services.routing import OSRMRoutingClient, RoutingClient
from buswatch.store.fleet_store import FleetStore

# ── Logging ──────────────────────────────────────────────────────────────────

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)


def analytics_params(cfg: Settings) -> AnalyticsParams:
    return AnalyticsParams(
        capacity=cfg.capacity,
        meters_per_degree=cfg.meters_per_degree,
        timezone=cfg.timezone,
        terminal_box=BoundingBox(
            min_lat=cfg.terminal_min_lat,
            max_lat=cfg.terminal_max_lat,
            min_lng=cfg.terminal_min_lng,
            max_lng=cfg.terminal_max_lng,
        ),
        terminal_factor=cfg.terminal_factor,
        rush_windows=(
            RushWindow(cfg.morning_rush_start, cfg.morning_rush_end, cfg.morning_rush_factor),
            RushWindow(cfg.evening_rush_start, cfg.evening_rush_end, cfg.evening_rush_factor),
        ),
    )


def create_app(
    cfg: Settings = settings,
    router: RoutingClient | None = None,
) -> FastAPI:
    """Build a fully wired application.

    Args:
        cfg: Settings to build from.
        router: Routing collaborator; defaults to OSRM when routing is
            enabled in *cfg*.
    """

    # ── Static reference data ────────────────────────────────────────────

    stations = StationTable(Station(**s.model_dump()) for s in cfg.stations)

    # ── Engine ───────────────────────────────────────────────────────────

    engine = EnrichmentEngine(
        stations=stations,
        params=analytics_params(cfg),
        headway=HeadwayCalculator(stations, cfg.headway_assumed_speed_mps),
    )

    # ── State ────────────────────────────────────────────────────────────

    store = FleetStore(capacity=cfg.capacity)
    manager = ConnectionManager()

    if router is None and cfg.routing_enabled:
        router = OSRMRoutingClient(cfg.routing_base_url, timeout=cfg.routing_timeout_seconds)

    service = FleetService(
        store=store,
        engine=engine,
        stations=stations,
        broadcaster=manager,
        router=router,
        route_timeout=cfg.routing_timeout_seconds,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        for seed in cfg.seed_buses:
            await store.upsert(Bus(
                bus_id=seed.bus_id,
                lat=seed.lat,
                lng=seed.lng,
                passengers=seed.passengers,
                target_station=seed.target_station,
            ))
        logger.info("Fleet ready: %d bus(es), %d station(s)", await store.count(), len(stations))
        yield
        await service.drain()

    # ── App ──────────────────────────────────────────────────────────────

    app = FastAPI(
        title=cfg.app_name,
        description="Real-time bus fleet enrichment and broadcast",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.service = service
    app.state.manager = manager

    # ── Routes ───────────────────────────────────────────────────────────

    app.include_router(create_bus_router(service, stations))
    app.include_router(create_incident_router(service))
    app.include_router(create_fleet_router(service, manager))

    # ── Health ───────────────────────────────────────────────────────────

    @app.get("/health")
    async def health() -> dict:
        return {
            "status": "ok",
            "buses": await store.count(),
            "stations": len(stations),
            "subscribers": manager.active_count,
            "routing": router is not None,
        }

    return app


app = create_app()

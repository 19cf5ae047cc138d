"""FleetService — update ingestion, snapshot publication and route refresh.

Flow for one update:

    applyUpdate ─► FleetStore.apply_update   (per-bus lock, history recorder)
                ─► publish()                 (fresh snapshot → all subscribers)
                ─► background route refresh  (if a destination is known)
                        └─► apply result under the bus lock, publish() again

Route lookups run as tracked background tasks bounded by a timeout, so a
slow routing server never holds up the update request or other buses.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Protocol

from buswatch.core.enrichment import EnrichmentEngine
from buswatch.domain.bus import Bus, RoutePoint
from buswatch.domain.incident import Incident
from buswatch.domain.snapshot import FleetSnapshot
from buswatch.domain.station import StationTable
from buswatch.foundation.numeric import round_half_up
from buswatch.services.routing import RouteResult, RoutingClient
from buswatch.store.fleet_store import FleetStore

logger = logging.getLogger(__name__)

SNAPSHOT_EVENT = "buses_update"
INCIDENT_EVENT = "incident"


class Broadcaster(Protocol):
    async def broadcast_json(self, data: dict[str, Any]) -> int:
        ...


@dataclass(frozen=True)
class Destination:
    lat: float
    lng: float


def format_eta(seconds: float) -> str:
    return f"{max(1, round_half_up(seconds / 60.0))} min"


def snapshot_message(snapshot: FleetSnapshot) -> dict[str, Any]:
    return {"type": SNAPSHOT_EVENT, **snapshot.model_dump(mode="json")}


def _log_task_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Background route refresh failed: %s", exc, exc_info=exc)


class FleetService:
    """Glue between the store, the enrichment engine and subscribers."""

    def __init__(
        self,
        store: FleetStore,
        engine: EnrichmentEngine,
        stations: StationTable,
        broadcaster: Broadcaster,
        router: RoutingClient | None = None,
        route_timeout: float = 15.0,
    ) -> None:
        self._store = store
        self._engine = engine
        self._stations = stations
        self._broadcaster = broadcaster
        self._router = router
        self._route_timeout = route_timeout
        self._pending: set[asyncio.Task] = set()
        self._route_generation: dict[str, int] = {}

    @property
    def store(self) -> FleetStore:
        return self._store

    # ── Snapshot ─────────────────────────────────────────────────────────

    async def snapshot(self) -> FleetSnapshot:
        return await self._engine.build_snapshot(self._store)

    async def publish(self) -> None:
        """Rebuild the snapshot and push it to every subscriber.

        Never raises: a failed broadcast must not fail the caller.
        """
        try:
            snapshot = await self.snapshot()
            delivered = await self._broadcaster.broadcast_json(snapshot_message(snapshot))
            logger.debug("Published snapshot of %d bus(es) to %d subscriber(s)",
                         len(snapshot.buses), delivered)
        except Exception as exc:
            logger.error("Snapshot broadcast failed: %s", exc, exc_info=True)

    # ── Ingress ──────────────────────────────────────────────────────────

    async def apply_update(
        self,
        bus_id: str,
        lat: float,
        lng: float,
        passengers: int,
        target_station: str | None = None,
        route: list[RoutePoint] | None = None,
        destination: Destination | None = None,
    ) -> dict[str, Any]:
        """Apply one bus's sample, broadcast, and schedule a route refresh.

        Returns the updated raw record.

        Raises:
            BusNotFoundError: If *bus_id* is not tracked (nothing mutated,
                nothing broadcast).
        """
        bus = await self._store.apply_update(
            bus_id, lat, lng, passengers,
            target_station=target_station,
            route=route,
        )
        if route is not None:
            # an explicit route outranks any lookup still in flight
            self._route_generation[bus_id] = self._route_generation.get(bus_id, 0) + 1
        record = await self._store.with_bus(bus_id, Bus.public_view)

        await self.publish()

        if route is None:
            dest = destination or self._destination_for(bus.target_station)
            if dest is not None:
                self._schedule(self.refresh_route(bus_id, dest))

        return record

    async def register(self, bus: Bus) -> dict[str, Any]:
        await self._store.register(bus)
        await self.publish()
        return bus.public_view()

    async def report_incident(self, incident: Incident) -> None:
        """Relay an incident to subscribers untouched."""
        logger.info("Incident %s on bus %s: %s", incident.incident_id, incident.bus_id, incident.category)
        try:
            await self._broadcaster.broadcast_json({
                "type": INCIDENT_EVENT,
                "incident": incident.model_dump(mode="json"),
            })
        except Exception as exc:
            logger.error("Incident broadcast failed: %s", exc, exc_info=True)

    # ── Routing ──────────────────────────────────────────────────────────

    async def refresh_route(self, bus_id: str, destination: Destination) -> RouteResult | None:
        """Look up a route from the bus's current position and apply it.

        A missing router, a failed lookup or a timeout all clear the bus's
        route and ETA.  The snapshot is re-published either way.

        Only the most recently started refresh for a bus may apply its
        result; an older lookup that resolves late is discarded.
        """
        generation = self._route_generation.get(bus_id, 0) + 1
        self._route_generation[bus_id] = generation

        bus = await self._store.get(bus_id)
        if bus is None:
            return None

        result = await self._lookup(bus.lat, bus.lng, destination)

        def _apply(target: Bus) -> bool:
            if self._route_generation.get(bus_id) != generation:
                return False
            if result is None:
                target.clear_route()
                return True
            target.route = list(result.polyline)
            target.eta_seconds = result.duration_seconds
            target.eta_text = format_eta(result.duration_seconds)
            return True

        if not await self._store.with_bus(bus_id, _apply):
            logger.debug("Discarded superseded route lookup for bus %s", bus_id)
            return None
        if result is None:
            logger.info("No route for bus %s, cleared route and ETA", bus_id)
        else:
            logger.info("Route applied to bus %s (%d points, eta %.0fs)",
                        bus_id, len(result.polyline), result.duration_seconds)
        await self.publish()
        return result

    async def drain(self) -> None:
        """Wait for all in-flight route refreshes."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _lookup(self, lat: float, lng: float, dest: Destination) -> RouteResult | None:
        if self._router is None:
            return None
        try:
            return await asyncio.wait_for(
                self._router.fetch_route(lat, lng, dest.lat, dest.lng),
                timeout=self._route_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Route lookup timed out after %.1fs", self._route_timeout)
        except Exception as exc:
            logger.warning("Route lookup failed: %s", exc)
        return None

    def _destination_for(self, station_name: str | None) -> Destination | None:
        station = self._stations.by_name(station_name)
        if station is None:
            return None
        return Destination(lat=station.lat, lng=station.lng)

    def _schedule(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        task.add_done_callback(_log_task_failure)

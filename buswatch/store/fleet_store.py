"""In-memory fleet repository with per-bus serialized mutation.

Design notes:
    - A store-level asyncio.Lock guards the id index (registration and
      iteration snapshots).
    - Each bus has its own asyncio.Lock.  Every mutation of a bus (live
      fields, rolling state, route) happens while holding that lock, so two
      updates for the same bus never interleave while updates for
      different buses stay independent.
    - The store does NOT decide what an update means analytically.  It
      only applies raw fields and feeds the history recorder.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from typing import TypeVar

from buswatch.analytics.history import record_passengers
from buswatch.domain.bus import Bus, RoutePoint
from buswatch.foundation.clock import utc_now
from buswatch.foundation.numeric import clamp

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BusNotFoundError(Exception):
    """Raised when an operation names a bus id the fleet does not track."""

    def __init__(self, bus_id: str) -> None:
        self.bus_id = bus_id
        super().__init__(f"Bus {bus_id!r} not found")


class BusAlreadyExistsError(Exception):
    """Raised when registering a bus id that is already tracked."""

    def __init__(self, bus_id: str) -> None:
        self.bus_id = bus_id
        super().__init__(f"Bus {bus_id!r} already exists")


class FleetStore:
    """Async-safe owned repository of Bus records.

    Args:
        capacity: Upper bound passenger counts are clamped to on ingestion.
    """

    def __init__(self, capacity: int = 40) -> None:
        self._capacity = capacity
        self._lock = asyncio.Lock()
        self._buses: dict[str, Bus] = {}
        self._bus_locks: dict[str, asyncio.Lock] = {}

    @property
    def capacity(self) -> int:
        return self._capacity

    # ── Public API ───────────────────────────────────────────────────────

    async def get(self, bus_id: str) -> Bus | None:
        async with self._lock:
            return self._buses.get(bus_id)

    async def upsert(self, bus: Bus) -> Bus:
        """Insert *bus*, replacing any record with the same id."""
        bus.passengers = self.clamp_passengers(bus.passengers)
        async with self._lock:
            self._buses[bus.bus_id] = bus
            self._bus_locks.setdefault(bus.bus_id, asyncio.Lock())
        logger.info("Tracking bus %s", bus.bus_id)
        return bus

    async def register(self, bus: Bus) -> Bus:
        """Insert *bus*; fail if the id is taken."""
        bus.passengers = self.clamp_passengers(bus.passengers)
        async with self._lock:
            if bus.bus_id in self._buses:
                raise BusAlreadyExistsError(bus.bus_id)
            self._buses[bus.bus_id] = bus
            self._bus_locks[bus.bus_id] = asyncio.Lock()
        logger.info("Registered bus %s", bus.bus_id)
        return bus

    async def count(self) -> int:
        async with self._lock:
            return len(self._buses)

    async def with_bus(self, bus_id: str, fn: Callable[[Bus], T]) -> T:
        """Run *fn* on the bus while holding its lock."""
        async with self._lock:
            bus = self._buses.get(bus_id)
            lock = self._bus_locks.get(bus_id)
        if bus is None or lock is None:
            raise BusNotFoundError(bus_id)
        async with lock:
            return fn(bus)

    async def for_each(self, fn: Callable[[Bus], T]) -> list[T]:
        """Apply *fn* to every bus, each under its own lock.

        Buses are visited in registration order.
        """
        async with self._lock:
            entries = [(bus, self._bus_locks[bid]) for bid, bus in self._buses.items()]

        results: list[T] = []
        for bus, lock in entries:
            async with lock:
                results.append(fn(bus))
        return results

    async def apply_update(
        self,
        bus_id: str,
        lat: float,
        lng: float,
        passengers: int,
        target_station: str | None = None,
        route: list[RoutePoint] | None = None,
        now: datetime | None = None,
    ) -> Bus:
        """Apply a telemetry sample to a bus and feed its history recorder.

        Raises:
            BusNotFoundError: If *bus_id* is not tracked.
        """
        when = now or utc_now()
        count = self.clamp_passengers(passengers)

        def _apply(bus: Bus) -> Bus:
            bus.lat = lat
            bus.lng = lng
            bus.passengers = count
            if target_station:
                bus.target_station = target_station
            if route is not None:
                bus.route = list(route)
            record_passengers(bus.analytics, count, when)
            bus.updated_at = when
            logger.debug(
                "Applied update to %s (lat=%.6f, lng=%.6f, passengers=%d)",
                bus_id, lat, lng, count,
            )
            return bus

        return await self.with_bus(bus_id, _apply)

    # ── Internals ────────────────────────────────────────────────────────

    def clamp_passengers(self, passengers: int) -> int:
        return int(clamp(passengers, 0, self._capacity))

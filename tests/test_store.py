"""Tests for the FleetStore."""

import asyncio
from datetime import datetime, timezone

import pytest

from buswatch.domain.bus import Bus, RoutePoint
from buswatch.store.fleet_store import BusAlreadyExistsError, BusNotFoundError, FleetStore

_BASE = datetime(2026, 1, 1, 4, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def store() -> FleetStore:
    return FleetStore(capacity=40)


class TestFleetStore:
    @pytest.mark.asyncio
    async def test_upsert_and_get(self, store: FleetStore) -> None:
        await store.upsert(Bus("BUS-001", 14.4096, 121.039, 15))
        bus = await store.get("BUS-001")
        assert bus is not None
        assert bus.passengers == 15
        assert await store.count() == 1

    @pytest.mark.asyncio
    async def test_get_returns_none_for_unknown(self, store: FleetStore) -> None:
        assert await store.get("BUS-404") is None

    @pytest.mark.asyncio
    async def test_upsert_clamps_passengers(self, store: FleetStore) -> None:
        await store.upsert(Bus("BUS-001", 0.0, 0.0, 55))
        bus = await store.get("BUS-001")
        assert bus.passengers == 40

    @pytest.mark.asyncio
    async def test_register_rejects_duplicates(self, store: FleetStore) -> None:
        await store.register(Bus("BUS-001", 0.0, 0.0))
        with pytest.raises(BusAlreadyExistsError):
            await store.register(Bus("BUS-001", 1.0, 1.0))

    @pytest.mark.asyncio
    async def test_apply_update_sets_live_fields(self, store: FleetStore) -> None:
        await store.upsert(Bus("BUS-001", 0.0, 0.0, 10))
        bus = await store.apply_update(
            "BUS-001", 14.41, 121.04, 22,
            target_station="VTX - Vista Terminal",
            route=[RoutePoint(lat=14.41, lng=121.04)],
            now=_BASE,
        )
        assert (bus.lat, bus.lng, bus.passengers) == (14.41, 121.04, 22)
        assert bus.target_station == "VTX - Vista Terminal"
        assert bus.route == [RoutePoint(lat=14.41, lng=121.04)]
        assert bus.updated_at == _BASE

    @pytest.mark.asyncio
    async def test_apply_update_keeps_target_when_omitted(self, store: FleetStore) -> None:
        await store.upsert(Bus("BUS-001", 0.0, 0.0, 10, target_station="Depot"))
        bus = await store.apply_update("BUS-001", 1.0, 1.0, 11, now=_BASE)
        assert bus.target_station == "Depot"

    @pytest.mark.asyncio
    async def test_apply_update_clamps_and_records_history(self, store: FleetStore) -> None:
        await store.upsert(Bus("BUS-001", 0.0, 0.0, 10))
        bus = await store.apply_update("BUS-001", 0.0, 0.0, -5, now=_BASE)
        assert bus.passengers == 0
        assert [r.passengers for r in bus.analytics.history] == [0]
        assert list(bus.analytics.recent_counts) == [0]

    @pytest.mark.asyncio
    async def test_apply_update_unknown_bus(self, store: FleetStore) -> None:
        with pytest.raises(BusNotFoundError):
            await store.apply_update("BUS-404", 0.0, 0.0, 1)

    @pytest.mark.asyncio
    async def test_for_each_visits_in_registration_order(self, store: FleetStore) -> None:
        for bid in ("C", "A", "B"):
            await store.upsert(Bus(bid, 0.0, 0.0))
        assert await store.for_each(lambda bus: bus.bus_id) == ["C", "A", "B"]

    @pytest.mark.asyncio
    async def test_concurrent_updates_all_land(self, store: FleetStore) -> None:
        await store.upsert(Bus("BUS-001", 0.0, 0.0, 0))
        await asyncio.gather(*(store.apply_update("BUS-001", 0.0, 0.0, i) for i in range(10)))
        bus = await store.get("BUS-001")
        assert len(bus.analytics.history) == 10

    @pytest.mark.asyncio
    async def test_public_view_hides_analytic_state(self, store: FleetStore) -> None:
        await store.upsert(Bus("BUS-001", 0.0, 0.0, 5))
        bus = await store.apply_update("BUS-001", 0.0, 0.0, 6, now=_BASE)
        view = bus.public_view()
        assert "analytics" not in view
        assert view["passengers"] == 6
        assert view["route"] is None

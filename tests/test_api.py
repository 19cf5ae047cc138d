"""HTTP and WebSocket surface tests against a fully wired app."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from buswatch.config import Settings
from buswatch.main import create_app


class _NoRoute:
    async def fetch_route(self, origin_lat, origin_lng, dest_lat, dest_lng):
        return None


@pytest.fixture
def client():
    app = create_app(Settings(routing_enabled=False), router=_NoRoute())
    with TestClient(app) as test_client:
        yield test_client


class TestBuses:
    def test_seeded_snapshot(self, client: TestClient) -> None:
        resp = client.get("/api/buses")
        assert resp.status_code == 200
        body = resp.json()
        ids = [b["bus_id"] for b in body["buses"]]
        assert ids == ["BUS-001", "BUS-002"]
        assert set(body["station_occupancy"]) == {
            "VTX - Vista Terminal",
            "HM Bus Terminal - Laguna",
            "HM BUS Terminal - Calamba",
        }
        first = body["buses"][0]
        for key in ("predicted", "movement", "crowd_flow", "drive_pattern",
                    "predicted_5min", "risk_10min", "delay_state",
                    "safety_score", "headway_text"):
            assert key in first

    def test_update_success(self, client: TestClient) -> None:
        resp = client.post(
            "/api/buses/BUS-001/update",
            json={"lat": 14.4100, "lng": 121.0395, "passengers": 22,
                  "target_station": "VTX - Vista Terminal"},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["ok"] is True
        assert body["bus"]["passengers"] == 22
        assert body["bus"]["target_station"] == "VTX - Vista Terminal"

    def test_update_unknown_bus(self, client: TestClient) -> None:
        resp = client.post("/api/buses/BUS-999/update",
                           json={"lat": 14.41, "lng": 121.04, "passengers": 3})
        assert resp.status_code == 404

    def test_update_missing_passengers(self, client: TestClient) -> None:
        resp = client.post("/api/buses/BUS-001/update", json={"lat": 14.41, "lng": 121.04})
        assert resp.status_code == 422

    def test_update_out_of_range_latitude(self, client: TestClient) -> None:
        resp = client.post("/api/buses/BUS-001/update",
                           json={"lat": 123.0, "lng": 121.04, "passengers": 3})
        assert resp.status_code == 422

    def test_register_then_duplicate(self, client: TestClient) -> None:
        payload = {"bus_id": "BUS-003", "lat": 14.31, "lng": 121.11, "passengers": 5}
        created = client.post("/api/buses", json=payload)
        assert created.status_code == 201
        assert created.json()["bus"]["bus_id"] == "BUS-003"

        again = client.post("/api/buses", json=payload)
        assert again.status_code == 409

        ids = [b["bus_id"] for b in client.get("/api/buses").json()["buses"]]
        assert ids == ["BUS-001", "BUS-002", "BUS-003"]


class TestStationsAndHealth:
    def test_stations(self, client: TestClient) -> None:
        body = client.get("/api/stations").json()
        assert body["count"] == 3
        assert body["stations"][0]["name"] == "VTX - Vista Terminal"

    def test_health(self, client: TestClient) -> None:
        body = client.get("/health").json()
        assert body["status"] == "ok"
        assert body["buses"] == 2
        assert body["stations"] == 3
        assert body["routing"] is True


class TestIncidents:
    def test_incident_accepted(self, client: TestClient) -> None:
        resp = client.post("/api/incidents",
                           json={"bus_id": "BUS-002", "category": "Mechanical", "details": "Flat tire"})
        assert resp.status_code == 201
        incident = resp.json()["incident"]
        assert incident["bus_id"] == "BUS-002"
        assert incident["incident_id"]

    def test_incident_for_unknown_bus(self, client: TestClient) -> None:
        resp = client.post("/api/incidents", json={"bus_id": "NOPE", "category": "Delay"})
        assert resp.status_code == 404


class TestFleetSocket:
    def test_snapshot_on_connect(self, client: TestClient) -> None:
        with client.websocket_connect("/ws/fleet") as ws:
            message = ws.receive_json()
            assert message["type"] == "buses_update"
            assert len(message["buses"]) == 2

    def test_update_is_pushed(self, client: TestClient) -> None:
        with client.websocket_connect("/ws/fleet") as ws:
            ws.receive_json()
            client.post("/api/buses/BUS-002/update",
                        json={"lat": 14.4157, "lng": 121.0462, "passengers": 38})
            pushed = ws.receive_json()
            assert pushed["type"] == "buses_update"
            bus = next(b for b in pushed["buses"] if b["bus_id"] == "BUS-002")
            assert bus["passengers"] == 38
            assert bus["alert_level"] == "high"

    def test_incident_is_pushed(self, client: TestClient) -> None:
        with client.websocket_connect("/ws/fleet") as ws:
            ws.receive_json()
            client.post("/api/incidents", json={"bus_id": "BUS-001", "category": "Delay"})
            pushed = ws.receive_json()
            assert pushed["type"] == "incident"
            assert pushed["incident"]["category"] == "Delay"

    def test_ping_pong(self, client: TestClient) -> None:
        with client.websocket_connect("/ws/fleet") as ws:
            ws.receive_json()
            ws.send_text("ping")
            assert ws.receive_text() == "pong"

"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pydantic import BaseModel
from pydantic_settings import BaseSettings


class StationConfig(BaseModel):
    name: str
    lat: float
    lng: float
    radius_m: float = 100.0


class SeedBusConfig(BaseModel):
    bus_id: str
    lat: float
    lng: float
    passengers: int = 0
    target_station: str | None = None


DEFAULT_STATIONS = [
    StationConfig(name="VTX - Vista Terminal", lat=14.4172, lng=121.0412, radius_m=80.0),
    StationConfig(name="HM Bus Terminal - Laguna", lat=14.3125, lng=121.1109, radius_m=120.0),
    StationConfig(name="HM BUS Terminal - Calamba", lat=14.2118, lng=121.1652, radius_m=120.0),
]

DEFAULT_SEED_BUSES = [
    SeedBusConfig(bus_id="BUS-001", lat=14.4096, lng=121.039, passengers=15),
    SeedBusConfig(bus_id="BUS-002", lat=14.415655, lng=121.046180, passengers=20),
]


class Settings(BaseSettings):
    app_name: str = "buswatch"
    debug: bool = False
    log_level: str = "INFO"

    # Fleet
    capacity: int = 40
    seed_buses: list[SeedBusConfig] = DEFAULT_SEED_BUSES
    stations: list[StationConfig] = DEFAULT_STATIONS

    # Analytics (defaults match the Laguna deployment)
    timezone: str = "Asia/Manila"
    meters_per_degree: float = 111000.0
    terminal_min_lat: float = 14.410
    terminal_max_lat: float = 14.420
    terminal_min_lng: float = 121.035
    terminal_max_lng: float = 121.048
    terminal_factor: float = 1.25
    morning_rush_start: int = 6
    morning_rush_end: int = 9
    morning_rush_factor: float = 1.35
    evening_rush_start: int = 17
    evening_rush_end: int = 20
    evening_rush_factor: float = 1.50

    # Headway
    headway_assumed_speed_mps: float = 10.0

    # Routing collaborator
    routing_enabled: bool = True
    routing_base_url: str = "https://router.project-osrm.org"
    routing_timeout_seconds: float = 10.0

    model_config = {"env_prefix": "BUSWATCH_"}


settings = Settings()

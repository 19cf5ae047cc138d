"""Stations — fixed named locations with an arrival radius.

The station table is static reference data supplied at startup.  Lookups
walk the table in configuration order so "first match wins" is
deterministic.
"""

from __future__ import annotations

from typing import Iterable, Iterator

from pydantic import BaseModel, Field

from buswatch.domain.geo import haversine_m


class Station(BaseModel):
    """A terminal or stop a bus can be at or heading to."""

    name: str = Field(..., min_length=1, max_length=256)
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)
    radius_m: float = Field(100.0, gt=0.0, description="Arrival radius in meters")

    model_config = {"frozen": True}

    def distance_to(self, lat: float, lng: float) -> float:
        return haversine_m(lat, lng, self.lat, self.lng)

    def contains(self, lat: float, lng: float) -> bool:
        return self.distance_to(lat, lng) <= self.radius_m


class StationTable:
    """Immutable, ordered collection of stations."""

    __slots__ = ("_stations", "_by_key")

    def __init__(self, stations: Iterable[Station] = ()) -> None:
        self._stations: tuple[Station, ...] = tuple(stations)
        self._by_key: dict[str, Station] = {}
        for station in self._stations:
            self._by_key.setdefault(_key(station.name), station)

    def at(self, lat: float, lng: float) -> Station | None:
        """Return the first station whose radius contains the point."""
        for station in self._stations:
            if station.contains(lat, lng):
                return station
        return None

    def by_name(self, name: str | None) -> Station | None:
        """Look up a station by name, ignoring case and outer whitespace."""
        if not name:
            return None
        return self._by_key.get(_key(name))

    def distance_to(self, name: str | None, lat: float, lng: float) -> float:
        """Meters from the point to the named station, ``inf`` if unknown."""
        station = self.by_name(name)
        if station is None:
            return float("inf")
        return station.distance_to(lat, lng)

    def __iter__(self) -> Iterator[Station]:
        return iter(self._stations)

    def __len__(self) -> int:
        return len(self._stations)


def _key(name: str) -> str:
    return name.strip().casefold()

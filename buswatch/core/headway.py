"""HeadwayCalculator — gaps between buses converging on the same station.

Algorithm:
    1. Group enriched buses by target station, matched against the station
       table by name; unknown names group verbatim ("UNKNOWN" when unset).
    2. Within a group, measure each bus's haversine distance to the named
       station (infinite when the name does not match the table).
    3. Sort ascending by distance, ties broken by bus id.
    4. The leader gets no headway.  Every follower's headway is the
       distance to the bus immediately ahead of it, never negative, and the
       time estimate assumes a fixed cruising speed.

A bus whose own distance is not finite cannot be placed on the approach,
so its headway fields stay empty.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from buswatch.domain.snapshot import EnrichedBus, Headway
from buswatch.domain.station import StationTable
from buswatch.foundation.numeric import round_half_up

UNKNOWN_GROUP = "UNKNOWN"

# ~36 km/h
DEFAULT_ASSUMED_SPEED_MPS = 10.0


def format_headway(meters: float, seconds: float) -> str:
    """Render e.g. ``"1.0 km · 2 min"`` or ``"0.50 km · 1 min"``."""
    km = meters / 1000.0
    km_text = f"{km:.1f}" if meters >= 1000 else f"{km:.2f}"
    minutes = max(1, round_half_up(seconds / 60.0))
    return f"{km_text} km · {minutes} min"


class HeadwayCalculator:
    """Stateless cross-bus pass over an enriched fleet."""

    def __init__(
        self,
        stations: StationTable,
        assumed_speed_mps: float = DEFAULT_ASSUMED_SPEED_MPS,
    ) -> None:
        if assumed_speed_mps <= 0:
            raise ValueError("assumed_speed_mps must be positive")
        self._stations = stations
        self._speed = assumed_speed_mps

    # ── Public API ───────────────────────────────────────────────────────

    def compute(self, buses: Sequence[EnrichedBus]) -> dict[str, Headway]:
        """Return the headway for every bus id in *buses*."""
        result: dict[str, Headway] = {}
        for group, members in self.group(buses).items():
            result.update(self._compute_group(group, members))
        return result

    def apply(self, buses: Sequence[EnrichedBus]) -> list[EnrichedBus]:
        """Return copies of *buses* (same order) with headway fields set."""
        headways = self.compute(buses)
        return [bus.with_headway(headways[bus.bus_id]) for bus in buses]

    def group(self, buses: Sequence[EnrichedBus]) -> dict[str, list[EnrichedBus]]:
        """Bucket buses by destination, keyed by canonical station name.

        Names the station table does not know are kept as given.
        """
        groups: dict[str, list[EnrichedBus]] = {}
        for bus in buses:
            station = self._stations.by_name(bus.target_station)
            if station is not None:
                key = station.name
            else:
                key = bus.target_station or UNKNOWN_GROUP
            groups.setdefault(key, []).append(bus)
        return groups

    # ── Internals ────────────────────────────────────────────────────────

    def _compute_group(
        self,
        group: str,
        members: list[EnrichedBus],
    ) -> dict[str, Headway]:
        station_name = None if group == UNKNOWN_GROUP else group
        ranked = sorted(
            ((self._distance(station_name, bus), bus.bus_id) for bus in members),
            key=lambda item: (item[0], item[1]),
        )

        out: dict[str, Headway] = {}
        for idx, (distance, bus_id) in enumerate(ranked):
            if idx == 0 or not math.isfinite(distance):
                out[bus_id] = Headway()
                continue

            ahead_distance, ahead_id = ranked[idx - 1]
            meters = max(0.0, distance - ahead_distance)
            seconds = meters / self._speed
            out[bus_id] = Headway(
                meters=round(meters, 1),
                ahead_id=ahead_id,
                seconds=round(seconds, 1),
                text=format_headway(meters, seconds),
            )
        return out

    def _distance(self, station_name: str | None, bus: EnrichedBus) -> float:
        distance = self._stations.distance_to(station_name, bus.lat, bus.lng)
        # NaN would break the ordering
        return distance if math.isfinite(distance) else math.inf

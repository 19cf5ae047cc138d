"""Tunable parameters for the per-bus analytics.

The defaults reproduce the behaviour of the original Laguna deployment.
The terminal box and the meters-per-degree factor are geography of that
deployment, so they are configuration rather than algorithm.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from buswatch.domain.geo import DEFAULT_METERS_PER_DEGREE


@dataclass(frozen=True)
class BoundingBox:
    """Inclusive lat/lng rectangle."""

    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def contains(self, lat: float, lng: float) -> bool:
        return (
            self.min_lat <= lat <= self.max_lat
            and self.min_lng <= lng <= self.max_lng
        )


@dataclass(frozen=True)
class RushWindow:
    """Inclusive hour range with its demand multiplier."""

    start_hour: int
    end_hour: int
    factor: float

    def covers(self, hour: int) -> bool:
        return self.start_hour <= hour <= self.end_hour


DEFAULT_TERMINAL_BOX = BoundingBox(
    min_lat=14.410, max_lat=14.420, min_lng=121.035, max_lng=121.048,
)

# Checked in order; a later match overrides an earlier one.
DEFAULT_RUSH_WINDOWS: tuple[RushWindow, ...] = (
    RushWindow(6, 9, 1.35),
    RushWindow(17, 20, 1.50),
)


@dataclass(frozen=True)
class AnalyticsParams:
    capacity: int = 40
    meters_per_degree: float = DEFAULT_METERS_PER_DEGREE
    timezone: str = "Asia/Manila"
    terminal_box: BoundingBox = DEFAULT_TERMINAL_BOX
    terminal_factor: float = 1.25
    rush_windows: tuple[RushWindow, ...] = field(default=DEFAULT_RUSH_WINDOWS)

    def rush_factor(self, hour: int) -> float:
        factor = 1.0
        for window in self.rush_windows:
            if window.covers(hour):
                factor = window.factor
        return factor

    def is_rush_hour(self, hour: int) -> bool:
        return any(window.covers(hour) for window in self.rush_windows)

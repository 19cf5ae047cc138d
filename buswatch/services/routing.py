"""Routing collaborator — polyline and travel time between two points.

The default client talks to an OSRM HTTP server.  Any failure (network,
HTTP status, malformed body) yields ``None``: callers treat that as "no
route available" and never as a fatal error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol

import httpx

from buswatch.domain.bus import RoutePoint

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RouteResult:
    polyline: list[RoutePoint] = field(default_factory=list)
    duration_seconds: float = 0.0
    distance_meters: float = 0.0


class RoutingClient(Protocol):
    """Protocol for route lookups."""

    async def fetch_route(
        self,
        origin_lat: float,
        origin_lng: float,
        dest_lat: float,
        dest_lng: float,
    ) -> RouteResult | None:
        ...


class OSRMRoutingClient:
    """Async OSRM ``/route/v1/driving`` client.

    Args:
        base_url: OSRM server root, e.g. ``https://router.project-osrm.org``.
        timeout: Per-request timeout in seconds.
        client: Optional shared httpx.AsyncClient (tests inject a mock
            transport through this).
    """

    def __init__(
        self,
        base_url: str = "https://router.project-osrm.org",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = client

    async def fetch_route(
        self,
        origin_lat: float,
        origin_lng: float,
        dest_lat: float,
        dest_lng: float,
    ) -> RouteResult | None:
        # OSRM takes lng,lat pairs
        url = (
            f"{self._base_url}/route/v1/driving/"
            f"{origin_lng},{origin_lat};{dest_lng},{dest_lat}"
        )
        params = {"overview": "full", "geometries": "geojson"}
        try:
            if self._client is not None:
                response = await self._client.get(url, params=params, timeout=self._timeout)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.get(url, params=params)
            response.raise_for_status()
            return self.parse(response.json())
        except httpx.HTTPError as exc:
            logger.warning("OSRM request failed: %s", exc)
        except (ValueError, KeyError, TypeError, IndexError) as exc:
            logger.warning("OSRM response malformed: %s", exc)
        return None

    @staticmethod
    def parse(data: dict) -> RouteResult | None:
        """Convert an OSRM response body into a RouteResult."""
        routes = data.get("routes") or []
        if not routes:
            return None
        best = routes[0]
        coords = best["geometry"]["coordinates"]
        return RouteResult(
            polyline=[RoutePoint(lat=float(c[1]), lng=float(c[0])) for c in coords],
            duration_seconds=float(best.get("duration", 0.0)),
            distance_meters=float(best.get("distance", 0.0)),
        )

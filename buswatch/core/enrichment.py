"""EnrichmentEngine — builds the enriched fleet snapshot.

Pipeline per bus (order matters only where noted):
    1. station detection
    2. anomaly detection              (mutates anomaly retained state)
    3. passenger prediction
    4. movement classification        (mutates movement retained state)
    5. crowd-flow classification + crowd explanation
    6. drive-pattern classification   (mutates speed retained state)
    7. 5 and 10 minute forecasts, risk levels
    8. delay state + delay reason
    9. safety score                   (needs 2, 5 and 6)

Then one cross-bus pass: headway (needs every bus's station and position).

A failure while enriching one bus is logged and replaced by a neutral
record for that bus only; the rest of the fleet is still enriched.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime

from buswatch.analytics.anomalies import detect_anomalies
from buswatch.analytics.crowd import classify_crowd_flow, explain_crowd_change
from buswatch.analytics.delay import delay_state, explain_delay
from buswatch.analytics.drive_pattern import classify_drive_pattern
from buswatch.analytics.history import forecast_passengers
from buswatch.analytics.movement import classify_movement
from buswatch.analytics.params import AnalyticsParams
from buswatch.analytics.passengers import predict_passengers
from buswatch.analytics.risk import risk_level
from buswatch.analytics.safety import score_safety
from buswatch.core.headway import HeadwayCalculator
from buswatch.domain.bus import Bus
from buswatch.domain.enums import DrivePattern, Movement
from buswatch.domain.snapshot import EnrichedBus, FleetSnapshot
from buswatch.domain.station import StationTable
from buswatch.foundation.clock import local_hour, utc_now
from buswatch.store.fleet_store import FleetStore

logger = logging.getLogger(__name__)


class EnrichmentEngine:
    """Runs the per-bus analytics and the headway pass.

    The engine holds no fleet state of its own; all rolling state lives in
    each Bus's AnalyticState.
    """

    def __init__(
        self,
        stations: StationTable,
        params: AnalyticsParams | None = None,
        headway: HeadwayCalculator | None = None,
    ) -> None:
        self._stations = stations
        self._params = params or AnalyticsParams()
        self._headway = headway or HeadwayCalculator(stations)

    @property
    def params(self) -> AnalyticsParams:
        return self._params

    # ── Public API ───────────────────────────────────────────────────────

    async def build_snapshot(self, store: FleetStore) -> FleetSnapshot:
        """Enrich every bus in *store* and return a fresh snapshot."""
        now = utc_now()
        enriched = await store.for_each(lambda bus: self.enrich_safely(bus, now))
        return self.finalize(enriched, now)

    def finalize(self, enriched: list[EnrichedBus], now: datetime) -> FleetSnapshot:
        """Cross-bus pass: headway and station occupancy."""
        buses = self._headway.apply(enriched)

        occupancy: dict[str, list[str]] = {station.name: [] for station in self._stations}
        for bus in buses:
            if bus.current_station is not None:
                occupancy.setdefault(bus.current_station, []).append(bus.bus_id)

        return FleetSnapshot(generated_at=now, buses=buses, station_occupancy=occupancy)

    def enrich_safely(self, bus: Bus, now: datetime) -> EnrichedBus:
        try:
            return self.enrich(bus, now)
        except Exception:
            logger.exception("Enrichment failed for bus %s, using neutral defaults", bus.bus_id)
            return self._neutral(bus)

    def enrich(self, bus: Bus, now: datetime) -> EnrichedBus:
        """Run every per-bus analytic over *bus* at time *now*.

        Caller must hold the bus's lock: this mutates its AnalyticState.
        """
        p = self._params
        state = bus.analytics
        if not (math.isfinite(bus.lat) and math.isfinite(bus.lng)):
            raise ValueError(f"non-finite position ({bus.lat}, {bus.lng})")

        hour = local_hour(now, p.timezone)
        history = list(state.history)

        station = self._stations.at(bus.lat, bus.lng)

        anomalies = detect_anomalies(state, bus.passengers, bus.lat, bus.lng)
        first = anomalies[0] if anomalies else None

        predicted = predict_passengers(bus.passengers, bus.lat, bus.lng, hour, p)

        movement = classify_movement(state, bus.lat, bus.lng, now, p.meters_per_degree)
        crowd_flow = classify_crowd_flow(list(state.recent_counts))
        crowd_explanation = explain_crowd_change(history, movement)
        drive_pattern = classify_drive_pattern(state, bus.lat, bus.lng, now, p.meters_per_degree)

        f5 = forecast_passengers(history, 5, predicted, p.capacity)
        f10 = forecast_passengers(history, 10, predicted, p.capacity)

        reason = explain_delay(
            eta_seconds=bus.eta_seconds,
            target_station=bus.target_station,
            passengers=bus.passengers,
            rush_hour=p.is_rush_hour(hour),
            movement=movement,
            anomalies=anomalies,
            history=history,
        )

        safety = score_safety(anomalies, crowd_flow, drive_pattern)

        return EnrichedBus(
            **self._raw_fields(bus),
            is_at_station=station is not None,
            current_station=station.name if station else None,
            predicted=predicted,
            anomalies=anomalies,
            alert_level=first.level.value if first else "normal",
            alert_message=first.message if first else "",
            movement=movement,
            crowd_flow=crowd_flow,
            crowd_explanation=crowd_explanation,
            drive_pattern=drive_pattern,
            predicted_5min=f5.predicted,
            predicted_10min=f10.predicted,
            risk_5min=risk_level(f5.predicted),
            risk_10min=risk_level(f10.predicted),
            forecast_confidence=min(1.0, (f5.confidence + f10.confidence) / 2),
            delay_state=delay_state(bus.eta_seconds),
            delay_reason=reason,
            safety_score=safety.score,
            safety_rating=safety.rating,
            safety_notes=safety.notes,
        )

    # ── Helpers ──────────────────────────────────────────────────────────

    @staticmethod
    def _raw_fields(bus: Bus) -> dict:
        return {
            "bus_id": bus.bus_id,
            "lat": bus.lat,
            "lng": bus.lng,
            "passengers": bus.passengers,
            "target_station": bus.target_station,
            "route": list(bus.route) if bus.route else None,
            "eta_seconds": bus.eta_seconds,
            "eta_text": bus.eta_text,
            "updated_at": bus.updated_at,
        }

    def _neutral(self, bus: Bus) -> EnrichedBus:
        return EnrichedBus(
            **self._raw_fields(bus),
            movement=Movement.UNKNOWN,
            drive_pattern=DrivePattern.UNKNOWN,
            anomalies=[],
        )

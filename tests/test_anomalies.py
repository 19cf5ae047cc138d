"""Tests for the anomaly detector."""

from buswatch.analytics.anomalies import detect_anomalies
from buswatch.domain.bus import AnalyticState
from buswatch.domain.enums import AnomalyCode, AnomalyLevel

_LAT, _LNG = 14.4096, 121.039


def _codes(anomalies) -> set[AnomalyCode]:
    return {a.code for a in anomalies}


class TestDetectAnomalies:
    def test_normal_bus_has_no_anomalies(self) -> None:
        assert detect_anomalies(AnalyticState(), 20, _LAT, _LNG) == []

    def test_overcrowding_at_threshold(self) -> None:
        for count in (38, 39, 40):
            anomalies = detect_anomalies(AnalyticState(), count, _LAT, _LNG)
            hits = [a for a in anomalies if a.code == AnomalyCode.OVERCROWDING]
            assert len(hits) == 1
            assert hits[0].level == AnomalyLevel.HIGH

    def test_no_overcrowding_below_threshold(self) -> None:
        assert AnomalyCode.OVERCROWDING not in _codes(detect_anomalies(AnalyticState(), 37, _LAT, _LNG))

    def test_very_low(self) -> None:
        for count in (0, 1, 2):
            anomalies = detect_anomalies(AnalyticState(), count, _LAT, _LNG)
            hits = [a for a in anomalies if a.code == AnomalyCode.VERY_LOW]
            assert len(hits) == 1
            assert hits[0].level == AnomalyLevel.LOW
        assert AnomalyCode.VERY_LOW not in _codes(detect_anomalies(AnalyticState(), 3, _LAT, _LNG))

    def test_first_observation_never_spikes_or_jumps(self) -> None:
        assert _codes(detect_anomalies(AnalyticState(), 20, _LAT + 1, _LNG)) == set()

    def test_passenger_spike(self) -> None:
        state = AnalyticState()
        detect_anomalies(state, 10, _LAT, _LNG)
        anomalies = detect_anomalies(state, 25, _LAT, _LNG)
        assert _codes(anomalies) == {AnomalyCode.SPIKE}
        assert anomalies[0].level == AnomalyLevel.MEDIUM

    def test_passenger_drop_also_spikes(self) -> None:
        state = AnalyticState()
        detect_anomalies(state, 30, _LAT, _LNG)
        assert AnomalyCode.SPIKE in _codes(detect_anomalies(state, 15, _LAT, _LNG))

    def test_gps_jump(self) -> None:
        state = AnalyticState()
        detect_anomalies(state, 20, _LAT, _LNG)
        assert _codes(detect_anomalies(state, 20, _LAT + 0.004, _LNG)) == {AnomalyCode.GPS_JUMP}

    def test_small_move_is_not_a_jump(self) -> None:
        state = AnalyticState()
        detect_anomalies(state, 20, _LAT, _LNG)
        assert detect_anomalies(state, 20, _LAT + 0.002, _LNG) == []

    def test_checks_co_fire(self) -> None:
        state = AnalyticState()
        detect_anomalies(state, 10, _LAT, _LNG)
        anomalies = detect_anomalies(state, 39, _LAT + 0.01, _LNG)
        assert [a.code for a in anomalies] == [
            AnomalyCode.OVERCROWDING,
            AnomalyCode.SPIKE,
            AnomalyCode.GPS_JUMP,
        ]

    def test_state_tracks_last_values(self) -> None:
        state = AnalyticState()
        detect_anomalies(state, 12, _LAT, _LNG)
        detect_anomalies(state, 14, _LAT + 0.001, _LNG)
        assert state.anomaly_passengers == 14
        assert state.anomaly_lat == _LAT + 0.001
        assert state.last_lat is None

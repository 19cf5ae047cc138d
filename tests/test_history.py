"""Tests for the history recorder and the passenger forecaster."""

from datetime import datetime, timedelta, timezone

import pytest

from buswatch.analytics.history import (
    forecast_confidence,
    forecast_passengers,
    record_passengers,
)
from buswatch.domain.bus import CROWD_WINDOW, HISTORY_WINDOW, AnalyticState, HistoryRecord

_BASE = datetime(2026, 1, 1, 4, 0, 0, tzinfo=timezone.utc)


def _at(seconds: float) -> datetime:
    return _BASE + timedelta(seconds=seconds)


def _records(*pairs: tuple[float, int]) -> list[HistoryRecord]:
    return [HistoryRecord(timestamp=_at(t), passengers=p) for t, p in pairs]


class TestRecordPassengers:
    def test_first_sample_is_recorded(self) -> None:
        state = AnalyticState()
        assert record_passengers(state, 15, _BASE)
        assert [r.passengers for r in state.history] == [15]
        assert state.last_history_value == 15

    def test_repeated_value_is_not_recorded(self) -> None:
        state = AnalyticState()
        record_passengers(state, 15, _at(0))
        assert not record_passengers(state, 15, _at(10))
        record_passengers(state, 18, _at(20))
        assert [r.passengers for r in state.history] == [15, 18]
        assert state.history[-1].timestamp == _at(20)

    def test_history_is_bounded_oldest_first_out(self) -> None:
        state = AnalyticState()
        for i in range(HISTORY_WINDOW + 5):
            record_passengers(state, i, _at(i))
        assert len(state.history) == HISTORY_WINDOW
        assert state.history[0].passengers == 5
        assert state.history[-1].passengers == HISTORY_WINDOW + 4

    def test_recent_counts_bounded_and_deduplicated(self) -> None:
        state = AnalyticState()
        for count in [1, 1, 2, 3, 3, 4, 5, 6, 7]:
            record_passengers(state, count, _BASE)
        assert len(state.recent_counts) == CROWD_WINDOW
        assert list(state.recent_counts) == [3, 4, 5, 6, 7]

    def test_return_to_earlier_value_is_recorded(self) -> None:
        state = AnalyticState()
        for i, count in enumerate([10, 12, 10]):
            record_passengers(state, count, _at(i))
        assert [r.passengers for r in state.history] == [10, 12, 10]


class TestForecast:
    def test_falls_back_to_baseline_without_history(self) -> None:
        f = forecast_passengers([], 5, baseline=22)
        assert f.predicted == 22
        assert f.confidence == 0.5

    def test_falls_back_with_single_record(self) -> None:
        f = forecast_passengers(_records((0, 10)), 10, baseline=18)
        assert f.predicted == 18
        assert f.confidence == 0.5

    def test_linear_projection_blended_with_baseline(self) -> None:
        # rate = 10 / 60 per s; 5 min → 20 + 50 = 70; weight 0.2
        f = forecast_passengers(_records((0, 10), (60, 20)), 5, baseline=20)
        assert f.predicted == 30
        assert f.confidence == pytest.approx(0.64)

    def test_projection_clamped_to_capacity(self) -> None:
        f = forecast_passengers(_records((0, 5), (10, 35)), 10, baseline=35)
        assert f.predicted == 40

    def test_projection_clamped_at_zero(self) -> None:
        f = forecast_passengers(_records((0, 35), (10, 5)), 10, baseline=0)
        assert f.predicted == 0

    def test_zero_time_delta_means_flat_rate(self) -> None:
        f = forecast_passengers(_records((0, 10), (0, 20)), 5, baseline=20)
        assert f.predicted == 20

    def test_weight_saturates(self) -> None:
        pairs = [(i * 60.0, 10 + (i % 2)) for i in range(10)]
        f = forecast_passengers(_records(*pairs), 5, baseline=0)
        # last two: (480 s, 10), (540 s, 11); projected = 11 + 300 / 60 = 16
        # weight capped at 0.6 → 9.6
        assert f.predicted == 10

    def test_confidence_monotonic_and_capped(self) -> None:
        values = [forecast_confidence(n) for n in range(0, HISTORY_WINDOW + 1)]
        assert all(b >= a for a, b in zip(values, values[1:]))
        assert max(values) == 0.95
        assert values[-1] == 0.95

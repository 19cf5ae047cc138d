"""Driver safety score.

Starts from 100 and applies adjustments in a fixed order (anomalies, then
crowd flow, then drive pattern), recording a note for each one.  The final
score is clamped to [0, 100] and mapped to a rating band.
"""

from __future__ import annotations

from collections.abc import Sequence

from buswatch.domain.enums import AnomalyCode, CrowdFlow, DrivePattern, SafetyRating
from buswatch.domain.snapshot import Anomaly, SafetyAssessment
from buswatch.foundation.numeric import clamp

BASE_SCORE = 100

ANOMALY_ADJUSTMENTS: dict[AnomalyCode, tuple[int, str]] = {
    AnomalyCode.OVERCROWDING: (-15, "Overcrowding reported"),
    AnomalyCode.GPS_JUMP: (-10, "Erratic GPS position"),
    AnomalyCode.SPIKE: (-8, "Sudden passenger spike"),
}

CROWD_ADJUSTMENTS: dict[CrowdFlow, tuple[int, str]] = {
    CrowdFlow.SPIKE: (-6, "Crowd surging"),
    CrowdFlow.DROP: (-3, "Crowd dropping sharply"),
    CrowdFlow.INCREASING: (-2, "Crowd increasing"),
    CrowdFlow.DECREASING: (1, "Crowd easing"),
}

PATTERN_ADJUSTMENTS: dict[DrivePattern, tuple[int, str]] = {
    DrivePattern.AGGRESSIVE: (-25, "Aggressive driving"),
    DrivePattern.STOP_AND_GO: (-12, "Stop-and-go driving"),
    DrivePattern.IDLE_TOO_LONG: (-5, "Idling too long"),
    DrivePattern.DRIFTING: (-8, "Drifting at low speed"),
    DrivePattern.SMOOTH: (5, "Smooth driving"),
}

RATING_BANDS: tuple[tuple[int, SafetyRating], ...] = (
    (85, SafetyRating.EXCELLENT),
    (70, SafetyRating.GOOD),
    (55, SafetyRating.FAIR),
)


def rating_for(score: int) -> SafetyRating:
    for floor, rating in RATING_BANDS:
        if score >= floor:
            return rating
    return SafetyRating.NEEDS_ATTENTION


def score_safety(
    anomalies: Sequence[Anomaly],
    crowd_flow: CrowdFlow,
    drive_pattern: DrivePattern,
) -> SafetyAssessment:
    score = BASE_SCORE
    notes: list[str] = []

    def apply(adjustment: tuple[int, str] | None) -> None:
        nonlocal score
        if adjustment is None:
            return
        delta, label = adjustment
        score += delta
        notes.append(f"{label} ({delta:+d})")

    for anomaly in anomalies:
        apply(ANOMALY_ADJUSTMENTS.get(anomaly.code))
    apply(CROWD_ADJUSTMENTS.get(crowd_flow))
    apply(PATTERN_ADJUSTMENTS.get(drive_pattern))

    final = int(clamp(score, 0, 100))
    return SafetyAssessment(score=final, rating=rating_for(final), notes=notes)

"""Controlled enumerations for the buswatch domain.

Every categorical field in the enriched snapshot MUST reference an enum
defined here.  Free-form strings are reserved for human-readable notes.
"""

from __future__ import annotations

from enum import Enum


class Movement(str, Enum):
    """Short-term motion state derived from consecutive positions."""

    STABLE = "stable"
    IDLE = "idle"
    SLOWDOWN = "slowdown"
    TELEPORT = "teleport"
    UNKNOWN = "unknown"


class CrowdFlow(str, Enum):
    """Trend of the last few passenger counts."""

    SPIKE = "spike"
    DROP = "drop"
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class DrivePattern(str, Enum):
    """Driving style inferred from the spread of recent speeds."""

    SMOOTH = "Smooth"
    AGGRESSIVE = "Aggressive"
    IDLE_TOO_LONG = "Idle-too-long"
    STOP_AND_GO = "Stop-and-go"
    DRIFTING = "Drifting"
    UNKNOWN = "unknown"


class AnomalyCode(str, Enum):
    OVERCROWDING = "overcrowding"
    SPIKE = "spike"
    GPS_JUMP = "gps_jump"
    VERY_LOW = "very_low"


class AnomalyLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RiskLevel(str, Enum):
    """Load risk derived from a (predicted) passenger count."""

    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"


class DelayState(str, Enum):
    """ETA bucket relative to the schedule thresholds."""

    LATE = "late"
    AHEAD = "ahead"
    ON_TIME = "on_time"
    UNKNOWN = "unknown"


class SafetyRating(str, Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    NEEDS_ATTENTION = "Needs Attention"

"""Load risk thresholds."""

from __future__ import annotations

from buswatch.domain.enums import RiskLevel

CRITICAL_AT = 36
WARNING_AT = 30


def risk_level(count: int) -> RiskLevel:
    if count >= CRITICAL_AT:
        return RiskLevel.CRITICAL
    if count >= WARNING_AT:
        return RiskLevel.WARNING
    return RiskLevel.NORMAL

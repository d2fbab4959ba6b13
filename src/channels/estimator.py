"""Recipient estimation — audience size per channel.

Each channel has its own policy table; nothing here is shared between
Cell Broadcast and push.
"""

from __future__ import annotations

import math

from src.core.types import AlertInput, Severity

# People per km² assumed inside a broadcast area.
POPULATION_DENSITY_PER_KM2 = 100

# Earthquake impact radius grows with magnitude: M5.0 → 500 km.
KM_PER_MAGNITUDE = 100

_BROADCAST_BY_SEVERITY: dict[Severity, int] = {
    Severity.CRITICAL: 10_000_000,
    Severity.HIGH: 1_000_000,
    Severity.MEDIUM: 100_000,
    Severity.LOW: 10_000,
}

_PUSH_SUBSCRIBERS_BY_SEVERITY: dict[Severity, int] = {
    Severity.CRITICAL: 500_000,
    Severity.HIGH: 200_000,
    Severity.MEDIUM: 50_000,
    Severity.LOW: 10_000,
}


def _area_recipients(radius_km: float) -> int:
    area = math.pi * radius_km**2
    return int(area * POPULATION_DENSITY_PER_KM2)


def estimate_broadcast_recipients(alert: AlertInput) -> int:
    """Estimate how many handsets a cell broadcast reaches.

    An explicit radius wins; earthquakes derive a radius from magnitude;
    everything else falls back to the severity tier.
    """
    if alert.radius_km is not None and alert.radius_km > 0:
        return _area_recipients(alert.radius_km)

    if alert.alert_type == "EARTHQUAKE" and alert.magnitude is not None:
        return _area_recipients(alert.magnitude * KM_PER_MAGNITUDE)

    return _BROADCAST_BY_SEVERITY[alert.severity_tier]


def estimate_push_recipients(alert: AlertInput) -> int:
    """Estimate topic subscribers for a push notification."""
    return _PUSH_SUBSCRIBERS_BY_SEVERITY[alert.severity_tier]

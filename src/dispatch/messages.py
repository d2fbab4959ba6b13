"""Human-readable alert text rendered once per alert at dispatch time."""

from __future__ import annotations

from collections.abc import Callable

from src.core.types import AlertInput


def _earthquake(alert: AlertInput) -> str | None:
    if alert.magnitude is None:
        return None
    where = alert.location or alert.region
    text = f"Earthquake M{alert.magnitude} detected"
    return f"{text} at {where}" if where else text


def _flood(alert: AlertInput) -> str | None:
    if alert.water_level_feet is None:
        return None
    station = alert.station_name or alert.station_id or alert.location
    text = f"Flood warning at {station}" if station else "Flood warning"
    text += f": water level {alert.water_level_feet:.1f} ft"
    if alert.flood_stage_feet is not None:
        text += f" (flood stage {alert.flood_stage_feet:.1f} ft)"
    return text


def _geomagnetic(alert: AlertInput) -> str | None:
    if alert.kp_value is None:
        return None
    return f"Geomagnetic storm detected: Kp index {alert.kp_value:.1f}"


def _tsunami(alert: AlertInput) -> str | None:
    if alert.tsunami_risk_score is None:
        return None
    where = alert.location or alert.region
    text = f"Tsunami risk score {alert.tsunami_risk_score}"
    return f"{text} near {where}" if where else text


def _cme(alert: AlertInput) -> str | None:
    if alert.cme_speed is None:
        return None
    kind = f" ({alert.cme_type})" if alert.cme_type else ""
    return f"Coronal mass ejection detected{kind}: {alert.cme_speed:.0f} km/s"


_TEMPLATES: dict[str, Callable[[AlertInput], str | None]] = {
    "EARTHQUAKE": _earthquake,
    "FLOOD": _flood,
    "SPACE_WEATHER": _geomagnetic,
    "GEOMAGNETIC_STORM": _geomagnetic,
    "TSUNAMI": _tsunami,
    "CME": _cme,
}


def render_message(alert: AlertInput) -> str:
    """Render the alert text.

    Type template first; then an explicit upstream message; then the raw
    description; then a generic line.
    """
    template = _TEMPLATES.get(alert.alert_type)
    if template is not None:
        text = template(alert)
        if text:
            return text
    if alert.message:
        return alert.message
    if alert.description:
        return alert.description
    return f"{alert.alert_type} alert ({alert.severity})"

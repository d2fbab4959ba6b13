"""Tests for render_message()."""

from __future__ import annotations

from src.core.types import AlertInput
from src.dispatch.messages import render_message


def _alert(**kw: object) -> AlertInput:
    defaults: dict[str, object] = {
        "alert_id": "a-1",
        "severity": "HIGH",
        "alert_type": "EARTHQUAKE",
    }
    defaults.update(kw)
    return AlertInput(**defaults)  # type: ignore[arg-type]


class TestTemplates:
    def test_earthquake(self) -> None:
        alert = _alert(magnitude=5.0, location="California")
        assert render_message(alert) == "Earthquake M5.0 detected at California"

    def test_earthquake_region_fallback(self) -> None:
        alert = _alert(magnitude=6.3, region="Kanto")
        assert render_message(alert) == "Earthquake M6.3 detected at Kanto"

    def test_earthquake_magnitude_not_rounded(self) -> None:
        alert = _alert(magnitude=6.75, region="Kanto")
        assert render_message(alert) == "Earthquake M6.75 detected at Kanto"

    def test_earthquake_without_place(self) -> None:
        assert render_message(_alert(magnitude=4.0)) == "Earthquake M4.0 detected"

    def test_flood(self) -> None:
        alert = _alert(
            alert_type="FLOOD",
            station_name="Adyar Bridge",
            water_level_feet=21.5,
            flood_stage_feet=18.0,
        )
        assert render_message(alert) == (
            "Flood warning at Adyar Bridge: water level 21.5 ft (flood stage 18.0 ft)"
        )

    def test_geomagnetic_storm(self) -> None:
        alert = _alert(alert_type="SPACE_WEATHER", kp_value=7.0)
        assert render_message(alert) == "Geomagnetic storm detected: Kp index 7.0"

    def test_tsunami(self) -> None:
        alert = _alert(alert_type="TSUNAMI", tsunami_risk_score=80, location="Chennai")
        assert render_message(alert) == "Tsunami risk score 80 near Chennai"

    def test_cme(self) -> None:
        alert = _alert(alert_type="CME", cme_speed=1200.0, cme_type="halo")
        assert render_message(alert) == "Coronal mass ejection detected (halo): 1200 km/s"


class TestFallbacks:
    def test_template_missing_data_uses_message(self) -> None:
        alert = _alert(message="Shaking reported")
        assert render_message(alert) == "Shaking reported"

    def test_description_fallback(self) -> None:
        alert = _alert(alert_type="WILDFIRE", description="Fire near ridge")
        assert render_message(alert) == "Fire near ridge"

    def test_generic_line(self) -> None:
        alert = _alert(alert_type="WILDFIRE", severity="LOW")
        assert render_message(alert) == "WILDFIRE alert (LOW)"

"""SpaceWeatherAdapter — translates NOAA-style space-weather payloads.

Expected raw format:
{
    "source_type": "space_weather",
    "kp_index": 5.33,
    "sunspot_number": 134,
    "solar_flux": 162.4,
    "timestamp": "2026-02-13T14:00:00Z"
}

One payload can carry data for two domains: the Kp index belongs to
GEOMAGNETIC and the sunspot/flux readings to SOLAR.  Both adapters match
such a payload and AdapterRegistry.adapt_all() returns one snapshot each.
"""

from __future__ import annotations

from typing import Any

from originome_risk.adapters.base import SnapshotAdapter, optional_numbers, require_number
from originome_risk.domain.enums import DomainId

# Kp is a quasi-logarithmic 0–9 scale
KP_MIN = 0.0
KP_MAX = 9.0


def storm_level(kp: float) -> str:
    """NOAA G-scale label for a Kp value."""
    if kp >= 9:
        return "G5"
    if kp >= 8:
        return "G4"
    if kp >= 7:
        return "G3"
    if kp >= 6:
        return "G2"
    if kp >= 5:
        return "G1"
    return "none"


class SpaceWeatherAdapter(SnapshotAdapter):
    """Maps Kp-bearing payloads to GEOMAGNETIC snapshots."""

    domain = DomainId.GEOMAGNETIC
    default_source = "NOAA Space Weather"

    @property
    def source_name(self) -> str:
        return "space_weather"

    def can_handle(self, raw: dict[str, Any]) -> bool:
        return raw.get("source_type") == "space_weather" and "kp_index" in raw

    def extract(self, raw: dict[str, Any]) -> dict[str, float | str]:
        kp = require_number(raw, "kp_index", "space_weather")
        if not KP_MIN <= kp <= KP_MAX:
            raise ValueError(f"kp_index out of range [0, 9]: {kp}")
        return {"kp_index": kp, "storm_level": storm_level(kp)}


class SolarActivityAdapter(SnapshotAdapter):
    """Maps sunspot-bearing payloads to SOLAR snapshots."""

    domain = DomainId.SOLAR
    default_source = "NOAA Solar Data"

    @property
    def source_name(self) -> str:
        return "solar_activity"

    def can_handle(self, raw: dict[str, Any]) -> bool:
        return raw.get("source_type") in ("space_weather", "solar_activity") and "sunspot_number" in raw

    def extract(self, raw: dict[str, Any]) -> dict[str, float | str]:
        sunspots = require_number(raw, "sunspot_number", "solar")
        if sunspots < 0:
            raise ValueError(f"sunspot_number cannot be negative: {sunspots}")
        return {"sunspot_number": sunspots, **optional_numbers(raw, ("solar_flux",), "solar")}

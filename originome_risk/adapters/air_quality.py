"""AirQualityAdapter — translates indoor/outdoor air-quality payloads.

Expected raw format:
{
    "source_type": "air_quality",
    "pm25": 24.5,
    "co2": 880,
    "temperature": 22.1,
    "humidity": 48,
    "station_id": "airnow-nyc-04",
    "timestamp": "2026-02-13T14:00:00Z"
}

Only ``pm25`` is required; the other readings are optional because many
outdoor stations do not report CO₂.
"""

from __future__ import annotations

from typing import Any

from originome_risk.adapters.base import SnapshotAdapter, optional_numbers, require_number
from originome_risk.domain.enums import DomainId

_OPTIONAL_FIELDS = ("co2", "temperature", "humidity", "aqi")


class AirQualityAdapter(SnapshotAdapter):
    """Maps air-quality payloads to AIR_QUALITY snapshots."""

    domain = DomainId.AIR_QUALITY
    default_source = "EPA AirNow"
    source_key = "station_id"

    @property
    def source_name(self) -> str:
        return "air_quality"

    def can_handle(self, raw: dict[str, Any]) -> bool:
        return raw.get("source_type") == "air_quality"

    def extract(self, raw: dict[str, Any]) -> dict[str, float | str]:
        pm25 = require_number(raw, "pm25", "air_quality")
        if pm25 < 0:
            raise ValueError(f"air_quality 'pm25' cannot be negative: {pm25}")
        return {"pm25": pm25, **optional_numbers(raw, _OPTIONAL_FIELDS, "air_quality")}

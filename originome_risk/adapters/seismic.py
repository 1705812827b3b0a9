"""SeismicAdapter — translates seismic-feed payloads.

Expected raw format:
{
    "source_type": "seismic",
    "risk_level": 5.2,
    "magnitude": 3.1,
    "distance_km": 48,
    "timestamp": "2026-02-13T14:00:00Z"
}
"""

from __future__ import annotations

from typing import Any

from originome_risk.adapters.base import SnapshotAdapter, optional_numbers, require_number
from originome_risk.domain.enums import DomainId


class SeismicAdapter(SnapshotAdapter):
    """Maps seismic payloads to SEISMIC snapshots."""

    domain = DomainId.SEISMIC
    default_source = "USGS Seismic Feed"

    @property
    def source_name(self) -> str:
        return "seismic"

    def can_handle(self, raw: dict[str, Any]) -> bool:
        return raw.get("source_type") == "seismic"

    def extract(self, raw: dict[str, Any]) -> dict[str, float | str]:
        return {
            "risk_level": require_number(raw, "risk_level", "seismic"),
            **optional_numbers(raw, ("magnitude", "distance_km"), "seismic"),
        }

"""HealthSurveillanceAdapter — translates biological surveillance payloads.

Expected raw format:
{
    "source_type": "health_surveillance",
    "viral_activity": "High",           # Low | Medium | High
    "flu_activity": "Moderate",         # Minimal | Low | Moderate | High
    "pollen_level": "Very High",        # Low | Moderate | High | Very High
    "respiratory_illness": 11,
    "region": "us-east",
    "timestamp": "2026-02-13T14:00:00Z"
}
"""

from __future__ import annotations

from typing import Any

from originome_risk.adapters.base import SnapshotAdapter, optional_numbers
from originome_risk.domain.enums import DomainId

_LEVELS: dict[str, tuple[str, ...]] = {
    "viral_activity": ("Low", "Medium", "High"),
    "flu_activity": ("Minimal", "Low", "Moderate", "High"),
    "pollen_level": ("Low", "Moderate", "High", "Very High"),
}


def _canonical_level(field: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"health_surveillance '{field}' must be a string level, got {value!r}")
    for level in _LEVELS[field]:
        if level.casefold() == value.strip().casefold():
            return level
    raise ValueError(f"health_surveillance '{field}' must be one of {list(_LEVELS[field])}, got {value!r}")


class HealthSurveillanceAdapter(SnapshotAdapter):
    """Maps surveillance payloads to BIOLOGICAL snapshots."""

    domain = DomainId.BIOLOGICAL
    default_source = "Health Surveillance"

    @property
    def source_name(self) -> str:
        return "health_surveillance"

    def can_handle(self, raw: dict[str, Any]) -> bool:
        return raw.get("source_type") == "health_surveillance"

    def extract(self, raw: dict[str, Any]) -> dict[str, float | str]:
        values: dict[str, float | str] = {
            field: _canonical_level(field, raw[field]) for field in _LEVELS if raw.get(field) is not None
        }
        if "viral_activity" not in values and "pollen_level" not in values:
            raise ValueError("health_surveillance payload needs viral_activity or pollen_level")

        values.update(optional_numbers(raw, ("respiratory_illness",), "health_surveillance"))
        return values

"""Adapter Registry — discovers and selects snapshot adapters.

The registry holds a list of registered SnapshotAdapters.  When a raw
payload arrives, it iterates through adapters in registration order and
selects the first one whose can_handle() returns True.  adapt_all() is
for combined payloads (e.g. Kp and sunspots in one space-weather report)
and collects a snapshot from every matching adapter.

No heuristics.  No guessing.  Fail fast if nothing matches.
"""

from __future__ import annotations

import logging
from typing import Any

from originome_risk.adapters.base import SnapshotAdapter
from originome_risk.domain.enums import DomainId
from originome_risk.domain.snapshot import DomainSnapshot

logger = logging.getLogger(__name__)


class AdapterStats:
    """Per-adapter ingestion statistics for observability."""

    __slots__ = ("adapter_name", "domain", "accepted_count", "rejected_count")

    def __init__(self, adapter_name: str, domain: DomainId) -> None:
        self.adapter_name = adapter_name
        self.domain = domain
        self.accepted_count: int = 0
        self.rejected_count: int = 0

    def to_dict(self) -> dict:
        return {
            "adapter_name": self.adapter_name,
            "domain": self.domain.value,
            "accepted_count": self.accepted_count,
            "rejected_count": self.rejected_count,
        }


class NoAdapterFoundError(Exception):
    """Raised when no registered adapter can handle a payload."""


class AdaptationError(Exception):
    """Raised when a matched adapter fails to translate the payload."""

    def __init__(self, adapter_name: str, reason: str) -> None:
        self.adapter_name = adapter_name
        self.reason = reason
        super().__init__(f"Adapter '{adapter_name}' failed: {reason}")


class AdapterRegistry:
    """Registry of snapshot adapters with selection and stats tracking.

    Usage:
        registry = AdapterRegistry()
        registry.register(AirQualityAdapter())
        registry.register(SpaceWeatherAdapter())

        snapshot = registry.adapt(raw_payload)
    """

    def __init__(self) -> None:
        self._adapters: list[SnapshotAdapter] = []
        self._stats: dict[str, AdapterStats] = {}

    def register(self, adapter: SnapshotAdapter) -> None:
        """Add an adapter to the registry."""
        if adapter.source_name in self._stats:
            raise ValueError(f"adapter '{adapter.source_name}' already registered")
        self._adapters.append(adapter)
        self._stats[adapter.source_name] = AdapterStats(adapter.source_name, adapter.domain)
        logger.info("Registered adapter: %s → %s", adapter.source_name, adapter.domain.value)

    def adapt(self, raw: dict[str, Any]) -> DomainSnapshot:
        """Route a raw payload through the first matching adapter.

        Raises:
            NoAdapterFoundError: If no adapter's can_handle() returns True.
            AdaptationError: If the matched adapter fails to translate.
        """
        for adapter in self._adapters:
            if adapter.can_handle(raw):
                return self._run(adapter, raw)

        raise NoAdapterFoundError(
            f"No adapter can handle payload with keys: {sorted(raw.keys())}"
        )

    def adapt_all(self, raw: dict[str, Any]) -> list[DomainSnapshot]:
        """Route a raw payload through every matching adapter.

        Raises:
            NoAdapterFoundError: If no adapter's can_handle() returns True.
            AdaptationError: If any matched adapter fails to translate.
        """
        snapshots = [self._run(a, raw) for a in self._adapters if a.can_handle(raw)]
        if not snapshots:
            raise NoAdapterFoundError(
                f"No adapter can handle payload with keys: {sorted(raw.keys())}"
            )
        return snapshots

    def _run(self, adapter: SnapshotAdapter, raw: dict[str, Any]) -> DomainSnapshot:
        stats = self._stats[adapter.source_name]
        try:
            snapshot = adapter.adapt(raw)
        except ValueError as exc:
            # pydantic's ValidationError is a ValueError subclass
            stats.rejected_count += 1
            logger.warning("Adapter '%s' rejected payload: %s", adapter.source_name, exc)
            raise AdaptationError(adapter.source_name, str(exc)) from exc
        stats.accepted_count += 1
        logger.debug(
            "Adapter '%s' accepted payload → %s snapshot",
            adapter.source_name,
            snapshot.domain.value,
        )
        return snapshot

    @property
    def adapter_names(self) -> list[str]:
        """List of registered adapter names in registration order."""
        return [a.source_name for a in self._adapters]

    @property
    def domains(self) -> set[DomainId]:
        """Every domain some registered adapter can produce."""
        return {a.domain for a in self._adapters}

    @property
    def stats(self) -> list[dict]:
        """Per-adapter stats for observability endpoints."""
        return [s.to_dict() for s in self._stats.values()]

    @property
    def total_accepted(self) -> int:
        return sum(s.accepted_count for s in self._stats.values())

    @property
    def total_rejected(self) -> int:
        return sum(s.rejected_count for s in self._stats.values())


def default_registry() -> AdapterRegistry:
    """Registry with every built-in adapter, in precedence order."""
    from originome_risk.adapters.air_quality import AirQualityAdapter
    from originome_risk.adapters.health import HealthSurveillanceAdapter
    from originome_risk.adapters.seismic import SeismicAdapter
    from originome_risk.adapters.space_weather import SolarActivityAdapter, SpaceWeatherAdapter

    registry = AdapterRegistry()
    registry.register(AirQualityAdapter())
    registry.register(SpaceWeatherAdapter())
    registry.register(SolarActivityAdapter())
    registry.register(SeismicAdapter())
    registry.register(HealthSurveillanceAdapter())
    return registry

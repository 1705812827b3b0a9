"""Abstract base for domain snapshot adapters.

Each adapter owns exactly one DomainId and turns one upstream payload
shape into a DomainSnapshot for it.  Field extraction is the adapter's
job; timestamp handling and final validation are shared here so every
domain gets the same rules.

Adapters never mutate the incoming dict, never call the RiskEngine and
hold no thresholds: classification happens downstream.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from originome_risk.domain.enums import DomainId
from originome_risk.domain.snapshot import DomainSnapshot


class SnapshotAdapter(ABC):
    """Base class for converting raw upstream payloads into DomainSnapshots."""

    #: The only domain this adapter's snapshots may carry.
    domain: DomainId
    #: Snapshot source used when the payload names none.
    default_source: str = "unknown"
    #: Payload key naming the upstream station or provider.
    source_key: str = "provider"

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Registry key for this adapter."""
        ...

    @abstractmethod
    def can_handle(self, raw: dict[str, Any]) -> bool:
        """Fast, non-destructive check (e.g. key presence)."""
        ...

    @abstractmethod
    def extract(self, raw: dict[str, Any]) -> dict[str, float | str]:
        """Pull this domain's readings out of *raw*.

        Raises:
            ValueError: If a required reading is missing or malformed.
        """
        ...

    def adapt(self, raw: dict[str, Any]) -> DomainSnapshot:
        """Translate *raw* into a validated snapshot for ``self.domain``.

        Raises:
            ValueError: If the payload cannot be normalised.  pydantic's
                ValidationError is a ValueError subclass.
        """
        timestamp = raw.get("timestamp")
        if not timestamp:
            raise ValueError(f"{self.source_name} payload missing 'timestamp'")

        return DomainSnapshot.model_validate({
            "domain": self.domain.value,
            "values": self.extract(raw),
            "observed_at": timestamp,
            "source": raw.get(self.source_key) or self.default_source,
        })


def require_number(raw: dict[str, Any], key: str, source_type: str) -> float:
    """Fetch *key* as a float or raise ValueError naming the payload type."""
    value = raw.get(key)
    if value is None:
        raise ValueError(f"{source_type} payload missing '{key}'")
    if isinstance(value, bool):
        raise ValueError(f"{source_type} payload field '{key}' must be numeric")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{source_type} payload field '{key}' must be numeric, got {value!r}") from exc


def optional_numbers(raw: dict[str, Any], keys: tuple[str, ...], source_type: str) -> dict[str, float | str]:
    """Numeric readings for whichever of *keys* are present and not null."""
    return {key: require_number(raw, key, source_type) for key in keys if raw.get(key) is not None}

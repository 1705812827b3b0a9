"""DomainSnapshot — the latest known values for one external domain.

Snapshots are produced by out-of-process fetch services and normalised by
the adapters.  The engine only keeps the newest one per domain.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from originome_risk.domain.enums import DomainId
from originome_risk.foundation.clock import ensure_utc, utc_now


class DomainSnapshot(BaseModel):
    """Point-in-time readings for a domain, keyed by field name."""

    domain: DomainId
    values: dict[str, float | str] = Field(
        default_factory=dict,
        description="Field name → numeric reading or categorical level",
    )
    observed_at: datetime = Field(default_factory=utc_now)
    source: str = Field("unknown", min_length=1, max_length=256)

    model_config = {"frozen": True, "extra": "forbid"}

    @field_validator("observed_at")
    @classmethod
    def observed_at_must_be_aware(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    def get(self, field: str) -> float | str | None:
        return self.values.get(field)

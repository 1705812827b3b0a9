"""RiskEvent — a retained alert produced by the classifier or pattern matcher.

Lifecycle:  active → acknowledged → resolved
    - active:        freshly detected, awaiting an operator
    - acknowledged:  an operator has seen it
    - resolved:      terminal; no further transitions

Events are mutated *only* by the AlertStore while it holds its lock.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from originome_risk.domain.enums import AlertStatus, EventKind, RiskLevel
from originome_risk.foundation.clock import ensure_utc, utc_now
from originome_risk.foundation.identifiers import new_id

# The key type used to deduplicate events.
Fingerprint = tuple[str, str, int]


def fingerprint_for(kind: EventKind, source_id: str, detected_at: datetime, bucket_seconds: float) -> Fingerprint:
    """Coarse identity: same origin within the same time bucket."""
    bucket = int(detected_at.timestamp() // bucket_seconds)
    return (kind.value, source_id, bucket)


class RiskEvent(BaseModel):
    """An alert record with severity, confidence, multiplier and lineage."""

    event_id: str = Field(default_factory=new_id)
    kind: EventKind
    source_id: str = Field(..., min_length=1, description="Rule id or parameter id that raised it")
    severity: RiskLevel
    confidence: float = Field(..., ge=0.0, le=1.0)
    risk_multiplier: float = Field(..., gt=0.0)
    risk_score: float = Field(..., ge=0.0, le=100.0)
    title: str
    description: str = ""
    detected_at: datetime = Field(default_factory=utc_now)
    status: AlertStatus = AlertStatus.ACTIVE
    data_lineage: list[str] = Field(default_factory=list)

    model_config = {"frozen": False}

    @field_validator("detected_at")
    @classmethod
    def detected_at_must_be_aware(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @property
    def is_open(self) -> bool:
        return self.status is not AlertStatus.RESOLVED

    def fingerprint(self, bucket_seconds: float) -> Fingerprint:
        return fingerprint_for(self.kind, self.source_id, self.detected_at, bucket_seconds)

    def summary(self) -> dict:
        return {
            "event_id": self.event_id,
            "kind": self.kind.value,
            "source_id": self.source_id,
            "severity": self.severity.value,
            "confidence": self.confidence,
            "risk_multiplier": self.risk_multiplier,
            "risk_score": self.risk_score,
            "title": self.title,
            "status": self.status.value,
            "detected_at": self.detected_at.isoformat(),
        }

"""Canonical Sample model — one timestamped scalar reading of a parameter.

A Sample is immutable once recorded.  It is validated at the boundary so
buffers and calculators never have to re-check field constraints.
"""

from __future__ import annotations

import math
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from originome_risk.domain.enums import ParameterId
from originome_risk.foundation.clock import ensure_utc


class Sample(BaseModel):
    """A single reading for one environmental parameter."""

    parameter: ParameterId = Field(..., description="Which parameter this reading belongs to")
    value: float = Field(..., description="Reading in the parameter's declared unit")
    timestamp: datetime = Field(..., description="When the reading was taken (UTC)")

    model_config = {"frozen": True}

    # ── Validators ───────────────────────────────────────────────────────

    @field_validator("value")
    @classmethod
    def value_must_be_finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("sample value must be finite")
        return v

    @field_validator("timestamp")
    @classmethod
    def timestamp_must_be_aware(cls, v: datetime) -> datetime:
        # Sensor gateways frequently send naive local-less timestamps
        return ensure_utc(v)

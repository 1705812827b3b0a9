"""DerivativeSet — an immutable rate-of-change observation of one parameter.

This is a pure data structure.  It captures what the finite differences
over a buffer snapshot say at the moment it is computed; it carries no
thresholds and no decisions.

Orders that lack history are reported as 0.0.  The ``has_*`` flags keep
"not enough samples yet" distinguishable from "genuinely not changing".
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from originome_risk.domain.enums import ParameterId

VELOCITY_MIN_SAMPLES = 2
ACCELERATION_MIN_SAMPLES = 3
JERK_MIN_SAMPLES = 4


class DerivativeSet(BaseModel):
    """First, second and third finite differences of a parameter."""

    parameter: ParameterId
    velocity: float = Field(0.0, description="Change per rate unit between the last two samples")
    acceleration: float = Field(0.0, description="Difference of the last two velocities")
    jerk: float = Field(0.0, description="Difference of the last two accelerations")
    sample_count: int = Field(..., ge=0, description="Samples the set was computed from")
    latest_value: float | None = Field(None, description="Most recent reading, if any")
    computed_at: datetime

    model_config = {"frozen": True}

    @property
    def has_velocity(self) -> bool:
        return self.sample_count >= VELOCITY_MIN_SAMPLES

    @property
    def has_acceleration(self) -> bool:
        return self.sample_count >= ACCELERATION_MIN_SAMPLES

    @property
    def has_jerk(self) -> bool:
        return self.sample_count >= JERK_MIN_SAMPLES

    @property
    def sufficient(self) -> bool:
        """True once every order is backed by real history."""
        return self.has_jerk

    def summary(self) -> dict:
        return {
            "parameter": self.parameter.value,
            "velocity": round(self.velocity, 4),
            "acceleration": round(self.acceleration, 4),
            "jerk": round(self.jerk, 4),
            "sample_count": self.sample_count,
            "latest_value": self.latest_value,
            "sufficient": self.sufficient,
            "computed_at": self.computed_at.isoformat(),
        }

"""RiskAssessment — the classifier's verdict on one derivative reading."""

from __future__ import annotations

from pydantic import BaseModel, Field

from originome_risk.domain.derivatives import DerivativeSet
from originome_risk.domain.enums import AlertType, ParameterId, RiskLevel


class RiskAssessment(BaseModel):
    """Severity attached to a parameter and the derivatives it came from."""

    parameter: ParameterId
    level: RiskLevel
    sudden_change: bool = Field(..., description="Velocity breached the sudden-change threshold")
    alert_type: AlertType = Field(..., description="Which derivative feature drove the level")
    insufficient_data: bool = Field(
        ..., description="Fewer than two samples: LOW here means 'unknown', not 'safe'"
    )
    value_level: RiskLevel | None = Field(
        None, description="Absolute risk band of the latest reading; None with no samples"
    )
    derivatives: DerivativeSet

    model_config = {"frozen": True}

    @property
    def alert_worthy(self) -> bool:
        return self.level >= RiskLevel.HIGH

"""ForecastPoint — an ephemeral linear projection of a parameter."""

from __future__ import annotations

from pydantic import BaseModel, Field

from originome_risk.domain.enums import ParameterId, Trend


class ForecastPoint(BaseModel):
    parameter: ParameterId
    horizon_seconds: float = Field(..., ge=0.0)
    current_value: float
    predicted_value: float
    lower_bound: float
    upper_bound: float
    confidence: float = Field(..., ge=0.0, le=1.0)
    trend: Trend

    model_config = {"frozen": True}

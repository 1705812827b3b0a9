"""REST endpoints for sample ingestion, derivatives and forecasts.

Paths:
    POST /api/samples
    GET  /api/derivatives/{parameter}
    GET  /api/forecast/{parameter}?horizon_minutes=…

Validation happens at the boundary: the request body IS a Sample, so
FastAPI rejects malformed readings with 422 before the engine sees them.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from fastapi import APIRouter, HTTPException, Query

from originome_risk.core.engine import RiskEngine
from originome_risk.domain.enums import ParameterId
from originome_risk.domain.errors import OutOfOrderSampleError, UnknownParameterHistoryError
from originome_risk.domain.risk import RiskAssessment
from originome_risk.domain.sample import Sample

logger = logging.getLogger(__name__)


def _value_level(assessment: RiskAssessment) -> str | None:
    return assessment.value_level.value if assessment.value_level is not None else None


def create_samples_router(engine: RiskEngine, default_horizon_minutes: float = 60.0) -> APIRouter:
    """Factory that wires the sample endpoints to a concrete RiskEngine."""

    router = APIRouter(prefix="/api", tags=["samples"])

    @router.post("/samples")
    async def record_sample(sample: Sample) -> dict[str, Any]:
        try:
            assessment = await engine.ingest(sample)
        except OutOfOrderSampleError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc

        return {
            "status": "accepted",
            "parameter": sample.parameter.value,
            "level": assessment.level.value,
            "value_level": _value_level(assessment),
            "alert_type": assessment.alert_type.value,
            "sudden_change": assessment.sudden_change,
            "insufficient_data": assessment.insufficient_data,
            "derivatives": assessment.derivatives.summary(),
        }

    @router.get("/derivatives/{parameter}")
    async def get_derivatives(parameter: ParameterId) -> dict[str, Any]:
        assessment = await engine.assess(parameter)
        return {
            **assessment.derivatives.summary(),
            "level": assessment.level.value,
            "value_level": _value_level(assessment),
            "alert_type": assessment.alert_type.value,
            "sudden_change": assessment.sudden_change,
        }

    @router.get("/forecast/{parameter}")
    async def get_forecast(
        parameter: ParameterId,
        horizon_minutes: float = Query(default_horizon_minutes, ge=0.0),
    ) -> dict[str, Any]:
        try:
            point = await engine.get_forecast(parameter, timedelta(minutes=horizon_minutes))
        except UnknownParameterHistoryError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return point.model_dump(mode="json")

    return router

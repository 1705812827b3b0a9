"""REST endpoints for the risk-event lifecycle.

Paths:
    GET  /api/alerts?include_resolved=…
    POST /api/alerts/{event_id}/acknowledge
    POST /api/alerts/{event_id}/resolve
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException

from originome_risk.core.engine import RiskEngine
from originome_risk.domain.errors import AlertNotFoundError


def create_alerts_router(engine: RiskEngine) -> APIRouter:
    """Factory that wires the alert endpoints to a concrete RiskEngine."""

    router = APIRouter(prefix="/api/alerts", tags=["alerts"])

    @router.get("")
    async def list_alerts(include_resolved: bool = False) -> dict[str, Any]:
        if include_resolved:
            events = await engine.list_alerts()
        else:
            events = await engine.list_active_alerts()
        return {
            "alerts": [e.model_dump(mode="json") for e in events],
            "count": len(events),
        }

    @router.post("/{event_id}/acknowledge")
    async def acknowledge(event_id: str) -> dict[str, Any]:
        try:
            event = await engine.acknowledge(event_id)
        except AlertNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return event.model_dump(mode="json")

    @router.post("/{event_id}/resolve")
    async def resolve(event_id: str) -> dict[str, Any]:
        try:
            event = await engine.resolve(event_id)
        except AlertNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return event.model_dump(mode="json")

    return router

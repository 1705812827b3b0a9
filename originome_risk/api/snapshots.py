"""REST endpoint for domain snapshot ingestion.

Path: POST /api/snapshots

Accepts either a canonical DomainSnapshot or a raw upstream payload.
Payloads tagged with ``source_type`` go straight to the adapter registry;
anything else that fails strict validation falls back to it too, which may
yield more than one snapshot for a combined payload.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, HTTPException
from pydantic import ValidationError

from originome_risk.adapters.registry import AdaptationError, AdapterRegistry, NoAdapterFoundError
from originome_risk.core.engine import RiskEngine
from originome_risk.domain.snapshot import DomainSnapshot

logger = logging.getLogger(__name__)


def create_snapshots_router(engine: RiskEngine, adapter_registry: AdapterRegistry) -> APIRouter:
    """Factory that wires snapshot ingestion to an engine and adapter registry."""

    router = APIRouter(prefix="/api", tags=["snapshots"])

    @router.post("/snapshots")
    async def ingest_snapshot(raw: dict[str, Any] = Body(...)) -> dict[str, Any]:
        # ── Validate at the boundary ─────────────────────────────────
        snapshots = None
        if "source_type" not in raw:
            try:
                snapshots = [DomainSnapshot.model_validate(raw)]
            except ValidationError:
                logger.debug("Payload is not a canonical snapshot, trying adapters")
        if snapshots is None:
            try:
                snapshots = adapter_registry.adapt_all(raw)
            except NoAdapterFoundError as exc:
                raise HTTPException(status_code=422, detail=str(exc)) from exc
            except AdaptationError as exc:
                raise HTTPException(status_code=422, detail=exc.reason) from exc

        # ── Route into engine ────────────────────────────────────────
        results = []
        for snapshot in snapshots:
            kept = await engine.update_snapshot(snapshot)
            results.append({
                "domain": snapshot.domain.value,
                "source": snapshot.source,
                "observed_at": snapshot.observed_at.isoformat(),
                "status": "accepted" if kept else "stale",
            })
        return {"snapshots": results, "count": len(results)}

    return router

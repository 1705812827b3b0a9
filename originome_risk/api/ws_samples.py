"""WebSocket endpoint for streaming sample ingestion.

Path: /ws/samples

Accepts JSON matching the Sample schema, validates it at the boundary,
records it into the engine, and returns a minimal acknowledgement.
Rejected readings get an error frame; the connection stays open.

No alert publishing on this path.  The derivative tick does that.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from originome_risk.core.engine import RiskEngine
from originome_risk.domain.errors import OutOfOrderSampleError
from originome_risk.domain.sample import Sample

logger = logging.getLogger(__name__)


def create_sample_stream_router(engine: RiskEngine) -> APIRouter:
    """Factory that wires the sample stream to a concrete RiskEngine."""

    router = APIRouter()

    @router.websocket("/ws/samples")
    async def ingest_samples(websocket: WebSocket) -> None:
        await websocket.accept()
        logger.info("Sample source connected")

        try:
            while True:
                raw = await websocket.receive_json()

                # ── Validate at the boundary ─────────────────────────────
                try:
                    sample = Sample.model_validate(raw)
                except ValidationError as exc:
                    await websocket.send_json({
                        "status": "error",
                        "detail": f"Sample validation failed: {exc.error_count()} error(s)",
                    })
                    continue

                # ── Route into engine ────────────────────────────────────
                try:
                    assessment = await engine.ingest(sample)
                except OutOfOrderSampleError as exc:
                    await websocket.send_json({"status": "rejected", "detail": str(exc)})
                    continue

                # ── Acknowledge ──────────────────────────────────────────
                await websocket.send_json({
                    "status": "accepted",
                    "parameter": sample.parameter.value,
                    "level": assessment.level.value,
                    "sample_count": assessment.derivatives.sample_count,
                })

        except WebSocketDisconnect:
            logger.info("Sample source disconnected")

    return router

"""originome-risk — streaming derivative and compound-risk detection.

This is the application entry point.  It wires the RiskEngine,
AdapterRegistry, TickScheduler and HTTP/WebSocket endpoints together.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from functools import partial

from fastapi import FastAPI

from originome_risk.adapters.registry import default_registry
from originome_risk.adapters.sources import SnapshotSource, poll_sources
from originome_risk.api.alerts import create_alerts_router
from originome_risk.api.samples import create_samples_router
from originome_risk.api.snapshots import create_snapshots_router
from originome_risk.api.ws_samples import create_sample_stream_router
from originome_risk.config import settings
from originome_risk.core.engine import RiskEngine
from originome_risk.core.forecast import ForecastConfig, ForecastProjector
from originome_risk.core.scheduler import TickScheduler

# ── Logging ──────────────────────────────────────────────────────────────────

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

# ── Adapter Registry ────────────────────────────────────────────────────────

registry = default_registry()

# ── Engine ───────────────────────────────────────────────────────────────────

# Rules may only reference domains some adapter can feed
engine = RiskEngine(
    declared_domains=registry.domains,
    buffer_capacity=settings.buffer_capacity,
    alert_capacity=settings.alert_capacity,
    dedup_bucket_seconds=settings.dedup_bucket_seconds,
    rate_unit_seconds=settings.rate_unit_seconds,
    projector=ForecastProjector(
        config=ForecastConfig(
            min_samples=settings.forecast_min_samples,
            default_confidence=settings.forecast_default_confidence,
            band_fraction=settings.forecast_band_fraction,
        ),
        rate_unit_seconds=settings.rate_unit_seconds,
    ),
)

# ── Scheduler ────────────────────────────────────────────────────────────────

# Deployments append their fetch services here before startup
snapshot_sources: list[SnapshotSource] = []

scheduler = TickScheduler()
scheduler.register("derivatives", settings.derivative_tick_seconds, engine.derivative_tick)
scheduler.register("patterns", settings.pattern_scan_seconds, engine.pattern_scan)
scheduler.register(
    "slow_domains",
    settings.slow_domain_seconds,
    partial(poll_sources, engine, snapshot_sources),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await scheduler.start()
    try:
        yield
    finally:
        await scheduler.stop()


# ── App ──────────────────────────────────────────────────────────────────────

app = FastAPI(
    title=settings.app_name,
    description="Streaming derivative and compound-risk pattern detection",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Routes ───────────────────────────────────────────────────────────────────

app.include_router(create_samples_router(engine, settings.forecast_default_horizon_minutes))
app.include_router(create_sample_stream_router(engine))
app.include_router(create_snapshots_router(engine, registry))
app.include_router(create_alerts_router(engine))


# ── Health ───────────────────────────────────────────────────────────────────

@app.get("/health")
async def health() -> dict:
    status = await engine.status()
    return {
        "status": "ok",
        **status.to_dict(),
        "rules": len(engine.matcher.rules),
        "scheduler_running": scheduler.running,
        "ticks": scheduler.stats,
        "adapters": registry.stats,
        "total_adapted": registry.total_accepted,
        "total_rejected": registry.total_rejected,
    }

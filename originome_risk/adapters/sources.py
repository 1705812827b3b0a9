"""Snapshot sources — injected data-fetch collaborators.

The engine never fetches data itself.  A SnapshotSource is whatever the
deployment plugs in (an HTTP poller, a message-queue consumer, a test
fake); the scheduler calls poll_sources() on the slow-domain cadence and
feeds whatever comes back into the engine.
"""

from __future__ import annotations

import logging
from typing import Iterable, Protocol

from originome_risk.core.engine import RiskEngine
from originome_risk.domain.snapshot import DomainSnapshot

logger = logging.getLogger(__name__)


class SnapshotSource(Protocol):
    """Protocol for anything that can supply the latest domain snapshots."""

    name: str

    async def fetch(self) -> list[DomainSnapshot]:
        """Return the latest snapshots this source knows about."""
        ...


class StaticSnapshotSource:
    """Serves a fixed, replaceable set of snapshots.

    Useful for replaying recorded conditions and for tests.
    """

    def __init__(self, name: str, snapshots: Iterable[DomainSnapshot] = ()) -> None:
        self.name = name
        self._snapshots = list(snapshots)

    def replace(self, snapshots: Iterable[DomainSnapshot]) -> None:
        self._snapshots = list(snapshots)

    async def fetch(self) -> list[DomainSnapshot]:
        return list(self._snapshots)


async def poll_sources(engine: RiskEngine, sources: Iterable[SnapshotSource]) -> int:
    """Fetch from every source and hand the snapshots to *engine*.

    Returns the number of snapshots the engine kept.  A failing source is
    logged and skipped so one broken feed does not starve the others.
    """
    kept = 0
    for source in sources:
        try:
            snapshots = await source.fetch()
        except Exception:
            logger.exception("Snapshot source '%s' failed", source.name)
            continue
        for snapshot in snapshots:
            if await engine.update_snapshot(snapshot):
                kept += 1
    return kept

"""In-memory alert store with async-safe lifecycle transitions.

Design notes:
    - A single asyncio.Lock guards every mutation (insert, acknowledge,
      resolve, evict).  Critical sections contain no await points, so a
      cancelled caller can never leave a publish half-applied.
    - Fresh events are deduplicated against open (not resolved) events by
      fingerprint: (kind, source id, coarse time bucket).
    - The retained list is kept newest-first by detection time and capped;
      the oldest entries are evicted regardless of status.
    - Transitions: active → acknowledged, active|acknowledged → resolved.
      Repeating a transition into the current state is a no-op.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable

from originome_risk.domain.alert import Fingerprint, RiskEvent
from originome_risk.domain.enums import AlertStatus, RiskLevel
from originome_risk.domain.errors import AlertNotFoundError

logger = logging.getLogger(__name__)


class AlertSummary:
    """Aggregate counts across retained events.

    This is an observability object, not a control mechanism.
    """

    __slots__ = ("retained", "by_status", "by_severity", "max_risk_multiplier")

    def __init__(
        self,
        retained: int = 0,
        by_status: dict[str, int] | None = None,
        by_severity: dict[str, int] | None = None,
        max_risk_multiplier: float = 0.0,
    ) -> None:
        self.retained = retained
        self.by_status = by_status or {s.value: 0 for s in AlertStatus}
        self.by_severity = by_severity or {s.value: 0 for s in RiskLevel}
        self.max_risk_multiplier = max_risk_multiplier

    def to_dict(self) -> dict:
        return {
            "retained": self.retained,
            "by_status": dict(self.by_status),
            "by_severity": dict(self.by_severity),
            "max_risk_multiplier": round(self.max_risk_multiplier, 4),
        }


class AlertStore:
    """Async-safe, capped store of RiskEvents.

    Args:
        capacity: Maximum number of retained events.
        dedup_bucket_seconds: Width of the time bucket used by fingerprints.
    """

    def __init__(self, capacity: int = 20, dedup_bucket_seconds: float = 30.0) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        if dedup_bucket_seconds <= 0:
            raise ValueError("dedup_bucket_seconds must be positive")

        self._capacity = capacity
        self._bucket = dedup_bucket_seconds
        self._lock = asyncio.Lock()
        self._events: list[RiskEvent] = []

    # ── Public API ───────────────────────────────────────────────────────

    async def publish(self, events: Iterable[RiskEvent]) -> list[RiskEvent]:
        """Deduplicate, insert and evict in one critical section.

        Returns the events actually retained from this batch, in input order.
        """
        incoming = list(events)
        async with self._lock:
            open_prints: set[Fingerprint] = {
                e.fingerprint(self._bucket) for e in self._events if e.is_open
            }
            accepted: list[RiskEvent] = []
            for event in incoming:
                fp = event.fingerprint(self._bucket)
                if fp in open_prints:
                    logger.debug("Dropped duplicate event %s (%s)", event.source_id, fp)
                    continue
                open_prints.add(fp)
                accepted.append(event)

            if accepted:
                self._events = accepted + self._events
                # Stable sort keeps batch order (risk score) for equal timestamps
                self._events.sort(key=lambda e: e.detected_at, reverse=True)
                self._evict()
                logger.info(
                    "Published %d event(s): %s",
                    len(accepted),
                    ", ".join(f"{e.source_id}[{e.severity.value}]" for e in accepted),
                )
            retained_ids = {e.event_id for e in self._events}
            return [e.model_copy() for e in accepted if e.event_id in retained_ids]

    async def acknowledge(self, event_id: str) -> RiskEvent:
        """Mark an active event acknowledged.  No-op if already acknowledged or resolved."""
        async with self._lock:
            event = self._find(event_id)
            if event.status is AlertStatus.ACTIVE:
                event.status = AlertStatus.ACKNOWLEDGED
                logger.info("Acknowledged event %s (%s)", event_id, event.source_id)
            return event.model_copy()

    async def resolve(self, event_id: str) -> RiskEvent:
        """Mark an event resolved.  No-op if already resolved."""
        async with self._lock:
            event = self._find(event_id)
            if event.status is not AlertStatus.RESOLVED:
                event.status = AlertStatus.RESOLVED
                logger.info("Resolved event %s (%s)", event_id, event.source_id)
            return event.model_copy()

    async def get(self, event_id: str) -> RiskEvent | None:
        async with self._lock:
            for event in self._events:
                if event.event_id == event_id:
                    return event.model_copy()
            return None

    async def list_active(self) -> list[RiskEvent]:
        """Open (active or acknowledged) events, newest first."""
        async with self._lock:
            return [e.model_copy() for e in self._events if e.is_open]

    async def list_all(self) -> list[RiskEvent]:
        """Every retained event, newest first."""
        async with self._lock:
            return [e.model_copy() for e in self._events]

    async def count(self) -> int:
        async with self._lock:
            return len(self._events)

    async def summary(self) -> AlertSummary:
        """Counts by status and severity.  Mutates nothing."""
        async with self._lock:
            summary = AlertSummary(retained=len(self._events))
            for event in self._events:
                summary.by_status[event.status.value] += 1
                summary.by_severity[event.severity.value] += 1
                if event.risk_multiplier > summary.max_risk_multiplier:
                    summary.max_risk_multiplier = event.risk_multiplier
            return summary

    # ── Internals ────────────────────────────────────────────────────────

    def _find(self, event_id: str) -> RiskEvent:
        """Must be called while holding self._lock."""
        for event in self._events:
            if event.event_id == event_id:
                return event
        raise AlertNotFoundError(event_id)

    def _evict(self) -> None:
        """Must be called while holding self._lock."""
        if len(self._events) <= self._capacity:
            return
        evicted = self._events[self._capacity:]
        self._events = self._events[: self._capacity]
        logger.info(
            "Evicted %d event(s) past retention capacity %d",
            len(evicted),
            self._capacity,
        )

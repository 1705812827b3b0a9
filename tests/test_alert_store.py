"""Tests for the AlertStore lifecycle, deduplication and retention."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from originome_risk.domain.alert import RiskEvent
from originome_risk.domain.enums import AlertStatus, EventKind, RiskLevel
from originome_risk.domain.errors import AlertNotFoundError
from originome_risk.store.alert_store import AlertStore

_BASE = datetime(2026, 2, 13, 14, 0, 0, tzinfo=timezone.utc)


def _event(source_id: str = "pp_847", seconds: float = 0, **overrides) -> RiskEvent:
    fields = {
        "kind": EventKind.COMPOUND_PATTERN,
        "source_id": source_id,
        "severity": RiskLevel.CRITICAL,
        "confidence": 0.92,
        "risk_multiplier": 8.2,
        "risk_score": 90,
        "title": f"Pattern {source_id}",
        "detected_at": _BASE + timedelta(seconds=seconds),
    }
    fields.update(overrides)
    return RiskEvent(**fields)


@pytest.fixture
def store() -> AlertStore:
    return AlertStore(capacity=20, dedup_bucket_seconds=30.0)


class TestPublish:
    @pytest.mark.asyncio
    async def test_publish_retains_events(self, store: AlertStore) -> None:
        published = await store.publish([_event("a"), _event("b")])
        assert [e.source_id for e in published] == ["a", "b"]
        assert await store.count() == 2

    @pytest.mark.asyncio
    async def test_same_fingerprint_in_bucket_is_dropped(self, store: AlertStore) -> None:
        await store.publish([_event("a", seconds=0)])
        published = await store.publish([_event("a", seconds=10)])
        assert published == []
        assert await store.count() == 1

    @pytest.mark.asyncio
    async def test_duplicates_within_one_batch_are_dropped(self, store: AlertStore) -> None:
        published = await store.publish([_event("a"), _event("a", seconds=5)])
        assert len(published) == 1

    @pytest.mark.asyncio
    async def test_next_bucket_is_not_a_duplicate(self, store: AlertStore) -> None:
        await store.publish([_event("a", seconds=0)])
        published = await store.publish([_event("a", seconds=40)])
        assert len(published) == 1

    @pytest.mark.asyncio
    async def test_resolved_event_does_not_suppress(self, store: AlertStore) -> None:
        [first] = await store.publish([_event("a")])
        await store.resolve(first.event_id)
        published = await store.publish([_event("a", seconds=5)])
        assert len(published) == 1

    @pytest.mark.asyncio
    async def test_different_kind_is_not_a_duplicate(self, store: AlertStore) -> None:
        await store.publish([_event("co2")])
        published = await store.publish([_event("co2", kind=EventKind.VELOCITY_ALERT)])
        assert len(published) == 1

    @pytest.mark.asyncio
    async def test_newest_first(self, store: AlertStore) -> None:
        await store.publish([_event("old", seconds=0)])
        await store.publish([_event("new", seconds=60)])
        events = await store.list_all()
        assert [e.source_id for e in events] == ["new", "old"]

    @pytest.mark.asyncio
    async def test_capacity_evicts_oldest(self) -> None:
        store = AlertStore(capacity=20)
        for i in range(21):
            await store.publish([_event(f"rule-{i}", seconds=i * 60)])
        events = await store.list_all()
        assert len(events) == 20
        assert "rule-0" not in {e.source_id for e in events}
        assert events[0].source_id == "rule-20"

    @pytest.mark.asyncio
    async def test_returned_events_are_copies(self, store: AlertStore) -> None:
        [event] = await store.publish([_event("a")])
        event.status = AlertStatus.RESOLVED
        [stored] = await store.list_all()
        assert stored.status is AlertStatus.ACTIVE

    def test_invalid_configuration_rejected(self) -> None:
        with pytest.raises(ValueError):
            AlertStore(capacity=0)
        with pytest.raises(ValueError):
            AlertStore(dedup_bucket_seconds=0)


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_acknowledge(self, store: AlertStore) -> None:
        [event] = await store.publish([_event()])
        acked = await store.acknowledge(event.event_id)
        assert acked.status is AlertStatus.ACKNOWLEDGED

    @pytest.mark.asyncio
    async def test_acknowledge_twice_is_noop(self, store: AlertStore) -> None:
        [event] = await store.publish([_event()])
        await store.acknowledge(event.event_id)
        again = await store.acknowledge(event.event_id)
        assert again.status is AlertStatus.ACKNOWLEDGED

    @pytest.mark.asyncio
    async def test_acknowledge_after_resolve_stays_resolved(self, store: AlertStore) -> None:
        [event] = await store.publish([_event()])
        await store.resolve(event.event_id)
        again = await store.acknowledge(event.event_id)
        assert again.status is AlertStatus.RESOLVED

    @pytest.mark.asyncio
    async def test_resolve_acknowledged(self, store: AlertStore) -> None:
        [event] = await store.publish([_event()])
        await store.acknowledge(event.event_id)
        resolved = await store.resolve(event.event_id)
        assert resolved.status is AlertStatus.RESOLVED
        assert await store.list_active() == []

    @pytest.mark.asyncio
    async def test_resolve_unknown_raises(self, store: AlertStore) -> None:
        with pytest.raises(AlertNotFoundError) as exc_info:
            await store.resolve("does-not-exist")
        assert exc_info.value.event_id == "does-not-exist"

    @pytest.mark.asyncio
    async def test_acknowledge_unknown_raises(self, store: AlertStore) -> None:
        with pytest.raises(AlertNotFoundError):
            await store.acknowledge("does-not-exist")

    @pytest.mark.asyncio
    async def test_get(self, store: AlertStore) -> None:
        [event] = await store.publish([_event()])
        assert (await store.get(event.event_id)).source_id == "pp_847"
        assert await store.get("missing") is None


class TestSummary:
    @pytest.mark.asyncio
    async def test_counts_by_status_and_severity(self, store: AlertStore) -> None:
        events = await store.publish([
            _event("a"),
            _event("b", severity=RiskLevel.HIGH, risk_multiplier=3.1),
            _event("c", severity=RiskLevel.MODERATE, risk_multiplier=1.5),
        ])
        await store.acknowledge(events[1].event_id)
        summary = (await store.summary()).to_dict()
        assert summary["retained"] == 3
        assert summary["by_status"] == {"active": 2, "acknowledged": 1, "resolved": 0}
        assert summary["by_severity"]["critical"] == 1
        assert summary["by_severity"]["low"] == 0
        assert summary["max_risk_multiplier"] == 8.2

"""Tests for the RiskEngine facade.

Uses clock patching via originome_risk.core.engine.utc_now and
originome_risk.core.pattern_matcher.utc_now so dedup buckets are stable.
"""

from __future__ import annotations

from contextlib import ExitStack, contextmanager
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from originome_risk.core.engine import RiskEngine
from originome_risk.domain.enums import AlertStatus, DomainId, EventKind, ParameterId, RiskLevel
from originome_risk.domain.errors import (
    AlertNotFoundError,
    InvalidRuleConfigurationError,
    OutOfOrderSampleError,
    UnknownParameterHistoryError,
)
from originome_risk.domain.snapshot import DomainSnapshot

from tests.test_pattern_matcher import _rule
from tests.test_sample import _BASE

_TICK = datetime(2026, 2, 13, 15, 0, 0, tzinfo=timezone.utc)


@contextmanager
def _patched_now(dt: datetime):
    """Freeze utc_now for the engine and the matcher."""
    with ExitStack() as stack:
        stack.enter_context(patch("originome_risk.core.engine.utc_now", return_value=dt))
        stack.enter_context(patch("originome_risk.core.pattern_matcher.utc_now", return_value=dt))
        yield


async def _record(engine: RiskEngine, parameter: ParameterId, values: list[float], step: float = 60.0):
    assessment = None
    for i, v in enumerate(values):
        assessment = await engine.record_sample(parameter, v, _BASE + timedelta(seconds=i * step))
    return assessment


def _snapshot(domain: DomainId, seconds: float = 0, **values) -> DomainSnapshot:
    return DomainSnapshot(
        domain=domain,
        values=values,
        observed_at=_BASE + timedelta(seconds=seconds),
        source="test-feed",
    )


async def _converge(engine: RiskEngine) -> None:
    await engine.update_snapshot(_snapshot(DomainId.GEOMAGNETIC, kp_index=6))
    await engine.update_snapshot(_snapshot(DomainId.AIR_QUALITY, pm25=25))
    await engine.update_snapshot(_snapshot(DomainId.BIOLOGICAL, viral_activity="High"))


@pytest.fixture
def engine() -> RiskEngine:
    return RiskEngine()


class TestSamples:
    @pytest.mark.asyncio
    async def test_record_sample_classifies(self, engine: RiskEngine) -> None:
        assessment = await _record(engine, ParameterId.CO2, [420, 440, 480])
        assert assessment.level is RiskLevel.CRITICAL
        assert assessment.sudden_change is True
        assert assessment.derivatives.velocity == pytest.approx(40.0)

    @pytest.mark.asyncio
    async def test_first_sample_is_insufficient(self, engine: RiskEngine) -> None:
        assessment = await _record(engine, ParameterId.PM25, [12.0])
        assert assessment.insufficient_data is True
        assert assessment.level is RiskLevel.LOW

    @pytest.mark.asyncio
    async def test_out_of_order_rejected(self, engine: RiskEngine) -> None:
        await engine.record_sample(ParameterId.CO2, 420, _BASE)
        with pytest.raises(OutOfOrderSampleError):
            await engine.record_sample(ParameterId.CO2, 430, _BASE - timedelta(seconds=1))
        derivatives = await engine.get_derivatives(ParameterId.CO2)
        assert derivatives.sample_count == 1

    @pytest.mark.asyncio
    async def test_buffer_capacity_is_honoured(self) -> None:
        engine = RiskEngine(buffer_capacity=3)
        await _record(engine, ParameterId.HUMIDITY, [40, 41, 42, 43, 44])
        status = await engine.status()
        assert status.buffered_samples["humidity"] == 3

    @pytest.mark.asyncio
    async def test_assessment_reports_absolute_band(self, engine: RiskEngine) -> None:
        assessment = await _record(engine, ParameterId.CO2, [1195, 1200])
        assert assessment.level is RiskLevel.LOW
        assert assessment.value_level is RiskLevel.HIGH

    @pytest.mark.asyncio
    async def test_empty_buffer_has_no_absolute_band(self, engine: RiskEngine) -> None:
        assert (await engine.assess(ParameterId.PRESSURE)).value_level is None

    @pytest.mark.asyncio
    async def test_get_derivatives_for_unseen_parameter(self, engine: RiskEngine) -> None:
        derivatives = await engine.get_derivatives(ParameterId.EM_FIELD)
        assert derivatives.sample_count == 0
        assert not derivatives.has_velocity


class TestForecast:
    @pytest.mark.asyncio
    async def test_forecast_uses_buffer(self, engine: RiskEngine) -> None:
        await _record(engine, ParameterId.CO2, [420, 430, 440])
        point = await engine.get_forecast(ParameterId.CO2, timedelta(minutes=10))
        assert point.predicted_value == pytest.approx(540.0)

    @pytest.mark.asyncio
    async def test_forecast_without_history_raises(self, engine: RiskEngine) -> None:
        with pytest.raises(UnknownParameterHistoryError):
            await engine.get_forecast(ParameterId.PRESSURE, timedelta(minutes=10))


class TestSnapshots:
    @pytest.mark.asyncio
    async def test_latest_snapshot_wins(self, engine: RiskEngine) -> None:
        assert await engine.update_snapshot(_snapshot(DomainId.GEOMAGNETIC, seconds=0, kp_index=3))
        assert await engine.update_snapshot(_snapshot(DomainId.GEOMAGNETIC, seconds=60, kp_index=6))
        latest = await engine.latest_snapshots()
        assert latest[DomainId.GEOMAGNETIC].get("kp_index") == 6

    @pytest.mark.asyncio
    async def test_stale_snapshot_ignored(self, engine: RiskEngine) -> None:
        await engine.update_snapshot(_snapshot(DomainId.GEOMAGNETIC, seconds=60, kp_index=6))
        kept = await engine.update_snapshot(_snapshot(DomainId.GEOMAGNETIC, seconds=0, kp_index=2))
        assert kept is False
        latest = await engine.latest_snapshots()
        assert latest[DomainId.GEOMAGNETIC].get("kp_index") == 6


class TestTicks:
    @pytest.mark.asyncio
    async def test_pattern_scan_publishes_matches(self, engine: RiskEngine) -> None:
        await _converge(engine)
        with _patched_now(_TICK):
            events = await engine.pattern_scan()
        assert events[0].source_id == "tri_domain_convergence"
        assert all(e.kind is EventKind.COMPOUND_PATTERN for e in events)
        active = await engine.list_active_alerts()
        assert {e.source_id for e in active} == {e.source_id for e in events}

    @pytest.mark.asyncio
    async def test_repeated_scan_is_deduplicated(self, engine: RiskEngine) -> None:
        await _converge(engine)
        with _patched_now(_TICK):
            first = await engine.pattern_scan()
        with _patched_now(_TICK + timedelta(seconds=10)):
            second = await engine.pattern_scan()
        assert first
        assert second == []

    @pytest.mark.asyncio
    async def test_scan_without_snapshots_is_quiet(self, engine: RiskEngine) -> None:
        assert await engine.pattern_scan() == []

    @pytest.mark.asyncio
    async def test_derivative_tick_raises_velocity_alert(self, engine: RiskEngine) -> None:
        await _record(engine, ParameterId.CO2, [420, 440, 480])
        await _record(engine, ParameterId.TEMPERATURE, [21.0, 21.1, 21.2])
        with _patched_now(_TICK):
            events = await engine.derivative_tick()
        assert [e.source_id for e in events] == ["co2"]
        event = events[0]
        assert event.kind is EventKind.VELOCITY_ALERT
        assert event.severity is RiskLevel.CRITICAL
        assert event.risk_score == 95
        assert event.title == "Sudden CO₂ Concentration spike"
        assert "ppm/min" in event.description

    @pytest.mark.asyncio
    async def test_high_acceleration_scores_lower(self, engine: RiskEngine) -> None:
        # velocities 1, 3.5 → acceleration 2.5 (HIGH for PM2.5)
        await _record(engine, ParameterId.PM25, [10, 11, 14.5])
        with _patched_now(_TICK):
            [event] = await engine.derivative_tick()
        assert event.severity is RiskLevel.HIGH
        assert event.risk_score == 75
        assert event.title == "PM2.5 Levels acceleration alert"


class TestTickFreshness:
    @pytest.mark.asyncio
    async def test_resolved_spike_stays_resolved_without_new_sample(self, engine: RiskEngine) -> None:
        await _record(engine, ParameterId.CO2, [420, 440, 480])
        with _patched_now(_TICK):
            [event] = await engine.derivative_tick()
        await engine.resolve(event.event_id)
        with _patched_now(_TICK + timedelta(seconds=2)):
            assert await engine.derivative_tick() == []
        assert await engine.list_active_alerts() == []

    @pytest.mark.asyncio
    async def test_new_sample_can_raise_again(self, engine: RiskEngine) -> None:
        await _record(engine, ParameterId.CO2, [420, 440, 480])
        with _patched_now(_TICK):
            [first] = await engine.derivative_tick()
        await engine.resolve(first.event_id)
        await engine.record_sample(ParameterId.CO2, 540, _BASE + timedelta(seconds=180))
        with _patched_now(_TICK + timedelta(seconds=60)):
            [second] = await engine.derivative_tick()
        assert second.source_id == "co2"
        assert second.event_id != first.event_id

    @pytest.mark.asyncio
    async def test_stale_spike_does_not_flood_alerts(self, engine: RiskEngine) -> None:
        await _record(engine, ParameterId.CO2, [420, 440, 480])
        for i in range(360):
            with _patched_now(_TICK + timedelta(seconds=2 * i)):
                await engine.derivative_tick()
        events = await engine.list_alerts()
        assert [e.source_id for e in events] == ["co2"]

    @pytest.mark.asyncio
    async def test_unchanged_convergence_alerts_once(self, engine: RiskEngine) -> None:
        await _converge(engine)
        published = []
        for i in range(10):
            with _patched_now(_TICK + timedelta(seconds=30 * i)):
                published.extend(await engine.pattern_scan())
        assert sorted(e.source_id for e in published) == [
            "geomagnetic_air_quality",
            "pp_847_geomagnetic_particulate",
            "tri_domain_convergence",
        ]
        assert len(await engine.list_active_alerts()) == 3

    @pytest.mark.asyncio
    async def test_resolved_convergence_not_raised_from_same_snapshots(self, engine: RiskEngine) -> None:
        await _converge(engine)
        with _patched_now(_TICK):
            events = await engine.pattern_scan()
        for event in events:
            await engine.resolve(event.event_id)
        with _patched_now(_TICK + timedelta(minutes=5)):
            assert await engine.pattern_scan() == []

    @pytest.mark.asyncio
    async def test_refreshed_snapshot_fires_again(self, engine: RiskEngine) -> None:
        await _converge(engine)
        with _patched_now(_TICK):
            await engine.pattern_scan()
        await engine.update_snapshot(_snapshot(DomainId.GEOMAGNETIC, seconds=60, kp_index=6))
        with _patched_now(_TICK + timedelta(seconds=60)):
            events = await engine.pattern_scan()
        assert {e.source_id for e in events} == {
            "tri_domain_convergence",
            "pp_847_geomagnetic_particulate",
            "geomagnetic_air_quality",
        }

    @pytest.mark.asyncio
    async def test_untouched_rule_stays_quiet_when_other_domain_refreshes(self, engine: RiskEngine) -> None:
        await _converge(engine)
        await engine.update_snapshot(_snapshot(DomainId.AIR_QUALITY, pm25=8, temperature=26.0))
        await engine.update_snapshot(_snapshot(DomainId.SEISMIC, risk_level=5.0))
        with _patched_now(_TICK):
            first = await engine.pattern_scan()
        assert [e.source_id for e in first] == ["thermal_seismic"]
        await engine.update_snapshot(_snapshot(DomainId.BIOLOGICAL, seconds=60, viral_activity="Low"))
        with _patched_now(_TICK + timedelta(seconds=60)):
            assert await engine.pattern_scan() == []


class TestAlertLifecycle:
    @pytest.mark.asyncio
    async def test_acknowledge_then_resolve(self, engine: RiskEngine) -> None:
        await _converge(engine)
        with _patched_now(_TICK):
            events = await engine.pattern_scan()
        event_id = events[0].event_id
        assert (await engine.acknowledge(event_id)).status is AlertStatus.ACKNOWLEDGED
        assert (await engine.resolve(event_id)).status is AlertStatus.RESOLVED
        assert event_id not in {e.event_id for e in await engine.list_active_alerts()}
        assert event_id in {e.event_id for e in await engine.list_alerts()}

    @pytest.mark.asyncio
    async def test_resolve_unknown(self, engine: RiskEngine) -> None:
        with pytest.raises(AlertNotFoundError):
            await engine.resolve("nope")


class TestConstruction:
    def test_bad_catalogue_stops_construction(self) -> None:
        from originome_risk.core.pattern_matcher import load_rules

        with pytest.raises(InvalidRuleConfigurationError):
            RiskEngine(rules=load_rules([_rule("a"), _rule("a")]))

    def test_undeclared_domain_stops_construction(self) -> None:
        with pytest.raises(InvalidRuleConfigurationError):
            RiskEngine(declared_domains=[DomainId.AIR_QUALITY, DomainId.GEOMAGNETIC])

    @pytest.mark.asyncio
    async def test_status(self, engine: RiskEngine) -> None:
        await _record(engine, ParameterId.CO2, [420, 440])
        await engine.update_snapshot(_snapshot(DomainId.SEISMIC, risk_level=2))
        status = (await engine.status()).to_dict()
        assert status["buffered_samples"]["co2"] == 2
        assert status["known_domains"] == ["seismic"]
        assert status["alerts"]["retained"] == 0

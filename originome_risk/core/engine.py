"""RiskEngine — the single owner of buffers, snapshots and alerts.

Data flow:
    record_sample → SampleStore → compute_derivatives → RiskClassifier
    update_snapshot → latest per domain → PatternMatcher → AlertStore
    get_forecast → SampleStore → compute_derivatives → ForecastProjector

There is no module-level mutable state: everything lives on one
constructed engine instance.  Collaborators are injected so tests can
substitute thresholds, catalogues and capacities.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable

from originome_risk.core.catalogue import default_rules
from originome_risk.core.classifier import RiskClassifier
from originome_risk.core.derivatives import DEFAULT_RATE_UNIT_SECONDS, compute_derivatives
from originome_risk.core.forecast import ForecastProjector
from originome_risk.core.pattern_matcher import PatternMatcher
from originome_risk.domain.alert import RiskEvent
from originome_risk.domain.derivatives import DerivativeSet
from originome_risk.domain.enums import DomainId, EventKind, ParameterId, RiskLevel
from originome_risk.domain.errors import UnknownParameterHistoryError
from originome_risk.domain.forecast import ForecastPoint
from originome_risk.domain.risk import RiskAssessment
from originome_risk.domain.rules import CompoundRule
from originome_risk.domain.sample import Sample
from originome_risk.domain.snapshot import DomainSnapshot
from originome_risk.foundation.clock import utc_now
from originome_risk.store.alert_store import AlertStore, AlertSummary
from originome_risk.store.sample_buffer import SampleStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VelocityAlertPolicy:
    """Fixed calibration for events raised from derivative assessments."""

    critical_score: float = 95.0
    high_score: float = 75.0
    risk_multiplier: float = 2.4
    confidence: float = 0.87
    lineage: tuple[str, ...] = ("Internal Sensors", "HVAC Control System")


@dataclass(frozen=True)
class EngineStatus:
    """Point-in-time engine observations for health endpoints."""

    buffered_samples: dict[str, int]
    known_domains: list[str]
    alerts: AlertSummary

    def to_dict(self) -> dict:
        return {
            "buffered_samples": dict(self.buffered_samples),
            "known_domains": list(self.known_domains),
            "alerts": self.alerts.to_dict(),
        }


class RiskEngine:
    """Streaming derivative and compound-risk detection engine.

    Args:
        rules: Compound-rule catalogue; validated here, so a bad rule stops
            construction with InvalidRuleConfigurationError.
        declared_domains: Domains this deployment receives data for.
        buffer_capacity: Samples kept per parameter.
        alert_capacity: Risk events retained.
        dedup_bucket_seconds: Fingerprint time bucket for deduplication.
        rate_unit_seconds: Canonical velocity unit (60 = per minute).
        classifier: Threshold classifier override.
        projector: Forecast projector override.
        velocity_policy: Calibration for derivative-driven events.
    """

    def __init__(
        self,
        rules: Iterable[CompoundRule] | None = None,
        declared_domains: Iterable[DomainId] | None = None,
        buffer_capacity: int = 20,
        alert_capacity: int = 20,
        dedup_bucket_seconds: float = 30.0,
        rate_unit_seconds: float = DEFAULT_RATE_UNIT_SECONDS,
        classifier: RiskClassifier | None = None,
        projector: ForecastProjector | None = None,
        velocity_policy: VelocityAlertPolicy | None = None,
    ) -> None:
        self._matcher = PatternMatcher(
            rules if rules is not None else default_rules(),
            declared_domains,
        )
        self._rate_unit_seconds = rate_unit_seconds
        self._rate_label = "min" if rate_unit_seconds == 60 else f"{rate_unit_seconds:g}s"
        self._samples = SampleStore(capacity=buffer_capacity)
        self._alerts = AlertStore(capacity=alert_capacity, dedup_bucket_seconds=dedup_bucket_seconds)
        self._classifier = classifier or RiskClassifier()
        self._projector = projector or ForecastProjector(rate_unit_seconds=rate_unit_seconds)
        self._velocity_policy = velocity_policy or VelocityAlertPolicy()
        self._snapshots: dict[DomainId, DomainSnapshot] = {}
        self._snapshot_lock = asyncio.Lock()

        # Input watermarks: a tick only re-alerts on data it has not alerted on
        self._derivative_lock = asyncio.Lock()
        self._alerted_through: dict[ParameterId, datetime] = {}
        self._pattern_lock = asyncio.Lock()
        self._rule_domains = {
            rule.rule_id: sorted(rule.domains, key=lambda d: d.value) for rule in self._matcher.rules
        }
        self._rule_inputs: dict[str, tuple[datetime, ...]] = {}

    @property
    def alerts(self) -> AlertStore:
        return self._alerts

    @property
    def matcher(self) -> PatternMatcher:
        return self._matcher

    # ── Samples & derivatives ────────────────────────────────────────────

    async def record_sample(
        self,
        parameter: ParameterId,
        value: float,
        timestamp: datetime,
    ) -> RiskAssessment:
        """Buffer one reading and classify the resulting derivatives.

        Raises:
            OutOfOrderSampleError: If *timestamp* does not advance the buffer.
        """
        sample = Sample(parameter=parameter, value=value, timestamp=timestamp)
        return await self.ingest(sample)

    async def ingest(self, sample: Sample) -> RiskAssessment:
        """Same as record_sample for an already-validated Sample."""
        snapshot = await self._samples.record(sample)
        derivatives = compute_derivatives(sample.parameter, snapshot, self._rate_unit_seconds)
        assessment = self._classifier.classify(sample.parameter, derivatives)
        if assessment.alert_worthy:
            logger.debug(
                "%s classified %s (sudden=%s, v=%.3f, a=%.3f)",
                sample.parameter.value,
                assessment.level.value,
                assessment.sudden_change,
                derivatives.velocity,
                derivatives.acceleration,
            )
        return assessment

    async def get_derivatives(self, parameter: ParameterId) -> DerivativeSet:
        snapshot = await self._samples.snapshot(parameter)
        return compute_derivatives(parameter, snapshot, self._rate_unit_seconds)

    async def assess(self, parameter: ParameterId) -> RiskAssessment:
        return self._classifier.classify(parameter, await self.get_derivatives(parameter))

    async def get_forecast(self, parameter: ParameterId, horizon: timedelta) -> ForecastPoint:
        """Linear projection of *parameter* over *horizon*.

        Raises:
            UnknownParameterHistoryError: If nothing has been recorded yet.
        """
        snapshot = await self._samples.snapshot(parameter)
        if not snapshot:
            raise UnknownParameterHistoryError(parameter.value)
        derivatives = compute_derivatives(parameter, snapshot, self._rate_unit_seconds)
        return self._projector.project(parameter, snapshot, derivatives, horizon)

    # ── Domain snapshots ─────────────────────────────────────────────────

    async def update_snapshot(self, snapshot: DomainSnapshot) -> bool:
        """Keep *snapshot* if it is at least as new as the one held.

        Returns False when a stale snapshot was ignored.
        """
        async with self._snapshot_lock:
            current = self._snapshots.get(snapshot.domain)
            if current is not None and snapshot.observed_at < current.observed_at:
                logger.warning(
                    "Ignored stale %s snapshot from %s (observed %s < %s)",
                    snapshot.domain.value,
                    snapshot.source,
                    snapshot.observed_at.isoformat(),
                    current.observed_at.isoformat(),
                )
                return False
            self._snapshots[snapshot.domain] = snapshot
            return True

    async def latest_snapshots(self) -> dict[DomainId, DomainSnapshot]:
        async with self._snapshot_lock:
            return dict(self._snapshots)

    # ── Ticks ────────────────────────────────────────────────────────────

    async def derivative_tick(self) -> list[RiskEvent]:
        """Reclassify every parameter and publish HIGH/CRITICAL as events.

        A parameter already alerted on at its newest sample is skipped until
        a newer sample arrives, so a resolved alert is not raised again from
        the same readings.
        """
        async with self._derivative_lock:
            events: list[RiskEvent] = []
            watermarks: dict[ParameterId, datetime] = {}
            now = utc_now()
            for parameter in ParameterId:
                samples = await self._samples.snapshot(parameter)
                if not samples:
                    continue
                newest = samples[-1].timestamp
                alerted = self._alerted_through.get(parameter)
                if alerted is not None and newest <= alerted:
                    continue

                derivatives = compute_derivatives(parameter, samples, self._rate_unit_seconds)
                assessment = self._classifier.classify(parameter, derivatives)
                if assessment.alert_worthy:
                    events.append(self._velocity_event(assessment, now))
                    watermarks[parameter] = newest

            events.sort(key=lambda e: e.risk_score, reverse=True)
            published = await self._alerts.publish(events)
            self._alerted_through.update(watermarks)
            return published

    async def pattern_scan(self) -> list[RiskEvent]:
        """Evaluate the rule catalogue on the latest snapshots and publish matches.

        A rule whose driving snapshots are the same ones it last fired on is
        skipped; it can fire again once any of them is replaced.
        """
        async with self._pattern_lock:
            snapshots = await self.latest_snapshots()
            events: list[RiskEvent] = []
            inputs: dict[str, tuple[datetime, ...]] = {}
            for event in self._matcher.evaluate(snapshots):
                stamp = tuple(snapshots[d].observed_at for d in self._rule_domains[event.source_id])
                if self._rule_inputs.get(event.source_id) == stamp:
                    continue
                events.append(event)
                inputs[event.source_id] = stamp

            published = await self._alerts.publish(events)
            self._rule_inputs.update(inputs)
            return published

    # ── Alerts ───────────────────────────────────────────────────────────

    async def list_active_alerts(self) -> list[RiskEvent]:
        return await self._alerts.list_active()

    async def list_alerts(self) -> list[RiskEvent]:
        return await self._alerts.list_all()

    async def acknowledge(self, event_id: str) -> RiskEvent:
        return await self._alerts.acknowledge(event_id)

    async def resolve(self, event_id: str) -> RiskEvent:
        return await self._alerts.resolve(event_id)

    # ── Observability ────────────────────────────────────────────────────

    async def status(self) -> EngineStatus:
        snapshots = await self.latest_snapshots()
        return EngineStatus(
            buffered_samples={p.value: n for p, n in self._samples.sizes().items()},
            known_domains=sorted(d.value for d in snapshots),
            alerts=await self._alerts.summary(),
        )

    # ── Internals ────────────────────────────────────────────────────────

    def _velocity_event(self, assessment: RiskAssessment, now: datetime) -> RiskEvent:
        policy = self._velocity_policy
        spec = self._classifier.spec(assessment.parameter)
        d = assessment.derivatives
        direction = "spike" if d.velocity > 0 else "drop"

        if assessment.sudden_change:
            title = f"Sudden {spec.label} {direction}"
            reason = f"velocity {d.velocity:.1f} {spec.unit}/{self._rate_label} exceeds {spec.sudden_change_velocity:g}"
        else:
            title = f"{spec.label} {assessment.alert_type.value} alert"
            reason = f"acceleration {d.acceleration:.2f} {spec.unit}/{self._rate_label}²"

        score = policy.critical_score if assessment.level is RiskLevel.CRITICAL else policy.high_score
        return RiskEvent(
            kind=EventKind.VELOCITY_ALERT,
            source_id=assessment.parameter.value,
            severity=assessment.level,
            confidence=policy.confidence,
            risk_multiplier=policy.risk_multiplier,
            risk_score=score,
            title=title,
            description=f"{spec.label}: {reason}.",
            detected_at=now,
            data_lineage=list(policy.lineage),
        )

"""PatternMatcher — evaluates the compound-rule catalogue against snapshots.

Design principles:
    1. The catalogue is validated once, at construction.  A malformed rule
       makes the matcher (and therefore the engine) refuse to start.
    2. Every rule is a pure conjunction.  Partial matches never fire.
    3. Rules are independent; several may fire in one pass.
    4. Results are ordered by risk_score descending, not declaration order.
    5. No state, no I/O.  Evaluation never mutates the snapshots.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from originome_risk.domain.alert import RiskEvent
from originome_risk.domain.enums import DomainId, EventKind, PredicateOperator
from originome_risk.domain.errors import InvalidRuleConfigurationError
from originome_risk.domain.rules import CompoundRule
from originome_risk.domain.snapshot import DomainSnapshot
from originome_risk.foundation.clock import utc_now

logger = logging.getLogger(__name__)

MIN_PREDICATES = 2


def load_rules(raw_rules: Iterable[Mapping[str, Any]]) -> list[CompoundRule]:
    """Parse declarative rule dicts into CompoundRules.

    Raises:
        InvalidRuleConfigurationError: If any entry fails schema validation
            (including a predicate naming an undeclared domain).
    """
    rules: list[CompoundRule] = []
    for index, raw in enumerate(raw_rules):
        rule_id = str(raw.get("rule_id", f"#{index}"))
        try:
            rules.append(CompoundRule.model_validate(raw))
        except ValidationError as exc:
            raise InvalidRuleConfigurationError(rule_id, str(exc)) from exc
    return rules


def validate_catalogue(
    rules: Iterable[CompoundRule],
    declared_domains: Iterable[DomainId] | None = None,
) -> None:
    """Structural checks that the schema alone cannot express.

    Raises:
        InvalidRuleConfigurationError: On the first malformed rule.
    """
    declared = set(declared_domains) if declared_domains is not None else set(DomainId)
    seen: set[str] = set()

    for rule in rules:
        if rule.rule_id in seen:
            raise InvalidRuleConfigurationError(rule.rule_id, "duplicate rule id")
        seen.add(rule.rule_id)

        if len(rule.predicates) < MIN_PREDICATES:
            raise InvalidRuleConfigurationError(
                rule.rule_id, f"needs at least {MIN_PREDICATES} predicates, has {len(rule.predicates)}"
            )

        undeclared = rule.domains - declared
        if undeclared:
            raise InvalidRuleConfigurationError(
                rule.rule_id,
                f"references undeclared domain(s): {sorted(d.value for d in undeclared)}",
            )

        if len(rule.domains) < 2:
            raise InvalidRuleConfigurationError(rule.rule_id, "predicates must span at least two distinct domains")

        for predicate in rule.predicates:
            _validate_threshold(rule.rule_id, predicate.operator, predicate.threshold)


def _validate_threshold(rule_id: str, operator: PredicateOperator, threshold: Any) -> None:
    if operator is PredicateOperator.OUTSIDE:
        if not isinstance(threshold, tuple) or len(threshold) != 2:
            raise InvalidRuleConfigurationError(rule_id, "'outside' needs a [low, high] pair")
        low, high = threshold
        if low > high:
            raise InvalidRuleConfigurationError(rule_id, f"'outside' range is inverted: [{low}, {high}]")
    elif operator is not PredicateOperator.EQ:
        if not isinstance(threshold, (int, float)):
            raise InvalidRuleConfigurationError(
                rule_id, f"'{operator.value}' needs a numeric threshold, got {threshold!r}"
            )


class PatternMatcher:
    """Evaluates an immutable, validated rule catalogue.

    Args:
        rules: The compound-rule catalogue.
        declared_domains: Domains this deployment receives data for.
            Defaults to every DomainId.
    """

    def __init__(
        self,
        rules: Iterable[CompoundRule],
        declared_domains: Iterable[DomainId] | None = None,
    ) -> None:
        catalogue = tuple(rules)
        validate_catalogue(catalogue, declared_domains)
        self._rules = catalogue
        logger.info("Loaded %d compound rule(s)", len(catalogue))

    @property
    def rules(self) -> tuple[CompoundRule, ...]:
        return self._rules

    # ── Public API ───────────────────────────────────────────────────────

    def matching_rules(self, latest_by_domain: Mapping[DomainId, DomainSnapshot]) -> list[CompoundRule]:
        """Rules whose every predicate holds, sorted by risk_score descending."""
        snapshots = dict(latest_by_domain)
        fired = [rule for rule in self._rules if rule.matches(snapshots)]
        # sorted() is stable, so equal scores keep declaration order
        return sorted(fired, key=lambda r: r.risk_score, reverse=True)

    def evaluate(self, latest_by_domain: Mapping[DomainId, DomainSnapshot]) -> list[RiskEvent]:
        """Produce one RiskEvent per firing rule, highest risk_score first."""
        now = utc_now()
        events = [self._event_for(rule, latest_by_domain, now) for rule in self.matching_rules(latest_by_domain)]
        if events:
            logger.debug("Pattern scan fired %s", [e.source_id for e in events])
        return events

    # ── Internals ────────────────────────────────────────────────────────

    @staticmethod
    def _event_for(rule: CompoundRule, snapshots: Mapping[DomainId, DomainSnapshot], now) -> RiskEvent:
        lineage = list(rule.data_lineage)
        for domain in sorted(rule.domains, key=lambda d: d.value):
            snap = snapshots.get(domain)
            if snap is not None and snap.source not in lineage:
                lineage.append(snap.source)

        drivers = "; ".join(p.describe() for p in rule.predicates)
        description = f"{rule.description} Drivers: {drivers}." if rule.description else f"Drivers: {drivers}."

        return RiskEvent(
            kind=EventKind.COMPOUND_PATTERN,
            source_id=rule.rule_id,
            severity=rule.severity,
            confidence=rule.confidence,
            risk_multiplier=rule.risk_multiplier,
            risk_score=rule.risk_score,
            title=rule.title,
            description=description,
            detected_at=now,
            data_lineage=lineage,
        )

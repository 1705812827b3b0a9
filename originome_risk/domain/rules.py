"""Compound rules — declarative cross-domain conjunctions.

A CompoundRule fires only when *every* predicate holds against the latest
domain snapshots.  Score, confidence and multiplier are fixed per rule:
they encode the rule author's calibration and are never recomputed from
live statistics.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from originome_risk.domain.enums import DomainId, PredicateOperator, RiskLevel
from originome_risk.domain.snapshot import DomainSnapshot


class Predicate(BaseModel):
    """One numeric or categorical comparison against a domain field."""

    domain: DomainId
    field: str = Field(..., min_length=1, max_length=64)
    operator: PredicateOperator
    threshold: float | str | tuple[float, float]

    model_config = {"frozen": True}

    def is_satisfied(self, snapshots: dict[DomainId, DomainSnapshot]) -> bool:
        """Evaluate against the snapshot map.  A missing domain or field never matches."""
        snapshot = snapshots.get(self.domain)
        if snapshot is None:
            return False
        observed = snapshot.get(self.field)
        if observed is None:
            return False
        return self.compare(observed)

    def compare(self, observed: float | str) -> bool:
        op = self.operator
        if op is PredicateOperator.EQ:
            if isinstance(observed, str) and isinstance(self.threshold, str):
                return observed.strip().casefold() == self.threshold.strip().casefold()
            return observed == self.threshold

        if isinstance(observed, str) or isinstance(observed, bool):
            return False

        if op is PredicateOperator.OUTSIDE:
            low, high = self.threshold  # type: ignore[misc]
            return observed < low or observed > high

        threshold = self.threshold
        if not isinstance(threshold, (int, float)):
            return False
        if op is PredicateOperator.GT:
            return observed > threshold
        if op is PredicateOperator.GE:
            return observed >= threshold
        if op is PredicateOperator.LT:
            return observed < threshold
        if op is PredicateOperator.LE:
            return observed <= threshold
        return False

    def describe(self) -> str:
        symbols = {
            PredicateOperator.GT: ">",
            PredicateOperator.GE: "≥",
            PredicateOperator.LT: "<",
            PredicateOperator.LE: "≤",
            PredicateOperator.EQ: "=",
            PredicateOperator.OUTSIDE: "outside",
        }
        threshold = self.threshold
        if isinstance(threshold, tuple):
            shown = f"[{threshold[0]:g}, {threshold[1]:g}]"
        elif isinstance(threshold, float):
            shown = f"{threshold:g}"
        else:
            shown = threshold
        return f"{self.domain.value}.{self.field} {symbols[self.operator]} {shown}"


class CompoundRule(BaseModel):
    """Static, immutable catalogue entry."""

    rule_id: str = Field(..., min_length=1, max_length=128)
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=2000)
    predicates: list[Predicate]
    risk_score: float = Field(..., ge=0.0, le=100.0)
    risk_multiplier: float = Field(..., gt=0.0)
    confidence: float = Field(..., ge=0.0, le=1.0)
    severity: RiskLevel
    data_lineage: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}

    @property
    def domains(self) -> set[DomainId]:
        return {p.domain for p in self.predicates}

    def matches(self, snapshots: dict[DomainId, DomainSnapshot]) -> bool:
        return all(p.is_satisfied(snapshots) for p in self.predicates)

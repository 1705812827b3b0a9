"""Controlled enumerations for the risk engine domain.

Every categorical field in the domain MUST reference an enum defined here.
Free-form strings are not acceptable for classification fields.
"""

from __future__ import annotations

from enum import Enum


class ParameterId(str, Enum):
    """Environmental parameters that are sampled as scalar time series."""

    CO2 = "co2"
    PM25 = "pm25"
    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"
    KP_INDEX = "kp_index"
    PRESSURE = "pressure"
    EM_FIELD = "em_field"


class DomainId(str, Enum):
    """Independent data domains that feed compound-pattern rules."""

    AIR_QUALITY = "air_quality"
    GEOMAGNETIC = "geomagnetic"
    SEISMIC = "seismic"
    BIOLOGICAL = "biological"
    SOLAR = "solar"


class RiskLevel(str, Enum):
    """Ordered severity scale.  Compare with ``rank`` or the rich operators."""

    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _RISK_RANK[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank >= other.rank


_RISK_RANK = {
    RiskLevel.LOW: 0,
    RiskLevel.MODERATE: 1,
    RiskLevel.HIGH: 2,
    RiskLevel.CRITICAL: 3,
}


class AlertType(str, Enum):
    """Which derivative feature drove a classification."""

    VELOCITY = "velocity"
    ACCELERATION = "acceleration"
    JERK = "jerk"
    SUDDEN_SHIFT = "sudden_shift"


class AlertStatus(str, Enum):
    """Lifecycle of a retained risk event."""

    ACTIVE = "active"
    ACKNOWLEDGED = "acknowledged"
    RESOLVED = "resolved"


class EventKind(str, Enum):
    """Origin of a risk event."""

    COMPOUND_PATTERN = "compound_pattern"
    VELOCITY_ALERT = "velocity_alert"


class PredicateOperator(str, Enum):
    """Comparison applied by a compound-rule predicate."""

    GT = "gt"
    GE = "ge"
    LT = "lt"
    LE = "le"
    EQ = "eq"
    OUTSIDE = "outside"


class Trend(str, Enum):
    """Short-horizon trajectory of a parameter."""

    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"
    VOLATILE = "volatile"

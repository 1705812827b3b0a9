"""RiskClassifier — maps derivatives and absolute values to a RiskLevel.

Evaluation order for derivative readings:
    1. |velocity| > sudden-change threshold   → CRITICAL, sudden_change=True
       (short-circuits the acceleration tiers)
    2. |acceleration| against critical > high > moderate; first match wins
    3. LOW

An abrupt single-step spike therefore always outranks a gradually
building trend of the same final acceleration magnitude.

Absolute readings are classified separately against each parameter's
risk bands (classify_value).
"""

from __future__ import annotations

from originome_risk.domain.derivatives import DerivativeSet
from originome_risk.domain.enums import AlertType, ParameterId, RiskLevel
from originome_risk.domain.parameters import PARAMETER_SPECS, ParameterSpec
from originome_risk.domain.risk import RiskAssessment


class RiskClassifier:
    """Stateless threshold classifier.

    Args:
        specs: Per-parameter thresholds.  Defaults to the built-in table.
    """

    def __init__(self, specs: dict[ParameterId, ParameterSpec] | None = None) -> None:
        self._specs = dict(specs or PARAMETER_SPECS)
        missing = set(ParameterId) - set(self._specs)
        if missing:
            raise ValueError(f"no thresholds declared for: {sorted(p.value for p in missing)}")

    def spec(self, parameter: ParameterId) -> ParameterSpec:
        return self._specs[parameter]

    # ── Public API ───────────────────────────────────────────────────────

    def classify(self, parameter: ParameterId, derivatives: DerivativeSet) -> RiskAssessment:
        spec = self._specs[parameter]
        level, sudden = self._level(spec, derivatives)
        return RiskAssessment(
            parameter=parameter,
            level=level,
            sudden_change=sudden,
            alert_type=self._alert_type(spec, derivatives, level, sudden),
            insufficient_data=not derivatives.has_velocity,
            value_level=(
                None if derivatives.latest_value is None
                else self.classify_value(parameter, derivatives.latest_value)
            ),
            derivatives=derivatives,
        )

    def classify_value(self, parameter: ParameterId, value: float) -> RiskLevel:
        return self._specs[parameter].bands.level_for(value)

    # ── Internals ────────────────────────────────────────────────────────

    @staticmethod
    def _level(spec: ParameterSpec, d: DerivativeSet) -> tuple[RiskLevel, bool]:
        if abs(d.velocity) > spec.sudden_change_velocity:
            return RiskLevel.CRITICAL, True

        accel = abs(d.acceleration)
        if accel > spec.acceleration_critical:
            return RiskLevel.CRITICAL, False
        if accel > spec.acceleration_high:
            return RiskLevel.HIGH, False
        if accel > spec.acceleration_moderate:
            return RiskLevel.MODERATE, False
        return RiskLevel.LOW, False

    @staticmethod
    def _alert_type(
        spec: ParameterSpec,
        d: DerivativeSet,
        level: RiskLevel,
        sudden: bool,
    ) -> AlertType:
        if sudden:
            return AlertType.SUDDEN_SHIFT
        if d.has_jerk and abs(d.jerk) > spec.jerk_threshold:
            return AlertType.JERK
        if level is not RiskLevel.LOW:
            return AlertType.ACCELERATION
        return AlertType.VELOCITY

"""ForecastProjector — linear, memoryless extrapolation of a parameter.

    predicted  = current + velocity * horizon_in_rate_units
    band       = predicted ± band_fraction * |velocity * horizon_in_rate_units|
    confidence = clamp(1 - stddev / |mean|, 0.3, 0.95) over buffered values

The band widens with the projected change but never shifts the point
estimate.  Acceleration and seasonality are not modelled.
"""

from __future__ import annotations

import statistics
from dataclasses import dataclass
from datetime import timedelta
from typing import Sequence

from originome_risk.domain.derivatives import DerivativeSet
from originome_risk.domain.enums import ParameterId, Trend
from originome_risk.domain.forecast import ForecastPoint
from originome_risk.domain.parameters import PARAMETER_SPECS, ParameterSpec
from originome_risk.domain.sample import Sample


@dataclass(frozen=True)
class ForecastConfig:
    """Tunable constants for projection confidence and trend labelling."""

    min_samples: int = 5
    default_confidence: float = 0.5
    min_confidence: float = 0.3
    max_confidence: float = 0.95
    band_fraction: float = 0.05
    # Trend thresholds, in rate units and rate units squared
    velocity_threshold: float = 0.1
    acceleration_threshold: float = 0.05


class ForecastProjector:
    """Stateless projector.  Reads a buffer snapshot, returns a ForecastPoint."""

    def __init__(
        self,
        config: ForecastConfig | None = None,
        rate_unit_seconds: float = 60.0,
        specs: dict[ParameterId, ParameterSpec] | None = None,
    ) -> None:
        self._config = config or ForecastConfig()
        self._rate_unit_seconds = rate_unit_seconds
        self._specs = specs or PARAMETER_SPECS

    def project(
        self,
        parameter: ParameterId,
        samples: Sequence[Sample],
        derivatives: DerivativeSet,
        horizon: timedelta,
    ) -> ForecastPoint:
        """Project *parameter* forward by *horizon*.

        Raises:
            ValueError: If *samples* is empty or *horizon* is negative.
        """
        if not samples:
            raise ValueError("cannot project without at least one sample")
        if horizon < timedelta(0):
            raise ValueError("horizon must not be negative")

        cfg = self._config
        current = samples[-1].value
        units = horizon.total_seconds() / self._rate_unit_seconds
        change = derivatives.velocity * units
        spread = abs(change) * cfg.band_fraction

        predicted = current + change
        lower, upper = predicted - spread, predicted + spread
        if self._specs[parameter].non_negative:
            predicted, lower, upper = max(0.0, predicted), max(0.0, lower), max(0.0, upper)

        return ForecastPoint(
            parameter=parameter,
            horizon_seconds=horizon.total_seconds(),
            current_value=current,
            predicted_value=predicted,
            lower_bound=lower,
            upper_bound=upper,
            confidence=round(self.confidence([s.value for s in samples]), 4),
            trend=self.trend(derivatives),
        )

    # ── Helpers ──────────────────────────────────────────────────────────

    def confidence(self, values: Sequence[float]) -> float:
        """Coefficient-of-variation confidence.  Higher variance = lower confidence."""
        cfg = self._config
        if len(values) < cfg.min_samples:
            return cfg.default_confidence

        mean = statistics.fmean(values)
        if mean == 0.0:
            return cfg.default_confidence

        coefficient = statistics.pstdev(values) / abs(mean)
        return max(cfg.min_confidence, min(cfg.max_confidence, 1.0 - coefficient))

    def trend(self, derivatives: DerivativeSet) -> Trend:
        cfg = self._config
        if derivatives.has_acceleration and abs(derivatives.acceleration) > cfg.acceleration_threshold:
            return Trend.VOLATILE
        if derivatives.velocity > cfg.velocity_threshold:
            return Trend.INCREASING
        if derivatives.velocity < -cfg.velocity_threshold:
            return Trend.DECREASING
        return Trend.STABLE

"""Finite-difference derivatives over a buffer snapshot.

Given timestamps t0 < t1 < ... < tn and values v0 ... vn:

    velocity_i     = (v_i - v_{i-1}) * rate_unit_seconds / (t_i - t_{i-1})
    acceleration_n = velocity_n - velocity_{n-1}
    jerk_n         = acceleration_n - acceleration_{n-1}

Velocities are normalised to one canonical rate unit (per minute by
default) so differing sampling cadences stay comparable.  Acceleration and
jerk are plain differences of consecutive normalised values.

Pure functions: no state, no I/O, no clock other than the caller's.
"""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from originome_risk.domain.derivatives import DerivativeSet
from originome_risk.domain.enums import ParameterId
from originome_risk.domain.sample import Sample
from originome_risk.foundation.clock import utc_now

DEFAULT_RATE_UNIT_SECONDS = 60.0


def velocity_series(
    samples: Sequence[Sample],
    rate_unit_seconds: float = DEFAULT_RATE_UNIT_SECONDS,
) -> list[float]:
    """Normalised velocity for every consecutive pair, oldest first.

    Returns an empty list with fewer than 2 samples.
    """
    velocities: list[float] = []
    for prev, cur in zip(samples, samples[1:]):
        dt = (cur.timestamp - prev.timestamp).total_seconds()
        if dt <= 0:
            # SampleBuffer guarantees strictly increasing timestamps
            raise ValueError("samples must have strictly increasing timestamps")
        velocities.append((cur.value - prev.value) * rate_unit_seconds / dt)
    return velocities


def _differences(values: Sequence[float]) -> list[float]:
    return [b - a for a, b in zip(values, values[1:])]


def compute_derivatives(
    parameter: ParameterId,
    samples: Sequence[Sample],
    rate_unit_seconds: float = DEFAULT_RATE_UNIT_SECONDS,
    computed_at: datetime | None = None,
) -> DerivativeSet:
    """Compute velocity, acceleration and jerk at the newest sample.

    Orders without enough history are 0.0; DerivativeSet.has_* tell them
    apart from real zeros.
    """
    velocities = velocity_series(samples, rate_unit_seconds)
    accelerations = _differences(velocities)
    jerks = _differences(accelerations)

    return DerivativeSet(
        parameter=parameter,
        velocity=velocities[-1] if velocities else 0.0,
        acceleration=accelerations[-1] if accelerations else 0.0,
        jerk=jerks[-1] if jerks else 0.0,
        sample_count=len(samples),
        latest_value=samples[-1].value if samples else None,
        computed_at=computed_at or utc_now(),
    )

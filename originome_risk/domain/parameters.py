"""Static per-parameter thresholds.

Velocity thresholds are expressed per canonical rate unit (per minute by
default), acceleration thresholds per rate unit squared.  The classifier
and projector read these; nothing mutates them at runtime.
"""

from __future__ import annotations

from dataclasses import dataclass

from originome_risk.domain.enums import ParameterId, RiskLevel


@dataclass(frozen=True)
class RiskBands:
    """Absolute value bands.

    When ``center`` is set the bands apply to the distance from it, which
    covers comfort ranges such as temperature or humidity where both
    directions are risky.
    """

    moderate: float
    high: float
    critical: float
    center: float | None = None

    def level_for(self, value: float) -> RiskLevel:
        magnitude = abs(value - self.center) if self.center is not None else value
        if magnitude > self.critical:
            return RiskLevel.CRITICAL
        if magnitude > self.high:
            return RiskLevel.HIGH
        if magnitude > self.moderate:
            return RiskLevel.MODERATE
        return RiskLevel.LOW


@dataclass(frozen=True)
class ParameterSpec:
    """Declared unit and thresholds for one parameter."""

    parameter: ParameterId
    label: str
    unit: str
    sudden_change_velocity: float
    acceleration_moderate: float
    acceleration_high: float
    acceleration_critical: float
    jerk_threshold: float
    bands: RiskBands
    non_negative: bool = True


PARAMETER_SPECS: dict[ParameterId, ParameterSpec] = {
    ParameterId.CO2: ParameterSpec(
        parameter=ParameterId.CO2,
        label="CO₂ Concentration",
        unit="ppm",
        sudden_change_velocity=15.0,
        acceleration_moderate=5.0,
        acceleration_high=10.0,
        acceleration_critical=20.0,
        jerk_threshold=8.0,
        bands=RiskBands(moderate=800.0, high=1000.0, critical=1500.0),
    ),
    ParameterId.PM25: ParameterSpec(
        parameter=ParameterId.PM25,
        label="PM2.5 Levels",
        unit="µg/m³",
        sudden_change_velocity=8.0,
        acceleration_moderate=1.0,
        acceleration_high=2.0,
        acceleration_critical=4.0,
        jerk_threshold=3.0,
        bands=RiskBands(moderate=12.0, high=35.0, critical=55.0),
    ),
    ParameterId.TEMPERATURE: ParameterSpec(
        parameter=ParameterId.TEMPERATURE,
        label="Temperature",
        unit="°C",
        sudden_change_velocity=2.0,
        acceleration_moderate=0.5,
        acceleration_high=1.0,
        acceleration_critical=2.0,
        jerk_threshold=1.0,
        bands=RiskBands(moderate=3.0, high=4.0, critical=6.0, center=21.0),
        non_negative=False,
    ),
    ParameterId.HUMIDITY: ParameterSpec(
        parameter=ParameterId.HUMIDITY,
        label="Humidity",
        unit="%",
        sudden_change_velocity=10.0,
        acceleration_moderate=2.0,
        acceleration_high=4.0,
        acceleration_critical=8.0,
        jerk_threshold=4.0,
        bands=RiskBands(moderate=15.0, high=25.0, critical=35.0, center=45.0),
    ),
    ParameterId.KP_INDEX: ParameterSpec(
        parameter=ParameterId.KP_INDEX,
        label="Geomagnetic Kp",
        unit="Kp",
        sudden_change_velocity=2.0,
        acceleration_moderate=0.5,
        acceleration_high=1.0,
        acceleration_critical=2.0,
        jerk_threshold=1.0,
        bands=RiskBands(moderate=4.0, high=5.0, critical=7.0),
    ),
    ParameterId.PRESSURE: ParameterSpec(
        parameter=ParameterId.PRESSURE,
        label="Atmospheric Pressure",
        unit="hPa",
        sudden_change_velocity=5.0,
        acceleration_moderate=1.0,
        acceleration_high=3.0,
        acceleration_critical=5.0,
        jerk_threshold=3.0,
        bands=RiskBands(moderate=15.0, high=25.0, critical=40.0, center=1013.0),
    ),
    ParameterId.EM_FIELD: ParameterSpec(
        parameter=ParameterId.EM_FIELD,
        label="EM Field Intensity",
        unit="µT",
        sudden_change_velocity=15.0,
        acceleration_moderate=5.0,
        acceleration_high=10.0,
        acceleration_critical=20.0,
        jerk_threshold=10.0,
        bands=RiskBands(moderate=150.0, high=200.0, critical=250.0),
    ),
}

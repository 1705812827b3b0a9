"""Built-in compound-rule catalogue.

Declared as plain data and parsed through load_rules() so a deployment can
swap in its own catalogue from JSON without touching code.  Scores,
multipliers and confidences are hand-calibrated constants.
"""

from __future__ import annotations

from typing import Any

from originome_risk.core.pattern_matcher import load_rules
from originome_risk.domain.rules import CompoundRule

DEFAULT_RULES: list[dict[str, Any]] = [
    {
        "rule_id": "tri_domain_convergence",
        "title": "Tri-Domain Convergence Detected",
        "description": (
            "Geomagnetic disturbance, elevated particulates and high viral activity "
            "are converging into a compound stress environment."
        ),
        "predicates": [
            {"domain": "geomagnetic", "field": "kp_index", "operator": "ge", "threshold": 4},
            {"domain": "air_quality", "field": "pm25", "operator": "gt", "threshold": 20},
            {"domain": "biological", "field": "viral_activity", "operator": "eq", "threshold": "High"},
        ],
        "risk_score": 95,
        "risk_multiplier": 9.5,
        "confidence": 0.94,
        "severity": "critical",
        "data_lineage": ["NOAA Space Weather", "EPA AirNow", "Health Surveillance"],
    },
    {
        "rule_id": "triple_threat_convergence",
        "title": "Triple Threat Convergence Detected",
        "description": (
            "High CO₂, poor air quality and a geomagnetic storm are converging, "
            "with potential for rapid performance degradation."
        ),
        "predicates": [
            {"domain": "air_quality", "field": "co2", "operator": "gt", "threshold": 850},
            {"domain": "air_quality", "field": "pm25", "operator": "gt", "threshold": 20},
            {"domain": "geomagnetic", "field": "kp_index", "operator": "gt", "threshold": 4},
        ],
        "risk_score": 92,
        "risk_multiplier": 6.4,
        "confidence": 0.92,
        "severity": "critical",
        "data_lineage": ["Internal CO₂ Sensors", "EPA AirNow", "NOAA Space Weather"],
    },
    {
        "rule_id": "pp_847_geomagnetic_particulate",
        "title": "Compound Pattern PP-847 Detected",
        "description": (
            "Kp4+ geomagnetic activity combined with elevated particulates raises "
            "HVAC failure probability 8.2x."
        ),
        "predicates": [
            {"domain": "geomagnetic", "field": "kp_index", "operator": "ge", "threshold": 4},
            {"domain": "air_quality", "field": "pm25", "operator": "gt", "threshold": 20},
        ],
        "risk_score": 90,
        "risk_multiplier": 8.2,
        "confidence": 0.92,
        "severity": "critical",
        "data_lineage": ["NOAA Space Weather", "EPA AirNow", "Asset Maintenance Log"],
    },
    {
        "rule_id": "geomagnetic_air_quality",
        "title": "Geomagnetic Storm + Poor Air Quality Convergence",
        "description": (
            "Elevated geomagnetic activity with poor air quality historically "
            "correlates with increased absenteeism and equipment failures."
        ),
        "predicates": [
            {"domain": "geomagnetic", "field": "kp_index", "operator": "gt", "threshold": 5},
            {"domain": "air_quality", "field": "pm25", "operator": "gt", "threshold": 20},
        ],
        "risk_score": 87,
        "risk_multiplier": 3.1,
        "confidence": 0.87,
        "severity": "high",
        "data_lineage": ["NOAA Space Weather", "EPA AirNow"],
    },
    {
        "rule_id": "solar_allergen",
        "title": "Solar Maximum + Peak Allergen Season",
        "description": "High solar activity during peak allergen season heightens sensitivity to stressors.",
        "predicates": [
            {"domain": "solar", "field": "sunspot_number", "operator": "gt", "threshold": 120},
            {"domain": "biological", "field": "pollen_level", "operator": "eq", "threshold": "High"},
        ],
        "risk_score": 73,
        "risk_multiplier": 1.8,
        "confidence": 0.73,
        "severity": "moderate",
        "data_lineage": ["NOAA Solar Data", "Pollen Monitoring"],
    },
    {
        "rule_id": "bio_magnetic_anomaly",
        "title": "Bio-Magnetic Anomaly Pattern",
        "description": "Peak pollen and a geomagnetic storm are coinciding.",
        "predicates": [
            {"domain": "biological", "field": "pollen_level", "operator": "eq", "threshold": "Very High"},
            {"domain": "geomagnetic", "field": "kp_index", "operator": "gt", "threshold": 5},
        ],
        "risk_score": 68,
        "risk_multiplier": 2.2,
        "confidence": 0.68,
        "severity": "moderate",
        "data_lineage": ["Pollen Monitoring", "NOAA Space Weather"],
    },
    {
        "rule_id": "thermal_seismic",
        "title": "Thermal Stress + Geological Instability",
        "description": "Suboptimal temperatures combined with seismic activity impact concentration.",
        "predicates": [
            {"domain": "air_quality", "field": "temperature", "operator": "outside", "threshold": [18, 24]},
            {"domain": "seismic", "field": "risk_level", "operator": "gt", "threshold": 4},
        ],
        "risk_score": 58,
        "risk_multiplier": 1.5,
        "confidence": 0.58,
        "severity": "moderate",
        "data_lineage": ["Building Management System", "USGS Seismic Feed"],
    },
]


def default_rules() -> list[CompoundRule]:
    return load_rules(DEFAULT_RULES)

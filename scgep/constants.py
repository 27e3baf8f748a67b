# scgep/constants.py

"""
Constants shared by the SC-GEP solver.

This module defines tolerance values, unit conversions and the fixed
thresholds used by the candidate generator and the bottleneck analysis.
"""

# Tolerance for floating point comparisons in feasibility checks
TOL = 1e-6

# Hours per (non-leap) year, used to annualise variable costs
HOURS_PER_YEAR = 8760

# Demand must exceed this multiple of the current peak before new builds
DEMAND_TRIGGER_RATIO = 1.10

# Warm-start entries live for one hour
DEFAULT_CACHE_TTL_SECONDS = 3600.0

# Default penalty rates ($ per unit of penalty variable)
RESERVE_MARGIN_PENALTY = 100_000.0
LOAD_SHEDDING_PENALTY = 10_000.0
RPS_PENALTY = 60.0

# Bottleneck thresholds (utilization ratios)
MATERIAL_CONSTRAINED_RATIO = 0.90
SPATIAL_CONSTRAINED_RATIO = 0.95
CRITICAL_RATIO = 0.95
HIGH_RATIO = 0.90
MEDIUM_RATIO = 0.70

SEVERITY_RANK = {"low": 0, "medium": 1, "high": 2, "critical": 3}

MATERIAL_TYPES = ("critical", "standard", "rare_earth")
TECHNOLOGY_TYPES = ("renewable", "storage", "thermal", "nuclear")
RISK_LEVELS = ("low", "medium", "high")

DEFAULT_SCENARIO_KEY = "default"


def classify_severity(ratio: float) -> str:
    if ratio >= CRITICAL_RATIO:
        return "critical"
    if ratio > HIGH_RATIO:
        return "high"
    if ratio > MEDIUM_RATIO:
        return "medium"
    return "low"

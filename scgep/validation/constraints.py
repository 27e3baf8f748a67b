# scgep/validation/constraints.py

"""
Feasibility checks for SC-GEP solutions.

Two independent, pure checks combine (logical AND) into overall feasibility:

- Supply chain: material availability, component production capacity,
  technology manufacturing capacity and build lead times.
- Spatial: land required by the operational fleet against allocated land.

Each check returns a bool, or ``(bool, violations)`` when ``collect=True``.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

import numpy as np

from ..constants import TOL
from ..interfaces.config import ConstraintConfiguration
from ..interfaces.solution import Solution

CheckResult = Union[bool, Tuple[bool, List['ConstraintViolation']]]


@dataclass(frozen=True)
class ConstraintViolation:
    """
    One violated constraint instance.

    Attributes
    ----------
    kind : str
        'material', 'component', 'manufacturing', 'lead_time' or 'land'.
    year : int
        Planning year (1-based).
    required : float
        Left-hand side (what the solution uses).
    available : float
        Right-hand side (what the configuration allows).
    material, component, technology, zone : str, optional
        Entities involved.
    """
    kind: str
    year: int
    required: float
    available: float
    material: Optional[str] = None
    component: Optional[str] = None
    technology: Optional[str] = None
    zone: Optional[str] = None

    @property
    def magnitude(self) -> float:
        """Amount by which the constraint is exceeded."""
        return self.required - self.available

    def __str__(self) -> str:
        entity = self.material or self.component or self.technology
        if self.zone:
            entity = f"{entity}@{self.zone}"
        return (f"{self.kind} constraint violated for {entity} in year {self.year}: "
                f"{self.required:.3f} > {self.available:.3f}")


def _finish(violations: List[ConstraintViolation], collect: bool) -> CheckResult:
    feasible = not violations
    if collect:
        return feasible, violations
    return feasible


def land_required(solution: Solution, config: ConstraintConfiguration) -> np.ndarray:
    """(T, Z, Y) km2 needed by the operational fleet."""
    return solution.operational / config.coefficients.capacity_density[:, None, None]


def effective_land(solution: Solution, config: ConstraintConfiguration) -> np.ndarray:
    """(T, Z, Y) allocated land, falling back to the zone's land where unallocated."""
    zone_land = config.coefficients.available_land[None, :, None]
    return np.where(solution.allocated_land > 0, solution.allocated_land, zone_land)


def validate_supply_chain(solution: Solution, config: ConstraintConfiguration,
                          collect: bool = False) -> CheckResult:
    """
    Check material, component, manufacturing and lead-time constraints.

    Parameters
    ----------
    solution : Solution
        Candidate solution (arrays derived for ``config``).
    config : ConstraintConfiguration
        Configuration the solution is checked against.
    collect : bool, optional
        If True, return ``(feasible, violations)`` instead of a bool.

    Returns
    -------
    bool or tuple
        Feasibility, optionally with the list of violations.
    """
    coeffs = config.coefficients
    violations: List[ConstraintViolation] = []

    # material utilization <= primary supply + stock
    available = coeffs.primary_supply[:, None] + solution.material_stock
    for m, y in zip(*np.nonzero(solution.material_utilization > available + TOL)):
        if not collect:
            return False
        violations.append(ConstraintViolation(
            'material', int(y) + 1, float(solution.material_utilization[m, y]),
            float(available[m, y]), material=config.materials[m].id))

    # component production <= production capacity
    capacity = coeffs.production_capacity[:, None]
    for c, y in zip(*np.nonzero(solution.component_production > capacity + TOL)):
        if not collect:
            return False
        violations.append(ConstraintViolation(
            'component', int(y) + 1, float(solution.component_production[c, y]),
            float(coeffs.production_capacity[c]), component=config.components[c].id))

    # technology manufacturing capacity (0 = unlimited)
    delivered = solution.investment.sum(axis=1)
    limited = coeffs.manufacturing_capacity[:, None] > 0
    over = limited & (delivered > coeffs.manufacturing_capacity[:, None] + TOL)
    for t, y in zip(*np.nonzero(over)):
        if not collect:
            return False
        violations.append(ConstraintViolation(
            'manufacturing', int(y) + 1, float(delivered[t, y]),
            float(coeffs.manufacturing_capacity[t]), technology=config.technologies[t].id))

    # no build before the lead time has elapsed
    early = solution.build & ~coeffs.buildable[:, None, :]
    for t, z, y in zip(*np.nonzero(early)):
        if not collect:
            return False
        violations.append(ConstraintViolation(
            'lead_time', int(y) + 1, float(y + 1), float(coeffs.lead_time[t]),
            technology=config.technologies[t].id, zone=config.zones[z].id))

    return _finish(violations, collect)


def validate_spatial(solution: Solution, config: ConstraintConfiguration,
                     collect: bool = False) -> CheckResult:
    """
    Check that the operational fleet fits in the allocated land.

    For every (technology, zone, year): operational / capacity_density <=
    allocated land, where an unallocated (zero) entry means the zone's
    total available land.
    """
    required = land_required(solution, config)
    available = effective_land(solution, config)
    violations: List[ConstraintViolation] = []
    for t, z, y in zip(*np.nonzero(required > available + TOL)):
        if not collect:
            return False
        violations.append(ConstraintViolation(
            'land', int(y) + 1, float(required[t, z, y]), float(available[t, z, y]),
            technology=config.technologies[t].id, zone=config.zones[z].id))
    return _finish(violations, collect)


def is_feasible(solution: Solution, config: ConstraintConfiguration) -> bool:
    return validate_supply_chain(solution, config) and validate_spatial(solution, config)


def collect_violations(solution: Solution, config: ConstraintConfiguration) -> List[ConstraintViolation]:
    """All supply-chain and spatial violations of a solution."""
    _, supply = validate_supply_chain(solution, config, collect=True)
    _, spatial = validate_spatial(solution, config, collect=True)
    return supply + spatial

# scgep/interfaces/solution.py

"""
Decision-variable container for the SC-GEP solver.

A ``Solution`` holds every decision variable of one solve attempt as a dense
numpy array indexed by entity position (technology, zone, material,
component) and year position. Dependent variables (build flags, operational
fleet, retirements, component production, material utilization and stock)
are recomputed from the investment array by ``derive``.

Array layout:

    investment, build, operational, retirement, allocated_land : (T, Z, Y)
    material_utilization, material_stock                       : (M, Y)
    component_production                                       : (C, Y)
    load_shedding, rps_violation                               : (Z, Y)
    reserve_margin_violation                                   : (Y,)

Year ``y`` (1-based) lives at position ``y - 1``.
"""

import copy
import hashlib
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, TYPE_CHECKING

import numpy as np
import pandas as pd
from uuid_extensions import uuid7str

if TYPE_CHECKING:
    from .config import ConstraintConfiguration


# Arrays recomputed from investment (and therefore never shared between neighbors)
DERIVED_ARRAYS = (
    'build', 'operational', 'retirement',
    'component_production', 'material_utilization', 'material_stock',
)
PENALTY_ARRAYS = ('load_shedding', 'reserve_margin_violation', 'rps_violation')


def _lookup(ids: Tuple[str, ...], entity_id: str, kind: str) -> int:
    try:
        return ids.index(entity_id)
    except ValueError:
        raise KeyError(f"Unknown {kind} id: {entity_id!r}") from None


@dataclass(eq=False)
class Solution:
    """
    Decision variables and result envelope of one solve attempt.

    Attributes
    ----------
    technology_ids, zone_ids, material_ids, component_ids : tuple of str
        Entity order used by the arrays.
    investment : np.ndarray
        New capacity committed per (technology, zone, year), MW.
    build : np.ndarray
        Build flag per (technology, zone, year).
    operational : np.ndarray
        Operational capacity per (technology, zone, year), MW.
    retirement : np.ndarray
        Capacity retired per (technology, zone, year), MW.
    allocated_land : np.ndarray
        Land allocated per (technology, zone, year), km2. Shared read-only
        between a solution and the neighbors derived from it.
    material_utilization, material_stock : np.ndarray
        Tonnes per (material, year).
    component_production : np.ndarray
        Units per (component, year).
    load_shedding, reserve_margin_violation, rps_violation : np.ndarray
        Penalty variables.
    objective_value : float
        Total cost of the solution.
    feasibility : bool
        True if every supply-chain and spatial constraint holds.
    solve_time : float
        Wall time of the solve (seconds).
    iterations : int
        Iterations spent over all search phases.
    convergence : str
        'optimal', 'feasible', 'infeasible' or 'unbounded'.
    costs : dict
        Breakdown into 'investment', 'operational', 'penalties'.
    metrics : dict
        Summary metrics (total capacity, renewable share, ...).
    diagnostics : dict
        Search history, violations, errors.
    scenario_id : str, optional
        Scenario the solution was produced for.
    run_id : str
        Time-ordered unique identifier of the run.
    """
    technology_ids: Tuple[str, ...]
    zone_ids: Tuple[str, ...]
    material_ids: Tuple[str, ...]
    component_ids: Tuple[str, ...]
    investment: np.ndarray
    build: np.ndarray
    operational: np.ndarray
    retirement: np.ndarray
    allocated_land: np.ndarray
    material_utilization: np.ndarray
    material_stock: np.ndarray
    component_production: np.ndarray
    load_shedding: np.ndarray
    reserve_margin_violation: np.ndarray
    rps_violation: np.ndarray
    objective_value: float = 0.0
    feasibility: bool = False
    solve_time: float = 0.0
    iterations: int = 0
    convergence: str = "infeasible"
    costs: Dict[str, float] = field(default_factory=dict)
    metrics: Dict[str, Any] = field(default_factory=dict)
    diagnostics: Dict[str, Any] = field(default_factory=dict)
    scenario_id: Optional[str] = None
    run_id: str = field(default_factory=uuid7str)

    # =========================================================================
    # Construction
    # =========================================================================

    @classmethod
    def empty(cls, config: 'ConstraintConfiguration') -> 'Solution':
        """
        Zero-investment solution for a configuration.

        Stocks start at the configured stock levels and land allocation at
        each zone's available land; existing capacity is operational.
        """
        n_t, n_z, n_y = config.shape
        n_m, n_c = len(config.materials), len(config.components)
        coeffs = config.coefficients
        solution = cls(
            technology_ids=tuple(config.technology_ids),
            zone_ids=tuple(config.zone_ids),
            material_ids=tuple(config.material_ids),
            component_ids=tuple(config.component_ids),
            investment=np.zeros((n_t, n_z, n_y)),
            build=np.zeros((n_t, n_z, n_y), dtype=bool),
            operational=np.zeros((n_t, n_z, n_y)),
            retirement=np.zeros((n_t, n_z, n_y)),
            allocated_land=np.broadcast_to(
                coeffs.available_land[None, :, None], (n_t, n_z, n_y)).copy(),
            material_utilization=np.zeros((n_m, n_y)),
            material_stock=np.zeros((n_m, n_y)),
            component_production=np.zeros((n_c, n_y)),
            load_shedding=np.zeros((n_z, n_y)),
            reserve_margin_violation=np.zeros(n_y),
            rps_violation=np.zeros((n_z, n_y)),
        )
        return solution.derive(config)

    def derive(self, config: 'ConstraintConfiguration') -> 'Solution':
        """
        Recompute dependent variables from ``investment`` in place.

        Returns
        -------
        Solution
            ``self``, for chaining.
        """
        coeffs = config.coefficients
        inv = self.investment
        self.build = inv > 0
        # vintage bookkeeping per technology: (Z, B) x (B, Y) -> (Z, Y)
        new_fleet = np.einsum('tzb,tby->tzy', inv, coeffs.active.astype(float))
        self.operational = coeffs.existing[:, :, None] + new_fleet
        self.retirement = np.einsum('tzb,tby->tzy', inv, coeffs.retires.astype(float))
        self.component_production = np.einsum('tzy,tc->cy', inv, coeffs.tech_component)
        self.material_utilization = np.einsum(
            'cy,cm->my', self.component_production, coeffs.component_material)
        retired_material = np.einsum('tzy,tm->my', self.retirement, coeffs.tech_material)
        # material released in years strictly before y
        released_before = np.cumsum(retired_material, axis=1) - retired_material
        self.material_stock = (coeffs.stock_level[:, None]
                               + coeffs.recovery_rate[:, None] * released_before)
        return self

    def with_investment(self, config: 'ConstraintConfiguration',
                        investment: np.ndarray) -> 'Solution':
        """
        New solution with a different investment array.

        Only the investment-dependent arrays are rebuilt; ``allocated_land``
        is shared and penalty arrays are copied. The result envelope is reset.
        """
        neighbor = Solution(
            technology_ids=self.technology_ids,
            zone_ids=self.zone_ids,
            material_ids=self.material_ids,
            component_ids=self.component_ids,
            investment=investment,
            build=self.build,
            operational=self.operational,
            retirement=self.retirement,
            allocated_land=self.allocated_land,
            material_utilization=self.material_utilization,
            material_stock=self.material_stock,
            component_production=self.component_production,
            load_shedding=self.load_shedding.copy(),
            reserve_margin_violation=self.reserve_margin_violation.copy(),
            rps_violation=self.rps_violation.copy(),
            scenario_id=self.scenario_id,
        )
        return neighbor.derive(config)

    def copy(self) -> 'Solution':
        """Independent deep copy (arrays and envelope)."""
        return copy.deepcopy(self)

    def is_compatible(self, config: 'ConstraintConfiguration') -> bool:
        """True if the array layout matches the configuration's entities and horizon."""
        return (self.technology_ids == tuple(config.technology_ids)
                and self.zone_ids == tuple(config.zone_ids)
                and self.material_ids == tuple(config.material_ids)
                and self.component_ids == tuple(config.component_ids)
                and self.investment.shape == config.shape)

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def planning_horizon(self) -> int:
        return self.investment.shape[2]

    @property
    def years(self):
        return list(range(1, self.planning_horizon + 1))

    def _year_pos(self, year: int) -> int:
        if not 1 <= year <= self.planning_horizon:
            raise KeyError(f"Year {year} outside planning horizon 1..{self.planning_horizon}")
        return year - 1

    def _tzy(self, technology: str, zone: str, year: int) -> Tuple[int, int, int]:
        return (_lookup(self.technology_ids, technology, 'technology'),
                _lookup(self.zone_ids, zone, 'zone'),
                self._year_pos(year))

    def get_investment(self, technology: str, zone: str, year: int) -> float:
        return float(self.investment[self._tzy(technology, zone, year)])

    def get_operational(self, technology: str, zone: str, year: int) -> float:
        return float(self.operational[self._tzy(technology, zone, year)])

    def is_built(self, technology: str, zone: str, year: int) -> bool:
        return bool(self.build[self._tzy(technology, zone, year)])

    def get_material_utilization(self, material: str, year: int) -> float:
        m = _lookup(self.material_ids, material, 'material')
        return float(self.material_utilization[m, self._year_pos(year)])

    def get_material_stock(self, material: str, year: int) -> float:
        m = _lookup(self.material_ids, material, 'material')
        return float(self.material_stock[m, self._year_pos(year)])

    def get_component_production(self, component: str, year: int) -> float:
        c = _lookup(self.component_ids, component, 'component')
        return float(self.component_production[c, self._year_pos(year)])

    @property
    def variables(self) -> Dict[str, np.ndarray]:
        """All decision-variable arrays keyed by name."""
        return {
            'investment': self.investment,
            'build': self.build,
            'operational': self.operational,
            'retirement': self.retirement,
            'allocated_land': self.allocated_land,
            'material_utilization': self.material_utilization,
            'material_stock': self.material_stock,
            'component_production': self.component_production,
            'load_shedding': self.load_shedding,
            'reserve_margin_violation': self.reserve_margin_violation,
            'rps_violation': self.rps_violation,
        }

    @property
    def total_investment(self) -> float:
        return float(self.investment.sum())

    def first_build_year(self, technology: str, zone: str) -> Optional[int]:
        """First year (1-based) with a build flag, or None if never built."""
        t = _lookup(self.technology_ids, technology, 'technology')
        z = _lookup(self.zone_ids, zone, 'zone')
        built = np.flatnonzero(self.build[t, z])
        return int(built[0]) + 1 if built.size else None

    def solution_hash(self, decimals: int = 6) -> str:
        """Digest of the investment decisions, used by the tabu list."""
        rounded = np.round(self.investment, decimals) + 0.0  # folds -0.0 into 0.0
        return hashlib.sha1(rounded.tobytes()).hexdigest()

    # =========================================================================
    # Tabular views
    # =========================================================================

    def to_frame(self) -> pd.DataFrame:
        """
        Capacity decisions in long format.

        Returns
        -------
        pd.DataFrame
            Columns: TECHNOLOGY, ZONE, YEAR, INVESTMENT, BUILD, OPERATIONAL,
            RETIREMENT, ALLOCATED_LAND.
        """
        index = pd.MultiIndex.from_product(
            [self.technology_ids, self.zone_ids, self.years],
            names=['TECHNOLOGY', 'ZONE', 'YEAR'],
        )
        df = pd.DataFrame({
            'INVESTMENT': self.investment.ravel(),
            'BUILD': self.build.ravel(),
            'OPERATIONAL': self.operational.ravel(),
            'RETIREMENT': self.retirement.ravel(),
            'ALLOCATED_LAND': self.allocated_land.ravel(),
        }, index=index)
        return df.reset_index()

    def material_frame(self) -> pd.DataFrame:
        """Columns: MATERIAL, YEAR, UTILIZATION, STOCK."""
        index = pd.MultiIndex.from_product(
            [self.material_ids, self.years], names=['MATERIAL', 'YEAR'])
        df = pd.DataFrame({
            'UTILIZATION': self.material_utilization.ravel(),
            'STOCK': self.material_stock.ravel(),
        }, index=index)
        return df.reset_index()

    def summary(self) -> Dict[str, Any]:
        """Envelope fields as a plain dict."""
        return {
            'run_id': self.run_id,
            'scenario_id': self.scenario_id,
            'objective_value': self.objective_value,
            'feasibility': self.feasibility,
            'convergence': self.convergence,
            'iterations': self.iterations,
            'solve_time': self.solve_time,
            'total_investment_mw': self.total_investment,
        }

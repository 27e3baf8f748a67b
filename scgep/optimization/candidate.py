# scgep/optimization/candidate.py

"""
Construction of an initial feasible SC-GEP solution.

The generator proposes capacity wherever projected demand outgrows the
current peak, then repairs the proposal against the supply-chain and spatial
constraints:

1. demand(z, y) = peak_load * (1 + growth / 100) ** y
2. if demand > 1.10 * peak_load, propose
   min(0.10 * (demand - peak_load), 100 MW), split evenly over the
   technologies whose lead time has elapsed
3. validate; on violation scale the offending investments by
   available / required * 0.95 and zero early builds; repeat

Example
-------
>>> result = CandidateGenerator(config).generate()
>>> result.feasible, result.convergence
(True, 'feasible')
"""

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from ..interfaces.config import ConstraintConfiguration
from ..interfaces.solution import Solution
from ..settings import GeneratorSettings
from ..validation.constraints import ConstraintViolation, collect_violations
from .objective import annotate, classify_convergence, projected_demand, score

logger = logging.getLogger(__name__)


@dataclass
class CandidateResult:
    """
    Output of ``CandidateGenerator.generate``.

    Attributes
    ----------
    solution : Solution
        Repaired solution (partial if repair did not converge).
    feasible : bool
        True if every constraint holds.
    iterations : int
        Validation rounds used.
    convergence : str
        'optimal', 'feasible', 'infeasible' or 'unbounded'.
    violations : list of ConstraintViolation
        Violations remaining after the last round (empty when feasible).
    """
    solution: Solution
    feasible: bool
    iterations: int
    convergence: str
    violations: List[ConstraintViolation] = field(default_factory=list)


class CandidateGenerator:
    """
    Heuristic builder of a feasible starting solution.

    Parameters
    ----------
    config : ConstraintConfiguration
        Configuration to plan for. Not modified.
    settings : GeneratorSettings, optional
        Sizing and repair parameters (defaults from ``GeneratorSettings``).
    derive_penalties : bool, optional
        If True, penalty variables are assessed from adequacy shortfalls
        before the objective is computed (default: False).
    """

    def __init__(self, config: ConstraintConfiguration,
                 settings: Optional[GeneratorSettings] = None,
                 derive_penalties: bool = False):
        self.config = config
        self.settings = settings or GeneratorSettings()
        self.derive_penalties = derive_penalties

    def propose(self) -> np.ndarray:
        """
        Demand-driven investment proposal before any repair.

        Returns
        -------
        np.ndarray
            (T, Z, Y) MW. The proposal is monotone in the demand increment.
        """
        s = self.settings
        coeffs = self.config.coefficients
        investment = np.zeros(self.config.shape)
        demand = projected_demand(self.config)
        peak = np.array([z.peak_load for z in self.config.zones], dtype=float)

        for z in range(len(self.config.zones)):
            for y in range(self.config.planning_horizon):
                if demand[z, y] <= s.demand_trigger * peak[z]:
                    continue
                eligible = coeffs.buildable[:, y]
                if not eligible.any():
                    continue
                step = min(s.investment_fraction * (demand[z, y] - peak[z]), s.max_step_mw)
                investment[eligible, z, y] = step / eligible.sum()
        return investment

    def _repair_factors(self, violations: List[ConstraintViolation]) -> np.ndarray:
        """(T, Z, Y) multiplicative factors that shrink every offending investment."""
        config = self.config
        coeffs = config.coefficients
        safety = self.settings.safety_factor
        factors = np.ones(config.shape)

        def shrink(index, ratio):
            factors[index] = np.minimum(factors[index], ratio)

        for v in violations:
            y = v.year - 1
            ratio = max(0.0, v.available / v.required) * safety if v.required > 0 else 0.0
            if v.kind == 'lead_time':
                shrink((config.index('technology', v.technology), config.index('zone', v.zone), y), 0.0)
            elif v.kind == 'material':
                users = coeffs.tech_material[:, config.index('material', v.material)] > 0
                shrink((users, slice(None), y), ratio)
            elif v.kind == 'component':
                users = coeffs.tech_component[:, config.index('component', v.component)] > 0
                shrink((users, slice(None), y), ratio)
            elif v.kind == 'manufacturing':
                shrink((config.index('technology', v.technology), slice(None), y), ratio)
            elif v.kind == 'land':
                # every vintage still operating in the violating year
                t = config.index('technology', v.technology)
                vintages = coeffs.active[t, :, y]
                shrink((t, config.index('zone', v.zone), vintages), ratio)
        return factors

    def generate(self) -> CandidateResult:
        """
        Build and repair a candidate solution.

        Returns
        -------
        CandidateResult
            Never raises on infeasibility; exhaustion of the iteration cap is
            reported as convergence 'infeasible'.
        """
        start = time.perf_counter()
        config = self.config
        base = Solution.empty(config)
        solution = base.with_investment(config, self.propose())
        logger.debug(f"Initial proposal: {solution.total_investment:.2f} MW")

        violations: List[ConstraintViolation] = []
        iterations = 0
        for iterations in range(1, self.settings.max_iterations + 1):
            violations = collect_violations(solution, config)
            if not violations:
                break
            logger.debug(f"Repair round {iterations}: {len(violations)} violations")
            if iterations == self.settings.max_iterations:
                break
            investment = solution.investment * self._repair_factors(violations)
            solution = solution.with_investment(config, investment)

        feasible = not violations
        solution, objective = score(solution, config, self.derive_penalties)
        annotate(solution, config)
        convergence = classify_convergence(objective, feasible, config)

        solution.feasibility = feasible
        solution.convergence = convergence
        solution.iterations = iterations
        solution.solve_time = time.perf_counter() - start
        solution.diagnostics['generator'] = {
            'iterations': iterations,
            'proposed_mw': float(self.propose().sum()),
            'violations': [str(v) for v in violations],
        }

        if feasible:
            logger.info(f"Candidate generated in {iterations} rounds: "
                        f"{solution.total_investment:.2f} MW, objective={objective:.2f}")
        else:
            logger.warning(f"Candidate repair exhausted {iterations} rounds with "
                           f"{len(violations)} violations remaining")
        return CandidateResult(solution, feasible, iterations, convergence, violations)

# scgep/optimization/objective.py

"""
Total system cost of an SC-GEP solution.

    cost = sum(investment * capital_cost)
         + sum(operational * variable_cost * 8760)
         + sum(penalty variables * penalty rates)

All functions here are pure: they read the solution and configuration and
return new values without mutating either.
"""

import math
from typing import Any, Dict, Tuple

import numpy as np

from ..constants import HOURS_PER_YEAR
from ..interfaces.config import ConstraintConfiguration
from ..interfaces.solution import Solution


def cost_breakdown(solution: Solution, config: ConstraintConfiguration) -> Dict[str, float]:
    """
    Split the objective into its three parts.

    Returns
    -------
    dict
        'investment', 'operational' and 'penalties' ($); they sum to
        ``evaluate_objective(solution, config)``.
    """
    coeffs = config.coefficients
    rates = config.cost_parameters
    investment = float(np.einsum('tzy,t->', solution.investment, coeffs.capital_cost))
    operational = float(np.einsum('tzy,t->', solution.operational, coeffs.variable_cost)) * HOURS_PER_YEAR
    penalties = (float(solution.load_shedding.sum()) * rates.load_shedding_penalty
                 + float(solution.reserve_margin_violation.sum()) * rates.reserve_margin_penalty
                 + float(solution.rps_violation.sum()) * rates.rps_penalty)
    return {'investment': investment, 'operational': operational, 'penalties': penalties}


def evaluate_objective(solution: Solution, config: ConstraintConfiguration) -> float:
    """
    Total cost of a solution.

    Parameters
    ----------
    solution : Solution
        Solution whose arrays are derived for ``config``.
    config : ConstraintConfiguration
        Supplies costs and penalty rates.

    Returns
    -------
    float
        Non-negative total cost ($). Zero entries contribute nothing.
    """
    parts = cost_breakdown(solution, config)
    return parts['investment'] + parts['operational'] + parts['penalties']


def objective_lower_bound(config: ConstraintConfiguration) -> float:
    """Cost of running the existing fleet with no new investment and no penalties."""
    coeffs = config.coefficients
    existing = float(np.einsum('tz,t->', coeffs.existing, coeffs.variable_cost))
    return existing * HOURS_PER_YEAR * config.planning_horizon


def classify_convergence(objective: float, feasible: bool, config: ConstraintConfiguration) -> str:
    """
    Map a finished search onto 'optimal', 'feasible', 'infeasible' or 'unbounded'.

    'optimal' is only claimed when the objective meets the lower bound.
    """
    if not math.isfinite(objective):
        return 'unbounded'
    if not feasible:
        return 'infeasible'
    bound = objective_lower_bound(config)
    if objective <= bound + 1e-9 * max(1.0, abs(bound)):
        return 'optimal'
    return 'feasible'


def projected_demand(config: ConstraintConfiguration) -> np.ndarray:
    """(Z, Y) peak demand per zone and planning year."""
    years = np.arange(1, config.planning_horizon + 1)
    peak = np.array([z.peak_load for z in config.zones], dtype=float)
    growth = np.array([z.demand_growth for z in config.zones], dtype=float) / 100.0
    return peak[:, None] * (1.0 + growth[:, None]) ** years[None, :]


def assess_penalties(solution: Solution, config: ConstraintConfiguration) -> Solution:
    """
    Fill the penalty variables from adequacy shortfalls.

    - load shedding per (zone, year): demand above ELCC-weighted capacity
    - reserve margin per year: system demand * (1 + margin) above firm capacity
    - RPS per (zone, year): renewable target share of demand above renewable capacity

    Returns a new solution; the input is left untouched.
    """
    coeffs = config.coefficients
    demand = projected_demand(config)
    firm = np.einsum('tzy,t->zy', solution.operational, coeffs.elcc)
    renewable = np.einsum('tzy,t->zy', solution.operational, coeffs.renewable.astype(float))
    rps_share = np.array([z.rps_target for z in config.zones], dtype=float)[:, None] / 100.0

    assessed = solution.with_investment(config, solution.investment)
    assessed.load_shedding = np.maximum(0.0, demand - firm)
    required = demand.sum(axis=0) * (1.0 + config.reserve_margin / 100.0)
    assessed.reserve_margin_violation = np.maximum(0.0, required - firm.sum(axis=0))
    assessed.rps_violation = np.maximum(0.0, rps_share * demand - renewable)
    return assessed


def compute_metrics(solution: Solution, config: ConstraintConfiguration) -> Dict[str, Any]:
    """
    Summary metrics of a solution.

    Returns
    -------
    dict
        total_capacity (new MW), renewable_share (percent of new MW),
        average_lead_time (years), material_utilization (material -> total
        tonnes over the horizon), material_tonnage (tonnes by intensity).
    """
    coeffs = config.coefficients
    per_tech = solution.investment.sum(axis=(1, 2))
    total = float(per_tech.sum())
    renewable = float(per_tech[coeffs.renewable].sum())
    intensity = np.array([t.material_intensity for t in config.technologies], dtype=float)
    return {
        'total_capacity': total,
        'renewable_share': renewable / total * 100.0 if total > 0 else 0.0,
        'average_lead_time': float(coeffs.lead_time.mean()) if coeffs.lead_time.size else 0.0,
        'material_utilization': {
            m.id: float(solution.material_utilization[i].sum())
            for i, m in enumerate(config.materials)
        },
        'material_tonnage': float(per_tech @ intensity),
    }


def score(solution: Solution, config: ConstraintConfiguration,
          derive_penalties: bool = False) -> Tuple[Solution, float]:
    """
    Objective of a solution, re-assessing the penalty variables first if asked.

    Returns
    -------
    (Solution, float)
        The solution that was scored (a new one when penalties were derived)
        and its objective.
    """
    if derive_penalties:
        solution = assess_penalties(solution, config)
    return solution, evaluate_objective(solution, config)


def annotate(solution: Solution, config: ConstraintConfiguration) -> Solution:
    """Fill objective, cost breakdown and metrics of a solution in place."""
    solution.costs = cost_breakdown(solution, config)
    solution.objective_value = sum(solution.costs.values())
    solution.metrics = compute_metrics(solution, config)
    return solution

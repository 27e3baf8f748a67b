# scgep/analysis/sensitivity.py

"""
Objective sensitivity to material supply.

For each material the primary supply is raised by a fraction p (10% by
default) on a copy of the configuration and

    elasticity = (objective_perturbed - objective_baseline) / (objective_baseline * p)

Two methods are available:

resolve       re-run the solve pipeline on the baseline and on each perturbed copy (same seed)
approximate   estimate from the solution alone: -clip((peak ratio - 0.9) / 0.1, 0, 1),
              so only materials close to their supply limit register
"""

import dataclasses
import logging
from typing import Callable, Dict, Iterable, Optional

import numpy as np

from ..constants import MATERIAL_CONSTRAINED_RATIO
from ..interfaces.config import ConstraintConfiguration
from ..interfaces.results import SensitivityResult
from ..interfaces.solution import Solution
from ..validation.schemas import InvalidConfigurationError

logger = logging.getLogger(__name__)

SolveFn = Callable[[ConstraintConfiguration], Solution]


def perturb_supply(config: ConstraintConfiguration, material_id: str,
                   perturbation: float) -> ConstraintConfiguration:
    """Copy of ``config`` with one material's primary supply scaled by 1 + perturbation."""
    materials = [dataclasses.replace(m, primary_supply=m.primary_supply * (1.0 + perturbation))
                 if m.id == material_id else m
                 for m in config.materials]
    return config.with_updates(materials=materials)


class SensitivityAnalyzer:
    """
    Supply elasticities of the objective.

    Parameters
    ----------
    config : ConstraintConfiguration
        Configuration the baseline solution was produced for.
    solve : callable, optional
        ``solve(config) -> Solution``; required for the 'resolve' method.
    perturbation : float, optional
        Fractional supply increase (default: 0.10).
    method : {'resolve', 'approximate'}, optional
    """

    def __init__(self, config: ConstraintConfiguration, solve: Optional[SolveFn] = None,
                 perturbation: float = 0.10, method: str = "resolve"):
        if perturbation <= 0:
            raise InvalidConfigurationError(f"perturbation must be > 0, got {perturbation}")
        if method not in ("resolve", "approximate"):
            raise InvalidConfigurationError(f"Unknown sensitivity method '{method}'")
        if method == "resolve" and solve is None:
            raise InvalidConfigurationError("The 'resolve' method needs a solve function")
        self.config = config
        self.solve = solve
        self.perturbation = perturbation
        self.method = method

    def _materials(self, materials: Optional[Iterable[str]]):
        if materials is None:
            return list(self.config.material_ids)
        materials = list(materials)
        unknown = [m for m in materials if m not in self.config.material_ids]
        if unknown:
            raise InvalidConfigurationError(f"Unknown material ids for sensitivity: {unknown}")
        return materials

    def _peak_ratio(self, solution: Solution, material_id: str) -> float:
        m = self.config.index('material', material_id)
        available = self.config.coefficients.primary_supply[m] + solution.material_stock[m]
        used = solution.material_utilization[m]
        with np.errstate(divide='ignore', invalid='ignore'):
            ratio = np.where(available > 0, used / np.where(available > 0, available, 1.0),
                             np.where(used > 0, np.inf, 0.0))
        return float(ratio.max())

    def analyze(self, solution: Solution, materials: Optional[Iterable[str]] = None) -> SensitivityResult:
        """
        Elasticity of the objective to each material's primary supply.

        Parameters
        ----------
        solution : Solution
            Solution under analysis. The 'approximate' method reads its ratios
            and ``objective_value``; the 'resolve' method re-solves the unperturbed
            configuration so that both objectives come from the same pipeline.
        materials : iterable of str, optional
            Materials to perturb (default: all).

        Returns
        -------
        SensitivityResult
            Elasticities ordered by absolute value, largest first.

        Raises
        ------
        InvalidConfigurationError
            If a material id is unknown.
        """
        materials = self._materials(materials)
        if self.method == "resolve":
            baseline = float(self.solve(self.config).objective_value)
        else:
            baseline = float(solution.objective_value)
        p = self.perturbation
        elasticities: Dict[str, float] = {}
        perturbed: Dict[str, float] = {}

        for material_id in materials:
            if self.method == "resolve":
                result = self.solve(perturb_supply(self.config, material_id, p))
                objective = float(result.objective_value)
                elasticity = (objective - baseline) / (baseline * p) if baseline != 0 else 0.0
            else:
                weight = (self._peak_ratio(solution, material_id) - MATERIAL_CONSTRAINED_RATIO) / 0.10
                elasticity = -float(np.clip(weight, 0.0, 1.0)) if baseline != 0 else 0.0
                objective = baseline * (1.0 + p * elasticity)
            elasticities[material_id] = elasticity
            perturbed[material_id] = objective
            logger.debug(f"Sensitivity of {material_id}: {elasticity:.4f}")

        ordered = dict(sorted(elasticities.items(), key=lambda kv: abs(kv[1]), reverse=True))
        logger.info(f"Sensitivity ({self.method}) computed for {len(ordered)} materials")
        return SensitivityResult(
            elasticities=ordered,
            baseline_objective=baseline,
            perturbed_objectives=perturbed,
            perturbation=p,
            method=self.method,
        )

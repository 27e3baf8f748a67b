# scgep/run.py

"""
Unified solve interface for SC-GEP.

This module wires the candidate generator, the metaheuristic search, the
warm-start cache and the scenario orchestrator into the exposed operations.

Example
-------
>>> from scgep import ConstraintConfiguration, SCGEPSolver
>>> config = ConstraintConfiguration.from_yaml('system.yaml')
>>> solver = SCGEPSolver()
>>> solution = solver.solve(config)
>>> results = solver.solve_multi_scenario(config, ['baseline', 'high_demand'])
>>> print(compare_solutions(results))
"""

import logging
import time
from typing import Dict, Iterable, Mapping, Optional

import pandas as pd

from .analysis.bottlenecks import BottleneckAnalyzer
from .analysis.sensitivity import SensitivityAnalyzer
from .constants import DEFAULT_SCENARIO_KEY
from .interfaces.config import ConstraintConfiguration
from .interfaces.results import BottleneckReport, SensitivityBottleneckResult, SensitivityResult
from .interfaces.solution import Solution
from .optimization.candidate import CandidateGenerator
from .optimization.metaheuristics import MetaheuristicOptimizer
from .optimization.objective import annotate, classify_convergence, score
from .scenario.cache import WarmStartCache
from .scenario.orchestrator import MultiScenarioOrchestrator
from .scenario.variants import ScenarioRegistry, default_registry
from .settings import SolverSettings
from .validation.constraints import collect_violations

logger = logging.getLogger(__name__)


class SCGEPSolver:
    """
    Supply-chain-constrained generation expansion planner.

    Parameters
    ----------
    settings : SolverSettings, optional
        Solver tuning (default: packaged defaults).
    cache : WarmStartCache, optional
        Warm-start cache shared by every solve of this solver (default: a new
        cache with the configured TTL).
    registry : ScenarioRegistry, optional
        Scenario variants (default: the built-in variants).
    cancel_event : threading.Event, optional
        Stops running searches at their next iteration once set.
    """

    def __init__(self, settings: Optional[SolverSettings] = None,
                 cache: Optional[WarmStartCache] = None,
                 registry: Optional[ScenarioRegistry] = None,
                 cancel_event=None):
        self.settings = settings if settings is not None else SolverSettings.load()
        self.cache = cache if cache is not None else WarmStartCache(ttl=self.settings.cache.ttl_seconds)
        self.registry = registry if registry is not None else default_registry()
        self.cancel_event = cancel_event

    # =========================================================================
    # Pipeline
    # =========================================================================

    def _generate(self, config: ConstraintConfiguration) -> Solution:
        generator = CandidateGenerator(config, self.settings.generator,
                                       derive_penalties=self.settings.penalties.derive_from_adequacy)
        return generator.generate().solution

    def _refine(self, config: ConstraintConfiguration, start: Solution) -> Solution:
        """Run the configured search from a feasible start and fill the result envelope."""
        optimizer = MetaheuristicOptimizer(
            config,
            tabu=self.settings.tabu,
            annealing=self.settings.annealing,
            seed=self.settings.seed,
            derive_penalties=self.settings.penalties.derive_from_adequacy,
            cancel_event=self.cancel_event,
        )
        result = optimizer.optimize(start, self.settings.strategy)
        best = annotate(result.solution, config)
        best.feasibility = True
        best.convergence = classify_convergence(best.objective_value, True, config)
        best.iterations = start.iterations + result.iterations
        best.diagnostics = dict(start.diagnostics)
        best.diagnostics['search'] = {
            'strategy': self.settings.strategy,
            'state': result.state.value,
            'iterations': result.iterations,
            'initial_objective': result.initial_objective,
            'trace': list(result.trace),
            'rejected': result.rejected,
            'tabu_list_size': len(result.tabu_list),
            'cancelled': result.cancelled,
        }
        return best

    def _pipeline(self, config: ConstraintConfiguration, scenario_id: Optional[str],
                  use_cache: bool = True) -> Solution:
        """warm-start lookup -> generator on miss -> search -> cache put."""
        start_time = time.perf_counter()
        start = None
        warm = False
        if use_cache and scenario_id is not None:
            entry = self.cache.get(scenario_id)
            if entry is not None and entry.solution.is_compatible(config):
                cached = entry.solution
                candidate = cached.with_investment(config, cached.investment.copy())
                if not collect_violations(candidate, config):
                    candidate, _ = score(candidate, config, self.settings.penalties.derive_from_adequacy)
                    start = annotate(candidate, config)
                    start.diagnostics = {'generator': {'iterations': 0}}
                    warm = True
                    logger.info(f"Warm start for '{scenario_id}' from cached objective {entry.objective:.2f}")

        if start is None:
            start = self._generate(config)

        if start.feasibility or warm:
            solution = self._refine(config, start)
            if use_cache and scenario_id is not None:
                self.cache.put(scenario_id, solution)
        else:
            solution = start
            logger.warning(f"No feasible candidate for '{scenario_id or DEFAULT_SCENARIO_KEY}'; "
                           f"returning partial solution")

        solution.scenario_id = scenario_id
        solution.diagnostics['warm_start'] = warm
        solution.solve_time = time.perf_counter() - start_time
        return solution

    # =========================================================================
    # Exposed operations
    # =========================================================================

    def solve(self, config: ConstraintConfiguration) -> Solution:
        """
        Solve one configuration from scratch.

        Returns
        -------
        Solution
            Feasible and refined, or the generator's partial solution with
            ``feasibility=False`` and ``convergence='infeasible'``.
        """
        return self._pipeline(config.copy(), None, use_cache=False)

    def solve_with_warm_start(self, config: ConstraintConfiguration,
                              scenario_id: Optional[str] = None) -> Solution:
        """
        Solve, starting from a cached solution of the same scenario if one is fresh.

        Parameters
        ----------
        config : ConstraintConfiguration
            Base configuration.
        scenario_id : str, optional
            Registered scenario whose variant is applied to ``config``. None
            solves ``config`` as given under the key 'default'.

        Raises
        ------
        InvalidScenarioReference
            If ``scenario_id`` is not registered.
        """
        if scenario_id is None:
            return self._pipeline(config.copy(), DEFAULT_SCENARIO_KEY)
        variant = self.registry.get(scenario_id)
        return self._pipeline(variant.apply(config.copy()), scenario_id)

    def solve_multi_scenario(self, config: ConstraintConfiguration,
                             scenario_ids: Iterable[str]) -> Dict[str, Solution]:
        """
        Solve several scenarios concurrently.

        Raises
        ------
        InvalidScenarioReference
            If any id is unknown; nothing is solved in that case.
        """
        orchestrator = MultiScenarioOrchestrator(
            self._pipeline, self.registry, max_workers=self.settings.orchestrator.max_workers)
        return orchestrator.run(config, scenario_ids)

    def analyze_bottlenecks(self, solution: Solution, config: ConstraintConfiguration) -> BottleneckReport:
        analyzer = BottleneckAnalyzer(config, demand_trigger=self.settings.generator.demand_trigger)
        return analyzer.analyze(solution)

    def analyze_sensitivity(self, solution: Solution, config: ConstraintConfiguration,
                            materials: Optional[Iterable[str]] = None) -> SensitivityResult:
        analysis = self.settings.analysis
        analyzer = SensitivityAnalyzer(config, solve=self.solve,
                                       perturbation=analysis.perturbation,
                                       method=analysis.sensitivity_method)
        return analyzer.analyze(solution, materials if materials is not None else analysis.materials)

    def analyze_bottlenecks_with_sensitivity(self, solution: Solution,
                                             config: ConstraintConfiguration) -> SensitivityBottleneckResult:
        """
        Bottleneck report plus supply elasticities.

        The critical path lists binding constraints and delays, followed by
        the materials whose supply moves the objective, most sensitive first.
        """
        report = self.analyze_bottlenecks(solution, config)
        sensitivity = self.analyze_sensitivity(solution, config)
        path = list(report.critical_path)
        path += [f"Sensitivity: {material} -> elasticity {value:.3f}"
                 for material, value in sensitivity.elasticities.items() if value != 0]
        return SensitivityBottleneckResult(report, dict(sensitivity.elasticities), path)


# =========================================================================
# Module-level convenience functions
# =========================================================================

def solve(config: ConstraintConfiguration, settings: Optional[SolverSettings] = None) -> Solution:
    return SCGEPSolver(settings).solve(config)


def solve_with_warm_start(config: ConstraintConfiguration, scenario_id: Optional[str] = None,
                          settings: Optional[SolverSettings] = None,
                          cache: Optional[WarmStartCache] = None) -> Solution:
    """Warm-start solve; pass the same ``cache`` across calls to reuse solutions."""
    return SCGEPSolver(settings, cache).solve_with_warm_start(config, scenario_id)


def solve_multi_scenario(config: ConstraintConfiguration, scenario_ids: Iterable[str],
                         settings: Optional[SolverSettings] = None,
                         cache: Optional[WarmStartCache] = None) -> Dict[str, Solution]:
    return SCGEPSolver(settings, cache).solve_multi_scenario(config, scenario_ids)


def analyze_bottlenecks(solution: Solution, config: ConstraintConfiguration) -> BottleneckReport:
    return BottleneckAnalyzer(config).analyze(solution)


def analyze_bottlenecks_with_sensitivity(solution: Solution, config: ConstraintConfiguration,
                                         settings: Optional[SolverSettings] = None
                                         ) -> SensitivityBottleneckResult:
    return SCGEPSolver(settings).analyze_bottlenecks_with_sensitivity(solution, config)


def compare_solutions(results: Mapping[str, Solution]) -> pd.DataFrame:
    """
    One summary row per scenario.

    Returns
    -------
    pd.DataFrame
        Indexed by SCENARIO with columns OBJECTIVE, FEASIBLE, CONVERGENCE,
        TOTAL_CAPACITY, RENEWABLE_SHARE, ITERATIONS, SOLVE_TIME, ERROR.
    """
    rows = []
    for scenario_id, solution in results.items():
        rows.append({
            'SCENARIO': scenario_id,
            'OBJECTIVE': solution.objective_value,
            'FEASIBLE': solution.feasibility,
            'CONVERGENCE': solution.convergence,
            'TOTAL_CAPACITY': solution.metrics.get('total_capacity', solution.total_investment),
            'RENEWABLE_SHARE': solution.metrics.get('renewable_share', 0.0),
            'ITERATIONS': solution.iterations,
            'SOLVE_TIME': solution.solve_time,
            'ERROR': solution.diagnostics.get('error'),
        })
    columns = ['SCENARIO', 'OBJECTIVE', 'FEASIBLE', 'CONVERGENCE', 'TOTAL_CAPACITY',
               'RENEWABLE_SHARE', 'ITERATIONS', 'SOLVE_TIME', 'ERROR']
    return pd.DataFrame(rows, columns=columns).set_index('SCENARIO')

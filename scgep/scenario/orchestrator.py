# scgep/scenario/orchestrator.py

"""
Concurrent solving of several scenario variants.

Every scenario runs as an independent task on a thread pool with a private
deep copy of the configuration. Tasks share nothing but the warm-start cache
used inside the pipeline. A failing scenario produces an error solution and
never stops its siblings.
"""

import logging
import time
import traceback
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, Iterable, Optional

from ..interfaces.config import ConstraintConfiguration
from ..interfaces.solution import Solution
from .variants import ScenarioRegistry, ScenarioVariant, default_registry

logger = logging.getLogger(__name__)

Pipeline = Callable[[ConstraintConfiguration, str], Solution]


def error_solution(config: ConstraintConfiguration, scenario_id: str, exc: BaseException) -> Solution:
    """Infeasible placeholder solution carrying the error that stopped a scenario."""
    solution = Solution.empty(config)
    solution.scenario_id = scenario_id
    solution.feasibility = False
    solution.convergence = "infeasible"
    solution.diagnostics['error'] = f"{type(exc).__name__}: {exc}"
    solution.diagnostics['traceback'] = "".join(
        traceback.format_exception(type(exc), exc, exc.__traceback__))
    return solution


class MultiScenarioOrchestrator:
    """
    Fan a solve pipeline out over scenario variants.

    Parameters
    ----------
    pipeline : callable
        ``pipeline(config, scenario_id) -> Solution``; receives the variant
        configuration, already private to the task.
    registry : ScenarioRegistry, optional
        Scenario id resolution (default: the built-in variants).
    max_workers : int, optional
        Thread pool size (default: 4).
    """

    def __init__(self, pipeline: Pipeline, registry: Optional[ScenarioRegistry] = None,
                 max_workers: int = 4):
        self.pipeline = pipeline
        self.registry = registry if registry is not None else default_registry()
        self.max_workers = max_workers

    def _run_one(self, config: ConstraintConfiguration, variant: ScenarioVariant) -> Solution:
        start = time.perf_counter()
        private = config.copy()
        try:
            scenario_config = variant.apply(private)
            solution = self.pipeline(scenario_config, variant.id)
        except Exception as exc:
            logger.error(f"Scenario '{variant.id}' failed: {exc}")
            solution = error_solution(private, variant.id, exc)
            solution.solve_time = time.perf_counter() - start
            return solution
        solution.scenario_id = variant.id
        logger.info(f"Scenario '{variant.id}' finished: {solution.convergence}, "
                    f"objective={solution.objective_value:.2f}")
        return solution

    def run(self, config: ConstraintConfiguration, scenario_ids: Iterable[str]) -> Dict[str, Solution]:
        """
        Solve every scenario concurrently.

        Parameters
        ----------
        config : ConstraintConfiguration
            Base configuration; never modified.
        scenario_ids : iterable of str
            Registered scenario ids. Duplicates are solved once.

        Returns
        -------
        dict
            scenario id -> Solution, in the order the ids were given.

        Raises
        ------
        InvalidScenarioReference
            If any id is unknown. Raised before any scenario starts.
        """
        ordered = list(dict.fromkeys(scenario_ids))
        variants = self.registry.resolve(ordered)
        if not variants:
            return {}

        logger.info(f"Solving {len(variants)} scenarios with {self.max_workers} workers")
        finished: Dict[str, Solution] = {}
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {executor.submit(self._run_one, config, variant): variant.id
                       for variant in variants}
            for future in as_completed(futures):
                finished[futures[future]] = future.result()
        return {scenario_id: finished[scenario_id] for scenario_id in ordered}

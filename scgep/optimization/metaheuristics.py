# scgep/optimization/metaheuristics.py

"""
Local refinement of a feasible SC-GEP solution.

Two searches operate on the investment array only; every other decision
variable is re-derived for each neighbor:

- Tabu search: a neighborhood of multiplicatively jittered copies of the
  best solution, with a short-term memory of recently visited solutions.
- Simulated annealing: one random neighbor per iteration, accepted by the
  Metropolis criterion under a geometric cooling schedule.

Infeasible neighbors are rejected outright. Zero investments stay zero under
jitter, so a neighbor never builds earlier than its parent.

Search state::

    INITIALIZED -> SEARCHING -> IMPROVED | CONVERGED | EXHAUSTED
"""

import logging
import math
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import numpy as np

from ..interfaces.config import ConstraintConfiguration
from ..interfaces.solution import Solution
from ..settings import AnnealingSettings, TabuSettings
from ..validation.constraints import is_feasible
from .objective import score

logger = logging.getLogger(__name__)


class SearchState(Enum):
    INITIALIZED = "initialized"
    SEARCHING = "searching"
    IMPROVED = "improved"
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"


@dataclass
class SearchResult:
    """
    Outcome of one metaheuristic run.

    Attributes
    ----------
    solution : Solution
        Best solution found (the start solution if nothing improved).
    objective : float
        Objective of ``solution``.
    initial_objective : float
        Objective of the start solution.
    iterations : int
        Iterations actually run.
    state : SearchState
        Terminal state.
    trace : list of float
        Best objective after each iteration (non-increasing).
    tabu_list : list of str
        Snapshot of the tabu list at the end (tabu search only).
    rejected : int
        Neighbors discarded for infeasibility.
    cancelled : bool
        True if the run stopped on the cancellation event.
    """
    solution: Solution
    objective: float
    initial_objective: float
    iterations: int = 0
    state: SearchState = SearchState.INITIALIZED
    trace: List[float] = field(default_factory=list)
    tabu_list: List[str] = field(default_factory=list)
    rejected: int = 0
    cancelled: bool = False

    @property
    def improved(self) -> bool:
        return self.state is SearchState.IMPROVED


class MetaheuristicOptimizer:
    """
    Tabu search and simulated annealing over investment decisions.

    Parameters
    ----------
    config : ConstraintConfiguration
        Configuration every neighbor is validated against.
    tabu : TabuSettings, optional
    annealing : AnnealingSettings, optional
    seed : int, optional
        Seed of the random generator; equal seeds give equal searches.
    derive_penalties : bool, optional
        Re-assess penalty variables for every neighbor (default: False).
    cancel_event : threading.Event, optional
        Checked between iterations; once set the search stops and returns
        its best solution so far.

    Example
    -------
    >>> optimizer = MetaheuristicOptimizer(config, seed=7)
    >>> result = optimizer.optimize(candidate.solution, strategy='hybrid')
    >>> result.objective <= result.initial_objective
    True
    """

    def __init__(self, config: ConstraintConfiguration,
                 tabu: Optional[TabuSettings] = None,
                 annealing: Optional[AnnealingSettings] = None,
                 seed: Optional[int] = None,
                 derive_penalties: bool = False,
                 cancel_event: Optional[threading.Event] = None):
        self.config = config
        self.tabu = tabu or TabuSettings()
        self.annealing = annealing or AnnealingSettings()
        self.rng = np.random.default_rng(seed)
        self.derive_penalties = derive_penalties
        self.cancel_event = cancel_event
        self.state = SearchState.INITIALIZED

    # =========================================================================
    # Neighborhood
    # =========================================================================

    def _cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def _jitter(self, solution: Solution, amplitude: float) -> Solution:
        """Neighbor with each nonzero investment scaled by a factor in [1 - a, 1 + a]."""
        factors = self.rng.uniform(1.0 - amplitude, 1.0 + amplitude, size=solution.investment.shape)
        investment = np.where(solution.investment > 0, solution.investment * factors, 0.0)
        return solution.with_investment(self.config, investment)

    def _evaluate(self, solution: Solution):
        return score(solution, self.config, self.derive_penalties)

    def _finish(self, result: SearchResult, stalled: bool) -> SearchResult:
        if result.objective < result.initial_objective:
            result.state = SearchState.IMPROVED
        elif stalled or result.cancelled:
            result.state = SearchState.CONVERGED
        else:
            result.state = SearchState.EXHAUSTED
        self.state = result.state
        return result

    # =========================================================================
    # Tabu search
    # =========================================================================

    def tabu_search(self, solution: Solution, iterations: Optional[int] = None) -> SearchResult:
        """
        Refine a solution by tabu search.

        Parameters
        ----------
        solution : Solution
            Feasible start solution; not modified.
        iterations : int, optional
            Overrides ``TabuSettings.iterations``.

        Returns
        -------
        SearchResult
            ``tabu_list`` never holds more than ``tenure`` hashes.
        """
        s = self.tabu
        iterations = s.iterations if iterations is None else iterations
        self.state = SearchState.SEARCHING

        best, best_objective = self._evaluate(solution)
        result = SearchResult(best, best_objective, best_objective)
        tabu_list = deque(maxlen=s.tenure)
        idle = 0

        for it in range(1, iterations + 1):
            if self._cancelled():
                result.cancelled = True
                break
            result.iterations = it

            move, move_objective = None, math.inf
            for _ in range(s.neighborhood_size):
                neighbor = self._jitter(best, s.jitter)
                if neighbor.solution_hash() in tabu_list:
                    continue
                if not is_feasible(neighbor, self.config):
                    result.rejected += 1
                    continue
                neighbor, objective = self._evaluate(neighbor)
                if objective < move_objective:
                    move, move_objective = neighbor, objective

            if move is None:
                idle += 1
                result.trace.append(best_objective)
                if idle >= s.patience:
                    logger.debug(f"Tabu search stalled after {it} iterations")
                    break
                continue

            idle = 0
            tabu_list.append(move.solution_hash())
            if move_objective < best_objective:
                best, best_objective = move, move_objective
                logger.debug(f"Tabu iteration {it}: improved to {best_objective:.2f}")
            result.trace.append(best_objective)

        result.solution, result.objective = best, best_objective
        result.tabu_list = list(tabu_list)
        return self._finish(result, stalled=idle >= s.patience)

    # =========================================================================
    # Simulated annealing
    # =========================================================================

    def simulated_annealing(self, solution: Solution, iterations: Optional[int] = None) -> SearchResult:
        """
        Refine a solution by simulated annealing.

        A worse neighbor is accepted with probability exp(-delta / T) and the
        temperature is multiplied by the cooling rate after every iteration.
        The trace records the running best and is therefore non-increasing.
        """
        s = self.annealing
        iterations = s.iterations if iterations is None else iterations
        self.state = SearchState.SEARCHING

        current, current_objective = self._evaluate(solution)
        result = SearchResult(current, current_objective, current_objective)
        best, best_objective = current, current_objective
        temperature = s.initial_temperature
        idle = 0

        for it in range(1, iterations + 1):
            if self._cancelled():
                result.cancelled = True
                break
            result.iterations = it

            neighbor = self._jitter(current, s.jitter)
            if is_feasible(neighbor, self.config):
                idle = 0
                neighbor, objective = self._evaluate(neighbor)
                delta = objective - current_objective
                # a frozen schedule only accepts improvements
                if delta < 0 or (temperature > 0 and self.rng.random() < math.exp(-delta / temperature)):
                    current, current_objective = neighbor, objective
                if current_objective < best_objective:
                    best, best_objective = current, current_objective
            else:
                result.rejected += 1
                idle += 1

            temperature *= s.cooling_rate
            result.trace.append(best_objective)
            if idle >= s.patience:
                logger.debug(f"Annealing stalled after {it} iterations")
                break

        result.solution, result.objective = best, best_objective
        return self._finish(result, stalled=idle >= s.patience)

    # =========================================================================
    # Strategy dispatch
    # =========================================================================

    def optimize(self, solution: Solution, strategy: str = "hybrid") -> SearchResult:
        """
        Run a search strategy.

        Parameters
        ----------
        solution : Solution
            Feasible start solution.
        strategy : {'tabu', 'annealing', 'hybrid'}
            'hybrid' runs tabu search, then annealing from its best.

        Raises
        ------
        ValueError
            If the strategy is unknown.
        """
        start = time.perf_counter()
        if strategy == "tabu":
            result = self.tabu_search(solution)
        elif strategy == "annealing":
            result = self.simulated_annealing(solution)
        elif strategy == "hybrid":
            first = self.tabu_search(solution)
            if first.cancelled:
                result = first
            else:
                second = self.simulated_annealing(first.solution)
                result = SearchResult(
                    solution=second.solution,
                    objective=second.objective,
                    initial_objective=first.initial_objective,
                    iterations=first.iterations + second.iterations,
                    trace=first.trace + second.trace,
                    tabu_list=first.tabu_list,
                    rejected=first.rejected + second.rejected,
                    cancelled=second.cancelled,
                )
                stalled = second.state is SearchState.CONVERGED and not second.cancelled
                result = self._finish(result, stalled=stalled)
        else:
            raise ValueError(f"Unknown search strategy '{strategy}'. Use 'tabu', 'annealing' or 'hybrid'.")

        logger.info(f"{strategy} search finished in {time.perf_counter() - start:.3f}s: "
                    f"{result.state.value}, objective {result.initial_objective:.2f} -> {result.objective:.2f}")
        return result

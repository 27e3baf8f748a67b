# scgep/optimization/__init__.py

from .objective import evaluate_objective, cost_breakdown, assess_penalties, compute_metrics
from .candidate import CandidateGenerator, CandidateResult
from .metaheuristics import MetaheuristicOptimizer, SearchResult, SearchState

__all__ = [
    'evaluate_objective',
    'cost_breakdown',
    'assess_penalties',
    'compute_metrics',
    'CandidateGenerator',
    'CandidateResult',
    'MetaheuristicOptimizer',
    'SearchResult',
    'SearchState',
]

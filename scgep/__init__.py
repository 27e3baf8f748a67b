# scgep/__init__.py

"""
Supply-Chain-Constrained Generation Expansion Planning (SC-GEP).

Decides which generation technologies to build, where and when over a
multi-year horizon, subject to material, component-production, lead-time and
land constraints, while minimizing total system cost.

Main Components
---------------
ConstraintConfiguration : dataclass
    Validated input of a solve (materials, components, technologies, zones).
Solution : dataclass
    Decision variables and result envelope of one solve.
SCGEPSolver : class
    Generator, metaheuristic search, warm-start cache and scenario fan-out.

Subpackages
-----------
interfaces : Input, solution and diagnostic containers
validation : Configuration checks and feasibility checks
optimization : Objective, candidate generation and metaheuristics
scenario : Variants, warm-start cache and multi-scenario orchestration
analysis : Bottleneck and sensitivity diagnostics

Example
-------
>>> from scgep import ConstraintConfiguration, SCGEPSolver
>>> config = ConstraintConfiguration.from_yaml('system.yaml')
>>> solution = SCGEPSolver().solve(config)
>>> print(solution.summary())
"""

from .interfaces import (
    ConstraintConfiguration,
    Material,
    Component,
    Technology,
    Zone,
    CostParameters,
    Solution,
    BottleneckReport,
    SensitivityResult,
    SensitivityBottleneckResult,
)
from .validation import InvalidConfigurationError, InvalidScenarioReference
from .settings import SolverSettings
from .run import (
    SCGEPSolver,
    solve,
    solve_with_warm_start,
    solve_multi_scenario,
    analyze_bottlenecks,
    analyze_bottlenecks_with_sensitivity,
    compare_solutions,
)

__all__ = [
    # Input
    'ConstraintConfiguration',
    'Material',
    'Component',
    'Technology',
    'Zone',
    'CostParameters',
    'SolverSettings',
    # Output containers
    'Solution',
    'BottleneckReport',
    'SensitivityResult',
    'SensitivityBottleneckResult',
    # Errors
    'InvalidConfigurationError',
    'InvalidScenarioReference',
    # Run functions
    'SCGEPSolver',
    'solve',
    'solve_with_warm_start',
    'solve_multi_scenario',
    'analyze_bottlenecks',
    'analyze_bottlenecks_with_sensitivity',
    'compare_solutions',
]

__version__ = '0.1.0'

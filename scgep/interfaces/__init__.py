# scgep/interfaces/__init__.py

"""
Typed containers of the SC-GEP solver.

This module provides the validated configuration (solver input), the
decision-variable container (solver output) and the diagnostic records
produced by the post-solve analyses.
"""

from .config import (
    Material,
    Component,
    Technology,
    Zone,
    CostParameters,
    Coefficients,
    ConstraintConfiguration,
)
from .solution import Solution
from .results import (
    BottleneckRecord,
    TechnologyDelay,
    Recommendation,
    BottleneckReport,
    SensitivityResult,
    SensitivityBottleneckResult,
)

__all__ = [
    # Configuration
    'Material',
    'Component',
    'Technology',
    'Zone',
    'CostParameters',
    'Coefficients',
    'ConstraintConfiguration',
    # Decision variables
    'Solution',
    # Diagnostics
    'BottleneckRecord',
    'TechnologyDelay',
    'Recommendation',
    'BottleneckReport',
    'SensitivityResult',
    'SensitivityBottleneckResult',
]

# scgep/analysis/__init__.py

from .bottlenecks import BottleneckAnalyzer
from .sensitivity import SensitivityAnalyzer, perturb_supply

__all__ = [
    'BottleneckAnalyzer',
    'SensitivityAnalyzer',
    'perturb_supply',
]

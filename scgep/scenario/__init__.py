# scgep/scenario/__init__.py

from .variants import ScenarioRegistry, ScenarioVariant, default_registry
from .cache import WarmStartCache, WarmStartEntry
from .orchestrator import MultiScenarioOrchestrator

__all__ = [
    'ScenarioRegistry',
    'ScenarioVariant',
    'default_registry',
    'WarmStartCache',
    'WarmStartEntry',
    'MultiScenarioOrchestrator',
]

# scgep/validation/__init__.py

# Feasibility checks live in .constraints and are imported from there
# directly; they depend on the interfaces package, which depends on .schemas.
from .schemas import InvalidConfigurationError, InvalidScenarioReference, require_fields

__all__ = [
    'InvalidConfigurationError',
    'InvalidScenarioReference',
    'require_fields',
]

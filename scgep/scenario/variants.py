# scgep/scenario/variants.py

"""
Named scenario variants of a base configuration.

A variant is a pure transform ``ConstraintConfiguration -> ConstraintConfiguration``
that returns a modified copy. Four variants are registered by default:

baseline            the configuration unchanged
high_demand         demand growth x1.5, peak load x1.3
constrained_supply  primary supply x0.7, stock x0.5, geopolitical risk 'high'
rapid_expansion     lead time x0.7 (floor 0.5 years), manufacturing capacity x1.5

Example
-------
>>> registry = default_registry()
>>> stressed = registry.apply(config, 'constrained_supply')
>>> registry.register('no_growth', lambda c: c.with_updates(
...     zones=[dataclasses.replace(z, demand_growth=0.0) for z in c.zones]))
"""

import dataclasses
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List

from ..interfaces.config import ConstraintConfiguration
from ..validation.schemas import InvalidScenarioReference

Transform = Callable[[ConstraintConfiguration], ConstraintConfiguration]


@dataclass(frozen=True)
class ScenarioVariant:
    id: str
    transform: Transform
    description: str = ""

    def apply(self, config: ConstraintConfiguration) -> ConstraintConfiguration:
        return self.transform(config)


def baseline(config: ConstraintConfiguration) -> ConstraintConfiguration:
    return config.copy()


def high_demand(config: ConstraintConfiguration) -> ConstraintConfiguration:
    zones = [dataclasses.replace(z, demand_growth=z.demand_growth * 1.5, peak_load=z.peak_load * 1.3)
             for z in config.zones]
    return config.with_updates(zones=zones)


def constrained_supply(config: ConstraintConfiguration) -> ConstraintConfiguration:
    materials = [dataclasses.replace(m, primary_supply=m.primary_supply * 0.7,
                                     stock_level=m.stock_level * 0.5,
                                     geopolitical_risk="high")
                 for m in config.materials]
    return config.with_updates(materials=materials)


def rapid_expansion(config: ConstraintConfiguration) -> ConstraintConfiguration:
    technologies = [dataclasses.replace(t, lead_time=max(0.5, t.lead_time * 0.7),
                                        manufacturing_capacity=t.manufacturing_capacity * 1.5)
                    for t in config.technologies]
    return config.with_updates(technologies=technologies)


class ScenarioRegistry:
    """
    Thread-safe mapping of scenario ids to variants.

    Raises
    ------
    InvalidScenarioReference
        From ``get`` and ``apply`` for unregistered ids.
    """

    def __init__(self):
        self._variants: Dict[str, ScenarioVariant] = {}
        self._lock = threading.Lock()

    def register(self, scenario_id: str, transform: Transform, description: str = "") -> None:
        """Register (or replace) a variant."""
        if not scenario_id:
            raise ValueError("Scenario id must be a non-empty string")
        with self._lock:
            self._variants[scenario_id] = ScenarioVariant(scenario_id, transform, description)

    def unregister(self, scenario_id: str) -> None:
        with self._lock:
            if scenario_id not in self._variants:
                raise InvalidScenarioReference(scenario_id, self._variants)
            del self._variants[scenario_id]

    def get(self, scenario_id: str) -> ScenarioVariant:
        with self._lock:
            try:
                return self._variants[scenario_id]
            except KeyError:
                raise InvalidScenarioReference(scenario_id, self._variants) from None

    def resolve(self, scenario_ids) -> List[ScenarioVariant]:
        """Variants for every id, failing on the first unknown one before any is used."""
        return [self.get(scenario_id) for scenario_id in scenario_ids]

    def apply(self, config: ConstraintConfiguration, scenario_id: str) -> ConstraintConfiguration:
        return self.get(scenario_id).apply(config)

    @property
    def ids(self) -> List[str]:
        with self._lock:
            return list(self._variants)

    def __contains__(self, scenario_id) -> bool:
        with self._lock:
            return scenario_id in self._variants

    def __len__(self) -> int:
        with self._lock:
            return len(self._variants)


def default_registry() -> ScenarioRegistry:
    """Registry holding the four built-in variants."""
    registry = ScenarioRegistry()
    registry.register("baseline", baseline, "Configuration unchanged")
    registry.register("high_demand", high_demand, "Higher demand growth and peak load")
    registry.register("constrained_supply", constrained_supply,
                      "Reduced material supply and stock under geopolitical stress")
    registry.register("rapid_expansion", rapid_expansion,
                      "Shorter lead times and larger manufacturing capacity")
    return registry

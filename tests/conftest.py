# tests/conftest.py

"""
Shared fixtures for SC-GEP tests.

Provides configurations at various levels of tightness:
- single_tech_config: one zone, 1000 MW peak, 5%/yr growth, one technology
  with a two-year lead time and $1M/MW, five planning years, no supply chain
- simple_config: one material, one component, a renewable and a storage
  technology, ample supply and land
- constrained_config: lithium supply far below what demand growth asks for
- delay_config: technologies whose lead times postpone or prevent builds

and solver settings small enough for fast searches.
"""

import copy

import pytest

from scgep.interfaces.config import ConstraintConfiguration
from scgep.scenario.cache import WarmStartCache
from scgep.settings import SolverSettings


# =============================================================================
# Raw configuration mappings
# =============================================================================

SIMPLE_DATA = {
    "materials": [
        {"id": "lithium", "type": "critical", "primary_supply": 1000.0,
         "recovery_rate": 0.1, "stock_level": 100.0, "cost_per_tonne": 15000.0,
         "geopolitical_risk": "medium", "domestic_availability": 0.2},
    ],
    "components": [
        {"id": "battery_cell", "material_demand": {"lithium": 0.5},
         "production_capacity": 10000.0, "lead_time": 1.0},
    ],
    "technologies": [
        {"id": "solar_pv", "type": "renewable", "capacity_density": 50.0,
         "lead_time": 1.0, "lifetime": 25.0, "capital_cost": 1.0e6,
         "variable_cost": 0.0, "elcc_factor": 0.4, "material_intensity": 5.0},
        {"id": "battery", "type": "storage", "component_demand": {"battery_cell": 2.0},
         "capacity_density": 100.0, "lead_time": 1.0, "lifetime": 15.0,
         "capital_cost": 1.5e6, "variable_cost": 0.0, "elcc_factor": 0.9,
         "material_intensity": 8.0},
    ],
    "zones": [
        {"id": "z1", "available_land": 1000.0, "peak_load": 1000.0,
         "demand_growth": 5.0, "rps_target": 30.0},
    ],
    "planning_horizon": 6,
    "reserve_margin": 15.0,
}

SINGLE_TECH_DATA = {
    "technologies": [
        {"id": "gen", "type": "thermal", "capacity_density": 10.0,
         "lead_time": 2.0, "lifetime": 30.0, "capital_cost": 1.0e6,
         "variable_cost": 0.0},
    ],
    "zones": [
        {"id": "z1", "available_land": 1.0e6, "peak_load": 1000.0, "demand_growth": 5.0},
    ],
    "planning_horizon": 5,
}

CONSTRAINED_DATA = {
    "materials": [
        {"id": "lithium", "type": "critical", "primary_supply": 5.0, "stock_level": 0.0},
        {"id": "steel", "type": "standard", "primary_supply": 1.0e6, "stock_level": 0.0},
    ],
    "components": [
        {"id": "cell", "material_demand": {"lithium": 1.0, "steel": 1.0},
         "production_capacity": 1000.0},
    ],
    "technologies": [
        {"id": "battery", "type": "storage", "component_demand": {"cell": 1.0},
         "capacity_density": 100.0, "lead_time": 0.0, "capital_cost": 1.0e6},
    ],
    "zones": [
        {"id": "z1", "available_land": 1.0e4, "peak_load": 1000.0, "demand_growth": 20.0},
    ],
    "planning_horizon": 5,
}

DELAY_DATA = {
    "technologies": [
        {"id": "early", "type": "renewable", "capacity_density": 10.0,
         "lead_time": 0.0, "capital_cost": 1.0e6},
        {"id": "slow", "type": "nuclear", "capacity_density": 10.0,
         "lead_time": 3.0, "capital_cost": 5.0e6},
        {"id": "never", "type": "thermal", "capacity_density": 10.0,
         "lead_time": 10.0, "capital_cost": 2.0e6},
    ],
    "zones": [
        {"id": "z1", "available_land": 1.0e4, "peak_load": 1000.0, "demand_growth": 20.0},
    ],
    "planning_horizon": 5,
}


# =============================================================================
# Configuration Fixtures
# =============================================================================

@pytest.fixture
def simple_data():
    """Mutable copy of the simple configuration mapping."""
    return copy.deepcopy(SIMPLE_DATA)


@pytest.fixture
def simple_config():
    return ConstraintConfiguration.from_dict(copy.deepcopy(SIMPLE_DATA))


@pytest.fixture
def single_tech_config():
    """
    One zone (1000 MW, 5%/yr), one technology (lead time 2, $1M/MW, no
    variable cost), five years, unconstrained supply chain.
    """
    return ConstraintConfiguration.from_dict(copy.deepcopy(SINGLE_TECH_DATA))


@pytest.fixture
def constrained_config():
    """Lithium supply of 5 t/yr against a 20%/yr demand growth."""
    return ConstraintConfiguration.from_dict(copy.deepcopy(CONSTRAINED_DATA))


@pytest.fixture
def delay_config():
    """
    Demand crosses 110% of peak in year 1.

    'early' can be built at once, 'slow' from year 3, 'never' after the horizon.
    """
    return ConstraintConfiguration.from_dict(copy.deepcopy(DELAY_DATA))


# =============================================================================
# Solver Fixtures
# =============================================================================

@pytest.fixture
def fast_settings():
    """Default settings with short searches."""
    return SolverSettings.load(overrides={
        "tabu": {"iterations": 5, "neighborhood_size": 5, "patience": 3},
        "annealing": {"iterations": 10, "patience": 5},
        "orchestrator": {"max_workers": 2},
    })


@pytest.fixture
def fake_clock():
    """Controllable clock: call to read, set ``fake_clock.now`` to move time."""
    class Clock:
        now = 0.0

        def __call__(self):
            return self.now

    return Clock()


@pytest.fixture
def cache(fake_clock):
    with WarmStartCache(ttl=3600.0, clock=fake_clock) as c:
        yield c

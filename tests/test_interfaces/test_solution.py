# tests/test_interfaces/test_solution.py

"""
Tests for the Solution decision-variable container.

Tests cover:
- Zero-investment construction
- Derivation of build flags, fleet, retirements, production and stock
- Neighbor construction from a new investment array
- Id-based accessors
- Hashing and tabular views
"""

import numpy as np
import pytest

from scgep.interfaces.config import ConstraintConfiguration
from scgep.interfaces.solution import Solution


@pytest.fixture
def short_life_config(simple_data):
    """Battery lifetime of 2 years so retirements fall inside the horizon."""
    simple_data["technologies"][1]["lifetime"] = 2.0
    simple_data["zones"][0]["existing_capacity"] = {"solar_pv": 50.0}
    return ConstraintConfiguration.from_dict(simple_data)


# =============================================================================
# Construction Tests
# =============================================================================

class TestEmpty:
    """Test the zero-investment solution."""

    def test_shapes(self, simple_config):
        solution = Solution.empty(simple_config)
        assert solution.investment.shape == (2, 1, 6)
        assert solution.material_utilization.shape == (1, 6)
        assert solution.component_production.shape == (1, 6)
        assert solution.load_shedding.shape == (1, 6)
        assert solution.reserve_margin_violation.shape == (6,)

    def test_initial_state(self, simple_config):
        """Stock starts at the stock level, land at the zone's land."""
        solution = Solution.empty(simple_config)
        assert not solution.build.any()
        np.testing.assert_allclose(solution.material_stock, 100.0)
        np.testing.assert_allclose(solution.allocated_land, 1000.0)
        assert solution.convergence == "infeasible"
        assert solution.run_id

    def test_existing_capacity_is_operational(self, short_life_config):
        solution = Solution.empty(short_life_config)
        np.testing.assert_allclose(solution.operational[0, 0], 50.0)
        np.testing.assert_allclose(solution.operational[1, 0], 0.0)


# =============================================================================
# Derivation Tests
# =============================================================================

class TestDerive:
    """Test dependent variables recomputed from investment."""

    def test_fleet_and_retirement(self, short_life_config):
        """A year-1 battery vintage operates in years 1-2 and retires in year 3."""
        investment = np.zeros(short_life_config.shape)
        investment[1, 0, 0] = 10.0
        solution = Solution.empty(short_life_config).with_investment(short_life_config, investment)
        np.testing.assert_allclose(solution.operational[1, 0], [10, 10, 0, 0, 0, 0])
        np.testing.assert_allclose(solution.retirement[1, 0], [0, 0, 10, 0, 0, 0])
        assert solution.build[1, 0].tolist() == [True, False, False, False, False, False]

    def test_production_and_utilization(self, short_life_config):
        """10 MW battery needs 20 cells and 10 t of lithium in its build year."""
        investment = np.zeros(short_life_config.shape)
        investment[1, 0, 0] = 10.0
        solution = Solution.empty(short_life_config).with_investment(short_life_config, investment)
        assert solution.get_component_production("battery_cell", 1) == pytest.approx(20.0)
        assert solution.get_material_utilization("lithium", 1) == pytest.approx(10.0)
        assert solution.get_material_utilization("lithium", 2) == 0.0

    def test_stock_recovers_after_retirement(self, short_life_config):
        """Retired lithium (10 t at 10% recovery) is in stock from the following year."""
        investment = np.zeros(short_life_config.shape)
        investment[1, 0, 0] = 10.0
        solution = Solution.empty(short_life_config).with_investment(short_life_config, investment)
        stock = solution.material_stock[0]
        np.testing.assert_allclose(stock[:3], 100.0)
        np.testing.assert_allclose(stock[3:], 101.0)

    def test_with_investment_leaves_parent_untouched(self, simple_config):
        parent = Solution.empty(simple_config)
        investment = np.full(simple_config.shape, 1.0)
        child = parent.with_investment(simple_config, investment)
        assert parent.total_investment == 0.0
        assert child.total_investment == pytest.approx(12.0)
        assert child.allocated_land is parent.allocated_land
        assert child.run_id != parent.run_id


# =============================================================================
# Accessor Tests
# =============================================================================

class TestAccessors:
    """Test id-based lookups."""

    def test_unknown_ids_raise(self, simple_config):
        solution = Solution.empty(simple_config)
        with pytest.raises(KeyError):
            solution.get_investment("fusion", "z1", 1)
        with pytest.raises(KeyError):
            solution.get_operational("solar_pv", "z9", 1)
        with pytest.raises(KeyError):
            solution.get_material_stock("cobalt", 1)

    def test_year_outside_horizon_raises(self, simple_config):
        solution = Solution.empty(simple_config)
        with pytest.raises(KeyError):
            solution.get_investment("solar_pv", "z1", 0)

    def test_first_build_year(self, simple_config):
        investment = np.zeros(simple_config.shape)
        investment[0, 0, 3] = 5.0
        solution = Solution.empty(simple_config).with_investment(simple_config, investment)
        assert solution.first_build_year("solar_pv", "z1") == 4
        assert solution.first_build_year("battery", "z1") is None
        assert solution.is_built("solar_pv", "z1", 4)

    def test_is_compatible(self, simple_config, single_tech_config):
        solution = Solution.empty(simple_config)
        assert solution.is_compatible(simple_config)
        assert not solution.is_compatible(single_tech_config)


# =============================================================================
# Hash and View Tests
# =============================================================================

class TestHashAndViews:
    """Test the investment digest and pandas views."""

    def test_hash_depends_on_investment_only(self, simple_config):
        a = Solution.empty(simple_config)
        b = Solution.empty(simple_config)
        b.objective_value = 123.0
        assert a.solution_hash() == b.solution_hash()
        c = a.with_investment(simple_config, np.full(simple_config.shape, 1.0))
        assert c.solution_hash() != a.solution_hash()

    def test_hash_folds_negative_zero(self, simple_config):
        a = Solution.empty(simple_config)
        b = a.with_investment(simple_config, np.full(simple_config.shape, -0.0))
        assert a.solution_hash() == b.solution_hash()

    def test_to_frame(self, simple_config):
        frame = Solution.empty(simple_config).to_frame()
        assert len(frame) == 2 * 1 * 6
        assert list(frame.columns) == ['TECHNOLOGY', 'ZONE', 'YEAR', 'INVESTMENT', 'BUILD',
                                       'OPERATIONAL', 'RETIREMENT', 'ALLOCATED_LAND']

    def test_material_frame(self, simple_config):
        frame = Solution.empty(simple_config).material_frame()
        assert list(frame.columns) == ['MATERIAL', 'YEAR', 'UTILIZATION', 'STOCK']
        assert (frame['STOCK'] == 100.0).all()

    def test_copy_is_deep(self, simple_config):
        solution = Solution.empty(simple_config)
        clone = solution.copy()
        clone.investment[0, 0, 0] = 7.0
        assert solution.investment[0, 0, 0] == 0.0

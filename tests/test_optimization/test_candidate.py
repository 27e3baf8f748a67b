# tests/test_optimization/test_candidate.py

"""
Tests for CandidateGenerator.

Tests cover:
- Demand-driven proposal (trigger, sizing cap, even split, lead times)
- Repair of supply-chain violations
- Convergence labels (feasible, optimal, infeasible)
- The single-technology reference case
"""

import dataclasses

import numpy as np
import pytest

from scgep.optimization.candidate import CandidateGenerator
from scgep.settings import GeneratorSettings
from scgep.validation.constraints import is_feasible


# =============================================================================
# Proposal Tests
# =============================================================================

class TestPropose:
    """Test the unrepaired investment proposal."""

    def test_no_build_below_trigger(self, single_tech_config):
        """Demand of 1050 and 1102.5 MW (years 1-2): only year 2 crosses 1100 MW."""
        proposal = CandidateGenerator(single_tech_config).propose()
        assert proposal[0, 0, 0] == 0.0
        assert proposal[0, 0, 1] == pytest.approx(0.10 * 102.5)

    def test_step_capped(self, single_tech_config):
        zones = [dataclasses.replace(single_tech_config.zones[0], peak_load=100_000.0)]
        config = single_tech_config.with_updates(zones=zones)
        proposal = CandidateGenerator(config).propose()
        assert proposal.max() == pytest.approx(100.0)

    def test_split_evenly(self, simple_config):
        proposal = CandidateGenerator(simple_config).propose()
        np.testing.assert_allclose(proposal[0], proposal[1])
        demand_y3 = 1000.0 * 1.05 ** 3
        assert proposal[:, 0, 2].sum() == pytest.approx(0.10 * (demand_y3 - 1000.0))

    def test_only_eligible_technologies(self, delay_config):
        """Before year 3 only 'early' is buildable; 'never' is never proposed."""
        proposal = CandidateGenerator(delay_config).propose()
        assert proposal[0, 0, 0] == pytest.approx(20.0)
        assert proposal[1, 0, :2].sum() == 0.0
        assert proposal[1, 0, 2] > 0.0
        assert proposal[2].sum() == 0.0

    def test_monotone_in_demand_growth(self, simple_config):
        faster = simple_config.with_updates(zones=[
            dataclasses.replace(simple_config.zones[0], demand_growth=8.0)])
        slow = CandidateGenerator(simple_config).propose()
        fast = CandidateGenerator(faster).propose()
        assert (fast >= slow).all()

    def test_custom_settings(self, single_tech_config):
        settings = GeneratorSettings(investment_fraction=0.5, max_step_mw=10.0)
        proposal = CandidateGenerator(single_tech_config, settings).propose()
        assert proposal.max() == pytest.approx(10.0)


# =============================================================================
# Generate Tests
# =============================================================================

class TestGenerate:
    """Test build-and-repair."""

    def test_single_tech_reference_case(self, single_tech_config):
        """No build before year 2 and the objective equals investment MW times $1M."""
        result = CandidateGenerator(single_tech_config).generate()
        solution = result.solution
        assert result.feasible
        assert result.convergence == "feasible"
        assert not solution.build[0, 0, 0]
        assert solution.total_investment > 0
        assert solution.objective_value == pytest.approx(solution.total_investment * 1e6)

    def test_reference_case_values(self, single_tech_config):
        """Ten percent of each year's increment over the 1000 MW peak, kept unrepaired."""
        expected = [0.0, 10.25, 15.7625, 21.550625, 27.62815625]
        generator = CandidateGenerator(single_tech_config)
        np.testing.assert_allclose(generator.propose()[0, 0], expected)
        solution = generator.generate().solution
        np.testing.assert_allclose(solution.investment[0, 0], expected)
        assert solution.objective_value == pytest.approx(75.19125e6)

    def test_repairs_material_shortage(self, constrained_config):
        """Proposals of 20+ MW per year are scaled to fit 5 t of lithium."""
        result = CandidateGenerator(constrained_config).generate()
        assert result.feasible
        assert result.iterations == 2
        assert is_feasible(result.solution, constrained_config)
        utilization = result.solution.material_utilization[0]
        np.testing.assert_allclose(utilization, 0.95 * 5.0)

    def test_safety_factor_from_settings(self, constrained_config):
        result = CandidateGenerator(constrained_config, GeneratorSettings(safety_factor=0.8)).generate()
        assert result.feasible
        np.testing.assert_allclose(result.solution.material_utilization[0], 0.8 * 5.0)

    def test_no_growth_is_optimal(self, single_tech_config):
        config = single_tech_config.with_updates(zones=[
            dataclasses.replace(single_tech_config.zones[0], demand_growth=0.0)])
        result = CandidateGenerator(config).generate()
        assert result.feasible
        assert result.convergence == "optimal"
        assert result.solution.total_investment == 0.0

    def test_iteration_cap_reports_infeasible(self, single_tech_config):
        """Existing capacity that does not fit the land cannot be repaired."""
        zones = [dataclasses.replace(single_tech_config.zones[0], available_land=1.0,
                                     existing_capacity={"gen": 1000.0})]
        config = single_tech_config.with_updates(zones=zones)
        result = CandidateGenerator(config, GeneratorSettings(max_iterations=5)).generate()
        assert not result.feasible
        assert result.convergence == "infeasible"
        assert result.iterations == 5
        assert result.violations
        assert result.solution.diagnostics["generator"]["violations"]

    def test_config_not_modified(self, constrained_config):
        before = constrained_config.to_dict()
        CandidateGenerator(constrained_config).generate()
        assert constrained_config.to_dict() == before

    def test_penalties_derived_when_enabled(self, single_tech_config):
        result = CandidateGenerator(single_tech_config, derive_penalties=True).generate()
        assert result.solution.load_shedding.sum() > 0
        assert result.solution.costs["penalties"] > 0

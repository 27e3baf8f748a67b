# tests/test_interfaces/test_config.py

"""
Tests for ConstraintConfiguration and its entity records.

Tests cover:
- Construction from mappings and YAML
- Structural validation (missing fields, ranges, references, duplicates)
- Index helpers
- Coefficient arrays (vintages, bills of materials, lead times)
- Copy and update semantics
"""

import dataclasses

import numpy as np
import pytest
import yaml

from scgep.interfaces.config import ConstraintConfiguration, CostParameters, Material, Zone
from scgep.validation.schemas import InvalidConfigurationError


# =============================================================================
# Construction Tests
# =============================================================================

class TestFromDict:
    """Test building configurations from plain mappings."""

    def test_valid_mapping(self, simple_config):
        """Entities are parsed in order."""
        assert simple_config.material_ids == ["lithium"]
        assert simple_config.component_ids == ["battery_cell"]
        assert simple_config.technology_ids == ["solar_pv", "battery"]
        assert simple_config.zone_ids == ["z1"]
        assert simple_config.years == [1, 2, 3, 4, 5, 6]

    def test_default_penalty_rates(self, simple_config):
        """Missing cost parameters fall back to the standard rates."""
        assert simple_config.cost_parameters == CostParameters()
        assert simple_config.cost_parameters.reserve_margin_penalty == 100_000.0

    def test_missing_required_field_raises(self, simple_data):
        """A technology without capital cost is rejected."""
        del simple_data["technologies"][0]["capital_cost"]
        with pytest.raises(InvalidConfigurationError, match="capital_cost"):
            ConstraintConfiguration.from_dict(simple_data)

    def test_missing_top_level_key_raises(self, simple_data):
        del simple_data["zones"]
        with pytest.raises(InvalidConfigurationError):
            ConstraintConfiguration.from_dict(simple_data)

    def test_integral_float_horizon_accepted(self, simple_data):
        simple_data["planning_horizon"] = 4.0
        assert ConstraintConfiguration.from_dict(simple_data).planning_horizon == 4

    def test_unknown_cost_parameter_raises(self, simple_data):
        simple_data["cost_parameters"] = {"carbon_penalty": 5.0}
        with pytest.raises(InvalidConfigurationError, match="unknown keys"):
            ConstraintConfiguration.from_dict(simple_data)

    def test_invalid_error_is_value_error(self, simple_data):
        """InvalidConfigurationError can be caught as ValueError."""
        simple_data["planning_horizon"] = 0
        with pytest.raises(ValueError):
            ConstraintConfiguration.from_dict(simple_data)


class TestFromYaml:
    """Test loading configurations from YAML documents."""

    def test_round_trip(self, simple_config, tmp_path):
        """to_dict output loads back into an equal configuration."""
        path = tmp_path / "system.yaml"
        path.write_text(yaml.safe_dump(simple_config.to_dict()))
        loaded = ConstraintConfiguration.from_yaml(path)
        assert loaded.to_dict() == simple_config.to_dict()

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ConstraintConfiguration.from_yaml(tmp_path / "missing.yaml")

    def test_non_mapping_document_raises(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(InvalidConfigurationError):
            ConstraintConfiguration.from_yaml(path)


# =============================================================================
# Validation Tests
# =============================================================================

class TestValidation:
    """Test structural and cross-reference validation."""

    def test_no_technologies_raises(self, simple_data):
        simple_data["technologies"] = []
        with pytest.raises(InvalidConfigurationError, match="technology"):
            ConstraintConfiguration.from_dict(simple_data)

    def test_duplicate_ids_raise(self, simple_data):
        simple_data["technologies"][1]["id"] = "solar_pv"
        with pytest.raises(InvalidConfigurationError, match="Duplicate"):
            ConstraintConfiguration.from_dict(simple_data)

    def test_unknown_material_reference_raises(self, simple_data):
        simple_data["components"][0]["material_demand"] = {"cobalt": 1.0}
        with pytest.raises(InvalidConfigurationError, match="cobalt"):
            ConstraintConfiguration.from_dict(simple_data)

    def test_unknown_component_reference_raises(self, simple_data):
        simple_data["technologies"][1]["component_demand"] = {"inverter": 1.0}
        with pytest.raises(InvalidConfigurationError, match="inverter"):
            ConstraintConfiguration.from_dict(simple_data)

    def test_unknown_existing_capacity_reference_raises(self, simple_data):
        simple_data["zones"][0]["existing_capacity"] = {"coal": 100.0}
        with pytest.raises(InvalidConfigurationError, match="coal"):
            ConstraintConfiguration.from_dict(simple_data)

    def test_recovery_rate_out_of_range_raises(self, simple_data):
        simple_data["materials"][0]["recovery_rate"] = 1.5
        with pytest.raises(InvalidConfigurationError, match="recovery_rate"):
            ConstraintConfiguration.from_dict(simple_data)

    def test_negative_stock_raises(self, simple_data):
        simple_data["materials"][0]["stock_level"] = -1.0
        with pytest.raises(InvalidConfigurationError, match="stock_level"):
            ConstraintConfiguration.from_dict(simple_data)

    def test_unknown_material_type_raises(self, simple_data):
        simple_data["materials"][0]["type"] = "precious"
        with pytest.raises(InvalidConfigurationError, match="type"):
            ConstraintConfiguration.from_dict(simple_data)

    def test_zero_capacity_density_raises(self, simple_data):
        simple_data["technologies"][0]["capacity_density"] = 0.0
        with pytest.raises(InvalidConfigurationError, match="capacity_density"):
            ConstraintConfiguration.from_dict(simple_data)

    def test_skip_validation(self, simple_data):
        """validate=False defers checks to an explicit validate() call."""
        simple_data["materials"][0]["stock_level"] = -1.0
        config = ConstraintConfiguration.from_dict(simple_data, validate=False)
        with pytest.raises(InvalidConfigurationError):
            config.validate()


# =============================================================================
# Entity Tests
# =============================================================================

class TestEntities:
    """Test entity helpers."""

    def test_material_total_availability(self):
        material = Material(id="copper", primary_supply=10.0, stock_level=5.0)
        assert material.total_availability == 15.0

    def test_zone_projected_demand(self):
        zone = Zone(id="z", peak_load=1000.0, demand_growth=5.0)
        assert zone.projected_demand(2) == pytest.approx(1102.5)

    def test_technology_is_renewable(self, simple_config):
        assert simple_config.technologies[0].is_renewable
        assert not simple_config.technologies[1].is_renewable


# =============================================================================
# Index and Coefficient Tests
# =============================================================================

class TestIndexing:
    """Test id to position lookups."""

    def test_index(self, simple_config):
        assert simple_config.index("technology", "battery") == 1
        assert simple_config.index("zone", "z1") == 0

    def test_unknown_id_raises_key_error(self, simple_config):
        with pytest.raises(KeyError):
            simple_config.index("technology", "fusion")

    def test_year_index(self, simple_config):
        assert simple_config.year_index(1) == 0
        with pytest.raises(KeyError):
            simple_config.year_index(7)

    def test_shape(self, simple_config):
        assert simple_config.shape == (2, 1, 6)


class TestCoefficients:
    """Test dense coefficient arrays."""

    def test_bill_of_materials(self, simple_config):
        """Battery embodies 2 cells * 0.5 t lithium per MW."""
        coeffs = simple_config.coefficients
        np.testing.assert_allclose(coeffs.tech_component, [[0.0], [2.0]])
        np.testing.assert_allclose(coeffs.component_material, [[0.5]])
        np.testing.assert_allclose(coeffs.tech_material, [[0.0], [1.0]])

    def test_vintage_masks(self, simple_data):
        """A two-year lifetime vintage is active for two years, then retires."""
        simple_data["technologies"][0]["lifetime"] = 2.0
        config = ConstraintConfiguration.from_dict(simple_data)
        active = config.coefficients.active[0]
        retires = config.coefficients.retires[0]
        assert active[0].tolist() == [True, True, False, False, False, False]
        assert retires[0].tolist() == [False, False, True, False, False, False]
        assert not active[3, :3].any()

    def test_buildable_respects_lead_time(self, single_tech_config):
        buildable = single_tech_config.coefficients.buildable[0]
        assert buildable.tolist() == [False, True, True, True, True]


# =============================================================================
# Copy Tests
# =============================================================================

class TestCopy:
    """Test copy and update semantics."""

    def test_copy_is_independent(self, simple_config):
        clone = simple_config.copy()
        clone.rps_targets["solar_pv"] = 50.0
        assert "solar_pv" not in simple_config.rps_targets

    def test_with_updates_validates(self, simple_config):
        zones = [dataclasses.replace(simple_config.zones[0], peak_load=-1.0)]
        with pytest.raises(InvalidConfigurationError):
            simple_config.with_updates(zones=zones)

    def test_with_updates_rebuilds_coefficients(self, simple_config):
        _ = simple_config.coefficients
        materials = [dataclasses.replace(simple_config.materials[0], primary_supply=1.0)]
        updated = simple_config.with_updates(materials=materials)
        assert updated.coefficients.primary_supply[0] == 1.0
        assert simple_config.coefficients.primary_supply[0] == 1000.0

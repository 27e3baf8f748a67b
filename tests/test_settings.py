# tests/test_settings.py

"""
Tests for SolverSettings.

Tests cover:
- Packaged defaults
- YAML file and override merging
- Rejection of unknown keys and out-of-range values
"""

import pytest
import yaml

from scgep.settings import SolverSettings, TabuSettings
from scgep.validation.schemas import InvalidConfigurationError


# =============================================================================
# Loading Tests
# =============================================================================

class TestLoad:
    """Test SolverSettings.load."""

    def test_packaged_defaults_match_dataclass(self):
        assert SolverSettings.load() == SolverSettings()

    def test_defaults(self):
        settings = SolverSettings.load()
        assert settings.seed == 42
        assert settings.strategy == "hybrid"
        assert settings.generator.max_iterations == 100
        assert settings.tabu.tenure == 10
        assert settings.annealing.initial_temperature == 1000.0
        assert settings.annealing.cooling_rate == 0.95
        assert settings.cache.ttl_seconds == 3600.0
        assert settings.analysis.materials is None

    def test_file_merged_per_section(self, tmp_path):
        path = tmp_path / "tuning.yaml"
        path.write_text(yaml.safe_dump({"seed": 7, "tabu": {"iterations": 12}}))
        settings = SolverSettings.load(path)
        assert settings.seed == 7
        assert settings.tabu.iterations == 12
        assert settings.tabu.tenure == 10

    def test_overrides_applied_last(self, tmp_path):
        path = tmp_path / "tuning.yaml"
        path.write_text(yaml.safe_dump({"strategy": "tabu"}))
        settings = SolverSettings.load(str(path), overrides={"strategy": "annealing"})
        assert settings.strategy == "annealing"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert SolverSettings.load(path) == SolverSettings()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            SolverSettings.load(tmp_path / "absent.yaml")

    def test_with_overrides(self):
        settings = SolverSettings().with_overrides({"annealing": {"iterations": 3}})
        assert settings.annealing.iterations == 3
        assert SolverSettings().annealing.iterations == 100


# =============================================================================
# Validation Tests
# =============================================================================

class TestValidation:
    """Test rejection of bad settings."""

    @pytest.mark.parametrize("overrides", [
        {"strategy": "genetic"},
        {"seed": "abc"},
        {"tabu": {"tenure": 0}},
        {"annealing": {"cooling_rate": 1.5}},
        {"annealing": {"cooling_rate": 0.0}},
        {"tabu": {"tenure": 10.0}},
        {"tabu": {"tenure": 2.5}},
        {"annealing": {"iterations": True}},
        {"generator": {"max_iterations": 0}},
        {"orchestrator": {"max_workers": "4"}},
        {"cache": {"ttl_seconds": -1}},
        {"analysis": {"sensitivity_method": "finite_difference"}},
        {"penalties": {"derive_from_adequacy": "yes"}},
    ])
    def test_out_of_range(self, overrides):
        with pytest.raises(InvalidConfigurationError):
            SolverSettings.load(overrides=overrides)

    def test_unknown_top_level_key(self):
        with pytest.raises(InvalidConfigurationError, match="solver"):
            SolverSettings.from_dict({"solver": {}})

    def test_unknown_section_key(self):
        with pytest.raises(InvalidConfigurationError, match="tenur"):
            SolverSettings.load(overrides={"tabu": {"tenur": 3}})

    def test_section_must_be_mapping(self):
        with pytest.raises(InvalidConfigurationError):
            SolverSettings.from_dict({"tabu": [1, 2]})

    def test_float_integer_field_message(self):
        with pytest.raises(InvalidConfigurationError, match="tenure.*integer"):
            SolverSettings.load(overrides={"tabu": {"tenure": 10.0}})

    def test_cooling_rate_of_one_allowed(self):
        settings = SolverSettings.load(overrides={"annealing": {"cooling_rate": 1.0}})
        assert settings.annealing.cooling_rate == 1.0

    def test_section_validate(self):
        TabuSettings().validate()
        with pytest.raises(InvalidConfigurationError):
            TabuSettings(jitter=2.0).validate()

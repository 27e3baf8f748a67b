# scgep/settings.py

"""
Solver tuning for SC-GEP.

Defaults ship with the package in ``solver_defaults.yaml``. A user file and
keyword overrides are merged on top, section by section:

>>> settings = SolverSettings.load()
>>> settings = SolverSettings.load('tuning.yaml', overrides={'tabu': {'iterations': 10}})
>>> settings.tabu.iterations
10
"""

import copy
import dataclasses
import importlib.resources
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

from .validation.schemas import (
    InvalidConfigurationError,
    check_choice,
    check_finite,
    check_fraction,
    check_int,
    check_positive,
)

STRATEGIES = ("tabu", "annealing", "hybrid")
SENSITIVITY_METHODS = ("resolve", "approximate")


def _section(cls, data: Optional[Mapping[str, Any]], name: str):
    if data is None:
        return cls()
    if not isinstance(data, Mapping):
        raise InvalidConfigurationError(f"settings section '{name}' must be a mapping")
    known = {f.name for f in dataclasses.fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise InvalidConfigurationError(f"settings section '{name}' has unknown keys: {sorted(unknown)}")
    return cls(**data)


def _merge(base: Dict[str, Any], update: Mapping[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in update.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


@dataclass
class GeneratorSettings:
    max_iterations: int = 100
    investment_fraction: float = 0.10
    max_step_mw: float = 100.0
    demand_trigger: float = 1.10
    safety_factor: float = 0.95

    def validate(self) -> None:
        check_int(self.max_iterations, "max_iterations", "generator", minimum=1)
        check_fraction(self.investment_fraction, "investment_fraction", "generator")
        check_positive(self.max_step_mw, "max_step_mw", "generator")
        check_positive(self.demand_trigger, "demand_trigger", "generator")
        check_fraction(self.safety_factor, "safety_factor", "generator")


@dataclass
class TabuSettings:
    iterations: int = 50
    neighborhood_size: int = 20
    tenure: int = 10
    jitter: float = 0.10
    patience: int = 10

    def validate(self) -> None:
        check_int(self.iterations, "iterations", "tabu")
        check_int(self.neighborhood_size, "neighborhood_size", "tabu", minimum=1)
        check_int(self.tenure, "tenure", "tabu", minimum=1)
        check_fraction(self.jitter, "jitter", "tabu")
        check_int(self.patience, "patience", "tabu", minimum=1)


@dataclass
class AnnealingSettings:
    initial_temperature: float = 1000.0
    cooling_rate: float = 0.95
    iterations: int = 100
    jitter: float = 0.20
    patience: int = 25

    def validate(self) -> None:
        check_positive(self.initial_temperature, "initial_temperature", "annealing")
        if not 0.0 < check_finite(self.cooling_rate, "cooling_rate", "annealing") <= 1.0:
            raise InvalidConfigurationError(
                f"annealing: 'cooling_rate' must be within (0, 1], got {self.cooling_rate}")
        check_int(self.iterations, "iterations", "annealing")
        check_fraction(self.jitter, "jitter", "annealing")
        check_int(self.patience, "patience", "annealing", minimum=1)


@dataclass
class PenaltySettings:
    derive_from_adequacy: bool = False

    def validate(self) -> None:
        if not isinstance(self.derive_from_adequacy, bool):
            raise InvalidConfigurationError("penalties: 'derive_from_adequacy' must be a boolean")


@dataclass
class CacheSettings:
    ttl_seconds: float = 3600.0

    def validate(self) -> None:
        check_positive(self.ttl_seconds, "ttl_seconds", "cache")


@dataclass
class OrchestratorSettings:
    max_workers: int = 4

    def validate(self) -> None:
        check_int(self.max_workers, "max_workers", "orchestrator", minimum=1)


@dataclass
class AnalysisSettings:
    perturbation: float = 0.10
    sensitivity_method: str = "resolve"
    materials: Optional[List[str]] = None

    def validate(self) -> None:
        check_positive(self.perturbation, "perturbation", "analysis")
        check_choice(self.sensitivity_method, SENSITIVITY_METHODS, "sensitivity_method", "analysis")


@dataclass
class SolverSettings:
    """
    Complete solver tuning.

    Attributes
    ----------
    seed : int
        Seed of the search random generator; equal seeds give equal results.
    strategy : str
        Metaheuristic run after the generator: 'tabu', 'annealing' or 'hybrid'.
    generator, tabu, annealing, penalties, cache, orchestrator, analysis
        Per-component sections.
    """
    seed: int = 42
    strategy: str = "hybrid"
    generator: GeneratorSettings = field(default_factory=GeneratorSettings)
    tabu: TabuSettings = field(default_factory=TabuSettings)
    annealing: AnnealingSettings = field(default_factory=AnnealingSettings)
    penalties: PenaltySettings = field(default_factory=PenaltySettings)
    cache: CacheSettings = field(default_factory=CacheSettings)
    orchestrator: OrchestratorSettings = field(default_factory=OrchestratorSettings)
    analysis: AnalysisSettings = field(default_factory=AnalysisSettings)

    def validate(self) -> None:
        if isinstance(self.seed, bool) or not isinstance(self.seed, int):
            raise InvalidConfigurationError(f"settings: 'seed' must be an integer, got {self.seed!r}")
        check_choice(self.strategy, STRATEGIES, "strategy", "settings")
        for section in (self.generator, self.tabu, self.annealing, self.penalties,
                        self.cache, self.orchestrator, self.analysis):
            section.validate()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'SolverSettings':
        sections = {
            'generator': GeneratorSettings,
            'tabu': TabuSettings,
            'annealing': AnnealingSettings,
            'penalties': PenaltySettings,
            'cache': CacheSettings,
            'orchestrator': OrchestratorSettings,
            'analysis': AnalysisSettings,
        }
        unknown = set(data) - set(sections) - {'seed', 'strategy'}
        if unknown:
            raise InvalidConfigurationError(f"settings have unknown keys: {sorted(unknown)}")
        settings = cls(
            seed=data.get('seed', 42),
            strategy=data.get('strategy', 'hybrid'),
            **{name: _section(section_cls, data.get(name), name)
               for name, section_cls in sections.items()},
        )
        settings.validate()
        return settings

    @classmethod
    def defaults_dict(cls) -> Dict[str, Any]:
        """Packaged defaults as a plain mapping."""
        text = importlib.resources.files("scgep").joinpath("solver_defaults.yaml").read_text()
        return yaml.safe_load(text) or {}

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None,
             overrides: Optional[Mapping[str, Any]] = None) -> 'SolverSettings':
        """
        Load settings from the packaged defaults, a YAML file and overrides.

        Parameters
        ----------
        path : str or Path, optional
            YAML file whose keys override the packaged defaults.
        overrides : Mapping, optional
            Nested mapping applied last.

        Raises
        ------
        FileNotFoundError
            If ``path`` does not exist.
        InvalidConfigurationError
            If a key is unknown or a value is out of range.
        """
        data = cls.defaults_dict()
        if path is not None:
            path = Path(path)
            if not path.exists():
                raise FileNotFoundError(f"Settings file not found: {path}")
            with open(path, "r") as f:
                user = yaml.safe_load(f) or {}
            if not isinstance(user, Mapping):
                raise InvalidConfigurationError(f"Settings file {path.name} must contain a mapping")
            data = _merge(data, user)
        if overrides:
            data = _merge(data, overrides)
        return cls.from_dict(data)

    def with_overrides(self, overrides: Mapping[str, Any]) -> 'SolverSettings':
        """New settings with a nested mapping applied on top of these."""
        return self.from_dict(_merge(dataclasses.asdict(self), overrides))

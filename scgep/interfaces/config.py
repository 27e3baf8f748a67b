# scgep/interfaces/config.py

"""
Constraint configuration for the SC-GEP solver.

This module defines the immutable input of a solve: materials, components,
technologies and zones, the planning horizon, reserve margin, RPS targets and
penalty rates. A ``ConstraintConfiguration`` is built by an external scenario
collaborator (or from a mapping / YAML document) and validated on
construction.

Design principles:
- Immutable entity records (frozen dataclasses)
- Validation runs automatically in __post_init__
- Entities are addressed by string id at the API and by integer position
  inside the solver (see ``ConstraintConfiguration.index``)
"""

import copy
import dataclasses
from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import numpy as np
import yaml

from ..constants import (
    LOAD_SHEDDING_PENALTY,
    MATERIAL_TYPES,
    RESERVE_MARGIN_PENALTY,
    RISK_LEVELS,
    RPS_PENALTY,
    TECHNOLOGY_TYPES,
)
from ..validation.schemas import (
    InvalidConfigurationError,
    check_choice,
    check_fraction,
    check_non_negative,
    check_positive,
    check_references,
    check_unique_ids,
    require_fields,
)


def _float_map(raw: Optional[Mapping[str, Any]]) -> Dict[str, float]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise InvalidConfigurationError(f"Expected a mapping, got {type(raw).__name__}")
    return {str(k): float(v) for k, v in raw.items()}


@dataclass(frozen=True)
class Material:
    """
    Upstream raw material.

    Attributes
    ----------
    id : str
        Unique material identifier.
    type : str
        One of 'critical', 'standard', 'rare_earth'.
    primary_supply : float
        Primary supply available per year (tonnes/yr).
    recovery_rate : float
        Fraction in [0, 1] recovered from retired capacity.
    stock_level : float
        Current stock (tonnes).
    cost_per_tonne : float
        Market price ($/tonne).
    geopolitical_risk : str
        One of 'low', 'medium', 'high'.
    domestic_availability : float
        Fraction of supply sourced domestically.
    """
    id: str
    type: str = "standard"
    primary_supply: float = 0.0
    recovery_rate: float = 0.0
    stock_level: float = 0.0
    cost_per_tonne: float = 0.0
    geopolitical_risk: str = "low"
    domestic_availability: float = 0.0
    name: str = ""

    def validate(self) -> None:
        ctx = f"material '{self.id}'"
        check_choice(self.type, MATERIAL_TYPES, "type", ctx)
        check_non_negative(self.primary_supply, "primary_supply", ctx)
        check_fraction(self.recovery_rate, "recovery_rate", ctx)
        check_non_negative(self.stock_level, "stock_level", ctx)
        check_non_negative(self.cost_per_tonne, "cost_per_tonne", ctx)
        check_choice(self.geopolitical_risk, RISK_LEVELS, "geopolitical_risk", ctx)
        check_fraction(self.domestic_availability, "domestic_availability", ctx)

    @property
    def total_availability(self) -> float:
        """Primary supply plus current stock (tonnes)."""
        return self.primary_supply + self.stock_level

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Material':
        require_fields(data, ["id"], "material")
        return cls(
            id=str(data["id"]),
            type=data.get("type", "standard"),
            primary_supply=float(data.get("primary_supply", 0.0)),
            recovery_rate=float(data.get("recovery_rate", 0.0)),
            stock_level=float(data.get("stock_level", 0.0)),
            cost_per_tonne=float(data.get("cost_per_tonne", 0.0)),
            geopolitical_risk=data.get("geopolitical_risk", "low"),
            domestic_availability=float(data.get("domestic_availability", 0.0)),
            name=data.get("name", ""),
        )


@dataclass(frozen=True)
class Component:
    """
    Manufactured component consumed by technologies.

    Attributes
    ----------
    id : str
        Unique component identifier.
    material_demand : dict
        material id -> tonnes per unit.
    production_capacity : float
        Units that can be produced per year.
    lead_time : float
        Manufacturing lead time (years).
    """
    id: str
    material_demand: Dict[str, float] = field(default_factory=dict)
    production_capacity: float = 0.0
    lead_time: float = 0.0
    name: str = ""

    def validate(self) -> None:
        ctx = f"component '{self.id}'"
        check_non_negative(self.production_capacity, "production_capacity", ctx)
        check_non_negative(self.lead_time, "lead_time", ctx)
        for material_id, tonnes in self.material_demand.items():
            check_non_negative(tonnes, f"material_demand[{material_id}]", ctx)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Component':
        require_fields(data, ["id", "production_capacity"], "component")
        return cls(
            id=str(data["id"]),
            material_demand=_float_map(data.get("material_demand")),
            production_capacity=float(data["production_capacity"]),
            lead_time=float(data.get("lead_time", 0.0)),
            name=data.get("name", ""),
        )


@dataclass(frozen=True)
class Technology:
    """
    Candidate generation technology.

    Attributes
    ----------
    id : str
        Unique technology identifier.
    type : str
        One of 'renewable', 'storage', 'thermal', 'nuclear'.
    component_demand : dict
        component id -> units per MW.
    capacity_density : float
        MW per km2 of land.
    lead_time : float
        Years before the technology can be built in the horizon.
    lifetime : float
        Operational lifetime (years).
    capital_cost : float
        $ per MW.
    variable_cost : float
        $ per MWh.
    elcc_factor : float
        Fraction of nameplate counted as firm capacity.
    material_intensity : float
        Aggregate tonnes of material per MW.
    manufacturing_capacity : float
        MW that can be delivered per year; 0 means unlimited.
    """
    id: str
    type: str = "renewable"
    component_demand: Dict[str, float] = field(default_factory=dict)
    capacity_density: float = 1.0
    lead_time: float = 0.0
    lifetime: float = 30.0
    capital_cost: float = 0.0
    variable_cost: float = 0.0
    elcc_factor: float = 1.0
    material_intensity: float = 0.0
    manufacturing_capacity: float = 0.0
    name: str = ""

    def validate(self) -> None:
        ctx = f"technology '{self.id}'"
        check_choice(self.type, TECHNOLOGY_TYPES, "type", ctx)
        check_positive(self.capacity_density, "capacity_density", ctx)
        check_non_negative(self.lead_time, "lead_time", ctx)
        check_positive(self.lifetime, "lifetime", ctx)
        check_non_negative(self.capital_cost, "capital_cost", ctx)
        check_non_negative(self.variable_cost, "variable_cost", ctx)
        check_fraction(self.elcc_factor, "elcc_factor", ctx)
        check_non_negative(self.material_intensity, "material_intensity", ctx)
        check_non_negative(self.manufacturing_capacity, "manufacturing_capacity", ctx)
        for component_id, units in self.component_demand.items():
            check_non_negative(units, f"component_demand[{component_id}]", ctx)

    @property
    def is_renewable(self) -> bool:
        return self.type == "renewable"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Technology':
        require_fields(data, ["id", "capacity_density", "capital_cost"], "technology")
        return cls(
            id=str(data["id"]),
            type=data.get("type", "renewable"),
            component_demand=_float_map(data.get("component_demand")),
            capacity_density=float(data["capacity_density"]),
            lead_time=float(data.get("lead_time", 0.0)),
            lifetime=float(data.get("lifetime", 30.0)),
            capital_cost=float(data["capital_cost"]),
            variable_cost=float(data.get("variable_cost", 0.0)),
            elcc_factor=float(data.get("elcc_factor", 1.0)),
            material_intensity=float(data.get("material_intensity", 0.0)),
            manufacturing_capacity=float(data.get("manufacturing_capacity", 0.0)),
            name=data.get("name", ""),
        )


@dataclass(frozen=True)
class Zone:
    """
    Spatial zone (load area) where capacity is sited.

    Attributes
    ----------
    id : str
        Unique zone identifier.
    available_land : float
        km2 available for new and existing capacity.
    peak_load : float
        Current peak load (MW).
    demand_growth : float
        Compound annual growth rate in percent (5 means 5%/yr).
    existing_capacity : dict
        technology id -> MW already installed.
    transmission_capacity : float
        Interconnection capacity (MW).
    rps_target : float
        Renewable share target in percent.
    """
    id: str
    available_land: float = 0.0
    peak_load: float = 0.0
    demand_growth: float = 0.0
    existing_capacity: Dict[str, float] = field(default_factory=dict)
    transmission_capacity: float = 0.0
    rps_target: float = 0.0
    name: str = ""

    def validate(self) -> None:
        ctx = f"zone '{self.id}'"
        check_non_negative(self.available_land, "available_land", ctx)
        check_non_negative(self.peak_load, "peak_load", ctx)
        check_non_negative(self.transmission_capacity, "transmission_capacity", ctx)
        check_non_negative(self.rps_target, "rps_target", ctx)
        if self.demand_growth <= -100:
            raise InvalidConfigurationError(f"{ctx}: 'demand_growth' must be > -100, got {self.demand_growth}")
        for tech_id, mw in self.existing_capacity.items():
            check_non_negative(mw, f"existing_capacity[{tech_id}]", ctx)

    def projected_demand(self, year: int) -> float:
        """Peak demand in planning year ``year`` (1-based) under compound growth."""
        return self.peak_load * (1.0 + self.demand_growth / 100.0) ** year

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Zone':
        require_fields(data, ["id", "available_land", "peak_load"], "zone")
        return cls(
            id=str(data["id"]),
            available_land=float(data["available_land"]),
            peak_load=float(data["peak_load"]),
            demand_growth=float(data.get("demand_growth", 0.0)),
            existing_capacity=_float_map(data.get("existing_capacity")),
            transmission_capacity=float(data.get("transmission_capacity", 0.0)),
            rps_target=float(data.get("rps_target", 0.0)),
            name=data.get("name", ""),
        )


@dataclass(frozen=True)
class CostParameters:
    """Penalty rates applied to the penalty decision variables."""
    reserve_margin_penalty: float = RESERVE_MARGIN_PENALTY
    load_shedding_penalty: float = LOAD_SHEDDING_PENALTY
    rps_penalty: float = RPS_PENALTY

    def validate(self) -> None:
        for f in dataclasses.fields(self):
            check_non_negative(getattr(self, f.name), f.name, "cost_parameters")

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> 'CostParameters':
        if not data:
            return cls()
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise InvalidConfigurationError(f"cost_parameters has unknown keys: {sorted(unknown)}")
        return cls(**{k: float(v) for k, v in data.items()})


@dataclass(frozen=True, eq=False)
class Coefficients:
    """
    Configuration data laid out as numpy arrays (index order = entity lists).

    Attributes
    ----------
    tech_component : np.ndarray
        (T, C) units of component per MW of technology.
    component_material : np.ndarray
        (C, M) tonnes of material per component unit.
    tech_material : np.ndarray
        (T, M) tonnes of material embodied per MW.
    active : np.ndarray
        (T, Y, Y) bool; active[t, b, y] when a vintage built in position b
        is operational at position y.
    retires : np.ndarray
        (T, Y, Y) bool; retires[t, b, y] when that vintage retires at y.
    buildable : np.ndarray
        (T, Y) bool; year number >= lead time.
    """
    tech_component: np.ndarray
    component_material: np.ndarray
    tech_material: np.ndarray
    active: np.ndarray
    retires: np.ndarray
    buildable: np.ndarray
    existing: np.ndarray
    capital_cost: np.ndarray
    variable_cost: np.ndarray
    capacity_density: np.ndarray
    lead_time: np.ndarray
    elcc: np.ndarray
    renewable: np.ndarray
    manufacturing_capacity: np.ndarray
    available_land: np.ndarray
    primary_supply: np.ndarray
    stock_level: np.ndarray
    recovery_rate: np.ndarray
    production_capacity: np.ndarray

    @classmethod
    def from_config(cls, config: 'ConstraintConfiguration') -> 'Coefficients':
        n_t, n_z, n_y = config.shape
        n_c, n_m = len(config.components), len(config.materials)
        c_idx = {c.id: i for i, c in enumerate(config.components)}
        m_idx = {m.id: i for i, m in enumerate(config.materials)}
        t_idx = {t.id: i for i, t in enumerate(config.technologies)}

        tech_component = np.zeros((n_t, n_c))
        for t, tech in enumerate(config.technologies):
            for component_id, units in tech.component_demand.items():
                tech_component[t, c_idx[component_id]] = units

        component_material = np.zeros((n_c, n_m))
        for c, component in enumerate(config.components):
            for material_id, tonnes in component.material_demand.items():
                component_material[c, m_idx[material_id]] = tonnes

        years = np.arange(1, n_y + 1)
        age = years[None, :] - years[:, None]  # age[b, y] = y - b
        lifetimes = np.array([t.lifetime for t in config.technologies], dtype=float)
        active = (age[None, :, :] >= 0) & (age[None, :, :] < lifetimes[:, None, None])
        retires = age[None, :, :] == np.ceil(lifetimes)[:, None, None]
        lead_time = np.array([t.lead_time for t in config.technologies], dtype=float)

        existing = np.zeros((n_t, n_z))
        for z, zone in enumerate(config.zones):
            for tech_id, mw in zone.existing_capacity.items():
                existing[t_idx[tech_id], z] = mw

        return cls(
            tech_component=tech_component,
            component_material=component_material,
            tech_material=tech_component @ component_material,
            active=active,
            retires=retires,
            buildable=years[None, :] >= lead_time[:, None],
            existing=existing,
            capital_cost=np.array([t.capital_cost for t in config.technologies], dtype=float),
            variable_cost=np.array([t.variable_cost for t in config.technologies], dtype=float),
            capacity_density=np.array([t.capacity_density for t in config.technologies], dtype=float),
            lead_time=lead_time,
            elcc=np.array([t.elcc_factor for t in config.technologies], dtype=float),
            renewable=np.array([t.is_renewable for t in config.technologies], dtype=bool),
            manufacturing_capacity=np.array(
                [t.manufacturing_capacity for t in config.technologies], dtype=float),
            available_land=np.array([z.available_land for z in config.zones], dtype=float),
            primary_supply=np.array([m.primary_supply for m in config.materials], dtype=float),
            stock_level=np.array([m.stock_level for m in config.materials], dtype=float),
            recovery_rate=np.array([m.recovery_rate for m in config.materials], dtype=float),
            production_capacity=np.array(
                [c.production_capacity for c in config.components], dtype=float),
        )


@dataclass(frozen=True)
class ConstraintConfiguration:
    """
    Complete input of an SC-GEP solve.

    Attributes
    ----------
    materials : list of Material
    components : list of Component
    technologies : list of Technology
    zones : list of Zone
    planning_horizon : int
        Number of planning years; years are numbered 1..planning_horizon.
    reserve_margin : float
        Planning reserve margin in percent.
    rps_targets : dict
        technology id -> target share in percent.
    cost_parameters : CostParameters
        Penalty rates used by the objective.
    metadata : dict
        Free-form metadata (region, source, scenario label).

    Examples
    --------
    >>> config = ConstraintConfiguration.from_yaml('system.yaml')
    >>> config.index('technology', 'solar_pv')
    0

    Notes
    -----
    - Validation runs automatically unless _skip_validation=True
    - Use ``copy()`` to get a private deep copy for a solve
    - Use ``with_updates()`` to derive a modified configuration
    """
    materials: List[Material] = field(default_factory=list)
    components: List[Component] = field(default_factory=list)
    technologies: List[Technology] = field(default_factory=list)
    zones: List[Zone] = field(default_factory=list)
    planning_horizon: int = 1
    reserve_margin: float = 0.0
    rps_targets: Dict[str, float] = field(default_factory=dict)
    cost_parameters: CostParameters = field(default_factory=CostParameters)
    metadata: Dict[str, Any] = field(default_factory=dict)

    _skip_validation: bool = field(default=False, repr=False, compare=False)

    def __post_init__(self):
        if not self._skip_validation:
            self.validate()

    def validate(self) -> None:
        """
        Validate entity records and cross references.

        Checks:
        - At least one technology and one zone
        - planning_horizon is a positive integer
        - Entity ids are unique within each list
        - Component bills of materials reference known materials
        - Technology component demands reference known components
        - Existing capacity and RPS targets reference known technologies

        Raises
        ------
        InvalidConfigurationError
            If any check fails.
        """
        if not self.technologies:
            raise InvalidConfigurationError("Configuration must define at least one technology")
        if not self.zones:
            raise InvalidConfigurationError("Configuration must define at least one zone")
        if isinstance(self.planning_horizon, bool) or not isinstance(self.planning_horizon, int) \
                or self.planning_horizon < 1:
            raise InvalidConfigurationError(
                f"planning_horizon must be a positive integer, got {self.planning_horizon!r}"
            )
        check_non_negative(self.reserve_margin, "reserve_margin", "configuration")

        check_unique_ids([m.id for m in self.materials], "material")
        check_unique_ids([c.id for c in self.components], "component")
        check_unique_ids([t.id for t in self.technologies], "technology")
        check_unique_ids([z.id for z in self.zones], "zone")

        for entity in (*self.materials, *self.components, *self.technologies, *self.zones):
            entity.validate()
        self.cost_parameters.validate()

        material_ids = self.material_ids
        component_ids = self.component_ids
        technology_ids = self.technology_ids
        for component in self.components:
            check_references(component.material_demand, material_ids, f"component '{component.id}'")
        for tech in self.technologies:
            check_references(tech.component_demand, component_ids, f"technology '{tech.id}'")
        for zone in self.zones:
            check_references(zone.existing_capacity, technology_ids, f"zone '{zone.id}'")
        check_references(self.rps_targets, technology_ids, "rps_targets")
        for tech_id, share in self.rps_targets.items():
            check_non_negative(share, f"rps_targets[{tech_id}]", "configuration")

    # =========================================================================
    # Index helpers
    # =========================================================================

    @property
    def material_ids(self) -> List[str]:
        return [m.id for m in self.materials]

    @property
    def component_ids(self) -> List[str]:
        return [c.id for c in self.components]

    @property
    def technology_ids(self) -> List[str]:
        return [t.id for t in self.technologies]

    @property
    def zone_ids(self) -> List[str]:
        return [z.id for z in self.zones]

    @property
    def years(self) -> List[int]:
        """Planning years, 1-based."""
        return list(range(1, self.planning_horizon + 1))

    @cached_property
    def _indices(self) -> Dict[str, Dict[str, int]]:
        return {
            'material': {m.id: i for i, m in enumerate(self.materials)},
            'component': {c.id: i for i, c in enumerate(self.components)},
            'technology': {t.id: i for i, t in enumerate(self.technologies)},
            'zone': {z.id: i for i, z in enumerate(self.zones)},
        }

    def index(self, kind: str, entity_id: str) -> int:
        """
        Position of an entity in its list.

        Parameters
        ----------
        kind : str
            'material', 'component', 'technology' or 'zone'.
        entity_id : str
            Entity identifier.

        Raises
        ------
        KeyError
            If the kind or id is unknown.
        """
        try:
            return self._indices[kind][entity_id]
        except KeyError:
            raise KeyError(f"Unknown {kind} id: {entity_id!r}") from None

    def year_index(self, year: int) -> int:
        if not 1 <= year <= self.planning_horizon:
            raise KeyError(f"Year {year} outside planning horizon 1..{self.planning_horizon}")
        return year - 1

    @property
    def shape(self) -> Tuple[int, int, int]:
        """(technologies, zones, years) shape of the capacity decision arrays."""
        return len(self.technologies), len(self.zones), self.planning_horizon

    @cached_property
    def coefficients(self) -> 'Coefficients':
        """Dense coefficient arrays used by derivation, objective and checks."""
        return Coefficients.from_config(self)

    # =========================================================================
    # Copy and update
    # =========================================================================

    def copy(self) -> 'ConstraintConfiguration':
        """Private deep copy for a single solve."""
        return copy.deepcopy(self)

    def with_updates(self, **changes) -> 'ConstraintConfiguration':
        """Return a validated copy with the given top-level fields replaced."""
        return dataclasses.replace(copy.deepcopy(self), **changes)

    # =========================================================================
    # Loaders
    # =========================================================================

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], validate: bool = True) -> 'ConstraintConfiguration':
        """
        Build a configuration from a plain mapping.

        Parameters
        ----------
        data : Mapping
            Keys: materials, components, technologies, zones (lists of
            records), planning_horizon, reserve_margin, rps_targets,
            cost_parameters, metadata.
        validate : bool, optional
            If True, run validation after construction (default: True).

        Raises
        ------
        InvalidConfigurationError
            If the mapping is malformed.
        """
        require_fields(data, ["technologies", "zones", "planning_horizon"], "configuration")
        for key in ("materials", "components", "technologies", "zones"):
            value = data.get(key) or []
            if not isinstance(value, list):
                raise InvalidConfigurationError(f"'{key}' must be a list, got {type(value).__name__}")
        horizon = data["planning_horizon"]
        if isinstance(horizon, float) and horizon.is_integer():
            horizon = int(horizon)
        return cls(
            materials=[Material.from_dict(m) for m in data.get("materials") or []],
            components=[Component.from_dict(c) for c in data.get("components") or []],
            technologies=[Technology.from_dict(t) for t in data["technologies"]],
            zones=[Zone.from_dict(z) for z in data["zones"]],
            planning_horizon=horizon,
            reserve_margin=float(data.get("reserve_margin", 0.0)),
            rps_targets=_float_map(data.get("rps_targets")),
            cost_parameters=CostParameters.from_dict(data.get("cost_parameters")),
            metadata=dict(data.get("metadata") or {}),
            _skip_validation=not validate,
        )

    @classmethod
    def from_yaml(cls, path: Union[str, Path], validate: bool = True) -> 'ConstraintConfiguration':
        """
        Load a configuration from a YAML document.

        Raises
        ------
        FileNotFoundError
            If the file does not exist.
        InvalidConfigurationError
            If the document is malformed.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        if not isinstance(data, Mapping):
            raise InvalidConfigurationError(f"Configuration file {path.name} must contain a mapping")
        return cls.from_dict(data, validate=validate)

    def to_dict(self) -> Dict[str, Any]:
        """Plain-mapping form, the inverse of ``from_dict``."""
        return {
            "materials": [dataclasses.asdict(m) for m in self.materials],
            "components": [dataclasses.asdict(c) for c in self.components],
            "technologies": [dataclasses.asdict(t) for t in self.technologies],
            "zones": [dataclasses.asdict(z) for z in self.zones],
            "planning_horizon": self.planning_horizon,
            "reserve_margin": self.reserve_margin,
            "rps_targets": dict(self.rps_targets),
            "cost_parameters": dataclasses.asdict(self.cost_parameters),
            "metadata": dict(self.metadata),
        }

# scgep/interfaces/results.py

"""
Post-solve diagnostic containers.

This module defines the records produced by the bottleneck and sensitivity
analyses. Each record is a frozen dataclass; the report containers expose
pandas views for tabulation and ranking.

    Solution  (decision variables)
         |
    BottleneckReport / SensitivityResult  (diagnostics)
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pandas as pd

from ..constants import SEVERITY_RANK


# ------------------------------------------------------------------
# Bottleneck records
# ------------------------------------------------------------------

@dataclass(frozen=True)
class BottleneckRecord:
    """
    Utilization of one material or one (zone, technology) land budget.

    Attributes
    ----------
    kind : str
        'material' or 'spatial'.
    material : str, optional
        Material id (material records).
    zone : str, optional
        Zone id (spatial records).
    technology : str, optional
        Technology id (spatial records).
    utilization : float
        Maximum utilization ratio over the horizon (1.0 = fully used).
    peak_year : int, optional
        Year in which the maximum occurs.
    constrained : bool
        True when the ratio crosses the binding threshold.
    severity : str
        'low', 'medium', 'high' or 'critical'.
    narrative : str
        Human-readable description of the finding.
    """
    kind: str
    utilization: float
    constrained: bool
    severity: str
    narrative: str
    material: Optional[str] = None
    zone: Optional[str] = None
    technology: Optional[str] = None
    peak_year: Optional[int] = None

    @property
    def label(self) -> str:
        if self.kind == 'material':
            return f"Material: {self.material}"
        return f"Zone: {self.zone} ({self.technology})"

    @property
    def severity_rank(self) -> int:
        return SEVERITY_RANK[self.severity]


@dataclass(frozen=True)
class TechnologyDelay:
    """
    Commissioning delay of a technology in a zone.

    Attributes
    ----------
    technology : str
    zone : str
    planned_year : int
        First year the zone's demand called for new capacity.
    actual_year : int, optional
        First year the technology was built; None if never built.
    delay_reason : str
        'lead time', 'supply chain' or 'not built within horizon'.
    """
    technology: str
    zone: str
    planned_year: int
    actual_year: Optional[int]
    delay_reason: str

    @property
    def delay_years(self) -> Optional[int]:
        if self.actual_year is None:
            return None
        return self.actual_year - self.planned_year


@dataclass(frozen=True)
class Recommendation:
    type: str
    priority: str
    description: str
    impact: str


# ------------------------------------------------------------------
# BottleneckReport
# ------------------------------------------------------------------

@dataclass
class BottleneckReport:
    """
    Result of ``BottleneckAnalyzer.analyze``.

    Attributes
    ----------
    material_bottlenecks : list of BottleneckRecord
        One record per material.
    spatial_constraints : list of BottleneckRecord
        One record per (zone, technology).
    technology_delays : list of TechnologyDelay
        Late or missing builds.
    recommendations : list of Recommendation
    critical_path : list of str
        Ranked description of binding constraints and delays.
    """
    material_bottlenecks: List[BottleneckRecord] = field(default_factory=list)
    spatial_constraints: List[BottleneckRecord] = field(default_factory=list)
    technology_delays: List[TechnologyDelay] = field(default_factory=list)
    recommendations: List[Recommendation] = field(default_factory=list)
    critical_path: List[str] = field(default_factory=list)

    @property
    def constrained(self) -> List[BottleneckRecord]:
        """Constrained records, most severe and most utilized first."""
        records = [r for r in self.material_bottlenecks + self.spatial_constraints if r.constrained]
        return sorted(records, key=lambda r: (r.severity_rank, r.utilization), reverse=True)

    @property
    def has_bottlenecks(self) -> bool:
        return bool(self.constrained) or bool(self.technology_delays)

    def to_dataframe(self) -> pd.DataFrame:
        """
        One row per material or spatial record.

        Returns
        -------
        pd.DataFrame
            Columns: KIND, MATERIAL, ZONE, TECHNOLOGY, UTILIZATION,
            PEAK_YEAR, CONSTRAINED, SEVERITY, NARRATIVE.
        """
        rows = [{
            'KIND': r.kind,
            'MATERIAL': r.material,
            'ZONE': r.zone,
            'TECHNOLOGY': r.technology,
            'UTILIZATION': r.utilization,
            'PEAK_YEAR': r.peak_year,
            'CONSTRAINED': r.constrained,
            'SEVERITY': r.severity,
            'NARRATIVE': r.narrative,
        } for r in self.material_bottlenecks + self.spatial_constraints]
        columns = ['KIND', 'MATERIAL', 'ZONE', 'TECHNOLOGY', 'UTILIZATION',
                   'PEAK_YEAR', 'CONSTRAINED', 'SEVERITY', 'NARRATIVE']
        return pd.DataFrame(rows, columns=columns)

    def delays_frame(self) -> pd.DataFrame:
        columns = ['TECHNOLOGY', 'ZONE', 'PLANNED_YEAR', 'ACTUAL_YEAR', 'DELAY_REASON']
        rows = [{
            'TECHNOLOGY': d.technology,
            'ZONE': d.zone,
            'PLANNED_YEAR': d.planned_year,
            'ACTUAL_YEAR': d.actual_year,
            'DELAY_REASON': d.delay_reason,
        } for d in self.technology_delays]
        return pd.DataFrame(rows, columns=columns)


# ------------------------------------------------------------------
# Sensitivity
# ------------------------------------------------------------------

@dataclass
class SensitivityResult:
    """
    Objective elasticity with respect to material primary supply.

    Attributes
    ----------
    elasticities : dict
        material id -> elasticity, ordered by absolute value (largest first).
    baseline_objective : float
    perturbed_objectives : dict
        material id -> objective after the perturbation.
    perturbation : float
        Fractional supply increase applied (0.1 = +10%).
    method : str
        'resolve' or 'approximate'.
    """
    elasticities: Dict[str, float] = field(default_factory=dict)
    baseline_objective: float = 0.0
    perturbed_objectives: Dict[str, float] = field(default_factory=dict)
    perturbation: float = 0.1
    method: str = "resolve"

    def ranking(self) -> List[str]:
        """Material ids, most cost-sensitive first."""
        return list(self.elasticities)

    def to_series(self) -> pd.Series:
        return pd.Series(self.elasticities, name='ELASTICITY', dtype=float)


@dataclass
class SensitivityBottleneckResult:
    """Bottleneck report combined with supply sensitivity."""
    bottlenecks: BottleneckReport
    sensitivity: Dict[str, float]
    critical_path: List[str]

# scgep/analysis/bottlenecks.py

"""
Post-solve bottleneck diagnostics.

Three kinds of findings are reported for a solution:

- material bottlenecks: peak utilization / (primary supply + stock)
- spatial constraints: peak land required / allocated land, per (zone, technology)
- technology delays: first build later than the year demand called for it

and folded into a ranked critical path and a short list of recommendations.
"""

import logging
from typing import List

import numpy as np

from ..constants import (
    DEMAND_TRIGGER_RATIO,
    MATERIAL_CONSTRAINED_RATIO,
    SPATIAL_CONSTRAINED_RATIO,
    classify_severity,
)
from ..interfaces.config import ConstraintConfiguration
from ..interfaces.results import BottleneckRecord, BottleneckReport, Recommendation, TechnologyDelay
from ..interfaces.solution import Solution
from ..optimization.objective import projected_demand
from ..validation.constraints import effective_land, land_required

logger = logging.getLogger(__name__)


def _ratio(used: np.ndarray, available: np.ndarray) -> np.ndarray:
    """Elementwise used / available; nothing available but something used is inf."""
    with np.errstate(divide='ignore', invalid='ignore'):
        ratio = np.where(available > 0, used / np.where(available > 0, available, 1.0), np.inf)
    return np.where(used > 0, ratio, 0.0)


class BottleneckAnalyzer:
    """
    Identify binding constraints of a solved configuration.

    Parameters
    ----------
    config : ConstraintConfiguration
        Configuration the solution was produced for.
    material_threshold : float, optional
        Ratio above which a material is constrained (default: 0.90).
    spatial_threshold : float, optional
        Ratio above which a land budget is constrained (default: 0.95).
    demand_trigger : float, optional
        Multiple of the current peak at which a zone plans new capacity
        (default: 1.10, the generator's trigger).
    """

    def __init__(self, config: ConstraintConfiguration,
                 material_threshold: float = MATERIAL_CONSTRAINED_RATIO,
                 spatial_threshold: float = SPATIAL_CONSTRAINED_RATIO,
                 demand_trigger: float = DEMAND_TRIGGER_RATIO):
        self.config = config
        self.material_threshold = material_threshold
        self.spatial_threshold = spatial_threshold
        self.demand_trigger = demand_trigger

    def material_bottlenecks(self, solution: Solution) -> List[BottleneckRecord]:
        """One record per material, peak ratio over the horizon."""
        coeffs = self.config.coefficients
        available = coeffs.primary_supply[:, None] + solution.material_stock
        ratios = _ratio(solution.material_utilization, available)
        records = []
        for m, material in enumerate(self.config.materials):
            peak = int(np.argmax(ratios[m]))
            ratio = float(ratios[m, peak])
            severity = classify_severity(ratio)
            records.append(BottleneckRecord(
                kind='material',
                material=material.id,
                utilization=ratio,
                peak_year=peak + 1,
                constrained=ratio > self.material_threshold,
                severity=severity,
                narrative=(f"{material.id} peaks at {ratio:.1%} of available supply "
                           f"in year {peak + 1} ({severity})"),
            ))
        return records

    def spatial_constraints(self, solution: Solution) -> List[BottleneckRecord]:
        """One record per (zone, technology), peak land ratio over the horizon."""
        ratios = _ratio(land_required(solution, self.config), effective_land(solution, self.config))
        records = []
        for z, zone in enumerate(self.config.zones):
            for t, tech in enumerate(self.config.technologies):
                peak = int(np.argmax(ratios[t, z]))
                ratio = float(ratios[t, z, peak])
                severity = classify_severity(ratio)
                records.append(BottleneckRecord(
                    kind='spatial',
                    zone=zone.id,
                    technology=tech.id,
                    utilization=ratio,
                    peak_year=peak + 1,
                    constrained=ratio > self.spatial_threshold,
                    severity=severity,
                    narrative=(f"{tech.id} in {zone.id} uses {ratio:.1%} of allocated land "
                               f"in year {peak + 1} ({severity})"),
                ))
        return records

    def technology_delays(self, solution: Solution) -> List[TechnologyDelay]:
        """
        Builds that came later than demand required, or never came.

        The planned year of a zone is the first year its demand exceeds
        ``demand_trigger`` times the current peak; zones that never cross it
        produce no records.
        """
        demand = projected_demand(self.config)
        delays = []
        for z, zone in enumerate(self.config.zones):
            crossing = np.flatnonzero(demand[z] > self.demand_trigger * zone.peak_load)
            if not crossing.size:
                continue
            planned = int(crossing[0]) + 1
            for tech in self.config.technologies:
                actual = solution.first_build_year(tech.id, zone.id)
                if actual is None:
                    reason = 'not built within horizon'
                elif actual > planned:
                    reason = 'lead time' if planned < tech.lead_time else 'supply chain'
                else:
                    continue
                delays.append(TechnologyDelay(tech.id, zone.id, planned, actual, reason))
        return delays

    def critical_path(self, report: BottleneckReport) -> List[str]:
        """Constrained records (severity, then utilization) followed by delays (longest first)."""
        path = []
        for record in report.constrained:
            if record.kind == 'material':
                path.append(f"Material: {record.material} -> {record.utilization:.1%} utilized "
                            f"({record.severity})")
            else:
                path.append(f"Zone: {record.zone} ({record.technology}) -> "
                            f"{record.utilization:.1%} of land ({record.severity})")
        horizon = self.config.planning_horizon
        delays = sorted(report.technology_delays,
                        key=lambda d: horizon + 1 if d.delay_years is None else d.delay_years,
                        reverse=True)
        for delay in delays:
            if delay.actual_year is None:
                path.append(f"Technology: {delay.technology} in {delay.zone} -> "
                            f"not built within horizon (planned year {delay.planned_year})")
            else:
                path.append(f"Technology: {delay.technology} in {delay.zone} -> "
                            f"delayed {delay.delay_years} years ({delay.delay_reason})")
        return path

    @staticmethod
    def recommendations(report: BottleneckReport) -> List[Recommendation]:
        recommendations = []
        materials = [r.material for r in report.material_bottlenecks if r.constrained]
        if materials:
            recommendations.append(Recommendation(
                type='material_diversification',
                priority='high',
                description=f"Critical bottlenecks detected in {', '.join(materials)}",
                impact='Reduce supply chain risk through alternative sourcing and recycling',
            ))
        spatial = [f"{r.zone} ({r.technology})" for r in report.spatial_constraints if r.constrained]
        if spatial:
            recommendations.append(Recommendation(
                type='spatial_optimization',
                priority='medium',
                description=f"Land constraints detected in {', '.join(spatial)}",
                impact='Improve land utilization through technology mix optimization',
            ))
        if report.technology_delays:
            technologies = sorted({d.technology for d in report.technology_delays})
            recommendations.append(Recommendation(
                type='lead_time_mitigation',
                priority='medium',
                description=f"Delayed or missing builds for {', '.join(technologies)}",
                impact='Secure manufacturing slots and permits ahead of demand growth',
            ))
        return recommendations

    def analyze(self, solution: Solution) -> BottleneckReport:
        """
        Full bottleneck report of a solution.

        Raises
        ------
        ValueError
            If the solution was not produced for this configuration's layout.
        """
        if not solution.is_compatible(self.config):
            raise ValueError("Solution layout does not match the configuration")
        report = BottleneckReport(
            material_bottlenecks=self.material_bottlenecks(solution),
            spatial_constraints=self.spatial_constraints(solution),
            technology_delays=self.technology_delays(solution),
        )
        report.critical_path = self.critical_path(report)
        report.recommendations = self.recommendations(report)
        logger.info(f"Bottleneck analysis: {len(report.constrained)} constrained, "
                    f"{len(report.technology_delays)} delays")
        return report

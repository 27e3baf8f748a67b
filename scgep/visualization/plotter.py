# scgep/visualization/plotter.py

"""
Diagnostic plots for SC-GEP results.

- ``plot_convergence`` – best objective per search iteration
- ``plot_bottlenecks`` – horizontal bars of material and land utilization,
  coloured by severity, with the binding thresholds marked
- ``plot_capacity`` – stacked new capacity per year by technology

Every function draws on ``ax`` when given, otherwise on a new figure, and
saves to ``save_path`` when given. The figure and axes are returned.
"""

from typing import Optional, Tuple

import numpy as np

from ..constants import MATERIAL_CONSTRAINED_RATIO, SPATIAL_CONSTRAINED_RATIO
from ..interfaces.results import BottleneckReport
from ..interfaces.solution import Solution

#: Colour-blind-safe palette (Wong, 2011)
CB_PALETTE = ['#56B4E9', '#D55E00', '#009E73', '#F0E442', '#0072B2', '#CC79A7', '#E69F00']

SEVERITY_COLORS = {
    'low': '#009E73',
    'medium': '#F0E442',
    'high': '#E69F00',
    'critical': '#D55E00',
}


def _figure(ax, figsize):
    import matplotlib.pyplot as plt

    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure
    return fig, ax


def _save(fig, save_path: Optional[str]) -> None:
    if save_path:
        fig.savefig(save_path, bbox_inches='tight')


def plot_convergence(solution: Solution, ax=None, figsize: Tuple[float, float] = (10, 6),
                     save_path: Optional[str] = None):
    """
    Best objective over the search iterations of a solution.

    Raises
    ------
    ValueError
        If the solution carries no search trace.
    """
    trace = solution.diagnostics.get('search', {}).get('trace')
    if not trace:
        raise ValueError("Solution has no search trace to plot")

    fig, ax = _figure(ax, figsize)
    iterations = np.arange(1, len(trace) + 1)
    ax.plot(iterations, trace, color=CB_PALETTE[4], linewidth=2)
    ax.set_xlabel('Iteration')
    ax.set_ylabel('Best objective ($)')
    title = 'Search convergence'
    if solution.scenario_id:
        title += f" ({solution.scenario_id})"
    ax.set_title(title)
    ax.grid(True, alpha=0.3)
    _save(fig, save_path)
    return fig, ax


def plot_bottlenecks(report: BottleneckReport, ax=None, figsize: Tuple[float, float] = (10, 6),
                     save_path: Optional[str] = None):
    """Utilization ratio of every material and land budget, most utilized on top."""
    records = report.material_bottlenecks + report.spatial_constraints
    if not records:
        raise ValueError("Bottleneck report has no records to plot")

    fig, ax = _figure(ax, figsize)
    records = sorted(records, key=lambda r: r.utilization)
    labels = [r.label for r in records]
    values = [min(r.utilization, 2.0) for r in records]
    colors = [SEVERITY_COLORS[r.severity] for r in records]
    ax.barh(labels, values, color=colors, edgecolor='white')
    ax.axvline(MATERIAL_CONSTRAINED_RATIO, color='grey', linestyle='--', linewidth=1,
               label=f'material limit ({MATERIAL_CONSTRAINED_RATIO:.0%})')
    ax.axvline(SPATIAL_CONSTRAINED_RATIO, color='black', linestyle=':', linewidth=1,
               label=f'land limit ({SPATIAL_CONSTRAINED_RATIO:.0%})')
    ax.set_xlabel('Peak utilization ratio')
    ax.set_title('Supply chain and land bottlenecks')
    ax.legend(loc='lower right')
    _save(fig, save_path)
    return fig, ax


def plot_capacity(solution: Solution, ax=None, figsize: Tuple[float, float] = (10, 6),
                  save_path: Optional[str] = None):
    fig, ax = _figure(ax, figsize)
    per_year = solution.investment.sum(axis=1)
    years = [str(y) for y in solution.years]
    bottom = np.zeros(len(years))
    for t, tech in enumerate(solution.technology_ids):
        ax.bar(years, per_year[t], bottom=bottom, label=tech,
               color=CB_PALETTE[t % len(CB_PALETTE)], edgecolor='white', linewidth=0.5)
        bottom += per_year[t]
    ax.set_xlabel('Planning year')
    ax.set_ylabel('New capacity (MW)')
    ax.set_title('Capacity investment')
    ax.legend()
    _save(fig, save_path)
    return fig, ax

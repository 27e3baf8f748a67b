"""
scgep/__main__.py

Entry point for the SC-GEP solver CLI.

    python -m scgep --config system.yaml --scenario baseline --scenario high_demand
"""

import argparse
import logging
import sys

from .interfaces.config import ConstraintConfiguration
from .run import SCGEPSolver, compare_solutions
from .settings import STRATEGIES, SolverSettings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Supply-chain-constrained generation expansion planning CLI"
    )
    parser.add_argument("--config", type=str, required=True, help="Path to the system configuration YAML.")
    parser.add_argument("--settings", type=str, help="Path to a solver settings YAML.")
    parser.add_argument("--scenario", action="append", dest="scenarios",
                        help="Scenario to solve (repeatable). Omit to solve the configuration as given.")
    parser.add_argument("--strategy", choices=STRATEGIES, help="Search strategy.")
    parser.add_argument("--seed", type=int, help="Random seed of the search.")
    parser.add_argument("--loglevel", type=str, default="INFO", help="Set logging level.")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.loglevel.upper(),
                        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    overrides = {}
    if args.strategy:
        overrides['strategy'] = args.strategy
    if args.seed is not None:
        overrides['seed'] = args.seed
    settings = SolverSettings.load(args.settings, overrides=overrides)
    config = ConstraintConfiguration.from_yaml(args.config)
    solver = SCGEPSolver(settings)

    if args.scenarios:
        results = solver.solve_multi_scenario(config, args.scenarios)
    else:
        results = {'default': solver.solve(config)}
    print(compare_solutions(results).to_string())

    for scenario_id, solution in results.items():
        if not solution.feasibility:
            continue
        scenario_config = config if scenario_id == 'default' else solver.registry.apply(config, scenario_id)
        report = solver.analyze_bottlenecks(solution, scenario_config)
        print(f"\nCritical path ({scenario_id}):")
        for step in report.critical_path or ["no binding constraints"]:
            print(f"  {step}")

    return 0 if all(s.feasibility for s in results.values()) else 1


if __name__ == "__main__":
    sys.exit(main())

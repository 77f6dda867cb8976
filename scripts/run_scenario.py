#!/usr/bin/env python3
"""
Run a catalog scenario through the genetic optimizer.

Usage:
    python scripts/run_scenario.py <scenario_id> [options]
    python scripts/run_scenario.py uav-wing --generations 50 --seed 1
    python scripts/run_scenario.py --list

Writes to the output directory:
1. snapshot.json        - best design and fitness history
2. best.stl             - best geometry (binary STL)
3. fitness_history.png  - best and mean fitness per generation
"""

import argparse
import logging
import sys
from pathlib import Path

from aeroevolve.geometry.parametric_shapes import MeshResolution
from aeroevolve.geometry.stl import save_stl
from aeroevolve.optimization.genetic import GAConfig, GeneticAlgorithm
from aeroevolve.optimization.objective import build_objective
from aeroevolve.scenarios import UnknownScenarioError, get_scenario, list_scenarios
from aeroevolve.session import SessionSnapshot, save_snapshot
from aeroevolve.visualization.fitness_history import plot_fitness_history


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Evolve a scenario design")
    parser.add_argument("scenario", nargs="?", help="scenario id (see --list)")
    parser.add_argument("--list", action="store_true", help="list scenarios and exit")
    parser.add_argument("--generations", type=int, default=20)
    parser.add_argument("--population", type=int, default=30)
    parser.add_argument("--mutation-rate", type=float, default=0.15)
    parser.add_argument("--crossover-rate", type=float, default=0.7)
    parser.add_argument("--elitism", type=int, default=2)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--jobs", type=int, default=1, help="parallel evaluations (-1 = all cores but one)")
    parser.add_argument("--coarse", action="store_true", help="use the coarse mesh resolution")
    parser.add_argument("--no-constraints", action="store_true")
    parser.add_argument("--output", type=Path, default=Path("results"))
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.list or not args.scenario:
        for s in list_scenarios():
            print(f"{s.id:18s} {s.shape_family.value:6s} {s.name}")
        return 0

    try:
        scenario = get_scenario(args.scenario)
    except UnknownScenarioError as e:
        print(f"Error: {e}")
        return 1

    config = GAConfig(
        population_size=args.population,
        mutation_rate=args.mutation_rate,
        crossover_rate=args.crossover_rate,
        elitism_count=args.elitism,
        n_jobs=args.jobs,
        seed=args.seed,
    )
    resolution = MeshResolution.coarse() if args.coarse else MeshResolution()

    ga = GeneticAlgorithm(config)
    if not args.no_constraints:
        for constraint in scenario.build_constraints():
            ga.add_constraint(constraint)
    ga.initialize_population(scenario.genes)
    objective = build_objective(scenario, resolution=resolution)

    print(f"Running '{scenario.name}' for {args.generations} generations")
    for _ in range(args.generations):
        ga.evolve(objective)
        print(f"  gen {ga.generation:4d}  best {ga.best.fitness:12.6g}  "
              f"mean {ga.mean_fitness_history[-1]:12.6g}")

    out_dir = args.output / scenario.id
    out_dir.mkdir(parents=True, exist_ok=True)

    snapshot = SessionSnapshot.from_algorithm(scenario.id, ga)
    save_snapshot(snapshot, out_dir / "snapshot.json")
    if ga.best is not None and ga.best.mesh is not None:
        save_stl(ga.best.mesh, out_dir / "best.stl")
    plot_fitness_history(
        ga.fitness_history,
        out_dir / "fitness_history.png",
        mean_history=ga.mean_fitness_history,
        title=scenario.name,
    )

    if snapshot.best_fitness is not None:
        print(f"\nBest design (fitness {snapshot.best_fitness:.6g}):")
        for name, value in snapshot.best_values().items():
            print(f"  {name:16s} {value:.5g}")
    print(f"Results written to {out_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
Genetic Algorithm Engine

Population-based optimizer over bounded real-valued chromosomes:
tournament selection, per-gene blend crossover, bounded uniform
mutation, elitism and additive constraint penalties.

The objective is opaque: it maps a chromosome to an ObjectiveResult
whose optional side channel (mesh, drag, lift, Cp) is cached on the
individual for display and for constraint measurements.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Union
import numpy as np

from ..genes import Chromosome, Gene, clone_chromosome, random_chromosome
from ..geometry.mesh import SurfaceMesh
from .constraints import Constraint
from .parallel import map_evaluations

logger = logging.getLogger(__name__)

INVALID_FITNESS = -1e9


class PopulationNotInitializedError(RuntimeError):
    """evolve() called before initialize_population()."""


@dataclass
class GAConfig:
    """Configuration for genetic algorithm runs."""

    population_size: int = 50
    mutation_rate: float = 0.1      # per-gene probability
    crossover_rate: float = 0.7     # per-gene blend probability
    elitism_count: int = 2          # top individuals copied unchanged
    tournament_size: int = 3
    mutation_scale: float = 0.2     # perturbation spans this fraction of the gene range
    n_jobs: int = 1                 # parallel evaluations (-1 = all cores but one)
    seed: Optional[int] = None

    def __post_init__(self):
        if self.population_size < 1:
            raise ValueError(f"population_size must be >= 1, got {self.population_size}")
        for name in ('mutation_rate', 'crossover_rate'):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [0, 1], got {value}")
        if not 0 <= self.elitism_count <= self.population_size:
            raise ValueError(
                f"elitism_count must be in [0, population_size], got {self.elitism_count}"
            )
        if self.tournament_size < 1:
            raise ValueError(f"tournament_size must be >= 1, got {self.tournament_size}")
        if self.mutation_scale < 0:
            raise ValueError(f"mutation_scale must be >= 0, got {self.mutation_scale}")
        if self.n_jobs == 0 or self.n_jobs < -1:
            raise ValueError(f"n_jobs must be -1 or >= 1, got {self.n_jobs}")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize config to dictionary."""
        return {
            'population_size': self.population_size,
            'mutation_rate': self.mutation_rate,
            'crossover_rate': self.crossover_rate,
            'elitism_count': self.elitism_count,
            'tournament_size': self.tournament_size,
            'mutation_scale': self.mutation_scale,
            'n_jobs': self.n_jobs,
            'seed': self.seed,
        }


@dataclass
class SideChannel:
    """Optional outputs of one objective call, kept for display."""
    mesh: Optional[SurfaceMesh] = None
    drag: Optional[float] = None
    lift: Optional[float] = None
    pressure_coefficients: Optional[np.ndarray] = None


@dataclass
class ObjectiveResult:
    fitness: float
    side_channel: Optional[SideChannel] = None


Objective = Callable[[Chromosome], Union[ObjectiveResult, float]]


@dataclass
class Individual:
    """One chromosome plus the outputs of its last evaluation."""
    genes: Chromosome
    fitness: float = 0.0
    evaluated: bool = False
    mesh: Optional[SurfaceMesh] = field(default=None, repr=False)
    drag: Optional[float] = None
    lift: Optional[float] = None
    pressure_coefficients: Optional[np.ndarray] = field(default=None, repr=False)

    def copy(self) -> 'Individual':
        """Copy with an independent chromosome; cached outputs are shared."""
        return Individual(
            genes=clone_chromosome(self.genes),
            fitness=self.fitness,
            evaluated=self.evaluated,
            mesh=self.mesh,
            drag=self.drag,
            lift=self.lift,
            pressure_coefficients=self.pressure_coefficients,
        )

    def gene_values(self) -> Dict[str, float]:
        return {g.name: g.value for g in self.genes}

    def to_dict(self) -> Dict[str, Any]:
        return {
            'genes': [g.to_dict() for g in self.genes],
            'fitness': self.fitness,
            'evaluated': self.evaluated,
            'drag': self.drag,
            'lift': self.lift,
        }


class GeneticAlgorithm:
    """
    Generational GA with elitism.

    Usage:
        ga = GeneticAlgorithm(GAConfig(population_size=30, seed=1))
        ga.initialize_population(scenario.genes)
        for _ in range(100):
            ga.evolve(objective)
        best = ga.best

    Sorting uses Python's stable sort, so tied individuals keep their
    population order; nothing depends on that order.
    """

    def __init__(self, config: Optional[GAConfig] = None):
        self.config = config or GAConfig()
        self.rng = np.random.default_rng(self.config.seed)
        self._population: List[Individual] = []
        self._generation = 0
        self._best: Optional[Individual] = None
        self._fitness_history: List[float] = []
        self._mean_history: List[float] = []
        self._constraints: List[Constraint] = []
        self._initialized = False

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def initialize_population(self, template: Sequence[Gene]):
        """Fill the population with uniform random chromosomes within bounds."""
        self._population = [
            Individual(genes=random_chromosome(template, self.rng))
            for _ in range(self.config.population_size)
        ]
        self._generation = 0
        self._fitness_history = []
        self._mean_history = []
        self._best = None
        self._initialized = True
        logger.info(
            f"Initialized population of {len(self._population)} "
            f"with {len(template)} genes: {[g.name for g in template]}"
        )

    def add_constraint(self, constraint: Constraint):
        self._constraints.append(constraint)

    def clear_constraints(self):
        self._constraints = []

    @property
    def constraints(self) -> List[Constraint]:
        return list(self._constraints)

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate_fitness(self, individual: Individual, objective: Objective):
        """
        Score an individual in place.

        Runs the objective, caches its side channel on the individual,
        then subtracts every constraint penalty from the raw fitness.
        A non-finite result is replaced by INVALID_FITNESS.
        """
        result = objective(individual.genes)
        if not isinstance(result, ObjectiveResult):
            result = ObjectiveResult(fitness=float(result))

        side = result.side_channel or SideChannel()
        individual.mesh = side.mesh
        individual.drag = side.drag
        individual.lift = side.lift
        individual.pressure_coefficients = side.pressure_coefficients

        fitness = float(result.fitness)
        for constraint in self._constraints:
            fitness -= constraint.penalty(individual)

        if not math.isfinite(fitness):
            logger.warning(
                f"Non-finite fitness for {individual.gene_values()}, "
                f"using {INVALID_FITNESS}"
            )
            fitness = INVALID_FITNESS

        individual.fitness = fitness
        individual.evaluated = True

    # ------------------------------------------------------------------
    # Evolution
    # ------------------------------------------------------------------

    def evolve(self, objective: Objective):
        """Evaluate the current population and replace it with the next generation."""
        if not self._initialized:
            raise PopulationNotInitializedError(
                "initialize_population() must be called before evolve()"
            )

        map_evaluations(
            lambda ind: self.evaluate_fitness(ind, objective),
            self._population,
            self.config.n_jobs,
        )

        scored = sorted(self._population, key=lambda ind: ind.fitness, reverse=True)
        top = scored[0]

        if self._best is None or top.fitness > self._best.fitness:
            previous = self._best.fitness if self._best is not None else None
            self._best = top.copy()
            logger.info(
                f"Generation {self._generation}: best improved "
                f"{previous} -> {top.fitness:.6g}"
            )

        self._fitness_history.append(top.fitness)
        mean = self._mean_fitness(scored)
        self._mean_history.append(mean)

        next_population = [ind.copy() for ind in scored[:self.config.elitism_count]]
        while len(next_population) < self.config.population_size:
            parent1 = self._tournament_select(scored)
            parent2 = self._tournament_select(scored)
            child = self._crossover(parent1, parent2)
            self._mutate(child)
            next_population.append(child)

        logger.debug(
            f"Generation {self._generation}: top={top.fitness:.6g}, "
            f"mean={mean:.6g}"
        )
        self._population = next_population
        self._generation += 1

    def _tournament_select(self, scored: Sequence[Individual]) -> Individual:
        """Fittest of tournament_size uniform draws (with replacement)."""
        picks = self.rng.integers(0, len(scored), size=self.config.tournament_size)
        best = scored[picks[0]]
        for i in picks[1:]:
            if scored[i].fitness > best.fitness:
                best = scored[i]
        return best

    def _crossover(self, parent1: Individual, parent2: Individual) -> Individual:
        genes = []
        for g1, g2 in zip(parent1.genes, parent2.genes):
            value = g1.value
            if self.rng.random() < self.config.crossover_rate:
                alpha = self.rng.random()
                value = alpha * g1.value + (1 - alpha) * g2.value
            genes.append(g1.with_value(value))
        return Individual(genes=genes)

    def _mutate(self, individual: Individual):
        for i, gene in enumerate(individual.genes):
            if self.rng.random() < self.config.mutation_rate:
                delta = (self.rng.random() - 0.5) * gene.span * self.config.mutation_scale
                individual.genes[i] = gene.with_value(gene.value + delta)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def best(self) -> Optional[Individual]:
        return self._best

    @property
    def population(self) -> List[Individual]:
        return self._population

    @property
    def fitness_history(self) -> List[float]:
        return list(self._fitness_history)

    @property
    def mean_fitness_history(self) -> List[float]:
        """Mean fitness of each scored generation."""
        return list(self._mean_history)

    @staticmethod
    def _mean_fitness(population: Sequence[Individual]) -> float:
        if not population:
            return 0.0
        return sum(ind.fitness for ind in population) / len(population)

    def average_fitness(self) -> float:
        """Mean fitness of the current population (0.0 when empty)."""
        return self._mean_fitness(self._population)

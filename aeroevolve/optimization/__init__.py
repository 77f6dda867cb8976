"""
AeroEvolve Optimization Module

Genetic algorithm over bounded parameter vectors, driven by scenario
objectives that run geometry generation and the panel evaluator.

- Tournament selection, blend crossover, bounded mutation, elitism
- Constraint penalties bound from the scenario catalog
- Optional thread-pool evaluation of each generation
"""

from .constraints import (
    Constraint,
    ConstraintSpec,
    ConstraintType,
    UnknownConstraintError,
    build_constraints,
)
from .genetic import (
    GAConfig,
    GeneticAlgorithm,
    Individual,
    ObjectiveResult,
    SideChannel,
    PopulationNotInitializedError,
    INVALID_FITNESS,
)
from .objective import (
    OptimizationGoal,
    DesignAnalysis,
    parse_goal,
    fitness_from_coefficients,
    build_objective,
    analyze_design,
)

__all__ = [
    # Constraints
    'Constraint',
    'ConstraintSpec',
    'ConstraintType',
    'UnknownConstraintError',
    'build_constraints',
    # Engine
    'GAConfig',
    'GeneticAlgorithm',
    'Individual',
    'ObjectiveResult',
    'SideChannel',
    'PopulationNotInitializedError',
    'INVALID_FITNESS',
    # Objectives
    'OptimizationGoal',
    'DesignAnalysis',
    'parse_goal',
    'fitness_from_coefficients',
    'build_objective',
    'analyze_design',
]

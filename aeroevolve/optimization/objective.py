"""
Scenario Objective Functions

Glue between a scenario and the optimizer: chromosome -> geometry ->
panel evaluation -> scalar fitness. Coefficients use a fixed reference
area (1 m² unless the caller chooses otherwise), so fitness values are
comparable within a scenario, not across scenarios.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional

from ..aero.panel_solver import AeroResult, PanelMethodSolver
from ..genes import Chromosome, chromosome_from_values
from ..geometry.mesh import SurfaceMesh
from ..geometry.parametric_shapes import MeshResolution, generate
from .genetic import ObjectiveResult, SideChannel

logger = logging.getLogger(__name__)

MIN_DRAG_FOR_RATIO = 1e-3


class OptimizationGoal(Enum):
    MINIMIZE_DRAG = "minimize_drag"
    MAXIMIZE_LIFT_TO_DRAG = "maximize_lift_to_drag"
    MAXIMIZE_DOWNFORCE = "maximize_downforce"


_GOAL_PHRASES = (
    ('minimize drag', OptimizationGoal.MINIMIZE_DRAG),
    ('maximize l/d', OptimizationGoal.MAXIMIZE_LIFT_TO_DRAG),
    ('maximize downforce', OptimizationGoal.MAXIMIZE_DOWNFORCE),
)


def parse_goal(text) -> OptimizationGoal:
    """
    Map a scenario's goal text to an OptimizationGoal.

    Matching is by phrase, case-insensitive. Goals the evaluator cannot
    express (noise, power, flow rate) fall back to minimizing drag.
    """
    if isinstance(text, OptimizationGoal):
        return text
    lowered = str(text).strip().lower()
    for goal in OptimizationGoal:
        if lowered == goal.value:
            return goal
    for phrase, goal in _GOAL_PHRASES:
        if phrase in lowered:
            return goal
    logger.info(f"Goal '{text}' not recognised, defaulting to minimize drag")
    return OptimizationGoal.MINIMIZE_DRAG


def fitness_from_coefficients(goal: OptimizationGoal, cd: float, cl: float) -> float:
    """Higher is better for every goal."""
    if goal is OptimizationGoal.MAXIMIZE_LIFT_TO_DRAG:
        return cl / cd if abs(cd) > MIN_DRAG_FOR_RATIO else 0.0
    if goal is OptimizationGoal.MAXIMIZE_DOWNFORCE:
        return -cl
    return -cd


def build_objective(scenario, reference_area: float = 1.0,
                    resolution: Optional[MeshResolution] = None
                    ) -> Callable[[Chromosome], ObjectiveResult]:
    """
    Objective for a scenario.

    The returned callable is thread-safe: it holds no mutable state
    beyond the solver's read-only flow condition.
    """
    goal = parse_goal(scenario.goal)
    index = scenario.gene_index
    solver = PanelMethodSolver(scenario.flow)
    family = scenario.shape_family

    def objective(chromosome: Chromosome) -> ObjectiveResult:
        mesh = generate(family, chromosome, resolution, index)
        result = solver.evaluate(mesh)
        cd = result.drag_coefficient(reference_area)
        cl = result.lift_coefficient(reference_area)
        return ObjectiveResult(
            fitness=fitness_from_coefficients(goal, cd, cl),
            side_channel=SideChannel(
                mesh=mesh,
                drag=cd,
                lift=cl,
                pressure_coefficients=result.pressure_coefficients,
            ),
        )

    logger.debug(f"Built {goal.value} objective for scenario '{scenario.id}'")
    return objective


@dataclass
class DesignAnalysis:
    """Evaluation of one manually chosen design."""
    scenario_id: str
    genes: Chromosome
    mesh: SurfaceMesh
    result: AeroResult
    cd: float
    cl: float
    fitness: float

    @property
    def lift_to_drag(self) -> Optional[float]:
        if abs(self.cd) <= MIN_DRAG_FOR_RATIO:
            return None
        return self.cl / self.cd

    def to_dict(self) -> Dict[str, Any]:
        cp_min, cp_max = self.result.cp_range
        return {
            'scenario_id': self.scenario_id,
            'genes': [g.to_dict() for g in self.genes],
            'cd': self.cd,
            'cl': self.cl,
            'lift_to_drag': self.lift_to_drag,
            'fitness': self.fitness,
            'cp_min': cp_min,
            'cp_max': cp_max,
            'n_vertices': self.mesh.vertex_count,
            'n_triangles': self.mesh.triangle_count,
        }


def analyze_design(scenario, values: Optional[Mapping[str, float]] = None,
                   reference_area: float = 1.0,
                   resolution: Optional[MeshResolution] = None) -> DesignAnalysis:
    """
    Evaluate one design of a scenario.

    values override the scenario's default gene values by name (clamped
    to bounds); omitted genes keep their defaults.
    """
    genes = chromosome_from_values(scenario.genes, values or {})
    mesh = generate(scenario.shape_family, genes, resolution, scenario.gene_index)
    result = PanelMethodSolver(scenario.flow).evaluate(mesh)
    cd = result.drag_coefficient(reference_area)
    cl = result.lift_coefficient(reference_area)
    fitness = fitness_from_coefficients(parse_goal(scenario.goal), cd, cl)
    logger.info(f"Analyzed '{scenario.id}': Cd={cd:.4f}, Cl={cl:.4f}")
    return DesignAnalysis(
        scenario_id=scenario.id,
        genes=genes,
        mesh=mesh,
        result=result,
        cd=cd,
        cl=cl,
        fitness=fitness,
    )

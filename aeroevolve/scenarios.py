"""
Engineering Scenario Catalog

Ten ready-made optimization problems. Each names a shape family, the
gene template (defaults and bounds), constraints, flow condition and a
goal phrase understood by `optimization.objective.parse_goal`.

Some scenarios carry genes the geometry does not consume (twist,
fineness, aspect ratio...). They still evolve and are reported, they
just have no effect on fitness.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from .aero.panel_solver import FlowCondition
from .genes import Chromosome, Gene, GeneIndex, clone_chromosome
from .geometry.parametric_shapes import ShapeFamily
from .optimization.constraints import Constraint, ConstraintSpec, ConstraintType, build_constraints


class UnknownScenarioError(KeyError):
    """Scenario id not present in the catalog."""


@dataclass
class Scenario:
    id: str
    name: str
    description: str
    shape_family: ShapeFamily
    goal: str
    genes: Chromosome
    constraints: List[ConstraintSpec]
    flow: FlowCondition
    gene_index: GeneIndex = field(init=False, repr=False)

    def __post_init__(self):
        self.gene_index = GeneIndex.from_chromosome(self.genes)

    def gene_template(self) -> Chromosome:
        """Independent copy of the default chromosome."""
        return clone_chromosome(self.genes)

    def build_constraints(self) -> List[Constraint]:
        return build_constraints(self.constraints, self.gene_index)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'shape_family': self.shape_family.value,
            'goal': self.goal,
            'genes': [g.to_dict() for g in self.genes],
            'constraints': [c.to_dict() for c in self.constraints],
            'flow': self.flow.to_dict(),
        }


def _c(name: str, type_: str, threshold: float, penalty: float) -> ConstraintSpec:
    return ConstraintSpec(name, ConstraintType(type_), threshold, penalty)


SCENARIOS: List[Scenario] = [
    Scenario(
        id='bullet-train',
        name='High-Speed Bullet Train Nose',
        description='Optimize the nose shape of a high-speed train to minimize drag at Mach 0.3',
        shape_family=ShapeFamily.OGIVE,
        goal='Minimize drag coefficient',
        genes=[
            Gene('length', 8.0, 5.0, 12.0),
            Gene('radius', 1.5, 1.0, 2.0),
            Gene('fineness', 0.7, 0.5, 0.9),
        ],
        constraints=[
            _c('Max Length', 'max', 10.0, 100),
            _c('Min Radius', 'min', 1.2, 100),
        ],
        flow=FlowCondition(speed=100, angle_of_attack=0, reynolds_number=1e7),
    ),
    Scenario(
        id='f1-wing',
        name='F1 Rear Wing Endplate',
        description='Maximize outwash (side-force) for a given drag penalty within FIA regulations',
        shape_family=ShapeFamily.NACA,
        goal='Maximize L/D ratio',
        genes=[
            Gene('camber', 4, 0, 9),
            Gene('camberPos', 4, 0, 9),
            Gene('thickness', 15, 8, 20),
            Gene('chord', 0.3, 0.2, 0.4),
            Gene('span', 0.5, 0.3, 0.6),
        ],
        constraints=[
            _c('Max Height', 'max', 0.95, 1000),
            _c('Max Width', 'max', 0.4, 1000),
            _c('Max Chord', 'max', 0.35, 1000),
        ],
        flow=FlowCondition(speed=50, angle_of_attack=15, reynolds_number=5e5),
    ),
    Scenario(
        id='bicycle-frame',
        name='Low-Drag Bicycle Frame',
        description='Minimize drag at 30 mph with 10° yaw angle while maintaining structural stiffness',
        shape_family=ShapeFamily.NACA,
        goal='Minimize drag coefficient',
        genes=[
            Gene('camber', 0, 0, 2),
            Gene('camberPos', 5, 3, 7),
            Gene('thickness', 25, 15, 35),
            Gene('aspectRatio', 2.5, 2.0, 4.0),
        ],
        constraints=[
            _c('Min Thickness', 'min', 0.02, 500),
        ],
        flow=FlowCondition(speed=13.4, angle_of_attack=10, reynolds_number=1e5),
    ),
    Scenario(
        id='drone-propeller',
        name='Silent Drone Propeller',
        description='Minimize aero-acoustic noise signature while maintaining required thrust',
        shape_family=ShapeFamily.NACA,
        goal='Maximize efficiency, minimize noise',
        genes=[
            Gene('camber', 4, 2, 6),
            Gene('camberPos', 4, 3, 6),
            Gene('thickness', 12, 8, 16),
            Gene('chord', 0.05, 0.03, 0.08),
            Gene('twist', 15, 5, 25),
            # Blade length, so the diameter limit has something to act on
            Gene('span', 0.25, 0.15, 0.35),
        ],
        constraints=[
            _c('Max Diameter', 'max', 0.3, 1000),
            _c('Min Thrust', 'min', 2.0, 500),
        ],
        flow=FlowCondition(speed=20, angle_of_attack=8, reynolds_number=5e4),
    ),
    Scenario(
        id='venturi-duct',
        name='Venturi Effect Cooling Duct',
        description='Maximize mass flow rate for a given pressure drop',
        shape_family=ShapeFamily.OGIVE,
        goal='Maximize flow rate',
        genes=[
            Gene('inletDiameter', 0.1, 0.08, 0.15),
            Gene('throatDiameter', 0.05, 0.03, 0.08),
            Gene('outletDiameter', 0.1, 0.08, 0.15),
            Gene('length', 0.3, 0.2, 0.5),
            # Ogive base radius
            Gene('radius', 0.05, 0.04, 0.075),
        ],
        constraints=[
            _c('Max Length', 'max', 0.4, 200),
        ],
        flow=FlowCondition(speed=10, angle_of_attack=0, reynolds_number=1e5),
    ),
    Scenario(
        id='uav-wing',
        name='Endurance UAV Wing',
        description='Maximize L/D at cruise Reynolds number for long endurance flight',
        shape_family=ShapeFamily.NACA,
        goal='Maximize L/D ratio',
        genes=[
            Gene('camber', 4, 2, 6),
            Gene('camberPos', 4, 3, 6),
            Gene('thickness', 12, 9, 18),
            Gene('chord', 0.2, 0.15, 0.3),
            Gene('span', 2.0, 1.5, 3.0),
        ],
        constraints=[
            _c('Min Thickness', 'min', 0.02, 500),
            _c('Max Wingspan', 'max', 2.5, 1000),
        ],
        flow=FlowCondition(speed=15, angle_of_attack=4, reynolds_number=2e5),
    ),
    Scenario(
        id='car-spoiler',
        name='Downforce-Generating Car Spoiler',
        description='Maximize downforce with a drag coefficient cap',
        shape_family=ShapeFamily.NACA,
        goal='Maximize downforce',
        genes=[
            Gene('camber', 4, 0, 9),
            Gene('camberPos', 4, 2, 7),
            Gene('thickness', 12, 8, 18),
            Gene('chord', 0.4, 0.25, 0.6),
            Gene('angle', -15, -25, -5),
        ],
        constraints=[
            _c('Max Height', 'max', 0.5, 1000),
            _c('Max Drag Coeff', 'max', 0.5, 500),
        ],
        flow=FlowCondition(speed=40, angle_of_attack=-15, reynolds_number=1e6),
    ),
    Scenario(
        id='wind-turbine',
        name='Wind Turbine Blade Section',
        description='Maximize power coefficient at a specific tip-speed ratio',
        shape_family=ShapeFamily.NACA,
        goal='Maximize power coefficient',
        genes=[
            Gene('camber', 4, 2, 6),
            Gene('camberPos', 4, 3, 6),
            Gene('thickness', 18, 12, 25),
            Gene('chord', 1.0, 0.6, 1.5),
            Gene('twist', 8, 0, 15),
        ],
        constraints=[
            _c('Max Chord', 'max', 1.2, 500),
            _c('Min Thickness', 'min', 0.15, 500),
        ],
        flow=FlowCondition(speed=12, angle_of_attack=8, reynolds_number=5e5),
    ),
    Scenario(
        id='hydrofoil',
        name='Hydrofoil for Racing Yacht',
        description='Minimize drag at a given lift coefficient while avoiding cavitation',
        shape_family=ShapeFamily.NACA,
        goal='Minimize drag at CL=0.8',
        genes=[
            Gene('camber', 4, 2, 6),
            Gene('camberPos', 5, 3, 7),
            Gene('thickness', 12, 8, 16),
            Gene('chord', 0.5, 0.3, 0.8),
            Gene('span', 1.5, 1.0, 2.0),
        ],
        constraints=[
            _c('Min Pressure Coeff', 'min', -1.5, 1000),
        ],
        flow=FlowCondition(speed=10, angle_of_attack=6, reynolds_number=3e6),
    ),
    Scenario(
        id='ahmed-body',
        name='Ahmed Body Optimization',
        description='Minimize drag by optimizing rear slant angle and edge radii',
        shape_family=ShapeFamily.AHMED,
        goal='Minimize drag coefficient',
        genes=[
            Gene('slantAngle', 25, 0, 40),
            Gene('edgeRadius', 0.01, 0.005, 0.03),
            Gene('rearHeight', 0.288, 0.25, 0.32),
        ],
        constraints=[
            _c('Fixed Length', 'equal', 1.044, 1000),
            _c('Fixed Width', 'equal', 0.389, 1000),
        ],
        flow=FlowCondition(speed=40, angle_of_attack=0, reynolds_number=2e6),
    ),
]

_BY_ID: Dict[str, Scenario] = {s.id: s for s in SCENARIOS}


def get_scenario(scenario_id: str) -> Scenario:
    try:
        return _BY_ID[scenario_id]
    except KeyError:
        raise UnknownScenarioError(
            f"Unknown scenario '{scenario_id}'. Available: {list(_BY_ID)}"
        ) from None


def list_scenarios() -> List[Scenario]:
    return list(SCENARIOS)

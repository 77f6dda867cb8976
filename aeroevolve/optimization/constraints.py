"""
Optimization Constraints

A constraint measures one quantity on an evaluated individual and turns
any violation of its threshold into a fitness penalty. The scenario
catalog names constraints in plain text ("Max Length", "Min Thrust");
`build_constraints` binds those names to measurement functions.

Measurements read the individual after its objective has run, so they
can use the cached mesh, drag, lift and pressure field as well as the
gene values.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping
import numpy as np

from ..genes import GeneIndex
from ..geometry.parametric_shapes import WingParameters

logger = logging.getLogger(__name__)


class UnknownConstraintError(KeyError):
    """No measurement is registered for a constraint name."""


class ConstraintType(Enum):
    MIN = "min"
    MAX = "max"
    EQUAL = "equal"


@dataclass
class ConstraintSpec:
    """Declarative constraint as stored in the scenario catalog."""
    name: str
    type: ConstraintType
    threshold: float
    penalty_weight: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'type': self.type.value,
            'threshold': self.threshold,
            'penalty_weight': self.penalty_weight,
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> 'ConstraintSpec':
        return cls(
            name=d['name'],
            type=ConstraintType(d['type']),
            threshold=float(d['threshold']),
            penalty_weight=float(d['penalty_weight']),
        )


@dataclass
class Constraint:
    """
    Bound constraint.

    evaluate receives the individual and returns the measured value.
    """
    name: str
    type: ConstraintType
    threshold: float
    penalty_weight: float
    evaluate: Callable[[Any], float]

    def violation(self, value: float) -> float:
        # Unmeasurable stays NaN so the fitness is invalidated
        if math.isnan(value):
            return math.nan
        if self.type is ConstraintType.MIN:
            return max(0.0, self.threshold - value)
        if self.type is ConstraintType.MAX:
            return max(0.0, value - self.threshold)
        return abs(value - self.threshold)

    def penalty(self, individual) -> float:
        """Penalty to subtract from the individual's raw fitness."""
        return self.violation(self.evaluate(individual)) * self.penalty_weight


# =============================================================================
# Measurements
# =============================================================================

def _gene(name: str, index: GeneIndex, default=None) -> Callable[[Any], float]:
    if default is None:
        index.require([name], "constrained chromosome")

    def measure(individual) -> float:
        return index.value(individual.genes, name, default=default)
    return measure


def _extent(axis: int) -> Callable[[Any], float]:
    def measure(individual) -> float:
        if individual.mesh is None:
            return math.nan
        return float(individual.mesh.extent[axis])
    return measure


def _largest_extent(individual) -> float:
    if individual.mesh is None:
        return math.nan
    return float(individual.mesh.extent.max())


def _thickness(index: GeneIndex) -> Callable[[Any], float]:
    """Absolute section thickness: thickness % of chord."""
    def measure(individual) -> float:
        pct = index.value(individual.genes, 'thickness')
        chord = index.value(individual.genes, 'chord', default=WingParameters.chord)
        return pct / 100.0 * chord
    return measure


def _cached(attr: str) -> Callable[[Any], float]:
    def measure(individual) -> float:
        value = getattr(individual, attr)
        return math.nan if value is None else float(value)
    return measure


def _min_pressure(individual) -> float:
    cp = individual.pressure_coefficients
    if cp is None or len(cp) == 0:
        return math.nan
    return float(np.min(cp))


MeasurementFactory = Callable[[GeneIndex], Callable[[Any], float]]

MEASUREMENTS: Dict[str, MeasurementFactory] = {
    'Max Length': lambda index: _gene('length', index),
    'Min Radius': lambda index: _gene('radius', index),
    'Max Chord': lambda index: _gene('chord', index, default=WingParameters.chord),
    'Max Wingspan': lambda index: _gene('span', index, default=WingParameters.span),
    'Min Thickness': _thickness,
    'Max Height': lambda index: _extent(1),
    'Max Width': lambda index: _extent(2),
    'Fixed Width': lambda index: _extent(2),
    'Fixed Length': lambda index: _extent(0),
    'Max Diameter': lambda index: _largest_extent,
    'Max Drag Coeff': lambda index: _cached('drag'),
    'Min Thrust': lambda index: _cached('lift'),
    'Min Pressure Coeff': lambda index: _min_pressure,
}


def bind_constraint(spec: ConstraintSpec, index: GeneIndex) -> Constraint:
    factory = MEASUREMENTS.get(spec.name)
    if factory is None:
        raise UnknownConstraintError(
            f"No measurement for constraint '{spec.name}'. Known: {sorted(MEASUREMENTS)}"
        )
    return Constraint(
        name=spec.name,
        type=spec.type,
        threshold=spec.threshold,
        penalty_weight=spec.penalty_weight,
        evaluate=factory(index),
    )


def build_constraints(specs: Iterable[ConstraintSpec], index: GeneIndex) -> List[Constraint]:
    """Bind catalog constraint specs to measurements for one gene layout."""
    constraints = [bind_constraint(spec, index) for spec in specs]
    logger.debug(f"Bound {len(constraints)} constraints: {[c.name for c in constraints]}")
    return constraints

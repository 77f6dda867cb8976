"""
AeroEvolve Aerodynamics Module

Explicit potential-flow panel evaluator: per-vertex pressure
coefficients, drag and lift for a triangulated surface in a uniform
freestream.
"""

from .panel_solver import (
    AIR_DENSITY,
    FlowCondition,
    PanelSet,
    AeroResult,
    PanelMethodSolver,
    evaluate,
)

__all__ = [
    'AIR_DENSITY',
    'FlowCondition',
    'PanelSet',
    'AeroResult',
    'PanelMethodSolver',
    'evaluate',
]

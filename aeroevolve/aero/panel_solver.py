"""
Potential-Flow Panel Evaluator

Approximate inviscid evaluator for triangulated surfaces. Each triangle
is a panel whose source-like strength is the freestream flux through it;
the velocity induced at every vertex gives a pressure coefficient, and
integrating panel pressure over the surface gives drag and lift.

This is a qualitative ranking tool for the optimizer, not a validated
aerodynamic solver: no linear system is solved, no Kutta condition is
enforced and viscous effects are ignored.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple
import numpy as np

from ..geometry.mesh import SurfaceMesh

logger = logging.getLogger(__name__)

AIR_DENSITY = 1.225           # kg/m³, sea level
SINGULARITY_EPSILON = 1e-3    # m, panels closer than this are skipped
MIN_FREESTREAM_SPEED = 1e-9   # m/s, below this the flow is treated as still
LIFT_DIRECTION = np.array([0.0, 1.0, 0.0])

# Pairwise (vertex, panel) evaluations per chunk
_CHUNK_PAIRS = 500_000

LAMINAR_LIMIT = 1e5
TURBULENT_LIMIT = 1e6


@dataclass
class FlowCondition:
    """
    Uniform freestream.

    speed in m/s, angle_of_attack in degrees (rotation in the x-y plane),
    density in kg/m³. reynolds_number is descriptive only.
    """
    speed: float = 1.0
    angle_of_attack: float = 0.0
    density: float = AIR_DENSITY
    reynolds_number: float = 1e6

    @property
    def freestream(self) -> np.ndarray:
        alpha = math.radians(self.angle_of_attack)
        return np.array([
            self.speed * math.cos(alpha),
            self.speed * math.sin(alpha),
            0.0,
        ])

    @property
    def dynamic_pressure(self) -> float:
        return 0.5 * self.density * self.speed ** 2

    @property
    def regime(self) -> str:
        """Flow regime label from the Reynolds number."""
        if self.reynolds_number < LAMINAR_LIMIT:
            return "laminar"
        if self.reynolds_number < TURBULENT_LIMIT:
            return "transitional"
        return "turbulent"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'speed': self.speed,
            'angle_of_attack': self.angle_of_attack,
            'density': self.density,
            'reynolds_number': self.reynolds_number,
            'regime': self.regime,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'FlowCondition':
        return cls(
            speed=float(d.get('speed', 1.0)),
            angle_of_attack=float(d.get('angle_of_attack', 0.0)),
            density=float(d.get('density', AIR_DENSITY)),
            reynolds_number=float(d.get('reynolds_number', 1e6)),
        )


@dataclass
class PanelSet:
    """Per-triangle centroids (M,3), unit normals (M,3) and areas (M,)."""
    centroids: np.ndarray
    normals: np.ndarray
    areas: np.ndarray

    @classmethod
    def from_mesh(cls, mesh: SurfaceMesh) -> 'PanelSet':
        if mesh.triangle_count == 0:
            empty = np.zeros((0, 3))
            return cls(empty, empty.copy(), np.zeros(0))

        v0, v1, v2 = mesh.triangle_corners()
        centroids = (v0 + v1 + v2) / 3.0
        cross = np.cross(v1 - v0, v2 - v0)
        length = np.linalg.norm(cross, axis=1)
        areas = 0.5 * length

        normals = np.zeros_like(cross)
        nonzero = length > 0
        normals[nonzero] = cross[nonzero] / length[nonzero, None]
        return cls(centroids, normals, areas)

    def __len__(self) -> int:
        return len(self.areas)


@dataclass
class AeroResult:
    """
    Evaluation output.

    drag and lift are forces in newtons; pressure_coefficients is one Cp
    per mesh vertex. Coefficients are normalized by dynamic pressure and
    a reference area chosen by the caller.
    """
    pressure_coefficients: np.ndarray
    drag: float
    lift: float
    dynamic_pressure: float = 0.0
    velocities: Optional[np.ndarray] = field(default=None, repr=False)

    def drag_coefficient(self, reference_area: float = 1.0) -> float:
        return _coefficient(self.drag, self.dynamic_pressure, reference_area)

    def lift_coefficient(self, reference_area: float = 1.0) -> float:
        return _coefficient(self.lift, self.dynamic_pressure, reference_area)

    @property
    def cp_range(self) -> Tuple[float, float]:
        if len(self.pressure_coefficients) == 0:
            return 0.0, 0.0
        return float(self.pressure_coefficients.min()), float(self.pressure_coefficients.max())

    def to_dict(self, reference_area: float = 1.0) -> Dict[str, Any]:
        cp_min, cp_max = self.cp_range
        return {
            'drag': self.drag,
            'lift': self.lift,
            'cd': self.drag_coefficient(reference_area),
            'cl': self.lift_coefficient(reference_area),
            'cp_min': cp_min,
            'cp_max': cp_max,
            'reference_area': reference_area,
        }


def _coefficient(force: float, dynamic_pressure: float, reference_area: float) -> float:
    denom = dynamic_pressure * reference_area
    if not math.isfinite(denom) or abs(denom) < 1e-12:
        return 0.0
    value = force / denom
    return value if math.isfinite(value) else 0.0


class PanelMethodSolver:
    """
    Explicit panel-influence evaluator for a fixed flow condition.

    Usage:
        solver = PanelMethodSolver(FlowCondition(speed=30, angle_of_attack=5))
        result = solver.evaluate(mesh)
        cd = result.drag_coefficient(reference_area=1.0)
    """

    def __init__(self, flow: Optional[FlowCondition] = None,
                 singularity_epsilon: float = SINGULARITY_EPSILON):
        self.flow = flow or FlowCondition()
        self.singularity_epsilon = singularity_epsilon

    def evaluate(self, mesh: SurfaceMesh) -> AeroResult:
        freestream = self.flow.freestream
        speed = float(np.linalg.norm(freestream))
        n_vertices = mesh.vertex_count

        if speed < MIN_FREESTREAM_SPEED or n_vertices == 0 or mesh.triangle_count == 0:
            if speed < MIN_FREESTREAM_SPEED:
                logger.warning(f"Freestream speed {speed:.3g} m/s too small, returning zero loads")
            return AeroResult(
                pressure_coefficients=np.zeros(n_vertices),
                drag=0.0,
                lift=0.0,
                dynamic_pressure=0.5 * self.flow.density * speed ** 2,
                velocities=np.tile(freestream, (n_vertices, 1)),
            )

        panels = PanelSet.from_mesh(mesh)
        velocities = freestream + self._induced_velocities(mesh.vertices, panels, freestream)

        ratio_sq = np.sum(velocities ** 2, axis=1) / speed ** 2
        cp = 1.0 - ratio_sq
        n_bad = int(np.count_nonzero(~np.isfinite(cp)))
        if n_bad:
            logger.warning(f"{n_bad} non-finite pressure coefficients zeroed")
            cp = np.where(np.isfinite(cp), cp, 0.0)

        q = 0.5 * self.flow.density * speed ** 2
        drag, lift = self._integrate_forces(mesh, panels, cp, q, freestream / speed)

        logger.debug(
            f"Evaluated {mesh.triangle_count} panels: drag={drag:.4g} N, lift={lift:.4g} N, "
            f"Cp [{cp.min():.3f}, {cp.max():.3f}]"
        )
        return AeroResult(
            pressure_coefficients=cp,
            drag=drag,
            lift=lift,
            dynamic_pressure=q,
            velocities=velocities,
        )

    def _induced_velocities(self, points: np.ndarray, panels: PanelSet,
                            freestream: np.ndarray) -> np.ndarray:
        """
        Sum of panel influences at each point:
        (U . n_p) A_p / d³ * (n_p x r), with r = point - centroid.
        """
        strength = (panels.normals @ freestream) * panels.areas
        induced = np.zeros_like(points)
        chunk = max(1, _CHUNK_PAIRS // max(len(panels), 1))

        for start in range(0, len(points), chunk):
            block = points[start:start + chunk]
            r = block[:, None, :] - panels.centroids[None, :, :]
            dist = np.linalg.norm(r, axis=2)
            near = dist < self.singularity_epsilon
            with np.errstate(divide='ignore', invalid='ignore'):
                weight = np.where(near, 0.0, strength[None, :] / dist ** 3)
            swirl = np.cross(panels.normals[None, :, :], r)
            induced[start:start + chunk] = np.einsum('vp,vpk->vk', weight, swirl)

        return induced

    @staticmethod
    def _integrate_forces(mesh: SurfaceMesh, panels: PanelSet, cp: np.ndarray,
                          q: float, drag_direction: np.ndarray) -> Tuple[float, float]:
        """Pressure force -Cp q A n per panel, projected on drag and lift axes."""
        panel_cp = cp[mesh.triangles].mean(axis=1)
        forces = (-panel_cp * q * panels.areas)[:, None] * panels.normals
        total = forces.sum(axis=0)

        drag = float(total @ drag_direction)
        lift = float(total @ LIFT_DIRECTION)
        if not math.isfinite(drag):
            logger.warning("Non-finite drag zeroed")
            drag = 0.0
        if not math.isfinite(lift):
            logger.warning("Non-finite lift zeroed")
            lift = 0.0
        return drag, lift

    def drag_coefficient(self, mesh: SurfaceMesh, reference_area: float = 1.0) -> float:
        return self.evaluate(mesh).drag_coefficient(reference_area)

    def lift_coefficient(self, mesh: SurfaceMesh, reference_area: float = 1.0) -> float:
        return self.evaluate(mesh).lift_coefficient(reference_area)


def evaluate(mesh: SurfaceMesh, flow: Optional[FlowCondition] = None) -> AeroResult:
    """Evaluate a mesh in a uniform freestream (see PanelMethodSolver)."""
    return PanelMethodSolver(flow).evaluate(mesh)

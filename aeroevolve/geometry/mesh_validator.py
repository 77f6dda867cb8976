"""
Surface Mesh Validation

Checks a generated SurfaceMesh against the contract that the evaluator
and the exporters rely on, with coded issues that explain what is wrong.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple
import numpy as np

from .mesh import SurfaceMesh


class ValidationSeverity(Enum):
    ERROR = "error"      # Mesh cannot be evaluated or exported
    WARNING = "warning"  # Mesh may give misleading results
    INFO = "info"        # Informational


@dataclass
class ValidationIssue:
    severity: ValidationSeverity
    code: str
    message: str
    details: Optional[str] = None
    suggestion: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "severity": self.severity.value,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "suggestion": self.suggestion
        }


@dataclass
class MeshValidationResult:
    """Complete validation result for a mesh"""
    valid: bool
    vertex_count: int = 0
    triangle_count: int = 0
    bounds_min: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    bounds_max: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    boundary_edges: int = 0
    issues: List[ValidationIssue] = field(default_factory=list)

    @property
    def dimensions(self) -> Tuple[float, float, float]:
        return tuple(hi - lo for lo, hi in zip(self.bounds_min, self.bounds_max))

    @property
    def is_closed(self) -> bool:
        return self.triangle_count > 0 and self.boundary_edges == 0

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "vertices": self.vertex_count,
            "triangles": self.triangle_count,
            "bounds": {
                "min": list(self.bounds_min),
                "max": list(self.bounds_max)
            },
            "dimensions": list(self.dimensions),
            "closed": self.is_closed,
            "boundary_edges": self.boundary_edges,
            "issues": [i.to_dict() for i in self.issues]
        }

    @property
    def errors(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == ValidationSeverity.ERROR]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == ValidationSeverity.WARNING]

    def codes(self) -> List[str]:
        return [i.code for i in self.issues]


class MeshValidator:
    """
    Validates a SurfaceMesh.

    Checks for:
    - Empty meshes
    - Vertex indices out of range
    - Non-finite coordinates
    - Normal array size and unit length
    - Degenerate (zero-area) triangles
    - Edge topology: open boundaries, non-manifold edges, flipped triangles
    """

    AREA_TOLERANCE = 1e-14
    NORMAL_TOLERANCE = 1e-6

    def __init__(self, mesh: SurfaceMesh):
        self.mesh = mesh
        self.result = MeshValidationResult(
            valid=True,
            vertex_count=mesh.vertex_count,
            triangle_count=mesh.triangle_count,
        )

    def validate(self) -> MeshValidationResult:
        """Run all validation checks and return result"""
        if self._check_not_empty() and self._check_indices():
            self._check_coordinates()
            self._check_normals()
            self._check_degenerate_triangles()
            self._check_topology()

        if self.result.errors:
            self.result.valid = False
        return self.result

    def _add_issue(self, severity: ValidationSeverity, code: str, message: str,
                   details: str = None, suggestion: str = None):
        self.result.issues.append(ValidationIssue(
            severity=severity,
            code=code,
            message=message,
            details=details,
            suggestion=suggestion
        ))

    def _check_not_empty(self) -> bool:
        if self.mesh.vertex_count == 0 or self.mesh.triangle_count == 0:
            self._add_issue(
                ValidationSeverity.ERROR,
                "EMPTY_MESH",
                f"Mesh has {self.mesh.vertex_count} vertices and "
                f"{self.mesh.triangle_count} triangles",
                suggestion="Check the mesh resolution settings."
            )
            return False
        return True

    def _check_indices(self) -> bool:
        tri = self.mesh.triangles
        bad = (tri < 0) | (tri >= self.mesh.vertex_count)
        n_bad = int(np.count_nonzero(bad.any(axis=1)))
        if n_bad:
            self._add_issue(
                ValidationSeverity.ERROR,
                "INDEX_OUT_OF_RANGE",
                f"{n_bad} triangles reference missing vertices",
                details=f"Valid index range is [0, {self.mesh.vertex_count - 1}], "
                        f"found [{int(tri.min())}, {int(tri.max())}]"
            )
            return False

        used = np.zeros(self.mesh.vertex_count, dtype=bool)
        used[tri.ravel()] = True
        n_unused = int(np.count_nonzero(~used))
        if n_unused:
            self._add_issue(
                ValidationSeverity.INFO,
                "UNUSED_VERTICES",
                f"{n_unused} vertices are not referenced by any triangle"
            )
        return True

    def _check_coordinates(self):
        finite = np.isfinite(self.mesh.vertices).all(axis=1)
        if not finite.all():
            self._add_issue(
                ValidationSeverity.ERROR,
                "NON_FINITE_COORDINATES",
                f"{int(np.count_nonzero(~finite))} vertices have NaN or infinite coordinates",
                suggestion="Check the gene values that produced this shape."
            )
            return

        lo, hi = self.mesh.get_bounds()
        self.result.bounds_min = tuple(float(v) for v in lo)
        self.result.bounds_max = tuple(float(v) for v in hi)

    def _check_normals(self):
        normals = self.mesh.normals
        if len(normals) != self.mesh.vertex_count:
            self._add_issue(
                ValidationSeverity.ERROR,
                "NORMAL_COUNT_MISMATCH",
                f"{len(normals)} normals for {self.mesh.vertex_count} vertices"
            )
            return

        lengths = np.linalg.norm(normals, axis=1)
        off_unit = np.abs(lengths - 1.0) > self.NORMAL_TOLERANCE
        n_zero = int(np.count_nonzero(lengths == 0))
        n_bad = int(np.count_nonzero(off_unit)) - n_zero
        if n_bad > 0:
            self._add_issue(
                ValidationSeverity.WARNING,
                "NON_UNIT_NORMALS",
                f"{n_bad} vertex normals are not unit length"
            )
        if n_zero:
            self._add_issue(
                ValidationSeverity.WARNING,
                "ZERO_NORMALS",
                f"{n_zero} vertices have a zero normal",
                details="Every triangle touching these vertices has zero area"
            )

    def _check_degenerate_triangles(self):
        areas = self.mesh.triangle_areas()
        n_degenerate = int(np.count_nonzero(areas <= self.AREA_TOLERANCE))
        if n_degenerate:
            self._add_issue(
                ValidationSeverity.ERROR,
                "DEGENERATE_TRIANGLES",
                f"{n_degenerate} triangles have zero area",
                details=f"Area tolerance {self.AREA_TOLERANCE:g} m²",
                suggestion="Collapsed rings or repeated profile points produce these; "
                           "they carry no normal and are skipped by the evaluator."
            )

    def _check_topology(self):
        tri = self.mesh.triangles
        directed = np.concatenate([tri[:, [0, 1]], tri[:, [1, 2]], tri[:, [2, 0]]])
        undirected = np.sort(directed, axis=1)

        _, counts = np.unique(undirected, axis=0, return_counts=True)
        self.result.boundary_edges = int(np.count_nonzero(counts == 1))
        n_non_manifold = int(np.count_nonzero(counts > 2))

        if self.result.boundary_edges:
            self._add_issue(
                ValidationSeverity.INFO,
                "OPEN_SURFACE",
                f"Surface has {self.result.boundary_edges} boundary edges",
                details="Wing tips and ogive bases are left open"
            )
        if n_non_manifold:
            self._add_issue(
                ValidationSeverity.WARNING,
                "NON_MANIFOLD_EDGES",
                f"{n_non_manifold} edges are shared by more than two triangles"
            )

        # A consistently wound manifold uses each directed edge at most once
        _, directed_counts = np.unique(directed, axis=0, return_counts=True)
        n_flipped = int(np.count_nonzero(directed_counts > 1))
        if n_flipped:
            self._add_issue(
                ValidationSeverity.WARNING,
                "INCONSISTENT_WINDING",
                f"{n_flipped} edges are traversed twice in the same direction",
                suggestion="Neighbouring triangles disagree on orientation, so some "
                           "normals point inward."
            )


def validate_mesh(mesh: SurfaceMesh) -> MeshValidationResult:
    """Convenience function to validate a mesh"""
    return MeshValidator(mesh).validate()

"""
Triangulated Surface Mesh

Indexed triangle mesh shared by the shape generators, the panel solver
and the exporters. Vertices are stored once and referenced by index
triples; per-vertex normals follow the triangle winding (outward for
every generated shape family).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple
import numpy as np


@dataclass
class SurfaceMesh:
    """
    Indexed triangle surface.

    Attributes:
        vertices: (N, 3) float array of positions
        triangles: (M, 3) int array of vertex indices, counter-clockwise
            when seen from outside the body
        normals: (N, 3) float array of unit per-vertex normals
    """
    vertices: np.ndarray
    triangles: np.ndarray
    normals: np.ndarray = field(default=None)

    def __post_init__(self):
        self.vertices = np.asarray(self.vertices, dtype=float).reshape(-1, 3)
        self.triangles = np.asarray(self.triangles, dtype=np.int64).reshape(-1, 3)
        if self.normals is None:
            self.normals = compute_vertex_normals(self.vertices, self.triangles)
        else:
            self.normals = np.asarray(self.normals, dtype=float).reshape(-1, 3)

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def triangle_count(self) -> int:
        return len(self.triangles)

    def get_bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        """Return bounding box (min, max) of geometry."""
        if self.vertex_count == 0:
            zero = np.zeros(3)
            return zero, zero
        return self.vertices.min(axis=0), self.vertices.max(axis=0)

    @property
    def extent(self) -> np.ndarray:
        """Bounding box size along x, y, z."""
        lo, hi = self.get_bounds()
        return hi - lo

    def face_normals(self) -> np.ndarray:
        """Unnormalized face normals (cross product of two edges)."""
        v0, v1, v2 = self.triangle_corners()
        return np.cross(v1 - v0, v2 - v0)

    def triangle_corners(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Corner positions of every triangle as three (M, 3) arrays."""
        tri = self.triangles
        return self.vertices[tri[:, 0]], self.vertices[tri[:, 1]], self.vertices[tri[:, 2]]

    def triangle_areas(self) -> np.ndarray:
        return 0.5 * np.linalg.norm(self.face_normals(), axis=1)

    def surface_area(self) -> float:
        return float(self.triangle_areas().sum())

    def to_dict(self) -> Dict[str, Any]:
        """Serialize mesh to flat lists (Three.js BufferGeometry layout)."""
        return {
            'vertices': self.vertices.ravel().tolist(),
            'indices': self.triangles.ravel().tolist(),
            'normals': self.normals.ravel().tolist(),
            'n_vertices': self.vertex_count,
            'n_triangles': self.triangle_count,
        }


def compute_vertex_normals(vertices: np.ndarray, triangles: np.ndarray) -> np.ndarray:
    """
    Area-weighted vertex normals.

    Each face contributes its unnormalized cross product to its three
    corners, so larger faces weigh more. Vertices touched only by
    zero-area faces get a zero normal.
    """
    vertices = np.asarray(vertices, dtype=float).reshape(-1, 3)
    triangles = np.asarray(triangles, dtype=np.int64).reshape(-1, 3)
    normals = np.zeros_like(vertices)
    if len(triangles) == 0:
        return normals

    v0 = vertices[triangles[:, 0]]
    v1 = vertices[triangles[:, 1]]
    v2 = vertices[triangles[:, 2]]
    face_n = np.cross(v1 - v0, v2 - v0)

    for corner in range(3):
        np.add.at(normals, triangles[:, corner], face_n)

    lengths = np.linalg.norm(normals, axis=1)
    nonzero = lengths > 0
    normals[nonzero] /= lengths[nonzero, None]
    return normals

"""
STL Export

Writes a SurfaceMesh as binary or ASCII STL, and reads STL files back
into per-facet arrays. Facet normals are recomputed from the winding,
so they agree with the evaluator's outward-normal convention.
"""

import io
import struct
from pathlib import Path
from typing import Tuple, Union
import numpy as np

from .mesh import SurfaceMesh

HEADER_TEXT = b'AeroEvolve parametric surface'

_BINARY_FACET = np.dtype([
    ('normal', '<f4', (3,)),
    ('vertices', '<f4', (3, 3)),
    ('attr', '<u2'),
])


def _facet_normals(mesh: SurfaceMesh) -> np.ndarray:
    normals = mesh.face_normals()
    length = np.linalg.norm(normals, axis=1)
    unit = np.zeros_like(normals)
    nonzero = length > 0
    unit[nonzero] = normals[nonzero] / length[nonzero, None]
    # Degenerate facets get +z, as most CAD tools expect a unit vector
    unit[~nonzero] = (0.0, 0.0, 1.0)
    return unit


def stl_binary_bytes(mesh: SurfaceMesh) -> bytes:
    """Binary STL image of the mesh."""
    facets = np.zeros(mesh.triangle_count, dtype=_BINARY_FACET)
    facets['normal'] = _facet_normals(mesh)
    facets['vertices'] = mesh.vertices[mesh.triangles]

    buf = io.BytesIO()
    # Header (80 bytes); must not start with "solid"
    buf.write(HEADER_TEXT.ljust(80, b'\0')[:80])
    buf.write(struct.pack('<I', mesh.triangle_count))
    buf.write(facets.tobytes())
    return buf.getvalue()


def stl_ascii_text(mesh: SurfaceMesh, name: str = 'aeroevolve') -> str:
    """ASCII STL text of the mesh."""
    lines = [f"solid {name}"]
    corners = mesh.vertices[mesh.triangles]
    for normal, (p1, p2, p3) in zip(_facet_normals(mesh), corners):
        lines.append(f"  facet normal {normal[0]:.6e} {normal[1]:.6e} {normal[2]:.6e}")
        lines.append("    outer loop")
        lines.append(f"      vertex {p1[0]:.6e} {p1[1]:.6e} {p1[2]:.6e}")
        lines.append(f"      vertex {p2[0]:.6e} {p2[1]:.6e} {p2[2]:.6e}")
        lines.append(f"      vertex {p3[0]:.6e} {p3[1]:.6e} {p3[2]:.6e}")
        lines.append("    endloop")
        lines.append("  endfacet")
    lines.append(f"endsolid {name}")
    return "\n".join(lines) + "\n"


def save_stl(mesh: SurfaceMesh, filepath: Union[str, Path], binary: bool = True,
             name: str = 'aeroevolve') -> Path:
    """Save mesh as STL file."""
    filepath = Path(filepath)
    if binary:
        filepath.write_bytes(stl_binary_bytes(mesh))
    else:
        filepath.write_text(stl_ascii_text(mesh, name))
    return filepath


def read_stl(filepath: Union[str, Path]) -> Tuple[np.ndarray, np.ndarray]:
    """
    Read an STL file.

    Returns:
        (facet_vertices (M, 3, 3), facet_normals (M, 3))
    """
    data = Path(filepath).read_bytes()
    if len(data) >= 84:
        count = struct.unpack('<I', data[80:84])[0]
        if len(data) == 84 + count * _BINARY_FACET.itemsize:
            facets = np.frombuffer(data, dtype=_BINARY_FACET, count=count, offset=84)
            return facets['vertices'].astype(float), facets['normal'].astype(float)
    return _parse_ascii(data.decode('ascii'))


def _parse_ascii(text: str) -> Tuple[np.ndarray, np.ndarray]:
    normals = []
    vertices = []
    for line in text.splitlines():
        parts = line.split()
        if not parts:
            continue
        if parts[0] == 'facet' and len(parts) == 5:
            normals.append([float(v) for v in parts[2:5]])
        elif parts[0] == 'vertex' and len(parts) == 4:
            vertices.append([float(v) for v in parts[1:4]])

    if len(vertices) != 3 * len(normals):
        raise ValueError(
            f"Malformed ASCII STL: {len(normals)} facets but {len(vertices)} vertices"
        )
    return (
        np.array(vertices, dtype=float).reshape(-1, 3, 3),
        np.array(normals, dtype=float).reshape(-1, 3),
    )

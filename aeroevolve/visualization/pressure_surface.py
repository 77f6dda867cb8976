"""
3D Pressure Surface Export for Three.js Visualization

Exports an evaluated surface with its per-vertex pressure coefficients
for interactive 3D visualization in the browser using Three.js.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Optional, Tuple
import numpy as np

from ..geometry.mesh import SurfaceMesh

logger = logging.getLogger(__name__)


def pressure_to_color(cp: float, cp_min: float = -1.0, cp_max: float = 1.0) -> Tuple[int, int, int]:
    """Map a pressure coefficient to RGB (blue-white-red diverging)."""
    r, g, b = pressure_to_colors(np.array([cp]), cp_min, cp_max)[0]
    return int(r), int(g), int(b)


def pressure_to_colors(cp: np.ndarray, cp_min: float, cp_max: float) -> np.ndarray:
    """Vectorized pressure_to_color: (N,) Cp -> (N, 3) uint8."""
    span = cp_max - cp_min
    if span <= 0:
        t = np.full(len(cp), 0.5)
    else:
        t = np.clip((np.asarray(cp, dtype=float) - cp_min) / span, 0.0, 1.0)

    colors = np.empty((len(t), 3))
    low = t < 0.5
    # Blue to white
    colors[low, 0] = 255 * (t[low] * 2)
    colors[low, 1] = 255 * (t[low] * 2)
    colors[low, 2] = 255
    # White to red
    colors[~low, 0] = 255
    colors[~low, 1] = 255 * (2 - t[~low] * 2)
    colors[~low, 2] = 255 * (2 - t[~low] * 2)
    return colors.astype(np.uint8)


def _cp_range(cp: np.ndarray, cp_range: Optional[Tuple[float, float]]) -> Tuple[float, float]:
    if cp_range is not None:
        return cp_range
    if len(cp) == 0:
        return -1.0, 1.0
    return float(cp.min()), float(cp.max())


def build_pressure_surface(mesh: SurfaceMesh, pressure_coefficients: np.ndarray) -> Dict:
    """
    Surface payload for Three.js BufferGeometry.

    Format:
    - vertices: flat array of [x, y, z, x, y, z, ...]
    - indices: flat array of triangle indices
    - normals: flat array of per-vertex normals
    - pressures: one Cp per vertex
    """
    cp = np.asarray(pressure_coefficients, dtype=float)
    if len(cp) != mesh.vertex_count:
        raise ValueError(
            f"Expected {mesh.vertex_count} pressure coefficients, got {len(cp)}"
        )
    payload = mesh.to_dict()
    payload["pressures"] = cp.tolist()
    payload["pressure_range"] = [float(cp.min()), float(cp.max())] if len(cp) else None
    return payload


def export_pressure_surface_json(mesh: SurfaceMesh,
                                 pressure_coefficients: np.ndarray,
                                 output_path: Path) -> Dict:
    """Write build_pressure_surface() as JSON."""
    result = build_pressure_surface(mesh, pressure_coefficients)
    output_path = Path(output_path)

    try:
        with open(output_path, 'w') as f:
            json.dump(result, f)
    except OSError as e:
        logger.error(f"Failed to write pressure surface {output_path}: {e}")
        return {"success": False, "error": str(e)}

    return {
        "success": True,
        "output_path": str(output_path),
        "n_vertices": result["n_vertices"],
        "n_triangles": result["n_triangles"],
        "pressure_range": result["pressure_range"],
    }


def export_pressure_surface_ply(mesh: SurfaceMesh,
                                pressure_coefficients: np.ndarray,
                                output_path: Path,
                                cp_range: Optional[Tuple[float, float]] = None) -> Dict:
    """
    Export surface as binary PLY with Cp as vertex colors.

    PLY format is well-supported by Three.js PLYLoader.

    Args:
        mesh: evaluated surface
        pressure_coefficients: one Cp per vertex
        output_path: Path to save PLY file
        cp_range: (min, max) of the color scale; defaults to the data range

    Returns:
        dict with status and file info
    """
    cp = np.asarray(pressure_coefficients, dtype=float)
    if len(cp) != mesh.vertex_count:
        raise ValueError(
            f"Expected {mesh.vertex_count} pressure coefficients, got {len(cp)}"
        )
    cp_min, cp_max = _cp_range(cp, cp_range)
    colors = pressure_to_colors(cp, cp_min, cp_max)
    output_path = Path(output_path)

    vertex_rows = np.zeros(mesh.vertex_count, dtype=[
        ('pos', '<f4', (3,)), ('rgb', 'u1', (3,)),
    ])
    vertex_rows['pos'] = mesh.vertices
    vertex_rows['rgb'] = colors

    face_rows = np.zeros(mesh.triangle_count, dtype=[
        ('n', 'u1'), ('idx', '<i4', (3,)),
    ])
    face_rows['n'] = 3
    face_rows['idx'] = mesh.triangles

    header = f"""ply
format binary_little_endian 1.0
element vertex {mesh.vertex_count}
property float x
property float y
property float z
property uchar red
property uchar green
property uchar blue
element face {mesh.triangle_count}
property list uchar int vertex_indices
end_header
"""
    try:
        with open(output_path, 'wb') as f:
            f.write(header.encode('ascii'))
            f.write(vertex_rows.tobytes())
            f.write(face_rows.tobytes())
    except OSError as e:
        logger.error(f"Failed to write PLY {output_path}: {e}")
        return {"success": False, "error": str(e)}

    return {
        "success": True,
        "output_path": str(output_path),
        "n_vertices": mesh.vertex_count,
        "n_faces": mesh.triangle_count,
        "pressure_range": [cp_min, cp_max],
    }


def read_ply_header(path: Path) -> Dict[str, int]:
    """Element counts declared in a PLY header."""
    counts = {}
    with open(path, 'rb') as f:
        for raw in f:
            line = raw.decode('ascii').strip()
            if line.startswith('element'):
                _, name, count = line.split()
                counts[name] = int(count)
            if line == 'end_header':
                break
    return counts

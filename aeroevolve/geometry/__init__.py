"""
AeroEvolve Geometry Module

Parametric surface generation for the evolvable shape families:
- NACA 4-digit wing
- Tangent ogive body of revolution
- Simplified Ahmed body

plus mesh validation and STL export.
"""

from ..genes import MissingGeneError
from .mesh import SurfaceMesh, compute_vertex_normals
from .parametric_shapes import (
    ShapeFamily,
    MeshResolution,
    WingParameters,
    OgiveParameters,
    AhmedParameters,
    ParametricWing,
    ParametricOgive,
    ParametricAhmedBody,
    naca4_section,
    create_shape,
    generate,
    required_genes,
)
from .mesh_validator import MeshValidator, MeshValidationResult, validate_mesh
from .stl import save_stl, read_stl, stl_binary_bytes, stl_ascii_text

__all__ = [
    'MissingGeneError',
    'SurfaceMesh',
    'compute_vertex_normals',
    # Shapes
    'ShapeFamily',
    'MeshResolution',
    'WingParameters',
    'OgiveParameters',
    'AhmedParameters',
    'ParametricWing',
    'ParametricOgive',
    'ParametricAhmedBody',
    'naca4_section',
    'create_shape',
    'generate',
    'required_genes',
    # Validation / export
    'MeshValidator',
    'MeshValidationResult',
    'validate_mesh',
    'save_stl',
    'read_stl',
    'stl_binary_bytes',
    'stl_ascii_text',
]

"""
Pytest configuration and fixtures for AeroEvolve tests
"""

import pytest
import tempfile
import shutil
from pathlib import Path
import numpy as np

# Add project root to path
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from aeroevolve.genes import Gene
from aeroevolve.geometry.mesh import SurfaceMesh
from aeroevolve.geometry.parametric_shapes import MeshResolution


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test outputs"""
    tmp = tempfile.mkdtemp()
    yield Path(tmp)
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def coarse():
    """Low-cost mesh resolution for evaluation-heavy tests"""
    return MeshResolution.coarse()


@pytest.fixture
def wing_genes():
    """NACA 4415 wing template (mid-range values)"""
    return [
        Gene('camber', 4, 0, 9),
        Gene('camberPos', 4, 0, 9),
        Gene('thickness', 15, 8, 20),
    ]


@pytest.fixture
def ogive_genes():
    return [
        Gene('length', 5.0, 2.0, 8.0),
        Gene('radius', 1.0, 0.5, 1.5),
    ]


@pytest.fixture
def ahmed_genes():
    return [Gene('slantAngle', 25, 0, 40)]


@pytest.fixture
def tetrahedron():
    """Unit right tetrahedron with outward winding (volume 1/6)"""
    vertices = np.array([
        [0.0, 0.0, 0.0],
        [1.0, 0.0, 0.0],
        [0.0, 1.0, 0.0],
        [0.0, 0.0, 1.0],
    ])
    triangles = np.array([
        [0, 2, 1],  # -z
        [0, 1, 3],  # -y
        [0, 3, 2],  # -x
        [1, 2, 3],  # slanted face
    ])
    return SurfaceMesh(vertices, triangles)


def signed_volume(mesh: SurfaceMesh) -> float:
    """Divergence-theorem volume; positive when triangles face outward"""
    v0, v1, v2 = mesh.triangle_corners()
    return float(np.einsum('ij,ij->i', v0, np.cross(v1, v2)).sum() / 6.0)


@pytest.fixture
def volume():
    return signed_volume

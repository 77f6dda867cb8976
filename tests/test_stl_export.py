"""
Unit tests for STL export and read-back
"""

import struct
import pytest
import numpy as np

from aeroevolve.geometry.mesh import SurfaceMesh
from aeroevolve.geometry.parametric_shapes import generate
from aeroevolve.geometry.stl import read_stl, save_stl, stl_ascii_text, stl_binary_bytes


class TestBinarySTL:
    """Binary STL layout"""

    def test_size_and_count(self, tetrahedron):
        data = stl_binary_bytes(tetrahedron)

        assert len(data) == 84 + 50 * 4
        assert struct.unpack('<I', data[80:84])[0] == 4

    def test_header_not_ascii_marker(self, tetrahedron):
        assert not stl_binary_bytes(tetrahedron)[:80].lower().startswith(b'solid')

    def test_read_back(self, temp_dir, ogive_genes):
        mesh = generate('ogive', ogive_genes)
        path = save_stl(mesh, temp_dir / 'ogive.stl')
        vertices, normals = read_stl(path)

        assert path.exists()
        assert vertices.shape == (mesh.triangle_count, 3, 3)
        np.testing.assert_allclose(vertices, mesh.vertices[mesh.triangles], atol=1e-5)
        np.testing.assert_allclose(np.linalg.norm(normals, axis=1), 1.0, atol=1e-5)

    def test_normals_follow_winding(self, tetrahedron):
        data = stl_binary_bytes(tetrahedron)
        first_normal = struct.unpack('<3f', data[84:96])
        assert first_normal == pytest.approx((0.0, 0.0, -1.0))

    def test_degenerate_facet_normal(self):
        mesh = SurfaceMesh(np.array([[0, 0, 0], [1, 0, 0], [2, 0, 0]], dtype=float), np.array([[0, 1, 2]]))
        data = stl_binary_bytes(mesh)
        assert struct.unpack('<3f', data[84:96]) == (0.0, 0.0, 1.0)


class TestAsciiSTL:
    """ASCII STL text"""

    def test_structure(self, tetrahedron):
        text = stl_ascii_text(tetrahedron, name='tet')
        lines = text.strip().splitlines()

        assert lines[0] == 'solid tet'
        assert lines[-1] == 'endsolid tet'
        assert text.count('facet normal') == 4
        assert text.count('vertex') == 12

    def test_read_back(self, temp_dir, tetrahedron):
        path = save_stl(tetrahedron, temp_dir / 'tet.stl', binary=False)
        vertices, normals = read_stl(path)

        np.testing.assert_allclose(vertices, tetrahedron.vertices[tetrahedron.triangles], atol=1e-6)
        np.testing.assert_allclose(normals[0], [0, 0, -1], atol=1e-6)

    def test_malformed(self, temp_dir):
        path = temp_dir / 'bad.stl'
        path.write_text("solid x\nfacet normal 0 0 1\nouter loop\nvertex 0 0 0\nendloop\nendfacet\nendsolid x\n")

        with pytest.raises(ValueError):
            read_stl(path)

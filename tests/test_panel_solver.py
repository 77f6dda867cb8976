"""
Unit tests for the potential-flow panel evaluator
"""

import math
import logging
import pytest
import numpy as np

from aeroevolve.aero import panel_solver
from aeroevolve.aero.panel_solver import (
    AeroResult,
    FlowCondition,
    PanelMethodSolver,
    PanelSet,
    evaluate,
)
from aeroevolve.geometry.mesh import SurfaceMesh
from aeroevolve.geometry.parametric_shapes import OgiveParameters, ParametricOgive, generate


class TestFlowCondition:
    """Tests for freestream definition"""

    def test_freestream_zero_incidence(self):
        np.testing.assert_allclose(FlowCondition(speed=10).freestream, [10, 0, 0])

    def test_freestream_rotates_in_xy_plane(self):
        u = FlowCondition(speed=2, angle_of_attack=30).freestream
        np.testing.assert_allclose(u, [2 * math.cos(math.pi / 6), 1.0, 0.0])

    def test_dynamic_pressure(self):
        assert FlowCondition(speed=10).dynamic_pressure == pytest.approx(0.5 * 1.225 * 100)

    @pytest.mark.parametrize("re,regime", [
        (5e4, "laminar"),
        (1e5, "transitional"),
        (9.9e5, "transitional"),
        (1e6, "turbulent"),
        (1e7, "turbulent"),
    ])
    def test_regime(self, re, regime):
        assert FlowCondition(reynolds_number=re).regime == regime

    def test_dict_round_trip(self):
        flow = FlowCondition(speed=40, angle_of_attack=-15, reynolds_number=1e6)
        d = flow.to_dict()

        assert d['regime'] == 'turbulent'
        assert FlowCondition.from_dict(d) == flow


class TestPanelSet:
    """Tests for per-triangle panel data"""

    def test_tetrahedron_panels(self, tetrahedron):
        panels = PanelSet.from_mesh(tetrahedron)

        np.testing.assert_allclose(panels.areas, [0.5, 0.5, 0.5, math.sqrt(3) / 2])
        np.testing.assert_allclose(np.linalg.norm(panels.normals, axis=1), 1.0)
        np.testing.assert_allclose(panels.normals[0], [0, 0, -1])
        np.testing.assert_allclose(panels.centroids[3], [1 / 3, 1 / 3, 1 / 3])

    def test_zero_area_panel_has_zero_normal(self):
        mesh = SurfaceMesh(
            np.array([[0, 0, 0], [1, 0, 0], [2, 0, 0]], dtype=float),
            np.array([[0, 1, 2]]),
        )
        panels = PanelSet.from_mesh(mesh)

        assert panels.areas[0] == 0
        np.testing.assert_array_equal(panels.normals[0], [0, 0, 0])


class TestEvaluation:
    """Tests for pressure and force evaluation"""

    def test_result_shapes(self, tetrahedron):
        result = evaluate(tetrahedron, FlowCondition(speed=5))

        assert isinstance(result, AeroResult)
        assert result.pressure_coefficients.shape == (4,)
        assert result.velocities.shape == (4, 3)
        assert math.isfinite(result.drag) and math.isfinite(result.lift)

    def test_cp_upper_bound(self, wing_genes, coarse):
        """Cp = 1 - (V/U)^2 can never exceed 1"""
        mesh = generate('naca', wing_genes, coarse)
        result = evaluate(mesh, FlowCondition(speed=30, angle_of_attack=5))
        assert (result.pressure_coefficients <= 1.0).all()

    def test_deterministic(self, wing_genes, coarse):
        mesh = generate('naca', wing_genes, coarse)
        flow = FlowCondition(speed=15, angle_of_attack=4)
        a = evaluate(mesh, flow)
        b = evaluate(mesh, flow)

        assert a.drag == b.drag
        assert a.lift == b.lift
        np.testing.assert_array_equal(a.pressure_coefficients, b.pressure_coefficients)

    def test_ogive_zero_lift_at_zero_incidence(self, coarse):
        mesh = ParametricOgive(OgiveParameters(length=5.0, radius=1.0), coarse).generate()
        flow = FlowCondition(speed=20, angle_of_attack=0)
        result = evaluate(mesh, flow)

        scale = flow.dynamic_pressure * mesh.surface_area() * np.abs(result.pressure_coefficients).max()
        assert abs(result.lift) <= 1e-9 * scale

    def test_chunking_does_not_change_result(self, wing_genes, coarse, monkeypatch):
        mesh = generate('naca', wing_genes, coarse)
        flow = FlowCondition(speed=10, angle_of_attack=3)
        reference = evaluate(mesh, flow)

        monkeypatch.setattr(panel_solver, '_CHUNK_PAIRS', 7)
        chunked = evaluate(mesh, flow)

        cp = reference.pressure_coefficients
        np.testing.assert_allclose(chunked.pressure_coefficients, cp,
                                   rtol=1e-9, atol=1e-9 * np.abs(cp).max())
        assert chunked.drag == pytest.approx(reference.drag, rel=1e-6, abs=1e-9)

    def test_module_function_matches_solver(self, tetrahedron):
        flow = FlowCondition(speed=3, angle_of_attack=10)
        assert evaluate(tetrahedron, flow).drag == PanelMethodSolver(flow).evaluate(tetrahedron).drag


class TestCoefficients:
    """Tests for force normalization"""

    def test_normalization(self, tetrahedron):
        flow = FlowCondition(speed=8, angle_of_attack=5)
        result = evaluate(tetrahedron, flow)
        q = flow.dynamic_pressure

        assert result.drag_coefficient(2.0) == pytest.approx(result.drag / (q * 2.0))
        assert result.lift_coefficient(0.5) == pytest.approx(result.lift / (q * 0.5))

    def test_solver_coefficient_helpers(self, tetrahedron):
        solver = PanelMethodSolver(FlowCondition(speed=8))
        result = solver.evaluate(tetrahedron)

        assert solver.drag_coefficient(tetrahedron, 1.0) == pytest.approx(result.drag_coefficient(1.0))
        assert solver.lift_coefficient(tetrahedron, 1.0) == pytest.approx(result.lift_coefficient(1.0))

    def test_zero_reference_area_is_guarded(self, tetrahedron):
        result = evaluate(tetrahedron, FlowCondition(speed=8))
        assert result.drag_coefficient(0.0) == 0.0

    def test_to_dict(self, tetrahedron):
        d = evaluate(tetrahedron, FlowCondition(speed=8)).to_dict()
        assert set(d) >= {'drag', 'lift', 'cd', 'cl', 'cp_min', 'cp_max'}


class TestDegenerateInputs:
    """Degenerate inputs must degrade to zeros, never raise"""

    def test_zero_speed(self, tetrahedron, caplog):
        with caplog.at_level(logging.WARNING):
            result = evaluate(tetrahedron, FlowCondition(speed=0.0))

        np.testing.assert_array_equal(result.pressure_coefficients, np.zeros(4))
        assert result.drag == 0.0
        assert result.lift == 0.0
        assert result.drag_coefficient() == 0.0
        assert "too small" in caplog.text

    def test_empty_mesh(self):
        mesh = SurfaceMesh(np.zeros((0, 3)), np.zeros((0, 3), dtype=int))
        result = evaluate(mesh, FlowCondition(speed=10))

        assert len(result.pressure_coefficients) == 0
        assert result.drag == 0.0
        assert result.cp_range == (0.0, 0.0)

    def test_zero_area_panel_contributes_nothing(self, tetrahedron):
        vertices = np.vstack([tetrahedron.vertices, [[2.0, 0.0, 0.0]]])
        triangles = np.vstack([tetrahedron.triangles, [[1, 4, 1]]])
        mesh = SurfaceMesh(vertices, triangles)
        flow = FlowCondition(speed=10)

        result = evaluate(mesh, flow)
        reference = evaluate(tetrahedron, flow)

        assert np.isfinite(result.pressure_coefficients).all()
        assert result.drag == pytest.approx(reference.drag)
        assert result.lift == pytest.approx(reference.lift)

    def test_coincident_vertex_and_centroid(self):
        """A vertex placed on a panel centroid is skipped, not divided by zero"""
        vertices = np.array([
            [0.0, 0.0, 0.0],
            [3.0, 0.0, 0.0],
            [0.0, 3.0, 0.0],
            [1.0, 1.0, 0.0],  # centroid of the first triangle
        ])
        mesh = SurfaceMesh(vertices, np.array([[0, 1, 2], [1, 3, 2]]))
        result = evaluate(mesh, FlowCondition(speed=5, angle_of_attack=45))

        assert np.isfinite(result.pressure_coefficients).all()
        assert math.isfinite(result.drag)

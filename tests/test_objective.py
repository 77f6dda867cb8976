"""
Unit tests for scenario objectives and single-design analysis
"""

import math
import pytest
import numpy as np

from aeroevolve.genes import MissingGeneError
from aeroevolve.optimization.genetic import ObjectiveResult
from aeroevolve.optimization.objective import (
    MIN_DRAG_FOR_RATIO,
    OptimizationGoal,
    analyze_design,
    build_objective,
    fitness_from_coefficients,
    parse_goal,
)
from aeroevolve.scenarios import get_scenario


class TestGoals:
    """Goal text parsing and fitness mapping"""

    @pytest.mark.parametrize("text,goal", [
        ('Minimize drag coefficient', OptimizationGoal.MINIMIZE_DRAG),
        ('Minimize drag at CL=0.8', OptimizationGoal.MINIMIZE_DRAG),
        ('Maximize L/D ratio', OptimizationGoal.MAXIMIZE_LIFT_TO_DRAG),
        ('maximize downforce', OptimizationGoal.MAXIMIZE_DOWNFORCE),
        ('maximize_lift_to_drag', OptimizationGoal.MAXIMIZE_LIFT_TO_DRAG),
        ('Maximize flow rate', OptimizationGoal.MINIMIZE_DRAG),
    ])
    def test_parse(self, text, goal):
        assert parse_goal(text) is goal

    def test_parse_passthrough(self):
        assert parse_goal(OptimizationGoal.MAXIMIZE_DOWNFORCE) is OptimizationGoal.MAXIMIZE_DOWNFORCE

    def test_minimize_drag(self):
        assert fitness_from_coefficients(OptimizationGoal.MINIMIZE_DRAG, 0.3, 1.0) == -0.3

    def test_lift_to_drag(self):
        assert fitness_from_coefficients(OptimizationGoal.MAXIMIZE_LIFT_TO_DRAG, 0.1, 0.8) == pytest.approx(8.0)

    def test_lift_to_drag_guard(self):
        tiny = MIN_DRAG_FOR_RATIO / 2
        assert fitness_from_coefficients(OptimizationGoal.MAXIMIZE_LIFT_TO_DRAG, tiny, 5.0) == 0.0

    def test_downforce(self):
        assert fitness_from_coefficients(OptimizationGoal.MAXIMIZE_DOWNFORCE, 0.2, -1.5) == 1.5


class TestBuildObjective:
    """Chromosome to fitness pipeline"""

    def test_side_channel(self, coarse):
        scenario = get_scenario('bicycle-frame')
        objective = build_objective(scenario, resolution=coarse)
        result = objective(scenario.gene_template())

        assert isinstance(result, ObjectiveResult)
        side = result.side_channel
        assert side.mesh.triangle_count == 2 * coarse.span_segments * (2 * coarse.airfoil_points + 1)
        assert len(side.pressure_coefficients) == side.mesh.vertex_count
        assert result.fitness == pytest.approx(-side.drag)

    def test_side_channel_holds_coefficients(self, coarse):
        scenario = get_scenario('uav-wing')
        genes = scenario.gene_template()
        result = build_objective(scenario, resolution=coarse)(genes)
        analysis = analyze_design(scenario, resolution=coarse)

        assert result.side_channel.drag == pytest.approx(analysis.cd)
        assert result.side_channel.lift == pytest.approx(analysis.cl)

    def test_reference_area_scales_coefficients(self, coarse):
        scenario = get_scenario('ahmed-body')
        genes = scenario.gene_template()
        unit = build_objective(scenario, resolution=coarse)(genes)
        half = build_objective(scenario, reference_area=0.5, resolution=coarse)(genes)

        assert half.side_channel.drag == pytest.approx(2 * unit.side_channel.drag)

    def test_deterministic(self, coarse):
        scenario = get_scenario('bullet-train')
        objective = build_objective(scenario, resolution=coarse)
        genes = scenario.gene_template()

        assert objective(genes).fitness == objective(genes).fitness


class TestAnalyzeDesign:
    """Evaluation of manually chosen designs"""

    def test_defaults(self, coarse):
        analysis = analyze_design(get_scenario('ahmed-body'), resolution=coarse)

        assert analysis.scenario_id == 'ahmed-body'
        assert math.isfinite(analysis.cd)
        assert analysis.fitness == pytest.approx(-analysis.cd)

    def test_values_are_clamped(self, coarse):
        analysis = analyze_design(get_scenario('ahmed-body'), {'slantAngle': 90}, resolution=coarse)
        values = {g.name: g.value for g in analysis.genes}
        assert values['slantAngle'] == 40

    def test_unknown_gene(self, coarse):
        with pytest.raises(MissingGeneError):
            analyze_design(get_scenario('ahmed-body'), {'wheelbase': 2.0}, resolution=coarse)

    def test_lift_to_drag_guard(self, coarse):
        analysis = analyze_design(get_scenario('f1-wing'), resolution=coarse)
        analysis.cd = MIN_DRAG_FOR_RATIO / 10
        assert analysis.lift_to_drag is None

    def test_to_dict(self, coarse):
        d = analyze_design(get_scenario('hydrofoil'), resolution=coarse).to_dict()

        assert d['scenario_id'] == 'hydrofoil'
        assert d['cp_max'] <= 1.0
        assert d['n_vertices'] > 0
        assert {g['name'] for g in d['genes']} == {'camber', 'camberPos', 'thickness', 'chord', 'span'}

    def test_pressure_field_per_vertex(self, coarse):
        analysis = analyze_design(get_scenario('bullet-train'), resolution=coarse)
        cp = analysis.result.pressure_coefficients

        assert cp.shape == (analysis.mesh.vertex_count,)
        assert np.isfinite(cp).all()

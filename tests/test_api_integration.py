"""
API Integration Tests for the AeroEvolve Backend

These tests exercise the actual FastAPI endpoints to verify:
- Scenario catalog listing and single-design analysis
- Optimization run creation, evolution and status tracking
- Best-design downloads and artifact export
- Error codes for unknown ids and invalid requests
"""

import json
import struct
import pytest
from fastapi.testclient import TestClient

from aeroevolve import app as app_module
from aeroevolve.app import app, runs


@pytest.fixture
def client():
    """Create FastAPI test client with an empty run store."""
    runs.clear()
    yield TestClient(app)
    runs.clear()


@pytest.fixture
def run_id(client):
    """A small seeded run on the coarse mesh."""
    response = client.post("/api/runs", json={
        "scenario_id": "ahmed-body",
        "population_size": 6,
        "seed": 42,
        "resolution": "coarse",
    })
    assert response.status_code == 200
    return response.json()["id"]


@pytest.fixture
def evolved_run(client, run_id):
    response = client.post(f"/api/runs/{run_id}/evolve", json={"generations": 2})
    assert response.status_code == 200
    return run_id


class TestHealthEndpoint:
    """Tests for health check endpoint."""

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestScenarioEndpoints:
    """Tests for the scenario catalog."""

    def test_list(self, client):
        data = client.get("/api/scenarios").json()
        ids = [s["id"] for s in data["scenarios"]]

        assert len(ids) == 10
        assert "uav-wing" in ids

    def test_detail(self, client):
        data = client.get("/api/scenarios/bullet-train").json()

        assert data["shape_family"] == "ogive"
        assert data["flow"]["speed"] == 100
        assert data["constraints"][0]["name"] == "Max Length"

    def test_unknown_scenario(self, client):
        assert client.get("/api/scenarios/warp-drive").status_code == 404


class TestAnalyzeEndpoint:
    """Tests for single-design analysis."""

    def test_analyze_defaults(self, client):
        response = client.post("/api/scenarios/f1-wing/analyze", json={"resolution": "coarse"})
        assert response.status_code == 200

        data = response.json()
        assert data["scenario_id"] == "f1-wing"
        assert "cd" in data and "cl" in data
        assert "surface" not in data

    def test_analyze_with_surface(self, client):
        response = client.post("/api/scenarios/ahmed-body/analyze", json={
            "values": {"slantAngle": 30},
            "resolution": "coarse",
            "include_surface": True,
        })
        data = response.json()

        assert response.status_code == 200
        assert len(data["surface"]["pressures"]) == data["n_vertices"]

    def test_unknown_gene(self, client):
        response = client.post("/api/scenarios/ahmed-body/analyze", json={
            "values": {"wheelbase": 2.0},
            "resolution": "coarse",
        })
        assert response.status_code == 400

    def test_unknown_resolution(self, client):
        response = client.post("/api/scenarios/ahmed-body/analyze", json={"resolution": "ultra"})
        assert response.status_code == 400


class TestRunEndpoints:
    """Tests for optimization run lifecycle."""

    def test_create(self, client, run_id):
        data = client.get(f"/api/runs/{run_id}").json()

        assert data["scenario_id"] == "ahmed-body"
        assert data["generation"] == 0
        assert data["best"] is None
        assert data["constraints"] == ["Fixed Length", "Fixed Width"]

    def test_create_without_constraints(self, client):
        data = client.post("/api/runs", json={
            "scenario_id": "ahmed-body",
            "population_size": 4,
            "resolution": "coarse",
            "apply_constraints": False,
        }).json()
        assert data["constraints"] == []

    def test_create_invalid_config(self, client):
        response = client.post("/api/runs", json={
            "scenario_id": "ahmed-body",
            "population_size": 4,
            "elitism_count": 10,
        })
        assert response.status_code == 400

    def test_create_unknown_scenario(self, client):
        response = client.post("/api/runs", json={"scenario_id": "warp-drive"})
        assert response.status_code == 404

    def test_evolve(self, client, evolved_run):
        data = client.get(f"/api/runs/{evolved_run}").json()

        assert data["generation"] == 2
        assert len(data["fitness_history"]) == 2
        assert data["fitness_history"][1] >= data["fitness_history"][0]
        assert data["best"]["cd"] is not None

    def test_evolve_generation_limits(self, client, run_id):
        assert client.post(f"/api/runs/{run_id}/evolve", json={"generations": 0}).status_code == 400
        too_many = app_module.MAX_GENERATIONS_PER_REQUEST + 1
        assert client.post(f"/api/runs/{run_id}/evolve", json={"generations": too_many}).status_code == 400

    def test_list(self, client, run_id):
        data = client.get("/api/runs").json()
        assert [r["id"] for r in data["runs"]] == [run_id]

    def test_reset(self, client, evolved_run):
        data = client.post(f"/api/runs/{evolved_run}/reset").json()

        assert data["generation"] == 0
        assert data["fitness_history"] == []
        assert data["constraints"] == ["Fixed Length", "Fixed Width"]

    def test_delete(self, client, run_id):
        assert client.delete(f"/api/runs/{run_id}").status_code == 200
        assert client.get(f"/api/runs/{run_id}").status_code == 404
        assert client.delete(f"/api/runs/{run_id}").status_code == 404

    def test_unknown_run(self, client):
        assert client.get("/api/runs/nope").status_code == 404
        assert client.post("/api/runs/nope/evolve", json={}).status_code == 404


class TestBestDesignEndpoints:
    """Tests for best-design downloads and exports."""

    def test_no_best_yet(self, client, run_id):
        assert client.get(f"/api/runs/{run_id}/best.stl").status_code == 409
        assert client.get(f"/api/runs/{run_id}/best/surface").status_code == 409

    def test_best_stl(self, client, evolved_run):
        response = client.get(f"/api/runs/{evolved_run}/best.stl")
        body = response.content

        assert response.status_code == 200
        assert response.headers["content-type"] == "model/stl"
        count = struct.unpack('<I', body[80:84])[0]
        assert len(body) == 84 + 50 * count

    def test_best_surface(self, client, evolved_run):
        data = client.get(f"/api/runs/{evolved_run}/best/surface").json()
        assert len(data["pressures"]) == data["n_vertices"]

    def test_snapshot(self, client, evolved_run):
        data = client.get(f"/api/runs/{evolved_run}/snapshot").json()

        assert data["scenario"] == "ahmed-body"
        assert data["generation"] == 2
        assert [g["name"] for g in data["genes"]] == ["slantAngle", "edgeRadius", "rearHeight"]

    def test_export(self, client, evolved_run, tmp_path, monkeypatch):
        monkeypatch.setattr(app_module, "RESULTS_DIR", tmp_path)
        data = client.post(f"/api/runs/{evolved_run}/export").json()

        out_dir = tmp_path / evolved_run
        assert set(data["files"]) == {"snapshot", "stl", "ply", "fitness_history"}
        for name in ("snapshot.json", "best.stl", "best_pressure.ply", "fitness_history.png"):
            assert (out_dir / name).exists()
        assert json.loads((out_dir / "snapshot.json").read_text())["generation"] == 2

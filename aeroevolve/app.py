"""
AeroEvolve - Evolutionary Aerodynamic Shape Optimization
FastAPI Backend for scenario analysis and genetic optimization runs
"""

import logging
import os
import uuid
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional
from fastapi import FastAPI, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel

from .genes import MissingGeneError
from .geometry.parametric_shapes import MeshResolution
from .geometry.stl import save_stl, stl_binary_bytes
from .optimization.genetic import GAConfig, GeneticAlgorithm
from .optimization.objective import analyze_design, build_objective
from .scenarios import UnknownScenarioError, get_scenario, list_scenarios
from .session import SessionSnapshot, save_snapshot
from .visualization.fitness_history import plot_fitness_history
from .visualization.pressure_surface import build_pressure_surface, export_pressure_surface_ply

logger = logging.getLogger(__name__)

# Configuration
BASE_DIR = Path(__file__).parent.parent
RESULTS_DIR = Path(os.environ.get("AEROEVOLVE_RESULTS_DIR", BASE_DIR / "results"))
MAX_GENERATIONS_PER_REQUEST = 200

RESOLUTIONS = {
    "standard": MeshResolution,
    "coarse": MeshResolution.coarse,
}

# Ensure directories exist
RESULTS_DIR.mkdir(parents=True, exist_ok=True)

app = FastAPI(title="AeroEvolve", description="Evolutionary Aerodynamic Shape Optimization")

# In-memory optimization run store
runs: Dict[str, dict] = {}


class AnalyzeRequest(BaseModel):
    """Request model for single-design analysis."""
    values: Dict[str, float] = {}
    reference_area: float = 1.0
    resolution: str = "standard"
    include_surface: bool = False


class RunRequest(BaseModel):
    """Request model for creating an optimization run."""
    scenario_id: str
    population_size: int = 30
    mutation_rate: float = 0.15
    crossover_rate: float = 0.7
    elitism_count: int = 2
    tournament_size: int = 3
    n_jobs: int = 1
    seed: Optional[int] = None
    resolution: str = "standard"
    reference_area: float = 1.0
    apply_constraints: bool = True


class EvolveRequest(BaseModel):
    """Request model for advancing a run."""
    generations: int = 1


def _resolution(name: str) -> MeshResolution:
    if name not in RESOLUTIONS:
        raise HTTPException(400, f"Unknown resolution '{name}'. Use one of {list(RESOLUTIONS)}")
    return RESOLUTIONS[name]()


def _scenario_or_404(scenario_id: str):
    try:
        return get_scenario(scenario_id)
    except UnknownScenarioError:
        raise HTTPException(404, f"Scenario '{scenario_id}' not found")


def _run_or_404(run_id: str) -> dict:
    if run_id not in runs:
        raise HTTPException(404, "Optimization run not found")
    return runs[run_id]


def _best_or_409(run: dict):
    best = run["ga"].best
    if best is None or best.mesh is None:
        raise HTTPException(409, "Run has no evaluated design yet; evolve at least one generation")
    return best


def _run_status(run: dict) -> dict:
    ga: GeneticAlgorithm = run["ga"]
    best = ga.best
    return {
        "id": run["id"],
        "scenario_id": run["scenario_id"],
        "generation": ga.generation,
        "best": {
            "fitness": best.fitness,
            "genes": [g.to_dict() for g in best.genes],
            "cd": best.drag,
            "cl": best.lift,
        } if best is not None else None,
        "average_fitness": ga.average_fitness(),
        "fitness_history": ga.fitness_history,
        "mean_fitness_history": ga.mean_fitness_history,
        "config": ga.config.to_dict(),
        "resolution": run["resolution"],
        "constraints": [c.name for c in ga.constraints],
        "created_at": run["created_at"],
        "updated_at": run["updated_at"],
    }


# =============================================================================
# Scenarios
# =============================================================================

@app.get("/api/health")
async def health():
    return {"status": "ok", "runs": len(runs)}


@app.get("/api/scenarios")
async def get_scenarios():
    """List the scenario catalog."""
    return {"scenarios": [s.to_dict() for s in list_scenarios()]}


@app.get("/api/scenarios/{scenario_id}")
async def get_scenario_detail(scenario_id: str):
    return _scenario_or_404(scenario_id).to_dict()


@app.post("/api/scenarios/{scenario_id}/analyze")
def analyze_scenario_design(scenario_id: str, request: AnalyzeRequest):
    """
    Evaluate one design of a scenario.

    Gene values not given keep the scenario defaults; values outside a
    gene's bounds are clamped.
    """
    scenario = _scenario_or_404(scenario_id)
    resolution = _resolution(request.resolution)
    try:
        analysis = analyze_design(scenario, request.values, request.reference_area, resolution)
    except MissingGeneError as e:
        raise HTTPException(400, str(e))

    result = analysis.to_dict()
    if request.include_surface:
        result["surface"] = build_pressure_surface(analysis.mesh, analysis.result.pressure_coefficients)
    return result


# =============================================================================
# Optimization runs
# =============================================================================

@app.post("/api/runs")
def create_run(request: RunRequest):
    """Create an optimization run with a freshly initialized population."""
    scenario = _scenario_or_404(request.scenario_id)
    resolution = _resolution(request.resolution)

    try:
        config = GAConfig(
            population_size=request.population_size,
            mutation_rate=request.mutation_rate,
            crossover_rate=request.crossover_rate,
            elitism_count=request.elitism_count,
            tournament_size=request.tournament_size,
            n_jobs=request.n_jobs,
            seed=request.seed,
        )
    except ValueError as e:
        raise HTTPException(400, str(e))

    ga = GeneticAlgorithm(config)
    if request.apply_constraints:
        for constraint in scenario.build_constraints():
            ga.add_constraint(constraint)
    ga.initialize_population(scenario.genes)

    run_id = str(uuid.uuid4())[:8]
    now = datetime.now().isoformat()
    runs[run_id] = {
        "id": run_id,
        "scenario_id": scenario.id,
        "ga": ga,
        "objective": build_objective(scenario, request.reference_area, resolution),
        "resolution": request.resolution,
        "created_at": now,
        "updated_at": now,
    }
    logger.info(f"Created run {run_id} for scenario '{scenario.id}'")
    return _run_status(runs[run_id])


@app.get("/api/runs")
async def list_runs():
    return {"runs": [_run_status(run) for run in runs.values()]}


@app.get("/api/runs/{run_id}")
async def get_run(run_id: str):
    """Get run status, best design and fitness history."""
    return _run_status(_run_or_404(run_id))


@app.post("/api/runs/{run_id}/evolve")
def evolve_run(run_id: str, request: EvolveRequest):
    """Advance a run by the requested number of generations."""
    run = _run_or_404(run_id)
    if not 1 <= request.generations <= MAX_GENERATIONS_PER_REQUEST:
        raise HTTPException(
            400, f"generations must be between 1 and {MAX_GENERATIONS_PER_REQUEST}"
        )

    ga: GeneticAlgorithm = run["ga"]
    for _ in range(request.generations):
        ga.evolve(run["objective"])
    run["updated_at"] = datetime.now().isoformat()

    logger.info(
        f"Run {run_id}: generation {ga.generation}, best fitness {ga.best.fitness:.6g}"
    )
    return _run_status(run)


@app.post("/api/runs/{run_id}/reset")
def reset_run(run_id: str):
    """Re-initialize the population; constraints and config are kept."""
    run = _run_or_404(run_id)
    scenario = get_scenario(run["scenario_id"])
    run["ga"].initialize_population(scenario.genes)
    run["updated_at"] = datetime.now().isoformat()
    return _run_status(run)


@app.delete("/api/runs/{run_id}")
async def delete_run(run_id: str):
    _run_or_404(run_id)
    del runs[run_id]
    logger.info(f"Deleted run {run_id}")
    return {"deleted": run_id}


@app.get("/api/runs/{run_id}/snapshot")
async def get_run_snapshot(run_id: str):
    run = _run_or_404(run_id)
    return SessionSnapshot.from_algorithm(run["scenario_id"], run["ga"]).to_dict()


@app.get("/api/runs/{run_id}/best.stl")
async def download_best_stl(run_id: str):
    """Binary STL of the best design found so far."""
    best = _best_or_409(_run_or_404(run_id))
    return Response(
        content=stl_binary_bytes(best.mesh),
        media_type="model/stl",
        headers={"Content-Disposition": f'attachment; filename="{run_id}_best.stl"'},
    )


@app.get("/api/runs/{run_id}/best/surface")
async def get_best_surface(run_id: str):
    """Best design with per-vertex Cp for Three.js rendering."""
    best = _best_or_409(_run_or_404(run_id))
    return build_pressure_surface(best.mesh, best.pressure_coefficients)


@app.post("/api/runs/{run_id}/export")
def export_run(run_id: str):
    """
    Write run artifacts under RESULTS_DIR/<run_id>/:
    snapshot.json, best.stl, best_pressure.ply, fitness_history.png
    """
    run = _run_or_404(run_id)
    best = _best_or_409(run)
    ga: GeneticAlgorithm = run["ga"]

    out_dir = RESULTS_DIR / run_id
    out_dir.mkdir(parents=True, exist_ok=True)

    snapshot = SessionSnapshot.from_algorithm(run["scenario_id"], ga)
    files = {
        "snapshot": str(save_snapshot(snapshot, out_dir / "snapshot.json")),
        "stl": str(save_stl(best.mesh, out_dir / "best.stl")),
    }
    ply = export_pressure_surface_ply(best.mesh, best.pressure_coefficients, out_dir / "best_pressure.ply")
    if ply["success"]:
        files["ply"] = ply["output_path"]
    chart = plot_fitness_history(
        ga.fitness_history,
        out_dir / "fitness_history.png",
        mean_history=ga.mean_fitness_history,
        title=get_scenario(run["scenario_id"]).name,
    )
    files["fitness_history"] = chart["output_path"]

    return {"run_id": run_id, "output_dir": str(out_dir), "files": files}


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host="0.0.0.0", port=8000)

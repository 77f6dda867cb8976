"""
Run snapshot persistence.

A snapshot is a flat JSON record of one optimization run: which
scenario, how far it got, the best design and the fitness history.
It is written for sharing and inspection; a run cannot be resumed from
it because the population is not stored.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .genes import Chromosome, Gene

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


@dataclass
class SessionSnapshot:
    scenario_id: str
    generation: int
    best_fitness: Optional[float]
    best_genes: Chromosome
    fitness_history: List[float]
    average_fitness: float = 0.0
    config: Dict[str, Any] = field(default_factory=dict)
    saved_at: str = field(default_factory=lambda: datetime.now().isoformat())

    @classmethod
    def from_algorithm(cls, scenario_id: str, ga) -> 'SessionSnapshot':
        """Capture the state of a GeneticAlgorithm."""
        best = ga.best
        return cls(
            scenario_id=scenario_id,
            generation=ga.generation,
            best_fitness=best.fitness if best is not None else None,
            best_genes=[Gene(g.name, g.value, g.min_value, g.max_value) for g in best.genes]
            if best is not None else [],
            fitness_history=ga.fitness_history,
            average_fitness=ga.average_fitness(),
            config=ga.config.to_dict(),
        )

    def best_values(self) -> Dict[str, float]:
        return {g.name: g.value for g in self.best_genes}

    def to_dict(self) -> Dict[str, Any]:
        return {
            'version': SNAPSHOT_VERSION,
            'scenario': self.scenario_id,
            'generation': self.generation,
            'bestFitness': self.best_fitness,
            'genes': [g.to_dict() for g in self.best_genes],
            'fitnessHistory': list(self.fitness_history),
            'averageFitness': self.average_fitness,
            'config': self.config,
            'savedAt': self.saved_at,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'SessionSnapshot':
        return cls(
            scenario_id=d['scenario'],
            generation=int(d['generation']),
            best_fitness=d.get('bestFitness'),
            best_genes=[Gene.from_dict(g) for g in d.get('genes', [])],
            fitness_history=[float(f) for f in d.get('fitnessHistory', [])],
            average_fitness=float(d.get('averageFitness', 0.0)),
            config=d.get('config', {}),
            saved_at=d.get('savedAt', ''),
        )


def save_snapshot(snapshot: SessionSnapshot, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(snapshot.to_dict(), indent=2))
    logger.info(f"Saved snapshot of '{snapshot.scenario_id}' at generation {snapshot.generation} to {path}")
    return path


def load_snapshot(path: Union[str, Path]) -> SessionSnapshot:
    """
    Load a snapshot file.

    Raises:
        ValueError: the file is not a snapshot (missing keys or bad JSON)
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text())
        return SessionSnapshot.from_dict(data)
    except (json.JSONDecodeError, KeyError, TypeError) as e:
        raise ValueError(f"Invalid snapshot file {path.name}: {e}") from e

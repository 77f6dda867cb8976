"""
Gene and Chromosome Model

A chromosome is an ordered list of named, bounded scalar genes. Gene
order is fixed per scenario and matched positionally across a
population; name lookups go through a GeneIndex built once per
scenario instead of scanning the list on every evaluation.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence
import numpy as np


class MissingGeneError(KeyError):
    """A chromosome lacks a gene the consumer requires."""


@dataclass
class Gene:
    """Named scalar parameter with inclusive bounds."""
    name: str
    value: float
    min_value: float
    max_value: float

    def __post_init__(self):
        if self.min_value > self.max_value:
            raise ValueError(
                f"Gene '{self.name}': min {self.min_value} exceeds max {self.max_value}"
            )

    @property
    def span(self) -> float:
        return self.max_value - self.min_value

    def clamp(self, value: float) -> float:
        """Clamp a candidate value into [min, max]."""
        return max(self.min_value, min(self.max_value, value))

    def with_value(self, value: float) -> 'Gene':
        """Copy of this gene carrying a clamped value."""
        return Gene(self.name, self.clamp(value), self.min_value, self.max_value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'value': self.value,
            'min': self.min_value,
            'max': self.max_value,
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> 'Gene':
        return cls(
            name=d['name'],
            value=float(d['value']),
            min_value=float(d['min']),
            max_value=float(d['max']),
        )


Chromosome = List[Gene]


def clone_chromosome(chromosome: Sequence[Gene]) -> Chromosome:
    """Deep copy so later mutation cannot alias the source."""
    return [Gene(g.name, g.value, g.min_value, g.max_value) for g in chromosome]


def random_chromosome(template: Sequence[Gene], rng: np.random.Generator) -> Chromosome:
    """Draw every gene uniformly within its bounds."""
    return [
        Gene(g.name, float(rng.uniform(g.min_value, g.max_value)), g.min_value, g.max_value)
        for g in template
    ]


def chromosome_from_values(template: Sequence[Gene], values: Mapping[str, float]) -> Chromosome:
    """
    Build a chromosome from a template, overriding values by name.

    Unknown names raise MissingGeneError; values are clamped to bounds.
    """
    names = {g.name for g in template}
    unknown = set(values) - names
    if unknown:
        raise MissingGeneError(f"Unknown genes for template: {sorted(unknown)}")
    return [
        g.with_value(values[g.name]) if g.name in values else Gene(g.name, g.value, g.min_value, g.max_value)
        for g in template
    ]


class GeneIndex:
    """
    Name to position map for one chromosome layout.

    Built once per scenario; lookups are O(1). All chromosomes passed to
    `value`/`values` must share the layout the index was built from.
    """

    def __init__(self, names: Iterable[str]):
        self.names: List[str] = list(names)
        self.positions: Dict[str, int] = {name: i for i, name in enumerate(self.names)}

    @classmethod
    def from_chromosome(cls, chromosome: Sequence[Gene]) -> 'GeneIndex':
        return cls(g.name for g in chromosome)

    def __contains__(self, name: str) -> bool:
        return name in self.positions

    def __len__(self) -> int:
        return len(self.names)

    def require(self, names: Iterable[str], context: str = "chromosome"):
        """Raise MissingGeneError unless every name is present."""
        missing = [n for n in names if n not in self.positions]
        if missing:
            raise MissingGeneError(f"{context} is missing required genes: {missing}")

    def value(self, chromosome: Sequence[Gene], name: str, default: Optional[float] = None) -> float:
        pos = self.positions.get(name)
        if pos is None:
            if default is None:
                raise MissingGeneError(f"Gene '{name}' not in chromosome")
            return default
        return chromosome[pos].value

    def values(self, chromosome: Sequence[Gene]) -> Dict[str, float]:
        return {name: chromosome[pos].value for name, pos in self.positions.items()}

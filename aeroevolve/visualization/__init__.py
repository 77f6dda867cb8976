"""
AeroEvolve Visualization Module
Exports evaluated designs and run progress:
- 3D pressure surfaces (JSON for Three.js, PLY)
- Fitness history charts
"""

from .pressure_surface import (
    pressure_to_color,
    build_pressure_surface,
    export_pressure_surface_ply,
    export_pressure_surface_json
)
from .fitness_history import plot_fitness_history

__all__ = [
    'pressure_to_color',
    'build_pressure_surface',
    'export_pressure_surface_ply',
    'export_pressure_surface_json',
    'plot_fitness_history',
]

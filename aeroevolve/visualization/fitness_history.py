"""
Fitness History Chart

Best and mean fitness per generation rendered to PNG with matplotlib.
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Sequence

logger = logging.getLogger(__name__)


def plot_fitness_history(best_history: Sequence[float],
                         output_path: Path,
                         mean_history: Optional[Sequence[float]] = None,
                         title: str = "Fitness History") -> Dict:
    """
    Plot fitness per generation.

    Args:
        best_history: top fitness of each completed generation
        output_path: PNG file to write
        mean_history: optional population mean per generation
        title: chart title (usually the scenario name)

    Returns:
        dict with status and file info
    """
    import matplotlib
    matplotlib.use('Agg')
    import matplotlib.pyplot as plt

    output_path = Path(output_path)
    generations = list(range(1, len(best_history) + 1))

    fig, ax = plt.subplots(figsize=(10, 5), facecolor='#0f1419')
    ax.set_facecolor('#0f1419')

    ax.plot(generations, list(best_history), color='#4fc3f7', linewidth=2, label='Best')
    if mean_history is not None and len(mean_history) == len(best_history):
        ax.plot(generations, list(mean_history), color='#ffb74d', linewidth=1,
                linestyle='--', label='Mean')

    # Style
    ax.set_xlabel('Generation', color='#a0a0b0', fontsize=12)
    ax.set_ylabel('Fitness', color='#a0a0b0', fontsize=12)
    ax.tick_params(colors='#a0a0b0')
    ax.grid(True, color='#2a2f3a', linewidth=0.5)
    for spine in ax.spines.values():
        spine.set_color('#2a2f3a')
    ax.set_title(title, color='#ffffff', fontsize=14, pad=12)
    if generations:
        ax.legend(facecolor='#1a1f2a', edgecolor='#2a2f3a', labelcolor='#a0a0b0')

    plt.tight_layout()
    plt.savefig(output_path, dpi=100, facecolor='#0f1419')
    plt.close(fig)

    logger.info(f"Wrote fitness history ({len(generations)} generations) to {output_path}")
    return {
        "success": True,
        "output_path": str(output_path),
        "generations": len(generations),
        "final_best": best_history[-1] if len(best_history) else None,
    }

"""Utility functions for visualization."""

from .visualization import (
    plot_box,
    plot_semialgebraic_set,
    plot_classification,
    plot_convergence,
)

__all__ = [
    "plot_box",
    "plot_semialgebraic_set",
    "plot_classification",
    "plot_convergence",
]

"""Visualization utilities for planar sets and volume certificates."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.colors import ListedColormap
from matplotlib.patches import Rectangle

from ..extraction.certificate import classification_grid
from ..geometry.sets import HyperRectangle
from ..polynomials import polynomial_function

if TYPE_CHECKING:
    from ..extraction.volume import VolumeResult
    from ..geometry.semialgebraic import SemialgebraicSet

CLASS_COLORS = ['white', 'tab:orange', 'tab:blue']
CLASS_LABELS = ['outside', 'over-approximation', 'inside K']


def _grid(box: HyperRectangle, n_grid: int) -> tuple[np.ndarray, np.ndarray]:
    xs = np.linspace(box.lower[0], box.upper[0], n_grid)
    ys = np.linspace(box.lower[1], box.upper[1], n_grid)
    return xs, ys


def plot_box(
    box: HyperRectangle,
    ax: plt.Axes | None = None,
    color: str = 'black',
    label: str | None = None,
    **kwargs
) -> plt.Axes:
    """Outline a 2D box."""
    if ax is None:
        fig, ax = plt.subplots()

    rect = Rectangle(
        (box.lower[0], box.lower[1]),
        box.upper[0] - box.lower[0],
        box.upper[1] - box.lower[1],
        fill=False,
        edgecolor=color,
        label=label,
        **kwargs
    )
    ax.add_patch(rect)
    return ax


def plot_semialgebraic_set(
    s: SemialgebraicSet,
    box: HyperRectangle,
    ax: plt.Axes | None = None,
    n_grid: int = 200,
    color: str = 'tab:blue',
    alpha: float = 0.4
) -> plt.Axes:
    """Shade the part of a planar set inside a box by grid membership.

    Args:
        s: Planar semialgebraic set.
        box: Plot window.
        ax: Matplotlib axes (creates new if None).
        n_grid: Grid resolution per axis.
        color: Fill color.
        alpha: Transparency.

    Returns:
        The matplotlib axes.
    """
    if s.n_dims != 2:
        raise ValueError(f"can only plot planar sets, got {s.n_dims}D")
    if ax is None:
        fig, ax = plt.subplots()

    xs, ys = _grid(box, n_grid)
    X, Y = np.meshgrid(xs, ys)
    inside = s.mask(X, Y).astype(float)
    ax.contourf(X, Y, inside, levels=[0.5, 1.5], colors=[color], alpha=alpha)
    ax.contour(X, Y, inside, levels=[0.5], colors=[color])
    ax.set_xlabel(str(s.variables[0]))
    ax.set_ylabel(str(s.variables[1]))
    ax.set_aspect('equal', adjustable='box')
    return ax


def plot_classification(
    result: VolumeResult,
    K: SemialgebraicSet,
    box: HyperRectangle,
    ax: plt.Axes | None = None,
    n_grid: int = 200,
    show_level_set: bool = True
) -> plt.Axes:
    """Plot the three-way classification of a volume certificate.

    Grid points are colored by classify(): outside both sets, inside
    {p >= 1} only, or inside K. The level curve p = 1 is drawn on top.
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 8))

    xs, ys = _grid(box, n_grid)
    X, Y = np.meshgrid(xs, ys)
    classes = classification_grid(result.polynomial, K, xs, ys)
    cmap = ListedColormap(CLASS_COLORS)
    ax.contourf(X, Y, classes, levels=[-0.5, 0.5, 1.5, 2.5], cmap=cmap)

    if show_level_set:
        Z = polynomial_function(result.polynomial, K.variables)(X, Y)
        ax.contour(X, Y, Z, levels=[1.0], colors='k', linewidths=1.5)

    plot_box(box, ax)
    ax.set_xlabel(str(K.variables[0]))
    ax.set_ylabel(str(K.variables[1]))
    ax.set_title(
        f'Order {result.order}: volume <= {result.volume:.4f}'
    )
    ax.set_aspect('equal', adjustable='box')
    return ax


def plot_convergence(
    orders: list[int],
    volumes: list[float],
    exact: float | None = None,
    ax: plt.Axes | None = None
) -> plt.Axes:
    """Plot upper bounds against relaxation order."""
    if ax is None:
        fig, ax = plt.subplots()

    ax.plot(orders, volumes, 'o-', label='Upper bound')
    if exact is not None:
        ax.axhline(exact, color='k', linestyle='--', label='Exact volume')
    ax.set_xlabel('Relaxation order')
    ax.set_ylabel('Volume')
    ax.legend()
    ax.grid(True, alpha=0.3)
    return ax

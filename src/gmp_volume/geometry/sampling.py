"""Sampling boxes and Monte Carlo volume cross-checks."""

from __future__ import annotations

from enum import Enum, auto
from typing import TYPE_CHECKING

import numpy as np
from scipy.stats import qmc

from .sets import HyperRectangle

if TYPE_CHECKING:
    from .semialgebraic import SemialgebraicSet


class SamplingStrategy(Enum):
    """Available sampling strategies."""
    UNIFORM = auto()       # Uniform random sampling
    GRID = auto()          # Regular grid sampling
    LATIN_HYPERCUBE = auto()  # Latin hypercube sampling
    SOBOL = auto()         # Sobol low-discrepancy sequence
    HALTON = auto()        # Halton low-discrepancy sequence


def sample_box(
    box: HyperRectangle,
    n: int,
    strategy: SamplingStrategy = SamplingStrategy.SOBOL,
    seed: int | None = None
) -> np.ndarray:
    """Sample points from a box using the specified strategy.

    Args:
        box: Box to sample from.
        n: Number of points to sample. Grid sampling may return fewer.
        strategy: Sampling strategy to use.
        seed: Random seed for reproducibility.

    Returns:
        Array of sampled points, shape (n, n_dims).
    """
    if strategy == SamplingStrategy.UNIFORM:
        return box.sample(n, seed=seed)

    elif strategy == SamplingStrategy.GRID:
        return _sample_grid(box, n)

    elif strategy == SamplingStrategy.LATIN_HYPERCUBE:
        sampler = qmc.LatinHypercube(d=box.n_dims, seed=seed)

    elif strategy == SamplingStrategy.SOBOL:
        sampler = qmc.Sobol(d=box.n_dims, seed=seed)

    elif strategy == SamplingStrategy.HALTON:
        sampler = qmc.Halton(d=box.n_dims, seed=seed)

    else:
        raise ValueError(f"Unknown sampling strategy: {strategy}")

    return qmc.scale(sampler.random(n=n), box.lower, box.upper)


def _sample_grid(box: HyperRectangle, n: int) -> np.ndarray:
    """Regular grid with ceil(n^(1/d)) points per axis, subsampled to n."""
    n_per_dim = int(np.ceil(n ** (1 / box.n_dims)))

    grids = [
        np.linspace(box.lower[i], box.upper[i], n_per_dim)
        for i in range(box.n_dims)
    ]
    mesh = np.meshgrid(*grids, indexing='ij')
    candidates = np.column_stack([m.ravel() for m in mesh])

    if len(candidates) > n:
        indices = np.linspace(0, len(candidates) - 1, n, dtype=int)
        return candidates[indices]
    return candidates


def monte_carlo_volume(
    s: SemialgebraicSet,
    box: HyperRectangle,
    n: int = 2**14,
    strategy: SamplingStrategy = SamplingStrategy.SOBOL,
    seed: int | None = None
) -> float:
    """Estimate vol(s) as vol(box) times the fraction of samples in s.

    ``s`` must be contained in ``box``; an equality-constrained set has
    measure zero and yields (almost surely) 0.
    """
    if box.n_dims != s.n_dims:
        raise ValueError(
            f"box has {box.n_dims} dimensions, set has {s.n_dims}"
        )
    points = sample_box(box, n, strategy, seed)
    inside = s.mask(*points.T)
    return box.volume * float(np.mean(inside))

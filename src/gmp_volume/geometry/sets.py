"""Axis-aligned boxes and the moments of the Lebesgue measure on them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np


@dataclass
class HyperRectangle:
    """Axis-aligned hyperrectangle (box) defined by lower and upper bounds.

    The set is {x : lower[i] <= x[i] <= upper[i] for all i}.
    """
    lower: np.ndarray
    upper: np.ndarray

    def __post_init__(self) -> None:
        self.lower = np.asarray(self.lower, dtype=float)
        self.upper = np.asarray(self.upper, dtype=float)

        if self.lower.shape != self.upper.shape:
            raise ValueError(
                f"lower and upper must have same shape: "
                f"{self.lower.shape} vs {self.upper.shape}"
            )

        if np.any(self.lower > self.upper):
            raise ValueError("lower bounds must be <= upper bounds")

    @property
    def n_dims(self) -> int:
        return len(self.lower)

    @property
    def widths(self) -> np.ndarray:
        """Width in each dimension."""
        return self.upper - self.lower

    @property
    def volume(self) -> float:
        """Volume of the rectangle."""
        return float(np.prod(self.widths))

    def sample(self, n: int, seed: int | None = None) -> np.ndarray:
        rng = np.random.default_rng(seed)
        return rng.uniform(self.lower, self.upper, size=(n, self.n_dims))

    def defining_polynomials(self, variables: Sequence) -> list:
        """Quadratic descriptions (x_i - l_i)(u_i - x_i) >= 0, one per axis."""
        if len(variables) != self.n_dims:
            raise ValueError(
                f"need {self.n_dims} variables, got {len(variables)}"
            )
        return [
            (v - lo) * (hi - v)
            for v, lo, hi in zip(variables, self.lower, self.upper)
        ]

    def lebesgue_moment(self, exponent: Sequence[int], normalize: bool = False) -> float:
        """Integral of x^exponent over the box.

        Each axis contributes (u^(a+1) - l^(a+1)) / (a+1). With
        ``normalize`` the result is divided by the box volume, i.e. the
        moment of the uniform probability measure on the box.
        """
        if len(exponent) != self.n_dims:
            raise ValueError(
                f"exponent has {len(exponent)} entries, expected {self.n_dims}"
            )
        value = 1.0
        for a, lo, hi in zip(exponent, self.lower, self.upper):
            value *= (hi ** (a + 1) - lo ** (a + 1)) / (a + 1)
        if normalize:
            value /= self.volume
        return float(value)


def lebesgue_moments(
    box: HyperRectangle,
    exponents: Sequence[Sequence[int]],
    normalize: bool = False
) -> np.ndarray:
    """Lebesgue moments of ``box`` for a list of exponent tuples."""
    return np.array([box.lebesgue_moment(e, normalize) for e in exponents])

"""The dual polynomial and indicator classification.

For the volume problem, the multipliers of the constraint mu + nu = lambda
are the coefficients of a polynomial p with p >= 1 on K and p >= 0 on B.
Its superlevel set {p >= 1} therefore contains K, and it converges to the
indicator of K as the order grows.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
import sympy

from ..errors import DimensionMismatch
from ..geometry.semialgebraic import SemialgebraicSet
from ..polynomials import evaluate_polynomial, polynomial_function


def reconstruct_polynomial(duals: Sequence[float], basis: Sequence) -> sympy.Expr:
    """sum_i duals[i] * basis[i], expanded."""
    if len(duals) != len(basis):
        raise DimensionMismatch(
            f"{len(duals)} dual values for a basis of {len(basis)} polynomials"
        )
    terms = [
        sympy.Float(float(c)) * sympy.sympify(b)
        for c, b in zip(duals, basis)
    ]
    return sympy.expand(sympy.Add(*terms))


def _check_variables(polynomial, s: SemialgebraicSet) -> None:
    foreign = sympy.sympify(polynomial).free_symbols - set(s.variables)
    if foreign:
        names = ", ".join(sorted(str(v) for v in foreign))
        raise ValueError(f"polynomial uses variables outside the set: {names}")


def classify(
    polynomial,
    point,
    K: SemialgebraicSet,
    threshold: float = 1.0
) -> int:
    """Classify a point against the indicator over-approximation.

    Returns:
        int(p(point) >= threshold) + int(point in K): 0 outside both,
        1 in {p >= 1} but outside K (the over-approximation region),
        2 inside K. A point of K where p < 1 (possible only up to solver
        tolerance) also yields 1.
    """
    _check_variables(polynomial, K)
    value = evaluate_polynomial(polynomial, K.variables, point)
    return int(value >= threshold) + int(K.contains(point))


def classification_grid(
    polynomial,
    K: SemialgebraicSet,
    xs: np.ndarray,
    ys: np.ndarray,
    threshold: float = 1.0
) -> np.ndarray:
    """Vectorised classify() over the grid xs x ys of a planar set.

    Returns:
        Integer array of shape (len(ys), len(xs)), matching
        ``np.meshgrid(xs, ys)``.
    """
    if K.n_dims != 2:
        raise ValueError(f"grid classification needs a planar set, got {K.n_dims}D")
    _check_variables(polynomial, K)
    X, Y = np.meshgrid(np.asarray(xs, dtype=float), np.asarray(ys, dtype=float))
    above = polynomial_function(polynomial, K.variables)(X, Y) >= threshold
    return above.astype(int) + K.mask(X, Y).astype(int)

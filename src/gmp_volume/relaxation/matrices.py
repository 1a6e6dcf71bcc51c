"""Moment and localizing matrices as sparse operators on the moment arena.

A block of size k is stored as a (k*k, n_variables) coefficient matrix:
row i*k + j, applied to the vector of shared moments, gives entry (i, j).
Assembly only reads structural data (exponents and coefficients), so
blocks can be built in any order.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from scipy import sparse

from ..polynomials import Terms, add_exponents, monomial_exponents
from .arena import MomentArena


@dataclass
class PSDBlock:
    """A symmetric matrix of linear forms in the moments, constrained PSD.

    Attributes:
        label: Human-readable description, e.g. ``"M_6(mu)"``.
        size: Number of rows (and columns).
        rows: Flat entry index (i * size + j) of each nonzero.
        cols: Arena index of each nonzero.
        values: Coefficient of each nonzero. Duplicates are summed.
    """
    label: str
    size: int
    rows: list[int] = field(default_factory=list)
    cols: list[int] = field(default_factory=list)
    values: list[float] = field(default_factory=list)

    def add(self, i: int, j: int, arena_index: int, coeff: float) -> None:
        self.rows.append(i * self.size + j)
        self.cols.append(arena_index)
        self.values.append(coeff)

    def coefficients(self, n_variables: int) -> sparse.csr_matrix:
        return sparse.csr_matrix(
            (self.values, (self.rows, self.cols)),
            shape=(self.size * self.size, n_variables),
        )

    def evaluate(self, moments: np.ndarray) -> np.ndarray:
        """Numeric matrix for a given moment vector."""
        flat = self.coefficients(len(moments)) @ moments
        return flat.reshape(self.size, self.size)


def moment_matrix(
    arena: MomentArena,
    measure_name: str,
    n_vars: int,
    order: int
) -> PSDBlock:
    """M_d(y): entry (a, b) is the moment y_{a+b}, |a|, |b| <= d."""
    basis = monomial_exponents(n_vars, order)
    block = PSDBlock(label=f"M_{order}({measure_name})", size=len(basis))
    for i, a in enumerate(basis):
        for j, b in enumerate(basis):
            block.add(i, j, arena.register(measure_name, add_exponents(a, b)), 1.0)
    return block


def localizing_matrix(
    arena: MomentArena,
    measure_name: str,
    n_vars: int,
    order: int,
    g: Terms,
    label: str = "g"
) -> PSDBlock:
    """M_{d-v}(g y): entry (a, b) is sum_c g_c y_{a+b+c}, v = ceil(deg g / 2).

    Args:
        arena: Shared moment arena.
        measure_name: Measure the moments belong to.
        n_vars: Number of variables of the measure.
        order: Relaxation order d.
        g: Support inequality g >= 0 as {exponent: coefficient} over the
            measure's variables.
        label: Name used in the block label.
    """
    g_degree = max(sum(e) for e in g)
    reduced = order - (g_degree + 1) // 2
    if reduced < 0:
        raise ValueError(
            f"order {order} is too low for a localizing matrix of degree {g_degree}"
        )
    basis = monomial_exponents(n_vars, reduced)
    block = PSDBlock(label=f"M_{reduced}({label} {measure_name})", size=len(basis))
    for i, a in enumerate(basis):
        for j, b in enumerate(basis):
            ab = add_exponents(a, b)
            for c, coeff in g.items():
                block.add(i, j, arena.register(measure_name, add_exponents(ab, c)), coeff)
    return block


def localizing_equalities(
    arena: MomentArena,
    measure_name: str,
    n_vars: int,
    order: int,
    h: Terms
) -> list[dict[int, float]]:
    """Rows of L_y(h x^a) = 0 for all |a| <= 2d - deg h."""
    h_degree = max(sum(e) for e in h)
    rows = []
    for a in monomial_exponents(n_vars, 2 * order - h_degree):
        row: dict[int, float] = {}
        for c, coeff in h.items():
            index = arena.register(measure_name, add_exponents(a, c))
            row[index] = row.get(index, 0.0) + coeff
        rows.append(row)
    return rows


def rows_to_matrix(rows: list[dict[int, float]], n_variables: int) -> sparse.csr_matrix:
    """Stack {arena index: coefficient} rows into a sparse matrix."""
    data, row_idx, col_idx = [], [], []
    for r, row in enumerate(rows):
        for c, v in row.items():
            row_idx.append(r)
            col_idx.append(c)
            data.append(v)
    return sparse.csr_matrix(
        (data, (row_idx, col_idx)), shape=(len(rows), n_variables)
    )

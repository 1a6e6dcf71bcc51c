"""Monomial enumeration and polynomial canonicalisation on top of sympy.

Polynomials travel through the package as sympy expressions. Whenever a
numeric view is needed they are canonicalised into a mapping from exponent
tuples (one entry per variable, in declaration order) to float coefficients.
"""

from __future__ import annotations

from math import comb
from typing import Callable, Iterator, Sequence

import numpy as np
import sympy

from .errors import ParseError

Exponent = tuple[int, ...]
Terms = dict[Exponent, float]


def _exponents_of_degree(n_vars: int, degree: int) -> Iterator[Exponent]:
    if n_vars == 0:
        if degree == 0:
            yield ()
        return
    if n_vars == 1:
        yield (degree,)
        return
    for first in range(degree, -1, -1):
        for rest in _exponents_of_degree(n_vars - 1, degree - first):
            yield (first,) + rest


def monomial_exponents(
    n_vars: int,
    max_degree: int,
    min_degree: int = 0
) -> list[Exponent]:
    """Enumerate exponent tuples in graded lexicographic order.

    Args:
        n_vars: Number of variables.
        max_degree: Largest total degree to include.
        min_degree: Smallest total degree to include.

    Returns:
        Exponent tuples, lowest degree first; within a degree the first
        variable carries the highest power first.
    """
    exponents = []
    for degree in range(max(min_degree, 0), max_degree + 1):
        exponents.extend(_exponents_of_degree(n_vars, degree))
    return exponents


def n_monomials(n_vars: int, max_degree: int) -> int:
    """Number of monomials of degree <= max_degree, C(n + d, n)."""
    if max_degree < 0:
        return 0
    return comb(n_vars + max_degree, n_vars)


def monomial(variables: Sequence[sympy.Symbol], exponent: Exponent) -> sympy.Expr:
    """Build the sympy monomial x^exponent."""
    return sympy.Mul(*[v**e for v, e in zip(variables, exponent)])


def monomials(
    variables: Sequence[sympy.Symbol],
    max_degree: int,
    min_degree: int = 0
) -> list[sympy.Expr]:
    """Sympy monomials of degree in [min_degree, max_degree], graded order."""
    return [
        monomial(variables, e)
        for e in monomial_exponents(len(variables), max_degree, min_degree)
    ]


def add_exponents(a: Exponent, b: Exponent) -> Exponent:
    return tuple(i + j for i, j in zip(a, b))


def degree(exponent: Exponent) -> int:
    return sum(exponent)


def polynomial_terms(expr, variables: Sequence[sympy.Symbol]) -> Terms:
    """Canonicalise a polynomial into {exponent: coefficient}.

    Args:
        expr: sympy expression, sympy Poly, or number.
        variables: Ordered variables the exponents refer to.

    Returns:
        Mapping with zero coefficients dropped.

    Raises:
        ParseError: If expr is not a polynomial in ``variables`` with
            numeric coefficients.
    """
    if isinstance(expr, sympy.Poly):
        expr = expr.as_expr()
    try:
        expr = sympy.sympify(expr)
    except sympy.SympifyError as exc:
        raise ParseError(f"cannot interpret {expr!r} as a polynomial") from exc

    foreign = expr.free_symbols - set(variables)
    if foreign:
        names = ", ".join(sorted(str(s) for s in foreign))
        raise ParseError(f"{expr} uses undeclared variables: {names}")

    if not variables:
        if not expr.is_number:
            raise ParseError(f"{expr} is not a numeric constant")
        value = float(expr)
        return {(): value} if value != 0 else {}

    if not expr.is_polynomial(*variables):
        raise ParseError(f"{expr} is not a polynomial in {tuple(variables)}")

    poly = sympy.Poly(sympy.expand(expr), *variables)
    terms = {}
    for exponent, coeff in poly.terms():
        value = float(coeff)
        if value != 0:
            terms[tuple(int(e) for e in exponent)] = value
    return terms


def terms_degree(terms: Terms) -> int:
    """Total degree of a canonical polynomial (0 for the zero polynomial)."""
    return max((degree(e) for e in terms), default=0)


def polynomial_function(
    expr,
    variables: Sequence[sympy.Symbol]
) -> Callable[..., np.ndarray]:
    """Compile a polynomial into a numpy-broadcasting callable.

    The callable takes one array per variable and always returns a float
    array of the broadcast shape, also for constant polynomials.
    """
    if isinstance(expr, sympy.Poly):
        expr = expr.as_expr()
    func = sympy.lambdify(tuple(variables), sympy.sympify(expr), modules='numpy')

    def evaluate(*coords) -> np.ndarray:
        arrays = [np.asarray(c, dtype=float) for c in coords]
        shape = np.broadcast_shapes(*[a.shape for a in arrays]) if arrays else ()
        values = np.asarray(func(*arrays), dtype=float)
        return np.broadcast_to(values, shape).copy()

    return evaluate


def evaluate_polynomial(expr, variables: Sequence[sympy.Symbol], point) -> float:
    """Evaluate a polynomial at a single point."""
    point = np.asarray(point, dtype=float).ravel()
    if len(point) != len(variables):
        raise ValueError(
            f"point has {len(point)} coordinates, expected {len(variables)}"
        )
    return float(polynomial_function(expr, variables)(*point))

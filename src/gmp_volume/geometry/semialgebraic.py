"""Basic semialgebraic sets: conjunctions of polynomial (in)equalities.

A set is stored in canonical form, as an ordered list of pairs (p, relation)
meaning p(x) >= 0 or p(x) = 0. Compactness is assumed, never checked: a
relaxation built over an unbounded support is not rejected, it is simply
meaningless.
"""

from __future__ import annotations

import re
import warnings
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Sequence

import numpy as np
import sympy
from sympy.core.relational import Relational
from sympy.parsing.sympy_parser import (
    convert_xor,
    parse_expr,
    standard_transformations,
)

from ..errors import ParseError
from ..polynomials import polynomial_function, polynomial_terms, terms_degree
from .sets import HyperRectangle

_TRANSFORMATIONS = standard_transformations + (convert_xor,)
_CONJUNCTION = re.compile(r"&&?|\band\b")


class Relation(Enum):
    """Relation of a defining polynomial to zero."""
    GEQ = ">= 0"
    EQ = "= 0"


@dataclass(frozen=True)
class SemialgebraicSet:
    """The set {x : g_i(x) >= 0, h_j(x) = 0}.

    Attributes:
        variables: Ordered coordinate symbols.
        constraints: Canonical (polynomial, relation) pairs, in the order
            the clauses were given.
    """
    variables: tuple[sympy.Symbol, ...]
    constraints: tuple[tuple[sympy.Poly, Relation], ...]

    @property
    def n_dims(self) -> int:
        return len(self.variables)

    @property
    def max_degree(self) -> int:
        return max((p.total_degree() for p, _ in self.constraints), default=0)

    def defining_inequalities(self) -> list[sympy.Poly]:
        """Polynomials g with g(x) >= 0 on the set."""
        return [p for p, rel in self.constraints if rel is Relation.GEQ]

    def defining_equalities(self) -> list[sympy.Poly]:
        """Polynomials h with h(x) = 0 on the set."""
        return [p for p, rel in self.constraints if rel is Relation.EQ]

    def evaluate(self, x) -> np.ndarray:
        """Values of all defining polynomials at a single point."""
        x = np.asarray(x, dtype=float).ravel()
        if len(x) != self.n_dims:
            raise ValueError(
                f"point has {len(x)} coordinates, expected {self.n_dims}"
            )
        return np.array([
            float(polynomial_function(p, self.variables)(*x))
            for p, _ in self.constraints
        ])

    def contains(self, x, tol: float = 1e-9) -> bool:
        """Check membership of a single point, up to tolerance ``tol``."""
        values = self.evaluate(x)
        for value, (_, rel) in zip(values, self.constraints):
            if rel is Relation.GEQ and value < -tol:
                return False
            if rel is Relation.EQ and abs(value) > tol:
                return False
        return True

    def mask(self, *coords, tol: float = 1e-9) -> np.ndarray:
        """Vectorised membership: one array per variable, boolean result."""
        arrays = [np.asarray(c, dtype=float) for c in coords]
        shape = np.broadcast_shapes(*[a.shape for a in arrays]) if arrays else ()
        inside = np.ones(shape, dtype=bool)
        for p, rel in self.constraints:
            values = polynomial_function(p, self.variables)(*arrays)
            if rel is Relation.GEQ:
                inside &= values >= -tol
            else:
                inside &= np.abs(values) <= tol
        return inside

    def __str__(self) -> str:
        clauses = [f"{p.as_expr()} {rel.value}" for p, rel in self.constraints]
        return "{" + ", ".join(clauses) + "}"


def _split_clauses(expressions) -> list:
    if isinstance(expressions, (str, sympy.Basic)):
        expressions = [expressions]

    clauses = []
    for item in expressions:
        if isinstance(item, str):
            clauses.extend(c.strip() for c in _CONJUNCTION.split(item) if c.strip())
        elif isinstance(item, sympy.And):
            clauses.extend(item.args)
        else:
            clauses.append(item)
    return clauses


def _parse_string(clause: str, local_dict: dict):
    try:
        if "==" in clause:
            lhs, rhs = clause.split("==", 1)
            return sympy.Eq(
                parse_expr(lhs, local_dict=local_dict, transformations=_TRANSFORMATIONS),
                parse_expr(rhs, local_dict=local_dict, transformations=_TRANSFORMATIONS),
                evaluate=False,
            )
        return parse_expr(clause, local_dict=local_dict, transformations=_TRANSFORMATIONS)
    except (SyntaxError, TypeError, sympy.SympifyError) as exc:
        raise ParseError(f"cannot parse clause {clause!r}") from exc


def _canonical(relational) -> tuple[sympy.Expr, Relation]:
    if isinstance(relational, (sympy.Or, sympy.Not)):
        raise ParseError(f"only conjunctions are supported, got {relational}")
    if not isinstance(relational, Relational):
        raise ParseError(f"{relational!r} is not a polynomial comparison")

    lhs, rhs = relational.lhs, relational.rhs
    if isinstance(relational, sympy.Eq):
        return lhs - rhs, Relation.EQ
    if isinstance(relational, (sympy.StrictGreaterThan, sympy.StrictLessThan)):
        warnings.warn(
            f"strict inequality {relational} replaced by its closure",
            stacklevel=3,
        )
    if isinstance(relational, (sympy.GreaterThan, sympy.StrictGreaterThan)):
        return lhs - rhs, Relation.GEQ
    if isinstance(relational, (sympy.LessThan, sympy.StrictLessThan)):
        return rhs - lhs, Relation.GEQ
    raise ParseError(f"unsupported relation in {relational}")


def make_set(
    expressions,
    variables: Sequence[sympy.Symbol] | None = None
) -> SemialgebraicSet:
    """Build a semialgebraic set from a conjunction of comparisons.

    Args:
        expressions: A sympy relational or ``And``, a string such as
            ``"1 - x^2 >= 0 & 1 - y^2 >= 0"``, or an iterable of these.
        variables: Coordinate order. Defaults to the free symbols of all
            clauses sorted by name.

    Returns:
        The canonical SemialgebraicSet.

    Raises:
        ParseError: If a clause is not a polynomial compared against a
            polynomial or constant, or if it does not involve any variable.
    """
    local_dict = {str(v): v for v in variables} if variables is not None else {}

    relationals = []
    for clause in _split_clauses(expressions):
        if isinstance(clause, str):
            clause = _parse_string(clause, local_dict)
        relationals.append(clause)

    if not relationals:
        raise ParseError("a set needs at least one defining clause")

    canonical = [_canonical(r) for r in relationals]

    if variables is None:
        symbols = set()
        for expr, _ in canonical:
            symbols |= expr.free_symbols
        variables = sorted(symbols, key=str)
    variables = tuple(variables)

    constraints = []
    for expr, rel in canonical:
        terms = polynomial_terms(expr, variables)
        if terms_degree(terms) == 0:
            raise ParseError(f"clause {expr} {rel.value} does not involve any variable")
        constraints.append((sympy.Poly(sympy.expand(expr), *variables), rel))

    return SemialgebraicSet(variables=variables, constraints=tuple(constraints))


def _nonnegative_interval(
    polys: Iterable[np.ndarray]
) -> tuple[float, float] | None:
    """The region {t : g_k(t) >= 0 for all k} if it is one bounded interval.

    Args:
        polys: Coefficient arrays, highest power first.
    """
    polys = [np.asarray(c, dtype=float) for c in polys]
    roots = np.concatenate([np.roots(c) for c in polys])
    real = np.sort(roots[np.abs(roots.imag) < 1e-9].real)
    if len(real) < 2:
        return None
    real = real[np.concatenate(([True], np.diff(real) > 1e-12))]
    if len(real) < 2:
        return None

    samples = np.concatenate((
        [real[0] - 1.0],
        (real[:-1] + real[1:]) / 2,
        [real[-1] + 1.0],
    ))
    nonneg = np.ones(len(samples), dtype=bool)
    for c in polys:
        nonneg &= np.polyval(c, samples) >= 0
    if nonneg[0] or nonneg[-1]:
        return None

    runs = np.flatnonzero(nonneg)
    if len(runs) == 0 or np.any(np.diff(runs) != 1):
        return None
    # gap k sits between real[k - 1] and real[k]
    return float(real[runs[0] - 1]), float(real[runs[-1]])


def bounding_box(s: SemialgebraicSet) -> HyperRectangle | None:
    """Recover the box described by a set, if it is exactly a box.

    Every defining polynomial must be an inequality in a single variable
    whose nonnegativity region is one bounded interval, and every variable
    must be bounded that way. Otherwise returns None.
    """
    if s.defining_equalities():
        return None

    per_variable: list[list[np.ndarray]] = [[] for _ in range(s.n_dims)]
    for g in s.defining_inequalities():
        used = [i for i, v in enumerate(s.variables) if g.degree(v) > 0]
        if len(used) != 1:
            return None
        i = used[0]
        univariate = sympy.Poly(g.as_expr(), s.variables[i])
        per_variable[i].append(
            np.array([float(c) for c in univariate.all_coeffs()])
        )

    lower = np.empty(s.n_dims)
    upper = np.empty(s.n_dims)
    for i, polys in enumerate(per_variable):
        interval = _nonnegative_interval(polys) if polys else None
        if interval is None:
            return None
        lower[i], upper[i] = interval
    return HyperRectangle(lower=lower, upper=upper)

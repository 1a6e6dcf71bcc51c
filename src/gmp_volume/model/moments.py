"""Measures and linear expressions in their moments."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Sequence

import numpy as np
import sympy

from ..errors import DimensionMismatch, DuplicateNameError
from ..geometry.semialgebraic import SemialgebraicSet
from ..polynomials import Exponent, polynomial_terms, degree

# (measure name, exponent) identifies one moment
MomentKey = tuple[str, Exponent]


@dataclass(frozen=True, eq=False)
class Measure:
    """An abstract nonnegative measure on R^n supported on a set.

    Attributes:
        name: Unique name within a model.
        variables: Coordinates the measure integrates over.
        support: Semialgebraic set containing the support.
    """
    name: str
    variables: tuple[sympy.Symbol, ...]
    support: SemialgebraicSet

    def __post_init__(self) -> None:
        foreign = set(self.support.variables) - set(self.variables)
        if foreign:
            names = ", ".join(sorted(str(v) for v in foreign))
            raise ValueError(
                f"support of measure {self.name!r} uses variables "
                f"not integrated over: {names}"
            )

    @property
    def n_vars(self) -> int:
        return len(self.variables)

    def __repr__(self) -> str:
        names = ", ".join(str(v) for v in self.variables)
        return f"Measure({self.name!r}, [{names}], support={self.support})"


class ConstraintRelation(Enum):
    """Relation between a moment expression and its targets."""
    EQ = "=="
    GEQ = ">="
    LEQ = "<="

    @classmethod
    def parse(cls, relation) -> ConstraintRelation:
        if isinstance(relation, cls):
            return relation
        aliases = {
            "eq": cls.EQ, "==": cls.EQ, "=": cls.EQ,
            "geq": cls.GEQ, ">=": cls.GEQ,
            "leq": cls.LEQ, "<=": cls.LEQ,
        }
        try:
            return aliases[str(relation).lower()]
        except KeyError:
            raise ValueError(f"Unknown constraint relation: {relation!r}") from None


@dataclass
class MomentExpression:
    """A vector of linear combinations of moments.

    Row i is a mapping (measure name, exponent) -> coefficient. ``basis``
    records the polynomial each row was built from, which is what dual
    values of a constraint over this expression are aligned to.
    """
    rows: list[dict[MomentKey, float]]
    basis: list[sympy.Expr]
    measures: dict[str, Measure] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if len(self.rows) != len(self.basis):
            raise DimensionMismatch(
                f"{len(self.rows)} rows but {len(self.basis)} basis polynomials"
            )

    @property
    def n_rows(self) -> int:
        return len(self.rows)

    def __len__(self) -> int:
        return len(self.rows)

    @property
    def max_degree(self) -> int:
        return max(
            (degree(e) for row in self.rows for (_, e) in row),
            default=0,
        )

    def _merged_measures(self, other: MomentExpression) -> dict[str, Measure]:
        merged = dict(self.measures)
        for name, measure in other.measures.items():
            if merged.setdefault(name, measure) is not measure:
                raise DuplicateNameError(
                    f"two different measures are named {name!r}"
                )
        return merged

    def plus(self, other: MomentExpression, scale: float = 1.0) -> MomentExpression:
        """Row-wise self + scale * other."""
        if other.n_rows != self.n_rows:
            raise DimensionMismatch(
                f"cannot combine expressions with {self.n_rows} "
                f"and {other.n_rows} rows"
            )
        measures = self._merged_measures(other)
        rows = []
        for left, right in zip(self.rows, other.rows):
            row = dict(left)
            for key, coeff in right.items():
                value = row.get(key, 0.0) + scale * coeff
                if value == 0:
                    row.pop(key, None)
                else:
                    row[key] = value
            rows.append(row)
        return MomentExpression(rows, list(self.basis), measures)

    def minus(self, other: MomentExpression) -> MomentExpression:
        """Row-wise self - other."""
        return self.plus(other, scale=-1.0)

    def scaled(self, factor: float) -> MomentExpression:
        """Every coefficient multiplied by ``factor``."""
        factor = float(factor)
        rows = [
            {k: factor * c for k, c in row.items()} if factor != 0 else {}
            for row in self.rows
        ]
        return MomentExpression(rows, list(self.basis), dict(self.measures))

    def __add__(self, other: MomentExpression) -> MomentExpression:
        return self.plus(other)

    def __sub__(self, other: MomentExpression) -> MomentExpression:
        return self.minus(other)

    def __neg__(self) -> MomentExpression:
        return self.scaled(-1.0)

    def __mul__(self, factor: float) -> MomentExpression:
        return self.scaled(factor)

    __rmul__ = __mul__

    def __repr__(self) -> str:
        names = ", ".join(self.measures)
        return f"MomentExpression(n_rows={self.n_rows}, measures=[{names}])"


def _as_polynomial_list(polynomials) -> list:
    if isinstance(polynomials, (str, int, float, np.number, sympy.Basic)):
        return [polynomials]
    return list(polynomials)


def Mom(measure: Measure, polynomials) -> MomentExpression:
    """Moments of ``measure`` against one polynomial or a sequence of them.

    ``Mom(mu, 1)`` is the mass of mu; ``Mom(mu, [1, x, y])`` is the vector
    of its moments up to degree one.

    Raises:
        ParseError: If a polynomial uses variables the measure does not
            integrate over.
    """
    polys = _as_polynomial_list(polynomials)
    rows = []
    basis = []
    for p in polys:
        terms = polynomial_terms(p, measure.variables)
        rows.append({(measure.name, e): c for e, c in terms.items()})
        basis.append(p.as_expr() if isinstance(p, sympy.Poly) else sympy.sympify(p))
    return MomentExpression(rows, basis, {measure.name: measure})


@dataclass
class MomentConstraint:
    """A named relation ``expression (==|>=|<=) targets``, row by row."""
    name: str
    expression: MomentExpression
    relation: ConstraintRelation
    targets: np.ndarray

    @property
    def basis(self) -> list[sympy.Expr]:
        return self.expression.basis

    @property
    def n_rows(self) -> int:
        return self.expression.n_rows


def targets_vector(targets: Iterable[float] | Sequence[float]) -> np.ndarray:
    return np.asarray(list(targets), dtype=float).ravel()

"""The Generalized Moment Problem model: measures, objective, constraints."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

import numpy as np
import sympy

from ..errors import DimensionMismatch, DuplicateNameError
from ..geometry.semialgebraic import SemialgebraicSet, make_set
from .moments import (
    ConstraintRelation,
    Measure,
    MomentConstraint,
    MomentExpression,
    targets_vector,
)
from .results import RelaxationResult, SolveStatus


class ObjectiveSense(Enum):
    """Direction of optimization."""
    MAX = "max"
    MIN = "min"

    @classmethod
    def parse(cls, sense) -> ObjectiveSense:
        if isinstance(sense, cls):
            return sense
        try:
            return cls(str(sense).lower())
        except ValueError:
            raise ValueError(f"Unknown objective sense: {sense!r}") from None


@dataclass
class Objective:
    sense: ObjectiveSense
    expression: MomentExpression


@dataclass
class GMPModel:
    """A Generalized Moment Problem over named measures.

    The model is built incrementally (declare measures, set the objective,
    add constraints) and then relaxed at some order. Declarations persist
    across relaxations; ``result`` holds the outcome of the last relax()
    call that reached the solver.

    A model is not synchronized: relax() calls on the same instance must
    be serialized by the caller.
    """
    measures: dict[str, Measure] = field(default_factory=dict)
    constraints: dict[str, MomentConstraint] = field(default_factory=dict)
    objective: Objective | None = None
    result: RelaxationResult | None = None

    @property
    def status(self) -> SolveStatus:
        if self.result is None:
            return SolveStatus.NOT_SOLVED
        return self.result.status

    def measure(self, name: str) -> Measure:
        return self.measures[name]

    def constraint(self, name: str) -> MomentConstraint:
        return self.constraints[name]

    def declare_measure(
        self,
        name: str,
        variables: Sequence[sympy.Symbol],
        support
    ) -> Measure:
        """Register a measure supported on ``support``.

        Args:
            name: Unique measure name.
            variables: Coordinates the measure integrates over.
            support: A SemialgebraicSet, or anything make_set accepts.

        Raises:
            DuplicateNameError: If ``name`` is already declared.
            ParseError: If ``support`` cannot be parsed.
        """
        if name in self.measures:
            raise DuplicateNameError(f"measure {name!r} is already declared")
        variables = tuple(
            v if isinstance(v, sympy.Symbol) else sympy.Symbol(str(v))
            for v in variables
        )
        if not isinstance(support, SemialgebraicSet):
            support = make_set(support, variables)
        measure = Measure(name=name, variables=variables, support=support)
        self.measures[name] = measure
        return measure

    def _check_measures(self, expression: MomentExpression) -> None:
        for name, measure in expression.measures.items():
            if self.measures.get(name) is not measure:
                raise ValueError(f"measure {name!r} is not declared in this model")

    def set_objective(self, sense, expression: MomentExpression) -> None:
        """Set (or replace) the objective ``sense <expression>``.

        Raises:
            DimensionMismatch: If the expression has more than one row.
        """
        sense = ObjectiveSense.parse(sense)
        if expression.n_rows != 1:
            raise DimensionMismatch(
                f"objective must be a single moment expression, "
                f"got {expression.n_rows} rows"
            )
        self._check_measures(expression)
        self.objective = Objective(sense, expression)

    def add_constraint(
        self,
        name: str,
        expression: MomentExpression,
        relation,
        targets
    ) -> MomentConstraint:
        """Add the named constraint ``expression relation targets``.

        Raises:
            DuplicateNameError: If ``name`` is already used.
            DimensionMismatch: If there is not exactly one target per row.
        """
        if name in self.constraints:
            raise DuplicateNameError(f"constraint {name!r} is already declared")
        relation = ConstraintRelation.parse(relation)
        self._check_measures(expression)
        targets = targets_vector(targets)
        if len(targets) != expression.n_rows:
            raise DimensionMismatch(
                f"constraint {name!r} has {expression.n_rows} rows "
                f"but {len(targets)} targets"
            )
        if not np.all(np.isfinite(targets)):
            raise ValueError(f"constraint {name!r} has non-finite targets")
        constraint = MomentConstraint(name, expression, relation, targets)
        self.constraints[name] = constraint
        return constraint


def declare_measure(model: GMPModel, name: str, variables, support) -> Measure:
    return model.declare_measure(name, variables, support)


def set_objective(model: GMPModel, sense, expression: MomentExpression) -> None:
    model.set_objective(sense, expression)


def add_constraint(
    model: GMPModel,
    name: str,
    expression: MomentExpression,
    relation,
    targets
) -> MomentConstraint:
    return model.add_constraint(name, expression, relation, targets)

"""Model module: measures, moment expressions and the GMP model."""

from .moments import (
    Measure,
    MomentExpression,
    MomentConstraint,
    ConstraintRelation,
    Mom,
)
from .gmp import (
    GMPModel,
    Objective,
    ObjectiveSense,
    declare_measure,
    set_objective,
    add_constraint,
)
from .results import RelaxationResult, SolveStatus

__all__ = [
    "Measure",
    "MomentExpression",
    "MomentConstraint",
    "ConstraintRelation",
    "Mom",
    "GMPModel",
    "Objective",
    "ObjectiveSense",
    "declare_measure",
    "set_objective",
    "add_constraint",
    "RelaxationResult",
    "SolveStatus",
]

"""Volume approximation of semialgebraic sets via the moment-SOS hierarchy.

A generalized moment problem (GMP) is declared over measures supported on
semialgebraic sets, relaxed at a chosen order into a semidefinite program
and solved with cvxpy. The volume workflow bounds vol(K) from above and
returns the dual polynomial whose superlevel set {p >= 1} contains K.
"""

from .errors import (
    GMPError,
    ParseError,
    DimensionMismatch,
    DuplicateNameError,
    MissingObjectiveError,
    InsufficientOrder,
    QueryBeforeSolve,
    SolverInfeasible,
    SolverUnbounded,
    SolverNumericalError,
    UnknownConstraintError,
)
from .geometry import HyperRectangle, SemialgebraicSet, make_set, bounding_box, monte_carlo_volume
from .model import (
    GMPModel,
    Measure,
    Mom,
    ConstraintRelation,
    ObjectiveSense,
    RelaxationResult,
    SolveStatus,
    declare_measure,
    set_objective,
    add_constraint,
)
from .relaxation import SolverConfig, relax
from .extraction import (
    objective_value,
    dual_value,
    moment_value,
    moment_matrix_value,
    reconstruct_polynomial,
    classify,
    classification_grid,
    VolumeResult,
    build_volume_model,
    estimate_volume,
)

__version__ = "0.1.0"

__all__ = [
    "GMPError",
    "ParseError",
    "DimensionMismatch",
    "DuplicateNameError",
    "MissingObjectiveError",
    "InsufficientOrder",
    "QueryBeforeSolve",
    "SolverInfeasible",
    "SolverUnbounded",
    "SolverNumericalError",
    "UnknownConstraintError",
    "HyperRectangle",
    "SemialgebraicSet",
    "make_set",
    "bounding_box",
    "monte_carlo_volume",
    "GMPModel",
    "Measure",
    "Mom",
    "ConstraintRelation",
    "ObjectiveSense",
    "RelaxationResult",
    "SolveStatus",
    "declare_measure",
    "set_objective",
    "add_constraint",
    "SolverConfig",
    "relax",
    "objective_value",
    "dual_value",
    "moment_value",
    "moment_matrix_value",
    "reconstruct_polynomial",
    "classify",
    "classification_grid",
    "VolumeResult",
    "build_volume_model",
    "estimate_volume",
]

"""Exception hierarchy for model declaration, relaxation and queries.

Structural errors (parsing, dimensions, names, order) are raised eagerly.
Solver outcomes are recorded on the model and only raised when a caller
queries a value that the last solve did not produce.
"""


class GMPError(Exception):
    """Base class for all errors raised by gmp_volume."""


class ParseError(GMPError, ValueError):
    """A set clause is not a polynomial (in)equality."""


class DimensionMismatch(GMPError, ValueError):
    """Row counts or target lengths do not agree."""


class DuplicateNameError(GMPError, ValueError):
    """A measure or constraint name is already taken."""


class MissingObjectiveError(GMPError, ValueError):
    """relax() was called on a model without an objective."""


class InsufficientOrder(GMPError, ValueError):
    """The relaxation order is too low for a declared degree."""

    def __init__(self, order: int, required: int, reason: str):
        self.order = order
        self.required = required
        super().__init__(
            f"relaxation order {order} is too low: {reason} "
            f"requires order >= {required}"
        )


class QueryBeforeSolve(GMPError, RuntimeError):
    """A solution value was queried without an optimal solve."""


class SolverInfeasible(QueryBeforeSolve):
    """The last relaxation was reported infeasible."""


class SolverUnbounded(QueryBeforeSolve):
    """The last relaxation was reported unbounded."""


class SolverNumericalError(QueryBeforeSolve):
    """The solver failed or stopped without a usable solution."""


class UnknownConstraintError(GMPError, KeyError):
    """No constraint with the requested name exists."""

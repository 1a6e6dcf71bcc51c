"""Read primal and dual quantities back from a relaxed model."""

from __future__ import annotations

import numpy as np

from ..errors import (
    InsufficientOrder,
    QueryBeforeSolve,
    SolverInfeasible,
    SolverNumericalError,
    SolverUnbounded,
    UnknownConstraintError,
)
from ..model.gmp import GMPModel
from ..model.moments import Measure
from ..model.results import RelaxationResult, SolveStatus
from ..polynomials import add_exponents, monomial_exponents, polynomial_terms, terms_degree

_FAILURES = {
    SolveStatus.INFEASIBLE: (SolverInfeasible, "infeasible"),
    SolveStatus.UNBOUNDED: (SolverUnbounded, "unbounded"),
    SolveStatus.NUMERICAL_ERROR: (SolverNumericalError, "not solved (numerical error)"),
}


def _optimal_result(model: GMPModel) -> RelaxationResult:
    if model.result is None:
        raise QueryBeforeSolve("relax the model before querying its solution")
    if model.result.status in _FAILURES:
        error, what = _FAILURES[model.result.status]
        raise error(f"the order-{model.result.order} relaxation is {what}")
    return model.result


def objective_value(model: GMPModel) -> float:
    """Optimal value of the last relaxation.

    Raises:
        QueryBeforeSolve: If the model was never relaxed, or (as one of
            its subclasses) if the last relaxation was not optimal.
    """
    return _optimal_result(model).objective


def dual_value(model: GMPModel, constraint_name: str) -> np.ndarray:
    """Dual vector of a constraint, aligned with the constraint's basis.

    Raises:
        UnknownConstraintError: If no such constraint is declared.
        QueryBeforeSolve: If there is no optimal solution, or the
            constraint was added after the last relaxation.
    """
    if constraint_name not in model.constraints:
        raise UnknownConstraintError(constraint_name)
    result = _optimal_result(model)
    duals = result.duals.get(constraint_name)
    if duals is None:
        raise QueryBeforeSolve(
            f"constraint {constraint_name!r} was added after the last relaxation"
        )
    return duals.copy()


def _measure(model: GMPModel, result: RelaxationResult, measure: Measure | str) -> Measure:
    name = measure.name if isinstance(measure, Measure) else measure
    measure = model.measures[name]
    if (name, (0,) * measure.n_vars) not in result.moments:
        raise QueryBeforeSolve(f"measure {name!r} was declared after the last relaxation")
    return measure


def moment_value(model: GMPModel, measure: Measure | str, polynomial) -> float:
    """Value of the linear functional y_mu on a polynomial, e.g. a monomial.

    Raises:
        InsufficientOrder: If the polynomial's degree exceeds 2d.
        QueryBeforeSolve: If there is no optimal solution, or the
            measure was declared after the last relaxation.
    """
    result = _optimal_result(model)
    measure = _measure(model, result, measure)
    terms = polynomial_terms(polynomial, measure.variables)
    deg = terms_degree(terms)
    if deg > 2 * result.order:
        raise InsufficientOrder(
            result.order, (deg + 1) // 2, f"a moment of degree {deg}"
        )
    return float(sum(
        coeff * result.moments[(measure.name, e)] for e, coeff in terms.items()
    ))


def moment_matrix_value(
    model: GMPModel,
    measure: Measure | str,
    order: int | None = None
) -> np.ndarray:
    """Numeric moment matrix M_k(y_mu), k defaulting to the relaxation order."""
    result = _optimal_result(model)
    measure = _measure(model, result, measure)
    order = result.order if order is None else order
    if order > result.order:
        raise InsufficientOrder(result.order, order, f"a moment matrix of order {order}")
    basis = monomial_exponents(measure.n_vars, order)
    return np.array([
        [result.moments[(measure.name, add_exponents(a, b))] for b in basis]
        for a in basis
    ])

"""Moment-SOS relaxation of a GMPModel at a fixed order.

At order d every measure gets one shared decision variable per monomial of
degree <= 2d. The relaxation constrains, for every measure mu:

    M_d(y_mu) >= 0                                   (moment matrix)
    M_{d - ceil(deg g / 2)}(g y_mu) >= 0             (each support g >= 0)
    L_mu(h x^a) = 0, |a| <= 2d - deg h               (each support h = 0)

plus the declared moment constraints, and optimizes the declared objective.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from scipy import sparse

from ..errors import InsufficientOrder, MissingObjectiveError
from ..model.gmp import GMPModel, ObjectiveSense
from ..model.moments import ConstraintRelation, MomentExpression
from ..model.results import RelaxationResult, SolveStatus
from ..polynomials import polynomial_terms
from .arena import MomentArena
from .matrices import (
    PSDBlock,
    localizing_equalities,
    localizing_matrix,
    moment_matrix,
    rows_to_matrix,
)
from .solver import SolverConfig, SolverResult, solve_sdp

logger = logging.getLogger(__name__)


@dataclass
class LinearConstraint:
    """A declared moment constraint expressed over arena indices."""
    name: str
    relation: ConstraintRelation
    matrix: sparse.csr_matrix
    targets: np.ndarray


@dataclass
class SDPProblem:
    """A fully assembled relaxation, independent of any solver."""
    order: int
    arena: MomentArena
    blocks: list[PSDBlock]
    support_equalities: sparse.csr_matrix
    constraints: list[LinearConstraint]
    objective: np.ndarray
    sense: ObjectiveSense

    @property
    def n_variables(self) -> int:
        return len(self.arena)

    @property
    def block_sizes(self) -> list[int]:
        return [b.size for b in self.blocks]


def required_order(model: GMPModel) -> tuple[int, str]:
    """Smallest relaxation order the model's degrees allow.

    Returns:
        (order, reason) where reason names the declaration that forces it.
    """
    required, reason = 1, "any relaxation"

    def bump(deg: int, what: str) -> None:
        nonlocal required, reason
        needed = (deg + 1) // 2
        if needed > required:
            required, reason = needed, what

    if model.objective is not None:
        bump(model.objective.expression.max_degree, "the objective")
    for name, constraint in model.constraints.items():
        bump(constraint.expression.max_degree, f"constraint {name!r}")
    for name, measure in model.measures.items():
        for p, _ in measure.support.constraints:
            bump(p.total_degree(), f"the support of measure {name!r}")
    return required, reason


def _expression_matrix(arena: MomentArena, expression: MomentExpression) -> sparse.csr_matrix:
    rows = [
        {arena.index(name, e): coeff for (name, e), coeff in row.items()}
        for row in expression.rows
    ]
    return rows_to_matrix(rows, len(arena))


def build_sdp(model: GMPModel, order: int) -> SDPProblem:
    """Assemble the order-``order`` relaxation of ``model``.

    The caller is responsible for checking the order with required_order.
    """
    arena = MomentArena()
    for measure in model.measures.values():
        arena.register_measure(measure, 2 * order)

    blocks = []
    equality_rows = []
    for measure in model.measures.values():
        blocks.append(moment_matrix(arena, measure.name, measure.n_vars, order))
        for k, g in enumerate(measure.support.defining_inequalities(), start=1):
            blocks.append(localizing_matrix(
                arena, measure.name, measure.n_vars, order,
                polynomial_terms(g, measure.variables), label=f"g{k}",
            ))
        for h in measure.support.defining_equalities():
            equality_rows.extend(localizing_equalities(
                arena, measure.name, measure.n_vars, order,
                polynomial_terms(h, measure.variables),
            ))

    n = len(arena)
    constraints = [
        LinearConstraint(
            name=c.name,
            relation=c.relation,
            matrix=_expression_matrix(arena, c.expression),
            targets=c.targets,
        )
        for c in model.constraints.values()
    ]
    objective = _expression_matrix(arena, model.objective.expression)
    return SDPProblem(
        order=order,
        arena=arena,
        blocks=blocks,
        support_equalities=rows_to_matrix(equality_rows, n),
        constraints=constraints,
        objective=objective.toarray().ravel(),
        sense=model.objective.sense,
    )


def _orient_duals(problem: SDPProblem, solved: SolverResult) -> dict[str, np.ndarray]:
    """Orient multipliers as the sensitivity of the objective to the targets.

    cvxpy attaches ``lhs - rhs`` to ``==`` and ``<=`` constraints and
    ``rhs - lhs`` to ``>=``, and reports duals of the minimization form.
    Since the relaxation is homogeneous in the targets, the oriented duals
    also satisfy sum_c <dual_c, targets_c> = objective.
    """
    sense_sign = 1.0 if problem.sense == ObjectiveSense.MAX else -1.0
    duals = {}
    for lc in problem.constraints:
        sign = -sense_sign if lc.relation == ConstraintRelation.GEQ else sense_sign
        duals[lc.name] = sign * solved.duals[lc.name]
    return duals


def relax(
    model: GMPModel,
    order: int,
    solver_config: SolverConfig | None = None
) -> RelaxationResult:
    """Build and solve the order-``order`` relaxation of ``model``.

    The outcome is stored as ``model.result`` (replacing any previous one)
    and returned. Non-optimal solver outcomes are recorded, not raised.

    Args:
        model: Model with at least one measure and an objective.
        order: Relaxation order d; monomials up to degree 2d are used.
        solver_config: Solver configuration, default CLARABEL.

    Raises:
        ValueError: If ``order`` is not a positive integer or the model
            declares no measure.
        MissingObjectiveError: If no objective was set.
        InsufficientOrder: If a declared degree exceeds what order d
            supports. Raised before anything is built; ``model.result``
            is left untouched.
    """
    if isinstance(order, bool) or not isinstance(order, (int, np.integer)) or order < 1:
        raise ValueError(f"order must be a positive integer, got {order!r}")
    if model.objective is None:
        raise MissingObjectiveError("set an objective before relaxing the model")
    if not model.measures:
        raise ValueError("the model declares no measure")

    required, reason = required_order(model)
    if order < required:
        raise InsufficientOrder(int(order), required, reason)

    config = solver_config or SolverConfig()
    problem = build_sdp(model, int(order))
    logger.debug(
        "order %d relaxation: %d moments, blocks %s, %d support equalities",
        order, problem.n_variables, problem.block_sizes,
        problem.support_equalities.shape[0],
    )

    solved = solve_sdp(problem, config)
    result = RelaxationResult(
        order=int(order),
        status=solved.status,
        solve_time=solved.solve_time,
        n_variables=problem.n_variables,
        block_sizes=problem.block_sizes,
        solver=config.name,
        solver_status=solved.solver_status,
    )
    if solved.status == SolveStatus.OPTIMAL:
        result.objective = solved.objective
        result.moments = {
            key: float(value) for key, value in zip(problem.arena, solved.primal)
        }
        result.duals = _orient_duals(problem, solved)

    model.result = result
    return result

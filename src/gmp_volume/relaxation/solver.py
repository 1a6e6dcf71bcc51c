"""Solver adapter: hands an assembled SDP to cvxpy and maps the outcome.

One synchronous solve per call, no retries. Timeouts and tolerances are
solver options and are passed through ``SolverConfig.options`` untouched.
"""

from __future__ import annotations

import logging
import time
import warnings
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import cvxpy as cp
import numpy as np

from ..model.moments import ConstraintRelation
from ..model.gmp import ObjectiveSense
from ..model.results import SolveStatus

if TYPE_CHECKING:
    from .engine import SDPProblem

logger = logging.getLogger(__name__)

_STATUS_MAP = {
    cp.OPTIMAL: SolveStatus.OPTIMAL,
    cp.OPTIMAL_INACCURATE: SolveStatus.OPTIMAL,
    cp.INFEASIBLE: SolveStatus.INFEASIBLE,
    cp.INFEASIBLE_INACCURATE: SolveStatus.INFEASIBLE,
    cp.UNBOUNDED: SolveStatus.UNBOUNDED,
    cp.UNBOUNDED_INACCURATE: SolveStatus.UNBOUNDED,
}


@dataclass(frozen=True)
class SolverConfig:
    """Configuration of the conic solver.

    Attributes:
        solver: cvxpy solver name ('CLARABEL', 'SCS', 'MOSEK', ...).
            None lets cvxpy pick an installed SDP-capable solver.
        verbose: Whether to print solver output.
        options: Extra keyword arguments for ``cvxpy.Problem.solve``,
            e.g. iteration limits or time limits.
    """
    solver: str | None = 'CLARABEL'
    verbose: bool = False
    options: dict = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.solver or 'default'


@dataclass
class SolverResult:
    """Outcome of one solve.

    ``primal`` and ``duals`` are None unless the status is OPTIMAL. Duals
    are keyed by constraint name and use cvxpy's sign convention.
    """
    status: SolveStatus
    solver_status: str
    objective: float | None = None
    primal: np.ndarray | None = None
    duals: dict[str, np.ndarray] | None = None
    solve_time: float = 0.0


def solve_sdp(problem: SDPProblem, config: SolverConfig | None = None) -> SolverResult:
    """Translate ``problem`` into a cvxpy program and solve it once.

    Args:
        problem: Assembled SDP relaxation.
        config: Solver configuration, default CLARABEL.

    Returns:
        SolverResult with mapped status. Solver failures are reported as
        NUMERICAL_ERROR instead of being raised.

    Raises:
        ValueError: If the configured solver is not installed.
    """
    config = config or SolverConfig()
    if config.solver is not None and config.solver not in cp.installed_solvers():
        raise ValueError(f"Solver {config.solver} is not installed")
    n = problem.n_variables
    y = cp.Variable(n, name="y")

    constraints = []
    for block in problem.blocks:
        flat = cp.Constant(block.coefficients(n)) @ y
        matrix = cp.reshape(flat, (block.size, block.size), order='C')
        constraints.append((matrix + matrix.T) / 2 >> 0)

    if problem.support_equalities.shape[0] > 0:
        constraints.append(cp.Constant(problem.support_equalities) @ y == 0)

    named = {}
    for lc in problem.constraints:
        lhs = cp.Constant(lc.matrix) @ y
        if lc.relation == ConstraintRelation.EQ:
            named[lc.name] = lhs == lc.targets
        elif lc.relation == ConstraintRelation.GEQ:
            named[lc.name] = lhs >= lc.targets
        else:
            named[lc.name] = lhs <= lc.targets

    objective_expr = problem.objective @ y
    if problem.sense == ObjectiveSense.MAX:
        objective = cp.Maximize(objective_expr)
    else:
        objective = cp.Minimize(objective_expr)

    program = cp.Problem(objective, constraints + list(named.values()))

    logger.debug(
        "solving SDP with %d moments, %d PSD blocks, %d named constraints (%s)",
        n, len(problem.blocks), len(named), config.name,
    )

    start = time.perf_counter()
    try:
        program.solve(solver=config.solver, verbose=config.verbose, **config.options)
    except cp.error.SolverError as exc:
        logger.warning("solver %s failed: %s", config.name, exc)
        return SolverResult(
            status=SolveStatus.NUMERICAL_ERROR,
            solver_status='solver_error',
            solve_time=time.perf_counter() - start,
        )
    solve_time = time.perf_counter() - start

    raw_status = str(program.status)
    status = _STATUS_MAP.get(raw_status, SolveStatus.NUMERICAL_ERROR)
    if status != SolveStatus.OPTIMAL or y.value is None:
        logger.warning("relaxation not solved to optimality: %s", raw_status)
        if status == SolveStatus.OPTIMAL:
            status = SolveStatus.NUMERICAL_ERROR
        return SolverResult(status=status, solver_status=raw_status, solve_time=solve_time)

    if raw_status == cp.OPTIMAL_INACCURATE:
        warnings.warn(
            f"{config.name} reported an inaccurate optimal solution",
            stacklevel=2,
        )

    duals = {
        name: np.atleast_1d(np.asarray(con.dual_value, dtype=float)).ravel()
        for name, con in named.items()
    }
    return SolverResult(
        status=status,
        solver_status=raw_status,
        objective=float(program.value),
        primal=np.asarray(y.value, dtype=float),
        duals=duals,
        solve_time=solve_time,
    )

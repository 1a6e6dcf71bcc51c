"""Volume of a semialgebraic set K inside a box B via the moment GMP.

    max <mu, 1>   s.t.  mu + nu = lambda_B,  mu in M(K),  nu in M(B)

where lambda_B is the Lebesgue measure on B, imposed weakly through all
monomial test functions of degree <= 2d. The optimum is vol(K); every
relaxation gives an upper bound. With ``normalize`` the reference is the
uniform probability measure on B and the volume is the optimum times vol(B).
"""

from __future__ import annotations

from dataclasses import dataclass

import sympy

from ..geometry.semialgebraic import SemialgebraicSet, bounding_box, make_set
from ..geometry.sets import HyperRectangle, lebesgue_moments
from ..model.gmp import GMPModel, ObjectiveSense
from ..model.moments import ConstraintRelation, Mom
from ..polynomials import monomial_exponents, monomials
from ..relaxation.engine import relax
from ..relaxation.solver import SolverConfig
from .certificate import reconstruct_polynomial
from .queries import dual_value, objective_value

LEBESGUE_CONSTRAINT = "lebesgue"


def _as_box_set(
    B: SemialgebraicSet | HyperRectangle,
    variables
) -> tuple[SemialgebraicSet, HyperRectangle]:
    if isinstance(B, HyperRectangle):
        if variables is None:
            raise ValueError("variables are required when B is given as a box")
        clauses = [p >= 0 for p in B.defining_polynomials(variables)]
        return make_set(clauses, variables), B
    box = bounding_box(B)
    if box is None:
        raise ValueError(
            f"the reference set {B} is not a box; Lebesgue moments are only "
            "available for boxes"
        )
    return B, box


def build_volume_model(
    K: SemialgebraicSet,
    B: SemialgebraicSet | HyperRectangle,
    order: int,
    normalize: bool = True
) -> GMPModel:
    """Build the two-measure volume GMP with test monomials up to degree 2d.

    Args:
        K: Set whose volume is wanted; must lie inside B.
        B: Box containing K, as a semialgebraic set or a HyperRectangle.
        order: Relaxation order d the constraint basis is built for.
        normalize: Use the uniform probability measure on B as reference.

    Returns:
        Model with measures ``mu`` (on K) and ``nu`` (on B), objective
        max mass of mu, and the constraint named ``"lebesgue"``.
    """
    B, box = _as_box_set(B, K.variables)
    variables = tuple(B.variables)
    foreign = set(K.variables) - set(variables)
    if foreign:
        names = ", ".join(sorted(str(v) for v in foreign))
        raise ValueError(f"K uses variables that B does not: {names}")

    model = GMPModel()
    mu = model.declare_measure("mu", variables, K)
    nu = model.declare_measure("nu", variables, B)
    model.set_objective(ObjectiveSense.MAX, Mom(mu, 1))

    basis = monomials(variables, 2 * order)
    targets = lebesgue_moments(
        box, monomial_exponents(len(variables), 2 * order), normalize
    )
    model.add_constraint(
        LEBESGUE_CONSTRAINT,
        Mom(mu, basis).plus(Mom(nu, basis)),
        ConstraintRelation.EQ,
        targets,
    )
    return model


@dataclass
class VolumeResult:
    """Volume estimate and its dual certificate.

    Attributes:
        volume: Upper bound on vol(K) from the relaxation.
        objective: Raw optimal value (a mass fraction when normalized).
        box_volume: vol(B).
        order: Relaxation order used.
        solve_time: Solver time in seconds.
        polynomial: Dual polynomial p, p >= 1 on K and p >= 0 on B.
        variables: Coordinate order of ``polynomial``.
        model: The relaxed model, for further queries.
    """
    volume: float
    objective: float
    box_volume: float
    order: int
    solve_time: float
    polynomial: sympy.Expr
    variables: tuple[sympy.Symbol, ...]
    model: GMPModel

    def summary(self) -> str:
        """Return formatted summary string."""
        lines = [
            "Volume Estimate",
            "=" * 40,
            f"Volume (upper bound):    {self.volume:.6f}",
            f"Objective value:         {self.objective:.6f}",
            f"Reference box volume:    {self.box_volume:.6f}",
            f"Relaxation order:        {self.order}",
            f"Solve time:              {self.solve_time:.3f}s",
        ]
        return '\n'.join(lines)

    def __repr__(self) -> str:
        return f"VolumeResult(volume={self.volume:.6f}, order={self.order})"


def estimate_volume(
    K: SemialgebraicSet,
    B: SemialgebraicSet | HyperRectangle,
    order: int,
    solver_config: SolverConfig | None = None,
    normalize: bool = True
) -> VolumeResult:
    """Solve the order-``order`` volume relaxation.

    Raises:
        QueryBeforeSolve: (as SolverInfeasible, SolverUnbounded or
            SolverNumericalError) if the relaxation was not solved.
    """
    model = build_volume_model(K, B, order, normalize)
    _, box = _as_box_set(B, K.variables)
    result = relax(model, order, solver_config)

    objective = objective_value(model)
    duals = dual_value(model, LEBESGUE_CONSTRAINT)
    polynomial = reconstruct_polynomial(
        duals, model.constraint(LEBESGUE_CONSTRAINT).basis
    )
    scale = box.volume if normalize else 1.0
    return VolumeResult(
        volume=objective * scale,
        objective=objective,
        box_volume=box.volume,
        order=order,
        solve_time=result.solve_time,
        polynomial=polynomial,
        variables=model.measure("mu").variables,
        model=model,
    )

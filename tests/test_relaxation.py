"""Tests for the moment arena, matrix assembly and relax()."""

import numpy as np
import pytest
import sympy

from gmp_volume.errors import (
    InsufficientOrder,
    MissingObjectiveError,
    QueryBeforeSolve,
    SolverNumericalError,
)
from gmp_volume.extraction import dual_value, objective_value
from gmp_volume.extraction.volume import LEBESGUE_CONSTRAINT, build_volume_model
from gmp_volume.geometry.semialgebraic import make_set
from gmp_volume.model import GMPModel, Mom, SolveStatus
from gmp_volume.relaxation import (
    MomentArena,
    SolverConfig,
    build_sdp,
    localizing_equalities,
    localizing_matrix,
    moment_matrix,
    relax,
    required_order,
)
from gmp_volume.relaxation.solver import solve_sdp

x, y = sympy.symbols('x y')


def interval_model():
    """min <mu, x> over probability measures on [-1, 1]; optimum -1."""
    m = GMPModel()
    mu = m.declare_measure("mu", [x], "1 - x**2 >= 0")
    m.set_objective("min", Mom(mu, x))
    m.add_constraint("mass", Mom(mu, 1), "==", [1.0])
    return m


class TestMomentArena:
    """Tests for the shared moment index."""

    def test_aliasing(self):
        """The same (measure, exponent) always maps to one variable."""
        arena = MomentArena()

        i = arena.register("mu", (1, 1))
        j = arena.register("mu", [1, 1])
        k = arena.register("nu", (1, 1))

        assert i == j
        assert k != i
        assert len(arena) == 2
        assert ("mu", (1, 1)) in arena
        assert arena.key(k) == ("nu", (1, 1))

    def test_register_measure(self):
        """All moments up to the degree are allocated."""
        m = GMPModel()
        mu = m.declare_measure("mu", [x, y], "1 - x**2 - y**2 >= 0")
        arena = MomentArena()

        arena.register_measure(mu, 12)

        assert len(arena) == 91
        assert arena.index("mu", (0, 0)) == 0
        with pytest.raises(KeyError):
            arena.index("mu", (13, 0))


class TestMatrices:
    """Tests for moment and localizing matrices."""

    def test_moment_matrix_structure(self):
        """M_d has size C(n + d, n), is symmetric and Hankel-like."""
        arena = MomentArena()
        block = moment_matrix(arena, "mu", 2, 6)

        assert block.size == 28
        moments = np.arange(len(arena), dtype=float) + 1.0
        M = block.evaluate(moments)
        np.testing.assert_array_equal(M, M.T)
        assert M[0, 0] == moments[arena.index("mu", (0, 0))]
        # x * y = y * x
        assert M[1, 2] == moments[arena.index("mu", (1, 1))]
        assert M[3, 0] == moments[arena.index("mu", (2, 0))]

    def test_localizing_matrix(self):
        """Reduced order is d - ceil(deg g / 2)."""
        arena = MomentArena()
        g = {(0, 0): 1.0, (2, 0): -1.0, (0, 2): -1.0}

        block = localizing_matrix(arena, "mu", 2, 3, g)
        assert block.size == 6

        moments = np.ones(len(arena))
        # every entry is y_a+b - y_a+b+(2,0) - y_a+b+(0,2) = 1 - 1 - 1
        np.testing.assert_allclose(block.evaluate(moments), -np.ones((6, 6)))

        cubic = {(3, 0): 1.0}
        assert localizing_matrix(MomentArena(), "mu", 2, 2, cubic).size == 1
        with pytest.raises(ValueError):
            localizing_matrix(MomentArena(), "mu", 2, 1, cubic)

    def test_localizing_equalities(self):
        """One row per monomial of degree <= 2d - deg h."""
        arena = MomentArena()
        rows = localizing_equalities(arena, "mu", 1, 2, {(1,): 1.0, (0,): -0.5})

        assert len(rows) == 4
        assert rows[0] == {arena.index("mu", (1,)): 1.0, arena.index("mu", (0,)): -0.5}


class TestBuildSDP:
    """Tests for SDP assembly."""

    def test_volume_model_blocks(self):
        """Blocks of the disk-in-square relaxation at order 2."""
        K = make_set("1 - x**2 - y**2 >= 0")
        B = make_set("1 - x**2 >= 0 & 1 - y**2 >= 0")
        model = build_volume_model(K, B, 2)

        problem = build_sdp(model, 2)

        assert problem.n_variables == 30
        assert problem.block_sizes == [6, 3, 6, 3, 3]
        assert problem.support_equalities.shape == (0, 30)
        assert problem.constraints[0].matrix.shape == (15, 30)
        assert problem.objective[problem.arena.index("mu", (0, 0))] == 1.0

    def test_support_equalities(self):
        """Equalities of a support become linear rows."""
        m = GMPModel()
        mu = m.declare_measure("mu", [x], "x - 0.5 == 0 & 1 - x**2 >= 0")
        m.set_objective("max", Mom(mu, x))

        problem = build_sdp(m, 2)

        assert problem.support_equalities.shape == (4, problem.n_variables)

    def test_required_order(self):
        """The highest degree of any declaration decides."""
        m = GMPModel()
        mu = m.declare_measure("mu", [x], "1 - x**4 >= 0")
        m.set_objective("max", Mom(mu, x))
        assert required_order(m) == (2, "the support of measure 'mu'")

        m.add_constraint("high", Mom(mu, x**6), "<=", [1.0])
        order, reason = required_order(m)
        assert order == 3
        assert "high" in reason


class TestRelax:
    """Tests for relax() and its lifecycle."""

    def test_interval_minimum(self):
        """min E[x] over probability measures on [-1, 1] is -1."""
        model = interval_model()

        result = relax(model, 1)

        assert result.status == SolveStatus.OPTIMAL
        assert model.result is result
        assert result.objective == pytest.approx(-1.0, abs=1e-5)
        assert result.moments[("mu", (0,))] == pytest.approx(1.0, abs=1e-5)
        assert result.duals["mass"] @ np.array([1.0]) == pytest.approx(result.objective, abs=1e-5)

    def test_inequality_duals(self):
        """max E[x] with mass <= 2 on [-1, 1]: optimum 2, multiplier 1."""
        m = GMPModel()
        mu = m.declare_measure("mu", [x], "1 - x**2 >= 0")
        m.set_objective("max", Mom(mu, x))
        m.add_constraint("mass", Mom(mu, 1), "<=", [2.0])

        result = relax(m, 1)

        assert result.objective == pytest.approx(2.0, abs=1e-5)
        np.testing.assert_allclose(result.duals["mass"], [1.0], atol=1e-4)

    def test_support_equality_is_enforced(self):
        """A probability measure on {x = 0.5} has mean 0.5."""
        m = GMPModel()
        mu = m.declare_measure("mu", [x], "x - 0.5 == 0 & 1 - x**2 >= 0")
        m.set_objective("max", Mom(mu, x))
        m.add_constraint("mass", Mom(mu, 1), "==", [1.0])

        result = relax(m, 2)

        assert result.objective == pytest.approx(0.5, abs=1e-5)

    def test_invalid_order(self):
        """Order must be a positive integer."""
        model = interval_model()
        for order in [0, -1, 1.5, True]:
            with pytest.raises(ValueError):
                relax(model, order)

    def test_missing_objective(self):
        """relax() needs an objective."""
        m = GMPModel()
        m.declare_measure("mu", [x], "1 - x**2 >= 0")
        with pytest.raises(MissingObjectiveError):
            relax(m, 1)

    def test_insufficient_order_keeps_result(self):
        """A too-low order fails before solving and keeps the old result."""
        model = interval_model()
        first = relax(model, 2)

        model.add_constraint("fourth", Mom(model.measure("mu"), x**4), "<=", [1.0])
        with pytest.raises(InsufficientOrder) as info:
            relax(model, 1)

        assert info.value.order == 1
        assert info.value.required == 2
        assert model.result is first

    def test_deterministic(self):
        """Solving the same model twice gives the same value."""
        a = relax(interval_model(), 2)
        b = relax(interval_model(), 2)
        assert a.objective == pytest.approx(b.objective, abs=1e-9)

    def test_infeasible(self):
        """Negative mass is infeasible and recorded, not raised."""
        m = GMPModel()
        mu = m.declare_measure("mu", [x], "1 - x**2 >= 0")
        m.set_objective("max", Mom(mu, x))
        m.add_constraint("mass", Mom(mu, 1), "==", [-1.0])

        result = relax(m, 1)

        assert result.status == SolveStatus.INFEASIBLE
        assert result.objective is None
        assert m.status == SolveStatus.INFEASIBLE

    def test_unbounded(self):
        """Unconstrained mass makes the mass objective unbounded."""
        m = GMPModel()
        mu = m.declare_measure("mu", [x], "1 - x**2 >= 0")
        m.set_objective("max", Mom(mu, 1))

        result = relax(m, 1)

        assert result.status == SolveStatus.UNBOUNDED

    def test_unknown_solver(self):
        """Uninstalled solvers are rejected before solving."""
        model = interval_model()
        problem = build_sdp(model, 1)
        with pytest.raises(ValueError, match="not installed"):
            solve_sdp(problem, SolverConfig(solver="NO_SUCH_SOLVER"))

    def test_summary(self):
        """Summary mentions order and status."""
        result = relax(interval_model(), 1)
        text = result.summary()

        assert "Relaxation order" in text
        assert "OPTIMAL" in text


def shifted_mean_model(sense, shift, mass_relation="==", objective=None):
    """Probability-like measure on [-1, 1] with E[x] - 0.5 pinned to ``shift``."""
    m = GMPModel()
    mu = m.declare_measure("mu", [x], "1 - x**2 >= 0")
    m.set_objective(sense, Mom(mu, 2 * x if objective is None else objective))
    m.add_constraint("mass", Mom(mu, 1), mass_relation, [1.0])
    m.add_constraint("shift", Mom(mu, x - 0.5), "==", [shift])
    return m


class TestDualSensitivity:
    """Duals are the slope of the optimal value in the targets."""

    @pytest.mark.parametrize("sense", ["max", "min"])
    def test_zero_target_equality(self, sense):
        """Objective 1 + 2t for both senses: d/dt is 2, d/dmass is 1."""
        h = 0.05
        result = relax(shifted_mean_model(sense, 0.0), 1)
        up = relax(shifted_mean_model(sense, h), 1).objective
        down = relax(shifted_mean_model(sense, -h), 1).objective

        slope = (up - down) / (2 * h)
        assert slope == pytest.approx(2.0, abs=1e-3)
        np.testing.assert_allclose(result.duals["shift"], [slope], atol=1e-3)
        np.testing.assert_allclose(result.duals["mass"], [1.0], atol=1e-3)

    def test_zero_target_equality_with_inequality(self):
        """max E[x] with mass <= 1 and E[x - 0.5] = t has slope +1 in t."""
        h = 0.05
        objective = x

        def solve(t):
            return relax(shifted_mean_model("max", t, "<=", objective), 1)

        result = solve(0.0)
        slope = (solve(h).objective - solve(-h).objective) / (2 * h)

        assert result.objective == pytest.approx(0.5, abs=1e-5)
        assert slope == pytest.approx(1.0, abs=1e-3)
        np.testing.assert_allclose(result.duals["shift"], [slope], atol=1e-3)
        assert result.duals["mass"][0] >= -1e-4


class TestSolverFailures:
    """Solver failures are recorded on the model rather than raised."""

    def test_iteration_limit(self):
        """Stopping CLARABEL after one iteration is a numerical error."""
        model = build_volume_model(
            make_set("1 - x**2 - y**2 >= 0"), make_set("1 - x**2 >= 0 & 1 - y**2 >= 0"), 2
        )

        result = relax(model, 2, SolverConfig(solver="CLARABEL", options={"max_iter": 1}))

        assert result.status == SolveStatus.NUMERICAL_ERROR
        assert result.objective is None
        assert model.status == SolveStatus.NUMERICAL_ERROR
        with pytest.raises(SolverNumericalError):
            objective_value(model)
        with pytest.raises(QueryBeforeSolve):
            dual_value(model, LEBESGUE_CONSTRAINT)

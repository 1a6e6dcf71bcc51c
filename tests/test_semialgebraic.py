"""Tests for semialgebraic set descriptors."""

import numpy as np
import pytest
import sympy

from gmp_volume.errors import ParseError
from gmp_volume.geometry.semialgebraic import Relation, bounding_box, make_set
from gmp_volume.polynomials import polynomial_terms

x, y = sympy.symbols('x y')


class TestMakeSet:
    """Tests for parsing and canonicalisation."""

    def test_string_clause(self):
        """A single string with default variables."""
        disk = make_set("1 - x**2 - y**2 >= 0")

        assert disk.variables == (x, y)
        assert disk.n_dims == 2
        assert disk.max_degree == 2
        assert len(disk.defining_inequalities()) == 1
        assert disk.defining_equalities() == []

    def test_less_equal_is_flipped(self):
        """a <= b becomes b - a >= 0."""
        disk = make_set(x**2 + y**2 <= 1)
        g = disk.defining_inequalities()[0]

        assert polynomial_terms(g, [x, y]) == {(0, 0): 1.0, (2, 0): -1.0, (0, 2): -1.0}

    def test_conjunctions(self):
        """& , && and 'and' split clauses; ^ is a power."""
        square = make_set("1 - x^2 >= 0 & 1 - y^2 >= 0")
        interval = make_set("x >= 0 and x <= 1")
        both = make_set("x >= 0 && y >= 0")

        assert len(square.constraints) == 2
        assert square.max_degree == 2
        assert len(interval.constraints) == 2
        assert len(both.constraints) == 2

    def test_sympy_and(self):
        """sympy.And conjunctions are flattened."""
        s = make_set(sympy.And(x >= 0, y >= 0, x + y <= 1))
        assert len(s.defining_inequalities()) == 3

    def test_equality(self):
        """Equalities are kept as h = 0."""
        s = make_set("x + y == 1")
        assert s.constraints[0][1] is Relation.EQ
        assert polynomial_terms(s.defining_equalities()[0], [x, y]) == {
            (1, 0): 1.0, (0, 1): 1.0, (0, 0): -1.0
        }

        s = make_set([sympy.Eq(x, y), x >= 0])
        assert len(s.defining_equalities()) == 1

    def test_strict_inequality_warns(self):
        """Strict inequalities are closed with a warning."""
        with pytest.warns(UserWarning, match="closure"):
            s = make_set("x > 0")
        assert s.constraints[0][1] is Relation.GEQ

    def test_explicit_variables(self):
        """Explicit variable order is respected, also for unused ones."""
        s = make_set("1 - y**2 >= 0", variables=[y, x])
        assert s.variables == (y, x)

    def test_rejected_clauses(self):
        """Non-polynomial and non-conjunctive clauses raise ParseError."""
        with pytest.raises(ParseError):
            make_set("sin(x) >= 0")
        with pytest.raises(ParseError):
            make_set(sympy.Or(x >= 0, y >= 0))
        with pytest.raises(ParseError):
            make_set(sympy.Ne(x, 1))
        with pytest.raises(ParseError):
            make_set("x + y")
        with pytest.raises(ParseError):
            make_set("1 >= 0")
        with pytest.raises(ParseError):
            make_set([])

    def test_foreign_variable_rejected(self):
        """A clause using a variable outside the given list is rejected."""
        with pytest.raises(ParseError):
            make_set("1 - y**2 >= 0", variables=[x])


class TestMembership:
    """Tests for point and grid membership."""

    def test_contains(self):
        """Interior, boundary and exterior points."""
        disk = make_set("1 - x**2 - y**2 >= 0")

        assert disk.contains([0.0, 0.0])
        assert disk.contains([1.0, 0.0])  # Boundary
        assert not disk.contains([0.9, 0.9])

    def test_equality_tolerance(self):
        """Equalities hold up to the tolerance."""
        line = make_set("x - y == 0")

        assert line.contains([0.3, 0.3])
        assert not line.contains([0.3, 0.31])
        assert line.contains([0.3, 0.31], tol=0.1)

    def test_evaluate(self):
        """Values of every defining polynomial."""
        square = make_set("1 - x**2 >= 0 & 1 - y**2 >= 0")
        np.testing.assert_allclose(square.evaluate([0.5, 2.0]), [0.75, -3.0])

        with pytest.raises(ValueError):
            square.evaluate([0.5])

    def test_mask(self):
        """Vectorised membership over a grid."""
        disk = make_set("1 - x**2 - y**2 >= 0")
        X, Y = np.meshgrid([-1.0, 0.0, 1.0], [0.0, 0.9])

        np.testing.assert_array_equal(
            disk.mask(X, Y),
            [[True, True, True], [False, True, False]]
        )


class TestBoundingBox:
    """Tests for recovering boxes from set descriptions."""

    def test_quadratic_square(self):
        """The unit square written with quadratics."""
        box = bounding_box(make_set("1 - x**2 >= 0 & 1 - y**2 >= 0"))

        assert box is not None
        np.testing.assert_allclose(box.lower, [-1, -1])
        np.testing.assert_allclose(box.upper, [1, 1])
        assert box.volume == pytest.approx(4.0)

    def test_linear_bounds(self):
        """Separate linear bounds on each axis are intersected."""
        box = bounding_box(make_set("x >= 0 & 1 - x >= 0 & y >= 0 & 2 - y >= 0"))

        np.testing.assert_allclose(box.lower, [0, 0])
        np.testing.assert_allclose(box.upper, [1, 2])

    def test_product_form(self):
        """(x - a)(b - x) >= 0 gives [a, b]."""
        box = bounding_box(make_set("x*(1 - x) >= 0 & (y + 1)*(3 - y) >= 0"))

        np.testing.assert_allclose(box.lower, [0, -1])
        np.testing.assert_allclose(box.upper, [1, 3])

    def test_not_a_box(self):
        """Disks, half-bounded sets and equalities give None."""
        assert bounding_box(make_set("1 - x**2 - y**2 >= 0")) is None
        assert bounding_box(make_set("x >= 0 & 1 - y**2 >= 0")) is None
        assert bounding_box(make_set("x**2 - 1 >= 0 & 1 - y**2 >= 0")) is None
        assert bounding_box(make_set("1 - x**2 >= 0 & y == 0")) is None
        assert bounding_box(make_set("1 - x**2 >= 0", variables=[x, y])) is None

import numpy as np
import pytest
import sympy as sp

from symextrema.core.errors import SolverFailure
from symextrema.optimization.kkt import solve_kkt
from symextrema.optimization.solve import numeric_solve, real_zeros, rewrite_transcendental, solve2
from symextrema.optimization.variables import Bound

x, y = sp.symbols("x y")


def test_solve2_rational_system():
    assert solve2([x + y - 1, x - y], [x, y]) == [(sp.S.Half, sp.S.Half)]


def test_solve2_filters_by_bounds():
    points = solve2([x**2 - 1, y], [x, y], [Bound(0, 5), Bound()])
    assert points == [(1, 0)]


def test_solve2_substitutes_exponential_kernel():
    points = solve2([sp.exp(x) - 2, y - sp.exp(x)], [x, y])
    assert len(points) == 1
    assert sp.simplify(points[0][0] - sp.log(2)) == 0
    assert points[0][1] == 2


def test_solve2_substitutes_half_angle_tangent():
    points = solve2([sp.sin(x) - sp.cos(x), y - 1], [x, y])
    found = sorted(float(p[0]) for p in points)
    np.testing.assert_allclose(found, [-3 * np.pi / 4, np.pi / 4])
    assert all(p[1] == 1 for p in points)


def test_rewrite_transcendental_removes_trig_and_hyperbolic():
    expr = rewrite_transcendental(sp.cosh(x) + sp.sin(y))
    assert not expr.has(sp.cosh, sp.sin)
    assert expr.has(sp.exp, sp.tan)


def test_numeric_solve_converges_from_initial_guess():
    points = numeric_solve([x**2 - 2, y - x], [x, y], [1, 1])
    assert len(points) == 1
    np.testing.assert_allclose([float(v) for v in points[0]], [np.sqrt(2), np.sqrt(2)], rtol=1e-8)


def test_numeric_solve_failure_is_reported():
    with pytest.raises(SolverFailure):
        numeric_solve([x**2 + 1], [x], [0.5])


def test_kkt_equality_constrained_candidates():
    points = solve_kkt(x**2 + 2 * y**2, [], [x**2 - 2 * x + 2 * y**2 + 4 * y], [x, y])
    assert set(points) == {(0, 0), (2, -2)}


def test_kkt_rejects_infeasible_points():
    points = solve_kkt(-x * y, [2 * x + 3 * y - 10, -x, -y], [], [x, y])
    assert (sp.Rational(5, 2), sp.Rational(5, 3)) in points
    for px, py in points:
        assert bool(2 * px + 3 * py <= 10) and bool(px >= 0) and bool(py >= 0)


def test_kkt_without_real_candidates():
    a, b = sp.symbols("a b", real=True)
    assert solve_kkt(a + b, [], [a**2 + b**2 + 1], [a, b]) == []


def test_real_zeros_lists_periodic_roots():
    t = sp.Symbol("t", real=True)
    assert set(real_zeros(sp.sin(t), t)) == {0, sp.pi}
    assert sorted(real_zeros(sp.sin(t), t, Bound(-1, 7)), key=float) == [0, sp.pi, 2 * sp.pi]
    assert real_zeros(1 - sp.sign(t) / sp.Abs(t), t) == [1]


def test_solve2_single_equation_respects_the_range():
    t = sp.Symbol("t", real=True)
    points = solve2([sp.cos(t)], [t], [Bound(0, 10)])
    np.testing.assert_allclose(sorted(float(p[0]) for p in points), [np.pi / 2, 3 * np.pi / 2, 5 * np.pi / 2])

import sympy as sp

from symextrema.optimization.global_extrema import critical_univariate, find_spikes, global_extrema
from symextrema.optimization.variables import Bound, VariableSpec

x, y = sp.symbols("x y")


def test_univariate_with_bounds_includes_endpoints():
    found = global_extrema(x**4 - x**2, [], [], [VariableSpec(x, Bound(-3, 3))])
    assert found.min_value == sp.Rational(-1, 4)
    assert set(found.minimizers) == {sp.sqrt(2) / 2, -sp.sqrt(2) / 2}
    assert found.max_value == 72
    assert set(found.maximizers) == {-3, 3}


def test_find_spikes_piecewise_and_abs():
    f = sp.Piecewise((x + 6, x <= -2), (x**2, x <= 1), (sp.Rational(3, 2) - x / 2, True))
    assert set(find_spikes(f, x)) == {-2, 1}
    assert find_spikes(sp.Abs(x - 1) + x**2, x) == [1]


def test_critical_univariate_reports_poles_of_derivative():
    t = sp.Symbol("t", real=True)
    points = critical_univariate(1 / t + t, t)
    assert set(points) == {-1, 0, 1}


def test_multivariate_uses_kkt_candidates():
    found = global_extrema(2 * x**2 + y**2, [], [x + y - 1], [VariableSpec(x), VariableSpec(y)])
    assert found.min_value == sp.Rational(2, 3)
    assert found.minimizers == [(sp.Rational(1, 3), sp.Rational(2, 3))]


def test_bounds_become_inequalities_for_several_variables():
    found = global_extrema(x + y, [], [], [VariableSpec(x, Bound(0, 1)), VariableSpec(y, Bound(-1, 2))])
    assert found.min_value == -1
    assert found.minimizers == [(0, -1)]


def test_no_candidates_is_undefined():
    found = global_extrema(x + y, [], [x**2 + y**2 + 1], [VariableSpec(x), VariableSpec(y)])
    assert found.is_undefined
    assert found.minimizers == []


def test_unsolvable_non_smooth_point_is_skipped():
    assert find_spikes(sp.Abs(x - sp.cos(x)), x) == []
    found = global_extrema(sp.Abs(x - sp.cos(x)) + x**2, [], [], [VariableSpec(x, Bound(-1, 1))])
    assert not found.is_undefined
    assert found.min_value.is_real

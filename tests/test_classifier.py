import numpy as np
import pytest
import sympy as sp

from symextrema.core.config import ProblemConfig
from symextrema.core.errors import DimensionError, MalformedInputError, SizeError
from symextrema.optimization.classifier import (
    CriticalPointClass,
    CriticalPointClassifier,
    classify_bordered,
    classify_by_eigenvalues,
    merge_class,
)
from symextrema.optimization.variables import parse_variables
from symextrema.orchestrator import ExtremaOrchestrator, extrema

x, y = sp.symbols("x y")
C = CriticalPointClass


def test_unconstrained_cubic_all_kinds():
    result = extrema(2 * x**3 + 9 * x * y**2 + 15 * x**2 + 27 * y**2, [x, y])
    assert result.minima == [(0, 0)]
    assert result.maxima == [(-5, 0)]
    assert set(result.of(C.SADDLE)) == {(-3, 2), (-3, -2)}
    assert len(result.points) == 4


def test_constrained_maximum_on_a_line():
    result = extrema(x * y, [sp.Eq(x + y, 1)], [x, y])
    half = sp.S.Half
    assert result.minima == []
    assert result.maxima == [(half, half)]


def test_lagrange_mode_agrees_with_implicit_mode():
    result = extrema(x * y, [sp.Eq(x + y, 1)], [x, y], lagrange=True)
    assert result.maxima == [(sp.S.Half, sp.S.Half)]
    assert result.minima == []


def test_lagrange_needs_constraints():
    with pytest.raises(SizeError):
        extrema(x**2 + y**2, [x, y], lagrange=True)


def test_degenerate_saddle_of_monkey_saddle_type():
    result = extrema(x**3 * y - x * y**3, [x, y])
    assert result.minima == []
    assert result.maxima == []
    assert result.classes[(0, 0)] in (C.SADDLE, C.UNDECIDED)


def test_quartic_minimum_needs_higher_order_test():
    result = extrema(x**4 + y**4, [x, y])
    assert result.minima == [(0, 0)]


def test_alternate_arrangement_finds_the_candidate():
    result = extrema(x, [sp.Eq(x, y**2)], [x, y])
    assert result.minima == [(0, 0)]
    assert result.maxima == []

    classifier = CriticalPointClassifier(x, [x - y**2], parse_variables([x, y], closed=False))
    classifier.classify_arrangement((0, 1))
    assert classifier.classes == {}


def test_univariate_classification():
    result = extrema(x**3 - 3 * x, [x])
    assert result.minima == [1]
    assert result.maxima == [-1]

    result = extrema(x**3, [x])
    assert result.classes == {0: C.SADDLE}


def test_open_bounds_restrict_candidates():
    result = extrema(x**3 - 3 * x, [(x, (0, 5))])
    assert result.minima == [1]
    assert result.maxima == []


def test_order_size_zero_only_reports_critical_points():
    result = extrema(x**2 + y**2, [x, y], order_size=0)
    assert result.classes == {(0, 0): C.UNDECIDED}
    assert result.minima == []


def test_order_size_validation():
    with pytest.raises(MalformedInputError):
        extrema(x**2, [x], order_size=1.5)
    with pytest.raises(DimensionError):
        extrema(x**2, [x], order_size=-1)


def test_too_many_constraints():
    with pytest.raises(DimensionError):
        extrema(x, [sp.Eq(x, 1)], [x])


def test_initial_guess_uses_numeric_solver():
    result = extrema(x**2 + y**2, [(x, 1), (y, 1)])
    assert len(result.minima) == 1
    assert all(abs(float(v)) < 1e-8 for v in result.minima[0])


def test_partial_initial_guess_is_rejected():
    specs = parse_variables([(x, 1), y], closed=False)
    with pytest.raises(SizeError):
        CriticalPointClassifier(x**2 + y**2, [], specs)


def test_classification_is_repeatable():
    specs = parse_variables([x, y], closed=False)
    config = ProblemConfig()
    first = CriticalPointClassifier(x * y, [x + y - 1], specs, config).run()
    second = CriticalPointClassifier(x * y, [x + y - 1], specs, config).run()
    assert first.classes == second.classes


def test_merge_keeps_stronger_verdict():
    assert merge_class(None, C.UNDECIDED) is C.UNDECIDED
    assert merge_class(C.UNDECIDED, C.POSSIBLE_MIN) is C.POSSIBLE_MIN
    assert merge_class(C.POSSIBLE_MIN, C.MAX) is C.MAX
    assert merge_class(C.MIN, C.SADDLE) is C.MIN
    assert merge_class(C.POSSIBLE_MAX, C.POSSIBLE_MIN) is C.POSSIBLE_MAX
    assert C.SADDLE.is_definitive and not C.POSSIBLE_MAX.is_definitive


def test_eigenvalue_test():
    assert classify_by_eigenvalues(sp.diag(2, 3)) is C.MIN
    assert classify_by_eigenvalues(sp.diag(-2, -3)) is C.MAX
    assert classify_by_eigenvalues(sp.diag(1, -1)) is C.SADDLE
    assert classify_by_eigenvalues(sp.diag(1, 0)) is C.UNDECIDED
    assert classify_by_eigenvalues(sp.diag(1, 0, -1)) is C.UNDECIDED
    a = sp.Symbol("a")
    assert classify_by_eigenvalues(sp.diag(a, 1)) is C.UNDECIDED


def test_bordered_hessian_minor_test():
    # x^2 + y^2 on a line: minimum
    H = sp.Matrix([[0, 1, 1], [1, 2, 0], [1, 0, 2]])
    assert classify_bordered(H, 1, 1) is C.MIN
    assert classify_bordered(sp.Matrix([[0, 1, 1], [1, -2, 0], [1, 0, -2]]), 1, 1) is C.MAX
    singular = sp.Matrix([[0, 1, 0], [1, 0, 0], [0, 0, 0]])
    assert classify_bordered(singular, 1, 1) is C.UNDECIDED


def test_univariate_periodic_objective_keeps_every_principal_root():
    result = extrema(-2 * sp.cos(x) - sp.cos(x)**2, [x])
    assert result.minima == [0]
    assert result.maxima == [sp.pi]


def test_univariate_periodic_objective_on_a_range():
    result = extrema(x / 2 - 2 * sp.sin(x / 2), [(x, (-12, 12))])
    np.testing.assert_allclose(sorted(float(p) for p in result.minima),
                               [-10 * np.pi / 3, 2 * np.pi / 3])
    np.testing.assert_allclose(sorted(float(p) for p in result.maxima),
                               [-2 * np.pi / 3, 10 * np.pi / 3])


def test_univariate_objective_with_abs():
    result = extrema(x - sp.log(sp.Abs(x)), [x])
    assert result.minima == [1]
    assert result.maxima == []


def test_numeric_candidates_merge_across_arrangements():
    f = (1 + y * sp.sinh(x)) / (1 + y**2 + sp.tanh(x)**2)
    result = extrema(f, [sp.Eq(y, x**2)], [(x, 1.4), (y, 2)])
    assert len(result.points) == 1
    assert len(result.minima) == 1
    px, py = result.minima[0]
    assert float(py) == pytest.approx(float(px) ** 2)


def test_overrides_leave_the_shared_config_untouched():
    orchestrator = ExtremaOrchestrator()
    result = orchestrator.extrema(x**2 + y**2, [x, y], order_size=0)
    assert result.classes == {(0, 0): C.UNDECIDED}
    assert orchestrator.cfg.classifier.order_size == 5
    assert orchestrator.extrema(x**2 + y**2, [x, y]).minima == [(0, 0)]

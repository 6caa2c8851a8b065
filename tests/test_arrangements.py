import pytest
import sympy as sp

from symextrema.core.arrangements import check_jacobian, jacobian, variable_arrangements
from symextrema.core.errors import DimensionError

x, y, z = sp.symbols("x y z")


def test_jacobian_rows_are_constraint_gradients():
    J = jacobian([x**2 + y, x * z], [x, y, z])
    assert J == sp.Matrix([[2 * x, 1, 0], [z, 0, x]])


def test_linear_constraint_allows_both_arrangements():
    J = jacobian([x + y - 1], [x, y])
    assert sorted(variable_arrangements(J)) == [(0, 1), (1, 0)]


def test_arrangement_skips_singular_block():
    J = jacobian([x + z - 1], [x, y, z])
    assert sorted(variable_arrangements(J)) == [(0, 1, 2), (1, 2, 0)]


def test_two_constraints_dependent_columns_last():
    J = jacobian([x + y + z, x - y], [x, y, z])
    arrangements = variable_arrangements(J)
    assert sorted(arrangements) == [(0, 1, 2), (1, 0, 2), (2, 0, 1)]
    assert all(len(a) == 3 and sorted(a) == [0, 1, 2] for a in arrangements)


def test_arrangement_limits():
    with pytest.raises(DimensionError):
        variable_arrangements(jacobian([x - 1, y - 1], [x, y]))
    with pytest.raises(DimensionError):
        variable_arrangements(jacobian([x + y + z], [x, y, z]), max_columns=2)


def test_check_jacobian():
    assert check_jacobian([y**3 + x**2 - 1], [x, y])
    assert check_jacobian([x - 1], [y, x])
    assert not check_jacobian([x - 1], [x, y])
    assert not check_jacobian([x + y, 2 * x + 2 * y], [z, x, y])
    assert check_jacobian([], [x])

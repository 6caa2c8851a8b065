"""Constraint Jacobians and admissible variable arrangements.

An arrangement is a permutation of variable indices whose last ``m``
entries are the dependent variables. It is admissible when the Jacobian
block of those columns is non-singular, i.e. the implicit function theorem
lets the constraints define them as functions of the remaining variables.
"""

from __future__ import annotations

from itertools import combinations
from typing import List, Sequence, Tuple

import sympy as sp

from .errors import DimensionError
from .kernel import is_zero


def jacobian(constraints: Sequence, variables: Sequence[sp.Symbol]) -> sp.Matrix:
    """m x n matrix whose rows are the constraint gradients."""
    return sp.Matrix([[sp.diff(g, v) for v in variables] for g in constraints])


def variable_arrangements(J: sp.Matrix, max_columns: int = 32) -> List[Tuple[int, ...]]:
    """All arrangements whose trailing m columns form a non-singular block of ``J``."""
    m, n = J.shape
    if n > max_columns:
        raise DimensionError(f"too many variables ({n} > {max_columns}) for arrangement search")
    if m >= n:
        raise DimensionError(f"{m} constraints need more than {n} variables")
    arrangements = []
    for dependent in combinations(range(n), m):
        block = J.extract(list(range(m)), list(dependent))
        if is_zero(sp.cancel(block.det())):
            continue
        independent = [i for i in range(n) if i not in dependent]
        arrangements.append(tuple(independent) + dependent)
    return arrangements


def check_jacobian(constraints: Sequence, variables: Sequence[sp.Symbol]) -> bool:
    """True if the trailing ``len(constraints)`` variables are locally solvable for."""
    m = len(constraints)
    if m == 0:
        return True
    J = jacobian(constraints, variables)
    if J.rank(simplify=True) < m:
        return False
    block = J[:, J.shape[1] - m:]
    return not is_zero(sp.cancel(block.det()))

"""Thin layer over SymPy used by the engine for zero/sign decisions.

Every value coming back from SymPy is classified as one of the ``ValueKind``
variants before the engine branches on it, so the rest of the package only
asks three questions: what kind of value is this, is it zero, what is its
sign.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional

import sympy as sp


class ValueKind(Enum):
    EXACT = "exact"
    FLOAT = "float"
    MATRIX = "matrix"
    SYMBOLIC = "symbolic"


def value_kind(value) -> ValueKind:
    """Tag a kernel value as exact, floating point, matrix or symbolic."""
    if isinstance(value, sp.MatrixBase):
        return ValueKind.MATRIX
    value = sp.sympify(value)
    if value.is_Rational:
        return ValueKind.EXACT
    if value.has(sp.Float):
        return ValueKind.FLOAT
    return ValueKind.SYMBOLIC


def normalize(value, mode: str = "cancel"):
    """Bring an expression (or every entry of a matrix) to normal form."""
    if mode == "none":
        return value
    if isinstance(value, sp.MatrixBase):
        return value.applyfunc(lambda entry: normalize(entry, mode))
    value = sp.sympify(value)
    if mode == "simplify":
        return sp.simplify(value)
    if value.has(sp.Piecewise):
        return sp.piecewise_fold(value)
    return sp.cancel(value)


def is_singular(value) -> bool:
    """True if the value contains an infinity or an undefined result."""
    if isinstance(value, sp.MatrixBase):
        return any(is_singular(entry) for entry in value)
    value = sp.sympify(value)
    return bool(value.has(sp.zoo, sp.nan, sp.oo, -sp.oo))


def is_zero(value, tolerance: Optional[float] = None) -> bool:
    """Decide whether a value is zero.

    SymPy's own assumption system is asked first, then the simplified form.
    If both are undecided and the value is a closed-form number, ``tolerance``
    (when given) settles it numerically. Undecidable values are non-zero.
    """
    if isinstance(value, sp.MatrixBase):
        return all(is_zero(entry, tolerance) for entry in value)
    value = sp.sympify(value)
    decided = value.is_zero
    if decided is None:
        decided = sp.simplify(value).is_zero
    if decided is None and tolerance is not None and not value.free_symbols:
        return abs(complex(sp.N(value))) < tolerance
    if decided is False and tolerance is not None and value_kind(value) is ValueKind.FLOAT \
            and not value.free_symbols:
        return abs(complex(sp.N(value))) < tolerance
    return bool(decided)


def sign_of(value) -> Optional[int]:
    """Return 1, -1 or 0, or None when the sign cannot be decided."""
    value = sp.sympify(value)
    if is_zero(value):
        return 0
    for candidate in (value, sp.simplify(value)):
        if candidate.is_positive:
            return 1
        if candidate.is_negative:
            return -1
    if not value.free_symbols:
        number = sp.N(value)
        if number.is_real:
            return 1 if bool(number > 0) else -1
    return None


def is_positive(value) -> bool:
    return sign_of(value) == 1


def is_negative(value) -> bool:
    return sign_of(value) == -1


def is_real_value(value) -> bool:
    """False only for values SymPy proves to be non-real."""
    value = sp.sympify(value)
    if value.is_real is False:
        return False
    if value.free_symbols or value.is_real:
        return True
    number = complex(sp.N(value))
    return abs(number.imag) <= 1e-12 * max(1.0, abs(number.real))


def substitute(value, symbols: Iterable[sp.Symbol], point: Iterable):
    """Substitute a point into an expression or matrix simultaneously."""
    mapping = dict(zip(symbols, point))
    if isinstance(value, sp.MatrixBase):
        return value.subs(mapping, simultaneous=True)
    return sp.sympify(value).subs(mapping, simultaneous=True)

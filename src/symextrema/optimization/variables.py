"""Variable specifications: symbols with explicit bounds and initial guesses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

import sympy as sp

from ..core.errors import MalformedInputError
from ..core.kernel import is_real_value, sign_of


@dataclass(frozen=True)
class Bound:
    """Interval ``[lower, upper]`` (or open when ``closed`` is False) of a variable."""
    lower: sp.Expr = sp.S.NegativeInfinity
    upper: sp.Expr = sp.S.Infinity
    closed: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "lower", sp.sympify(self.lower))
        object.__setattr__(self, "upper", sp.sympify(self.upper))

    @property
    def is_unbounded(self) -> bool:
        return self.lower == sp.S.NegativeInfinity and self.upper == sp.S.Infinity

    def interval(self) -> sp.Interval:
        return sp.Interval(self.lower, self.upper, left_open=not self.closed, right_open=not self.closed)

    def endpoints(self) -> List[sp.Expr]:
        """Finite endpoints."""
        return [e for e in (self.lower, self.upper) if e.is_finite]

    def contains(self, value) -> bool:
        """Membership test; values whose position cannot be decided are kept."""
        value = sp.sympify(value)
        if not is_real_value(value):
            return False
        gaps = []
        if self.lower.is_finite:
            gaps.append(value - self.lower)
        if self.upper.is_finite:
            gaps.append(self.upper - value)
        for gap in gaps:
            s = sign_of(gap)
            if s is None:
                continue
            if s < 0 or (s == 0 and not self.closed):
                return False
        return True

    def as_inequalities(self, symbol: sp.Symbol) -> List[sp.Expr]:
        """The bound as constraints in ``g <= 0`` form."""
        out = []
        if self.upper.is_finite:
            out.append(symbol - self.upper)
        if self.lower.is_finite:
            out.append(self.lower - symbol)
        return out

    def dummy(self, name: str = "t") -> sp.Dummy:
        """Real placeholder symbol carrying the sign implied by the bound."""
        if self.lower.is_finite and sign_of(self.lower) in (0, 1):
            if sign_of(self.lower) == 1 or not self.closed:
                return sp.Dummy(name, positive=True)
            return sp.Dummy(name, nonnegative=True)
        if self.upper.is_finite and sign_of(self.upper) in (0, -1):
            if sign_of(self.upper) == -1 or not self.closed:
                return sp.Dummy(name, negative=True)
            return sp.Dummy(name, nonpositive=True)
        return sp.Dummy(name, real=True)


@dataclass(frozen=True)
class VariableSpec:
    symbol: sp.Symbol
    bound: Bound = field(default_factory=Bound)
    initial: Optional[sp.Expr] = None


def _as_symbol(value) -> sp.Symbol:
    if not isinstance(value, sp.Symbol):
        raise MalformedInputError(f"expected a symbol, got {value!r}")
    return value


def _parse_one(item, closed: bool) -> VariableSpec:
    if isinstance(item, VariableSpec):
        return item
    if isinstance(item, sp.Symbol):
        return VariableSpec(item)
    if isinstance(item, tuple) and len(item) == 2:
        symbol = _as_symbol(item[0])
        rest = item[1]
        if isinstance(rest, sp.Interval):
            return VariableSpec(symbol, Bound(rest.start, rest.end, closed))
        if isinstance(rest, (tuple, list)):
            if len(rest) != 2:
                raise MalformedInputError(f"bound for {symbol} must be (lower, upper)")
            lower, upper = (sp.sympify(v) for v in rest)
            if lower.free_symbols or upper.free_symbols:
                raise MalformedInputError(f"bound for {symbol} must be numeric")
            if sign_of(upper - lower) == -1:
                raise MalformedInputError(f"empty range for {symbol}: {lower}..{upper}")
            return VariableSpec(symbol, Bound(lower, upper, closed))
        return VariableSpec(symbol, initial=sp.sympify(rest))
    raise MalformedInputError(f"invalid variable specification {item!r}")


def parse_variables(variables, closed: bool = True) -> List[VariableSpec]:
    """Normalize variables given as symbols, ``(symbol, (lo, hi))`` or ``(symbol, x0)``.

    ``closed`` selects whether ranges are closed intervals (global search) or
    open ones (local extrema, where boundary points are not critical points).
    """
    if isinstance(variables, (sp.Symbol, VariableSpec)):
        variables = [variables]
    elif isinstance(variables, tuple) and len(variables) == 2 and isinstance(variables[0], sp.Symbol) \
            and not isinstance(variables[1], sp.Symbol):
        variables = [variables]
    if not isinstance(variables, (list, tuple)) or not variables:
        raise MalformedInputError("variables must be a non-empty sequence")
    specs = [_parse_one(item, closed) for item in variables]
    symbols = [s.symbol for s in specs]
    if len(set(symbols)) != len(symbols):
        raise MalformedInputError("variables must be distinct")
    return specs


def make_dummies(specs: Sequence[VariableSpec]) -> List[sp.Dummy]:
    return [spec.bound.dummy(spec.symbol.name) for spec in specs]


def symbols_of(specs: Iterable[VariableSpec]) -> List[sp.Symbol]:
    return [spec.symbol for spec in specs]

"""Implicit partial-derivative engine.

``ImplicitDiff`` computes partial derivatives of an objective ``f`` with
respect to the independent variables when the trailing ``m`` variables are
tied to the others by ``m`` constraints ``g_i = 0``. Derivatives are resolved
order by order:

1. expand every multi-index of order k with the chain-rule term algebra,
2. differentiate each constraint with those expansions and solve the
   resulting linear system for the order-k derivatives of the dependent
   variables (the "h" values),
3. combine raw partials of ``f`` with the known h values on demand.

Without constraints the engine reduces to plain differentiation.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import sympy as sp

from .config import DiffConfig
from .diffterms import DiffTerms, TermCache, unit_terms
from .errors import DimensionError, MalformedInputError, SizeError
from .kernel import normalize, substitute
from .multiindex import MultiIndex, multinomial_factorial, order_of, sorted_partitions, unit_index
from ..utils.logging_utils import get_logger

logger = get_logger(__name__)


class ImplicitDiff:
    """Partial-derivative store for one (objective, constraints, ordering).

    Parameters
    ----------
    objective : sympy expression
        Function to differentiate.
    constraints : sequence of sympy expressions
        Constraints in ``g = 0`` form; may be empty.
    variables : sequence of sympy symbols
        Independent variables first, then one dependent variable per constraint.
    config : DiffConfig, optional
        Normal form used for implicit and combined partials.
    """

    def __init__(self, objective, constraints: Sequence, variables: Sequence[sp.Symbol],
                 config: Optional[DiffConfig] = None) -> None:
        self.objective = sp.sympify(objective)
        self.constraints = [sp.sympify(g) for g in constraints]
        self.variables = list(variables)
        self.nconstr = len(self.constraints)
        self.nvars = len(self.variables) - self.nconstr
        if self.nvars <= 0:
            raise DimensionError(
                f"{self.nconstr} constraints leave no independent variable among {len(self.variables)}")
        self.config = config or DiffConfig()
        self.order = 0
        # absent key: not computed yet
        self._pdf: Dict[MultiIndex, sp.Expr] = {}
        self._pdg: Dict[MultiIndex, sp.Expr] = {}
        self._pdh: Dict[MultiIndex, sp.Expr] = {}
        self._pdv: Dict[MultiIndex, sp.Expr] = {(0,) * self.nvars: self.objective}
        self._cterms = TermCache(self.nvars, self.nconstr)

    @property
    def independent(self) -> List[sp.Symbol]:
        return self.variables[:self.nvars]

    @property
    def dependent(self) -> List[sp.Symbol]:
        return self.variables[self.nvars:]

    def _normalize(self, value):
        return normalize(value, self.config.normalize)

    def differentiate(self, expr, cache: Dict[MultiIndex, sp.Expr], sig: Sequence[int]):
        """Raw partial of ``expr`` by ``sig`` (over all variables), memoised in ``cache``.

        ``sig`` may carry trailing tag entries (the constraint index for the
        constraint cache); they are part of the key only.
        """
        key = tuple(sig)
        hit = cache.get(key)
        if hit is not None:
            return hit
        counts = key[:len(self.variables)]
        if not any(counts):
            return expr
        for i, k in enumerate(counts):
            if not k:
                continue
            lower = cache.get(key[:i] + (k - 1,) + key[i + 1:])
            if lower is not None:
                value = sp.diff(lower, self.variables[i])
                break
        else:
            value = sp.diff(expr, *[(v, k) for v, k in zip(self.variables, counts) if k])
        cache[key] = value
        return value

    def h_value(self, key: Sequence[int]):
        """Cached derivative of a dependent variable, or None if not resolved."""
        return self._pdh.get(tuple(key))

    def raise_order(self, order: int) -> None:
        """Resolve all dependent-variable derivatives up to ``order``."""
        for k in range(self.order + 1, order + 1):
            expansions = [self._cterms.expansion(sig) for sig in sorted_partitions(k, self.nvars)]
            self._compute_h(expansions, k)
            self.order = k
            logger.debug("resolved implicit derivatives of order %d (%d expansions cached)",
                         k, len(self._cterms))

    def _compute_h(self, expansions: List[DiffTerms], order: int) -> None:
        columns: Dict[MultiIndex, int] = {}
        rows: List[Dict[int, sp.Expr]] = []
        rhs: List[sp.Expr] = []
        for i, g in enumerate(self.constraints):
            for terms in expansions:
                row: Dict[int, sp.Expr] = {}
                b = sp.S.Zero
                for term, coeff in terms.items():
                    value = coeff * self.differentiate(g, self._pdg, term.raw + (i,))
                    unknown = None
                    for key, power in term.factors:
                        if order_of(key, drop_last=True) < order:
                            value *= self._pdh[key] ** power
                        else:
                            unknown = key
                    if unknown is None:
                        b -= value
                    else:
                        col = columns.setdefault(unknown, len(columns))
                        row[col] = row.get(col, sp.S.Zero) + value
                rows.append(row)
                rhs.append(b)

        if len(columns) != len(rows):
            raise DimensionError(
                f"order {order}: {len(rows)} equations for {len(columns)} unknown implicit derivatives")
        A = sp.Matrix(len(rows), len(columns), lambda r, c: self._normalize(rows[r].get(c, sp.S.Zero)))
        b = sp.Matrix([self._normalize(v) for v in rhs])
        try:
            solution = A.LUsolve(b)
        except (ValueError, ZeroDivisionError) as exc:
            raise DimensionError(f"singular constraint Jacobian at order {order}") from exc
        for key, col in columns.items():
            self._pdh[key] = self._normalize(solution[col])

    def _combine(self, sig: MultiIndex):
        terms = self._cterms.expansion(sig) if any(sig) else unit_terms(self.nvars, self.nconstr)
        total = sp.S.Zero
        for term, coeff in terms.items():
            value = self.differentiate(self.objective, self._pdf, term.raw)
            if value == 0:
                continue
            for key, power in term.factors:
                value *= self._pdh[key] ** power
            total += coeff * value
        result = self._normalize(total)
        self._pdv[sig] = result
        return result

    def derivative(self, sig: Sequence[int]):
        """Partial derivative of the objective by an independent multi-index."""
        sig = tuple(sig)
        if len(sig) != self.nvars:
            raise SizeError(f"expected a multi-index of length {self.nvars}, got {len(sig)}")
        if not self.nconstr:
            return self.differentiate(self.objective, self._pdf, sig)
        k = sum(sig)
        if k > self.order:
            self.raise_order(k)
        cached = self._pdv.get(sig)
        if cached is None:
            cached = self._combine(sig)
        return cached

    def derivative_by(self, *targets):
        """Partial derivative by symbols; ``(symbol, count)`` repeats a symbol."""
        sig = [0] * self.nvars
        for target in targets:
            symbol, count = target if isinstance(target, tuple) else (target, 1)
            if symbol not in self.independent:
                raise MalformedInputError(f"{symbol} is not an independent variable")
            sig[self.independent.index(symbol)] += int(count)
        return self.derivative(sig)

    def gradient(self) -> List:
        return [self.derivative(unit_index(self.nvars, i)) for i in range(self.nvars)]

    def hessian(self) -> sp.Matrix:
        def entry(i, j):
            sig = [0] * self.nvars
            sig[i] += 1
            sig[j] += 1
            return self.derivative(sig)
        return sp.Matrix(self.nvars, self.nvars, entry)

    def partial_derivatives(self, order: int) -> Dict[MultiIndex, sp.Expr]:
        """All partials of the given order keyed by multi-index."""
        return {sig: self.derivative(sig) for sig in sorted_partitions(order, self.nvars)}

    def taylor_term(self, point: Sequence, k: int):
        """Degree-k term of the Taylor expansion around ``point`` (all variables)."""
        if len(point) != len(self.variables):
            raise SizeError(f"point has {len(point)} coordinates, expected {len(self.variables)}")
        if k == 0:
            return substitute(self.objective, self.variables, point)
        while self.nconstr and self.order < k:
            self.raise_order(self.order + 1)
        total = sp.S.Zero
        for sig in sorted_partitions(k, self.nvars):
            value = substitute(self.derivative(sig), self.variables, point)
            if value == 0:
                continue
            monomial = sp.Mul(*[(self.variables[i] - point[i]) ** ki for i, ki in enumerate(sig) if ki])
            total += value * monomial / multinomial_factorial(sig)
        return total

    def taylor(self, point: Sequence, order: int):
        """Taylor polynomial of the objective around ``point`` up to ``order``."""
        return sum((self.taylor_term(point, k) for k in range(order + 1)), sp.S.Zero)

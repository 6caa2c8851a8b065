"""Global minimum/maximum over a finite candidate set."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import sympy as sp

from ..core.config import SolverConfig
from ..core.errors import SolverFailure
from ..core.kernel import is_positive, is_real_value, is_singular, is_zero, substitute
from ..utils.logging_utils import get_logger
from .kkt import solve_kkt
from .solve import real_zeros
from .variables import Bound, VariableSpec, make_dummies, symbols_of

logger = get_logger(__name__)


@dataclass
class GlobalExtrema:
    """Result of ``global_extrema``.

    Points are tuples in variable order, or plain values for one variable.
    ``min_value`` is None when no candidate point was found.
    """
    min_value: Optional[sp.Expr] = None
    max_value: Optional[sp.Expr] = None
    minimizers: List = field(default_factory=list)
    maximizers: List = field(default_factory=list)
    candidates: List = field(default_factory=list)

    @property
    def is_undefined(self) -> bool:
        return self.min_value is None


def _relationals(cond) -> List[sp.Rel]:
    if isinstance(cond, sp.Rel):
        return [cond]
    if isinstance(cond, (sp.And, sp.Or, sp.Not)):
        return [rel for arg in cond.args for rel in _relationals(arg)]
    return []


def find_spikes(expr, x: sp.Symbol, bound: Optional[Bound] = None) -> List[sp.Expr]:
    """Points where ``expr`` may fail to be differentiable.

    Transition points of Piecewise sub-expressions and zeros of the
    arguments of ``Abs``, ``sign`` and ``Heaviside``.
    """
    targets = []
    for pw in expr.atoms(sp.Piecewise):
        for _, cond in pw.args:
            targets.extend(rel.lhs - rel.rhs for rel in _relationals(cond) if rel.has(x))
    for func in (sp.Abs, sp.sign, sp.Heaviside):
        targets.extend(a.args[0] for a in expr.atoms(func) if a.args[0].has(x))
    spikes = []
    for target in targets:
        try:
            found = real_zeros(target, x, bound)
        except SolverFailure as exc:
            logger.warning("non-smooth points of %s skipped: %s", target, exc)
            continue
        for point in found:
            if point not in spikes:
                spikes.append(point)
    return spikes


def critical_univariate(objective, x: sp.Symbol, bound: Optional[Bound] = None) -> List[sp.Expr]:
    """Stationary points, poles of f' and non-smooth points of a function of ``x``."""
    df = sp.diff(objective, x)
    sources = [df]
    if not df.has(sp.Piecewise):
        den = sp.denom(sp.together(df))
        if den.has(x):
            sources.append(den)
    points: List[sp.Expr] = []
    for source in sources:
        try:
            found = real_zeros(source, x, bound)
        except SolverFailure as exc:
            logger.warning("%s", exc)
            continue
        points.extend(p for p in found if p not in points)
    for spike in find_spikes(objective, x, bound):
        if spike not in points:
            points.append(spike)
    return [p for p in points if bound is None or bound.contains(p)]


def global_extrema(objective, inequalities: Sequence, equalities: Sequence,
                   variables: Sequence[VariableSpec], config: Optional[SolverConfig] = None) -> GlobalExtrema:
    """Global extrema of ``objective`` subject to ``g <= 0``, ``h = 0`` and variable bounds."""
    config = config or SolverConfig()
    specs = list(variables)
    symbols = symbols_of(specs)
    dummies = make_dummies(specs)
    to_dummy = dict(zip(symbols, dummies))
    f = sp.sympify(objective).subs(to_dummy)
    g = [sp.sympify(e).subs(to_dummy) for e in inequalities]
    h = [sp.sympify(e).subs(to_dummy) for e in equalities]
    bounds = [spec.bound for spec in specs]

    univariate = len(specs) == 1
    if univariate and not g and not h:
        x, bound = dummies[0], bounds[0]
        points = critical_univariate(f, x, bound)
        points.extend(e for e in bound.endpoints() if e not in points)
        candidates = [(p,) for p in points]
    else:
        for d, bound in zip(dummies, bounds):
            g.extend(bound.as_inequalities(d))
        candidates = solve_kkt(f, g, h, dummies, bounds)

    result = GlobalExtrema()
    for point in candidates:
        value = sp.simplify(substitute(f, dummies, point))
        if is_singular(value) or not is_real_value(value):
            continue
        key = point[0] if univariate else tuple(point)
        result.candidates.append(key)
        if result.min_value is None or is_positive(result.min_value - value):
            result.min_value, result.minimizers = value, [key]
        elif is_zero(value - result.min_value, config.tie_tolerance) and key not in result.minimizers:
            result.minimizers.append(key)
        if result.max_value is None or is_positive(value - result.max_value):
            result.max_value, result.maximizers = value, [key]
        elif is_zero(value - result.max_value, config.tie_tolerance) and key not in result.maximizers:
            result.maximizers.append(key)
    if result.is_undefined:
        logger.info("no candidate points found")
    return result

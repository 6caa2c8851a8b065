"""Equation solving for candidate points.

``solve2`` is an exact solver: systems that are rational in the unknowns go
straight to ``sympy.solve``; transcendental systems are first rewritten so
that every unknown ``v`` appears only through one kernel (``v``,
``exp(v)`` or ``tan(v/2)``), which is then replaced by a fresh unknown.
A single equation in one unknown goes through ``solveset`` on the bound
interval instead (``real_zeros``). ``numeric_solve`` is the SciPy fallback
used when an initial guess is given.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import numpy as np
import sympy as sp
from scipy.optimize import root
from sympy.functions.elementary.hyperbolic import HyperbolicFunction

from ..core.config import SolverConfig
from ..core.errors import SolverFailure
from ..core.kernel import is_positive, is_real_value
from ..utils.logging_utils import get_logger
from .variables import Bound

logger = get_logger(__name__)

Point = Tuple[sp.Expr, ...]

_TO_SIN_COS = (
    (sp.tan, lambda u: sp.sin(u) / sp.cos(u)),
    (sp.cot, lambda u: sp.cos(u) / sp.sin(u)),
    (sp.sec, lambda u: 1 / sp.cos(u)),
    (sp.csc, lambda u: 1 / sp.sin(u)),
)


def _half_tan(u):
    return sp.tan(u / 2)


def rewrite_transcendental(expr):
    """Hyperbolics to exp, trig to rational functions of ``tan(u/2)``."""
    expr = sp.sympify(expr)
    expr = expr.replace(lambda a: isinstance(a, HyperbolicFunction), lambda a: a.rewrite(sp.exp))
    expr = sp.expand_power_exp(expr)
    expr = sp.expand_trig(expr)
    for func, repl in _TO_SIN_COS:
        expr = expr.replace(func, repl)
    expr = expr.replace(sp.sin, lambda u: 2 * _half_tan(u) / (1 + _half_tan(u) ** 2))
    expr = expr.replace(sp.cos, lambda u: (1 - _half_tan(u) ** 2) / (1 + _half_tan(u) ** 2))
    return expr


def _to_points(found: List[dict], unknowns: Sequence[sp.Symbol]) -> List[Point]:
    points = []
    for sol in found:
        if any(u not in sol for u in unknowns):
            logger.debug("skipping under-determined solution family %s", sol)
            continue
        values = tuple(sp.sympify(sol[u]) for u in unknowns)
        if any(v.has(*unknowns) for v in values):
            logger.debug("skipping parametric solution %s", sol)
            continue
        points.append(values)
    return points


def _solve_direct(equations: Sequence, unknowns: Sequence[sp.Symbol]) -> List[Point]:
    try:
        found = sp.solve(list(equations), list(unknowns), dict=True)
    except (NotImplementedError, ValueError, TypeError) as exc:
        raise SolverFailure(f"could not solve {list(equations)}: {exc}") from exc
    return _to_points(found, unknowns)


def _solve_substituted(equations: Sequence, unknowns: Sequence[sp.Symbol]) -> Optional[List[Point]]:
    work = [rewrite_transcendental(e) for e in equations]
    kinds = []
    fresh = []
    for v in unknowns:
        if all(e.is_rational_function(v) for e in work):
            t = sp.Dummy(v.name, real=True)
            work = [e.subs(v, t) for e in work]
            kinds.append("identity")
            fresh.append(t)
            continue
        for kind, kernel, t in (("exp", sp.exp(v), sp.Dummy(v.name, positive=True)),
                                ("tan", sp.tan(v / 2), sp.Dummy(v.name, real=True))):
            trial = [e.subs(kernel, t) for e in work]
            if not any(e.has(v) for e in trial) and all(e.is_rational_function(t) for e in trial):
                work = trial
                kinds.append(kind)
                fresh.append(t)
                break
        else:
            return None

    points = []
    for values in _solve_direct(work, fresh):
        mapped = []
        for kind, value in zip(kinds, values):
            if kind == "exp":
                if not is_positive(value):
                    break
                mapped.append(sp.log(value))
            elif kind == "tan":
                mapped.append(2 * sp.atan(value))
            else:
                mapped.append(value)
        else:
            points.append(tuple(mapped))
    return points


MAX_PERIODIC_ROOTS = 1000


def _image_points(image: sp.ImageSet, bound: Optional[Bound]) -> Optional[List[sp.Expr]]:
    # roots a*n + b, n integer: all of them inside a finite range, else n = 0
    (n,) = image.lamda.variables
    expr = image.lamda.expr
    poly = sp.Poly(expr, n) if expr.has(n) else None
    if poly is None or poly.degree() != 1 or image.base_sets[0] != sp.S.Integers:
        return None
    a, b = poly.all_coeffs()
    if bound is None or not (bound.lower.is_finite and bound.upper.is_finite):
        return [b]
    ends = sorted(float(sp.N((e - b) / a)) for e in (bound.lower, bound.upper))
    first, last = int(np.floor(ends[0])), int(np.ceil(ends[1]))
    if last - first > MAX_PERIODIC_ROOTS:
        return None
    return [expr.subs(n, k) for k in range(first, last + 1)]


def _set_points(found, bound: Optional[Bound]) -> Optional[List[sp.Expr]]:
    """Explicit points of a solveset result, or None when it cannot be listed."""
    if isinstance(found, sp.FiniteSet):
        return list(found)
    if found is sp.S.EmptySet:
        return []
    if isinstance(found, sp.ImageSet):
        return _image_points(found, bound)
    if isinstance(found, sp.Union):
        points = []
        for part in found.args:
            sub = _set_points(part, bound)
            if sub is None:
                return None
            points.extend(sub)
        return points
    if isinstance(found, sp.Intersection):
        parts = [a for a in found.args if not isinstance(a, sp.Interval) and a is not sp.S.Reals]
        if len(parts) != 1:
            return None
        return _set_points(parts[0], bound)
    if isinstance(found, sp.Complement):
        base, removed = found.args
        points = _set_points(base, bound)
        if points is None:
            return None
        return [p for p in points if removed.contains(p) is not sp.true]
    return None


def real_zeros(expr, x: sp.Symbol, bound: Optional[Bound] = None) -> List[sp.Expr]:
    """Real zeros of ``expr`` in the bound interval.

    Periodic families are listed in full on finite ranges and by their
    principal member otherwise. ``Abs``/``sign`` are first tried in Piecewise
    form; ``sympy.solve`` is the last resort.
    """
    expr = sp.sympify(expr)
    domain = bound.interval() if bound is not None else sp.S.Reals
    attempts = [expr]
    if expr.has(sp.Abs, sp.sign):
        attempts.insert(0, sp.piecewise_fold(expr.rewrite(sp.Piecewise)))
    points = None
    for attempt in attempts:
        try:
            points = _set_points(sp.solveset(attempt, x, domain), bound)
        except (NotImplementedError, ValueError, TypeError) as exc:
            logger.debug("solveset failed on %s: %s", attempt, exc)
            points = None
        if points is not None:
            break
    if points is None:
        try:
            points = sp.solve(expr, x)
        except (NotImplementedError, ValueError, TypeError) as exc:
            raise SolverFailure(f"cannot find the zeros of {expr}: {exc}") from exc
    unique = []
    for p in points:
        if is_real_value(p) and (bound is None or bound.contains(p)) and p not in unique:
            unique.append(p)
    return unique


def _admissible(point: Point, bounds: Optional[Sequence[Bound]]) -> bool:
    if not all(is_real_value(v) for v in point):
        return False
    if bounds is None:
        return True
    return all(b.contains(v) for b, v in zip(bounds, point))


def solve2(equations: Sequence, unknowns: Sequence[sp.Symbol],
           bounds: Optional[Sequence[Bound]] = None) -> List[Point]:
    """Real solutions of ``equations = 0`` as tuples ordered like ``unknowns``.

    Raises SolverFailure when SymPy cannot handle the system.
    """
    equations = [sp.sympify(e) for e in equations]
    unknowns = list(unknowns)
    if len(unknowns) == 1 and len(equations) == 1:
        points = [(r,) for r in real_zeros(equations[0], unknowns[0], bounds[0] if bounds else None)]
    elif len(unknowns) == 1 or all(e.is_rational_function(*unknowns) for e in equations):
        points = _solve_direct(equations, unknowns)
    else:
        points = _solve_substituted(equations, unknowns)
        if points is None:
            points = _solve_direct(equations, unknowns)
    unique: List[Point] = []
    for point in points:
        if _admissible(point, bounds) and point not in unique:
            unique.append(point)
    return unique


def numeric_solve(equations: Sequence, unknowns: Sequence[sp.Symbol], initial: Sequence,
                  config: Optional[SolverConfig] = None) -> List[Point]:
    """One root of ``equations = 0`` near ``initial`` using ``scipy.optimize.root``.

    Raises SolverFailure if the iteration does not converge.
    """
    config = config or SolverConfig()
    equations = [sp.sympify(e) for e in equations]
    unknowns = list(unknowns)
    if len(initial) != len(unknowns):
        raise SolverFailure(f"initial guess has {len(initial)} entries for {len(unknowns)} unknowns")
    residual_fn = sp.lambdify(unknowns, equations, "numpy")
    jacobian_fn = sp.lambdify(unknowns, sp.Matrix(equations).jacobian(unknowns), "numpy")

    def residual(x):
        return np.asarray(residual_fn(*x), dtype=float)

    def jacobian(x):
        return np.asarray(jacobian_fn(*x), dtype=float)

    x0 = np.asarray([float(sp.N(v)) for v in initial], dtype=float)
    if len(equations) == len(unknowns):
        method, options = "hybr", {"maxfev": config.numeric_max_iter, "xtol": config.numeric_tol}
    else:
        method, options = "lm", {"maxiter": config.numeric_max_iter, "xtol": config.numeric_tol}
    try:
        with np.errstate(divide="raise", invalid="raise", over="raise"):
            result = root(residual, x0, jac=jacobian, method=method, options=options)
    except (ValueError, TypeError, ZeroDivisionError, FloatingPointError) as exc:
        raise SolverFailure(f"numeric solver failed from {list(initial)}: {exc}") from exc
    if not result.success or not np.all(np.isfinite(result.x)):
        raise SolverFailure(f"numeric solver did not converge from {list(initial)}: {result.message}")
    if np.linalg.norm(residual(result.x)) > np.sqrt(config.numeric_tol):
        raise SolverFailure(f"numeric solver stalled at {result.x.tolist()}")
    return [tuple(sp.Float(v) for v in result.x)]

"""Karush-Kuhn-Tucker candidate points by complementary-slackness enumeration."""

from __future__ import annotations

from itertools import product
from typing import List, Optional, Sequence

import sympy as sp

from ..core.errors import SolverFailure
from ..core.kernel import is_negative, is_positive, substitute
from ..utils.logging_utils import get_logger
from .solve import Point, solve2
from .variables import Bound

logger = get_logger(__name__)


def kkt_system(objective, inequalities: Sequence, equalities: Sequence,
               unknowns: Sequence[sp.Symbol]):
    """Stationarity equations of ``f + mu.g + lambda.h`` followed by ``h``.

    Returns ``(equations, mu, lam)``.
    """
    mu = [sp.Dummy(f"mu{i}", positive=True) for i in range(len(inequalities))]
    lam = [sp.Dummy(f"lambda{j}", real=True) for j in range(len(equalities))]
    equations = []
    for x in unknowns:
        expr = sp.diff(objective, x)
        expr += sum((m * sp.diff(g, x) for m, g in zip(mu, inequalities)), sp.S.Zero)
        expr += sum((l * sp.diff(h, x) for l, h in zip(lam, equalities)), sp.S.Zero)
        equations.append(expr)
    equations.extend(equalities)
    return equations, mu, lam


def solve_kkt(objective, inequalities: Sequence, equalities: Sequence, unknowns: Sequence[sp.Symbol],
              bounds: Optional[Sequence[Bound]] = None) -> List[Point]:
    """Candidate points of ``min f s.t. g <= 0, h = 0``.

    Every subset of inequalities is tried as the active set: inactive
    multipliers are set to zero, active constraints are enforced as
    equalities. Points violating a ``g`` or carrying a negative multiplier
    are rejected.
    """
    inequalities = [sp.sympify(g) for g in inequalities]
    equalities = [sp.sympify(h) for h in equalities]
    unknowns = list(unknowns)
    n = len(unknowns)
    equations, mu, lam = kkt_system(objective, inequalities, equalities, unknowns)

    candidates: List[Point] = []
    for pattern in product((False, True), repeat=len(inequalities)):
        inactive = {m: 0 for m, active in zip(mu, pattern) if not active}
        system = [e.subs(inactive) for e in equations]
        system += [g for g, active in zip(inequalities, pattern) if active]
        active_mu = [m for m, active in zip(mu, pattern) if active]
        try:
            solutions = solve2(system, unknowns + active_mu + lam, bounds)
        except SolverFailure as exc:
            logger.warning("KKT branch %s skipped: %s", pattern, exc)
            continue
        for sol in solutions:
            point = tuple(sol[:n])
            if any(is_negative(v) for v in sol[n:n + len(active_mu)]):
                continue
            if any(is_positive(substitute(g, unknowns, point)) for g in inequalities):
                continue
            if point not in candidates:
                candidates.append(point)
    logger.debug("KKT produced %d candidate(s)", len(candidates))
    return candidates

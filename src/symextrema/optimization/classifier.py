"""Critical-point search and classification.

For every admissible variable arrangement the objective is differentiated
implicitly, candidate points are obtained from the implicit gradient plus
the constraints, and each candidate is classified:

1. bordered Hessian test (constrained problems),
2. eigenvalues of the (implicit) Hessian,
3. higher-order test: the first non-vanishing Taylor term is optimised over
   the unit sphere of directions.

Verdicts from different arrangements are merged; a definitive verdict is
never replaced.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence

import numpy as np
import sympy as sp

from ..core.arrangements import jacobian, variable_arrangements
from ..core.config import ProblemConfig
from ..core.errors import DimensionError, MalformedInputError, SizeError, SolverFailure
from ..core.ipdiff import ImplicitDiff
from ..core.kernel import is_negative, is_positive, is_singular, is_zero, sign_of, substitute
from ..utils.logging_utils import get_logger
from .global_extrema import global_extrema
from .solve import numeric_solve, solve2
from .variables import Bound, VariableSpec, make_dummies, symbols_of

logger = get_logger(__name__)


class CriticalPointClass(Enum):
    MIN = "local minimum"
    MAX = "local maximum"
    SADDLE = "saddle point"
    POSSIBLE_MIN = "possible local minimum"
    POSSIBLE_MAX = "possible local maximum"
    UNDECIDED = "unclassified critical point"

    @property
    def strength(self) -> int:
        if self in (CriticalPointClass.MIN, CriticalPointClass.MAX, CriticalPointClass.SADDLE):
            return 2
        if self in (CriticalPointClass.POSSIBLE_MIN, CriticalPointClass.POSSIBLE_MAX):
            return 1
        return 0

    @property
    def is_definitive(self) -> bool:
        return self.strength == 2


def merge_class(old: Optional[CriticalPointClass], new: CriticalPointClass) -> CriticalPointClass:
    """Keep the stronger verdict; ties keep the one recorded first."""
    if old is None or new.strength > old.strength:
        return new
    return old


@dataclass
class ExtremaResult:
    """Local minimizers, local maximizers and the verdict for every critical point."""
    minima: List = field(default_factory=list)
    maxima: List = field(default_factory=list)
    classes: Dict = field(default_factory=dict)

    @property
    def points(self) -> List:
        return list(self.classes)

    def of(self, cls: CriticalPointClass) -> List:
        return [p for p, c in self.classes.items() if c is cls]


def classify_bordered(H: sp.Matrix, m: int, n: int) -> CriticalPointClass:
    """Leading-minor test on a bordered Hessian with ``m`` constraints, ``n`` free directions."""
    cls = CriticalPointClass.UNDECIDED
    for k in range(1, n + 1):
        size = 2 * m + k
        s = sign_of(H[:size, :size].det())
        if not s:
            return CriticalPointClass.UNDECIDED
        if cls is CriticalPointClass.SADDLE:
            continue
        if cls is not CriticalPointClass.MAX and s * (-1) ** m > 0:
            cls = CriticalPointClass.MIN
        elif cls is not CriticalPointClass.MIN and s * (-1) ** (m + k) > 0:
            cls = CriticalPointClass.MAX
        else:
            cls = CriticalPointClass.SADDLE
    return cls


def _eigen_signs(H: sp.Matrix, tolerance: float) -> Optional[List[int]]:
    if not H.free_symbols:
        try:
            values = np.linalg.eigvalsh(np.array(H.evalf().tolist(), dtype=float))
        except TypeError:
            values = None
        if values is not None:
            scale = max(1.0, float(np.max(np.abs(values))))
            return [0 if abs(v) <= tolerance * scale else (1 if v > 0 else -1) for v in values]
    signs = []
    for value, multiplicity in H.eigenvals().items():
        s = sign_of(value)
        if s is None:
            return None
        signs.extend([s] * multiplicity)
    return signs


def classify_by_eigenvalues(H: sp.Matrix, tolerance: float = 1e-10) -> CriticalPointClass:
    """Definiteness of a Hessian; any zero eigenvalue leaves the point undecided."""
    if is_singular(H):
        return CriticalPointClass.UNDECIDED
    signs = _eigen_signs(H, tolerance)
    if signs is None:
        return CriticalPointClass.UNDECIDED
    if 0 in signs:
        return CriticalPointClass.UNDECIDED
    if 1 in signs and -1 in signs:
        return CriticalPointClass.SADDLE
    return CriticalPointClass.MIN if signs[0] > 0 else CriticalPointClass.MAX


def classify_univariate(engine: ImplicitDiff, point: Sequence, order_size: int) -> CriticalPointClass:
    """First non-vanishing derivative of order >= 2 at ``point``."""
    for k in range(2, max(order_size, 2) + 1):
        value = sp.simplify(substitute(engine.derivative((k,)), engine.variables, point))
        if is_singular(value):
            break
        s = sign_of(value)
        if s == 0:
            continue
        if s is None:
            break
        if k % 2:
            return CriticalPointClass.SADDLE
        return CriticalPointClass.MIN if s > 0 else CriticalPointClass.MAX
    return CriticalPointClass.UNDECIDED


def classify_higher_order(engine: ImplicitDiff, point: Sequence, order_size: int,
                          config: Optional[ProblemConfig] = None) -> CriticalPointClass:
    """Sign behaviour of the first non-zero Taylor term on the unit sphere."""
    config = config or ProblemConfig()
    n = engine.nvars
    directions = [sp.Dummy(f"d{i}", real=True) for i in range(n)]
    shift = {engine.variables[i]: point[i] + directions[i] for i in range(n)}
    sphere = sum((d ** 2 for d in directions), sp.S.Zero) - 1
    specs = [VariableSpec(d) for d in directions]
    for k in range(2, order_size + 1):
        term = engine.taylor_term(point, k)
        if is_singular(term):
            break
        p = sp.expand(term.subs(shift, simultaneous=True))
        if is_zero(p):
            continue
        found = global_extrema(p, [], [sphere], specs, config.solver)
        if found.is_undefined:
            break
        pmin, pmax = found.min_value, found.max_value
        if is_zero(pmin) and is_zero(pmax):
            continue
        if k % 2 or (is_negative(pmin) and is_positive(pmax)):
            return CriticalPointClass.SADDLE
        if is_positive(pmin):
            return CriticalPointClass.MIN
        if is_negative(pmax):
            return CriticalPointClass.MAX
        if is_zero(pmin):
            return CriticalPointClass.POSSIBLE_MIN
        if is_zero(pmax):
            return CriticalPointClass.POSSIBLE_MAX
        break
    return CriticalPointClass.UNDECIDED


def lagrange_multipliers(objective, constraints: Sequence, variables: Sequence[sp.Symbol],
                         point: Sequence) -> Optional[List]:
    """Unique multipliers with ``grad f = sum lambda_i grad g_i`` at ``point``, else None."""
    lam = [sp.Dummy(f"lambda{i}") for i in range(len(constraints))]
    equations = []
    for v in variables:
        expr = sp.diff(objective, v) - sum((l * sp.diff(g, v) for l, g in zip(lam, constraints)), sp.S.Zero)
        equations.append(substitute(expr, variables, point))
    if any(is_singular(e) for e in equations):
        return None
    solution = sp.linsolve(equations, lam)
    if not isinstance(solution, sp.FiniteSet) or len(solution) != 1:
        return None
    values = list(next(iter(solution)))
    if any(v.has(*lam) for v in values):
        return None
    return values


def bordered_hessian(objective, constraints: Sequence, variables: Sequence[sp.Symbol],
                     multipliers: Sequence[sp.Symbol]) -> sp.Matrix:
    """Hessian of ``f - sum lambda_i g_i`` w.r.t. (multipliers, variables)."""
    lagrangian = sp.sympify(objective) - sum((l * g for l, g in zip(multipliers, constraints)), sp.S.Zero)
    return sp.hessian(lagrangian, list(multipliers) + list(variables))


def _same_point(a, b, tolerance: float) -> bool:
    """Coordinate-wise agreement within a relative tolerance (numeric candidates)."""
    a = a if isinstance(a, tuple) else (a,)
    b = b if isinstance(b, tuple) else (b,)
    if len(a) != len(b):
        return False
    try:
        u = np.array([complex(sp.N(v)) for v in a])
        w = np.array([complex(sp.N(v)) for v in b])
    except TypeError:
        return False
    return bool(np.allclose(u, w, rtol=tolerance, atol=tolerance))


def _describe(symbols: Sequence[sp.Symbol], point) -> str:
    values = point if isinstance(point, tuple) else (point,)
    return ", ".join(f"{s}={v}" for s, v in zip(symbols, values))


class CriticalPointClassifier:
    """Finds and classifies the critical points of one problem.

    Parameters
    ----------
    objective : sympy expression
    constraints : sequence of sympy expressions
        Equality constraints in ``g = 0`` form.
    variables : sequence of VariableSpec
        Bounds are open intervals; initial guesses select the numeric solver.
    config : ProblemConfig, optional
    """

    def __init__(self, objective, constraints: Sequence, variables: Sequence[VariableSpec],
                 config: Optional[ProblemConfig] = None) -> None:
        self.objective = sp.sympify(objective)
        self.constraints = [sp.sympify(g) for g in constraints]
        self.specs = list(variables)
        self.symbols = symbols_of(self.specs)
        self.config = config or ProblemConfig()
        self.order_size = self.config.classifier.order_size
        if not isinstance(self.order_size, (int, np.integer)) or isinstance(self.order_size, bool):
            raise MalformedInputError(f"order_size must be an integer, got {self.order_size!r}")
        if self.order_size < 0:
            raise DimensionError(f"order_size must be non-negative, got {self.order_size}")
        initial = [s.initial for s in self.specs]
        if any(v is not None for v in initial) and any(v is None for v in initial):
            raise SizeError("an initial point needs a value for every variable")
        self.initial = initial if all(v is not None for v in initial) else None
        self.classes: Dict = {}

    @property
    def nv(self) -> int:
        return len(self.specs)

    @property
    def m(self) -> int:
        return len(self.constraints)

    def arrangements(self) -> List[tuple]:
        if not self.constraints or self.config.classifier.lagrange:
            if self.m >= self.nv:
                raise DimensionError(f"{self.m} constraints for {self.nv} variables")
            return [tuple(range(self.nv))]
        J = jacobian(self.constraints, self.symbols)
        if self.m >= self.nv or J.rank(simplify=True) < self.m:
            raise DimensionError("too many constraints or rank-deficient constraint Jacobian")
        arrangements = variable_arrangements(J, self.config.solver.max_arrangement_columns)
        if not arrangements:
            raise DimensionError("no variable arrangement satisfies the implicit function theorem")
        return arrangements

    def run(self) -> ExtremaResult:
        if self.config.classifier.lagrange:
            if not self.constraints:
                raise SizeError("the Lagrange method needs at least one constraint")
            self.arrangements()
            self._classify_lagrange()
        else:
            for arrangement in self.arrangements():
                self.classify_arrangement(arrangement)
        return self._result()

    def _record(self, point, cls: CriticalPointClass) -> None:
        self.classes[point] = merge_class(self.classes.get(point), cls)

    def _key(self, values: Sequence):
        values = tuple(sp.simplify(v) for v in values)
        key = values[0] if self.nv == 1 else values
        if any(v.has(sp.Float) for v in values):
            for known in self.classes:
                if _same_point(known, key, np.sqrt(self.config.solver.numeric_tol)):
                    return known
        return key

    def _candidates(self, equations: Sequence, unknowns: Sequence[sp.Symbol],
                    bounds: Sequence[Bound], initial: Optional[Sequence]) -> List[tuple]:
        try:
            if initial is not None:
                return numeric_solve(equations, unknowns, initial, self.config.solver)
            return solve2(equations, unknowns, bounds)
        except SolverFailure as exc:
            logger.warning("no critical points obtained: %s", exc)
            return []

    def classify_arrangement(self, arrangement: Sequence[int]) -> None:
        """Collect and classify the candidates seen with one variable ordering."""
        specs = [self.specs[i] for i in arrangement]
        symbols = symbols_of(specs)
        dummies = make_dummies(specs)
        to_dummy = dict(zip(symbols, dummies))
        engine = ImplicitDiff(self.objective.subs(to_dummy), [g.subs(to_dummy) for g in self.constraints],
                              dummies, self.config.diff)
        equations = list(engine.gradient()) + engine.constraints
        initial = [self.initial[i] for i in arrangement] if self.initial is not None else None
        candidates = self._candidates(equations, dummies, [s.bound for s in specs], initial)
        logger.debug("arrangement %s: %d candidate(s)", arrangement, len(candidates))

        for solution in candidates:
            arranged = tuple(sp.simplify(v) for v in solution)
            original = [None] * self.nv
            for j, i in enumerate(arrangement):
                original[i] = arranged[j]
            key = self._key(original)
            known = self.classes.get(key)
            if known is not None and known.is_definitive:
                continue
            self._record(key, self._classify_point(engine, arranged))

    def _classify_point(self, engine: ImplicitDiff, point: Sequence) -> CriticalPointClass:
        if self.order_size == 0:
            return CriticalPointClass.UNDECIDED
        if self.nv == 1:
            return classify_univariate(engine, point, self.order_size)
        cls = CriticalPointClass.UNDECIDED
        if self.constraints:
            cls = self._bordered_test(engine, point)
        if cls is CriticalPointClass.UNDECIDED:
            H = substitute(engine.hessian(), engine.variables, point)
            cls = classify_by_eigenvalues(H, self.config.classifier.eig_tolerance)
        if cls is CriticalPointClass.UNDECIDED and self.order_size >= 2:
            cls = classify_higher_order(engine, point, self.order_size, self.config)
        return cls

    def _bordered_test(self, engine: ImplicitDiff, point: Sequence) -> CriticalPointClass:
        # dependent variables lead so that the first m Jacobian columns are regular
        ordered = engine.dependent + engine.independent
        values = list(point[engine.nvars:]) + list(point[:engine.nvars])
        multipliers = lagrange_multipliers(engine.objective, engine.constraints, ordered, values)
        if multipliers is None:
            return CriticalPointClass.UNDECIDED
        lam = [sp.Dummy(f"lambda{i}") for i in range(self.m)]
        H = bordered_hessian(engine.objective, engine.constraints, ordered, lam)
        H = substitute(H, lam + ordered, list(multipliers) + values)
        if is_singular(H):
            return CriticalPointClass.UNDECIDED
        return classify_bordered(H, self.m, engine.nvars)

    def _classify_lagrange(self) -> None:
        dummies = make_dummies(self.specs)
        to_dummy = dict(zip(self.symbols, dummies))
        f = self.objective.subs(to_dummy)
        g = [c.subs(to_dummy) for c in self.constraints]
        lam = [sp.Dummy(f"lambda{i}", real=True) for i in range(self.m)]
        allvars = lam + dummies
        lagrangian = f - sum((l * c for l, c in zip(lam, g)), sp.S.Zero)
        equations = [sp.diff(lagrangian, v) for v in allvars]
        initial = [0] * self.m + list(self.initial) if self.initial is not None else None
        bounds = [Bound()] * self.m + [s.bound for s in self.specs]
        H = sp.hessian(lagrangian, allvars)
        for solution in self._candidates(equations, allvars, bounds, initial):
            key = self._key(solution[self.m:])
            if self.order_size == 0:
                cls = CriticalPointClass.UNDECIDED
            else:
                Hp = substitute(H, allvars, solution)
                cls = CriticalPointClass.UNDECIDED if is_singular(Hp) else \
                    classify_bordered(Hp, self.m, self.nv - self.m)
            self._record(key, cls)

    def _result(self) -> ExtremaResult:
        result = ExtremaResult(classes=dict(self.classes))
        for point, cls in self.classes.items():
            if cls is CriticalPointClass.MIN:
                result.minima.append(point)
            elif cls is CriticalPointClass.MAX:
                result.maxima.append(point)
            elif self.order_size > 0:
                label = "inflection point" if cls is CriticalPointClass.SADDLE and self.nv == 1 else cls.value
                logger.info("%s: %s", _describe(self.symbols, point), label)
        return result

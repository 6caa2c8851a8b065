"""High-level commands for extremum search and implicit differentiation.

Commands
--------
minimize()     : global minimum (optionally with its locations)
maximize()     : global maximum
extrema()      : local extrema with classification of every critical point
implicitdiff() : partial derivatives under implicit constraints

``ExtremaOrchestrator`` keeps one ProblemConfig for a series of queries and
can write reports for ``extrema`` results.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

import sympy as sp
from sympy.core.function import AppliedUndef

from .core.arrangements import check_jacobian
from .core.config import ProblemConfig
from .core.errors import DimensionError, MalformedInputError, SizeError
from .core.ipdiff import ImplicitDiff
from .core.kernel import normalize, substitute
from .evaluation.reporting import write_reports
from .optimization.classifier import CriticalPointClassifier, ExtremaResult
from .optimization.global_extrema import global_extrema
from .optimization.variables import parse_variables, symbols_of
from .utils.logging_utils import get_logger

logger = get_logger(__name__)

_SEQUENCES = (list, tuple, sp.MatrixBase)


def split_constraints(constraints) -> Tuple[List[sp.Expr], List[sp.Expr]]:
    """Sort constraints into inequalities (``g <= 0``) and equalities (``h = 0``).

    Relations ``a = b`` become ``a - b``; ``a <= b`` and ``a >= b`` (strict
    or not) become ``a - b <= 0`` and ``b - a <= 0``; a bare expression is
    an equality.
    """
    if constraints is None:
        return [], []
    items = list(constraints) if isinstance(constraints, _SEQUENCES) else [constraints]
    inequalities, equalities = [], []
    for c in items:
        if isinstance(c, sp.Equality):
            equalities.append(c.lhs - c.rhs)
        elif isinstance(c, (sp.LessThan, sp.StrictLessThan)):
            inequalities.append(c.lhs - c.rhs)
        elif isinstance(c, (sp.GreaterThan, sp.StrictGreaterThan)):
            inequalities.append(c.rhs - c.lhs)
        elif isinstance(c, sp.Expr):
            equalities.append(c)
        elif isinstance(c, (int, float)):
            equalities.append(sp.sympify(c))
        else:
            raise MalformedInputError(f"invalid constraint {c!r}")
    return inequalities, equalities


def _split_args(args: Sequence) -> tuple:
    if len(args) == 1:
        return None, args[0]
    if len(args) == 2:
        return args[0], args[1]
    raise SizeError(f"expected (variables) or (constraints, variables), got {len(args)} arguments")


def _equalities_only(constraints) -> List[sp.Expr]:
    inequalities, equalities = split_constraints(constraints)
    if inequalities:
        raise MalformedInputError("only equality constraints are supported here")
    return equalities


def _with_overrides(config: Optional[ProblemConfig], order_size=None, lagrange=None) -> ProblemConfig:
    config = config or ProblemConfig()
    classifier = config.classifier
    if order_size is not None:
        classifier = replace(classifier, order_size=order_size)
    if lagrange is not None:
        classifier = replace(classifier, lagrange=lagrange)
    return replace(config, classifier=classifier)


def minimize(objective, *args, location: bool = False, config: Optional[ProblemConfig] = None):
    """Global minimum of ``objective``.

    ``minimize(f, variables)`` or ``minimize(f, constraints, variables)``.
    Variables are symbols or ``(symbol, (lower, upper))`` with closed bounds.
    Returns the minimum, ``(minimum, locations)`` with ``location=True``, or
    None when no candidate point exists.
    """
    config = config or ProblemConfig()
    constraints, variables = _split_args(args)
    specs = parse_variables(variables, closed=True)
    if any(s.initial is not None for s in specs):
        raise SizeError("minimize does not take initial guesses")
    inequalities, equalities = split_constraints(constraints)
    found = global_extrema(objective, inequalities, equalities, specs, config.solver)
    if found.is_undefined:
        return None
    value = sp.simplify(found.min_value)
    if location:
        return value, found.minimizers
    return value


def maximize(objective, *args, location: bool = False, config: Optional[ProblemConfig] = None):
    """Global maximum of ``objective``; same calling convention as ``minimize``."""
    found = minimize(-sp.sympify(objective), *args, location=location, config=config)
    if found is None:
        return None
    if location:
        value, points = found
        return -value, points
    return -found


def extrema(objective, *args, order_size: Optional[int] = None, lagrange: Optional[bool] = None,
            config: Optional[ProblemConfig] = None) -> ExtremaResult:
    """Local extrema of ``objective`` subject to equality constraints.

    ``extrema(f, variables)`` or ``extrema(f, constraints, variables)``.
    Variables are symbols, ``(symbol, (lower, upper))`` (open range) or
    ``(symbol, x0)`` (initial guess, switches to the numeric solver).
    """
    config = _with_overrides(config, order_size, lagrange)
    constraints, variables = _split_args(args)
    specs = parse_variables(variables, closed=False)
    equalities = _equalities_only(constraints)
    return CriticalPointClassifier(objective, equalities, specs, config).run()


def _dependent_symbol(name: str, constraints: Sequence[sp.Expr]) -> sp.Symbol:
    for c in constraints:
        for s in c.free_symbols:
            if s.name == name:
                return s
    return sp.Symbol(name)


def _parse_depvars(spec, constraints: Sequence[sp.Expr]) -> Tuple[List[sp.Symbol], List[sp.Symbol]]:
    items = list(spec) if isinstance(spec, _SEQUENCES) else [spec]
    deps, free = [], []
    for item in items:
        if isinstance(item, sp.Symbol):
            deps.append(item)
        elif isinstance(item, AppliedUndef):
            deps.append(_dependent_symbol(item.func.__name__, constraints))
            for arg in item.args:
                if not isinstance(arg, sp.Symbol):
                    raise MalformedInputError(f"{item}: function arguments must be symbols")
                if arg not in free:
                    free.append(arg)
        else:
            raise MalformedInputError(f"invalid dependent variable {item!r}")
    return deps, free


def _implicit_table(objective, constraints: List[sp.Expr], variables, order_size, point, config):
    if isinstance(order_size, bool) or not isinstance(order_size, int):
        raise MalformedInputError(f"order_size must be an integer, got {order_size!r}")
    if order_size <= 0:
        raise DimensionError("order_size must be positive")
    symbols = symbols_of(parse_variables(variables))
    if not check_jacobian(constraints, symbols):
        raise DimensionError("the trailing variables cannot be solved for (singular Jacobian)")
    engine = ImplicitDiff(objective, constraints, symbols, config.diff)
    if point is not None and len(point) != len(symbols):
        raise SizeError(f"point has {len(point)} coordinates, expected {len(symbols)}")

    def at(value):
        if point is None:
            return value
        return normalize(substitute(value, symbols, point), config.diff.normalize)

    if order_size == 1:
        return [at(v) for v in engine.gradient()]
    if order_size == 2:
        return at(engine.hessian())
    return {sig: at(value) for sig, value in engine.partial_derivatives(order_size).items()}


def implicitdiff(*args, order_size: Optional[int] = None, point: Optional[Sequence] = None,
                 config: Optional[ProblemConfig] = None):
    """Partial derivatives with dependent variables defined by constraints.

    Forms
    -----
    implicitdiff(f, constraints, depvars, *diffvars)
        derivative of ``f``.
    implicitdiff(constraints, depvars, *diffvars)
        derivative of the (single) dependent variable.
    implicitdiff(constraints, [depvars], y, *diffvars)
        derivative of the dependent variable(s) ``y`` (0 for a non-dependent ``y``).
    implicitdiff(f, constraints, variables, order_size=m, point=None)
        gradient (m=1), Hessian (m=2) or ``{multi-index: value}`` table (m>2);
        the trailing variables are the dependent ones.

    Constraint-first forms need ``Eq`` objects or a list. ``depvars`` are
    symbols or applied functions ``y(x, z)``; ``diffvars`` are symbols or
    ``(symbol, count)``.
    """
    config = config or ProblemConfig()
    if len(args) < 2:
        raise SizeError("implicitdiff needs at least a constraint and a dependent variable")
    first = args[0]
    if isinstance(first, (sp.Equality,) + _SEQUENCES):
        objective, constraints, rest = None, _equalities_only(first), list(args[1:])
    else:
        objective, constraints, rest = sp.sympify(first), _equalities_only(args[1]), list(args[2:])
    if not rest:
        raise SizeError("missing dependent variables")

    if order_size is not None:
        if objective is None or len(rest) != 1:
            raise SizeError("order_size form is implicitdiff(f, constraints, variables, order_size=m)")
        return _implicit_table(objective, constraints, rest[0], order_size, point, config)

    targets = None
    if objective is None and isinstance(rest[0], _SEQUENCES):
        if len(rest) < 2:
            raise SizeError("missing the dependent variable to differentiate")
        targets = rest[1]
        diffargs = rest[2:]
    else:
        diffargs = rest[1:]
    deps, free = _parse_depvars(rest[0], constraints)
    if len(deps) != len(constraints):
        raise SizeError(f"{len(constraints)} constraints need as many dependent variables, got {len(deps)}")
    if not diffargs:
        raise SizeError("no differentiation variables given")

    counts: Dict[sp.Symbol, int] = {}
    for item in diffargs:
        symbol, count = item if isinstance(item, tuple) else (item, 1)
        if not isinstance(symbol, sp.Symbol) or isinstance(count, bool) or not isinstance(count, int):
            raise MalformedInputError(f"invalid differentiation variable {item!r}")
        if symbol in deps:
            raise MalformedInputError(f"cannot differentiate with respect to dependent variable {symbol}")
        if symbol not in free:
            free.append(symbol)
        counts[symbol] = counts.get(symbol, 0) + count
    variables = free + deps
    if not check_jacobian(constraints, variables):
        raise DimensionError("the dependent variables cannot be solved for (singular Jacobian)")
    sig = [counts.get(v, 0) for v in free]

    if objective is not None:
        return ImplicitDiff(objective, constraints, variables, config.diff).derivative(sig)

    if targets is None:
        if len(deps) != 1:
            raise SizeError("name the dependent variable to differentiate")
        targets = deps[0]
    single = not isinstance(targets, _SEQUENCES)
    wanted, _ = _parse_depvars(targets, constraints)
    out = [ImplicitDiff(y, constraints, variables, config.diff).derivative(sig) if y in deps else sp.S.Zero
           for y in wanted]
    return out[0] if single else out


class ExtremaOrchestrator:
    """Runs queries with one shared ProblemConfig instance."""

    def __init__(self, cfg: Optional[ProblemConfig] = None) -> None:
        self.cfg = cfg or ProblemConfig()

    def minimize(self, objective, *args, location: bool = False):
        return minimize(objective, *args, location=location, config=self.cfg)

    def maximize(self, objective, *args, location: bool = False):
        return maximize(objective, *args, location=location, config=self.cfg)

    def extrema(self, objective, *args, order_size: Optional[int] = None,
                lagrange: Optional[bool] = None) -> ExtremaResult:
        return extrema(objective, *args, order_size=order_size, lagrange=lagrange, config=self.cfg)

    def implicitdiff(self, *args, order_size: Optional[int] = None, point: Optional[Sequence] = None):
        return implicitdiff(*args, order_size=order_size, point=point, config=self.cfg)

    def extrema_report(self, objective, *args, outdir: Union[str, Path], order_size: Optional[int] = None,
                       lagrange: Optional[bool] = None) -> ExtremaResult:
        """Run ``extrema`` and write the summary, the points table and a text report."""
        result = self.extrema(objective, *args, order_size=order_size, lagrange=lagrange)
        _, variables = _split_args(args)
        symbols = symbols_of(parse_variables(variables, closed=False))
        write_reports(result, symbols, outdir)
        logger.info("reports written to %s", outdir)
        return result

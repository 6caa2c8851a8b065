from __future__ import annotations

import argparse
from typing import List, Optional

from .core.config import ProblemConfig
from .core.errors import OptimizationError
from .evaluation.reporter import build_text_report, partials_frame
from .orchestrator import ExtremaOrchestrator
from .optimization.variables import parse_variables, symbols_of
from .utils.logging_utils import configure_logging, get_logger
from .utils.parsing import parse_expression, parse_point, parse_relation, parse_variable

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="symextrema CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(sub):
        sub.add_argument("--config", default=None, help="YAML configuration file")
        sub.add_argument("--log-level", default=None)
        sub.add_argument("--constraint", "-c", action="append", default=[],
                         help="constraint such as 'x^2+y^2=1' or 'x+y<=2' (repeatable)")
        return sub

    for name, text in (("minimize", "Global minimum"), ("maximize", "Global maximum")):
        sub = add_common(subparsers.add_parser(name, help=text))
        sub.add_argument("objective")
        sub.add_argument("--var", "-v", action="append", required=True, help="x, or x=a..b")
        sub.add_argument("--location", action="store_true", help="also print the optimal points")

    sub = add_common(subparsers.add_parser("extrema", help="Local extrema and critical points"))
    sub.add_argument("objective")
    sub.add_argument("--var", "-v", action="append", required=True, help="x, x=a..b or x=x0")
    sub.add_argument("--order-size", type=int, default=None)
    sub.add_argument("--lagrange", action="store_true")
    sub.add_argument("--output", default=None, help="directory for summary/table/report files")

    sub = add_common(subparsers.add_parser("implicitdiff", help="Implicit partial derivatives"))
    sub.add_argument("objective", nargs="?", default=None,
                     help="function to differentiate; omit to differentiate the dependent variable")
    sub.add_argument("--depvar", "-y", action="append", default=[])
    sub.add_argument("--diff", "-x", action="append", default=[], help="x or x:2")
    sub.add_argument("--var", "-v", action="append", default=[],
                     help="all variables, dependent ones last (with --order-size)")
    sub.add_argument("--order-size", type=int, default=None)
    sub.add_argument("--point", default=None, help="comma separated coordinates")

    return parser


def _diff_target(text: str):
    name, _, count = text.partition(":")
    symbol = parse_expression(name)
    return (symbol, int(count)) if count else symbol


def _run(args, orchestrator: ExtremaOrchestrator) -> None:
    constraints = [parse_relation(c) for c in args.constraint]

    if args.command in ("minimize", "maximize"):
        variables = [parse_variable(v) for v in args.var]
        objective = parse_expression(args.objective)
        call = orchestrator.minimize if args.command == "minimize" else orchestrator.maximize
        found = call(objective, constraints, variables, location=args.location)
        if found is None:
            print("undefined: no candidate points")
        elif args.location:
            value, points = found
            print(value)
            for point in points:
                print(point)
        else:
            print(found)
    elif args.command == "extrema":
        variables = [parse_variable(v) for v in args.var]
        objective = parse_expression(args.objective)
        overrides = {"order_size": args.order_size, "lagrange": True if args.lagrange else None}
        if args.output:
            result = orchestrator.extrema_report(objective, constraints, variables, outdir=args.output, **overrides)
        else:
            result = orchestrator.extrema(objective, constraints, variables, **overrides)
        symbols = symbols_of(parse_variables(variables, closed=False))
        print(build_text_report(result, symbols), end="")
    else:
        point = parse_point(args.point) if args.point else None
        if args.order_size is not None:
            symbols = [parse_expression(v) for v in args.var]
            found = orchestrator.implicitdiff(parse_expression(args.objective), constraints, symbols,
                                              order_size=args.order_size, point=point)
            if isinstance(found, dict):
                print(partials_frame(found, symbols[:len(symbols) - len(constraints)]).to_string(index=False))
            else:
                print(found)
            return
        depvars = [parse_expression(v) for v in args.depvar]
        diffvars = [_diff_target(v) for v in args.diff]
        if args.objective is None:
            if len(depvars) == 1:
                print(orchestrator.implicitdiff(constraints, depvars[0], *diffvars))
            else:
                print(orchestrator.implicitdiff(constraints, depvars, depvars, *diffvars))
        else:
            print(orchestrator.implicitdiff(parse_expression(args.objective), constraints, depvars, *diffvars))


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    cfg = ProblemConfig.load(args.config) if args.config else ProblemConfig()
    if args.log_level:
        cfg.runtime.log_level = args.log_level
    configure_logging(cfg.runtime.log_level)

    try:
        _run(args, ExtremaOrchestrator(cfg))
    except OptimizationError as exc:
        logger.error("%s", exc)
        parser.exit(2, f"error: {exc}\n")


if __name__ == "__main__":
    main()

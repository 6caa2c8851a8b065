"""Parsing of command-line expressions, relations and variable specifications.

Syntax accepted (``^`` is a power):

* expression: ``x^2 + 2*y^2``
* relation:   ``x^2 + y^2 = 1``, ``2*x + 3*y <= 10``, ``x >= 0``
* variable:   ``x``, ``x=-1..2`` (range), ``x=0.5`` (initial guess)
"""

from __future__ import annotations

from typing import List, Tuple, Union

import sympy as sp
from sympy.parsing.sympy_parser import convert_xor, parse_expr, standard_transformations

from ..core.errors import MalformedInputError

_TRANSFORMS = standard_transformations + (convert_xor,)
_LOCALS = {"inf": sp.oo, "infinity": sp.oo, "e": sp.E, "pi": sp.pi}
_RELATIONS = (("<=", sp.Le), (">=", sp.Ge), ("==", sp.Eq), ("<", sp.Lt), (">", sp.Gt), ("=", sp.Eq))


def parse_expression(text: str) -> sp.Expr:
    try:
        return parse_expr(text.strip(), local_dict=dict(_LOCALS), transformations=_TRANSFORMS)
    except (SyntaxError, TypeError, ValueError, sp.SympifyError) as exc:
        raise MalformedInputError(f"cannot parse expression {text!r}: {exc}") from exc


def parse_relation(text: str) -> Union[sp.Rel, sp.Expr]:
    """A relation, or a bare expression (read as ``expr = 0``)."""
    for op, rel in _RELATIONS:
        if op in text:
            lhs, rhs = text.split(op, 1)
            return rel(parse_expression(lhs), parse_expression(rhs), evaluate=False)
    return parse_expression(text)


def parse_variable(text: str) -> Union[sp.Symbol, Tuple]:
    name, _, value = text.partition("=")
    symbol = parse_expression(name)
    if not isinstance(symbol, sp.Symbol):
        raise MalformedInputError(f"{name!r} is not a variable name")
    if not value:
        return symbol
    if ".." in value:
        lower, upper = value.split("..", 1)
        return symbol, (parse_expression(lower), parse_expression(upper))
    return symbol, parse_expression(value)


def parse_point(text: str) -> List[sp.Expr]:
    return [parse_expression(part) for part in text.split(",") if part.strip()]

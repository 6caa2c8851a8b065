"""Candidate solving, global extrema and critical-point classification.

Exports
-------
solve2 / numeric_solve : exact and numeric solvers for candidate points
solve_kkt : KKT candidates by complementary-slackness enumeration
global_extrema : global minimum/maximum over candidate points
CriticalPointClassifier : local extrema with bordered Hessian, eigenvalue and higher-order tests
"""

from .variables import Bound, VariableSpec, parse_variables
from .solve import numeric_solve, solve2
from .kkt import solve_kkt
from .global_extrema import GlobalExtrema, critical_univariate, find_spikes, global_extrema
from .classifier import CriticalPointClass, CriticalPointClassifier, ExtremaResult

__all__ = [
    "Bound",
    "VariableSpec",
    "parse_variables",
    "numeric_solve",
    "solve2",
    "solve_kkt",
    "GlobalExtrema",
    "critical_univariate",
    "find_spikes",
    "global_extrema",
    "CriticalPointClass",
    "CriticalPointClassifier",
    "ExtremaResult",
]

"""Core algorithms and data structures for symextrema."""

from .config import ClassifierConfig, DiffConfig, ProblemConfig, RuntimeConfig, SolverConfig
from .errors import DimensionError, MalformedInputError, OptimizationError, SizeError, SolverFailure
from .diffterms import DiffTerm, TermCache, derive_diffterms
from .ipdiff import ImplicitDiff
from .arrangements import check_jacobian, jacobian, variable_arrangements
from .multiindex import ipartition

__all__ = [
    'ClassifierConfig',
    'DiffConfig',
    'ProblemConfig',
    'RuntimeConfig',
    'SolverConfig',
    'DimensionError',
    'MalformedInputError',
    'OptimizationError',
    'SizeError',
    'SolverFailure',
    'DiffTerm',
    'TermCache',
    'derive_diffterms',
    'ImplicitDiff',
    'check_jacobian',
    'jacobian',
    'variable_arrangements',
    'ipartition',
]

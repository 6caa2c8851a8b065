"""Typed errors raised by the derivative engine and the extremum search.

Structural problems (dimensions, malformed input, arity) abort a query
immediately. ``SolverFailure`` is raised by the solver layer and handled by
its callers, which log it and skip the affected candidate.
"""


class OptimizationError(Exception):
    """Base class for all symextrema errors."""


class DimensionError(OptimizationError, ValueError):
    """Too many constraints, rank-deficient Jacobian or no usable arrangement."""


class MalformedInputError(OptimizationError, TypeError):
    """A variable or constraint specification has the wrong shape or type."""


class SizeError(OptimizationError, ValueError):
    """Wrong number of arguments or mismatched sequence lengths."""


class SolverFailure(OptimizationError, RuntimeError):
    """An exact or numeric equation solver could not produce a result."""

"""
symextrema - Symbolic extremum search under implicit constraints
================================================================

Implicit partial derivatives of any order, KKT candidate search, global
extrema and classification of constrained critical points, on top of SymPy.
"""

__version__ = "1.0.0"

from .orchestrator import ExtremaOrchestrator, extrema, implicitdiff, maximize, minimize
from .optimization.classifier import CriticalPointClass, ExtremaResult

__all__ = [
    "ExtremaOrchestrator",
    "extrema",
    "implicitdiff",
    "maximize",
    "minimize",
    "CriticalPointClass",
    "ExtremaResult",
]

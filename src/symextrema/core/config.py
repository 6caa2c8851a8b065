"""
Configuration dataclasses for symextrema.

This module contains the configuration classes for the implicit derivative
engine, the critical-point classifier, the equation solvers and the runtime.
``ProblemConfig`` aggregates them and can be loaded from a YAML file.
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Union

from ..utils.io_utils import load_yaml


NORMALIZE_MODES = ("cancel", "simplify", "none")


@dataclass
class DiffConfig:
    """Implicit differentiation settings.

    Attributes
    ----------
    normalize : str
        Normal form applied to implicit and combined partials:
        ``cancel`` (rational normal form), ``simplify`` or ``none``.
    """
    normalize: str = "cancel"

    def __post_init__(self) -> None:
        if self.normalize not in NORMALIZE_MODES:
            raise ValueError(f"normalize must be one of {NORMALIZE_MODES}, got {self.normalize!r}")


@dataclass
class ClassifierConfig:
    """Critical-point classification settings.

    Attributes
    ----------
    order_size : int
        Highest derivative order used by the tests. 0 returns unclassified
        critical points, 1 uses second-order tests only, >= 2 adds the
        higher-order Taylor tests.
    lagrange : bool
        Obtain constrained candidates from the full Lagrange system and
        classify them with the bordered Hessian only.
    eig_tolerance : float
        Relative magnitude under which a numeric Hessian eigenvalue counts as zero.
    """
    order_size: int = 5
    lagrange: bool = False
    eig_tolerance: float = 1e-10


@dataclass
class SolverConfig:
    """Equation solver and comparison settings.

    Attributes
    ----------
    tie_tolerance : float
        Numeric fallback for deciding that two closed-form values are equal.
    numeric_tol : float
        Residual tolerance of the numeric root finder.
    numeric_max_iter : int
        Function evaluation cap of the numeric root finder.
    max_arrangement_columns : int
        Largest number of variables for which arrangements are enumerated.
    """
    tie_tolerance: float = 1e-12
    numeric_tol: float = 1e-10
    numeric_max_iter: int = 200
    max_arrangement_columns: int = 32


@dataclass
class RuntimeConfig:
    """Runtime settings (logging)."""
    log_level: str = "INFO"


@dataclass
class ProblemConfig:
    """Aggregated configuration for one extremum or differentiation query."""
    diff: DiffConfig = field(default_factory=DiffConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    solver: SolverConfig = field(default_factory=SolverConfig)
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any] | None) -> "ProblemConfig":
        data = data or {}
        sections = {"diff": DiffConfig, "classifier": ClassifierConfig,
                    "solver": SolverConfig, "runtime": RuntimeConfig}
        unknown = set(data) - set(sections)
        if unknown:
            raise KeyError(f"Unknown configuration sections: {sorted(unknown)}")
        kwargs = {}
        for name, section_cls in sections.items():
            values = data.get(name) or {}
            allowed = {f.name for f in fields(section_cls)}
            bad = set(values) - allowed
            if bad:
                raise KeyError(f"Unknown keys in section '{name}': {sorted(bad)}")
            kwargs[name] = section_cls(**values)
        return cls(**kwargs)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "ProblemConfig":
        """Load a configuration from a YAML file."""
        return cls.from_dict(load_yaml(path))

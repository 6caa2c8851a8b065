"""
Write extremum search artifacts.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import sympy as sp

from ..utils.io_utils import atomic_write_text, save_csv, save_json
from .reporter import build_points_table, build_text_report


def write_reports(result, variables: Sequence[sp.Symbol], outdir: str | Path) -> Path:
    """Save summary, critical-point table and text report to ``outdir``.

    Params:
        result: ExtremaResult of an extrema query.
        variables: problem variables in coordinate order.
        outdir: output directory path.

    Returns:
        The output directory.
    """
    output = Path(outdir)
    output.mkdir(parents=True, exist_ok=True)

    summary = {
        "variables": [str(v) for v in variables],
        "minima": [str(p) for p in result.minima],
        "maxima": [str(p) for p in result.maxima],
        "classes": {str(p): c.value for p, c in result.classes.items()},
    }
    save_json(summary, output / "summary.json")
    save_csv(build_points_table(result, variables), output / "critical_points.csv")
    atomic_write_text(output / "report.txt", build_text_report(result, variables))
    return output

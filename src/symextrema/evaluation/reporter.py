from __future__ import annotations

from typing import Dict, List, Sequence

import pandas as pd
import sympy as sp


def _coords(point, width: int) -> List:
    values = point if isinstance(point, tuple) else (point,)
    if len(values) != width:
        raise ValueError(f"point {point} does not match {width} variables")
    return list(values)


def build_points_table(result, variables: Sequence[sp.Symbol]) -> pd.DataFrame:
    """One row per critical point: coordinates (as strings), numeric
    coordinates and the classification."""
    names = [str(v) for v in variables]
    rows = []
    for point, cls in result.classes.items():
        coords = _coords(point, len(names))
        row = {name: str(value) for name, value in zip(names, coords)}
        for name, value in zip(names, coords):
            number = sp.N(value)
            row[f"{name}_num"] = float(number) if number.is_real else float("nan")
        row["classification"] = cls.value
        rows.append(row)
    columns = names + [f"{n}_num" for n in names] + ["classification"]
    frame = pd.DataFrame(rows, columns=columns)
    frame.index.name = "point"
    return frame


def partials_frame(pdmap: Dict[tuple, sp.Expr], variables: Sequence[sp.Symbol]) -> pd.DataFrame:
    """Order-indexed partial derivatives: one column per variable order plus the value."""
    names = [str(v) for v in variables]
    rows = []
    for sig, value in pdmap.items():
        row = dict(zip(names, sig))
        row["order"] = sum(sig)
        row["value"] = str(value)
        rows.append(row)
    return pd.DataFrame(rows, columns=names + ["order", "value"])


def build_text_report(result, variables: Sequence[sp.Symbol]) -> str:
    names = [str(v) for v in variables]

    def fmt(point) -> str:
        return "(" + ", ".join(f"{n}={v}" for n, v in zip(names, _coords(point, len(names)))) + ")"

    lines: list[str] = []
    lines.append("=== Critical points ===")
    lines.append(f"Variables: {', '.join(names)}")
    lines.append(f"Found: {len(result.classes)}")
    lines.append("")
    lines.append("=== Local minima ===")
    lines.extend(fmt(p) for p in result.minima)
    if not result.minima:
        lines.append("none")
    lines.append("")
    lines.append("=== Local maxima ===")
    lines.extend(fmt(p) for p in result.maxima)
    if not result.maxima:
        lines.append("none")
    others = [(p, c) for p, c in result.classes.items() if p not in result.minima and p not in result.maxima]
    if others:
        lines.append("")
        lines.append("=== Other critical points ===")
        lines.extend(f"{fmt(p)}: {c.value}" for p, c in others)
    return "\n".join(lines) + "\n"

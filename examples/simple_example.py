"""
Simple Example: Extremum search under an implicit constraint
=============================================================

This example walks through the basic symextrema workflow.

Workflow:
1. Define the objective and the equality constraint
2. Inspect implicit partial derivatives of the objective
3. Classify the critical points
4. Compute the global minimum and maximum
5. Write the reports
"""

from pathlib import Path

import sympy as sp

from symextrema import extrema, implicitdiff, maximize, minimize
from symextrema.orchestrator import ExtremaOrchestrator

x, y = sp.symbols("x y")


def create_ellipse_problem():
    """
    Distance-like objective restricted to a shifted ellipse.

        f(x, y) = x^2 + 2 y^2
        x^2 - 2x + 2y^2 + 4y = 0
    """
    objective = x**2 + 2 * y**2
    constraint = sp.Eq(x**2 - 2 * x + 2 * y**2 + 4 * y, 0)
    return objective, constraint


def main():
    objective, constraint = create_ellipse_problem()

    print("Step 1: implicit derivatives (y depends on x)")
    print("  df/dx   =", implicitdiff(objective, [constraint], y, x))
    print("  d2f/dx2 =", implicitdiff(objective, [constraint], y, (x, 2)))

    print("\nStep 2: critical points")
    result = extrema(objective, [constraint], [x, y])
    for point, cls in result.classes.items():
        print(f"  {point}: {cls.value}")

    print("\nStep 3: global optimum")
    print("  min =", minimize(objective, [constraint], [x, y], location=True))
    print("  max =", maximize(objective, [constraint], [x, y], location=True))

    outdir = Path("results") / "simple_example"
    ExtremaOrchestrator().extrema_report(objective, [constraint], [x, y], outdir=outdir)
    print(f"\nReports written to {outdir}")


if __name__ == "__main__":
    main()

from pathlib import Path

import pytest
import sympy as sp

from symextrema.cli import main
from symextrema.core.config import DiffConfig, ProblemConfig
from symextrema.core.errors import MalformedInputError
from symextrema.evaluation.reporter import build_points_table, build_text_report
from symextrema.optimization.classifier import CriticalPointClass, ExtremaResult
from symextrema.utils.parsing import parse_expression, parse_point, parse_relation, parse_variable

x, y = sp.symbols("x y")
DEFAULT_CONFIG = Path(__file__).resolve().parents[1] / "config" / "default.yaml"


def test_default_config_file_matches_defaults():
    assert ProblemConfig.load(DEFAULT_CONFIG) == ProblemConfig()


def test_config_from_yaml(tmp_path):
    path = tmp_path / "cfg.yaml"
    path.write_text("classifier:\n  order_size: 2\n  lagrange: true\nsolver:\n  tie_tolerance: 1.0e-9\n")
    cfg = ProblemConfig.load(path)
    assert cfg.classifier.order_size == 2
    assert cfg.classifier.lagrange is True
    assert cfg.solver.tie_tolerance == 1e-9
    assert cfg.diff.normalize == "cancel"

    empty = tmp_path / "empty.yaml"
    empty.write_text("")
    assert ProblemConfig.load(empty) == ProblemConfig()


def test_config_rejects_unknown_entries():
    with pytest.raises(KeyError):
        ProblemConfig.from_dict({"plotting": {}})
    with pytest.raises(KeyError):
        ProblemConfig.from_dict({"solver": {"tolerance": 1}})
    with pytest.raises(ValueError):
        DiffConfig(normalize="expand")


def test_parsing():
    assert parse_expression("x^2 + 2*y") == x**2 + 2 * y
    rel = parse_relation("2*x + 3*y <= 10")
    assert isinstance(rel, sp.LessThan)
    assert rel.lhs == 2 * x + 3 * y and rel.rhs == 10
    assert isinstance(parse_relation("x >= 0"), sp.GreaterThan)
    eq = parse_relation("x^2 + y^2 = 1")
    assert isinstance(eq, sp.Equality)
    assert parse_relation("x - y") == x - y
    assert parse_variable("x") == x
    assert parse_variable("x=-1..2") == (x, (-1, 2))
    assert parse_variable("y=0.5") == (y, sp.Float(0.5))
    assert parse_point("1,-1, 0") == [1, -1, 0]
    with pytest.raises(MalformedInputError):
        parse_expression("x +* y")
    with pytest.raises(MalformedInputError):
        parse_variable("x+1=2")


def test_points_table_and_text_report():
    result = ExtremaResult(minima=[(0, 0)],
                           classes={(0, 0): CriticalPointClass.MIN, (1, sp.sqrt(2)): CriticalPointClass.SADDLE})
    frame = build_points_table(result, [x, y])
    assert list(frame.columns) == ["x", "y", "x_num", "y_num", "classification"]
    assert frame.index.name == "point"
    assert frame.loc[1, "y_num"] == pytest.approx(2 ** 0.5)
    assert frame.loc[0, "classification"] == "local minimum"

    text = build_text_report(result, [x, y])
    assert "(x=0, y=0)" in text
    assert "(x=1, y=sqrt(2)): saddle point" in text


def test_cli_implicitdiff(capsys):
    main(["implicitdiff", "-c", "y^3 + x^2 = 1", "-y", "y", "-x", "x"])
    assert capsys.readouterr().out.strip() == "-2*x/(3*y**2)"


def test_cli_minimize_with_location(capsys):
    main(["minimize", "x^2 + 1", "-v", "x"])
    assert capsys.readouterr().out.strip() == "1"

    main(["maximize", "x^4 - x^2", "-v", "x=-3..3", "--location"])
    lines = capsys.readouterr().out.split()
    assert lines[0] == "72"
    assert set(lines[1:]) == {"-3", "3"}


def test_cli_extrema_with_output(tmp_path, capsys):
    main(["extrema", "x^3 - 3*x", "-v", "x", "--output", str(tmp_path)])
    out = capsys.readouterr().out
    assert "=== Local minima ===" in out
    assert "(x=1)" in out
    assert (tmp_path / "summary.json").exists()
    assert (tmp_path / "critical_points.csv").exists()


def test_cli_reports_errors():
    with pytest.raises(SystemExit) as exc:
        main(["extrema", "x*y", "-c", "x + y <= 1", "-v", "x", "-v", "y"])
    assert exc.value.code == 2


def test_cli_extrema_order_size_override(capsys):
    main(["extrema", "x^2 + y^2", "-v", "x", "-v", "y", "--order-size", "0"])
    assert "unclassified critical point" in capsys.readouterr().out

"""Tables and report files for extremum and differentiation results."""

from .reporter import build_points_table, build_text_report, partials_frame
from .reporting import write_reports

__all__ = ["build_points_table", "build_text_report", "partials_frame", "write_reports"]

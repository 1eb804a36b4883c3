"""Report rendering."""

from pageaudit.report.generator import generate_report

__all__ = ["generate_report"]

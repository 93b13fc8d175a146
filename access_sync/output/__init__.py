"""Output writers for sync runs."""

from .run_report import build_report, write_run_report

__all__ = ["build_report", "write_run_report"]

"""Reporting exports."""
from .base import ReportManager, Reporter
from .json_reporter import JsonReporter
from .terminal import FlatReporter, TerminalReporter, TreeReporter, render_listing

__all__ = [
    "FlatReporter",
    "JsonReporter",
    "ReportManager",
    "Reporter",
    "TerminalReporter",
    "TreeReporter",
    "render_listing",
]

"""Builder API for declaring suites."""

from .builder import CaseHandle, SpecBuilder, build_suite, suite
from .ordered import OrderedBuilder
from .table import TableBuilder

__all__ = [
    "CaseHandle",
    "OrderedBuilder",
    "SpecBuilder",
    "TableBuilder",
    "build_suite",
    "suite",
]

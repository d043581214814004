"""Core scope tree, selection, and execution engine."""

from .errors import (
    CaseCancelled,
    ConfigurationError,
    FocusSelectionError,
    HookError,
    LabelFilterError,
    NestspecError,
    SkipCase,
)
from .models import Case, OrderedCase, Scope, Step, Suite
from .results import FAILED, PASSED, PENDING, SKIPPED, RunResult, RunSummary, StepResult, SuiteResult

__all__ = [
    "FAILED",
    "PASSED",
    "PENDING",
    "SKIPPED",
    "Case",
    "CaseCancelled",
    "ConfigurationError",
    "FocusSelectionError",
    "HookError",
    "LabelFilterError",
    "NestspecError",
    "OrderedCase",
    "RunResult",
    "RunSummary",
    "Scope",
    "SkipCase",
    "Step",
    "StepResult",
    "Suite",
    "SuiteResult",
]

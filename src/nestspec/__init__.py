"""nestspec package initialization."""
from __future__ import annotations

import importlib
import os
from typing import Any, Callable, Optional

from .config import RunConfig
from .core.context import by, checkpoint, defer_cleanup, scratch, skip, subject
from .core.errors import (
    ConfigurationError,
    FocusSelectionError,
    HookError,
    LabelFilterError,
    NestspecError,
    SkipCase,
)
from .core.runner import run_suites
from .dsl import SpecBuilder, build_suite, suite
from .reporting import TreeReporter
from .utils.importing import import_string
from .version import __version__

__all__ = [
    "__version__",
    "ConfigurationError",
    "FocusSelectionError",
    "HookError",
    "LabelFilterError",
    "NestspecError",
    "RunConfig",
    "SkipCase",
    "SpecBuilder",
    "bootstrap",
    "build_suite",
    "by",
    "checkpoint",
    "defer_cleanup",
    "run",
    "run_suites",
    "scratch",
    "skip",
    "subject",
    "suite",
]

PLUGINS_ENV = "NESTSPEC_PLUGINS"

_BOOTSTRAPPED = False


def bootstrap() -> None:
    """Initialize nestspec (idempotent)."""

    global _BOOTSTRAPPED
    if _BOOTSTRAPPED:
        return
    _load_plugins()
    _BOOTSTRAPPED = True


def _load_plugins() -> None:
    plugin_env = os.environ.get(PLUGINS_ENV)
    if not plugin_env:
        return
    for item in plugin_env.split(","):
        entry = item.strip()
        if not entry:
            continue
        if ":" in entry:
            register = import_string(entry)
        else:
            module = importlib.import_module(entry)
            register = getattr(module, "register", None)
        if callable(register):
            register()


def run(body: Callable[[SpecBuilder], Any], *, config: Optional[RunConfig] = None) -> int:
    """Build one anonymous suite from ``body``, run it with the tree report and return the exit code."""

    config = config or RunConfig.from_env()
    built = build_suite(body)
    summary = run_suites([built], config, reporters=[TreeReporter(use_color=config.color)])
    return summary.exit_code

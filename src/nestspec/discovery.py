"""Collect suites defined in spec files."""
from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import Iterable, List

from nestspec.core.errors import ConfigurationError
from nestspec.core.models import Suite
from nestspec.utils.importing import load_module

logger = logging.getLogger(__name__)


def collect_suites(paths: Iterable[str]) -> List[Suite]:
    """Load each file and return its module-level suites in definition order.

    Suites built without a ``file`` are stamped with the file they came from.
    """

    suites: List[Suite] = []
    for raw in paths:
        path = Path(raw)
        module = load_module(path)
        found: List[Suite] = []
        for value in vars(module).values():
            if isinstance(value, Suite) and not any(value is known for known in found):
                found.append(value)
        if not found:
            raise ConfigurationError(f"No suites defined in {path}")
        logger.debug("collected %d suite(s) from %s", len(found), path)
        for suite in found:
            if not suite.file:
                suite = dataclasses.replace(suite, file=path.name)
            suites.append(suite)
    return suites

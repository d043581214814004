from __future__ import annotations

from typing import Any, List, Tuple

import pytest

from nestspec import RunConfig, build_suite, run_suites
from nestspec.reporting.base import Reporter


class RecordingReporter(Reporter):
    """Captures lifecycle callbacks in the order they arrive."""

    def __init__(self) -> None:
        self.events: List[Tuple[Any, ...]] = []

    def on_start(self, suites) -> None:
        self.events.append(("start", len(suites)))

    def on_suite_start(self, suite) -> None:
        self.events.append(("suite", suite.name))

    def on_case_result(self, result) -> None:
        self.events.append(("case", result.full_name, result.status))

    def on_suite_complete(self, result) -> None:
        self.events.append(("suite_done", result.name))

    def on_complete(self, summary) -> None:
        self.events.append(("complete", summary.exit_code))


@pytest.fixture
def recorder() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def run_body():
    """Build a suite from a builder callback and run it without reporters."""

    def _run(body, **options):
        suite = build_suite(body)
        return run_suites([suite], RunConfig(**options))

    return _run

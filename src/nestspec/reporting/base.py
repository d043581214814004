"""Reporter interface definitions."""
from __future__ import annotations

from typing import List, Sequence

from nestspec.core.models import Suite
from nestspec.core.results import RunResult, RunSummary, SuiteResult


class Reporter:
    """Interface for output renderers."""

    def on_start(self, suites: Sequence[Suite]) -> None:
        pass

    def on_suite_start(self, suite: Suite) -> None:
        pass

    def on_case_result(self, result: RunResult) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def on_suite_complete(self, result: SuiteResult) -> None:
        pass

    def on_complete(self, summary: RunSummary) -> None:  # pragma: no cover - interface
        raise NotImplementedError


class ReportManager:
    """Dispatches lifecycle callbacks to multiple reporters."""

    def __init__(self, reporters: Sequence[Reporter]) -> None:
        self._reporters = list(reporters)

    def start(self, suites: Sequence[Suite]) -> None:
        for reporter in self._reporters:
            reporter.on_start(suites)

    def start_suite(self, suite: Suite) -> None:
        for reporter in self._reporters:
            reporter.on_suite_start(suite)

    def handle_result(self, result: RunResult) -> None:
        for reporter in self._reporters:
            reporter.on_case_result(result)

    def complete_suite(self, result: SuiteResult) -> None:
        for reporter in self._reporters:
            reporter.on_suite_complete(result)

    def complete(self, summary: RunSummary) -> None:
        for reporter in self._reporters:
            reporter.on_complete(summary)

    def reporters(self) -> List[Reporter]:
        return list(self._reporters)

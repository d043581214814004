"""Result data structures produced by the runner."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from .models import PATH_SEPARATOR

PASSED = "passed"
FAILED = "failed"
PENDING = "pending"
SKIPPED = "skipped"

STATUSES = (PASSED, FAILED, PENDING, SKIPPED)


@dataclass(frozen=True)
class StepResult:
    """Outcome of one step inside an ordered workflow."""

    name: str
    status: str
    reason: Optional[str] = None
    location: Optional[str] = None


@dataclass(frozen=True)
class RunResult:
    """Outcome of a single case."""

    name: str
    path: Tuple[str, ...]
    status: str
    duration_s: float = 0.0
    attempts: int = 0
    reason: Optional[str] = None
    location: Optional[str] = None
    consecutive_passes: Optional[int] = None
    required_passes: Optional[int] = None
    timed_out: bool = False
    steps: Tuple[StepResult, ...] = tuple()
    labels: Tuple[str, ...] = tuple()
    log: Tuple[str, ...] = tuple()
    # Identity of each named scope in ``path[:-1]``; tells same-named siblings apart.
    scope_ids: Tuple[int, ...] = field(default=tuple(), compare=False, repr=False)

    @property
    def passed(self) -> bool:
        return self.status == PASSED

    @property
    def failed(self) -> bool:
        return self.status == FAILED

    @property
    def full_name(self) -> str:
        return PATH_SEPARATOR.join(self.path)


@dataclass(frozen=True)
class SuiteResult:
    """Ordered results of one suite plus aggregate counts."""

    name: str
    results: Tuple[RunResult, ...]
    duration_s: float
    file: str = ""

    def count(self, status: str) -> int:
        return sum(1 for result in self.results if result.status == status)

    @property
    def passed(self) -> int:
        return self.count(PASSED)

    @property
    def failed(self) -> int:
        return self.count(FAILED)

    @property
    def pending(self) -> int:
        return self.count(PENDING)

    @property
    def skipped(self) -> int:
        return self.count(SKIPPED)

    @property
    def ok(self) -> bool:
        return self.failed == 0


@dataclass(frozen=True)
class RunSummary:
    """Merged outcome of a multi-suite run."""

    suites: Tuple[SuiteResult, ...]
    duration_s: float
    focus_mode: bool = False
    focus_fail_triggered: bool = False

    @property
    def results(self) -> Tuple[RunResult, ...]:
        return tuple(result for suite in self.suites for result in suite.results)

    def count(self, status: str) -> int:
        return sum(suite.count(status) for suite in self.suites)

    @property
    def passed(self) -> int:
        return self.count(PASSED)

    @property
    def failed(self) -> int:
        return self.count(FAILED)

    @property
    def pending(self) -> int:
        return self.count(PENDING)

    @property
    def skipped(self) -> int:
        return self.count(SKIPPED)

    @property
    def exit_code(self) -> int:
        return 0 if self.failed == 0 and not self.focus_fail_triggered else 1


@dataclass
class ResultAggregator:
    """Append-only collector; forwards each result to an optional listener."""

    listener: Optional[Callable[[RunResult], None]] = None
    _results: List[RunResult] = field(default_factory=list)

    def add(self, result: RunResult) -> None:
        self._results.append(result)
        if self.listener is not None:
            self.listener(result)

    def results(self) -> Tuple[RunResult, ...]:
        return tuple(self._results)

    def extend(self, results: Sequence[RunResult]) -> None:
        for result in results:
            self.add(result)

"""Suite runner: selection, once-hooks, execution, and multi-suite merging."""
from __future__ import annotations

import dataclasses
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence, Tuple

from nestspec.config.models import RunConfig
from nestspec.reporting.base import ReportManager

from .errors import FocusSelectionError, HookError, SkipCase, describe_exception
from .executor import CaseExecutor, error_location, static_result
from .hooks import OnceHookTracker
from .labels import LabelExpression
from .models import Suite
from .results import FAILED, SKIPPED, ResultAggregator, RunResult, RunSummary, SuiteResult
from .selection import REASON_NAME, FilterCriteria, Selection, select, selected_cases

logger = logging.getLogger(__name__)


class SuiteRunner:
    """Runs one suite's cases in tree order and collects their results."""

    def __init__(
        self,
        criteria: FilterCriteria,
        executor: Optional[CaseExecutor] = None,
        listener=None,
    ) -> None:
        self._criteria = criteria
        self._executor = executor or CaseExecutor()
        self._listener = listener

    def run(self, suite: Suite, selections: Optional[Sequence[Selection]] = None) -> SuiteResult:
        start = time.perf_counter()
        if selections is None:
            selections = select(suite.root, self._criteria)
        tracker = OnceHookTracker(selected_cases(selections))
        aggregator = ResultAggregator(listener=self._listener)
        logger.debug("running suite '%s' (%d case(s))", suite.header or "<anonymous>", len(selections))
        for selection in selections:
            case = selection.case
            if not selection.selected:
                aggregator.add(static_result(case, selection.status or SKIPPED, selection.reason))
                continue
            aborted = tracker.enter(case)
            if isinstance(aborted, SkipCase):
                result = static_result(case, SKIPPED, aborted.reason or "skipped in before_all")
            elif aborted is not None:
                result = static_result(case, FAILED, describe_exception(aborted), error_location(aborted))
            else:
                result = self._executor.execute(case)
            after_all_error = tracker.leave(case)
            if after_all_error is not None:
                result = _with_after_all_failure(result, after_all_error)
            aggregator.add(result)
        return SuiteResult(
            name=suite.name,
            results=aggregator.results(),
            duration_s=time.perf_counter() - start,
            file=suite.file,
        )


def _with_after_all_failure(result: RunResult, error: HookError) -> RunResult:
    message = describe_exception(error)
    if result.status == FAILED and result.reason:
        message = f"{result.reason}; {message}"
    return dataclasses.replace(
        result,
        status=FAILED,
        reason=message,
        location=result.location or error_location(error),
    )


def build_criteria(suites: Sequence[Suite], config: RunConfig) -> FilterCriteria:
    """Resolve run-wide filter inputs; focus mode spans every suite in the run."""

    return FilterCriteria(
        focus_mode=any(suite.has_focus() for suite in suites),
        labels=LabelExpression.parse(config.label_filter),
        names=tuple(config.names),
        exact_names=config.exact_names,
        include_pending=config.include_pending,
    )


def run_suites(suites: Sequence[Suite], config: Optional[RunConfig] = None, reporters=None) -> RunSummary:
    """Run ``suites`` and return the merged summary.

    Raises :class:`FocusSelectionError` when focus mode is active but no case
    survives the other filters.
    """

    config = config or RunConfig()
    suites = list(suites)
    criteria = build_criteria(suites, config)
    plans: List[Tuple[Suite, List[Selection]]] = [(suite, select(suite.root, criteria)) for suite in suites]
    if criteria.focus_mode and not any(item.selected for _, items in plans for item in items):
        raise FocusSelectionError("Focused specs were found but none matched the active filters")

    manager = ReportManager(reporters or [])
    manager.start(suites)
    start = time.perf_counter()
    if config.jobs > 1 and len(plans) > 1:
        suite_results = _run_parallel(plans, criteria, config.jobs, manager)
    else:
        suite_results = []
        for suite, selections in plans:
            manager.start_suite(suite)
            result = SuiteRunner(criteria, listener=manager.handle_result).run(suite, selections)
            manager.complete_suite(result)
            suite_results.append(result)
    summary = RunSummary(
        suites=tuple(suite_results),
        duration_s=time.perf_counter() - start,
        focus_mode=criteria.focus_mode,
        focus_fail_triggered=config.fail_on_focus and criteria.focus_mode,
    )
    logger.debug(
        "run complete: %d passed, %d failed, %d pending, %d skipped",
        summary.passed,
        summary.failed,
        summary.pending,
        summary.skipped,
    )
    manager.complete(summary)
    return summary


def _run_parallel(plans, criteria: FilterCriteria, jobs: int, manager) -> List[SuiteResult]:
    # Reporters are not thread-safe; results are replayed in suite order once all finish.
    with ThreadPoolExecutor(max_workers=jobs, thread_name_prefix="nestspec-suite") as pool:
        futures = [pool.submit(SuiteRunner(criteria).run, suite, selections) for suite, selections in plans]
        results = [future.result() for future in futures]
    for (suite, _), result in zip(plans, results):
        manager.start_suite(suite)
        for case_result in result.results:
            manager.handle_result(case_result)
        manager.complete_suite(result)
    return results


def list_cases(suites: Sequence[Suite], config: Optional[RunConfig] = None) -> List[Tuple[str, str, str]]:
    """Return ``(full_name, status, reason)`` for every case without running anything.

    Cases excluded by the name filter are omitted; other unselected cases are
    kept and annotated with their pending or skip status.
    """

    config = config or RunConfig()
    criteria = build_criteria(suites, config)
    entries: List[Tuple[str, str, str]] = []
    for suite in suites:
        for selection in select(suite.root, criteria):
            if not selection.selected and selection.reason == REASON_NAME:
                continue
            status = "selected" if selection.selected else selection.status or SKIPPED
            entries.append((selection.case.full_name, status, selection.reason or ""))
    return entries


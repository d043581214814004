"""Case executor: hook chains, subject, body, retries, timeouts, cleanup."""
from __future__ import annotations

import contextvars
import logging
import threading
import time
import traceback
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .context import ExecutionContext, activate
from .errors import CaseCancelled, HookError, SkipCase, describe_exception
from .hooks import HookLevel, compose, run_hooks
from .models import Case, OrderedCase
from .results import FAILED, PASSED, SKIPPED, RunResult, StepResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttemptOutcome:
    """Outcome of a single execution attempt."""

    status: str
    reason: Optional[str] = None
    location: Optional[str] = None
    timed_out: bool = False
    steps: Tuple[StepResult, ...] = tuple()
    log: Tuple[str, ...] = tuple()


@dataclass
class _AttemptState:
    completed_levels: int = 0
    error: Optional[BaseException] = None
    fatal: Optional[BaseException] = None
    steps: List[StepResult] = field(default_factory=list)


class _StepFailure(Exception):
    def __init__(self, reason: str, location: Optional[str]) -> None:
        self.reason = reason
        self.location = location
        super().__init__(reason)


class CaseExecutor:
    """Executes one selected case, including its retry policy."""

    def execute(self, case: Case) -> RunResult:
        start = time.perf_counter()
        required = case.must_pass_repeatedly
        max_attempts = case.max_attempts
        passes = 0
        attempts = 1
        outcome = self.run_attempt(case, attempts)
        while True:
            if outcome.status == PASSED:
                passes += 1
                if required is None:
                    break
            elif outcome.status == SKIPPED:
                break
            elif required is not None:
                logger.info("must_pass_repeatedly: '%s' failed on attempt %d/%d", case.full_name, attempts, required)
                break
            if attempts >= max_attempts:
                break
            if outcome.status == FAILED:
                logger.info("'%s' attempt %d/%d failed, retrying", case.full_name, attempts, max_attempts)
            attempts += 1
            outcome = self.run_attempt(case, attempts)
        return RunResult(
            name=case.name,
            path=case.path,
            status=outcome.status,
            duration_s=time.perf_counter() - start,
            attempts=attempts,
            reason=outcome.reason,
            location=outcome.location,
            consecutive_passes=passes if required is not None else None,
            required_passes=required,
            timed_out=outcome.timed_out,
            steps=outcome.steps,
            labels=tuple(sorted(case.effective_labels)),
            log=outcome.log,
            scope_ids=scope_ids(case),
        )

    def run_attempt(self, case: Case, attempt: int = 1) -> AttemptOutcome:
        context = ExecutionContext(case, attempt)
        levels = compose(case)
        state = _AttemptState()
        timed_out = False
        completed: Optional[int] = None
        try:
            if case.timeout is None:
                with activate(context):
                    self._run_front(case, levels, context, state)
            else:
                timed_out, completed = self._run_with_timeout(case, levels, context, state)
        finally:
            if completed is None:
                completed = state.completed_levels
            with activate(context):
                cleanup_error = context.run_cleanups()
                after_error = self._run_after_each(levels[:completed])
        steps = tuple(state.steps)
        return self._outcome(case, state.error, timed_out, cleanup_error, after_error, steps, tuple(context.steps))

    def _run_front(
        self,
        case: Case,
        levels: Sequence[HookLevel],
        context: ExecutionContext,
        state: _AttemptState,
    ) -> None:
        try:
            for level in levels:
                run_hooks("before_each", level.before_each, context.checkpoint)
                state.completed_levels += 1
            for level in levels:
                run_hooks("just_before_each", level.just_before_each, context.checkpoint)
            context.checkpoint()
            if context.has_subject:
                context.subject()
                context.checkpoint()
            if isinstance(case, OrderedCase):
                self._run_steps(case, context, state)
            elif case.body is not None:
                case.body()
        except KeyboardInterrupt:
            raise
        except BaseException as exc:
            state.error = exc

    def _run_with_timeout(
        self,
        case: Case,
        levels: Sequence[HookLevel],
        context: ExecutionContext,
        state: _AttemptState,
    ) -> Tuple[bool, int]:
        def target() -> None:
            try:
                with activate(context):
                    self._run_front(case, levels, context, state)
            except BaseException as exc:
                state.fatal = exc

        worker = threading.Thread(
            target=contextvars.copy_context().run,
            args=(target,),
            name=f"nestspec-{case.name}",
            daemon=True,
        )
        worker.start()
        worker.join(case.timeout)
        if worker.is_alive():
            context.cancel()
            completed = state.completed_levels
            logger.warning("'%s' timed out after %ss", case.full_name, case.timeout)
            return True, completed
        if state.fatal is not None:
            raise state.fatal
        return False, state.completed_levels

    def _run_steps(self, case: OrderedCase, context: ExecutionContext, state: _AttemptState) -> None:
        failures: List[StepResult] = []
        for step in case.steps:
            if failures and not case.continue_on_failure:
                state.steps.append(
                    StepResult(name=step.name, status=SKIPPED, reason=f"previous step '{failures[0].name}' failed")
                )
                continue
            context.by(step.name)
            try:
                step.action()
            except (SkipCase, CaseCancelled, KeyboardInterrupt):
                raise
            except BaseException as exc:
                result = StepResult(
                    name=step.name,
                    status=FAILED,
                    reason=describe_exception(exc),
                    location=error_location(exc),
                )
                failures.append(result)
                state.steps.append(result)
                continue
            state.steps.append(StepResult(name=step.name, status=PASSED))
        if failures:
            first = failures[0]
            reason = f"step '{first.name}' failed: {first.reason}"
            if len(failures) > 1:
                reason = f"{len(failures)} steps failed; first {reason}"
            raise _StepFailure(reason, first.location)

    def _run_after_each(self, levels: Sequence[HookLevel]) -> Optional[Exception]:
        first_error: Optional[Exception] = None
        for level in reversed(levels):
            try:
                run_hooks("after_each", level.after_each)
            except Exception as exc:
                if first_error is None:
                    first_error = exc
        return first_error

    def _outcome(
        self,
        case: Case,
        error: Optional[BaseException],
        timed_out: bool,
        cleanup_error: Optional[BaseException],
        after_error: Optional[Exception],
        steps: Tuple[StepResult, ...],
        log: Tuple[str, ...],
    ) -> AttemptOutcome:
        if timed_out:
            return AttemptOutcome(
                status=FAILED,
                reason=f"timed out after {case.timeout:g}s",
                timed_out=True,
                steps=steps,
                log=log,
            )
        status, reason, location = PASSED, None, None
        if isinstance(error, SkipCase):
            status, reason = SKIPPED, error.reason or "skipped at runtime"
        elif isinstance(error, _StepFailure):
            status, reason, location = FAILED, error.reason, error.location
        elif error is not None:
            status, reason, location = FAILED, describe_exception(error), error_location(error)
        if status != FAILED and cleanup_error is not None:
            status = FAILED
            reason = f"cleanup failed: {describe_exception(cleanup_error)}"
            location = error_location(cleanup_error)
        if status != FAILED and after_error is not None:
            status, reason, location = FAILED, describe_exception(after_error), error_location(after_error)
        return AttemptOutcome(status=status, reason=reason, location=location, steps=steps, log=log)


def static_result(
    case: Case,
    status: str,
    reason: Optional[str] = None,
    location: Optional[str] = None,
) -> RunResult:
    """Result for a case that was not executed (pending, skipped, or aborted)."""

    return RunResult(
        name=case.name,
        path=case.path,
        status=status,
        reason=reason,
        location=location,
        required_passes=case.must_pass_repeatedly,
        labels=tuple(sorted(case.effective_labels)),
        scope_ids=scope_ids(case),
    )


def scope_ids(case: Case) -> Tuple[int, ...]:
    return tuple(id(scope) for scope in case.ancestors() if scope.name)


def error_location(exc: BaseException) -> Optional[str]:
    if isinstance(exc, HookError):
        exc = exc.original
    frames = traceback.extract_tb(exc.__traceback__)
    if not frames:
        return None
    frame = frames[-1]
    return f"{frame.filename}:{frame.lineno}"

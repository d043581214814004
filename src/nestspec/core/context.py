"""Per-attempt execution context exposed to running case bodies.

Bodies are zero-argument callables, so the engine publishes the running
attempt through a ``ContextVar``. Helpers such as :func:`by` and
:func:`defer_cleanup` look it up instead of taking an explicit parameter.
A fresh context is created for every attempt, retries included.
"""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Iterator, List, Optional

from .errors import CaseCancelled, SkipCase
from .models import Action, Case

logger = logging.getLogger(__name__)

_current: ContextVar[Optional["ExecutionContext"]] = ContextVar("nestspec_current_case", default=None)

_UNSET = object()


class ExecutionContext:
    """Mutable state scoped to one execution attempt of one case."""

    def __init__(self, case: Case, attempt: int = 1) -> None:
        self.case = case
        self.attempt = attempt
        self.steps: List[str] = []
        self.scratch: Dict[str, Any] = {}
        self._cleanups: List[Action] = []
        self._cancelled = threading.Event()
        self._subject_provider = case.scope.resolve_subject()
        self._subject_value: Any = _UNSET

    def by(self, description: str) -> None:
        self.checkpoint()
        self.steps.append(description)
        logger.info("STEP: %s", description)

    def defer_cleanup(self, action: Action) -> Action:
        if not callable(action):
            raise TypeError(f"defer_cleanup expects a callable, got {action!r}")
        self._cleanups.append(action)
        return action

    def run_cleanups(self) -> Optional[BaseException]:
        """Drain deferred cleanups last-in first-out; returns the first error raised."""

        first_error: Optional[BaseException] = None
        while self._cleanups:
            action = self._cleanups.pop()
            try:
                action()
            except KeyboardInterrupt:
                raise
            except BaseException as exc:
                logger.debug("cleanup for %s raised %r", self.case.full_name, exc)
                if first_error is None:
                    first_error = exc
        return first_error

    @property
    def has_subject(self) -> bool:
        return self._subject_provider is not None

    def subject(self) -> Any:
        if self._subject_value is _UNSET:
            if self._subject_provider is None:
                raise LookupError(f"No subject defined for '{self.case.full_name}' or its ancestors")
            self._subject_value = self._subject_provider()
        return self._subject_value

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def checkpoint(self) -> None:
        if self._cancelled.is_set():
            raise CaseCancelled(f"'{self.case.full_name}' was cancelled")


@contextmanager
def activate(context: ExecutionContext) -> Iterator[ExecutionContext]:
    token = _current.set(context)
    try:
        yield context
    finally:
        _current.reset(token)


def current() -> ExecutionContext:
    context = _current.get()
    if context is None:
        raise RuntimeError("nestspec helpers can only be used while a case is running")
    return context


def by(description: str) -> None:
    """Document a step of the running case."""

    current().by(description)


def defer_cleanup(action: Action) -> Action:
    """Register ``action`` to run after the case body, in LIFO order.

    Usable as a decorator.
    """

    return current().defer_cleanup(action)


def skip(reason: str = "") -> None:
    """Skip the running case; remaining body code does not execute."""

    logger.info("SKIPPED: %s", reason)
    raise SkipCase(reason)


def subject() -> Any:
    """Return the subject of the running case, evaluated once per attempt."""

    return current().subject()


def checkpoint() -> None:
    """Raise if the running attempt was cancelled by its timeout."""

    current().checkpoint()


def scratch() -> Dict[str, Any]:
    """Per-attempt dictionary shared between hooks and the body."""

    return current().scratch

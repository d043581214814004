"""Hook composition: per-case each-hook chains and once-per-scope hooks."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional, Sequence, Set, Tuple

from .errors import CaseCancelled, HookError, SkipCase
from .models import Action, Case, Scope

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HookLevel:
    """Each-hooks contributed by one ancestor scope of a case."""

    scope: Scope
    before_each: Tuple[Action, ...]
    just_before_each: Tuple[Action, ...]
    after_each: Tuple[Action, ...]


def compose(case: Case) -> Tuple[HookLevel, ...]:
    """Return the hook levels for ``case``, ordered root to leaf."""

    return tuple(
        HookLevel(
            scope=scope,
            before_each=tuple(scope.hooks.before_each),
            just_before_each=tuple(scope.hooks.just_before_each),
            after_each=tuple(scope.hooks.after_each),
        )
        for scope in case.ancestors()
    )


def run_hooks(
    kind: str,
    actions: Sequence[Action],
    checkpoint: Optional[Callable[[], None]] = None,
) -> None:
    """Run ``actions`` in order, wrapping failures in :class:`HookError`.

    ``checkpoint`` is called before each action so a cancelled attempt stops
    between hooks. Skip and cancellation signals pass through unchanged, as
    does ``KeyboardInterrupt``.
    """

    for action in actions:
        if checkpoint is not None:
            checkpoint()
        try:
            action()
        except (SkipCase, CaseCancelled, KeyboardInterrupt):
            raise
        except BaseException as exc:
            raise HookError(kind, exc) from exc


class OnceHookTracker:
    """Runs ``before_all``/``after_all`` exactly once per scope per run.

    ``before_all`` fires lazily before the first selected descendant of a
    scope executes; ``after_all`` fires once the last selected descendant has
    completed, provided ``before_all`` succeeded. Scopes without selected
    descendants never run either hook.
    """

    def __init__(self, selected: Iterable[Case]) -> None:
        self._remaining: Dict[Scope, int] = {}
        self._entered: Set[Scope] = set()
        self._aborted: Dict[Scope, Exception] = {}
        for case in selected:
            for scope in case.ancestors():
                self._remaining[scope] = self._remaining.get(scope, 0) + 1

    def enter(self, case: Case) -> Optional[Exception]:
        """Run pending ``before_all`` hooks for ``case``'s ancestors.

        Returns the :class:`HookError` or :class:`SkipCase` that aborts the
        case, or ``None`` when it may run.
        """

        for scope in case.ancestors():
            aborted = self._aborted.get(scope)
            if aborted is not None:
                return aborted
            if scope in self._entered:
                continue
            self._entered.add(scope)
            if not scope.hooks.before_all:
                continue
            logger.debug("running before_all for '%s'", " > ".join(scope.path) or "<root>")
            try:
                run_hooks("before_all", scope.hooks.before_all)
            except (HookError, SkipCase) as exc:
                self._aborted[scope] = exc
                return exc
        return None

    def leave(self, case: Case) -> Optional[HookError]:
        """Account for a completed case and run ``after_all`` for finished scopes."""

        first_error: Optional[HookError] = None
        for scope in reversed(case.ancestors()):
            remaining = self._remaining.get(scope, 0) - 1
            self._remaining[scope] = remaining
            if remaining != 0 or scope not in self._entered or scope in self._aborted:
                continue
            if not scope.hooks.after_all:
                continue
            logger.debug("running after_all for '%s'", " > ".join(scope.path) or "<root>")
            try:
                run_hooks("after_all", scope.hooks.after_all)
            except HookError as exc:
                if first_error is None:
                    first_error = exc
            except (SkipCase, CaseCancelled):
                continue
        return first_error

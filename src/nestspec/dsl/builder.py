"""Registration API that builds a suite's scope tree."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Optional, Sequence

from nestspec.core.errors import ConfigurationError
from nestspec.core.labels import validate_labels
from nestspec.core.models import Action, Case, Scope, Suite

logger = logging.getLogger(__name__)

HOOK_KINDS = ("before_all", "before_each", "just_before_each", "after_each", "after_all")


class CaseHandle:
    """Fluent decorators for a registered case.

    Settings are checked when the suite is finalized, so conflicting
    combinations such as retries plus ``must_pass_repeatedly`` surface as a
    :class:`ConfigurationError` from :func:`build_suite`.
    """

    def __init__(self, builder: "SpecBuilder", case: Case) -> None:
        self._builder = builder
        self._case = case

    @property
    def case(self) -> Case:
        return self._case

    def labels(self, *labels: str) -> "CaseHandle":
        self._builder._check_open()
        self._case.labels = self._case.labels + validate_labels(labels)
        return self

    def retries(self, count: int) -> "CaseHandle":
        self._builder._check_open()
        self._case.retries = count
        return self

    def must_pass_repeatedly(self, count: int) -> "CaseHandle":
        self._builder._check_open()
        self._case.must_pass_repeatedly = count
        return self

    def timeout(self, seconds: float) -> "CaseHandle":
        self._builder._check_open()
        self._case.timeout = seconds
        return self

    def focus(self) -> "CaseHandle":
        self._builder._check_open()
        self._case.focused = True
        return self

    def pend(self) -> "CaseHandle":
        self._builder._check_open()
        self._case.pending = True
        return self


class SpecBuilder:
    """Builds a scope tree through describe/it style calls.

    Containers accept an optional body that receives the builder; without a
    body they return a context manager::

        with b.describe("Calculator"):
            b.it("adds", lambda: ...)
    """

    def __init__(self, root: Optional[Scope] = None) -> None:
        self._root = root or Scope()
        self._stack: List[Scope] = [self._root]
        self._pending_tables: List[Any] = []
        self._finalized = False

    @property
    def root(self) -> Scope:
        return self._root

    @property
    def current(self) -> Scope:
        return self._stack[-1]

    # containers -------------------------------------------------------

    def describe(self, name: str, body: Optional[Callable[["SpecBuilder"], Any]] = None, *, labels: Sequence[str] = ()):
        return self._container(name, body, labels=labels)

    def fdescribe(self, name: str, body: Optional[Callable[["SpecBuilder"], Any]] = None, *, labels: Sequence[str] = ()):
        return self._container(name, body, labels=labels, focused=True)

    def xdescribe(self, name: str, body: Optional[Callable[["SpecBuilder"], Any]] = None, *, labels: Sequence[str] = ()):
        return self._container(name, body, labels=labels, pending=True)

    context = when = describe
    fcontext = fwhen = fdescribe
    xcontext = xwhen = xdescribe
    pdescribe = pcontext = pwhen = xdescribe

    def _container(self, name, body, *, labels=(), focused=False, pending=False):
        self._check_open()
        if not isinstance(name, str):
            raise ConfigurationError(f"Scope name must be a string, got {name!r}")
        scope = Scope(name=name, labels=validate_labels(labels), focused=focused, pending=pending)
        if body is None:
            return self._open(scope)
        if not callable(body):
            raise ConfigurationError(f"Body of scope '{name}' must be callable")
        with self._open(scope):
            body(self)
        return scope

    @contextmanager
    def _open(self, scope: Scope) -> Iterator[Scope]:
        self._check_open()
        self.current.add_scope(scope)
        self._stack.append(scope)
        try:
            yield scope
        finally:
            if self._stack[-1] is not scope:
                raise ConfigurationError(f"Unbalanced scopes while closing '{scope.name}'")
            self._stack.pop()

    # cases ------------------------------------------------------------

    def it(self, name=None, body: Optional[Action] = None, **options):
        return self._case(name, body, options)

    def fit(self, name=None, body: Optional[Action] = None, **options):
        return self._case(name, body, options, focused=True)

    def xit(self, name=None, body: Optional[Action] = None, **options):
        return self._case(name, body, options, pending=True)

    specify = it
    fspecify = fit
    xspecify = pit = pspecify = xit

    def _case(self, name, body, options, *, focused=False, pending=False):
        self._check_open()
        if callable(name) and body is None:
            name, body = None, name
        if name is not None and not isinstance(name, str):
            raise ConfigurationError(f"Case name must be a string, got {name!r}")
        if body is None:
            def decorator(func: Action) -> Action:
                self._register_case(name, func, options, focused=focused, pending=pending)
                return func

            return decorator
        return self._register_case(name, body, options, focused=focused, pending=pending)

    def _register_case(self, name, body, options, *, focused, pending) -> CaseHandle:
        case = self._new_case(name, body, options, focused=focused, pending=pending)
        self.current.add_case(case)
        return CaseHandle(self, case)

    def _new_case(self, name, body, options, *, focused=False, pending=False, factory=Case, **extra) -> Case:
        unknown = set(options) - {"labels", "retries", "must_pass_repeatedly", "timeout"}
        if unknown:
            raise ConfigurationError(f"Unknown case option(s): {', '.join(sorted(unknown))}")
        return factory(
            name=name or "",
            body=body,
            labels=validate_labels(options.get("labels", ())),
            retries=options.get("retries"),
            must_pass_repeatedly=options.get("must_pass_repeatedly"),
            timeout=options.get("timeout"),
            focused=focused,
            pending=pending,
            **extra,
        )

    # hooks ------------------------------------------------------------

    def before_all(self, action: Action) -> Action:
        return self._hook("before_all", action)

    def before_each(self, action: Action) -> Action:
        return self._hook("before_each", action)

    def just_before_each(self, action: Action) -> Action:
        return self._hook("just_before_each", action)

    def after_each(self, action: Action) -> Action:
        return self._hook("after_each", action)

    def after_all(self, action: Action) -> Action:
        return self._hook("after_all", action)

    def _hook(self, kind: str, action: Action) -> Action:
        self._check_open()
        self.current.hooks.add(kind, action)
        return action

    # scope settings ---------------------------------------------------

    def labels(self, *labels: str) -> None:
        self._check_open()
        self.current.labels = self.current.labels + validate_labels(labels)

    def subject(self, provider: Action) -> Action:
        self._check_open()
        if not callable(provider):
            raise ConfigurationError(f"Subject provider must be callable, got {provider!r}")
        self.current.subject = provider
        return provider

    # tables and ordered workflows ---------------------------------------

    def describe_table(self, name: str):
        return self._table(name)

    def fdescribe_table(self, name: str):
        return self._table(name, focused=True)

    def xdescribe_table(self, name: str):
        return self._table(name, pending=True)

    def _table(self, name: str, *, focused: bool = False, pending: bool = False):
        from .table import TableBuilder

        self._check_open()
        table = TableBuilder(self, name, focused=focused, pending=pending)
        self._pending_tables.append(table)
        return table

    def ordered(self, name: str, body=None, *, continue_on_failure: bool = False, **options):
        from .ordered import OrderedBuilder

        self._check_open()
        return OrderedBuilder.register(self, name, body, continue_on_failure=continue_on_failure, options=options)

    def ordered_continue_on_failure(self, name: str, body=None, **options):
        return self.ordered(name, body, continue_on_failure=True, **options)

    # finalization -------------------------------------------------------

    def _check_open(self) -> None:
        if self._finalized:
            raise ConfigurationError("Suite is already finalized; builder calls are no longer allowed")

    def _table_done(self, table: Any) -> None:
        self._pending_tables.remove(table)

    def finalize(self, name: str = "", file: str = "") -> Suite:
        self._check_open()
        if len(self._stack) != 1:
            raise ConfigurationError(f"Unbalanced scopes: '{self.current.name}' is still open")
        if self._pending_tables:
            names = ", ".join(repr(table.name) for table in self._pending_tables)
            raise ConfigurationError(f"Table(s) {names} declared without calling run()")
        self._root.validate()
        self._finalized = True
        logger.debug("finalized suite '%s' with %d case(s)", name or "<anonymous>", sum(1 for _ in self._root.iter_cases()))
        return Suite(name=name, root=self._root, file=file)


def build_suite(body: Callable[[SpecBuilder], Any], name: str = "", file: str = "") -> Suite:
    """Run ``body`` against a fresh builder and return the finished suite."""

    if not callable(body):
        raise ConfigurationError(f"Suite body must be callable, got {body!r}")
    builder = SpecBuilder()
    body(builder)
    return builder.finalize(name=name, file=file)


def suite(name: str = "", file: str = ""):
    """Decorator form of :func:`build_suite`; the function is replaced by the suite."""

    if callable(name):
        return build_suite(name, name=getattr(name, "__name__", ""))

    def decorator(body: Callable[[SpecBuilder], Any]) -> Suite:
        return build_suite(body, name=name, file=file)

    return decorator

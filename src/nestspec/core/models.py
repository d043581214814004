"""Scope tree dataclasses shared across nestspec subsystems."""
from __future__ import annotations

import weakref
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, List, Optional, Tuple, Union

from .errors import ConfigurationError

Action = Callable[[], Any]
Node = Union["Scope", "Case"]

PATH_SEPARATOR = " > "
ANONYMOUS_PREFIX = "spec_"


@dataclass(eq=False)
class HookSet:
    """Lifecycle hooks registered directly on one scope."""

    before_all: List[Action] = field(default_factory=list)
    before_each: List[Action] = field(default_factory=list)
    just_before_each: List[Action] = field(default_factory=list)
    after_each: List[Action] = field(default_factory=list)
    after_all: List[Action] = field(default_factory=list)

    def add(self, kind: str, action: Action) -> None:
        if not callable(action):
            raise ConfigurationError(f"{kind} hook must be callable, got {action!r}")
        getattr(self, kind).append(action)


@dataclass(eq=False)
class Scope:
    """A describe/context container. The root scope of a suite is anonymous."""

    name: str = ""
    labels: Tuple[str, ...] = tuple()
    focused: bool = False
    pending: bool = False
    subject: Optional[Action] = None
    hooks: HookSet = field(default_factory=HookSet)
    children: List[Node] = field(default_factory=list)
    _parent: Optional["weakref.ReferenceType[Scope]"] = field(default=None, repr=False)
    _anonymous_count: int = field(default=0, repr=False)

    @property
    def parent(self) -> Optional["Scope"]:
        return self._parent() if self._parent is not None else None

    def add_scope(self, scope: "Scope") -> "Scope":
        scope._parent = weakref.ref(self)
        self.children.append(scope)
        return scope

    def add_case(self, case: "Case") -> "Case":
        if not case.name:
            self._anonymous_count += 1
            case.name = f"{ANONYMOUS_PREFIX}{self._anonymous_count}"
            case.synthetic_name = True
        case._scope = weakref.ref(self)
        self.children.append(case)
        return case

    def ancestors(self) -> List["Scope"]:
        """Return the chain from the root down to (and including) this scope."""

        chain: List[Scope] = []
        node: Optional[Scope] = self
        while node is not None:
            chain.append(node)
            node = node.parent
        chain.reverse()
        return chain

    @property
    def path(self) -> Tuple[str, ...]:
        return tuple(scope.name for scope in self.ancestors() if scope.name)

    def iter_cases(self) -> Iterator["Case"]:
        for child in self.children:
            if isinstance(child, Scope):
                yield from child.iter_cases()
            else:
                yield child

    def iter_scopes(self) -> Iterator["Scope"]:
        yield self
        for child in self.children:
            if isinstance(child, Scope):
                yield from child.iter_scopes()

    def has_focus(self) -> bool:
        if self.focused:
            return True
        for child in self.children:
            if isinstance(child, Scope):
                if child.has_focus():
                    return True
            elif child.focused:
                return True
        return False

    def resolve_subject(self) -> Optional[Action]:
        node: Optional[Scope] = self
        while node is not None:
            if node.subject is not None:
                return node.subject
            node = node.parent
        return None

    def validate(self) -> None:
        """Check tree invariants; raises ConfigurationError on the first problem."""

        explicit = {child.name for child in self.children if isinstance(child, Case) and not child.synthetic_name}
        for child in self.children:
            if isinstance(child, Scope):
                child.validate()
                continue
            if child.synthetic_name and child.name in explicit:
                raise ConfigurationError(
                    f"Generated case name '{child.name}' collides with a sibling in "
                    f"'{PATH_SEPARATOR.join(self.path) or '<root>'}'"
                )
            child.validate()


@dataclass(eq=False)
class Case:
    """A single runnable example owned by exactly one scope."""

    name: str = ""
    body: Optional[Action] = None
    labels: Tuple[str, ...] = tuple()
    retries: Optional[int] = None
    must_pass_repeatedly: Optional[int] = None
    timeout: Optional[float] = None
    focused: bool = False
    pending: bool = False
    synthetic_name: bool = False
    _scope: Optional["weakref.ReferenceType[Scope]"] = field(default=None, repr=False)

    @property
    def scope(self) -> Scope:
        scope = self._scope() if self._scope is not None else None
        if scope is None:
            raise ConfigurationError(f"Case '{self.name}' is not attached to a scope")
        return scope

    def ancestors(self) -> List[Scope]:
        return self.scope.ancestors()

    @property
    def path(self) -> Tuple[str, ...]:
        return self.scope.path + (self.name,)

    @property
    def full_name(self) -> str:
        return PATH_SEPARATOR.join(self.path)

    @property
    def effective_labels(self) -> frozenset:
        labels = set(self.labels)
        for scope in self.ancestors():
            labels.update(scope.labels)
        return frozenset(labels)

    @property
    def is_pending(self) -> bool:
        return self.pending or any(scope.pending for scope in self.ancestors())

    @property
    def is_focused(self) -> bool:
        return self.focused or any(scope.focused for scope in self.ancestors())

    @property
    def max_attempts(self) -> int:
        if self.must_pass_repeatedly is not None:
            return self.must_pass_repeatedly
        return (self.retries or 0) + 1

    def validate(self) -> None:
        if self.retries is not None and self.must_pass_repeatedly is not None:
            raise ConfigurationError(
                f"Case '{self.full_name}' sets both retries and must_pass_repeatedly"
            )
        if self.retries is not None and self.retries < 0:
            raise ConfigurationError(f"Case '{self.full_name}' has negative retries ({self.retries})")
        if self.must_pass_repeatedly is not None and self.must_pass_repeatedly < 1:
            raise ConfigurationError(
                f"Case '{self.full_name}' must_pass_repeatedly must be >= 1, got {self.must_pass_repeatedly}"
            )
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigurationError(f"Case '{self.full_name}' timeout must be positive, got {self.timeout}")
        self._validate_body()

    def _validate_body(self) -> None:
        if not callable(self.body):
            raise ConfigurationError(f"Case '{self.full_name}' body must be callable")


@dataclass(frozen=True)
class Step:
    name: str
    action: Action


@dataclass(eq=False)
class OrderedCase(Case):
    """A case whose body is a declared sequence of steps."""

    steps: List[Step] = field(default_factory=list)
    continue_on_failure: bool = False

    def _validate_body(self) -> None:
        for step in self.steps:
            if not callable(step.action):
                raise ConfigurationError(f"Step '{step.name}' in '{self.full_name}' must be callable")


@dataclass(frozen=True)
class Suite:
    """A finished, read-only scope tree ready to run."""

    name: str
    root: Scope
    file: str = ""

    def cases(self) -> List[Case]:
        return list(self.root.iter_cases())

    def has_focus(self) -> bool:
        return self.root.has_focus()

    @property
    def header(self) -> str:
        if self.name and self.file:
            return f"{self.name} ({self.file})"
        return self.name or self.file

"""Ordered workflows: one case made of named steps."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from nestspec.core.errors import ConfigurationError
from nestspec.core.models import Action, OrderedCase, Step

from .builder import CaseHandle

if TYPE_CHECKING:  # pragma: no cover
    from .builder import SpecBuilder


class OrderedBuilder(CaseHandle):
    """Adds steps to an ordered case; case decorators apply to the whole workflow."""

    def __init__(self, builder: "SpecBuilder", case: OrderedCase) -> None:
        super().__init__(builder, case)
        self._workflow = case

    @classmethod
    def register(
        cls,
        builder: "SpecBuilder",
        name: str,
        body: Optional[Callable[["OrderedBuilder"], Any]],
        *,
        continue_on_failure: bool,
        options: Dict[str, Any],
    ) -> "OrderedBuilder":
        if not isinstance(name, str) or not name:
            raise ConfigurationError("Ordered workflows need a name")
        case = builder._new_case(name, None, options, factory=OrderedCase, continue_on_failure=continue_on_failure)
        builder.current.add_case(case)
        handle = cls(builder, case)
        if body is not None:
            if not callable(body):
                raise ConfigurationError(f"Body of ordered workflow '{name}' must be callable")
            body(handle)
        return handle

    def step(self, name: str, action: Optional[Action] = None):
        """Append a step; without ``action`` acts as a decorator."""

        self._builder._check_open()
        if not isinstance(name, str) or not name:
            raise ConfigurationError(f"Steps in '{self._case.name}' need a name")
        if action is None:
            def decorator(func: Action) -> Action:
                self._append(name, func)
                return func

            return decorator
        self._append(name, action)
        return self

    def _append(self, name: str, action: Action) -> None:
        if not callable(action):
            raise ConfigurationError(f"Step '{name}' in '{self._case.name}' must be callable")
        self._workflow.steps.append(Step(name=name, action=action))

"""Table-driven cases expanded into ordinary cases at build time."""
from __future__ import annotations

import functools
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Tuple

from nestspec.core.labels import validate_labels
from nestspec.core.errors import ConfigurationError
from nestspec.core.models import Case, Scope

if TYPE_CHECKING:  # pragma: no cover
    from .builder import SpecBuilder

UNNAMED_ROW_PREFIX = "case_"


class TableBuilder:
    """Collects rows, then ``run(fn)`` adds one case per row.

    Rows without a label are named ``case_N`` after their 1-based position.
    The cases live in a scope named after the table::

        table = b.describe_table("addition")
        table.case("small", 1, 2, 3).case_unnamed(10, 20, 30)
        table.run(lambda a, b_, total: check(a + b_ == total))
    """

    def __init__(self, builder: "SpecBuilder", name: str, *, focused: bool = False, pending: bool = False) -> None:
        self._builder = builder
        self.name = name
        self._focused = focused
        self._pending = pending
        self._labels: Tuple[str, ...] = tuple()
        self._rows: List[Tuple[Optional[str], Tuple[Any, ...]]] = []

    def case(self, label: str, *args: Any) -> "TableBuilder":
        if not isinstance(label, str) or not label:
            raise ConfigurationError(f"Row label in table '{self.name}' must be a non-empty string")
        self._rows.append((label, args))
        return self

    def case_unnamed(self, *args: Any) -> "TableBuilder":
        self._rows.append((None, args))
        return self

    def labels(self, *labels: str) -> "TableBuilder":
        self._labels = self._labels + validate_labels(labels)
        return self

    def run(self, fn: Callable[..., Any]) -> Callable[..., Any]:
        """Expand the rows against ``fn``. Usable as a decorator."""

        if not callable(fn):
            raise ConfigurationError(f"Table '{self.name}' function must be callable")
        builder = self._builder
        builder._check_open()
        scope = Scope(name=self.name, labels=self._labels, focused=self._focused, pending=self._pending)
        builder.current.add_scope(scope)
        for position, (label, args) in enumerate(self._rows, start=1):
            scope.add_case(
                Case(
                    name=label or f"{UNNAMED_ROW_PREFIX}{position}",
                    body=functools.partial(fn, *args),
                    synthetic_name=label is None,
                )
            )
        builder._table_done(self)
        return fn

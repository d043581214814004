"""Filter engine deciding which cases run."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from .labels import LabelExpression
from .models import Case, Scope
from .results import PENDING, SKIPPED

logger = logging.getLogger(__name__)

REASON_NAME = "filtered by name"
REASON_LABELS = "filtered by labels"
REASON_FOCUS = "not focused"


@dataclass(frozen=True)
class FilterCriteria:
    """Run-wide filtering inputs resolved from configuration."""

    focus_mode: bool = False
    labels: Optional[LabelExpression] = None
    names: Tuple[str, ...] = tuple()
    exact_names: bool = False
    include_pending: bool = False


@dataclass(frozen=True)
class Selection:
    """Selection verdict for one case.

    Unselected cases carry the status they are reported with (pending or
    skipped) and, for skips, the reason.
    """

    case: Case
    selected: bool
    status: Optional[str] = None
    reason: Optional[str] = None


def matches_name(case: Case, names: Sequence[str], exact: bool = False) -> bool:
    if not names:
        return True
    full_name = case.full_name
    if exact:
        return any(name == full_name or name == case.name for name in names)
    lowered = full_name.lower()
    return any(name.lower() in lowered for name in names)


def classify(case: Case, criteria: FilterCriteria) -> Selection:
    if not matches_name(case, criteria.names, criteria.exact_names):
        return Selection(case=case, selected=False, status=SKIPPED, reason=REASON_NAME)
    if criteria.labels is not None and not criteria.labels.matches(case.effective_labels):
        return Selection(case=case, selected=False, status=SKIPPED, reason=REASON_LABELS)
    if case.is_pending and not criteria.include_pending:
        return Selection(case=case, selected=False, status=PENDING)
    if criteria.focus_mode and not case.is_focused:
        return Selection(case=case, selected=False, status=SKIPPED, reason=REASON_FOCUS)
    return Selection(case=case, selected=True)


def select(root: Scope, criteria: FilterCriteria) -> List[Selection]:
    """Classify every case under ``root`` in tree order."""

    selections = [classify(case, criteria) for case in root.iter_cases()]
    logger.debug(
        "selected %d of %d case(s) (focus_mode=%s, labels=%s)",
        sum(1 for item in selections if item.selected),
        len(selections),
        criteria.focus_mode,
        criteria.labels,
    )
    return selections


def selected_cases(selections: Iterable[Selection]) -> List[Case]:
    return [item.case for item in selections if item.selected]

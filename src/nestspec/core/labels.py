"""Label filter expressions.

Grammar::

    expression := clause ("," clause)*      # OR
    clause     := term ("+" term)*          # AND, binds tighter than ","
    term       := ["!"] label

A bare label matches when present in the case's effective label set, a
``!label`` term when absent. ``a+b,c`` therefore reads ``(a AND b) OR c``.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from .errors import ConfigurationError, LabelFilterError

_LABEL_RE = re.compile(r"^[^\s,+!]+$")


@dataclass(frozen=True)
class LabelTerm:
    label: str
    negated: bool = False

    def matches(self, labels: frozenset) -> bool:
        present = self.label in labels
        return not present if self.negated else present

    def __str__(self) -> str:
        return f"!{self.label}" if self.negated else self.label


@dataclass(frozen=True)
class LabelExpression:
    """Disjunction of conjunctions of label terms."""

    clauses: Tuple[Tuple[LabelTerm, ...], ...]

    @classmethod
    def parse(cls, text: Optional[str]) -> Optional["LabelExpression"]:
        """Parse ``text``; blank input means "no filter" and yields ``None``."""

        if text is None or not text.strip():
            return None
        clauses = []
        for raw_clause in text.split(","):
            terms = []
            for raw_term in raw_clause.split("+"):
                terms.append(_parse_term(raw_term, text))
            clauses.append(tuple(terms))
        return cls(clauses=tuple(clauses))

    def matches(self, labels: Iterable[str]) -> bool:
        label_set = frozenset(labels)
        return any(all(term.matches(label_set) for term in clause) for clause in self.clauses)

    def __str__(self) -> str:
        return ",".join("+".join(str(term) for term in clause) for clause in self.clauses)


def _parse_term(raw: str, source: str) -> LabelTerm:
    token = raw.strip()
    negated = token.startswith("!")
    if negated:
        token = token[1:].strip()
    if not token:
        raise LabelFilterError(f"Malformed label filter '{source}': empty term")
    if not _LABEL_RE.match(token):
        raise LabelFilterError(f"Malformed label filter '{source}': invalid label '{token}'")
    return LabelTerm(label=token, negated=negated)


def validate_labels(labels: Iterable[str]) -> Tuple[str, ...]:
    """Return ``labels`` as a tuple, rejecting names the filter grammar cannot express."""

    result = (labels,) if isinstance(labels, str) else tuple(labels)
    for label in result:
        if not isinstance(label, str) or not _LABEL_RE.match(label):
            raise ConfigurationError(f"Invalid label {label!r}: labels cannot contain whitespace, ',', '+' or '!'")
    return result

"""Run configuration dataclass."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

REPORT_FORMATS = ("tree", "flat", "json")


@dataclass(frozen=True)
class RunConfig:
    """Options honored by the suite runner and reporters."""

    label_filter: Optional[str] = None
    names: Sequence[str] = field(default_factory=tuple)
    exact_names: bool = False
    include_pending: bool = False
    list_only: bool = False
    fail_on_focus: bool = False
    color: bool = True
    report: str = "tree"
    report_path: Optional[str] = None
    jobs: int = 1

    @classmethod
    def from_env(cls, environ=None) -> "RunConfig":
        from .loader import apply_env

        return apply_env(cls(), environ)

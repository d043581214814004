"""Terminal reporters rendering the scope tree or a flat list of cases."""
from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import click
from colorama import Fore, Style, init as colorama_init

from nestspec.core.models import Suite
from nestspec.core.results import FAILED, PASSED, PENDING, SKIPPED, RunResult, RunSummary, SuiteResult, StepResult

from .base import Reporter

GLYPHS = {
    PASSED: "✓",
    FAILED: "✗",
    PENDING: "-",
    SKIPPED: "-",
}

STATUS_COLORS = {
    PASSED: Fore.GREEN,
    FAILED: Fore.RED,
    PENDING: Fore.YELLOW,
    SKIPPED: Style.DIM,
}

STATUS_LABELS = {
    PASSED: "PASS",
    FAILED: "FAIL",
    PENDING: "PENDING",
    SKIPPED: "SKIP",
}

SLOW_THRESHOLD_MS = 100


class TerminalReporter(Reporter):
    """Shared plumbing for the tree and flat reporters: headers and summary."""

    def __init__(self, *, use_color: bool = True) -> None:
        self._use_color = use_color
        self._multi_suite = False
        self._failures: List[RunResult] = []

    def on_start(self, suites: Sequence[Suite]) -> None:
        if self._use_color:
            colorama_init()
        self._multi_suite = len(suites) > 1
        self._failures.clear()
        click.echo()

    def on_suite_start(self, suite: Suite) -> None:
        if suite.header:
            click.echo(self._styled(f"--- {suite.header} ---", Style.DIM))
            click.echo()

    def on_case_result(self, result: RunResult) -> None:
        if result.status == FAILED:
            self._failures.append(result)
        self._render_case(result)

    def on_suite_complete(self, result: SuiteResult) -> None:
        if self._multi_suite:
            click.echo()

    def on_complete(self, summary: RunSummary) -> None:
        parts = [self._styled(f"{summary.passed} passed", Fore.GREEN if summary.passed else "")]
        if summary.failed:
            parts.append(self._styled(f"{summary.failed} failed", Fore.RED))
        parts.append(self._styled(f"{summary.pending} pending", Fore.YELLOW if summary.pending else ""))
        if summary.skipped:
            parts.append(self._styled(f"{summary.skipped} skipped", Style.DIM))
        elapsed = self._styled(f"{summary.duration_s:.3f}s", Style.DIM)
        click.echo()
        click.echo(f"{', '.join(parts)} ({elapsed})")
        if self._failures:
            click.echo()
            click.echo("Failures:")
            for index, result in enumerate(self._failures, start=1):
                click.echo(f"  {index}. {result.full_name}: {result.reason}")
        if summary.focus_fail_triggered:
            click.echo()
            click.echo(
                self._styled(
                    "Focused specs detected while fail-on-focus is enabled. "
                    "Remove fit/fdescribe/fcontext before pushing.",
                    Fore.RED,
                )
            )
        click.echo()
        if summary.exit_code == 0:
            click.echo(self._styled("PASS", Fore.GREEN))
        else:
            click.echo(self._styled("FAIL", Fore.RED))

    def _render_case(self, result: RunResult) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def _styled(self, text: str, color: str) -> str:
        if not self._use_color or not color:
            return text
        return f"{color}{text}{Style.RESET_ALL}"

    def _annotations(self, result: RunResult) -> str:
        text = ""
        if result.required_passes is not None and result.consecutive_passes is not None:
            text += f" [{result.consecutive_passes}/{result.required_passes} passes]"
        elif result.attempts > 1:
            text += f" [attempt {result.attempts}]"
        ms = result.duration_s * 1000
        if ms > SLOW_THRESHOLD_MS:
            text += " " + self._styled(f"({ms:.0f}ms)", Style.DIM)
        return text

    def _print_failure_details(self, result: RunResult, indent: str) -> None:
        click.echo(f"{indent}{self._styled(f'Error: {result.reason}', Fore.RED)}")
        if result.location:
            click.echo(f"{indent}{self._styled(f'at {result.location}', Style.DIM)}")

    def _print_steps(self, steps: Tuple[StepResult, ...], indent: str) -> None:
        for step in steps:
            glyph = self._styled(GLYPHS[step.status], STATUS_COLORS[step.status])
            name = self._styled(step.name, Style.DIM) if step.status == SKIPPED else step.name
            line = f"{indent}{glyph} {name}"
            if step.status == FAILED and step.reason:
                line += f": {self._styled(step.reason, Fore.RED)}"
            click.echo(line)


class TreeReporter(TerminalReporter):
    """Ginkgo-style output: scopes indented by depth, one glyph per case.

    Skipped cases are counted in the summary but not printed.
    """

    def __init__(self, *, use_color: bool = True) -> None:
        super().__init__(use_color=use_color)
        self._open_path: Tuple[Tuple[str, Optional[int]], ...] = tuple()

    def on_suite_start(self, suite: Suite) -> None:
        self._open_path = tuple()
        if self._multi_suite:
            super().on_suite_start(suite)

    def _render_case(self, result: RunResult) -> None:
        if result.status == SKIPPED:
            return
        scope_path = result.path[:-1]
        identities = result.scope_ids or (None,) * len(scope_path)
        wanted_path = tuple(zip(scope_path, identities))
        common = 0
        for opened, wanted in zip(self._open_path, wanted_path):
            if opened != wanted:
                break
            common += 1
        for depth in range(common, len(scope_path)):
            click.echo("  " * depth + self._styled(scope_path[depth], Style.BRIGHT))
        self._open_path = wanted_path
        indent = "  " * len(scope_path)
        glyph = self._styled(GLYPHS[result.status], STATUS_COLORS[result.status])
        if result.status == PASSED:
            click.echo(f"{indent}{glyph} {result.name}{self._annotations(result)}")
        elif result.status == PENDING:
            click.echo(f"{indent}{glyph} {self._styled(result.name, Style.DIM)}")
        else:
            click.echo(f"{indent}{glyph} {self._styled(result.name, Fore.RED)}{self._annotations(result)}")
            self._print_failure_details(result, indent + "  ")
        if result.steps:
            self._print_steps(result.steps, indent + "  ")


class FlatReporter(TerminalReporter):
    """One line per case with its full path, skipped cases included."""

    def on_suite_start(self, suite: Suite) -> None:
        if self._multi_suite:
            super().on_suite_start(suite)

    def _render_case(self, result: RunResult) -> None:
        label = self._styled(f"{STATUS_LABELS[result.status]:<8}", STATUS_COLORS[result.status])
        click.echo(f"{label} {result.full_name}{self._annotations(result)}")
        if result.status == FAILED:
            self._print_failure_details(result, "    ")
        elif result.status == SKIPPED and result.reason:
            click.echo(f"    reason: {result.reason}")


def render_listing(entries: Sequence[Tuple[str, str, str]]) -> None:
    """Print ``(full_name, status, reason)`` entries produced by ``list_cases``."""

    for full_name, status, reason in entries:
        if status == PENDING:
            click.echo(f"{full_name} (pending)")
        elif status == SKIPPED:
            click.echo(f"{full_name} (skipped: {reason})")
        else:
            click.echo(full_name)

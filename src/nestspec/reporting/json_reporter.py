"""JSON reporter emitting structured run results."""
from __future__ import annotations

import datetime as dt
import json
import pathlib
from typing import Any, Dict, Optional

import click
from jsonschema import validate

from nestspec.core.results import RunResult, RunSummary, StepResult, SuiteResult

from .base import Reporter
from .schema import JSON_SCHEMA_V1, SCHEMA_VERSION


class JsonReporter(Reporter):
    """Writes the run summary as JSON validated against the schema.

    Without a path the document is echoed to stdout.
    """

    def __init__(self, path: Optional[str] = None) -> None:
        self._path = pathlib.Path(path) if path else None

    def on_case_result(self, result: RunResult) -> None:
        pass

    def on_complete(self, summary: RunSummary) -> None:
        payload = build_payload(summary)
        validate(instance=payload, schema=JSON_SCHEMA_V1)
        text = json.dumps(payload, indent=2)
        if self._path is None:
            click.echo(text)
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(text, encoding="utf-8")
        except OSError as exc:  # pragma: no cover - filesystem protection
            raise RuntimeError(f"Failed to write JSON report to {self._path}: {exc}") from exc
        click.echo(f"JSON report written to {self._path}", err=True)


def build_payload(summary: RunSummary) -> Dict[str, Any]:
    return {
        "schema_version": SCHEMA_VERSION,
        "generated_at": dt.datetime.now(dt.timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "summary": {
            "total": len(summary.results),
            "passed": summary.passed,
            "failed": summary.failed,
            "pending": summary.pending,
            "skipped": summary.skipped,
            "duration_s": summary.duration_s,
            "focus_mode": summary.focus_mode,
            "focus_fail_triggered": summary.focus_fail_triggered,
            "exit_code": summary.exit_code,
        },
        "suites": [_suite_to_dict(suite) for suite in summary.suites],
    }


def _suite_to_dict(suite: SuiteResult) -> Dict[str, Any]:
    return {
        "name": suite.name,
        "file": suite.file,
        "duration_s": suite.duration_s,
        "cases": [_case_to_dict(result) for result in suite.results],
    }


def _case_to_dict(result: RunResult) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "name": result.name,
        "path": list(result.path),
        "status": result.status,
        "duration_ms": result.duration_s * 1000,
        "attempts": result.attempts,
        "labels": list(result.labels),
        "timed_out": result.timed_out,
    }
    if result.reason:
        record["reason"] = result.reason
    if result.location:
        record["location"] = result.location
    if result.required_passes is not None:
        record["required_passes"] = result.required_passes
        if result.consecutive_passes is not None:
            record["consecutive_passes"] = result.consecutive_passes
    if result.log:
        record["log"] = list(result.log)
    if result.steps:
        record["steps"] = [_step_to_dict(step) for step in result.steps]
    return record


def _step_to_dict(step: StepResult) -> Dict[str, Any]:
    record: Dict[str, Any] = {"name": step.name, "status": step.status}
    if step.reason:
        record["reason"] = step.reason
    if step.location:
        record["location"] = step.location
    return record

from __future__ import annotations

import pytest

from nestspec import RunConfig, SpecBuilder, build_suite, run, run_suites
from nestspec.core.errors import FocusSelectionError, LabelFilterError
from nestspec.core.results import FAILED, PASSED, PENDING, SKIPPED
from nestspec.core.runner import SuiteRunner, list_cases
from nestspec.core.selection import FilterCriteria


def _noop() -> None:
    pass


def _boom() -> None:
    raise AssertionError("boom")


def _calculator(b: SpecBuilder) -> None:
    with b.describe("Calculator"):
        b.it("adds", _noop)
        b.it("fails", _boom)
        b.xit("divides", _noop)
        b.it(_noop)


def test_end_to_end_counts_and_order() -> None:
    summary = run_suites([build_suite(_calculator, name="calc")])
    assert [(result.full_name, result.status) for result in summary.results] == [
        ("Calculator > adds", PASSED),
        ("Calculator > fails", FAILED),
        ("Calculator > divides", PENDING),
        ("Calculator > spec_1", PASSED),
    ]
    assert (summary.passed, summary.failed, summary.pending, summary.skipped) == (2, 1, 1, 0)
    assert summary.exit_code == 1
    assert summary.suites[0].ok is False


def test_suite_runner_runs_a_single_suite() -> None:
    result = SuiteRunner(FilterCriteria(names=("adds",))).run(build_suite(_calculator, name="calc"))
    assert result.name == "calc"
    assert result.passed == 1
    assert result.skipped == 3


def test_empty_run_passes() -> None:
    summary = run_suites([build_suite(lambda b: None)])
    assert summary.results == ()
    assert summary.exit_code == 0


def test_pending_only_run_passes() -> None:
    summary = run_suites([build_suite(lambda b: b.xit("later", _boom))])
    assert summary.pending == 1
    assert summary.exit_code == 0


def test_focus_mode_spans_every_suite(recorder) -> None:
    focused = build_suite(lambda b: b.fit("hot", _noop), name="focused")
    other = build_suite(lambda b: b.it("cold", _boom), name="other")
    summary = run_suites([focused, other], RunConfig(), reporters=[recorder])
    statuses = {result.name: (result.status, result.reason) for result in summary.results}
    assert statuses["hot"] == (PASSED, None)
    assert statuses["cold"] == (SKIPPED, "not focused")
    assert summary.focus_mode is True
    assert summary.exit_code == 0


def test_fail_on_focus_makes_passing_run_fail() -> None:
    summary = run_suites([build_suite(lambda b: b.fit("hot", _noop))], RunConfig(fail_on_focus=True))
    assert summary.failed == 0
    assert summary.focus_fail_triggered is True
    assert summary.exit_code == 1


def test_fail_on_focus_without_focus_passes() -> None:
    summary = run_suites([build_suite(lambda b: b.it("plain", _noop))], RunConfig(fail_on_focus=True))
    assert summary.exit_code == 0


def test_zero_selection_under_focus_is_an_error() -> None:
    def body(b: SpecBuilder) -> None:
        b.fit("hot", _noop, labels=("db",))
        b.it("cold", _noop, labels=("web",))

    with pytest.raises(FocusSelectionError):
        run_suites([build_suite(body)], RunConfig(label_filter="web"))


def test_malformed_label_filter_raises_before_running() -> None:
    ran = []
    with pytest.raises(LabelFilterError):
        run_suites([build_suite(lambda b: b.it("x", lambda: ran.append(1)))], RunConfig(label_filter="a,,b"))
    assert ran == []


def test_reporters_receive_callbacks_in_order(recorder) -> None:
    first = build_suite(lambda b: b.it("one", _noop), name="first")
    second = build_suite(lambda b: b.it("two", _boom), name="second")
    run_suites([first, second], RunConfig(), reporters=[recorder])
    assert recorder.events == [
        ("start", 2),
        ("suite", "first"),
        ("case", "one", PASSED),
        ("suite_done", "first"),
        ("suite", "second"),
        ("case", "two", FAILED),
        ("suite_done", "second"),
        ("complete", 1),
    ]


def test_parallel_suites_replay_results_in_suite_order(recorder) -> None:
    suites = [
        build_suite(lambda b, index=index: b.it(f"case {index}", _noop), name=f"suite {index}")
        for index in range(4)
    ]
    summary = run_suites(suites, RunConfig(jobs=3), reporters=[recorder])
    assert summary.passed == 4
    cases = [event[1] for event in recorder.events if event[0] == "case"]
    assert cases == ["case 0", "case 1", "case 2", "case 3"]


def test_list_cases_annotates_without_running() -> None:
    ran = []

    def body(b: SpecBuilder) -> None:
        with b.describe("Calculator"):
            b.it("adds", lambda: ran.append("adds"), labels=("fast",))
            b.it("multiplies", lambda: ran.append("multiplies"))
            b.xit("divides", _noop, labels=("fast",))
            b.it("unrelated", _noop, labels=("fast",))

    entries = list_cases([build_suite(body)], RunConfig(names=("calculator > ",), label_filter="fast"))
    assert entries == [
        ("Calculator > adds", "selected", ""),
        ("Calculator > multiplies", SKIPPED, "filtered by labels"),
        ("Calculator > divides", PENDING, ""),
        ("Calculator > unrelated", "selected", ""),
    ]
    narrowed = list_cases([build_suite(body)], RunConfig(names=("adds",)))
    assert [entry[0] for entry in narrowed] == ["Calculator > adds"]
    assert ran == []


def test_run_entry_point_returns_exit_code(capsys) -> None:
    assert run(lambda b: b.it("ok", _noop), config=RunConfig(color=False)) == 0
    assert run(lambda b: b.it("bad", _boom), config=RunConfig(color=False)) == 1
    out = capsys.readouterr().out
    assert "✓ ok" in out
    assert "✗ bad" in out

from __future__ import annotations

from nestspec import SpecBuilder, skip
from nestspec.core.results import FAILED, PASSED, PENDING, SKIPPED


def _by_name(summary):
    return {result.name: result for result in summary.results}


def test_each_hooks_run_in_inheritance_order(run_body) -> None:
    events = []

    def body(b: SpecBuilder) -> None:
        with b.describe("outer"):
            b.before_each(lambda: events.append("outer before_each"))
            b.just_before_each(lambda: events.append("outer just_before_each"))
            b.after_each(lambda: events.append("outer after_each"))
            with b.describe("inner"):
                b.before_each(lambda: events.append("inner before_each"))
                b.just_before_each(lambda: events.append("inner just_before_each"))
                b.after_each(lambda: events.append("inner after_each"))
                b.it("case", lambda: events.append("body"))

    summary = run_body(body)
    assert summary.passed == 1
    assert events == [
        "outer before_each",
        "inner before_each",
        "outer just_before_each",
        "inner just_before_each",
        "body",
        "inner after_each",
        "outer after_each",
    ]


def test_once_hooks_run_exactly_once_around_selected_cases(run_body) -> None:
    events = []

    def body(b: SpecBuilder) -> None:
        with b.describe("db"):
            b.before_all(lambda: events.append("before_all"))
            b.after_all(lambda: events.append("after_all"))
            for index in range(3):
                b.it(f"case {index}", lambda index=index: events.append(f"body {index}"))
        b.it("outside", lambda: events.append("outside"))

    run_body(body)
    assert events == ["before_all", "body 0", "body 1", "body 2", "after_all", "outside"]


def test_once_hooks_skip_scopes_without_selected_cases(run_body) -> None:
    events = []

    def body(b: SpecBuilder) -> None:
        with b.describe("unused"):
            b.before_all(lambda: events.append("before_all"))
            b.after_all(lambda: events.append("after_all"))
            b.it("filtered", lambda: events.append("body"))
        b.it("kept", lambda: None)

    summary = run_body(body, names=("kept",))
    assert events == []
    assert summary.passed == 1
    assert summary.skipped == 1


def test_failed_before_each_runs_after_each_of_completed_levels_only(run_body) -> None:
    events = []

    def explode() -> None:
        raise RuntimeError("db down")

    def body(b: SpecBuilder) -> None:
        with b.describe("outer"):
            b.before_each(lambda: events.append("outer before_each"))
            b.after_each(lambda: events.append("outer after_each"))
            with b.describe("inner"):
                b.before_each(explode)
                b.after_each(lambda: events.append("inner after_each"))
                b.it("case", lambda: events.append("body"))

    result = _by_name(run_body(body))["case"]
    assert result.status == FAILED
    assert result.reason == "before_each hook failed: RuntimeError: db down"
    assert events == ["outer before_each", "outer after_each"]


def test_after_each_runs_when_body_fails(run_body) -> None:
    events = []

    def failing() -> None:
        assert 1 == 2, "numbers differ"

    def body(b: SpecBuilder) -> None:
        b.after_each(lambda: events.append("after_each"))
        b.it("fails", failing)

    result = _by_name(run_body(body))["fails"]
    assert result.status == FAILED
    assert result.reason.startswith("numbers differ")
    assert result.location is not None and "test_hooks.py:" in result.location
    assert events == ["after_each"]


def test_after_each_failure_fails_passing_case(run_body) -> None:
    def broken() -> None:
        raise ValueError("teardown")

    def body(b: SpecBuilder) -> None:
        b.after_each(broken)
        b.it("case", lambda: None)

    result = _by_name(run_body(body))["case"]
    assert result.status == FAILED
    assert result.reason == "after_each hook failed: ValueError: teardown"


def test_failed_before_all_fails_every_selected_case_in_scope(run_body) -> None:
    events = []

    def explode() -> None:
        raise RuntimeError("no connection")

    def body(b: SpecBuilder) -> None:
        with b.describe("db"):
            b.before_all(explode)
            b.after_all(lambda: events.append("after_all"))
            b.it("one", lambda: events.append("one"))
            b.it("two", lambda: events.append("two"))
        b.it("other", lambda: events.append("other"))

    results = _by_name(run_body(body))
    assert results["one"].status == FAILED
    assert results["two"].status == FAILED
    assert results["one"].reason == "before_all hook failed: RuntimeError: no connection"
    assert results["other"].status == PASSED
    assert events == ["other"]


def test_skip_in_before_all_skips_scope(run_body) -> None:
    def body(b: SpecBuilder) -> None:
        with b.describe("gpu"):
            b.before_all(lambda: skip("no gpu"))
            b.it("kernel", lambda: None)

    result = _by_name(run_body(body))["kernel"]
    assert result.status == SKIPPED
    assert result.reason == "no gpu"


def test_after_all_failure_is_attached_to_last_case(run_body) -> None:
    def broken() -> None:
        raise RuntimeError("cleanup")

    def body(b: SpecBuilder) -> None:
        with b.describe("db"):
            b.after_all(broken)
            b.it("first", lambda: None)
            b.it("last", lambda: None)

    summary = run_body(body)
    results = _by_name(summary)
    assert results["first"].status == PASSED
    assert results["last"].status == FAILED
    assert results["last"].reason == "after_all hook failed: RuntimeError: cleanup"
    assert summary.exit_code == 1


def test_pending_scope_runs_no_hooks_or_bodies(run_body) -> None:
    events = []

    def body(b: SpecBuilder) -> None:
        with b.xdescribe("parked"):
            b.before_all(lambda: events.append("before_all"))
            b.before_each(lambda: events.append("before_each"))
            b.after_each(lambda: events.append("after_each"))
            b.after_all(lambda: events.append("after_all"))
            b.it("first", lambda: events.append("first"))
            with b.describe("nested"):
                b.before_each(lambda: events.append("nested before_each"))
                b.it("second", lambda: events.append("second"))
        b.it("active", lambda: None)

    summary = run_body(body)
    assert {result.full_name: result.status for result in summary.results} == {
        "parked > first": PENDING,
        "parked > nested > second": PENDING,
        "active": PASSED,
    }
    assert events == []
    assert summary.exit_code == 0

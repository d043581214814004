from __future__ import annotations

from nestspec import SpecBuilder, skip
from nestspec.core.results import FAILED, PASSED, SKIPPED


def _only(summary):
    assert len(summary.results) == 1
    return summary.results[0]


def _fail(message: str):
    def step() -> None:
        raise AssertionError(message)

    return step


def test_first_failure_skips_remaining_steps(run_body) -> None:
    ran = []

    def body(b: SpecBuilder) -> None:
        flow = b.ordered("checkout")
        flow.step("add", _fail("cart full"))
        flow.step("pay", lambda: ran.append("pay"))

    result = _only(run_body(body))
    assert result.status == FAILED
    assert result.reason == "step 'add' failed: cart full"
    assert [(step.name, step.status) for step in result.steps] == [("add", FAILED), ("pay", SKIPPED)]
    assert ran == []


def test_continue_on_failure_runs_every_step(run_body) -> None:
    ran = []

    def body(b: SpecBuilder) -> None:
        flow = b.ordered("audit", continue_on_failure=True)
        flow.step("scan", _fail("virus"))
        flow.step("report", lambda: ran.append("report"))

    result = _only(run_body(body))
    assert result.status == FAILED
    assert [(step.name, step.status) for step in result.steps] == [("scan", FAILED), ("report", PASSED)]
    assert ran == ["report"]


def test_continue_on_failure_reports_failure_count(run_body) -> None:
    def body(b: SpecBuilder) -> None:
        flow = b.ordered_continue_on_failure("audit")
        flow.step("one", _fail("first"))
        flow.step("two", _fail("second"))

    result = _only(run_body(body))
    assert result.reason == "2 steps failed; first step 'one' failed: first"


def test_each_hooks_wrap_the_whole_workflow(run_body) -> None:
    events = []

    def body(b: SpecBuilder) -> None:
        b.before_each(lambda: events.append("before_each"))
        b.after_each(lambda: events.append("after_each"))

        def steps(flow) -> None:
            flow.step("a", lambda: events.append("a"))
            flow.step("b", lambda: events.append("b"))

        b.ordered("flow", steps)

    result = _only(run_body(body))
    assert result.status == PASSED
    assert result.log == ("a", "b")
    assert events == ["before_each", "a", "b", "after_each"]


def test_skip_inside_step_skips_the_case(run_body) -> None:
    def body(b: SpecBuilder) -> None:
        flow = b.ordered("flow")
        flow.step("check", lambda: skip("feature off"))
        flow.step("never", _fail("unreachable"))

    result = _only(run_body(body))
    assert result.status == SKIPPED
    assert result.reason == "feature off"


def test_retry_applies_to_whole_workflow(run_body) -> None:
    calls = []

    def flaky() -> None:
        calls.append(1)
        assert len(calls) > 1, "warming up"

    def body(b: SpecBuilder) -> None:
        flow = b.ordered("flow", retries=1)
        flow.step("first", flaky)
        flow.step("second", lambda: None)

    result = _only(run_body(body))
    assert result.status == PASSED
    assert result.attempts == 2
    assert [step.status for step in result.steps] == [PASSED, PASSED]

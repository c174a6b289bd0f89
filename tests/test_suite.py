"""
Tests for apitest.suite - case runner and suite runner.
"""

from __future__ import annotations

import contextlib

import pytest

from apitest.assertions import IsEqual, NotEmpty
from apitest.context import CaseContext, CaseFailed, FailureKind
from apitest.faults import DuplicateCaseFault
from apitest.suite import HandlerCase, HookPolicy, Suite

from tests.conftest import created_handler, exploding_handler, not_found_handler, ok_handler


# ============================================================================
# 1. Scenarios
# ============================================================================


class TestScenarios:
    def test_created_with_field_assertions_passes(self):
        suite = Suite(route="/widgets", method="POST", handler=created_handler)
        case = HandlerCase(
            name="created",
            want_status_code=201,
            assert_content_fields={"id": NotEmpty(), "name": IsEqual("x")},
        )
        ctx = suite.run_handler_test(case)
        assert not ctx.failed

    def test_not_found_error_passes(self):
        suite = Suite(route="/widgets/1", method="GET", handler=not_found_handler)
        case = HandlerCase(
            name="missing widget",
            want_status_code=404,
            want_err=True,
            want_err_message="not found",
        )
        assert not suite.run_handler_test(case).failed

    def test_unaccepted_status_and_status_check_both_reported(self):
        suite = Suite(route="/widgets", method="POST", handler=ok_handler)
        case = HandlerCase(name="wants 201", want_status_code=201)

        with pytest.raises(CaseFailed) as excinfo:
            suite.run_handler_test(case)

        failures = excinfo.value.failures
        assert [f.kind for f in failures] == [FailureKind.HARNESS, FailureKind.ASSERTION]
        assert failures[0].code == "UNACCEPTED_STATUS"
        assert "/widgets" in failures[0].message
        assert "status" in failures[1].message

    def test_missing_field_reported_and_siblings_checked(self):
        suite = Suite(route="/widgets", method="POST", handler=created_handler)
        case = HandlerCase(
            name="missing field",
            want_status_code=201,
            assert_content_fields={"missing_field": NotEmpty(), "name": IsEqual("y")},
        )
        with pytest.raises(CaseFailed) as excinfo:
            suite.run_handler_test(case)
        kinds = {f.kind for f in excinfo.value.failures}
        assert kinds == {FailureKind.CONFIGURATION, FailureKind.ASSERTION}
        assert "missing_field" in str(excinfo.value)

    def test_running_twice_is_idempotent(self):
        suite = Suite(route="/widgets", method="POST", handler=created_handler)
        case = HandlerCase(name="wrong", want_status_code=200, assert_content_fields={"name": IsEqual("z")})
        first = suite.run_handler_test(case, CaseContext(case.name))
        second = suite.run_handler_test(case, CaseContext(case.name))
        assert [f.message for f in first.failures] == [f.message for f in second.failures]
        assert len(first.failures) == 3


# ============================================================================
# 2. Hooks
# ============================================================================


class TestHooks:
    def make_suite(self, calls):
        def handler(w, r):
            calls.append("handler")
            w.write_json(200, {})

        return Suite(
            route="/",
            method="GET",
            handler=handler,
            before_test=lambda ctx: calls.append("suite.before"),
            after_test=lambda ctx: calls.append("suite.after"),
        )

    def test_full_order(self):
        calls = []
        case = HandlerCase(
            name="all hooks",
            before_run=lambda ctx: calls.append("case.before"),
            after_run=lambda ctx: calls.append("case.after"),
        )
        self.make_suite(calls).run_handler_test(case)
        assert calls == ["suite.before", "case.before", "handler", "case.after", "suite.after"]

    def test_skip_suite_hooks(self):
        calls = []
        case = HandlerCase(name="skip", before_test=HookPolicy.SKIP, after_test=HookPolicy.SKIP)
        self.make_suite(calls).run_handler_test(case)
        assert calls == ["handler"]

    def test_skip_before_only(self):
        calls = []
        case = HandlerCase(name="skip before", before_test=HookPolicy.SKIP)
        self.make_suite(calls).run_handler_test(case)
        assert calls == ["handler", "suite.after"]

    def test_absent_hooks_are_no_ops(self):
        suite = Suite(route="/", method="GET", handler=ok_handler)
        assert not suite.run_handler_test(HandlerCase(name="bare")).failed

    def test_after_hooks_run_when_case_fails(self):
        calls = []
        case = HandlerCase(name="fails", want_status_code=418, after_run=lambda ctx: calls.append("case.after"))
        with pytest.raises(CaseFailed):
            self.make_suite(calls).run_handler_test(case)
        assert calls[-2:] == ["case.after", "suite.after"]

    def test_after_hooks_run_when_handler_raises(self):
        calls = []
        suite = Suite(
            route="/boom",
            method="GET",
            handler=exploding_handler,
            after_test=lambda ctx: calls.append("suite.after"),
        )
        case = HandlerCase(name="raises", after_run=lambda ctx: calls.append("case.after"))
        with pytest.raises(RuntimeError, match="boom"):
            suite.run_handler_test(case)
        assert calls == ["case.after", "suite.after"]

    def test_after_hooks_run_when_before_hook_raises(self):
        calls = []

        def broken_setup(ctx):
            raise ValueError("setup failed")

        suite = Suite(
            route="/",
            method="GET",
            handler=ok_handler,
            before_test=broken_setup,
            after_test=lambda ctx: calls.append("suite.after"),
        )
        with pytest.raises(ValueError):
            suite.run_handler_test(HandlerCase(name="bad setup"))
        assert calls == ["suite.after"]

    def test_skipped_after_hook_stays_skipped_when_handler_raises(self):
        calls = []
        suite = Suite(
            route="/boom",
            method="GET",
            handler=exploding_handler,
            after_test=lambda ctx: calls.append("suite.after"),
        )
        case = HandlerCase(name="raises", after_test=HookPolicy.SKIP)
        with pytest.raises(RuntimeError):
            suite.run_handler_test(case)
        assert calls == []

    def test_hooks_receive_the_case_context(self):
        seen = []
        case = HandlerCase(name="ctx", before_run=seen.append)
        Suite(route="/", method="GET", handler=ok_handler).run_handler_test(case)
        assert isinstance(seen[0], CaseContext)
        assert seen[0].name == "ctx"

    def test_hooks_share_state_with_handler(self, store):
        suite = Suite(
            route="/widgets",
            method="POST",
            handler=store.create_handler,
            before_test=lambda ctx: store.reset(),
        )
        first = HandlerCase(name="create", content='{"name": "a"}', want_status_code=201)
        again = HandlerCase(name="create again", content='{"name": "a"}', want_status_code=201)
        duplicate = HandlerCase(
            name="duplicate",
            content='{"name": "a"}',
            want_status_code=409,
            want_err_message="already exists",
            before_test=HookPolicy.SKIP,
        )
        suite.run_handler_tests([first, again, duplicate])
        assert list(store.widgets.values()) == ["a"]


# ============================================================================
# 3. Suite runner
# ============================================================================


class FakeSubTests:
    """Stand-in for the pytest ``subtests`` fixture."""

    def __init__(self):
        self.names = []
        self.errors = {}

    @contextlib.contextmanager
    def test(self, msg=None):
        self.names.append(msg)
        try:
            yield
        except AssertionError as exc:
            self.errors[msg] = exc


class TestRunHandlerTests:
    cases = [
        HandlerCase(name="passes", want_status_code=201),
        HandlerCase(name="wrong status", want_status_code=200),
        HandlerCase(name="wrong name", want_status_code=201, assert_content_fields={"name": IsEqual("q")}),
    ]

    def suite(self):
        return Suite(route="/widgets", method="POST", handler=created_handler)

    def test_without_reporter_aggregates_failures(self):
        with pytest.raises(CaseFailed) as excinfo:
            self.suite().run_handler_tests(self.cases)
        text = str(excinfo.value)
        assert "[wrong status]" in text
        assert "[wrong name]" in text
        assert "[passes]" not in text
        assert excinfo.value.name == "POST /widgets"

    def test_reporter_gets_one_subtest_per_case(self):
        reporter = FakeSubTests()
        contexts = self.suite().run_handler_tests(self.cases, reporter)
        assert reporter.names == ["passes", "wrong status", "wrong name"]
        assert set(reporter.errors) == {"wrong status", "wrong name"}
        assert [c.failed for c in contexts] == [False, True, True]

    def test_all_passing_returns_contexts(self):
        contexts = self.suite().run_handler_tests(self.cases[:1])
        assert len(contexts) == 1
        assert not contexts[0].failed

    def test_duplicate_names_rejected_before_running(self):
        calls = []

        def handler(w, r):
            calls.append(r)
            w.write_header(200)

        suite = Suite(route="/", method="GET", handler=handler)
        with pytest.raises(DuplicateCaseFault):
            suite.run_handler_tests([HandlerCase(name="a"), HandlerCase(name="a")])
        assert calls == []

    def test_raising_case_does_not_stop_the_run(self):
        bodies = []

        def handler(w, r):
            bodies.append(r.body)
            if r.body == b"boom":
                raise RuntimeError("boom")
            w.write_json(200, {"ok": True})

        suite = Suite(route="/", method="POST", handler=handler)
        cases = [
            HandlerCase(name="raises", content="boom"),
            HandlerCase(name="wrong status", content="ok", want_status_code=201),
        ]
        with pytest.raises(CaseFailed) as excinfo:
            suite.run_handler_tests(cases)

        assert bodies == [b"boom", b"ok"]
        failures = excinfo.value.failures
        assert failures[0].kind is FailureKind.HARNESS
        assert failures[0].message == "[raises] RuntimeError: boom"
        assert any(f.message.startswith("[wrong status]") for f in failures[1:])

    def test_reporter_without_subtests_is_rejected(self):
        with pytest.raises(TypeError):
            self.suite().run_handler_tests(self.cases, object())


# ============================================================================
# 4. pytest parametrization
# ============================================================================


_widget_suite = Suite(route="/widgets", method="POST", handler=created_handler)
_widget_cases = [
    HandlerCase(name="id present", want_status_code=201, assert_content_fields={"id": NotEmpty()}),
    HandlerCase(name="name matches", want_status_code=201, assert_content_fields={"name": IsEqual("x")}),
    HandlerCase(name="raw body", want_status_code=201, want_content='{"id": "abc", "name": "x"}'),
]


@_widget_suite.parametrize(_widget_cases)
def test_parametrized_cases(handler_case, request):
    assert request.node.callspec.id == handler_case.name
    _widget_suite.run_handler_test(handler_case)


def test_parametrize_rejects_duplicates():
    with pytest.raises(DuplicateCaseFault):
        _widget_suite.parametrize([HandlerCase(name="x"), HandlerCase(name="x")])

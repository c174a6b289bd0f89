"""
apitest suite - Declarative handler test suites.

A :class:`Suite` fixes one handler, route and method; a list of
:class:`HandlerCase` values describes what to send and what to expect.

Usage with unittest::

    class TestCreateWidget(HandlerTestCase):
        def test_create(self):
            self.run_handler_tests(suite, cases)

Usage with pytest::

    @suite.parametrize(cases)
    def test_create(handler_case):
        suite.run_handler_test(handler_case)
"""

from __future__ import annotations

import contextlib
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence

from .assertions import AssertFunc
from .config import HarnessConfig, get_config
from .context import CaseContext, CaseFailed, FailureKind, collect
from .faults import DuplicateCaseFault, HarnessFault
from .harness import HandlerReqParams, HandlerResult, make_handler_request
from .validator import validate_response


logger = logging.getLogger("apitest.suite")

Hook = Callable[[CaseContext], None]


class HookPolicy(str, Enum):
    """Whether a case runs the suite-level hook on its side of the request."""

    RUN = "run"
    SKIP = "skip"


@dataclass(frozen=True)
class HandlerCase:
    """
    One declared scenario for a suite's handler.

    ``want_content`` and ``want_err_message`` are only checked when
    non-empty: an empty ``want_content`` does not mean "expect an empty
    body".
    """

    name: str
    content: str = ""
    want_status_code: int = 200
    want_content: str = ""
    want_err: bool = False
    want_err_message: str = ""
    assert_content_fields: Mapping[str, AssertFunc] = field(default_factory=dict)
    before_run: Optional[Hook] = None
    after_run: Optional[Hook] = None
    before_test: HookPolicy = HookPolicy.RUN
    after_test: HookPolicy = HookPolicy.RUN

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Suite:
    """Handler under test plus hooks wrapped around every case."""

    route: str
    method: str
    handler: Any
    before_test: Optional[Hook] = None
    after_test: Optional[Hook] = None
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def params(self) -> HandlerReqParams:
        return HandlerReqParams(self.route, self.method, self.handler, dict(self.headers))

    # ------------------------------------------------------------------
    # Single case
    # ------------------------------------------------------------------

    def run_handler_test(
        self,
        case: HandlerCase,
        ctx: Optional[CaseContext] = None,
        *,
        config: Optional[HarnessConfig] = None,
    ) -> CaseContext:
        """
        Run one case: hooks, request, checks, hooks.

        The after-hooks run even when the handler, a before-hook or an
        assertion function raises.

        When *ctx* is omitted a fresh context is created and
        :class:`CaseFailed` is raised at the end if anything failed.
        A supplied context is returned with its failures left for the
        caller to report.
        """
        cfg = config or get_config()
        owns_ctx = ctx is None
        if ctx is None:
            ctx = CaseContext(case.name, preview_limit=cfg.body_preview_limit)

        try:
            if self.before_test is not None and case.before_test is HookPolicy.RUN:
                self.before_test(ctx)
            if case.before_run is not None:
                case.before_run(ctx)

            result = self._request(ctx, case, cfg)
            if result is not None:
                validate_response(ctx, result, case)
        finally:
            if case.after_run is not None:
                case.after_run(ctx)
            if self.after_test is not None and case.after_test is HookPolicy.RUN:
                self.after_test(ctx)

        if owns_ctx:
            ctx.raise_for_failures()
        return ctx

    def _request(self, ctx: CaseContext, case: HandlerCase, cfg: HarnessConfig) -> Optional[HandlerResult]:
        try:
            return make_handler_request(self.params, case.content, [case.want_status_code], config=cfg)
        except HarnessFault as fault:
            ctx.fault(fault)
            return fault.result

    # ------------------------------------------------------------------
    # Many cases
    # ------------------------------------------------------------------

    def run_handler_tests(
        self,
        cases: Sequence[HandlerCase],
        reporter: Any = None,
        *,
        config: Optional[HarnessConfig] = None,
    ) -> List[CaseContext]:
        """
        Run *cases* in order, each inside its own named sub-test.

        *reporter* is a ``unittest.TestCase`` (``subTest``) or a pytest
        ``subtests`` fixture (``test``). Without one, all cases still run
        and a single :class:`CaseFailed` lists every failing case; an
        exception escaping one case is recorded as a harness failure on it.
        """
        check_unique_names(cases)
        cfg = config or get_config()
        contexts: List[CaseContext] = []
        for case in cases:
            logger.debug("running case %r against %s %s", case.name, self.method, self.route)
            ctx = CaseContext(case.name, preview_limit=cfg.body_preview_limit)
            contexts.append(ctx)
            if reporter is None:
                try:
                    self.run_handler_test(case, ctx, config=cfg)
                except Exception as exc:
                    logger.error("case %r raised", case.name, exc_info=True)
                    ctx.error(f"{type(exc).__name__}: {exc}", kind=FailureKind.HARNESS)
                continue
            with _subtest(reporter, case.name):
                self.run_handler_test(case, ctx, config=cfg)
                ctx.raise_for_failures()

        if reporter is None:
            failures = collect(contexts)
            if failures:
                raise CaseFailed(f"{self.method} {self.route}", failures)
        return contexts

    def parametrize(self, cases: Sequence[HandlerCase], argname: str = "handler_case"):
        """``pytest.mark.parametrize`` over *cases*, using case names as ids."""
        import pytest

        check_unique_names(cases)
        return pytest.mark.parametrize(argname, list(cases), ids=[c.name for c in cases])


def check_unique_names(cases: Sequence[HandlerCase]) -> None:
    seen: set = set()
    for case in cases:
        if case.name in seen:
            raise DuplicateCaseFault(case.name)
        seen.add(case.name)


@contextlib.contextmanager
def _subtest(reporter: Any, name: str) -> Iterator[None]:
    if hasattr(reporter, "subTest"):
        with reporter.subTest(name):
            yield
    elif hasattr(reporter, "test"):
        with reporter.test(msg=name):
            yield
    else:
        raise TypeError(f"{type(reporter).__name__} cannot open sub-tests")


__all__ = [
    "Hook",
    "HookPolicy",
    "HandlerCase",
    "Suite",
    "check_unique_names",
]

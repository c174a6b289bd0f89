"""
apitest cases - unittest integration.

:class:`HandlerTestCase` reports each :class:`HandlerCase` of a run as its
own ``subTest``, so one failing case does not hide the others.
"""

from __future__ import annotations

import unittest
from typing import List, Sequence

from .config import HarnessConfig, get_config
from .context import CaseContext
from .suite import HandlerCase, Suite


class HandlerTestCase(unittest.TestCase):
    """
    Test case base class for declarative handler suites.

    Subclass attributes:
        config: Optional :class:`HarnessConfig` used instead of the active one.

    Usage::

        class TestWidgets(HandlerTestCase):
            def test_create(self):
                self.run_handler_tests(create_suite, create_cases)
    """

    config: HarnessConfig | None = None

    def harness_config(self) -> HarnessConfig:
        return self.config or get_config()

    def run_handler_tests(self, suite: Suite, cases: Sequence[HandlerCase]) -> List[CaseContext]:
        return suite.run_handler_tests(cases, reporter=self, config=self.harness_config())

    def run_handler_test(self, suite: Suite, case: HandlerCase) -> CaseContext:
        return suite.run_handler_test(case, config=self.harness_config())

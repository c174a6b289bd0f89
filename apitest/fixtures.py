"""
apitest fixtures - pytest fixtures.

Import them into a ``conftest.py`` to make them available::

    from apitest.fixtures import case_context, harness_config, make_request  # noqa: F401

Usage::

    def test_create(harness_config):
        suite.run_handler_test(case, config=harness_config)
"""

from __future__ import annotations

import pytest

from .config import get_config, set_config
from .context import CaseContext
from .recorder import Request


@pytest.fixture
def harness_config():
    """The active :class:`HarnessConfig`, restored after the test."""
    saved = get_config()
    yield saved
    set_config(saved)


@pytest.fixture
def case_context(request, harness_config):
    """A :class:`CaseContext` named after the running test."""
    return CaseContext(request.node.name, preview_limit=harness_config.body_preview_limit)


@pytest.fixture
def make_request():
    """
    Factory fixture - call with method, route and body to build a :class:`Request`.

    Usage::

        def test_handler(make_request):
            req = make_request("POST", "/widgets", '{"name": "x"}')
    """
    return Request.build

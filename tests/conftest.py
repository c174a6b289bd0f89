"""
Shared handlers and fixtures for the apitest test suite.
"""

import json
import uuid

import pytest

from apitest.config import HarnessConfig, set_config

# Import fixtures so pytest can discover them
from apitest.fixtures import (  # noqa: F401
    case_context,
    harness_config,
    make_request,
)


# ============================================================================
# Config isolation
# ============================================================================


@pytest.fixture(autouse=True)
def clean_config():
    """Every test starts from default settings, independent of APITEST_* env."""
    set_config(HarnessConfig())
    yield
    set_config(None)


# ============================================================================
# Handlers
# ============================================================================


def write_error(w, status: int, message: str) -> None:
    w.write_json(status, {"code": status, "message": message})


class WidgetStore:
    """In-memory store the widget handlers share, reset by suite hooks."""

    def __init__(self):
        self.widgets = {}

    def reset(self):
        self.widgets.clear()

    def create_handler(self, w, r):
        try:
            payload = json.loads(r.body or b"null")
        except ValueError as exc:
            write_error(w, 400, f"invalid body: {exc}")
            return
        if not isinstance(payload, dict) or not payload.get("name"):
            write_error(w, 400, "name is required")
            return
        if payload["name"] in self.widgets.values():
            write_error(w, 409, f"widget {payload['name']} already exists")
            return
        widget_id = uuid.uuid4().hex
        self.widgets[widget_id] = payload["name"]
        w.write_json(201, {"id": widget_id, "name": payload["name"]})


@pytest.fixture
def store():
    return WidgetStore()


def created_handler(w, r):
    w.write_json(201, {"id": "abc", "name": "x"})


def not_found_handler(w, r):
    write_error(w, 404, "not found: widget")


def plain_not_found_handler(w, r):
    w.set_header("content-type", "text/plain")
    w.write_header(404)
    w.write("page not found")


def ok_handler(w, r):
    w.write_json(200, {"ok": True})


def echo_handler(w, r):
    """Echo what the harness sent, so tests can inspect the synthetic request."""
    w.write_json(200, {
        "method": r.method,
        "path": r.path,
        "query": r.query_string,
        "body": r.text,
        "content_type": r.header("content-type"),
    })


def exploding_handler(w, r):
    w.write("partial")
    raise RuntimeError("boom")


async def echo_app(scope, receive, send):
    """Minimal ASGI app echoing method, path, query and body."""
    message = await receive()
    body = json.dumps({
        "method": scope["method"],
        "path": scope["path"],
        "query": scope["query_string"].decode(),
        "body": message["body"].decode(),
        "server": list(scope["server"]),
    }).encode()
    await send({
        "type": "http.response.start",
        "status": 202,
        "headers": [(b"content-type", b"application/json"), (b"x-app", b"echo")],
    })
    await send({"type": "http.response.body", "body": body})

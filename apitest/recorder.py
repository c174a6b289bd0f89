"""
apitest recorder - Synthetic requests and recorded responses.

Provides the transport primitives the harness drives:

- :class:`Request`: immutable synthetic request handed to a handler
- :class:`ResponseRecorder`: mutable writer a handler writes its response to
- :class:`CapturedResponse`: snapshot of a recorder after the handler returns
- :func:`asgi_handler`: adapts an ASGI application to the handler signature
"""

from __future__ import annotations

import asyncio
import inspect
import io
import json as stdlib_json
from dataclasses import dataclass
from typing import Any, BinaryIO, Callable, Dict, List, Optional, Tuple, Union
from urllib.parse import urlsplit


# -----------------------------------------------------------------------
# Request
# -----------------------------------------------------------------------

@dataclass(frozen=True)
class Request:
    """
    Synthetic request built fresh for every handler invocation.

    ``route`` may carry a query string (``/widgets?page=2``); ``path`` and
    ``query_string`` split it.
    """

    method: str
    route: str
    body: bytes = b""
    headers: Tuple[Tuple[str, str], ...] = ()

    @classmethod
    def build(
        cls,
        method: str,
        route: str,
        content: Union[str, bytes] = "",
        headers: Optional[Dict[str, str]] = None,
    ) -> "Request":
        body = content.encode("utf-8") if isinstance(content, str) else bytes(content)
        pairs = [(k.lower(), v) for k, v in (headers or {}).items()]
        if body and not any(k == "content-length" for k, _ in pairs):
            pairs.append(("content-length", str(len(body))))
        return cls(method=method, route=route, body=body, headers=tuple(pairs))

    @property
    def path(self) -> str:
        return urlsplit(self.route).path or "/"

    @property
    def query_string(self) -> str:
        return urlsplit(self.route).query

    @property
    def text(self) -> str:
        return self.body.decode("utf-8")

    def json(self) -> Any:
        return stdlib_json.loads(self.body)

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        name = name.lower()
        for key, value in self.headers:
            if key == name:
                return value
        return default


# -----------------------------------------------------------------------
# Response recording
# -----------------------------------------------------------------------

@dataclass
class CapturedResponse:
    """Status, headers and an unread body stream produced by one handler call."""

    status_code: int
    headers: Dict[str, str]
    body: BinaryIO

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "").split(";")[0].strip()

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.headers.get(name.lower(), default)

    def __repr__(self) -> str:
        return f"<CapturedResponse [{self.status_code}] {self.content_type or '-'}>"


class ResponseRecorder:
    """
    Response writer handed to handlers.

    The first :meth:`write_header` call fixes the status code and snapshots
    the headers; writing body bytes without an explicit status implies 200.
    Headers set after that are kept on the writer but not captured.
    """

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        """Discard everything written so far."""
        self.code = 200
        self.headers: Dict[str, str] = {}
        self.wrote_header = False
        self._snapshot: Optional[Dict[str, str]] = None
        self._body = bytearray()

    def set_header(self, name: str, value: str) -> None:
        name = name.lower()
        # Set-Cookie may repeat
        if name == "set-cookie" and name in self.headers:
            self.headers[name] += ", " + value
        else:
            self.headers[name] = value

    def write_header(self, status: int) -> None:
        if self.wrote_header:
            return
        self.code = int(status)
        self.wrote_header = True
        self._snapshot = dict(self.headers)

    def write(self, data: Union[bytes, str]) -> int:
        if isinstance(data, str):
            data = data.encode("utf-8")
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise TypeError(f"response body must be bytes or str, got {type(data).__name__}")
        self.write_header(200)
        self._body.extend(data)
        return len(data)

    def write_json(self, status: int, payload: Any) -> None:
        """Convenience for handlers: JSON-encode *payload* with *status*."""
        self.set_header("content-type", "application/json")
        self.write_header(status)
        self.write(stdlib_json.dumps(payload))

    def result(self) -> CapturedResponse:
        return CapturedResponse(
            status_code=self.code,
            headers=dict(self._snapshot if self._snapshot is not None else self.headers),
            body=io.BytesIO(bytes(self._body)),
        )


HandlerFunc = Callable[[ResponseRecorder, Request], None]


# -----------------------------------------------------------------------
# ASGI adapter
# -----------------------------------------------------------------------

def make_scope(
    method: str = "GET",
    path: str = "/",
    query_string: str = "",
    headers: Optional[List[tuple]] = None,
    scheme: str = "http",
    server: Optional[tuple] = None,
    client: Optional[tuple] = None,
) -> dict:
    """Build a minimal ASGI HTTP scope."""
    raw_headers: list[tuple[bytes, bytes]] = []
    for name, value in headers or []:
        raw_headers.append((
            name.encode("latin-1") if isinstance(name, str) else name,
            value.encode("latin-1") if isinstance(value, str) else value,
        ))

    return {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method,
        "path": path,
        "raw_path": path.encode("utf-8"),
        "query_string": query_string.encode("utf-8"),
        "headers": raw_headers,
        "scheme": scheme,
        "server": server or ("testserver", 80),
        "client": client or ("127.0.0.1", 12345),
        "root_path": "",
    }


def make_receive(body: bytes = b""):
    """Create an ASGI receive callable that yields *body* once, then disconnects."""
    messages = [{"type": "http.request", "body": body, "more_body": False}]
    idx = 0

    async def receive():
        nonlocal idx
        if idx < len(messages):
            msg = messages[idx]
            idx += 1
            return msg
        return {"type": "http.disconnect"}

    return receive


def make_send(writer: ResponseRecorder):
    """Create an ASGI send callable that records events on *writer*."""

    async def send(event: dict):
        if event["type"] == "http.response.start":
            for hdr_name, hdr_val in event.get("headers", []):
                name = hdr_name.decode("latin-1") if isinstance(hdr_name, bytes) else hdr_name
                val = hdr_val.decode("latin-1") if isinstance(hdr_val, bytes) else hdr_val
                writer.set_header(name, val)
            writer.write_header(event["status"])
        elif event["type"] == "http.response.body":
            body = event.get("body", b"")
            if body:
                writer.write(body)

    return send


def is_asgi_app(obj: Any) -> bool:
    """True for coroutine functions and objects with an ``async def __call__``."""
    if inspect.iscoroutinefunction(obj):
        return True
    call = getattr(obj, "__call__", None)
    return call is not None and inspect.iscoroutinefunction(call)


def asgi_handler(app: Any, *, scheme: str = "http", server: Optional[tuple] = None) -> HandlerFunc:
    """
    Adapt an ASGI application to ``handler(writer, request)``.

    The app runs to completion on a private event loop, so the returned
    handler must be called from synchronous code.
    """

    def handler(writer: ResponseRecorder, request: Request) -> None:
        scope = make_scope(
            method=request.method,
            path=request.path,
            query_string=request.query_string,
            headers=list(request.headers),
            scheme=scheme,
            server=server,
        )
        asyncio.run(app(scope, make_receive(request.body), make_send(writer)))

    handler.__name__ = getattr(app, "__name__", type(app).__name__)
    handler.__wrapped__ = app
    return handler


__all__ = [
    "Request",
    "CapturedResponse",
    "ResponseRecorder",
    "HandlerFunc",
    "make_scope",
    "make_receive",
    "make_send",
    "is_asgi_app",
    "asgi_handler",
]

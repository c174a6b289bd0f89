"""
apitest harness - Invoke one handler with one synthetic request.

:func:`make_handler_request` builds a :class:`Request`, calls the handler
once with a fresh :class:`ResponseRecorder`, reads the recorded body, and
checks the status against an accepted set. Both failure modes raise a
:class:`HarnessFault` that still carries the :class:`HandlerResult`, so
the caller can always inspect what the handler produced.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Union

from .config import HarnessConfig, get_config
from .faults import BodyReadFault, UnacceptedStatusFault
from .recorder import (
    CapturedResponse,
    HandlerFunc,
    Request,
    ResponseRecorder,
    asgi_handler,
    is_asgi_app,
)


logger = logging.getLogger("apitest.harness")


@dataclass(frozen=True)
class HandlerReqParams:
    """Route, method and handler shared by repeated calls to one handler."""

    route: str
    method: str
    handler: Any
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass
class HandlerResult:
    """Captured response plus its fully read body."""

    response: CapturedResponse
    body: bytes

    @property
    def status_code(self) -> int:
        return self.response.status_code

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


def resolve_handler(handler: Any, config: Optional[HarnessConfig] = None) -> HandlerFunc:
    """Return *handler* as ``handler(writer, request)``, adapting ASGI apps."""
    if is_asgi_app(handler):
        cfg = config or get_config()
        return asgi_handler(handler, scheme=cfg.scheme, server=cfg.server)
    return handler


def make_handler_request(
    params: HandlerReqParams,
    content: Union[str, bytes],
    accepted_status_codes: Sequence[int] = (),
    *,
    config: Optional[HarnessConfig] = None,
) -> HandlerResult:
    """
    Make a request to the handler in *params* using *content* as the body.

    Raises:
        BodyReadFault: the recorded body could not be read.
        UnacceptedStatusFault: *accepted_status_codes* is non-empty and the
            response status is not in it. An empty sequence skips the check.
    """
    cfg = config or get_config()
    headers = {k.lower(): v for k, v in cfg.default_headers.items()}
    headers.update({k.lower(): v for k, v in params.headers.items()})
    request = Request.build(params.method, params.route, content, headers)
    writer = ResponseRecorder()

    logger.debug("invoking %s %s (%d body bytes)", request.method, request.route, len(request.body))
    _invoke(resolve_handler(params.handler, cfg), writer, request, cfg)

    response = writer.result()
    try:
        body = response.body.read()
    except (OSError, ValueError) as exc:
        raise BodyReadFault(params.route, str(exc), result=HandlerResult(response, b"")) from exc
    finally:
        response.body.close()

    result = HandlerResult(response, body)
    logger.debug("%s %s -> %d", request.method, request.route, response.status_code)

    if accepted_status_codes and response.status_code not in set(accepted_status_codes):
        raise UnacceptedStatusFault(
            params.route,
            response.status_code,
            result.text,
            list(accepted_status_codes),
            result=result,
        )

    return result


def _invoke(handler: HandlerFunc, writer: ResponseRecorder, request: Request, cfg: HarnessConfig) -> None:
    if cfg.raise_handler_exceptions:
        handler(writer, request)
        return
    try:
        handler(writer, request)
    except Exception:
        logger.error("handler for %s %s raised", request.method, request.route, exc_info=True)
        writer.reset()
        writer.set_header("content-type", "text/plain; charset=utf-8")
        writer.write_header(500)
        writer.write("Internal Server Error")


__all__ = ["HandlerReqParams", "HandlerResult", "resolve_handler", "make_handler_request"]

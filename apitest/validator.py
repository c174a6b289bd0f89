"""
apitest validator - Check a handler result against a case's expectations.

Every check runs and records on the context; nothing raises. Decode
problems end only the branch that needed the decoded body.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Mapping

from .assertions import AssertFunc
from .context import CaseContext
from .faults import ErrorShapeDecodeFault, FieldMapDecodeFault, MissingFieldFault
from .harness import HandlerResult
from .values import decode_object

if TYPE_CHECKING:
    from .suite import HandlerCase


logger = logging.getLogger("apitest.validator")


@dataclass(frozen=True)
class ErrorBody:
    """Standard error response: ``{"code": int, "message": str}``."""

    code: int = 0
    message: str = ""

    @classmethod
    def decode(cls, body: bytes) -> "ErrorBody":
        """
        Decode *body*; absent members keep their zero values.

        Raises :class:`ErrorShapeDecodeFault` for invalid JSON, a non-object
        body, or members of the wrong type.
        """
        try:
            data = json.loads(body)
        except ValueError as exc:
            raise ErrorShapeDecodeFault(str(exc)) from exc
        if not isinstance(data, dict):
            raise ErrorShapeDecodeFault(f"expected a JSON object, got {type(data).__name__}")

        code = data.get("code", 0)
        if isinstance(code, bool) or not isinstance(code, int):
            raise ErrorShapeDecodeFault(f"'code' must be an integer, got {code!r}")
        message = data.get("message", "")
        if not isinstance(message, str):
            raise ErrorShapeDecodeFault(f"'message' must be a string, got {message!r}")
        return cls(code=code, message=message)


def validate_response(ctx: CaseContext, result: HandlerResult, case: "HandlerCase") -> None:
    check_status(ctx, result, case.want_status_code)
    if case.want_content:
        check_content(ctx, result, case.want_content)
    if case.want_err or case.want_err_message:
        check_error_shape(ctx, result, case)
    if case.assert_content_fields:
        check_fields(ctx, result, case.assert_content_fields)


def check_status(ctx: CaseContext, result: HandlerResult, want: int) -> bool:
    return ctx.equal(want, result.status_code, "unexpected status code")


def check_content(ctx: CaseContext, result: HandlerResult, want: str) -> bool:
    return ctx.equal(want, result.text, "unexpected response body")


def check_error_shape(ctx: CaseContext, result: HandlerResult, case: "HandlerCase") -> None:
    try:
        err = ErrorBody.decode(result.body)
    except ErrorShapeDecodeFault as fault:
        ctx.fault(fault)
        return

    ctx.equal(case.want_status_code, err.code, "error code does not match status")
    if case.want_err:
        ctx.not_empty(err.message, "error message is empty")
    if case.want_err_message:
        ctx.contains(err.message, case.want_err_message)


def check_fields(ctx: CaseContext, result: HandlerResult, assertions: Mapping[str, AssertFunc]) -> None:
    try:
        fields = decode_object(result.body)
    except ValueError as exc:
        ctx.fault(FieldMapDecodeFault(str(exc)))
        return

    for name, assert_func in assertions.items():
        value = fields.get(name)
        if value is None:
            ctx.fault(MissingFieldFault(name))
            continue
        logger.debug("asserting field %r with %r", name, assert_func)
        assert_func(ctx, value)


__all__ = [
    "ErrorBody",
    "validate_response",
    "check_status",
    "check_content",
    "check_error_shape",
    "check_fields",
]

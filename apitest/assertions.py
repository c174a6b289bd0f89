"""
apitest assertions - Field assertion functions.

An assertion function receives the case context and one decoded response
field, records its own failure on the context, and returns whether it
passed. Any callable with that shape works; :class:`IsEqual` and
:class:`NotEmpty` are the two built-ins.

Usage::

    HandlerCase(
        name="create widget",
        content='{"name": "x"}',
        want_status_code=201,
        assert_content_fields={
            "id": NotEmpty(),
            "name": IsEqual("x"),
        },
    )
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from .context import CaseContext
from .values import JsonValue


@runtime_checkable
class AssertFunc(Protocol):
    def __call__(self, ctx: CaseContext, value: JsonValue) -> bool: ...


class IsEqual:
    """Passes when the field equals *expected* (kinds must match: ``1`` is not ``true``)."""

    __slots__ = ("expected",)

    def __init__(self, expected: Any):
        self.expected = JsonValue.of(expected)

    def __call__(self, ctx: CaseContext, value: JsonValue) -> bool:
        return ctx.equal(self.expected, JsonValue.of(value))

    def __repr__(self) -> str:
        return f"IsEqual({self.expected.raw!r})"


class NotEmpty:
    """Passes unless the field is null, "", 0, false, [] or {}."""

    __slots__ = ()

    def __call__(self, ctx: CaseContext, value: JsonValue) -> bool:
        return ctx.not_empty(JsonValue.of(value))

    def __repr__(self) -> str:
        return "NotEmpty()"


def assert_is_equal(expected: Any) -> AssertFunc:
    return IsEqual(expected)


assert_not_empty: AssertFunc = NotEmpty()


__all__ = ["AssertFunc", "IsEqual", "NotEmpty", "assert_is_equal", "assert_not_empty"]

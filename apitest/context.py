"""
apitest context - Per-case failure collection.

A :class:`CaseContext` plays the role of the test handle every hook and
assertion function receives. Checks record :class:`Failure` entries instead
of raising, so one run reports every violated expectation; the runner turns
the collected failures into a single :class:`CaseFailed` at the end.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Optional

from .faults import Fault, FaultDomain


logger = logging.getLogger("apitest.context")


class FailureKind(str, Enum):
    HARNESS = "harness"
    DECODE = "decode"
    ASSERTION = "assertion"
    CONFIGURATION = "configuration"


_KIND_BY_DOMAIN = {
    FaultDomain.HARNESS: FailureKind.HARNESS,
    FaultDomain.DECODE: FailureKind.DECODE,
    FaultDomain.CONFIG: FailureKind.CONFIGURATION,
}


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    message: str
    code: Optional[str] = None

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class CaseFailed(AssertionError):
    """Raised once a case (or a whole run) finishes with recorded failures."""

    def __init__(self, name: str, failures: List[Failure]):
        self.name = name
        self.failures = list(failures)
        lines = "\n".join(f"  - {f}" for f in self.failures)
        super().__init__(f"{name}: {len(self.failures)} failure(s)\n{lines}")


class CaseContext:
    """
    Failure collector for one case.

    The ``equal``/``not_empty``/``contains`` helpers mirror boolean-or-failure
    assertion primitives: they return whether the check passed and record a
    failure when it did not.
    """

    def __init__(self, name: str = "", *, preview_limit: int = 200):
        self.name = name
        self.preview_limit = preview_limit
        self.failures: List[Failure] = []

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def error(self, message: str, kind: FailureKind = FailureKind.ASSERTION, code: Optional[str] = None) -> None:
        logger.info("case %r failed: %s", self.name, message)
        self.failures.append(Failure(kind=kind, message=message, code=code))

    def fault(self, fault: Fault) -> None:
        """Record a :class:`Fault` under the kind matching its domain."""
        kind = _KIND_BY_DOMAIN.get(fault.domain, FailureKind.ASSERTION)
        self.error(fault.message, kind=kind, code=fault.code)

    @property
    def failed(self) -> bool:
        return bool(self.failures)

    def failures_of(self, kind: FailureKind) -> List[Failure]:
        return [f for f in self.failures if f.kind is kind]

    def raise_for_failures(self) -> None:
        if self.failures:
            raise CaseFailed(self.name, self.failures)

    # ------------------------------------------------------------------
    # Assertion primitives
    # ------------------------------------------------------------------

    def equal(self, expected: Any, actual: Any, msg: str = "") -> bool:
        if expected == actual:
            return True
        self.error(_join(f"not equal:\nexpected: {self.preview(expected)}\nactual:   {self.preview(actual)}", msg))
        return False

    def not_empty(self, value: Any, msg: str = "") -> bool:
        if not _is_empty(value):
            return True
        self.error(_join(f"should NOT be empty, but was {self.preview(value)}", msg))
        return False

    def contains(self, container: str, item: str, msg: str = "") -> bool:
        if item in container:
            return True
        self.error(_join(f"{self.preview(container)} does not contain {item!r}", msg))
        return False

    def preview(self, value: Any) -> str:
        text = repr(value)
        if len(text) > self.preview_limit:
            return text[: self.preview_limit] + "..."
        return text

    def __repr__(self) -> str:
        return f"<CaseContext {self.name!r} failures={len(self.failures)}>"


def _is_empty(value: Any) -> bool:
    if hasattr(value, "is_empty"):
        return value.is_empty()
    if value is None or value is False:
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0
    try:
        return len(value) == 0
    except TypeError:
        return False


def _join(message: str, msg: str) -> str:
    return f"{message}\n{msg}" if msg else message


def collect(contexts: Iterable[CaseContext]) -> List[Failure]:
    """Flatten failures across contexts, prefixing each with its case name."""
    merged: List[Failure] = []
    for ctx in contexts:
        for failure in ctx.failures:
            merged.append(Failure(failure.kind, f"[{ctx.name}] {failure.message}", failure.code))
    return merged


__all__ = ["FailureKind", "Failure", "CaseFailed", "CaseContext", "collect"]

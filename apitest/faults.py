"""
apitest faults - Structured fault types raised by the harness.

Defines:
- FaultDomain (harness, decode, config)
- Fault base class (code, message, domain, metadata)
- Concrete faults for each failure the harness can report
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .harness import HandlerResult


# ============================================================================
# Domains
# ============================================================================

class FaultDomain:
    """
    Fault domains (taxonomy).

    Identifies the stage of a case run where a fault occurred.
    """

    def __init__(self, name: str, description: str = ""):
        self.name = name
        self.value = name
        self.description = description

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"FaultDomain(name='{self.name}')"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, FaultDomain):
            return self.name == other.name
        return str(self) == str(other)

    def __hash__(self) -> int:
        return hash(self.name)


FaultDomain.HARNESS = FaultDomain("harness", "Request invocation and capture")
FaultDomain.DECODE = FaultDomain("decode", "Response body decoding")
FaultDomain.CONFIG = FaultDomain("config", "Test configuration errors")


# ============================================================================
# Fault - Base Class
# ============================================================================

class Fault(Exception):
    """
    Base fault class - structured, typed fault object.

    Attributes:
        code: Stable machine-readable identifier (e.g. "UNACCEPTED_STATUS")
        message: Human-readable summary
        domain: Fault domain
        metadata: Additional context data
    """

    def __init__(
        self,
        code: str | None = None,
        message: str | None = None,
        *,
        domain: FaultDomain | None = None,
        metadata: Optional[dict[str, Any]] = None,
    ):
        self.code = code if code is not None else getattr(self, "code", None)
        self.message = message if message is not None else getattr(self, "message", None)
        self.domain = domain if domain is not None else getattr(self, "domain", None)

        if self.code is None or self.message is None or self.domain is None:
            raise TypeError(f"{self.__class__.__name__} missing required code, message, or domain")

        super().__init__(self.message)
        self.metadata = metadata or {}

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, domain={self.domain.value})"

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "domain": self.domain.value,
            "metadata": self.metadata,
        }


# ============================================================================
# HARNESS Faults
# ============================================================================

class HarnessFault(Fault):
    """
    Base class for faults raised while invoking a handler.

    Carries the :class:`HandlerResult` produced so far, so callers can
    still inspect the actual response when the invocation is rejected.
    """

    def __init__(
        self,
        code: str,
        message: str,
        *,
        result: Optional["HandlerResult"] = None,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.HARNESS,
            metadata=metadata,
        )
        self.result = result


class BodyReadFault(HarnessFault):
    """The recorded response body could not be read."""

    def __init__(self, route: str, reason: str, *, result: Optional["HandlerResult"] = None):
        super().__init__(
            code="BODY_READ_FAILED",
            message=f"reading response body from {route} failed: {reason}",
            result=result,
            metadata={"route": route, "reason": reason},
        )


class UnacceptedStatusFault(HarnessFault):
    """The handler answered with a status outside the accepted set."""

    def __init__(
        self,
        route: str,
        status: int,
        body: str,
        accepted: list[int],
        *,
        result: Optional["HandlerResult"] = None,
    ):
        super().__init__(
            code="UNACCEPTED_STATUS",
            message=f"handler request to {route} resulted in an unacceptable {status} status:\n{body}",
            result=result,
            metadata={"route": route, "status": status, "body": body, "accepted": accepted},
        )
        self.route = route
        self.status = status
        self.body = body


# ============================================================================
# DECODE Faults
# ============================================================================

class DecodeFault(Fault):
    """Base class for response bodies that do not have the expected shape."""

    def __init__(self, code: str, message: str, *, metadata: Optional[dict[str, Any]] = None):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.DECODE,
            metadata=metadata,
        )


class ErrorShapeDecodeFault(DecodeFault):
    """Body is not a ``{"code": int, "message": str}`` error object."""

    def __init__(self, reason: str):
        super().__init__(
            code="ERROR_SHAPE_DECODE",
            message=f"response body is not an error object: {reason}",
            metadata={"reason": reason},
        )


class FieldMapDecodeFault(DecodeFault):
    """Body is not a JSON object."""

    def __init__(self, reason: str):
        super().__init__(
            code="FIELD_MAP_DECODE",
            message=f"response body is not a JSON object: {reason}",
            metadata={"reason": reason},
        )


# ============================================================================
# CONFIG Faults
# ============================================================================

class ConfigFault(Fault):
    """Base class for mistakes in how a suite, case, or config is declared."""

    def __init__(self, code: str, message: str, *, metadata: Optional[dict[str, Any]] = None):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.CONFIG,
            metadata=metadata,
        )


class MissingFieldFault(ConfigFault):
    """An assertion was configured for a field the response does not have."""

    def __init__(self, field: str):
        super().__init__(
            code="FIELD_MISSING",
            message=(
                f"the key '{field}' does not exist in the response "
                f"but an assert function for it was specified"
            ),
            metadata={"field": field},
        )


class DuplicateCaseFault(ConfigFault):
    """Two cases in one run share a name."""

    def __init__(self, name: str):
        super().__init__(
            code="DUPLICATE_CASE",
            message=f"case name '{name}' is used more than once",
            metadata={"name": name},
        )


class ConfigInvalidFault(ConfigFault):
    """Configuration value is invalid."""

    def __init__(self, key: str, reason: str):
        super().__init__(
            code="CONFIG_INVALID",
            message=f"Configuration key '{key}' is invalid: {reason}",
            metadata={"key": key, "reason": reason},
        )


__all__ = [
    "FaultDomain",
    "Fault",
    "HarnessFault",
    "BodyReadFault",
    "UnacceptedStatusFault",
    "DecodeFault",
    "ErrorShapeDecodeFault",
    "FieldMapDecodeFault",
    "ConfigFault",
    "MissingFieldFault",
    "DuplicateCaseFault",
    "ConfigInvalidFault",
]

"""
apitest values - Closed variant type for decoded JSON values.

Response fields handed to assertion functions are wrapped in
:class:`JsonValue` so that checks dispatch on an explicit :class:`JsonKind`
instead of probing untyped Python objects (``True == 1`` and friends).
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List


class JsonKind(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"
    NULL = "null"


def kind_of(obj: Any) -> JsonKind:
    """Classify a decoded Python object. Raises ``TypeError`` for non-JSON types."""
    if obj is None:
        return JsonKind.NULL
    # bool before int: bool is an int subclass
    if isinstance(obj, bool):
        return JsonKind.BOOLEAN
    if isinstance(obj, (int, float)):
        return JsonKind.NUMBER
    if isinstance(obj, str):
        return JsonKind.STRING
    if isinstance(obj, (list, tuple)):
        return JsonKind.ARRAY
    if isinstance(obj, dict):
        return JsonKind.OBJECT
    raise TypeError(f"{type(obj).__name__} is not a JSON value")


@dataclass(frozen=True, eq=False)
class JsonValue:
    """
    One decoded JSON value tagged with its kind.

    ``raw`` holds the plain Python object (``dict``/``list`` for containers);
    use :meth:`items` and :meth:`elements` to walk containers as
    :class:`JsonValue` again.
    """

    kind: JsonKind
    raw: Any

    @classmethod
    def of(cls, obj: Any) -> "JsonValue":
        if isinstance(obj, JsonValue):
            return obj
        return cls(kind_of(obj), obj)

    @classmethod
    def loads(cls, text: str | bytes) -> "JsonValue":
        return cls.of(json.loads(text))

    # -- Kind predicates --------------------------------------------------

    @property
    def is_null(self) -> bool:
        return self.kind is JsonKind.NULL

    def is_empty(self) -> bool:
        """Zero value of its kind: null, "", 0, false, [] or {}."""
        if self.kind is JsonKind.NULL:
            return True
        if self.kind is JsonKind.BOOLEAN:
            return self.raw is False
        if self.kind is JsonKind.NUMBER:
            return self.raw == 0
        return len(self.raw) == 0

    # -- Container access -------------------------------------------------

    def items(self) -> Iterator[tuple[str, "JsonValue"]]:
        if self.kind is not JsonKind.OBJECT:
            raise TypeError(f"cannot iterate members of a JSON {self.kind.value}")
        for key, value in self.raw.items():
            yield key, JsonValue.of(value)

    def elements(self) -> List["JsonValue"]:
        if self.kind is not JsonKind.ARRAY:
            raise TypeError(f"cannot iterate elements of a JSON {self.kind.value}")
        return [JsonValue.of(v) for v in self.raw]

    def __getitem__(self, key: str) -> "JsonValue":
        if self.kind is not JsonKind.OBJECT:
            raise TypeError(f"cannot index a JSON {self.kind.value} by key")
        return JsonValue.of(self.raw[key])

    def __contains__(self, key: str) -> bool:
        return self.kind is JsonKind.OBJECT and key in self.raw

    # -- Comparison -------------------------------------------------------

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, JsonValue):
            try:
                other = JsonValue.of(other)
            except TypeError:
                return NotImplemented
        return _deep_equal(self.raw, other.raw)

    def __hash__(self) -> int:
        return hash((self.kind, json.dumps(self.raw, sort_keys=True, default=str)))

    def __repr__(self) -> str:
        return f"JsonValue({self.kind.value}, {self.raw!r})"


def _deep_equal(a: Any, b: Any) -> bool:
    ka, kb = kind_of(a), kind_of(b)
    if ka is not kb:
        return False
    if ka is JsonKind.ARRAY:
        return len(a) == len(b) and all(_deep_equal(x, y) for x, y in zip(a, b))
    if ka is JsonKind.OBJECT:
        return a.keys() == b.keys() and all(_deep_equal(a[k], b[k]) for k in a)
    return a == b


def decode_object(body: str | bytes) -> Dict[str, JsonValue]:
    """
    Decode *body* as a JSON object into a field map.

    Raises ``ValueError`` when the body is not JSON or not an object.
    """
    data = json.loads(body)
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got a JSON {kind_of(data).value}")
    return {key: JsonValue.of(value) for key, value in data.items()}


__all__ = ["JsonKind", "JsonValue", "kind_of", "decode_object"]

"""Variant codec: tagged wire values <-> native Python values.

A variant travels as ``{"t": <tag>, "v": <value>}``. Tags follow the D-Bus
type signatures used by the installer object.
"""

from dataclasses import dataclass
from typing import Any


STRING = "s"
BOOLEAN = "b"
INT32 = "i"
INT64 = "x"
DOUBLE = "d"
STRING_ARRAY = "as"
DICT = "a{sv}"

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1


@dataclass(frozen=True)
class Variant:
    """Generic (type tag, value) pair."""

    tag: str
    value: Any

    def to_wire(self) -> dict:
        return {"t": self.tag, "v": self.value}

    @classmethod
    def from_wire(cls, data: dict) -> "Variant":
        return cls(tag=data["t"], value=data["v"])


def encode(value: Any) -> Variant:
    """Encode a native value.

    Raises:
        TypeError: If the value has no variant representation
    """
    # bool is a subclass of int, check it first
    if isinstance(value, bool):
        return Variant(BOOLEAN, value)
    if isinstance(value, str):
        return Variant(STRING, value)
    if isinstance(value, int):
        tag = INT32 if INT32_MIN <= value <= INT32_MAX else INT64
        return Variant(tag, value)
    if isinstance(value, float):
        return Variant(DOUBLE, value)
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return Variant(STRING_ARRAY, list(value))
    if isinstance(value, dict) and all(isinstance(k, str) for k in value):
        return Variant(DICT, {k: encode(v).to_wire() for k, v in value.items()})
    raise TypeError(f"Cannot encode {type(value).__name__} as a variant: {value!r}")


def decode(tag: str, value: Any) -> Any:
    """Decode a wire value according to its tag.

    Unknown tags return the raw wire value unchanged.
    """
    if tag == STRING:
        return str(value)
    if tag == BOOLEAN:
        return bool(value)
    if tag in (INT32, INT64):
        return int(value)
    if tag == DOUBLE:
        return float(value)
    if tag == STRING_ARRAY:
        return [str(v) for v in value]
    if tag == DICT:
        return {k: decode_wire(v) for k, v in value.items()}
    return value


def decode_wire(data: Any) -> Any:
    """Decode a ``{"t": ..., "v": ...}`` mapping; anything else passes through."""
    if isinstance(data, dict) and set(data) == {"t", "v"}:
        return decode(data["t"], data["v"])
    return data

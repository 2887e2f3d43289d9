"""Value tree for decoded YAML/JSON documents."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1
UINT64_MAX = (1 << 64) - 1


@dataclass
class VBool:
    value: bool

    def __str__(self) -> str:
        return str(self.value).lower()


@dataclass
class VInt:
    """Signed integer within the 64-bit range."""

    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass
class VUint:
    """Unsigned integer above the signed 64-bit range."""

    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass
class VFloat:
    value: float

    def __str__(self) -> str:
        return repr(self.value)


@dataclass
class VText:
    value: str

    def __str__(self) -> str:
        return self.value


@dataclass
class VList:
    items: list["Value"] = field(default_factory=list)

    def __str__(self) -> str:
        return "[" + ", ".join(str(v) for v in self.items) + "]"


@dataclass
class VMap:
    """Ordered mapping; keys are arbitrary values until normalized."""

    entries: list[tuple["Value", "Value"]] = field(default_factory=list)

    def __str__(self) -> str:
        return "{" + ", ".join(f"{k}: {v}" for k, v in self.entries) + "}"


@dataclass
class VTagged:
    """A scalar that carried a tag outside the core schema (``!!binary``, ``!foo``)."""

    tag: str
    value: "Value"

    def __str__(self) -> str:
        return f"{self.tag} {self.value}"


class _Null:
    """Singleton for YAML/JSON null."""

    _instance: "_Null | None" = None

    def __new__(cls) -> "_Null":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "Null"

    def __bool__(self) -> bool:
        return False

    def __str__(self) -> str:
        return "null"


Null = _Null()

Value = Union[VBool, VInt, VUint, VFloat, VText, VList, VMap, VTagged, _Null]

SCALAR_TYPES = (VBool, VInt, VUint, VFloat, VText, _Null)


# ---------------------------------------------------------------------------
# Numeric helpers
# ---------------------------------------------------------------------------

def integer_value(n: int) -> Value:
    """Wrap a Python int in the narrowest 64-bit variant, or a float beyond it."""
    if INT64_MIN <= n <= INT64_MAX:
        return VInt(n)
    if 0 <= n <= UINT64_MAX:
        return VUint(n)
    return VFloat(float(n))


def downcast_float(f: float) -> Value:
    """Downcast *f* to an integer variant when no information is lost.

    Signed 64-bit is tried first, then unsigned 64-bit; anything else
    (fractions, infinities, NaN, out of range) stays a float.
    """
    if f != f or f in (float("inf"), float("-inf")) or not f.is_integer():
        return VFloat(f)
    n = int(f)
    if INT64_MIN <= n <= INT64_MAX or 0 <= n <= UINT64_MAX:
        return integer_value(n)
    return VFloat(f)


# ---------------------------------------------------------------------------
# Python <-> Value
# ---------------------------------------------------------------------------

def from_python(obj: Any) -> Value:
    """Build a value tree from plain Python data (as produced by ``json``)."""
    if obj is None:
        return Null
    if isinstance(obj, bool):
        return VBool(obj)
    if isinstance(obj, int):
        return integer_value(obj)
    if isinstance(obj, float):
        return downcast_float(obj)
    if isinstance(obj, str):
        return VText(obj)
    if isinstance(obj, (list, tuple)):
        return VList([from_python(v) for v in obj])
    if isinstance(obj, dict):
        return VMap([(from_python(k), from_python(v)) for k, v in obj.items()])
    raise TypeError(f"cannot convert {type(obj).__name__} to a YAML value")


def to_python(value: Value) -> Any:
    """Lower a JSON-compatible value tree to plain Python data.

    Mapping keys must already be normalized to ``VText``.
    """
    if value is Null:
        return None
    if isinstance(value, (VBool, VInt, VUint, VFloat, VText)):
        return value.value
    if isinstance(value, VList):
        return [to_python(v) for v in value.items]
    if isinstance(value, VMap):
        out: dict[str, Any] = {}
        for k, v in value.entries:
            if not isinstance(k, VText):
                raise TypeError(f"mapping key {k!r} is not normalized")
            out[k.value] = to_python(v)
        return out
    if isinstance(value, VTagged):
        return to_python(value.value)
    raise TypeError(f"unknown value {value!r}")

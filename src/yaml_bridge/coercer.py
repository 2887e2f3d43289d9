"""Type coercion: turn a YAML value tree into a JSON-compatible one.

When the destination type is known, numbers and booleans that will land in
string-typed fields are rewritten as text, so the record decoder accepts
them. Mapping keys are normalized to strings on the way.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .keys import format_float, normalize_key
from .lookup import child_descriptor
from .strict import Diagnostics, join_path
from .typedef import FieldDescriptor
from .values import Value, VBool, VFloat, VInt, VList, VMap, VTagged, VText, VUint


@dataclass(frozen=True)
class ConversionContext:
    """Expected destination shape at one position of the tree."""

    descriptor: FieldDescriptor | None = None
    path: str = ""
    diagnostics: Diagnostics = field(default_factory=Diagnostics, compare=False)

    def child(self, key: str | int, descriptor: FieldDescriptor | None) -> "ConversionContext":
        return ConversionContext(descriptor, join_path(self.path, key), self.diagnostics)


def coerce(value: Value, tp: Any = None, diagnostics: Diagnostics | None = None) -> Value:
    """Convert *value* for the destination type *tp* (``None``: no schema)."""
    descriptor = FieldDescriptor.for_type(tp) if tp is not None else None
    return convert(value, ConversionContext(descriptor, "", diagnostics or Diagnostics()))


def convert(value: Value, ctx: ConversionContext) -> Value:
    desc = ctx.descriptor

    if isinstance(value, VTagged):
        return convert(value.value, ctx)

    if isinstance(value, VMap):
        return _convert_map(value, ctx)

    if isinstance(value, VList):
        elem = desc.element_descriptor if desc is not None and desc.is_sequence_typed else None
        return VList([convert(v, ctx.child(i, elem)) for i, v in enumerate(value.items)])

    if desc is not None and desc.is_string_typed:
        return scalar_to_text(value)

    return value


def _convert_map(value: VMap, ctx: ConversionContext) -> VMap:
    out: dict[str, Value] = {}
    for raw_key, item in value.entries:
        key = normalize_key(raw_key)
        if key in out:
            ctx.diagnostics.duplicate_key(key, ctx.path)
        out[key] = convert(item, ctx.child(key, child_descriptor(key, ctx.descriptor)))
    return VMap([(VText(k), v) for k, v in out.items()])


def scalar_to_text(value: Value) -> Value:
    """Canonical text for a numeric or boolean scalar; others unchanged.

    Floats keep full double precision here, unlike keys.
    """
    if isinstance(value, VBool):
        return VText("true" if value.value else "false")
    if isinstance(value, (VInt, VUint)):
        return VText(str(value.value))
    if isinstance(value, VFloat):
        return VText(format_float(value.value, 64))
    return value

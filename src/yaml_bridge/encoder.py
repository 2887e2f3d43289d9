"""Record encoder: Python objects and dataclass instances to JSON.

Field tags are honoured the way the decoder reads them: renames,
``inline`` promotion, ``omitempty`` and ``-``.
"""

from __future__ import annotations

import base64
import dataclasses
import json
from collections.abc import Iterator, Mapping
from enum import Enum
from typing import Any

from .errors import MalformedInputError, UnsupportedKeyTypeError
from .keys import format_json_number
from .typedef import record_fields
from .values import Value, VFloat, VList, VMap, VTagged, VText, to_python

_ENCODER = json.JSONEncoder(separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def iter_json(data: Any) -> Iterator[str]:
    """Compact JSON text of plain *data*, piece by piece."""
    return _ENCODER.iterencode(data)


def iter_value_json(value: Value) -> Iterator[str]:
    """Compact JSON text of a normalized value tree, piece by piece.

    Floats are written by ``format_json_number``; NaN and infinities raise
    ``ValueError``.
    """
    if isinstance(value, VTagged):
        yield from iter_value_json(value.value)
    elif isinstance(value, VMap):
        yield "{"
        for i, (k, v) in enumerate(value.entries):
            if not isinstance(k, VText):
                raise TypeError(f"mapping key {k!r} is not normalized")
            yield ("," if i else "") + _ENCODER.encode(k.value) + ":"
            yield from iter_value_json(v)
        yield "}"
    elif isinstance(value, VList):
        yield "["
        for i, v in enumerate(value.items):
            if i:
                yield ","
            yield from iter_value_json(v)
        yield "]"
    elif isinstance(value, VFloat):
        yield format_json_number(value.value)
    else:
        yield _ENCODER.encode(to_python(value))


def encode_chunks(obj: Any) -> Iterator[str]:
    """Compact JSON text of *obj*, piece by piece."""
    yield from iter_json(to_json_data(obj))


def encode_json(obj: Any) -> bytes:
    """Encode *obj* as compact UTF-8 JSON.

    Raises ``MalformedInputError`` for values JSON cannot carry (NaN,
    infinities, unsupported types).
    """
    try:
        return "".join(encode_chunks(obj)).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise MalformedInputError(f"json: unsupported value: {exc}") from exc


def to_json_data(obj: Any) -> Any:
    """Lower *obj* to the plain data ``json`` understands."""
    if isinstance(obj, Enum):
        return to_json_data(obj.value)
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return _encode_record(obj)
    if isinstance(obj, Mapping):
        return {_encode_key(k): to_json_data(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set, frozenset)):
        return [to_json_data(v) for v in obj]
    if isinstance(obj, (bytes, bytearray)):
        return base64.b64encode(obj).decode("ascii")
    raise TypeError(f"cannot encode {type(obj).__name__}")


def _encode_key(key: Any) -> str:
    if isinstance(key, Enum):
        key = key.value
    if isinstance(key, str):
        return key
    if isinstance(key, int) and not isinstance(key, bool):
        return str(key)
    raise UnsupportedKeyTypeError(f"json: unsupported map key of type {type(key).__name__}")


def _encode_record(obj: Any) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for desc in record_fields(type(obj)):
        value = obj
        for attr in desc.attr_path:
            if value is None:
                break
            value = getattr(value, attr)
        else:
            if desc.omitempty and is_empty(value):
                continue
            out[desc.name] = to_json_data(value)
    return out


def is_empty(value: Any) -> bool:
    """Zero test used by ``omitempty``: None, false, 0, or an empty container."""
    if value is None or value is False:
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0
    if isinstance(value, (str, bytes, bytearray, list, tuple, set, frozenset, Mapping)):
        return len(value) == 0
    return False

"""Record decoder: JSON documents into dataclass instances.

Key matching is exact and case-sensitive against the external field names
of ``typedef.record_fields``. Keys that match no field are dropped, or
reported through ``Diagnostics.unknown_field`` in strict mode.
"""

from __future__ import annotations

import base64
import binascii
import dataclasses
import json
from enum import Enum
from typing import Any

from .errors import IncompatibleShapeError, MalformedInputError
from .strict import Diagnostics, join_path
from .typedef import Kind, TypeInfo, field_index, record_hints, type_info
from .values import from_python, to_python


def decode_json(data: bytes | str, tp: Any = None, diagnostics: Diagnostics | None = None) -> Any:
    """Decode a JSON document into an instance of *tp* (``None``: generic data)."""
    try:
        obj = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedInputError(str(exc)) from exc
    return decode_value(obj, tp, "", diagnostics or Diagnostics())


def decode_value(obj: Any, tp: Any, path: str, diagnostics: Diagnostics) -> Any:
    info = type_info(tp)

    if obj is None:
        return None if info.optional or info.kind is Kind.ANY else zero_value(info)

    if info.kind is Kind.ANY:
        return to_python(from_python(obj))

    if info.kind is Kind.BOOL:
        if not isinstance(obj, bool):
            raise _mismatch(obj, tp, path)
        return obj

    if info.kind is Kind.STRING:
        if not isinstance(obj, str):
            raise _mismatch(obj, tp, path)
        return _construct(info.py_type, obj, tp, path)

    if info.kind is Kind.INT:
        if isinstance(obj, float) and obj.is_integer():
            obj = int(obj)
        if isinstance(obj, bool) or not isinstance(obj, int):
            raise _mismatch(obj, tp, path)
        return _construct(info.py_type, obj, tp, path)

    if info.kind is Kind.FLOAT:
        if isinstance(obj, bool) or not isinstance(obj, (int, float)):
            raise _mismatch(obj, tp, path)
        return info.py_type(obj)

    if info.kind is Kind.BYTES:
        if not isinstance(obj, str):
            raise _mismatch(obj, tp, path)
        try:
            return info.py_type(base64.b64decode(obj, validate=True))
        except binascii.Error as exc:
            raise MalformedInputError(f"illegal base64 data in {path or 'value'}: {exc}") from exc

    if info.kind is Kind.SEQUENCE:
        if not isinstance(obj, list):
            raise _mismatch(obj, tp, path)
        items = [decode_value(v, info.element, join_path(path, i), diagnostics) for i, v in enumerate(obj)]
        return _collection(info.py_type, items)

    if info.kind is Kind.MAP:
        if not isinstance(obj, dict):
            raise _mismatch(obj, tp, path)
        return {
            _map_key(k, info.key, path): decode_value(v, info.element, join_path(path, k), diagnostics)
            for k, v in obj.items()
        }

    if not isinstance(obj, dict):
        raise _mismatch(obj, tp, path)
    return _decode_record(info.py_type, obj, path, diagnostics)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

def _decode_record(cls: type, obj: dict, path: str, diagnostics: Diagnostics) -> Any:
    index = field_index(cls)
    record = new_record(cls)
    for key, item in obj.items():
        desc = index.get(key)
        if desc is None:
            diagnostics.unknown_field(join_path(path, key))
            continue
        child_path = join_path(path, key)
        # null into a non-optional field keeps its default
        if item is None and not desc.info.optional and desc.info.kind is not Kind.ANY:
            continue
        _assign(record, desc.attr_path, decode_value(item, desc.type_, child_path, diagnostics))
    return record


def _assign(record: Any, attr_path: tuple[str, ...], value: Any) -> None:
    target = record
    for attr in attr_path[:-1]:
        child = getattr(target, attr)
        if child is None:
            child = new_record(type_info(record_hints(type(target))[attr]).py_type)
            setattr(target, attr, child)
        target = child
    setattr(target, attr_path[-1], value)


def new_record(cls: type) -> Any:
    """Instantiate *cls* with defaults, zero values for required fields."""
    hints = record_hints(cls)
    kwargs = {}
    for f in dataclasses.fields(cls):
        if not f.init:
            continue
        if f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
            kwargs[f.name] = zero_value(type_info(hints.get(f.name, f.type)))
    return cls(**kwargs)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def zero_value(info: TypeInfo) -> Any:
    if info.optional:
        return None
    kind = info.kind
    if kind is Kind.STRING:
        return "" if not issubclass(info.py_type, Enum) else None
    if kind is Kind.BOOL:
        return False
    if kind is Kind.INT:
        return 0 if not issubclass(info.py_type, Enum) else None
    if kind is Kind.FLOAT:
        return 0.0
    if kind is Kind.BYTES:
        return info.py_type()
    if kind is Kind.MAP:
        return {}
    if kind is Kind.SEQUENCE:
        return _collection(info.py_type, [])
    if kind is Kind.RECORD:
        return new_record(info.py_type)
    return None


def _construct(cls: type, value: Any, tp: Any, path: str) -> Any:
    if cls in (str, int):
        return value
    try:
        return cls(value)
    except (ValueError, TypeError) as exc:
        raise IncompatibleShapeError(
            f"json: cannot unmarshal {value!r} into {_where(path)}of type {_type_name(tp)}"
        ) from exc


def _collection(cls: Any, items: list) -> Any:
    if isinstance(cls, type) and issubclass(cls, (tuple, set, frozenset)):
        return cls(items)
    return items


def _map_key(key: str, key_type: Any, path: str) -> Any:
    info = type_info(key_type)
    if info.kind in (Kind.STRING, Kind.ANY):
        return key if info.py_type in (str, Any) else _construct(info.py_type, key, key_type, path)
    if info.kind is Kind.INT:
        try:
            return int(key)
        except ValueError as exc:
            raise IncompatibleShapeError(
                f"json: cannot unmarshal number {key} into {_where(path)}map key of type {_type_name(key_type)}"
            ) from exc
    raise IncompatibleShapeError(f"json: unsupported map key type {_type_name(key_type)}")


def _json_kind(obj: Any) -> str:
    if isinstance(obj, bool):
        return "bool"
    if isinstance(obj, (int, float)):
        return "number"
    if isinstance(obj, str):
        return "string"
    if isinstance(obj, list):
        return "array"
    return "object"


def _type_name(tp: Any) -> str:
    return getattr(tp, "__name__", None) or repr(tp)


def _where(path: str) -> str:
    return f"field {path} " if path else "value "


def _mismatch(obj: Any, tp: Any, path: str) -> IncompatibleShapeError:
    return IncompatibleShapeError(
        f"json: cannot unmarshal {_json_kind(obj)} into {_where(path)}of type {_type_name(tp)}"
    )

"""Destination type descriptors: field metadata for dataclass records.

A record is a dataclass. Each field's external name comes from its
``json`` metadata tag, Go style::

    @dataclass
    class Server:
        name: str = field(default="", metadata={"json": "name"})
        meta: Meta = field(default_factory=Meta, metadata={"json": ",inline"})
        note: str = field(default="", metadata={"json": "note,omitempty"})
        secret: str = field(default="", metadata={"json": "-"})

``,inline`` promotes the fields of an embedded dataclass into the parent.
Descriptors are built once per type and cached process-wide.
"""

from __future__ import annotations

import dataclasses
import logging
import types
import typing
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum, auto
from functools import lru_cache
from typing import Any

from .errors import MalformedInputError

logger = logging.getLogger(__name__)

MAX_EMBED_DEPTH = 16


class Kind(Enum):
    ANY = auto()
    STRING = auto()
    BOOL = auto()
    INT = auto()
    FLOAT = auto()
    BYTES = auto()
    RECORD = auto()
    MAP = auto()
    SEQUENCE = auto()


@dataclass(frozen=True)
class TypeInfo:
    kind: Kind
    py_type: Any
    optional: bool = False
    element: Any = Any  # value type for MAP, item type for SEQUENCE
    key: Any = str


# ---------------------------------------------------------------------------
# Type classification
# ---------------------------------------------------------------------------

@lru_cache(maxsize=None)
def type_info(tp: Any) -> TypeInfo:
    """Classify a destination type annotation."""
    if tp is None or tp is Any or tp is object:
        return TypeInfo(Kind.ANY, Any)

    origin = typing.get_origin(tp)
    args = typing.get_args(tp)

    if origin is typing.Union or origin is types.UnionType:
        rest = [a for a in args if a is not type(None)]
        if len(rest) == 1:
            inner = type_info(rest[0])
            return dataclasses.replace(inner, optional=True)
        return TypeInfo(Kind.ANY, Any, optional=type(None) in args)

    if origin is not None:
        if isinstance(origin, type) and issubclass(origin, Mapping):
            key, elem = (args + (Any, Any))[:2] if args else (str, Any)
            return TypeInfo(Kind.MAP, origin, element=elem, key=key)
        if isinstance(origin, type) and issubclass(origin, (Sequence, set, frozenset)) \
                and not issubclass(origin, str):
            elem = args[0] if args else Any
            return TypeInfo(Kind.SEQUENCE, origin, element=elem)
        raise MalformedInputError(f"unsupported destination type: {tp!r}")

    if isinstance(tp, type):
        if dataclasses.is_dataclass(tp):
            return TypeInfo(Kind.RECORD, tp)
        if issubclass(tp, bool):
            return TypeInfo(Kind.BOOL, tp)
        if issubclass(tp, str):
            return TypeInfo(Kind.STRING, tp)
        if issubclass(tp, int):
            return TypeInfo(Kind.INT, tp)
        if issubclass(tp, float):
            return TypeInfo(Kind.FLOAT, tp)
        if issubclass(tp, (bytes, bytearray)):
            return TypeInfo(Kind.BYTES, tp)
        if issubclass(tp, Mapping):
            return TypeInfo(Kind.MAP, tp)
        if issubclass(tp, (list, tuple, set, frozenset)):
            return TypeInfo(Kind.SEQUENCE, tp)

    raise MalformedInputError(f"unsupported destination type: {tp!r}")


# ---------------------------------------------------------------------------
# FieldDescriptor
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FieldDescriptor:
    """One addressable position of a destination type.

    ``index_path`` holds the dataclass field offsets from the enclosing
    record down through any ``inline`` records to the field itself.
    """

    name: str
    type_: Any = None
    index_path: tuple[int, ...] = ()
    attr_path: tuple[str, ...] = ()
    omitempty: bool = False

    @classmethod
    def for_type(cls, tp: Any) -> "FieldDescriptor":
        return cls(name="", type_=tp)

    @property
    def info(self) -> TypeInfo:
        return type_info(self.type_)

    @property
    def is_string_typed(self) -> bool:
        return self.info.kind is Kind.STRING

    @property
    def is_map_typed(self) -> bool:
        return self.info.kind is Kind.MAP

    @property
    def is_sequence_typed(self) -> bool:
        return self.info.kind is Kind.SEQUENCE

    @property
    def is_record_typed(self) -> bool:
        return self.info.kind is Kind.RECORD

    @property
    def element_descriptor(self) -> "FieldDescriptor | None":
        info = self.info
        if info.kind in (Kind.MAP, Kind.SEQUENCE):
            return _element_descriptor(info.element)
        return None


@lru_cache(maxsize=None)
def _element_descriptor(tp: Any) -> FieldDescriptor:
    return FieldDescriptor.for_type(tp)


# ---------------------------------------------------------------------------
# Record introspection
# ---------------------------------------------------------------------------

def parse_tag(tag: str | None, attr: str) -> tuple[str | None, set[str]]:
    """Split a ``json`` tag into (external name, options).

    Returns ``(None, ...)`` when the field is skipped with ``"-"``.
    """
    if tag is None:
        return attr, set()
    name, sep, rest = tag.partition(",")
    options = {o for o in rest.split(",") if o}
    if name == "-" and not sep:
        return None, options
    return name or attr, options


@lru_cache(maxsize=None)
def record_hints(cls: type) -> dict[str, Any]:
    """Resolved field annotations of record *cls*."""
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError) as exc:
        raise MalformedInputError(
            f"cannot resolve field types of {cls.__name__}: {exc}"
        ) from exc


def _collect(
    cls: type,
    index_prefix: tuple[int, ...],
    attr_prefix: tuple[str, ...],
    depth: int,
    visiting: frozenset,
    out: list[tuple[int, FieldDescriptor]],
) -> None:
    if depth > MAX_EMBED_DEPTH:
        raise MalformedInputError(f"embedding of {cls.__name__} is nested too deeply")

    hints = record_hints(cls)
    for i, f in enumerate(dataclasses.fields(cls)):
        name, options = parse_tag(f.metadata.get("json"), f.name)
        if name is None:
            continue
        tp = hints.get(f.name, f.type)

        if "inline" in options:
            info = type_info(tp)
            if info.kind is Kind.RECORD:
                if info.py_type not in visiting:
                    _collect(
                        info.py_type,
                        index_prefix + (i,),
                        attr_prefix + (f.name,),
                        depth + 1,
                        visiting | {info.py_type},
                        out,
                    )
                continue

        out.append((depth, FieldDescriptor(
            name=name,
            type_=tp,
            index_path=index_prefix + (i,),
            attr_path=attr_prefix + (f.name,),
            omitempty="omitempty" in options,
        )))


@lru_cache(maxsize=None)
def record_fields(cls: type) -> tuple[FieldDescriptor, ...]:
    """Return the visible fields of record *cls*, embedded ones promoted.

    For each external name the shallowest field wins; names defined more
    than once at the shallowest depth are ambiguous and dropped.
    """
    logger.debug(f"Building field descriptors for {cls.__name__}")
    found: list[tuple[int, FieldDescriptor]] = []
    _collect(cls, (), (), 0, frozenset({cls}), found)

    by_name: dict[str, list[tuple[int, FieldDescriptor]]] = {}
    for depth, desc in found:
        by_name.setdefault(desc.name, []).append((depth, desc))

    visible: list[FieldDescriptor] = []
    for name, candidates in by_name.items():
        shallowest = min(depth for depth, _ in candidates)
        winners = [d for depth, d in candidates if depth == shallowest]
        if len(winners) == 1:
            visible.append(winners[0])
        else:
            logger.debug(f"{cls.__name__}: field name {name!r} is ambiguous; dropped")

    visible.sort(key=lambda d: d.index_path)
    return tuple(visible)


@lru_cache(maxsize=None)
def field_index(cls: type) -> dict[str, FieldDescriptor]:
    """External name -> descriptor for record *cls*."""
    return {d.name: d for d in record_fields(cls)}

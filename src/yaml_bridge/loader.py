"""YAML parsing into the value tree.

Built from PyYAML's reader/scanner/parser/composer with two local pieces:

- ``CoreResolver`` resolves plain scalars by the YAML 1.2 core schema as
  go-yaml v3 does (``yes``/``no``/``on`` stay strings, ``1e+36`` is a float,
  timestamps stay strings).
- ``ValueConstructor`` builds ``values`` nodes instead of Python objects, so
  integer width, key order and non-string keys survive until conversion.
"""

from __future__ import annotations

import base64
import binascii
import re
from typing import IO

import yaml
from yaml.composer import Composer
from yaml.constructor import BaseConstructor, ConstructorError
from yaml.nodes import MappingNode, ScalarNode, SequenceNode
from yaml.parser import Parser
from yaml.reader import Reader
from yaml.resolver import BaseResolver
from yaml.scanner import Scanner

from .errors import DuplicateKeyError, MalformedInputError
from .values import (
    Null,
    Value,
    VBool,
    VFloat,
    VList,
    VMap,
    VTagged,
    VText,
    integer_value,
)


NULL_TAG = "tag:yaml.org,2002:null"
BOOL_TAG = "tag:yaml.org,2002:bool"
INT_TAG = "tag:yaml.org,2002:int"
FLOAT_TAG = "tag:yaml.org,2002:float"
STR_TAG = "tag:yaml.org,2002:str"
BINARY_TAG = "tag:yaml.org,2002:binary"

_FLOAT_RE = re.compile(
    r"""^(?:[-+]?(?:\.[0-9][0-9_]*|[0-9][0-9_]*(?:\.[0-9_]*)?)(?:[eE][-+]?[0-9]+)?
        |[-+]?\.(?:inf|Inf|INF)
        |\.(?:nan|NaN|NAN))$""",
    re.X,
)


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------

class CoreResolver(BaseResolver):
    pass


CoreResolver.add_implicit_resolver(
    BOOL_TAG,
    re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"),
    list("tTfF"))

CoreResolver.add_implicit_resolver(
    INT_TAG,
    re.compile(r"^[-+]?(?:0b[01_]+|0o[0-7_]+|0x[0-9a-fA-F_]+|[0-9][0-9_]*)$"),
    list("-+0123456789"))

CoreResolver.add_implicit_resolver(
    FLOAT_TAG,
    _FLOAT_RE,
    list("-+0123456789."))

CoreResolver.add_implicit_resolver(
    NULL_TAG,
    re.compile(r"^(?:~|null|Null|NULL|)$"),
    ["~", "n", "N", ""])


# ---------------------------------------------------------------------------
# Scalar parsing
# ---------------------------------------------------------------------------

def parse_int(text: str) -> int:
    """Parse an integer literal the way Go's ``ParseInt(s, 0, 64)`` reads it.

    Accepts ``0x``, ``0o``, ``0b`` prefixes and legacy leading-zero octal;
    ``_`` separators must already be stripped.
    """
    sign = -1 if text.startswith("-") else 1
    body = text[1:] if text[:1] in ("-", "+") else text
    lower = body.lower()
    if lower.startswith("0x"):
        n = int(body[2:], 16)
    elif lower.startswith("0o"):
        n = int(body[2:], 8)
    elif lower.startswith("0b"):
        n = int(body[2:], 2)
    elif len(body) > 1 and body.startswith("0"):
        n = int(body, 8)
    else:
        n = int(body, 10)
    return sign * n


def parse_float(text: str) -> float:
    lower = text.lower()
    if lower in (".inf", "+.inf"):
        return float("inf")
    if lower == "-.inf":
        return float("-inf")
    if lower == ".nan":
        return float("nan")
    return float(text)


# ---------------------------------------------------------------------------
# Constructor
# ---------------------------------------------------------------------------

def _key_identity(key: Value):
    if isinstance(key, VTagged):
        inner = _key_identity(key.value)
        return None if inner is None else (key.tag, inner)
    if key is Null:
        return ("null",)
    if isinstance(key, (VList, VMap)):
        return None
    return (type(key).__name__, key.value)


class ValueConstructor(BaseConstructor):
    """Constructs value-tree nodes; ``strict`` rejects duplicate mapping keys."""

    def __init__(self, strict: bool = False) -> None:
        super().__init__()
        self.strict = strict

    def construct_null(self, node: ScalarNode) -> Value:
        self.construct_scalar(node)
        return Null

    def construct_bool(self, node: ScalarNode) -> Value:
        return VBool(self.construct_scalar(node).lower() == "true")

    def construct_int(self, node: ScalarNode) -> Value:
        text = self.construct_scalar(node)
        plain = text.replace("_", "")
        try:
            return integer_value(parse_int(plain))
        except ValueError:
            pass
        if _FLOAT_RE.match(plain):
            return VFloat(parse_float(plain))
        raise ConstructorError(None, None, f"invalid integer {text!r}", node.start_mark)

    def construct_float(self, node: ScalarNode) -> Value:
        text = self.construct_scalar(node)
        try:
            return VFloat(parse_float(text.replace("_", "")))
        except ValueError:
            raise ConstructorError(None, None, f"invalid float {text!r}", node.start_mark)

    def construct_str(self, node: ScalarNode) -> Value:
        return VText(self.construct_scalar(node))

    def construct_binary(self, node: ScalarNode) -> Value:
        # The payload is kept as text; bytes that are not UTF-8 become U+FFFD.
        text = self.construct_scalar(node)
        try:
            raw = base64.b64decode("".join(text.split()).encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError) as exc:
            raise ConstructorError(None, None, f"failed to decode base64 data: {exc}", node.start_mark)
        return VTagged(node.tag, VText(raw.decode("utf-8", errors="replace")))

    def construct_seq(self, node: SequenceNode) -> Value:
        return VList([self.construct_object(child, deep=True) for child in node.value])

    def construct_map(self, node: MappingNode) -> Value:
        entries: list[tuple[Value, Value]] = []
        first_seen: dict[object, int] = {}
        for key_node, value_node in node.value:
            key = self.construct_object(key_node, deep=True)
            if self.strict:
                identity = _key_identity(key)
                if identity is not None:
                    line = key_node.start_mark.line + 1
                    if identity in first_seen:
                        raise DuplicateKeyError(
                            f'line {line}: mapping key "{key}" already defined at line {first_seen[identity]}'
                        )
                    first_seen[identity] = line
            entries.append((key, self.construct_object(value_node, deep=True)))
        return VMap(entries)

    def construct_undefined(self, node) -> Value:
        if isinstance(node, ScalarNode):
            return VTagged(node.tag, VText(self.construct_scalar(node)))
        if isinstance(node, SequenceNode):
            return self.construct_seq(node)
        return self.construct_map(node)


ValueConstructor.add_constructor(NULL_TAG, ValueConstructor.construct_null)
ValueConstructor.add_constructor(BOOL_TAG, ValueConstructor.construct_bool)
ValueConstructor.add_constructor(INT_TAG, ValueConstructor.construct_int)
ValueConstructor.add_constructor(FLOAT_TAG, ValueConstructor.construct_float)
ValueConstructor.add_constructor(STR_TAG, ValueConstructor.construct_str)
ValueConstructor.add_constructor("tag:yaml.org,2002:timestamp", ValueConstructor.construct_str)
ValueConstructor.add_constructor(BINARY_TAG, ValueConstructor.construct_binary)
ValueConstructor.add_constructor("tag:yaml.org,2002:seq", ValueConstructor.construct_seq)
ValueConstructor.add_constructor("tag:yaml.org,2002:map", ValueConstructor.construct_map)
ValueConstructor.add_constructor(None, ValueConstructor.construct_undefined)


class Loader(Reader, Scanner, Parser, Composer, ValueConstructor, CoreResolver):

    def __init__(self, stream, strict: bool = False) -> None:
        Reader.__init__(self, stream)
        Scanner.__init__(self)
        Parser.__init__(self)
        Composer.__init__(self)
        ValueConstructor.__init__(self, strict=strict)
        CoreResolver.__init__(self)


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def parse_yaml(data: bytes | str | IO, strict: bool = False) -> Value:
    """Parse the first YAML document in *data* into a value tree.

    An empty stream yields ``Null``. With *strict*, duplicate keys within a
    mapping raise ``DuplicateKeyError``. Syntax errors raise
    ``MalformedInputError``.
    """
    loader = Loader(data, strict=strict)
    try:
        if loader.check_data():
            return loader.get_data()
        return Null
    except yaml.YAMLError as exc:
        raise MalformedInputError(str(exc)) from exc
    finally:
        loader.dispose()

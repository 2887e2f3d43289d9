"""Tests for destination type classification and record field descriptors."""

from dataclasses import dataclass, field
from typing import Any, Optional, Union

import pytest

from yaml_bridge.errors import MalformedInputError
from yaml_bridge.typedef import (
    FieldDescriptor,
    Kind,
    field_index,
    parse_tag,
    record_fields,
    type_info,
)


@dataclass
class Meta:
    name: str = field(default="", metadata={"json": "name"})
    labels: dict[str, str] = field(default_factory=dict, metadata={"json": "labels,omitempty"})


@dataclass
class Other:
    name: str = field(default="", metadata={"json": "name"})
    uid: str = field(default="", metadata={"json": "uid"})


@dataclass
class Deep:
    meta: Meta = field(default_factory=Meta, metadata={"json": ",inline"})


@dataclass
class Pod:
    meta: Meta = field(default_factory=Meta, metadata={"json": ",inline"})
    kind: str = field(default="", metadata={"json": "kind"})
    secret: str = field(default="", metadata={"json": "-"})
    replicas: int = 0


@dataclass
class Shadowing:
    deep: Deep = field(default_factory=Deep, metadata={"json": ",inline"})
    name: str = field(default="", metadata={"json": "name"})


@dataclass
class Ambiguous:
    meta: Meta = field(default_factory=Meta, metadata={"json": ",inline"})
    other: Other = field(default_factory=Other, metadata={"json": ",inline"})


@dataclass
class Node:
    value: int = 0
    children: list["Node"] = field(default_factory=list)


# ---------------------------------------------------------------------------
# type_info
# ---------------------------------------------------------------------------

def test_type_info_scalars():
    assert type_info(str).kind is Kind.STRING
    assert type_info(bool).kind is Kind.BOOL
    assert type_info(int).kind is Kind.INT
    assert type_info(float).kind is Kind.FLOAT
    assert type_info(bytes).kind is Kind.BYTES
    assert type_info(bytearray).kind is Kind.BYTES

def test_type_info_any():
    assert type_info(None).kind is Kind.ANY
    assert type_info(Any).kind is Kind.ANY
    assert type_info(object).kind is Kind.ANY

def test_type_info_optional():
    info = type_info(Optional[str])
    assert info.kind is Kind.STRING
    assert info.optional is True

def test_type_info_pipe_optional():
    info = type_info(int | None)
    assert info.kind is Kind.INT
    assert info.optional is True

def test_type_info_other_union_is_any():
    assert type_info(Union[int, str]).kind is Kind.ANY

def test_type_info_collections():
    m = type_info(dict[str, int])
    assert m.kind is Kind.MAP
    assert m.element is int
    s = type_info(list[str])
    assert s.kind is Kind.SEQUENCE
    assert s.element is str
    assert type_info(dict).kind is Kind.MAP
    assert type_info(tuple).kind is Kind.SEQUENCE

def test_type_info_record():
    assert type_info(Pod).kind is Kind.RECORD

def test_type_info_unsupported():
    with pytest.raises(MalformedInputError):
        type_info(complex)


# ---------------------------------------------------------------------------
# parse_tag
# ---------------------------------------------------------------------------

def test_parse_tag_untagged():
    assert parse_tag(None, "attr") == ("attr", set())

def test_parse_tag_rename_and_options():
    assert parse_tag("name,omitempty", "attr") == ("name", {"omitempty"})

def test_parse_tag_inline_without_name():
    assert parse_tag(",inline", "attr") == ("attr", {"inline"})

def test_parse_tag_skip():
    assert parse_tag("-", "attr")[0] is None

def test_parse_tag_dash_name():
    assert parse_tag("-,", "attr") == ("-", set())


# ---------------------------------------------------------------------------
# record_fields
# ---------------------------------------------------------------------------

def test_record_fields_promote_inline():
    names = [d.name for d in record_fields(Pod)]
    assert names == ["name", "labels", "kind", "replicas"]

def test_record_fields_paths():
    by_name = field_index(Pod)
    assert by_name["name"].index_path == (0, 0)
    assert by_name["name"].attr_path == ("meta", "name")
    assert by_name["kind"].index_path == (1,)
    assert by_name["labels"].omitempty is True

def test_record_fields_untagged_uses_attribute():
    d = field_index(Pod)["replicas"]
    assert d.attr_path == ("replicas",)
    assert d.type_ is int

def test_record_fields_skip_dash():
    assert "secret" not in field_index(Pod)

def test_shallowest_field_wins():
    d = field_index(Shadowing)["name"]
    assert d.attr_path == ("name",)

def test_ambiguous_fields_dropped():
    index = field_index(Ambiguous)
    assert "name" not in index
    assert "uid" in index
    assert "labels" in index

def test_record_fields_cached():
    assert record_fields(Pod) is record_fields(Pod)

def test_self_referencing_record():
    d = field_index(Node)["children"]
    assert d.is_sequence_typed
    assert d.element_descriptor.is_record_typed
    assert d.element_descriptor.info.py_type is Node


# ---------------------------------------------------------------------------
# FieldDescriptor
# ---------------------------------------------------------------------------

def test_descriptor_predicates():
    d = FieldDescriptor.for_type(dict[str, str])
    assert d.is_map_typed
    assert not d.is_record_typed
    assert d.element_descriptor.is_string_typed

def test_descriptor_scalar_has_no_element():
    d = FieldDescriptor.for_type(str)
    assert d.element_descriptor is None

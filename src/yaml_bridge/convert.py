"""Conversion entry points.

Permissive calls (``unmarshal``, ``marshal``, ``yaml_to_json``,
``json_to_yaml``) let the last duplicate key win and drop unknown fields.
Strict calls (``unmarshal_strict``, ``yaml_to_json_strict``) reject
duplicate keys and return the unknown-field warnings beside the result.
"""

from __future__ import annotations

import json
import logging
from typing import IO, Any

from .coercer import coerce
from .config import DEFAULT_EMITTER_CONFIG, EmitterConfig
from .decoder import decode_json
from .emitter import emit
from .encoder import encode_json, iter_value_json
from .errors import MalformedInputError, StrictWarning, reraise_with_prefix
from .loader import parse_yaml
from .strict import Diagnostics
from .values import Value, from_python

logger = logging.getLogger(__name__)

YAML_TO_JSON_ERROR = "error converting YAML to JSON"
JSON_TO_YAML_ERROR = "error converting JSON to YAML"
UNMARSHAL_ERROR = "error unmarshaling JSON: while decoding JSON"
MARSHAL_ERROR = "error marshaling into JSON"


# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------

def dump_json(value: Value) -> bytes:
    """Compact UTF-8 JSON for a normalized value tree."""
    try:
        return "".join(iter_value_json(value)).encode("utf-8")
    except ValueError as exc:
        raise MalformedInputError(f"json: unsupported value: {exc}") from exc


def convert_yaml(data: bytes | str | IO, tp: Any, diagnostics: Diagnostics) -> Value:
    """Parse YAML and reconcile it with destination type *tp*."""
    tree = parse_yaml(data, strict=diagnostics.duplicates_fatal)
    return coerce(tree, tp, diagnostics)


def load_json(data: bytes | str) -> Value:
    """Parse JSON into a value tree, downcasting lossless floats."""
    try:
        return from_python(json.loads(data))
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedInputError(str(exc)) from exc


# ---------------------------------------------------------------------------
# YAML <-> JSON
# ---------------------------------------------------------------------------

def yaml_to_json(data: bytes | str) -> bytes:
    """Convert a YAML document to compact JSON."""
    with reraise_with_prefix(YAML_TO_JSON_ERROR):
        return dump_json(convert_yaml(data, None, Diagnostics()))


def yaml_to_json_strict(data: bytes | str) -> tuple[bytes, list[StrictWarning]]:
    """Like ``yaml_to_json`` but duplicate keys are fatal."""
    diagnostics = Diagnostics.strict()
    with reraise_with_prefix(YAML_TO_JSON_ERROR, diagnostics.warnings):
        out = dump_json(convert_yaml(data, None, diagnostics))
    return out, diagnostics.warnings


def json_to_yaml(data: bytes | str, config: EmitterConfig | None = None) -> bytes:
    """Convert a JSON document to block-style YAML, keeping key order."""
    with reraise_with_prefix(JSON_TO_YAML_ERROR):
        return emit(load_json(data), config or DEFAULT_EMITTER_CONFIG)


# ---------------------------------------------------------------------------
# Typed decoding / encoding
# ---------------------------------------------------------------------------

def _unmarshal(data: bytes | str | IO, tp: Any, diagnostics: Diagnostics) -> Any:
    with reraise_with_prefix(YAML_TO_JSON_ERROR, diagnostics.warnings):
        json_bytes = dump_json(convert_yaml(data, tp, diagnostics))
    with reraise_with_prefix(UNMARSHAL_ERROR, diagnostics.warnings):
        return decode_json(json_bytes, tp, diagnostics)


def unmarshal(data: bytes | str, tp: Any = None) -> Any:
    """Decode YAML into an instance of *tp*, or generic data when *tp* is None.

    Keys without a matching field are dropped and the last of several
    duplicate keys wins.
    """
    return _unmarshal(data, tp, Diagnostics())


def unmarshal_strict(data: bytes | str, tp: Any = None) -> tuple[Any, list[StrictWarning]]:
    """Decode YAML into *tp*, rejecting duplicate keys.

    Returns the decoded value and the unknown-field warnings in document
    order. Fatal errors carry the warnings gathered so far on ``.warnings``.
    """
    diagnostics = Diagnostics.strict()
    value = _unmarshal(data, tp, diagnostics)
    if diagnostics.warnings:
        logger.debug(f"Strict decode produced {len(diagnostics.warnings)} warning(s)")
    return value, diagnostics.warnings


def marshal(obj: Any, config: EmitterConfig | None = None) -> bytes:
    """Encode *obj* (dataclass, mapping, sequence or scalar) as YAML."""
    with reraise_with_prefix(MARSHAL_ERROR):
        json_bytes = encode_json(obj)
    return json_to_yaml(json_bytes, config)

"""yaml-bridge: schema-aware YAML <-> JSON conversion."""

from .convert import (
    json_to_yaml,
    marshal,
    unmarshal,
    unmarshal_strict,
    yaml_to_json,
    yaml_to_json_strict,
)
from .config import EmitterConfig, DEFAULT_EMITTER_CONFIG
from .errors import (
    YamlBridgeError,
    UnsupportedKeyTypeError,
    DuplicateKeyError,
    IncompatibleShapeError,
    MalformedInputError,
    StrictWarning,
    WarningKind,
)
from .values import (
    Null,
    Value,
    VBool,
    VFloat,
    VInt,
    VList,
    VMap,
    VTagged,
    VText,
    VUint,
)
from . import bridge

__all__ = [
    "yaml_to_json",
    "yaml_to_json_strict",
    "json_to_yaml",
    "unmarshal",
    "unmarshal_strict",
    "marshal",
    "bridge",
    "EmitterConfig",
    "DEFAULT_EMITTER_CONFIG",
    "YamlBridgeError",
    "UnsupportedKeyTypeError",
    "DuplicateKeyError",
    "IncompatibleShapeError",
    "MalformedInputError",
    "StrictWarning",
    "WarningKind",
    "Null",
    "Value",
    "VBool",
    "VFloat",
    "VInt",
    "VList",
    "VMap",
    "VTagged",
    "VText",
    "VUint",
]

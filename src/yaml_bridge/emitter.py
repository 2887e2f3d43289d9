"""YAML emission from the value tree."""

from __future__ import annotations

import io
import re

from yaml.emitter import Emitter
from yaml.nodes import ScalarNode
from yaml.representer import BaseRepresenter
from yaml.serializer import Serializer

from .config import DEFAULT_EMITTER_CONFIG, EmitterConfig
from .keys import format_float
from .loader import BOOL_TAG, INT_TAG, NULL_TAG, STR_TAG, CoreResolver
from .values import Value, VBool, VFloat, VInt, VList, VMap, VTagged, VText, VUint, _Null

SEQ_TAG = "tag:yaml.org,2002:seq"
MAP_TAG = "tag:yaml.org,2002:map"

# Plain scalars that YAML 1.1 readers take for booleans, sexagesimal numbers or timestamps.
_OLD_BOOL_RE = re.compile(r"^(?:y|Y|yes|Yes|YES|n|N|no|No|NO|on|On|ON|off|Off|OFF)$")
_BASE60_RE = re.compile(r"^[-+]?[0-9][0-9_]*(?::[0-5]?[0-9])+(?:\.[0-9_]*)?$")
_TIMESTAMP_RE = re.compile(
    r"^(?:[0-9]{4}-[0-9]{2}-[0-9]{2}"
    r"|[0-9]{4}-[0-9]{1,2}-[0-9]{1,2}(?:[Tt]|[ \t]+)[0-9]{1,2}:[0-9]{2}:[0-9]{2}(?:\.[0-9]*)?"
    r"(?:[ \t]*(?:Z|[-+][0-9]{1,2}(?::[0-9]{2})?))?)$"
)


class ValueRepresenter(BaseRepresenter):

    def ignore_aliases(self, data) -> bool:
        return True

    def represent_null(self, data: _Null):
        return self.represent_scalar(NULL_TAG, "null")

    def represent_bool(self, data: VBool):
        return self.represent_scalar(BOOL_TAG, "true" if data.value else "false")

    def represent_int(self, data: VInt | VUint):
        return self.represent_scalar(INT_TAG, str(data.value))

    def represent_float(self, data: VFloat):
        text = format_float(data.value, 64)
        return self.represent_scalar(self.resolve(ScalarNode, text, (True, False)), text)

    def represent_text(self, data: VText):
        text = data.value
        style = None
        if "\n" in text:
            style = "|"
        elif (self.resolve(ScalarNode, text, (True, False)) != STR_TAG
              or _OLD_BOOL_RE.match(text) or _BASE60_RE.match(text)
              or _TIMESTAMP_RE.match(text)):
            style = '"'
        return self.represent_scalar(STR_TAG, text, style=style)

    def represent_list(self, data: VList):
        return self.represent_sequence(SEQ_TAG, data.items)

    def represent_map(self, data: VMap):
        return self.represent_mapping(MAP_TAG, data.entries)

    def represent_tagged(self, data: VTagged):
        return self.represent_data(data.value)


ValueRepresenter.add_representer(_Null, ValueRepresenter.represent_null)
ValueRepresenter.add_representer(VBool, ValueRepresenter.represent_bool)
ValueRepresenter.add_representer(VInt, ValueRepresenter.represent_int)
ValueRepresenter.add_representer(VUint, ValueRepresenter.represent_int)
ValueRepresenter.add_representer(VFloat, ValueRepresenter.represent_float)
ValueRepresenter.add_representer(VText, ValueRepresenter.represent_text)
ValueRepresenter.add_representer(VList, ValueRepresenter.represent_list)
ValueRepresenter.add_representer(VMap, ValueRepresenter.represent_map)
ValueRepresenter.add_representer(VTagged, ValueRepresenter.represent_tagged)


class Dumper(Emitter, Serializer, ValueRepresenter, CoreResolver):

    def __init__(self, stream, config: EmitterConfig = DEFAULT_EMITTER_CONFIG) -> None:
        Emitter.__init__(
            self,
            stream,
            indent=config.indent,
            width=config.width if config.width is not None else float("inf"),
            allow_unicode=config.allow_unicode,
        )
        Serializer.__init__(self)
        ValueRepresenter.__init__(self, default_flow_style=False, sort_keys=False)
        CoreResolver.__init__(self)
        self.wide_sequences = config.wide_sequences

    def increase_indent(self, flow: bool = False, indentless: bool = False) -> None:
        if self.wide_sequences:
            indentless = False
        super().increase_indent(flow, indentless)


def emit(value: Value, config: EmitterConfig = DEFAULT_EMITTER_CONFIG) -> bytes:
    """Render *value* as a single block-style YAML document (UTF-8)."""
    stream = io.StringIO()
    dumper = Dumper(stream, config)
    try:
        dumper.open()
        dumper.represent(value)
        dumper.close()
    finally:
        dumper.dispose()
    text = stream.getvalue()
    # A bare top-level scalar leaves the document open-ended.
    if text.endswith("\n...\n"):
        text = text[:-4]
    return text.encode("utf-8")

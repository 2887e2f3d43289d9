"""Emitter and bridge settings."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class EmitterConfig:
    """Layout of emitted YAML.

    ``width=None`` disables line folding of long scalars. With
    ``wide_sequences`` a block sequence nested under a mapping key is
    indented past the key instead of sitting flush with it.
    """

    indent: int = 2
    width: int | None = None
    allow_unicode: bool = True
    wide_sequences: bool = True


DEFAULT_EMITTER_CONFIG = EmitterConfig()

"""Exceptions and strict-mode warnings for yaml-bridge."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum, auto


class WarningKind(Enum):
    UNKNOWN_FIELD = auto()


@dataclass
class StrictWarning:
    """A non-fatal finding reported only by the strict entry points."""

    kind: WarningKind
    path: str
    message: str

    def __str__(self) -> str:
        return self.message


class YamlBridgeError(Exception):
    """Base exception for conversion failures.

    ``warnings`` holds the strict warnings collected before the failure,
    so strict callers see both channels.
    """

    def __init__(self, message: str, warnings: list[StrictWarning] | None = None) -> None:
        super().__init__(message)
        self.warnings: list[StrictWarning] = list(warnings or [])


class UnsupportedKeyTypeError(YamlBridgeError):
    """A mapping key is not a string, integer, float or boolean."""
    pass


class DuplicateKeyError(YamlBridgeError):
    """The same key appears twice in one mapping (strict mode only)."""
    pass


class IncompatibleShapeError(YamlBridgeError):
    """The source value cannot fill the destination's declared shape."""
    pass


class MalformedInputError(YamlBridgeError):
    """The YAML/JSON input or the destination type could not be processed."""
    pass


@contextmanager
def reraise_with_prefix(prefix: str, warnings: list[StrictWarning] | None = None) -> Iterator[None]:
    """Re-raise any ``YamlBridgeError`` as the same class with *prefix* prepended.

    When *warnings* is given it replaces the warnings carried by the error.
    """
    try:
        yield
    except YamlBridgeError as exc:
        carried = exc.warnings if warnings is None else warnings
        raise type(exc)(f"{prefix}: {exc}", carried) from exc

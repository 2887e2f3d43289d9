"""Strict-mode validation: duplicate keys and unknown fields."""

from __future__ import annotations

import logging

from .errors import DuplicateKeyError, StrictWarning, WarningKind

logger = logging.getLogger(__name__)


def join_path(path: str, key: str | int) -> str:
    """Extend a dotted document path with a mapping key or sequence index."""
    if isinstance(key, int):
        return f"{path}[{key}]"
    return f"{path}.{key}" if path else key


class Diagnostics:
    """Collects strict warnings and applies the duplicate-key policy.

    With ``duplicates_fatal`` a repeated key raises ``DuplicateKeyError``;
    otherwise the last value wins. With ``disallow_unknown_fields`` every
    key that lands on no record field is recorded as a ``StrictWarning``;
    otherwise it is dropped silently.
    """

    def __init__(self, duplicates_fatal: bool = False, disallow_unknown_fields: bool = False) -> None:
        self.duplicates_fatal = duplicates_fatal
        self.disallow_unknown_fields = disallow_unknown_fields
        self.warnings: list[StrictWarning] = []

    @classmethod
    def strict(cls) -> "Diagnostics":
        return cls(duplicates_fatal=True, disallow_unknown_fields=True)

    def duplicate_key(self, key: str, path: str) -> None:
        where = f" in {path}" if path else ""
        if self.duplicates_fatal:
            raise DuplicateKeyError(
                f'mapping key "{key}" already defined{where}', self.warnings
            )
        logger.debug(f'Duplicate key "{key}"{where}; keeping the last value')

    def unknown_field(self, path: str) -> None:
        if not self.disallow_unknown_fields:
            return
        self.warnings.append(
            StrictWarning(WarningKind.UNKNOWN_FIELD, path, f'unknown field "{path}"')
        )

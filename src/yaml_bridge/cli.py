"""``yaml-bridge`` command line entry point.

Converts a YAML document to JSON or a JSON document to YAML::

    yaml-bridge config.yaml                 # YAML -> JSON on stdout
    yaml-bridge --to-yaml -o out.yaml in.json
    yaml-bridge --strict --schema app.model:Config config.yaml

Exit status is 0 on success, 1 on a conversion error and 2 when a strict
conversion succeeded with warnings.
"""

from __future__ import annotations

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import IO, Any

from .convert import json_to_yaml, unmarshal, unmarshal_strict, yaml_to_json, yaml_to_json_strict
from .encoder import encode_json
from .errors import StrictWarning, YamlBridgeError

logger = logging.getLogger("yaml_bridge")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_WARNINGS = 2


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

class _MaxLevelFilter(logging.Filter):
    def __init__(self, max_level: int) -> None:
        super().__init__()
        self._max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno <= self._max_level


def configure_logging(verbose: bool = False, info_stream: IO[str] | None = None) -> None:
    """Configure root logging for the command.

    WARNING and above go to stderr. DEBUG/INFO go to *info_stream*, which
    must not be the stream the converted document is written to.
    """
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)

    formatter = logging.Formatter("%(name)s - %(levelname)s - %(message)s")

    info_handler = logging.StreamHandler(stream=info_stream or sys.stderr)
    info_handler.setLevel(logging.DEBUG)
    info_handler.addFilter(_MaxLevelFilter(logging.WARNING - 1))
    info_handler.setFormatter(formatter)

    stderr_handler = logging.StreamHandler(stream=sys.stderr)
    stderr_handler.setLevel(logging.WARNING)
    stderr_handler.setFormatter(formatter)

    root.addHandler(info_handler)
    root.addHandler(stderr_handler)


# ---------------------------------------------------------------------------
# Argument handling
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="yaml-bridge",
        description="Convert YAML to JSON or JSON to YAML.",
    )
    direction = parser.add_mutually_exclusive_group()
    direction.add_argument("--to-json", action="store_true", help="treat input as YAML, write JSON (default)")
    direction.add_argument("--to-yaml", action="store_true", help="treat input as JSON, write YAML")
    parser.add_argument("--strict", action="store_true",
                        help="reject duplicate keys and report unknown fields")
    parser.add_argument("--schema", metavar="MODULE:CLASS",
                        help="dataclass to decode the YAML document into")
    parser.add_argument("-o", "--output", metavar="OUT", help="output file (default: stdout)")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    parser.add_argument("file", nargs="?", help="input file (default: stdin)")
    return parser


def load_schema(spec: str) -> Any:
    """Import ``module:Class`` and return the class."""
    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"expected MODULE:CLASS, got {spec!r}")
    module = importlib.import_module(module_name)
    target: Any = module
    for part in attr.split("."):
        target = getattr(target, part)
    return target


def _wants_yaml(args: argparse.Namespace) -> bool:
    if args.to_yaml or args.to_json:
        return args.to_yaml
    return bool(args.file) and Path(args.file).suffix.lower() == ".json"


def convert_document(data: bytes, to_yaml: bool, strict: bool, schema: Any = None) -> tuple[bytes, list[StrictWarning]]:
    """Run one conversion and return the output bytes and strict warnings."""
    if to_yaml:
        return json_to_yaml(data), []
    if schema is not None:
        if strict:
            value, warnings = unmarshal_strict(data, schema)
        else:
            value, warnings = unmarshal(data, schema), []
        return encode_json(value) + b"\n", warnings
    if strict:
        out, warnings = yaml_to_json_strict(data)
        return out + b"\n", warnings
    return yaml_to_json(data) + b"\n", []


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    to_yaml = _wants_yaml(args)

    if to_yaml and (args.strict or args.schema):
        parser.error("--strict and --schema apply to YAML input only")

    configure_logging(args.verbose, sys.stdout if args.output else sys.stderr)

    schema = None
    if args.schema:
        try:
            schema = load_schema(args.schema)
        except (ImportError, AttributeError, ValueError) as exc:
            parser.error(f"cannot load schema {args.schema!r}: {exc}")

    try:
        data = Path(args.file).read_bytes() if args.file else sys.stdin.buffer.read()
    except OSError as exc:
        logger.error(f"Cannot read {args.file}: {exc}")
        return EXIT_ERROR

    logger.debug(f"Converting {args.file or '<stdin>'} to {'YAML' if to_yaml else 'JSON'}")
    try:
        out, warnings = convert_document(data, to_yaml, args.strict, schema)
    except YamlBridgeError as exc:
        for warning in exc.warnings:
            logger.warning(str(warning))
        logger.error(str(exc))
        return EXIT_ERROR

    if args.output:
        Path(args.output).write_bytes(out)
    else:
        sys.stdout.buffer.write(out)
        sys.stdout.flush()

    for warning in warnings:
        logger.warning(str(warning))
    return EXIT_WARNINGS if warnings else EXIT_OK


if __name__ == "__main__":
    sys.exit(main())

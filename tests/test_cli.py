"""Tests for the yaml-bridge command line."""

import io
import logging
import sys
import textwrap

import pytest

from yaml_bridge.cli import EXIT_ERROR, EXIT_OK, EXIT_WARNINGS, build_parser, load_schema, main


SCHEMA_MODULE = textwrap.dedent("""
    from dataclasses import dataclass, field

    @dataclass
    class Server:
        host: str = field(default="", metadata={"json": "host"})
        port: int = field(default=0, metadata={"json": "port"})
""")


@pytest.fixture(autouse=True)
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def schema_module(tmp_path, monkeypatch):
    (tmp_path / "cli_schema_mod.py").write_text(SCHEMA_MODULE)
    monkeypatch.syspath_prepend(str(tmp_path))
    return "cli_schema_mod:Server"


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

def test_parser_defaults():
    args = build_parser().parse_args([])
    assert args.file is None
    assert not args.strict and not args.to_yaml and not args.to_json

def test_parser_direction_exclusive():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--to-json", "--to-yaml"])

def test_strict_rejected_for_json_input():
    with pytest.raises(SystemExit):
        main(["--to-yaml", "--strict"])

def test_load_schema(schema_module):
    assert load_schema(schema_module).__name__ == "Server"

def test_load_schema_bad_reference():
    with pytest.raises(ValueError):
        load_schema("no_colon")


# ---------------------------------------------------------------------------
# Conversions
# ---------------------------------------------------------------------------

def test_yaml_file_to_json_output(tmp_path):
    src = tmp_path / "in.yaml"
    src.write_text("a: 1\n1: b\n")
    out = tmp_path / "out.json"
    assert main([str(src), "-o", str(out)]) == EXIT_OK
    assert out.read_bytes() == b'{"a":1,"1":"b"}\n'

def test_json_suffix_selects_yaml_output(tmp_path):
    src = tmp_path / "in.json"
    src.write_text('{"b":[1],"a":"no"}')
    out = tmp_path / "out.yaml"
    assert main([str(src), "-o", str(out)]) == EXIT_OK
    assert out.read_bytes() == b'b:\n  - 1\na: "no"\n'

def test_explicit_direction_overrides_suffix(tmp_path):
    src = tmp_path / "in.json"
    src.write_text("a: 1\n")
    out = tmp_path / "out"
    assert main(["--to-json", str(src), "-o", str(out)]) == EXIT_OK
    assert out.read_bytes() == b'{"a":1}\n'

def test_stdin_to_stdout(monkeypatch, capsysbinary):
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(b"a: [x, 2]\n")))
    assert main([]) == EXIT_OK
    assert capsysbinary.readouterr().out == b'{"a":["x",2]}\n'

def test_schema_decoding(tmp_path, schema_module):
    src = tmp_path / "server.yaml"
    src.write_text("host: 10\nport: 80\n")
    out = tmp_path / "out.json"
    assert main(["--schema", schema_module, str(src), "-o", str(out)]) == EXIT_OK
    assert out.read_bytes() == b'{"host":"10","port":80}\n'


# ---------------------------------------------------------------------------
# Exit codes and diagnostics
# ---------------------------------------------------------------------------

def test_strict_warnings_exit_code(tmp_path, schema_module, capsys):
    src = tmp_path / "server.yaml"
    src.write_text("host: a\nbogus: 1\n")
    out = tmp_path / "out.json"
    assert main(["--strict", "--schema", schema_module, str(src), "-o", str(out)]) == EXIT_WARNINGS
    assert out.read_bytes() == b'{"host":"a","port":0}\n'
    assert 'unknown field "bogus"' in capsys.readouterr().err

def test_strict_duplicate_is_error(tmp_path, capsys):
    src = tmp_path / "dup.yaml"
    src.write_text("a: 1\na: 2\n")
    assert main(["--strict", str(src), "-o", str(tmp_path / "out")]) == EXIT_ERROR
    assert "already defined" in capsys.readouterr().err

def test_malformed_input_is_error(tmp_path, capsys):
    src = tmp_path / "bad.yaml"
    src.write_text("a: [1\n")
    assert main([str(src), "-o", str(tmp_path / "out")]) == EXIT_ERROR
    assert "error converting YAML to JSON" in capsys.readouterr().err

def test_missing_file_is_error(tmp_path, capsys):
    assert main([str(tmp_path / "missing.yaml")]) == EXIT_ERROR
    assert "Cannot read" in capsys.readouterr().err

def test_bad_schema_exits(tmp_path):
    src = tmp_path / "in.yaml"
    src.write_text("a: 1\n")
    with pytest.raises(SystemExit):
        main(["--schema", "nonexistent_module_xyz:Thing", str(src)])

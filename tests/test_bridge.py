"""Tests for the streaming bridge and its conduit."""

import io
import threading
import time
from dataclasses import dataclass, field

import pytest

from yaml_bridge import bridge
from yaml_bridge.bridge import Conduit, ConduitClosedError, _run
from yaml_bridge.convert import marshal, unmarshal
from yaml_bridge.errors import IncompatibleShapeError, MalformedInputError


@dataclass
class Entry:
    key: str = field(default="", metadata={"json": "key"})
    size: int = field(default=0, metadata={"json": "size"})


@dataclass
class Catalog:
    title: str = field(default="", metadata={"json": "title"})
    entries: list[Entry] = field(default_factory=list, metadata={"json": "entries"})


CATALOG = Catalog(title="books", entries=[Entry(key=str(i), size=i) for i in range(50)])


def start(fn):
    t = threading.Thread(target=fn, daemon=True)
    t.start()
    return t


# ---------------------------------------------------------------------------
# Conduit
# ---------------------------------------------------------------------------

class TestConduit:

    def test_partial_reads(self):
        conduit = Conduit()
        t = start(lambda: (conduit.write(b"hello"), conduit.close_write()))
        assert conduit.read(2) == b"he"
        assert conduit.read(10) == b"llo"
        assert conduit.read(10) == b""
        t.join(1)

    def test_write_blocks_until_consumed(self):
        conduit = Conduit()
        done = threading.Event()
        t = start(lambda: (conduit.write(b"abc"), done.set()))
        time.sleep(0.05)
        assert not done.is_set()
        assert conduit.read(1) == b"a"
        time.sleep(0.05)
        assert not done.is_set()
        assert conduit.read(5) == b"bc"
        assert done.wait(1)
        t.join(1)

    def test_chunks_arrive_in_order(self):
        conduit = Conduit()

        def writer():
            for i in range(20):
                conduit.write(str(i).encode() + b",")
            conduit.close_write()

        t = start(writer)
        assert conduit.read() == b"".join(str(i).encode() + b"," for i in range(20))
        t.join(1)

    def test_close_read_unblocks_writer(self):
        conduit = Conduit()
        errors = []

        def writer():
            try:
                conduit.write(b"data")
            except ConduitClosedError as exc:
                errors.append(exc)

        t = start(writer)
        time.sleep(0.05)
        conduit.close_read()
        t.join(1)
        assert not t.is_alive()
        assert len(errors) == 1

    def test_write_after_close_read(self):
        conduit = Conduit()
        conduit.close_read()
        with pytest.raises(ConduitClosedError):
            conduit.write(b"x")

    def test_writer_error_reaches_reader(self):
        conduit = Conduit()
        conduit.close_write(RuntimeError("boom"))
        with pytest.raises(ConduitClosedError) as exc_info:
            conduit.read(1)
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_empty_write_is_noop(self):
        assert Conduit().write(b"") == 0


# ---------------------------------------------------------------------------
# Stage coordination
# ---------------------------------------------------------------------------

def test_run_returns_consumer_result():
    def producer(conduit):
        conduit.write(b"abc")

    assert _run(producer, lambda conduit: conduit.read()) == b"abc"

def test_run_producer_error_wins():
    def producer(conduit):
        raise ValueError("producer")

    def consumer(conduit):
        conduit.read()
        raise RuntimeError("consumer")

    with pytest.raises(ValueError, match="producer"):
        _run(producer, consumer)

def test_run_consumer_error_when_producer_only_saw_hangup():
    def producer(conduit):
        for _ in range(10):
            conduit.write(b"x" * 10)

    def consumer(conduit):
        raise RuntimeError("consumer")

    with pytest.raises(RuntimeError, match="consumer"):
        _run(producer, consumer)

def test_run_starts_two_threads_and_joins_them():
    before = threading.active_count()
    _run(lambda c: c.write(b"x"), lambda c: c.read())
    assert threading.active_count() == before


# ---------------------------------------------------------------------------
# encode / decode
# ---------------------------------------------------------------------------

def test_encode_matches_marshal_bytes():
    out = io.BytesIO()
    bridge.encode(CATALOG, out, chunk_size=16)
    assert out.getvalue() == marshal(CATALOG)

def test_encode_to_text_writer():
    out = io.StringIO()
    bridge.encode({"a": [1]}, out)
    assert out.getvalue() == "a:\n  - 1\n"

def test_decode_matches_unmarshal():
    data = marshal(CATALOG)
    assert bridge.decode(io.BytesIO(data), Catalog, chunk_size=8) == unmarshal(data, Catalog) == CATALOG

def test_decode_text_reader_generic():
    assert bridge.decode(io.StringIO("a: 1\nb: [x]\n")) == {"a": 1, "b": ["x"]}

def test_decode_strict_warnings():
    value, warnings = bridge.decode_strict(io.BytesIO(b"title: t\nextra: 1\n"), Catalog)
    assert value == Catalog(title="t")
    assert [w.path for w in warnings] == ["extra"]

def test_decode_producer_failure():
    with pytest.raises(MalformedInputError, match="^error converting YAML to JSON: "):
        bridge.decode(io.BytesIO(b"a: [1\n"), Catalog)

def test_decode_consumer_failure():
    with pytest.raises(IncompatibleShapeError, match="^error unmarshaling JSON: "):
        bridge.decode(io.BytesIO(b"entries: 5\n"), Catalog)

def test_encode_producer_failure():
    with pytest.raises(MalformedInputError, match="^error marshaling into JSON: "):
        bridge.encode({"a": float("nan")}, io.BytesIO())

@pytest.mark.parametrize("chunk_size", [0, -1])
def test_non_positive_chunk_size_rejected(chunk_size):
    with pytest.raises(ValueError, match="chunk_size must be positive"):
        bridge.encode({"a": 1}, io.BytesIO(), chunk_size=chunk_size)
    with pytest.raises(ValueError, match="chunk_size must be positive"):
        bridge.decode(io.BytesIO(b"a: 1\n"), chunk_size=chunk_size)
    with pytest.raises(ValueError, match="chunk_size must be positive"):
        bridge.decode_strict(io.BytesIO(b"a: 1\n"), chunk_size=chunk_size)

def test_decode_float_layout():
    assert bridge.decode(io.BytesIO(b"a: 1e20\nb: 0.0000001\n"), chunk_size=4) == {"a": 1e20, "b": 1e-7}

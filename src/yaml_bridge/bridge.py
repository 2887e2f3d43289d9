"""Streaming bridge: two concurrent stages joined by an unbuffered conduit.

``encode`` turns an object into JSON on one thread while the other turns
that JSON into YAML; ``decode`` runs the reverse. Each call starts exactly
two threads and joins both before returning. A stage that fails closes its
end of the conduit so the peer never blocks forever; the producer's error
is reported in preference to the consumer's.
"""

from __future__ import annotations

import io
import logging
import threading
from collections.abc import Callable, Iterable
from typing import IO, Any

from .config import DEFAULT_CHUNK_SIZE, DEFAULT_EMITTER_CONFIG, EmitterConfig
from .convert import (
    JSON_TO_YAML_ERROR,
    MARSHAL_ERROR,
    UNMARSHAL_ERROR,
    YAML_TO_JSON_ERROR,
    convert_yaml,
    load_json,
)
from .decoder import decode_json
from .emitter import emit
from .encoder import encode_chunks, iter_value_json
from .errors import MalformedInputError, StrictWarning, reraise_with_prefix
from .strict import Diagnostics

logger = logging.getLogger(__name__)


class ConduitClosedError(BrokenPipeError):
    """The other end of the conduit went away."""
    pass


# ---------------------------------------------------------------------------
# Conduit
# ---------------------------------------------------------------------------

class Conduit:
    """Single-slot, unbuffered byte pipe between one writer and one reader.

    ``write`` hands its chunk over and blocks until the reader has consumed
    all of it. ``read`` blocks until a chunk is available or the writer has
    closed; end of stream reads as ``b""``.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._chunk: bytes | None = None
        self._offset = 0
        self._write_closed = False
        self._read_closed = False
        self._write_error: BaseException | None = None
        self._read_error: BaseException | None = None

    def write(self, data: bytes) -> int:
        if not data:
            return 0
        with self._cond:
            if self._write_closed:
                raise ValueError("write to closed conduit")
            self._cond.wait_for(lambda: self._chunk is None or self._read_closed)
            self._raise_if_read_closed()
            self._chunk = bytes(data)
            self._offset = 0
            self._cond.notify_all()
            self._cond.wait_for(lambda: self._chunk is None or self._read_closed)
            if self._chunk is not None:
                self._chunk = None
                self._raise_if_read_closed()
        return len(data)

    def read(self, size: int = -1) -> bytes:
        """Read up to *size* bytes of the current chunk; all remaining bytes if negative."""
        if size is None or size < 0:
            return b"".join(iter(lambda: self.read(DEFAULT_CHUNK_SIZE), b""))
        with self._cond:
            self._cond.wait_for(
                lambda: self._chunk is not None or self._write_closed or self._read_closed
            )
            if self._chunk is None:
                if self._write_error is not None and not self._read_closed:
                    raise ConduitClosedError("writer failed") from self._write_error
                return b""
            out = self._chunk[self._offset:self._offset + size]
            self._offset += len(out)
            if self._offset >= len(self._chunk):
                self._chunk = None
                self._cond.notify_all()
            return out

    def close_write(self, error: BaseException | None = None) -> None:
        with self._cond:
            self._write_closed = True
            self._write_error = error
            self._cond.notify_all()

    def close_read(self, error: BaseException | None = None) -> None:
        with self._cond:
            self._read_closed = True
            self._read_error = error
            self._cond.notify_all()

    def _raise_if_read_closed(self) -> None:
        if self._read_closed:
            raise ConduitClosedError("reader closed") from self._read_error


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------

class _Stage(threading.Thread):
    """Runs one side of a bridge call and keeps its own outcome."""

    def __init__(self, name: str, fn: Callable[[], Any]) -> None:
        super().__init__(name=name, daemon=True)
        self._fn = fn
        self.result: Any = None
        self.error: Exception | None = None

    def run(self) -> None:
        logger.debug(f"Bridge stage {self.name} started")
        try:
            self.result = self._fn()
        except Exception as exc:
            logger.debug(f"Bridge stage {self.name} failed: {exc}")
            self.error = exc


def _run(producer: Callable[[Conduit], None], consumer: Callable[[Conduit], Any]) -> Any:
    conduit = Conduit()

    def produce() -> None:
        try:
            producer(conduit)
        except Exception as exc:
            conduit.close_write(exc)
            raise
        conduit.close_write()

    def consume() -> Any:
        try:
            result = consumer(conduit)
        except Exception as exc:
            conduit.close_read(exc)
            raise
        conduit.close_read()
        return result

    stage_a = _Stage("producer", produce)
    stage_b = _Stage("consumer", consume)
    stage_a.start()
    stage_b.start()
    stage_a.join()
    stage_b.join()

    # A producer that only saw the consumer hang up reports the consumer's error.
    if stage_a.error is not None and not (
        isinstance(stage_a.error, ConduitClosedError) and stage_b.error is not None
    ):
        raise stage_a.error
    if stage_b.error is not None:
        raise stage_b.error
    return stage_b.result


def _pump(pieces: Iterable[str], conduit: Conduit, chunk_size: int) -> None:
    """Write text *pieces* to *conduit* as UTF-8 chunks of about *chunk_size* bytes."""
    buf = bytearray()
    try:
        for piece in pieces:
            buf += piece.encode("utf-8")
            if len(buf) >= chunk_size:
                conduit.write(bytes(buf))
                buf.clear()
    except (TypeError, ValueError) as exc:
        raise MalformedInputError(f"json: unsupported value: {exc}") from exc
    if buf:
        conduit.write(bytes(buf))


def _drain(conduit: Conduit, chunk_size: int) -> bytes:
    return b"".join(iter(lambda: conduit.read(chunk_size), b""))


def _check_chunk_size(chunk_size: int) -> None:
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")


def _write(writer: IO, payload: bytes) -> None:
    if isinstance(writer, io.TextIOBase):
        writer.write(payload.decode("utf-8"))
    else:
        writer.write(payload)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def encode(
    obj: Any,
    writer: IO,
    config: EmitterConfig | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> None:
    """Write *obj* to *writer* as YAML, encoding to JSON on a second thread."""
    _check_chunk_size(chunk_size)

    def producer(conduit: Conduit) -> None:
        with reraise_with_prefix(MARSHAL_ERROR):
            _pump(encode_chunks(obj), conduit, chunk_size)

    def consumer(conduit: Conduit) -> None:
        with reraise_with_prefix(JSON_TO_YAML_ERROR):
            tree = load_json(_drain(conduit, chunk_size))
            _write(writer, emit(tree, config or DEFAULT_EMITTER_CONFIG))

    _run(producer, consumer)


def _decode(reader: IO, tp: Any, diagnostics: Diagnostics, chunk_size: int) -> Any:
    _check_chunk_size(chunk_size)

    def producer(conduit: Conduit) -> None:
        with reraise_with_prefix(YAML_TO_JSON_ERROR, diagnostics.warnings):
            tree = convert_yaml(reader, tp, diagnostics)
            _pump(iter_value_json(tree), conduit, chunk_size)

    def consumer(conduit: Conduit) -> Any:
        data = _drain(conduit, chunk_size)
        with reraise_with_prefix(UNMARSHAL_ERROR, diagnostics.warnings):
            return decode_json(data, tp, diagnostics)

    return _run(producer, consumer)


def decode(reader: IO, tp: Any = None, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Any:
    """Read YAML from *reader* and decode it into *tp* through a JSON stage."""
    return _decode(reader, tp, Diagnostics(), chunk_size)


def decode_strict(
    reader: IO, tp: Any = None, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> tuple[Any, list[StrictWarning]]:
    """``decode`` with duplicate keys fatal; returns the value and its warnings."""
    diagnostics = Diagnostics.strict()
    value = _decode(reader, tp, diagnostics, chunk_size)
    return value, diagnostics.warnings

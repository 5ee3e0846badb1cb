"""
Shared fixtures: in-memory DBF builder and a recording sink.
"""
import os

os.environ.setdefault("ENVIRONMENT", "testing")

import struct
import threading
import time

import pytest

from dbfload.core.errors import SinkWriteError

HEADER = struct.Struct("<BBBBIHH20x")
FIELD_DESCRIPTOR = struct.Struct("<11sc4xBB14x")


def _encode_value(value, length):
    if isinstance(value, bytes):
        assert len(value) == length, f"binary value must be {length} bytes"
        return value
    return str(value).encode("latin-1").ljust(length, b" ")[:length]


def build_dbf(fields, records, deleted=(), record_count=None, eof=True, version=0x03):
    """
    Build the bytes of a dBase III table.

    Args:
        fields: list of (name, type_tag, length) or (name, type_tag, length, decimals)
        records: list of value tuples (str values are space padded, bytes used as-is)
        deleted: indexes of records flagged as deleted
        record_count: declared count, defaults to len(records)
    """
    descriptors = [tuple(f) + (0,) * (4 - len(f)) for f in fields]
    header_length = HEADER.size + FIELD_DESCRIPTOR.size * len(descriptors) + 1
    record_length = 1 + sum(length for _, _, length, _ in descriptors)
    count = len(records) if record_count is None else record_count

    out = bytearray(HEADER.pack(version, 123, 1, 15, count, header_length, record_length))
    for name, tag, length, decimals in descriptors:
        out += FIELD_DESCRIPTOR.pack(name.encode("ascii"), tag.encode("ascii"), length, decimals)
    out += b"\r"

    for index, values in enumerate(records):
        out += b"*" if index in deleted else b" "
        for (_, _, length, _), value in zip(descriptors, values):
            out += _encode_value(value, length)
    if eof:
        out += b"\x1a"
    return bytes(out)


@pytest.fixture
def dbf_file(tmp_path):
    """Factory writing a DBF file under tmp_path and returning its path."""
    def _write(fields, records, name="table.dbf", **kwargs):
        path = tmp_path / name
        path.write_bytes(build_dbf(fields, records, **kwargs))
        return str(path)
    return _write


class RecordingStream:
    def __init__(self, sink, table, columns, truncate):
        self.sink = sink
        self.table = table
        self.columns = columns
        self.truncate = truncate
        self.rows = []
        self.closed = False
        self.aborted = False

    def write_row(self, values):
        if self.sink.fail_after is not None and len(self.rows) >= self.sink.fail_after:
            raise SinkWriteError("disk full")
        if self.sink.delay:
            time.sleep(self.sink.delay)
        self.rows.append(tuple(values))

    def close(self):
        self.closed = True

    def abort(self):
        self.aborted = True


class RecordingSink:
    """Sink keeping everything in memory, optionally failing after N rows."""

    def __init__(self, fail_after=None, delay=0.0, fail_create=False):
        self.fail_after = fail_after
        self.delay = delay
        self.fail_create = fail_create
        self.created = []
        self.streams = []
        self.events = []
        self._lock = threading.Lock()

    def get_name(self):
        return "recording"

    def create_table(self, definition):
        if self.fail_create:
            raise SinkWriteError("permission denied")
        with self._lock:
            self.events.append("create_table")
            self.created.append(definition)

    def open_output(self, table, columns=None, truncate=False):
        stream = RecordingStream(self, table, columns, truncate)
        with self._lock:
            self.events.append("open_output")
            self.streams.append(stream)
        return stream

    @property
    def rows(self):
        return [row for stream in self.streams for row in stream.rows]


@pytest.fixture
def recording_sink():
    return RecordingSink()

"""
dbf.py
Sequential reader for dBase III/IV and FoxPro tables.
Exposes the field list and record count from the header and decodes one
fixed-width record at a time.
"""
import os
import struct
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, BinaryIO, Callable, Dict, List, Optional, Tuple

from ..core.errors import DbfHeaderError, RecordDecodeError
from ..core.schemas import DbfRecord, FieldDescriptor
from ..setup.logging import logger

# version, yy, mm, dd, record count, header length, record length
HEADER = struct.Struct("<BBBBIHH20x")
# name, type, length, decimals
FIELD_DESCRIPTOR = struct.Struct("<11sc4xBB14x")
FIELD_TERMINATOR = b"\r"
END_OF_FILE = b"\x1a"
LIVE_FLAG = b" "
DELETED_FLAG = b"*"

# Julian day number of 0001-01-01
JULIAN_ORDINAL_OFFSET = 1721425


def _decode_integer(raw: bytes, encoding: str) -> int:
    return struct.unpack("<i", raw)[0]


def _decode_currency(raw: bytes, encoding: str) -> Decimal:
    return Decimal(struct.unpack("<q", raw)[0]).scaleb(-4)


def _decode_timestamp(raw: bytes, encoding: str) -> Optional[datetime]:
    julian_day, milliseconds = struct.unpack("<ii", raw)
    if julian_day == 0 and milliseconds == 0:
        return None
    day = date.fromordinal(julian_day - JULIAN_ORDINAL_OFFSET)
    return datetime(day.year, day.month, day.day) + timedelta(milliseconds=milliseconds)


def _decode_text(raw: bytes, encoding: str) -> str:
    return raw.decode(encoding)


# Binary field types; everything else is stored as text
BINARY_DECODERS: Dict[str, Callable[[bytes, str], Any]] = {
    "I": _decode_integer,
    "Y": _decode_currency,
    "T": _decode_timestamp,
}


class DbfRowSource:
    """
    Row source over an open DBF file.

    Use :meth:`open` (or the class as a context manager) and call
    :meth:`read_next_record` up to ``record_count`` times.
    """

    def __init__(self, stream: BinaryIO, path: str = "<stream>", encoding: str = "latin-1"):
        self.stream = stream
        self.path = path
        self.encoding = encoding
        self.version = 0
        self.last_update: Optional[date] = None
        self.record_count = 0
        self.header_length = 0
        self.record_length = 0
        self.fields: List[FieldDescriptor] = []
        self._layout: List[Tuple[int, int, Callable[[bytes, str], Any]]] = []
        self._next_index = 0

        self._read_header()
        self._build_layout()
        self.stream.seek(self.header_length)

    @classmethod
    def open(cls, path: str, encoding: str = "latin-1") -> "DbfRowSource":
        """Open a DBF file and parse its header."""
        if not os.path.exists(path):
            raise FileNotFoundError(f"File not found: {path}")
        if not os.path.isfile(path):
            raise ValueError(f"Path is not a file: {path}")

        stream = open(path, "rb")
        try:
            return cls(stream, path=path, encoding=encoding)
        except Exception:
            stream.close()
            raise

    def _read_header(self):
        raw = self.stream.read(HEADER.size)
        if len(raw) < HEADER.size:
            raise DbfHeaderError(f"{self.path}: file too short for a DBF header")

        (self.version, yy, mm, dd,
         self.record_count, self.header_length, self.record_length) = HEADER.unpack(raw)

        if self.header_length < HEADER.size + 1 or self.record_length < 1:
            raise DbfHeaderError(
                f"{self.path}: implausible header (header_length={self.header_length}, "
                f"record_length={self.record_length})"
            )

        try:
            self.last_update = date(1900 + yy, mm, dd)
        except ValueError:
            self.last_update = None

        while True:
            marker = self.stream.read(1)
            if marker == FIELD_TERMINATOR:
                break
            rest = self.stream.read(FIELD_DESCRIPTOR.size - 1)
            if not marker or len(rest) < FIELD_DESCRIPTOR.size - 1:
                raise DbfHeaderError(f"{self.path}: field descriptors are not terminated")

            name, type_tag, length, decimals = FIELD_DESCRIPTOR.unpack(marker + rest)
            self.fields.append(FieldDescriptor(
                name=name.split(b"\x00", 1)[0].decode("ascii", errors="replace").strip(),
                type_tag=type_tag.decode("ascii", errors="replace"),
                length=length,
                decimals=decimals,
            ))

        if not self.fields:
            raise DbfHeaderError(f"{self.path}: no fields declared")

    def _build_layout(self):
        offset = 1  # deletion flag
        for field in self.fields:
            decoder = BINARY_DECODERS.get(field.type_tag.upper(), _decode_text)
            self._layout.append((offset, field.length, decoder))
            offset += field.length

        if offset != self.record_length:
            raise DbfHeaderError(
                f"{self.path}: fields span {offset} bytes but record length is {self.record_length}"
            )

    def read_next_record(self) -> Optional[DbfRecord]:
        """
        Decode the next record.

        Returns:
            The record, or None at the end-of-file marker or physical end of file.

        Raises:
            RecordDecodeError: If the record is truncated, has an invalid
                deletion flag or a value cannot be decoded.
        """
        index = self._next_index
        raw = self.stream.read(self.record_length)
        if not raw or raw == END_OF_FILE:
            return None
        if len(raw) < self.record_length:
            raise RecordDecodeError(
                f"truncated record ({len(raw)} of {self.record_length} bytes)", record_index=index
            )

        flag = raw[:1]
        if flag not in (LIVE_FLAG, DELETED_FLAG):
            raise RecordDecodeError(f"invalid deletion flag {flag!r}", record_index=index)

        values = []
        for field, (offset, length, decoder) in zip(self.fields, self._layout):
            try:
                values.append(decoder(raw[offset:offset + length], self.encoding))
            except (UnicodeDecodeError, struct.error, ValueError, OverflowError) as e:
                raise RecordDecodeError(f"field {field.name}: {e}", record_index=index) from e

        self._next_index += 1
        return DbfRecord(deleted=flag == DELETED_FLAG, values=tuple(values))

    def close(self):
        if not self.stream.closed:
            self.stream.close()
            logger.debug(f"[DbfRowSource] Closed {self.path}")

    def __enter__(self) -> "DbfRowSource":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def __repr__(self) -> str:
        return (f"DbfRowSource(path='{self.path}', version=0x{self.version:02x}, "
                f"records={self.record_count}, fields={len(self.fields)})")

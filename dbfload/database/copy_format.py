"""
PostgreSQL COPY text format encoding.

One row becomes one tab-separated, newline-terminated line. NULL is ``\\N``
and backslash, tab, newline and carriage return inside values are escaped.
"""
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Sequence

from ..core.errors import SerializationError

NULL = "\\N"
DELIMITER = "\t"
TERMINATOR = "\n"

_ESCAPES = str.maketrans({
    "\\": "\\\\",
    "\t": "\\t",
    "\n": "\\n",
    "\r": "\\r",
})


def encode_value(value: Any) -> str:
    """Encode a single value as a COPY text field."""
    if value is None:
        return NULL
    if isinstance(value, bool):
        return "t" if value else "f"
    if isinstance(value, str):
        return value.translate(_ESCAPES)
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray, memoryview)):
        return "\\\\x" + bytes(value).hex()
    raise SerializationError(f"Cannot encode value of type {type(value).__name__}: {value!r}")


def encode_row(values: Sequence[Any]) -> str:
    """Encode one row as a COPY text line, including its terminator."""
    return DELIMITER.join(encode_value(value) for value in values) + TERMINATOR

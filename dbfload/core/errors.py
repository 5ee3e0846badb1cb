"""
Exception hierarchy for DBF transfers.
"""
from typing import Optional


class DbfLoadError(Exception):
    """Base class for every error raised by dbfload."""


class DbfHeaderError(DbfLoadError):
    """The DBF header or field descriptor block cannot be parsed."""


class UnmappedTypeError(DbfLoadError):
    """A DBF field type has no target column type."""

    def __init__(self, field_name: str, type_tag: str):
        self.field_name = field_name
        self.type_tag = type_tag
        super().__init__(f"Field '{field_name}' has unmapped type '{type_tag}'")


class RecordDecodeError(DbfLoadError):
    """A single record cannot be decoded; fatal for the transfer."""

    def __init__(self, message: str, record_index: Optional[int] = None):
        self.record_index = record_index
        if record_index is not None:
            message = f"record {record_index}: {message}"
        super().__init__(message)


class SerializationError(DbfLoadError):
    """A row cannot be transformed or encoded for the sink."""


class SinkWriteError(DbfLoadError):
    """The sink rejected a write, a flush or the final commit."""


class QueueClosedPrematurely(DbfLoadError):
    """A row was pushed after the queue was closed. Indicates a bug."""


class QueueCancelled(DbfLoadError):
    """The queue was cancelled while the producer was pushing."""


class TransferFailed(DbfLoadError):
    """
    A transfer did not complete.

    Carries the table name, the stage that failed (``open``, ``schema``,
    ``create_table``, ``read`` or ``write``), the underlying cause and the
    row counts reached before the failure.
    """

    def __init__(self, table: str, stage: str, cause: BaseException,
                 rows_read: int = 0, rows_written: int = 0):
        self.table = table
        self.stage = stage
        self.cause = cause
        self.rows_read = rows_read
        self.rows_written = rows_written
        super().__init__(
            f"Transfer into '{table}' failed during {stage}: "
            f"{type(cause).__name__}: {cause} "
            f"(read={rows_read}, written={rows_written})"
        )

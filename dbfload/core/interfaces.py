from typing import Protocol, Optional, Sequence, List, Any

from .schemas import FieldDescriptor, DbfRecord, TableDefinition


class RowSource(Protocol):
    """Sequential record source with field metadata."""

    fields: List[FieldDescriptor]
    record_count: int

    def read_next_record(self) -> Optional[DbfRecord]:
        """Return the next record, or None once the source is exhausted."""
        ...

    def close(self) -> None:
        ...


class OutputStream(Protocol):
    """Writable bulk-load stream opened by a sink for one table."""

    def write_row(self, values: Sequence[Any]) -> None:
        ...

    def close(self) -> None:
        """Flush pending rows and make them durable."""
        ...

    def abort(self) -> None:
        """Discard pending rows and release the stream."""
        ...


class Sink(Protocol):
    """Destination accepting table creation and bulk row writes."""

    def create_table(self, definition: TableDefinition) -> None:
        ...

    def open_output(self, table: str, columns: Optional[Sequence[str]] = None,
                    truncate: bool = False) -> OutputStream:
        ...

    def get_name(self) -> str:
        """Return sink name for logging."""
        ...

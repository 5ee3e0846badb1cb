from typing import NamedTuple, List, Tuple, Any
from dataclasses import dataclass
from enum import Enum
from pydantic import BaseModel


@dataclass(frozen=True)
class FieldDescriptor:
    """One field of a DBF file, as declared in its header."""
    name: str
    type_tag: str
    length: int
    decimals: int = 0


class TargetColumn(NamedTuple):
    name: str
    target_type: str


@dataclass
class TableDefinition:
    """Target table derived from a DBF field list."""
    name: str
    columns: List[TargetColumn]

    @property
    def column_names(self) -> List[str]:
        return [column.name for column in self.columns]

    def __post_init__(self):
        if not self.name:
            raise ValueError("table name cannot be empty")
        if not self.columns:
            raise ValueError(f"columns cannot be empty for table {self.name}")


class DbfRecord(NamedTuple):
    deleted: bool
    values: Tuple[Any, ...]


class TransferState(str, Enum):
    CREATED = "created"
    TABLE_READY = "table_ready"
    RUNNING = "running"
    DRAINING = "draining"
    COMPLETED = "completed"
    FAILED = "failed"


class TransferResult(BaseModel):
    """Summary of a completed transfer."""
    table: str
    rows_read: int
    rows_written: int
    rows_skipped: int = 0
    elapsed_seconds: float

    def __repr__(self) -> str:
        return (
            f"TransferResult(table='{self.table}', rows_read={self.rows_read}, "
            f"rows_written={self.rows_written}, rows_skipped={self.rows_skipped}, "
            f"elapsed_seconds={self.elapsed_seconds:.3f})"
        )

"""
Per-table transfer statistics shared by the reader and writer threads.
"""
from dataclasses import dataclass, replace, fields
import threading
from typing import Dict, List, Union


@dataclass
class TableStats:
    read: int = 0
    written: int = 0
    errors: int = 0
    skipped: int = 0
    elapsed_seconds: float = 0.0


_COUNTER_FIELDS = frozenset(f.name for f in fields(TableStats))


class StatsAccumulator:
    """
    Table-keyed statistics with atomic per-field increments.

    One accumulator can be shared by several concurrent transfers; each
    table key is written by a single reader/writer pair at a time.
    """

    def __init__(self):
        self._tables: Dict[str, TableStats] = {}
        self._lock = threading.Lock()

    def add_table(self, name: str) -> None:
        """Start a zeroed record for `name`, replacing any previous one."""
        with self._lock:
            self._tables[name] = TableStats()

    def increment(self, name: str, field: str, delta: Union[int, float] = 1) -> None:
        """
        Atomically add `delta` to one field of a table's record.

        Raises:
            ValueError: If `field` is not a TableStats field.
            KeyError: If the table was never added.
        """
        if field not in _COUNTER_FIELDS:
            raise ValueError(f"Unknown stats field: {field}")
        with self._lock:
            stats = self._tables[name]
            setattr(stats, field, getattr(stats, field) + delta)

    def snapshot(self, name: str) -> TableStats:
        """Return a copy of a table's record."""
        with self._lock:
            return replace(self._tables[name])

    def discard(self, name: str) -> None:
        with self._lock:
            self._tables.pop(name, None)

    def tables(self) -> List[str]:
        with self._lock:
            return list(self._tables)

"""
Consumer task: pops rows, applies the field transforms and writes them to the sink.
"""
from typing import Any, List, Optional, Sequence

from ..setup.logging import logger
from .errors import DbfLoadError, SerializationError, SinkWriteError
from .interfaces import Sink
from .row_queue import BoundedRowQueue, END_OF_STREAM
from .stats import StatsAccumulator
from .transforms import Transform


class SinkWriter:
    """Drains the row queue into one sink output stream."""

    def __init__(self, queue: BoundedRowQueue, sink: Sink, stats: StatsAccumulator,
                 table: str, transforms: List[Transform],
                 columns: Optional[Sequence[str]] = None, truncate: bool = False):
        self.queue = queue
        self.sink = sink
        self.stats = stats
        self.table = table
        self.transforms = transforms
        self.columns = columns
        self.truncate = truncate
        self.rows_written = 0

    def transform_row(self, row: Sequence[Any]) -> List[Any]:
        """Apply the index-aligned transforms to one row."""
        if len(row) != len(self.transforms):
            raise SerializationError(
                f"row has {len(row)} values, expected {len(self.transforms)}"
            )
        try:
            return [transform(value) for transform, value in zip(self.transforms, row)]
        except (ValueError, TypeError, AttributeError) as e:
            raise SerializationError(f"row {self.rows_written}: {e}") from e

    def run(self) -> int:
        """
        Write rows until end-of-stream.

        Rows received before a reader failure are committed, unless the load
        truncates the table: then the whole transaction is rolled back.

        Returns:
            Number of rows written.

        Raises:
            SerializationError: If a row cannot be transformed or encoded.
            SinkWriteError: If the sink fails to accept or commit rows.
        """
        try:
            stream = self.sink.open_output(self.table, columns=self.columns, truncate=self.truncate)
        except DbfLoadError:
            self.stats.increment(self.table, "errors")
            raise
        except Exception as e:
            self.stats.increment(self.table, "errors")
            raise SinkWriteError(f"cannot open output for {self.table}: {e}") from e

        try:
            while True:
                row = self.queue.pop()
                if row is END_OF_STREAM:
                    break
                stream.write_row(self.transform_row(row))
                self.rows_written += 1
                self.stats.increment(self.table, "written")
            if self.queue.producer_failed and self.truncate:
                # committing would replace the table with a partial load
                logger.warning(
                    f"[Writer] {self.table}: reader failed, rolling back truncate "
                    f"and {self.rows_written} rows"
                )
                stream.abort()
                return self.rows_written
            stream.close()
        except Exception as e:
            self.stats.increment(self.table, "errors")
            logger.error(f"[Writer] {self.table}: failed after {self.rows_written} rows: {e}")
            stream.abort()
            if isinstance(e, DbfLoadError):
                raise
            raise SinkWriteError(str(e)) from e

        logger.info(f"[Writer] {self.table}: wrote {self.rows_written} rows")
        return self.rows_written

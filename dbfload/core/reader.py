"""
Producer task: reads DBF records in file order and pushes them to the row queue.
"""
from ..setup.logging import logger
from .errors import QueueCancelled, RecordDecodeError
from .interfaces import RowSource
from .row_queue import BoundedRowQueue
from .stats import StatsAccumulator


class RowSourceReader:
    """
    Reads the declared number of records from a row source.

    The queue is closed when the task ends, whatever the outcome, so the
    consumer always observes end-of-stream.
    """

    def __init__(self, source: RowSource, queue: BoundedRowQueue, stats: StatsAccumulator,
                 table: str, skip_deleted: bool = True):
        self.source = source
        self.queue = queue
        self.stats = stats
        self.table = table
        self.skip_deleted = skip_deleted
        self.rows_read = 0

    def run(self) -> int:
        """
        Push every live record to the queue.

        Returns:
            Number of rows pushed.

        Raises:
            RecordDecodeError: If a record cannot be decoded or the source ends
                before its declared record count.
        """
        expected = self.source.record_count
        logger.info(f"[Reader] {self.table}: reading {expected} records")
        try:
            for index in range(expected):
                record = self.source.read_next_record()
                if record is None:
                    raise RecordDecodeError(
                        f"source ended after {index} of {expected} records", record_index=index
                    )
                if record.deleted and self.skip_deleted:
                    self.stats.increment(self.table, "skipped")
                    continue
                self.queue.push(record.values)
                self.rows_read += 1
                self.stats.increment(self.table, "read")
        except QueueCancelled:
            logger.warning(f"[Reader] {self.table}: stopped after {self.rows_read} rows, queue cancelled")
        except Exception:
            self.stats.increment(self.table, "errors")
            logger.error(f"[Reader] {self.table}: failed after {self.rows_read} rows")
            self.queue.close(failed=True)
            raise
        finally:
            self.queue.close()

        logger.info(f"[Reader] {self.table}: pushed {self.rows_read} rows")
        return self.rows_read

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from contextlib import closing
from typing import Callable, List, Optional, Tuple

from ..setup.config import TransferConfig
from ..setup.logging import logger
from ..sources.dbf import DbfRowSource
from .errors import DbfLoadError, TransferFailed
from .interfaces import RowSource, Sink
from .reader import RowSourceReader
from .resolver import SchemaResolver
from .row_queue import BoundedRowQueue
from .schemas import TransferResult, TransferState
from .stats import StatsAccumulator
from .transforms import Transform
from .writer import SinkWriter

SourceOpener = Callable[..., RowSource]

# Reader + writer
WORKER_COUNT = 2


class TransferOrchestrator:
    """
    Runs one DBF → table transfer.

    The source is opened and its schema resolved, the target table is created
    if requested, then a reader and a writer thread share a bounded queue
    until both have finished. A writer failure cancels the queue so the
    reader cannot block forever. A reader failure closes it so the writer
    commits the rows already read.
    """

    def __init__(self, sink: Sink, stats: Optional[StatsAccumulator] = None,
                 config: Optional[TransferConfig] = None,
                 source_opener: Optional[SourceOpener] = None):
        self.sink = sink
        self.stats = stats if stats is not None else StatsAccumulator()
        self.config = config or TransferConfig()
        self.source_opener = source_opener or DbfRowSource.open
        self.resolver = SchemaResolver(lowercase_names=self.config.lowercase_names)
        self.state = TransferState.CREATED

    def _set_state(self, table: str, state: TransferState):
        logger.debug(f"[Orchestrator] {table}: {self.state.value} -> {state.value}")
        self.state = state

    def _fail(self, table: str, stage: str, cause: BaseException) -> TransferFailed:
        self._set_state(table, TransferState.FAILED)
        snapshot = self.stats.snapshot(table)
        logger.error(f"[ERROR] Transfer into {table} failed during {stage}: {cause}")
        return TransferFailed(table, stage, cause,
                              rows_read=snapshot.read, rows_written=snapshot.written)

    def transfer(self, source_path: str, target_table: str,
                 create_table: bool = True, truncate: bool = False) -> TransferResult:
        """
        Transfer every record of `source_path` into `target_table`.

        Args:
            source_path: Path of the DBF file
            target_table: Target table name, optionally schema-qualified
            create_table: Create the table (if missing) before loading
            truncate: Empty the table in the same transaction as the load

        Returns:
            TransferResult with row counts and elapsed time

        Raises:
            TransferFailed: Tagged with the failing stage and the underlying cause
        """
        start_time = time.perf_counter()
        self.state = TransferState.CREATED
        self.stats.add_table(target_table)

        logger.info(f"[Orchestrator] {source_path} -> {target_table} (sink: {self.sink.get_name()})")
        try:
            return self._transfer(source_path, target_table, create_table, truncate)
        finally:
            self.stats.discard(target_table)
            execution_time = time.perf_counter() - start_time
            logger.info(f"[METRICS] {target_table}: total execution time {execution_time:.2f} seconds")

    def _transfer(self, source_path: str, table: str,
                  create_table: bool, truncate: bool) -> TransferResult:
        try:
            source = self.source_opener(source_path, encoding=self.config.encoding)
        except (OSError, ValueError, DbfLoadError) as e:
            raise self._fail(table, "open", e) from e

        with closing(source):
            columns, transforms = self._prepare_table(source, table, create_table)
            self._set_state(table, TransferState.TABLE_READY)

            queue = BoundedRowQueue(self.config.queue_capacity)
            reader = RowSourceReader(source, queue, self.stats, table,
                                     skip_deleted=self.config.skip_deleted)
            writer = SinkWriter(queue, self.sink, self.stats, table, transforms,
                                columns=columns, truncate=truncate)
            first_error = self._run_tasks(table, queue, reader, writer)

        if first_error is not None:
            stage, cause = first_error
            raise self._fail(table, stage, cause) from cause

        snapshot = self.stats.snapshot(table)
        self._set_state(table, TransferState.COMPLETED)
        logger.info(
            f"[SUCCESS] {table}: read={snapshot.read} written={snapshot.written} "
            f"skipped={snapshot.skipped} in {snapshot.elapsed_seconds:.2f}s"
        )
        return TransferResult(
            table=table,
            rows_read=snapshot.read,
            rows_written=snapshot.written,
            rows_skipped=snapshot.skipped,
            elapsed_seconds=snapshot.elapsed_seconds,
        )

    def _prepare_table(self, source: RowSource, table: str,
                       create_table: bool) -> Tuple[List[str], List[Transform]]:
        """Resolve the schema and run the DDL before any row flows."""
        transforms = self.resolver.resolve_transforms(source.fields)
        if not create_table:
            return [self.resolver.column_name(f) for f in source.fields], transforms

        try:
            definition, transforms = self.resolver.resolve(table, source.fields)
        except (DbfLoadError, ValueError) as e:
            raise self._fail(table, "schema", e) from e

        try:
            self.sink.create_table(definition)
        except Exception as e:
            raise self._fail(table, "create_table", e) from e
        return definition.column_names, transforms

    def _run_tasks(self, table: str, queue: BoundedRowQueue, reader: RowSourceReader,
                   writer: SinkWriter) -> Optional[Tuple[str, BaseException]]:
        """Run reader and writer to completion; return the first failure, if any."""
        first_error = None
        self._set_state(table, TransferState.RUNNING)
        started = time.perf_counter()

        with ThreadPoolExecutor(max_workers=WORKER_COUNT,
                                thread_name_prefix=f"dbfload-{table}") as executor:
            futures = {
                executor.submit(reader.run): "read",
                executor.submit(writer.run): "write",
            }
            self._set_state(table, TransferState.DRAINING)
            for future in as_completed(futures):
                stage = futures[future]
                error = future.exception()
                if error is None:
                    continue
                if first_error is None:
                    first_error = (stage, error)
                if stage == "write":
                    # unblock a reader waiting on a full queue
                    queue.cancel()

        self.stats.increment(table, "elapsed_seconds", time.perf_counter() - started)
        return first_error


def transfer(source_path: str, target_table: str, create_table: bool = True,
             truncate: bool = False, *, sink: Sink,
             stats: Optional[StatsAccumulator] = None,
             config: Optional[TransferConfig] = None) -> TransferResult:
    """Transfer one DBF file into one table through `sink`."""
    orchestrator = TransferOrchestrator(sink, stats=stats, config=config)
    return orchestrator.transfer(source_path, target_table,
                                 create_table=create_table, truncate=truncate)

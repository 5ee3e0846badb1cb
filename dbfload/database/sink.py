"""
sink.py
Bulk-load sinks for the transfer pipeline.

PostgresSink streams rows into a live database with COPY FROM STDIN;
ScriptSink writes an equivalent psql script for offline loading.
"""
import io
from typing import Any, Optional, Sequence, TextIO

import psycopg2
from sqlalchemy.exc import SQLAlchemyError

from ..core.errors import SinkWriteError
from ..core.schemas import TableDefinition
from ..setup.logging import logger
from .copy_format import encode_row
from .ddl import copy_sql, create_table_sql, truncate_sql
from .engine import Database


class PostgresCopyStream:
    """
    Buffers encoded rows and sends them with ``copy_expert`` every
    `flush_rows` rows. Everything, including an optional TRUNCATE, runs in
    one transaction committed by :meth:`close`.
    """

    def __init__(self, connection, statement: str, flush_rows: int = 10_000):
        self.connection = connection
        self.cursor = connection.cursor()
        self.statement = statement
        self.flush_rows = flush_rows
        self._buffer = io.StringIO()
        self._pending = 0
        self._released = False
        self.rows_sent = 0

    def write_row(self, values: Sequence[Any]) -> None:
        self._buffer.write(encode_row(values))
        self._pending += 1
        if self._pending >= self.flush_rows:
            self.flush()

    def flush(self) -> None:
        if not self._pending:
            return
        self._buffer.seek(0)
        try:
            self.cursor.copy_expert(self.statement, self._buffer)
        except psycopg2.Error as e:
            raise SinkWriteError(f"COPY failed: {e}") from e
        self.rows_sent += self._pending
        logger.debug(f"[PostgresSink] Flushed {self._pending} rows ({self.rows_sent} total)")
        self._buffer = io.StringIO()
        self._pending = 0

    def close(self) -> None:
        """Flush and commit. On failure the connection stays open for :meth:`abort`."""
        self.flush()
        try:
            self.connection.commit()
        except psycopg2.Error as e:
            raise SinkWriteError(f"Commit failed: {e}") from e
        self._release()

    def abort(self) -> None:
        if self._released:
            return
        try:
            self.connection.rollback()
        except psycopg2.Error as e:
            logger.warning(f"[PostgresSink] Rollback failed: {e}")
        finally:
            self._release()

    def _release(self) -> None:
        if not self._released:
            self._released = True
            self.connection.close()


class PostgresSink:
    """Sink writing into PostgreSQL through a SQLAlchemy-managed connection pool."""

    def __init__(self, database: Database, flush_rows: int = 10_000):
        self.database = database
        self.flush_rows = flush_rows

    def get_name(self) -> str:
        return "postgres"

    def create_table(self, definition: TableDefinition) -> None:
        sql = create_table_sql(definition)
        logger.info(f"[PostgresSink] {sql}")
        try:
            self.database.execute(sql)
        except SQLAlchemyError as e:
            raise SinkWriteError(f"Cannot create table {definition.name}: {e}") from e

    def open_output(self, table: str, columns: Optional[Sequence[str]] = None,
                    truncate: bool = False) -> PostgresCopyStream:
        connection = self.database.raw_connection()
        try:
            if truncate:
                with connection.cursor() as cursor:
                    cursor.execute(truncate_sql(table))
                logger.info(f"[PostgresSink] Truncated {table}")
            return PostgresCopyStream(connection, copy_sql(table, columns), self.flush_rows)
        except psycopg2.Error as e:
            connection.rollback()
            connection.close()
            raise SinkWriteError(f"Cannot open COPY stream for {table}: {e}") from e


class ScriptCopyStream:
    """Writes one ``COPY ... FROM stdin`` data block of a psql script."""

    def __init__(self, sink: "ScriptSink"):
        self.sink = sink

    def write_row(self, values: Sequence[Any]) -> None:
        self.sink.write(encode_row(values))

    def close(self) -> None:
        self.sink.write("\\.\nCOMMIT;\n")
        self.sink.flush()

    def abort(self) -> None:
        try:
            self.sink.write("\\.\nROLLBACK;\n")
            self.sink.flush()
        except SinkWriteError as e:
            logger.warning(f"[ScriptSink] Could not terminate aborted COPY block: {e}")


class ScriptSink:
    """
    Sink producing a SQL script loadable with ``psql -f``.

    The script holds the optional CREATE TABLE, then a transaction with the
    optional TRUNCATE and the COPY data block.
    """

    def __init__(self, output: TextIO, owns_output: bool = False):
        self.output = output
        self.owns_output = owns_output
        self._preamble_written = False

    @classmethod
    def to_path(cls, path: str) -> "ScriptSink":
        return cls(open(path, "w", encoding="utf-8", newline="\n"), owns_output=True)

    def get_name(self) -> str:
        return "script"

    def write(self, text: str) -> None:
        try:
            if not self._preamble_written:
                self._preamble_written = True
                self.output.write("SET client_encoding = 'UTF8';\n")
            self.output.write(text)
        except (OSError, ValueError) as e:
            raise SinkWriteError(f"Cannot write script: {e}") from e

    def flush(self) -> None:
        try:
            self.output.flush()
        except (OSError, ValueError) as e:
            raise SinkWriteError(f"Cannot flush script: {e}") from e

    def create_table(self, definition: TableDefinition) -> None:
        self.write(create_table_sql(definition) + ";\n")

    def open_output(self, table: str, columns: Optional[Sequence[str]] = None,
                    truncate: bool = False) -> ScriptCopyStream:
        self.write("BEGIN;\n")
        if truncate:
            self.write(truncate_sql(table) + ";\n")
        self.write(copy_sql(table, columns).replace("FROM STDIN", "FROM stdin") + ";\n")
        return ScriptCopyStream(self)

    def close(self) -> None:
        if self.owns_output and not self.output.closed:
            self.output.close()

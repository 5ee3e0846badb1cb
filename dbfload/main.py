# Project: dbfload - DBF to PostgreSQL bulk loader
# Objective: Stream dBase tables into PostgreSQL through COPY
import argparse
import sys
from typing import Optional, Sequence

from .setup.config import TransferConfig, get_config
from .setup.logging import logger, reconfigure_logging
from .core.errors import TransferFailed
from .core.orchestrator import TransferOrchestrator
from .database.engine import init_database
from .database.sink import PostgresSink, ScriptSink


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dbfload",
        description="Load one DBF file into one PostgreSQL table.",
        epilog="""
Examples:
  %(prog)s customers.dbf public.customers
    Create public.customers if missing and load it over COPY

  %(prog)s customers.dbf customers --no-create-table --truncate
    Replace the contents of an existing table

  %(prog)s customers.dbf customers --output customers.sql
    Write a psql script instead of connecting (psql -f customers.sql)

Connection settings come from POSTGRES_HOST, POSTGRES_PORT, POSTGRES_USER,
POSTGRES_PASSWORD and POSTGRES_DBNAME (environment or .env file).
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("source", help="Path of the DBF file")
    parser.add_argument("table", help="Target table, optionally schema-qualified")

    table_group = parser.add_argument_group('Table options')
    table_group.add_argument(
        "--no-create-table", dest="create_table", action="store_false",
        help="Do not emit CREATE TABLE; the table must already exist"
    )
    table_group.add_argument(
        "--truncate", action="store_true", help="Empty the table before loading"
    )

    io_group = parser.add_argument_group('Input/output options')
    io_group.add_argument(
        "--output", metavar="SCRIPT", help="Write a SQL script instead of loading into the database"
    )
    io_group.add_argument("--encoding", help="Encoding of DBF character fields (default: DBF_ENCODING or latin-1)")
    io_group.add_argument(
        "--keep-deleted", action="store_true", help="Also transfer records flagged as deleted"
    )
    io_group.add_argument("--queue-capacity", type=int, help="Rows in flight between reader and writer")
    io_group.add_argument("--env-file", default=".env", help="Path of the .env file")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = get_config(env_file=args.env_file)
    reconfigure_logging(config.environment.value, config.log_dir)

    overrides = {}
    if args.encoding:
        overrides["encoding"] = args.encoding
    if args.keep_deleted:
        overrides["skip_deleted"] = False
    if args.queue_capacity is not None:
        overrides["queue_capacity"] = args.queue_capacity
    try:
        transfer_config = TransferConfig.model_validate({**config.transfer.model_dump(), **overrides})
    except ValueError as e:
        parser.error(str(e))

    database = None
    if args.output:
        try:
            sink = ScriptSink.to_path(args.output)
        except OSError as e:
            logger.error(f"[ERROR] Cannot open output script {args.output}: {e}")
            return 1
    else:
        database = init_database(config.database)
        if database is None:
            logger.error("[ERROR] Database is unreachable, aborting")
            return 1
        sink = PostgresSink(database, flush_rows=transfer_config.flush_rows)

    orchestrator = TransferOrchestrator(sink, config=transfer_config)
    try:
        result = orchestrator.transfer(
            args.source, args.table,
            create_table=args.create_table, truncate=args.truncate,
        )
    except TransferFailed as e:
        logger.error(f"[ERROR] {e}")
        return 1
    finally:
        if args.output:
            sink.close()
        if database is not None:
            database.dispose()

    logger.info(
        f"[SUCCESS] {result.table}: {result.rows_written} rows written "
        f"({result.rows_skipped} deleted skipped) in {result.elapsed_seconds:.2f}s"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())

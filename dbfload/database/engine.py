from typing import Union

from psycopg2 import OperationalError as Psycopg2OperationalError
from sqlalchemy import create_engine, pool, text
from sqlalchemy.exc import OperationalError

from ..setup.config import DatabaseConfig
from ..setup.logging import logger


class Database:
    """
    Represents a database connection backed by a SQLAlchemy engine.
    """

    def __init__(self, engine):
        self.engine = engine

    def execute(self, statement: str) -> None:
        """Run one statement in its own transaction."""
        with self.engine.begin() as conn:
            conn.execute(text(statement))

    def raw_connection(self):
        """Return a pooled DBAPI (psycopg2) connection for COPY streaming."""
        return self.engine.raw_connection()

    def dispose(self) -> None:
        self.engine.dispose()

    def __repr__(self):
        return f"Database(engine={self.engine})"


def create_database_instance(uri: str) -> Database:
    engine = create_engine(
        uri,
        poolclass=pool.QueuePool,
        pool_size=2,  # one DDL connection, one COPY connection
        max_overflow=2,
        pool_pre_ping=True,
    )
    return Database(engine=engine)


def init_database(database_config: DatabaseConfig) -> Union[Database, None]:
    """
    Connect to PostgreSQL and verify the connection.

    Args:
        database_config: Database configuration object.

    Returns:
        Database: A Database object for the connection.
        None: If the database cannot be reached.
    """
    database = create_database_instance(database_config.get_connection_string())
    try:
        with database.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info(f'Connection to database "{database_config.database_name}" established!')
    except (OperationalError, Psycopg2OperationalError) as e:
        logger.error(f"Error connecting to the database: {e}")
        database.dispose()
        return None
    return database

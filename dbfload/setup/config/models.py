"""
Pydantic configuration models with validation.

Configuration Architecture:
==========================

DatabaseConfig: PostgreSQL connection settings for the live sink
TransferConfig: Pipeline knobs (queue capacity, COPY flush size, DBF decoding)
AppConfig: Top-level application configuration (environment + database + transfer)
"""

from pydantic import BaseModel, Field, field_validator
from enum import Enum
from typing import Optional
import codecs


class Environment(str, Enum):
    """Application environment enumeration."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"


class DatabaseConfig(BaseModel):
    """Database connection configuration with validation."""

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, ge=1, le=65535, description="Database port")
    user: str = Field(default="postgres", description="Database username")
    password: str = Field(default="postgres", description="Database password")
    database_name: str = Field(default="postgres", description="Database name")

    @field_validator('host')
    @classmethod
    def validate_host(cls, v):
        if not v.strip():
            raise ValueError('Host cannot be empty')
        return v.strip()

    def get_connection_string(self, db_name: Optional[str] = None) -> str:
        """Get PostgreSQL connection string."""
        target_db = db_name or self.database_name
        return f"postgresql+psycopg2://{self.user}:{self.password}@{self.host}:{self.port}/{target_db}"


class TransferConfig(BaseModel):
    """Settings of a single DBF → table transfer."""

    queue_capacity: int = Field(
        default=4096, ge=1, le=1_000_000,
        description="Maximum number of rows in flight between reader and writer"
    )
    flush_rows: int = Field(
        default=10_000, ge=1,
        description="Rows buffered by the PostgreSQL sink before each COPY round trip"
    )
    encoding: str = Field(default="latin-1", description="Text encoding of the DBF character fields")
    skip_deleted: bool = Field(default=True, description="Do not transfer records flagged as deleted")
    lowercase_names: bool = Field(default=True, description="Lower-case DBF field names for target columns")

    @field_validator('encoding')
    @classmethod
    def validate_encoding(cls, v):
        try:
            codecs.lookup(v)
        except LookupError:
            raise ValueError(f'Unknown encoding: {v}')
        return v


class AppConfig(BaseModel):
    """Top-level application configuration."""

    environment: Environment = Field(default=Environment.DEVELOPMENT)
    log_dir: str = Field(default="logs", description="Root directory of the JSON log files")
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    transfer: TransferConfig = Field(default_factory=TransferConfig)

    @property
    def is_testing(self) -> bool:
        return self.environment == Environment.TESTING

"""
Configuration loader with environment variable mapping.
"""

from typing import Optional
import os
import logging
from dotenv import load_dotenv

from .models import AppConfig, DatabaseConfig, TransferConfig, Environment

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("1", "true", "yes", "on")


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in _TRUE_VALUES


class ConfigLoader:
    """Configuration loader with environment variable mapping and validation."""

    def __init__(self, env_file: Optional[str] = None):
        """
        Initialize configuration loader.

        Args:
            env_file: Path to .env file (defaults to .env in current directory)
        """
        self.env_file = env_file or ".env"

    def load_configuration(self) -> AppConfig:
        """
        Load configuration from environment variables.

        Returns:
            Validated AppConfig instance
        """
        self._load_env_file()

        return AppConfig(
            environment=self._load_environment(),
            log_dir=os.getenv("LOG_DIR", "logs"),
            database=self._load_database_config("POSTGRES"),
            transfer=self._load_transfer_config(),
        )

    def _load_env_file(self):
        """Load environment variables from .env file."""
        if os.path.exists(self.env_file):
            load_dotenv(self.env_file, override=False)
            logger.debug(f"Loaded environment variables from {self.env_file}")
        else:
            logger.debug(f"Environment file {self.env_file} not found")

    def _load_environment(self) -> Environment:
        env_str = os.getenv("ENVIRONMENT", "development").lower()
        try:
            return Environment(env_str)
        except ValueError:
            logger.warning(f"Unknown ENVIRONMENT '{env_str}', falling back to development")
            return Environment.DEVELOPMENT

    def _load_database_config(self, prefix: str) -> DatabaseConfig:
        """Load database configuration from environment variables."""
        return DatabaseConfig(
            host=os.getenv(f"{prefix}_HOST", "localhost"),
            port=int(os.getenv(f"{prefix}_PORT", "5432")),
            user=os.getenv(f"{prefix}_USER", "postgres"),
            password=os.getenv(f"{prefix}_PASSWORD", "postgres"),
            database_name=os.getenv(f"{prefix}_DBNAME", "postgres"),
        )

    def _load_transfer_config(self) -> TransferConfig:
        return TransferConfig(
            queue_capacity=int(os.getenv("DBF_QUEUE_CAPACITY", "4096")),
            flush_rows=int(os.getenv("DBF_FLUSH_ROWS", "10000")),
            encoding=os.getenv("DBF_ENCODING", "latin-1"),
            skip_deleted=_env_flag("DBF_SKIP_DELETED", "true"),
            lowercase_names=_env_flag("DBF_LOWERCASE_NAMES", "true"),
        )


def load_config(env_file: Optional[str] = None) -> AppConfig:
    """Convenience function to load configuration."""
    return ConfigLoader(env_file=env_file).load_configuration()

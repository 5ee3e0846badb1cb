"""
Pydantic configuration system.
"""

from typing import Optional

from .models import Environment, DatabaseConfig, TransferConfig, AppConfig
from .loader import ConfigLoader, load_config


def get_config(env_file: Optional[str] = None) -> AppConfig:
    """
    Load application configuration from the environment.

    Args:
        env_file: Optional path to a .env file

    Returns:
        AppConfig: Fully configured application settings
    """
    return load_config(env_file=env_file)


__all__ = [
    "Environment",
    "DatabaseConfig",
    "TransferConfig",
    "AppConfig",
    "ConfigLoader",
    "load_config",
    "get_config",
]

"""Configuration management for gator."""

from .loader import default_config_path, get_db_config, load_config, save_config
from .models import AggregatorConfig, BrowseConfig, ConfigModel, PostgresConfig

__all__ = [
    "AggregatorConfig",
    "BrowseConfig",
    "ConfigModel",
    "PostgresConfig",
    "default_config_path",
    "get_db_config",
    "load_config",
    "save_config",
]

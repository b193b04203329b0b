"""Configuration loader."""

import os
from pathlib import Path
from typing import Any, Dict

import pydantic
import yaml

from ..errors import ConfigError
from .models import ConfigModel


def default_config_path() -> Path:
    """Get the per-user config file location."""
    return Path.home() / ".config" / "gator" / "config.yaml"


def load_config(config_path: Path) -> ConfigModel:
    """Load configuration from YAML file."""
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(config_path) as f:
            config_data = yaml.safe_load(f)

        if config_data is None:
            config_data = {}

        return ConfigModel(**config_data)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file: {e}")
    except (pydantic.ValidationError, TypeError) as e:
        raise ConfigError(f"Invalid configuration: {e}")
    except OSError as e:
        raise ConfigError(f"Unable to read config file {config_path}: {e}")


def save_config(config: ConfigModel, config_path: Path) -> None:
    """Save configuration to YAML file."""
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w") as f:
            yaml.dump(config.model_dump(), f, default_flow_style=False, sort_keys=False)
    except OSError as e:
        raise ConfigError(f"Unable to write config file {config_path}: {e}")


def get_db_config(config: ConfigModel) -> Dict[str, Any]:
    """Get database configuration dict."""
    db_config = config.postgres.model_dump()

    # Handle password from environment if specified
    if db_config.get("password_env"):
        password = os.environ.get(db_config["password_env"])
        if password:
            db_config["password"] = password

    return db_config

"""Per-process session: the loaded config and the current user pointer."""

from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console

from .config import ConfigModel, default_config_path, get_db_config, load_config, save_config
from .errors import ValidationError

console = Console()


class Session:
    """Configuration loaded once at process start and passed to commands."""

    def __init__(self, config: ConfigModel, config_path: Path) -> None:
        """Initialize session."""
        self.config = config
        self.config_path = config_path

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Session":
        """Load the session from disk, writing a default config if none exists."""
        if config_path is None:
            config_path = default_config_path()

        try:
            config = load_config(config_path)
        except FileNotFoundError:
            config = ConfigModel()
            save_config(config, config_path)
            console.print(f"[dim]Created default config: {config_path}[/dim]")

        return cls(config, config_path)

    @property
    def current_user_name(self) -> Optional[str]:
        """Name of the logged in user, if any."""
        return self.config.current_user_name or None

    def set_current_user(self, name: str) -> None:
        """Set the current user and persist the config immediately."""
        if not name:
            raise ValidationError("user name must not be empty")
        self.config.current_user_name = name
        save_config(self.config, self.config_path)

    @property
    def db_config(self) -> Dict[str, Any]:
        """Database configuration dict for the connection pool."""
        return get_db_config(self.config)

"""Configuration management for cup."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .dirs import default_config_file, default_data_dir
from .errors import ConfigError

DEFAULT_CONFIG: Dict[str, Any] = {
    "data_dir": None,
    "commit_message": "{name}: {summary}",
    "log_file": None,
    "debug": False,
}


class Config:
    """Configuration class for cup.

    Values start from ``DEFAULT_CONFIG`` and are overridden by the YAML file
    passed to ``load_config``, or by the user configuration file when one
    exists.
    """

    def __init__(self, config_file: Optional[Path] = None) -> None:
        """Initialize configuration."""
        self.config: Dict[str, Any] = {}
        self.data_dir: Path = default_data_dir()
        self.commit_message: str = DEFAULT_CONFIG["commit_message"]
        self.log_file: Optional[str] = None
        self.debug: bool = False
        self.load_config(config_file)

    def load_config(self, config_file: Optional[Path] = None) -> None:
        """Load configuration from file.

        Args:
            config_file: YAML file to merge over the defaults. When None, the
                user configuration file is used if it exists.

        Raises:
            ConfigError: If the file cannot be read or is not valid YAML.
        """
        self._merge_config(DEFAULT_CONFIG)

        if config_file is None:
            config_file = default_config_file()
            if not config_file.is_file():
                return

        try:
            with open(config_file, "r", encoding="utf-8") as f:
                user_config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Error loading config file {config_file}: {e}") from e
        if user_config:
            try:
                self._merge_config(user_config)
            except ValueError as e:
                raise ConfigError(f"Invalid config file {config_file}: {e}") from e

    def _merge_config(self, config: Dict[str, Any]) -> None:
        """Merge configuration with current configuration."""
        if not isinstance(config, dict):
            raise ValueError("Configuration must be a dictionary")

        self.config.update(config)

        if "data_dir" in config:
            if config["data_dir"] is None:
                self.data_dir = default_data_dir()
            elif isinstance(config["data_dir"], str):
                self.data_dir = Path(config["data_dir"]).expanduser()
            else:
                raise ValueError("data_dir must be a string")

        if "commit_message" in config:
            if not isinstance(config["commit_message"], str):
                raise ValueError("commit_message must be a string")
            self.commit_message = config["commit_message"]

        if "log_file" in config:
            if config["log_file"] is not None and not isinstance(config["log_file"], str):
                raise ValueError("log_file must be a string")
            self.log_file = config["log_file"]

        if "debug" in config:
            if not isinstance(config["debug"], bool):
                raise ValueError("debug must be a boolean")
            self.debug = config["debug"]

    def validate(self) -> List[str]:
        """Validate configuration."""
        errors = []

        if self.data_dir.exists() and not self.data_dir.is_dir():
            errors.append(f"data_dir {self.data_dir} is not a directory")

        try:
            self.commit_message.format(name="", summary="")
        except (KeyError, IndexError, ValueError) as e:
            errors.append(f"commit_message has an invalid placeholder: {e}")

        return errors

    def format_commit_message(self, name: str, summary: str) -> str:
        """Render the commit message template for an export."""
        return self.commit_message.format(name=name, summary=summary)

    def load_from_dict(self, config_data: Dict[str, Any]) -> None:
        """Load configuration from a dictionary.

        Args:
            config_data: Dictionary containing configuration data.

        Example:
            ```python
            config = Config()
            config.load_from_dict({"data_dir": "~/dotfiles", "debug": True})
            ```
        """
        self._merge_config(config_data)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value.

        Args:
            key: The configuration key to get.
            default: The default value to return if the key is not found.

        Returns:
            The configuration value, or the default if not found.
        """
        return self.config.get(key, default)

"""Well-known directories used to resolve file addresses."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

APP_NAME = "cup"


@dataclass(frozen=True)
class Directories:
    """Home and root directories addresses are resolved against.

    Attributes:
        home: Directory ``User`` addresses are relative to.
        root: Directory ``Root`` addresses are relative to.
    """

    home: Path
    root: Path = Path("/")

    @classmethod
    def from_environment(cls) -> "Directories":
        """Return the invoking user's home directory and the filesystem root."""
        return cls(home=Path.home())


def default_data_dir(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Return the directory exports are stored in.

    Uses ``$XDG_DATA_HOME/cup`` when set, ``~/.local/share/cup`` otherwise.
    """
    environ = os.environ if environ is None else environ
    base = environ.get("XDG_DATA_HOME")
    if base:
        return Path(base).expanduser() / APP_NAME
    return Path.home() / ".local" / "share" / APP_NAME


def default_config_file(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Return the location of the user configuration file."""
    environ = os.environ if environ is None else environ
    base = environ.get("XDG_CONFIG_HOME")
    if base:
        return Path(base).expanduser() / APP_NAME / "config.yml"
    return Path.home() / ".config" / APP_NAME / "config.yml"

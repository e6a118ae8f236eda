"""Test configuration."""

from __future__ import annotations

import logging
import shutil
import sys
from pathlib import Path
from typing import Generator, List

import pytest

from cup.core.config import Config
from cup.core.dirs import Directories
from cup.core.manifest import Manifest

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


class RecordingRepository:
    """Repository stand-in that records commit messages."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.messages: List[str] = []
        self.fail = False

    def commit_changes(self, message: str) -> None:
        if self.fail:
            raise RuntimeError("Git command failed: commit refused")
        self.messages.append(message)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Point HOME and the XDG directories at temporary directories."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")

    # setup_logging replaces handlers and the excepthook
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    excepthook = sys.excepthook
    yield
    for handler in root_logger.handlers:
        if handler not in handlers:
            handler.close()
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)
    sys.excepthook = excepthook


@pytest.fixture
def home(tmp_path: Path) -> Path:
    """Synthetic home directory."""
    return tmp_path / "home"


@pytest.fixture
def root(tmp_path: Path) -> Path:
    """Synthetic filesystem root."""
    root = tmp_path / "root"
    root.mkdir()
    return root


@pytest.fixture
def directories(home: Path, root: Path) -> Directories:
    return Directories(home=home, root=root)


@pytest.fixture
def repository(tmp_path: Path) -> RecordingRepository:
    """Export directory backed by a recording repository."""
    path = tmp_path / "export"
    path.mkdir()
    return RecordingRepository(path)


@pytest.fixture
def manifest(repository: RecordingRepository, directories: Directories) -> Manifest:
    """Empty manifest inside the recording repository."""
    return Manifest.create("test", repository, directories)


@pytest.fixture
def bashrc(home: Path) -> Path:
    path = home / ".bashrc"
    path.write_text("export EDITOR=vim\n")
    return path


@pytest.fixture
def hosts(root: Path) -> Path:
    path = root / "etc" / "hosts"
    path.parent.mkdir(parents=True)
    path.write_text("127.0.0.1 localhost\n")
    return path


@pytest.fixture
def test_config(tmp_path: Path) -> Config:
    """Configuration storing exports in a temporary data directory."""
    config = Config()
    config.load_from_dict({"data_dir": str(tmp_path / "exports")})
    return config

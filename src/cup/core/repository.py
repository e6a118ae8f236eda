"""Repository functionality for cup."""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import List, Protocol

logger = logging.getLogger(__name__)

DEFAULT_USER_NAME = "cup"
DEFAULT_USER_EMAIL = "cup@localhost"


class Repository(Protocol):
    """What a manifest needs from the repository that versions it."""

    path: Path

    def commit_changes(self, message: str) -> None:
        """Record the current state of ``path``."""
        ...


class GitRepository:
    """Represents the Git repository that versions one export.

    The working tree holds the manifest document and the archive. Every
    manifest save ends in ``commit_changes`` so each add or remove becomes
    one commit.

    Attributes:
        path (Path): Path to the Git repository.
        name (str): Name of the repository directory.
    """

    def __init__(self, path: Path):
        """Initialize repository."""
        self.path = Path(path).resolve()
        self.name = self.path.name

    def __str__(self) -> str:
        """Return string representation."""
        return f"GitRepository({self.path})"

    def __repr__(self) -> str:
        """Return string representation."""
        return self.__str__()

    def exists(self) -> bool:
        """Check if repository exists and is a Git repository."""
        if not self.path.exists() or not self.path.is_dir():
            return False
        try:
            self._run_git("rev-parse", "--git-dir")
            return True
        except RuntimeError:
            return False

    def _run_git(self, *args: str) -> str:
        """Run a Git command and return its output."""
        logger.debug("git %s (in %s)", " ".join(args), self.path)
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=self.path,
                capture_output=True,
                text=True,
                check=True,
            )
            return result.stdout.strip()
        except FileNotFoundError:
            raise RuntimeError("Git executable not found")
        except subprocess.CalledProcessError as e:
            if e.stderr:
                raise RuntimeError(f"Git command failed: {e.stderr.strip()}")
            if e.stdout:
                raise RuntimeError(f"Git command failed: {e.stdout.strip()}")
            raise RuntimeError("Git command failed with no output")

    def init(self) -> None:
        """Initialize a new Git repository for an export.

        The initialization process:
        1. Creates the repository directory if needed
        2. Initializes Git repository
        3. Configures a local identity when Git has none
        4. Ensures main branch is set up

        Raises:
            RuntimeError: If Git operations fail during initialization.
        """
        if not self.path.exists():
            self.path.mkdir(parents=True)

        self._run_git("init")

        # Commits must not fail on machines without a global identity
        for key, value in (("user.name", DEFAULT_USER_NAME), ("user.email", DEFAULT_USER_EMAIL)):
            try:
                self._run_git("config", key)
            except RuntimeError:
                self._run_git("config", key, value)

        try:
            self._run_git("symbolic-ref", "HEAD", "refs/heads/main")
        except RuntimeError:
            pass

    def add(self, path: str) -> None:
        """Add files to Git staging area.

        Args:
            path (str): Path to the file or directory to add, relative to repository root.

        Raises:
            RuntimeError: If Git add operation fails.
        """
        self._run_git("add", path)

    def commit(self, message: str) -> None:
        """Commit staged changes.

        Args:
            message (str): Commit message describing the changes.

        Raises:
            RuntimeError: If Git commit operation fails for reasons other than
                        nothing to commit.

        Note:
            If there are no changes to commit, this method will return silently
            instead of raising an error.
        """
        try:
            self._run_git("commit", "-m", message)
        except RuntimeError as e:
            if "nothing to commit" in str(e) or "nothing added to commit" in str(e):
                return
            raise

    def has_changes(self) -> bool:
        """Check if the working tree differs from the last commit, untracked files included."""
        return bool(self._run_git("status", "--porcelain"))

    def commit_changes(self, message: str) -> None:
        """Stage everything in the working tree and commit it.

        Does nothing when the working tree is clean.

        Raises:
            RuntimeError: If Git fails.
        """
        if not self.has_changes():
            logger.debug("Nothing to commit in %s", self.path)
            return
        self.add("--all")
        self.commit(message)
        logger.info("Committed: %s", message)

    def log(self, limit: int = 10) -> List[str]:
        """Return the subjects of the most recent commits, newest first."""
        try:
            output = self._run_git("log", f"-{limit}", "--format=%s")
        except RuntimeError:
            return []
        return output.splitlines()

    def delete(self) -> None:
        """Delete the repository from the filesystem."""
        shutil.rmtree(self.path)

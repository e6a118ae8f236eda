"""Error types raised by cup.

Every error derives from ``CupError`` so the command line layer can report
any failure of the engine with a single ``except`` clause.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from .address import FileAddress
    from .reconcile import SyncReport


class CupError(Exception):
    """Base exception for cup errors."""


class ConfigError(CupError):
    """Raised when a configuration file cannot be read or parsed."""


class AlreadyExistsError(CupError):
    """Raised when an export or manifest already exists at the target location."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        super().__init__(f"'{self.path}' already exists")


class ManifestNotFoundError(CupError):
    """Raised when no manifest document exists at the given location."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        super().__init__(f"No manifest found at '{self.path}'")


class ManifestReadError(CupError):
    """Raised when a manifest document exists but cannot be read."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Failed to read manifest '{self.path}': {reason}")


class MalformedManifestError(CupError):
    """Raised when a manifest document cannot be deserialized."""

    def __init__(self, path: Optional[Path], reason: str) -> None:
        self.path = path
        self.reason = reason
        where = f" '{path}'" if path is not None else ""
        super().__init__(f"Malformed manifest{where}: {reason}")


class PathNotFoundError(CupError):
    """Raised when a user supplied path does not exist on disk."""

    def __init__(self, path: Path, spelling: Optional[str] = None) -> None:
        self.path = Path(path)
        self.spelling = spelling
        super().__init__(f"Path does not exist: {spelling or self.path}")


class InvalidAddressError(CupError, ValueError):
    """Raised when a relative path cannot be used as a file address."""


class MalformedArchivePathError(CupError):
    """Raised when an archive file does not follow the ``user/`` or ``root/`` layout."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Archive path '{path}' is not under 'user/' or 'root/'")


class FileOperationError(CupError):
    """A single file failed to copy into or out of the archive."""

    operation = "process"

    def __init__(self, address: "FileAddress", path: Path, reason: str) -> None:
        self.address = address
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Failed to {self.operation} '{self.path}': {reason}")


class CopyFailedError(FileOperationError):
    """A tracked file could not be copied into the archive."""

    operation = "copy"


class RemoveFailedError(FileOperationError):
    """An orphaned archive file could not be deleted."""

    operation = "remove"


class SyncError(CupError):
    """Aggregates every per-file failure of one reconciliation pass."""

    def __init__(self, report: "SyncReport") -> None:
        self.report = report
        self.failures: List[FileOperationError] = list(report.failures)
        lines = [f"{len(self.failures)} file(s) could not be synchronized:"]
        lines.extend(f"  - {failure}" for failure in self.failures)
        super().__init__("\n".join(lines))


class PersistError(CupError):
    """Raised when the manifest document cannot be written."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = Path(path)
        super().__init__(f"Failed to write manifest '{self.path}': {reason}")


class CommitError(CupError):
    """Raised when the repository could not record a commit.

    The archive and manifest are already written when this is raised.
    """

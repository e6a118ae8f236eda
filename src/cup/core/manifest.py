"""Manifest of the files tracked by an export.

The manifest is a YAML document stored next to the archive it describes::

    id: 0f1c7c4e-0c1f-4a53-9d1e-4c2b39a3cb4d
    name: laptop
    files:
    - User: .bashrc
    - Root: etc/hosts

Example:
    ```python
    manifest = Manifest.load(repo.path, repository=repo)
    manifest.append([FileAddress.user(".bashrc")])
    report = manifest.save()
    print(report.summary())  # e.g. "1 added"
    ```
"""

from __future__ import annotations

import logging
import os
import tempfile
import uuid
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional

import yaml

from .address import FileAddress
from .dirs import Directories
from .errors import (
    AlreadyExistsError,
    CommitError,
    InvalidAddressError,
    MalformedManifestError,
    ManifestNotFoundError,
    ManifestReadError,
    PersistError,
)
from .reconcile import ArchiveReconciler, SyncReport
from .repository import Repository

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "cup.yml"
ARCHIVE_DIRNAME = "files"
DEFAULT_COMMIT_MESSAGE = "{name}: {summary}"


class Manifest:
    """Ordered, duplicate free set of tracked file addresses.

    ``append`` and ``remove`` only change the manifest in memory. ``save``
    brings the archive in line, writes the document and asks the repository
    to commit.

    Attributes:
        id (str): Identifier assigned once when the manifest is created.
        name (str): Name of the export.
        files (List[FileAddress]): Tracked addresses.
        path (Optional[Path]): Location of the manifest document.
        repository (Optional[Repository]): Receives a commit after every save.
        directories (Directories): Home and root directories tracked files
            are read from.
        commit_message (str): Template for commit messages, with {name} and
            {summary} placeholders.
    """

    def __init__(
        self,
        name: str,
        id: Optional[str] = None,
        files: Optional[Iterable[FileAddress]] = None,
        path: Optional[Path] = None,
        repository: Optional[Repository] = None,
        directories: Optional[Directories] = None,
    ) -> None:
        self.id = id or str(uuid.uuid4())
        self.name = name
        self.files: List[FileAddress] = list(files or [])
        self.path = Path(path) if path is not None else None
        self.repository = repository
        self.directories = directories or Directories.from_environment()
        self.commit_message = DEFAULT_COMMIT_MESSAGE

    def __repr__(self) -> str:
        return f"Manifest(name={self.name!r}, id={self.id!r}, files={len(self.files)})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Manifest):
            return NotImplemented
        return (self.id, self.name, self.files) == (other.id, other.name, other.files)

    def __contains__(self, address: object) -> bool:
        return address in self.files

    def __iter__(self) -> Iterator[FileAddress]:
        return iter(self.files)

    def __len__(self) -> int:
        return len(self.files)

    @property
    def archive_root(self) -> Path:
        """Directory the tracked files are mirrored into."""
        if self.path is None:
            raise ValueError(f"Manifest '{self.name}' has no backing document")
        return self.path.parent / ARCHIVE_DIRNAME

    @classmethod
    def create(
        cls,
        name: str,
        repository: Repository,
        directories: Optional[Directories] = None,
    ) -> "Manifest":
        """Create an empty manifest inside ``repository`` and write it.

        Raises:
            AlreadyExistsError: If a manifest document already exists there.
            PersistError: If the document cannot be written.
        """
        path = Path(repository.path) / MANIFEST_FILENAME
        manifest = cls(name, path=path, repository=repository, directories=directories)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "x", encoding="utf-8") as f:
                f.write(manifest.dump())
        except FileExistsError:
            raise AlreadyExistsError(path) from None
        except OSError as e:
            raise PersistError(path, str(e)) from e
        logger.debug("Created manifest %s (%s)", path, manifest.id)
        return manifest

    @classmethod
    def load(
        cls,
        path: Path,
        repository: Optional[Repository] = None,
        directories: Optional[Directories] = None,
    ) -> "Manifest":
        """Load a manifest document.

        Args:
            path: The manifest document, or the directory that contains it.
            repository: Repository to commit to after each save.
            directories: Home and root directories to resolve addresses against.

        Raises:
            ManifestNotFoundError: If there is no document at ``path``.
            MalformedManifestError: If the document cannot be parsed.
            ManifestReadError: If the document cannot be read.
        """
        path = Path(path)
        if path.is_dir():
            path = path / MANIFEST_FILENAME
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise ManifestNotFoundError(path) from None
        except UnicodeDecodeError as e:
            raise MalformedManifestError(path, f"not valid UTF-8: {e}") from e
        except OSError as e:
            raise ManifestReadError(path, str(e)) from e
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise MalformedManifestError(path, str(e)) from e
        return cls.from_dict(data, path=path, repository=repository, directories=directories)

    @classmethod
    def from_dict(cls, data: Any, **kwargs: Any) -> "Manifest":
        """Build a manifest from its document form.

        Raises:
            MalformedManifestError: If ``data`` does not have the manifest shape.
        """
        path = kwargs.get("path")
        if not isinstance(data, dict):
            raise MalformedManifestError(path, "document must be a mapping")
        for key in ("id", "name"):
            if not isinstance(data.get(key), str):
                raise MalformedManifestError(path, f"'{key}' must be a string")
        entries = data.get("files")
        if not isinstance(entries, list):
            raise MalformedManifestError(path, "'files' must be a list")
        try:
            files = [FileAddress.from_dict(entry) for entry in entries]
        except InvalidAddressError as e:
            raise MalformedManifestError(path, str(e)) from e
        return cls(data["name"], id=data["id"], files=files, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "files": [address.to_dict() for address in self.files],
        }

    def dump(self) -> str:
        """Serialize the manifest to YAML."""
        return yaml.safe_dump(
            self.to_dict(), sort_keys=False, default_flow_style=False, allow_unicode=True
        )

    def display_strings(self) -> List[str]:
        """Tracked files spelled as ``~/<path>`` or ``/<path>``."""
        return [address.to_display_string() for address in self.files]

    def append(self, addresses: Iterable[FileAddress]) -> List[FileAddress]:
        """Track each address that is not tracked yet.

        Returns:
            The addresses that were added, without duplicates.
        """
        present = set(self.files)
        added = []
        for address in addresses:
            if address in present:
                continue
            present.add(address)
            self.files.append(address)
            added.append(address)
        return added

    def remove(self, addresses: Iterable[FileAddress]) -> List[FileAddress]:
        """Stop tracking each address; addresses that are not tracked are ignored.

        Returns:
            The addresses that were removed.
        """
        targets = set(addresses)
        removed = [address for address in self.files if address in targets]
        self.files = [address for address in self.files if address not in targets]
        return removed

    def reconciler(self) -> ArchiveReconciler:
        return ArchiveReconciler(self.archive_root, self.directories)

    def save(self, refresh: bool = False, message: Optional[str] = None) -> SyncReport:
        """Reconcile the archive, write the manifest and commit.

        The steps run in order:

        1. Sort and de-duplicate ``files``.
        2. Copy missing files into the archive and delete orphans.
        3. Write the manifest document (skipped when unchanged).
        4. Ask the repository to commit.

        Files that fail to copy or remove in step 2 do not stop steps 3 and 4;
        they are raised together afterwards. The manifest keeps listing them,
        so the next save retries.

        Args:
            refresh: Also re-copy tracked files whose content changed.
            message: Commit message. Defaults to ``commit_message`` filled in
                with a summary of the changes.

        Returns:
            SyncReport: What the reconciliation did.

        Raises:
            PersistError: If the manifest cannot be written. Nothing is committed.
            CommitError: If the repository commit fails. The archive and
                manifest stay written.
            SyncError: If any file failed to copy or remove.
        """
        self.files = sorted(set(self.files))

        report = self.reconciler().sync(self, refresh=refresh)
        self._write()

        if self.repository is not None:
            if message is None:
                message = self.commit_message.format(name=self.name, summary=report.summary())
            try:
                self.repository.commit_changes(message)
            except RuntimeError as e:
                raise CommitError(str(e)) from e

        error = report.error
        if error is not None:
            raise error
        return report

    def _write(self) -> bool:
        """Atomically replace the manifest document; return False if unchanged."""
        if self.path is None:
            raise ValueError(f"Manifest '{self.name}' has no backing document")
        text = self.dump()
        try:
            if self.path.is_file() and self.path.read_text(encoding="utf-8") == text:
                logger.debug("Manifest unchanged: %s", self.path)
                return False

            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(text)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise PersistError(self.path, str(e)) from e

        logger.debug("Wrote manifest %s", self.path)
        return True

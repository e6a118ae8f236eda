"""Named dotfile exports stored under the data directory.

Each export is a Git repository holding a manifest and the archive of the
files it tracks::

    <data_dir>/<name>/cup.yml
    <data_dir>/<name>/files/user/...
    <data_dir>/<name>/files/root/...
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from rich.console import Console
from rich.markup import escape

from .address import FileAddress, expand_files, resolve_user_path
from .config import Config
from .dirs import Directories
from .errors import (
    AlreadyExistsError,
    CommitError,
    CupError,
    ManifestNotFoundError,
    PathNotFoundError,
)
from .manifest import MANIFEST_FILENAME, Manifest
from .prompt import select
from .reconcile import SyncReport
from .repository import GitRepository

logger = logging.getLogger(__name__)

Selector = Callable[[Sequence[str]], List[str]]


class ExportManager:
    """Creates, changes and deletes exports.

    Attributes:
        config (Config): Configuration providing the data directory and the
            commit message template.
        console (Console): Rich console for output formatting.
        directories (Directories): Home and root directories tracked files
            are resolved against.
    """

    def __init__(
        self,
        config: Config,
        console: Optional[Console] = None,
        directories: Optional[Directories] = None,
    ) -> None:
        self.config = config
        self.console = console or Console()
        self.directories = directories or Directories.from_environment()

    @property
    def data_dir(self) -> Path:
        return self.config.data_dir

    def path_for(self, name: str) -> Path:
        """Directory of the export called ``name``.

        Raises:
            ValueError: If ``name`` is not a single path segment.
        """
        if not name or name in (".", "..") or "/" in name or os.sep in name:
            raise ValueError(f"Invalid export name '{name}'")
        return self.data_dir / name

    def create(self, name: str) -> Manifest:
        """Create an empty export.

        Raises:
            AlreadyExistsError: If an export with that name exists.
        """
        path = self.path_for(name)
        if path.exists():
            raise AlreadyExistsError(path)

        repo = GitRepository(path)
        try:
            repo.init()
        except RuntimeError as e:
            raise CommitError(f"Could not initialize {path}: {e}") from e
        manifest = Manifest.create(name, repo, self.directories)
        try:
            repo.commit_changes(self.config.format_commit_message(name, "create export"))
        except RuntimeError as e:
            raise CommitError(str(e)) from e
        logger.info("Created export %s at %s", name, path)
        return manifest

    def open(self, name: str) -> Manifest:
        """Load the manifest of an existing export.

        Raises:
            ManifestNotFoundError: If the export does not exist.
            MalformedManifestError: If its manifest cannot be parsed.
        """
        path = self.path_for(name)
        if not (path / MANIFEST_FILENAME).is_file():
            raise ManifestNotFoundError(path / MANIFEST_FILENAME)
        return Manifest.load(path, repository=GitRepository(path), directories=self.directories)

    def resolve(self, paths: Iterable[str], cwd: Optional[Path] = None) -> List[FileAddress]:
        """Resolve user supplied paths to the addresses of the files they contain.

        Directories are expanded to every file below them.

        Raises:
            PathNotFoundError: If any path does not exist. Nothing is resolved.
        """
        cwd = Path(cwd) if cwd is not None else Path.cwd()
        home = self.directories.home
        addresses = []
        for spelling in paths:
            path = resolve_user_path(spelling, cwd, home)
            if not path.exists():
                raise PathNotFoundError(path, spelling)
            for file_path in expand_files(path):
                addresses.append(
                    FileAddress.from_real_path(file_path, home, self.directories.root)
                )
        return addresses

    def add(self, name: str, paths: Iterable[str], cwd: Optional[Path] = None) -> SyncReport:
        """Track ``paths`` in export ``name`` and copy them into its archive."""
        manifest = self.open(name)
        added = manifest.append(self.resolve(paths, cwd))
        for address in added:
            self.console.print(f"[green]Tracking: {escape(str(address))}")
        return self._save(manifest)

    def remove(
        self,
        name: str,
        paths: Iterable[str] = (),
        cwd: Optional[Path] = None,
        interactive: bool = False,
        selector: Optional[Selector] = None,
    ) -> SyncReport:
        """Stop tracking files in export ``name``.

        A path naming a directory untracks every file below it. Paths that
        are not tracked are ignored.

        Args:
            name: Export to change.
            paths: Paths as typed by the user; they do not need to exist.
            cwd: Directory relative paths are resolved against.
            interactive: Ask the user which tracked files to remove instead.
            selector: Replaces the interactive prompt.
        """
        manifest = self.open(name)

        if interactive:
            choose = selector or (lambda candidates: select(candidates, self.console))
            targets = [
                FileAddress.from_display_string(text)
                for text in choose(manifest.display_strings())
            ]
        else:
            cwd = Path(cwd) if cwd is not None else Path.cwd()
            prefixes = [
                FileAddress.from_user_string(
                    spelling, cwd, self.directories.home, self.directories.root
                )
                for spelling in paths
            ]
            targets = [
                address
                for address in manifest.files
                if any(address.is_within(prefix) for prefix in prefixes)
            ]

        removed = manifest.remove(targets)
        for address in removed:
            self.console.print(f"[yellow]Untracking: {escape(str(address))}")
        if not removed:
            self.console.print("[yellow]No tracked files matched")
        return self._save(manifest)

    def sync(self, name: str, refresh: bool = False) -> SyncReport:
        """Repair the archive of export ``name`` without changing its manifest."""
        return self._save(self.open(name), refresh=refresh)

    def status(
        self, name: str
    ) -> Tuple[Manifest, List[FileAddress], List[FileAddress], List[FileAddress]]:
        """Return the manifest with its missing, orphaned and modified files."""
        manifest = self.open(name)
        reconciler = manifest.reconciler()
        return (
            manifest,
            reconciler.missing(manifest),
            reconciler.orphans(manifest),
            reconciler.modified(manifest),
        )

    def list_exports(self) -> List[Manifest]:
        """Load every export in the data directory, sorted by name."""
        if not self.data_dir.is_dir():
            return []
        manifests = []
        for path in sorted(self.data_dir.iterdir()):
            if not path.is_dir():
                continue
            try:
                manifests.append(Manifest.load(path, directories=self.directories))
            except CupError as e:
                logger.warning("Skipping %s: %s", path, e)
        return manifests

    def delete(self, name: str) -> None:
        """Delete export ``name`` with its archive and history.

        Raises:
            ManifestNotFoundError: If the export does not exist.
        """
        path = self.path_for(name)
        if not path.is_dir():
            raise ManifestNotFoundError(path / MANIFEST_FILENAME)
        GitRepository(path).delete()
        logger.info("Deleted export %s", name)

    def _save(self, manifest: Manifest, refresh: bool = False) -> SyncReport:
        manifest.commit_message = self.config.commit_message
        return manifest.save(refresh=refresh)

"""Keep an archive directory equal to the files a manifest tracks.

The archive mirrors each tracked file at ``<archive_root>/<scope>/<path>``.
``ArchiveReconciler.sync`` copies tracked files that are missing from the
archive, deletes archive files nothing tracks any more and prunes the
directories those deletions leave empty.
"""

from __future__ import annotations

import filecmp
import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Set

from .address import FileAddress
from .dirs import Directories
from .errors import CopyFailedError, FileOperationError, RemoveFailedError, SyncError

if TYPE_CHECKING:
    from .manifest import Manifest

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    """Outcome of one reconciliation pass.

    Attributes:
        copied: Addresses copied into the archive because they were missing.
        refreshed: Addresses re-copied because the real file changed.
        removed: Orphaned addresses deleted from the archive.
        pruned: Directories removed because they became empty.
        failures: Per-file copy and remove errors.
    """

    copied: List[FileAddress] = field(default_factory=list)
    refreshed: List[FileAddress] = field(default_factory=list)
    removed: List[FileAddress] = field(default_factory=list)
    pruned: List[Path] = field(default_factory=list)
    failures: List[FileOperationError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def changed(self) -> bool:
        return bool(self.copied or self.refreshed or self.removed or self.pruned)

    @property
    def error(self) -> Optional[SyncError]:
        """Aggregated error for every failure, or None if the pass succeeded."""
        return SyncError(self) if self.failures else None

    def summary(self) -> str:
        parts = []
        if self.copied:
            parts.append(f"{len(self.copied)} added")
        if self.refreshed:
            parts.append(f"{len(self.refreshed)} updated")
        if self.removed:
            parts.append(f"{len(self.removed)} removed")
        if self.failures:
            parts.append(f"{len(self.failures)} failed")
        return ", ".join(parts) if parts else "no changes"


class ArchiveReconciler:
    """Diff and repair an archive directory against a manifest.

    Attributes:
        archive_root (Path): Directory holding the ``user/`` and ``root/`` trees.
        directories (Directories): Home and root directories tracked files
            are copied from.
    """

    def __init__(self, archive_root: Path, directories: Directories) -> None:
        self.archive_root = Path(archive_root)
        self.directories = directories

    def archive_path(self, address: FileAddress) -> Path:
        """Location of ``address`` inside the archive."""
        return self.archive_root / address.to_archive_relative()

    def real_path(self, address: FileAddress) -> Path:
        """Location of ``address`` on the real filesystem."""
        return address.to_real_path(self.directories.home, self.directories.root)

    def archived(self) -> List[FileAddress]:
        """Return the address of every file currently in the archive.

        Raises:
            MalformedArchivePathError: If a file lies outside ``user/`` and ``root/``.
        """
        if not self.archive_root.is_dir():
            return []
        found = []
        for path in sorted(self.archive_root.rglob("*")):
            if path.is_file() or path.is_symlink():
                found.append(FileAddress.from_archive_path(path.relative_to(self.archive_root)))
        return found

    def missing(self, manifest: "Manifest") -> List[FileAddress]:
        """Tracked addresses with no copy in the archive."""
        return [
            address
            for address in manifest.files
            if not self.archive_path(address).is_file()
        ]

    def orphans(self, manifest: "Manifest") -> List[FileAddress]:
        """Archive files that the manifest does not track."""
        tracked: Set[FileAddress] = set(manifest.files)
        return [address for address in self.archived() if address not in tracked]

    def modified(self, manifest: "Manifest") -> List[FileAddress]:
        """Tracked addresses whose archive copy differs from the real file.

        Files whose real copy is gone or unreadable are left out; ``sync``
        reports those when they are missing from the archive.
        """
        changed = []
        for address in manifest.files:
            archived = self.archive_path(address)
            real = self.real_path(address)
            if not archived.is_file() or not real.is_file():
                continue
            try:
                if not filecmp.cmp(real, archived, shallow=False):
                    changed.append(address)
            except OSError as e:
                logger.debug("Could not compare %s: %s", real, e)
        return changed

    def sync(self, manifest: "Manifest", refresh: bool = False) -> SyncReport:
        """Make the archive hold exactly the files ``manifest`` tracks.

        Copies every missing file in before deleting any orphan, so a file
        that moved from one address to another is never absent from the
        archive. A missing file whose slot is taken by an orphan (a directory
        at its path, or a file at one of its parents) is copied after the
        orphans are deleted. Empty directories left behind by deletions or
        failed copies are pruned, but never the archive root itself.

        Args:
            manifest: Manifest whose files the archive should mirror.
            refresh: Also re-copy tracked files whose real content changed.

        Returns:
            SyncReport: What was copied, removed and pruned. Files that could
            not be copied or removed are listed in ``failures``; they never
            stop the rest of the pass.
        """
        report = SyncReport()
        self.archive_root.mkdir(parents=True, exist_ok=True)

        # Slots still occupied by an orphan wait until the orphans are gone
        blocked = []
        for address in self.missing(manifest):
            if self._is_blocked(address):
                blocked.append(address)
            elif self._copy_in(address, report):
                report.copied.append(address)

        if refresh:
            for address in self.modified(manifest):
                if self._copy_in(address, report):
                    report.refreshed.append(address)

        for address in self.orphans(manifest):
            target = self.archive_path(address)
            logger.info("Removing: %s", address)
            try:
                target.unlink()
            except OSError as e:
                logger.warning("Failed to remove %s: %s", target, e)
                report.failures.append(RemoveFailedError(address, target, str(e)))
                continue
            report.removed.append(address)
            report.pruned.extend(self._prune(target.parent))

        for address in blocked:
            target = self.archive_path(address)
            if target.is_dir():
                report.pruned.extend(self._prune(target))
            if self._is_blocked(address):
                logger.warning("Failed to copy %s: archive path is occupied", address)
                report.failures.append(
                    CopyFailedError(address, target, "archive path is occupied")
                )
            elif self._copy_in(address, report):
                report.copied.append(address)

        return report

    def _is_blocked(self, address: FileAddress) -> bool:
        """Check for a directory at ``address`` or a file at one of its parents."""
        target = self.archive_path(address)
        if target.is_dir():
            return True
        parent = target.parent
        while parent != self.archive_root and parent != parent.parent:
            if parent.exists() and not parent.is_dir():
                return True
            parent = parent.parent
        return False

    def _copy_in(self, address: FileAddress, report: SyncReport) -> bool:
        source = self.real_path(address)
        target = self.archive_path(address)
        logger.info("Copying: %s", address)
        if not source.is_file():
            reason = "source file does not exist" if not source.exists() else "not a regular file"
            logger.warning("Failed to copy %s: %s", source, reason)
            report.failures.append(CopyFailedError(address, source, reason))
            return False
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, target)
        except OSError as e:
            logger.warning("Failed to copy %s: %s", source, e)
            report.failures.append(CopyFailedError(address, source, str(e)))
            report.pruned.extend(self._prune(target.parent))
            return False
        return True

    def _prune(self, directory: Path) -> List[Path]:
        """Remove ``directory`` and its parents while they are empty."""
        pruned = []
        root = self.archive_root.resolve()
        current = directory
        while current.resolve() != root and current.resolve().is_relative_to(root):
            try:
                if any(current.iterdir()):
                    break
            except FileNotFoundError:
                current = current.parent
                continue
            except OSError as e:
                logger.debug("Stopped pruning at %s: %s", current, e)
                break
            try:
                current.rmdir()
            except OSError as e:
                logger.debug("Stopped pruning at %s: %s", current, e)
                break
            logger.debug("Pruned empty directory: %s", current)
            pruned.append(current)
            current = current.parent
        return pruned

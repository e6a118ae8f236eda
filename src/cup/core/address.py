"""Location independent identity of a tracked file.

A ``FileAddress`` records which scope a file lives in (the user's home
directory or the filesystem root) and its path relative to that scope.
The same address maps to a real path on any machine and to a fixed
location inside the archive:

    ~/.bashrc       <->  FileAddress(Scope.USER, ".bashrc")  <->  user/.bashrc
    /etc/hosts      <->  FileAddress(Scope.ROOT, "etc/hosts")  <->  root/etc/hosts
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import total_ordering
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Union

from .errors import InvalidAddressError, MalformedArchivePathError, PathNotFoundError

PathLike = Union[str, Path]


class Scope(Enum):
    """Directory a file address is relative to."""

    USER = "user"
    ROOT = "root"

    @property
    def tag(self) -> str:
        """Name used in the manifest document (``User`` or ``Root``)."""
        return self.value.capitalize()

    @property
    def rank(self) -> int:
        return 0 if self is Scope.USER else 1

    @classmethod
    def from_tag(cls, tag: str) -> "Scope":
        for scope in cls:
            if scope.tag == tag:
                return scope
        raise InvalidAddressError(f"Unknown file scope '{tag}'")


def _validate_relative(path: str) -> None:
    if not isinstance(path, str) or not path:
        raise InvalidAddressError("Relative path must be a non-empty string")
    if path.startswith("/"):
        raise InvalidAddressError(f"Relative path '{path}' must not start with '/'")
    for part in path.split("/"):
        if part in ("", ".", ".."):
            raise InvalidAddressError(f"Relative path '{path}' contains an invalid segment")


def resolve_user_path(spelling: str, cwd: PathLike, home_dir: PathLike) -> Path:
    """Turn a path typed by the user into an absolute path.

    Accepts ``~``, ``~/...``, ``./...``, absolute and cwd-relative spellings.
    The result is not canonicalized and may not exist.
    """
    if spelling == "~":
        return Path(home_dir)
    if spelling.startswith("~/"):
        return Path(home_dir) / spelling[2:]
    path = Path(spelling)
    if path.is_absolute():
        return path
    return Path(cwd) / path


def expand_files(path: PathLike) -> List[Path]:
    """List every regular file below ``path``, or ``path`` itself if it is a file."""
    path = Path(path)
    if path.is_dir():
        return sorted(p for p in path.rglob("*") if p.is_file())
    return [path]


@total_ordering
@dataclass(frozen=True)
class FileAddress:
    """Scope qualified relative path of a tracked file.

    Two addresses are equal when both scope and relative path are equal.
    Addresses sort by scope first (``User`` before ``Root``), then by path.

    Attributes:
        scope: Whether ``path`` is relative to the home directory or the root.
        path: POSIX style relative path, never absolute and never containing
            ``..`` segments.
    """

    scope: Scope
    path: str

    def __post_init__(self) -> None:
        if not isinstance(self.scope, Scope):
            raise InvalidAddressError(f"Invalid scope {self.scope!r}")
        _validate_relative(self.path)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, FileAddress):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __str__(self) -> str:
        return self.to_display_string()

    def __repr__(self) -> str:
        return f"{self.scope.tag}({self.path!r})"

    def sort_key(self) -> tuple:
        return (self.scope.rank, self.path)

    @classmethod
    def user(cls, path: str) -> "FileAddress":
        """Address relative to the home directory."""
        return cls(Scope.USER, path)

    @classmethod
    def root(cls, path: str) -> "FileAddress":
        """Address relative to the filesystem root."""
        return cls(Scope.ROOT, path)

    @classmethod
    def from_real_path(
        cls, path: PathLike, home_dir: PathLike, root_dir: PathLike = "/"
    ) -> "FileAddress":
        """Build the address of a file on the real filesystem.

        The path is canonicalized first, so different spellings of the same
        file (symlinks, ``.`` and ``..``) always produce the same address.

        Args:
            path: Path of the file.
            home_dir: Home directory of the invoking user.
            root_dir: Directory ``Root`` addresses are relative to.

        Returns:
            ``User`` address if the file is inside ``home_dir``, ``Root``
            address otherwise.

        Raises:
            InvalidAddressError: If ``path`` is the home or root directory itself.
        """
        real = Path(path).resolve()
        home = Path(home_dir).resolve()
        root = Path(root_dir).resolve()

        if real == home or real == root:
            raise InvalidAddressError(f"'{real}' cannot be tracked as a file")
        if real.is_relative_to(home):
            return cls(Scope.USER, real.relative_to(home).as_posix())
        if real.is_relative_to(root):
            return cls(Scope.ROOT, real.relative_to(root).as_posix())
        return cls(Scope.ROOT, real.relative_to(real.anchor).as_posix())

    @classmethod
    def from_user_string(
        cls, spelling: str, cwd: PathLike, home_dir: PathLike, root_dir: PathLike = "/"
    ) -> "FileAddress":
        """Build an address from a path typed by the user, existing or not."""
        path = resolve_user_path(spelling, cwd, home_dir)
        return cls.from_real_path(path, home_dir, root_dir)

    @classmethod
    def try_from_user_string(
        cls, spelling: str, cwd: PathLike, home_dir: PathLike, root_dir: PathLike = "/"
    ) -> "FileAddress":
        """Build an address from a path typed by the user.

        Raises:
            PathNotFoundError: If the path does not exist on disk.
        """
        path = resolve_user_path(spelling, cwd, home_dir)
        if not path.exists():
            raise PathNotFoundError(path, spelling)
        return cls.from_real_path(path, home_dir, root_dir)

    @classmethod
    def from_archive_path(cls, path: PathLike) -> "FileAddress":
        """Parse an archive relative path such as ``user/.bashrc``.

        Raises:
            MalformedArchivePathError: If the scope segment is missing or unknown.
        """
        parts = PurePosixPath(Path(path).as_posix()).parts
        if len(parts) < 2:
            raise MalformedArchivePathError(str(path))
        try:
            scope = Scope(parts[0])
        except ValueError:
            raise MalformedArchivePathError(str(path)) from None
        try:
            return cls(scope, "/".join(parts[1:]))
        except InvalidAddressError:
            raise MalformedArchivePathError(str(path)) from None

    @classmethod
    def from_display_string(cls, text: str) -> "FileAddress":
        """Inverse of ``to_display_string``."""
        if text.startswith("~/"):
            return cls(Scope.USER, text[2:])
        if text.startswith("/"):
            return cls(Scope.ROOT, text[1:])
        raise InvalidAddressError(f"'{text}' does not start with '~/' or '/'")

    @classmethod
    def from_dict(cls, data: Any) -> "FileAddress":
        """Parse the ``{"User": path}`` / ``{"Root": path}`` manifest form."""
        if not isinstance(data, dict) or len(data) != 1:
            raise InvalidAddressError(f"Expected a single-key mapping, got {data!r}")
        ((tag, path),) = data.items()
        if not isinstance(path, str):
            raise InvalidAddressError(f"Path of {tag} entry must be a string")
        return cls(Scope.from_tag(tag), path)

    def to_dict(self) -> Dict[str, str]:
        return {self.scope.tag: self.path}

    def to_archive_relative(self) -> str:
        """Return ``user/<path>`` or ``root/<path>``."""
        return f"{self.scope.value}/{self.path}"

    def to_real_path(self, home_dir: PathLike, root_dir: PathLike = "/") -> Path:
        """Return where the tracked file lives on the real filesystem."""
        if self.scope is Scope.USER:
            return Path(home_dir) / self.path
        return Path(root_dir) / self.path

    def to_display_string(self) -> str:
        """Return ``~/<path>`` or ``/<path>``."""
        if self.scope is Scope.USER:
            return f"~/{self.path}"
        return f"/{self.path}"

    def is_within(self, other: "FileAddress") -> bool:
        """Whether this address equals ``other`` or lies in the directory it names."""
        return self.scope is other.scope and (
            self.path == other.path or self.path.startswith(other.path + "/")
        )

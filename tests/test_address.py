"""Tests for file addresses."""

from pathlib import Path

import pytest

from cup.core.address import FileAddress, Scope, expand_files, resolve_user_path
from cup.core.errors import InvalidAddressError, MalformedArchivePathError, PathNotFoundError


def test_from_real_path_inside_home(home: Path, root: Path, bashrc: Path) -> None:
    """Files in the home directory become User addresses."""
    address = FileAddress.from_real_path(bashrc, home, root)
    assert address == FileAddress.user(".bashrc")
    assert address.scope is Scope.USER


def test_from_real_path_outside_home(home: Path, root: Path, hosts: Path) -> None:
    """Files outside the home directory become Root addresses."""
    assert FileAddress.from_real_path(hosts, home, root) == FileAddress.root("etc/hosts")


def test_from_real_path_defaults_to_filesystem_root(home: Path, tmp_path: Path) -> None:
    """Without a root directory the address is relative to '/'."""
    other = tmp_path / "elsewhere.conf"
    other.write_text("x")
    address = FileAddress.from_real_path(other, home)
    assert address.scope is Scope.ROOT
    assert address.to_real_path(home) == other.resolve()


def test_from_real_path_canonicalizes(home: Path, root: Path, bashrc: Path, tmp_path: Path) -> None:
    """Different spellings of the same file map to the same address."""
    (home / "sub").mkdir()
    link = tmp_path / "link"
    link.symlink_to(bashrc)

    expected = FileAddress.user(".bashrc")
    assert FileAddress.from_real_path(home / "sub" / ".." / ".bashrc", home, root) == expected
    assert FileAddress.from_real_path(home / "." / ".bashrc", home, root) == expected
    assert FileAddress.from_real_path(link, home, root) == expected


def test_from_real_path_rejects_home_itself(home: Path, root: Path) -> None:
    with pytest.raises(InvalidAddressError):
        FileAddress.from_real_path(home, home, root)


@pytest.mark.parametrize("path", ["", "/etc/hosts", "a/../b", "..", "a//b", "a/./b", "dir/"])
def test_invalid_relative_paths(path: str) -> None:
    """Relative paths are validated at construction."""
    with pytest.raises(InvalidAddressError):
        FileAddress.user(path)
    with pytest.raises(ValueError):
        FileAddress.root(path)


def test_equality_and_ordering() -> None:
    """Addresses compare by scope, then path, with User before Root."""
    addresses = [
        FileAddress.root("b"),
        FileAddress.user("z"),
        FileAddress.root("a"),
        FileAddress.user(".bashrc"),
    ]
    assert sorted(addresses) == [
        FileAddress.user(".bashrc"),
        FileAddress.user("z"),
        FileAddress.root("a"),
        FileAddress.root("b"),
    ]
    assert FileAddress.user("a") != FileAddress.root("a")
    assert len({FileAddress.user("a"), FileAddress.user("a")}) == 1


def test_archive_paths() -> None:
    """Archive paths carry the scope as their first segment."""
    assert FileAddress.user(".config/nvim/init.lua").to_archive_relative() == (
        "user/.config/nvim/init.lua"
    )
    assert FileAddress.root("etc/hosts").to_archive_relative() == "root/etc/hosts"
    assert FileAddress.from_archive_path("user/.bashrc") == FileAddress.user(".bashrc")
    assert FileAddress.from_archive_path(Path("root/etc/hosts")) == FileAddress.root("etc/hosts")


@pytest.mark.parametrize("path", ["", "user", "root", "files/.bashrc", "README.md", "User/.bashrc"])
def test_malformed_archive_paths(path: str) -> None:
    with pytest.raises(MalformedArchivePathError):
        FileAddress.from_archive_path(path)


def test_to_real_path(home: Path, root: Path) -> None:
    assert FileAddress.user(".bashrc").to_real_path(home, root) == home / ".bashrc"
    assert FileAddress.root("etc/hosts").to_real_path(home, root) == root / "etc" / "hosts"


def test_try_from_user_string(home: Path, root: Path, bashrc: Path, tmp_path: Path) -> None:
    """Home, cwd-relative, dot-relative and absolute spellings are accepted."""
    expected = FileAddress.user(".bashrc")
    assert FileAddress.try_from_user_string("~/.bashrc", tmp_path, home, root) == expected
    assert FileAddress.try_from_user_string("./.bashrc", home, home, root) == expected
    assert FileAddress.try_from_user_string(".bashrc", home, home, root) == expected
    assert FileAddress.try_from_user_string(str(bashrc), tmp_path, home, root) == expected


def test_try_from_user_string_missing(home: Path, root: Path) -> None:
    with pytest.raises(PathNotFoundError) as exc_info:
        FileAddress.try_from_user_string("~/.missing", home, home, root)
    assert exc_info.value.spelling == "~/.missing"


def test_from_user_string_does_not_require_existence(home: Path, root: Path) -> None:
    assert FileAddress.from_user_string("~/.gone", home, home, root) == FileAddress.user(".gone")


def test_resolve_user_path(home: Path, tmp_path: Path) -> None:
    assert resolve_user_path("~", tmp_path, home) == home
    assert resolve_user_path("~/x", tmp_path, home) == home / "x"
    assert resolve_user_path("/etc/hosts", tmp_path, home) == Path("/etc/hosts")
    assert resolve_user_path("a/b", tmp_path, home) == tmp_path / "a" / "b"


def test_display_strings() -> None:
    """Display strings use ~/ for User and / for Root, and parse back."""
    user = FileAddress.user(".bashrc")
    root = FileAddress.root("etc/hosts")
    assert user.to_display_string() == "~/.bashrc"
    assert str(root) == "/etc/hosts"
    assert FileAddress.from_display_string("~/.bashrc") == user
    assert FileAddress.from_display_string("/etc/hosts") == root
    with pytest.raises(InvalidAddressError):
        FileAddress.from_display_string("relative/path")


def test_document_form() -> None:
    """Addresses serialize as single-key User/Root mappings."""
    assert FileAddress.user(".bashrc").to_dict() == {"User": ".bashrc"}
    assert FileAddress.from_dict({"Root": "etc/hosts"}) == FileAddress.root("etc/hosts")
    for bad in ({"Other": "x"}, {"User": 1}, {"User": "a", "Root": "b"}, ["User", "a"]):
        with pytest.raises(InvalidAddressError):
            FileAddress.from_dict(bad)


def test_is_within() -> None:
    directory = FileAddress.user(".config/nvim")
    assert FileAddress.user(".config/nvim/init.lua").is_within(directory)
    assert directory.is_within(directory)
    assert not FileAddress.user(".config/nvim-old/init.lua").is_within(directory)
    assert not FileAddress.root(".config/nvim/init.lua").is_within(directory)


def test_expand_files(home: Path) -> None:
    """Directories expand to every file below them."""
    nvim = home / ".config" / "nvim"
    (nvim / "lua").mkdir(parents=True)
    (nvim / "init.lua").write_text("-- init")
    (nvim / "lua" / "plugins.lua").write_text("-- plugins")

    assert expand_files(nvim) == [nvim / "init.lua", nvim / "lua" / "plugins.lua"]
    assert expand_files(nvim / "init.lua") == [nvim / "init.lua"]

"""Tests for repository management."""

import subprocess
from pathlib import Path

import pytest

from cup.core.repository import GitRepository

from conftest import requires_git

pytestmark = requires_git


@pytest.fixture
def git_repo(tmp_path: Path) -> GitRepository:
    """Create an initialized Git repository."""
    repo = GitRepository(tmp_path / "repo")
    repo.init()
    return repo


def test_init(git_repo: GitRepository) -> None:
    """Test GitRepository initialization."""
    assert git_repo.exists()
    assert git_repo.name == "repo"
    assert (git_repo.path / ".git").is_dir()
    assert git_repo._run_git("config", "user.email")


def test_exists_on_plain_directory(tmp_path: Path) -> None:
    assert not GitRepository(tmp_path / "missing").exists()


def test_commit_changes(git_repo: GitRepository) -> None:
    """Everything in the working tree ends up in one commit."""
    (git_repo.path / "cup.yml").write_text("id: x\n")
    (git_repo.path / "files" / "user").mkdir(parents=True)
    (git_repo.path / "files" / "user" / ".bashrc").write_text("alias ll='ls -l'\n")
    assert git_repo.has_changes()

    git_repo.commit_changes("laptop: 1 added")

    assert not git_repo.has_changes()
    assert git_repo.log() == ["laptop: 1 added"]
    tracked = subprocess.run(
        ["git", "ls-files"], cwd=git_repo.path, capture_output=True, text=True, check=True
    ).stdout.split()
    assert sorted(tracked) == ["cup.yml", "files/user/.bashrc"]


def test_commit_changes_clean_tree(git_repo: GitRepository) -> None:
    """A clean working tree produces no commit and no error."""
    (git_repo.path / "cup.yml").write_text("id: x\n")
    git_repo.commit_changes("first")
    git_repo.commit_changes("second")
    assert git_repo.log() == ["first"]


def test_commit_records_deletions(git_repo: GitRepository) -> None:
    target = git_repo.path / "file"
    target.write_text("x")
    git_repo.commit_changes("add")
    target.unlink()

    git_repo.commit_changes("remove")

    assert git_repo.log() == ["remove", "add"]


def test_commit_nothing_staged(git_repo: GitRepository) -> None:
    """Committing with nothing staged returns silently."""
    git_repo.commit("empty")
    assert git_repo.log() == []


def test_git_failure(git_repo: GitRepository) -> None:
    with pytest.raises(RuntimeError, match="Git command failed"):
        git_repo._run_git("checkout", "no-such-branch")


def test_delete(git_repo: GitRepository) -> None:
    git_repo.delete()
    assert not git_repo.path.exists()

"""Pytest fixtures for worktree-keeper tests"""
import os
import tempfile
from pathlib import Path
from unittest.mock import Mock

import git
import pytest
from rich.console import Console

from worktree_keeper.config import load_config
from worktree_keeper.core import WorktreeKeeper
from worktree_keeper.user_config import UserConfig

WT_YAML = """\
version: 1
worktree_dir: worktrees
branch_pattern: "{name}"
"""


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing (symlinks resolved)."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(os.path.realpath(tmpdir))


@pytest.fixture(autouse=True)
def isolated_home(temp_dir, monkeypatch):
    """Point HOME at a scratch directory so user config never leaks in or out."""
    home = temp_dir / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("WT_CD_FILE", raising=False)
    return home


def commit_file(repo: git.Repo, relative_path: str, content: str, message: str) -> str:
    """Write a file in the repo's working tree, commit it and return the new SHA.

    Goes through the git CLI so it works the same in linked worktrees.
    """
    path = Path(repo.working_tree_dir) / relative_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    repo.git.add(relative_path)
    repo.git.commit("-m", message)
    return repo.git.rev_parse("HEAD")


@pytest.fixture
def commit():
    """The commit_file helper, as a fixture."""
    return commit_file


@pytest.fixture
def git_repo(temp_dir):
    """Create a real Git repository with a .wt.yaml on branch main."""
    repo_path = temp_dir / "test_repo"
    repo_path.mkdir()

    repo = git.Repo.init(repo_path)

    # Configure git user for commits
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()

    (repo_path / ".wt.yaml").write_text(WT_YAML)
    (repo_path / ".gitignore").write_text("worktrees/\n")
    (repo_path / "README.md").write_text("# Test Repository\n")
    repo.index.add(["README.md", ".wt.yaml", ".gitignore"])
    repo.index.commit("Initial commit")

    # Rename master to main if needed
    repo.git.branch("-M", "main")

    yield repo

    repo.close()


@pytest.fixture
def repo_root(git_repo):
    return git_repo.working_tree_dir


@pytest.fixture
def console():
    """Wide stdout console so table rows never wrap."""
    return Console(width=200)


@pytest.fixture
def err_console():
    return Console(stderr=True, width=200)


@pytest.fixture
def make_keeper(repo_root, console, err_console):
    """Factory for a WorktreeKeeper on the test repository."""

    def _make(config=None, user_config=None, confirm=None):
        return WorktreeKeeper(
            repo_root,
            config or load_config(repo_root),
            user_config=user_config or UserConfig(),
            console=console,
            err_console=err_console,
            confirm=confirm or (lambda prompt: True),
        )

    return _make


@pytest.fixture
def keeper(make_keeper):
    return make_keeper()


@pytest.fixture
def mock_git_service():
    """Create a mock GitService with benign defaults."""
    from worktree_keeper.services.git_service import GitService

    service = Mock(spec=GitService)
    service.has_uncommitted_changes.return_value = False
    service.get_commits_ahead_behind.return_value = (0, 0)
    service.get_merged_branches.return_value = set()
    service.is_branch_merged.return_value = False
    service.get_merge_prs.return_value = []
    service.get_worktree_initial_commit.return_value = ""
    service.get_current_commit.return_value = "abc123"
    service.get_worktree_created_at.return_value = None
    service.get_worktree_metadata.return_value = ""
    service.list_worktree_metadata_names.return_value = []
    service.get_default_branch.return_value = "main"
    service.ref_exists.return_value = True
    service.get_last_fetch_time.return_value = None
    service.update_remote_head.return_value = True
    return service

"""Git operations service"""
import os
import git
from datetime import datetime
from typing import List, Optional, Set, Tuple

from worktree_keeper.exceptions import NotInRepositoryError
from worktree_keeper.models.worktree import WorktreeInfo
from worktree_keeper.services.git import (
    BranchQueries,
    MergeDetector,
    RemoteService,
    WorktreeService,
    get_worktree_name,
    is_inside_worktree_dir,
)
from worktree_keeper.utils.logging import get_logger

logger = get_logger(__name__)


def get_main_repo_root(path: Optional[str] = None) -> str:
    """Find the main repository root, even from inside a linked worktree.

    Symlinks are resolved so the result compares equal to the paths git
    prints in `git worktree list`.

    Raises:
        NotInRepositoryError: path is not inside a git repository
    """
    path = path or os.getcwd()
    try:
        repo = git.Repo(path, search_parent_directories=True)
    except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
        raise NotInRepositoryError(path)

    try:
        common_dir = os.path.abspath(repo.common_dir)
    finally:
        repo.close()

    # <main>/.git is shared by every linked worktree
    if os.path.basename(common_dir) == ".git":
        root = os.path.dirname(common_dir)
    elif repo.working_tree_dir:
        root = repo.working_tree_dir
    else:
        raise NotInRepositoryError(path)
    return os.path.realpath(root)


class GitService:
    """Facade over the git command surface used by worktree-keeper.

    Read queries are best-effort and return zero values (False, 0, "",
    empty collections, None) when they do not apply. Mutations raise
    GitOperationError carrying git's stderr.
    """

    def __init__(self, repo_path: str):
        """Initialize the service.

        Args:
            repo_path: Path to the main repository root
        """
        self.repo_path = repo_path
        self.worktrees = WorktreeService(repo_path)
        self.branches = BranchQueries(repo_path)
        self.merges = MergeDetector(repo_path)
        self.remotes = RemoteService(repo_path)
        logger.debug(f"Git service initialized for {repo_path}")

    # Worktrees

    def list_worktrees(self) -> List[WorktreeInfo]:
        return self.worktrees.list_worktrees()

    def create_worktree(self, path: str, branch_name: str) -> None:
        self.worktrees.create_worktree(path, branch_name)

    def create_worktree_from_branch(self, path: str, branch_name: str) -> None:
        self.worktrees.create_worktree_from_branch(path, branch_name)

    def remove_worktree(self, path: str, force: bool = False) -> None:
        self.worktrees.remove_worktree(path, force)

    def prune_worktrees(self) -> None:
        self.worktrees.prune_worktrees()

    @staticmethod
    def get_worktree_name(repo_root: str, worktree_path: str, worktree_dir: str) -> str:
        return get_worktree_name(repo_root, worktree_path, worktree_dir)

    @staticmethod
    def is_inside_worktree_dir(repo_root: str, path: str, worktree_dir: str) -> bool:
        return is_inside_worktree_dir(repo_root, path, worktree_dir)

    # Per-worktree metadata

    def list_worktree_metadata_names(self) -> List[str]:
        return self.worktrees.list_metadata_names()

    def get_worktree_metadata(self, worktree_name: str, key: str) -> str:
        return self.worktrees.get_metadata(worktree_name, key)

    def set_worktree_metadata(self, worktree_name: str, key: str, value: str) -> None:
        self.worktrees.set_metadata(worktree_name, key, value)

    def get_worktree_created_at(self, worktree_name: str) -> Optional[datetime]:
        return self.worktrees.get_created_at(worktree_name)

    def set_worktree_created_at(self, worktree_name: str, when: Optional[datetime] = None) -> None:
        self.worktrees.set_created_at(worktree_name, when)

    def get_worktree_initial_commit(self, worktree_name: str) -> str:
        return self.worktrees.get_initial_commit(worktree_name)

    def set_worktree_initial_commit(self, worktree_name: str, commit_sha: str) -> None:
        self.worktrees.set_initial_commit(worktree_name, commit_sha)

    # Branches

    def branch_exists(self, branch_name: str) -> bool:
        return self.branches.branch_exists(branch_name)

    def ref_exists(self, ref: str) -> bool:
        return self.branches.ref_exists(ref)

    def get_current_branch(self, path: str) -> str:
        return self.branches.get_current_branch(path)

    def get_current_commit(self, path: str) -> str:
        return self.branches.get_current_commit(path)

    def get_default_branch(self) -> str:
        return self.branches.get_default_branch()

    def has_uncommitted_changes(self, path: str) -> bool:
        return self.branches.has_uncommitted_changes(path)

    def get_commits_ahead_behind(self, worktree_path: str, comparison_ref: str) -> Tuple[int, int]:
        return self.branches.get_commits_ahead_behind(worktree_path, comparison_ref)

    def delete_branch(self, branch_name: str, force: bool = False) -> None:
        self.branches.delete_branch(branch_name, force)

    # Merge detection

    def get_merged_branches(self, comparison_ref: str) -> Set[str]:
        return self.merges.get_merged_branches(comparison_ref)

    def is_branch_merged(self, branch_name: str, comparison_ref: str) -> bool:
        return self.merges.is_branch_merged(branch_name, comparison_ref)

    def get_merge_prs(self, branch_name: str, comparison_ref: str) -> List[str]:
        return self.merges.get_merge_prs(branch_name, comparison_ref)

    # Remotes

    def fetch_remote_quiet(self, remote: str) -> None:
        self.remotes.fetch_quiet(remote)

    def update_remote_head(self, remote: str) -> bool:
        return self.remotes.update_remote_head(remote)

    def get_last_fetch_time(self, remote: str) -> Optional[datetime]:
        return self.remotes.get_last_fetch_time(remote)

    def set_last_fetch_time(self, remote: str, when: Optional[datetime] = None) -> None:
        self.remotes.set_last_fetch_time(remote, when)

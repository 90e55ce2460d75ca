"""Branch query service for worktree-keeper."""

import git
from typing import Tuple

from worktree_keeper.exceptions import GitOperationError
from worktree_keeper.utils.logging import get_logger

logger = get_logger(__name__)


class BranchQueries:
    """Service for querying and mutating local branches."""

    def __init__(self, repo_path: str):
        """Initialize the branch queries service.

        Args:
            repo_path: Path to the main repository root
        """
        self.repo_path = repo_path
        logger.debug("Branch queries service initialized")

    def _get_repo(self):
        """Get a fresh git.Repo instance for the main repository."""
        return git.Repo(self.repo_path)

    def _run_in(self, path: str, *args: str) -> str:
        """Run a git command inside another working tree (git -C <path>)."""
        repo = self._get_repo()
        return repo.git.execute(["git", "-C", path, *args])

    def branch_exists(self, branch_name: str) -> bool:
        """Check whether a local branch exists."""
        if not branch_name:
            return False
        repo = self._get_repo()
        try:
            repo.git.show_ref("--verify", "--quiet", f"refs/heads/{branch_name}")
            return True
        except git.exc.GitCommandError:
            return False

    def ref_exists(self, ref: str) -> bool:
        """Check whether any ref (branch, remote branch, tag) resolves."""
        if not ref:
            return False
        repo = self._get_repo()
        try:
            repo.git.rev_parse("--verify", "--quiet", ref)
            return True
        except git.exc.GitCommandError:
            return False

    def get_current_branch(self, path: str) -> str:
        """Branch checked out at path; empty string on detached HEAD or error."""
        try:
            return self._run_in(path, "branch", "--show-current").strip()
        except git.exc.GitCommandError as e:
            logger.debug(f"Could not read current branch at {path}: {e}")
            return ""

    def get_current_commit(self, path: str) -> str:
        """HEAD commit at path; empty string when it cannot be resolved."""
        try:
            return self._run_in(path, "rev-parse", "HEAD").strip()
        except git.exc.GitCommandError as e:
            logger.debug(f"Could not resolve HEAD at {path}: {e}")
            return ""

    def get_default_branch(self) -> str:
        """Detect the repository's default branch.

        Tries the remote HEAD symbolic ref first, then falls back to local
        `main` and `master`.

        Raises:
            GitOperationError: None of the candidates exist
        """
        repo = self._get_repo()
        try:
            ref = repo.git.symbolic_ref("refs/remotes/origin/HEAD").strip()
            if ref.startswith("refs/remotes/origin/"):
                return ref[len("refs/remotes/origin/"):]
        except git.exc.GitCommandError:
            logger.debug("No origin/HEAD symbolic ref")

        for candidate in ("main", "master"):
            if self.branch_exists(candidate):
                return candidate

        raise GitOperationError("symbolic-ref", message="could not determine default branch")

    def has_uncommitted_changes(self, path: str) -> bool:
        """Check for modified, staged or untracked files at path.

        Raises:
            GitOperationError: git status itself failed
        """
        try:
            output = self._run_in(path, "status", "--porcelain")
        except git.exc.GitCommandError as e:
            raise GitOperationError("status", path, str(e).strip())
        return bool(output.strip())

    def get_commits_ahead_behind(self, worktree_path: str, comparison_ref: str) -> Tuple[int, int]:
        """Count commits the worktree's branch is ahead of / behind comparison_ref.

        Returns:
            (ahead, behind); (0, 0) on detached HEAD or when the histories
            cannot be compared
        """
        branch = self.get_current_branch(worktree_path)
        if not branch:
            return 0, 0

        repo = self._get_repo()
        try:
            # Output: "<behind>\t<ahead>"
            output = repo.git.rev_list("--count", "--left-right", f"{comparison_ref}...{branch}")
        except git.exc.GitCommandError as e:
            logger.debug(f"rev-list {comparison_ref}...{branch} failed: {e}")
            return 0, 0

        parts = output.strip().split("\t")
        if len(parts) != 2:
            return 0, 0
        try:
            behind, ahead = int(parts[0]), int(parts[1])
        except ValueError:
            return 0, 0
        return ahead, behind

    def delete_branch(self, branch_name: str, force: bool = False) -> None:
        """Delete a local branch (-d, or -D when forced).

        Raises:
            GitOperationError: git refused to delete the branch
        """
        repo = self._get_repo()
        flag = "-D" if force else "-d"
        try:
            repo.git.branch(flag, branch_name)
        except git.exc.GitCommandError as e:
            stderr = (e.stderr or "").replace("stderr: ", "", 1).strip().strip("'").strip()
            raise GitOperationError("branch " + flag, branch_name, stderr or str(e))
        logger.info(f"Deleted branch {branch_name}")

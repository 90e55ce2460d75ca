"""Worktree status computation service"""

from typing import Optional, Set, TYPE_CHECKING

from worktree_keeper.exceptions import GitOperationError
from worktree_keeper.models.worktree import WorktreeStatus
from worktree_keeper.utils.logging import get_logger

if TYPE_CHECKING:
    from worktree_keeper.services.git_service import GitService

logger = get_logger(__name__)


class StatusService:
    """Builds WorktreeStatus records from live git state."""

    def __init__(self, git_service: "GitService"):
        self.git_service = git_service

    def get_merged_cache(self, comparison_ref: str) -> Set[str]:
        """Merged branch set to reuse for every worktree in one command."""
        return self.git_service.get_merged_branches(comparison_ref)

    def compute(
        self,
        worktree_path: str,
        worktree_name: str,
        branch_name: str,
        comparison_ref: str,
        merged_cache: Optional[Set[str]] = None,
    ) -> WorktreeStatus:
        """Compute a worktree's status relative to comparison_ref.

        Individual query failures degrade to the zero value for that field
        instead of failing the whole status.

        Args:
            worktree_path: Absolute path of the worktree
            worktree_name: Name used for metadata lookups
            branch_name: Branch checked out in the worktree (may be empty)
            comparison_ref: Ref to compare against (e.g. "main" or "origin/main")
            merged_cache: Precomputed merged-branch set; queried directly when None
        """
        status = WorktreeStatus()

        try:
            status.has_uncommitted_changes = self.git_service.has_uncommitted_changes(worktree_path)
        except GitOperationError as e:
            logger.debug(f"Could not check dirty state of {worktree_path}: {e}")

        ahead, behind = self.git_service.get_commits_ahead_behind(worktree_path, comparison_ref)
        status.commits_ahead = ahead
        status.commits_behind = behind

        if branch_name:
            if merged_cache is not None:
                status.is_merged = branch_name in merged_cache
            else:
                status.is_merged = self.git_service.is_branch_merged(branch_name, comparison_ref)

        if status.is_merged:
            status.merged_prs = self.git_service.get_merge_prs(branch_name, comparison_ref)

        initial_commit = self.git_service.get_worktree_initial_commit(worktree_name)
        if initial_commit:
            current_commit = self.git_service.get_current_commit(worktree_path)
            status.is_new = current_commit == initial_commit

        status.created_at = self.git_service.get_worktree_created_at(worktree_name)

        logger.debug(f"Status for {worktree_name}: {status}")
        return status

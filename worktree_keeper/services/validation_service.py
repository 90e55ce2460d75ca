"""Worktree validation service for worktree-keeper."""

from typing import List

from worktree_keeper.models.worktree import WorktreeStatus


class ValidationService:
    """Rules deciding which worktrees may be removed."""

    @staticmethod
    def is_cleanup_candidate(status: WorktreeStatus) -> bool:
        """
        Check if a worktree can be cleaned up automatically.

        Args:
            status: Status computed against the comparison ref

        Returns:
            True only if the worktree is clean, not new, has no commits ahead
            and its branch is merged
        """
        return (
            not status.has_uncommitted_changes
            and not status.is_new
            and status.commits_ahead == 0
            and status.is_merged
        )

    @staticmethod
    def delete_guard_issues(has_uncommitted_changes: bool, unmerged_commits: int, comparison_ref: str) -> List[str]:
        """
        Collect every reason a worktree is unsafe to delete.

        Args:
            has_uncommitted_changes: Modified, staged or untracked files present
            unmerged_commits: Commits on the branch not in comparison_ref
            comparison_ref: Ref the branch was compared against

        Returns:
            Human-readable issues; empty when deletion is safe
        """
        issues = []
        if has_uncommitted_changes:
            issues.append("has uncommitted changes (modified or untracked files)")
        if unmerged_commits > 0:
            noun = "commit" if unmerged_commits == 1 else "commits"
            issues.append(f"has {unmerged_commits} {noun} not merged into {comparison_ref}")
        return issues

"""Tests for worktree status computation and cleanup rules"""
import pytest

from worktree_keeper.exceptions import GitOperationError
from worktree_keeper.models.worktree import WorktreeStatus
from worktree_keeper.services.status_service import StatusService
from worktree_keeper.services.validation_service import ValidationService


class TestStatusService:
    """Test status computation with a mocked git layer."""

    def test_clean_unmerged(self, mock_git_service):
        status = StatusService(mock_git_service).compute("/wt/feat", "feat", "feat", "main")

        assert status == WorktreeStatus()
        mock_git_service.is_branch_merged.assert_called_once_with("feat", "main")
        mock_git_service.get_merge_prs.assert_not_called()

    def test_uses_merged_cache(self, mock_git_service):
        mock_git_service.get_merge_prs.return_value = ["#7"]
        service = StatusService(mock_git_service)

        status = service.compute("/wt/feat", "feat", "feat", "main", merged_cache={"feat"})

        assert status.is_merged
        assert status.merged_prs == ["#7"]
        mock_git_service.is_branch_merged.assert_not_called()

    def test_ahead_behind(self, mock_git_service):
        mock_git_service.get_commits_ahead_behind.return_value = (3, 1)
        status = StatusService(mock_git_service).compute("/wt/feat", "feat", "feat", "origin/main")

        assert status.commits_ahead == 3
        assert status.commits_behind == 1
        mock_git_service.get_commits_ahead_behind.assert_called_once_with("/wt/feat", "origin/main")

    def test_new_when_head_matches_initial_commit(self, mock_git_service):
        mock_git_service.get_worktree_initial_commit.return_value = "abc123"
        mock_git_service.get_current_commit.return_value = "abc123"
        status = StatusService(mock_git_service).compute("/wt/feat", "feat", "feat", "main")
        assert status.is_new

    def test_not_new_after_commit(self, mock_git_service):
        mock_git_service.get_worktree_initial_commit.return_value = "abc123"
        mock_git_service.get_current_commit.return_value = "def456"
        status = StatusService(mock_git_service).compute("/wt/feat", "feat", "feat", "main")
        assert not status.is_new

    def test_not_new_without_recorded_commit(self, mock_git_service):
        status = StatusService(mock_git_service).compute("/wt/feat", "feat", "feat", "main")
        assert not status.is_new
        mock_git_service.get_current_commit.assert_not_called()

    def test_dirty_check_failure_degrades(self, mock_git_service):
        mock_git_service.has_uncommitted_changes.side_effect = GitOperationError("status", "/wt/feat")
        status = StatusService(mock_git_service).compute("/wt/feat", "feat", "feat", "main")
        assert not status.has_uncommitted_changes

    def test_detached_head_is_never_merged(self, mock_git_service):
        status = StatusService(mock_git_service).compute("/wt/feat", "feat", "", "main", merged_cache={""})
        assert not status.is_merged


class TestCleanupCandidate:
    """Test which worktrees cleanup may remove."""

    @pytest.mark.parametrize(
        "status, expected",
        [
            (WorktreeStatus(is_merged=True), True),
            (WorktreeStatus(is_merged=True, commits_behind=4), True),
            (WorktreeStatus(is_merged=True, has_uncommitted_changes=True), False),
            (WorktreeStatus(is_merged=True, is_new=True), False),
            (WorktreeStatus(is_merged=True, commits_ahead=1), False),
            (WorktreeStatus(), False),
        ],
    )
    def test_candidate(self, status, expected):
        assert ValidationService.is_cleanup_candidate(status) is expected


class TestDeleteGuards:
    """Test the reasons a delete is refused."""

    def test_safe(self):
        assert ValidationService.delete_guard_issues(False, 0, "main") == []

    def test_all_issues_reported(self):
        issues = ValidationService.delete_guard_issues(True, 2, "origin/main")
        assert issues == [
            "has uncommitted changes (modified or untracked files)",
            "has 2 commits not merged into origin/main",
        ]

    def test_singular_commit(self):
        assert ValidationService.delete_guard_issues(False, 1, "main") == [
            "has 1 commit not merged into main"
        ]

"""Tests for merge detection and pull request attribution"""
import pytest

from worktree_keeper.services.git.merge_detector import MergeDetector, matches_branch_name


def merge_branch(repo, branch, message):
    repo.git.merge("--no-ff", branch, "-m", message)


@pytest.fixture
def detector(repo_root):
    return MergeDetector(repo_root)


@pytest.fixture
def feature_branch(git_repo, commit):
    """A branch with one commit, not yet merged into main."""
    git_repo.git.checkout("-b", "feature-x")
    commit(git_repo, "feature.txt", "feature", "Add feature")
    git_repo.git.checkout("main")
    return "feature-x"


class TestMatchesBranchName:
    """Test merge subject matching."""

    @pytest.mark.parametrize(
        "subject, branch",
        [
            ("Merge pull request #12 from acme/feature-x", "feature-x"),
            ("Merge pull request #12 from feature-x", "feature-x"),
            ("Merge pull request #7 from acme/team/login", "team/login"),
            ("Merge branch 'feature-x' into main", "feature-x"),
            ("Merge branch 'feature-x'", "feature-x"),
        ],
    )
    def test_matches(self, subject, branch):
        assert matches_branch_name(subject, branch)

    @pytest.mark.parametrize(
        "subject, branch",
        [
            ("Merge pull request #12 from acme/feature-xy", "feature-x"),
            ("Merge pull request #7 from acme/team/login", "login"),
            ("Merge branch 'feature-xy' into main", "feature-x"),
            ("Bump version", "feature-x"),
        ],
    )
    def test_does_not_match(self, subject, branch):
        assert not matches_branch_name(subject, branch)


class TestMergedBranches:
    """Test ancestry-based merge detection."""

    def test_unmerged_branch(self, detector, feature_branch):
        assert feature_branch not in detector.get_merged_branches("main")
        assert not detector.is_branch_merged(feature_branch, "main")

    def test_merged_branch(self, detector, git_repo, feature_branch):
        merge_branch(git_repo, feature_branch, "Merge branch 'feature-x'")
        assert detector.get_merged_branches("main") == {"feature-x"}
        assert detector.is_branch_merged(feature_branch, "main")

    def test_comparison_branch_excluded(self, detector):
        assert "main" not in detector.get_merged_branches("main")

    def test_branch_with_no_commits_is_merged(self, detector, git_repo):
        git_repo.git.branch("fresh")
        assert "fresh" in detector.get_merged_branches("main")

    def test_unknown_ref(self, detector):
        assert detector.get_merged_branches("does-not-exist") == set()

    def test_empty_branch_name(self, detector):
        assert not detector.is_branch_merged("", "main")
        assert detector.get_merge_prs("", "main") == []


class TestMergePrs:
    """Test pull request attribution from merge commit subjects."""

    def test_pull_request_merge(self, detector, git_repo, feature_branch):
        merge_branch(git_repo, feature_branch, "Merge pull request #482 from acme/feature-x")
        assert detector.get_merge_prs(feature_branch, "main") == ["#482"]

    def test_plain_merge_has_no_prs(self, detector, git_repo, feature_branch):
        merge_branch(git_repo, feature_branch, "Merge branch 'feature-x'")
        assert detector.get_merge_prs(feature_branch, "main") == []

    def test_multiple_prs_newest_first(self, detector, git_repo, commit, feature_branch):
        merge_branch(git_repo, feature_branch, "Merge pull request #12 from acme/feature-x")

        git_repo.git.checkout(feature_branch)
        commit(git_repo, "more.txt", "more", "Follow-up")
        git_repo.git.checkout("main")
        merge_branch(git_repo, feature_branch, "Merge pull request #15 from acme/feature-x")

        assert detector.get_merge_prs(feature_branch, "main") == ["#15", "#12"]

    def test_other_branch_prs_ignored(self, detector, git_repo, commit, feature_branch):
        git_repo.git.checkout("-b", "feature-xy")
        commit(git_repo, "xy.txt", "xy", "Other work")
        git_repo.git.checkout("main")
        merge_branch(git_repo, "feature-xy", "Merge pull request #99 from acme/feature-xy")
        merge_branch(git_repo, feature_branch, "Merge pull request #100 from acme/feature-x")

        assert detector.get_merge_prs(feature_branch, "main") == ["#100"]

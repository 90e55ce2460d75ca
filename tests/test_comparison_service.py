"""Tests for comparison ref resolution and fetch throttling"""
from datetime import datetime, timedelta, timezone

import pytest

from worktree_keeper.config import Config
from worktree_keeper.exceptions import GitOperationError
from worktree_keeper.models.worktree import ComparisonContext
from worktree_keeper.services.comparison_service import ComparisonResolver
from worktree_keeper.user_config import RepoUserConfig, UserConfig

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)
REPO = "/work/project"


@pytest.fixture
def make_resolver(mock_git_service, err_console):
    def _make(**user_settings):
        return ComparisonResolver(
            mock_git_service,
            UserConfig(**user_settings),
            err_console=err_console,
            clock=lambda: NOW,
        )

    return _make


class TestDefaultBranch:
    """Test default branch resolution."""

    def test_configured_branch_wins(self, make_resolver, mock_git_service):
        resolver = make_resolver()
        assert resolver.resolve_default_branch(Config(default_branch="develop")) == "develop"
        mock_git_service.get_default_branch.assert_not_called()

    def test_detected(self, make_resolver, mock_git_service):
        mock_git_service.get_default_branch.return_value = "trunk"
        assert make_resolver().resolve_default_branch(Config()) == "trunk"

    def test_fallback_to_main(self, make_resolver, mock_git_service):
        mock_git_service.get_default_branch.side_effect = GitOperationError("symbolic-ref")
        assert make_resolver().resolve_default_branch(Config()) == "main"


class TestResolveLocal:
    """Test resolution without a remote."""

    @pytest.mark.parametrize("user_settings", [
        {"fetch_interval": "0"},
        {"fetch_interval": "never"},
        {"fetch_interval": "5m"},
        {"repos": {REPO: RepoUserConfig(fetch_interval="0")}},
    ])
    def test_local_comparison_never_fetches(self, make_resolver, mock_git_service, user_settings):
        context = make_resolver(**user_settings).resolve(REPO, Config())

        assert context == ComparisonContext(
            repo_root=REPO, default_branch="main", remote="", comparison_ref="main"
        )
        mock_git_service.fetch_remote_quiet.assert_not_called()
        mock_git_service.get_last_fetch_time.assert_not_called()
        mock_git_service.ref_exists.assert_not_called()


class TestResolveRemote:
    """Test resolution with a remote configured."""

    def test_remote_ref_used_when_present(self, make_resolver, mock_git_service, capsys):
        context = make_resolver(remote="origin").resolve(REPO, Config())

        assert context.comparison_ref == "origin/main"
        mock_git_service.fetch_remote_quiet.assert_called_once_with("origin")
        mock_git_service.set_last_fetch_time.assert_called_once_with("origin", NOW)
        mock_git_service.update_remote_head.assert_called_once_with("origin")
        assert "Fetched from origin" in capsys.readouterr().err

    def test_missing_remote_ref_falls_back(self, make_resolver, mock_git_service, capsys):
        mock_git_service.ref_exists.return_value = False
        context = make_resolver(remote="origin").resolve(REPO, Config())

        assert context.comparison_ref == "main"
        assert "Warning: origin/main does not exist, comparing to local main" in capsys.readouterr().err

    def test_per_repo_remote(self, make_resolver, mock_git_service):
        resolver = make_resolver(repos={REPO: RepoUserConfig(remote="upstream")})
        assert resolver.resolve(REPO, Config()).comparison_ref == "upstream/main"

    def test_fetch_failure_is_a_warning(self, make_resolver, mock_git_service, capsys):
        mock_git_service.fetch_remote_quiet.side_effect = GitOperationError("fetch", "origin", "offline")
        context = make_resolver(remote="origin").resolve(REPO, Config())

        assert context.comparison_ref == "origin/main"
        mock_git_service.set_last_fetch_time.assert_not_called()
        assert "Warning: failed to fetch from origin" in capsys.readouterr().err


class TestFetchInterval:
    """Test the fetch throttling policy."""

    def test_recent_fetch_skipped(self, make_resolver, mock_git_service, capsys):
        mock_git_service.get_last_fetch_time.return_value = NOW - timedelta(minutes=2)
        resolver = make_resolver(remote="origin")

        assert not resolver.maybe_fetch(REPO, "origin")
        mock_git_service.fetch_remote_quiet.assert_not_called()
        assert "Skipping fetch (last fetch 2m ago)" in capsys.readouterr().err

    def test_stale_fetch_refreshed(self, make_resolver, mock_git_service):
        mock_git_service.get_last_fetch_time.return_value = NOW - timedelta(minutes=10)
        assert make_resolver(remote="origin").maybe_fetch(REPO, "origin")
        mock_git_service.fetch_remote_quiet.assert_called_once_with("origin")

    def test_never(self, make_resolver, mock_git_service):
        resolver = make_resolver(remote="origin", fetch_interval="never")
        assert not resolver.should_fetch(REPO, "origin")
        mock_git_service.get_last_fetch_time.assert_not_called()

    def test_zero_always_fetches(self, make_resolver, mock_git_service):
        mock_git_service.get_last_fetch_time.return_value = NOW
        assert make_resolver(fetch_interval="0").should_fetch(REPO, "origin")

    def test_never_fetched_before(self, make_resolver):
        assert make_resolver(fetch_interval="1h").should_fetch(REPO, "origin")


class TestHeader:
    """Test the comparison header."""

    def test_header_on_stderr(self, make_resolver, capsys):
        context = ComparisonContext(REPO, "main", "origin", "origin/main")
        make_resolver().print_header(context)

        captured = capsys.readouterr()
        assert captured.out == ""
        assert f"Repository: {REPO}" in captured.err
        assert "Comparing to: origin/main" in captured.err

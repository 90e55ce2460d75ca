"""Comparison ref resolution for worktree-keeper."""

from datetime import datetime, timezone
from typing import Callable, Optional, TYPE_CHECKING

from rich.console import Console
from rich.markup import escape

from worktree_keeper.exceptions import GitOperationError
from worktree_keeper.formatters.date import format_duration
from worktree_keeper.models.worktree import ComparisonContext
from worktree_keeper.utils.logging import get_logger

if TYPE_CHECKING:
    from worktree_keeper.config import Config
    from worktree_keeper.services.git_service import GitService
    from worktree_keeper.user_config import UserConfig

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ComparisonResolver:
    """Decides what every worktree in a command is compared against.

    With no remote configured the local default branch is used and the
    network is never touched. With a remote, the remote is fetched at most
    once per fetch interval and "<remote>/<branch>" is used when it exists.
    """

    def __init__(
        self,
        git_service: "GitService",
        user_config: "UserConfig",
        err_console: Optional[Console] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """Initialize the resolver.

        Args:
            git_service: Git facade for the repository
            user_config: Loaded user configuration (remote, fetch_interval)
            err_console: Console for progress and warnings (stderr)
            clock: Returns the current time; injectable for tests
        """
        self.git_service = git_service
        self.user_config = user_config
        self.err_console = err_console or Console(stderr=True)
        self.clock = clock

    def resolve_default_branch(self, config: "Config") -> str:
        """Configured default branch, else auto-detected, else "main"."""
        if config.default_branch:
            return config.default_branch
        try:
            return self.git_service.get_default_branch()
        except GitOperationError as e:
            logger.debug(f"Falling back to 'main': {e}")
            return "main"

    def resolve(self, repo_root: str, config: "Config") -> ComparisonContext:
        """Resolve the comparison context for one command invocation."""
        remote = self.user_config.get_remote_for_repo(repo_root)
        branch = self.resolve_default_branch(config)

        if not remote:
            return ComparisonContext(
                repo_root=repo_root,
                default_branch=branch,
                remote="",
                comparison_ref=branch,
            )

        remote_ref = f"{remote}/{branch}"
        self.maybe_fetch(repo_root, remote)

        if self.git_service.ref_exists(remote_ref):
            comparison_ref = remote_ref
        else:
            self.err_console.print(
                f"[yellow]Warning: {escape(remote_ref)} does not exist, "
                f"comparing to local {escape(branch)}[/yellow]"
            )
            comparison_ref = branch

        return ComparisonContext(
            repo_root=repo_root,
            default_branch=branch,
            remote=remote,
            comparison_ref=comparison_ref,
        )

    def should_fetch(self, repo_root: str, remote: str) -> bool:
        """Apply the fetch interval policy.

        "never" disables fetching, a zero interval always fetches, and
        otherwise a fetch happens once the interval has elapsed since the
        last recorded fetch (or when none was ever recorded).
        """
        interval = self.user_config.get_fetch_interval_for_repo(repo_root)
        if interval is None:
            logger.debug(f"Fetching from {remote} disabled (fetch_interval=never)")
            return False
        if interval.total_seconds() <= 0:
            return True

        last_fetch = self.git_service.get_last_fetch_time(remote)
        if last_fetch is None:
            return True

        elapsed = self.clock() - last_fetch
        if elapsed < interval:
            self.err_console.print(f"Skipping fetch (last fetch {format_duration(elapsed)} ago)")
            return False
        return True

    def maybe_fetch(self, repo_root: str, remote: str) -> bool:
        """Fetch from remote if the interval policy allows. Never raises.

        Returns:
            True if a fetch ran and succeeded
        """
        if not self.should_fetch(repo_root, remote):
            return False

        try:
            with self.err_console.status(f"Fetching from {escape(remote)}..."):
                self.git_service.fetch_remote_quiet(remote)
        except GitOperationError as e:
            self.err_console.print(
                f"[yellow]Warning: failed to fetch from {escape(remote)}: {escape(str(e))}[/yellow]"
            )
            return False

        try:
            self.git_service.set_last_fetch_time(remote, self.clock())
        except GitOperationError as e:
            logger.debug(f"Could not record fetch time for {remote}: {e}")
        self.git_service.update_remote_head(remote)

        self.err_console.print(f"Fetched from {escape(remote)}")
        return True

    def print_header(self, context: ComparisonContext) -> None:
        """Print the "Repository:" and "Comparing to:" lines."""
        self.err_console.print(f"Repository: {escape(context.repo_root)}", soft_wrap=True)
        self.err_console.print(f"Comparing to: {escape(context.comparison_ref)}", soft_wrap=True)
        self.err_console.print()

"""Remote fetch operations and fetch bookkeeping for worktree-keeper."""

import git
from datetime import datetime, timezone
from typing import Optional

from worktree_keeper.constants import LAST_FETCH_KEY
from worktree_keeper.exceptions import GitOperationError
from worktree_keeper.utils.logging import get_logger

logger = get_logger(__name__)


class RemoteService:
    """Service for talking to remotes and remembering when we last did."""

    def __init__(self, repo_path: str):
        self.repo_path = repo_path

    def _get_repo(self):
        """Get a fresh git.Repo instance."""
        return git.Repo(self.repo_path)

    def fetch_quiet(self, remote: str) -> None:
        """Fetch from remote without progress output.

        Raises:
            GitOperationError: The fetch failed (network, auth, unknown remote)
        """
        repo = self._get_repo()
        try:
            repo.git.fetch("--quiet", remote)
        except git.exc.GitCommandError as e:
            stderr = (e.stderr or "").replace("stderr: ", "", 1).strip().strip("'").strip()
            raise GitOperationError("fetch", remote, stderr or f"exit {e.status}")
        logger.debug(f"Fetched {remote}")

    def update_remote_head(self, remote: str) -> bool:
        """Refresh refs/remotes/<remote>/HEAD from the remote. Best effort."""
        repo = self._get_repo()
        try:
            repo.git.remote("set-head", remote, "--auto")
            return True
        except git.exc.GitCommandError as e:
            logger.debug(f"Could not update {remote}/HEAD: {e}")
            return False

    def get_last_fetch_time(self, remote: str) -> Optional[datetime]:
        """When remote was last fetched successfully, or None if never recorded."""
        repo = self._get_repo()
        try:
            raw = repo.git.config("--get", LAST_FETCH_KEY.format(remote=remote)).strip()
        except git.exc.GitCommandError:
            return None
        try:
            return datetime.fromtimestamp(int(raw), tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            logger.debug(f"Ignoring unparsable last fetch time for {remote}: {raw!r}")
            return None

    def set_last_fetch_time(self, remote: str, when: Optional[datetime] = None) -> None:
        """Record a successful fetch of remote in the repository config."""
        when = when or datetime.now(timezone.utc)
        repo = self._get_repo()
        try:
            repo.git.config(LAST_FETCH_KEY.format(remote=remote), str(int(when.timestamp())))
        except git.exc.GitCommandError as e:
            raise GitOperationError("config", LAST_FETCH_KEY.format(remote=remote), str(e).strip())

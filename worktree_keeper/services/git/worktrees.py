"""Worktree operations service for worktree-keeper."""

import git
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Dict, Any, List

from worktree_keeper.constants import META_CREATED_AT, META_INITIAL_COMMIT
from worktree_keeper.exceptions import GitOperationError, WorktreeMetadataError
from worktree_keeper.models.worktree import WorktreeInfo
from worktree_keeper.utils.logging import get_logger

logger = get_logger(__name__)


def _command_error(operation: str, error: git.exc.GitCommandError) -> str:
    """Render a GitCommandError the way it is reported to the user."""
    stderr = (error.stderr if getattr(error, "stderr", None) else str(error)).strip()
    status = getattr(error, "status", "unknown")
    if stderr:
        # GitPython wraps stderr as "  stderr: '...'"
        stderr = stderr.replace("stderr: ", "", 1).strip().strip("'").strip()
        return f"git {operation} failed (exit {status}): {stderr}"
    return f"git {operation} failed with exit code {status}"


def get_worktree_name(repo_root: str, worktree_path: str, worktree_dir: str) -> str:
    """Derive a worktree's name from its path.

    The name is the first path component below <repo_root>/<worktree_dir>;
    paths outside that directory fall back to their basename.
    """
    worktrees_path = os.path.join(repo_root, worktree_dir)
    try:
        rel = os.path.relpath(worktree_path, worktrees_path)
    except ValueError:
        return os.path.basename(worktree_path)
    if rel == "." or rel.startswith(".."):
        return os.path.basename(worktree_path)
    return rel.split(os.sep)[0]


def is_inside_worktree_dir(repo_root: str, path: str, worktree_dir: str) -> bool:
    """Check whether path lies strictly inside <repo_root>/<worktree_dir>."""
    worktrees_path = os.path.join(repo_root, worktree_dir)
    try:
        rel = os.path.relpath(path, worktrees_path)
    except ValueError:
        return False
    return not rel.startswith("..") and rel != "."


def parse_worktree_list(output: str) -> List[WorktreeInfo]:
    """Parse `git worktree list --porcelain` output.

    Format (one block per worktree, blank line between blocks):
        worktree /path/to/worktree
        HEAD <sha>
        branch refs/heads/<name>   (or "detached")
        bare                       (main entry of a bare repo)
    """
    worktree_list: List[WorktreeInfo] = []
    current: Dict[str, Any] = {}

    def flush():
        path = current.get("path", "")
        if path:
            worktree_list.append(
                WorktreeInfo(
                    path=path,
                    branch_name=current.get("branch", ""),
                    commit_sha=current.get("HEAD", ""),
                    is_main=not worktree_list,  # First entry is always the main one
                    is_bare=current.get("bare", False),
                    is_orphaned=not os.path.exists(path),
                )
            )

    for line in output.split("\n"):
        line = line.strip()
        if not line:
            continue

        if line.startswith("worktree "):
            flush()
            current = {"path": line.split(" ", 1)[1]}
        elif line.startswith("HEAD "):
            current["HEAD"] = line.split(" ", 1)[1]
        elif line.startswith("branch "):
            branch_ref = line.split(" ", 1)[1]
            if branch_ref.startswith("refs/heads/"):
                branch_ref = branch_ref[len("refs/heads/"):]
            current["branch"] = branch_ref
        elif line == "detached":
            current["branch"] = ""
        elif line == "bare":
            current["bare"] = True

    flush()
    return worktree_list


class WorktreeService:
    """Service for managing git worktrees and their per-worktree metadata."""

    def __init__(self, repo_path: str):
        """Initialize the worktree service.

        Args:
            repo_path: Path to the main repository root
        """
        self.repo_path = repo_path
        self._worktree_info: Optional[List[WorktreeInfo]] = None  # Cache for worktree information

    def _get_repo(self):
        """Get a git.Repo instance.

        Creates a new repo instance for each call; GitPython repos are
        lightweight and just open the existing repository.

        Returns:
            git.Repo: A fresh repository instance
        """
        return git.Repo(self.repo_path)

    def clear_cache(self):
        """Clear the worktree information cache."""
        self._worktree_info = None

    def list_worktrees(self) -> List[WorktreeInfo]:
        """Get information about all worktrees of the repository.

        Returns:
            List of WorktreeInfo objects; the main working tree comes first
        """
        if self._worktree_info is not None:
            return self._worktree_info

        repo = self._get_repo()
        try:
            output = repo.git.worktree("list", "--porcelain")
        except git.exc.GitCommandError as e:
            raise GitOperationError("worktree list", message=_command_error("worktree list", e))

        worktree_list = parse_worktree_list(output)
        logger.debug(f"Found {len(worktree_list)} worktrees")
        for wt in worktree_list:
            logger.debug(f"  {wt}")

        self._worktree_info = worktree_list
        return worktree_list

    def create_worktree(self, path: str, branch_name: str) -> None:
        """Create a worktree at path on a new branch."""
        self._add(["add", "-b", branch_name, path], branch_name)

    def create_worktree_from_branch(self, path: str, branch_name: str) -> None:
        """Create a worktree at path checking out an existing branch."""
        self._add(["add", path, branch_name], branch_name)

    def _add(self, args: List[str], branch_name: str) -> None:
        repo = self._get_repo()
        try:
            repo.git.worktree(*args)
        except git.exc.GitCommandError as e:
            logger.debug(f"worktree {' '.join(args)} failed: {e}")
            raise GitOperationError("worktree add", branch_name, _command_error("worktree add", e))
        finally:
            self.clear_cache()
        logger.info(f"Created worktree: git worktree {' '.join(args)}")

    def remove_worktree(self, path: str, force: bool = False) -> None:
        """Remove a worktree at the specified path.

        Args:
            path: Path to the worktree directory
            force: Force removal even if working tree is dirty or locked

        Raises:
            GitOperationError: git refused or failed to remove the worktree
        """
        repo = self._get_repo()
        args = ["remove", path]
        if force:
            args.append("--force")
        try:
            repo.git.worktree(*args)
        except git.exc.GitCommandError as e:
            error_msg = _command_error("worktree remove", e)
            logger.error(f"Failed to remove worktree at {path}: {error_msg}")
            raise GitOperationError("worktree remove", path, error_msg)
        finally:
            self.clear_cache()
        logger.info(f"Removed worktree at {path}")

    def prune_worktrees(self) -> None:
        """Prune metadata of worktrees whose directories no longer exist."""
        repo = self._get_repo()
        try:
            repo.git.worktree("prune")
        except git.exc.GitCommandError as e:
            raise GitOperationError("worktree prune", message=_command_error("worktree prune", e))
        finally:
            self.clear_cache()
        logger.info("Pruned orphaned worktree metadata")

    # Per-worktree metadata

    def get_metadata_root(self) -> Path:
        """Directory holding git's per-worktree administrative directories."""
        return Path(self._get_repo().common_dir) / "worktrees"

    def get_metadata_dir(self, worktree_name: str) -> Path:
        return self.get_metadata_root() / worktree_name

    def list_metadata_names(self) -> List[str]:
        """Names of all worktrees git currently holds metadata for."""
        root = self.get_metadata_root()
        if not root.is_dir():
            return []
        return sorted(entry.name for entry in root.iterdir() if entry.is_dir())

    def get_metadata(self, worktree_name: str, key: str) -> str:
        """Read a metadata key; empty string when unset or unreadable."""
        config_path = self.get_metadata_dir(worktree_name) / "config"
        if not config_path.exists():
            return ""
        repo = self._get_repo()
        try:
            return repo.git.config("--file", str(config_path), "--get", key).strip()
        except git.exc.GitCommandError:
            # Exit code 1: key not set
            return ""

    def set_metadata(self, worktree_name: str, key: str, value: str) -> None:
        """Persist a metadata key for an existing worktree.

        Raises:
            WorktreeMetadataError: The worktree's metadata directory does not exist
                or git could not write the value
        """
        metadata_dir = self.get_metadata_dir(worktree_name)
        if not metadata_dir.is_dir():
            raise WorktreeMetadataError(f"worktree directory not found: {metadata_dir}")
        repo = self._get_repo()
        try:
            repo.git.config("--file", str(metadata_dir / "config"), key, value)
        except git.exc.GitCommandError as e:
            raise WorktreeMetadataError(
                f"could not set {key} for worktree '{worktree_name}': {_command_error('config', e)}"
            )
        logger.debug(f"Set {key}={value} for worktree {worktree_name}")

    def get_created_at(self, worktree_name: str) -> Optional[datetime]:
        """Creation time recorded by `create`, or None if never recorded."""
        raw = self.get_metadata(worktree_name, META_CREATED_AT)
        try:
            return datetime.fromtimestamp(int(raw), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError, OSError):
            return None

    def set_created_at(self, worktree_name: str, when: Optional[datetime] = None) -> None:
        when = when or datetime.now(timezone.utc)
        self.set_metadata(worktree_name, META_CREATED_AT, str(int(when.timestamp())))

    def get_initial_commit(self, worktree_name: str) -> str:
        return self.get_metadata(worktree_name, META_INITIAL_COMMIT)

    def set_initial_commit(self, worktree_name: str, commit_sha: str) -> None:
        self.set_metadata(worktree_name, META_INITIAL_COMMIT, commit_sha)

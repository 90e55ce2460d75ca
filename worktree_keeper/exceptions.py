"""Custom exceptions for worktree-keeper"""

from typing import List, Optional


class WorktreeKeeperError(Exception):
    """Base exception for all worktree-keeper errors."""
    pass


class GitOperationError(WorktreeKeeperError):
    """Exception raised for errors in Git operations."""

    def __init__(self, operation: str, target: Optional[str] = None, message: Optional[str] = None):
        self.operation = operation
        self.target = target
        self.message = message

        error_msg = f"git {operation} failed"
        if target:
            error_msg += f" for '{target}'"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class NotInRepositoryError(WorktreeKeeperError):
    """Raised when the current directory is not inside a git repository."""

    def __init__(self, path: Optional[str] = None):
        self.path = path
        msg = "not in a git repository"
        if path:
            msg += f": {path}"
        super().__init__(msg)


class ConfigError(WorktreeKeeperError):
    """Raised when a configuration file is missing or invalid."""
    pass


class WorktreeNotFoundError(WorktreeKeeperError):
    """Raised when a named worktree does not exist."""

    def __init__(self, name: str, path: Optional[str] = None):
        self.name = name
        self.path = path
        msg = f"worktree '{name}' does not exist"
        if path:
            msg += f" at {path}"
        super().__init__(msg)


class WorktreeExistsError(WorktreeKeeperError):
    """Raised when creating a worktree whose directory already exists."""

    def __init__(self, name: str, path: str):
        self.name = name
        self.path = path
        super().__init__(f"worktree '{name}' already exists at {path}")


class BranchExistsError(WorktreeKeeperError):
    """Raised when a new branch would collide with an existing one."""

    def __init__(self, branch: str):
        self.branch = branch
        super().__init__(
            f"branch '{branch}' already exists (use --branch to checkout existing branch)"
        )


class BranchNotFoundError(WorktreeKeeperError):
    """Raised when an explicitly requested branch does not exist."""

    def __init__(self, branch: str):
        self.branch = branch
        super().__init__(f"branch '{branch}' does not exist")


class GuardViolationError(WorktreeKeeperError):
    """Raised when a worktree fails one or more deletion safety checks."""

    def __init__(self, name: str, issues: List[str]):
        self.name = name
        self.issues = list(issues)
        lines = [f"cannot delete worktree '{name}':"]
        lines.extend(f"  - {issue}" for issue in self.issues)
        lines.append("Use --force to delete anyway.")
        super().__init__("\n".join(lines))


class HookError(WorktreeKeeperError):
    """Raised when a hook script exits with a non-zero status."""

    def __init__(self, script: str, returncode: Optional[int] = None, message: Optional[str] = None):
        self.script = script
        self.returncode = returncode
        error_msg = f"hook {script} failed"
        if returncode is not None:
            error_msg += f" (exit {returncode})"
        if message:
            error_msg += f": {message}"
        super().__init__(error_msg)


class HookScriptNotFoundError(HookError):
    """Raised when a configured hook script does not exist."""

    def __init__(self, script: str):
        self.script = script
        self.returncode = None
        WorktreeKeeperError.__init__(self, f"hook script not found: {script}")


class IndexExhaustedError(WorktreeKeeperError):
    """Raised when every index up to the configured maximum is in use."""

    def __init__(self, max_index: int):
        self.max_index = max_index
        super().__init__(f"all worktree indexes in use (max: {max_index})")


class WorktreeMetadataError(WorktreeKeeperError):
    """Raised when per-worktree metadata cannot be read or written."""
    pass


class AbortedError(WorktreeKeeperError):
    """Raised when the user declines a confirmation prompt."""

    def __init__(self, message: str = "aborted"):
        super().__init__(message)

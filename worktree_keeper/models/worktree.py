"""Worktree data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class WorktreeState(Enum):
    """Mutually exclusive lifecycle state shown for a worktree."""

    NEW = "new"
    IN_PROGRESS = "in_progress"
    MERGED = "merged"


@dataclass
class WorktreeInfo:
    """Information about a git worktree, as reported by `git worktree list`."""

    path: str
    branch_name: str  # Empty when HEAD is detached
    commit_sha: str
    is_main: bool = False  # Is this the main working tree?
    is_bare: bool = False
    is_orphaned: bool = False  # Directory missing?

    def __str__(self) -> str:
        """String representation of worktree."""
        status = "orphaned" if self.is_orphaned else "active"
        main_marker = " (main)" if self.is_main else ""
        branch = self.branch_name or "(detached)"
        return f"{branch} @ {self.path}{main_marker} [{status}]"


@dataclass
class WorktreeStatus:
    """Status of a worktree relative to the comparison ref.

    Derived fresh on every invocation; nothing here is persisted except
    what is read back from worktree metadata (created_at, initial commit).
    """

    has_uncommitted_changes: bool = False
    commits_ahead: int = 0
    commits_behind: int = 0
    is_merged: bool = False
    merged_prs: List[str] = field(default_factory=list)  # e.g. ["#12", "#15"]
    is_new: bool = False  # HEAD still at the commit recorded on creation
    created_at: Optional[datetime] = None

    @property
    def state(self) -> Optional[WorktreeState]:
        """The display state, in priority order new > in_progress > merged."""
        if self.is_new:
            return WorktreeState.NEW
        if self.commits_ahead > 0 and not self.is_merged:
            return WorktreeState.IN_PROGRESS
        if self.is_merged and self.commits_ahead == 0:
            return WorktreeState.MERGED
        return None


@dataclass
class ManagedWorktree:
    """A worktree living under the configured worktree directory."""

    name: str
    path: str
    branch: str
    index: int = 0  # 0 means no index assigned
    status: WorktreeStatus = field(default_factory=WorktreeStatus)
    is_current: bool = False


@dataclass(frozen=True)
class ComparisonContext:
    """The ref every status in a single command is computed against."""

    repo_root: str
    default_branch: str
    remote: str = ""  # Empty means compare against the local branch
    comparison_ref: str = ""


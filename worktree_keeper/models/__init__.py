"""Data models for worktree-keeper."""

from .worktree import (
    WorktreeInfo,
    WorktreeStatus,
    WorktreeState,
    ManagedWorktree,
    ComparisonContext,
)
from .hooks import HookEnv

__all__ = [
    "WorktreeInfo",
    "WorktreeStatus",
    "WorktreeState",
    "ManagedWorktree",
    "ComparisonContext",
    "HookEnv",
]

"""Core orchestration for worktree-keeper."""

from .worktree_keeper import WorktreeKeeper, DeleteResult, CleanupResult

__all__ = ["WorktreeKeeper", "DeleteResult", "CleanupResult"]

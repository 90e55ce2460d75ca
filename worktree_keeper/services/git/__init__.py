"""Git service modules.

Each module wraps one slice of the git command surface:
- worktrees: worktree listing, creation, removal and per-worktree metadata
- branch_queries: branch existence, HEAD, dirty state, ahead/behind
- merge_detector: merged-branch sets and pull request attribution
- remotes: fetching and fetch bookkeeping
"""

from .worktrees import WorktreeService, get_worktree_name, is_inside_worktree_dir
from .branch_queries import BranchQueries
from .merge_detector import MergeDetector, matches_branch_name
from .remotes import RemoteService

__all__ = [
    "WorktreeService",
    "BranchQueries",
    "MergeDetector",
    "RemoteService",
    "get_worktree_name",
    "is_inside_worktree_dir",
    "matches_branch_name",
]

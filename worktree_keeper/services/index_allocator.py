"""Worktree index allocation for worktree-keeper."""

from typing import Set, TYPE_CHECKING

from worktree_keeper.constants import META_INDEX
from worktree_keeper.exceptions import IndexExhaustedError
from worktree_keeper.utils.logging import get_logger

if TYPE_CHECKING:
    from worktree_keeper.services.git_service import GitService

logger = get_logger(__name__)


class IndexAllocator:
    """Hands out small, stable, reusable integers to live worktrees.

    Indices live in each worktree's git metadata, so an index is freed as
    soon as git removes that metadata directory. Allocation is a pure scan;
    two processes allocating at the same time can pick the same value.
    """

    def __init__(self, git_service: "GitService"):
        self.git_service = git_service

    def used_indices(self) -> Set[int]:
        """Indices currently held by worktrees that still have metadata."""
        used = set()
        for name in self.git_service.list_worktree_metadata_names():
            index = self.get(name)
            if index > 0:
                used.add(index)
        return used

    def allocate(self, max_index: int = 0) -> int:
        """Lowest index >= 1 not held by any live worktree.

        Args:
            max_index: Upper bound (inclusive); 0 means unbounded

        Raises:
            IndexExhaustedError: every value in 1..max_index is taken
        """
        used = self.used_indices()
        candidate = 1
        while candidate in used:
            candidate += 1
        if max_index > 0 and candidate > max_index:
            raise IndexExhaustedError(max_index)
        logger.debug(f"Allocated index {candidate} (in use: {sorted(used)})")
        return candidate

    def get(self, worktree_name: str) -> int:
        """Persisted index of a worktree; 0 when unset or unparsable."""
        raw = self.git_service.get_worktree_metadata(worktree_name, META_INDEX)
        try:
            index = int(raw)
        except (TypeError, ValueError):
            return 0
        return index if index > 0 else 0

    def set(self, worktree_name: str, index: int) -> None:
        """Persist a worktree's index.

        Raises:
            ValueError: index is not a positive integer
            WorktreeMetadataError: the worktree has no metadata directory
        """
        if index < 1:
            raise ValueError(f"worktree index must be >= 1, got {index}")
        self.git_service.set_worktree_metadata(worktree_name, META_INDEX, str(index))

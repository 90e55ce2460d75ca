"""Hook environment model."""

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class HookEnv:
    """Variables describing the worktree a hook runs for."""

    name: str
    path: str
    branch: str
    repo_root: str
    worktree_dir: str
    index: int = 0

    def to_env_vars(self) -> Dict[str, str]:
        """Render as WT_* environment variables.

        WT_INDEX is empty when no index is assigned so scripts can test it
        with `[ -z "$WT_INDEX" ]`.
        """
        return {
            "WT_NAME": self.name,
            "WT_PATH": self.path,
            "WT_BRANCH": self.branch,
            "WT_REPO_ROOT": self.repo_root,
            "WT_WORKTREE_DIR": self.worktree_dir,
            "WT_INDEX": str(self.index) if self.index > 0 else "",
        }

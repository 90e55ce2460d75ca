"""
worktree-keeper - named, indexed git worktrees with lifecycle hooks
"""

from .__version__ import __version__
from .core import WorktreeKeeper
from .cli import main

__all__ = ["WorktreeKeeper", "main", "__version__"]

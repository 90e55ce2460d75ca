"""Services used by the worktree-keeper orchestrator."""

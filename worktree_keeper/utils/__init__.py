"""Utility helpers for worktree-keeper."""

"""Formatting utilities for worktree-keeper.

This package provides the pure formatting functions used by the display
service, organized into logical modules:
- date: worktree age and fetch durations
- status: status labels and the compact status line
"""

# Date formatters
from .date import format_age, format_duration

# Status formatters
from .status import (
    classify_state,
    format_merged_status,
    format_status_labels,
    format_compact_status,
    format_ahead_behind,
    format_commit_count,
)

__all__ = [
    # Date
    "format_age",
    "format_duration",
    # Status
    "classify_state",
    "format_merged_status",
    "format_status_labels",
    "format_compact_status",
    "format_ahead_behind",
    "format_commit_count",
]

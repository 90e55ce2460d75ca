"""Status formatting utilities.

Rendered strings carry raw ANSI bold/reset sequences around the labels
that need attention (in_progress, dirty); the display layer converts them
with rich.text.Text.from_ansi.
"""

from typing import List, Optional

from worktree_keeper.constants import BOLD, RESET, SYMBOL_AHEAD, SYMBOL_BEHIND
from worktree_keeper.models.worktree import WorktreeState, WorktreeStatus


def bold(text: str) -> str:
    return f"{BOLD}{text}{RESET}"


def classify_state(status: WorktreeStatus) -> Optional[WorktreeState]:
    """
    Pick the single state label for a worktree.

    Priority is new > in_progress > merged. A merged branch that still has
    commits ahead (new work on top of a merged branch) gets no state label.

    Args:
        status: Computed worktree status

    Returns:
        The state, or None when no state applies
    """
    return status.state


def format_merged_status(prs: List[str]) -> str:
    """
    Format the merged label.

    Args:
        prs: PR tokens such as ["#1", "#2"]

    Returns:
        "merged" or "merged in #1, #2"
    """
    if not prs:
        return "merged"
    return "merged in " + ", ".join(prs)


def format_status_labels(status: WorktreeStatus) -> List[str]:
    """
    Build the ordered status labels: at most one state, then dirty.

    Args:
        status: Computed worktree status

    Returns:
        Labels with bold sequences applied to in_progress and dirty
    """
    labels = []
    state = classify_state(status)
    if state == WorktreeState.NEW:
        labels.append(WorktreeState.NEW.value)
    elif state == WorktreeState.IN_PROGRESS:
        labels.append(bold(WorktreeState.IN_PROGRESS.value))
    elif state == WorktreeState.MERGED:
        labels.append(format_merged_status(status.merged_prs))

    # dirty composes with any state
    if status.has_uncommitted_changes:
        labels.append(bold("dirty"))
    return labels


def format_compact_status(status: WorktreeStatus) -> str:
    """
    Format the one-line status used by `list` and `cleanup`.

    Examples: "↑3 [in_progress]", "↓5", "[merged in #12, dirty]", ""

    Args:
        status: Computed worktree status

    Returns:
        Ahead/behind tokens (each only when positive) followed by [labels]
    """
    parts = []
    if status.commits_ahead > 0:
        parts.append(f"{SYMBOL_AHEAD}{status.commits_ahead}")
    if status.commits_behind > 0:
        parts.append(f"{SYMBOL_BEHIND}{status.commits_behind}")

    labels = format_status_labels(status)
    if labels:
        parts.append("[" + ", ".join(labels) + "]")

    return " ".join(parts)


def format_commit_count(count: int) -> str:
    return f"{count} commit" if count == 1 else f"{count} commits"


def format_ahead_behind(status: WorktreeStatus) -> str:
    """Verbose ahead/behind line body, e.g. "Ahead: 1 commit  Behind: 3 commits"."""
    return (
        f"Ahead: {format_commit_count(status.commits_ahead)}  "
        f"Behind: {format_commit_count(status.commits_behind)}"
    )

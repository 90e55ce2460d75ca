"""Display and formatting service for worktree information"""
from datetime import datetime, timezone
from typing import Dict, List, Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from worktree_keeper.constants import MARKER_CURRENT, MARKER_OTHER, SEPARATOR_WIDTH
from worktree_keeper.formatters import (
    format_age,
    format_ahead_behind,
    format_compact_status,
    format_status_labels,
)
from worktree_keeper.models.worktree import ManagedWorktree
from worktree_keeper.utils.logging import get_logger

logger = get_logger(__name__)


def _marker(worktree: ManagedWorktree) -> str:
    return MARKER_CURRENT if worktree.is_current else MARKER_OTHER


class DisplayService:
    """Renders worktree listings to a rich console."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def _plain_table(self) -> Table:
        return Table(box=None, show_edge=False, pad_edge=False, header_style="bold")

    def display_worktree_table(self, worktrees: List[ManagedWorktree]) -> None:
        """Compact listing: NAME, INDEX, BRANCH, STATUS; "* " marks the current worktree."""
        if not worktrees:
            self.console.print("No worktrees")
            return

        table = self._plain_table()
        table.add_column(MARKER_OTHER + "NAME", no_wrap=True)
        table.add_column("INDEX", justify="right", no_wrap=True)
        table.add_column("BRANCH", no_wrap=True)
        table.add_column("STATUS", no_wrap=True)

        for wt in worktrees:
            table.add_row(
                Text(_marker(wt) + wt.name),
                Text(str(wt.index) if wt.index > 0 else "-"),
                Text(wt.branch),
                Text.from_ansi(format_compact_status(wt.status)),
            )

        self.console.print(table)

    def display_worktree_details(
        self,
        worktrees: List[ManagedWorktree],
        info_output: Optional[Dict[str, str]] = None,
        now: Optional[datetime] = None,
    ) -> None:
        """Verbose listing: one block per worktree between separator lines."""
        if not worktrees:
            self.console.print("No worktrees")
            return

        separator = "=" * SEPARATOR_WIDTH
        info_output = info_output or {}
        for wt in worktrees:
            self.console.print(separator, soft_wrap=True)
            self.print_worktree_block(wt, info_output.get(wt.name, ""), now=now)
        self.console.print(separator, soft_wrap=True)

    def print_worktree_block(
        self,
        wt: ManagedWorktree,
        info_output: str = "",
        now: Optional[datetime] = None,
        show_path: bool = False,
    ) -> None:
        """Print the detail lines for one worktree."""
        now = now or datetime.now(timezone.utc)
        status = wt.status

        lines = [Text(_marker(wt) + wt.name), Text(f"  Branch: {wt.branch or '(detached)'}")]
        if show_path:
            lines.append(Text(f"  Path: {wt.path}"))
        if wt.index > 0:
            lines.append(Text(f"  Index: {wt.index}"))
        if status.created_at is not None:
            lines.append(Text(f"  Age: {format_age(now - status.created_at)}"))
        if status.commits_ahead > 0 or status.commits_behind > 0:
            lines.append(Text(f"  {format_ahead_behind(status)}"))

        labels = format_status_labels(status)
        if labels:
            lines.append(Text.from_ansi("  Status: " + ", ".join(labels)))

        for line in info_output.splitlines():
            if line.strip():
                lines.append(Text.from_ansi(f"  {line}"))

        for line in lines:
            self.console.print(line, soft_wrap=True)

    def display_cleanup_candidates(self, candidates: List[ManagedWorktree]) -> None:
        """Table of worktrees about to be (or that would be) removed."""
        self.console.print("Worktrees eligible for cleanup:")
        self.console.print()

        table = self._plain_table()
        table.add_column(MARKER_OTHER + "NAME", no_wrap=True)
        table.add_column("BRANCH", no_wrap=True)
        table.add_column("STATUS", no_wrap=True)
        for wt in candidates:
            table.add_row(
                Text(MARKER_OTHER + wt.name),
                Text(wt.branch),
                Text.from_ansi(format_compact_status(wt.status)),
            )
        self.console.print(table)
        self.console.print()

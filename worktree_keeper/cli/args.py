"""Command-line argument parsing for worktree-keeper."""

import argparse
from typing import List, Optional

from worktree_keeper.__version__ import __version__


def build_parser() -> argparse.ArgumentParser:
    """Build the `wt` argument parser with one subparser per command."""
    parser = argparse.ArgumentParser(
        prog="wt",
        description="Manage git worktrees as named, indexed workspaces",
        epilog="Configure a repository with a .wt.yaml file at its root. "
        "User settings live in ~/.config/wt/config.yaml (see `wt config --help`).",
    )
    parser.add_argument("--version", action="version", version=f"wt {__version__}")
    parser.add_argument(
        "--debug", action="store_true", help="Show debug information for troubleshooting"
    )

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")

    create = subparsers.add_parser("create", help="Create a new worktree")
    create.add_argument("name", help="Worktree name (directory under the worktree dir)")
    create.add_argument(
        "-b", "--branch", help="Check out an existing branch instead of creating one"
    )

    delete = subparsers.add_parser("delete", help="Delete a worktree and its branch")
    delete.add_argument("name", nargs="?", help="Worktree name (default: the current worktree)")
    delete.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Force deletion even with uncommitted or unmerged changes",
    )
    delete.add_argument(
        "-k", "--keep-branch", action="store_true", help="Keep the associated branch"
    )

    list_parser = subparsers.add_parser("list", aliases=["ls"], help="List worktrees with their status")
    list_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Show detailed status for each worktree"
    )

    cleanup = subparsers.add_parser("cleanup", help="Remove worktrees whose branches have been merged")
    cleanup.add_argument(
        "-n", "--dry-run", action="store_true", help="Show what would be deleted without deleting"
    )
    cleanup.add_argument("-f", "--force", action="store_true", help="Skip confirmation prompts")
    cleanup.add_argument(
        "-k", "--keep-branch", action="store_true", help="Keep the associated branches"
    )

    info = subparsers.add_parser("info", help="Show details for one worktree")
    info.add_argument("name", nargs="?", help="Worktree name (default: the current worktree)")

    cd = subparsers.add_parser("cd", help="Print the path of a worktree (used by the shell wrapper)")
    cd.add_argument("name", help="Worktree name")

    subparsers.add_parser("exit", help="Print the main repository root (used by the shell wrapper)")
    subparsers.add_parser("root", help="Print the main repository root path")

    config = subparsers.add_parser(
        "config",
        help="Get and set user configuration",
        description="Keys: remote (remote to compare against; empty = local), "
        "fetch_interval (minimum time between fetches, e.g. 5m, 1h, 0 or never)",
    )
    config.add_argument("key", nargs="?", help="Configuration key")
    config.add_argument("value", nargs="?", help="Value to set")
    config.add_argument("--global", dest="global_", action="store_true", help="Use the global setting")
    config.add_argument("--unset", action="store_true", help="Remove a configuration value")
    config.add_argument("--list", dest="list_", action="store_true", help="List all configuration values")
    config.add_argument(
        "--show-origin",
        action="store_true",
        help="Show effective values and where each one comes from",
    )

    subparsers.add_parser("version", help="Print the version")

    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)

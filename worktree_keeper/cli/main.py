"""Command-line interface for worktree-keeper"""

import sys
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

from worktree_keeper.__version__ import __version__
from worktree_keeper.cli.args import build_parser
from worktree_keeper.config import config_exists, load_config
from worktree_keeper.constants import DEFAULT_FETCH_INTERVAL
from worktree_keeper.core import WorktreeKeeper
from worktree_keeper.exceptions import (
    ConfigError,
    NotInRepositoryError,
    WorktreeKeeperError,
)
from worktree_keeper.navigation import request_cd
from worktree_keeper.services.git_service import get_main_repo_root
from worktree_keeper.user_config import (
    get_user_config_path,
    load_user_config,
    save_user_config,
    valid_keys,
)
from worktree_keeper.utils.logging import get_logger, setup_logging

console = Console()
err_console = Console(stderr=True)
logger = get_logger(__name__)


def _keeper(require_config: bool = True) -> WorktreeKeeper:
    return WorktreeKeeper.from_path(
        require_config=require_config, console=console, err_console=err_console
    )


def _plain(text: str) -> None:
    """Print text verbatim (no markup, no highlighting)."""
    console.print(text, markup=False, highlight=False, soft_wrap=True)


def run_create(args) -> None:
    keeper = _keeper()
    path = keeper.create(args.name, branch=args.branch)
    request_cd(path, "to open your new worktree", console)


def run_delete(args) -> None:
    keeper = _keeper()
    result = keeper.delete(args.name, force=args.force, keep_branch=args.keep_branch)
    if result.return_to_root:
        request_cd(keeper.repo_root, "to return to the repository root", console)


def run_cleanup(args) -> None:
    keeper = _keeper(require_config=False)
    result = keeper.cleanup(dry_run=args.dry_run, force=args.force, keep_branch=args.keep_branch)
    if result.return_to_root:
        request_cd(keeper.repo_root, "to return to the repository root", console)


def run_list(args) -> None:
    keeper = _keeper()
    _, worktrees = keeper.list_worktrees()
    if args.verbose:
        keeper.display_service.display_worktree_details(worktrees, keeper.collect_all_info(worktrees))
    else:
        keeper.display_service.display_worktree_table(worktrees)


def run_info(args) -> None:
    keeper = _keeper()
    worktree, info_output = keeper.info(args.name)
    keeper.display_service.print_worktree_block(worktree, info_output, show_path=True)


def run_cd(args) -> None:
    keeper = _keeper()
    print(keeper.get_worktree_path(args.name))


def run_exit(args) -> None:
    repo_root = get_main_repo_root()
    if not config_exists(repo_root):
        raise ConfigError("not in a wt-enabled repository (no .wt.yaml found)")
    print(repo_root)


def run_root(args) -> None:
    print(get_main_repo_root())


def run_version(args) -> None:
    _plain(f"wt {__version__}")


def _current_repo_root() -> Optional[str]:
    try:
        return get_main_repo_root()
    except NotInRepositoryError:
        return None


def _require_repo_root() -> str:
    repo_root = _current_repo_root()
    if repo_root is None:
        raise NotInRepositoryError("use --global for global config")
    return repo_root


def print_config_list(user_config) -> None:
    """Every explicitly set value, global first, then per repository."""
    if user_config.remote:
        _plain(f"remote = {user_config.remote} (global)")
    if user_config.fetch_interval:
        _plain(f"fetch_interval = {user_config.fetch_interval} (global)")
    for repo_path, repo_config in user_config.repos.items():
        if repo_config.remote:
            _plain(f"repos.{repo_path}.remote = {repo_config.remote}")
        if repo_config.fetch_interval is not None:
            _plain(f"repos.{repo_path}.fetch_interval = {repo_config.fetch_interval}")


def print_config_origin(user_config) -> None:
    """Effective values for the current repository and where each comes from."""
    config_path = str(get_user_config_path())
    repo_root = _current_repo_root()

    if repo_root is None:
        _plain(f"{'remote = ' + user_config.remote:<29} {config_path} (global)")
        interval = user_config.fetch_interval or DEFAULT_FETCH_INTERVAL
        _plain(f"{'fetch_interval = ' + interval:<29} {config_path} (global)")
        return

    repo_config = user_config.repos.get(repo_root)
    remote = user_config.get_remote_for_repo(repo_root)
    if repo_config and repo_config.remote:
        _plain(f"{'remote = ' + remote:<29} {config_path} (repos.{repo_root})")
    elif user_config.remote:
        _plain(f"{'remote = ' + remote:<29} {config_path} (global)")
    else:
        _plain('remote = ""'.ljust(29) + " (default: local comparison)")

    interval = user_config.get_fetch_interval_string(repo_root)
    if repo_config and repo_config.fetch_interval is not None:
        _plain(f"{'fetch_interval = ' + interval:<29} {config_path} (repos.{repo_root})")
    elif user_config.fetch_interval:
        _plain(f"{'fetch_interval = ' + interval:<29} {config_path} (global)")
    else:
        _plain(f"{'fetch_interval = ' + interval:<29} (default)")

    try:
        repo_cfg = load_config(repo_root)
    except ConfigError as e:
        logger.debug(f"Ignoring unreadable repository config: {e}")
        return
    if repo_cfg.default_branch:
        _plain(f"{'default_branch = ' + repo_cfg.default_branch:<29} .wt.yaml (repo)")


def run_config(args) -> None:
    user_config = load_user_config()

    if args.list_:
        print_config_list(user_config)
        return
    if args.show_origin:
        print_config_origin(user_config)
        return

    if args.unset:
        if not args.key:
            raise ConfigError("usage: wt config [--global] --unset <key>")
        if args.global_:
            user_config.unset_global(args.key)
        else:
            user_config.unset_for_repo(_require_repo_root(), args.key)
        save_user_config(user_config)
        return

    if not args.key:
        raise ConfigError(
            "usage: wt config [--global] <key> [value]\n"
            "       wt config --list\n"
            "       wt config --show-origin\n"
            f"Valid keys: {', '.join(valid_keys())}"
        )

    if args.value is None:
        if args.global_:
            _plain(user_config.get_global(args.key))
            return
        repo_root = _require_repo_root()
        user_config.get_for_repo(repo_root, args.key)  # validates the key
        if args.key == "remote":
            _plain(user_config.get_remote_for_repo(repo_root))
        else:
            _plain(user_config.get_fetch_interval_string(repo_root))
        return

    if args.global_:
        user_config.set_global(args.key, args.value)
    else:
        user_config.set_for_repo(_require_repo_root(), args.key, args.value)
    save_user_config(user_config)


COMMANDS = {
    "create": run_create,
    "delete": run_delete,
    "list": run_list,
    "ls": run_list,
    "cleanup": run_cleanup,
    "info": run_info,
    "cd": run_cd,
    "exit": run_exit,
    "root": run_root,
    "config": run_config,
    "version": run_version,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    parser = build_parser()
    parsed_args = parser.parse_args(argv)
    debug = parsed_args.debug

    setup_logging(debug=debug)

    if not parsed_args.command:
        parser.print_help()
        return 0

    try:
        if debug:
            err_console.print("[yellow]Debug mode enabled[/yellow]")
        COMMANDS[parsed_args.command](parsed_args)
        return 0
    except KeyboardInterrupt:
        err_console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return 1
    except WorktreeKeeperError as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]", soft_wrap=True)
        if debug:
            err_console.print_exception()
        return 1
    except Exception as e:
        logger.debug("Unhandled error", exc_info=True)
        err_console.print(f"[red]Error: {escape(str(e))}[/red]", soft_wrap=True)
        if debug:
            err_console.print_exception()
        return 1


if __name__ == "__main__":
    sys.exit(main())

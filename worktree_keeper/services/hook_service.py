"""Lifecycle hook execution for worktree-keeper."""

import os
import shutil
import subprocess
from typing import Dict, List, Optional, TYPE_CHECKING

from rich.console import Console

from worktree_keeper.exceptions import HookError, HookScriptNotFoundError
from worktree_keeper.models.hooks import HookEnv
from worktree_keeper.utils.logging import get_logger

if TYPE_CHECKING:
    from worktree_keeper.config import HookEntry, HooksConfig

logger = get_logger(__name__)


def _bash() -> str:
    return shutil.which("bash") or "/bin/bash"


class HookService:
    """Runs user scripts at lifecycle points.

    Working directory per event:
        pre_create   repository root
        post_create  new worktree
        pre_delete   worktree
        post_delete  repository root
        info         worktree

    Whether a failure aborts the surrounding operation is decided by the
    caller; run() and run_event() always raise on the first failure.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    @staticmethod
    def resolve_script(script: str, repo_root: str) -> str:
        """Resolve a configured script path against the repository root."""
        if os.path.isabs(script):
            return script
        return os.path.normpath(os.path.join(repo_root, script))

    @staticmethod
    def build_env(entry: "HookEntry", env: HookEnv) -> Dict[str, str]:
        """Process environment, then WT_* variables, then the entry's own env."""
        merged = dict(os.environ)
        merged.update(env.to_env_vars())
        merged.update(entry.env)
        return merged

    def run(self, entries: List["HookEntry"], env: HookEnv, work_dir: str) -> None:
        """Run hook entries in order, stopping at the first failure.

        Script output goes straight to the terminal.

        Raises:
            HookScriptNotFoundError: A script does not exist
            HookError: A script exited non-zero or could not be started
        """
        for entry in entries:
            script_path = self.resolve_script(entry.script, env.repo_root)
            if not os.path.isfile(script_path):
                raise HookScriptNotFoundError(script_path)

            logger.debug(f"Running hook {script_path} in {work_dir}")
            try:
                result = subprocess.run(
                    [_bash(), script_path],
                    cwd=work_dir,
                    env=self.build_env(entry, env),
                )
            except OSError as e:
                raise HookError(script_path, message=str(e))

            if result.returncode != 0:
                raise HookError(script_path, result.returncode)

    def run_event(self, event: str, hooks: "HooksConfig", env: HookEnv) -> None:
        """Run the hooks configured for a lifecycle event.

        Raises:
            HookError: As for run()
        """
        entries = hooks.for_event(event)
        if not entries:
            return

        work_dir = env.repo_root if event in ("pre_create", "post_delete") else env.path
        self.console.print(f"Running {event.replace('_', '-')} hooks...")
        self.run(entries, env, work_dir)

    def run_info(self, entries: List["HookEntry"], env: HookEnv) -> str:
        """Run info hooks and return their combined stdout.

        Info hooks are advisory: missing scripts and non-zero exits are
        logged and skipped, never raised.
        """
        outputs = []
        for entry in entries:
            script_path = self.resolve_script(entry.script, env.repo_root)
            if not os.path.isfile(script_path):
                logger.debug(f"Info hook not found: {script_path}")
                continue
            try:
                result = subprocess.run(
                    [_bash(), script_path],
                    cwd=env.path,
                    env=self.build_env(entry, env),
                    stdout=subprocess.PIPE,
                    stderr=subprocess.DEVNULL,
                    text=True,
                )
            except OSError as e:
                logger.debug(f"Info hook {script_path} could not run: {e}")
                continue
            if result.returncode != 0:
                logger.debug(f"Info hook {script_path} exited {result.returncode}")
            if result.stdout:
                outputs.append(result.stdout.rstrip("\n"))
        return "\n".join(output for output in outputs if output)

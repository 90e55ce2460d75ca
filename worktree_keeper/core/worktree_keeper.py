"""Core functionality for worktree-keeper"""

import os
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set, Tuple

from rich.console import Console
from rich.markup import escape

from worktree_keeper.config import Config, load_config
from worktree_keeper.exceptions import (
    AbortedError,
    BranchExistsError,
    BranchNotFoundError,
    ConfigError,
    GitOperationError,
    GuardViolationError,
    HookError,
    IndexExhaustedError,
    WorktreeExistsError,
    WorktreeKeeperError,
    WorktreeMetadataError,
    WorktreeNotFoundError,
)
from worktree_keeper.models.hooks import HookEnv
from worktree_keeper.models.worktree import ComparisonContext, ManagedWorktree
from worktree_keeper.services.comparison_service import ComparisonResolver
from worktree_keeper.services.display_service import DisplayService
from worktree_keeper.services.git_service import GitService, get_main_repo_root
from worktree_keeper.services.hook_service import HookService
from worktree_keeper.services.index_allocator import IndexAllocator
from worktree_keeper.services.status_service import StatusService
from worktree_keeper.services.validation_service import ValidationService
from worktree_keeper.user_config import UserConfig, load_user_config
from worktree_keeper.utils.logging import get_logger

logger = get_logger(__name__)

# Characters git forbids in a ref name component (plus "/")
_INVALID_NAME_CHARS = re.compile(r"[\s~^:?*\[\\/\x00-\x1f\x7f]")


def prompt_yes_no(prompt: str) -> bool:
    """Ask on the terminal; anything but y/yes is a no."""
    try:
        response = input(f"{prompt} [y/N] ")
    except EOFError:
        return False
    return response.strip().lower() in ("y", "yes")


def _is_within(path: str, directory: str) -> bool:
    return path == directory or path.startswith(directory.rstrip(os.sep) + os.sep)


@dataclass
class DeleteResult:
    """Outcome of deleting one worktree."""

    name: str
    path: str
    branch: str
    branch_deleted: bool = False
    return_to_root: bool = False  # The caller was inside the deleted worktree


@dataclass
class CleanupResult:
    """Outcome of a cleanup run."""

    candidates: List[ManagedWorktree] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)  # pre_delete hook refused
    failed: List[str] = field(default_factory=list)  # git could not remove
    dry_run: bool = False
    return_to_root: bool = False


class WorktreeKeeper:
    """Main class for managing worktrees of one repository."""

    def __init__(
        self,
        repo_root: str,
        config: Config,
        user_config: Optional[UserConfig] = None,
        git_service: Optional[GitService] = None,
        console: Optional[Console] = None,
        err_console: Optional[Console] = None,
        confirm: Callable[[str], bool] = prompt_yes_no,
    ):
        """Initialize WorktreeKeeper.

        Args:
            repo_root: Main repository root (symlinks resolved)
            config: Repository configuration (.wt.yaml)
            user_config: User configuration; defaults when None
            git_service: Git facade; created for repo_root when None
            console: Console for progress and results (stdout)
            err_console: Console for warnings and fetch progress (stderr)
            confirm: Yes/no prompt used by cleanup
        """
        self.repo_root = repo_root
        self.config = config
        self.user_config = user_config or UserConfig()
        self.git_service = git_service or GitService(repo_root)
        self.console = console or Console()
        self.err_console = err_console or Console(stderr=True)
        self.confirm = confirm

        self.status_service = StatusService(self.git_service)
        self.index_allocator = IndexAllocator(self.git_service)
        self.hook_service = HookService(self.console)
        self.display_service = DisplayService(self.console)
        self.comparison_resolver = ComparisonResolver(
            self.git_service, self.user_config, self.err_console
        )

    @classmethod
    def from_path(
        cls,
        path: Optional[str] = None,
        require_config: bool = True,
        **kwargs,
    ) -> "WorktreeKeeper":
        """Build a keeper for the repository containing path (default: cwd).

        Raises:
            NotInRepositoryError: path is not inside a git repository
            ConfigError: .wt.yaml is missing (when required) or invalid
        """
        repo_root = get_main_repo_root(path)
        config = load_config(repo_root, required=require_config)
        err_console = kwargs.get("err_console") or Console(stderr=True)
        kwargs["err_console"] = err_console
        try:
            user_config = load_user_config()
        except ConfigError as e:
            err_console.print(f"[yellow]Warning: {escape(str(e))} (using defaults)[/yellow]")
            user_config = UserConfig()
        return cls(repo_root, config, user_config=user_config, **kwargs)

    # Helpers

    def _warn(self, message: str) -> None:
        self.err_console.print(f"[yellow]Warning: {escape(message)}[/yellow]", soft_wrap=True)

    @property
    def worktrees_dir(self) -> str:
        return os.path.join(self.repo_root, self.config.worktree_dir)

    def worktree_path(self, name: str) -> str:
        return os.path.join(self.worktrees_dir, name)

    @staticmethod
    def validate_name(name: str) -> None:
        """Reject names that are not a single valid ref-name component.

        Git names a worktree's metadata directory after a sanitized form of
        the path's basename; metadata is keyed by name, so the two must agree.
        """
        if not name or not name.strip():
            raise WorktreeKeeperError("worktree name cannot be empty")
        if name.startswith("-"):
            raise WorktreeKeeperError(f"worktree name cannot start with '-': '{name}'")
        if (
            _INVALID_NAME_CHARS.search(name)
            or os.sep in name
            or name.startswith(".")
            or name.endswith(".")
            or name.endswith(".lock")
            or ".." in name
            or "@{" in name
            or name == "@"
        ):
            raise WorktreeKeeperError(f"invalid worktree name '{name}'")

    def _hook_env(self, name: str, path: str, branch: str, index: int = 0) -> HookEnv:
        return HookEnv(
            name=name,
            path=path,
            branch=branch,
            repo_root=self.repo_root,
            worktree_dir=self.config.worktree_dir,
            index=index,
        )

    @staticmethod
    def _cwd(cwd: Optional[str]) -> str:
        return os.path.realpath(cwd or os.getcwd())

    def resolve_comparison(self) -> ComparisonContext:
        return self.comparison_resolver.resolve(self.repo_root, self.config)

    def resolve_target(self, name: Optional[str] = None, cwd: Optional[str] = None) -> Tuple[str, str]:
        """Resolve an explicit name, or the worktree containing cwd, to (name, path).

        Raises:
            WorktreeKeeperError: No name given and cwd is not inside a worktree
            WorktreeNotFoundError: The worktree directory does not exist
        """
        if name:
            self.validate_name(name)
        else:
            cwd = self._cwd(cwd)
            if not self.git_service.is_inside_worktree_dir(self.repo_root, cwd, self.config.worktree_dir):
                raise WorktreeKeeperError("not in a worktree (specify name or cd into a worktree)")
            name = self.git_service.get_worktree_name(self.repo_root, cwd, self.config.worktree_dir)

        path = self.worktree_path(name)
        if not os.path.isdir(path):
            raise WorktreeNotFoundError(name)
        return name, path

    def managed_worktrees(
        self,
        comparison_ref: str,
        merged_cache: Optional[Set[str]] = None,
        cwd: Optional[str] = None,
    ) -> List[ManagedWorktree]:
        """Every worktree under the worktree dir, with status computed against comparison_ref."""
        cwd = self._cwd(cwd)
        managed = []
        for wt in self.git_service.list_worktrees():
            if wt.is_main or wt.path == self.repo_root:
                continue
            if not self.git_service.is_inside_worktree_dir(self.repo_root, wt.path, self.config.worktree_dir):
                continue

            name = self.git_service.get_worktree_name(self.repo_root, wt.path, self.config.worktree_dir)
            status = self.status_service.compute(
                wt.path, name, wt.branch_name, comparison_ref, merged_cache
            )
            managed.append(
                ManagedWorktree(
                    name=name,
                    path=wt.path,
                    branch=wt.branch_name,
                    index=self.index_allocator.get(name),
                    status=status,
                    is_current=_is_within(cwd, wt.path),
                )
            )
        return managed

    # Commands

    def create(self, name: str, branch: Optional[str] = None) -> str:
        """Create a worktree called name.

        Without branch, a new branch is created from branch_pattern. With
        branch, that existing branch is checked out.

        Returns:
            Path of the new worktree

        Raises:
            HookError: A pre_create hook failed
            BranchNotFoundError: branch was given but does not exist
            BranchExistsError: The generated branch name is already taken
            GitOperationError: git could not create the worktree
        """
        self.validate_name(name)
        path = self.worktree_path(name)
        if os.path.exists(path):
            raise WorktreeExistsError(name, path)

        branch_name = branch or self.config.branch_for(name)
        env = self._hook_env(name, path, branch_name)

        self.hook_service.run_event("pre_create", self.config.hooks, env)

        # Worktrees deleted by hand keep their metadata (and index) until pruned,
        # and git refuses to add a worktree at a path it still has registered
        try:
            self.git_service.prune_worktrees()
        except GitOperationError as e:
            logger.debug(f"Could not prune worktrees: {e}")

        if branch:
            if not self.git_service.branch_exists(branch):
                raise BranchNotFoundError(branch)
            self.console.print(
                f"Creating worktree '{escape(name)}' from branch '{escape(branch)}'...", soft_wrap=True
            )
            self.git_service.create_worktree_from_branch(path, branch)
        else:
            if self.git_service.branch_exists(branch_name):
                raise BranchExistsError(branch_name)
            self.console.print(
                f"Creating worktree '{escape(name)}' with new branch '{escape(branch_name)}'...",
                soft_wrap=True,
            )
            self.git_service.create_worktree(path, branch_name)

        try:
            self.git_service.set_worktree_created_at(name)
        except WorktreeMetadataError as e:
            self._warn(f"could not store creation time: {e}")

        initial_commit = self.git_service.get_current_commit(path)
        if initial_commit:
            try:
                self.git_service.set_worktree_initial_commit(name, initial_commit)
            except WorktreeMetadataError as e:
                self._warn(f"could not store initial commit: {e}")

        index = 0
        try:
            index = self.index_allocator.allocate(self.config.index_max)
            self.index_allocator.set(name, index)
        except (IndexExhaustedError, WorktreeMetadataError) as e:
            self._warn(f"could not assign index: {e}")
            index = 0

        env = self._hook_env(name, path, branch_name, index)
        try:
            self.hook_service.run_event("post_create", self.config.hooks, env)
        except HookError as e:
            self._warn(f"post-create hook failed: {e}")

        self.console.print(f"Worktree '{escape(name)}' created successfully")
        return path

    def delete(
        self,
        name: Optional[str] = None,
        force: bool = False,
        keep_branch: bool = False,
        cwd: Optional[str] = None,
    ) -> DeleteResult:
        """Delete a worktree and (unless keep_branch) its branch.

        Unless forced, refuses when the worktree has uncommitted changes or
        commits not merged into the comparison ref, reporting every issue.

        Raises:
            GuardViolationError: A safety check failed
            HookError: A pre_delete hook failed and force is not set
            GitOperationError: git could not remove the worktree
        """
        cwd = self._cwd(cwd)
        name, path = self.resolve_target(name, cwd)
        branch = self.git_service.get_current_branch(path)
        env = self._hook_env(name, path, branch, self.index_allocator.get(name))

        if not force:
            has_changes = self.git_service.has_uncommitted_changes(path)
            context = self.resolve_comparison()
            ahead, _ = self.git_service.get_commits_ahead_behind(path, context.comparison_ref)
            issues = ValidationService.delete_guard_issues(has_changes, ahead, context.comparison_ref)
            if issues:
                raise GuardViolationError(name, issues)

        try:
            self.hook_service.run_event("pre_delete", self.config.hooks, env)
        except HookError as e:
            if not force:
                raise
            self._warn(f"pre-delete hook failed: {e}")

        self.console.print(f"Deleting worktree '{escape(name)}'...")
        self.git_service.remove_worktree(path, force=force)

        result = DeleteResult(name=name, path=path, branch=branch)
        if not keep_branch and branch:
            self.console.print(f"Deleting branch '{escape(branch)}'...")
            try:
                self.git_service.delete_branch(branch, force=force)
                result.branch_deleted = True
            except GitOperationError as e:
                self._warn(f"failed to delete branch: {e}")

        try:
            self.hook_service.run_event("post_delete", self.config.hooks, env)
        except HookError as e:
            self._warn(f"post-delete hook failed: {e}")

        self.console.print(f"Worktree '{escape(name)}' deleted successfully")
        result.return_to_root = _is_within(cwd, path)
        return result

    def cleanup(
        self,
        dry_run: bool = False,
        force: bool = False,
        keep_branch: bool = False,
        cwd: Optional[str] = None,
    ) -> CleanupResult:
        """Remove every worktree whose branch has landed in the comparison ref.

        A worktree qualifies only when it is clean, not new, has no commits
        ahead and its branch is merged. Candidates are processed in listing
        order; one failing candidate does not stop the others.

        Raises:
            AbortedError: The user declined the confirmation prompt
        """
        cwd = self._cwd(cwd)
        context = self.resolve_comparison()
        self.comparison_resolver.print_header(context)

        merged_cache = self.status_service.get_merged_cache(context.comparison_ref)
        candidates = [
            wt
            for wt in self.managed_worktrees(context.comparison_ref, merged_cache, cwd)
            if wt.branch and ValidationService.is_cleanup_candidate(wt.status)
        ]

        result = CleanupResult(candidates=candidates, dry_run=dry_run)
        if not candidates:
            self.console.print("No worktrees eligible for cleanup")
            return result

        self.display_service.display_cleanup_candidates(candidates)
        suffix = "" if keep_branch else " and their branches"

        if dry_run:
            self.console.print(f"Would delete {len(candidates)} worktree(s){suffix}")
            return result

        if not force:
            self.console.print(f"Delete {len(candidates)} worktree(s){suffix}?")
            if not self.confirm("Proceed?"):
                raise AbortedError()

        for wt in candidates:
            env = self._hook_env(wt.name, wt.path, wt.branch, wt.index)

            try:
                self.hook_service.run_event("pre_delete", self.config.hooks, env)
            except HookError as e:
                if not force:
                    self.console.print(
                        f"Skipping {escape(wt.name)}: pre-delete hook failed: {escape(str(e))}", soft_wrap=True
                    )
                    result.skipped.append(wt.name)
                    continue
                self._warn(f"pre-delete hook failed for {wt.name}: {e}")

            self.console.print(f"Deleting worktree '{escape(wt.name)}'...")
            try:
                self.git_service.remove_worktree(wt.path, force=force)
            except GitOperationError as e:
                self.err_console.print(
                    f"[red]Error: failed to delete {escape(wt.name)}: {escape(str(e))}[/red]", soft_wrap=True
                )
                result.failed.append(wt.name)
                continue

            if not keep_branch:
                self.console.print(f"Deleting branch '{escape(wt.branch)}'...")
                try:
                    self.git_service.delete_branch(wt.branch, force=force)
                except GitOperationError as e:
                    self._warn(f"failed to delete branch {wt.branch}: {e}")

            try:
                self.hook_service.run_event("post_delete", self.config.hooks, env)
            except HookError as e:
                self._warn(f"post-delete hook failed for {wt.name}: {e}")

            result.deleted.append(wt.name)
            if _is_within(cwd, wt.path):
                result.return_to_root = True

        self.console.print(f"Cleaned up {len(result.deleted)} worktree(s)")
        return result

    def list_worktrees(self, cwd: Optional[str] = None) -> Tuple[ComparisonContext, List[ManagedWorktree]]:
        """Resolve the comparison once and compute every managed worktree's status."""
        context = self.resolve_comparison()
        self.comparison_resolver.print_header(context)
        merged_cache = self.status_service.get_merged_cache(context.comparison_ref)
        return context, self.managed_worktrees(context.comparison_ref, merged_cache, cwd)

    def collect_info(self, worktree: ManagedWorktree) -> str:
        """Captured output of the info hooks for one worktree."""
        if not self.config.hooks.info:
            return ""
        env = self._hook_env(worktree.name, worktree.path, worktree.branch, worktree.index)
        return self.hook_service.run_info(self.config.hooks.info, env)

    def info(self, name: Optional[str] = None, cwd: Optional[str] = None) -> Tuple[ManagedWorktree, str]:
        """Status record and info hook output for one worktree.

        Raises:
            WorktreeKeeperError: No name given and cwd is not inside a worktree
            WorktreeNotFoundError: The worktree does not exist
        """
        cwd = self._cwd(cwd)
        name, path = self.resolve_target(name, cwd)
        context = self.resolve_comparison()

        real_path = os.path.realpath(path)
        branch = next(
            (wt.branch_name for wt in self.git_service.list_worktrees() if wt.path == real_path),
            "",
        ) or self.git_service.get_current_branch(path)

        status = self.status_service.compute(path, name, branch, context.comparison_ref)
        worktree = ManagedWorktree(
            name=name,
            path=path,
            branch=branch,
            index=self.index_allocator.get(name),
            status=status,
            is_current=_is_within(cwd, real_path),
        )
        return worktree, self.collect_info(worktree)

    def get_worktree_path(self, name: str) -> str:
        """Path of an existing worktree, for `cd`."""
        return self.resolve_target(name)[1]

    def collect_all_info(self, worktrees: List[ManagedWorktree]) -> Dict[str, str]:
        return {wt.name: self.collect_info(wt) for wt in worktrees}

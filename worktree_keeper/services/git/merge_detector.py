"""Merge detection service for worktree-keeper."""

import git
import re
from typing import List, Set

from worktree_keeper.constants import MERGE_SCAN_LIMIT
from worktree_keeper.utils.logging import get_logger

logger = get_logger(__name__)

# GitHub-style merge subjects: "Merge pull request #123 from owner/branch"
PR_NUMBER_PATTERN = re.compile(r"pull request #(\d+)", re.IGNORECASE)


def matches_branch_name(subject: str, branch_name: str) -> bool:
    """Check whether a merge commit subject references exactly this branch.

    Two subject shapes are recognised:
      - "... from <token>" where token is the branch, or "owner/<branch>"
        with only the first path segment stripped
      - "Merge branch '<branch>' into ..." (branch in single quotes)
    """
    from_idx = subject.find("from ")
    if from_idx != -1:
        fields = subject[from_idx + len("from "):].split()
        if fields:
            token = fields[0]
            if token == branch_name:
                return True
            slash_idx = token.find("/")
            if slash_idx != -1 and token[slash_idx + 1:] == branch_name:
                return True

    return f"'{branch_name}'" in subject


class MergeDetector:
    """Service for detecting if branches have been merged into a comparison ref."""

    def __init__(self, repo_path: str):
        """Initialize the merge detector.

        Args:
            repo_path: Path to the main repository root
        """
        self.repo_path = repo_path
        logger.debug("Merge detector initialized")

    def _get_repo(self):
        """Get a fresh git.Repo instance."""
        return git.Repo(self.repo_path)

    def get_merged_branches(self, comparison_ref: str) -> Set[str]:
        """Local branches whose tips are reachable from comparison_ref.

        The comparison ref itself (and, for "remote/branch" refs, its local
        branch name) is never reported as merged.

        Returns:
            Set of branch names; empty on any error
        """
        repo = self._get_repo()
        try:
            output = repo.git.branch("--merged", comparison_ref, "--format=%(refname:short)")
        except git.exc.GitCommandError as e:
            logger.debug(f"git branch --merged {comparison_ref} failed: {e}")
            return set()

        excluded = {comparison_ref, comparison_ref.split("/", 1)[-1]}
        merged = set()
        for line in output.splitlines():
            name = line.strip()
            if name and name not in excluded:
                merged.add(name)
        logger.debug(f"{len(merged)} branches merged into {comparison_ref}")
        return merged

    def is_branch_merged(self, branch_name: str, comparison_ref: str) -> bool:
        """Check a single branch without a precomputed merged set."""
        if not branch_name:
            return False
        return branch_name in self.get_merged_branches(comparison_ref)

    def get_merge_prs(self, branch_name: str, comparison_ref: str) -> List[str]:
        """Pull request numbers of merge commits that brought in branch_name.

        Scans the most recent merge commits on comparison_ref.

        Returns:
            Ordered, de-duplicated tokens such as ["#12", "#15"]; whatever was
            found so far if git fails
        """
        prs: List[str] = []
        if not branch_name:
            return prs

        repo = self._get_repo()
        try:
            output = repo.git.log(comparison_ref, "--merges", "-n", str(MERGE_SCAN_LIMIT), "--pretty=%s")
        except git.exc.GitCommandError as e:
            logger.debug(f"Could not read merge commits on {comparison_ref}: {e}")
            return prs

        for subject in output.splitlines():
            if not matches_branch_name(subject, branch_name):
                continue
            match = PR_NUMBER_PATTERN.search(subject)
            if match:
                pr = f"#{match.group(1)}"
                if pr not in prs:
                    prs.append(pr)
        return prs

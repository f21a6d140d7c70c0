"""Post-merge trigger detection.

git runs post-merge after a successful `git merge` or `git pull`, passing a
single flag (1 for squash merges). The detector works out the range the merge
brought in (ORIG_HEAD..HEAD) and whether the merge is worth analyzing.
"""

import logging
import re

from artisync.errors import GitCommandError
from artisync.models.detection import MergeMetadata
from artisync.utils.git import GitClient

logger = logging.getLogger(__name__)

# "merge feature/x: Fast-forward", "merge origin/feature: Merge made by ..."
_REFLOG_MERGE = re.compile(r"merge\s+(?:origin/)?([^\s:]+)", re.IGNORECASE)
# "Merge branch 'feature/x' into main", "Merge pull request #12 from org/feature"
_SUBJECT_BRANCH = re.compile(r"Merge (?:remote-tracking )?branch '([^']+)'", re.IGNORECASE)
_SUBJECT_PR_FROM = re.compile(r"Merge pull request #\d+ from [^/\s]+/(\S+)", re.IGNORECASE)
_PR_NUMBER = re.compile(r"#(\d+)")


class PostMergeDetector:
    """Extracts merge metadata right after git's post-merge hook fires."""

    def __init__(
        self,
        git: GitClient,
        target_branches: list[str] | None = None,
        require_pr: bool = False,
    ) -> None:
        """Initialize the detector.

        Args:
            git: Git client for the working tree
            target_branches: Branches merges are handled on (empty = any)
            require_pr: Only handle merges whose subject references a PR
        """
        self.git = git
        self.target_branches = list(target_branches or [])
        self.require_pr = require_pr

    def detect(self, squash_flag: int | None = None) -> MergeMetadata:
        """Inspect the repository after a merge.

        Args:
            squash_flag: Flag passed by git to post-merge (1 = squash merge)

        Returns:
            MergeMetadata; is_relevant_transition tells the orchestrator whether to run
        """
        is_squash = squash_flag == 1
        try:
            return self._detect(is_squash)
        except GitCommandError as e:
            logger.warning("Merge detection failed: %s", e)
            return MergeMetadata(
                previous_ref="",
                new_ref="",
                is_relevant_transition=False,
                reason=f"Error detecting merge: {e}",
                is_squash=is_squash,
            )

    def _detect(self, is_squash: bool) -> MergeMetadata:
        new_ref = self.git.resolve_commit("HEAD")
        if new_ref is None:
            return MergeMetadata("", "", False, "HEAD cannot be resolved", is_squash=is_squash)

        branch = self.git.current_branch()
        previous_ref = self.git.resolve_commit("ORIG_HEAD") or self.git.resolve_commit("HEAD^1")

        metadata = MergeMetadata(
            previous_ref=previous_ref or "",
            new_ref=new_ref,
            is_relevant_transition=False,
            target_branch=branch,
            is_squash=is_squash,
        )

        if self.target_branches and branch not in self.target_branches:
            metadata.reason = (
                f"Not on a target branch (current: {branch}, targets: {', '.join(self.target_branches)})"
            )
            return metadata

        if previous_ref is None:
            metadata.reason = "No pre-merge state (ORIG_HEAD and HEAD^1 missing)"
            return metadata

        if previous_ref == new_ref:
            metadata.reason = (
                "Squash merge not committed yet" if is_squash else "HEAD did not move"
            )
            return metadata

        subject = self.git.commit_subject("HEAD") or ""
        metadata.source_branch = self._source_branch(subject)
        metadata.pr_number = self._pr_number(subject)

        if self.require_pr and metadata.pr_number is None:
            metadata.reason = "Merge does not reference a pull request (require_pr is set)"
            return metadata

        metadata.is_relevant_transition = True
        source = f" from {metadata.source_branch}" if metadata.source_branch else ""
        metadata.reason = f"Merge{source} into {branch or 'detached HEAD'}"
        return metadata

    def _source_branch(self, subject: str) -> str | None:
        reflog = self.git.last_reflog_subject() or ""
        match = _REFLOG_MERGE.search(reflog)
        if match:
            return match.group(1)

        for pattern in (_SUBJECT_BRANCH, _SUBJECT_PR_FROM):
            match = pattern.search(subject)
            if match:
                return match.group(1)
        return None

    @staticmethod
    def _pr_number(subject: str) -> int | None:
        match = _PR_NUMBER.search(subject)
        return int(match.group(1)) if match else None

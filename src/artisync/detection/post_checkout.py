"""Post-checkout trigger detection.

git runs post-checkout with three arguments: the previous HEAD, the new HEAD
and a flag (1 for branch checkouts, 0 for file checkouts).
"""

import logging

from artisync.errors import GitCommandError
from artisync.models.detection import CheckoutMetadata
from artisync.utils.git import GitClient

logger = logging.getLogger(__name__)

NULL_SHA = "0" * 40


class PostCheckoutDetector:
    """Extracts checkout metadata right after git's post-checkout hook fires."""

    def __init__(self, git: GitClient) -> None:
        self.git = git

    def detect(self, previous_head: str, new_head: str, branch_flag: int) -> CheckoutMetadata:
        """Inspect a checkout transition.

        Args:
            previous_head: HEAD before the checkout
            new_head: HEAD after the checkout
            branch_flag: 1 for a branch checkout, 0 for a file checkout

        Returns:
            CheckoutMetadata; is_relevant_transition tells the orchestrator whether to run
        """
        metadata = CheckoutMetadata(
            previous_ref=previous_head,
            new_ref=new_head,
            is_relevant_transition=False,
            is_branch_checkout=branch_flag == 1,
        )

        if branch_flag != 1:
            metadata.reason = "File checkout (not branch)"
            return metadata

        if not previous_head or previous_head == NULL_SHA:
            metadata.reason = "Initial checkout (no previous HEAD)"
            return metadata

        try:
            metadata.branch_name = self.git.current_branch()
        except GitCommandError as e:
            logger.warning("Could not read current branch: %s", e)

        if previous_head == new_head:
            metadata.is_new_branch = True
            metadata.reason = "HEAD did not move (new branch or same commit)"
            return metadata

        metadata.is_relevant_transition = True
        metadata.reason = f"Checked out {metadata.branch_name or 'detached HEAD'}"
        return metadata

"""Event detection entities.

Detectors inspect the repository right after git fires a hook and report
whether the transition is worth analyzing. Both metadata types expose the
same minimal shape: previous_ref, new_ref, is_relevant_transition.
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class MergeMetadata:
    """Metadata extracted after a merge.

    Attributes:
        previous_ref: HEAD before the merge (ORIG_HEAD or first parent)
        new_ref: Merge result commit SHA
        is_relevant_transition: Whether the orchestrator should run
        reason: Why the transition is (not) relevant
        target_branch: Branch that was merged into
        source_branch: Branch that was merged from (if known)
        pr_number: Pull/merge request number parsed from the merge subject
        is_squash: Whether git reported a squash merge
    """

    previous_ref: str
    new_ref: str
    is_relevant_transition: bool
    reason: str = ""
    target_branch: str | None = None
    source_branch: str | None = None
    pr_number: int | None = None
    is_squash: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "previous_ref": self.previous_ref,
            "new_ref": self.new_ref,
            "is_relevant_transition": self.is_relevant_transition,
            "reason": self.reason,
            "target_branch": self.target_branch,
            "source_branch": self.source_branch,
            "pr_number": self.pr_number,
            "is_squash": self.is_squash,
        }


@dataclass
class CheckoutMetadata:
    """Metadata extracted after a checkout.

    Attributes:
        previous_ref: HEAD before the checkout
        new_ref: HEAD after the checkout
        is_relevant_transition: Whether the orchestrator should run
        reason: Why the transition is (not) relevant
        branch_name: Current branch after the checkout
        is_branch_checkout: False for file checkouts
        is_new_branch: True when HEAD did not move (branch creation)
    """

    previous_ref: str
    new_ref: str
    is_relevant_transition: bool
    reason: str = ""
    branch_name: str | None = None
    is_branch_checkout: bool = True
    is_new_branch: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "previous_ref": self.previous_ref,
            "new_ref": self.new_ref,
            "is_relevant_transition": self.is_relevant_transition,
            "reason": self.reason,
            "branch_name": self.branch_name,
            "is_branch_checkout": self.is_branch_checkout,
            "is_new_branch": self.is_new_branch,
        }

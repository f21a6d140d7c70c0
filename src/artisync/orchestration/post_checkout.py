"""Post-checkout orchestration.

Analyzes the difference between the commit that was checked out before and
the one checked out now. Cascade commits on either side of a diverged
checkout are left out of the analysis.
"""

from typing import Any

from artisync.config import ArtisyncConfig
from artisync.detection.post_checkout import PostCheckoutDetector
from artisync.models.detection import CheckoutMetadata
from artisync.models.impact import CheckoutTransition
from artisync.models.orchestration import HookEvent
from artisync.orchestration.base import BaseOrchestrator


class PostCheckoutOrchestrator(BaseOrchestrator):
    """Runs the pipeline for git's post-checkout hook."""

    event = HookEvent.POST_CHECKOUT

    def __init__(
        self,
        config: ArtisyncConfig,
        previous_head: str,
        new_head: str,
        branch_flag: int,
        detector: PostCheckoutDetector | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            config: Loaded configuration
            previous_head: HEAD before the checkout
            new_head: HEAD after the checkout
            branch_flag: 1 for a branch checkout, 0 for a file checkout
            detector: Checkout detector
            **kwargs: Collaborators forwarded to BaseOrchestrator
        """
        super().__init__(config, **kwargs)
        self.previous_head = previous_head
        self.new_head = new_head
        self.branch_flag = branch_flag
        self.detector = detector or PostCheckoutDetector(self.git)

    def detect(self) -> CheckoutMetadata:
        return self.detector.detect(self.previous_head, self.new_head, self.branch_flag)

    def build_range(self, metadata: CheckoutMetadata) -> CheckoutTransition:
        return CheckoutTransition(
            previous_head=metadata.previous_ref,
            new_head=metadata.new_ref,
            branch_checkout=metadata.is_branch_checkout,
        )

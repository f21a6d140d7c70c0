"""Post-merge orchestration.

Analyzes what a merge brought in (ORIG_HEAD..HEAD) and regenerates the
impacted artifacts.
"""

from typing import Any

from artisync.config import ArtisyncConfig
from artisync.detection.post_merge import PostMergeDetector
from artisync.models.detection import MergeMetadata
from artisync.models.impact import CommitRange
from artisync.models.orchestration import HookEvent
from artisync.orchestration.base import BaseOrchestrator


class PostMergeOrchestrator(BaseOrchestrator):
    """Runs the pipeline for git's post-merge hook."""

    event = HookEvent.POST_MERGE

    def __init__(
        self,
        config: ArtisyncConfig,
        squash_flag: int | None = None,
        detector: PostMergeDetector | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            config: Loaded configuration
            squash_flag: Flag git passed to post-merge (1 = squash merge)
            detector: Merge detector (defaults to one built from the post_merge event config)
            **kwargs: Collaborators forwarded to BaseOrchestrator
        """
        super().__init__(config, **kwargs)
        self.squash_flag = squash_flag
        event_config = config.event(self.event)
        self.detector = detector or PostMergeDetector(
            self.git,
            target_branches=event_config.target_branches,
            require_pr=event_config.require_pr,
        )

    def detect(self) -> MergeMetadata:
        return self.detector.detect(self.squash_flag)

    def build_range(self, metadata: MergeMetadata) -> CommitRange:
        return CommitRange(base=metadata.previous_ref, head=metadata.new_ref)

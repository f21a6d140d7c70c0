"""Per-event orchestration of impact analysis, strategies and cascade commits."""

from artisync.orchestration.base import BaseOrchestrator
from artisync.orchestration.post_checkout import PostCheckoutOrchestrator
from artisync.orchestration.post_merge import PostMergeOrchestrator

__all__ = [
    "BaseOrchestrator",
    "PostCheckoutOrchestrator",
    "PostMergeOrchestrator",
]

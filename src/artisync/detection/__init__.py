"""Hook event detectors: decide whether a git transition is worth analyzing."""

from artisync.detection.post_checkout import PostCheckoutDetector
from artisync.detection.post_merge import PostMergeDetector

__all__ = ["PostCheckoutDetector", "PostMergeDetector"]

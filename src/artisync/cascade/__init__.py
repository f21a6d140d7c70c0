"""Cascade commits: persisting regenerated artifacts back into git."""

from artisync.cascade.commit import CascadeCommitCreator, build_commit_message

__all__ = ["CascadeCommitCreator", "build_commit_message"]

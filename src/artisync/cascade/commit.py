"""Cascade commit creation.

Persists strategy output back into the repository as a machine-attributed
commit. The commit message carries the loop-prevention marker as a trailer,
which the impact analyzer uses to leave cascade commits out of later
analyses.

Message layout:

    cascade: regenerate artifacts after post-merge (PR #42)

    Affected artifacts:
    - docs/api.md: site/api.html

    Artisync-Cascade: true
    Agent-Attribution: artisync/0.1.0
    Trigger: post-merge (PR #42)
"""

import logging

from artisync.errors import CommitError, GitCommandError
from artisync.models.execution import ArtifactExecutionResult
from artisync.models.orchestration import CascadeCommitAttribution, CascadeCommitResult
from artisync.utils.git import GitClient

logger = logging.getLogger(__name__)


def build_commit_message(
    attribution: CascadeCommitAttribution,
    artifacts: list[ArtifactExecutionResult] | None = None,
) -> str:
    """Build a cascade commit message.

    Args:
        attribution: Identity and trigger information
        artifacts: Artifact results whose changes the commit contains

    Returns:
        Commit message ending in the attribution trailers
    """
    subject = f"cascade: regenerate artifacts after {attribution.trigger_event}"
    if attribution.pr_number is not None:
        subject += f" (PR #{attribution.pr_number})"

    lines = [subject, ""]

    affected = sorted(
        (r for r in artifacts or [] if r.has_changes),
        key=lambda r: r.artifact_id,
    )
    if affected:
        lines.append("Affected artifacts:")
        for result in affected:
            lines.append(f"- {result.artifact_id}: {', '.join(result.changed_paths)}")
        lines.append("")

    lines.extend(attribution.trailers())
    return "\n".join(lines)


class CascadeCommitCreator:
    """Stages reported paths and commits them under a machine identity.

    Usage:
        creator = CascadeCommitCreator(GitClient(root))
        result = creator.create(paths, attribution, artifacts)
        if result.created:
            print(result.commit_sha)
    """

    def __init__(self, git: GitClient) -> None:
        self.git = git

    def create(
        self,
        changed_paths: list[str],
        attribution: CascadeCommitAttribution,
        artifacts: list[ArtifactExecutionResult] | None = None,
    ) -> CascadeCommitResult:
        """Create a cascade commit containing exactly the given paths.

        Args:
            changed_paths: Repository-relative paths written or removed by strategies
            attribution: Identity and trailers for the commit
            artifacts: Artifact results listed in the message body

        Returns:
            CascadeCommitResult (created=False when there is nothing to commit)

        Raises:
            CommitError: If staging or committing fails, or nothing got staged
        """
        paths = sorted(set(changed_paths))
        if not paths:
            logger.debug("No changed paths, skipping cascade commit")
            return CascadeCommitResult(created=False)

        message = build_commit_message(attribution, artifacts)

        try:
            self.git.add(paths)
            staged = self.git.staged_paths(paths)
            if not staged:
                raise CommitError(f"Nothing staged for {len(paths)} reported path(s)")

            sha = self.git.commit(
                message,
                staged,
                author_name=attribution.agent_name,
                author_email=attribution.author_email,
            )
        except GitCommandError as e:
            raise CommitError(f"Cascade commit failed: {e}") from e

        logger.info("Created cascade commit %s (%d file(s))", sha[:7], len(staged))
        return CascadeCommitResult(
            created=True,
            commit_sha=sha,
            message=message,
            files_changed=len(staged),
        )

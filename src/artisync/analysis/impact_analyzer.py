"""Impact analysis of a git change.

Turns a commit range or checkout transition into a deterministic ImpactReport:
1. Resolve both endpoints (InvalidRangeError if either is unknown)
2. Collect file-level changes, dropping those that only cascade commits made
3. Classify paths into logical artifacts through the rule set
4. Merge operations per artifact and sort by (artifact id, impact type)

The analyzer is read-only: it runs git queries and never touches the tree.
"""

import logging
from dataclasses import dataclass, field

from artisync.analysis.rules import Classification, RuleSet
from artisync.errors import InvalidRangeError
from artisync.models.impact import (
    CheckoutTransition,
    CommitRange,
    ImpactedArtifact,
    ImpactOperation,
    ImpactReport,
    ImpactType,
)
from artisync.models.orchestration import CASCADE_MARKER_KEY, CASCADE_MARKER_VALUE
from artisync.utils.git import FileChange, GitClient

logger = logging.getLogger(__name__)


@dataclass
class _ArtifactGroup:
    """Operations collected for one artifact id while classifying."""

    kind: str
    operations: list[ImpactOperation] = field(default_factory=list)
    contributions: list[ImpactType] = field(default_factory=list)
    old_ids: set[str] = field(default_factory=set)

    def add(self, operation: ImpactOperation, contribution: ImpactType) -> None:
        self.operations.append(operation)
        self.contributions.append(contribution)

    def combined_type(self) -> ImpactType:
        kinds = set(self.contributions)
        if kinds == {ImpactType.CREATED}:
            return ImpactType.CREATED
        if kinds == {ImpactType.DELETED}:
            return ImpactType.DELETED
        if kinds == {ImpactType.RENAMED} and len(self.old_ids) == 1:
            return ImpactType.RENAMED
        return ImpactType.MODIFIED


class ImpactAnalyzer:
    """Computes which artifacts a git change impacts.

    Usage:
        analyzer = ImpactAnalyzer(GitClient(root), RuleSet.from_config(config.rules))
        report = analyzer.analyze(CommitRange("ORIG_HEAD", "HEAD"))
    """

    def __init__(
        self,
        git: GitClient,
        rules: RuleSet,
        marker_key: str = CASCADE_MARKER_KEY,
        marker_value: str = CASCADE_MARKER_VALUE,
    ) -> None:
        """Initialize the analyzer.

        Args:
            git: Git client for the working tree
            rules: Classification rules
            marker_key: Trailer key identifying cascade commits
            marker_value: Trailer value identifying cascade commits
        """
        self.git = git
        self.rules = rules
        self.marker_key = marker_key
        self.marker_value = marker_value

    def analyze(self, target: CommitRange | CheckoutTransition) -> ImpactReport:
        """Analyze a commit range or checkout transition.

        Args:
            target: Two repository states to compare

        Returns:
            ImpactReport with deduplicated, sorted artifacts

        Raises:
            InvalidRangeError: If either endpoint cannot be resolved
        """
        base = self._resolve(target.base)
        head = self._resolve(target.head)

        if isinstance(target, CheckoutTransition) and not target.branch_checkout:
            logger.debug("File checkout, nothing to analyze")
            return ImpactReport(base=base, head=head)

        if base == head:
            logger.debug("Range %s..%s is empty", base[:7], head[:7])
            return ImpactReport(base=base, head=head)

        changes, excluded = self._collect_changes(base, head)
        artifacts = self._classify(changes)

        logger.debug(
            "Analyzed %s..%s: %d changed path(s), %d artifact(s), %d cascade commit(s) excluded",
            base[:7],
            head[:7],
            len(changes),
            len(artifacts),
            len(excluded),
        )
        source_head = self._source_commit(head) if head in excluded else None
        return ImpactReport(
            base=base,
            head=head,
            artifacts=artifacts,
            excluded_commits=excluded,
            source_head=source_head,
        )

    # =========================================================================
    # Change collection
    # =========================================================================

    def _resolve(self, ref: str) -> str:
        sha = self.git.resolve_commit(ref)
        if sha is None:
            raise InvalidRangeError(ref)
        return sha

    def _collect_changes(self, base: str, head: str) -> tuple[list[FileChange], list[str]]:
        """Diff two commits, leaving out paths only cascade commits touched.

        Returns:
            (file changes, SHAs of excluded cascade commits)
        """
        commits = self.git.commits_in_range(base, head, symmetric=True)
        cascade = [c for c in commits if c.has_trailer(self.marker_key, self.marker_value)]
        changes = self.git.diff_name_status(base, head)

        if not cascade:
            return changes, []

        per_commit = self.git.changes_by_commit(base, head, symmetric=True)
        cascade_shas = {c.sha for c in cascade}
        cascade_paths: set[str] = set()
        regular_paths: set[str] = set()
        for sha, commit_changes in per_commit.items():
            paths = _paths_of(commit_changes)
            if sha in cascade_shas:
                cascade_paths.update(paths)
            else:
                regular_paths.update(paths)

        kept: list[FileChange] = []
        for change in changes:
            paths = {change.path} | ({change.old_path} if change.old_path else set())
            if paths & regular_paths or not paths <= cascade_paths:
                kept.append(change)
            else:
                logger.debug("Ignoring %s (changed by cascade commits only)", change.path)

        return kept, sorted(cascade_shas)

    def _source_commit(self, sha: str) -> str:
        """Follow first parents past cascade commits to the commit they regenerated for."""
        info = self.git.commit_info(sha)
        while info.parents and info.has_trailer(self.marker_key, self.marker_value):
            info = self.git.commit_info(info.parents[0])
        return info.sha

    # =========================================================================
    # Classification
    # =========================================================================

    def _classify(self, changes: list[FileChange]) -> list[ImpactedArtifact]:
        groups: dict[str, _ArtifactGroup] = {}

        def group_for(classification: Classification) -> _ArtifactGroup:
            group = groups.get(classification.artifact_id)
            if group is None:
                group = _ArtifactGroup(kind=classification.kind)
                groups[classification.artifact_id] = group
            elif group.kind != classification.kind:
                logger.warning(
                    "Artifact %s matched kinds %s and %s; keeping %s",
                    classification.artifact_id,
                    group.kind,
                    classification.kind,
                    group.kind,
                )
            return group

        for change in sorted(changes, key=lambda c: (c.path, c.old_path or "")):
            change_type = ImpactType.from_git_status(change.status)
            new_class = self.rules.classify(change.path)

            if change_type != ImpactType.RENAMED or change.old_path is None:
                if new_class is not None:
                    operation = ImpactOperation(path=change.path, change=change_type)
                    group_for(new_class).add(operation, change_type)
                continue

            old_class = self.rules.classify(change.old_path)
            operation = ImpactOperation(
                path=change.path, change=ImpactType.RENAMED, old_path=change.old_path
            )

            if new_class is not None and old_class is not None:
                if new_class.artifact_id == old_class.artifact_id:
                    group_for(new_class).add(operation, ImpactType.MODIFIED)
                else:
                    group = group_for(new_class)
                    group.add(operation, ImpactType.RENAMED)
                    group.old_ids.add(old_class.artifact_id)
            elif new_class is not None:
                group_for(new_class).add(operation, ImpactType.CREATED)
            elif old_class is not None:
                deletion = ImpactOperation(path=change.old_path, change=ImpactType.DELETED)
                group_for(old_class).add(deletion, ImpactType.DELETED)

        artifacts: list[ImpactedArtifact] = []
        for artifact_id, group in groups.items():
            impact_type = group.combined_type()
            artifacts.append(
                ImpactedArtifact(
                    artifact_id=artifact_id,
                    kind=group.kind,
                    impact_type=impact_type,
                    operations=sorted(group.operations, key=lambda op: (op.path, op.old_path or "")),
                    old_artifact_id=(
                        next(iter(group.old_ids)) if impact_type == ImpactType.RENAMED else None
                    ),
                )
            )

        return sorted(artifacts, key=lambda a: a.sort_key)


def _paths_of(changes: list[FileChange]) -> set[str]:
    paths: set[str] = set()
    for change in changes:
        paths.add(change.path)
        if change.old_path:
            paths.add(change.old_path)
    return paths

"""Impact analysis entities.

This module contains entities produced by the impact analyzer:
- ImpactType: Classification of an artifact-level change
- ImpactOperation: Single file-level change backing an artifact
- ImpactedArtifact: Logical artifact touched by a commit range
- CommitRange / CheckoutTransition: Analyzer inputs
- ImpactReport: Deterministic, deduplicated list of impacted artifacts
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ImpactType(Enum):
    """How an artifact was affected by a change."""

    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"

    @classmethod
    def from_git_status(cls, status: str) -> "ImpactType":
        """Map a git --name-status letter (A, M, D, R100, C75, T) to an impact type."""
        letter = status[:1].upper()
        if letter in ("A", "C"):
            return cls.CREATED
        if letter == "D":
            return cls.DELETED
        if letter == "R":
            return cls.RENAMED
        return cls.MODIFIED


@dataclass
class ImpactOperation:
    """Single file-level change that contributed to an artifact's classification.

    Attributes:
        path: Repository-relative path after the change
        change: Impact of this change on the file
        old_path: Path before a rename (None otherwise)
    """

    path: str
    change: ImpactType
    old_path: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "path": self.path,
            "change": self.change.value,
            "old_path": self.old_path,
        }


@dataclass
class ImpactedArtifact:
    """A logical artifact affected by a commit range.

    Attributes:
        artifact_id: Artifact identity (a path or logical name)
        kind: Classification tag, selects the strategy that regenerates it
        impact_type: Combined impact of all operations
        operations: File-level changes that produced this classification
        old_artifact_id: Previous identity when renamed

    Validation Rules:
        - at least one operation
        - renamed artifacts carry old_artifact_id
    """

    artifact_id: str
    kind: str
    impact_type: ImpactType
    operations: list[ImpactOperation] = field(default_factory=list)
    old_artifact_id: str | None = None

    def __post_init__(self) -> None:
        """Validate artifact invariants."""
        if not self.operations:
            raise ValueError(f"Impacted artifact {self.artifact_id} has no operations")
        if self.impact_type == ImpactType.RENAMED and not self.old_artifact_id:
            raise ValueError(f"Renamed artifact {self.artifact_id} has no old identity")

    @property
    def sort_key(self) -> tuple[str, str]:
        """Stable ordering key: identity, then impact type."""
        return (self.artifact_id, self.impact_type.value)

    @property
    def paths(self) -> list[str]:
        """File paths touched by this artifact's operations."""
        return [op.path for op in self.operations]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "artifact_id": self.artifact_id,
            "kind": self.kind,
            "impact_type": self.impact_type.value,
            "old_artifact_id": self.old_artifact_id,
            "operations": [op.to_dict() for op in self.operations],
        }


@dataclass(frozen=True)
class CommitRange:
    """Two repository states to compare (base exclusive, head inclusive)."""

    base: str
    head: str

    def __str__(self) -> str:
        return f"{self.base}..{self.head}"


@dataclass(frozen=True)
class CheckoutTransition:
    """HEAD movement reported by git's post-checkout hook.

    Attributes:
        previous_head: HEAD before the checkout
        new_head: HEAD after the checkout
        branch_checkout: False for file checkouts (git passes flag 0)
    """

    previous_head: str
    new_head: str
    branch_checkout: bool = True

    @property
    def base(self) -> str:
        return self.previous_head

    @property
    def head(self) -> str:
        return self.new_head

    def __str__(self) -> str:
        return f"{self.previous_head}..{self.new_head}"


@dataclass
class ImpactReport:
    """Deterministic output of diff classification for one commit range.

    Attributes:
        base: Resolved base commit SHA
        head: Resolved head commit SHA
        artifacts: Impacted artifacts, deduplicated and sorted by sort_key
        excluded_commits: Cascade commits left out of the analysis
        source_head: Newest non-cascade commit at or below head (None = head itself)
    """

    base: str
    head: str
    artifacts: list[ImpactedArtifact] = field(default_factory=list)
    excluded_commits: list[str] = field(default_factory=list)
    source_head: str | None = None

    @property
    def is_empty(self) -> bool:
        """True when nothing was impacted."""
        return not self.artifacts

    @property
    def target_commit(self) -> str:
        """Commit idempotency records are keyed on for this report."""
        return self.source_head or self.head

    def count_by_type(self) -> dict[str, int]:
        """Count artifacts per impact type (all types present, zero-filled)."""
        counts = {impact.value: 0 for impact in ImpactType}
        for artifact in self.artifacts:
            counts[artifact.impact_type.value] += 1
        return counts

    def summary(self) -> dict[str, Any]:
        """Compact summary used in orchestration results."""
        return {
            "base": self.base,
            "head": self.head,
            "target_commit": self.target_commit,
            "total": len(self.artifacts),
            "by_type": self.count_by_type(),
            "excluded_commits": len(self.excluded_commits),
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "base": self.base,
            "head": self.head,
            "target_commit": self.target_commit,
            "artifacts": [artifact.to_dict() for artifact in self.artifacts],
            "excluded_commits": list(self.excluded_commits),
        }

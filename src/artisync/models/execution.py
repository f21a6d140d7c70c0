"""Execution tracking entities.

- HookExecutionStatus / HookExecutionMetadata: persisted idempotency records
- ShouldExecuteResult: computed run/skip decision
- ArtifactExecutionResult: outcome of one strategy invocation
- StrategyExecutionResult: aggregated outcome of a strategy executor run
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class HookExecutionStatus(Enum):
    """Status of a recorded unit of work."""

    STARTED = "started"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not HookExecutionStatus.STARTED


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


@dataclass
class HookExecutionMetadata:
    """Persisted record of one unit of work, keyed by (artifact_id, target_commit).

    Attributes:
        artifact_id: Artifact identity
        target_commit: Commit SHA (or checkout target) the work corresponds to
        status: Current status
        started_at: When the work started (UTC)
        finished_at: When the work reached a terminal status (UTC)
        error: Error summary for failed runs
    """

    artifact_id: str
    target_commit: str
    status: HookExecutionStatus
    started_at: datetime
    finished_at: datetime | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        """Ensure timestamps are timezone-aware UTC."""
        if self.started_at.tzinfo is None:
            self.started_at = self.started_at.replace(tzinfo=UTC)
        if self.finished_at is not None and self.finished_at.tzinfo is None:
            self.finished_at = self.finished_at.replace(tzinfo=UTC)

    @property
    def key(self) -> str:
        """Store key for this record."""
        return record_key(self.artifact_id, self.target_commit)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "artifact_id": self.artifact_id,
            "target_commit": self.target_commit,
            "status": self.status.value,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HookExecutionMetadata":
        """Rebuild a record from its serialized form.

        Raises:
            KeyError: If a required field is missing
            ValueError: If status or timestamps are malformed
        """
        started_at = _parse_timestamp(data["started_at"])
        if started_at is None:
            raise ValueError("started_at is empty")
        return cls(
            artifact_id=data["artifact_id"],
            target_commit=data["target_commit"],
            status=HookExecutionStatus(data["status"]),
            started_at=started_at,
            finished_at=_parse_timestamp(data.get("finished_at")),
            error=data.get("error"),
        )


def record_key(artifact_id: str, target_commit: str) -> str:
    """Build the idempotency key for an (artifact, commit) pair."""
    return f"{artifact_id}@{target_commit}"


@dataclass
class ShouldExecuteResult:
    """Decision on whether a unit of work should run.

    Attributes:
        should_execute: True if the work should run
        reason: Human-readable explanation
        last_execution: Record the decision was based on (if any)
    """

    should_execute: bool
    reason: str
    last_execution: HookExecutionMetadata | None = None


class ArtifactExecutionStatus(Enum):
    """Outcome of a strategy invocation for one artifact."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class ArtifactExecutionResult:
    """Outcome of processing one artifact.

    Attributes:
        artifact_id: Artifact identity
        kind: Artifact classification tag
        status: Succeeded, failed or skipped (no strategy registered)
        written_paths: Files written by the strategy
        removed_paths: Files removed by the strategy
        message: Strategy message or skip reason
        error: Error detail on failure
        timed_out: True if the strategy exceeded its execution window
        duration_ms: Wall-clock duration of the invocation
    """

    artifact_id: str
    kind: str
    status: ArtifactExecutionStatus
    written_paths: list[str] = field(default_factory=list)
    removed_paths: list[str] = field(default_factory=list)
    message: str = ""
    error: str | None = None
    timed_out: bool = False
    duration_ms: int = 0

    @property
    def changed_paths(self) -> list[str]:
        """Written and removed paths, sorted and deduplicated."""
        return sorted(set(self.written_paths) | set(self.removed_paths))

    @property
    def has_changes(self) -> bool:
        return bool(self.written_paths or self.removed_paths)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "artifact_id": self.artifact_id,
            "kind": self.kind,
            "status": self.status.value,
            "written_paths": list(self.written_paths),
            "removed_paths": list(self.removed_paths),
            "message": self.message,
            "error": self.error,
            "timed_out": self.timed_out,
            "duration_ms": self.duration_ms,
        }


@dataclass
class StrategyExecutionResult:
    """Aggregated outcome of one strategy executor run.

    Attributes:
        results: Per-artifact results in processing order
    """

    results: list[ArtifactExecutionResult] = field(default_factory=list)

    def _count(self, status: ArtifactExecutionStatus) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def succeeded(self) -> int:
        return self._count(ArtifactExecutionStatus.SUCCEEDED)

    @property
    def failed(self) -> int:
        return self._count(ArtifactExecutionStatus.FAILED)

    @property
    def skipped(self) -> int:
        return self._count(ArtifactExecutionStatus.SKIPPED)

    @property
    def successful_results(self) -> list[ArtifactExecutionResult]:
        return [r for r in self.results if r.status == ArtifactExecutionStatus.SUCCEEDED]

    @property
    def failed_results(self) -> list[ArtifactExecutionResult]:
        return [r for r in self.results if r.status == ArtifactExecutionStatus.FAILED]

    @property
    def changed_paths(self) -> list[str]:
        """Paths changed by succeeded artifacts only, sorted and deduplicated."""
        paths: set[str] = set()
        for result in self.successful_results:
            paths.update(result.changed_paths)
        return sorted(paths)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "changed_paths": self.changed_paths,
            "results": [r.to_dict() for r in self.results],
        }

"""Abstract base class for regeneration strategies.

A strategy regenerates the derived content of one artifact kind. Each strategy:
1. Receives the impacted artifact and a context (git root, timeout)
2. Writes or removes files under the git root
3. Reports exactly which paths it changed (only those are committed)
4. Signals failure by raising StrategyFailure (or any exception)

What a strategy generates is opaque to the pipeline.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from artisync.models.impact import ImpactedArtifact


@dataclass
class StrategyContext:
    """Per-invocation context handed to a strategy.

    Attributes:
        git_root: Working tree root; reported paths are relative to it
        timeout_ms: Execution window enforced by the executor
        target_commit: Commit the regeneration corresponds to
    """

    git_root: Path
    timeout_ms: int
    target_commit: str | None = None

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000


@dataclass
class StrategyOutcome:
    """What a strategy did for one artifact.

    Attributes:
        written_paths: Repository-relative paths created or modified
        removed_paths: Repository-relative paths deleted
        message: Short human-readable summary
    """

    written_paths: list[str] = field(default_factory=list)
    removed_paths: list[str] = field(default_factory=list)
    message: str = ""


class Strategy(ABC):
    """Interface for pluggable regeneration handlers.

    Attributes:
        kind: Artifact classification tag this strategy handles
    """

    def __init__(self, kind: str) -> None:
        self.kind = kind

    @abstractmethod
    def process(self, artifact: ImpactedArtifact, context: StrategyContext) -> StrategyOutcome:
        """Regenerate the derived content for one artifact.

        Args:
            artifact: Impacted artifact to process
            context: Invocation context

        Returns:
            Paths written and removed

        Raises:
            StrategyFailure: If regeneration failed
        """

    def get_metadata(self) -> dict[str, Any]:
        """Get strategy metadata for logging and debugging."""
        return {"kind": self.kind, "type": type(self).__name__}

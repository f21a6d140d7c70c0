"""Strategy execution with per-artifact isolation.

Runs the registered strategy for each impacted artifact, sequentially and in
the analyzer's order:
- No registered strategy for the kind: skipped (not failed)
- Strategy raises: failed, processing continues with the next artifact
- Strategy overruns its window: failed as a timeout, processing continues

Nothing raised by a strategy escapes the executor.
"""

import logging
import threading
import time
from pathlib import Path, PurePosixPath
from typing import Any

from artisync.errors import StrategyFailure, TimeoutFailure
from artisync.models.execution import (
    ArtifactExecutionResult,
    ArtifactExecutionStatus,
    StrategyExecutionResult,
)
from artisync.models.impact import ImpactedArtifact
from artisync.strategies.base import StrategyContext, StrategyOutcome
from artisync.strategies.registry import StrategyRegistry
from artisync.utils.logging import structured

logger = logging.getLogger(__name__)


class StrategyExecutor:
    """Runs strategies for impacted artifacts and aggregates their outcomes.

    Each invocation runs in a daemon worker thread joined with the configured
    timeout. A strategy that overruns is abandoned (daemon threads never block
    process exit) and reported as a timeout failure.
    """

    def __init__(
        self,
        registry: StrategyRegistry,
        git_root: Path,
        timeout_ms: int = 60_000,
    ) -> None:
        """Initialize the executor.

        Args:
            registry: Strategy table keyed by artifact kind
            git_root: Working tree root handed to strategies
            timeout_ms: Execution window per artifact
        """
        self.registry = registry
        self.git_root = Path(git_root)
        self.timeout_ms = timeout_ms

    def execute(
        self,
        artifacts: list[ImpactedArtifact],
        target_commit: str | None = None,
    ) -> StrategyExecutionResult:
        """Process artifacts in order.

        Args:
            artifacts: Artifacts to process (already filtered by idempotency)
            target_commit: Commit the regeneration corresponds to

        Returns:
            Aggregated per-artifact results
        """
        aggregate = StrategyExecutionResult()
        for artifact in artifacts:
            result = self._execute_one(artifact, target_commit)
            aggregate.results.append(result)

        logger.info(
            "Strategies: %d succeeded, %d failed, %d skipped",
            aggregate.succeeded,
            aggregate.failed,
            aggregate.skipped,
        )
        return aggregate

    def _execute_one(
        self,
        artifact: ImpactedArtifact,
        target_commit: str | None,
    ) -> ArtifactExecutionResult:
        strategy = self.registry.get(artifact.kind)
        if strategy is None:
            logger.info("Skipping %s: no strategy for kind %r", artifact.artifact_id, artifact.kind)
            return ArtifactExecutionResult(
                artifact_id=artifact.artifact_id,
                kind=artifact.kind,
                status=ArtifactExecutionStatus.SKIPPED,
                message=f"no strategy registered for kind {artifact.kind!r}",
            )

        context = StrategyContext(
            git_root=self.git_root,
            timeout_ms=self.timeout_ms,
            target_commit=target_commit,
        )
        structured(
            logger,
            logging.INFO,
            f"Processing {artifact.artifact_id} ({artifact.impact_type.value})",
            artifact_id=artifact.artifact_id,
            kind=artifact.kind,
            event="artifact_start",
        )

        outcome: dict[str, Any] = {}

        def target() -> None:
            try:
                outcome["value"] = strategy.process(artifact, context)
            except Exception as e:  # captured, reported as a per-artifact failure
                outcome["error"] = e

        started = time.monotonic()
        worker = threading.Thread(
            target=target,
            name=f"artisync-strategy-{artifact.artifact_id}",
            daemon=True,
        )
        worker.start()
        worker.join(self.timeout_ms / 1000)
        duration_ms = int((time.monotonic() - started) * 1000)

        if worker.is_alive():
            return self._failure(artifact, TimeoutFailure(artifact.artifact_id, self.timeout_ms), duration_ms)

        if "error" in outcome:
            return self._failure(artifact, outcome["error"], duration_ms)

        value = outcome.get("value")
        if not isinstance(value, StrategyOutcome):
            error = StrategyFailure(
                artifact.artifact_id,
                f"strategy returned {type(value).__name__}, expected StrategyOutcome",
            )
            return self._failure(artifact, error, duration_ms)

        try:
            written = self._normalize(value.written_paths)
            removed = self._normalize(value.removed_paths)
        except ValueError as e:
            return self._failure(artifact, StrategyFailure(artifact.artifact_id, str(e)), duration_ms)

        structured(
            logger,
            logging.INFO,
            f"Processed {artifact.artifact_id}: {len(written)} written, {len(removed)} removed",
            artifact_id=artifact.artifact_id,
            event="artifact_success",
            duration_ms=duration_ms,
        )
        return ArtifactExecutionResult(
            artifact_id=artifact.artifact_id,
            kind=artifact.kind,
            status=ArtifactExecutionStatus.SUCCEEDED,
            written_paths=written,
            removed_paths=removed,
            message=value.message,
            duration_ms=duration_ms,
        )

    def _failure(
        self,
        artifact: ImpactedArtifact,
        error: BaseException,
        duration_ms: int,
    ) -> ArtifactExecutionResult:
        message = error.message if isinstance(error, StrategyFailure) else f"{type(error).__name__}: {error}"
        structured(
            logger,
            logging.ERROR,
            f"Failed {artifact.artifact_id}: {message}",
            artifact_id=artifact.artifact_id,
            event="artifact_error",
            duration_ms=duration_ms,
        )
        return ArtifactExecutionResult(
            artifact_id=artifact.artifact_id,
            kind=artifact.kind,
            status=ArtifactExecutionStatus.FAILED,
            error=message,
            timed_out=isinstance(error, TimeoutFailure),
            duration_ms=duration_ms,
        )

    def _normalize(self, paths: list[str]) -> list[str]:
        """Convert reported paths to sorted, unique repository-relative POSIX paths.

        Raises:
            ValueError: If a path points outside the git root
        """
        root = self.git_root.resolve()
        normalized: set[str] = set()
        for raw in paths:
            path = Path(raw)
            if path.is_absolute():
                try:
                    path = path.resolve().relative_to(root)
                except ValueError:
                    raise ValueError(f"path outside repository: {raw}") from None
            posix = PurePosixPath(path.as_posix())
            if ".." in posix.parts:
                raise ValueError(f"path outside repository: {raw}")
            normalized.add(str(posix))
        return sorted(normalized)

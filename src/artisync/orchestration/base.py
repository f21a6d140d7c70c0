"""Shared orchestration pipeline.

Every hook event runs the same sequence; only detection and the commit range
differ per event:

    Idle -> DetectingEvent -> AnalyzingImpact -> FilteringByIdempotency
         -> ExecutingStrategies -> CommittingCascade -> Done

Done is not stored as a state: the result's success and reason describe the
outcome, and final_state keeps the working state the run stopped in.

The run ends at the first unrecoverable failure. Per-artifact strategy
failures are not unrecoverable: they are recorded and reported as warnings.
The idempotency tracker, strategy executor and commit creator are built on
first use, so a run that finds nothing impacted never constructs them.
"""

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable

from artisync import __version__
from artisync.analysis.impact_analyzer import ImpactAnalyzer
from artisync.analysis.rules import RuleSet
from artisync.cascade.commit import CascadeCommitCreator
from artisync.config import ArtisyncConfig
from artisync.errors import CommitError, GitCommandError, InvalidRangeError, PersistenceError
from artisync.models.detection import CheckoutMetadata, MergeMetadata
from artisync.models.execution import (
    ArtifactExecutionStatus,
    HookExecutionStatus,
    StrategyExecutionResult,
)
from artisync.models.impact import CheckoutTransition, CommitRange, ImpactedArtifact
from artisync.models.orchestration import (
    CascadeCommitAttribution,
    HookEvent,
    OrchestrationResult,
    OrchestrationState,
)
from artisync.strategies.executor import StrategyExecutor
from artisync.strategies.registry import StrategyRegistry, build_registry, get_registry
from artisync.tracking.idempotency import IdempotencyStore, IdempotencyTracker
from artisync.utils.git import GitClient
from artisync.utils.logging import structured

logger = logging.getLogger(__name__)

DetectionMetadata = MergeMetadata | CheckoutMetadata

# Errors that end a run as Done(failure)
FATAL_ERRORS = (InvalidRangeError, PersistenceError, CommitError, GitCommandError)


class BaseOrchestrator(ABC):
    """Composes analysis, idempotency, strategies and cascade commits for one event.

    Subclasses provide the event, detection and the range to analyze.
    Collaborators can be injected for testing; by default they are built from
    the configuration.
    """

    event: HookEvent

    def __init__(
        self,
        config: ArtisyncConfig,
        git: GitClient | None = None,
        analyzer: ImpactAnalyzer | None = None,
        tracker_factory: Callable[[], IdempotencyTracker] | None = None,
        executor_factory: Callable[[], StrategyExecutor] | None = None,
        committer_factory: Callable[[], CascadeCommitCreator] | None = None,
        registry: StrategyRegistry | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            config: Loaded configuration
            git: Git client (defaults to one rooted at config.git_root)
            analyzer: Impact analyzer (defaults to config rules)
            tracker_factory: Builds the idempotency tracker on first use
            executor_factory: Builds the strategy executor on first use
            committer_factory: Builds the cascade commit creator on first use
            registry: Strategy registry (defaults to the global registry plus config strategies)
        """
        self.config = config
        self.git = git or GitClient(config.git_root)
        self.analyzer = analyzer or ImpactAnalyzer(self.git, RuleSet.from_config(config.rules))
        self._registry = registry
        self._tracker_factory = tracker_factory or self._default_tracker
        self._executor_factory = executor_factory or self._default_executor
        self._committer_factory = committer_factory or self._default_committer

    # =========================================================================
    # Event-specific hooks
    # =========================================================================

    @abstractmethod
    def detect(self) -> DetectionMetadata:
        """Ask the event detector for metadata."""

    @abstractmethod
    def build_range(self, metadata: DetectionMetadata) -> CommitRange | CheckoutTransition:
        """Range the impact analyzer compares for this event."""

    def build_attribution(self, metadata: DetectionMetadata) -> CascadeCommitAttribution:
        """Identity and trailers for the cascade commit."""
        return CascadeCommitAttribution(
            agent_name=self.config.attribution.agent_name,
            agent_version=__version__,
            author_email=self.config.attribution.author_email,
            trigger_event=self.event.value,
            pr_number=getattr(metadata, "pr_number", None),
            human_actor=self.config.attribution.human_actor,
        )

    # =========================================================================
    # Default collaborators
    # =========================================================================

    def _default_tracker(self) -> IdempotencyTracker:
        store = IdempotencyStore(self.config.idempotency_store_path)
        return IdempotencyTracker(store, allow_retry=self.config.idempotency.allow_retry)

    def _default_executor(self) -> StrategyExecutor:
        registry = self._registry
        if registry is None:
            registry = build_registry(self.config, get_registry())
        return StrategyExecutor(
            registry,
            git_root=self.config.git_root,
            timeout_ms=self.config.execution.strategy_timeout_ms,
        )

    def _default_committer(self) -> CascadeCommitCreator:
        return CascadeCommitCreator(self.git)

    # =========================================================================
    # Pipeline
    # =========================================================================

    def run(self) -> OrchestrationResult:
        """Run the pipeline end to end.

        Returns:
            OrchestrationResult; fatal errors are reported in it, not raised
        """
        started = time.monotonic()
        result = OrchestrationResult(event=self.event)
        structured(logger, logging.INFO, f"{self.event.value}: run started", event="run_start")

        try:
            self._run(result)
        except FATAL_ERRORS as e:
            result.success = False
            result.errors.append(str(e))
            result.reason = f"Failed while {result.final_state.value.replace('_', ' ')}: {e}"
            logger.error("%s: %s", self.event.value, result.reason)

        result.duration_ms = int((time.monotonic() - started) * 1000)
        structured(
            logger,
            logging.INFO if result.success else logging.ERROR,
            f"{self.event.value}: run finished ({result.reason})",
            event="run_success" if result.success else "run_error",
            duration_ms=result.duration_ms,
            cascade_commit=result.cascade_commit_sha,
        )
        return result

    def _enter(self, result: OrchestrationResult, state: OrchestrationState) -> None:
        logger.debug("%s: %s -> %s", self.event.value, result.final_state.value, state.value)
        result.final_state = state

    def _finish(self, result: OrchestrationResult, reason: str) -> OrchestrationResult:
        result.success = True
        result.reason = reason
        return result

    def _run(self, result: OrchestrationResult) -> OrchestrationResult:
        self._enter(result, OrchestrationState.DETECTING_EVENT)
        metadata = self.detect()
        if not metadata.is_relevant_transition:
            return self._finish(result, metadata.reason or "not a relevant transition")

        self._enter(result, OrchestrationState.ANALYZING_IMPACT)
        report = self.analyzer.analyze(self.build_range(metadata))
        result.impact_summary = report.summary()
        if report.is_empty:
            return self._finish(result, "nothing impacted")
        logger.info("%d artifact(s) impacted", len(report.artifacts))

        self._enter(result, OrchestrationState.FILTERING_BY_IDEMPOTENCY)
        tracker = self._tracker_factory()
        target_commit = report.target_commit
        to_run = self._filter(tracker, report.artifacts, target_commit, result)
        if not to_run:
            return self._finish(
                result, f"all {len(report.artifacts)} artifact(s) already processed"
            )
        for artifact in to_run:
            tracker.record_start(artifact.artifact_id, target_commit)

        self._enter(result, OrchestrationState.EXECUTING_STRATEGIES)
        strategy_result = self._executor_factory().execute(to_run, target_commit)
        result.strategy_result = strategy_result
        self._record_results(tracker, strategy_result, target_commit, result)

        changed_paths = strategy_result.changed_paths
        if changed_paths:
            self._enter(result, OrchestrationState.COMMITTING_CASCADE)
            commit = self._committer_factory().create(
                changed_paths,
                self.build_attribution(metadata),
                strategy_result.successful_results,
            )
            result.cascade_commit_created = commit.created
            result.cascade_commit_sha = commit.commit_sha

        reason = (
            f"{strategy_result.succeeded} succeeded, {strategy_result.failed} failed, "
            f"{strategy_result.skipped} skipped, {result.skipped_count} already done"
        )
        return self._finish(result, reason)

    def _filter(
        self,
        tracker: IdempotencyTracker,
        artifacts: list[ImpactedArtifact],
        target_commit: str,
        result: OrchestrationResult,
    ) -> list[ImpactedArtifact]:
        to_run: list[ImpactedArtifact] = []
        for artifact in artifacts:
            decision = tracker.should_execute(artifact.artifact_id, target_commit)
            result.idempotency_lookups += 1
            if decision.should_execute:
                logger.debug("Will process %s: %s", artifact.artifact_id, decision.reason)
                to_run.append(artifact)
            else:
                logger.info("Skipping %s: %s", artifact.artifact_id, decision.reason)
                result.skipped_by_idempotency.append(artifact.artifact_id)
        return to_run

    def _record_results(
        self,
        tracker: IdempotencyTracker,
        strategy_result: StrategyExecutionResult,
        target_commit: str,
        result: OrchestrationResult,
    ) -> None:
        for artifact_result in strategy_result.results:
            if artifact_result.status == ArtifactExecutionStatus.FAILED:
                tracker.record_result(
                    artifact_result.artifact_id,
                    target_commit,
                    HookExecutionStatus.FAILED,
                    artifact_result.error,
                )
                result.warnings.append(f"{artifact_result.artifact_id}: {artifact_result.error}")
            else:
                # Skipped artifacts (no strategy) are done for this commit too
                tracker.record_result(
                    artifact_result.artifact_id,
                    target_commit,
                    HookExecutionStatus.SUCCEEDED,
                )
